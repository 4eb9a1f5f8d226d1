"""Abstract base class for async session stores.

A store keeps one payload per session identifier with a fixed TTL that
slides forward on every successful read.  It also owns the session cookie
attributes, so that the handler can ask it for the cookie name and for
ready-to-send Set-Cookie strings.

Payloads are serialised to JSON with a pydantic ``TypeAdapter`` built from
``payload_type``; pass a ``BaseModel`` subclass or a ``TypedDict`` to have
payloads validated on the way back out of the store.

Classes
-------
- SessionStore  - abstract base for all async stores
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter

from opaque_session.cookies import CookieSettings
from opaque_session.duration import DurationLike, to_seconds

T = TypeVar("T")


class SessionStore(ABC, Generic[T]):
    """Key-value lifecycle for session payloads with sliding expiry.

    Implementations must let the last concurrent ``set`` for an identifier
    win and may treat the TTL as advisory.

    Parameters
    ----------
    ttl:
        Session lifetime: seconds, ``timedelta`` or a unit mapping.  Clamped
        into ``[60s, 2**31 - 1 s]``.  Defaults to one day.
    cookie:
        Cookie attributes used by :meth:`create_cookie_string` and
        :meth:`reset_cookie`.  Defaults to ``CookieSettings()``.
    payload_type:
        Type of the stored payload, used for JSON (de)serialisation.
    """

    def __init__(
        self,
        *,
        ttl: DurationLike = None,
        cookie: CookieSettings | None = None,
        payload_type: Any = Any,
    ) -> None:
        self._ttl_seconds = to_seconds(ttl)
        self._cookie = cookie or CookieSettings()
        self._adapter: TypeAdapter[T] = TypeAdapter(payload_type)

    # ------------------------------------------------------------------
    # Payload codec
    # ------------------------------------------------------------------

    def _dump(self, payload: T) -> str:
        return self._adapter.dump_json(payload).decode("utf-8")

    def _load(self, raw: str | bytes) -> T:
        return self._adapter.validate_json(raw)

    # ------------------------------------------------------------------
    # Store contract
    # ------------------------------------------------------------------

    @abstractmethod
    async def get(self, session_id: str) -> T | None:
        """Return the payload for ``session_id`` or ``None`` when absent.

        A hit refreshes the entry's TTL to its full duration.

        Raises
        ------
        StoreUnavailableError
            If the backing service fails.
        """

    @abstractmethod
    async def set(self, session_id: str, payload: T) -> None:
        """Upsert ``payload`` under ``session_id`` with the configured TTL.

        Raises
        ------
        StoreUnavailableError
            If the backing service fails.
        """

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Remove ``session_id``.

        Returns
        -------
        bool
            True if an entry was removed, False if there was none.

        Raises
        ------
        StoreUnavailableError
            If the backing service fails.
        """

    async def close(self) -> None:
        """Release backend resources.  The default implementation does nothing."""

    # ------------------------------------------------------------------
    # Cookie helpers
    # ------------------------------------------------------------------

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    @property
    def cookie(self) -> CookieSettings:
        return self._cookie

    def cookie_name(self) -> str:
        return self._cookie.name

    def create_cookie_string(self, token: str) -> str:
        """Return a Set-Cookie value carrying ``token`` for the session TTL."""
        return self._cookie.build(token, self._ttl_seconds)

    def reset_cookie(self) -> str:
        """Return a Set-Cookie value that immediately expires the session cookie."""
        return self._cookie.expire()


__all__ = ["SessionStore"]
