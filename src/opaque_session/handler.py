"""Session orchestration over an encryptor and a store.

Provides ``SessionHandler``, the primary facade that issues opaque tokens
for new sessions, resolves incoming cookies back to sessions, and keeps
store state and cookie state in step.

Classes
-------
- ResolvedSession  - result of resolving a cookie; falsy when anonymous
- SessionHandler   - create/resolve/update/delete facade
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, Mapping, Optional, TypeVar
from uuid import uuid4

from opaque_session.config import SessionConfig
from opaque_session.encryption import TokenCipher
from opaque_session.errors import ConfigurationError, DecryptionError
from opaque_session.storage.base import SessionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ResolvedSession(Generic[T]):
    """The outcome of :meth:`SessionHandler.resolve`.

    Both fields are ``None`` for anonymous requests: no cookie, a forged or
    corrupted cookie, or a cookie whose session no longer exists.
    """

    session_id: Optional[str] = None
    payload: Optional[T] = None

    @classmethod
    def empty(cls) -> ResolvedSession[T]:
        return cls()

    def __bool__(self) -> bool:
        return self.session_id is not None


def _check_store_matches(store: SessionStore[Any], config: SessionConfig) -> None:
    if store.cookie != config.cookie:
        raise ConfigurationError(
            f"Store cookie settings {store.cookie!r} differ from config {config.cookie!r}; "
            "build the store with **config.store_kwargs()"
        )
    if store.ttl_seconds != config.ttl_seconds():
        raise ConfigurationError(
            f"Store TTL {store.ttl_seconds}s differs from config TTL "
            f"{config.ttl_seconds()}s; build the store with **config.store_kwargs()"
        )


class SessionHandler(Generic[T]):
    """Create, resolve, update and delete cookie-backed sessions.

    The raw session identifier never leaves the server: clients only ever
    see the token produced by the encryptor.

    Parameters
    ----------
    store:
        The session store.  Also supplies the cookie name and Set-Cookie
        strings.
    encryptor:
        Object with ``encrypt``/``decrypt`` methods, typically a
        :class:`~opaque_session.encryption.TokenEncryptor`.
    config:
        Alternative to ``encryptor``: one is built from
        ``config.build_encryptor()``.  The store must carry the same cookie
        settings and TTL, which is easiest to guarantee by constructing it
        with ``**config.store_kwargs()``.

    Raises
    ------
    ConfigurationError
        If neither ``encryptor`` nor ``config`` is supplied, if both are,
        or if the store disagrees with ``config`` on cookie or TTL.
    """

    def __init__(
        self,
        store: SessionStore[T],
        encryptor: TokenCipher | None = None,
        *,
        config: SessionConfig | None = None,
    ) -> None:
        if (encryptor is None) == (config is None):
            raise ConfigurationError(
                "Pass exactly one of encryptor or config to SessionHandler"
            )
        if config is not None:
            _check_store_matches(store, config)
            encryptor = config.build_encryptor()
        self._store = store
        self._encryptor: TokenCipher = encryptor

    @property
    def store(self) -> SessionStore[T]:
        return self._store

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create(self, payload: T) -> str:
        """Store *payload* under a new identifier and return its token.

        The token is only produced after the store write has completed, so
        a cancelled call never hands out a token for an unrecorded session.
        """
        session_id = str(uuid4())
        await self._store.set(session_id, payload)
        token = self._encryptor.encrypt(session_id)
        logger.debug("Created session %r", session_id)
        return token

    async def read(self, session_id: str) -> T | None:
        return await self._store.get(session_id)

    async def update(self, session_id: str, payload: T) -> None:
        """Overwrite the payload of an existing session.

        Existence is not checked; updating an unknown identifier creates it.
        """
        await self._store.set(session_id, payload)

    async def delete(self, session_id: str) -> bool:
        return await self._store.delete(session_id)

    async def delete_and_clear(self, session_id: str) -> str:
        """Delete the session and return a Set-Cookie value that clears it.

        The clearing cookie is returned whether or not the session existed.
        """
        removed = await self._store.delete(session_id)
        logger.debug("Deleted session %r (existed=%s)", session_id, removed)
        return self._store.reset_cookie()

    # ------------------------------------------------------------------
    # Cookie resolution
    # ------------------------------------------------------------------

    def session_id_from_token(self, token: str) -> str | None:
        """Return the identifier sealed in *token*, or ``None`` if it is invalid."""
        try:
            return self._encryptor.decrypt(token)
        except DecryptionError as exc:
            logger.info("Rejected session token: %s", type(exc).__name__)
            return None

    async def resolve(self, cookie_value: str | None) -> ResolvedSession[T]:
        """Map a raw cookie value to its session.

        Missing, undecryptable and stale tokens all yield an empty
        :class:`ResolvedSession`.  Store failures propagate.
        """
        if not cookie_value:
            return ResolvedSession.empty()
        session_id = self.session_id_from_token(cookie_value)
        if session_id is None:
            return ResolvedSession.empty()
        payload = await self._store.get(session_id)
        if payload is None:
            logger.debug("Token for unknown session %r", session_id)
            return ResolvedSession.empty()
        return ResolvedSession(session_id=session_id, payload=payload)

    async def resolve_cookies(
        self, cookies: Mapping[str, str] | None
    ) -> ResolvedSession[T]:
        """Pick the session cookie out of parsed request cookies and resolve it."""
        if not cookies:
            return ResolvedSession.empty()
        return await self.resolve(cookies.get(self._store.cookie_name()))

    # ------------------------------------------------------------------
    # Passthroughs
    # ------------------------------------------------------------------

    def encrypt(self, session_id: str) -> str:
        return self._encryptor.encrypt(session_id)

    def cookie_name(self) -> str:
        return self._store.cookie_name()

    def create_cookie_string(self, token: str) -> str:
        return self._store.create_cookie_string(token)

    def __repr__(self) -> str:
        return f"SessionHandler(store={self._store!r}, encryptor={self._encryptor!r})"


__all__ = ["ResolvedSession", "SessionHandler"]
