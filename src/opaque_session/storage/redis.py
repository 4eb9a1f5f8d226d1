"""Async Redis session store backed by ``redis.asyncio``.

Each session is stored as a JSON string under ``<key_prefix><session_id>``
with a server-side expiry.  Reads use ``GETEX`` so that fetching a session
and sliding its TTL happen in one round trip.

Classes
-------
- RedisSessionStore  - redis.asyncio-backed session store
"""
from __future__ import annotations

import logging
from typing import Any, NoReturn

import redis.asyncio as redis_asyncio
from redis.exceptions import RedisError

from opaque_session.cookies import CookieSettings
from opaque_session.duration import DurationLike
from opaque_session.errors import ConfigurationError, StoreUnavailableError
from opaque_session.storage.base import SessionStore, T

logger = logging.getLogger(__name__)


class RedisSessionStore(SessionStore[T]):
    """Persists sessions in Redis with sliding expiry.

    Parameters
    ----------
    client:
        An existing ``redis.asyncio.Redis`` client.  Takes precedence over
        ``url``.  The store never closes a client it did not create.
    url:
        Redis connection URL (e.g. ``"redis://localhost:6379/0"``) used to
        build a client when ``client`` is not supplied.
    key_prefix:
        String prepended to all session keys.  Defaults to ``"session:"``.

    Raises
    ------
    ConfigurationError
        If neither ``client`` nor ``url`` is given.
    """

    def __init__(
        self,
        *,
        client: redis_asyncio.Redis | None = None,
        url: str | None = None,
        key_prefix: str = "session:",
        ttl: DurationLike = None,
        cookie: CookieSettings | None = None,
        payload_type: Any = Any,
    ) -> None:
        super().__init__(ttl=ttl, cookie=cookie, payload_type=payload_type)
        if client is not None:
            self._client = client
            self._owns_client = False
        elif url:
            self._client = redis_asyncio.Redis.from_url(url, decode_responses=True)
            self._owns_client = True
        else:
            raise ConfigurationError(
                "RedisSessionStore requires either a Redis client or a Redis URL"
            )
        self._key_prefix = key_prefix

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _key(self, session_id: str) -> str:
        """Return the full Redis key for ``session_id``."""
        return f"{self._key_prefix}{session_id}"

    def _fail(self, operation: str, session_id: str, error: RedisError) -> NoReturn:
        logger.error("Redis %s failed for session %r: %s", operation, session_id, error)
        raise StoreUnavailableError(operation, str(error)) from error

    # ------------------------------------------------------------------
    # SessionStore interface
    # ------------------------------------------------------------------

    async def get(self, session_id: str) -> T | None:
        try:
            raw = await self._client.getex(self._key(session_id), ex=self._ttl_seconds)
        except RedisError as exc:
            self._fail("get", session_id, exc)
        if raw is None:
            return None
        return self._load(raw)

    async def set(self, session_id: str, payload: T) -> None:
        raw = self._dump(payload)
        try:
            await self._client.set(self._key(session_id), raw, ex=self._ttl_seconds)
        except RedisError as exc:
            self._fail("set", session_id, exc)
        logger.debug("Stored session %r in Redis", session_id)

    async def delete(self, session_id: str) -> bool:
        try:
            deleted: int = await self._client.delete(self._key(session_id))
        except RedisError as exc:
            self._fail("delete", session_id, exc)
        return deleted > 0

    async def close(self) -> None:
        """Close the connection pool if this store created the client."""
        if self._owns_client:
            await self._client.aclose()

    def __repr__(self) -> str:
        return (
            f"RedisSessionStore(key_prefix={self._key_prefix!r}, "
            f"ttl_seconds={self._ttl_seconds!r})"
        )


__all__ = ["RedisSessionStore"]
