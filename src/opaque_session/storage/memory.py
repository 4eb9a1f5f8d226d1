"""Async in-memory session store.

Stores serialised payloads in a plain Python dict guarded by
``asyncio.Lock``.  All data is lost when the process exits.  This store is
primarily useful for tests, local prototyping and single-process apps.

Classes
-------
- InMemorySessionStore  - dict-backed ephemeral store with sliding expiry
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from opaque_session.cookies import CookieSettings
from opaque_session.duration import DurationLike
from opaque_session.storage.base import SessionStore, T

logger = logging.getLogger(__name__)


class InMemorySessionStore(SessionStore[T]):
    """Ephemeral in-process store backed by a dict of ``(payload, expires_at)``.

    Expired entries are treated as absent.  They are dropped when touched,
    by :meth:`purge_expired`, and by a sweep that ``set`` runs at most once
    per TTL, so sessions that are never read again do not pile up.

    Parameters
    ----------
    clock:
        Zero-argument callable returning monotonic seconds.  Defaults to
        ``time.monotonic``; tests inject a fake to move time forward.
    """

    def __init__(
        self,
        *,
        ttl: DurationLike = None,
        cookie: CookieSettings | None = None,
        payload_type: Any = Any,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(ttl=ttl, cookie=cookie, payload_type=payload_type)
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock: asyncio.Lock = asyncio.Lock()
        self._clock = clock
        self._next_sweep: float = clock() + self._ttl_seconds

    def _live(self, session_id: str) -> str | None:
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        raw, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[session_id]
            return None
        return raw

    def _sweep(self, now: float) -> int:
        # Caller holds the lock.
        expired = [sid for sid, (_, expires_at) in self._entries.items() if expires_at <= now]
        for session_id in expired:
            del self._entries[session_id]
        self._next_sweep = now + self._ttl_seconds
        if expired:
            logger.debug("Swept %d expired in-memory sessions", len(expired))
        return len(expired)

    # ------------------------------------------------------------------
    # SessionStore interface
    # ------------------------------------------------------------------

    async def get(self, session_id: str) -> T | None:
        """Return the payload and push its expiry a full TTL into the future."""
        async with self._lock:
            raw = self._live(session_id)
            if raw is None:
                return None
            self._entries[session_id] = (raw, self._clock() + self._ttl_seconds)
        return self._load(raw)

    async def set(self, session_id: str, payload: T) -> None:
        raw = self._dump(payload)
        async with self._lock:
            now = self._clock()
            if now >= self._next_sweep:
                self._sweep(now)
            self._entries[session_id] = (raw, now + self._ttl_seconds)

    async def delete(self, session_id: str) -> bool:
        async with self._lock:
            return self._entries.pop(session_id, None) is not None

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    async def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        async with self._lock:
            return self._sweep(self._clock())

    async def clear(self) -> None:
        """Remove all stored sessions."""
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        """Number of sessions that have not yet expired."""
        now = self._clock()
        return sum(1 for _, expires_at in self._entries.values() if expires_at > now)

    def __repr__(self) -> str:
        return f"InMemorySessionStore(sessions={len(self)}, ttl_seconds={self._ttl_seconds})"


__all__ = ["InMemorySessionStore"]
