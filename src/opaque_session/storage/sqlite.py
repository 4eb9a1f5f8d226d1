"""Async SQLite session store backed by aiosqlite.

Each row carries its absolute expiry as a UNIX timestamp.  Expired rows
are treated as absent; they are removed when read or by
:meth:`SQLiteSessionStore.purge_expired`.

Classes
-------
- SQLiteSessionStore  - aiosqlite-backed session store
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, NoReturn

import aiosqlite

from opaque_session.cookies import CookieSettings
from opaque_session.duration import DurationLike
from opaque_session.errors import StoreUnavailableError
from opaque_session.storage.base import SessionStore, T

logger = logging.getLogger(__name__)

_DEFAULT_DB_PATH: Path = Path.home() / ".opaque-session" / "sessions.db"

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS sessions (
    session_id TEXT PRIMARY KEY,
    payload    TEXT NOT NULL,
    expires_at REAL NOT NULL
)
"""

_UPSERT_SQL = """
INSERT INTO sessions (session_id, payload, expires_at)
VALUES (?, ?, ?)
ON CONFLICT(session_id) DO UPDATE SET
    payload    = excluded.payload,
    expires_at = excluded.expires_at
"""


class SQLiteSessionStore(SessionStore[T]):
    """Persists sessions in a local SQLite database.

    Parameters
    ----------
    db_path:
        Path to the SQLite file.  Defaults to
        ``~/.opaque-session/sessions.db``.  The parent directory and table
        are created automatically on first use.
    clock:
        Zero-argument callable returning wall-clock seconds.  Defaults to
        ``time.time``.
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        *,
        ttl: DurationLike = None,
        cookie: CookieSettings | None = None,
        payload_type: Any = Any,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(ttl=ttl, cookie=cookie, payload_type=payload_type)
        self._db_path: Path = Path(db_path) if db_path is not None else _DEFAULT_DB_PATH
        self._clock = clock
        self._schema_initialised = False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _ensure_schema(self) -> None:
        """Create the sessions table on first use."""
        if self._schema_initialised:
            return
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute(_CREATE_TABLE_SQL)
            await conn.commit()
        self._schema_initialised = True

    def _fail(self, operation: str, session_id: str, error: Exception) -> NoReturn:
        logger.error("SQLite %s failed for session %r: %s", operation, session_id, error)
        raise StoreUnavailableError(operation, str(error)) from error

    # ------------------------------------------------------------------
    # SessionStore interface
    # ------------------------------------------------------------------

    async def get(self, session_id: str) -> T | None:
        now = self._clock()
        try:
            await self._ensure_schema()
            async with aiosqlite.connect(str(self._db_path)) as conn:
                async with conn.execute(
                    "SELECT payload, expires_at FROM sessions WHERE session_id = ?",
                    (session_id,),
                ) as cursor:
                    row = await cursor.fetchone()
                if row is None:
                    return None
                raw, expires_at = row
                if expires_at <= now:
                    await conn.execute(
                        "DELETE FROM sessions WHERE session_id = ? AND expires_at <= ?",
                        (session_id, now),
                    )
                    await conn.commit()
                    return None
                await conn.execute(
                    "UPDATE sessions SET expires_at = ? WHERE session_id = ?",
                    (now + self._ttl_seconds, session_id),
                )
                await conn.commit()
        except (aiosqlite.Error, OSError) as exc:
            self._fail("get", session_id, exc)
        return self._load(raw)

    async def set(self, session_id: str, payload: T) -> None:
        raw = self._dump(payload)
        try:
            await self._ensure_schema()
            async with aiosqlite.connect(str(self._db_path)) as conn:
                await conn.execute(
                    _UPSERT_SQL, (session_id, raw, self._clock() + self._ttl_seconds)
                )
                await conn.commit()
        except (aiosqlite.Error, OSError) as exc:
            self._fail("set", session_id, exc)

    async def delete(self, session_id: str) -> bool:
        try:
            await self._ensure_schema()
            async with aiosqlite.connect(str(self._db_path)) as conn:
                cursor = await conn.execute(
                    "DELETE FROM sessions WHERE session_id = ?", (session_id,)
                )
                await conn.commit()
        except (aiosqlite.Error, OSError) as exc:
            self._fail("delete", session_id, exc)
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    async def purge_expired(self) -> int:
        """Delete every expired row and return how many were removed."""
        try:
            await self._ensure_schema()
            async with aiosqlite.connect(str(self._db_path)) as conn:
                cursor = await conn.execute(
                    "DELETE FROM sessions WHERE expires_at <= ?", (self._clock(),)
                )
                await conn.commit()
        except (aiosqlite.Error, OSError) as exc:
            self._fail("purge", "*", exc)
        removed = cursor.rowcount
        if removed:
            logger.debug("Purged %d expired sessions from %s", removed, self._db_path)
        return removed

    def __repr__(self) -> str:
        return f"SQLiteSessionStore(db_path={str(self._db_path)!r}, ttl_seconds={self._ttl_seconds})"


__all__ = ["SQLiteSessionStore"]
