"""Session store subpackage.

All stores implement the async ``SessionStore`` ABC.

Public surface
--------------
- SessionStore          - abstract base class
- InMemorySessionStore  - dict-backed store guarded by ``asyncio.Lock``
- RedisSessionStore     - ``redis.asyncio`` store with server-side expiry
- SQLiteSessionStore    - ``aiosqlite`` store for single-host deployments
"""
from __future__ import annotations

from opaque_session.storage.base import SessionStore
from opaque_session.storage.memory import InMemorySessionStore
from opaque_session.storage.redis import RedisSessionStore
from opaque_session.storage.sqlite import SQLiteSessionStore

__all__ = [
    "InMemorySessionStore",
    "RedisSessionStore",
    "SQLiteSessionStore",
    "SessionStore",
]
