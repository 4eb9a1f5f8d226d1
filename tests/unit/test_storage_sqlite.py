"""Unit tests for opaque_session.storage.sqlite.SQLiteSessionStore."""
from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import aiosqlite
import pytest

from opaque_session.errors import StoreUnavailableError
from opaque_session.storage.sqlite import SQLiteSessionStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_700_000_000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(tmp_path: Path, clock: FakeClock) -> SQLiteSessionStore[dict[str, object]]:
    return SQLiteSessionStore(tmp_path / "sessions.db", ttl=120, clock=clock)


@pytest.mark.asyncio
async def test_set_and_get(store: SQLiteSessionStore[dict[str, object]]) -> None:
    await store.set("s1", {"user": "alice"})
    assert await store.get("s1") == {"user": "alice"}


@pytest.mark.asyncio
async def test_get_missing_returns_none(store: SQLiteSessionStore[dict[str, object]]) -> None:
    assert await store.get("ghost") is None


@pytest.mark.asyncio
async def test_set_overwrites(store: SQLiteSessionStore[dict[str, object]]) -> None:
    await store.set("s1", {"v": 1})
    await store.set("s1", {"v": 2})
    assert await store.get("s1") == {"v": 2}


@pytest.mark.asyncio
async def test_delete_is_idempotent(store: SQLiteSessionStore[dict[str, object]]) -> None:
    await store.set("s1", {})
    assert await store.delete("s1") is True
    assert await store.delete("s1") is False


@pytest.mark.asyncio
async def test_creates_parent_directory(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "dir" / "sessions.db"
    store: SQLiteSessionStore[dict[str, object]] = SQLiteSessionStore(db_path)
    await store.set("s1", {"v": 1})
    assert db_path.exists()


@pytest.mark.asyncio
async def test_expired_row_is_absent_and_removed(
    store: SQLiteSessionStore[dict[str, object]], clock: FakeClock
) -> None:
    await store.set("s1", {"v": 1})
    clock.now += 121
    assert await store.get("s1") is None
    assert await store.delete("s1") is False


@pytest.mark.asyncio
async def test_get_slides_expiry(
    store: SQLiteSessionStore[dict[str, object]], clock: FakeClock
) -> None:
    await store.set("s1", {"v": 1})
    for _ in range(3):
        clock.now += 100
        assert await store.get("s1") == {"v": 1}
    clock.now += 121
    assert await store.get("s1") is None


@pytest.mark.asyncio
async def test_purge_expired(
    store: SQLiteSessionStore[dict[str, object]], clock: FakeClock
) -> None:
    await store.set("old1", {})
    await store.set("old2", {})
    clock.now += 100
    await store.set("fresh", {})
    clock.now += 30
    assert await store.purge_expired() == 2
    assert await store.get("fresh") == {}


@pytest.mark.asyncio
async def test_two_stores_share_a_database(tmp_path: Path, clock: FakeClock) -> None:
    db_path = tmp_path / "shared.db"
    writer: SQLiteSessionStore[dict[str, object]] = SQLiteSessionStore(db_path, clock=clock)
    reader: SQLiteSessionStore[dict[str, object]] = SQLiteSessionStore(db_path, clock=clock)
    await writer.set("s1", {"v": 1})
    assert await reader.get("s1") == {"v": 1}


@pytest.mark.asyncio
async def test_database_errors_become_store_unavailable(
    store: SQLiteSessionStore[dict[str, object]],
) -> None:
    with patch(
        "opaque_session.storage.sqlite.aiosqlite.connect",
        side_effect=aiosqlite.OperationalError("unable to open database file"),
    ):
        with pytest.raises(StoreUnavailableError, match="unable to open"):
            await store.set("s1", {})


@pytest.mark.asyncio
@pytest.mark.parametrize("operation", ["get", "set", "delete", "purge_expired"])
async def test_unusable_directory_becomes_store_unavailable(
    tmp_path: Path, operation: str
) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("occupied", encoding="utf-8")
    store: SQLiteSessionStore[dict[str, object]] = SQLiteSessionStore(
        blocker / "sessions.db"
    )
    call = {
        "get": lambda: store.get("s1"),
        "set": lambda: store.set("s1", {}),
        "delete": lambda: store.delete("s1"),
        "purge_expired": store.purge_expired,
    }[operation]
    with pytest.raises(StoreUnavailableError) as excinfo:
        await call()
    assert isinstance(excinfo.value.__cause__, OSError)


def test_repr(store: SQLiteSessionStore[dict[str, object]]) -> None:
    assert "sessions.db" in repr(store)
