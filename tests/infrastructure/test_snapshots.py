"""Tests for the SQLite and in-memory snapshot stores."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import insert, select

from hivemoji.domain.errors import StoreError
from hivemoji.domain.models import CacheEntry, EmojiDefinition, EmojiFallback, Registry
from hivemoji.infrastructure.database import registry_snapshots
from hivemoji.infrastructure.snapshots import MemorySnapshotStore, SqliteSnapshotStore

OWNER = "alice"
BUILT_AT = 1_700_000_000.5


def _entry() -> CacheEntry:
    registry = Registry(
        OWNER,
        {
            "party": EmojiDefinition(
                owner=OWNER,
                name="party",
                mime="image/gif",
                width=16,
                height=16,
                animated=True,
                data=b"\x00\xffGIF",
                fallback=EmojiFallback(mime="image/png", data=b"still"),
                sequence=12,
                upload_id="u1",
            ),
            "gone": EmojiDefinition.tombstone(OWNER, "gone", 3),
        },
    )
    return CacheEntry(registry=registry, built_at=BUILT_AT)


@pytest.fixture
def store(tmp_path: Path) -> Iterator[SqliteSnapshotStore]:
    s = SqliteSnapshotStore.open(tmp_path / "cache" / "cache.db")
    try:
        yield s
    finally:
        s.close()


class TestSqliteSnapshotStore:
    def test_round_trip(self, store: SqliteSnapshotStore) -> None:
        async def scenario() -> CacheEntry | None:
            await store.save(OWNER, _entry())
            return await store.load(OWNER)

        loaded = asyncio.run(scenario())
        assert loaded is not None
        assert loaded.built_at == BUILT_AT
        party = loaded.registry["party"]
        assert party.data == b"\x00\xffGIF"
        assert party.fallback == EmojiFallback(mime="image/png", data=b"still")
        assert party.sequence == -1
        assert party.upload_id is None
        assert loaded.registry["gone"].deleted

    def test_row_layout(self, store: SqliteSnapshotStore) -> None:
        store.save_sync(OWNER, _entry())
        with store.engine.connect() as conn:
            row = conn.execute(select(registry_snapshots)).one()
        assert row.ts == 1_700_000_000_500
        pairs = json.loads(row.entries)
        assert [name for name, _ in pairs] == ["gone", "party"]
        assert "sequence" not in pairs[1][1]

    def test_save_replaces_row(self, store: SqliteSnapshotStore) -> None:
        store.save_sync(OWNER, _entry())
        store.save_sync(OWNER, CacheEntry(Registry(OWNER), built_at=BUILT_AT + 10))
        loaded = store.load_sync(OWNER)
        assert loaded is not None
        assert len(loaded.registry) == 0
        assert store.owners_sync() == [OWNER]

    def test_missing_owner(self, store: SqliteSnapshotStore) -> None:
        assert store.load_sync("nobody") is None

    def test_unreadable_row_is_a_miss(self, store: SqliteSnapshotStore) -> None:
        with store.engine.begin() as conn:
            conn.execute(insert(registry_snapshots).values(owner=OWNER, ts=1, entries="{oops"))
        assert store.load_sync(OWNER) is None

    def test_missing_table_raises_store_error(self, store: SqliteSnapshotStore) -> None:
        registry_snapshots.drop(store.engine)
        with pytest.raises(StoreError):
            store.save_sync(OWNER, _entry())
        with pytest.raises(StoreError):
            store.load_sync(OWNER)

    def test_clear(self, store: SqliteSnapshotStore) -> None:
        store.save_sync(OWNER, _entry())
        store.save_sync("bob", _entry())
        assert asyncio.run(store.clear(OWNER)) == 1
        assert store.owners_sync() == ["bob"]
        assert asyncio.run(store.clear()) == 1
        assert store.owners_sync() == []


class TestMemorySnapshotStore:
    def test_round_trip_matches_persistent_encoding(self) -> None:
        store = MemorySnapshotStore()

        async def scenario() -> CacheEntry | None:
            await store.save(OWNER, _entry())
            return await store.load(OWNER)

        loaded = asyncio.run(scenario())
        assert loaded is not None
        assert loaded.registry["party"].sequence == -1
        assert loaded.registry["party"].data == b"\x00\xffGIF"

    def test_clear(self) -> None:
        store = MemorySnapshotStore()
        asyncio.run(store.save(OWNER, _entry()))
        assert asyncio.run(store.clear("bob")) == 0
        assert asyncio.run(store.clear()) == 1
        assert OWNER not in store
