"""Persistent cache tier — per-owner registry snapshots.

Record layout, keyed by owner: ``{ts: epoch-millis, entries: [[name,
definition], ...]}``. Binary fields are base64 in JSON; fold bookkeeping
(``sequence`` and friends) is never written, so a loaded snapshot always
sits below every freshly decoded operation.

Stores expose coroutines. :class:`SqliteSnapshotStore` runs its blocking
SQLAlchemy calls in a worker thread so callers never stall the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

import pydantic
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from hivemoji.domain.errors import StoreError
from hivemoji.domain.models import CacheEntry, EmojiDefinition, Registry
from hivemoji.infrastructure.database.engine import init_database
from hivemoji.infrastructure.database.schema import registry_snapshots

logger = logging.getLogger(__name__)

_ENTRIES = pydantic.TypeAdapter(list[tuple[str, EmojiDefinition]])


class SnapshotRecord(pydantic.BaseModel):
    """Serialized form of one owner's snapshot."""

    model_config = {"frozen": True}

    ts: int
    entries: list[tuple[str, EmojiDefinition]]

    @classmethod
    def from_entry(cls, entry: CacheEntry) -> SnapshotRecord:
        return cls(
            ts=int(entry.built_at * 1000),
            entries=entry.registry.sorted_items(),
        )

    def to_entry(self, owner: str) -> CacheEntry:
        return CacheEntry(registry=Registry(owner, self.entries), built_at=self.ts / 1000)


class SnapshotStore(Protocol):
    """What the cache manager needs from a persistent tier.

    ``load`` and ``save`` raise :class:`StoreError` when the backing storage
    fails; the cache manager treats that tier as best-effort.
    """

    async def load(self, owner: str) -> CacheEntry | None: ...

    async def save(self, owner: str, entry: CacheEntry) -> None: ...

    async def clear(self, owner: str | None = None) -> int: ...


class MemorySnapshotStore:
    """In-process store holding serialized snapshots.

    Round-trips through the same JSON encoding as the SQLite store, so what
    comes back is exactly what a persistent reload would produce.
    """

    def __init__(self) -> None:
        self._rows: dict[str, str] = {}

    def __contains__(self, owner: object) -> bool:
        return owner in self._rows

    async def load(self, owner: str) -> CacheEntry | None:
        raw = self._rows.get(owner)
        if raw is None:
            return None
        return SnapshotRecord.model_validate_json(raw).to_entry(owner)

    async def save(self, owner: str, entry: CacheEntry) -> None:
        self._rows[owner] = SnapshotRecord.from_entry(entry).model_dump_json()

    async def clear(self, owner: str | None = None) -> int:
        if owner is None:
            count = len(self._rows)
            self._rows.clear()
            return count
        return 1 if self._rows.pop(owner, None) is not None else 0


class SqliteSnapshotStore:
    """Snapshot store backed by one SQLite table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @classmethod
    def open(cls, db_path: Path) -> SqliteSnapshotStore:
        return cls(init_database(db_path))

    @property
    def engine(self) -> Engine:
        return self._engine

    def close(self) -> None:
        self._engine.dispose()

    # --- Blocking implementations ---

    def load_sync(self, owner: str) -> CacheEntry | None:
        """Load *owner*'s snapshot; an unreadable row is a miss.

        Raises:
            StoreError: The database could not be queried.
        """
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    select(registry_snapshots.c.ts, registry_snapshots.c.entries).where(
                        registry_snapshots.c.owner == owner
                    )
                ).first()
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not load snapshot for {owner}: {exc}") from exc
        if row is None:
            return None
        try:
            entries = _ENTRIES.validate_json(row.entries)
        except pydantic.ValidationError:
            logger.warning("Ignoring unreadable snapshot for %s", owner, exc_info=True)
            return None
        return SnapshotRecord(ts=row.ts, entries=entries).to_entry(owner)

    def save_sync(self, owner: str, entry: CacheEntry) -> None:
        record = SnapshotRecord.from_entry(entry)
        payload = _ENTRIES.dump_json(record.entries).decode("utf-8")
        stmt = sqlite_insert(registry_snapshots).values(owner=owner, ts=record.ts, entries=payload)
        stmt = stmt.on_conflict_do_update(
            index_elements=[registry_snapshots.c.owner],
            set_={"ts": stmt.excluded.ts, "entries": stmt.excluded.entries},
        )
        try:
            with self._engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not save snapshot for {owner}: {exc}") from exc

    def clear_sync(self, owner: str | None = None) -> int:
        with self._engine.begin() as conn:
            if owner is None:
                count = conn.execute(select(func.count()).select_from(registry_snapshots)).scalar()
                conn.execute(delete(registry_snapshots))
                return int(count or 0)
            result = conn.execute(
                delete(registry_snapshots).where(registry_snapshots.c.owner == owner)
            )
            return int(result.rowcount or 0)

    def owners_sync(self) -> list[str]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(registry_snapshots.c.owner).order_by(registry_snapshots.c.owner)
            )
            return [row.owner for row in rows]

    # --- Async surface ---

    async def load(self, owner: str) -> CacheEntry | None:
        return await asyncio.to_thread(self.load_sync, owner)

    async def save(self, owner: str, entry: CacheEntry) -> None:
        await asyncio.to_thread(self.save_sync, owner, entry)

    async def clear(self, owner: str | None = None) -> int:
        return await asyncio.to_thread(self.clear_sync, owner)
