"""Registry cache manager — the single entry point for resolving an owner.

Two tiers, each with its own freshness window:

* memory: ``owner -> CacheEntry`` held by this object (short TTL)
* persistent: a :class:`~hivemoji.infrastructure.snapshots.SnapshotStore`
  (long TTL, survives restarts)

Concurrent callers for the same owner coalesce onto one in-flight fetch
task. The task removes itself from the in-flight map before it finishes,
so waiters woken by its completion never re-await a settled result. A
waiter whose names that fetch did not cover joins whatever fetch another
escalating waiter has published since, and only starts its own when none is
in flight.

The persistent tier is best-effort: a store that cannot be read counts as a
miss, and a failed save leaves the freshly built registry in memory.

Entries are replaced whole, never edited, so a reader never sees a
half-built registry.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING

import structlog

from hivemoji.domain.builder import build_registry
from hivemoji.domain.errors import StoreError, TransportError
from hivemoji.domain.interpreter import LogRecord, interpret_log
from hivemoji.domain.limits import DEFAULT_LIMITS, PROTOCOL_ID, Limits
from hivemoji.domain.models import CacheEntry, Registry

if TYPE_CHECKING:
    from hivemoji.infrastructure.hive import LogTransport
    from hivemoji.infrastructure.snapshots import SnapshotStore

log = structlog.get_logger("hivemoji.cache")

Clock = Callable[[], float]


def _retrieve_exception(task: asyncio.Task[CacheEntry]) -> None:
    # A fetch may outlive every caller that awaited it.
    if not task.cancelled():
        task.exception()


class RegistryCache:
    """Resolve per-owner registries through the memory and persistent tiers.

    Args:
        transport: Source of raw ledger records.
        store: Persistent tier; ``None`` disables it.
        memory_ttl: Seconds a memory entry stays fresh.
        persistent_ttl: Seconds a persisted snapshot stays fresh.
        clock: Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        transport: LogTransport,
        store: SnapshotStore | None = None,
        *,
        limits: Limits = DEFAULT_LIMITS,
        protocol_id: str = PROTOCOL_ID,
        memory_ttl: float = 300.0,
        persistent_ttl: float = 86400.0,
        clock: Clock = time.time,
    ) -> None:
        self._transport = transport
        self._store = store
        self._limits = limits
        self._protocol_id = protocol_id
        self._memory_ttl = memory_ttl
        self._persistent_ttl = persistent_ttl
        self._clock = clock
        self._memory: dict[str, CacheEntry] = {}
        self._inflight: dict[str, asyncio.Task[CacheEntry]] = {}

    # --- Introspection ---

    def peek(self, owner: str) -> CacheEntry | None:
        """The memory-tier entry for *owner*, fresh or not."""
        return self._memory.get(owner)

    def is_fetching(self, owner: str) -> bool:
        return owner in self._inflight

    def _is_fresh(self, entry: CacheEntry, ttl: float) -> bool:
        return self._clock() - entry.built_at < ttl

    # --- Public API ---

    async def get(self, owner: str, needed: Iterable[str] | None = None) -> Registry:
        """Return a registry for *owner* containing every name in *needed*.

        Raises:
            TransportError: The log could not be fetched and no cached
                registry covers *needed*.
        """
        names = frozenset(needed or ())

        entry = self._memory.get(owner)
        if entry is not None and self._is_fresh(entry, self._memory_ttl):
            if entry.registry.satisfies(names):
                log.debug("cache.hit", owner=owner)
                return entry.registry

        # Each settled fetch clears itself before waiters wake, so whatever is
        # in flight now was started by a caller that escalated before us.
        pending = self._inflight.get(owner)
        while pending is not None:
            log.debug("cache.coalesced", owner=owner)
            entry = await asyncio.shield(pending)
            if entry.registry.satisfies(names):
                return entry.registry
            pending = self._inflight.get(owner)

        task = asyncio.get_running_loop().create_task(self._run_fetch(owner, names))
        task.add_done_callback(_retrieve_exception)
        self._inflight[owner] = task
        entry = await asyncio.shield(task)
        return entry.registry

    def invalidate(self, owner: str) -> None:
        """Forget the memory-tier entry for *owner*."""
        self._memory.pop(owner, None)

    async def clear(self, owner: str | None = None) -> int:
        """Drop memory entries and persisted snapshots.

        Returns the number of persisted snapshots removed.
        """
        if owner is None:
            self._memory.clear()
        else:
            self._memory.pop(owner, None)
        if self._store is None:
            return 0
        return await self._store.clear(owner)

    # --- Fetch pipeline ---

    async def _run_fetch(self, owner: str, names: frozenset[str]) -> CacheEntry:
        try:
            return await self._refresh(owner, names)
        finally:
            if self._inflight.get(owner) is asyncio.current_task():
                del self._inflight[owner]

    async def _refresh(self, owner: str, names: frozenset[str]) -> CacheEntry:
        persisted = await self._load_persisted(owner)
        if (
            persisted is not None
            and self._is_fresh(persisted, self._persistent_ttl)
            and persisted.registry.satisfies(names)
        ):
            log.debug("cache.persistent_hit", owner=owner, entries=len(persisted.registry))
            return self._publish_memory(owner, persisted.registry)

        seed = self._freshest(persisted, self._memory.get(owner))

        log.debug("cache.fetch", owner=owner, seeded=seed is not None)
        try:
            records = await self._transport.fetch_log(owner)
        except TransportError as exc:
            if seed is not None and seed.registry.satisfies(names):
                log.warning("cache.fallback", owner=owner, error=str(exc))
                return self._publish_memory(owner, seed.registry)
            raise

        registry = await asyncio.to_thread(
            self._fold, owner, records, seed.registry if seed is not None else None
        )
        entry = self._publish_memory(owner, registry)
        if self._store is not None:
            try:
                await self._store.save(owner, entry)
            except StoreError as exc:
                log.warning("cache.persist_failed", owner=owner, error=str(exc))
        return entry

    async def _load_persisted(self, owner: str) -> CacheEntry | None:
        if self._store is None:
            return None
        try:
            return await self._store.load(owner)
        except StoreError as exc:
            log.warning("cache.persist_failed", owner=owner, error=str(exc))
            return None

    def _fold(self, owner: str, records: Sequence[LogRecord], seed: Registry | None) -> Registry:
        operations = interpret_log(
            records, owner=owner, protocol_id=self._protocol_id, limits=self._limits
        )
        return build_registry(owner, operations, seed=seed, limits=self._limits)

    def _publish_memory(self, owner: str, registry: Registry) -> CacheEntry:
        entry = CacheEntry(registry=registry, built_at=self._clock())
        self._memory[owner] = entry
        return entry

    @staticmethod
    def _freshest(*candidates: CacheEntry | None) -> CacheEntry | None:
        present = [entry for entry in candidates if entry is not None]
        if not present:
            return None
        return max(present, key=lambda entry: entry.built_at)
