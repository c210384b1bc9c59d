"""AppContext — shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``. Collaborators (Hive transport, snapshot store, cache
manager) are built on demand so ``--help`` never opens a database or a
network client.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import click

from hivemoji.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from hivemoji.config.settings import HivemojiSettings
    from hivemoji.infrastructure.hive import LogTransport
    from hivemoji.infrastructure.snapshots import SnapshotStore
    from hivemoji.services.cache import RegistryCache
    from hivemoji.services.result import ServiceResult


class AppContext:
    """Settings plus factories for the collaborators commands need."""

    def __init__(self, settings: HivemojiSettings) -> None:
        self.settings = settings

        from hivemoji.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            log_json=settings.log_json,
            cache_level=settings.cache.log_level,
        )

    # --- Collaborators ---

    def make_transport(self) -> LogTransport:
        from hivemoji.infrastructure.hive import HiveHistoryTransport

        node = self.settings.node
        return HiveHistoryTransport(
            node.url,
            timeout=node.timeout_seconds,
            history_limit=node.history_limit,
            max_pages=node.max_pages,
            custom_json_only=node.custom_json_only,
        )

    def make_store(self) -> SnapshotStore | None:
        if not self.settings.cache.enabled:
            return None
        from hivemoji.infrastructure.snapshots import SqliteSnapshotStore

        return SqliteSnapshotStore.open(self.settings.cache_path)

    @asynccontextmanager
    async def open_cache(self) -> AsyncIterator[RegistryCache]:
        """Yield a cache manager; close its transport and store afterwards."""
        from hivemoji.services.cache import RegistryCache

        transport = self.make_transport()
        store = self.make_store()
        cache = RegistryCache(
            transport,
            store,
            limits=self.settings.limits.to_limits(),
            protocol_id=self.settings.protocol.id,
            memory_ttl=self.settings.cache.memory_ttl_seconds,
            persistent_ttl=self.settings.cache.persistent_ttl_seconds,
        )
        try:
            yield cache
        finally:
            aclose = getattr(transport, "aclose", None)
            if aclose is not None:
                await aclose()
            close = getattr(store, "close", None)
            if close is not None:
                close()

    # --- Output ---

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: stdout; warnings to stderr unless in JSON mode.
        * Failure: stderr, exit code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
