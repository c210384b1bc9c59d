"""Command group: persistent cache maintenance."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import click

from hivemoji.commands._base import OWNER, HivemojiGroup

if TYPE_CHECKING:
    from hivemoji.commands._context import AppContext
    from hivemoji.services.result import ServiceResult


@click.group(
    cls=HivemojiGroup,
    examples="""\
  hivemoji cache clear
  hivemoji cache clear alice""",
)
def cache() -> None:
    """Manage cached registry snapshots."""


@cache.command(
    examples="""\
  hivemoji cache clear
  hivemoji cache clear alice""",
)
@click.argument("owner", type=OWNER, required=False)
@click.pass_obj
def clear(app: AppContext, owner: str | None) -> None:
    """Drop cached snapshots for OWNER (or every owner)."""
    from hivemoji.services.registry import RegistryService

    async def run() -> ServiceResult:
        async with app.open_cache() as registry_cache:
            return await RegistryService(registry_cache).clear_cache(owner)

    app.emit(asyncio.run(run()))
