"""Command: resolve an owner's registry through the cache."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import click

from hivemoji.commands._base import OWNER, HivemojiCommand

if TYPE_CHECKING:
    from hivemoji.commands._context import AppContext
    from hivemoji.services.result import ServiceResult


@click.command(
    cls=HivemojiCommand,
    examples="""\
  hivemoji resolve alice
  hivemoji resolve @alice smile wave
  hivemoji resolve alice --text "good morning :wave: :coffee:"
  hivemoji --json resolve alice --all""",
)
@click.argument("owner", type=OWNER)
@click.argument("names", nargs=-1)
@click.option("--text", default=None, help="Also require every :name: marker in TEXT.")
@click.option("--all", "include_deleted", is_flag=True, help="Include deleted entries.")
@click.pass_obj
def resolve(
    app: AppContext,
    owner: str,
    names: tuple[str, ...],
    text: str | None,
    include_deleted: bool,
) -> None:
    """List OWNER's emoji, fetching the ledger log when the cache is stale."""
    from hivemoji.services.registry import RegistryService

    async def run() -> ServiceResult:
        async with app.open_cache() as cache:
            return await RegistryService(cache).resolve(
                owner, names, text=text, include_deleted=include_deleted
            )

    app.emit(asyncio.run(run()))
