"""Subcommand modules for hivemoji.

register_commands() imports lazily so ``hivemoji --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the ``cache`` group and the standalone commands."""
    # --- Groups ---
    from hivemoji.commands.cache import cache

    cli.add_command(cache)

    # --- Standalone commands ---
    from hivemoji.commands.build import build
    from hivemoji.commands.resolve import resolve
    from hivemoji.commands.sniff import sniff

    cli.add_command(sniff)
    cli.add_command(build)
    cli.add_command(resolve)
