"""Command: inspect an image file."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from hivemoji.commands._base import HivemojiCommand

if TYPE_CHECKING:
    from hivemoji.commands._context import AppContext


@click.command(
    cls=HivemojiCommand,
    examples="""\
  hivemoji sniff party.gif
  hivemoji --json sniff wave.webp""",
)
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def sniff(app: AppContext, file: Path) -> None:
    """Detect an image's type, dimensions and animation hints."""
    from hivemoji.services.emoji import EmojiService

    app.emit(EmojiService(app.settings.limits.to_limits()).sniff(file))
