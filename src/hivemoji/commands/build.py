"""Command: plan the ledger records for an upload or delete."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from hivemoji.commands._base import HivemojiCommand

if TYPE_CHECKING:
    from hivemoji.commands._context import AppContext

_IMAGE = click.Path(exists=True, dir_okay=False, path_type=Path)


@click.command(
    cls=HivemojiCommand,
    examples="""\
  hivemoji build smile smile.png
  hivemoji build party party.gif --fallback party.png --loop
  hivemoji -q build party party.gif > records.jsonl
  hivemoji build smile --delete""",
)
@click.argument("name")
@click.argument("file", type=_IMAGE, required=False)
@click.option("--fallback", type=_IMAGE, default=None, help="Still image for reduced motion.")
@click.option("--animated", is_flag=True, help="Mark the emoji as animated.")
@click.option("--loop", is_flag=True, help="Mark the animation as looping.")
@click.option("--delete", "delete_", is_flag=True, help="Plan a delete instead of an upload.")
@click.pass_obj
def build(
    app: AppContext,
    name: str,
    file: Path | None,
    fallback: Path | None,
    animated: bool,
    loop: bool,
    delete_: bool,
) -> None:
    """Print the record bodies that register (or delete) NAME."""
    from hivemoji.services.emoji import EmojiService

    svc = EmojiService(app.settings.limits.to_limits())
    if delete_:
        if file is not None:
            raise click.UsageError("FILE cannot be combined with --delete")
        app.emit(svc.delete(name))
        return
    if file is None:
        raise click.UsageError("FILE is required unless --delete is given")
    app.emit(svc.build(name, file, fallback=fallback, animated=animated, loop=loop))
