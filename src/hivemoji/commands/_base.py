"""Shared Click pieces for hivemoji commands.

``HivemojiCommand``/``HivemojiGroup`` take an ``examples`` string shown by an
eager ``--examples`` flag, keeping ``--help`` short. ``OWNER`` is the Hive
account parameter every registry command accepts.
"""

from __future__ import annotations

from typing import Any

import click

from hivemoji.domain.errors import ValidationError
from hivemoji.domain.names import normalize_owner


class OwnerType(click.ParamType):
    """Hive account name; ``@alice`` and ``Alice`` both become ``alice``."""

    name = "owner"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> str:
        try:
            return normalize_owner(str(value))
        except ValidationError as exc:
            self.fail(str(exc), param, ctx)


OWNER = OwnerType()


def _examples_option(examples: str) -> click.Option:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    return click.Option(
        ["--examples"],
        is_flag=True,
        expose_value=False,
        is_eager=True,
        callback=show_examples,
        help="Show usage examples.",
    )


class HivemojiCommand(click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(_examples_option(examples))


class HivemojiGroup(click.Group):
    """Group whose subcommands default to :class:`HivemojiCommand`."""

    command_class = HivemojiCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(_examples_option(examples))
