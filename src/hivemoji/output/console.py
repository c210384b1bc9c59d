"""Rich Console factory and theme for hivemoji output.

Consoles render into a StringIO buffer so formatting stays a pure
``ServiceResult -> str`` function. Outside a terminal (tests, pipes) Rich
drops color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

HIVEMOJI_THEME = Theme(
    {
        "hm.ok": "bold green",
        "hm.error": "bold red",
        "hm.warning": "bold yellow",
        "hm.op": "bold cyan",
        "hm.key": "dim",
        "hm.name": "bold blue",
        "hm.mime": "magenta",
        "hm.deleted": "dim strike",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=HIVEMOJI_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
