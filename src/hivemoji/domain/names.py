"""Emoji name rules and the textual marker grammar.

Names are unique per owner and appear in text as ``:name:`` markers.
"""

from __future__ import annotations

import re

from hivemoji.domain.errors import ValidationError

NAME_PATTERN: re.Pattern[str] = re.compile(r"^[a-z0-9_]{1,32}$")
MARKER_PATTERN: re.Pattern[str] = re.compile(r":([a-z0-9_]{1,32}):")
# Hive account names: 3-16 chars, dot-separated segments starting with a letter.
OWNER_PATTERN: re.Pattern[str] = re.compile(
    r"^(?=.{3,16}$)[a-z][a-z0-9-]{2,}(?:\.[a-z][a-z0-9-]{2,})*$"
)

ALLOWED_MIME_PREFIXES: tuple[str, ...] = (
    "image/png",
    "image/webp",
    "image/gif",
    "image/jpeg",
)


def is_valid_name(name: str) -> bool:
    """Check whether *name* matches ``[a-z0-9_]{1,32}``."""
    return NAME_PATTERN.fullmatch(name) is not None


def validate_name(name: str) -> str:
    """Return *name* unchanged, or raise :class:`ValidationError`."""
    if not is_valid_name(name):
        msg = f"Emoji name must match [a-z0-9_]{{1,32}}, got {name!r}"
        raise ValidationError(msg)
    return name


def normalize_owner(owner: str) -> str:
    """Lowercase *owner*, drop a leading ``@``, and check it is a Hive account name."""
    value = owner.strip().lower().removeprefix("@")
    if OWNER_PATTERN.fullmatch(value) is None:
        raise ValidationError(f"Not a Hive account name: {owner!r}")
    return value


def normalize_mime(mime: str) -> str | None:
    """Lowercase *mime* and return it if it is on the image allow-list.

    Matching is by prefix so parameters such as ``image/png; charset=x``
    are accepted. Returns None for anything else.
    """
    value = mime.strip().lower()
    if value.startswith(ALLOWED_MIME_PREFIXES):
        return value
    return None


def extract_markers(text: str) -> list[str]:
    """Return the distinct emoji names referenced in *text*, in order of appearance."""
    seen: dict[str, None] = {}
    for match in MARKER_PATTERN.finditer(text):
        seen.setdefault(match.group(1), None)
    return list(seen)
