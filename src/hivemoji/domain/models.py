"""Emoji definitions and the per-owner registry snapshot.

INVARIANT: A :class:`Registry` is immutable once built. A new fetch produces a
new snapshot seeded from the old one; nothing mutates a published registry.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

from pydantic import BaseModel, Field

# Binary payloads travel as base64 whenever a model is dumped to JSON.
_BYTES_AS_BASE64 = {"ser_json_bytes": "base64", "val_json_bytes": "base64"}


class EmojiFallback(BaseModel):
    """Still image used when the renderer must avoid animation."""

    model_config = {"frozen": True, **_BYTES_AS_BASE64}

    mime: str
    data: bytes


class EmojiDefinition(BaseModel):
    """One named image belonging to one owner.

    A ``deleted`` entry is a tombstone: it never renders, but it keeps its
    ``sequence`` so that an older re-registration arriving later still loses.

    Attributes:
        sequence: Position of the operation that last wrote this entry.
            Only meaningful inside a single fold; never serialized.
        fallback_sequence: Position of the operation that supplied
            ``fallback``. Never serialized.
        upload_id: Chunked upload that produced ``data``, if any. Never
            serialized.
    """

    model_config = {"frozen": True, **_BYTES_AS_BASE64}

    owner: str
    name: str
    mime: str = ""
    width: int = 0
    height: int = 0
    animated: bool | None = None
    loop: bool | None = None
    data: bytes = b""
    fallback: EmojiFallback | None = None
    deleted: bool = False

    sequence: int = Field(default=-1, exclude=True)
    fallback_sequence: int = Field(default=-1, exclude=True)
    upload_id: str | None = Field(default=None, exclude=True)

    @classmethod
    def tombstone(cls, owner: str, name: str, sequence: int) -> EmojiDefinition:
        return cls(owner=owner, name=name, deleted=True, sequence=sequence)

    @property
    def renderable(self) -> bool:
        return not self.deleted and bool(self.data)

    def select_image(self, *, allow_animation: bool = True) -> tuple[str, bytes]:
        """Return ``(mime, data)`` to display.

        The fallback is used only when animation must be avoided and the
        main image is not known to be static.
        """
        if allow_animation or self.animated is False or self.fallback is None:
            return self.mime, self.data
        return self.fallback.mime, self.fallback.data


class Registry(Mapping[str, EmojiDefinition]):
    """Immutable ``name -> EmojiDefinition`` snapshot for one owner.

    Tombstones are part of the mapping; use :meth:`live` or :meth:`lookup`
    for what should actually render.
    """

    __slots__ = ("_entries", "_owner")

    def __init__(
        self,
        owner: str,
        entries: Mapping[str, EmojiDefinition] | Iterable[tuple[str, EmojiDefinition]] = (),
    ) -> None:
        self._owner = owner
        self._entries: dict[str, EmojiDefinition] = dict(entries)

    @property
    def owner(self) -> str:
        return self._owner

    def __getitem__(self, name: str) -> EmojiDefinition:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Registry(owner={self._owner!r}, entries={len(self._entries)})"

    def lookup(self, name: str) -> EmojiDefinition | None:
        """Return the live definition for *name*, or None (missing or deleted)."""
        entry = self._entries.get(name)
        if entry is None or entry.deleted:
            return None
        return entry

    def live(self) -> dict[str, EmojiDefinition]:
        """Non-deleted entries, in name order."""
        return {
            name: entry for name, entry in sorted(self._entries.items()) if not entry.deleted
        }

    def satisfies(self, names: Iterable[str] | None) -> bool:
        """True if every name in *names* has an entry (tombstones count).

        A tombstone is an authoritative answer for that name, so it does not
        force a refetch.
        """
        if not names:
            return True
        return all(name in self._entries for name in names)

    def seed_entries(self) -> dict[str, EmojiDefinition]:
        """Copy of the entries re-stamped below every freshly decoded operation."""
        return {
            name: entry.model_copy(update={"sequence": -1, "fallback_sequence": -1})
            for name, entry in self._entries.items()
        }

    def sorted_items(self) -> list[tuple[str, EmojiDefinition]]:
        return sorted(self._entries.items())


@dataclass(frozen=True)
class CacheEntry:
    """A built registry and the epoch-seconds time it was built."""

    registry: Registry
    built_at: float
