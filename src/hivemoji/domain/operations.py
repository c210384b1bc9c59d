"""Typed operations decoded from an owner's log.

Each operation carries two positions:

- ``sequence``: index in the owner's *decoded* operation stream. Used only
  for last-write-wins comparison.
- ``position``: the ledger's own index for the record, kept for logging.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ChunkKind = Literal["main", "fallback"]


@dataclass(frozen=True)
class InlineFallback:
    mime: str
    data: bytes


@dataclass(frozen=True)
class RegisterV1:
    """Single-shot definition with inline image data."""

    sequence: int
    position: int
    name: str
    mime: str
    width: int
    height: int
    data: bytes
    fallback: InlineFallback | None = None
    animated: bool | None = None
    loop: bool | None = None


@dataclass(frozen=True)
class RegisterV2(RegisterV1):
    """v2 ``register`` that carries inline data; same semantics as v1."""


@dataclass(frozen=True)
class DeleteV1:
    sequence: int
    position: int
    name: str


@dataclass(frozen=True)
class DeleteV2(DeleteV1):
    """Same semantics as :class:`DeleteV1`."""


@dataclass(frozen=True)
class ChunkV2:
    """One fragment of a chunked upload."""

    sequence: int
    position: int
    id: str
    kind: ChunkKind
    name: str
    mime: str
    width: int
    height: int
    seq: int
    total: int
    data_fragment: bytes
    checksum: str | None = None
    animated: bool | None = None
    loop: bool | None = None


@dataclass(frozen=True)
class ManifestV2:
    """Announcement of a chunked upload. Informational only."""

    sequence: int
    position: int
    name: str
    upload_id: str | None = None
    main_total: int | None = None
    fallback_total: int | None = None


Operation = RegisterV1 | DeleteV1 | ChunkV2 | ManifestV2
