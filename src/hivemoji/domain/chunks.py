"""Chunk reassembly — grouping v2 fragments back into whole assets.

Fragments are grouped by ``(upload id, kind)``. A group finalizes once its
collected ``seq`` values cover ``[0, total)`` exactly and the joined bytes
pass the optional checksum. Groups that never complete, fail the checksum,
or exceed the total size bound are dropped silently; the asset simply
never appears.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from hivemoji.domain.errors import ReassemblyError
from hivemoji.domain.fragments import reassemble
from hivemoji.domain.limits import DEFAULT_LIMITS, Limits
from hivemoji.domain.operations import ChunkKind, ChunkV2

logger = logging.getLogger(__name__)

GroupKey = tuple[str, ChunkKind]


@dataclass
class ChunkGroup:
    """Accumulator for the fragments of one upload of one kind.

    Metadata (name, mime, size) is fixed by the first fragment seen; later
    fragments that disagree on mime or size are refused. ``total`` follows
    the most recent fragment, and ``sequence`` is the highest sequence of
    any fragment that was accepted.
    """

    upload_id: str
    kind: ChunkKind
    name: str
    mime: str
    width: int
    height: int
    total: int
    sequence: int
    checksum: str | None = None
    animated: bool | None = None
    loop: bool | None = None
    fragments: dict[int, bytes] = field(default_factory=dict)

    @classmethod
    def start(cls, chunk: ChunkV2) -> ChunkGroup:
        return cls(
            upload_id=chunk.id,
            kind=chunk.kind,
            name=chunk.name,
            mime=chunk.mime,
            width=chunk.width,
            height=chunk.height,
            total=chunk.total,
            sequence=chunk.sequence,
        )

    @property
    def key(self) -> GroupKey:
        return (self.upload_id, self.kind)

    @property
    def complete(self) -> bool:
        return sorted(self.fragments) == list(range(self.total))

    def matches(self, chunk: ChunkV2) -> bool:
        return (chunk.mime, chunk.width, chunk.height) == (self.mime, self.width, self.height)

    def add(self, chunk: ChunkV2) -> bool:
        """Record *chunk*; returns False if its metadata conflicts with the group."""
        if not self.matches(chunk):
            return False
        self.fragments[chunk.seq] = chunk.data_fragment
        self.total = chunk.total
        self.sequence = max(self.sequence, chunk.sequence)
        if self.checksum is None:
            self.checksum = chunk.checksum
        if self.animated is None:
            self.animated = chunk.animated
        if self.loop is None:
            self.loop = chunk.loop
        return True

    def finalize(self, *, max_total_bytes: int) -> bytes:
        """Reassemble the group's bytes.

        Raises:
            Incomplete: A fragment in ``[0, total)`` is missing.
            ChecksumMismatch: The declared checksum does not match.
            ReassemblyError: The joined asset exceeds *max_total_bytes*.
        """
        data = reassemble(self.fragments, total=self.total, checksum=self.checksum)
        if len(data) > max_total_bytes:
            msg = f"Reassembled asset is {len(data)} bytes (> {max_total_bytes})"
            raise ReassemblyError(msg)
        return data


@dataclass(frozen=True)
class FinishedAsset:
    """A verified, reassembled asset ready to be folded into the registry."""

    upload_id: str
    kind: ChunkKind
    name: str
    mime: str
    width: int
    height: int
    data: bytes
    sequence: int
    animated: bool | None = None
    loop: bool | None = None


class ChunkAssembler:
    """Collects :class:`ChunkV2` operations and emits finished assets."""

    def __init__(self, limits: Limits = DEFAULT_LIMITS) -> None:
        self._limits = limits
        self._groups: dict[GroupKey, ChunkGroup] = {}

    def __len__(self) -> int:
        return len(self._groups)

    def add(self, chunk: ChunkV2) -> bool:
        """Route *chunk* into its group. Returns False if it was refused."""
        key: GroupKey = (chunk.id, chunk.kind)
        group = self._groups.get(key)
        if group is None:
            group = ChunkGroup.start(chunk)
            self._groups[key] = group
        if not group.add(chunk):
            logger.debug(
                "Refused chunk %s/%s seq=%d: metadata differs from group",
                chunk.id,
                chunk.kind,
                chunk.seq,
            )
            return False
        return True

    def finish(self) -> list[FinishedAsset]:
        """Finalize every complete group and forget all groups.

        Returns assets ordered by ascending ``sequence``.
        """
        assets: list[FinishedAsset] = []
        for group in self._groups.values():
            try:
                data = group.finalize(max_total_bytes=self._limits.max_total_bytes)
            except ReassemblyError as exc:
                logger.debug("Dropped chunk group %s/%s: %s", group.upload_id, group.kind, exc)
                continue
            assets.append(
                FinishedAsset(
                    upload_id=group.upload_id,
                    kind=group.kind,
                    name=group.name,
                    mime=group.mime,
                    width=group.width,
                    height=group.height,
                    data=data,
                    sequence=group.sequence,
                    animated=group.animated,
                    loop=group.loop,
                )
            )
        self._groups.clear()
        assets.sort(key=lambda asset: asset.sequence)
        return assets
