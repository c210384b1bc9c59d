"""Registry builder — fold decoded operations into a ``name -> definition`` map.

Fold order is ascending ``sequence`` across single-shot registers, deletes,
and finished main assets. Every write is last-write-wins: it lands only if
its sequence is newer than the stored entry's. Seed entries (from an older
snapshot) sit at ``sequence = -1``, so any freshly decoded operation
supersedes them.

Chunked fallbacks are attached in a reconciliation pass after the whole log
is folded, never incrementally, so the outcome does not depend on whether a
fallback finished before or after its main image.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from hivemoji.domain.chunks import ChunkAssembler, FinishedAsset
from hivemoji.domain.limits import DEFAULT_LIMITS, Limits
from hivemoji.domain.models import EmojiDefinition, EmojiFallback, Registry
from hivemoji.domain.operations import ChunkV2, DeleteV1, ManifestV2, Operation, RegisterV1

logger = logging.getLogger(__name__)

_FoldEvent = RegisterV1 | DeleteV1 | ManifestV2 | FinishedAsset


def _is_newer(entries: dict[str, EmojiDefinition], name: str, sequence: int) -> bool:
    existing = entries.get(name)
    return existing is None or sequence > existing.sequence


def _apply(entries: dict[str, EmojiDefinition], owner: str, event: _FoldEvent) -> None:
    if isinstance(event, ManifestV2):
        # Announces a chunked upload; the chunks themselves carry the pixels.
        logger.debug("Manifest for %s/%s at %d", owner, event.name, event.sequence)
        return

    if not _is_newer(entries, event.name, event.sequence):
        return

    if isinstance(event, DeleteV1):
        entries[event.name] = EmojiDefinition.tombstone(owner, event.name, event.sequence)
    elif isinstance(event, RegisterV1):
        fallback = None
        if event.fallback is not None:
            fallback = EmojiFallback(mime=event.fallback.mime, data=event.fallback.data)
        entries[event.name] = EmojiDefinition(
            owner=owner,
            name=event.name,
            mime=event.mime,
            width=event.width,
            height=event.height,
            animated=event.animated,
            loop=event.loop,
            data=event.data,
            fallback=fallback,
            sequence=event.sequence,
            fallback_sequence=event.sequence if fallback is not None else -1,
        )
    else:
        entries[event.name] = EmojiDefinition(
            owner=owner,
            name=event.name,
            mime=event.mime,
            width=event.width,
            height=event.height,
            animated=event.animated,
            loop=event.loop,
            data=event.data,
            sequence=event.sequence,
            upload_id=event.upload_id,
        )


def _attach_fallbacks(
    entries: dict[str, EmojiDefinition],
    fallbacks: Iterable[FinishedAsset],
) -> None:
    """Attach chunked fallbacks to live entries.

    A fallback attaches when it belongs to the same upload as the entry's
    main image, or when it is not older than the fallback already attached
    (entries without a fallback sit at ``fallback_sequence = -1``).
    Fallbacks for names with no live entry are dropped.
    """
    for asset in sorted(fallbacks, key=lambda a: a.sequence):
        entry = entries.get(asset.name)
        if entry is None or not entry.renderable:
            logger.debug("Dropped fallback %s for %s: no main image", asset.upload_id, asset.name)
            continue
        same_upload = entry.upload_id is not None and entry.upload_id == asset.upload_id
        if not same_upload and asset.sequence < entry.fallback_sequence:
            continue
        entries[asset.name] = entry.model_copy(
            update={
                "fallback": EmojiFallback(mime=asset.mime, data=asset.data),
                "fallback_sequence": asset.sequence,
            }
        )


def build_registry(
    owner: str,
    operations: Iterable[Operation],
    *,
    seed: Registry | None = None,
    limits: Limits = DEFAULT_LIMITS,
) -> Registry:
    """Fold *operations* on top of *seed* into a new registry.

    Deterministic: the same operations and seed always produce an equal
    registry. Never raises for bad input; rejected records were filtered
    upstream and broken chunk groups simply vanish.
    """
    entries = seed.seed_entries() if seed is not None else {}
    assembler = ChunkAssembler(limits)
    events: list[_FoldEvent] = []

    for op in sorted(operations, key=lambda o: o.sequence):
        if isinstance(op, ChunkV2):
            assembler.add(op)
        else:
            events.append(op)

    assets = assembler.finish()
    events.extend(asset for asset in assets if asset.kind == "main")
    events.sort(key=lambda e: e.sequence)

    for event in events:
        _apply(entries, owner, event)

    _attach_fallbacks(entries, (asset for asset in assets if asset.kind == "fallback"))
    return Registry(owner, entries)
