"""Operation log interpreter — raw ledger records to typed operations.

Records are reordered by ledger position, filtered to this protocol's
custom identifier, and decoded one at a time. Interpretation is fault
isolated per record: a malformed record yields a :class:`RecordRejected`
and the stream carries on.

INVARIANT: ``sequence`` numbers are dense (``0..n-1``) over the accepted
operations, in ascending ledger position.
"""

from __future__ import annotations

import base64
import binascii
import logging
import math
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

import pydantic

from hivemoji.domain.errors import RecordRejected
from hivemoji.domain.fragments import transport_size
from hivemoji.domain.limits import DEFAULT_LIMITS, PROTOCOL_ID, Limits
from hivemoji.domain.names import is_valid_name, normalize_mime
from hivemoji.domain.operations import (
    ChunkV2,
    DeleteV1,
    DeleteV2,
    InlineFallback,
    ManifestV2,
    Operation,
    RegisterV1,
    RegisterV2,
)
from hivemoji.domain.payloads import (
    ChunkV2Payload,
    DeleteV1Payload,
    DeleteV2Payload,
    FallbackPayload,
    Number,
    RegisterV1Payload,
    RegisterV2Payload,
    WirePayload,
    parse_payload,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogRecord:
    """One ledger record as supplied by the log transport.

    Attributes:
        position: The ledger's index for this record within the owner's history.
        custom_id: The record's custom identifier (protocol tag).
        payload: JSON text, or an already-decoded mapping.
        authors: Accounts that signed the record, when the transport knows them.
    """

    position: int
    custom_id: str
    payload: str | Mapping[str, Any]
    authors: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Field decoding
# ---------------------------------------------------------------------------


def _dimension(value: Number | None, default: int, field: str) -> int:
    if value is None:
        return default
    if not math.isfinite(value) or value <= 0:
        raise RecordRejected(f"{field} must be a positive finite number, got {value!r}")
    size = int(value)
    if size < 1:
        raise RecordRejected(f"{field} rounds down to zero: {value!r}")
    return size


def _mime(value: str | None, field: str = "mime") -> str:
    mime = normalize_mime(value) if value else None
    if mime is None:
        raise RecordRejected(f"{field} {value!r} is not an allowed image type")
    return mime


def _image_bytes(text: str, *, limit: int, field: str) -> bytes:
    if len(text) > transport_size(limit):
        raise RecordRejected(f"{field} exceeds {limit} bytes")
    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise RecordRejected(f"{field} is not valid base64") from exc
    if not data:
        raise RecordRejected(f"{field} is empty")
    if len(data) > limit:
        raise RecordRejected(f"{field} is {len(data)} bytes (> {limit})")
    return data


def _name(value: str) -> str:
    if not is_valid_name(value):
        raise RecordRejected(f"invalid emoji name {value!r}")
    return value


def _fallback(payload: FallbackPayload | None, limits: Limits) -> InlineFallback | None:
    if payload is None:
        return None
    return InlineFallback(
        mime=_mime(payload.mime, "fallback.mime"),
        data=_image_bytes(payload.data, limit=limits.max_inline_bytes, field="fallback.data"),
    )


# ---------------------------------------------------------------------------
# Variant mapping
# ---------------------------------------------------------------------------


def _to_operation(payload: WirePayload, sequence: int, position: int, limits: Limits) -> Operation:
    name = _name(payload.name)

    if isinstance(payload, (DeleteV1Payload, DeleteV2Payload)):
        cls = DeleteV1 if isinstance(payload, DeleteV1Payload) else DeleteV2
        return cls(sequence=sequence, position=position, name=name)

    if isinstance(payload, ChunkV2Payload):
        if not payload.id:
            raise RecordRejected("chunk is missing its upload id")
        if not 1 <= payload.total <= limits.max_fragments:
            raise RecordRejected(f"total {payload.total} outside 1..{limits.max_fragments}")
        if not 0 <= payload.seq < payload.total:
            raise RecordRejected(f"seq {payload.seq} outside 0..{payload.total - 1}")
        return ChunkV2(
            sequence=sequence,
            position=position,
            id=payload.id,
            kind=payload.kind,
            name=name,
            mime=_mime(payload.mime),
            width=_dimension(payload.width, limits.default_dimension, "width"),
            height=_dimension(payload.height, limits.default_dimension, "height"),
            seq=payload.seq,
            total=payload.total,
            data_fragment=_image_bytes(
                payload.data, limit=limits.max_fragment_bytes, field="data"
            ),
            checksum=payload.checksum.strip().lower() if payload.checksum else None,
            animated=payload.animated,
            loop=payload.loop,
        )

    if isinstance(payload, RegisterV2Payload) and payload.data is None:
        return ManifestV2(
            sequence=sequence,
            position=position,
            name=name,
            upload_id=payload.id,
            main_total=payload.main_total,
            fallback_total=payload.fallback_total,
        )

    if isinstance(payload, RegisterV1Payload):
        register_cls = RegisterV1
    elif isinstance(payload, RegisterV2Payload):
        register_cls = RegisterV2
    else:
        raise RecordRejected(f"unsupported payload type {type(payload).__name__}")
    if payload.data is None:
        raise RecordRejected("register is missing its image data")
    return register_cls(
        sequence=sequence,
        position=position,
        name=name,
        mime=_mime(payload.mime),
        width=_dimension(payload.width, limits.default_dimension, "width"),
        height=_dimension(payload.height, limits.default_dimension, "height"),
        data=_image_bytes(payload.data, limit=limits.max_inline_bytes, field="data"),
        fallback=_fallback(payload.fallback, limits),
        animated=payload.animated,
        loop=payload.loop,
    )


def decode_record(
    record: LogRecord,
    *,
    owner: str,
    sequence: int,
    limits: Limits = DEFAULT_LIMITS,
) -> Operation:
    """Decode one protocol record into an operation stamped with *sequence*.

    Raises:
        RecordRejected: The record is unsigned by *owner*, its body is not
            valid JSON, names an unsupported version/op, or fails a field check.
    """
    if record.authors and owner not in record.authors:
        raise RecordRejected(f"not signed by {owner}", position=record.position)
    try:
        payload = parse_payload(record.payload)
    except pydantic.ValidationError as exc:
        reason = f"unrecognized payload ({exc.error_count()} errors)"
        raise RecordRejected(reason, position=record.position) from exc
    try:
        return _to_operation(payload, sequence, record.position, limits)
    except RecordRejected as exc:
        exc.position = record.position
        raise


def order_records(records: Iterable[LogRecord]) -> list[LogRecord]:
    """Sort by ledger position, keeping the first copy of a replayed position."""
    unique: dict[int, LogRecord] = {}
    for record in records:
        unique.setdefault(record.position, record)
    return [unique[position] for position in sorted(unique)]


def decode_log(
    records: Iterable[LogRecord],
    *,
    owner: str,
    protocol_id: str = PROTOCOL_ID,
    limits: Limits = DEFAULT_LIMITS,
) -> Iterator[Operation | RecordRejected]:
    """Yield one decoded operation or rejection per protocol record.

    Records with another custom identifier are skipped silently; they are
    not part of this protocol.
    """
    sequence = 0
    for record in order_records(records):
        if record.custom_id != protocol_id:
            continue
        try:
            operation = decode_record(record, owner=owner, sequence=sequence, limits=limits)
        except RecordRejected as rejected:
            yield rejected
            continue
        sequence += 1
        yield operation


def interpret_log(
    records: Iterable[LogRecord],
    *,
    owner: str,
    protocol_id: str = PROTOCOL_ID,
    limits: Limits = DEFAULT_LIMITS,
) -> list[Operation]:
    """Decode an owner's log, discarding rejected records."""
    operations: list[Operation] = []
    rejected = 0
    for item in decode_log(records, owner=owner, protocol_id=protocol_id, limits=limits):
        if isinstance(item, RecordRejected):
            rejected += 1
            logger.debug("Rejected record %s for %s: %s", item.position, owner, item.reason)
            continue
        operations.append(item)
    if rejected:
        logger.info("Skipped %d malformed records for %s", rejected, owner)
    return operations
