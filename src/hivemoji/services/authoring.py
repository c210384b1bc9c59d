"""Authoring path — turn image files into ordered ledger payloads.

An upload is a single v1 ``register`` record when its JSON fits in one
record. Otherwise it becomes v2 ``chunk`` records (main image first, then
the fallback), all sharing one upload id, followed by a small v2
``register`` manifest so indexers can see the emoji exists.

The broadcaster submits payloads strictly in order and stops at the first
rejection; later chunks are useless without the earlier ones.
"""

from __future__ import annotations

import base64
import logging
import secrets
import time
from collections.abc import Sequence
from typing import Protocol

from pydantic import BaseModel, Field

from hivemoji.domain.errors import BroadcastRejected
from hivemoji.domain.fragments import encode_fragments
from hivemoji.domain.limits import DEFAULT_LIMITS, PROTOCOL_ID, Limits
from hivemoji.domain.names import validate_name
from hivemoji.domain.payloads import (
    ChunkV2Payload,
    DeleteV1Payload,
    FallbackPayload,
    RegisterV1Payload,
    RegisterV2Payload,
)
from hivemoji.domain.sniff import ImageInfo, sniff

logger = logging.getLogger(__name__)

Payload = RegisterV1Payload | DeleteV1Payload | ChunkV2Payload | RegisterV2Payload


class UploadPlan(BaseModel):
    """Ordered payloads for one authoring action.

    Attributes:
        payloads: Records to broadcast, in order.
        upload_id: Shared id of a chunked upload, else None.
    """

    model_config = {"frozen": True}

    name: str
    payloads: list[Payload] = Field(default_factory=list)
    upload_id: str | None = None

    @property
    def chunked(self) -> bool:
        return self.upload_id is not None

    @property
    def bodies(self) -> list[str]:
        return [payload.to_json() for payload in self.payloads]

    @property
    def size(self) -> int:
        """Total UTF-8 size of every record body."""
        return sum(len(text.encode("utf-8")) for text in self.bodies)


class Broadcaster(Protocol):
    """Submits one record body on behalf of *owner*.

    Raises:
        BroadcastRejected: The ledger (or the signer) refused the record.
    """

    async def broadcast(self, owner: str, custom_id: str, payload: str) -> None: ...


class BroadcastReport(BaseModel):
    model_config = {"frozen": True}

    accepted: int
    total: int
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.accepted == self.total


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _json_size(payload: Payload) -> int:
    return len(payload.to_json().encode("utf-8"))


def new_upload_id(name: str) -> str:
    return f"{name}-{int(time.time() * 1000)}-{secrets.token_hex(6)}"


def _chunk_payloads(
    *,
    upload_id: str,
    kind: str,
    name: str,
    info: ImageInfo,
    data: bytes,
    animated: bool | None,
    loop: bool | None,
    limits: Limits,
) -> list[ChunkV2Payload]:
    # single_record_bytes=0 forces the split path so every chunk is checksummed.
    fragments = encode_fragments(
        data,
        max_fragment_bytes=limits.max_fragment_bytes,
        max_fragments=limits.max_fragments,
        max_total_bytes=limits.max_total_bytes,
        single_record_bytes=0,
    )
    return [
        ChunkV2Payload(
            id=upload_id,
            kind=kind,
            name=name,
            mime=info.mime,
            width=info.width,
            height=info.height,
            seq=fragment.seq,
            total=fragment.total,
            checksum=fragment.checksum,
            data=_b64(fragment.data),
            animated=animated,
            loop=loop,
        )
        for fragment in fragments
    ]


def build_upload(
    name: str,
    image: bytes,
    *,
    fallback: bytes | None = None,
    animated: bool = False,
    loop: bool = False,
    limits: Limits = DEFAULT_LIMITS,
    upload_id: str | None = None,
) -> UploadPlan:
    """Plan the records that register *image* under *name*.

    ``animated`` is set when requested or when the image itself looks
    animated; ``loop`` only when requested.

    Raises:
        ValidationError: *name* is not a valid emoji name.
        FormatError: Either image is not a recognized PNG, GIF or WEBP.
        TooLarge: An image exceeds the chunk count or total size bound.
    """
    validate_name(name)
    main = sniff(image)
    fallback_info = sniff(fallback) if fallback else None

    animated_flag = True if animated or main.animated or main.loop else None
    loop_flag = True if loop else None

    inline = RegisterV1Payload(
        name=name,
        mime=main.mime,
        width=main.width,
        height=main.height,
        data=_b64(image),
        fallback=(
            FallbackPayload(mime=fallback_info.mime, data=_b64(fallback))
            if fallback_info is not None and fallback
            else None
        ),
        animated=animated_flag,
        loop=loop_flag,
    )
    fits_inline = len(image) <= limits.max_inline_bytes and (
        fallback is None or len(fallback) <= limits.max_inline_bytes
    )
    if fits_inline and _json_size(inline) <= limits.max_record_bytes:
        return UploadPlan(name=name, payloads=[inline])

    upload_id = upload_id or new_upload_id(name)
    common = {"upload_id": upload_id, "name": name, "animated": animated_flag, "loop": loop_flag}
    main_chunks = _chunk_payloads(kind="main", info=main, data=image, limits=limits, **common)
    fallback_chunks: list[ChunkV2Payload] = []
    if fallback_info is not None and fallback:
        fallback_chunks = _chunk_payloads(
            kind="fallback", info=fallback_info, data=fallback, limits=limits, **common
        )

    manifest = RegisterV2Payload(
        name=name,
        mime=main.mime,
        width=main.width,
        height=main.height,
        animated=animated_flag,
        loop=loop_flag,
        chunked=True,
        id=upload_id,
        main_total=len(main_chunks),
        fallback_total=len(fallback_chunks) or None,
    )
    logger.debug(
        "Planned chunked upload %s: %d main, %d fallback",
        upload_id,
        len(main_chunks),
        len(fallback_chunks),
    )
    return UploadPlan(
        name=name,
        payloads=[*main_chunks, *fallback_chunks, manifest],
        upload_id=upload_id,
    )


def build_delete(name: str) -> UploadPlan:
    """Plan the single record that deletes *name*."""
    return UploadPlan(name=validate_name(name), payloads=[DeleteV1Payload(name=name)])


async def broadcast_upload(
    broadcaster: Broadcaster,
    owner: str,
    payloads: Sequence[str],
    *,
    custom_id: str = PROTOCOL_ID,
) -> BroadcastReport:
    """Submit *payloads* in order, stopping at the first rejection."""
    accepted = 0
    for payload in payloads:
        try:
            await broadcaster.broadcast(owner, custom_id, payload)
        except BroadcastRejected as exc:
            logger.warning(
                "Broadcast stopped at record %d of %d: %s", accepted + 1, len(payloads), exc
            )
            return BroadcastReport(accepted=accepted, total=len(payloads), error=str(exc))
        accepted += 1
    return BroadcastReport(accepted=accepted, total=len(payloads))
