"""Wire schemas for the JSON carried in ledger records.

Every record body is one of a closed set of tagged variants, keyed by the
``(version, op)`` pair. Parsing maps untrusted JSON onto these models and
rejects anything that does not match a recognized shape.

v1: ``register`` (alias ``update``) and ``delete``.
v2: ``chunk``, ``delete``, and ``register`` (a manifest when it carries no
inline ``data``).

Image bytes stay base64 text here; decoding and size limits belong to the
interpreter, which knows the configured bounds.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Discriminator, Tag, TypeAdapter

Number = int | float


class _Payload(BaseModel):
    model_config = {"frozen": True, "extra": "ignore"}

    def to_json(self) -> str:
        """Compact JSON with unset optional fields omitted."""
        return self.model_dump_json(exclude_none=True)


class FallbackPayload(BaseModel):
    model_config = {"frozen": True, "extra": "ignore"}

    mime: str
    data: str


class RegisterV1Payload(_Payload):
    version: Literal[1] = 1
    op: Literal["register", "update"] = "register"
    name: str
    mime: str
    width: Number | None = None
    height: Number | None = None
    data: str
    fallback: FallbackPayload | None = None
    animated: bool | None = None
    loop: bool | None = None


class DeleteV1Payload(_Payload):
    version: Literal[1] = 1
    op: Literal["delete"] = "delete"
    name: str


class ChunkV2Payload(_Payload):
    version: Literal[2] = 2
    op: Literal["chunk"] = "chunk"
    id: str
    kind: Literal["main", "fallback"] = "main"
    name: str
    mime: str
    width: Number | None = None
    height: Number | None = None
    seq: int
    total: int
    checksum: str | None = None
    data: str
    animated: bool | None = None
    loop: bool | None = None


class DeleteV2Payload(_Payload):
    version: Literal[2] = 2
    op: Literal["delete"] = "delete"
    name: str


class RegisterV2Payload(_Payload):
    """v2 ``register``: a full definition with ``data``, else a chunk manifest."""

    version: Literal[2] = 2
    op: Literal["register"] = "register"
    name: str
    mime: str | None = None
    width: Number | None = None
    height: Number | None = None
    data: str | None = None
    fallback: FallbackPayload | None = None
    animated: bool | None = None
    loop: bool | None = None
    chunked: bool | None = None
    id: str | None = None
    main_total: int | None = None
    fallback_total: int | None = None


def _payload_tag(value: Any) -> str | None:
    """Map a raw body to its ``v{version}:{op}`` variant tag."""
    if isinstance(value, Mapping):
        version, op = value.get("version"), value.get("op")
    else:
        version, op = getattr(value, "version", None), getattr(value, "op", None)
    if isinstance(version, bool) or not isinstance(version, int):
        return None
    if op == "update":
        op = "register"
    return f"v{version}:{op}"


WirePayload = Annotated[
    Union[
        Annotated[RegisterV1Payload, Tag("v1:register")],
        Annotated[DeleteV1Payload, Tag("v1:delete")],
        Annotated[ChunkV2Payload, Tag("v2:chunk")],
        Annotated[DeleteV2Payload, Tag("v2:delete")],
        Annotated[RegisterV2Payload, Tag("v2:register")],
    ],
    Discriminator(_payload_tag),
]

PAYLOAD_ADAPTER: TypeAdapter[WirePayload] = TypeAdapter(WirePayload)


def parse_payload(raw: str | bytes | Mapping[str, Any]) -> WirePayload:
    """Parse a record body (JSON text or already-decoded mapping).

    Raises:
        pydantic.ValidationError: The body matches no known variant.
    """
    if isinstance(raw, (str, bytes)):
        return PAYLOAD_ADAPTER.validate_json(raw)
    return PAYLOAD_ADAPTER.validate_python(raw)
