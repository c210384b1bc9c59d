"""Shared pytest fixtures and test helpers for hivemoji tests."""

from __future__ import annotations

import asyncio
import base64
import json
import struct
import zlib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from hivemoji.domain.errors import TransportError
from hivemoji.domain.interpreter import LogRecord

# ---------------------------------------------------------------------------
# Synthetic images
# ---------------------------------------------------------------------------


def _png_chunk(kind: bytes, body: bytes) -> bytes:
    crc = zlib.crc32(kind + body) & 0xFFFFFFFF
    return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", crc)


def png_bytes(
    width: int = 10, height: int = 20, *, animated: bool = False, padding: int = 0
) -> bytes:
    """Minimal PNG: signature, IHDR, optional acTL, optional filler IDAT, IEND."""
    data = b"\x89PNG\r\n\x1a\n"
    data += _png_chunk(b"IHDR", struct.pack(">IIBBBBB", width, height, 8, 6, 0, 0, 0))
    if animated:
        data += _png_chunk(b"acTL", struct.pack(">II", 2, 0))
    if padding:
        data += _png_chunk(b"IDAT", bytes(i % 251 for i in range(padding)))
    return data + _png_chunk(b"IEND", b"")


def gif_bytes(width: int = 16, height: int = 8, *, animated: bool = False) -> bytes:
    data = b"GIF89a" + struct.pack("<HHBBB", width, height, 0, 0, 0)
    if animated:
        data += b"\x21\xff\x0bNETSCAPE2.0\x03\x01\x00\x00\x00"
    return data + b"\x3b"


def _webp_chunk(kind: bytes, payload: bytes) -> bytes:
    pad = b"\x00" if len(payload) % 2 else b""
    return kind + struct.pack("<I", len(payload)) + payload + pad


def webp_bytes(*chunks: bytes) -> bytes:
    body = b"WEBP" + b"".join(chunks)
    return b"RIFF" + struct.pack("<I", len(body)) + body


def webp_vp8x(width: int = 64, height: int = 48, *, animated: bool = False) -> bytes:
    flags = 0x02 if animated else 0x00
    payload = bytes([flags, 0, 0, 0])
    payload += (width - 1).to_bytes(3, "little") + (height - 1).to_bytes(3, "little")
    return webp_bytes(_webp_chunk(b"VP8X", payload))


def webp_vp8(width: int = 30, height: int = 40, *, leading: bytes = b"") -> bytes:
    """Lossy WEBP, optionally preceded by raw extra chunks in *leading*."""
    payload = b"\x00\x00\x00\x9d\x01\x2a" + struct.pack("<HH", width, height)
    return webp_bytes(leading, _webp_chunk(b"VP8 ", payload))


def webp_vp8l(width: int = 5, height: int = 7) -> bytes:
    bits = (width - 1) | ((height - 1) << 14)
    return webp_bytes(_webp_chunk(b"VP8L", b"\x2f" + bits.to_bytes(4, "little")))


def webp_chunk(kind: bytes, payload: bytes) -> bytes:
    return _webp_chunk(kind, payload)


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


# ---------------------------------------------------------------------------
# Log records
# ---------------------------------------------------------------------------


def record(
    position: int,
    payload: Mapping[str, Any] | str,
    *,
    custom_id: str = "hivemoji",
    authors: tuple[str, ...] = (),
) -> LogRecord:
    body = payload if isinstance(payload, str) else json.dumps(payload)
    return LogRecord(position=position, custom_id=custom_id, payload=body, authors=authors)


def register_v1(name: str, data: bytes, **extra: Any) -> dict[str, Any]:
    return {
        "version": 1,
        "op": "register",
        "name": name,
        "mime": "image/png",
        "width": 10,
        "height": 20,
        "data": b64(data),
        **extra,
    }


def delete_v1(name: str) -> dict[str, Any]:
    return {"version": 1, "op": "delete", "name": name}


def chunk_v2(
    upload_id: str,
    name: str,
    seq: int,
    total: int,
    data: bytes,
    *,
    kind: str = "main",
    checksum: str | None = None,
    mime: str = "image/png",
    width: int = 10,
    height: int = 20,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "version": 2,
        "op": "chunk",
        "id": upload_id,
        "kind": kind,
        "name": name,
        "mime": mime,
        "width": width,
        "height": height,
        "seq": seq,
        "total": total,
        "data": b64(data),
    }
    if checksum is not None:
        body["checksum"] = checksum
    return body


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Settable epoch-seconds clock."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport:
    """Serves canned logs per owner and counts fetches.

    Yields to the event loop *delay* times before answering so concurrent
    callers can pile up behind one fetch.
    """

    def __init__(self, logs: dict[str, list[LogRecord]] | None = None, *, delay: int = 3) -> None:
        self.logs = logs if logs is not None else {}
        self.delay = delay
        self.calls: list[str] = []
        self.fail: TransportError | None = None

    async def fetch_log(self, owner: str) -> list[LogRecord]:
        self.calls.append(owner)
        for _ in range(self.delay):
            await asyncio.sleep(0)
        if self.fail is not None:
            raise self.fail
        return list(self.logs.get(owner, []))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def _isolated_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run the CLI from a temp root holding an empty hivemoji.toml.

    Use via ``@pytest.mark.usefixtures("_isolated_root")``.
    """
    for var in ("HIVEMOJI_CONFIG", "HIVEMOJI_VERBOSE", "HIVEMOJI_JSON_OUTPUT"):
        monkeypatch.delenv(var, raising=False)
    (tmp_path / "hivemoji.toml").write_text("")
    monkeypatch.chdir(tmp_path)
