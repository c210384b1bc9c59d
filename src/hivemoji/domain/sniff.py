"""Image container sniffing — mime type, pixel size, and animation hints.

Only headers are inspected; nothing is decoded. Supported containers:

- PNG: 8-byte signature, IHDR width/height as big-endian u32 at offsets
  16/20, animated when an ``acTL`` chunk tag appears anywhere.
- GIF: ``GIF87a``/``GIF89a``, little-endian u16 width/height from the
  logical screen descriptor, animated when a NETSCAPE2.0 or ANIMEXTS1.0
  application extension appears.
- WEBP: RIFF container walked chunk by chunk (odd payloads carry one pad
  byte). ``VP8X`` supplies the animation flag and 24-bit size fields;
  ``VP8 `` and ``VP8L`` bitstream headers supply single-frame sizes.
"""

from __future__ import annotations

import struct
from collections.abc import Callable

from pydantic import BaseModel

from hivemoji.domain.errors import FormatError, InvalidDimensions, UnsupportedFormat

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
GIF_SIGNATURES = (b"GIF87a", b"GIF89a")
GIF_LOOP_EXTENSIONS = (b"NETSCAPE2.0", b"ANIMEXTS1.0")
PNG_ANIMATION_CHUNK = b"acTL"

VP8_START_CODE = b"\x9d\x01\x2a"
VP8L_SIGNATURE = 0x2F
VP8X_ANIMATION_FLAG = 0x02


class ImageInfo(BaseModel):
    """What the sniffer learned from an image's headers."""

    model_config = {"frozen": True}

    mime: str
    width: int
    height: int
    animated: bool = False
    loop: bool = False


# --- PNG ---


def _sniff_png(data: bytes) -> ImageInfo | None:
    if not data.startswith(PNG_SIGNATURE):
        return None
    if len(data) < 24:
        raise FormatError("Truncated PNG header")
    width, height = struct.unpack_from(">II", data, 16)
    return ImageInfo(
        mime="image/png",
        width=width,
        height=height,
        animated=PNG_ANIMATION_CHUNK in data,
    )


# --- GIF ---


def _sniff_gif(data: bytes) -> ImageInfo | None:
    if data[:6] not in GIF_SIGNATURES:
        return None
    if len(data) < 10:
        raise FormatError("Truncated GIF header")
    width, height = struct.unpack_from("<HH", data, 6)
    animated = any(marker in data for marker in GIF_LOOP_EXTENSIONS)
    return ImageInfo(mime="image/gif", width=width, height=height, animated=animated, loop=animated)


# --- WEBP ---


def _parse_vp8x(payload: bytes) -> tuple[int, int, bool] | None:
    if len(payload) < 10:
        return None
    animated = bool(payload[0] & VP8X_ANIMATION_FLAG)
    width = int.from_bytes(payload[4:7], "little") + 1
    height = int.from_bytes(payload[7:10], "little") + 1
    return width, height, animated


def _parse_vp8(payload: bytes) -> tuple[int, int] | None:
    if len(payload) < 10 or payload[3:6] != VP8_START_CODE:
        return None
    width, height = struct.unpack_from("<HH", payload, 6)
    return width & 0x3FFF, height & 0x3FFF


def _parse_vp8l(payload: bytes) -> tuple[int, int] | None:
    if len(payload) < 5 or payload[0] != VP8L_SIGNATURE:
        return None
    b1, b2, b3, b4 = payload[1], payload[2], payload[3], payload[4]
    width = 1 + (((b2 & 0x3F) << 8) | b1)
    height = 1 + (((b4 & 0x0F) << 10) | (b3 << 2) | ((b2 & 0xC0) >> 6))
    return width, height


def _sniff_webp(data: bytes) -> ImageInfo | None:
    if len(data) < 12 or data[:4] != b"RIFF" or data[8:12] != b"WEBP":
        return None

    offset = 12
    while offset + 8 <= len(data):
        chunk_id = data[offset : offset + 4]
        (size,) = struct.unpack_from("<I", data, offset + 4)
        start = offset + 8
        end = start + size
        if end > len(data):
            break
        payload = data[start:end]

        if chunk_id == b"VP8X":
            parsed = _parse_vp8x(payload)
            if parsed is not None:
                width, height, animated = parsed
                return ImageInfo(
                    mime="image/webp",
                    width=width,
                    height=height,
                    animated=animated,
                    loop=animated,
                )
        elif chunk_id == b"VP8 ":
            frame = _parse_vp8(payload)
            if frame is not None:
                return ImageInfo(mime="image/webp", width=frame[0], height=frame[1])
        elif chunk_id == b"VP8L":
            frame = _parse_vp8l(payload)
            if frame is not None:
                return ImageInfo(mime="image/webp", width=frame[0], height=frame[1])

        # RIFF pads odd-sized payloads to an even boundary.
        offset = end + (size & 1)

    raise FormatError("WEBP container has no readable VP8/VP8L/VP8X chunk")


_SNIFFERS: tuple[Callable[[bytes], ImageInfo | None], ...] = (
    _sniff_png,
    _sniff_gif,
    _sniff_webp,
)


def sniff(data: bytes) -> ImageInfo:
    """Identify an image from its leading bytes.

    Raises:
        UnsupportedFormat: No known signature matched.
        FormatError: A signature matched but the headers are truncated.
        InvalidDimensions: Width or height is zero.
    """
    for sniffer in _SNIFFERS:
        info = sniffer(data)
        if info is not None:
            break
    else:
        raise UnsupportedFormat("Unsupported image format; use PNG, WebP, or GIF/APNG")

    if info.width <= 0 or info.height <= 0:
        msg = f"Image dimensions must be positive, got {info.width}x{info.height}"
        raise InvalidDimensions(msg)
    return info
