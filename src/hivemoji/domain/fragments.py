"""Splitting assets into bounded, checksummed fragments and putting them back.

One SHA-256 digest is computed over the whole unsplit buffer and attached
to every fragment of that asset. Fragments are numbered ``seq = 0..total-1``.
"""

from __future__ import annotations

import hashlib
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from hivemoji.domain.errors import ChecksumMismatch, Incomplete, TooLarge, ValidationError
from hivemoji.domain.limits import DEFAULT_LIMITS

DEFAULT_FRAGMENT_BYTES = DEFAULT_LIMITS.max_fragment_bytes
DEFAULT_MAX_FRAGMENTS = DEFAULT_LIMITS.max_fragments
DEFAULT_MAX_TOTAL_BYTES = DEFAULT_LIMITS.max_total_bytes


@dataclass(frozen=True)
class Fragment:
    """One piece of an asset, sized to fit a single ledger record."""

    seq: int
    total: int
    data: bytes
    checksum: str | None = None

    @property
    def terminal(self) -> bool:
        return self.seq == self.total - 1


def transport_size(raw_bytes: int) -> int:
    """Length of the base64 text that carries *raw_bytes* bytes."""
    return 4 * math.ceil(raw_bytes / 3)


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def encode_fragments(
    data: bytes,
    *,
    max_fragment_bytes: int = DEFAULT_FRAGMENT_BYTES,
    max_fragments: int = DEFAULT_MAX_FRAGMENTS,
    max_total_bytes: int = DEFAULT_MAX_TOTAL_BYTES,
    single_record_bytes: int | None = None,
) -> list[Fragment]:
    """Split *data* into fragments of at most *max_fragment_bytes* raw bytes.

    If the base64 form of the whole buffer fits under *single_record_bytes*
    (default: the transport size of one full fragment), a single terminal
    fragment without checksum is returned.

    Raises:
        ValidationError: *data* is empty.
        TooLarge: The buffer exceeds *max_total_bytes* or would need more
            than *max_fragments* fragments.
    """
    if not data:
        raise ValidationError("Cannot fragment an empty buffer")
    if len(data) > max_total_bytes:
        msg = f"Image too large: {len(data)} bytes (> {max_total_bytes})"
        raise TooLarge(msg)

    ceiling = single_record_bytes
    if ceiling is None:
        ceiling = transport_size(max_fragment_bytes)
    if transport_size(len(data)) <= ceiling and len(data) <= max_fragment_bytes:
        return [Fragment(seq=0, total=1, data=data)]

    total = math.ceil(len(data) / max_fragment_bytes)
    if total > max_fragments:
        msg = f"Image too large: requires {total} chunks (> {max_fragments})"
        raise TooLarge(msg)

    checksum = sha256_hex(data)
    return [
        Fragment(
            seq=seq,
            total=total,
            data=data[seq * max_fragment_bytes : (seq + 1) * max_fragment_bytes],
            checksum=checksum,
        )
        for seq in range(total)
    ]


def reassemble(parts: Mapping[int, bytes], *, total: int, checksum: str | None = None) -> bytes:
    """Concatenate ``parts[0..total-1]`` and verify the optional checksum.

    A missing checksum is accepted as-is; producers are allowed to omit it.
    The comparison is case-insensitive hex.

    Raises:
        Incomplete: Some ``seq`` in ``[0, total)`` is absent.
        ChecksumMismatch: The digest of the joined bytes differs from *checksum*.
    """
    missing = [seq for seq in range(total) if seq not in parts]
    if total <= 0 or missing:
        msg = f"Missing fragments {missing} of {total}"
        raise Incomplete(msg)

    joined = b"".join(parts[seq] for seq in range(total))
    if checksum is not None and sha256_hex(joined) != checksum.lower():
        msg = f"Checksum mismatch for {total}-fragment asset"
        raise ChecksumMismatch(msg)
    return joined


def decode_fragments(fragments: Sequence[Fragment]) -> bytes:
    """Inverse of :func:`encode_fragments`."""
    if not fragments:
        raise Incomplete("No fragments supplied")
    first = fragments[0]
    return reassemble(
        {fragment.seq: fragment.data for fragment in fragments},
        total=first.total,
        checksum=first.checksum,
    )
