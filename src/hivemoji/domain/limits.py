"""Resource bounds shared by the interpreter, reassembly, and authoring."""

from __future__ import annotations

from dataclasses import dataclass

PROTOCOL_ID = "hivemoji"


@dataclass(frozen=True)
class Limits:
    """Size ceilings for records, fragments, and whole assets.

    Attributes:
        max_record_bytes: Largest JSON body a single ledger record may carry.
        max_inline_bytes: Largest decoded image (or fallback) in a v1 record.
        max_fragment_bytes: Largest decoded fragment in a v2 chunk.
        max_fragments: Upper bound on a chunk group's ``total``.
        max_total_bytes: Largest reassembled asset.
        default_dimension: Width/height assumed when a record omits them.
    """

    max_record_bytes: int = 8 * 1024
    max_inline_bytes: int = 6000
    max_fragment_bytes: int = 4 * 1024
    max_fragments: int = 50
    max_total_bytes: int = 100 * 1024
    default_dimension: int = 32


DEFAULT_LIMITS = Limits()
