"""Exception taxonomy for hivemoji.

Authoring failures (:class:`FormatError`, :class:`ValidationError`) are fatal
to the action that raised them. Interpretation failures
(:class:`RecordRejected`, :class:`ReassemblyError`) only ever drop a single
record or chunk group; the fold that caught them carries on.
"""

from __future__ import annotations


class HivemojiError(Exception):
    """Base class for every error raised by hivemoji."""


# --- Image bytes ---


class FormatError(HivemojiError):
    """Image bytes are unrecognized or malformed."""


class UnsupportedFormat(FormatError):
    """No known container signature matched."""


class InvalidDimensions(FormatError):
    """Width or height did not resolve to a positive integer."""


# --- Authoring input ---


class ValidationError(HivemojiError):
    """An upload request is invalid (bad name, empty image, ...)."""


class TooLarge(ValidationError):
    """An asset needs more fragments or bytes than the configured limits."""


# --- Log interpretation ---


class RecordRejected(HivemojiError):
    """A single log record does not match any supported payload shape."""

    def __init__(self, reason: str, *, position: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.position = position


class ReassemblyError(HivemojiError):
    """A chunk group could not be turned back into an asset."""


class ChecksumMismatch(ReassemblyError):
    """Reassembled bytes do not hash to the declared checksum."""


class Incomplete(ReassemblyError):
    """One or more fragments in ``[0, total)`` are missing."""


# --- Collaborators ---


class TransportError(HivemojiError):
    """Fetching an owner's operation log failed."""


class Timeout(TransportError):
    """A round-trip to the ledger node exceeded its deadline."""


class BroadcastRejected(HivemojiError):
    """The broadcaster refused a payload."""


class StoreError(HivemojiError):
    """The persistent snapshot store could not be read or written."""
