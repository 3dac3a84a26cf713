from enum import Enum


class EngineIssue(Enum):
    """Recoverable conditions reported by the engine instead of raised."""

    MISSING_SURFACE = "missing-surface"
    INVALID_SELECTION = "invalid-selection"
    EMPTY_HISTORY = "empty-history"
    DECODE_FAILURE = "decode-failure"


class RasterCodecError(Exception):
    """An image could not be encoded to, or decoded from, bytes."""


class DecodeFailureError(RasterCodecError):
    pass
