"""Exceptions raised by the DLE encoders and decoders.

Every decode failure carries ``consumed``: the number of input bytes the
caller may drop before scanning for the next frame. A value of 0 means the
input should be kept, either because more bytes are needed or because the
call can be retried with a larger output buffer.
"""

from __future__ import annotations


class DleError(ValueError):
    """Base class for all codec errors."""


class BufferTooSmall(DleError):
    """The output buffer cannot hold the encoded or decoded bytes."""

    def __init__(self, capacity: int, required: int) -> None:
        super().__init__(
            f"output buffer too small: capacity {capacity}, "
            f"needed at least {required}"
        )
        self.capacity = capacity
        self.required = required
        self.consumed = 0


class DleDecodeError(DleError):
    """Base class for malformed or incomplete frames."""

    def __init__(self, message: str, consumed: int = 0) -> None:
        super().__init__(message)
        self.consumed = consumed


class MissingStartMarker(DleDecodeError):
    """The input does not begin with the start marker."""


class MissingEndMarker(DleDecodeError):
    """The input ended before the end marker."""


class TruncatedFrame(DleDecodeError):
    """The input ended in the middle of a marker or escape sequence."""


class InvalidEscapeSequence(DleDecodeError):
    """A DLE was followed by a byte that is not a valid escape."""

    def __init__(self, value: int, position: int, consumed: int = 0) -> None:
        super().__init__(
            f"invalid escape sequence DLE 0x{value:02X} at offset {position}",
            consumed,
        )
        self.value = value
        self.position = position


class UnexpectedStartMarker(DleDecodeError):
    """A second start marker appeared before the end marker."""


class TrailingData(DleDecodeError):
    """Bytes follow the end marker and the caller asked to reject them."""
