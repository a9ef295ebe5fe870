"""Mode dispatch, frame results and multi-frame scanning.

Frame layouts::

    escaped      STX | payload (STX/ETX -> DLE b+0x40, DLE -> DLE DLE) | ETX
    non-escaped  DLE STX | payload (DLE -> DLE DLE)                    | DLE ETX

:func:`encode` and :func:`decode` allocate their own output buffer of the
requested capacity; callers that own a buffer can use the per-mode functions
in :mod:`.escaped` and :mod:`.nonescaped` directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator

from .buffer import OutputBuffer
from .constants import ETX, NON_ESCAPED_END, NON_ESCAPED_START, STX
from .errors import DleDecodeError, DleError, MissingEndMarker, TruncatedFrame
from .escaped import decode_escaped, encode_escaped
from .nonescaped import decode_nonescaped, encode_nonescaped

logger = logging.getLogger(__name__)


class FrameMode(Enum):
    """Framing variant."""

    ESCAPED = "escaped"
    NON_ESCAPED = "non_escaped"

    @property
    def start_marker(self) -> bytes:
        return bytes([STX]) if self is FrameMode.ESCAPED else NON_ESCAPED_START

    @property
    def end_marker(self) -> bytes:
        return bytes([ETX]) if self is FrameMode.ESCAPED else NON_ESCAPED_END


class TrailingPolicy(Enum):
    """What :func:`decode` does with bytes after the end marker."""

    ALLOW = "allow"    # report ``consumed``, leave the rest to the caller
    REJECT = "reject"  # raise TrailingData


@dataclass
class DecodedFrame:
    """A decoded payload and where its frame sat in the input."""

    payload: bytes
    consumed: int
    offset: int = 0

    def __repr__(self) -> str:
        return (
            f"DecodedFrame(payload={self.payload.hex(' ') if self.payload else '(empty)'}, "
            f"consumed={self.consumed}, offset={self.offset})"
        )


def encode(
    mode: FrameMode,
    payload: bytes,
    out_capacity: int | None = None,
    *,
    escape_cr: bool = False,
    add_stx_etx: bool = True,
) -> bytes:
    """Encode ``payload`` as one frame.

    Args:
        mode: Framing variant.
        payload: Raw bytes.
        out_capacity: Maximum encoded size, ``None`` for no limit.
        escape_cr: Escape CR bytes too (escaped mode only, ignored otherwise).
        add_stx_etx: Emit the start and end markers.

    Raises:
        BufferTooSmall: The frame does not fit in ``out_capacity`` bytes.
    """
    out = OutputBuffer(capacity=out_capacity)
    if mode is FrameMode.ESCAPED:
        encode_escaped(payload, out, escape_cr=escape_cr, add_stx_etx=add_stx_etx)
    else:
        encode_nonescaped(payload, out, add_stx_etx=add_stx_etx)
    return out.getvalue()


def decode(
    mode: FrameMode,
    frame: bytes,
    out_capacity: int | None = None,
    *,
    escape_cr: bool = False,
    trailing: TrailingPolicy = TrailingPolicy.ALLOW,
) -> DecodedFrame:
    """Decode the frame at the start of ``frame``.

    ``consumed`` on the result tells the caller where the next frame in a
    longer buffer begins.
    """
    out = OutputBuffer(capacity=out_capacity)
    reject = trailing is TrailingPolicy.REJECT
    try:
        if mode is FrameMode.ESCAPED:
            consumed = decode_escaped(
                frame, out, escape_cr=escape_cr, reject_trailing=reject
            )
        else:
            consumed = decode_nonescaped(frame, out, reject_trailing=reject)
    except DleError as e:
        logger.debug("%s decode failed: %s", mode.value, e)
        raise
    return DecodedFrame(payload=out.getvalue(), consumed=consumed)


def iter_frames(
    mode: FrameMode,
    data: bytes,
    *,
    escape_cr: bool = False,
) -> Iterator[DecodedFrame]:
    """Yield every complete frame in ``data``, in order.

    Bytes before a start marker and malformed frames are skipped. Scanning
    stops at the first incomplete frame, since its remainder has not been
    received yet; the ``offset`` and ``consumed`` of the last yielded frame
    say how much of ``data`` has been used.
    """
    data = bytes(data)
    marker = mode.start_marker
    pos = 0
    while pos < len(data):
        start = data.find(marker, pos)
        if start < 0:
            logger.debug("Discarding %d byte(s) with no start marker", len(data) - pos)
            return
        if start > pos:
            logger.debug("Discarding %d byte(s) before start marker", start - pos)
        try:
            frame = decode(mode, data[start:], escape_cr=escape_cr)
        except (TruncatedFrame, MissingEndMarker):
            return
        except DleDecodeError as e:
            skip = max(e.consumed, 1)
            logger.debug("Skipping %d byte(s) of malformed frame at %d: %s", skip, start, e)
            pos = start + skip
            continue
        frame.offset = start
        yield frame
        pos = start + frame.consumed


@dataclass
class DleEncoder:
    """Reusable codec settings.

    ``escape_stx_etx`` selects escaped mode (the default) over non-escaped
    mode.
    """

    escape_stx_etx: bool = True
    escape_cr: bool = False
    add_stx_etx: bool = True
    trailing: TrailingPolicy = TrailingPolicy.ALLOW

    @property
    def mode(self) -> FrameMode:
        return FrameMode.ESCAPED if self.escape_stx_etx else FrameMode.NON_ESCAPED

    def encode(self, payload: bytes, out_capacity: int | None = None) -> bytes:
        return encode(
            self.mode,
            payload,
            out_capacity,
            escape_cr=self.escape_cr,
            add_stx_etx=self.add_stx_etx,
        )

    def decode(self, frame: bytes, out_capacity: int | None = None) -> DecodedFrame:
        return decode(
            self.mode,
            frame,
            out_capacity,
            escape_cr=self.escape_cr,
            trailing=self.trailing,
        )

    def iter_frames(self, data: bytes) -> Iterator[DecodedFrame]:
        return iter_frames(self.mode, data, escape_cr=self.escape_cr)

    def to_dict(self) -> dict[str, Any]:
        return {
            "escape_stx_etx": self.escape_stx_etx,
            "escape_cr": self.escape_cr,
            "add_stx_etx": self.add_stx_etx,
            "trailing": self.trailing.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DleEncoder:
        """Build settings from :meth:`to_dict` output; missing keys keep defaults."""
        encoder = cls()
        for key in ("escape_stx_etx", "escape_cr", "add_stx_etx"):
            if key in data:
                value = data[key]
                if not isinstance(value, bool):
                    raise ValueError(f"{key} must be a bool, got {value!r}")
                setattr(encoder, key, value)
        if "trailing" in data:
            encoder.trailing = TrailingPolicy(data["trailing"])
        return encoder
