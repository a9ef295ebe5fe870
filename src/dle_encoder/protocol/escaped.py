"""Escaped mode: bare STX/ETX delimit the frame.

Wire format::

    STX | stuffed payload | ETX

Inside the payload a DLE becomes ``DLE DLE`` and an STX or ETX becomes
``DLE (byte + 0x40)``, so a receiver can stop reading at the first bare ETX.
With ``escape_cr`` enabled CR is shifted the same way.
"""

from __future__ import annotations

from .buffer import OutputBuffer
from .constants import (
    CR,
    DLE,
    ESCAPE_OFFSET,
    ESCAPED_CR,
    ESCAPED_ETX,
    ESCAPED_STX,
    ETX,
    STX,
)
from .errors import (
    InvalidEscapeSequence,
    MissingEndMarker,
    MissingStartMarker,
    TrailingData,
    TruncatedFrame,
    UnexpectedStartMarker,
)

_SHIFTED = frozenset((ESCAPED_STX, ESCAPED_ETX))
_SHIFTED_WITH_CR = _SHIFTED | {ESCAPED_CR}


def encode_escaped(
    payload: bytes,
    out: OutputBuffer,
    *,
    escape_cr: bool = False,
    add_stx_etx: bool = True,
) -> int:
    """Write one escaped-mode frame for ``payload`` into ``out``.

    Args:
        payload: Raw bytes, any content.
        out: Destination buffer.
        escape_cr: Also shift CR bytes out of the control range.
        add_stx_etx: Emit the STX/ETX delimiters.

    Returns:
        Number of bytes written.

    Raises:
        BufferTooSmall: ``out`` filled up; nothing is committed.
    """
    start = len(out)
    with out.staged():
        if add_stx_etx:
            out.append(STX)
        for byte in payload:
            if byte == DLE:
                out.append_pair(DLE, DLE)
            elif byte == STX or byte == ETX or (escape_cr and byte == CR):
                out.append_pair(DLE, byte + ESCAPE_OFFSET)
            else:
                out.append(byte)
        if add_stx_etx:
            out.append(ETX)
    return len(out) - start


def decode_escaped(
    frame: bytes,
    out: OutputBuffer,
    *,
    escape_cr: bool = False,
    reject_trailing: bool = False,
) -> int:
    """Decode the escaped-mode frame at the start of ``frame`` into ``out``.

    Bytes after the closing ETX are left alone unless ``reject_trailing``
    is set.

    Returns:
        Number of input bytes that made up the frame, ETX included.

    Raises:
        MissingStartMarker: First byte is not STX.
        TruncatedFrame: Input is empty or ends right after a DLE.
        InvalidEscapeSequence: DLE followed by an unknown byte.
        UnexpectedStartMarker: Bare STX before the closing ETX.
        MissingEndMarker: No ETX before the end of input.
        TrailingData: Extra bytes after ETX with ``reject_trailing``.
        BufferTooSmall: ``out`` cannot hold the payload.
    """
    size = len(frame)
    if size == 0:
        raise TruncatedFrame("empty input, no start marker yet")
    if frame[0] != STX:
        raise MissingStartMarker(f"expected STX, got 0x{frame[0]:02X}")

    shifted = _SHIFTED_WITH_CR if escape_cr else _SHIFTED
    with out.staged():
        idx = 1
        while idx < size:
            byte = frame[idx]
            if byte == ETX:
                consumed = idx + 1
                if reject_trailing and consumed < size:
                    raise TrailingData(
                        f"{size - consumed} byte(s) after end marker", consumed
                    )
                return consumed
            if byte == STX:
                # Keep the STX in the input, it may open the next frame
                raise UnexpectedStartMarker(
                    f"start marker inside frame at offset {idx}", consumed=idx
                )
            if byte == DLE:
                if idx + 1 >= size:
                    raise TruncatedFrame(f"input ends after DLE at offset {idx}")
                code = frame[idx + 1]
                if code == DLE:
                    out.append(DLE)
                elif code in shifted:
                    out.append(code - ESCAPE_OFFSET)
                else:
                    raise InvalidEscapeSequence(code, idx + 1, consumed=idx + 2)
                idx += 2
            else:
                out.append(byte)
                idx += 1
        raise MissingEndMarker(f"no ETX in {size} byte(s) of input")
