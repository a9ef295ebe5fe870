"""Non-escaped mode: DLE-prefixed STX/ETX delimit the frame.

Wire format::

    DLE STX | payload with every DLE doubled | DLE ETX

A receiver only has to look at the byte after each DLE: STX opens a frame,
ETX closes it and DLE stands for a literal DLE. Bare STX/ETX bytes in the
payload are plain data.
"""

from __future__ import annotations

from .buffer import OutputBuffer
from .constants import DLE, ETX, STX
from .errors import (
    InvalidEscapeSequence,
    MissingEndMarker,
    MissingStartMarker,
    TrailingData,
    TruncatedFrame,
    UnexpectedStartMarker,
)


def encode_nonescaped(
    payload: bytes,
    out: OutputBuffer,
    *,
    add_stx_etx: bool = True,
) -> int:
    """Write one non-escaped-mode frame for ``payload`` into ``out``.

    Returns the number of bytes written. Raises :class:`BufferTooSmall`
    without committing anything when ``out`` fills up.
    """
    start = len(out)
    with out.staged():
        if add_stx_etx:
            out.append_pair(DLE, STX)
        for byte in payload:
            if byte == DLE:
                out.append_pair(DLE, DLE)
            else:
                out.append(byte)
        if add_stx_etx:
            out.append_pair(DLE, ETX)
    return len(out) - start


def decode_nonescaped(
    frame: bytes,
    out: OutputBuffer,
    *,
    reject_trailing: bool = False,
) -> int:
    """Decode the non-escaped-mode frame at the start of ``frame``.

    Returns the number of input bytes that made up the frame, end marker
    included. The error types match :func:`~.escaped.decode_escaped`, plus
    :class:`UnexpectedStartMarker` when ``DLE STX`` shows up mid-frame.
    """
    size = len(frame)
    if size == 0 or (size == 1 and frame[0] == DLE):
        raise TruncatedFrame("input shorter than the start marker")
    if frame[0] != DLE:
        raise MissingStartMarker(f"expected DLE, got 0x{frame[0]:02X}")
    if frame[1] != STX:
        raise MissingStartMarker(
            f"expected STX after DLE, got 0x{frame[1]:02X}", consumed=1
        )

    with out.staged():
        idx = 2
        while idx < size:
            byte = frame[idx]
            if byte != DLE:
                out.append(byte)
                idx += 1
                continue
            if idx + 1 >= size:
                raise TruncatedFrame(f"input ends after DLE at offset {idx}")
            code = frame[idx + 1]
            if code == ETX:
                consumed = idx + 2
                if reject_trailing and consumed < size:
                    raise TrailingData(
                        f"{size - consumed} byte(s) after end marker", consumed
                    )
                return consumed
            if code == STX:
                # Keep DLE STX in the input, it may open the next frame
                raise UnexpectedStartMarker(
                    f"start marker inside frame at offset {idx}", consumed=idx
                )
            if code != DLE:
                raise InvalidEscapeSequence(code, idx + 1, consumed=idx)
            out.append(DLE)
            idx += 2
        raise MissingEndMarker(f"no DLE ETX in {size} byte(s) of input")
