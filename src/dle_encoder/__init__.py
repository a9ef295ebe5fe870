"""DLE (STX/ETX/DLE) byte-stuffing codec for serial links."""

from .protocol import (
    BufferTooSmall,
    DecodedFrame,
    DleDecodeError,
    DleEncoder,
    DleError,
    FrameMode,
    OutputBuffer,
    TrailingPolicy,
    decode,
    decode_escaped,
    decode_nonescaped,
    encode,
    encode_escaped,
    encode_nonescaped,
    iter_frames,
)

__version__ = "0.1.0"
