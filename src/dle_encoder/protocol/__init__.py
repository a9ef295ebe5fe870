"""Protocol layer: DLE byte stuffing in escaped and non-escaped modes."""

from .buffer import OutputBuffer
from .constants import CR, DLE, ESCAPE_OFFSET, ETX, STX
from .errors import (
    BufferTooSmall,
    DleDecodeError,
    DleError,
    InvalidEscapeSequence,
    MissingEndMarker,
    MissingStartMarker,
    TrailingData,
    TruncatedFrame,
    UnexpectedStartMarker,
)
from .escaped import decode_escaped, encode_escaped
from .nonescaped import decode_nonescaped, encode_nonescaped
from .framing import (
    DecodedFrame,
    DleEncoder,
    FrameMode,
    TrailingPolicy,
    decode,
    encode,
    iter_frames,
)
