"""Tests for non-escaped-mode (DLE STX ... DLE ETX) encoding and decoding."""

import pytest

from dle_encoder.protocol.buffer import OutputBuffer
from dle_encoder.protocol.constants import CR, DLE, ETX, STX
from dle_encoder.protocol.errors import (
    BufferTooSmall,
    InvalidEscapeSequence,
    MissingEndMarker,
    MissingStartMarker,
    TrailingData,
    TruncatedFrame,
    UnexpectedStartMarker,
)
from dle_encoder.protocol.nonescaped import decode_nonescaped, encode_nonescaped

VECTORS = [
    (bytes([0, 0, 0, 0, 0]), bytes([DLE, STX, 0, 0, 0, 0, 0, DLE, ETX])),
    (bytes([0, DLE, 5]), bytes([DLE, STX, 0, DLE, DLE, 5, DLE, ETX])),
    (bytes([0, STX, 5]), bytes([DLE, STX, 0, STX, 5, DLE, ETX])),
    (bytes([0, CR, ETX]), bytes([DLE, STX, 0, CR, ETX, DLE, ETX])),
    (bytes([DLE, ETX, STX]), bytes([DLE, STX, DLE, DLE, ETX, STX, DLE, ETX])),
]


def _encode(payload: bytes, **kwargs) -> bytes:
    out = OutputBuffer()
    encode_nonescaped(payload, out, **kwargs)
    return out.getvalue()


def _decode(frame: bytes, **kwargs) -> bytes:
    out = OutputBuffer()
    decode_nonescaped(frame, out, **kwargs)
    return out.getvalue()


@pytest.mark.parametrize("payload,expected", VECTORS)
def test_encode_vectors(payload, expected):
    assert _encode(payload) == expected


@pytest.mark.parametrize("payload,frame", VECTORS)
def test_decode_vectors(payload, frame):
    out = OutputBuffer()
    assert decode_nonescaped(frame, out) == len(frame)
    assert out.getvalue() == payload


def test_stx_etx_pass_through():
    """Payload STX/ETX are not escaped in this mode."""
    frame = _encode(bytes([STX, ETX]))
    assert frame == bytes([DLE, STX, STX, ETX, DLE, ETX])
    assert _decode(frame) == bytes([STX, ETX])


def test_empty_payload():
    assert _encode(b"") == bytes([DLE, STX, DLE, ETX])
    assert _decode(bytes([DLE, STX, DLE, ETX])) == b""


def test_encode_without_delimiters():
    assert _encode(bytes([DLE, STX]), add_stx_etx=False) == bytes([DLE, DLE, STX])


def test_no_false_end_marker():
    """DLE ETX inside the payload never ends the frame early."""
    payload = bytes([DLE, ETX, DLE, DLE, ETX, DLE]) * 4
    frame = _encode(payload)
    out = OutputBuffer()
    assert decode_nonescaped(frame, out) == len(frame)
    assert out.getvalue() == payload


def test_decode_wrong_first_byte():
    with pytest.raises(MissingStartMarker) as exc_info:
        _decode(bytes([0, STX, 0, DLE, DLE, 5, DLE, ETX]))
    assert exc_info.value.consumed == 0


def test_decode_wrong_second_byte():
    with pytest.raises(MissingStartMarker) as exc_info:
        _decode(bytes([DLE, 0, 0, DLE, DLE, 5, DLE, ETX]))
    assert exc_info.value.consumed == 1


def test_decode_unexpected_start():
    """A second DLE STX keeps its position for the next frame."""
    with pytest.raises(UnexpectedStartMarker) as exc_info:
        _decode(bytes([DLE, STX, 1, DLE, STX, 2, DLE, ETX]))
    assert exc_info.value.consumed == 3


def test_decode_invalid_escape():
    with pytest.raises(InvalidEscapeSequence) as exc_info:
        _decode(bytes([DLE, STX, 0, DLE, 0, 5, DLE, ETX]))
    assert exc_info.value.value == 0
    assert exc_info.value.consumed == 3


def test_decode_corrupt_end_marker():
    frame = bytearray(VECTORS[1][1])
    frame[7] = 0
    with pytest.raises(InvalidEscapeSequence):
        _decode(bytes(frame))


def test_decode_missing_end():
    with pytest.raises(MissingEndMarker):
        _decode(bytes([DLE, STX, 1, 2, 3]))


def test_decode_truncated_after_dle():
    with pytest.raises(TruncatedFrame):
        _decode(bytes([DLE, STX, 1, DLE]))


@pytest.mark.parametrize("data", [b"", bytes([DLE])])
def test_decode_partial_start_marker(data):
    with pytest.raises(TruncatedFrame):
        _decode(data)


def test_decode_reject_trailing():
    out = OutputBuffer()
    with pytest.raises(TrailingData) as exc_info:
        decode_nonescaped(
            bytes([DLE, STX, 1, DLE, ETX, DLE, STX]), out, reject_trailing=True
        )
    assert exc_info.value.consumed == 5
    assert len(out) == 0


def test_decode_allows_trailing_by_default():
    out = OutputBuffer()
    assert decode_nonescaped(bytes([DLE, STX, 1, DLE, ETX, 0xEE]), out) == 5
    assert out.getvalue() == b"\x01"


@pytest.mark.parametrize("payload,frame", VECTORS)
def test_encode_buffer_too_small(payload, frame):
    for capacity in range(len(frame)):
        storage = bytearray(capacity)
        out = OutputBuffer(storage)
        with pytest.raises(BufferTooSmall) as exc_info:
            encode_nonescaped(payload, out)
        assert exc_info.value.capacity == capacity
        assert len(out) == 0
        assert len(storage) == capacity


@pytest.mark.parametrize("payload,frame", VECTORS)
def test_decode_buffer_too_small(payload, frame):
    for capacity in range(len(payload)):
        out = OutputBuffer(capacity=capacity)
        with pytest.raises(BufferTooSmall):
            decode_nonescaped(frame, out)
        assert len(out) == 0


@pytest.mark.parametrize("payload,frame", VECTORS)
def test_truncated_prefixes_never_decode(payload, frame):
    for cut in range(len(frame)):
        with pytest.raises((TruncatedFrame, MissingEndMarker)):
            _decode(frame[:cut])
