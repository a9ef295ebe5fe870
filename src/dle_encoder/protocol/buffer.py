"""Fixed-capacity output buffer with a tracked written length.

The encoders and decoders write into an :class:`OutputBuffer` one byte at a
time. A bounded buffer refuses any write past its capacity, and a failed
codec call leaves :attr:`OutputBuffer.length` where it was before the call::

    out = OutputBuffer(bytearray(16))
    encode_escaped(b"\\x02", out)
    out.getvalue()  # b"\\x02\\x10\\x42\\x03"
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from .errors import BufferTooSmall


class OutputBuffer:
    """Caller-owned byte sink.

    Args:
        storage: Backing ``bytearray``. Its length is the capacity.
        capacity: Alternative to ``storage``: allocate a zeroed region of
            this size. When neither is given the buffer is unbounded.
    """

    def __init__(
        self,
        storage: bytearray | None = None,
        capacity: int | None = None,
    ) -> None:
        if storage is not None and capacity is not None:
            raise ValueError("Pass either storage or capacity, not both")
        if capacity is not None:
            if capacity < 0:
                raise ValueError(f"Capacity must be >= 0, got {capacity}")
            storage = bytearray(capacity)
        self._bounded = storage is not None
        self._storage = storage if storage is not None else bytearray()
        self._length = 0

    @property
    def capacity(self) -> int | None:
        """Maximum number of bytes, or ``None`` when unbounded."""
        return len(self._storage) if self._bounded else None

    @property
    def length(self) -> int:
        return self._length

    @property
    def remaining(self) -> int | None:
        if not self._bounded:
            return None
        return len(self._storage) - self._length

    def __len__(self) -> int:
        return self._length

    def __repr__(self) -> str:
        cap = "unbounded" if not self._bounded else str(len(self._storage))
        return f"OutputBuffer(length={self._length}, capacity={cap})"

    def append(self, value: int) -> None:
        """Write a single byte, raising :class:`BufferTooSmall` when full."""
        if self._bounded:
            if self._length >= len(self._storage):
                raise BufferTooSmall(len(self._storage), self._length + 1)
            self._storage[self._length] = value
        else:
            del self._storage[self._length:]
            self._storage.append(value)
        self._length += 1

    def append_pair(self, first: int, second: int) -> None:
        """Write two bytes, or neither if only one would fit."""
        if self._bounded and self._length + 2 > len(self._storage):
            raise BufferTooSmall(len(self._storage), self._length + 2)
        self.append(first)
        self.append(second)

    def getvalue(self) -> bytes:
        """Return the committed bytes."""
        return bytes(self._storage[: self._length])

    def clear(self) -> None:
        self._length = 0

    @contextmanager
    def staged(self) -> Iterator[OutputBuffer]:
        """Roll the written length back if the block raises."""
        start = self._length
        try:
            yield self
        except Exception:
            self._length = start
            raise
