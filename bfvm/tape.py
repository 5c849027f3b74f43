"""
Memory tape and I/O buffers owned by a single VM invocation.

The tape is a fixed-size numpy uint8 array with one cursor. Cell arithmetic
wraps modulo 256; cursor moves outside [0, size) raise OutOfBoundsError with
the cursor left on the boundary it hit.
"""

from typing import Optional

import numpy as np

from bfvm.errors import OutOfBoundsError, OutputOverflowError, TapeAllocError


class Tape:
    def __init__(self, size: int):
        try:
            self.cells = np.zeros(size, dtype=np.uint8)
        except (MemoryError, ValueError, OverflowError) as e:
            raise TapeAllocError(f"(requested {size} cells)") from e
        self.size = size
        self.pointer = 0

    def __enter__(self) -> 'Tape':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def release(self) -> None:
        self.cells = None

    @property
    def released(self) -> bool:
        return self.cells is None

    @property
    def cell(self) -> int:
        return int(self.cells[self.pointer])

    @cell.setter
    def cell(self, value: int) -> None:
        self.cells[self.pointer] = value & 0xFF

    def add(self, delta: int) -> None:
        """Add delta to the current cell, wrapping modulo 256."""
        self.cells[self.pointer] = (int(self.cells[self.pointer]) + delta) & 0xFF

    def move(self, delta: int) -> int:
        """Move the cursor by delta cells.

        Returns abs(delta). On failure the cursor stops on the boundary and
        the raised OutOfBoundsError records in `moved` how many single-cell
        moves succeeded before the offending one.
        """
        target = self.pointer + delta
        if 0 <= target < self.size:
            self.pointer = target
            return abs(delta)

        boundary = self.size - 1 if delta > 0 else 0
        moved = abs(boundary - self.pointer)
        self.pointer = boundary
        error = OutOfBoundsError(f"(cursor at {boundary}, tape size {self.size})", dp=boundary)
        error.moved = moved
        raise error

    def snapshot(self) -> bytes:
        return self.cells.tobytes()

    def __len__(self):
        return self.size


class OutputBuffer:
    """Pre-sized append-only output with a hard maximum."""

    def __init__(self, max_len: int):
        self._buffer = bytearray(max_len)
        self.max_len = max_len
        self.length = 0

    def write(self, value: int) -> None:
        if self.length >= self.max_len:
            raise OutputOverflowError(f"(limit {self.max_len} bytes)")
        self._buffer[self.length] = value
        self.length += 1

    def getvalue(self) -> bytes:
        return bytes(self._buffer[:self.length])

    def __len__(self):
        return self.length


class InputBuffer:
    """Read-only input with a cursor that only moves forward."""

    def __init__(self, data: bytes = b""):
        self._data = bytes(data)
        self.position = 0

    def read(self) -> Optional[int]:
        """Return the next byte, or None once the input is exhausted."""
        if self.position >= len(self._data):
            return None
        value = self._data[self.position]
        self.position += 1
        return value

    @property
    def remaining(self) -> int:
        return len(self._data) - self.position
