"""
Base utilities for ZenGin binary file parsing.

This module provides the cursor type used by all parser classes:
- Buffer: bounded, independently positioned view over shared read-only bytes
- BufferUnderflowError: raised by every read past the end of a view
"""

import struct
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np


class BufferUnderflowError(Exception):
    """Raised when a read or skip runs past the end of a buffer."""

    def __init__(self, position: int, size: int, context: str = ""):
        self.position = position
        self.size = size
        self.context = context

        msg = f"buffer underflow at {position} reading {size} bytes"
        if context:
            msg += f" ({context})"
        super().__init__(msg)


def decode_string(data: bytes) -> str:
    """
    Decode a ZenGin string.

    Gothic stores text as Windows-1252. The few bytes undefined in that code
    page become U+FFFD; the rest of the string decodes normally.
    """
    return data.decode('cp1252', errors='replace')


class Buffer:
    """
    Cursor over a bounded range of shared, read-only bytes.

    Slices and duplicates reference the same storage but keep their own
    position, so advancing one never moves another. All positions are
    relative to the start of the view.

    Usage:
        buf = Buffer(data)
        version = buf.get_uint()
        body = buf.extract(buf.get_uint())  # bounded sub-view, buf advances past it
        peek = buf.duplicate()              # lookahead without disturbing buf
    """

    def __init__(self, data: Union[bytes, bytearray, memoryview], start: int = 0, end: Optional[int] = None):
        """
        Initialize a view.

        Args:
            data: Backing storage
            start: Absolute offset of the first byte of the view
            end: Absolute offset one past the last byte (default: end of data)
        """
        if isinstance(data, memoryview):
            self._data = data.toreadonly()
        else:
            self._data = memoryview(bytes(data))

        self._start = start
        self._end = len(self._data) if end is None else end
        self._position = 0
        self._mark: Optional[int] = None

        if not 0 <= self._start <= self._end <= len(self._data):
            raise ValueError(f"invalid buffer bounds [{start}, {end}) for {len(self._data)} bytes")

    @classmethod
    def from_file(cls, filepath: Union[str, Path]) -> 'Buffer':
        """Load a whole file into a new buffer."""
        with open(filepath, 'rb') as f:
            return cls(f.read())

    def __len__(self) -> int:
        return self.limit

    def __repr__(self) -> str:
        return f"Buffer(position={self._position}, limit={self.limit})"

    @property
    def limit(self) -> int:
        """Number of bytes in this view."""
        return self._end - self._start

    @property
    def position(self) -> int:
        return self._position

    @position.setter
    def position(self, value: int):
        if value < 0 or value > self.limit:
            raise BufferUnderflowError(value, 0, "position out of range")
        self._position = value

    @property
    def remaining(self) -> int:
        """Number of bytes between the position and the limit."""
        return self.limit - self._position

    def skip(self, count: int):
        """Advance the position by `count` bytes."""
        self._require(count)
        self._position += count

    def mark(self):
        """Remember the current position for a later reset()."""
        self._mark = self._position

    def reset(self):
        """Return to the position saved by mark()."""
        if self._mark is None:
            raise ValueError("reset() called without mark()")
        self._position = self._mark
        self._mark = None

    def slice(self, size: Optional[int] = None) -> 'Buffer':
        """
        Create an independent view starting at the current position.

        Args:
            size: Number of bytes in the new view (default: all remaining)

        Returns:
            New Buffer positioned at 0; this buffer is not advanced
        """
        if size is None:
            size = self.remaining
        self._require(size)
        begin = self._start + self._position
        return Buffer(self._data, begin, begin + size)

    def extract(self, size: int) -> 'Buffer':
        """Slice `size` bytes and advance past them."""
        view = self.slice(size)
        self._position += size
        return view

    def duplicate(self) -> 'Buffer':
        """Create an independent cursor over the same range and position."""
        dup = Buffer(self._data, self._start, self._end)
        dup._position = self._position
        return dup

    def _require(self, size: int):
        if size < 0 or size > self.remaining:
            raise BufferUnderflowError(self._position, size)

    def _unpack(self, fmt: str, size: int) -> Tuple:
        self._require(size)
        values = struct.unpack_from(fmt, self._data, self._start + self._position)
        self._position += size
        return values

    def get(self) -> int:
        return self._unpack('<B', 1)[0]

    def get_char(self) -> int:
        return self._unpack('<b', 1)[0]

    def get_short(self) -> int:
        return self._unpack('<h', 2)[0]

    def get_ushort(self) -> int:
        return self._unpack('<H', 2)[0]

    def get_int(self) -> int:
        return self._unpack('<i', 4)[0]

    def get_uint(self) -> int:
        return self._unpack('<I', 4)[0]

    def get_float(self) -> float:
        return self._unpack('<f', 4)[0]

    def get_vec3(self) -> Tuple[float, float, float]:
        return self._unpack('<3f', 12)

    def get_vec4(self) -> Tuple[float, float, float, float]:
        return self._unpack('<4f', 16)

    def get_bytes(self, size: int) -> bytes:
        self._require(size)
        begin = self._start + self._position
        self._position += size
        return bytes(self._data[begin:begin + size])

    def get_string(self, size: int) -> str:
        return decode_string(self.get_bytes(size))

    def get_cstring(self) -> str:
        """Read a NUL-terminated string and consume the terminator."""
        return self._read_until(0)

    def get_line(self, strip: bool = True) -> str:
        """
        Read up to and including the next newline.

        Args:
            strip: Remove surrounding whitespace from the returned line

        Returns:
            The line without its newline
        """
        line = self._read_until(0x0A)
        return line.strip() if strip else line.rstrip('\r')

    def _read_until(self, terminator: int) -> str:
        begin = self._start + self._position
        needle = bytes([terminator])
        scan = begin

        while scan < self._end:
            window = bytes(self._data[scan:min(scan + 256, self._end)])
            found = window.find(needle)
            if found != -1:
                end = scan + found
                self._position += end - begin + 1
                return decode_string(bytes(self._data[begin:end]))
            scan += len(window)

        raise BufferUnderflowError(self._position, self._end - begin + 1, "unterminated string")

    def get_array(self, dtype, count: int) -> np.ndarray:
        """
        Read `count` elements of `dtype` as a read-only array sharing this buffer's storage.
        """
        dtype = np.dtype(dtype)
        if count == 0:
            return np.empty(0, dtype=dtype)

        size = dtype.itemsize * count
        self._require(size)
        begin = self._start + self._position
        self._position += size
        return np.frombuffer(self._data[begin:begin + size], dtype=dtype, count=count)
