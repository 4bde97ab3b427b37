"""
Binary File Utilities

Helpers for writing the little-endian records used by ZenGin files.
"""

import struct
import io
from typing import BinaryIO, Iterable, Sequence, Union


def write_chunk(buffer: Union[BinaryIO, io.BytesIO], chunk_type: int, data: bytes):
    """
    Write a typed data block to a buffer.

    ZenGin mesh and BSP chunk format:
    - u16 chunk_type
    - u32 chunk_size
    - [chunk_size bytes of data]

    Args:
        buffer: Output buffer (file or BytesIO)
        chunk_type: Chunk type identifier
        data: Chunk data bytes
    """
    buffer.write(struct.pack('<HI', chunk_type, len(data)))
    buffer.write(data)


def pack_floats(values: Iterable[float]) -> bytes:
    """Pack a sequence of floats as consecutive f32 values."""
    values = list(values)
    return struct.pack(f'<{len(values)}f', *values)


def pack_vec3(vec: Sequence[float]) -> bytes:
    """Pack an (x, y, z) tuple."""
    return struct.pack('<3f', vec[0], vec[1], vec[2])


def encode_string(value: str) -> bytes:
    """Encode a string the way ZenGin stores it (Windows-1252)."""
    return value.encode('cp1252', errors='replace')
