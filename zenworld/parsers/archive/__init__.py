"""
ZenGin Archive Readers

Readers for the nested object archives ZenGin uses for worlds, materials
and save games. All three encodings share one interface:

- base: ArchiveReader (frame protocol, typed entry reads), read_archive_header
- binary: BinaryArchiveReader for BINARY archives
- binsafe: BinsafeArchiveReader for BIN_SAFE archives
- ascii: AsciiArchiveReader for ASCII archives
- data_types: ArchiveFormat, ArchiveHeader, ArchiveObject, FrameEnd

Usage:
    from zenworld.parsers.archive import ArchiveReader, FrameEnd

    reader = ArchiveReader.open(buf)
    obj = reader.read_object_begin()
    print(obj.class_name, reader.read_string())
"""

from .data_types import (
    ArchiveFormat,
    ArchiveHeader,
    ArchiveObject,
    FrameEnd,
    parse_object_header,
)
from .base import ArchiveReader, read_archive_header
from .ascii import AsciiArchiveReader
from .binary import BinaryArchiveReader
from .binsafe import BinsafeArchiveReader

__all__ = [
    'ArchiveFormat',
    'ArchiveHeader',
    'ArchiveObject',
    'FrameEnd',
    'parse_object_header',
    'ArchiveReader',
    'read_archive_header',
    'AsciiArchiveReader',
    'BinaryArchiveReader',
    'BinsafeArchiveReader',
]
