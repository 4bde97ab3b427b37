"""
Base class for ZenGin archive readers.

ZenGin serializes object graphs into "archives": a short text header
followed by a body in one of three encodings (ASCII, BINARY, BIN_SAFE).
The body is a stream of nested object frames, each holding typed entries
and further objects. Readers expose this as a frame stack:

    reader = ArchiveReader.open(buf)
    root = reader.read_object_begin()
    while reader.read_object_end() is FrameEnd.MORE_SIBLINGS:
        child = reader.read_object_begin()
        ...
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import numpy as np

from ...errors import ParserError
from ..base import Buffer
from .data_types import ArchiveFormat, ArchiveHeader, ArchiveObject, FrameEnd


ARCHIVE_MAGIC = "ZenGin Archive"


def read_archive_header(buf: Buffer) -> ArchiveHeader:
    """
    Read the text header shared by all archive encodings.

    Args:
        buf: Buffer positioned at the start of the archive

    Returns:
        ArchiveHeader
    """
    if buf.get_line() != ARCHIVE_MAGIC:
        raise ParserError("archive_reader", "magic missing")

    line = buf.get_line()
    if not line.startswith("ver "):
        raise ParserError("archive_reader", "ver field missing")
    try:
        version = int(line[4:])
    except ValueError:
        raise ParserError("archive_reader", f"invalid version: {line!r}")

    archiver = buf.get_line()

    line = buf.get_line()
    try:
        archive_format = ArchiveFormat(line)
    except ValueError:
        raise ParserError("archive_reader", f"unsupported format: {line!r}")

    line = buf.get_line()
    if not line.startswith("saveGame "):
        raise ParserError("archive_reader", "saveGame field missing")
    save = line[9:].strip() != "0"

    header = ArchiveHeader(version=version, archiver=archiver, format=archive_format, save=save)

    line = buf.get_line()
    if line.startswith("date "):
        header.date = line[5:]
        line = buf.get_line()
    if line.startswith("user "):
        header.user = line[5:]
        line = buf.get_line()

    if line != "END":
        raise ParserError("archive_reader", "first END missing")

    return header


class ArchiveReader(ABC):
    """
    Reader for one ZenGin archive.

    The reader advances the buffer it was opened on, so raw (non-entry)
    data embedded in the archive can be read from that same buffer.
    """

    def __init__(self, buf: Buffer, header: ArchiveHeader):
        self.buf = buf
        self.header = header
        self.object_count = 0

    @classmethod
    def open(cls, buf: Buffer) -> 'ArchiveReader':
        """
        Read an archive header and create the matching reader.

        Args:
            buf: Buffer positioned at the start of the archive

        Returns:
            Reader positioned at the first object of the archive body
        """
        from .ascii import AsciiArchiveReader
        from .binary import BinaryArchiveReader
        from .binsafe import BinsafeArchiveReader

        readers = {
            ArchiveFormat.ASCII: AsciiArchiveReader,
            ArchiveFormat.BINARY: BinaryArchiveReader,
            ArchiveFormat.BINSAFE: BinsafeArchiveReader,
        }

        header = read_archive_header(buf)
        reader = readers[header.format](buf, header)
        reader._read_header()
        return reader

    @property
    def format(self) -> ArchiveFormat:
        return self.header.format

    @abstractmethod
    def _read_header(self):
        """Read the encoding specific part of the header."""

    @abstractmethod
    def read_object_begin(self) -> Optional[ArchiveObject]:
        """
        Try to open a nested object frame.

        Returns:
            The object's header, or None if no object starts here
        """

    @abstractmethod
    def read_object_end(self) -> FrameEnd:
        """
        Try to close the current object frame.

        Returns:
            FrameEnd.EXHAUSTED if the frame was closed,
            FrameEnd.MORE_SIBLINGS if content remains
        """

    @abstractmethod
    def skip_entry(self):
        """Skip the next entry."""

    def skip_object(self, skip_current: bool):
        """
        Discard an object including all of its children.

        Args:
            skip_current: Discard the rest of the open frame instead of the next object
        """
        level = 1 if skip_current else 0

        while True:
            if self.read_object_begin() is not None:
                level += 1
            elif self.read_object_end() is FrameEnd.EXHAUSTED:
                level -= 1
            else:
                self.skip_entry()

            if level <= 0:
                break

    @abstractmethod
    def read_string(self) -> str: ...

    @abstractmethod
    def read_int(self) -> int: ...

    @abstractmethod
    def read_float(self) -> float: ...

    @abstractmethod
    def read_byte(self) -> int: ...

    @abstractmethod
    def read_word(self) -> int: ...

    @abstractmethod
    def read_enum(self) -> int: ...

    @abstractmethod
    def read_bool(self) -> bool: ...

    @abstractmethod
    def read_color(self) -> Tuple[int, int, int, int]:
        """Read an (r, g, b, a) color."""

    @abstractmethod
    def read_vec3(self) -> Tuple[float, float, float]: ...

    @abstractmethod
    def read_raw(self, size: Optional[int] = None) -> Buffer:
        """
        Read a raw byte entry.

        Args:
            size: Minimum number of bytes the entry must hold
        """

    @abstractmethod
    def read_raw_float(self, count: int) -> List[float]: ...

    def read_bbox(self) -> Tuple[Tuple[float, float, float], Tuple[float, float, float]]:
        """Read an axis aligned bounding box as (min, max)."""
        values = self.read_raw_float(6)
        return (values[0], values[1], values[2]), (values[3], values[4], values[5])

    def read_mat3x3(self) -> np.ndarray:
        """Read a row-major 3x3 matrix."""
        raw = self.read_raw(36)
        return raw.get_array('<f4', 9).reshape(3, 3).copy()
