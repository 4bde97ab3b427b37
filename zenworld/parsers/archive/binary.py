"""
Reader for BINARY encoded archives.

Objects are prefixed with a header carrying their total size:
- u32 size (including this header)
- u16 version
- u32 index
- stringZ object name
- stringZ class name

Entries are stored as bare values without keys or type tags, so they
cannot be skipped individually; whole objects are skipped by size.
"""

from typing import List, Optional, Tuple

from ...errors import ParserError
from ..base import Buffer, BufferUnderflowError
from .base import ArchiveReader
from .data_types import ArchiveObject, FrameEnd


class BinaryArchiveReader(ArchiveReader):
    """Archive reader for the BINARY encoding."""

    def __init__(self, buf: Buffer, header):
        super().__init__(buf, header)
        self._object_ends: List[int] = []

    def _read_header(self):
        line = self.buf.get_line()
        if not line.startswith("objects "):
            raise ParserError("archive_reader_binary", "objects field missing")
        try:
            self.object_count = int(line[8:])
        except ValueError:
            raise ParserError("archive_reader_binary", f"invalid object count: {line!r}")

        if self.buf.get_line() != "END":
            raise ParserError("archive_reader_binary", "second END missing")

    def read_object_begin(self) -> Optional[ArchiveObject]:
        begin = self.buf.position
        size = self.buf.get_uint()
        version = self.buf.get_ushort()
        index = self.buf.get_uint()
        object_name = self.buf.get_cstring()
        class_name = self.buf.get_cstring()

        end = begin + size
        if end > self.buf.limit:
            raise BufferUnderflowError(begin, size, "object extends past end of archive")
        if end < self.buf.position:
            raise ParserError("archive_reader_binary",
                              f"object [{object_name} {class_name}] declares size {size} smaller than its header")

        self._object_ends.append(end)
        return ArchiveObject(object_name=object_name, class_name=class_name, version=version, index=index)

    def read_object_end(self) -> FrameEnd:
        if not self._object_ends:
            return FrameEnd.EXHAUSTED

        end = self._object_ends[-1]
        if self.buf.position == end:
            self._object_ends.pop()
            return FrameEnd.EXHAUSTED

        if self.buf.position > end:
            raise ParserError("archive_reader_binary",
                              f"object read past its end ({self.buf.position} > {end})")

        return FrameEnd.MORE_SIBLINGS

    def skip_object(self, skip_current: bool):
        if not skip_current:
            self.read_object_begin()

        self.buf.position = self._object_ends.pop()

    def skip_entry(self):
        raise ParserError("archive_reader_binary", "entries cannot be skipped in binary archives")

    def read_string(self) -> str:
        return self.buf.get_cstring()

    def read_int(self) -> int:
        return self.buf.get_int()

    def read_float(self) -> float:
        return self.buf.get_float()

    def read_byte(self) -> int:
        return self.buf.get()

    def read_word(self) -> int:
        return self.buf.get_ushort()

    def read_enum(self) -> int:
        return self.buf.get()

    def read_bool(self) -> bool:
        return self.buf.get() != 0

    def read_color(self) -> Tuple[int, int, int, int]:
        b, g, r, a = self.buf.get(), self.buf.get(), self.buf.get(), self.buf.get()
        return r, g, b, a

    def read_vec3(self) -> Tuple[float, float, float]:
        return self.buf.get_vec3()

    def read_raw(self, size: Optional[int] = None) -> Buffer:
        if size is None:
            raise ParserError("archive_reader_binary", "raw entries need an explicit size")
        return self.buf.extract(size)

    def read_raw_float(self, count: int) -> List[float]:
        return [self.buf.get_float() for _ in range(count)]
