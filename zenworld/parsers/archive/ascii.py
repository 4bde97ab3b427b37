"""
Reader for ASCII encoded archives.

One entry per line, `key=type:value`, indented by nesting depth.
Object frames are `[name class version index]` and `[]` lines.
"""

from typing import List, Optional, Tuple

from ...errors import ParserError
from ..base import Buffer, BufferUnderflowError
from .base import ArchiveReader
from .data_types import ArchiveObject, FrameEnd, parse_object_header


class AsciiArchiveReader(ArchiveReader):
    """Archive reader for the ASCII encoding."""

    def _read_header(self):
        line = self.buf.get_line()
        if not line.startswith("objects "):
            raise ParserError("archive_reader_ascii", "objects field missing")
        try:
            self.object_count = int(line[8:])
        except ValueError:
            raise ParserError("archive_reader_ascii", f"invalid object count: {line!r}")

        if self.buf.get_line() != "END":
            raise ParserError("archive_reader_ascii", "second END missing")

    def _next_line(self) -> str:
        """Read the next non-empty line."""
        while True:
            line = self.buf.get_line()
            if line:
                return line

    def read_object_begin(self) -> Optional[ArchiveObject]:
        self.buf.mark()
        obj = parse_object_header(self._next_line())
        if obj is None:
            self.buf.reset()
        return obj

    def read_object_end(self) -> FrameEnd:
        if self.buf.remaining == 0:
            raise BufferUnderflowError(self.buf.position, 1, "archive ended inside an open object")

        self.buf.mark()
        if self._next_line() == "[]":
            return FrameEnd.EXHAUSTED

        self.buf.reset()
        return FrameEnd.MORE_SIBLINGS

    def skip_entry(self):
        self._next_line()

    def _read_entry(self, type_name: str) -> str:
        line = self._next_line()
        _, has_key, rest = line.partition('=')
        value_type, has_type, value = rest.partition(':')

        if not has_key or not has_type:
            raise ParserError("archive_reader_ascii", f"invalid entry line: {line!r}")
        if value_type != type_name:
            raise ParserError("archive_reader_ascii",
                              f"type mismatch: expected {type_name}, got {value_type}")
        return value

    def _convert(self, type_name: str, convert):
        value = self._read_entry(type_name)
        try:
            return convert(value)
        except ValueError:
            raise ParserError("archive_reader_ascii", f"invalid {type_name} value: {value!r}")

    def _read_floats(self, type_name: str, count: int) -> List[float]:
        values = self._convert(type_name, lambda v: [float(x) for x in v.split()])
        if len(values) < count:
            raise ParserError("archive_reader_ascii", f"expected {count} floats, got {len(values)}")
        return values

    def read_string(self) -> str:
        return self._read_entry("string")

    def read_int(self) -> int:
        return self._convert("int", int)

    def read_float(self) -> float:
        return self._convert("float", float)

    def _read_unsigned(self, limit: int) -> int:
        value = self._convert("int", int)
        if not 0 <= value <= limit:
            raise ParserError("archive_reader_ascii", f"value {value} out of range 0..{limit}")
        return value

    def read_byte(self) -> int:
        return self._read_unsigned(0xFF)

    def read_word(self) -> int:
        return self._read_unsigned(0xFFFF)

    def read_enum(self) -> int:
        return self._convert("enum", int)

    def read_bool(self) -> bool:
        return self._convert("bool", int) != 0

    def read_color(self) -> Tuple[int, int, int, int]:
        values = self._convert("color", lambda v: [int(x) for x in v.split()])
        if len(values) != 4:
            raise ParserError("archive_reader_ascii", f"expected 4 color components, got {len(values)}")
        return values[0], values[1], values[2], values[3]

    def read_vec3(self) -> Tuple[float, float, float]:
        values = self._read_floats("vec3", 3)
        return values[0], values[1], values[2]

    def read_raw(self, size: Optional[int] = None) -> Buffer:
        data = self._convert("raw", bytes.fromhex)
        if size is not None and len(data) < size:
            raise ParserError("archive_reader_ascii", f"raw entry too small: {len(data)} < {size}")
        return Buffer(data)

    def read_raw_float(self, count: int) -> List[float]:
        return self._read_floats("rawFloat", count)
