"""
Reader for BIN_SAFE encoded archives.

After the text header follows a binary header:
- u32 version
- u32 object_count
- u32 hash_table_offset

Every value is tagged with its type. Keyed entries are preceded by a hash
entry referencing the key table stored at hash_table_offset:
- u16 key_length
- u16 insertion_index
- u32 hash_value
- key bytes

Object frames are plain string values `[name class version index]` and `[]`.
"""

from typing import Dict, List, Optional, Tuple

from ...errors import ParserError
from ..base import Buffer, BufferUnderflowError
from .base import ArchiveReader
from .data_types import ArchiveObject, FrameEnd, parse_object_header


BS_STRING = 0x01
BS_INT = 0x02
BS_FLOAT = 0x03
BS_BYTE = 0x04
BS_WORD = 0x05
BS_BOOL = 0x06
BS_VEC3 = 0x07
BS_COLOR = 0x08
BS_RAW = 0x09
BS_RAW_FLOAT = 0x10
BS_ENUM = 0x11
BS_HASH = 0x12

# Types whose payload starts with a u16 length
SIZED_TYPES = (BS_STRING, BS_RAW, BS_RAW_FLOAT)

# Payload size of fixed width types
FIXED_SIZES: Dict[int, int] = {
    BS_INT: 4,
    BS_FLOAT: 4,
    BS_BYTE: 1,
    BS_WORD: 2,
    BS_BOOL: 4,
    BS_VEC3: 12,
    BS_COLOR: 4,
    BS_ENUM: 4,
}


class BinsafeArchiveReader(ArchiveReader):
    """Archive reader for the BIN_SAFE encoding."""

    def __init__(self, buf: Buffer, header):
        super().__init__(buf, header)
        self.binsafe_version = 0
        self._keys: List[str] = []

    def _read_header(self):
        self.binsafe_version = self.buf.get_uint()
        self.object_count = self.buf.get_uint()
        hash_table_offset = self.buf.get_uint()

        table = self.buf.duplicate()
        table.position = hash_table_offset

        key_count = table.get_uint()
        self._keys = [""] * key_count

        for _ in range(key_count):
            key_length = table.get_ushort()
            insertion_index = table.get_ushort()
            table.get_uint()  # hash value
            key = table.get_string(key_length)

            if insertion_index >= key_count:
                raise ParserError("archive_reader_binsafe",
                                  f"key {key!r} has insertion index {insertion_index} out of range")
            self._keys[insertion_index] = key

    def read_object_begin(self) -> Optional[ArchiveObject]:
        self.buf.mark()
        if self.buf.get() != BS_STRING:
            self.buf.reset()
            return None

        line = self.buf.get_string(self.buf.get_ushort())
        obj = parse_object_header(line)
        if obj is None:
            self.buf.reset()
        return obj

    def read_object_end(self) -> FrameEnd:
        if self.buf.remaining == 0:
            raise BufferUnderflowError(self.buf.position, 1, "archive ended inside an open object")

        self.buf.mark()
        if self.buf.get() != BS_STRING:
            self.buf.reset()
            return FrameEnd.MORE_SIBLINGS

        if self.buf.get_ushort() != 2 or self.buf.get_string(2) != "[]":
            self.buf.reset()
            return FrameEnd.MORE_SIBLINGS

        return FrameEnd.EXHAUSTED

    def skip_entry(self):
        value_type = self.buf.get()
        if value_type == BS_HASH:
            self.buf.skip(4)
            value_type = self.buf.get()

        if value_type in SIZED_TYPES:
            self.buf.skip(self.buf.get_ushort())
        elif value_type in FIXED_SIZES:
            self.buf.skip(FIXED_SIZES[value_type])
        else:
            raise ParserError("archive_reader_binsafe", f"unknown entry type {value_type:#04x}")

    def key_name(self, index: int) -> str:
        """Look up a key by its insertion index."""
        if index >= len(self._keys):
            raise ParserError("archive_reader_binsafe", f"key index {index} out of range")
        return self._keys[index]

    def _ensure_entry(self, expected: int) -> int:
        """Consume an entry's type (and key) and return its payload size."""
        value_type = self.buf.get()
        if value_type == BS_HASH:
            self.key_name(self.buf.get_uint())
            value_type = self.buf.get()

        if value_type != expected:
            raise ParserError("archive_reader_binsafe",
                              f"type mismatch: expected {expected:#04x}, got {value_type:#04x}")

        if value_type in SIZED_TYPES:
            return self.buf.get_ushort()
        return FIXED_SIZES[value_type]

    def read_string(self) -> str:
        return self.buf.get_string(self._ensure_entry(BS_STRING))

    def read_int(self) -> int:
        self._ensure_entry(BS_INT)
        return self.buf.get_int()

    def read_float(self) -> float:
        self._ensure_entry(BS_FLOAT)
        return self.buf.get_float()

    def read_byte(self) -> int:
        self._ensure_entry(BS_BYTE)
        return self.buf.get()

    def read_word(self) -> int:
        self._ensure_entry(BS_WORD)
        return self.buf.get_ushort()

    def read_enum(self) -> int:
        self._ensure_entry(BS_ENUM)
        return self.buf.get_uint()

    def read_bool(self) -> bool:
        self._ensure_entry(BS_BOOL)
        return self.buf.get_uint() != 0

    def read_color(self) -> Tuple[int, int, int, int]:
        self._ensure_entry(BS_COLOR)
        b, g, r, a = self.buf.get(), self.buf.get(), self.buf.get(), self.buf.get()
        return r, g, b, a

    def read_vec3(self) -> Tuple[float, float, float]:
        self._ensure_entry(BS_VEC3)
        return self.buf.get_vec3()

    def read_raw(self, size: Optional[int] = None) -> Buffer:
        length = self._ensure_entry(BS_RAW)
        if size is not None and length < size:
            raise ParserError("archive_reader_binsafe", f"raw entry too small: {length} < {size}")
        return self.buf.extract(length)

    def read_raw_float(self, count: int) -> List[float]:
        length = self._ensure_entry(BS_RAW_FLOAT)
        if length < count * 4:
            raise ParserError("archive_reader_binsafe", f"rawFloat entry too small: {length} < {count * 4}")

        raw = self.buf.extract(length)
        return [raw.get_float() for _ in range(count)]
