"""
ZenGin Archive Writer

Creates archives in any of the three encodings understood by
zenworld.parsers.archive. Used to author world fixtures and to re-encode
archives between encodings.

Usage:
    writer = ArchiveWriter(ArchiveFormat.BINSAFE)
    writer.write_object_begin("%", "oCWorld:zCWorld", 64513)
    writer.write_object_begin("WayNet", "zCWayNet", 0)
    writer.write_int("waynetVersion", 1)
    writer.write_object_end()
    writer.write_object_end()
    data = writer.getvalue()
"""

import io
import struct
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from ..parsers.archive.data_types import ArchiveFormat
from ..parsers.archive.binsafe import (
    BS_STRING, BS_INT, BS_FLOAT, BS_BYTE, BS_WORD, BS_BOOL, BS_VEC3,
    BS_COLOR, BS_RAW, BS_RAW_FLOAT, BS_ENUM, BS_HASH,
)
from ..utils.binary import encode_string, pack_floats, pack_vec3


def key_hash(key: str) -> int:
    """Hash value stored next to each key of a BIN_SAFE key table."""
    value = 0
    for byte in encode_string(key):
        value = (value * 33 + byte) & 0xFFFFFFFF
    return value


class ArchiveWriter:
    """
    Writer for ZenGin archives.

    Entries are appended in call order; object frames must be balanced
    before getvalue() is called.
    """

    def __init__(self, archive_format: ArchiveFormat = ArchiveFormat.BINSAFE,
                 user: str = "zenworld", save_game: bool = False, date: Optional[datetime] = None):
        self.format = archive_format
        self.user = user
        self.save_game = save_game
        self.date = date or datetime(2002, 1, 1)

        self._body = io.BytesIO()
        self._object_count = 0
        self._object_starts: List[int] = []
        self._depth = 0
        self._keys: Dict[str, int] = {}

    def _text_header(self) -> bytes:
        archiver = "zCArchiverBinSafe" if self.format is ArchiveFormat.BINSAFE else "zCArchiverGeneric"
        lines = [
            "ZenGin Archive",
            "ver 1",
            archiver,
            self.format.value,
            f"saveGame {1 if self.save_game else 0}",
            f"date {self.date.strftime('%d.%m.%Y %H:%M:%S')}",
            f"user {self.user}",
            "END",
        ]
        if self.format is not ArchiveFormat.BINSAFE:
            lines += [f"objects {self._object_count}", "END"]
        if self.format is ArchiveFormat.ASCII:
            lines.append("")

        return encode_string("\n".join(lines) + "\n")

    def getvalue(self) -> bytes:
        """Return the complete archive."""
        if self._depth:
            raise ValueError("unbalanced object frames")

        header = self._text_header()
        body = self._body.getvalue()

        if self.format is not ArchiveFormat.BINSAFE:
            return header + body

        table_offset = len(header) + 12 + len(body)
        table = io.BytesIO()
        table.write(struct.pack('<I', len(self._keys)))
        for key, index in self._keys.items():
            raw_key = encode_string(key)
            table.write(struct.pack('<HHI', len(raw_key), index, key_hash(key)))
            table.write(raw_key)

        return header + struct.pack('<III', 2, self._object_count, table_offset) + body + table.getvalue()

    def write_object_begin(self, object_name: str, class_name: str, version: int = 0,
                           index: Optional[int] = None):
        """Open an object frame. The index defaults to a running object counter."""
        if index is None:
            index = self._object_count
        self._object_count += 1

        if self.format is ArchiveFormat.BINARY:
            self._object_starts.append(self._body.tell())
            self._body.write(struct.pack('<IHI', 0, version, index))
            self._body.write(encode_string(object_name) + b'\x00')
            self._body.write(encode_string(class_name) + b'\x00')
        elif self.format is ArchiveFormat.BINSAFE:
            self._write_bs_string(f"[{object_name} {class_name} {version} {index}]")
        else:
            self._write_line(f"[{object_name} {class_name} {version} {index}]")
        self._depth += 1

    def write_object_end(self):
        """Close the innermost object frame."""
        if not self._depth:
            raise ValueError("no open object frame")
        self._depth -= 1

        if self.format is ArchiveFormat.BINARY:
            start = self._object_starts.pop()
            end = self._body.tell()
            self._body.seek(start)
            self._body.write(struct.pack('<I', end - start))
            self._body.seek(end)
        elif self.format is ArchiveFormat.BINSAFE:
            self._write_bs_string("[]")
        else:
            self._write_line("[]")

    def write_bytes(self, data: bytes):
        """Append unstructured data, e.g. the MeshAndBsp payload."""
        self._body.write(data)

    def _write_line(self, line: str):
        self._body.write(encode_string("\t" * self._depth + line + "\n"))

    def _write_bs_string(self, value: str):
        raw = encode_string(value)
        self._body.write(struct.pack('<BH', BS_STRING, len(raw)))
        self._body.write(raw)

    def _write_key(self, key: str):
        if key not in self._keys:
            self._keys[key] = len(self._keys)
        self._body.write(struct.pack('<BI', BS_HASH, self._keys[key]))

    def _write_entry(self, key: str, ascii_type: str, ascii_value: str, bs_type: int, payload: bytes,
                     binary_payload: Optional[bytes] = None):
        if self.format is ArchiveFormat.ASCII:
            self._write_line(f"{key}={ascii_type}:{ascii_value}")
        elif self.format is ArchiveFormat.BINSAFE:
            self._write_key(key)
            self._body.write(struct.pack('<B', bs_type))
            if bs_type in (BS_STRING, BS_RAW, BS_RAW_FLOAT):
                self._body.write(struct.pack('<H', len(payload)))
            self._body.write(payload)
        else:
            self._body.write(payload if binary_payload is None else binary_payload)

    def write_string(self, key: str, value: str):
        raw = encode_string(value)
        self._write_entry(key, "string", value, BS_STRING, raw, raw + b'\x00')

    def write_int(self, key: str, value: int):
        self._write_entry(key, "int", str(value), BS_INT, struct.pack('<i', value))

    def write_float(self, key: str, value: float):
        self._write_entry(key, "float", repr(float(value)), BS_FLOAT, struct.pack('<f', value))

    def write_byte(self, key: str, value: int):
        self._write_entry(key, "int", str(value), BS_BYTE, struct.pack('<B', value))

    def write_word(self, key: str, value: int):
        self._write_entry(key, "int", str(value), BS_WORD, struct.pack('<H', value))

    def write_enum(self, key: str, value: int):
        self._write_entry(key, "enum", str(value), BS_ENUM, struct.pack('<I', value),
                          struct.pack('<B', value))

    def write_bool(self, key: str, value: bool):
        self._write_entry(key, "bool", "1" if value else "0", BS_BOOL, struct.pack('<I', int(value)),
                          struct.pack('<B', int(value)))

    def write_color(self, key: str, color: Tuple[int, int, int, int]):
        r, g, b, a = color
        self._write_entry(key, "color", f"{r} {g} {b} {a}", BS_COLOR, struct.pack('<4B', b, g, r, a))

    def write_vec3(self, key: str, vec: Sequence[float]):
        self._write_entry(key, "vec3", " ".join(repr(float(v)) for v in vec), BS_VEC3, pack_vec3(vec))

    def write_raw(self, key: str, data: bytes):
        self._write_entry(key, "raw", data.hex(), BS_RAW, data)

    def write_raw_float(self, key: str, values: Sequence[float]):
        self._write_entry(key, "rawFloat", " ".join(repr(float(v)) for v in values), BS_RAW_FLOAT,
                          pack_floats(values))

    def write_bbox(self, key: str, bbox_min: Sequence[float], bbox_max: Sequence[float]):
        self.write_raw_float(key, list(bbox_min) + list(bbox_max))

    def write_mat3x3(self, key: str, rows: Sequence[Sequence[float]]):
        self.write_raw(key, pack_floats(v for row in rows for v in row))
