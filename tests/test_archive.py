"""Tests for the ZenGin archive readers and writer."""

import numpy as np
import pytest

from zenworld.errors import FailureKind, ParserError
from zenworld.parsers import Buffer, BufferUnderflowError
from zenworld.parsers.archive import (
    ArchiveFormat,
    ArchiveReader,
    AsciiArchiveReader,
    BinaryArchiveReader,
    BinsafeArchiveReader,
    FrameEnd,
    parse_object_header,
)
from zenworld.serialization import ArchiveWriter


def nested_archive(archive_format: ArchiveFormat) -> bytes:
    writer = ArchiveWriter(archive_format, user="tester")
    writer.write_object_begin("%", "zCRoot", 1)
    writer.write_object_begin("first", "zCChild", 2)
    writer.write_int("value", 5)
    writer.write_object_begin("inner", "zCInner", 3)
    writer.write_string("text", "deep")
    writer.write_object_end()
    writer.write_object_end()
    writer.write_object_begin("second", "zCChild", 4)
    writer.write_int("value", 6)
    writer.write_object_end()
    writer.write_object_end()
    return writer.getvalue()


def test_parse_object_header():
    obj = parse_object_header("[MeshAndBsp % 0 0]")
    assert obj.object_name == "MeshAndBsp"
    assert obj.class_name == "%"
    assert obj.version == 0
    assert obj.index == 0

    assert parse_object_header("[]") is None
    assert parse_object_header("value=int:5") is None
    assert parse_object_header("[a b c]") is None
    assert parse_object_header("[a b c d]") is None


def test_open_selects_reader_for_format(archive_format):
    reader = ArchiveReader.open(Buffer(nested_archive(archive_format)))

    expected = {
        ArchiveFormat.ASCII: AsciiArchiveReader,
        ArchiveFormat.BINARY: BinaryArchiveReader,
        ArchiveFormat.BINSAFE: BinsafeArchiveReader,
    }
    assert isinstance(reader, expected[archive_format])
    assert reader.format is archive_format
    assert reader.header.user == "tester"
    assert reader.header.version == 1
    assert not reader.header.save
    assert reader.object_count == 4


def test_bad_magic_is_structural_error():
    with pytest.raises(ParserError) as exc_info:
        ArchiveReader.open(Buffer(b"Not An Archive\n"))
    assert exc_info.value.kind is FailureKind.STRUCTURAL_MISMATCH


def test_unknown_encoding_is_structural_error():
    data = b"ZenGin Archive\nver 1\nzCArchiverGeneric\nXML\nsaveGame 0\nEND\n"
    with pytest.raises(ParserError, match="unsupported format"):
        ArchiveReader.open(Buffer(data))


def test_walk_nested_objects(archive_format):
    reader = ArchiveReader.open(Buffer(nested_archive(archive_format)))

    root = reader.read_object_begin()
    assert root.class_name == "zCRoot"
    assert reader.read_object_end() is FrameEnd.MORE_SIBLINGS

    first = reader.read_object_begin()
    assert (first.object_name, first.class_name, first.version) == ("first", "zCChild", 2)
    assert reader.read_int() == 5
    assert reader.read_object_end() is FrameEnd.MORE_SIBLINGS

    inner = reader.read_object_begin()
    assert inner.class_name == "zCInner"
    assert reader.read_string() == "deep"
    assert reader.read_object_end() is FrameEnd.EXHAUSTED
    assert reader.read_object_end() is FrameEnd.EXHAUSTED

    second = reader.read_object_begin()
    assert second.object_name == "second"
    assert reader.read_int() == 6
    assert reader.read_object_end() is FrameEnd.EXHAUSTED
    assert reader.read_object_end() is FrameEnd.EXHAUSTED


def test_skip_current_object_discards_children(archive_format):
    reader = ArchiveReader.open(Buffer(nested_archive(archive_format)))
    reader.read_object_begin()
    reader.read_object_end()

    reader.read_object_begin()  # first
    assert reader.read_int() == 5
    reader.skip_object(True)

    second = reader.read_object_begin()
    assert second.object_name == "second"


def test_skip_next_object(archive_format):
    reader = ArchiveReader.open(Buffer(nested_archive(archive_format)))
    reader.read_object_begin()
    reader.read_object_end()

    reader.skip_object(False)

    second = reader.read_object_begin()
    assert second.object_name == "second"
    assert reader.read_int() == 6


def test_typed_entries(archive_format):
    writer = ArchiveWriter(archive_format)
    writer.write_object_begin("%", "zCEntries", 0)
    writer.write_string("name", "Müller")
    writer.write_int("int", -42)
    writer.write_float("float", 2.5)
    writer.write_byte("byte", 200)
    writer.write_word("word", 60000)
    writer.write_enum("enum", 3)
    writer.write_bool("bool", True)
    writer.write_color("color", (10, 20, 30, 40))
    writer.write_vec3("vec3", (1.0, -2.0, 3.5))
    writer.write_bbox("bbox", (0.0, 0.0, 0.0), (4.0, 5.0, 6.0))
    writer.write_mat3x3("rot", [(0.0, 1.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0)])
    writer.write_object_end()

    reader = ArchiveReader.open(Buffer(writer.getvalue()))
    reader.read_object_begin()

    assert reader.read_string() == "Müller"
    assert reader.read_int() == -42
    assert reader.read_float() == 2.5
    assert reader.read_byte() == 200
    assert reader.read_word() == 60000
    assert reader.read_enum() == 3
    assert reader.read_bool() is True
    assert reader.read_color() == (10, 20, 30, 40)
    assert reader.read_vec3() == (1.0, -2.0, 3.5)
    assert reader.read_bbox() == ((0.0, 0.0, 0.0), (4.0, 5.0, 6.0))
    np.testing.assert_array_equal(reader.read_mat3x3(),
                                  [[0.0, 1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
    assert reader.read_object_end() is FrameEnd.EXHAUSTED


@pytest.mark.parametrize("archive_format", [ArchiveFormat.BINSAFE, ArchiveFormat.ASCII],
                         ids=["binsafe", "ascii"])
def test_type_mismatch_is_structural_error(archive_format):
    writer = ArchiveWriter(archive_format)
    writer.write_object_begin("%", "zCEntries", 0)
    writer.write_string("name", "x")
    writer.write_object_end()

    reader = ArchiveReader.open(Buffer(writer.getvalue()))
    reader.read_object_begin()

    with pytest.raises(ParserError, match="type mismatch") as exc_info:
        reader.read_int()
    assert exc_info.value.kind is FailureKind.STRUCTURAL_MISMATCH


@pytest.mark.parametrize("archive_format", [ArchiveFormat.BINSAFE, ArchiveFormat.ASCII],
                         ids=["binsafe", "ascii"])
def test_skip_entry(archive_format):
    writer = ArchiveWriter(archive_format)
    writer.write_object_begin("%", "zCEntries", 0)
    writer.write_vec3("skipped", (1.0, 2.0, 3.0))
    writer.write_int("kept", 9)
    writer.write_object_end()

    reader = ArchiveReader.open(Buffer(writer.getvalue()))
    reader.read_object_begin()
    reader.skip_entry()

    assert reader.read_int() == 9


@pytest.mark.parametrize("value, read", [(300, "read_byte"), (-1, "read_byte"), (70000, "read_word")])
def test_ascii_out_of_range_unsigned_is_structural_error(value, read):
    writer = ArchiveWriter(ArchiveFormat.ASCII)
    writer.write_object_begin("%", "zCEntries", 0)
    writer.write_int("small", value)
    writer.write_object_end()

    reader = ArchiveReader.open(Buffer(writer.getvalue()))
    reader.read_object_begin()

    with pytest.raises(ParserError, match="out of range") as exc_info:
        getattr(reader, read)()
    assert exc_info.value.kind is FailureKind.STRUCTURAL_MISMATCH


def test_ascii_unsigned_limits_are_accepted():
    writer = ArchiveWriter(ArchiveFormat.ASCII)
    writer.write_object_begin("%", "zCEntries", 0)
    writer.write_int("byte", 255)
    writer.write_int("word", 65535)
    writer.write_object_end()

    reader = ArchiveReader.open(Buffer(writer.getvalue()))
    reader.read_object_begin()

    assert reader.read_byte() == 255
    assert reader.read_word() == 65535


def test_binary_entries_cannot_be_skipped():
    reader = ArchiveReader.open(Buffer(nested_archive(ArchiveFormat.BINARY)))
    with pytest.raises(ParserError):
        reader.skip_entry()


def test_binsafe_keys_are_resolved():
    reader = ArchiveReader.open(Buffer(nested_archive(ArchiveFormat.BINSAFE)))
    assert reader.key_name(0) == "value"
    assert reader.key_name(1) == "text"


def test_ascii_end_of_data_inside_open_object_is_underflow():
    writer = ArchiveWriter(ArchiveFormat.ASCII)
    writer.write_object_begin("%", "zCRoot", 0)
    writer.write_object_end()
    data = writer.getvalue()

    reader = ArchiveReader.open(Buffer(data[:-3]))
    reader.read_object_begin()

    with pytest.raises(BufferUnderflowError):
        reader.read_object_end()


def test_binsafe_missing_key_table_is_underflow():
    data = nested_archive(ArchiveFormat.BINSAFE)

    with pytest.raises(BufferUnderflowError):
        ArchiveReader.open(Buffer(data[:-20]))


def test_binary_object_larger_than_data_is_underflow():
    data = nested_archive(ArchiveFormat.BINARY)
    reader = ArchiveReader.open(Buffer(data[:-3]))

    with pytest.raises(BufferUnderflowError):
        reader.read_object_begin()


def test_writer_rejects_unbalanced_frames(archive_format):
    writer = ArchiveWriter(archive_format)
    writer.write_object_begin("%", "zCRoot", 0)
    with pytest.raises(ValueError):
        writer.getvalue()
