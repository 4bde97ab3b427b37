"""
Data types for ZenGin archive parsing.

Contains the records shared by all archive reader implementations.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ArchiveFormat(Enum):
    """Encoding of an archive body, as named in its text header."""
    BINARY = "BINARY"
    BINSAFE = "BIN_SAFE"
    ASCII = "ASCII"


class FrameEnd(Enum):
    """Outcome of trying to close the current object frame."""
    MORE_SIBLINGS = "more_siblings"  # content remains in the open frame
    EXHAUSTED = "exhausted"          # the frame was closed


@dataclass
class ArchiveHeader:
    """Text header found at the start of every archive."""
    version: int
    archiver: str
    format: ArchiveFormat
    save: bool
    date: str = ""
    user: str = ""


@dataclass(frozen=True)
class ArchiveObject:
    """Header of one nested object, as returned by read_object_begin()."""
    object_name: str
    class_name: str
    version: int
    index: int

    def __str__(self) -> str:
        return f"[{self.object_name} {self.class_name} {self.version} {self.index}]"


def parse_object_header(line: str) -> Optional[ArchiveObject]:
    """
    Parse a textual object header of the form `[name class version index]`.

    Returns:
        ArchiveObject, or None if the line is not an object header
    """
    if len(line) <= 2 or line[0] != '[' or line[-1] != ']':
        return None

    parts = line[1:-1].split()
    if len(parts) != 4:
        return None

    try:
        version = int(parts[2])
        index = int(parts[3])
    except ValueError:
        return None

    return ArchiveObject(object_name=parts[0], class_name=parts[1], version=version, index=index)
