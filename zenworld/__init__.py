"""
zenworld - reader for ZenGin (Gothic 1 and 2) world archives.
"""

from .constants import GameVersion
from .errors import Diagnostic, FailureKind, ParserError
from .parsers import Buffer, World, determine_world_version

__version__ = "0.1.0"
