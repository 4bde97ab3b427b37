"""
Serialization Package

Writers for ZenGin archive data, the inverse of zenworld.parsers.archive.
"""

from .archive_writer import ArchiveWriter, key_hash
