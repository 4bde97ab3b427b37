"""
World Parser

Parses ZenGin world archives (.ZEN). A world is an archive whose root
object has the class 'oCWorld:zCWorld' and whose children are sections:

- MeshAndBsp: raw geometry, u32 bsp_version, u32 size, then the mesh chunk
  stream (ending with chunk 0xB060) immediately followed by the BSP tree
- VobTree: int count, then count vob subtrees (scene graph)
- WayNet: the waypoint graph

Sections may appear in any order; unknown sections are skipped.

The archive header does not say which game a world belongs to. The only
reliable hint is the BSP version at the start of the MeshAndBsp section,
so determine_world_version() walks the archive until it finds it.

Usage:
    world = World.from_file(Path("NEWWORLD.ZEN"))
    print(world.version, world.mesh.vertex_count, len(world.vobs))

    # With a known version, skipping detection:
    world = World.parse(data, GameVersion.GOTHIC_2)
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Set, Union

import numpy as np

from ..constants import (
    GameVersion,
    BSP_VERSION_G2, MESH_CHUNK_END, WORLD_CLASS_NAME,
    SECTION_MESH_AND_BSP, SECTION_VOB_TREE, SECTION_WAY_NET,
)
from ..errors import Diagnostic, FailureKind, ParserError
from ..utils import logDebug, logWarning
from .archive import ArchiveReader, FrameEnd
from .base import Buffer, BufferUnderflowError
from .bsp_tree import BspTree, parse_bsp_tree
from .mesh import Mesh, parse_mesh
from .vob_tree import VobNode, parse_vob_tree
from .way_net import WayNet, parse_way_net


class WorldSection(Enum):
    """Top-level world sections, by object name."""
    MESH_AND_BSP = SECTION_MESH_AND_BSP
    VOB_TREE = SECTION_VOB_TREE
    WAY_NET = SECTION_WAY_NET
    UNKNOWN = None

    @classmethod
    def from_name(cls, name: str) -> 'WorldSection':
        for section in cls:
            if section.value == name:
                return section
        return cls.UNKNOWN


@dataclass
class SectionParsers:
    """Parsers the world dispatcher hands each section to."""
    bsp_tree: Callable[[Buffer, int], BspTree] = parse_bsp_tree
    mesh: Callable[[Buffer, np.ndarray], Mesh] = parse_mesh
    vob_tree: Callable[[ArchiveReader, GameVersion], Optional[VobNode]] = parse_vob_tree
    way_net: Callable[[ArchiveReader], WayNet] = parse_way_net


@dataclass
class World:
    """A parsed world."""
    version: GameVersion = GameVersion.GOTHIC_1
    bsp_tree: Optional[BspTree] = None
    mesh: Optional[Mesh] = None
    vobs: List[VobNode] = field(default_factory=list)
    way_net: Optional[WayNet] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @classmethod
    def parse(cls, data: Union[bytes, Buffer], version: Optional[GameVersion] = None,
              parsers: Optional[SectionParsers] = None) -> 'World':
        """
        Parse a world archive.

        Args:
            data: Archive bytes or a Buffer positioned at the archive start
            version: Game version; detected from the archive if None
            parsers: Section parsers to use instead of the defaults

        Returns:
            World

        Raises:
            ParserError: the archive is malformed or truncated
        """
        buf = data if isinstance(data, Buffer) else Buffer(data)
        diagnostics: List[Diagnostic] = []

        if version is None:
            version = determine_world_version(buf, diagnostics)

        world = WorldParser(buf, version, parsers).parse()
        world.diagnostics[:0] = diagnostics
        return world

    @classmethod
    def from_file(cls, filepath: Union[str, Path], version: Optional[GameVersion] = None,
                  parsers: Optional[SectionParsers] = None) -> 'World':
        """Load and parse a world file."""
        return cls.parse(Buffer.from_file(filepath), version, parsers)

    @property
    def vob_count(self) -> int:
        """Number of vobs in the whole scene graph."""
        return sum(1 for root in self.vobs for _ in root.walk())


def determine_world_version(data: Union[bytes, Buffer],
                            diagnostics: Optional[List[Diagnostic]] = None) -> GameVersion:
    """
    Determine the game version a world was saved with.

    This might be slow: if the VobTree or WayNet sections come before
    MeshAndBsp they have to be skipped, since only the BSP version can be
    used to tell the games apart.

    Args:
        data: Archive bytes or a Buffer; a Buffer's own position is not changed
        diagnostics: List to record a diagnostic in when detection fails

    Returns:
        GameVersion (GOTHIC_1 if no MeshAndBsp section exists)
    """
    buf = data.duplicate() if isinstance(data, Buffer) else Buffer(data)

    try:
        reader = ArchiveReader.open(buf)
        if reader.read_object_begin() is None:
            raise ParserError("world", "expected root object")

        while reader.read_object_end() is FrameEnd.MORE_SIBLINGS:
            obj = reader.read_object_begin()
            if obj is None:
                raise ParserError("world", "expected section object")

            if obj.object_name == SECTION_MESH_AND_BSP:
                bsp_version = buf.get_uint()
                return GameVersion.GOTHIC_2 if bsp_version == BSP_VERSION_G2 else GameVersion.GOTHIC_1

            reader.skip_object(True)

    except BufferUnderflowError as exc:
        raise ParserError("world", "eof reached", cause=exc, kind=FailureKind.TRUNCATED) from exc

    message = "world: failed to determine world version. Assuming Gothic 1."
    logWarning(message)
    if diagnostics is not None:
        diagnostics.append(Diagnostic(FailureKind.UNKNOWN_VERSION, message))
    return GameVersion.GOTHIC_1


class WorldParser:
    """
    Walks the sections of a world archive and hands each one to its parser.

    Every section is either consumed completely by its parser or the rest
    of it is discarded, so the next section always starts in sync.
    """

    def __init__(self, buf: Buffer, version: GameVersion, parsers: Optional[SectionParsers] = None):
        self.buf = buf
        self.version = version
        self.parsers = parsers or SectionParsers()
        self._reader: Optional[ArchiveReader] = None
        self._world: Optional[World] = None
        self._seen: Set[WorldSection] = set()

    def parse(self) -> World:
        try:
            return self._parse()
        except BufferUnderflowError as exc:
            raise ParserError("world", "eof reached", cause=exc, kind=FailureKind.TRUNCATED) from exc

    def _parse(self) -> World:
        self._world = World(version=self.version)
        self._seen = set()
        self._reader = ArchiveReader.open(self.buf)

        root = self._reader.read_object_begin()
        if root is None:
            raise ParserError("world", "expected root object")
        if root.class_name != WORLD_CLASS_NAME:
            raise ParserError("world", f"'{WORLD_CLASS_NAME}' chunk expected, got '{root.class_name}'")

        while self._reader.read_object_end() is FrameEnd.MORE_SIBLINGS:
            obj = self._reader.read_object_begin()
            if obj is None:
                raise ParserError("world", "expected section object")

            logDebug(f"world: parsing object [{obj.object_name} {obj.class_name} {obj.version} {obj.index}]")
            section = WorldSection.from_name(obj.object_name)

            if section in self._seen:
                self._report(FailureKind.PARTIAL_SECTION, f"world: duplicate section {obj} ignored")
                self._reader.skip_object(True)
                continue

            if section is WorldSection.MESH_AND_BSP:
                self._parse_mesh_and_bsp()
            elif section is WorldSection.VOB_TREE:
                self._parse_vob_tree()
            elif section is WorldSection.WAY_NET:
                self._parse_way_net()
            else:
                logDebug(f"world: unknown section {obj}")

            if section is not WorldSection.UNKNOWN:
                self._seen.add(section)

            if self._reader.read_object_end() is FrameEnd.MORE_SIBLINGS:
                self._report(FailureKind.PARTIAL_SECTION, f"world: object {obj} not fully parsed")
                self._reader.skip_object(True)

        return self._world

    def _report(self, kind: FailureKind, message: str):
        logWarning(message)
        self._world.diagnostics.append(Diagnostic(kind, message))

    def _parse_mesh_and_bsp(self):
        bsp_version = self.buf.get_uint()
        self.buf.get_uint()  # size, not used to bound the mesh data

        mesh_data = self.buf.slice()

        # The mesh comes first; skip its chunks to reach the BSP tree
        while True:
            chunk_type = self.buf.get_ushort()
            self.buf.skip(self.buf.get_uint())
            if chunk_type == MESH_CHUNK_END:
                break

        self._world.bsp_tree = self.parsers.bsp_tree(self.buf, bsp_version)
        self._world.mesh = self.parsers.mesh(mesh_data, self._world.bsp_tree.leaf_polygons)

    def _parse_vob_tree(self):
        count = self._reader.read_int()
        if count < 0:
            raise ParserError("world", f"negative vob count {count}")

        for _ in range(count):
            vob = self.parsers.vob_tree(self._reader, self.version)
            if vob is not None:
                self._world.vobs.append(vob)

    def _parse_way_net(self):
        self._world.way_net = self.parsers.way_net(self._reader)
