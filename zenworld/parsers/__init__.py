"""
ZenGin World Parsers

This package provides parser classes for ZenGin world archives:

- base: Buffer, the cursor all parsers read through
- archive: ArchiveReader for ASCII, BINARY and BIN_SAFE archives
- bsp_tree: parse_bsp_tree for the world's BSP tree
- mesh: parse_mesh for the static world mesh
- vob_tree: parse_vob_tree for the scene graph
- way_net: parse_way_net for the waypoint graph
- world: World, determine_world_version

Usage:
    from zenworld.parsers import World, determine_world_version

    world = World.from_file("NEWWORLD.ZEN")
    for vob in world.vobs:
        print(vob.class_name, vob.name)
"""

# Base utilities
from .base import (
    Buffer,
    BufferUnderflowError,
    decode_string,
)

# Archive readers
from .archive import (
    ArchiveFormat,
    ArchiveHeader,
    ArchiveObject,
    ArchiveReader,
    FrameEnd,
)

# Geometry
from .bsp_tree import BspNode, BspSector, BspTree, BspTreeMode, parse_bsp_tree
from .mesh import Mesh, MeshMaterial, MeshPolygon, parse_mesh

# Scene graph and navigation
from .vob_tree import VobNode, parse_vob_tree
from .way_net import Waypoint, WayEdge, WayNet, parse_way_net

# World
from .world import SectionParsers, World, WorldParser, WorldSection, determine_world_version

__all__ = [
    # Base
    'Buffer',
    'BufferUnderflowError',
    'decode_string',
    # Archive
    'ArchiveFormat',
    'ArchiveHeader',
    'ArchiveObject',
    'ArchiveReader',
    'FrameEnd',
    # BSP tree
    'BspNode',
    'BspSector',
    'BspTree',
    'BspTreeMode',
    'parse_bsp_tree',
    # Mesh
    'Mesh',
    'MeshMaterial',
    'MeshPolygon',
    'parse_mesh',
    # VOb tree
    'VobNode',
    'parse_vob_tree',
    # Way net
    'Waypoint',
    'WayEdge',
    'WayNet',
    'parse_way_net',
    # World
    'SectionParsers',
    'World',
    'WorldParser',
    'WorldSection',
    'determine_world_version',
]
