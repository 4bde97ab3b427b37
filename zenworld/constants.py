"""
Constants used across the zenworld modules.

Consolidates magic numbers of the ZenGin world format so parsers and
writers agree on them.
"""

from enum import Enum


class GameVersion(Enum):
    """Serialization revision of a world archive."""
    GOTHIC_1 = "gothic_1"
    GOTHIC_2 = "gothic_2"


# BSP tree version stored at the start of the MeshAndBsp section.
# Only the Gothic 2 value is checked; anything else is treated as Gothic 1.
BSP_VERSION_G1 = 0x2090000
BSP_VERSION_G2 = 0x4090000

# Mesh versions stored in the mesh header chunk
MESH_VERSION_G1 = 9
MESH_VERSION_G2 = 265

# Root object class of a world archive
WORLD_CLASS_NAME = "oCWorld:zCWorld"

# Top-level world sections
SECTION_MESH_AND_BSP = "MeshAndBsp"
SECTION_VOB_TREE = "VobTree"
SECTION_WAY_NET = "WayNet"

# Mesh chunk types
MESH_CHUNK_HEADER = 0xB000
MESH_CHUNK_BBOX = 0xB010
MESH_CHUNK_MATERIALS = 0xB020
MESH_CHUNK_LIGHTMAPS = 0xB025
MESH_CHUNK_VERTICES = 0xB030
MESH_CHUNK_FEATURES = 0xB040
MESH_CHUNK_POLYGONS = 0xB050
MESH_CHUNK_END = 0xB060

# BSP chunk types
BSP_CHUNK_HEADER = 0xC000
BSP_CHUNK_POLYGONS = 0xC010
BSP_CHUNK_TREE = 0xC040
BSP_CHUNK_LIGHT = 0xC045
BSP_CHUNK_OUTDOORS = 0xC050
BSP_CHUNK_END = 0xC0FF

# Special archive class names
NULL_CLASS_NAME = "%"
REFERENCE_CLASS_NAME = "§"

# Class every placeable scene object derives from
VOB_BASE_CLASS = "zCVob"

# Size of the packed zCVob blob per game version
VOB_PACKED_SIZE_G1 = 74
VOB_PACKED_SIZE_G2 = 83
