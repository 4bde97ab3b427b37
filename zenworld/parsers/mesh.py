"""
Mesh Parser

Parses the static world mesh stored in the first half of a world's
MeshAndBsp section.

Chunk stream (each chunk is u16 type, u32 size, payload):
- 0xB000 header: u16 version, date (u32 year, u16 month, day, hour, minute,
  second, padding), name line
- 0xB010 bbox: Fvector min, Fvector max
- 0xB020 materials: embedded archive, i32 count then (name, zCMaterial object) pairs
- 0xB025 lightmaps: skipped
- 0xB030 vertices: u32 count, count x Fvector
- 0xB040 features: u32 count, count x (f32 u, f32 v, u32 light, Fvector normal)
- 0xB050 polygons: u32 count, polygon records
- 0xB060 end

Polygon record:
- i16 material_index, i16 lightmap_index
- f32 plane[4]
- flags (6 bytes for Gothic 1 meshes, 5 bytes for Gothic 2 meshes)
- u8 vertex_count
- vertex_count x (vertex index, u32 feature index); the vertex index is
  u16 in Gothic 1 meshes and u32 in Gothic 2 meshes
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

import numpy as np

from ..constants import (
    MESH_VERSION_G2,
    MESH_CHUNK_HEADER, MESH_CHUNK_BBOX, MESH_CHUNK_MATERIALS, MESH_CHUNK_LIGHTMAPS,
    MESH_CHUNK_VERTICES, MESH_CHUNK_FEATURES, MESH_CHUNK_POLYGONS, MESH_CHUNK_END,
)
from ..errors import ParserError
from ..utils import logDebug, logWarning
from .archive import ArchiveReader
from .base import Buffer


FEATURE_DTYPE = np.dtype([
    ('texture', '<f4', (2,)),
    ('light', '<u4'),
    ('normal', '<f4', (3,)),
])

POLYGON_FLAGS_SIZE_G1 = 6
POLYGON_FLAGS_SIZE_G2 = 5


@dataclass
class MeshMaterial:
    """Material referenced by mesh polygons."""
    name: str
    class_name: str


@dataclass
class MeshPolygon:
    """A polygon of the world mesh."""
    index: int
    material_index: int
    lightmap_index: int
    plane: Tuple[float, float, float, float]
    flags: bytes
    vertex_indices: List[int]
    feature_indices: List[int]


@dataclass
class Mesh:
    """Parsed world mesh."""
    name: str = ""
    version: int = 0
    date: Optional[datetime] = None
    bbox: Optional[Tuple[Tuple[float, float, float], Tuple[float, float, float]]] = None
    materials: List[MeshMaterial] = field(default_factory=list)
    vertices: np.ndarray = field(default_factory=lambda: np.empty((0, 3), dtype=np.float32))
    features: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=FEATURE_DTYPE))
    polygons: List[MeshPolygon] = field(default_factory=list)

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def polygon_count(self) -> int:
        return len(self.polygons)


def parse_mesh(buf: Buffer, leaf_polygons: Optional[np.ndarray] = None) -> Mesh:
    """
    Parse a mesh chunk stream.

    Args:
        buf: Buffer positioned at the first mesh chunk
        leaf_polygons: Indices of the polygons to keep. All polygons are kept if empty or None.

    Returns:
        Mesh
    """
    mesh = Mesh()
    include = set(leaf_polygons.tolist()) if leaf_polygons is not None and len(leaf_polygons) else None

    while True:
        chunk_type = buf.get_ushort()
        chunk = buf.extract(buf.get_uint())

        if chunk_type == MESH_CHUNK_HEADER:
            mesh.version = chunk.get_ushort()
            mesh.date = _read_date(chunk)
            mesh.name = chunk.get_line()
        elif chunk_type == MESH_CHUNK_BBOX:
            mesh.bbox = (chunk.get_vec3(), chunk.get_vec3())
            chunk.skip(chunk.remaining)  # oriented bounding box
        elif chunk_type == MESH_CHUNK_MATERIALS:
            mesh.materials = _parse_materials(chunk)
            chunk.skip(chunk.remaining)  # archive trailer (key table)
        elif chunk_type == MESH_CHUNK_LIGHTMAPS:
            logDebug("mesh: skipping lightmaps")
            chunk.skip(chunk.remaining)
        elif chunk_type == MESH_CHUNK_VERTICES:
            count = chunk.get_uint()
            mesh.vertices = chunk.get_array('<f4', count * 3).reshape(count, 3)
        elif chunk_type == MESH_CHUNK_FEATURES:
            mesh.features = chunk.get_array(FEATURE_DTYPE, chunk.get_uint())
        elif chunk_type == MESH_CHUNK_POLYGONS:
            mesh.polygons = _parse_polygons(chunk, mesh.version, include)
        elif chunk_type == MESH_CHUNK_END:
            chunk.skip(chunk.remaining)
        else:
            logWarning(f"mesh: skipping unknown chunk {chunk_type:#06x}")
            chunk.skip(chunk.remaining)

        if chunk.remaining != 0:
            logWarning(f"mesh: chunk {chunk_type:#06x} not fully parsed ({chunk.remaining} bytes left)")

        if chunk_type == MESH_CHUNK_END:
            break

    return mesh


def _read_date(chunk: Buffer) -> Optional[datetime]:
    year = chunk.get_uint()
    month, day, hour, minute, second = (chunk.get_ushort() for _ in range(5))
    chunk.get_ushort()  # padding

    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        return None


def _parse_materials(chunk: Buffer) -> List[MeshMaterial]:
    """Read the material names out of the embedded material archive."""
    reader = ArchiveReader.open(chunk)
    count = reader.read_int()
    materials = []

    for _ in range(count):
        reader.read_string()  # material name, repeated inside the object
        obj = reader.read_object_begin()
        if obj is None:
            raise ParserError("mesh", "expected material object")

        materials.append(MeshMaterial(name=reader.read_string(), class_name=obj.class_name))
        reader.skip_object(True)

    return materials


def _parse_polygons(chunk: Buffer, version: int, include) -> List[MeshPolygon]:
    is_g2 = version == MESH_VERSION_G2
    flags_size = POLYGON_FLAGS_SIZE_G2 if is_g2 else POLYGON_FLAGS_SIZE_G1
    polygons = []

    for index in range(chunk.get_uint()):
        material_index = chunk.get_short()
        lightmap_index = chunk.get_short()
        plane = chunk.get_vec4()
        flags = chunk.get_bytes(flags_size)

        vertex_indices = []
        feature_indices = []
        for _ in range(chunk.get()):
            vertex_indices.append(chunk.get_uint() if is_g2 else chunk.get_ushort())
            feature_indices.append(chunk.get_uint())

        if include is not None and index not in include:
            continue

        polygons.append(MeshPolygon(
            index=index,
            material_index=material_index,
            lightmap_index=lightmap_index,
            plane=plane,
            flags=flags,
            vertex_indices=vertex_indices,
            feature_indices=feature_indices,
        ))

    return polygons
