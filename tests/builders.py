"""Helpers that author small world archives for the tests."""

import io
import struct

from zenworld.constants import (
    GameVersion,
    BSP_VERSION_G1, BSP_VERSION_G2, MESH_VERSION_G1, MESH_VERSION_G2,
    MESH_CHUNK_HEADER, MESH_CHUNK_BBOX, MESH_CHUNK_MATERIALS, MESH_CHUNK_VERTICES,
    MESH_CHUNK_FEATURES, MESH_CHUNK_POLYGONS, MESH_CHUNK_END,
    BSP_CHUNK_HEADER, BSP_CHUNK_POLYGONS, BSP_CHUNK_TREE, BSP_CHUNK_LIGHT,
    BSP_CHUNK_OUTDOORS, BSP_CHUNK_END,
)
from zenworld.parsers.archive import ArchiveFormat
from zenworld.serialization import ArchiveWriter
from zenworld.utils import write_chunk, pack_floats, pack_vec3


VERTICES = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 0.0, 1.0), (0.0, 0.0, 1.0)]

# (material, lightmap, vertex indices)
POLYGONS = [
    (0, -1, [0, 1, 2]),
    (0, -1, [0, 2, 3]),
    (1, -1, [1, 2, 3]),
]

IDENTITY = [(1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)]


def material_archive() -> bytes:
    writer = ArchiveWriter(ArchiveFormat.BINSAFE)
    writer.write_int("count", 2)
    for name in ("STONE", "GRASS"):
        writer.write_string("name", name)
        writer.write_object_begin("%", "zCMaterial", 17408)
        writer.write_string("name", name)
        writer.write_color("color", (255, 255, 255, 255))
        writer.write_object_end()
    return writer.getvalue()


def mesh_bytes(mesh_version: int = MESH_VERSION_G2, with_materials: bool = True) -> bytes:
    """Mesh chunk stream ending with the 0xB060 end chunk."""
    is_g2 = mesh_version == MESH_VERSION_G2
    out = io.BytesIO()

    header = struct.pack('<H', mesh_version)
    header += struct.pack('<IHHHHHH', 2002, 1, 2, 3, 4, 5, 0)
    header += b"world.3ds\n"
    write_chunk(out, MESH_CHUNK_HEADER, header)

    write_chunk(out, MESH_CHUNK_BBOX, pack_floats([0, 0, 0, 1, 0, 1]) + b"\x00" * 8)

    if with_materials:
        write_chunk(out, MESH_CHUNK_MATERIALS, material_archive())

    write_chunk(out, MESH_CHUNK_VERTICES,
                struct.pack('<I', len(VERTICES)) + b"".join(pack_vec3(v) for v in VERTICES))

    features = struct.pack('<I', 2)
    features += pack_floats([0.0, 0.0]) + struct.pack('<I', 0xFFFFFFFF) + pack_vec3((0.0, 1.0, 0.0))
    features += pack_floats([1.0, 1.0]) + struct.pack('<I', 0xFFFFFFFF) + pack_vec3((0.0, 1.0, 0.0))
    write_chunk(out, MESH_CHUNK_FEATURES, features)

    polygons = struct.pack('<I', len(POLYGONS))
    for material, lightmap, indices in POLYGONS:
        polygons += struct.pack('<hh', material, lightmap)
        polygons += pack_floats([0.0, 1.0, 0.0, 0.0])
        polygons += b"\x00" * (5 if is_g2 else 6)
        polygons += struct.pack('<B', len(indices))
        for i in indices:
            polygons += struct.pack('<I', i) if is_g2 else struct.pack('<H', i)
            polygons += struct.pack('<I', i % 2)
    write_chunk(out, MESH_CHUNK_POLYGONS, polygons)

    write_chunk(out, MESH_CHUNK_END, b"\x42")
    return out.getvalue()


def bsp_bytes(bsp_version: int = BSP_VERSION_G2, with_sectors: bool = False) -> bytes:
    """
    BSP chunk stream: a root with two leaves. The front leaf holds
    polygon 0, the back leaf polygon 2; polygon 1 is in no leaf.
    """
    out = io.BytesIO()
    write_chunk(out, BSP_CHUNK_HEADER, struct.pack('<HI', 0, 1 if with_sectors else 0))
    write_chunk(out, BSP_CHUNK_POLYGONS, struct.pack('<III', 2, 0, 2))

    bbox = pack_floats([0, 0, 0, 1, 1, 1])
    tree = struct.pack('<II', 3, 2)
    tree += bbox + struct.pack('<II', 0, 2)
    tree += struct.pack('<B', 0x0F) + pack_floats([1.0, 0.0, 0.0, 0.5])
    if bsp_version != BSP_VERSION_G2:
        tree += b"\x00"  # lod flag
    tree += bbox + struct.pack('<II', 0, 1)
    tree += bbox + struct.pack('<II', 1, 1)
    write_chunk(out, BSP_CHUNK_TREE, tree)

    write_chunk(out, BSP_CHUNK_LIGHT, pack_floats([0.25, 0.5, 0.5, 0.75, 0.5, 0.5]))

    if with_sectors:
        sectors = struct.pack('<I', 1) + b"OW_CAMP\x00" + struct.pack('<IIII', 1, 1, 1, 2)
        write_chunk(out, BSP_CHUNK_OUTDOORS, sectors)

    write_chunk(out, BSP_CHUNK_END, b"\x42")
    return out.getvalue()


def geometry_bytes(bsp_version: int = BSP_VERSION_G2) -> bytes:
    """Payload of a MeshAndBsp section."""
    mesh_version = MESH_VERSION_G2 if bsp_version == BSP_VERSION_G2 else MESH_VERSION_G1
    body = mesh_bytes(mesh_version) + bsp_bytes(bsp_version)
    return struct.pack('<II', bsp_version, len(body)) + body


def write_vob(writer: ArchiveWriter, version: GameVersion, name: str, class_name: str = "zCVob",
              children=(), position=(0.0, 0.0, 0.0), extra: bool = False):
    """Write a vob, its child count and its children."""
    write_vob_object(writer, version, name, class_name, position, extra)
    writer.write_int("childs", len(children))
    for child in children:
        child(writer)


def write_vob_object(writer: ArchiveWriter, version: GameVersion, name: str, class_name: str = "zCVob",
                     position=(0.0, 0.0, 0.0), extra: bool = False):
    """Write the vob object alone, without its child count."""
    is_g2 = version is GameVersion.GOTHIC_2

    writer.write_object_begin("%", class_name, 12289)
    writer.write_int("pack", 0)
    writer.write_string("presetName", "")
    writer.write_bbox("bbox3DWS", (0.0, 0.0, 0.0), (1.0, 2.0, 1.0))
    writer.write_mat3x3("trafoOSToWSRot", IDENTITY)
    writer.write_vec3("trafoOSToWSPos", position)
    writer.write_string("vobName", name)
    writer.write_string("visual", f"{name}.3DS")
    writer.write_bool("showVisual", True)
    writer.write_enum("visualCamAlign", 0)
    if is_g2:
        writer.write_enum("visualAniMode", 1)
        writer.write_float("visualAniModeStrength", 0.5)
        writer.write_float("vobFarClipZScale", 2.0)
    writer.write_bool("cdStatic", True)
    writer.write_bool("cdDyn", False)
    writer.write_bool("staticVob", True)
    writer.write_enum("dynShadow", 1)
    if is_g2:
        writer.write_int("zbias", 3)
        writer.write_bool("isAmbient", True)
    if extra:
        writer.write_string("itemInstance", "ITFO_APPLE")
    writer.write_object_end()


def write_null_vob(writer: ArchiveWriter):
    writer.write_object_begin("%", "%", 0)
    writer.write_object_end()
    writer.write_int("childs", 0)


def write_waypoint_fields(writer: ArchiveWriter, name: str, position):
    writer.write_string("wpName", name)
    writer.write_int("waterDepth", 0)
    writer.write_bool("underWater", False)
    writer.write_vec3("position", position)
    writer.write_vec3("direction", (0.0, 0.0, 1.0))


def write_mesh_section(writer: ArchiveWriter, bsp_version: int):
    writer.write_object_begin("MeshAndBsp", "%", 0)
    writer.write_bytes(geometry_bytes(bsp_version))
    writer.write_object_end()


def write_vob_section(writer: ArchiveWriter, version: GameVersion):
    writer.write_object_begin("VobTree", "%", 0)
    writer.write_int("childs0", 2)
    write_vob(writer, version, "nodeA", position=(1.0, 2.0, 3.0), children=[
        lambda w: write_vob(w, version, "nodeA_child", class_name="oCItem:zCVob", extra=True),
    ])
    write_vob(writer, version, "nodeB", class_name="oCMOB:zCVob")
    writer.write_object_end()


def write_way_net_section(writer: ArchiveWriter):
    writer.write_object_begin("WayNet", "zCWayNet", 0)
    writer.write_int("waynetVersion", 1)
    writer.write_int("numWaypoints", 1)
    writer.write_object_begin("waypoint0", "zCWaypoint", 0, index=500)
    write_waypoint_fields(writer, "FP_CAMPFIRE", (5.0, 0.0, 5.0))
    writer.write_object_end()
    writer.write_int("numWays", 2)
    writer.write_object_begin("wayl0", "zCWaypoint", 0, index=501)
    write_waypoint_fields(writer, "WP_GATE", (0.0, 0.0, 0.0))
    writer.write_object_end()
    writer.write_object_begin("wayr0", "zCWaypoint", 0, index=502)
    write_waypoint_fields(writer, "WP_TOWER", (10.0, 0.0, 0.0))
    writer.write_object_end()
    writer.write_object_begin("wayl1", "§", 0, index=502)
    writer.write_object_end()
    writer.write_object_begin("wayr1", "§", 0, index=500)
    writer.write_object_end()
    writer.write_object_end()


SECTION_WRITERS = {
    "mesh": lambda writer, version, bsp_version: write_mesh_section(writer, bsp_version),
    "vobs": lambda writer, version, bsp_version: write_vob_section(writer, version),
    "waynet": lambda writer, version, bsp_version: write_way_net_section(writer),
}


def build_world(archive_format: ArchiveFormat = ArchiveFormat.BINSAFE,
                version: GameVersion = GameVersion.GOTHIC_2,
                sections=("mesh", "vobs", "waynet"),
                bsp_version=None,
                root_class: str = "oCWorld:zCWorld",
                extra_sections=None) -> bytes:
    """
    Build a world archive.

    Args:
        sections: Section names from SECTION_WRITERS, in file order
        bsp_version: BSP version to store (default: the one matching `version`)
        extra_sections: Callables writing additional sections after the others
    """
    if bsp_version is None:
        bsp_version = BSP_VERSION_G2 if version is GameVersion.GOTHIC_2 else BSP_VERSION_G1

    writer = ArchiveWriter(archive_format)
    writer.write_object_begin("%", root_class, 64513)
    for section in sections:
        SECTION_WRITERS[section](writer, version, bsp_version)
    for write_section in extra_sections or ():
        write_section(writer)
    writer.write_object_end()
    return writer.getvalue()
