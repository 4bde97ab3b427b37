"""
BSP Tree Parser

Parses the binary space partitioning tree stored in the second half of a
world's MeshAndBsp section. The tree splits the world mesh into leaves;
each leaf references a range of the polygon index list.

Chunk stream (each chunk is u16 type, u32 size, payload):
- 0xC000 header: u16 version, u32 mode (0 = indoor, 1 = outdoor)
- 0xC010 polygons: u32 count, count x u32 polygon index
- 0xC040 tree: u32 node_count, u32 leaf_count, nodes depth-first
- 0xC045 light: one Fvector light point per leaf
- 0xC050 outdoors: sectors (name, node indices, portal polygon indices)
- 0xC0FF end

Node record:
- Fvector bbox_min, Fvector bbox_max
- u32 polygon_index, u32 polygon_count
- inner nodes only:
  - u8 flags (0x01 front, 0x02 back, 0x04 front is leaf, 0x08 back is leaf)
  - f32 plane[4] (normal x, y, z, distance)
  - u8 lod flag (Gothic 1 only)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from ..constants import (
    BSP_VERSION_G2,
    BSP_CHUNK_HEADER, BSP_CHUNK_POLYGONS, BSP_CHUNK_TREE,
    BSP_CHUNK_LIGHT, BSP_CHUNK_OUTDOORS, BSP_CHUNK_END,
)
from ..utils import logWarning
from .base import Buffer


NODE_FLAG_FRONT = 0x01
NODE_FLAG_BACK = 0x02
NODE_FLAG_FRONT_LEAF = 0x04
NODE_FLAG_BACK_LEAF = 0x08


class BspTreeMode(Enum):
    INDOOR = 0
    OUTDOOR = 1


@dataclass
class BspNode:
    """A node or leaf of the BSP tree."""
    bbox: Tuple[Tuple[float, float, float], Tuple[float, float, float]]
    polygon_index: int
    polygon_count: int
    leaf: bool
    parent_index: int = -1
    front_index: int = -1
    back_index: int = -1
    plane: Optional[Tuple[float, float, float, float]] = None


@dataclass
class BspSector:
    """An outdoor sector: a named group of leaves and its portals."""
    name: str
    node_indices: List[int]
    portal_polygon_indices: List[int]


@dataclass
class BspTree:
    """Parsed BSP tree."""
    mode: BspTreeMode = BspTreeMode.INDOOR
    polygon_indices: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.uint32))
    nodes: List[BspNode] = field(default_factory=list)
    leaf_node_indices: List[int] = field(default_factory=list)
    light_points: np.ndarray = field(default_factory=lambda: np.empty((0, 3), dtype=np.float32))
    sectors: List[BspSector] = field(default_factory=list)
    leaf_polygons: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.uint32))

    @property
    def leaf_count(self) -> int:
        return len(self.leaf_node_indices)

    def get_sector(self, name: str) -> Optional[BspSector]:
        """Get an outdoor sector by name."""
        for sector in self.sectors:
            if sector.name == name:
                return sector
        return None


def parse_bsp_tree(buf: Buffer, version: int) -> BspTree:
    """
    Parse a BSP tree chunk stream.

    Args:
        buf: Buffer positioned at the first BSP chunk; advanced past the end chunk
        version: BSP version read from the MeshAndBsp section

    Returns:
        BspTree with leaf_polygons computed
    """
    tree = BspTree()
    has_lod_flag = version != BSP_VERSION_G2

    while True:
        chunk_type = buf.get_ushort()
        chunk = buf.extract(buf.get_uint())

        if chunk_type == BSP_CHUNK_HEADER:
            chunk.get_ushort()  # version
            mode = chunk.get_uint()
            if mode in (BspTreeMode.INDOOR.value, BspTreeMode.OUTDOOR.value):
                tree.mode = BspTreeMode(mode)
            else:
                logWarning(f"bsp_tree: unknown mode {mode}, assuming indoor")
        elif chunk_type == BSP_CHUNK_POLYGONS:
            tree.polygon_indices = chunk.get_array('<u4', chunk.get_uint())
        elif chunk_type == BSP_CHUNK_TREE:
            _parse_tree(chunk, tree, has_lod_flag)
        elif chunk_type == BSP_CHUNK_LIGHT:
            count = tree.leaf_count if tree.nodes else chunk.remaining // 12
            tree.light_points = chunk.get_array('<f4', count * 3).reshape(count, 3)
        elif chunk_type == BSP_CHUNK_OUTDOORS:
            tree.sectors = _parse_sectors(chunk)
        elif chunk_type == BSP_CHUNK_END:
            chunk.skip(chunk.remaining)
        else:
            logWarning(f"bsp_tree: skipping unknown chunk {chunk_type:#06x}")
            chunk.skip(chunk.remaining)

        if chunk.remaining != 0:
            logWarning(f"bsp_tree: chunk {chunk_type:#06x} not fully parsed ({chunk.remaining} bytes left)")

        if chunk_type == BSP_CHUNK_END:
            break

    tree.leaf_polygons = _collect_leaf_polygons(tree)
    return tree


def _parse_tree(chunk: Buffer, tree: BspTree, has_lod_flag: bool):
    """Parse the node hierarchy."""
    node_count = chunk.get_uint()
    leaf_count = chunk.get_uint()

    if node_count > 0:
        _parse_nodes(chunk, tree, node_count == 1, has_lod_flag)

    if len(tree.nodes) != node_count:
        logWarning(f"bsp_tree: expected {node_count} nodes, found {len(tree.nodes)}")
    if len(tree.leaf_node_indices) != leaf_count:
        logWarning(f"bsp_tree: expected {leaf_count} leaves, found {len(tree.leaf_node_indices)}")


def _parse_nodes(chunk: Buffer, tree: BspTree, root_leaf: bool, has_lod_flag: bool):
    """
    Parse the nodes depth-first, front subtree before back subtree.

    Work items are (parent_index, leaf, side). Children are pushed back first
    so the front child is read next.
    """
    stack = [(-1, root_leaf, None)]

    while stack:
        parent_index, leaf, side = stack.pop()

        bbox_min = chunk.get_vec3()
        bbox_max = chunk.get_vec3()
        node = BspNode(
            bbox=(bbox_min, bbox_max),
            polygon_index=chunk.get_uint(),
            polygon_count=chunk.get_uint(),
            leaf=leaf,
            parent_index=parent_index,
        )

        index = len(tree.nodes)
        tree.nodes.append(node)

        if side == NODE_FLAG_FRONT:
            tree.nodes[parent_index].front_index = index
        elif side == NODE_FLAG_BACK:
            tree.nodes[parent_index].back_index = index

        if leaf:
            tree.leaf_node_indices.append(index)
            continue

        flags = chunk.get()
        node.plane = chunk.get_vec4()
        if has_lod_flag:
            chunk.get()

        if flags & NODE_FLAG_BACK:
            stack.append((index, bool(flags & NODE_FLAG_BACK_LEAF), NODE_FLAG_BACK))
        if flags & NODE_FLAG_FRONT:
            stack.append((index, bool(flags & NODE_FLAG_FRONT_LEAF), NODE_FLAG_FRONT))


def _parse_sectors(chunk: Buffer) -> List[BspSector]:
    sectors = []
    for _ in range(chunk.get_uint()):
        name = chunk.get_cstring()
        node_count = chunk.get_uint()
        portal_count = chunk.get_uint()
        nodes = chunk.get_array('<u4', node_count).tolist()
        portals = chunk.get_array('<u4', portal_count).tolist()
        sectors.append(BspSector(name=name, node_indices=nodes, portal_polygon_indices=portals))
    return sectors


def _collect_leaf_polygons(tree: BspTree) -> np.ndarray:
    """Sorted, unique polygon indices referenced by any leaf."""
    ranges = []
    for index in tree.leaf_node_indices:
        node = tree.nodes[index]
        ranges.append(tree.polygon_indices[node.polygon_index:node.polygon_index + node.polygon_count])

    if not ranges:
        return np.empty(0, dtype=np.uint32)
    return np.unique(np.concatenate(ranges)).astype(np.uint32)
