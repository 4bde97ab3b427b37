"""
VOb Tree Parser

Parses the scene graph of a world: a tree of virtual objects ("vobs")
placed in the level. Each vob is an archive object followed by an int
entry holding its child count, then the children themselves:

    [% zCVob 12289 3]        <- vob fields
    []
    childs0=int:1
        [% oCItem:zCVob 12289 4]
        []
        childs1=int:0

Only the fields every zCVob subclass shares are decoded; the remainder of
each object is skipped.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import numpy as np

from ..constants import (
    GameVersion,
    NULL_CLASS_NAME, REFERENCE_CLASS_NAME, VOB_BASE_CLASS,
    VOB_PACKED_SIZE_G1, VOB_PACKED_SIZE_G2,
)
from ..errors import ParserError
from ..utils import logDebug, logWarning
from .archive import ArchiveObject, ArchiveReader, FrameEnd


@dataclass
class VobNode:
    """A placed object and its children."""
    class_name: str
    version: int
    index: int
    name: str = ""
    preset_name: str = ""
    visual_name: str = ""
    bbox: Tuple[Tuple[float, float, float], Tuple[float, float, float]] = ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: np.ndarray = field(default_factory=lambda: np.identity(3, dtype=np.float32))
    show_visual: bool = True
    camera_alignment: int = 0
    animation_mode: int = 0
    animation_strength: float = 0.0
    far_clip_scale: float = 1.0
    cd_static: bool = False
    cd_dynamic: bool = False
    static: bool = False
    dynamic_shadows: int = 0
    bias: int = 0
    ambient: bool = False
    packed: bool = False
    children: List['VobNode'] = field(default_factory=list)

    @property
    def type_name(self) -> str:
        """Most derived class, e.g. 'oCItem' for 'oCItem:zCVob'."""
        return self.class_name.split(':')[0]

    def walk(self) -> Iterator['VobNode']:
        """Iterate over this vob and all descendants, depth-first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


def is_vob_class(class_name: str) -> bool:
    """Check whether an archive class name denotes a zCVob subclass."""
    return class_name.split(':')[-1] == VOB_BASE_CLASS


def parse_vob_tree(reader: ArchiveReader, version: GameVersion) -> Optional[VobNode]:
    """
    Parse one vob and all of its descendants.

    Args:
        reader: Archive reader positioned at a vob object
        version: Game version the world was saved with

    Returns:
        VobNode, or None for null, reference and non-vob objects (their children are discarded)
    """
    root, child_count = _read_vob(reader, version)

    # [parent, children still to read]
    stack = [[root, child_count]]
    while stack:
        entry = stack[-1]
        if entry[1] == 0:
            stack.pop()
            continue
        entry[1] -= 1

        child, child_count = _read_vob(reader, version)
        if entry[0] is not None and child is not None:
            entry[0].children.append(child)
        stack.append([child, child_count])

    return root


def _read_vob(reader: ArchiveReader, version: GameVersion) -> Tuple[Optional[VobNode], int]:
    """Read one vob object and the child count that follows it."""
    obj = reader.read_object_begin()
    if obj is None:
        raise ParserError("vob_tree", "expected vob object")

    node = None
    if obj.class_name in (NULL_CLASS_NAME, REFERENCE_CLASS_NAME):
        logDebug(f"vob_tree: object {obj} has no vob data")
    elif not is_vob_class(obj.class_name):
        logWarning(f"vob_tree: unknown vob class '{obj.class_name}'")
    else:
        node = _parse_vob(reader, obj, version)

    if reader.read_object_end() is FrameEnd.MORE_SIBLINGS:
        logDebug(f"vob_tree: skipping remaining data of {obj}")
        reader.skip_object(True)

    child_count = reader.read_int()
    if child_count < 0:
        raise ParserError("vob_tree", f"negative child count {child_count} for {obj}")
    return node, child_count


def _parse_vob(reader: ArchiveReader, obj: ArchiveObject, version: GameVersion) -> VobNode:
    """Read the fields shared by all zCVob subclasses."""
    node = VobNode(class_name=obj.class_name, version=obj.version, index=obj.index)
    is_g2 = version is GameVersion.GOTHIC_2

    if reader.read_int() != 0:
        _read_packed(reader, node, is_g2)
        return node

    node.preset_name = reader.read_string()
    node.bbox = reader.read_bbox()
    node.rotation = reader.read_mat3x3()
    node.position = reader.read_vec3()
    node.name = reader.read_string()
    node.visual_name = reader.read_string()
    node.show_visual = reader.read_bool()
    node.camera_alignment = reader.read_enum()

    if is_g2:
        node.animation_mode = reader.read_enum()
        node.animation_strength = reader.read_float()
        node.far_clip_scale = reader.read_float()

    node.cd_static = reader.read_bool()
    node.cd_dynamic = reader.read_bool()
    node.static = reader.read_bool()
    node.dynamic_shadows = reader.read_enum()

    if is_g2:
        node.bias = reader.read_int()
        node.ambient = reader.read_bool()

    return node


def _read_packed(reader: ArchiveReader, node: VobNode, is_g2: bool):
    """Decode the placement part of a packed vob blob."""
    raw = reader.read_raw(VOB_PACKED_SIZE_G2 if is_g2 else VOB_PACKED_SIZE_G1)
    node.packed = True
    node.bbox = (raw.get_vec3(), raw.get_vec3())
    node.position = raw.get_vec3()
    node.rotation = raw.get_array('<f4', 9).reshape(3, 3).copy()
