"""
Way Net Parser

Parses the waypoint graph of a world, used by NPCs for path finding.

Section layout (inside the WayNet object):
- int waynetVersion
- int numWaypoints
- numWaypoints x zCWaypoint object (free points)
- int numWays
- numWays x two endpoint objects, each either an inline zCWaypoint
  or a reference (class '§') to a waypoint read earlier

zCWaypoint fields:
- string wpName
- int waterDepth
- bool underWater
- vec3 position
- vec3 direction
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..constants import REFERENCE_CLASS_NAME
from ..errors import ParserError
from ..utils import logWarning
from .archive import ArchiveObject, ArchiveReader, FrameEnd


WAYPOINT_CLASS_NAME = "zCWaypoint"


@dataclass
class Waypoint:
    """A single waypoint."""
    name: str
    water_depth: int
    under_water: bool
    position: Tuple[float, float, float]
    direction: Tuple[float, float, float]
    free_point: bool


@dataclass
class WayEdge:
    """A connection between two waypoints, by index."""
    a: int
    b: int


@dataclass
class WayNet:
    """Waypoint graph of a world."""
    version: int = 0
    waypoints: List[Waypoint] = field(default_factory=list)
    edges: List[WayEdge] = field(default_factory=list)

    def get_waypoint(self, name: str) -> Optional[Waypoint]:
        """Get a waypoint by its name."""
        for waypoint in self.waypoints:
            if waypoint.name == name:
                return waypoint
        return None

    @property
    def positions(self) -> np.ndarray:
        """Waypoint positions as an (N, 3) array."""
        if not self.waypoints:
            return np.empty((0, 3), dtype=np.float32)
        return np.array([wp.position for wp in self.waypoints], dtype=np.float32)


def parse_way_net(reader: ArchiveReader) -> WayNet:
    """
    Parse a way net.

    Args:
        reader: Archive reader positioned inside the WayNet object

    Returns:
        WayNet
    """
    net = WayNet(version=reader.read_int())
    by_object_index: Dict[int, int] = {}

    waypoint_count = reader.read_int()
    if waypoint_count < 0:
        raise ParserError("way_net", f"negative waypoint count {waypoint_count}")

    for _ in range(waypoint_count):
        obj = reader.read_object_begin()
        if obj is None or obj.class_name != WAYPOINT_CLASS_NAME:
            raise ParserError("way_net", f"expected '{WAYPOINT_CLASS_NAME}' object, got {obj}")

        by_object_index[obj.index] = len(net.waypoints)
        net.waypoints.append(_read_waypoint(reader, free_point=True))
        _close_object(reader, obj)

    edge_count = reader.read_int()
    if edge_count < 0:
        raise ParserError("way_net", f"negative way count {edge_count}")

    for _ in range(edge_count):
        a = _read_endpoint(reader, net, by_object_index)
        b = _read_endpoint(reader, net, by_object_index)
        net.edges.append(WayEdge(a=a, b=b))

    return net


def _read_waypoint(reader: ArchiveReader, free_point: bool) -> Waypoint:
    return Waypoint(
        name=reader.read_string(),
        water_depth=reader.read_int(),
        under_water=reader.read_bool(),
        position=reader.read_vec3(),
        direction=reader.read_vec3(),
        free_point=free_point,
    )


def _read_endpoint(reader: ArchiveReader, net: WayNet, by_object_index: Dict[int, int]) -> int:
    """Read one end of a way and return its waypoint index."""
    obj = reader.read_object_begin()
    if obj is None:
        raise ParserError("way_net", "expected way endpoint object")

    if obj.class_name == REFERENCE_CLASS_NAME:
        if obj.index not in by_object_index:
            raise ParserError("way_net", f"reference to unknown waypoint object {obj.index}")
        index = by_object_index[obj.index]
    elif obj.class_name == WAYPOINT_CLASS_NAME:
        index = len(net.waypoints)
        by_object_index[obj.index] = index
        net.waypoints.append(_read_waypoint(reader, free_point=False))
    else:
        raise ParserError("way_net", f"unexpected way endpoint class '{obj.class_name}'")

    _close_object(reader, obj)
    return index


def _close_object(reader: ArchiveReader, obj: ArchiveObject):
    if reader.read_object_end() is FrameEnd.MORE_SIBLINGS:
        logWarning(f"way_net: object {obj} not fully parsed")
        reader.skip_object(True)
