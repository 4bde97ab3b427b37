#!/usr/bin/env python3
"""
Inspect World

Parses a ZenGin world archive and prints what it contains.

Usage:
    python -m zenworld.inspect_world NEWWORLD.ZEN
    python -m zenworld.inspect_world OLDWORLD.ZEN --version g1 --vobs
"""

import sys
import argparse
from pathlib import Path

from .constants import GameVersion
from .errors import ParserError
from .parsers import World
from .utils import log, logError, init_logging, print_summary


VERSIONS = {
    'auto': None,
    'g1': GameVersion.GOTHIC_1,
    'g2': GameVersion.GOTHIC_2,
}


def print_world(world: World, show_vobs: bool = False):
    """Log a summary of a parsed world."""
    log(f"Version: {world.version.value}")

    if world.mesh is not None:
        log(f"Mesh: '{world.mesh.name}' {world.mesh.vertex_count} vertices, "
            f"{world.mesh.polygon_count} polygons, {len(world.mesh.materials)} materials")
    else:
        log("Mesh: none")

    if world.bsp_tree is not None:
        log(f"BSP tree: {world.bsp_tree.mode.name.lower()}, {len(world.bsp_tree.nodes)} nodes, "
            f"{world.bsp_tree.leaf_count} leaves, {len(world.bsp_tree.sectors)} sectors")
    else:
        log("BSP tree: none")

    log(f"Vobs: {len(world.vobs)} roots, {world.vob_count} total")
    if show_vobs:
        for root in world.vobs:
            _print_vob(root, 1)

    if world.way_net is not None:
        log(f"Way net: {len(world.way_net.waypoints)} waypoints, {len(world.way_net.edges)} ways")
    else:
        log("Way net: none")


def _print_vob(root, depth: int):
    stack = [(root, depth)]
    while stack:
        vob, depth = stack.pop()
        log(f"{'  ' * depth}{vob.type_name} '{vob.name}' at {tuple(round(v, 2) for v in vob.position)}")
        stack.extend((child, depth + 1) for child in reversed(vob.children))


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Print the contents of a ZenGin world archive',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
    python -m zenworld.inspect_world NEWWORLD.ZEN

    # Skip version detection and print the scene graph:
    python -m zenworld.inspect_world WORLD.ZEN --version g1 --vobs
        """
    )

    parser.add_argument('world', help='Path to the world (.ZEN) file')
    parser.add_argument('--version', choices=sorted(VERSIONS), default='auto',
                        help='Game version the world was saved with (default: detect)')
    parser.add_argument('--vobs', action='store_true',
                        help='Print the scene graph')
    parser.add_argument('--log', default=None,
                        help='Also write output to this log file')
    args = parser.parse_args(argv)

    init_logging(Path(args.log) if args.log else None)

    try:
        world = World.from_file(args.world, VERSIONS[args.version])
    except (ParserError, OSError) as e:
        logError(f"{e}")
        print_summary()
        sys.exit(1)

    log(f"World: {args.world}")
    print_world(world, show_vobs=args.vobs)
    print_summary()


if __name__ == '__main__':
    main()
