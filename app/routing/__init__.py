"""
Wire path construction for the interactive router.

Qt-free: paths are lists of (x, y) tuples.
"""

from .path_finding import (
    GridPathfinder,
    WireMode,
    build_path,
    free_path,
    routing_path,
    schematic_path,
    star_path,
)

__all__ = [
    "GridPathfinder",
    "WireMode",
    "build_path",
    "free_path",
    "routing_path",
    "schematic_path",
    "star_path",
]
