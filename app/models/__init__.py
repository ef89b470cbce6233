"""
Pure Python data models for the wire topology.

This package contains the geometry kernel, node and wire entities, the
topology container and the tunable settings. No rendering code lives here.
"""

from .circuit import CIRCUIT_SCHEMA_VERSION, CircuitModel, migrate_legacy_wires
from .geometry import (
    Vec2,
    distance,
    point_to_segment_distance,
    project_point_on_segment,
    segment_intersect,
)
from .node import (
    Node,
    NodeType,
    create_node,
    find_closest_node,
    merge_nodes,
    should_merge_nodes,
)
from .settings import TopologySettings
from .spatial_hash import SpatialHash
from .wire import (
    InvalidSegmentIndexError,
    Wire,
    create_wire,
    ensure_point_on_wire,
    find_closest_point_on_wire,
    insert_point_into_wire,
)

__all__ = [
    "CIRCUIT_SCHEMA_VERSION",
    "CircuitModel",
    "migrate_legacy_wires",
    "Vec2",
    "distance",
    "point_to_segment_distance",
    "project_point_on_segment",
    "segment_intersect",
    "Node",
    "NodeType",
    "create_node",
    "find_closest_node",
    "merge_nodes",
    "should_merge_nodes",
    "TopologySettings",
    "SpatialHash",
    "InvalidSegmentIndexError",
    "Wire",
    "create_wire",
    "ensure_point_on_wire",
    "find_closest_point_on_wire",
    "insert_point_into_wire",
]
