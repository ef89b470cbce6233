"""
Node - Pure Python data model for wire connection points.

A node is a point of electrical significance on the drawing: a component
pin, a junction where wires meet, or a free wire endpoint (anchor).
Component pins are placed by the component layer and are never moved here;
junctions and anchors are created, merged and removed by the wire router.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from .geometry import Vec2, distance


class NodeType(str, Enum):
    """Kind of connection point, serialized by value."""

    COMPONENT_PIN = "componentPin"
    JUNCTION = "junction"
    WIRE_ANCHOR = "wireAnchor"


# Higher value survives a merge
MERGE_PRIORITY = {
    NodeType.COMPONENT_PIN: 3,
    NodeType.JUNCTION: 2,
    NodeType.WIRE_ANCHOR: 1,
}


def generate_id(prefix: str) -> str:
    """Return a new unique identifier like 'node-1a2b3c4d'."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@dataclass
class Node:
    """A connection point and the wires currently attached to it."""

    id: str
    type: NodeType
    pos: Vec2
    attached_wire_ids: set[str] = field(default_factory=set)

    @property
    def priority(self) -> int:
        return MERGE_PRIORITY[self.type]

    def attach_wire(self, wire_id: str) -> None:
        self.attached_wire_ids.add(wire_id)

    def detach_wire(self, wire_id: str) -> None:
        self.attached_wire_ids.discard(wire_id)

    def to_dict(self) -> dict:
        """Serialize node. Attached wire ids become a sorted list."""
        return {
            "id": self.id,
            "type": self.type.value,
            "pos": {"x": self.pos[0], "y": self.pos[1]},
            "attachedWireIds": sorted(self.attached_wire_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Node":
        pos = data["pos"]
        return cls(
            id=data["id"],
            type=NodeType(data["type"]),
            pos=(float(pos["x"]), float(pos["y"])),
            attached_wire_ids=set(data.get("attachedWireIds", [])),
        )

    def __repr__(self) -> str:
        return f"Node({self.id}, {self.type.value}, pos={self.pos}, wires={len(self.attached_wire_ids)})"


def create_node(node_type, pos: Vec2, node_id: Optional[str] = None) -> Node:
    """
    Create a node at a copy of pos.

    Args:
        node_type: NodeType or its string value ("junction", ...).
        pos: (x, y) position.
        node_id: Explicit id; a new one is generated if omitted.
    """
    return Node(
        id=node_id or generate_id("node"),
        type=NodeType(node_type),
        pos=(float(pos[0]), float(pos[1])),
    )


def clone_node(node: Node) -> Node:
    """Deep copy of a node."""
    return Node(id=node.id, type=node.type, pos=node.pos, attached_wire_ids=set(node.attached_wire_ids))


def should_merge_nodes(a: Node, b: Node, radius: float) -> bool:
    """True if two distinct nodes lie within radius of each other."""
    if a.id == b.id:
        return False
    return distance(a.pos, b.pos) <= radius


def merge_nodes(a: Node, b: Node) -> Node:
    """
    Merge two nodes and return the survivor.

    The node with the higher-priority type (componentPin > junction >
    wireAnchor) survives and keeps its type and position; on a tie, a
    survives. The survivor absorbs the other node's attached wires.
    """
    survivor, absorbed = (b, a) if b.priority > a.priority else (a, b)
    survivor.attached_wire_ids |= absorbed.attached_wire_ids
    return survivor


def find_closest_node(pos: Vec2, nodes: Iterable[Node], max_distance: float) -> Optional[Node]:
    """
    Closest node within max_distance of pos, or None.

    Ties go to the node seen first.
    """
    closest = None
    best = max_distance
    for node in nodes:
        d = distance(pos, node.pos)
        if d <= best and (closest is None or d < best):
            closest = node
            best = d
    return closest
