"""
CircuitModel - Central data store for the wire topology.

This module contains no simulation logic. It holds the wires and nodes
the user has drawn, provides lookup and edit helpers, and converts the
topology to and from a JSON-compatible dictionary.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .node import Node, NodeType
from .wire import Wire, dedupe_consecutive_points

logger = logging.getLogger(__name__)

CIRCUIT_SCHEMA_VERSION = "1.0.0"


@dataclass
class CircuitModel:
    """
    Central data store holding all wire topology state.

    Wires and nodes are kept in insertion order; ids are unique within
    each list. The adjacency graph is not stored here: it is derived from
    these two lists whenever the topology changes.
    """

    wires: list[Wire] = field(default_factory=list)
    nodes: list[Node] = field(default_factory=list)

    # --- Lookup ---

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_wire(self, wire_id: str) -> Optional[Wire]:
        for wire in self.wires:
            if wire.id == wire_id:
                return wire
        return None

    def component_pins(self) -> list[Node]:
        return [n for n in self.nodes if n.type == NodeType.COMPONENT_PIN]

    def junctions(self) -> list[Node]:
        return [n for n in self.nodes if n.type == NodeType.JUNCTION]

    # --- Node operations ---

    def add_node(self, node: Node) -> None:
        """Add a node. Raises ValueError if the id is already used."""
        if self.get_node(node.id) is not None:
            raise ValueError(f"Duplicate node id '{node.id}'.")
        self.nodes.append(node)

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and detach it from every wire. Returns False if absent."""
        node = self.get_node(node_id)
        if node is None:
            return False
        self.nodes.remove(node)
        for wire in self.wires:
            wire.attached_node_ids.discard(node_id)
        return True

    def remove_nodes(self, node_ids: set[str]) -> None:
        """Drop every node whose id is in node_ids."""
        if not node_ids:
            return
        self.nodes = [n for n in self.nodes if n.id not in node_ids]
        for wire in self.wires:
            wire.attached_node_ids -= node_ids

    # --- Wire operations ---

    def add_wire(self, wire: Wire) -> None:
        """Add a wire. Raises ValueError if the id is already used."""
        if self.get_wire(wire.id) is not None:
            raise ValueError(f"Duplicate wire id '{wire.id}'.")
        self.wires.append(wire)

    def remove_wire(self, wire_id: str) -> list[str]:
        """
        Remove a wire and detach it from its nodes.

        Wire anchors left with no attached wires are removed as well, since
        they only exist as wire endpoints.

        Returns:
            Ids of the anchor nodes that were removed.
        """
        wire = self.get_wire(wire_id)
        if wire is None:
            return []
        self.wires.remove(wire)

        orphaned = []
        for node in self.nodes:
            node.detach_wire(wire_id)
            if node.type == NodeType.WIRE_ANCHOR and not node.attached_wire_ids:
                orphaned.append(node.id)
        self.remove_nodes(set(orphaned))
        return orphaned

    # --- Circuit operations ---

    def clear(self, keep_component_pins: bool = False) -> None:
        """
        Clear the topology.

        With keep_component_pins, pins placed by the component layer stay
        (detached from any wire) and everything drawn is removed.
        """
        self.wires.clear()
        if keep_component_pins:
            self.nodes = self.component_pins()
            for node in self.nodes:
                node.attached_wire_ids.clear()
        else:
            self.nodes.clear()

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Serialize topology to a dictionary. Id sets are written as lists."""
        return {
            "version": CIRCUIT_SCHEMA_VERSION,
            "wires": [w.to_dict() for w in self.wires],
            "nodes": [n.to_dict() for n in self.nodes],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CircuitModel":
        """
        Deserialize topology from a dictionary.

        Documents without a "nodes" list are treated as the legacy bare
        polyline format and migrated.
        """
        if "nodes" not in data:
            logger.warning("Migrating legacy circuit with %d bare wires", len(data.get("wires", [])))
            wires, nodes = migrate_legacy_wires(data.get("wires", []))
            return cls(wires=wires, nodes=nodes)

        model = cls()
        for wire_data in data.get("wires", []):
            model.add_wire(Wire.from_dict(wire_data))
        for node_data in data.get("nodes", []):
            model.add_node(Node.from_dict(node_data))
        return model


def migrate_legacy_wires(polylines: list[dict]) -> tuple[list[Wire], list[Node]]:
    """
    Convert legacy bare polylines into wires with anchor nodes.

    Each polyline {"id", "points"} becomes a Wire plus two wireAnchor nodes
    with ids "<wire id>-n0" and "<wire id>-n1" at its first and last point.
    """
    wires: list[Wire] = []
    nodes: list[Node] = []
    for entry in polylines:
        wire_id = entry["id"]
        points = dedupe_consecutive_points([(float(p["x"]), float(p["y"])) for p in entry["points"]])
        if len(points) < 2:
            logger.warning("Skipping legacy wire %s with fewer than two distinct points", wire_id)
            continue

        start = Node(id=f"{wire_id}-n0", type=NodeType.WIRE_ANCHOR, pos=points[0], attached_wire_ids={wire_id})
        end = Node(id=f"{wire_id}-n1", type=NodeType.WIRE_ANCHOR, pos=points[-1], attached_wire_ids={wire_id})
        wires.append(Wire(id=wire_id, points=points, attached_node_ids={start.id, end.id}))
        nodes.extend((start, end))
    return wires, nodes
