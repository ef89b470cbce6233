"""
WireRouter - Interactive wire drawing state machine.

This module contains no Qt dependencies. The rendering layer forwards raw
pointer coordinates into begin_draw/update_draw/end_draw and reads the
preview path and hover state back; the router owns every topology edit
that drawing causes and notifies views through an observer pattern.
"""

import logging
from enum import Enum
from typing import Any, Callable, Optional

from models.circuit import CircuitModel
from models.geometry import Vec2, distance, segment_intersect
from models.node import Node, NodeType, create_node, find_closest_node, merge_nodes, should_merge_nodes
from models.settings import TopologySettings, get_default_settings
from models.wire import ClosestPoint, Wire, create_wire, ensure_point_on_wire, find_closest_point_on_wire
from routing.path_finding import WireMode, build_path
from simulation.connectivity import AdjacencyGraph, rebuild_adjacency_for_wires

logger = logging.getLogger(__name__)


class RouterState(Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    COMMITTING = "committing"


def _crossing_key(point: Vec2) -> tuple[float, float]:
    return (round(point[0], 1), round(point[1], 1))


class WireRouter:
    """
    Turns pointer gestures into wires, junctions and merged nodes.

    Observer events:
        draw_started (dict) - {"start": Vec2, "node_id": str | None}
        preview_updated (list[Vec2]) - The preview path changed
        draw_cancelled (None) - The draw was aborted, topology untouched
        junction_created (Node) - A junction was spliced into a wire
        nodes_merged (dict) - {"survivor": str, "absorbed": str}
        wire_committed (Wire) - A new wire was added to the model
        topology_rebuilt (AdjacencyGraph) - The adjacency graph was rebuilt
        hover_changed (dict) - {"node_id": str | None, "wire_id": str | None}
        mode_changed (WireMode) - The path construction policy changed
    """

    def __init__(self, model: Optional[CircuitModel] = None, settings: Optional[TopologySettings] = None):
        self.model = model or CircuitModel()
        self.settings = settings or get_default_settings()
        self._observers: list[Callable[[str, Any], None]] = []
        self._state = RouterState.IDLE
        self._mode = WireMode.SCHEMATIC
        self._start_pos: Optional[Vec2] = None
        self._start_node_id: Optional[str] = None
        self._last_pos: Optional[Vec2] = None
        self._invert_bend = False
        self._preview: list[Vec2] = []
        self._hover_node_id: Optional[str] = None
        self._hover_wire_id: Optional[str] = None
        self._graph = AdjacencyGraph()

    # --- Observer pattern ---

    def add_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Register a callback for router events."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Unregister a previously registered callback."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, event: str, data: Any) -> None:
        """Notify all observers of a router event."""
        for observer in self._observers:
            try:
                observer(event, data)
            except (TypeError, AttributeError, RuntimeError) as e:
                logger.error("Error notifying observer: %s", e)

    # --- Read-only state for renderers ---

    @property
    def state(self) -> RouterState:
        return self._state

    @property
    def mode(self) -> WireMode:
        return self._mode

    @property
    def preview_path(self) -> list[Vec2]:
        return list(self._preview)

    @property
    def hover_node_id(self) -> Optional[str]:
        return self._hover_node_id

    @property
    def hover_wire_id(self) -> Optional[str]:
        return self._hover_wire_id

    @property
    def graph(self) -> AdjacencyGraph:
        return self._graph

    # --- Mode and hover ---

    def set_mode(self, mode) -> None:
        """Switch path policy. An in-progress preview is recomputed."""
        mode = WireMode(mode)
        if mode == self._mode:
            return
        self._mode = mode
        self._notify('mode_changed', mode)
        if self._state == RouterState.DRAWING and self._last_pos is not None:
            self.update_draw(self._last_pos, self._invert_bend)

    def update_hover(self, pos: Vec2) -> None:
        """Track the node or wire under the pointer."""
        node = self._snap(pos)
        wire_id = None
        if node is None:
            hit = self._hit_wire(pos)
            if hit is not None:
                wire_id = hit[0].id
        node_id = node.id if node is not None else None

        if node_id != self._hover_node_id or wire_id != self._hover_wire_id:
            self._hover_node_id = node_id
            self._hover_wire_id = wire_id
            self._notify('hover_changed', {"node_id": node_id, "wire_id": wire_id})

    # --- Drawing ---

    def begin_draw(self, pos: Vec2) -> Vec2:
        """
        Start a wire at pos.

        Snaps to a node within the snap radius. Failing that, a click
        within the hit radius of an existing wire splices a junction into
        that wire and starts from it.

        Returns:
            The fixed start point of the new wire.
        """
        if self._state != RouterState.IDLE:
            logger.warning("begin_draw while %s, cancelling previous draw", self._state.value)
            self.cancel_draw()

        node = self._snap(pos)
        if node is None:
            hit = self._hit_wire(pos)
            if hit is not None:
                node = self._splice_junction(hit[0], hit[1].point)

        self._start_pos = node.pos if node is not None else (float(pos[0]), float(pos[1]))
        self._start_node_id = node.id if node is not None else None
        self._last_pos = self._start_pos
        self._preview = [self._start_pos]
        self._state = RouterState.DRAWING
        logger.debug("Draw started at %s (node=%s)", self._start_pos, self._start_node_id)
        self._notify('draw_started', {"start": self._start_pos, "node_id": self._start_node_id})
        return self._start_pos

    def update_draw(self, pos: Vec2, invert_bend: bool = False) -> list[Vec2]:
        """Recompute the preview path to pos. Returns the new preview."""
        if self._state != RouterState.DRAWING:
            return []
        self._last_pos = (float(pos[0]), float(pos[1]))
        self._invert_bend = invert_bend

        node = self._snap(pos)
        end = node.pos if node is not None else self._last_pos
        self._preview = self._build(self._start_pos, end, invert_bend)
        self._notify('preview_updated', list(self._preview))
        return list(self._preview)

    def cancel_draw(self) -> None:
        """Abort the current draw. Junctions spliced on draw start stay."""
        if self._state == RouterState.IDLE:
            return
        self._reset()
        self._notify('draw_cancelled', None)

    def end_draw(self, pos: Vec2, invert_bend: bool = False) -> Optional[Wire]:
        """
        Finish the draw at pos and commit the wire.

        A release on the start node, or close enough to merge into it,
        aborts the draw without touching the topology.

        Returns:
            The committed wire, or None if the draw was aborted.
        """
        if self._state != RouterState.DRAWING:
            return None

        start = self._start_pos
        end_node = self._snap(pos)
        hit: Optional[tuple[Wire, ClosestPoint]] = None
        if end_node is not None:
            end = end_node.pos
        else:
            end = (float(pos[0]), float(pos[1]))
            hit = self._hit_wire(end)
            if hit is not None:
                end = hit[1].point

        if self._ends_collapse(start, end, end_node):
            logger.debug("Draw released on its start at %s, aborting", start)
            self.cancel_draw()
            return None

        self._state = RouterState.COMMITTING
        path = self._build(start, end, invert_bend)
        if path[-1] != end:
            # Routing clamped the end; it no longer reaches the snap target
            end_node = None
            hit = None
        if hit is not None:
            end_node = self._splice_junction(hit[0], path[-1])

        wire = self._commit(path, end_node)
        self._reset()
        return wire

    # --- Commit ---

    def _commit(self, path: list[Vec2], end_node: Optional[Node]) -> Wire:
        wire = create_wire(path)

        start_node = self.model.get_node(self._start_node_id) if self._start_node_id else None
        if start_node is None:
            start_node = self._add_anchor(wire.points[0])
        if end_node is None:
            end_node = self._add_anchor(wire.points[-1])

        for node in (start_node, end_node):
            node.attach_wire(wire.id)
            wire.attached_node_ids.add(node.id)

        self._create_crossing_junctions(wire, start_node, end_node)
        self.model.add_wire(wire)
        self._merge_close_nodes()
        self.rebuild()

        logger.info("Committed %s", wire)
        self._notify('wire_committed', wire)
        return wire

    def _create_crossing_junctions(self, new_wire: Wire, start_node: Node, end_node: Node) -> list[Node]:
        """Splice a junction into both wires at every genuine crossing."""
        tol = self.settings.intersection_tolerance
        merge_radius = self.settings.merge_radius

        crossings: dict[tuple[float, float], tuple[Vec2, list[Wire]]] = {}
        for other in self.model.wires:
            for _, a, b in new_wire.segments():
                for _, c, d in other.segments():
                    point = segment_intersect(a, b, c, d)
                    if point is None:
                        continue
                    # Crossings at a new segment's ends are ordinary joins
                    if distance(point, a) <= tol or distance(point, b) <= tol:
                        continue
                    if distance(point, start_node.pos) <= merge_radius or distance(point, end_node.pos) <= merge_radius:
                        continue
                    key = _crossing_key(point)
                    entry = crossings.setdefault(key, (point, []))
                    if other not in entry[1]:
                        entry[1].append(other)

        created = []
        for point, others in crossings.values():
            result = ensure_point_on_wire(new_wire, point, tol)
            if result.point is None:
                continue
            for other in others:
                ensure_point_on_wire(other, point, tol)

            junction = find_closest_node(point, self.model.nodes, tol)
            if junction is None:
                junction = create_node(NodeType.JUNCTION, result.point)
                self.model.add_node(junction)
                created.append(junction)
                logger.debug("Junction %s at crossing %s", junction.id, result.point)
                self._notify('junction_created', junction)
            junction.attach_wire(new_wire.id)
            new_wire.attached_node_ids.add(junction.id)
            for other in others:
                junction.attach_wire(other.id)
                other.attached_node_ids.add(junction.id)
        return created

    def _merge_close_nodes(self) -> set[str]:
        """
        Greedily merge every pair of nodes within the merge radius.

        Two component pins are never merged with each other.

        Returns:
            Ids of the nodes that were absorbed and removed.
        """
        radius = self.settings.merge_radius
        nodes = self.model.nodes
        absorbed: set[str] = set()

        for i, a in enumerate(nodes):
            if a.id in absorbed:
                continue
            for b in nodes[i + 1:]:
                if b.id in absorbed:
                    continue
                if a.type == NodeType.COMPONENT_PIN and b.type == NodeType.COMPONENT_PIN:
                    continue
                if not should_merge_nodes(a, b, radius):
                    continue
                survivor = merge_nodes(a, b)
                loser = b if survivor is a else a
                absorbed.add(loser.id)
                self._notify('nodes_merged', {"survivor": survivor.id, "absorbed": loser.id})
                if loser is a:
                    break

        if absorbed:
            logger.debug("Merged away %d node(s)", len(absorbed))
            self.model.remove_nodes(absorbed)
        return absorbed

    def rebuild(self) -> AdjacencyGraph:
        """Rebuild the adjacency graph from the model."""
        self._graph = rebuild_adjacency_for_wires(
            self.model.wires, self.model.nodes, self.settings.connection_tolerance
        )
        self._notify('topology_rebuilt', self._graph)
        return self._graph

    def remove_wire(self, wire_id: str) -> bool:
        """Delete a wire, drop its orphaned anchors and rebuild."""
        if self.model.get_wire(wire_id) is None:
            return False
        self.model.remove_wire(wire_id)
        self.rebuild()
        return True

    # --- Helpers ---

    def _ends_collapse(self, start: Vec2, end: Vec2, end_node: Optional[Node]) -> bool:
        """True if both ends of the wire would end up on the same node."""
        if end_node is not None and end_node.id == self._start_node_id:
            return True
        if distance(start, end) > self.settings.merge_radius:
            return False
        # Only two component pins survive the merge step side by side
        start_node = self.model.get_node(self._start_node_id) if self._start_node_id else None
        return not (
            start_node is not None and end_node is not None
            and start_node.type == NodeType.COMPONENT_PIN
            and end_node.type == NodeType.COMPONENT_PIN
        )

    def _build(self, start: Vec2, end: Vec2, invert_bend: bool) -> list[Vec2]:
        occupied = [
            n.pos for n in self.model.nodes
            if n.pos != start and n.pos != end
        ]
        return build_path(self._mode, start, end, invert_bend, occupied, self.settings)

    def _snap(self, pos: Vec2) -> Optional[Node]:
        return find_closest_node(pos, self.model.nodes, self.settings.snap_radius)

    def _hit_wire(self, pos: Vec2) -> Optional[tuple[Wire, ClosestPoint]]:
        """Closest wire within the hit radius, with the closest point on it."""
        best: Optional[tuple[Wire, ClosestPoint]] = None
        for wire in self.model.wires:
            closest = find_closest_point_on_wire(pos, wire)
            if closest is None or closest.distance > self.settings.wire_hit_radius:
                continue
            if best is None or closest.distance < best[1].distance:
                best = (wire, closest)
        return best

    def _splice_junction(self, wire: Wire, point: Vec2) -> Node:
        """Put a vertex on wire at point and return the node that sits there."""
        result = ensure_point_on_wire(wire, point, self.settings.intersection_tolerance)
        at = result.point if result.point is not None else point

        node = find_closest_node(at, self.model.nodes, self.settings.merge_radius)
        if node is None:
            node = create_node(NodeType.JUNCTION, at)
            self.model.add_node(node)
            logger.debug("Junction %s spliced into %s", node.id, wire.id)
            self._notify('junction_created', node)
        node.attach_wire(wire.id)
        wire.attached_node_ids.add(node.id)
        return node

    def _add_anchor(self, pos: Vec2) -> Node:
        node = create_node(NodeType.WIRE_ANCHOR, pos)
        self.model.add_node(node)
        return node

    def _reset(self) -> None:
        self._state = RouterState.IDLE
        self._start_pos = None
        self._start_node_id = None
        self._last_pos = None
        self._invert_bend = False
        self._preview = []
