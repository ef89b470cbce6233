"""
simulation/connectivity.py

Derives the node adjacency graph from drawn wires and answers
connectivity questions: connected components, reachability, loops and
whether the drawing forms a complete powered circuit.

The graph is always rebuilt from scratch; it is never patched in place.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from models.node import Node, NodeType, find_closest_node
from models.settings import CONNECTION_TOLERANCE
from models.wire import Wire

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    """Connection between two distinct nodes along one wire."""

    wire_id: str
    node_a: str
    node_b: str


@dataclass(frozen=True)
class PowerSourcePair:
    """Positive and negative terminal node ids of a power source."""

    positive: str
    negative: str


class AdjacencyGraph:
    """
    Undirected node graph derived from wires and nodes.

    Node ids are mapped to dense integer indices when they are added, and
    neighbour sets are stored per index. The public API speaks node ids.
    """

    def __init__(self):
        self._ids: list[str] = []
        self._index: dict[str, int] = {}
        self._neighbors: list[set[int]] = []
        self._degree: list[int] = []
        self.edges: list[Edge] = []

    def add_node(self, node_id: str) -> int:
        """Register a node and return its index. Re-adding is a no-op."""
        idx = self._index.get(node_id)
        if idx is None:
            idx = len(self._ids)
            self._ids.append(node_id)
            self._index[node_id] = idx
            self._neighbors.append(set())
            self._degree.append(0)
        return idx

    def add_edge(self, wire_id: str, node_a: str, node_b: str) -> None:
        """Register a bidirectional edge tagged with wire_id."""
        ia = self.add_node(node_a)
        ib = self.add_node(node_b)
        self._neighbors[ia].add(ib)
        self._neighbors[ib].add(ia)
        self._degree[ia] += 1
        self._degree[ib] += 1
        self.edges.append(Edge(wire_id, node_a, node_b))

    @property
    def node_ids(self) -> list[str]:
        return list(self._ids)

    def neighbors(self, node_id: str) -> set[str]:
        """Neighbour ids of node_id (empty for an unknown node)."""
        idx = self._index.get(node_id)
        if idx is None:
            return set()
        return {self._ids[i] for i in self._neighbors[idx]}

    def degree(self, node_id: str) -> int:
        """Number of edges incident to node_id."""
        idx = self._index.get(node_id)
        return 0 if idx is None else self._degree[idx]

    @property
    def nodes(self) -> dict[str, set[str]]:
        """Snapshot of the graph as {node_id: neighbour ids}."""
        return {node_id: self.neighbors(node_id) for node_id in self._ids}

    def __contains__(self, node_id) -> bool:
        return node_id in self._index

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def __repr__(self) -> str:
        return f"AdjacencyGraph(nodes={len(self._ids)}, edges={len(self.edges)})"


def rebuild_adjacency_for_wires(
    wires: list[Wire], nodes: list[Node], tolerance: Optional[float] = None
) -> AdjacencyGraph:
    """
    Rebuild the adjacency graph and the attachment sets.

    Every node's attached_wire_ids and every wire's attached_node_ids are
    cleared and recomputed. Each point of each wire is matched to the
    closest node within tolerance; consecutive points that map to the same
    node are collapsed, and each pair of consecutive distinct nodes becomes
    an edge tagged with the wire id.

    Args:
        wires: Wires to walk.
        nodes: Candidate nodes.
        tolerance: Point-to-node matching distance. Defaults to
            CONNECTION_TOLERANCE.
    """
    if tolerance is None:
        tolerance = CONNECTION_TOLERANCE

    graph = AdjacencyGraph()
    nodes_by_id = {}
    for node in nodes:
        node.attached_wire_ids.clear()
        nodes_by_id[node.id] = node
        graph.add_node(node.id)

    for wire in wires:
        wire.attached_node_ids.clear()
        previous: Optional[str] = None
        for point in wire.points:
            match = find_closest_node(point, nodes, tolerance)
            if match is None or match.id == previous:
                continue
            wire.attached_node_ids.add(match.id)
            match.attach_wire(wire.id)
            if previous is not None:
                graph.add_edge(wire.id, previous, match.id)
            previous = match.id

    logger.debug("Rebuilt adjacency: %d nodes, %d edges", len(graph), len(graph.edges))
    return graph


class UnionFind:
    """
    Disjoint-set structure over string ids.

    Uses path compression in find() and union by rank.
    """

    def __init__(self):
        self._parent: dict[str, str] = {}
        self._rank: dict[str, int] = {}

    def make_set(self, item: str) -> None:
        if item not in self._parent:
            self._parent[item] = item
            self._rank[item] = 0

    def find(self, item: str) -> str:
        """Root of the set containing item, registering item if unseen."""
        self.make_set(item)
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        # Point every node on the path straight at the root
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, a: str, b: str) -> None:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return

        rank_a = self._rank[root_a]
        rank_b = self._rank[root_b]
        if rank_a < rank_b:
            self._parent[root_a] = root_b
        elif rank_a > rank_b:
            self._parent[root_b] = root_a
        else:
            self._parent[root_b] = root_a
            self._rank[root_a] = rank_a + 1

    def connected(self, a: str, b: str) -> bool:
        return self.find(a) == self.find(b)

    def get_components(self) -> dict[str, set[str]]:
        """Partition of every registered id, keyed by root."""
        components: dict[str, set[str]] = {}
        for item in list(self._parent):
            components.setdefault(self.find(item), set()).add(item)
        return components

    def __contains__(self, item) -> bool:
        return item in self._parent

    def __len__(self) -> int:
        return len(self._parent)


def find_connected_components(graph: AdjacencyGraph) -> list[set[str]]:
    """Groups of node ids that are connected through edges."""
    uf = UnionFind()
    for node_id in graph:
        uf.make_set(node_id)
    for edge in graph.edges:
        uf.union(edge.node_a, edge.node_b)
    return list(uf.get_components().values())


def get_reachable_nodes(start: str, graph: AdjacencyGraph) -> set[str]:
    """Breadth-first set of node ids reachable from start, including start."""
    visited: set[str] = set()
    queue = deque([start])
    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)
        for neighbor in graph.neighbors(current):
            if neighbor not in visited:
                queue.append(neighbor)
    return visited


def detect_cycle(graph: AdjacencyGraph) -> bool:
    """
    True if the graph contains a cycle.

    Iterative depth-first search from every unvisited node with an explicit
    (node, parent) stack. Reaching an already-visited node through any edge
    other than the one back to the parent counts as a cycle.
    """
    visited: set[str] = set()
    for start in graph:
        if start in visited:
            continue
        visited.add(start)
        stack: list[tuple[str, Optional[str]]] = [(start, None)]
        while stack:
            node_id, parent = stack.pop()
            for neighbor in graph.neighbors(node_id):
                if neighbor == parent:
                    continue
                if neighbor in visited:
                    return True
                visited.add(neighbor)
                stack.append((neighbor, node_id))
    return False


MSG_EMPTY = "No circuit elements present"
MSG_COMPLETE = "Circuit is complete and closed"
MSG_POWER_NOT_CONNECTED = "Power source terminals not connected"
MSG_NO_LOOP = "No closed loop detected in circuit"
MSG_OPEN_ENDPOINTS = "Open circuit: {count} unconnected wire endpoint(s)"
MSG_INCOMPLETE = "Circuit is incomplete"


@dataclass
class CircuitStatus:
    """Result of check_circuit_completion()."""

    is_closed: bool
    has_loop: bool
    power_source_connected: bool
    open_endpoints: list[str] = field(default_factory=list)
    component_count: int = 0
    connected_components: int = 0
    message: str = MSG_EMPTY


def _coerce_pair(pair) -> PowerSourcePair:
    if isinstance(pair, PowerSourcePair):
        return pair
    if isinstance(pair, dict):
        return PowerSourcePair(pair["positive"], pair["negative"])
    positive, negative = pair
    return PowerSourcePair(positive, negative)


def check_circuit_completion(
    wires: list[Wire],
    nodes: list[Node],
    power_source_pairs: Optional[Iterable] = None,
    tolerance: Optional[float] = None,
) -> CircuitStatus:
    """
    Decide whether the drawing forms a complete powered loop.

    Args:
        wires: Drawn wires.
        nodes: All nodes, including component pins.
        power_source_pairs: Iterable of PowerSourcePair, {"positive", "negative"}
            dicts or (positive, negative) tuples. Without pairs, any connected
            group of two or more nodes counts as powered.
        tolerance: Connection tolerance passed to the rebuild.

    Returns:
        CircuitStatus. is_closed requires a powered source, a loop and no
        open endpoints. An open endpoint is a wire anchor with exactly one
        edge; pins and junctions with one edge may be intentional terminals.
    """
    pin_count = sum(1 for n in nodes if n.type == NodeType.COMPONENT_PIN)
    if not wires or not nodes:
        return CircuitStatus(
            is_closed=False,
            has_loop=False,
            power_source_connected=False,
            component_count=pin_count,
            message=MSG_EMPTY,
        )

    graph = rebuild_adjacency_for_wires(wires, nodes, tolerance)
    components = find_connected_components(graph)

    open_endpoints = [
        n.id for n in nodes if n.type == NodeType.WIRE_ANCHOR and graph.degree(n.id) == 1
    ]

    pairs = [_coerce_pair(p) for p in (power_source_pairs or [])]
    if pairs:
        power_connected = any(
            p.positive in graph and p.negative in get_reachable_nodes(p.positive, graph)
            for p in pairs
        )
    else:
        power_connected = any(len(c) >= 2 for c in components)

    has_loop = detect_cycle(graph)
    is_closed = power_connected and has_loop and not open_endpoints

    if is_closed:
        message = MSG_COMPLETE
    elif not power_connected:
        message = MSG_POWER_NOT_CONNECTED
    elif not has_loop:
        message = MSG_NO_LOOP
    elif open_endpoints:
        message = MSG_OPEN_ENDPOINTS.format(count=len(open_endpoints))
    else:
        message = MSG_INCOMPLETE

    return CircuitStatus(
        is_closed=is_closed,
        has_loop=has_loop,
        power_source_connected=power_connected,
        open_endpoints=open_endpoints,
        component_count=pin_count,
        connected_components=len(components),
        message=message,
    )


def are_nodes_connected(
    a: str, b: str, wires: list[Wire], nodes: list[Node], tolerance: Optional[float] = None
) -> bool:
    """True if node b can be reached from node a through wires."""
    graph = rebuild_adjacency_for_wires(wires, nodes, tolerance)
    return b in get_reachable_nodes(a, graph)
