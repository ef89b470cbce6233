"""
simulation/dc_solver.py

DC network fault classifier for typed schematic elements.

Terminals that lie within a tolerance of each other form one electrical
node. Batteries, wire segments, inductors and diode forward drops become
voltage sources; resistors, lamps and diode series resistances become
conductances. Each connected part of the network is solved separately
with Modified Nodal Analysis. Capacitors and switches are open at DC.

A battery whose terminals are joined only through wires or inductors is
reported as an ideal short instead of being solved.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from models.geometry import distance
from models.schematic import ElementKind, SchematicElement
from models.spatial_hash import SpatialHash
from simulation.connectivity import UnionFind
from simulation.format_utils import parse_label_value

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.6
SINGULAR_EPS = 1e-12

DEFAULT_RESISTOR_OHMS = 100.0
DEFAULT_LAMP_OHMS = 10.0
DEFAULT_BATTERY_VOLTS = 9.0

# (forward voltage, series resistance)
DIODE_MODEL = {
    ElementKind.DIODE: (0.7, 10.0),
    ElementKind.LED: (2.0, 50.0),
}

REASON_NO_REFERENCE = "No terminals found to establish a reference node."
REASON_IDEAL_SHORT = "Battery terminals are connected by an ideal short (0 Ω path)."
REASON_SINGULAR = "Circuit matrix is singular (often caused by floating subcircuits or ideal-only loops)."
REASON_NO_SOURCE = "No battery in the circuit; nothing drives current."


class DCSolveStatus(str, Enum):
    SOLVED = "solved"
    UNSOLVED = "unsolved"
    NO_REFERENCE = "no_reference"
    SINGULAR = "singular"
    INVALID_IDEAL_SHORT = "invalid_ideal_short"


@dataclass
class ElementCurrent:
    """
    Current through one element.

    For passive parts positive amps flow start -> end; for a battery
    positive amps leave the positive (end) terminal.
    """

    element_id: str
    amps: float
    direction: str = "unknown"


@dataclass
class WireSegmentCurrent:
    """Current along wire segment i, positive from path[i] to path[i + 1]."""

    wire_id: str
    segment_index: int
    amps: float


@dataclass
class DCSolution:
    status: DCSolveStatus
    reason: Optional[str] = None
    node_voltages: dict[str, float] = field(default_factory=dict)
    element_currents: dict[str, ElementCurrent] = field(default_factory=dict)
    wire_segment_currents: list[WireSegmentCurrent] = field(default_factory=list)
    reference_node_id: Optional[str] = None
    terminal_to_node: dict[str, str] = field(default_factory=dict)

    @property
    def is_solved(self) -> bool:
        return self.status == DCSolveStatus.SOLVED


@dataclass
class _Source:
    id: str
    positive: str
    negative: str
    volts: float
    element_id: str
    kind: str  # "battery", "wire", "inductor" or "diode"
    segment_index: int = -1


@dataclass
class _Conductor:
    element_id: str
    a: str
    b: str
    ohms: float


def _terminal_key(element_id: str, terminal: str) -> str:
    return f"{element_id}:{terminal}"


def build_electrical_nodes(elements: list[SchematicElement], tolerance: float = DEFAULT_TOLERANCE) -> dict[str, str]:
    """
    Group terminals that lie within tolerance of each other.

    Returns:
        Map from "element_id:terminal" to node id ("n0", "n1", ... in
        order of first appearance).
    """
    terminals = []
    index: SpatialHash[int] = SpatialHash(cell_size=max(tolerance, 1e-6))
    for element in elements:
        for key, point in element.terminal_points():
            index.insert(point, len(terminals))
            terminals.append((_terminal_key(element.id, key), point))

    uf = UnionFind()
    for i, (key, point) in enumerate(terminals):
        uf.make_set(key)
        for j in index.query_near(point):
            if j < i and distance(point, terminals[j][1]) <= tolerance:
                uf.union(terminals[j][0], key)

    root_to_node: dict[str, str] = {}
    terminal_to_node: dict[str, str] = {}
    for key, _ in terminals:
        root = uf.find(key)
        if root not in root_to_node:
            root_to_node[root] = f"n{len(root_to_node)}"
        terminal_to_node[key] = root_to_node[root]
    return terminal_to_node


def _node_of(terminal_to_node: dict[str, str], element: SchematicElement, terminal: str) -> Optional[str]:
    return terminal_to_node.get(_terminal_key(element.id, terminal))


def _ideal_short_graph(elements, terminal_to_node) -> dict[str, set[str]]:
    """Node graph over zero-resistance connections (wire segments, inductors)."""
    graph: dict[str, set[str]] = {}

    def add_edge(a, b):
        graph.setdefault(a, set()).add(b)
        graph.setdefault(b, set()).add(a)

    for element in elements:
        if element.kind == ElementKind.WIRE:
            for i in range(len(element.path) - 1):
                a = _node_of(terminal_to_node, element, f"p{i}")
                b = _node_of(terminal_to_node, element, f"p{i + 1}")
                if a and b and a != b:
                    add_edge(a, b)
        elif element.kind == ElementKind.INDUCTOR:
            a = _node_of(terminal_to_node, element, "start")
            b = _node_of(terminal_to_node, element, "end")
            if a and b and a != b:
                add_edge(a, b)
    return graph


def _has_ideal_short(graph: dict[str, set[str]], a: str, b: str) -> bool:
    if a == b:
        return True
    visited = {a}
    queue = deque([a])
    while queue:
        current = queue.popleft()
        for neighbor in graph.get(current, ()):
            if neighbor == b:
                return True
            if neighbor not in visited:
                visited.add(neighbor)
                queue.append(neighbor)
    return False


def _collect_branches(elements, terminal_to_node) -> tuple[list[_Conductor], list[_Source]]:
    conductors: list[_Conductor] = []
    sources: list[_Source] = []

    for element in elements:
        kind = element.kind
        if kind == ElementKind.WIRE:
            for i in range(len(element.path) - 1):
                a = _node_of(terminal_to_node, element, f"p{i}")
                b = _node_of(terminal_to_node, element, f"p{i + 1}")
                if a and b and a != b:
                    sources.append(_Source(f"vs:{element.id}:{i}", a, b, 0.0, element.id, "wire", i))
            continue

        if kind not in (ElementKind.RESISTOR, ElementKind.LAMP, ElementKind.BATTERY,
                        ElementKind.INDUCTOR, ElementKind.DIODE, ElementKind.LED):
            # Capacitors and switches are open at DC; ground and BJT add no branch
            continue

        a = _node_of(terminal_to_node, element, "start")
        b = _node_of(terminal_to_node, element, "end")
        if not a or not b or a == b:
            continue

        if kind in (ElementKind.RESISTOR, ElementKind.LAMP):
            parsed = parse_label_value(element.label)
            default = DEFAULT_LAMP_OHMS if kind == ElementKind.LAMP else DEFAULT_RESISTOR_OHMS
            ohms = parsed if parsed is not None and parsed > 0 else default
            conductors.append(_Conductor(element.id, a, b, ohms))
        elif kind == ElementKind.BATTERY:
            parsed = parse_label_value(element.label)
            volts = parsed if parsed is not None else DEFAULT_BATTERY_VOLTS
            # start is the negative terminal
            sources.append(_Source(f"vs:{element.id}", b, a, volts, element.id, "battery"))
        elif kind == ElementKind.INDUCTOR:
            sources.append(_Source(f"vs:{element.id}", a, b, 0.0, element.id, "inductor"))
        else:
            forward_volts, series_ohms = DIODE_MODEL[kind]
            # A source and its series resistance cannot share both nodes, so
            # the forward drop sits on an internal node
            internal = f"{element.id}:fwd"
            sources.append(_Source(f"vs:{element.id}", a, internal, forward_volts, element.id, "diode"))
            conductors.append(_Conductor(f"{element.id}_fwd", internal, b, series_ohms))

    return conductors, sources


def _pick_reference(elements, terminal_to_node, nodes: set[str]) -> Optional[str]:
    """Ground first, then a battery's negative terminal, then any node."""
    for element in elements:
        if element.kind == ElementKind.GROUND:
            node = _node_of(terminal_to_node, element, "gnd")
            if node in nodes:
                return node
    for element in elements:
        if element.kind == ElementKind.BATTERY:
            node = _node_of(terminal_to_node, element, "start")
            if node in nodes:
                return node
    for node in sorted(nodes, key=_node_sort_key):
        return node
    return None


def _node_sort_key(node_id: str):
    # "n12" sorts numerically; internal diode nodes go last
    if node_id.startswith("n") and node_id[1:].isdigit():
        return (0, int(node_id[1:]), "")
    return (1, 0, node_id)


def _solve_mna(nodes: list[str], reference: str, conductors: list[_Conductor], sources: list[_Source]):
    """
    Assemble and solve the MNA system for one connected part.

    Returns:
        (node voltages, source currents), or None if the matrix is singular.
    """
    unknown = [n for n in nodes if n != reference]
    index = {n: i for i, n in enumerate(unknown)}
    n = len(unknown)
    m = len(sources)
    dim = n + m
    if dim == 0:
        return {reference: 0.0}, {}

    A = np.zeros((dim, dim))
    b = np.zeros(dim)

    for c in conductors:
        g = 1.0 / c.ohms if c.ohms > SINGULAR_EPS else 1.0 / SINGULAR_EPS
        ia = index.get(c.a)
        ib = index.get(c.b)
        if ia is not None:
            A[ia, ia] += g
        if ib is not None:
            A[ib, ib] += g
        if ia is not None and ib is not None:
            A[ia, ib] -= g
            A[ib, ia] -= g

    for k, src in enumerate(sources):
        row = n + k
        ip = index.get(src.positive)
        ineg = index.get(src.negative)
        if ip is not None:
            A[ip, row] += 1
            A[row, ip] += 1
        if ineg is not None:
            A[ineg, row] -= 1
            A[row, ineg] -= 1
        b[row] = src.volts

    if np.linalg.cond(A) > 1.0 / SINGULAR_EPS:
        return None
    try:
        x = np.linalg.solve(A, b)
    except np.linalg.LinAlgError:
        return None
    if not np.all(np.isfinite(x)):
        return None

    voltages = {reference: 0.0}
    for node_id, i in index.items():
        voltages[node_id] = float(x[i])
    currents = {src.id: float(x[n + k]) for k, src in enumerate(sources)}
    return voltages, currents


def solve_dc_circuit(elements: list[SchematicElement], tolerance: float = DEFAULT_TOLERANCE) -> DCSolution:
    """
    Classify and, when possible, solve a schematic at DC.

    Returns:
        DCSolution. status is one of:
            no_reference - there are no terminals at all
            invalid_ideal_short - a battery is shorted by wires/inductors
            unsolved - no battery drives the network
            singular - a part of the network has no unique solution
            solved - node voltages and branch currents are filled in
    """
    terminal_to_node = build_electrical_nodes(elements, tolerance)
    all_nodes = set(terminal_to_node.values())
    reference = _pick_reference(elements, terminal_to_node, all_nodes)
    if reference is None:
        return DCSolution(status=DCSolveStatus.NO_REFERENCE, reason=REASON_NO_REFERENCE)

    short_graph = _ideal_short_graph(elements, terminal_to_node)
    for element in elements:
        if element.kind != ElementKind.BATTERY:
            continue
        neg = _node_of(terminal_to_node, element, "start")
        pos = _node_of(terminal_to_node, element, "end")
        if neg and pos and _has_ideal_short(short_graph, neg, pos):
            logger.info("Battery %s is shorted", element.id)
            return DCSolution(
                status=DCSolveStatus.INVALID_IDEAL_SHORT,
                reason=REASON_IDEAL_SHORT,
                node_voltages={reference: 0.0},
                reference_node_id=reference,
                terminal_to_node=terminal_to_node,
            )

    conductors, sources = _collect_branches(elements, terminal_to_node)
    if not any(s.kind == "battery" for s in sources):
        return DCSolution(
            status=DCSolveStatus.UNSOLVED,
            reason=REASON_NO_SOURCE,
            node_voltages={node: 0.0 for node in all_nodes},
            element_currents={c.element_id: ElementCurrent(c.element_id, 0.0) for c in conductors},
            reference_node_id=reference,
            terminal_to_node=terminal_to_node,
        )

    # Split into connected parts so a floating part cannot make the system singular
    uf = UnionFind()
    for node in all_nodes:
        uf.make_set(node)
    for c in conductors:
        uf.union(c.a, c.b)
    for s in sources:
        uf.union(s.positive, s.negative)

    node_voltages = {node: 0.0 for node in all_nodes}
    element_currents: dict[str, ElementCurrent] = {}
    segment_currents: list[WireSegmentCurrent] = []

    for part in uf.get_components().values():
        part_sources = [s for s in sources if s.positive in part]
        part_conductors = [c for c in conductors if c.a in part]
        if not any(s.kind == "battery" for s in part_sources):
            for c in part_conductors:
                element_currents[c.element_id] = ElementCurrent(c.element_id, 0.0)
            continue

        part_reference = _pick_reference(elements, terminal_to_node, part)
        solved = _solve_mna(sorted(part, key=_node_sort_key), part_reference, part_conductors, part_sources)
        if solved is None:
            logger.warning("Singular MNA system for part containing %s", part_reference)
            return DCSolution(
                status=DCSolveStatus.SINGULAR,
                reason=REASON_SINGULAR,
                node_voltages={reference: 0.0},
                reference_node_id=reference,
                terminal_to_node=terminal_to_node,
            )

        voltages, source_currents = solved
        node_voltages.update(voltages)

        for c in part_conductors:
            amps = (voltages.get(c.a, 0.0) - voltages.get(c.b, 0.0)) / c.ohms
            element_currents[c.element_id] = ElementCurrent(
                c.element_id, amps, "start->end" if amps >= 0 else "end->start"
            )

        for s in part_sources:
            # MNA source current enters the source at its positive node
            amps = source_currents.get(s.id, 0.0)
            if s.kind == "battery":
                delivered = -amps
                element_currents[s.element_id] = ElementCurrent(
                    s.element_id, delivered, "end->start" if delivered >= 0 else "start->end"
                )
            elif s.kind == "wire":
                segment_currents.append(WireSegmentCurrent(s.element_id, s.segment_index, amps))
            elif s.kind == "inductor":
                element_currents[s.element_id] = ElementCurrent(
                    s.element_id, amps, "start->end" if amps >= 0 else "end->start"
                )
            else:
                element_currents[s.element_id] = ElementCurrent(
                    s.element_id, abs(amps), "start->end" if amps >= 0 else "end->start"
                )

    # Internal diode nodes are an implementation detail
    node_voltages = {k: v for k, v in node_voltages.items() if k in all_nodes}
    return DCSolution(
        status=DCSolveStatus.SOLVED,
        node_voltages=node_voltages,
        element_currents=element_currents,
        wire_segment_currents=segment_currents,
        reference_node_id=reference,
        terminal_to_node=terminal_to_node,
    )
