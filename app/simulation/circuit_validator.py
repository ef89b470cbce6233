"""
simulation/circuit_validator.py

Itemized schematic validation with no Qt dependencies.

Elements are connected when any of their outer connection points lie
within the connection tolerance of each other. Every problem found is
reported as its own issue so a view can highlight all of them at once.
"""

from dataclasses import dataclass, field
from enum import Enum

from models.geometry import Vec2, distance
from models.schematic import ElementKind, SchematicElement
from simulation.connectivity import UnionFind

CONNECTION_TOLERANCE = 0.6


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueType(str, Enum):
    OPEN_CIRCUIT = "open_circuit"
    FLOATING_COMPONENT = "floating_component"
    FLOATING_NODE = "floating_node"
    SHORT_CIRCUIT = "short_circuit"
    MISSING_GROUND = "missing_ground"
    MISSING_POWER_SOURCE = "missing_power_source"
    UNCONNECTED_TERMINAL = "unconnected_terminal"


class CircuitState(str, Enum):
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"
    INVALID = "invalid"


@dataclass
class ValidationIssue:
    type: IssueType
    severity: Severity
    message: str
    description: str
    affected_elements: list[str] = field(default_factory=list)
    affected_positions: list[Vec2] = field(default_factory=list)


@dataclass
class ValidationStats:
    component_count: int = 0
    wire_count: int = 0
    ground_count: int = 0
    battery_count: int = 0
    node_count: int = 0
    connected_components: int = 0


@dataclass
class ValidationResult:
    is_valid: bool
    issues: list[ValidationIssue] = field(default_factory=list)
    stats: ValidationStats = field(default_factory=ValidationStats)
    circuit_status: CircuitState = CircuitState.INCOMPLETE

    def by_severity(self, severity: Severity) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == severity]


def _touching(a: SchematicElement, b: SchematicElement, tolerance: float) -> bool:
    return any(distance(p, q) <= tolerance for p in a.endpoints() for q in b.endpoints())


def build_connection_graph(elements: list[SchematicElement], tolerance: float = CONNECTION_TOLERANCE) -> dict[str, set[str]]:
    """Element id -> ids of the elements it touches."""
    graph: dict[str, set[str]] = {e.id: set() for e in elements}
    for i, a in enumerate(elements):
        for b in elements[i + 1:]:
            if _touching(a, b, tolerance):
                graph[a.id].add(b.id)
                graph[b.id].add(a.id)
    return graph


def _components(graph: dict[str, set[str]]) -> list[set[str]]:
    uf = UnionFind()
    for element_id, neighbors in graph.items():
        uf.make_set(element_id)
        for neighbor in neighbors:
            uf.union(element_id, neighbor)
    return list(uf.get_components().values())


def _detect_short_circuits(elements, graph, tolerance) -> list[ValidationIssue]:
    by_id = {e.id: e for e in elements}
    issues = []
    for battery in (e for e in elements if e.kind == ElementKind.BATTERY):
        connected = [by_id[i] for i in graph[battery.id]]
        wires = [e for e in connected if e.kind == ElementKind.WIRE]
        if not wires or any(e.is_load for e in connected):
            continue

        negative = battery.terminals["start"]
        positive = battery.terminals["end"]
        for wire in wires:
            ends = wire.endpoints()
            if len(ends) < 2:
                continue
            touches_neg = any(distance(p, negative) <= tolerance for p in ends)
            touches_pos = any(distance(p, positive) <= tolerance for p in ends)
            if touches_neg and touches_pos:
                issues.append(ValidationIssue(
                    type=IssueType.SHORT_CIRCUIT,
                    severity=Severity.ERROR,
                    message="Short Circuit Detected",
                    description=(
                        "A direct connection exists between battery terminals without a load "
                        "component. This would cause excessive current flow and potential damage."
                    ),
                    affected_elements=[battery.id, wire.id],
                    affected_positions=[negative, positive],
                ))
    return issues


def _detect_floating_components(elements, graph) -> list[ValidationIssue]:
    issues = []
    for element in elements:
        if element.kind == ElementKind.WIRE:
            continue
        label = element.display_label()
        count = len(graph[element.id])
        if count == 0:
            issues.append(ValidationIssue(
                type=IssueType.FLOATING_COMPONENT,
                severity=Severity.WARNING,
                message=f"Floating Component: {label}",
                description=f"Component {label} has no connections. Connect it to the circuit using wires.",
                affected_elements=[element.id],
                affected_positions=element.endpoints(),
            ))
        elif element.kind != ElementKind.GROUND and count == 1:
            issues.append(ValidationIssue(
                type=IssueType.UNCONNECTED_TERMINAL,
                severity=Severity.WARNING,
                message=f"Partially Connected: {label}",
                description=(
                    f"Component {label} has only one terminal connected. "
                    "Both terminals must be connected for current to flow."
                ),
                affected_elements=[element.id],
                affected_positions=element.endpoints(),
            ))
    return issues


def _detect_open_circuits(elements, components) -> list[ValidationIssue]:
    if len(components) <= 1:
        return []
    batteries = [e for e in elements if e.kind == ElementKind.BATTERY]
    loads = [e for e in elements if e.is_load]

    def component_of(element_id):
        for i, component in enumerate(components):
            if element_id in component:
                return i
        return -1

    issues = []
    for battery in batteries:
        battery_component = component_of(battery.id)
        for load in loads:
            if component_of(load.id) == battery_component:
                continue
            issues.append(ValidationIssue(
                type=IssueType.OPEN_CIRCUIT,
                severity=Severity.ERROR,
                message="Open Circuit Detected",
                description=(
                    f"{battery.label or 'Battery'} and {load.display_label()} are not connected. "
                    "Complete the circuit path to allow current flow."
                ),
                affected_elements=[battery.id, load.id],
                affected_positions=battery.endpoints() + load.endpoints(),
            ))
    return issues


def _detect_missing_ground(elements) -> list[ValidationIssue]:
    batteries = [e for e in elements if e.kind == ElementKind.BATTERY]
    if not batteries or any(e.kind == ElementKind.GROUND for e in elements):
        return []
    return [ValidationIssue(
        type=IssueType.MISSING_GROUND,
        severity=Severity.INFO,
        message="Missing Ground Reference",
        description=(
            "No ground symbol is present in the circuit. Adding a ground reference helps "
            "establish voltage levels and is required for many simulation types."
        ),
        affected_elements=[b.id for b in batteries],
        affected_positions=[p for b in batteries for p in b.endpoints()],
    )]


def _detect_missing_power_source(elements) -> list[ValidationIssue]:
    loads = [e for e in elements if e.is_load]
    if not loads or any(e.kind == ElementKind.BATTERY for e in elements):
        return []
    return [ValidationIssue(
        type=IssueType.MISSING_POWER_SOURCE,
        severity=Severity.WARNING,
        message="Missing Power Source",
        description="The circuit has components but no battery or power source. Add a battery to power the circuit.",
        affected_elements=[e.id for e in loads],
        affected_positions=[p for e in loads for p in e.endpoints()],
    )]


def _detect_floating_wires(elements, graph) -> list[ValidationIssue]:
    return [
        ValidationIssue(
            type=IssueType.FLOATING_NODE,
            severity=Severity.WARNING,
            message="Floating Wire",
            description="This wire segment is not connected to any components.",
            affected_elements=[wire.id],
            affected_positions=list(wire.path),
        )
        for wire in elements
        if wire.kind == ElementKind.WIRE and not graph[wire.id]
    ]


def validate_schematic(elements: list[SchematicElement], tolerance: float = CONNECTION_TOLERANCE) -> ValidationResult:
    """
    Validate a schematic and report every issue found.

    Returns:
        ValidationResult. circuit_status is "invalid" if any error was found,
        "incomplete" if there are warnings, no battery or at most one
        component, and "complete" otherwise. An empty schematic is valid
        but incomplete.
    """
    if not elements:
        return ValidationResult(is_valid=True)

    wires = [e for e in elements if e.kind == ElementKind.WIRE]
    grounds = [e for e in elements if e.kind == ElementKind.GROUND]
    batteries = [e for e in elements if e.kind == ElementKind.BATTERY]
    components = [e for e in elements if e.kind not in (ElementKind.WIRE, ElementKind.GROUND)]

    graph = build_connection_graph(elements, tolerance)
    connected = _components(graph)

    issues = []
    issues.extend(_detect_short_circuits(elements, graph, tolerance))
    issues.extend(_detect_floating_components(elements, graph))
    issues.extend(_detect_open_circuits(elements, connected))
    issues.extend(_detect_missing_ground(elements))
    issues.extend(_detect_missing_power_source(elements))
    issues.extend(_detect_floating_wires(elements, graph))

    has_errors = any(i.severity == Severity.ERROR for i in issues)
    has_warnings = any(i.severity == Severity.WARNING for i in issues)
    if has_errors:
        status = CircuitState.INVALID
    elif has_warnings or not batteries or len(components) <= 1:
        status = CircuitState.INCOMPLETE
    else:
        status = CircuitState.COMPLETE

    unique_points = {(f"{p[0]:.2f}", f"{p[1]:.2f}") for e in elements for p in e.endpoints()}

    return ValidationResult(
        is_valid=not has_errors,
        issues=issues,
        stats=ValidationStats(
            component_count=len(components),
            wire_count=len(wires),
            ground_count=len(grounds),
            battery_count=len(batteries),
            node_count=len(unique_points),
            connected_components=len(connected),
        ),
        circuit_status=status,
    )


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def get_validation_summary(result: ValidationResult) -> str:
    """One-line human-readable summary of a validation result."""
    if result.stats.component_count == 0 and result.stats.wire_count == 0:
        return "Empty circuit - place components to begin"
    if result.circuit_status == CircuitState.COMPLETE:
        return "Circuit is complete and ready for simulation"

    parts = []
    errors = len(result.by_severity(Severity.ERROR))
    warnings = len(result.by_severity(Severity.WARNING))
    infos = len(result.by_severity(Severity.INFO))
    if errors:
        parts.append(_plural(errors, "error"))
    if warnings:
        parts.append(_plural(warnings, "warning"))
    if infos:
        parts.append(_plural(infos, "suggestion"))

    if not parts:
        return "Circuit incomplete - continue building"
    return ", ".join(parts)


def get_severity_label(severity: Severity) -> str:
    return Severity(severity).value.capitalize()
