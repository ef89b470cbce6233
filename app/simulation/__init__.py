from .circuit_validator import ValidationResult, get_validation_summary, validate_schematic
from .connectivity import (
    AdjacencyGraph,
    CircuitStatus,
    UnionFind,
    are_nodes_connected,
    check_circuit_completion,
    detect_cycle,
    find_connected_components,
    get_reachable_nodes,
    rebuild_adjacency_for_wires,
)
from .dc_solver import DCSolution, DCSolveStatus, solve_dc_circuit
from .electrical import (
    ACCircuitInput,
    ACCircuitResult,
    InsufficientMetricsError,
    format_frequency,
    format_metric_value,
    solve_ac_circuit,
    solve_wire_metrics,
    validate_ac_input,
)

__all__ = [
    'AdjacencyGraph', 'CircuitStatus', 'UnionFind',
    'are_nodes_connected', 'check_circuit_completion', 'detect_cycle',
    'find_connected_components', 'get_reachable_nodes', 'rebuild_adjacency_for_wires',
    'DCSolution', 'DCSolveStatus', 'solve_dc_circuit',
    'ValidationResult', 'get_validation_summary', 'validate_schematic',
    'ACCircuitInput', 'ACCircuitResult', 'InsufficientMetricsError',
    'format_frequency', 'format_metric_value', 'solve_ac_circuit',
    'solve_wire_metrics', 'validate_ac_input',
]
