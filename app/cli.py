"""
Command-line interface for the wire topology engine.

Check drawn circuits, solve electrical quantities and validate schematics
without a GUI.

Usage::

    python -m cli check circuit.json --pair bat-pos:bat-neg
    python -m cli metrics --voltage 12 --resistance 6
    python -m cli ac --voltage 120 --frequency 60 --resistance 20 --inductance 100m
    python -m cli validate schematic.json
    python -m cli migrate legacy.json --output circuit.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from controllers.file_controller import validate_circuit_data
from models.circuit import CircuitModel
from models.schematic import elements_from_dicts
from models.settings import load_settings
from simulation.circuit_validator import get_validation_summary, validate_schematic
from simulation.connectivity import PowerSourcePair, check_circuit_completion
from simulation.dc_solver import DCSolveStatus, solve_dc_circuit
from simulation.electrical import (
    ACCircuitInput,
    InsufficientMetricsError,
    format_ac_metrics,
    format_metric_value,
    solve_ac_circuit,
    solve_wire_metrics,
    validate_ac_input,
)
from simulation.format_utils import parse_value


def _read_json(filepath: str):
    """Read a JSON file. Returns (data, "") or (None, error_message)."""
    path = Path(filepath)
    if not path.exists():
        return None, f"file not found: {filepath}"
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f), ""
    except json.JSONDecodeError as e:
        return None, f"invalid JSON in {filepath}: {e}"


def try_load_circuit(filepath: str) -> tuple[CircuitModel | None, str]:
    """Load and validate a circuit JSON file without exiting.

    Returns:
        (model, "") on success, or (None, error_message) on failure.
    """
    data, error = _read_json(filepath)
    if data is None:
        return None, error

    try:
        validate_circuit_data(data)
    except ValueError as e:
        return None, f"invalid circuit file: {e}"

    return CircuitModel.from_dict(data), ""


def si_number(text: str) -> float:
    """Parse a number with an optional SI prefix ("4.7k", "100u", "2MEG")."""
    try:
        return parse_value(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def parse_pair(text: str) -> PowerSourcePair:
    """Parse "POSITIVE:NEGATIVE" node ids."""
    positive, sep, negative = text.partition(":")
    if not sep or not positive or not negative:
        raise argparse.ArgumentTypeError(f"expected POSITIVE:NEGATIVE, got '{text}'")
    return PowerSourcePair(positive, negative)


def cmd_check(args: argparse.Namespace) -> int:
    """Report whether a drawn circuit forms a complete powered loop."""
    model, error = try_load_circuit(args.circuit)
    if model is None:
        print(f"Error: {error}", file=sys.stderr)
        return 1

    try:
        settings = load_settings(args.settings) if args.settings else None
    except (ValueError, json.JSONDecodeError) as e:
        print(f"Error: invalid settings file: {e}", file=sys.stderr)
        return 1
    tolerance = settings.connection_tolerance if settings else None

    status = check_circuit_completion(model.wires, model.nodes, args.pair or None, tolerance)

    if args.json:
        print(json.dumps({
            "isClosed": status.is_closed,
            "hasLoop": status.has_loop,
            "powerSourceConnected": status.power_source_connected,
            "openEndpoints": status.open_endpoints,
            "componentCount": status.component_count,
            "connectedComponents": status.connected_components,
            "message": status.message,
        }, indent=2))
    else:
        print(status.message)
        print(f"  Loop: {'yes' if status.has_loop else 'no'}")
        print(f"  Power source connected: {'yes' if status.power_source_connected else 'no'}")
        print(f"  Connected groups: {status.connected_components}")
        for node_id in status.open_endpoints:
            print(f"  Open endpoint: {node_id}")

    return 0 if status.is_closed else 1


def cmd_metrics(args: argparse.Namespace) -> int:
    """Solve watts, current, resistance and voltage from partial input."""
    given = {
        "voltage": args.voltage,
        "current": args.current,
        "resistance": args.resistance,
        "watts": args.watts,
    }
    try:
        solved = solve_wire_metrics({k: v for k, v in given.items() if v is not None})
    except InsufficientMetricsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(solved.to_dict(), indent=2, ensure_ascii=False))
        return 0

    for key in ("voltage", "current", "resistance", "watts"):
        line = f"{key.capitalize():<11} {format_metric_value(getattr(solved, key), key)}"
        derivation = solved.derived.get(key)
        if derivation is not None:
            line += f"  ({derivation.formula})"
        print(line)
    return 0


def cmd_ac(args: argparse.Namespace) -> int:
    """Solve a series RLC circuit."""
    params = ACCircuitInput(
        voltage=args.voltage,
        frequency_hz=args.frequency,
        resistance=args.resistance,
        inductance=args.inductance,
        capacitance=args.capacitance,
    )
    validation = validate_ac_input(params)
    if not validation.valid:
        print("Invalid AC input:", file=sys.stderr)
        for err in validation.errors:
            print(f"  - {err}", file=sys.stderr)
        return 1

    formatted = format_ac_metrics(solve_ac_circuit(params))
    if args.json:
        print(json.dumps(formatted, indent=2, ensure_ascii=False))
    else:
        for key, text in formatted.items():
            print(f"{key.replace('_', ' ').capitalize():<16} {text}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Classify faults in a schematic and list every validation issue."""
    data, error = _read_json(args.schematic)
    if data is None:
        print(f"Error: {error}", file=sys.stderr)
        return 1

    items = data.get("elements", []) if isinstance(data, dict) else data
    try:
        elements = elements_from_dicts(items)
    except (KeyError, TypeError, ValueError) as e:
        print(f"Error: invalid schematic file: {e}", file=sys.stderr)
        return 1

    solution = solve_dc_circuit(elements)
    result = validate_schematic(elements)

    print(f"DC analysis: {solution.status.value}")
    if solution.reason:
        print(f"  {solution.reason}")
    print(get_validation_summary(result))
    for issue in result.issues:
        print(f"  [{issue.severity.value}] {issue.message}: {issue.description}")

    failed = not result.is_valid or solution.status in (DCSolveStatus.INVALID_IDEAL_SHORT, DCSolveStatus.SINGULAR)
    return 1 if failed else 0


def cmd_migrate(args: argparse.Namespace) -> int:
    """Convert a legacy bare-polyline document to wires and nodes."""
    model, error = try_load_circuit(args.legacy)
    if model is None:
        print(f"Error: {error}", file=sys.stderr)
        return 1

    text = json.dumps(model.to_dict(), indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"Migrated {len(model.wires)} wire(s) -> {args.output}", file=sys.stderr)
    else:
        print(text)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="wire-topology",
        description="Wire topology engine: check circuits, solve W.I.R.E. and AC metrics, validate schematics.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # check
    check_parser = subparsers.add_parser("check", help="Check whether a drawn circuit is complete")
    check_parser.add_argument("circuit", help="Path to circuit JSON file")
    check_parser.add_argument(
        "--pair", action="append", type=parse_pair, metavar="POS:NEG",
        help="Power source terminal node ids (repeatable)",
    )
    check_parser.add_argument("--settings", help="Path to a topology settings JSON file")
    check_parser.add_argument("--json", action="store_true", help="Print the status as JSON")

    # metrics
    metrics_parser = subparsers.add_parser("metrics", help="Solve W.I.R.E. metrics from partial values")
    metrics_parser.add_argument("--voltage", "-E", type=si_number)
    metrics_parser.add_argument("--current", "-I", type=si_number)
    metrics_parser.add_argument("--resistance", "-R", type=si_number)
    metrics_parser.add_argument("--watts", "-P", type=si_number)
    metrics_parser.add_argument("--json", action="store_true", help="Print the solution as JSON")

    # ac
    ac_parser = subparsers.add_parser("ac", help="Solve a series RLC circuit")
    ac_parser.add_argument("--voltage", type=si_number, required=True)
    ac_parser.add_argument("--frequency", type=si_number, default=60.0, help="Frequency in Hz (default: 60)")
    ac_parser.add_argument("--resistance", type=si_number, default=0.0)
    ac_parser.add_argument("--inductance", type=si_number, default=0.0, help="Inductance in henries")
    ac_parser.add_argument("--capacitance", type=si_number, default=0.0, help="Capacitance in farads")
    ac_parser.add_argument("--json", action="store_true", help="Print the result as JSON")

    # validate
    val_parser = subparsers.add_parser("validate", help="Classify faults and validate a schematic")
    val_parser.add_argument("schematic", help="Path to schematic JSON file")

    # migrate
    mig_parser = subparsers.add_parser("migrate", help="Migrate a legacy bare-polyline circuit file")
    mig_parser.add_argument("legacy", help="Path to legacy circuit JSON file")
    mig_parser.add_argument("--output", "-o", help="Write the migrated circuit to this file instead of stdout")

    return parser


def main(argv=None) -> int:
    """CLI entry point. Returns exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handlers = {
        "check": cmd_check,
        "metrics": cmd_metrics,
        "ac": cmd_ac,
        "validate": cmd_validate,
        "migrate": cmd_migrate,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
