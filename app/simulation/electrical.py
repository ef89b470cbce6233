"""
simulation/electrical.py

Derives electrical quantities from partial input:

- W.I.R.E. constraint solver: fills in watts, current, resistance and
  voltage from any two independent known values using Ohm's law and the
  power law, recording which formula produced each derived value.
- Series RLC AC solver with itemized input validation.
- numpy frequency sweep of the same circuit.
- Display formatting for metric values and frequencies.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)

METRIC_KEYS = ("watts", "current", "resistance", "voltage")

METRIC_UNITS = {
    "watts": "W",
    "current": "A",
    "resistance": "Ω",
    "voltage": "V",
}

METRIC_PRECISION = {
    "watts": 2,
    "current": 3,
    "resistance": 2,
    "voltage": 2,
}

EPSILON = 1e-9
DEFAULT_MAX_ITERATIONS = 16

DEFAULT_AC_FREQUENCY = 60.0

PLACEHOLDER = "—"


class InsufficientMetricsError(ValueError):
    """Raised when the known quantities do not determine all four metrics."""


def _is_finite(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value to [lo, hi]. NaN clamps to lo."""
    if math.isnan(value):
        return lo
    return min(max(value, lo), hi)


def round_to(value: float, digits: int = 3) -> float:
    factor = 10 ** digits
    return round(value * factor) / factor


def sanitise_metrics(metrics: dict) -> dict:
    """Keep only the known metric keys whose values are finite numbers."""
    return {k: v for k, v in metrics.items() if k in METRIC_KEYS and _is_finite(v)}


def merge_metrics(base: Optional[dict], overrides: Optional[dict]) -> dict:
    """Sanitised base updated with sanitised overrides."""
    merged = sanitise_metrics(base or {})
    merged.update(sanitise_metrics(overrides or {}))
    return merged


def empty_wire_metrics() -> dict:
    return {key: 0.0 for key in METRIC_KEYS}


# ---------------------------------------------------------------------------
# W.I.R.E. constraint solver
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Derivation:
    """Which formula and which inputs produced a derived value."""

    formula: str
    inputs: tuple[str, ...]


@dataclass
class SolvedWireMetrics:
    watts: float
    current: float
    resistance: float
    voltage: float
    derived: dict[str, Derivation] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "watts": self.watts,
            "current": self.current,
            "resistance": self.resistance,
            "voltage": self.voltage,
            "derived": {
                key: {"formula": d.formula, "inputs": list(d.inputs)} for key, d in self.derived.items()
            },
        }


def _derivations(tol: float):
    """
    Derivation rules as (output, inputs, formula, guard, compute).

    The guard receives the current values and returns False when the rule
    must not fire (division by a near-zero value, square root of a
    negative product).
    """
    return [
        ("voltage", ("current", "resistance"), "E = I × R",
         lambda v: True,
         lambda v: v["current"] * v["resistance"]),
        ("current", ("voltage", "resistance"), "I = E / R",
         lambda v: abs(v["resistance"]) > tol,
         lambda v: v["voltage"] / v["resistance"]),
        ("resistance", ("voltage", "current"), "R = E / I",
         lambda v: abs(v["current"]) > tol,
         lambda v: v["voltage"] / v["current"]),
        ("watts", ("voltage", "current"), "P = E × I",
         lambda v: True,
         lambda v: v["voltage"] * v["current"]),
        ("watts", ("current", "resistance"), "P = I² × R",
         lambda v: True,
         lambda v: v["current"] * v["current"] * v["resistance"]),
        ("watts", ("voltage", "resistance"), "P = E² / R",
         lambda v: abs(v["resistance"]) > tol,
         lambda v: v["voltage"] * v["voltage"] / v["resistance"]),
        ("voltage", ("watts", "current"), "E = P / I",
         lambda v: abs(v["current"]) > tol,
         lambda v: v["watts"] / v["current"]),
        ("voltage", ("watts", "resistance"), "E = √(P × R)",
         lambda v: v["watts"] >= 0 and v["resistance"] >= 0,
         lambda v: math.sqrt(v["watts"] * v["resistance"])),
        ("current", ("watts", "voltage"), "I = P / E",
         lambda v: abs(v["voltage"]) > tol,
         lambda v: v["watts"] / v["voltage"]),
        ("current", ("watts", "resistance"), "I = √(P / R)",
         lambda v: v["resistance"] >= tol and v["watts"] >= 0,
         lambda v: math.sqrt(v["watts"] / v["resistance"])),
        ("resistance", ("watts", "current"), "R = P / I²",
         lambda v: abs(v["current"]) > tol,
         lambda v: v["watts"] / (v["current"] * v["current"])),
        ("resistance", ("voltage", "watts"), "R = E² / P",
         lambda v: abs(v["watts"]) > tol,
         lambda v: v["voltage"] * v["voltage"] / v["watts"]),
    ]


def solve_wire_metrics(
    metrics: dict,
    tolerance: float = EPSILON,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> SolvedWireMetrics:
    """
    Solve watts, current, resistance and voltage from partial input.

    Every pass applies each derivation whose inputs are known and whose
    output is still unknown. Passes repeat until one changes nothing or
    max_iterations is reached. Non-finite inputs count as unknown.

    Args:
        metrics: Any subset of {"watts", "current", "resistance", "voltage"}.
        tolerance: Divisors with magnitude at or below this are treated as zero.
        max_iterations: Upper bound on derivation passes.

    Returns:
        SolvedWireMetrics with all four values and, for each derived value,
        the Derivation that produced it.

    Raises:
        InsufficientMetricsError: If any quantity is still unknown after
            convergence (for example only one value was given).
    """
    values = {key: metrics.get(key) if _is_finite(metrics.get(key)) else None for key in METRIC_KEYS}
    derived: dict[str, Derivation] = {}
    rules = _derivations(tolerance)

    for _ in range(max_iterations):
        changed = False
        for output, inputs, formula, guard, compute in rules:
            if values[output] is not None:
                continue
            if any(values[k] is None for k in inputs) or not guard(values):
                continue
            result = compute(values)
            if not _is_finite(result):
                continue
            values[output] = result
            derived[output] = Derivation(formula, inputs)
            changed = True
        if not changed:
            break

    missing = [key for key in METRIC_KEYS if values[key] is None]
    if missing:
        logger.debug("W.I.R.E. solve incomplete, missing %s", ", ".join(missing))
        raise InsufficientMetricsError("Unable to resolve all W.I.R.E. metrics from provided values")

    return SolvedWireMetrics(
        watts=values["watts"],
        current=values["current"],
        resistance=values["resistance"],
        voltage=values["voltage"],
        derived=derived,
    )


# ---------------------------------------------------------------------------
# AC solver
# ---------------------------------------------------------------------------


@dataclass
class ACCircuitInput:
    """Series RLC circuit driven by a sinusoidal source. Zero L or C means absent."""

    voltage: float
    frequency_hz: float = DEFAULT_AC_FREQUENCY
    resistance: float = 0.0
    inductance: float = 0.0
    capacitance: float = 0.0


@dataclass
class ACCircuitResult:
    voltage: float
    frequency_hz: float
    resistance: float
    inductive_reactance: float
    capacitive_reactance: float
    reactance: float
    impedance: float
    phase_angle: float
    phase_angle_degrees: float
    current: float
    power_factor: float
    real_power: float
    reactive_power: float
    apparent_power: float


@dataclass
class ACValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)


def validate_ac_input(params: ACCircuitInput) -> ACValidation:
    """Check every field independently and report every violation."""
    errors = []
    if params.voltage < 0:
        errors.append("Voltage must be non-negative")
    if params.frequency_hz <= 0:
        errors.append("Frequency must be positive")
    if params.resistance < 0:
        errors.append("Resistance must be non-negative")
    if params.inductance < 0:
        errors.append("Inductance must be non-negative")
    if params.capacitance < 0:
        errors.append("Capacitance must be non-negative")
    return ACValidation(valid=not errors, errors=errors)


def _reactances(frequency_hz: float, inductance: float, capacitance: float) -> tuple[float, float]:
    omega = 2 * math.pi * frequency_hz
    x_l = omega * inductance
    x_c = 1.0 / (omega * capacitance) if capacitance > 0 and omega > 0 else 0.0
    return x_l, x_c


def solve_ac_circuit(params: ACCircuitInput) -> ACCircuitResult:
    """
    Solve a series RLC circuit.

    X_L = 2πfL, X_C = 1/(2πfC), X = X_L - X_C, |Z| = √(R² + X²),
    phase = atan2(X, R), I = V/|Z|, PF = cos(phase), P = VI·cos(phase),
    Q = VI·sin(phase), S = VI. A zero impedance gives zero current.
    """
    x_l, x_c = _reactances(params.frequency_hz, params.inductance, params.capacitance)
    reactance = x_l - x_c
    impedance = math.hypot(params.resistance, reactance)
    phase = math.atan2(reactance, params.resistance)
    current = params.voltage / impedance if impedance > 0 else 0.0
    apparent = params.voltage * current

    return ACCircuitResult(
        voltage=params.voltage,
        frequency_hz=params.frequency_hz,
        resistance=params.resistance,
        inductive_reactance=x_l,
        capacitive_reactance=x_c,
        reactance=reactance,
        impedance=impedance,
        phase_angle=phase,
        phase_angle_degrees=math.degrees(phase),
        current=current,
        power_factor=math.cos(phase),
        real_power=apparent * math.cos(phase),
        reactive_power=apparent * math.sin(phase),
        apparent_power=apparent,
    )


def phase_characteristic(result: ACCircuitResult, tolerance: float = 1e-9) -> str:
    """'lagging' for inductive, 'leading' for capacitive, 'unity' otherwise."""
    if result.reactance > tolerance:
        return "lagging"
    if result.reactance < -tolerance:
        return "leading"
    return "unity"


def resonant_frequency(inductance: float, capacitance: float) -> Optional[float]:
    """f0 = 1 / (2π√(LC)), or None if either value is not positive."""
    if inductance <= 0 or capacitance <= 0:
        return None
    return 1.0 / (2 * math.pi * math.sqrt(inductance * capacitance))


def generate_frequencies(start: float = 20.0, end: float = 20000.0, num_points: int = 500) -> np.ndarray:
    """Generate logarithmically-spaced frequency array (Hz)."""
    return np.logspace(np.log10(start), np.log10(end), num_points)


def sweep_ac_circuit(params: ACCircuitInput, frequencies) -> dict[str, np.ndarray]:
    """
    Evaluate the series RLC circuit at every frequency.

    Returns:
        Dict of arrays keyed "frequency", "impedance", "phase_degrees",
        "current" and "power_factor", all the same length as frequencies.
    """
    frequencies = np.asarray(frequencies, dtype=float)
    omega = 2 * np.pi * frequencies

    z = np.full(frequencies.shape, params.resistance, dtype=complex)
    if params.inductance > 0:
        z = z + 1j * omega * params.inductance
    if params.capacitance > 0:
        z = z + 1.0 / (1j * omega * params.capacitance)

    magnitude = np.abs(z)
    phase = np.angle(z)
    with np.errstate(divide="ignore", invalid="ignore"):
        current = np.where(magnitude > 0, params.voltage / magnitude, 0.0)

    return {
        "frequency": frequencies,
        "impedance": magnitude,
        "phase_degrees": np.degrees(phase),
        "current": current,
        "power_factor": np.cos(phase),
    }


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_number(value, digits: int = 2) -> str:
    """Fixed-point text whose decimals shrink as the magnitude grows."""
    if not _is_finite(value):
        return PLACEHOLDER

    magnitude = abs(value)
    if magnitude >= 1000:
        applied = 1
    elif magnitude >= 100:
        applied = min(digits, 1)
    elif magnitude >= 10:
        applied = min(digits, 2)
    else:
        applied = digits
    return f"{value:.{applied}f}"


def format_metric_value(value, key: str) -> str:
    """Unit-suffixed metric text, e.g. format_metric_value(2, "current") -> "2.000 A"."""
    if not _is_finite(value):
        return PLACEHOLDER
    digits = METRIC_PRECISION.get(key, 2)
    return f"{format_number(value, digits)} {METRIC_UNITS[key]}"


def format_frequency(hz) -> str:
    if not _is_finite(hz):
        return PLACEHOLDER
    if abs(hz) >= 1000:
        return f"{hz / 1000:.2f} kHz"
    return f"{hz:.1f} Hz"


def format_ac_metrics(result: ACCircuitResult) -> dict[str, str]:
    """Display strings for the headline AC quantities."""
    return {
        "frequency": format_frequency(result.frequency_hz),
        "impedance": f"{format_number(result.impedance)} Ω",
        "reactance": f"{format_number(result.reactance)} Ω",
        "current": format_metric_value(result.current, "current"),
        "phase": f"{format_number(result.phase_angle_degrees)}°",
        "power_factor": format_number(result.power_factor, 3),
        "real_power": format_metric_value(result.real_power, "watts"),
        "reactive_power": f"{format_number(result.reactive_power)} VAR",
        "apparent_power": f"{format_number(result.apparent_power)} VA",
        "characteristic": phase_characteristic(result),
    }
