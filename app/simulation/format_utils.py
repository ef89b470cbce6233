"""
simulation/format_utils.py

Parses numbers with SI unit prefixes from CLI input and element labels.
Element labels such as "9V", "4.7kΩ" or "R1 = 220 Ω" are read with parse_label_value.
"""
import re
from typing import Optional

# Dictionary of SI prefixes and their multipliers
# Includes common variations like 'u' for 'µ' and 'MEG' for 'M'
SI_PREFIX_MULTIPLIERS = {
    'f': 1e-15,  # Femto
    'p': 1e-12,  # Pico
    'n': 1e-9,   # Nano
    'u': 1e-6,   # Micro
    'µ': 1e-6,   # Micro
    'm': 1e-3,   # Milli
    'k': 1e3,    # Kilo
    'K': 1e3,    # Kilo (common misspelling on labels)
    'M': 1e6,    # Mega
    'MEG': 1e6,  # Mega (SPICE variant)
    'G': 1e9,    # Giga
    'T': 1e12,   # Tera
}

# A number not glued to a preceding letter or digit ("R1" is a name, not 1 ohm).
# A prefix letter only counts before a unit or a non-letter ("100 Tungsten" is 100).
_LABEL_NUMBER = re.compile(
    r'(?<![A-Za-z\d.])([-+]?\d+(?:\.\d+)?)\s*'
    r'(?:(MEG|[fpnuµmkKMGT])(?=[ΩVAFHW]|[Oo]hm|[^A-Za-z]|$))?'
)


def parse_value(s: str) -> float:
    """
    Parses a string with an optional SI prefix into a float.
    Examples: "10k" -> 10000.0, "25m" -> 0.025, "10u" -> 1e-5
    """
    if not isinstance(s, str):
        return float(s)

    s = s.strip()

    # Check for SPICE 'MEG' variant first
    if s.upper().endswith('MEG'):
        try:
            return float(s[:-3]) * SI_PREFIX_MULTIPLIERS['MEG']
        except ValueError:
            raise ValueError(f"Invalid number format: {s}")

    # Use regex to separate the number from the potential prefix/unit
    match = re.match(r'^(-?\d+\.?\d*(?:e[-+]?\d+)?)([a-zA-Zµ]*)', s)
    if not match:
        raise ValueError(f"Invalid number format: {s}")

    num_str, unit_str = match.groups()

    if not unit_str:
        return float(num_str)

    # Only the first character of the unit can be a prefix
    multiplier = SI_PREFIX_MULTIPLIERS.get(unit_str[0])
    if multiplier is not None:
        return float(num_str) * multiplier

    # If no known prefix is found in the unit string, just return the number
    return float(num_str)


def parse_label_value(label: Optional[str]) -> Optional[float]:
    """
    Read the first standalone number from a free-text label.

    An SI prefix directly after the number scales it. Returns None when
    the label holds no number.
    Examples: "9V" -> 9.0, "4.7kΩ" -> 4700.0, "R1 = 220 Ω" -> 220.0
    """
    if not label:
        return None
    text = " ".join(label.split())
    match = _LABEL_NUMBER.search(text)
    if not match:
        return None

    num_str, prefix = match.groups()
    value = float(num_str)
    if prefix:
        value *= SI_PREFIX_MULTIPLIERS[prefix]
    return value
