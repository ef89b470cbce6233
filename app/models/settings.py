"""
models/settings.py - Tunable tolerances for wire topology and routing.

This file is the SINGLE SOURCE OF TRUTH for:
- Snap/hit/merge radii used by the wire router
- CONNECTION_TOLERANCE used when rebuilding the adjacency graph
- Routing grid size and A* limits

The connection tolerance is deliberately separate from the snap radius:
the router decides what the user meant while drawing, the analyzer
decides which wire points touch which nodes afterwards.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)

# Router radii (scene units)
SNAP_RADIUS = 12.0             # Snap draw start/end to a node within this distance
WIRE_HIT_RADIUS = 16.0         # Splice a junction into a wire clicked within this distance
MERGE_RADIUS = 6.0             # Nodes closer than this are merged on commit

# Connectivity
CONNECTION_TOLERANCE = 16.0    # Wire point to node matching during rebuild
INTERSECTION_TOLERANCE = 1.0   # Crossings this close to a segment endpoint are joins

# Routing grid
GRID_SIZE = 20                 # Cell size for routing-mode A*
MAX_ASTAR_ITERATIONS = 10000   # Safety limit on A* node expansion
ROUTE_MARGIN_CELLS = 10        # Search area margin around start/end (cells)
MAX_ROUTE_CELLS = 48           # Longest wire routing mode will draw (cells)

# Star mode bend
STAR_BEND_RATIO = 0.25         # Bend offset as a share of line length
STAR_MAX_OFFSET = 60.0         # Upper bound on the bend offset

SETTINGS_VERSION = 1


@dataclass
class TopologySettings:
    """All tunables used by the router and the connectivity analyzer."""

    snap_radius: float = SNAP_RADIUS
    wire_hit_radius: float = WIRE_HIT_RADIUS
    merge_radius: float = MERGE_RADIUS
    connection_tolerance: float = CONNECTION_TOLERANCE
    intersection_tolerance: float = INTERSECTION_TOLERANCE
    grid_size: int = GRID_SIZE
    max_astar_iterations: int = MAX_ASTAR_ITERATIONS
    route_margin_cells: int = ROUTE_MARGIN_CELLS
    max_route_cells: int = MAX_ROUTE_CELLS
    star_bend_ratio: float = STAR_BEND_RATIO
    star_max_offset: float = STAR_MAX_OFFSET

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if value < 0:
                raise ValueError(f"Setting '{f.name}' must be non-negative (got {value}).")
        if self.grid_size == 0:
            raise ValueError("Setting 'grid_size' must be positive.")

    def to_dict(self) -> dict:
        """Serialize settings to a JSON-compatible dictionary."""
        data = asdict(self)
        data["version"] = SETTINGS_VERSION
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "TopologySettings":
        """
        Build settings from a dictionary.

        Missing keys keep their defaults; unknown keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known - {"version"}
        if unknown:
            logger.warning("Ignoring unknown settings: %s", ", ".join(sorted(unknown)))
        return cls(**{k: v for k, v in data.items() if k in known})


def load_settings(path) -> TopologySettings:
    """
    Load settings from a JSON file.

    Returns the defaults if the file does not exist.

    Raises:
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If a setting has an invalid value.
    """
    path = Path(path)
    if not path.exists():
        logger.debug("Settings file not found, using defaults: %s", path)
        return TopologySettings()
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Settings file does not contain a JSON object.")
    return TopologySettings.from_dict(data)


def save_settings(settings: TopologySettings, path) -> None:
    """Write settings to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")


def get_default_settings() -> TopologySettings:
    """A new settings object holding the defaults. Callers may mutate it."""
    return TopologySettings()
