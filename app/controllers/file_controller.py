"""
FileController - Handles circuit document I/O.

Documents are JSON objects with "wires" and "nodes" lists. Documents
without "nodes" are the legacy bare-polyline format and are migrated
on load. File dialog interaction is the responsibility of the view layer.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from models.circuit import CircuitModel
from models.node import NodeType

logger = logging.getLogger(__name__)


def _check_point(point, where: str) -> None:
    if not isinstance(point, dict) or "x" not in point or "y" not in point:
        raise ValueError(f"{where} has invalid position data.")
    if not isinstance(point["x"], (int, float)) or not isinstance(point["y"], (int, float)):
        raise ValueError(f"{where} position values must be numeric.")


def validate_circuit_data(data) -> None:
    """
    Validate JSON structure before loading.

    Raises ValueError with a descriptive message if anything is wrong.
    """
    if not isinstance(data, dict):
        raise ValueError("File does not contain a valid circuit object.")

    if "wires" not in data or not isinstance(data["wires"], list):
        raise ValueError("Missing or invalid 'wires' list.")
    if "nodes" in data and not isinstance(data["nodes"], list):
        raise ValueError("Invalid 'nodes' list.")

    wire_ids = set()
    for i, wire in enumerate(data["wires"]):
        if not isinstance(wire, dict):
            raise ValueError(f"Wire #{i + 1} is not an object.")
        for key in ("id", "points"):
            if key not in wire:
                raise ValueError(f"Wire #{i + 1} is missing required field '{key}'.")
        if not isinstance(wire["points"], list):
            raise ValueError(f"Wire '{wire['id']}' points must be a list.")
        for j, point in enumerate(wire["points"]):
            _check_point(point, f"Wire '{wire['id']}' point #{j + 1}")
        distinct = [p for j, p in enumerate(wire["points"]) if j == 0 or p != wire["points"][j - 1]]
        if len(distinct) < 2:
            raise ValueError(f"Wire '{wire['id']}' needs at least two distinct points.")
        if wire["id"] in wire_ids:
            raise ValueError(f"Duplicate wire id '{wire['id']}'.")
        wire_ids.add(wire["id"])

    node_types = {t.value for t in NodeType}
    node_ids = set()
    for i, node in enumerate(data.get("nodes", [])):
        if not isinstance(node, dict):
            raise ValueError(f"Node #{i + 1} is not an object.")
        for key in ("id", "type", "pos"):
            if key not in node:
                raise ValueError(f"Node #{i + 1} is missing required field '{key}'.")
        if node["type"] not in node_types:
            raise ValueError(f"Node '{node['id']}' has unknown type '{node['type']}'.")
        _check_point(node["pos"], f"Node '{node['id']}'")
        if node["id"] in node_ids:
            raise ValueError(f"Duplicate node id '{node['id']}'.")
        node_ids.add(node["id"])


class FileController:
    """
    Manages circuit document I/O.

    Handles saving/loading the topology as JSON and remembers the file
    last saved or loaded. When a WireRouter is attached its adjacency
    graph is rebuilt after every load.
    """

    def __init__(self, model: Optional[CircuitModel] = None, router=None):
        self.model = model or CircuitModel()
        self.router = router
        self.current_file: Optional[Path] = None

    def new_circuit(self) -> None:
        """Clear drawn topology and reset file state. Component pins stay."""
        self.model.clear(keep_component_pins=True)
        self.current_file = None
        if self.router is not None:
            self.router.rebuild()

    def save_circuit(self, filepath) -> None:
        """
        Save circuit to JSON file.

        Raises:
            OSError: If the file cannot be written.
        """
        filepath = Path(filepath)
        data = self.model.to_dict()
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        self.current_file = filepath
        logger.info("Saved circuit to %s (%d wires, %d nodes)", filepath, len(self.model.wires), len(self.model.nodes))

    def load_circuit(self, filepath) -> None:
        """
        Load circuit from JSON file.

        Validates JSON structure before loading. Updates the model
        in place (preserving the reference so views stay connected).

        Raises:
            json.JSONDecodeError: If file is not valid JSON.
            ValueError: If file structure is invalid.
            OSError: If the file cannot be read.
        """
        filepath = Path(filepath)
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        validate_circuit_data(data)
        new_model = CircuitModel.from_dict(data)

        self.model.wires = new_model.wires
        self.model.nodes = new_model.nodes
        self.current_file = filepath
        logger.info("Loaded circuit from %s (%d wires, %d nodes)", filepath, len(self.model.wires), len(self.model.nodes))

        if self.router is not None:
            self.router.rebuild()
