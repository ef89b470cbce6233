"""
Shared test fixtures for the wire topology test suite.

All fixtures build pure-Python model objects (no Qt dependencies).
"""

import sys
from pathlib import Path

# Ensure app/ is on sys.path so bare imports (models, simulation, routing, controllers)
# work when running individual test files (e.g., python -m pytest app/tests/unit/test_foo.py).
_app_dir = str(Path(__file__).resolve().parent.parent)
if _app_dir not in sys.path:
    sys.path.insert(0, _app_dir)

import pytest
from models.circuit import CircuitModel
from models.node import Node, NodeType
from models.schematic import ElementKind, ground_element, two_terminal, wire_element
from models.wire import Wire


def make_node(node_id, node_type=NodeType.JUNCTION, pos=(0.0, 0.0)):
    """Helper to create a Node with minimal boilerplate."""
    return Node(id=node_id, type=NodeType(node_type), pos=(float(pos[0]), float(pos[1])))


def make_wire(wire_id, *points):
    """Helper to create a Wire from (x, y) points."""
    return Wire(id=wire_id, points=[(float(x), float(y)) for x, y in points])


@pytest.fixture
def events():
    """Fixture that returns a list and a callback that appends events to it."""
    recorded = []

    def callback(event, data):
        recorded.append((event, data))

    return recorded, callback


@pytest.fixture
def square_loop():
    """
    Battery pins at two corners of a square, junctions at the other two.

    pos (0,0) --w1-- j1 (100,0)
      |                 |
      w4                w2
      |                 |
    j2 (0,100) --w3-- neg (100,100)
    """
    nodes = [
        make_node("pos", NodeType.COMPONENT_PIN, (0, 0)),
        make_node("j1", NodeType.JUNCTION, (100, 0)),
        make_node("neg", NodeType.COMPONENT_PIN, (100, 100)),
        make_node("j2", NodeType.JUNCTION, (0, 100)),
    ]
    wires = [
        make_wire("w1", (0, 0), (100, 0)),
        make_wire("w2", (100, 0), (100, 100)),
        make_wire("w3", (100, 100), (0, 100)),
        make_wire("w4", (0, 100), (0, 0)),
    ]
    return wires, nodes


@pytest.fixture
def square_model(square_loop):
    """CircuitModel holding the square loop."""
    wires, nodes = square_loop
    return CircuitModel(wires=wires, nodes=nodes)


@pytest.fixture
def series_schematic():
    """
    9V battery driving a 100 Ω resistor through two wires, grounded at
    the battery's negative terminal.

    (0,2) --W1-- (2,2)
      |            |
     BAT+         R1
     BAT-          |
    (0,0) --W2-- (2,0)
    """
    return [
        two_terminal("B1", ElementKind.BATTERY, (0, 0), (0, 2), label="9V"),
        wire_element("W1", [(0, 2), (2, 2)]),
        two_terminal("R1", ElementKind.RESISTOR, (2, 2), (2, 0), label="100Ω"),
        wire_element("W2", [(2, 0), (0, 0)]),
        ground_element("G1", (0, 0)),
    ]


@pytest.fixture
def shorted_schematic():
    """Battery whose terminals are joined by a single wire."""
    return [
        two_terminal("B1", ElementKind.BATTERY, (0, 0), (0, 2), label="9V"),
        wire_element("W1", [(0, 0), (0, 2)]),
        ground_element("G1", (0, 0)),
    ]
