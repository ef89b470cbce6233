"""Tests for models/node.py — node creation, merging and lookup."""

import pytest
from models.node import (
    MERGE_PRIORITY,
    Node,
    NodeType,
    clone_node,
    create_node,
    find_closest_node,
    generate_id,
    merge_nodes,
    should_merge_nodes,
)
from tests.conftest import make_node


class TestCreateNode:
    def test_generates_unique_ids(self):
        a = create_node(NodeType.JUNCTION, (0, 0))
        b = create_node(NodeType.JUNCTION, (0, 0))
        assert a.id != b.id
        assert a.id.startswith("node-")

    def test_explicit_id(self):
        node = create_node("componentPin", (1, 2), node_id="R1-a")
        assert node.id == "R1-a"
        assert node.type == NodeType.COMPONENT_PIN

    def test_position_is_copied(self):
        pos = [3, 4]
        node = create_node(NodeType.WIRE_ANCHOR, pos)
        pos[0] = 99
        assert node.pos == (3.0, 4.0)

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError):
            create_node("resistor", (0, 0))

    def test_generate_id_prefix(self):
        assert generate_id("wire").startswith("wire-")


class TestMergePriority:
    def test_pin_beats_junction_beats_anchor(self):
        assert MERGE_PRIORITY[NodeType.COMPONENT_PIN] > MERGE_PRIORITY[NodeType.JUNCTION]
        assert MERGE_PRIORITY[NodeType.JUNCTION] > MERGE_PRIORITY[NodeType.WIRE_ANCHOR]

    def test_pin_survives_regardless_of_order(self):
        pin = make_node("pin", NodeType.COMPONENT_PIN, (0, 0))
        anchor = make_node("anc", NodeType.WIRE_ANCHOR, (3, 0))
        anchor.attach_wire("w1")
        pin.attach_wire("w2")

        survivor = merge_nodes(anchor, pin)
        assert survivor is pin
        assert survivor.pos == (0.0, 0.0)
        assert survivor.attached_wire_ids == {"w1", "w2"}

    def test_junction_beats_anchor(self):
        junction = make_node("j", NodeType.JUNCTION, (0, 0))
        anchor = make_node("a", NodeType.WIRE_ANCHOR, (1, 0))
        assert merge_nodes(junction, anchor) is junction
        assert merge_nodes(anchor, junction) is junction

    def test_tie_keeps_first(self):
        a = make_node("a", NodeType.WIRE_ANCHOR, (0, 0))
        b = make_node("b", NodeType.WIRE_ANCHOR, (2, 0))
        b.attach_wire("wb")
        survivor = merge_nodes(a, b)
        assert survivor is a
        assert "wb" in survivor.attached_wire_ids


class TestShouldMerge:
    def test_within_radius(self):
        a = make_node("a", pos=(0, 0))
        b = make_node("b", pos=(3, 4))
        assert should_merge_nodes(a, b, 5.0)
        assert not should_merge_nodes(a, b, 4.9)

    def test_same_id_never_merges(self):
        a = make_node("a", pos=(0, 0))
        assert not should_merge_nodes(a, a, 100.0)


class TestFindClosestNode:
    def test_returns_closest_within_range(self):
        nodes = [make_node("far", pos=(10, 0)), make_node("near", pos=(2, 0))]
        assert find_closest_node((0, 0), nodes, 12).id == "near"

    def test_none_outside_range(self):
        nodes = [make_node("a", pos=(10, 0))]
        assert find_closest_node((0, 0), nodes, 5) is None

    def test_boundary_is_inclusive(self):
        nodes = [make_node("a", pos=(5, 0))]
        assert find_closest_node((0, 0), nodes, 5).id == "a"

    def test_tie_goes_to_first(self):
        nodes = [make_node("left", pos=(-1, 0)), make_node("right", pos=(1, 0))]
        assert find_closest_node((0, 0), nodes, 5).id == "left"

    def test_empty(self):
        assert find_closest_node((0, 0), [], 5) is None


class TestNodeSerialization:
    def test_to_dict(self):
        node = make_node("n1", NodeType.JUNCTION, (1.5, -2))
        node.attach_wire("w2")
        node.attach_wire("w1")
        assert node.to_dict() == {
            "id": "n1",
            "type": "junction",
            "pos": {"x": 1.5, "y": -2.0},
            "attachedWireIds": ["w1", "w2"],
        }

    def test_from_dict_restores_set(self):
        node = Node.from_dict({
            "id": "p",
            "type": "componentPin",
            "pos": {"x": 0, "y": 10},
            "attachedWireIds": ["w1", "w1"],
        })
        assert node.type == NodeType.COMPONENT_PIN
        assert node.pos == (0.0, 10.0)
        assert node.attached_wire_ids == {"w1"}

    def test_clone_is_independent(self):
        node = make_node("n", pos=(0, 0))
        node.attach_wire("w1")
        copy = clone_node(node)
        copy.attach_wire("w2")
        assert node.attached_wire_ids == {"w1"}

    def test_detach_missing_wire_is_safe(self):
        node = make_node("n")
        node.detach_wire("nope")
        assert node.attached_wire_ids == set()
