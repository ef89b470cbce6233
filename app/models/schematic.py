"""
SchematicElement - Pure Python data model for typed circuit elements.

Used by the network fault classifier and the schematic validator. Each
element exposes named terminals at fixed positions; electrical nodes are
formed later by grouping terminals that lie close together.
"""

from dataclasses import dataclass, field
from enum import Enum

from .geometry import Vec2


class ElementKind(str, Enum):
    BATTERY = "battery"
    RESISTOR = "resistor"
    CAPACITOR = "capacitor"
    INDUCTOR = "inductor"
    LAMP = "lamp"
    SWITCH = "switch"
    DIODE = "diode"
    LED = "led"
    BJT = "bjt"
    GROUND = "ground"
    WIRE = "wire"


TWO_TERMINAL_KINDS = {
    ElementKind.BATTERY,
    ElementKind.RESISTOR,
    ElementKind.CAPACITOR,
    ElementKind.INDUCTOR,
    ElementKind.LAMP,
    ElementKind.SWITCH,
    ElementKind.DIODE,
    ElementKind.LED,
}

BJT_TERMINALS = ("collector", "base", "emitter")


@dataclass
class SchematicElement:
    """
    A typed element and its terminal positions.

    Two-terminal parts use the "start" and "end" terminals (a battery's
    start is its negative terminal), ground uses "gnd", a BJT uses
    "collector", "base" and "emitter", and a wire has one terminal per
    path point named "p0", "p1", ...
    """

    id: str
    kind: ElementKind
    label: str = ""
    terminals: dict[str, Vec2] = field(default_factory=dict)
    path: list[Vec2] = field(default_factory=list)

    @property
    def is_load(self) -> bool:
        return self.kind not in (ElementKind.WIRE, ElementKind.BATTERY, ElementKind.GROUND)

    def terminal_points(self) -> list[tuple[str, Vec2]]:
        """(terminal key, position) for every terminal."""
        if self.kind == ElementKind.WIRE:
            return [(f"p{i}", p) for i, p in enumerate(self.path)]
        return list(self.terminals.items())

    def endpoints(self) -> list[Vec2]:
        """Outer connection points: a wire's two ends, or every terminal."""
        if self.kind == ElementKind.WIRE:
            return [self.path[0], self.path[-1]] if len(self.path) >= 2 else list(self.path)
        return list(self.terminals.values())

    def display_label(self) -> str:
        return self.label or self.kind.value

    def to_dict(self) -> dict:
        data = {"id": self.id, "kind": self.kind.value}
        if self.label:
            data["label"] = self.label
        if self.kind == ElementKind.WIRE:
            data["path"] = [{"x": p[0], "y": p[1]} for p in self.path]
        elif self.kind == ElementKind.GROUND:
            pos = self.terminals["gnd"]
            data["position"] = {"x": pos[0], "y": pos[1]}
        else:
            for key, pos in self.terminals.items():
                data[key] = {"x": pos[0], "y": pos[1]}
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SchematicElement":
        """
        Build an element from a dictionary.

        Points are {"x", "y"} objects; {"x", "z"} (ground-plane coordinates)
        is accepted as well.

        Raises:
            ValueError: If the kind is unknown or a terminal is missing.
        """
        kind = ElementKind(data["kind"])
        element_id = data["id"]
        label = data.get("label", "")

        if kind == ElementKind.WIRE:
            return wire_element(element_id, [_point(p) for p in data.get("path", [])])
        if kind == ElementKind.GROUND:
            return ground_element(element_id, _point(_require(data, "position", element_id)))
        if kind == ElementKind.BJT:
            pts = [_point(_require(data, key, element_id)) for key in BJT_TERMINALS]
            return bjt_element(element_id, *pts, label=label)
        return two_terminal(
            element_id,
            kind,
            _point(_require(data, "start", element_id)),
            _point(_require(data, "end", element_id)),
            label=label,
        )


def _require(data: dict, key: str, element_id: str):
    if key not in data:
        raise ValueError(f"Element '{element_id}' is missing required field '{key}'.")
    return data[key]


def _point(raw) -> Vec2:
    if isinstance(raw, dict):
        y = raw["y"] if "y" in raw else raw["z"]
        return (float(raw["x"]), float(y))
    return (float(raw[0]), float(raw[1]))


def two_terminal(element_id: str, kind, start: Vec2, end: Vec2, label: str = "") -> SchematicElement:
    kind = ElementKind(kind)
    if kind not in TWO_TERMINAL_KINDS:
        raise ValueError(f"'{kind.value}' is not a two-terminal element.")
    return SchematicElement(
        id=element_id,
        kind=kind,
        label=label,
        terminals={"start": (float(start[0]), float(start[1])), "end": (float(end[0]), float(end[1]))},
    )


def wire_element(element_id: str, path) -> SchematicElement:
    return SchematicElement(
        id=element_id,
        kind=ElementKind.WIRE,
        path=[(float(p[0]), float(p[1])) for p in path],
    )


def ground_element(element_id: str, position: Vec2) -> SchematicElement:
    return SchematicElement(
        id=element_id,
        kind=ElementKind.GROUND,
        terminals={"gnd": (float(position[0]), float(position[1]))},
    )


def bjt_element(element_id: str, collector: Vec2, base: Vec2, emitter: Vec2, label: str = "") -> SchematicElement:
    return SchematicElement(
        id=element_id,
        kind=ElementKind.BJT,
        label=label,
        terminals={"collector": collector, "base": base, "emitter": emitter},
    )


def elements_from_dicts(items: list[dict]) -> list[SchematicElement]:
    return [SchematicElement.from_dict(item) for item in items]

