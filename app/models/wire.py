"""
Wire - Pure Python data model for drawn wires.

A wire is an ordered polyline of (x, y) tuples plus the set of node ids
that currently sit on its points. Points are only ever added (junction
insertion); consecutive points are kept distinct.
"""

from dataclasses import dataclass, field
from typing import Iterator, NamedTuple, Optional

from .geometry import Vec2, distance, point_to_segment_distance, project_point_on_segment
from .node import generate_id


class InvalidSegmentIndexError(ValueError):
    """Raised when a point is inserted into a segment that does not exist."""


class PointOnWire(NamedTuple):
    """Result of ensure_point_on_wire()."""

    index: int
    inserted: bool
    point: Optional[Vec2]


class ClosestPoint(NamedTuple):
    """Closest point on a wire to a query position."""

    point: Vec2
    segment_index: int
    distance: float


@dataclass
class Wire:
    """An ordered polyline connecting nodes."""

    id: str
    points: list[Vec2]
    attached_node_ids: set[str] = field(default_factory=set)

    def segments(self) -> Iterator[tuple[int, Vec2, Vec2]]:
        """Yield (segment_index, start, end) for each segment."""
        for i in range(len(self.points) - 1):
            yield i, self.points[i], self.points[i + 1]

    @property
    def segment_count(self) -> int:
        return max(0, len(self.points) - 1)

    def length(self) -> float:
        """Total polyline length."""
        return sum(distance(a, b) for _, a, b in self.segments())

    def to_dict(self) -> dict:
        """Serialize wire. Attached node ids become a sorted list."""
        return {
            "id": self.id,
            "points": [{"x": p[0], "y": p[1]} for p in self.points],
            "attachedNodeIds": sorted(self.attached_node_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Wire":
        """Deserialize wire. Consecutive duplicate points are collapsed."""
        return cls(
            id=data["id"],
            points=dedupe_consecutive_points([(float(p["x"]), float(p["y"])) for p in data["points"]]),
            attached_node_ids=set(data.get("attachedNodeIds", [])),
        )

    def __repr__(self) -> str:
        return f"Wire({self.id}, points={len(self.points)}, nodes={len(self.attached_node_ids)})"


def dedupe_consecutive_points(points: list[Vec2]) -> list[Vec2]:
    """Copy of points without consecutive repeats."""
    result: list[Vec2] = []
    for p in points:
        if not result or result[-1] != p:
            result.append(p)
    return result


def create_wire(points, wire_id: Optional[str] = None) -> Wire:
    """
    Create a wire from a copy of points.

    Consecutive duplicate points are collapsed so that every segment has
    non-zero length.

    Raises:
        ValueError: If fewer than two distinct points remain.
    """
    copied = dedupe_consecutive_points([(float(p[0]), float(p[1])) for p in points])
    if len(copied) < 2:
        raise ValueError("A wire needs at least two distinct points.")
    return Wire(id=wire_id or generate_id("wire"), points=copied)


def clone_wire(wire: Wire) -> Wire:
    """Deep copy of a wire."""
    return Wire(id=wire.id, points=list(wire.points), attached_node_ids=set(wire.attached_node_ids))


def get_wire_endpoints(wire: Wire) -> tuple[Vec2, Vec2]:
    """First and last point of the wire."""
    return wire.points[0], wire.points[-1]


def insert_point_into_wire(wire: Wire, point: Vec2, segment_index: int) -> int:
    """
    Split segment segment_index at point.

    Returns:
        Index of the inserted point in wire.points.

    Raises:
        InvalidSegmentIndexError: If segment_index is not in [0, len(points) - 2].
    """
    if not (0 <= segment_index <= len(wire.points) - 2):
        raise InvalidSegmentIndexError(
            f"Segment index {segment_index} out of range for wire {wire.id} "
            f"with {len(wire.points)} points."
        )
    wire.points.insert(segment_index + 1, (float(point[0]), float(point[1])))
    return segment_index + 1


def find_closest_point_on_wire(pos: Vec2, wire: Wire) -> Optional[ClosestPoint]:
    """
    Closest point to pos over all segments of the wire.

    Returns None for a wire without segments. Ties go to the earlier segment.
    """
    best: Optional[ClosestPoint] = None
    for i, a, b in wire.segments():
        projected = project_point_on_segment(pos, a, b)
        d = distance(pos, projected)
        if best is None or d < best.distance:
            best = ClosestPoint(projected, i, d)
    return best


def ensure_point_on_wire(wire: Wire, point: Vec2, tolerance: float) -> PointOnWire:
    """
    Make sure the wire has a vertex at point.

    An existing vertex within tolerance is reused. Otherwise point is
    projected onto the nearest segment and, if that projection is within
    tolerance, spliced in. Calling this twice with the same point never
    inserts twice.

    Returns:
        PointOnWire(index, inserted, point). index is -1 and point is None
        when no segment is within tolerance.
    """
    for i, existing in enumerate(wire.points):
        if distance(existing, point) <= tolerance:
            return PointOnWire(i, False, existing)

    closest = find_closest_point_on_wire(point, wire)
    if closest is None or closest.distance > tolerance:
        return PointOnWire(-1, False, None)

    # Projection can land on an endpoint when the point is past the segment
    a = wire.points[closest.segment_index]
    b = wire.points[closest.segment_index + 1]
    if closest.point == a:
        return PointOnWire(closest.segment_index, False, a)
    if closest.point == b:
        return PointOnWire(closest.segment_index + 1, False, b)

    index = insert_point_into_wire(wire, closest.point, closest.segment_index)
    return PointOnWire(index, True, wire.points[index])


def is_point_on_wire(wire: Wire, point: Vec2, tolerance: float) -> bool:
    """True if point lies within tolerance of any segment."""
    return any(point_to_segment_distance(point, a, b) <= tolerance for _, a, b in wire.segments())
