"""
models/geometry.py

Pure geometry helpers for wire topology: distances, projections and
segment intersection. Points are plain (x, y) tuples.

None of these functions raise. A missing answer (parallel segments,
degenerate input) is returned as None.
"""

import math

Vec2 = tuple[float, float]

# Determinant magnitude below which two segments are treated as parallel
PARALLEL_EPSILON = 1e-10


def distance(a: Vec2, b: Vec2) -> float:
    """Euclidean distance between two points."""
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return math.sqrt(dx * dx + dy * dy)


def project_point_on_segment(p: Vec2, a: Vec2, b: Vec2) -> Vec2:
    """
    Project point p onto segment ab.

    The projection parameter is clamped to [0, 1] so the result always
    lies on the segment. A degenerate segment (a == b) returns a.
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]

    if dx == 0 and dy == 0:
        return (a[0], a[1])

    t = ((p[0] - a[0]) * dx + (p[1] - a[1]) * dy) / (dx * dx + dy * dy)
    t = max(0.0, min(1.0, t))
    return (a[0] + t * dx, a[1] + t * dy)


def segment_intersect(a: Vec2, b: Vec2, c: Vec2, d: Vec2) -> Vec2 | None:
    """
    Intersection point of segments ab and cd.

    Solves for the parameters along both segments using the cross-product
    determinant. Returns None when the segments are parallel (or nearly so)
    or when the crossing lies outside either segment.
    """
    dx1 = b[0] - a[0]
    dy1 = b[1] - a[1]
    dx2 = d[0] - c[0]
    dy2 = d[1] - c[1]

    denominator = dx1 * dy2 - dy1 * dx2
    if abs(denominator) < PARALLEL_EPSILON:
        return None

    dx3 = c[0] - a[0]
    dy3 = c[1] - a[1]

    t = (dx3 * dy2 - dy3 * dx2) / denominator
    u = (dx3 * dy1 - dy3 * dx1) / denominator

    if 0.0 <= t <= 1.0 and 0.0 <= u <= 1.0:
        return (a[0] + t * dx1, a[1] + t * dy1)
    return None


def point_to_segment_distance(p: Vec2, a: Vec2, b: Vec2) -> float:
    """Distance from p to its clamped projection on segment ab."""
    return distance(p, project_point_on_segment(p, a, b))


def cross_product(a: Vec2, b: Vec2, c: Vec2) -> float:
    """Z component of (b - a) x (c - a). Sign gives the turn direction."""
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


def are_collinear(a: Vec2, b: Vec2, c: Vec2, tolerance: float = 1e-6) -> bool:
    """Check if three points lie on one line."""
    return abs(cross_product(a, b, c)) < tolerance


def is_point_in_rect(point: Vec2, rect_min: Vec2, rect_max: Vec2) -> bool:
    """Check if a point lies inside the axis-aligned box [rect_min, rect_max]."""
    return rect_min[0] <= point[0] <= rect_max[0] and rect_min[1] <= point[1] <= rect_max[1]
