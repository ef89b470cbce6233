"""
routing/path_finding.py

Path construction for interactive wire drawing: straight, right-angle,
star (single offset bend) and grid-routed paths. Grid routing uses A*
with 4-directional moves, unit cost and a Manhattan heuristic.
"""

import heapq
import logging
import math
from enum import Enum
from typing import Iterable, Optional

from models.geometry import Vec2, distance
from models.settings import TopologySettings, get_default_settings

logger = logging.getLogger(__name__)


class WireMode(str, Enum):
    """Path construction policy used while drawing."""

    FREE = "free"
    SCHEMATIC = "schematic"
    STAR = "star"
    ROUTING = "routing"


GridCell = tuple[int, int]

_DIRECTIONS = [(0, 1), (0, -1), (1, 0), (-1, 0)]


class GridPathfinder:
    """A* pathfinding for grid-aligned wires"""

    def __init__(self, grid_size: int = 20, max_iterations: int = 10000):
        self.grid_size = grid_size
        self.max_iterations = max_iterations
        self.last_iterations = 0

    def find_path(
        self,
        start_pos: Vec2,
        end_pos: Vec2,
        obstacles: set[GridCell],
        bounds: Optional[tuple[int, int, int, int]] = None,
    ) -> Optional[list[Vec2]]:
        """
        Find path from start_pos to end_pos avoiding obstacles

        Args:
            start_pos: starting position (scene coordinates)
            end_pos: ending position (scene coordinates)
            obstacles: set of (grid_x, grid_y) tuples representing blocked cells
            bounds: (min_gx, min_gy, max_gx, max_gy) inclusive grid limits, or None

        Returns:
            Simplified list of grid-aligned waypoints, or None if no path was
            found within the iteration limit.
        """
        start_grid = self._pos_to_grid(start_pos)
        end_grid = self._pos_to_grid(end_pos)

        open_set = []
        heapq.heappush(open_set, (0, start_grid))

        came_from: dict[GridCell, GridCell] = {}
        g_score = {start_grid: 0}

        iterations = 0
        while open_set and iterations < self.max_iterations:
            iterations += 1
            current = heapq.heappop(open_set)[1]

            if current == end_grid:
                self.last_iterations = iterations
                path = self._reconstruct_path(came_from, current)
                waypoints = self._simplify_path([self._grid_to_pos(cell) for cell in path])
                logger.debug("A* found path with %d waypoints after %d iterations", len(waypoints), iterations)
                return waypoints

            for dx, dy in _DIRECTIONS:
                neighbor = (current[0] + dx, current[1] + dy)

                if bounds is not None:
                    min_gx, min_gy, max_gx, max_gy = bounds
                    if not (min_gx <= neighbor[0] <= max_gx and min_gy <= neighbor[1] <= max_gy):
                        continue

                if neighbor in obstacles:
                    continue

                tentative_g_score = g_score[current] + 1
                if neighbor not in g_score or tentative_g_score < g_score[neighbor]:
                    came_from[neighbor] = current
                    g_score[neighbor] = tentative_g_score
                    f_score = tentative_g_score + self._heuristic(neighbor, end_grid)
                    heapq.heappush(open_set, (f_score, neighbor))

        self.last_iterations = iterations
        logger.debug("A* failed: no path from %s to %s after %d iterations", start_grid, end_grid, iterations)
        return None

    def _pos_to_grid(self, pos: Vec2) -> GridCell:
        """Convert scene position to grid coordinates"""
        return (round(pos[0] / self.grid_size), round(pos[1] / self.grid_size))

    def _grid_to_pos(self, grid: GridCell) -> Vec2:
        """Convert grid coordinates to scene position"""
        return (float(grid[0] * self.grid_size), float(grid[1] * self.grid_size))

    def _heuristic(self, a: GridCell, b: GridCell) -> int:
        """Manhattan distance heuristic for A*"""
        return abs(a[0] - b[0]) + abs(a[1] - b[1])

    def _reconstruct_path(self, came_from, current):
        """Reconstruct path from came_from map"""
        path = [current]
        while current in came_from:
            current = came_from[current]
            path.append(current)
        path.reverse()
        return path

    def _simplify_path(self, waypoints):
        """Remove unnecessary waypoints (collinear points)"""
        if len(waypoints) <= 2:
            return waypoints

        simplified = [waypoints[0]]
        for i in range(1, len(waypoints) - 1):
            prev = waypoints[i - 1]
            current = waypoints[i]
            next_point = waypoints[i + 1]

            dx1 = current[0] - prev[0]
            dy1 = current[1] - prev[1]
            dx2 = next_point[0] - current[0]
            dy2 = next_point[1] - current[1]

            # Keep the waypoint only where the direction changes
            if not self._same_direction(dx1, dy1, dx2, dy2):
                simplified.append(current)

        simplified.append(waypoints[-1])
        return simplified

    def _same_direction(self, dx1, dy1, dx2, dy2):
        """Check if two direction vectors are the same"""
        def sign(x):
            return 0 if x == 0 else (1 if x > 0 else -1)

        return sign(dx1) == sign(dx2) and sign(dy1) == sign(dy2)


def _dedupe(points: list[Vec2]) -> list[Vec2]:
    result: list[Vec2] = []
    for p in points:
        if not result or result[-1] != p:
            result.append(p)
    return result


def free_path(start: Vec2, end: Vec2) -> list[Vec2]:
    """Straight line."""
    return [start, end]


def schematic_path(start: Vec2, end: Vec2, invert: bool = False) -> list[Vec2]:
    """
    Single right-angle bend.

    The first leg runs along the axis with the larger extent, or the other
    axis when invert is set. Axis-aligned input gives a straight line.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    if dx == 0 or dy == 0:
        return [start, end]

    horizontal_first = abs(dx) >= abs(dy)
    if invert:
        horizontal_first = not horizontal_first

    corner = (end[0], start[1]) if horizontal_first else (start[0], end[1])
    return [start, corner, end]


def star_path(start: Vec2, end: Vec2, bend_ratio: float = 0.25, max_offset: float = 60.0) -> list[Vec2]:
    """
    One bend pushed out perpendicular to the straight line at its midpoint.

    The offset is bend_ratio of the line length, capped at max_offset.
    """
    length = distance(start, end)
    if length == 0:
        return [start, end]

    offset = min(length * bend_ratio, max_offset)
    if offset == 0:
        return [start, end]

    mid = ((start[0] + end[0]) / 2, (start[1] + end[1]) / 2)
    # Unit normal to the line
    nx = -(end[1] - start[1]) / length
    ny = (end[0] - start[0]) / length
    bend = (mid[0] + nx * offset, mid[1] + ny * offset)
    return [start, bend, end]


def clamp_wire_length(start: Vec2, end: Vec2, max_length: float) -> Vec2:
    """Pull end back towards start so the straight distance is at most max_length."""
    length = distance(start, end)
    if max_length <= 0 or length <= max_length:
        return end
    scale = max_length / length
    return (start[0] + (end[0] - start[0]) * scale, start[1] + (end[1] - start[1]) * scale)


def get_node_obstacles(positions: Iterable[Vec2], grid_size: int) -> set[GridCell]:
    """Grid cells occupied by the given node positions."""
    return {(round(p[0] / grid_size), round(p[1] / grid_size)) for p in positions}


def routing_path(
    start: Vec2,
    end: Vec2,
    occupied: Iterable[Vec2] = (),
    settings: Optional[TopologySettings] = None,
    invert: bool = False,
) -> list[Vec2]:
    """
    Grid-routed path around occupied node positions.

    Start and end are quantized to the routing grid, every other occupied
    position blocks its cell (the start and end cells are always free) and
    A* searches within a margin around the two cells. The real start and
    end replace the first and last grid waypoints. If no route exists the
    schematic path is used instead.
    """
    settings = settings or get_default_settings()
    grid = settings.grid_size
    end = clamp_wire_length(start, end, settings.max_route_cells * grid)

    finder = GridPathfinder(grid_size=grid, max_iterations=settings.max_astar_iterations)
    start_cell = finder._pos_to_grid(start)
    end_cell = finder._pos_to_grid(end)

    obstacles = get_node_obstacles(occupied, grid)
    obstacles.discard(start_cell)
    obstacles.discard(end_cell)

    margin = settings.route_margin_cells
    bounds = (
        min(start_cell[0], end_cell[0]) - margin,
        min(start_cell[1], end_cell[1]) - margin,
        max(start_cell[0], end_cell[0]) + margin,
        max(start_cell[1], end_cell[1]) + margin,
    )

    waypoints = finder.find_path(start, end, obstacles, bounds)
    if waypoints is None:
        logger.warning("Routing failed between %s and %s, using schematic path", start, end)
        return schematic_path(start, end, invert)

    if len(waypoints) < 2:
        return [start, end]

    waypoints = [start] + waypoints[1:-1] + [end]
    return _dedupe(waypoints)


def build_path(
    mode: WireMode,
    start: Vec2,
    end: Vec2,
    invert_bend: bool = False,
    occupied: Iterable[Vec2] = (),
    settings: Optional[TopologySettings] = None,
) -> list[Vec2]:
    """Dispatch to the path policy for mode."""
    settings = settings or get_default_settings()
    mode = WireMode(mode)
    if mode == WireMode.FREE:
        return free_path(start, end)
    if mode == WireMode.SCHEMATIC:
        return schematic_path(start, end, invert_bend)
    if mode == WireMode.STAR:
        return star_path(start, end, settings.star_bend_ratio, settings.star_max_offset)
    return routing_path(start, end, occupied, settings, invert_bend)


def path_length(points: list[Vec2]) -> float:
    """Total length of a polyline."""
    return math.fsum(distance(points[i], points[i + 1]) for i in range(len(points) - 1))
