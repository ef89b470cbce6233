"""Tests for routing/path_finding.py — path policies and A* grid routing."""

import pytest
from models.geometry import distance
from models.settings import TopologySettings
from routing.path_finding import (
    GridPathfinder,
    WireMode,
    build_path,
    clamp_wire_length,
    free_path,
    get_node_obstacles,
    path_length,
    routing_path,
    schematic_path,
    star_path,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

GRID = 20  # default grid size used in pathfinder


@pytest.fixture
def pathfinder():
    """Yield the A* pathfinder implementation."""
    return GridPathfinder(grid_size=GRID)


# Small bounds that keep tests fast
BOUNDS = (-10, -10, 20, 20)


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------


def _grid(gx, gy):
    """Shorthand: grid coords -> scene position."""
    return (float(gx * GRID), float(gy * GRID))


def _to_grid_tuples(waypoints):
    """Convert list of scene waypoints to list of (gx, gy) grid tuples."""
    return [(round(p[0] / GRID), round(p[1] / GRID)) for p in waypoints]


def _is_orthogonal(points):
    return all(a[0] == b[0] or a[1] == b[1] for a, b in zip(points, points[1:]))


# ===========================================================================
# 1. Grid conversion helpers
# ===========================================================================


class TestGridConversion:
    def test_pos_to_grid(self, pathfinder):
        assert pathfinder._pos_to_grid((0, 0)) == (0, 0)
        assert pathfinder._pos_to_grid((40, 60)) == (2, 3)

    def test_pos_to_grid_rounds(self, pathfinder):
        assert pathfinder._pos_to_grid((29, 11)) == (1, 1)
        assert pathfinder._pos_to_grid((-31, 0)) == (-2, 0)

    def test_grid_to_pos(self, pathfinder):
        assert pathfinder._grid_to_pos((2, 3)) == (40.0, 60.0)

    def test_round_trip(self, pathfinder):
        for gx, gy in [(0, 0), (5, -3), (-10, 7)]:
            assert pathfinder._pos_to_grid(pathfinder._grid_to_pos((gx, gy))) == (gx, gy)

    def test_heuristic_is_manhattan(self, pathfinder):
        assert pathfinder._heuristic((0, 0), (3, -4)) == 7


# ===========================================================================
# 2. A* search
# ===========================================================================


class TestGridPathfinder:
    def test_straight_line(self, pathfinder):
        path = pathfinder.find_path(_grid(0, 0), _grid(5, 0), set(), BOUNDS)
        assert _to_grid_tuples(path) == [(0, 0), (5, 0)]

    def test_single_bend(self, pathfinder):
        path = pathfinder.find_path(_grid(0, 0), _grid(3, 4), set(), BOUNDS)
        cells = _to_grid_tuples(path)
        assert cells[0] == (0, 0)
        assert cells[-1] == (3, 4)
        assert _is_orthogonal(path)

    def test_same_cell(self, pathfinder):
        path = pathfinder.find_path(_grid(1, 1), _grid(1, 1), set(), BOUNDS)
        assert _to_grid_tuples(path) == [(1, 1)]

    def test_goes_around_wall(self, pathfinder):
        wall = {(2, y) for y in range(-3, 4)}
        path = pathfinder.find_path(_grid(0, 0), _grid(4, 0), wall, BOUNDS)
        assert path is not None
        cells = _to_grid_tuples(path)
        assert cells[0] == (0, 0)
        assert cells[-1] == (4, 0)
        assert _is_orthogonal(path)
        # Must detour beyond the wall's end
        assert max(abs(c[1]) for c in cells) >= 4

    def test_path_never_enters_obstacle(self, pathfinder):
        obstacles = {(1, 0), (1, 1), (1, -1)}
        path = pathfinder.find_path(_grid(0, 0), _grid(3, 0), obstacles, BOUNDS)
        cells = _to_grid_tuples(path)
        for a, b in zip(cells, cells[1:]):
            if a[0] == b[0]:
                between = {(a[0], y) for y in range(min(a[1], b[1]), max(a[1], b[1]) + 1)}
            else:
                between = {(x, a[1]) for x in range(min(a[0], b[0]), max(a[0], b[0]) + 1)}
            assert not between & obstacles

    def test_enclosed_target_fails(self, pathfinder):
        box = {(4, 0), (6, 0), (5, 1), (5, -1)}
        assert pathfinder.find_path(_grid(0, 0), _grid(5, 0), box, BOUNDS) is None

    def test_bounds_respected(self, pathfinder):
        wall = {(2, y) for y in range(-2, 3)}
        tight = (0, -2, 4, 2)
        assert pathfinder.find_path(_grid(0, 0), _grid(4, 0), wall, tight) is None

    def test_iteration_limit(self):
        finder = GridPathfinder(grid_size=GRID, max_iterations=3)
        assert finder.find_path(_grid(0, 0), _grid(10, 0), set(), BOUNDS) is None
        assert finder.last_iterations == 3

    def test_simplify_drops_collinear(self, pathfinder):
        pts = [(0, 0), (20, 0), (40, 0), (40, 20), (40, 40)]
        assert pathfinder._simplify_path(pts) == [(0, 0), (40, 0), (40, 40)]


# ===========================================================================
# 3. Path policies
# ===========================================================================


class TestFreeAndSchematic:
    def test_free_is_straight(self):
        assert free_path((0, 0), (30, 40)) == [(0, 0), (30, 40)]

    def test_horizontal_first_when_wider(self):
        assert schematic_path((0, 0), (100, 40)) == [(0, 0), (100, 0), (100, 40)]

    def test_vertical_first_when_taller(self):
        assert schematic_path((0, 0), (40, 100)) == [(0, 0), (0, 100), (40, 100)]

    def test_invert_flips_bend(self):
        assert schematic_path((0, 0), (100, 40), invert=True) == [(0, 0), (0, 40), (100, 40)]

    def test_axis_aligned_is_straight(self):
        assert schematic_path((0, 0), (0, 50)) == [(0, 0), (0, 50)]
        assert schematic_path((0, 0), (50, 0), invert=True) == [(0, 0), (50, 0)]

    def test_tie_goes_horizontal(self):
        assert schematic_path((0, 0), (50, 50))[1] == (50, 0)


class TestStar:
    def test_bend_is_perpendicular_at_midpoint(self):
        path = star_path((0, 0), (100, 0))
        assert len(path) == 3
        assert path[1] == pytest.approx((50, 25))

    def test_offset_is_capped(self):
        path = star_path((0, 0), (1000, 0), bend_ratio=0.25, max_offset=60)
        assert path[1] == pytest.approx((500, 60))

    def test_zero_length(self):
        assert star_path((5, 5), (5, 5)) == [(5, 5), (5, 5)]

    def test_zero_ratio_is_straight(self):
        assert star_path((0, 0), (10, 0), bend_ratio=0) == [(0, 0), (10, 0)]


class TestRouting:
    def test_clamp_wire_length(self):
        assert clamp_wire_length((0, 0), (300, 400), 100) == pytest.approx((60, 80))
        assert clamp_wire_length((0, 0), (30, 40), 100) == (30, 40)

    def test_node_obstacles(self):
        assert get_node_obstacles([(0, 0), (41, 59)], GRID) == {(0, 0), (2, 3)}

    def test_routes_around_node(self):
        path = routing_path((0, 0), (80, 0), occupied=[(40, 0)])
        assert path[0] == (0, 0)
        assert path[-1] == (80, 0)
        assert _is_orthogonal(path)
        assert (40.0, 0.0) not in path
        assert len(path) > 2

    def test_keeps_true_endpoints_off_grid(self):
        path = routing_path((3, 2), (95, 58))
        assert path[0] == (3, 2)
        assert path[-1] == (95, 58)

    def test_start_and_end_cells_never_blocked(self):
        path = routing_path((0, 0), (100, 0), occupied=[(0, 0), (100, 0)])
        assert path == [(0, 0), (100, 0)]

    def test_long_wire_is_clamped(self):
        settings = TopologySettings(max_route_cells=5)
        path = routing_path((0, 0), (1000, 0), settings=settings)
        assert path[-1] == pytest.approx((100, 0))

    def test_falls_back_to_schematic(self, caplog):
        settings = TopologySettings(route_margin_cells=0)
        # Node cells form a wall across the only row available
        occupied = [(40, 0)]
        with caplog.at_level("WARNING"):
            path = routing_path((0, 0), (80, 0), occupied=occupied, settings=settings)
        assert path == [(0, 0), (80, 0)]
        assert "Routing failed" in caplog.text

    def test_same_cell_gives_straight_line(self):
        assert routing_path((0, 0), (5, 5)) == [(0, 0), (5, 5)]


class TestBuildPath:
    @pytest.mark.parametrize("mode", list(WireMode))
    def test_every_mode_keeps_endpoints(self, mode):
        path = build_path(mode, (0, 0), (120, 60))
        assert path[0] == (0, 0)
        assert path[-1] == pytest.approx((120, 60))

    def test_accepts_string_mode(self):
        assert build_path("free", (0, 0), (10, 10)) == [(0, 0), (10, 10)]

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            build_path("diagonal", (0, 0), (1, 1))

    def test_star_uses_settings(self):
        settings = TopologySettings(star_bend_ratio=0.5, star_max_offset=1000)
        path = build_path(WireMode.STAR, (0, 0), (100, 0), settings=settings)
        assert path[1] == pytest.approx((50, 50))

    def test_path_length(self):
        assert path_length([(0, 0), (30, 0), (30, 40)]) == pytest.approx(70)
        assert distance((0, 0), (30, 40)) < path_length([(0, 0), (30, 0), (30, 40)])
