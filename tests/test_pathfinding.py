"""Tests for the cheapest-path search."""

from __future__ import annotations

from hexclaim.core.hex_grid import HexGrid, HexTile, hex_distance, hex_ring
from hexclaim.core.pathfinding import find_path, path_cost, step_cost


def _make_tiles(*tiles: HexTile) -> dict:
    return {t.coords: t for t in tiles}


class TestCosts:
    def test_unexplored_costs_one(self):
        assert step_cost(None) == 1

    def test_cost_follows_max_level(self):
        assert step_cost(HexTile(0, 0, max_level=1)) == 1
        assert step_cost(HexTile(0, 0, max_level=3)) == 3

    def test_path_cost(self):
        tiles = _make_tiles(HexTile(1, 0, max_level=2))
        assert path_cost([(1, 0), (2, 0)], tiles) == 3


class TestFindPath:
    def test_same_start_and_goal(self):
        assert find_path((0, 0), (0, 0), {}, rank=0) is None

    def test_straight_line_on_empty_plane(self):
        path = find_path((0, 0), (3, 0), {}, rank=0)
        assert path is not None
        assert len(path) == 3
        assert path[-1] == (3, 0)
        assert (0, 0) not in path

    def test_path_is_contiguous(self):
        path = find_path((0, 0), (2, -4), {}, rank=0)
        prev = (0, 0)
        for step in path:
            assert hex_distance(prev, step) == 1
            prev = step

    def test_goal_obstacle_unreachable(self):
        assert find_path((0, 0), (1, 0), {}, rank=0, obstacles=[(1, 0)]) is None

    def test_goal_above_rank_unreachable(self):
        tiles = _make_tiles(HexTile(2, 0, max_level=3))
        assert find_path((0, 0), (2, 0), tiles, rank=2) is None
        assert find_path((0, 0), (2, 0), tiles, rank=3) is not None

    def test_routes_around_obstacles(self):
        path = find_path((0, 0), (2, 0), {}, rank=0, obstacles=[(1, 0)])
        assert path is not None
        assert (1, 0) not in path
        assert len(path) == 3

    def test_routes_around_rank_walls(self):
        tiles = _make_tiles(HexTile(1, 0, max_level=4))
        path = find_path((0, 0), (2, 0), tiles, rank=1)
        assert (1, 0) not in path

    def test_prefers_cheaper_detour(self):
        # Direct neighbor costs 5; going around costs 3 steps of 1.
        tiles = _make_tiles(HexTile(1, 0, max_level=5))
        path = find_path((0, 0), (2, 0), tiles, rank=5)
        assert path_cost(path, tiles) == 3
        assert (1, 0) not in path

    def test_fully_walled_goal(self):
        obstacles = hex_ring((5, 0), 1)
        assert find_path((0, 0), (5, 0), {}, rank=0, obstacles=obstacles) is None

    def test_iteration_budget_falls_back_to_adjacent(self):
        path = find_path((0, 0), (1, 0), {}, rank=0, max_iterations=0)
        assert path == [(1, 0)]

    def test_iteration_budget_far_goal(self):
        assert find_path((0, 0), (10, 0), {}, rank=0, max_iterations=1) is None

    def test_does_not_mutate_tiles(self):
        grid = HexGrid()
        grid.reveal(0, 0)
        view = grid.view()
        before = dict(view)
        find_path((0, 0), (4, -2), view, rank=0)
        assert dict(view) == before
        assert len(grid) == 7
