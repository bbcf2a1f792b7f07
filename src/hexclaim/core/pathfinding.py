"""
Cheapest-path search over the implicit, unbounded hex plane.

Edges are generated on demand from ``hex_neighbors``; unexplored
coordinates cost 1 to enter. A tile whose ``max_level`` exceeds the
traveller's rank is a hard wall, and so is every coordinate in the
caller's obstacle set (other agents' positions, destination included).

The search is A* with hex distance as heuristic. Every step costs at
least 1, so the heuristic is admissible and results match plain
Dijkstra. Work is bounded by an iteration budget; running out of budget
means "no path", never an error.
"""

from __future__ import annotations

import heapq
from typing import Iterable, Mapping

from hexclaim.core.hex_grid import Coord, HexTile, hex_distance, hex_neighbors

DEFAULT_MAX_ITERATIONS = 4000


def step_cost(tile: HexTile | None) -> int:
    """Cost to enter a coordinate. Unexplored coordinates count as level 0."""
    if tile is None:
        return 1
    return tile.movement_cost


def path_cost(path: Iterable[Coord], tiles: Mapping[Coord, HexTile]) -> int:
    """Total entry cost of every step in ``path``."""
    return sum(step_cost(tiles.get(coord)) for coord in path)


def find_path(
    start: Coord,
    goal: Coord,
    tiles: Mapping[Coord, HexTile],
    rank: int,
    obstacles: Iterable[Coord] = (),
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[Coord] | None:
    """Find the cheapest path from ``start`` to ``goal``.

    Args:
        start: Starting coordinates (q, r).
        goal: Goal coordinates (q, r).
        tiles: Read-only tile map.
        rank: Traveller's ``player_level``; tiles above it are impassable.
        obstacles: Coordinates that may not be entered.
        max_iterations: Node expansions allowed before giving up.

    Returns:
        Coordinates from the first step to ``goal`` inclusive (``start``
        excluded), or None if unreachable within budget.
    """
    if start == goal:
        return None

    blocked = frozenset(obstacles)
    if goal in blocked:
        return None
    goal_tile = tiles.get(goal)
    if goal_tile is not None and goal_tile.max_level > rank:
        return None

    # Priority queue: (f_score, counter, g_score, coords)
    # counter breaks ties deterministically in insertion order
    counter = 0
    open_set: list[tuple[int, int, int, Coord]] = []
    heapq.heappush(open_set, (hex_distance(start, goal), counter, 0, start))

    came_from: dict[Coord, Coord] = {}
    g_score: dict[Coord, int] = {start: 0}
    iterations = 0

    while open_set and iterations < max_iterations:
        _, _, g, current = heapq.heappop(open_set)
        if g > g_score.get(current, g):
            continue  # stale entry
        iterations += 1

        if current == goal:
            path: list[Coord] = []
            while current != start:
                path.append(current)
                current = came_from[current]
            path.reverse()
            return path

        for neighbor in hex_neighbors(*current):
            if neighbor in blocked:
                continue
            tile = tiles.get(neighbor)
            if tile is not None and tile.max_level > rank:
                continue  # rank lock

            tentative_g = g + step_cost(tile)
            if tentative_g < g_score.get(neighbor, tentative_g + 1):
                came_from[neighbor] = current
                g_score[neighbor] = tentative_g
                counter += 1
                heapq.heappush(
                    open_set,
                    (tentative_g + hex_distance(neighbor, goal), counter, tentative_g, neighbor),
                )

    # Adjacent targets stay reachable even when the budget runs out.
    if hex_distance(start, goal) == 1:
        return [goal]
    return None
