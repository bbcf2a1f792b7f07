"""
Hex grid geography for hexclaim.

Axial (q, r) coordinates on an unbounded, flat-top hex plane. Cube
coordinates are derived as (q, -q-r, r). Tiles are created lazily the
first time an agent stands on, passes through, or neighbours a
coordinate; the grid is never materialized eagerly and tiles are never
deleted.

``HexTile`` is an immutable value type. The grid swaps whole tiles on
every change, so a dict copy of ``HexGrid.tiles`` is a safe snapshot that
later ticks cannot alias.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Mapping

Coord = tuple[int, int]

# Axial hex directions (6 neighbors), fixed enumeration order.
HEX_DIRECTIONS: list[Coord] = [
    (1, 0),
    (1, -1),
    (0, -1),
    (-1, 0),
    (-1, 1),
    (0, 1),
]

# Presentation only; the simulation never reads pixel positions.
HEX_SIZE: float = 35.0


# ---------------------------------------------------------------------------
# Coordinate math
# ---------------------------------------------------------------------------

def hex_key(q: int, r: int) -> str:
    """Canonical string key for a coordinate, ``"q,r"``."""
    return f"{q},{r}"


def parse_key(key: str) -> Coord:
    """Inverse of :func:`hex_key`."""
    q, r = key.split(",")
    return (int(q), int(r))


def hex_to_pixel(q: int, r: int, size: float = HEX_SIZE) -> tuple[float, float]:
    """Centre of a hex in screen space, for renderers."""
    x = size * (3.0 / 2.0 * q)
    y = size * math.sqrt(3) * (r + q / 2.0)
    return (x, y)


def hex_distance(a: Coord, b: Coord) -> int:
    """Hex distance between two axial coordinates.

    Manhattan distance in cube space halved, equivalently the maximum
    absolute difference across the three cube axes.

    Args:
        a: First position as (q, r).
        b: Second position as (q, r).

    Returns:
        Integer distance in hex steps.
    """
    aq, ar = a
    bq, br = b
    return (abs(aq - bq) + abs(aq + ar - bq - br) + abs(ar - br)) // 2


def hex_neighbors(q: int, r: int) -> list[Coord]:
    """The 6 adjacent coordinates, in ``HEX_DIRECTIONS`` order."""
    return [(q + dq, r + dr) for dq, dr in HEX_DIRECTIONS]


def hex_ring(center: Coord, radius: int) -> list[Coord]:
    """All coordinates exactly ``radius`` steps from ``center``.

    Walks the ring starting from the south-west corner. Radius 0 yields
    the centre itself.
    """
    if radius <= 0:
        return [center]
    dq, dr = HEX_DIRECTIONS[4]
    q, r = center[0] + dq * radius, center[1] + dr * radius
    result: list[Coord] = []
    for side in range(6):
        sq, sr = HEX_DIRECTIONS[side]
        for _ in range(radius):
            result.append((q, r))
            q, r = q + sq, r + sr
    return result


# ---------------------------------------------------------------------------
# Tiles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HexTile:
    """A single discovered hex.

    Attributes:
        q: Column coordinate (axial).
        r: Row coordinate (axial).
        current_level: Level held right now. Drops to 0 whenever the
            occupying agent leaves.
        max_level: Permanent high-water mark. Never decreases.
        progress: Growth ticks accumulated toward ``current_level + 1``.
    """

    q: int
    r: int
    current_level: int = 0
    max_level: int = 0
    progress: int = 0

    @property
    def id(self) -> str:
        """Canonical ``"q,r"`` key."""
        return hex_key(self.q, self.r)

    @property
    def coords(self) -> Coord:
        """Axial coordinates as a tuple."""
        return (self.q, self.r)

    @property
    def movement_cost(self) -> int:
        """Cost to step onto this tile. Bound to ``max_level``, not ``current_level``."""
        return self.max_level if self.max_level >= 2 else 1

    def vacated(self) -> HexTile:
        """Copy of this tile after its occupant leaves."""
        return replace(self, current_level=0, progress=0)

    def to_dict(self) -> dict[str, Any]:
        """Serialize tile to dictionary."""
        return {
            "id": self.id,
            "q": self.q,
            "r": self.r,
            "current_level": self.current_level,
            "max_level": self.max_level,
            "progress": self.progress,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> HexTile:
        """Deserialize tile from dictionary."""
        return cls(
            q=d["q"],
            r=d["r"],
            current_level=d.get("current_level", 0),
            max_level=d.get("max_level", 0),
            progress=d.get("progress", 0),
        )


class HexGrid:
    """Sparse map of discovered tiles keyed by axial coordinates.

    Coordinates that are not in the map are unexplored: they behave as a
    fresh level-0 tile for movement cost and rank purposes.

    Attributes:
        tiles: Mapping from (q, r) coordinates to HexTile instances.
    """

    def __init__(self, tiles: dict[Coord, HexTile] | None = None) -> None:
        self.tiles: dict[Coord, HexTile] = dict(tiles) if tiles else {}

    def get_tile(self, q: int, r: int) -> HexTile | None:
        """Retrieve a tile by coordinates, or None if unexplored."""
        return self.tiles.get((q, r))

    def set_tile(self, tile: HexTile) -> None:
        """Store a tile, replacing any previous value at its coordinates."""
        self.tiles[tile.coords] = tile

    def __len__(self) -> int:
        """Number of discovered tiles."""
        return len(self.tiles)

    def __contains__(self, coord: object) -> bool:
        return coord in self.tiles

    # ---- Lazy exploration ----

    def ensure_tile(self, q: int, r: int) -> HexTile:
        """Return the tile at (q, r), creating a virgin one if absent."""
        tile = self.tiles.get((q, r))
        if tile is None:
            tile = HexTile(q=q, r=r)
            self.tiles[(q, r)] = tile
        return tile

    def reveal(self, q: int, r: int) -> int:
        """Make (q, r) and its 6 neighbors exist.

        Returns:
            Number of tiles created.
        """
        created = 0
        for nq, nr in [(q, r)] + hex_neighbors(q, r):
            if (nq, nr) not in self.tiles:
                self.tiles[(nq, nr)] = HexTile(q=nq, r=nr)
                created += 1
        return created

    def vacate(self, q: int, r: int) -> None:
        """Reset the transient level of a tile its occupant just left."""
        tile = self.tiles.get((q, r))
        if tile is not None:
            self.tiles[(q, r)] = tile.vacated()

    def view(self) -> Mapping[Coord, HexTile]:
        """Read-only snapshot of the tile map.

        The mapping is a copy, and tiles are immutable, so holding on to a
        view never observes (or causes) later mutation.
        """
        return MappingProxyType(dict(self.tiles))

    # ---- Serialization ----

    def to_dict(self) -> dict[str, Any]:
        """Serialize the grid to a dictionary."""
        return {"tiles": [tile.to_dict() for tile in self.tiles.values()]}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> HexGrid:
        """Deserialize a grid from a dictionary."""
        grid = cls()
        for tile_data in d["tiles"]:
            grid.set_tile(HexTile.from_dict(tile_data))
        return grid
