from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, List, Sequence

from .geometry import DIRS8, Cell


class Tile(IntEnum):
    WALL = 0
    FLOOR = 1


@dataclass
class MapGrid:
    """A tile grid as produced by a map generator.

    Coordinates are (x, y) with (0,0) at top-left; x grows to the right, y grows down.
    Tiles never change once the grid belongs to a floor.
    """

    width: int
    height: int
    tiles: List[List[Tile]]  # tiles[y][x]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def tile_at(self, cell: Cell) -> Tile:
        x, y = cell
        if not self.in_bounds(x, y):
            return Tile.WALL  # Out of bounds acts as wall
        return self.tiles[y][x]

    def is_floor(self, cell: Cell) -> bool:
        return self.tile_at(cell) == Tile.FLOOR

    def floor_cells(self) -> List[Cell]:
        """All FLOOR cells in generation (row-major) order."""
        return [(x, y) for y in range(self.height) for x in range(self.width) if self.tiles[y][x] == Tile.FLOOR]

    def neighbors8(self, cell: Cell) -> Iterator[Cell]:
        x, y = cell
        for dx, dy in DIRS8:
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny):
                yield nx, ny

    def count_floor_neighbors(self, cell: Cell) -> int:
        return sum(1 for n in self.neighbors8(cell) if self.is_floor(n))

    @classmethod
    def from_ascii(cls, rows: Sequence[str], wall_chars: Sequence[str] = ("#",)) -> "MapGrid":
        """
        Build a MapGrid from ASCII rows for tests/tools.
        - Any char in wall_chars is a WALL.
        - All others are FLOOR.
        """
        if not rows:
            raise ValueError("rows must not be empty")
        width = len(rows[0])
        for r in rows:
            if len(r) != width:
                raise ValueError("All rows must be same width")
        wall_set = set(wall_chars)
        tiles = [[Tile.WALL if ch in wall_set else Tile.FLOOR for ch in row] for row in rows]
        return cls(width, len(rows), tiles)

    def to_ascii(self) -> List[str]:
        return ["".join("." if t == Tile.FLOOR else "#" for t in row) for row in self.tiles]
