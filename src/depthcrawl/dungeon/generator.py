from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence

from ..rng import RandomSource
from .geometry import Cell
from .tiles import MapGrid, Tile

logger = logging.getLogger(__name__)


class MapGenerator(ABC):
    """Abstract base for map generators.

    A generator classifies every cell of a ``width`` x ``height`` area as WALL or
    FLOOR. Given the same RandomSource state it must return the same grid, and the
    FLOOR cells must form a single connected region.
    """

    @abstractmethod
    def generate(self, width: int, height: int, rng: RandomSource) -> MapGrid:
        raise NotImplementedError


@dataclass(frozen=True)
class Room:
    """Axis-aligned room; ``left``..``right`` and ``top``..``bottom`` are inclusive."""

    left: int
    top: int
    right: int
    bottom: int

    @property
    def center(self) -> Cell:
        return ((self.left + self.right) // 2, (self.top + self.bottom) // 2)

    def clear_of(self, other: "Room", gap: int = 1) -> bool:
        """True when at least ``gap`` wall cells separate the two rooms."""
        return (
            self.right + gap < other.left
            or other.right + gap < self.left
            or self.bottom + gap < other.top
            or other.bottom + gap < self.top
        )

    def cells(self) -> Iterator[Cell]:
        for y in range(self.top, self.bottom + 1):
            for x in range(self.left, self.right + 1):
                yield (x, y)


def elbow(start: Cell, end: Cell, horizontal_first: bool) -> Iterator[Cell]:
    """Cells of an L-shaped corridor from ``start`` to ``end``, both included."""
    (x1, y1), (x2, y2) = start, end
    corner = (x2, y1) if horizontal_first else (x1, y2)
    for (ax, ay), (bx, by) in ((start, corner), (corner, end)):
        step_x = 1 if bx >= ax else -1
        step_y = 1 if by >= ay else -1
        for y in range(ay, by + step_y, step_y):
            for x in range(ax, bx + step_x, step_x):
                yield (x, y)


class RoomsGenerator(MapGenerator):
    """Rooms and corridors digger.

    Drops up to ``max_rooms`` rectangles that keep one wall cell between each
    other, then joins consecutive rooms (ordered by center) with elbow corridors,
    so the floor is one connected region. The outer ring is always wall.
    """

    def __init__(self, max_rooms: int = 18, room_min_size: int = 3, room_max_size: int = 9) -> None:
        if room_min_size < 1 or room_max_size < room_min_size:
            raise ValueError("room sizes must satisfy 1 <= room_min_size <= room_max_size")
        self.max_rooms = max_rooms
        self.room_min_size = room_min_size
        self.room_max_size = room_max_size

    def generate(self, width: int, height: int, rng: RandomSource) -> MapGrid:
        if width < 3 or height < 3:
            raise ValueError("map must be at least 3x3 to hold a walkable cell")
        tiles = [[Tile.WALL] * width for _ in range(height)]

        rooms = self._place_rooms(width, height, rng)
        for room in rooms:
            self._dig(tiles, room.cells())

        rooms.sort(key=lambda r: r.center)
        for previous, room in zip(rooms, rooms[1:]):
            self._dig(tiles, elbow(previous.center, room.center, horizontal_first=rng.random() < 0.5))

        logger.debug("RoomsGenerator: %d rooms on %dx%d", len(rooms), width, height)
        return MapGrid(width, height, tiles)

    def _place_rooms(self, width: int, height: int, rng: RandomSource) -> List[Room]:
        # Interior is 1..width-2 by 1..height-2.
        max_w = min(self.room_max_size, width - 2)
        max_h = min(self.room_max_size, height - 2)
        min_w = min(self.room_min_size, max_w)
        min_h = min(self.room_min_size, max_h)

        rooms: List[Room] = []
        for _ in range(self.max_rooms * 10):
            if len(rooms) >= self.max_rooms:
                break
            w = rng.randint(min_w, max_w)
            h = rng.randint(min_h, max_h)
            left = rng.randint(1, width - w - 1)
            top = rng.randint(1, height - h - 1)
            candidate = Room(left, top, left + w - 1, top + h - 1)
            if all(candidate.clear_of(other) for other in rooms):
                rooms.append(candidate)

        if not rooms:
            rooms.append(Room(1, 1, width - 2, height - 2))
        return rooms

    @staticmethod
    def _dig(tiles: List[List[Tile]], cells: Iterable[Cell]) -> None:
        for x, y in cells:
            tiles[y][x] = Tile.FLOOR


class AsciiMapGenerator(MapGenerator):
    """Serves fixed layouts, one per call, for tools and tests.

    The last layout is reused once the sequence is exhausted. Layout dimensions
    take precedence over the requested width/height.
    """

    def __init__(self, *layouts: Sequence[str]) -> None:
        if not layouts:
            raise ValueError("AsciiMapGenerator needs at least one layout")
        self._layouts = [list(rows) for rows in layouts]
        self._calls = 0

    def generate(self, width: int, height: int, rng: RandomSource) -> MapGrid:
        rows = self._layouts[min(self._calls, len(self._layouts) - 1)]
        self._calls += 1
        return MapGrid.from_ascii(rows)
