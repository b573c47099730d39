from __future__ import annotations

import math
from typing import Tuple

Cell = Tuple[int, int]

# Cardinal directions as (dx, dy); y grows downward.
UP: Cell = (0, -1)
DOWN: Cell = (0, 1)
LEFT: Cell = (-1, 0)
RIGHT: Cell = (1, 0)

DIRS4: Tuple[Cell, ...] = (UP, RIGHT, DOWN, LEFT)
# Clockwise from north, diagonals included.
DIRS8: Tuple[Cell, ...] = ((0, -1), (1, -1), (1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1))


def offset(cell: Cell, dx: int, dy: int) -> Cell:
    return (cell[0] + dx, cell[1] + dy)


def euclidean_distance(a: Cell, b: Cell) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def chebyshev_distance(a: Cell, b: Cell) -> int:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))


def is_cardinal_step(dx: int, dy: int) -> bool:
    return (dx, dy) in DIRS4
