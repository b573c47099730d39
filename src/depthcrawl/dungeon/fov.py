from __future__ import annotations

import logging
from typing import Callable, List, Set

from .geometry import Cell, chebyshev_distance

logger = logging.getLogger(__name__)

OpacityFn = Callable[[Cell], bool]


def bresenham_line(x0: int, y0: int, x1: int, y1: int) -> List[Cell]:
    """
    Bresenham's line algorithm. Returns the list of points from (x0, y0) to (x1, y1) inclusive.
    """
    points: List[Cell] = []

    dx = abs(x1 - x0)
    dy = -abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx + dy

    x, y = x0, y0
    while True:
        points.append((x, y))
        if x == x1 and y == y1:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x += sx
        if e2 <= dx:
            err += dx
            y += sy

    return points


def _line_is_clear(is_opaque: OpacityFn, a: Cell, b: Cell) -> bool:
    # Endpoints never block; only the cells strictly between them do.
    line = bresenham_line(a[0], a[1], b[0], b[1])
    return not any(is_opaque(cell) for cell in line[1:-1])


def has_line_of_sight(is_opaque: OpacityFn, a: Cell, b: Cell) -> bool:
    """Symmetric line of sight: clear if either rasterisation direction is clear."""
    return _line_is_clear(is_opaque, a, b) or _line_is_clear(is_opaque, b, a)


def compute_visible(is_opaque: OpacityFn, origin: Cell, radius: int) -> Set[Cell]:
    """
    Compute the set of visible cells from origin within Chebyshev radius.

    An opaque cell is itself visible when the line to it is clear (walls are seen),
    but hides everything behind it. The origin is always visible. Because the line
    test is symmetric, ``b in compute_visible(f, a, r)`` iff ``a in compute_visible(f, b, r)``.
    """
    if radius < 0:
        raise ValueError("radius must be >= 0")

    ox, oy = origin
    visible: Set[Cell] = {origin}
    for y in range(oy - radius, oy + radius + 1):
        for x in range(ox - radius, ox + radius + 1):
            cell = (x, y)
            if cell == origin or chebyshev_distance(origin, cell) > radius:
                continue
            if has_line_of_sight(is_opaque, origin, cell):
                visible.add(cell)

    logger.debug("FOV from (%d,%d) radius %d -> %d visible cells", ox, oy, radius, len(visible))
    return visible
