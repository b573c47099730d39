import pytest

from depthcrawl.dungeon.fov import bresenham_line, compute_visible, has_line_of_sight
from depthcrawl.dungeon.generator import RoomsGenerator
from depthcrawl.dungeon.tiles import MapGrid
from depthcrawl.rng import RandomSource


def _opaque(grid: MapGrid):
    return lambda cell: not grid.is_floor(cell)


def test_bresenham_includes_both_endpoints():
    line = bresenham_line(0, 0, 4, 2)
    assert line[0] == (0, 0)
    assert line[-1] == (4, 2)
    assert len(line) == 5


def test_origin_always_visible_and_radius_zero():
    grid = MapGrid.from_ascii(["###", "#.#", "###"])
    assert compute_visible(_opaque(grid), (1, 1), 0) == {(1, 1)}


def test_negative_radius_rejected():
    with pytest.raises(ValueError):
        compute_visible(lambda c: False, (0, 0), -1)


def test_walls_are_seen_but_hide_what_lies_behind():
    grid = MapGrid.from_ascii(
        [
            "#########",
            "#...#...#",
            "#########",
        ]
    )
    visible = compute_visible(_opaque(grid), (1, 1), 6)
    assert (3, 1) in visible
    assert (4, 1) in visible  # the wall itself
    assert (5, 1) not in visible
    assert (7, 1) not in visible


def test_radius_is_a_square_of_chebyshev_rings():
    visible = compute_visible(lambda c: False, (10, 10), 2)
    assert len(visible) == 25
    assert (12, 12) in visible
    assert (13, 10) not in visible


def test_visibility_is_symmetric():
    grid = RoomsGenerator().generate(40, 20, RandomSource(7))
    opaque = _opaque(grid)
    cells = grid.floor_cells()[:60]
    for a in cells[::6]:
        seen_from_a = compute_visible(opaque, a, 5)
        for b in cells:
            if b in seen_from_a:
                assert a in compute_visible(opaque, b, 5)
            assert has_line_of_sight(opaque, a, b) == has_line_of_sight(opaque, b, a)
