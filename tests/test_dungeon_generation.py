from collections import deque

import pytest

from depthcrawl.dungeon.generator import AsciiMapGenerator, Room, RoomsGenerator, elbow
from depthcrawl.dungeon.tiles import MapGrid, Tile
from depthcrawl.rng import RandomSource


def _reachable(grid: MapGrid, start):
    seen = {start}
    q = deque([start])
    while q:
        x, y = q.popleft()
        for nx, ny in ((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)):
            if (nx, ny) not in seen and grid.is_floor((nx, ny)):
                seen.add((nx, ny))
                q.append((nx, ny))
    return seen


def test_rooms_generator_is_deterministic_for_a_seed():
    gen = RoomsGenerator()
    a = gen.generate(60, 30, RandomSource(99))
    b = gen.generate(60, 30, RandomSource(99))
    assert a.to_ascii() == b.to_ascii()


def test_rooms_generator_keeps_border_walls_and_is_connected():
    grid = RoomsGenerator().generate(120, 40, RandomSource(2024))
    assert grid.width == 120 and grid.height == 40

    for x in range(grid.width):
        assert grid.tiles[0][x] == Tile.WALL
        assert grid.tiles[grid.height - 1][x] == Tile.WALL
    for y in range(grid.height):
        assert grid.tiles[y][0] == Tile.WALL
        assert grid.tiles[y][grid.width - 1] == Tile.WALL

    floors = grid.floor_cells()
    assert floors, "expected at least one walkable cell"
    assert _reachable(grid, floors[0]) == set(floors)


def test_rooms_generator_handles_minimum_size_and_rejects_smaller():
    grid = RoomsGenerator().generate(3, 3, RandomSource(1))
    assert grid.floor_cells() == [(1, 1)]
    with pytest.raises(ValueError):
        RoomsGenerator().generate(2, 5, RandomSource(1))


def test_elbow_corridor_turns_once():
    assert list(elbow((1, 1), (3, 2), horizontal_first=True)) == [(1, 1), (2, 1), (3, 1), (3, 1), (3, 2)]
    assert list(elbow((3, 2), (1, 1), horizontal_first=False)) == [(3, 2), (3, 1), (3, 1), (2, 1), (1, 1)]


def test_rooms_keep_a_wall_between_them():
    room = Room(1, 1, 3, 3)
    assert room.center == (2, 2)
    assert len(list(room.cells())) == 9
    assert room.clear_of(Room(5, 1, 6, 2))
    assert not room.clear_of(Room(4, 1, 6, 2))
    assert not room.clear_of(Room(2, 2, 6, 6))


def test_floor_cells_are_row_major():
    grid = MapGrid.from_ascii(["#..#", "..##"])
    assert grid.floor_cells() == [(1, 0), (2, 0), (0, 1), (1, 1)]


def test_out_of_bounds_reads_as_wall():
    grid = MapGrid.from_ascii(["..", ".."])
    assert grid.tile_at((-1, 0)) == Tile.WALL
    assert grid.tile_at((2, 1)) == Tile.WALL
    assert grid.is_floor((1, 1))


def test_ascii_generator_reuses_last_layout():
    gen = AsciiMapGenerator(["#.#"], ["..."])
    rng = RandomSource(0)
    assert gen.generate(0, 0, rng).to_ascii() == ["#.#"]
    assert gen.generate(0, 0, rng).to_ascii() == ["..."]
    assert gen.generate(0, 0, rng).to_ascii() == ["..."]


def test_count_floor_neighbors_uses_eight_directions():
    grid = MapGrid.from_ascii(
        [
            "#####",
            "#...#",
            "##.##",
            "#####",
        ]
    )
    assert grid.count_floor_neighbors((2, 1)) == 3
    assert grid.count_floor_neighbors((1, 1)) == 2
