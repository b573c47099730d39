import logging

import pytest

from depthcrawl.config import Settings
from depthcrawl.dungeon.builder import FloorBuilder, nearest_free_cell, random_free_cell_excluding
from depthcrawl.dungeon.generator import AsciiMapGenerator, RoomsGenerator
from depthcrawl.errors import MapGenerationError
from depthcrawl.rng import RandomSource

from conftest import OPEN_ROOM

# (3, 2) is a wall pillar in the middle of the room.
PILLAR_ROOM = [
    "#######",
    "#.....#",
    "#..#..#",
    "#.....#",
    "#######",
]


def make_builder(content, layout=OPEN_ROOM, seed=3, **overrides):
    settings = Settings(seed=seed, **overrides)
    return FloorBuilder(settings, content, RandomSource(seed), AsciiMapGenerator(layout))


def test_first_floor_has_no_up_stairs(content):
    floor = make_builder(content).build(1)
    assert floor.index == 1
    assert floor.up_stairs is None
    assert floor.down_stairs in floor.free_cells
    assert floor.player_pos in floor.free_cells
    assert floor.player_pos != floor.down_stairs


def test_deeper_floors_have_distinct_stairs(content):
    builder = make_builder(content)
    for index in range(2, 8):
        floor = builder.build(index)
        assert floor.up_stairs in floor.free_cells
        assert floor.down_stairs in floor.free_cells
        assert floor.up_stairs != floor.down_stairs


def test_forced_up_stairs_on_free_cell_is_kept(content):
    floor = make_builder(content).build(2, forced_up=(4, 3))
    assert floor.up_stairs == (4, 3)
    assert floor.down_stairs != (4, 3)
    assert floor.player_pos == (4, 3)


def test_forced_stairs_on_wall_snap_to_nearest_free_cell(content):
    builder = make_builder(content, layout=PILLAR_ROOM)
    up_floor = builder.build(2, forced_up=(3, 2))
    # Four free cells at distance 1; the earliest in row-major order wins.
    assert up_floor.up_stairs == (3, 1)

    down_floor = builder.build(2, forced_down=(3, 2))
    assert down_floor.down_stairs == (3, 1)
    assert down_floor.up_stairs != (3, 1)
    assert down_floor.player_pos == (3, 1)


def test_colliding_forced_stairs_stay_distinct(content):
    floor = make_builder(content).build(3, forced_up=(4, 3), forced_down=(4, 3))
    assert floor.up_stairs == (4, 3)
    # Next nearest free cell, earliest in row-major order.
    assert floor.down_stairs == (4, 2)
    assert floor.player_pos == (4, 3)

    walled = make_builder(content, layout=PILLAR_ROOM).build(2, forced_up=(3, 2), forced_down=(3, 2))
    assert walled.up_stairs == (3, 1)
    assert walled.down_stairs != walled.up_stairs
    assert walled.down_stairs in walled.free_cells


def test_nearest_free_cell_breaks_ties_by_order():
    assert nearest_free_cell([(0, 1), (1, 0)], (0, 0)) == (0, 1)
    assert nearest_free_cell([(5, 5), (1, 0), (0, 1)], (0, 0)) == (1, 0)
    with pytest.raises(MapGenerationError):
        nearest_free_cell([], (0, 0))


def test_random_free_cell_excluding_runs_out():
    rng = RandomSource(1)
    assert random_free_cell_excluding(rng, [(1, 1), (2, 1)], [(1, 1)]) == (2, 1)
    assert random_free_cell_excluding(rng, [(1, 1)], [(1, 1), None]) is None


def test_population_never_overlaps(content):
    floor = make_builder(content, enemy_count=6, healing_item_count=6).build(3)
    assert len(floor.enemies) == 6
    assert len(floor.healing_items) == 6

    claimed = [floor.player_pos, *floor.stairs()]
    claimed += [e.position for e in floor.enemies]
    claimed += [p.position for p in floor.healing_items]
    assert len(claimed) == len(set(claimed))
    assert all(cell in floor.free_cells for cell in claimed)


def test_enemy_hp_scales_with_floor(content):
    floor = make_builder(content, enemy_count=5).build(3)
    for enemy in floor.enemies:
        assert enemy.hp == enemy.archetype.base_hp + 4
        assert enemy.max_hp == enemy.hp
        assert enemy.level == 3
        assert enemy.alerted is False

    flat = make_builder(content, enemy_count=5, enemy_hp_per_floor=0).build(3)
    assert all(e.hp == e.archetype.base_hp for e in flat.enemies)


def test_crowded_floor_seeds_fewer_entities_and_warns(content, caplog):
    tiny = ["#####", "#...#", "#####"]
    builder = make_builder(content, layout=tiny, enemy_count=3, healing_item_count=2)
    with caplog.at_level(logging.WARNING):
        floor = builder.build(1)
    # Three cells: down stairs, player, one enemy.
    assert len(floor.enemies) == 1
    assert len(floor.healing_items) == 0
    assert "placed only" in caplog.text


def test_floor_without_room_for_stairs_is_an_error(content):
    with pytest.raises(MapGenerationError):
        make_builder(content, layout=["###", "###", "###"]).build(1)
    with pytest.raises(MapGenerationError):
        make_builder(content, layout=["###", "#.#", "###"]).build(2)


def test_layout_of_a_floor_does_not_depend_on_earlier_draws(content):
    settings = Settings(seed=11, level_width=50, level_height=25)
    a = FloorBuilder(settings, content, RandomSource(11), RoomsGenerator())
    b = FloorBuilder(settings, content, RandomSource(11), RoomsGenerator())
    a.build(1)
    a.build(2)
    assert a.build(3).grid.to_ascii() == b.build(3).grid.to_ascii()


def test_invalid_floor_index(content):
    with pytest.raises(ValueError):
        make_builder(content).build(0)
