import json

from depthcrawl.entities import HealingItem, WeaponItem
from depthcrawl.snapshot import OverviewSnapshot


def test_status_line_of_a_fresh_world(make_world):
    world = make_world()
    assert world.snapshot().status_line() == (
        "HP: 20/20  Floor: 1  Level: 1  EXP: 0/20  Potions: 0  Weapon: None"
    )


def test_status_line_shows_equipped_weapon(make_world):
    world = make_world()
    world.player.weapons.append(WeaponItem((0, 0), "Orcish Axe", 2))
    world.equip_weapon(0)
    world.player.potions.append(HealingItem((0, 0)))
    assert world.snapshot().status_line().endswith("Potions: 1  Weapon: Orcish Axe")


def test_snapshot_only_shows_what_is_visible(make_world, place_player, spawn_enemy):
    world = make_world(fov_radius=3)
    place_player(world, (1, 1))
    spawn_enemy(world, (3, 3))
    spawn_enemy(world, (8, 5), archetype="troll")
    world.current_floor.healing_items.append(HealingItem((2, 1)))
    world.current_floor.healing_items.append(HealingItem((7, 4)))

    snap = world.snapshot()
    assert (1, 1) in snap.visible_cells
    assert (8, 5) not in snap.visible_cells
    assert [e.name for e in snap.enemies] == ["Goblin"]
    assert [i.position for i in snap.items] == [(2, 1)]
    assert snap.player.position == (1, 1)
    assert snap.game_over is False


def test_snapshot_is_json_friendly(make_world):
    world = make_world()
    data = world.snapshot().to_dict()
    text = json.dumps(data)
    assert '"status"' in text
    assert data["floor_index"] == 1


def test_overview_draws_the_whole_floor(make_world, place_player, spawn_enemy):
    world = make_world()
    floor = world.current_floor
    floor.down_stairs = (8, 5)
    place_player(world, (1, 1))
    spawn_enemy(world, (4, 3), archetype="orc")
    floor.healing_items.append(HealingItem((2, 1)))
    floor.weapon_items.append(WeaponItem((3, 1), "Heavy Club", 3, symbol="C"))

    rows = world.overview().rows
    assert rows[0] == "##########"
    assert rows[1] == "#@!C.....#"
    assert rows[3][4] == "o"
    assert rows[5][8] == ">"


def test_toggle_overview(make_world):
    world = make_world()
    assert world.overview_mode is False
    overview = world.toggle_overview()
    assert isinstance(overview, OverviewSnapshot)
    assert world.overview_mode is True
    assert overview.render().count("\n") == len(overview.rows) - 1
    assert world.toggle_overview() is None
    assert world.overview_mode is False


def test_select_enemy_shows_its_status(make_world, spawn_enemy):
    world = make_world()
    goblin = spawn_enemy(world, (4, 3))
    orc = spawn_enemy(world, (6, 3), archetype="orc")

    assert world.select_enemy_at((4, 3)) is goblin
    assert world.selected_enemy_status() == "Enemy: Goblin   HP: 8"

    world.select_enemy_at((6, 3))
    assert goblin.selected is False and orc.selected is True

    assert world.select_enemy_at((1, 1)) is None
    assert world.selected_enemy_status() is None


def test_killing_the_selected_enemy_clears_the_selection(make_world, spawn_enemy):
    world = make_world()
    goblin = spawn_enemy(world, (4, 3), hp=2)
    world.select_enemy_at((4, 3))
    world.combat.player_attack(goblin)
    assert goblin.selected is False
    assert world.selected_enemy_status() is None
