from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from .dungeon.floor import Floor
from .dungeon.geometry import Cell
from .dungeon.tiles import Tile
from .entities import Enemy, Player

if TYPE_CHECKING:  # pragma: no cover
    from .world import World

PLAYER_GLYPH = "@"
POTION_GLYPH = "!"
UP_STAIRS_GLYPH = "<"
DOWN_STAIRS_GLYPH = ">"
WALL_GLYPH = "#"
FLOOR_GLYPH = "."


@dataclass(frozen=True)
class EntityView:
    kind: str  # "enemy" | "potion" | "weapon"
    name: str
    position: Cell
    symbol: str
    color: str
    hp: Optional[int] = None
    alerted: bool = False
    selected: bool = False


@dataclass(frozen=True)
class PlayerStatus:
    position: Cell
    hp: int
    max_hp: int
    level: int
    exp: int
    next_exp: int
    potions: int
    weapons: Tuple[str, ...]
    equipped: Optional[str]

    @classmethod
    def of(cls, player: Player) -> "PlayerStatus":
        weapon = player.equipped_weapon
        return cls(
            position=player.position,
            hp=player.hp,
            max_hp=player.max_hp,
            level=player.level,
            exp=player.exp,
            next_exp=player.next_exp,
            potions=len(player.potions),
            weapons=tuple(w.name for w in player.weapons),
            equipped=weapon.name if weapon is not None else None,
        )


@dataclass(frozen=True)
class WorldSnapshot:
    """What the player can currently see, for a renderer to draw.

    Enemies and items are limited to visible cells; stairs are always included
    once the floor is known.
    """

    floor_index: int
    width: int
    height: int
    player: PlayerStatus
    visible_cells: FrozenSet[Cell]
    up_stairs: Optional[Cell]
    down_stairs: Cell
    enemies: Tuple[EntityView, ...]
    items: Tuple[EntityView, ...]
    game_over: bool

    def status_line(self) -> str:
        p = self.player
        return (
            f"HP: {p.hp}/{p.max_hp}  Floor: {self.floor_index}  Level: {p.level}  "
            f"EXP: {p.exp}/{p.next_exp}  Potions: {p.potions}  Weapon: {p.equipped or 'None'}"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["visible_cells"] = sorted(self.visible_cells)
        data["status"] = self.status_line()
        return data


@dataclass(frozen=True)
class OverviewSnapshot:
    """The whole floor as glyph rows, everything revealed."""

    floor_index: int
    rows: Tuple[str, ...]

    def render(self) -> str:
        return "\n".join(self.rows)


def enemy_view(enemy: Enemy) -> EntityView:
    return EntityView(
        kind="enemy",
        name=enemy.name,
        position=enemy.position,
        symbol=enemy.archetype.symbol,
        color=enemy.archetype.color,
        hp=enemy.hp,
        alerted=enemy.alerted,
        selected=enemy.selected,
    )


def item_views(floor: Floor, cells: Optional[FrozenSet[Cell]] = None) -> List[EntityView]:
    views: List[EntityView] = []
    for potion in floor.healing_items:
        if cells is None or potion.position in cells:
            views.append(EntityView("potion", "Healing Potion", potion.position, POTION_GLYPH, "green"))
    for weapon in floor.weapon_items:
        if cells is None or weapon.position in cells:
            views.append(EntityView("weapon", weapon.name, weapon.position, weapon.symbol, weapon.color))
    return views


def build_snapshot(world: "World", visible: Iterable[Cell]) -> WorldSnapshot:
    floor = world.current_floor
    cells = frozenset(visible)
    return WorldSnapshot(
        floor_index=floor.index,
        width=floor.width,
        height=floor.height,
        player=PlayerStatus.of(world.player),
        visible_cells=cells,
        up_stairs=floor.up_stairs,
        down_stairs=floor.down_stairs,
        enemies=tuple(enemy_view(e) for e in floor.enemies if e.position in cells),
        items=tuple(item_views(floor, cells)),
        game_over=world.game_over,
    )


def render_rows(floor: Floor, player_pos: Optional[Cell]) -> List[str]:
    """Draw order follows the map screen: tiles, stairs, items, enemies, player on top."""
    canvas = [
        [FLOOR_GLYPH if floor.grid.tiles[y][x] == Tile.FLOOR else WALL_GLYPH for x in range(floor.width)]
        for y in range(floor.height)
    ]

    def put(cell: Cell, glyph: str) -> None:
        x, y = cell
        if floor.grid.in_bounds(x, y):
            canvas[y][x] = glyph

    if floor.up_stairs is not None:
        put(floor.up_stairs, UP_STAIRS_GLYPH)
    put(floor.down_stairs, DOWN_STAIRS_GLYPH)
    for view in item_views(floor):
        put(view.position, view.symbol)
    for enemy in floor.enemies:
        put(enemy.position, enemy.archetype.symbol)
    if player_pos is not None:
        put(player_pos, PLAYER_GLYPH)
    return ["".join(row) for row in canvas]


def build_overview(world: "World") -> OverviewSnapshot:
    floor = world.current_floor
    return OverviewSnapshot(floor_index=floor.index, rows=tuple(render_rows(floor, world.player.position)))
