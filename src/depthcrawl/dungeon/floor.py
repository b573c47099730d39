from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..entities import Enemy, HealingItem, WeaponItem
from .geometry import Cell
from .tiles import MapGrid, Tile

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Floor:
    """One dungeon floor: immutable tiles plus the mutable things standing on them.

    Built once per floor index and cached by the World; everything mutated here
    (enemy positions, items left behind) is still there when the player returns.
    """

    index: int
    grid: MapGrid
    free_cells: List[Cell]
    down_stairs: Cell
    up_stairs: Optional[Cell] = None
    enemies: List[Enemy] = field(default_factory=list)
    healing_items: List[HealingItem] = field(default_factory=list)
    weapon_items: List[WeaponItem] = field(default_factory=list)
    player_pos: Optional[Cell] = None

    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height(self) -> int:
        return self.grid.height

    # Tile queries
    def tile_at(self, cell: Cell) -> Tile:
        return self.grid.tile_at(cell)

    def is_floor(self, cell: Cell) -> bool:
        return self.grid.is_floor(cell)

    def is_opaque(self, cell: Cell) -> bool:
        return not self.grid.is_floor(cell)

    def is_stairs(self, cell: Cell) -> bool:
        return cell == self.down_stairs or (self.up_stairs is not None and cell == self.up_stairs)

    def stairs(self) -> List[Cell]:
        return [c for c in (self.up_stairs, self.down_stairs) if c is not None]

    # Entity queries
    def enemy_at(self, cell: Cell) -> Optional[Enemy]:
        for enemy in self.enemies:
            if enemy.position == cell:
                return enemy
        return None

    def healing_items_at(self, cell: Cell) -> List[HealingItem]:
        return [item for item in self.healing_items if item.position == cell]

    def weapon_items_at(self, cell: Cell) -> List[WeaponItem]:
        return [item for item in self.weapon_items if item.position == cell]

    def remove_enemy(self, enemy: Enemy) -> None:
        if enemy in self.enemies:
            self.enemies.remove(enemy)
            logger.debug("Removed %r from floor %d", enemy, self.index)

    def __repr__(self) -> str:
        return (
            f"Floor({self.index}, {self.width}x{self.height}, up={self.up_stairs}, "
            f"down={self.down_stairs}, enemies={len(self.enemies)})"
        )
