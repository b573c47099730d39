from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable, List

from .combat import CombatEngine
from .dungeon.floor import Floor
from .dungeon.geometry import Cell, chebyshev_distance, euclidean_distance
from .dungeon.pathfinding import find_path
from .entities import Enemy

if TYPE_CHECKING:  # pragma: no cover
    from .world import World

logger = logging.getLogger(__name__)

PathFinder = Callable[[Callable[[Cell], bool], Cell, Cell, int], List[Cell]]


class EnemyAction(Enum):
    IDLE = "idle"  # dormant, nothing to do
    ATTACK = "attack"
    STEP = "step"
    WAIT = "wait"  # alerted but no usable path this tick


class EnemyAI:
    """Per-enemy alert state machine, ticked once per resolved player move.

    Dormant -> Alerted when the player comes within the enemy's sense radius
    (Euclidean). Alerted is permanent. An alerted enemy attacks when it is
    8-adjacent to the player, otherwise it takes one step along an 8-connected
    shortest path. Enemies never walk onto stairs or into each other.
    """

    def __init__(self, world: "World", combat: CombatEngine, path_finder: PathFinder = find_path) -> None:
        self.world = world
        self.combat = combat
        self.path_finder = path_finder

    def tick_all(self) -> List[EnemyAction]:
        """Run one decision for every enemy on the current floor, in spawn order."""
        floor = self.world.current_floor
        actions: List[EnemyAction] = []
        for enemy in list(floor.enemies):
            if self.world.game_over:
                break
            actions.append(self.tick(enemy, floor))
        return actions

    def tick(self, enemy: Enemy, floor: Floor) -> EnemyAction:
        player_pos = self.world.player.position
        if not enemy.alerted:
            if euclidean_distance(enemy.position, player_pos) <= enemy.sense_radius:
                enemy.alert()
                logger.debug("%s at %s alerted by player at %s", enemy.name, enemy.position, player_pos)
            else:
                return EnemyAction.IDLE

        if chebyshev_distance(enemy.position, player_pos) <= 1:
            self.combat.enemy_attack(enemy)
            return EnemyAction.ATTACK

        def walkable(cell: Cell) -> bool:
            return floor.is_floor(cell) and not floor.is_stairs(cell)

        path = self.path_finder(walkable, enemy.position, player_pos, 8)
        if len(path) <= 1:
            logger.debug("%s at %s has no path to player at %s", enemy.name, enemy.position, player_pos)
            return EnemyAction.WAIT

        step = path[1]
        blocker = floor.enemy_at(step)
        if blocker is not None and blocker is not enemy:
            return EnemyAction.WAIT
        enemy.position = step
        return EnemyAction.STEP
