from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, List, Sequence, Union

from .entities import Enemy, HealingItem, WeaponItem
from .events import (
    CommandRejected,
    EnemyDefeated,
    EventBus,
    EventType,
    ItemPickedUp,
    LevelUp,
    PlayerDamaged,
    PotionUsed,
    WeaponDropped,
    WeaponEquipped,
)
from .results import CommandResult, CommandStatus
from .rng import RandomSource

if TYPE_CHECKING:  # pragma: no cover
    from .world import World

logger = logging.getLogger(__name__)

PLAYER_BASE_DAMAGE = 5
ENEMY_DAMAGE = 3
KILL_EXP = 10
LEVEL_UP_MAX_HP = 5
EXP_GROWTH = 1.5


class CombatEngine:
    """Resolves attacks, pickups, item use and experience for the current floor.

    There is no miss chance and no defense stat: every hit lands for a fixed
    amount. All mutations are refused once the world is over.
    """

    def __init__(self, world: "World", bus: EventBus, rng: RandomSource, taunts: Sequence[str] = ()) -> None:
        self.world = world
        self.bus = bus
        self.rng = rng
        self.taunts = tuple(taunts)

    @property
    def player(self):
        return self.world.player

    # ------------------------ Attacks ------------------------
    def player_attack(self, enemy: Enemy) -> bool:
        """Hit ``enemy``; returns True when the blow kills it."""
        if self.world.game_over:
            return False
        floor = self.world.current_floor
        damage = PLAYER_BASE_DAMAGE + self.player.weapon_bonus
        enemy.hp -= damage
        logger.debug("Player hits %s for %d (hp now %d)", enemy.name, damage, enemy.hp)
        if enemy.alive:
            return False

        position = enemy.position
        enemy.selected = False
        floor.remove_enemy(enemy)
        logger.info("%s defeated at %s on floor %d", enemy.name, position, floor.index)
        self.bus.emit(EventType.ENEMY_DEFEATED, EnemyDefeated(enemy=enemy, position=position, exp_gained=KILL_EXP))
        self.gain_experience(KILL_EXP)

        template = enemy.archetype.drop
        if template is not None:
            weapon = WeaponItem.from_template(template, position)
            floor.weapon_items.append(weapon)
            self.bus.emit(EventType.WEAPON_DROPPED, WeaponDropped(weapon=weapon, enemy=enemy))
        return True

    def enemy_attack(self, enemy: Enemy) -> int:
        """``enemy`` hits the player; returns the damage dealt."""
        if self.world.game_over:
            return 0
        self.player.hp -= ENEMY_DAMAGE
        taunt = self.rng.choice(self.taunts) if self.taunts else None
        logger.debug("%s hits player for %d (hp now %d)", enemy.name, ENEMY_DAMAGE, self.player.hp)
        self.bus.emit(
            EventType.PLAYER_DAMAGED,
            PlayerDamaged(enemy=enemy, amount=ENEMY_DAMAGE, hp_after=self.player.hp, taunt=taunt),
        )
        if not self.player.alive:
            self.world.end_game(killed_by=enemy)
        return ENEMY_DAMAGE

    # ------------------------ Progression ------------------------
    def gain_experience(self, amount: int) -> int:
        """Add experience, levelling up as many times as it covers; returns levels gained."""
        if amount < 0:
            raise ValueError("experience amount cannot be negative")
        player = self.player
        player.exp += amount
        gained = 0
        while player.exp >= player.next_exp:
            player.exp -= player.next_exp
            from_level = player.level
            player.level += 1
            player.next_exp = math.floor(player.next_exp * EXP_GROWTH)
            player.max_hp += LEVEL_UP_MAX_HP
            player.hp = player.max_hp
            gained += 1
            logger.info("Level up: L%d -> L%d (max_hp=%d, next=%d)", from_level, player.level, player.max_hp, player.next_exp)
            self.bus.emit(EventType.LEVEL_UP, LevelUp(from_level=from_level, to_level=player.level, max_hp=player.max_hp))
        return gained

    # ------------------------ Items ------------------------
    def check_pickup(self) -> List[Union[HealingItem, WeaponItem]]:
        """Move every item under the player from the floor into the inventory."""
        if self.world.game_over:
            return []
        floor = self.world.current_floor
        player = self.player
        picked: List[Union[HealingItem, WeaponItem]] = []

        for potion in floor.healing_items_at(player.position):
            floor.healing_items.remove(potion)
            player.potions.append(potion)
            picked.append(potion)
        for weapon in floor.weapon_items_at(player.position):
            floor.weapon_items.remove(weapon)
            player.weapons.append(weapon)
            picked.append(weapon)

        for item in picked:
            logger.debug("Picked up %r at %s", item, player.position)
            self.bus.emit(EventType.ITEM_PICKED_UP, ItemPickedUp(item=item, position=player.position))
        return picked

    def use_healing_item(self) -> CommandResult:
        if self.world.game_over:
            return self._reject("use_healing_item", CommandStatus.GAME_OVER, "The game is over.")
        player = self.player
        if not player.potions:
            return self._reject("use_healing_item", CommandStatus.NO_ITEM, "No healing potions!")
        potion = player.potions.popleft()
        before = player.hp
        player.hp = min(player.hp + potion.amount, player.max_hp)
        self.bus.emit(EventType.POTION_USED, PotionUsed(amount=potion.amount, hp_before=before, hp_after=player.hp))
        return CommandResult(CommandStatus.OK, f"Used healing potion: HP {before} -> {player.hp}", value=player.hp)

    def equip_weapon(self, index: int) -> CommandResult:
        if self.world.game_over:
            return self._reject("equip_weapon", CommandStatus.GAME_OVER, "The game is over.")
        player = self.player
        if not player.weapons:
            return self._reject("equip_weapon", CommandStatus.NO_WEAPONS, "No weapons in inventory!")
        if not 0 <= index < len(player.weapons):
            return self._reject("equip_weapon", CommandStatus.INVALID_INDEX, "Invalid choice!")
        player.equipped_index = index
        weapon = player.weapons[index]
        self.bus.emit(EventType.WEAPON_EQUIPPED, WeaponEquipped(weapon=weapon, index=index))
        return CommandResult(CommandStatus.OK, f"Equipped {weapon.name}!", value=index)

    def _reject(self, command: str, status: CommandStatus, message: str) -> CommandResult:
        logger.debug("Rejected %s: %s", command, status.value)
        self.bus.emit(EventType.COMMAND_REJECTED, CommandRejected(command=command, status=status.value, message=message))
        return CommandResult(status, message)
