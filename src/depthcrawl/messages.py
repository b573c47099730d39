from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, Dict, List

from .events import (
    CommandRejected,
    EnemyDefeated,
    EventBus,
    EventType,
    FloorChanged,
    GameOver,
    ItemPickedUp,
    LevelUp,
    PlayerDamaged,
    PotionUsed,
    WeaponDropped,
    WeaponEquipped,
)

logger = logging.getLogger(__name__)


class MessageLog:
    """In-memory message history fed by engine events.

    - Keeps a finite history (capacity) to avoid unbounded growth.
    - Renders each event into the line a dialogue box would show.
    """

    def __init__(self, bus: EventBus, capacity: int = 200) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._messages: Deque[str] = deque(maxlen=capacity)
        handlers: Dict[str, Callable[[object], None]] = {
            EventType.ENEMY_DEFEATED: self._on_enemy_defeated,
            EventType.WEAPON_DROPPED: self._on_weapon_dropped,
            EventType.ITEM_PICKED_UP: self._on_item_picked_up,
            EventType.POTION_USED: self._on_potion_used,
            EventType.WEAPON_EQUIPPED: self._on_weapon_equipped,
            EventType.PLAYER_DAMAGED: self._on_player_damaged,
            EventType.LEVEL_UP: self._on_level_up,
            EventType.GAME_OVER: self._on_game_over,
            EventType.FLOOR_CHANGED: self._on_floor_changed,
            EventType.COMMAND_REJECTED: self._on_command_rejected,
        }
        self._detachers: List[Callable[[], None]] = [bus.subscribe(name, handler) for name, handler in handlers.items()]
        logger.debug("MessageLog initialized with capacity=%d", capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def add(self, message: str) -> None:
        self._messages.append(message)

    def lines(self) -> List[str]:
        return list(self._messages)

    def last(self) -> str:
        return self._messages[-1] if self._messages else ""

    def clear(self) -> None:
        self._messages.clear()

    def detach(self) -> None:
        """Stop listening to the bus; the history is kept."""
        while self._detachers:
            self._detachers.pop()()

    def __len__(self) -> int:
        return len(self._messages)

    # Event renderers
    def _on_enemy_defeated(self, event: EnemyDefeated) -> None:
        self.add(f"Defeated the {event.enemy.name}! (+{event.exp_gained} EXP)")

    def _on_weapon_dropped(self, event: WeaponDropped) -> None:
        self.add(f"Enemy dropped a {event.weapon.name}!")

    def _on_item_picked_up(self, event: ItemPickedUp) -> None:
        if event.is_potion:
            self.add("Healing potion picked up!")
        else:
            self.add(f"Picked up a {event.item.name}!")

    def _on_potion_used(self, event: PotionUsed) -> None:
        self.add(f"Used healing potion: HP {event.hp_before} -> {event.hp_after}")

    def _on_weapon_equipped(self, event: WeaponEquipped) -> None:
        self.add(f"Equipped {event.weapon.name}!")

    def _on_player_damaged(self, event: PlayerDamaged) -> None:
        if event.taunt:
            self.add(f"{event.enemy.name}: {event.taunt}")
        self.add(f"The {event.enemy.name} hits you for {event.amount} damage.")

    def _on_level_up(self, event: LevelUp) -> None:
        self.add(f"Level up! You reached level {event.to_level} (max HP {event.max_hp}).")

    def _on_game_over(self, event: GameOver) -> None:
        self.add(f"You died on floor {event.floor_index}.")

    def _on_floor_changed(self, event: FloorChanged) -> None:
        self.add(f"You go {event.direction} to floor {event.to_floor}.")

    def _on_command_rejected(self, event: CommandRejected) -> None:
        self.add(event.message)
