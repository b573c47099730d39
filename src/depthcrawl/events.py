from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, Optional, Tuple

from .dungeon.geometry import Cell
from .entities import Enemy, HealingItem, WeaponItem

logger = logging.getLogger(__name__)


class EventType:
    """Centralized event names published by the engine."""

    ENEMY_DEFEATED = "enemy.defeated"
    WEAPON_DROPPED = "weapon.dropped"
    ITEM_PICKED_UP = "item.picked_up"
    POTION_USED = "potion.used"
    WEAPON_EQUIPPED = "weapon.equipped"
    PLAYER_DAMAGED = "player.damaged"
    LEVEL_UP = "player.level_up"
    GAME_OVER = "game.over"
    FLOOR_CHANGED = "floor.changed"
    COMMAND_REJECTED = "command.rejected"


@dataclass(frozen=True)
class EnemyDefeated:
    enemy: Enemy
    position: Cell
    exp_gained: int


@dataclass(frozen=True)
class WeaponDropped:
    weapon: WeaponItem
    enemy: Enemy


@dataclass(frozen=True)
class ItemPickedUp:
    item: HealingItem | WeaponItem
    position: Cell

    @property
    def is_potion(self) -> bool:
        return isinstance(self.item, HealingItem)


@dataclass(frozen=True)
class PotionUsed:
    amount: int
    hp_before: int
    hp_after: int


@dataclass(frozen=True)
class WeaponEquipped:
    weapon: WeaponItem
    index: int


@dataclass(frozen=True)
class PlayerDamaged:
    enemy: Enemy
    amount: int
    hp_after: int
    taunt: Optional[str] = None


@dataclass(frozen=True)
class LevelUp:
    from_level: int
    to_level: int
    max_hp: int


@dataclass(frozen=True)
class GameOver:
    floor_index: int
    position: Cell
    killed_by: Optional[Enemy] = None


@dataclass(frozen=True)
class FloorChanged:
    from_floor: int
    to_floor: int
    direction: str
    position: Cell


@dataclass(frozen=True)
class CommandRejected:
    command: str
    status: str
    message: str


Handler = Callable[[Any], None]


class EventBus:
    """Thread-safe publish/subscribe hub between the engine and its renderers.

    Handlers for one event run in subscription order on the emitting thread. A
    handler that raises is logged and skipped; the rest still see the payload.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._handlers: Dict[str, Tuple[Handler, ...]] = {}

    def subscribe(self, event: str, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` for ``event``; returns a callable that detaches it."""
        if not callable(handler):
            raise TypeError("handler must be callable")
        with self._lock:
            self._handlers[event] = self._handlers.get(event, ()) + (handler,)
        logger.debug("Handler %s listening on '%s'", _handler_name(handler), event)
        return lambda: self.unsubscribe(event, handler)

    def unsubscribe(self, event: str, handler: Handler) -> bool:
        """Drop the earliest registration of ``handler``; False if it was not registered."""
        with self._lock:
            handlers = list(self._handlers.get(event, ()))
            if handler not in handlers:
                return False
            handlers.remove(handler)
            if handlers:
                self._handlers[event] = tuple(handlers)
            else:
                del self._handlers[event]
        logger.debug("Handler %s detached from '%s'", _handler_name(handler), event)
        return True

    def handler_count(self, event: str) -> int:
        with self._lock:
            return len(self._handlers.get(event, ()))

    def emit(self, event: str, payload: Any = None) -> None:
        with self._lock:
            handlers = self._handlers.get(event, ())
        logger.debug("'%s' -> %d handler(s): %s", event, len(handlers), type(payload).__name__)
        for handler in handlers:
            try:
                handler(payload)
            except Exception:
                logger.exception("Handler %s failed on '%s'", _handler_name(handler), event)


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)
