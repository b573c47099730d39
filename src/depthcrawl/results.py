from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .dungeon.geometry import Cell


class MoveOutcome(Enum):
    MOVED = "moved"
    ATTACKED = "attacked"
    BLOCKED = "blocked"
    FLOOR_CHANGED = "floor_changed"
    REJECTED = "rejected"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class MoveResult:
    outcome: MoveOutcome
    position: Cell

    @property
    def advanced(self) -> bool:
        """True when the player stepped into a new cell on the same floor."""
        return self.outcome is MoveOutcome.MOVED


class CommandStatus(Enum):
    OK = "ok"
    NO_ITEM = "no_item"
    NO_WEAPONS = "no_weapons"
    INVALID_INDEX = "invalid_index"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a non-movement command.

    A failed command leaves world state untouched; ``message`` is the line a UI
    would show.
    """

    status: CommandStatus
    message: str = ""
    value: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status is CommandStatus.OK
