from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from .ai import EnemyAI
from .combat import CombatEngine
from .dungeon.geometry import is_cardinal_step, offset
from .errors import InvalidDirectionError
from .results import MoveOutcome, MoveResult
from .scheduling import ScheduledTask, Scheduler

if TYPE_CHECKING:  # pragma: no cover
    from .world import World

logger = logging.getLogger(__name__)

# More FLOOR neighbours than this means a junction or open room.
JUNCTION_THRESHOLD = 2


class MovementResolver:
    """Resolves one 4-directional move intent against the current floor.

    Precedence: stairs, then enemies (attack instead of moving), then terrain.
    Only a real step picks up items and gives the enemies their turn.
    """

    def __init__(self, world: "World", combat: CombatEngine, ai: EnemyAI) -> None:
        self.world = world
        self.combat = combat
        self.ai = ai

    def attempt_move(self, dx: int, dy: int) -> MoveResult:
        world = self.world
        player = world.player
        if world.game_over:
            return MoveResult(MoveOutcome.GAME_OVER, player.position)
        if not is_cardinal_step(dx, dy):
            logger.debug("Rejected non-cardinal move (%d, %d)", dx, dy)
            return MoveResult(MoveOutcome.REJECTED, player.position)

        floor = world.current_floor
        target = offset(player.position, dx, dy)

        if target == floor.down_stairs:
            world.change_floor("down")
            return MoveResult(MoveOutcome.FLOOR_CHANGED, world.player.position)
        if floor.up_stairs is not None and target == floor.up_stairs:
            world.change_floor("up")
            return MoveResult(MoveOutcome.FLOOR_CHANGED, world.player.position)

        enemy = floor.enemy_at(target)
        if enemy is not None:
            self.combat.player_attack(enemy)
            return MoveResult(MoveOutcome.ATTACKED, player.position)

        if not floor.is_floor(target):
            logger.debug("Blocked move by (%d, %d) from %s", dx, dy, player.position)
            return MoveResult(MoveOutcome.BLOCKED, player.position)

        player.position = target
        world.record_player_position()
        self.combat.check_pickup()
        self.ai.tick_all()
        return MoveResult(MoveOutcome.MOVED, player.position)


class AutoRunStop(Enum):
    CANCELLED = "cancelled"
    GAME_OVER = "game_over"
    ENEMY_IN_VIEW = "enemy_in_view"
    JUNCTION = "junction"
    NOT_ADVANCED = "not_advanced"


class AutoRun:
    """Repeated moves in one direction until something worth stopping for.

    The first step runs immediately; each following step is scheduled after
    ``delay`` seconds and re-checks cancellation and game over under the world
    lock before touching any state.
    """

    def __init__(
        self,
        world: "World",
        resolver: MovementResolver,
        scheduler: Scheduler,
        dx: int,
        dy: int,
        delay: float,
        on_finish: Optional[Callable[["AutoRun"], None]] = None,
    ) -> None:
        if not is_cardinal_step(dx, dy):
            raise InvalidDirectionError(f"auto-run direction must be a cardinal unit step, got ({dx}, {dy})")
        self.world = world
        self.resolver = resolver
        self.scheduler = scheduler
        self.dx = dx
        self.dy = dy
        self.delay = delay
        self.steps = 0
        self.stop_reason: Optional[AutoRunStop] = None
        self._cancel_requested = False
        self._task: Optional[ScheduledTask] = None
        self._on_finish = on_finish

    @property
    def active(self) -> bool:
        return self.stop_reason is None

    def start(self) -> "AutoRun":
        self._step()
        return self

    def cancel(self) -> None:
        """Stop before the next scheduled step. Safe to call from any thread, any number of times."""
        self._cancel_requested = True
        task = self._task
        if task is not None:
            task.cancel()
        with self.world.lock:
            if self.active:
                self._finish(AutoRunStop.CANCELLED)

    def _finish(self, reason: AutoRunStop) -> None:
        if self.stop_reason is not None:
            return
        self.stop_reason = reason
        self._task = None
        logger.debug("Auto-run (%d, %d) stopped after %d steps: %s", self.dx, self.dy, self.steps, reason.value)
        if self._on_finish is not None:
            self._on_finish(self)

    def _step(self) -> None:
        world = self.world
        with world.lock:
            if not self.active:
                return
            if self._cancel_requested:
                self._finish(AutoRunStop.CANCELLED)
                return
            if world.game_over:
                self._finish(AutoRunStop.GAME_OVER)
                return

            result = self.resolver.attempt_move(self.dx, self.dy)
            self.steps += 1
            if world.game_over:
                self._finish(AutoRunStop.GAME_OVER)
                return
            if not result.advanced:
                self._finish(AutoRunStop.NOT_ADVANCED)
                return
            if world.enemy_in_view():
                self._finish(AutoRunStop.ENEMY_IN_VIEW)
                return
            if world.current_floor.grid.count_floor_neighbors(world.player.position) > JUNCTION_THRESHOLD:
                self._finish(AutoRunStop.JUNCTION)
                return
            self._task = self.scheduler.call_later(self.delay, self._step)
