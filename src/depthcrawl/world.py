from __future__ import annotations

import logging
from threading import RLock
from typing import Callable, Dict, Optional, Set

from .ai import EnemyAI
from .combat import CombatEngine
from .config import Settings
from .content import Content, load_content
from .dungeon.builder import FloorBuilder
from .dungeon.floor import Floor
from .dungeon.fov import compute_visible
from .dungeon.generator import MapGenerator, RoomsGenerator
from .dungeon.geometry import Cell
from .dungeon.pathfinding import find_path
from .entities import Enemy, Player
from .errors import MapGenerationError
from .events import EventBus, EventType, FloorChanged, GameOver
from .messages import MessageLog
from .movement import AutoRun, MovementResolver
from .results import CommandResult, MoveResult
from .rng import RandomSource
from .scheduling import Scheduler, ThreadingScheduler
from .snapshot import OverviewSnapshot, WorldSnapshot, build_overview, build_snapshot

logger = logging.getLogger(__name__)

Visibility = Callable[[Callable[[Cell], bool], Cell, int], Set[Cell]]

UP = "up"
DOWN = "down"


class World:
    """One game session: the floor cache, the player and the command surface.

    Floors are generated on first visit and cached by index for the rest of the
    session, so leaving and coming back finds enemies, items and the player's last
    position exactly as they were. Every command runs under ``lock`` so a
    background auto-run never interleaves with a direct command.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        rng: Optional[RandomSource] = None,
        generator: Optional[MapGenerator] = None,
        content: Optional[Content] = None,
        bus: Optional[EventBus] = None,
        scheduler: Optional[Scheduler] = None,
        path_finder=find_path,
        visibility: Visibility = compute_visible,
    ) -> None:
        self.settings = settings or Settings()
        self.settings.validate()
        self.rng = rng or RandomSource(self.settings.seed)
        self.content = content or load_content(self.settings.content_path)
        self.bus = bus or EventBus()
        self.scheduler = scheduler or ThreadingScheduler()
        self.lock = RLock()
        self.floors: Dict[int, Floor] = {}
        self.current_floor_index = 1
        self.overview_mode = False
        self._player: Optional[Player] = None
        self._game_over = False
        self._auto_run: Optional[AutoRun] = None
        self._visibility = visibility

        self.messages = MessageLog(self.bus, self.settings.message_log_capacity)
        self.builder = FloorBuilder(self.settings, self.content, self.rng, generator or RoomsGenerator())
        self.combat = CombatEngine(self, self.bus, self.rng, self.content.taunts)
        self.ai = EnemyAI(self, self.combat, path_finder)
        self.movement = MovementResolver(self, self.combat, self.ai)

        self.generate_or_load(1)
        logger.info("World ready (seed=%s): player at %s on floor 1", self.rng.seed, self.player.position)

    # ------------------------ State ------------------------
    @property
    def player(self) -> Player:
        if self._player is None:
            raise RuntimeError("the player does not exist before floor 1 is generated")
        return self._player

    @property
    def current_floor(self) -> Floor:
        return self.floors[self.current_floor_index]

    @property
    def game_over(self) -> bool:
        return self._game_over

    def end_game(self, killed_by: Optional[Enemy] = None) -> None:
        """Enter the terminal state. Only the first call has any effect."""
        with self.lock:
            if self._game_over:
                return
            self._game_over = True
            logger.info("Game over on floor %d at %s", self.current_floor_index, self.player.position)
            self.bus.emit(
                EventType.GAME_OVER,
                GameOver(floor_index=self.current_floor_index, position=self.player.position, killed_by=killed_by),
            )

    # ------------------------ Floors ------------------------
    def generate_or_load(
        self, index: int, forced_up: Optional[Cell] = None, forced_down: Optional[Cell] = None
    ) -> Floor:
        """Return the cached floor ``index``, building it on first visit.

        On a cache hit the forced stair cells are ignored and the player is put
        back where they stood when they last left that floor.
        """
        with self.lock:
            floor = self.floors.get(index)
            if floor is not None:
                if self._player is not None and floor.player_pos is not None:
                    self._player.position = floor.player_pos
                logger.debug("Loaded cached floor %d", index)
                return floor

            floor = self.builder.build(index, forced_up=forced_up, forced_down=forced_down)
            self.floors[index] = floor
            if self._player is None:
                if floor.player_pos is None:
                    raise MapGenerationError(f"floor {index} was built without a player position")
                self._player = Player(position=floor.player_pos)
            return floor

    def record_player_position(self) -> None:
        self.current_floor.player_pos = self.player.position

    def change_floor(self, direction: str) -> bool:
        """Take the stairs ``direction`` ("up" or "down"); returns False when there is nowhere to go."""
        if direction not in (UP, DOWN):
            raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")
        with self.lock:
            if self._game_over:
                return False
            if direction == UP and self.current_floor_index == 1:
                logger.debug("Already on floor 1; ignoring ascend")
                return False

            source = self.current_floor
            self.record_player_position()
            from_index = self.current_floor_index

            if direction == DOWN:
                self.current_floor_index += 1
                target = self.generate_or_load(self.current_floor_index, forced_up=source.down_stairs)
                arrival = target.up_stairs
            else:
                if source.up_stairs is None:
                    raise MapGenerationError(f"floor {from_index} has no up stairs")
                self.current_floor_index -= 1
                target = self.generate_or_load(self.current_floor_index, forced_down=source.up_stairs)
                arrival = target.down_stairs

            if arrival is None:
                self.current_floor_index = from_index
                self.player.position = source.player_pos
                raise MapGenerationError(f"floor {target.index} has no stairs to arrive on")
            self.player.position = arrival
            self.record_player_position()
            logger.info("Floor %d -> %d (%s), player at %s", from_index, target.index, direction, arrival)
            self.bus.emit(
                EventType.FLOOR_CHANGED,
                FloorChanged(from_floor=from_index, to_floor=target.index, direction=direction, position=arrival),
            )
            return True

    # ------------------------ Commands ------------------------
    def move(self, dx: int, dy: int) -> MoveResult:
        """Resolve one manual move. A manual move interrupts any running auto-run."""
        with self.lock:
            self.cancel_auto_run()
            return self.movement.attempt_move(dx, dy)

    def auto_run(self, dx: int, dy: int) -> AutoRun:
        with self.lock:
            self.cancel_auto_run()
            run = AutoRun(
                self,
                self.movement,
                self.scheduler,
                dx,
                dy,
                self.settings.auto_run_delay,
                on_finish=self._on_auto_run_finished,
            )
            self._auto_run = run
            return run.start()

    def cancel_auto_run(self) -> None:
        run = self._auto_run
        if run is not None:
            run.cancel()

    @property
    def active_auto_run(self) -> Optional[AutoRun]:
        return self._auto_run

    def _on_auto_run_finished(self, run: AutoRun) -> None:
        if self._auto_run is run:
            self._auto_run = None

    def use_healing_item(self) -> CommandResult:
        with self.lock:
            return self.combat.use_healing_item()

    def equip_weapon(self, index: int) -> CommandResult:
        with self.lock:
            return self.combat.equip_weapon(index)

    def toggle_overview(self) -> Optional[OverviewSnapshot]:
        """Flip the whole-floor view; returns the overview when switching it on."""
        with self.lock:
            self.overview_mode = not self.overview_mode
            return self.overview() if self.overview_mode else None

    def select_enemy_at(self, cell: Cell) -> Optional[Enemy]:
        """Mark the enemy on ``cell`` as selected (clearing any other selection)."""
        with self.lock:
            floor = self.current_floor
            target = floor.enemy_at(cell)
            for enemy in floor.enemies:
                enemy.selected = enemy is target
            return target

    # ------------------------ Queries ------------------------
    def visible_cells(self) -> Set[Cell]:
        floor = self.current_floor
        return self._visibility(floor.is_opaque, self.player.position, self.settings.fov_radius)

    def enemy_in_view(self) -> bool:
        visible = self.visible_cells()
        return any(enemy.position in visible for enemy in self.current_floor.enemies)

    def selected_enemy_status(self) -> Optional[str]:
        for enemy in self.current_floor.enemies:
            if enemy.selected:
                return f"Enemy: {enemy.name}   HP: {enemy.hp}"
        return None

    def snapshot(self) -> WorldSnapshot:
        with self.lock:
            return build_snapshot(self, self.visible_cells())

    def overview(self) -> OverviewSnapshot:
        with self.lock:
            return build_overview(self)
