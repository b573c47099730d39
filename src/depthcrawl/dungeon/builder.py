from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Set

from ..config import Settings
from ..content import Content
from ..entities import Enemy, HealingItem
from ..errors import MapGenerationError
from ..rng import RandomSource
from .floor import Floor
from .generator import MapGenerator
from .geometry import Cell

logger = logging.getLogger(__name__)


def nearest_free_cell(free_cells: Sequence[Cell], target: Cell) -> Cell:
    """Euclidean nearest neighbour of ``target``; ties go to the earliest free cell."""
    if not free_cells:
        raise MapGenerationError("no free cells to choose from")
    tx, ty = target
    return min(free_cells, key=lambda c: (c[0] - tx) ** 2 + (c[1] - ty) ** 2)


def random_free_cell_excluding(
    rng: RandomSource, free_cells: Sequence[Cell], excluded: Iterable[Optional[Cell]]
) -> Optional[Cell]:
    """Uniform draw over free cells not in ``excluded``; None once they run out."""
    blocked: Set[Cell] = {c for c in excluded if c is not None}
    candidates = [c for c in free_cells if c not in blocked]
    if not candidates:
        return None
    return rng.choice(candidates)


class FloorBuilder:
    """Builds a fresh Floor: carve the map, place the stairs, seed the population.

    The builder is stateless between calls; caching floors is the World's job.
    Layouts come from an RNG stream derived per floor index, so a floor's tiles do
    not depend on how many draws earlier floors consumed. Stairs and spawns use
    the shared RNG.
    """

    def __init__(self, settings: Settings, content: Content, rng: RandomSource, generator: MapGenerator) -> None:
        self.settings = settings
        self.content = content
        self.rng = rng
        self.generator = generator

    def build(
        self,
        floor_index: int,
        forced_up: Optional[Cell] = None,
        forced_down: Optional[Cell] = None,
    ) -> Floor:
        if floor_index < 1:
            raise ValueError(f"floor index must be >= 1, got {floor_index}")

        layout_rng = self.rng.derive("floor_layout", floor_index)
        grid = self.generator.generate(self.settings.level_width, self.settings.level_height, layout_rng)
        free_cells = grid.floor_cells()
        needed = 1 if floor_index == 1 else 2
        if len(free_cells) < needed:
            raise MapGenerationError(
                f"floor {floor_index} has {len(free_cells)} free cells; at least {needed} required for stairs"
            )

        up_stairs, down_stairs = self._place_stairs(floor_index, free_cells, forced_up, forced_down)
        floor = Floor(
            index=floor_index,
            grid=grid,
            free_cells=free_cells,
            up_stairs=up_stairs,
            down_stairs=down_stairs,
        )

        # Arrival is on the stair used; a fresh game spawns off the stairs.
        if forced_up is not None:
            floor.player_pos = up_stairs
        elif forced_down is not None:
            floor.player_pos = down_stairs
        else:
            floor.player_pos = random_free_cell_excluding(self.rng, free_cells, floor.stairs())
            if floor.player_pos is None:
                # Single-cell floor 1: nowhere but the stairs.
                floor.player_pos = down_stairs

        self._seed_enemies(floor)
        self._seed_healing_items(floor)
        logger.info(
            "Built floor %d: %d free cells, up=%s, down=%s, enemies=%d, potions=%d",
            floor_index,
            len(free_cells),
            up_stairs,
            down_stairs,
            len(floor.enemies),
            len(floor.healing_items),
        )
        return floor

    # ------------------------ Stairs ------------------------
    def _resolve_forced(self, free_cells: List[Cell], free_set: Set[Cell], forced: Cell) -> Cell:
        if forced in free_set:
            return forced
        nearest = nearest_free_cell(free_cells, forced)
        logger.debug("Forced stair %s is not free; using nearest free cell %s", forced, nearest)
        return nearest

    def _place_stairs(
        self,
        floor_index: int,
        free_cells: List[Cell],
        forced_up: Optional[Cell],
        forced_down: Optional[Cell],
    ) -> tuple[Optional[Cell], Cell]:
        if floor_index == 1:
            return None, self.rng.choice(free_cells)

        free_set = set(free_cells)
        if forced_up is not None:
            up = self._resolve_forced(free_cells, free_set, forced_up)
        else:
            up = self.rng.choice(free_cells)

        if forced_down is not None:
            down = self._resolve_forced(free_cells, free_set, forced_down)
            if down == up and forced_up is not None:
                # The up stair keeps its cell; the down stair takes the next nearest.
                down = nearest_free_cell([c for c in free_cells if c != up], forced_down)
                logger.debug("Forced stairs collide at %s; down stair moved to %s", up, down)
            while down == up:
                up = self.rng.choice(free_cells)
        else:
            down = self.rng.choice(free_cells)
            while down == up:
                down = self.rng.choice(free_cells)
        return up, down

    # ------------------------ Population ------------------------
    def _seed_enemies(self, floor: Floor) -> None:
        wanted = self.settings.enemy_count
        while len(floor.enemies) < wanted:
            cell = random_free_cell_excluding(
                self.rng,
                floor.free_cells,
                [*floor.stairs(), floor.player_pos, *(e.position for e in floor.enemies)],
            )
            if cell is None:
                logger.warning("Floor %d: placed only %d of %d enemies", floor.index, len(floor.enemies), wanted)
                break
            archetype = self.rng.choice(self.content.archetypes)
            hp = archetype.hp_for_floor(floor.index, self.settings.enemy_hp_per_floor)
            floor.enemies.append(Enemy(archetype=archetype, position=cell, hp=hp, level=floor.index))

    def _seed_healing_items(self, floor: Floor) -> None:
        wanted = self.settings.healing_item_count
        while len(floor.healing_items) < wanted:
            cell = random_free_cell_excluding(
                self.rng,
                floor.free_cells,
                [
                    *floor.stairs(),
                    floor.player_pos,
                    *(e.position for e in floor.enemies),
                    *(i.position for i in floor.healing_items),
                ],
            )
            if cell is None:
                logger.warning(
                    "Floor %d: placed only %d of %d healing items", floor.index, len(floor.healing_items), wanted
                )
                break
            floor.healing_items.append(HealingItem(position=cell))
