from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, List, Optional

from .dungeon.geometry import Cell

PLAYER_START_HP = 20
PLAYER_START_NEXT_EXP = 20
HEALING_AMOUNT = 10


class ArchetypeId(str, Enum):
    GOBLIN = "goblin"
    ORC = "orc"
    TROLL = "troll"


@dataclass(frozen=True)
class WeaponTemplate:
    """What an archetype leaves behind when it dies."""

    name: str
    bonus: int
    symbol: str
    color: str


@dataclass(frozen=True)
class Archetype:
    id: ArchetypeId
    name: str
    base_hp: int
    sense_radius: float
    symbol: str
    color: str
    drop: Optional[WeaponTemplate] = None

    def hp_for_floor(self, floor_index: int, hp_per_floor: int) -> int:
        return self.base_hp + (floor_index - 1) * hp_per_floor


@dataclass(eq=False)
class HealingItem:
    position: Cell
    amount: int = HEALING_AMOUNT


@dataclass(eq=False)
class WeaponItem:
    position: Cell
    name: str
    bonus: int
    symbol: str = ")"
    color: str = "white"

    @classmethod
    def from_template(cls, template: WeaponTemplate, position: Cell) -> "WeaponItem":
        return cls(position=position, name=template.name, bonus=template.bonus,
                   symbol=template.symbol, color=template.color)


@dataclass(eq=False)
class Enemy:
    """An enemy instance on a floor.

    Identity-compared (eq=False): two enemies with equal stats on the same cell are
    still distinct actors. ``selected`` belongs to the UI; the engine only clears it.
    """

    archetype: Archetype
    position: Cell
    hp: int
    level: int = 1
    alerted: bool = False
    selected: bool = False
    max_hp: int = field(init=False)

    def __post_init__(self) -> None:
        if self.hp <= 0:
            raise ValueError("enemy hp must be positive at spawn")
        self.max_hp = self.hp

    @property
    def name(self) -> str:
        return self.archetype.name

    @property
    def sense_radius(self) -> float:
        return self.archetype.sense_radius

    @property
    def alive(self) -> bool:
        return self.hp > 0

    def alert(self) -> None:
        # Absorbing: an alerted enemy never goes dormant again.
        self.alerted = True

    def __repr__(self) -> str:
        return f"Enemy({self.name}@{self.position} hp={self.hp}/{self.max_hp} alerted={self.alerted})"


@dataclass(eq=False)
class Player:
    position: Cell
    hp: int = PLAYER_START_HP
    max_hp: int = PLAYER_START_HP
    level: int = 1
    exp: int = 0
    next_exp: int = PLAYER_START_NEXT_EXP
    potions: Deque[HealingItem] = field(default_factory=deque)
    weapons: List[WeaponItem] = field(default_factory=list)
    equipped_index: Optional[int] = None

    @property
    def equipped_weapon(self) -> Optional[WeaponItem]:
        if self.equipped_index is None:
            return None
        return self.weapons[self.equipped_index]

    @property
    def weapon_bonus(self) -> int:
        weapon = self.equipped_weapon
        return weapon.bonus if weapon is not None else 0

    @property
    def alive(self) -> bool:
        return self.hp > 0
