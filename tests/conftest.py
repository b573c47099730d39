import os
import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from depthcrawl.config import Settings  # noqa: E402
from depthcrawl.content import load_content  # noqa: E402
from depthcrawl.dungeon.generator import AsciiMapGenerator  # noqa: E402
from depthcrawl.entities import ArchetypeId, Enemy  # noqa: E402
from depthcrawl.scheduling import ManualScheduler  # noqa: E402
from depthcrawl.world import World  # noqa: E402

# Floor cells span x 1..8, y 1..5.
OPEN_ROOM = [
    "##########",
    "#........#",
    "#........#",
    "#........#",
    "#........#",
    "#........#",
    "##########",
]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # No stray DC_* variables or configs/settings.toml from the developer's shell.
    for key in list(os.environ):
        if key.startswith("DC_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(scope="session")
def content():
    return load_content()


@pytest.fixture
def make_world(content):
    """Build a World on fixed ASCII layouts with an empty population.

    The first layout is floor 1; later floors reuse the last layout given.
    """

    def _make(*layouts, seed: int = 7, **overrides) -> World:
        params = {"seed": seed, "enemy_count": 0, "healing_item_count": 0}
        params.update(overrides)
        settings = Settings(**params)
        generator = AsciiMapGenerator(*(layouts or (OPEN_ROOM,)))
        return World(settings, generator=generator, content=content, scheduler=ManualScheduler())

    return _make


@pytest.fixture
def place_player():
    def _place(world: World, cell) -> None:
        world.player.position = cell
        world.record_player_position()

    return _place


@pytest.fixture
def spawn_enemy():
    def _spawn(world: World, cell, archetype: str = "goblin", hp=None, alerted: bool = False) -> Enemy:
        arch = world.content.archetype(ArchetypeId(archetype))
        enemy = Enemy(archetype=arch, position=cell, hp=hp if hp is not None else arch.base_hp, alerted=alerted)
        world.current_floor.enemies.append(enemy)
        return enemy

    return _spawn
