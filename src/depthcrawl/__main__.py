from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from pathlib import Path
from typing import List, Tuple

from . import __version__
from .config import Settings
from .dungeon.geometry import DOWN, LEFT, RIGHT, UP
from .errors import DepthcrawlError
from .logging_config import configure_logging
from .scheduling import ManualScheduler
from .world import World

logger = logging.getLogger(__name__)

KEY_DIRECTIONS = {"w": UP, "a": LEFT, "s": DOWN, "d": RIGHT}

_TOKEN_SPLIT = re.compile(r"[\s,]+")
Command = Tuple[str, object]


def parse_script(text: str) -> List[Command]:
    """Turn a move script like ``"ddss, u e0 rd m"`` into commands.

    A token of only ``wasd`` letters is one move per letter. Otherwise a token is
    ``u`` (use potion), ``m`` (toggle overview), ``e<N>`` (equip weapon N) or
    ``r<wasd>`` (auto-run).
    """
    commands: List[Command] = []
    for token in _TOKEN_SPLIT.split(text.strip().lower()):
        if not token:
            continue
        if all(ch in KEY_DIRECTIONS for ch in token):
            commands.extend(("move", KEY_DIRECTIONS[ch]) for ch in token)
        elif token == "u":
            commands.append(("potion", None))
        elif token == "m":
            commands.append(("overview", None))
        elif token.startswith("e") and token[1:].isdigit():
            commands.append(("equip", int(token[1:])))
        elif len(token) == 2 and token[0] == "r" and token[1] in KEY_DIRECTIONS:
            commands.append(("run", KEY_DIRECTIONS[token[1]]))
        else:
            raise ValueError(f"unknown command {token!r}")
    return commands


def run_script(world: World, scheduler: ManualScheduler, commands: List[Command]) -> None:
    for kind, arg in commands:
        if world.game_over:
            logger.info("Game over; skipping the rest of the script")
            break
        if kind == "move":
            dx, dy = arg  # type: ignore[misc]
            world.move(dx, dy)
        elif kind == "run":
            dx, dy = arg  # type: ignore[misc]
            world.auto_run(dx, dy)
            scheduler.run_until_idle()
        elif kind == "potion":
            world.use_healing_item()
        elif kind == "equip":
            world.equip_weapon(arg)  # type: ignore[arg-type]
        elif kind == "overview":
            overview = world.toggle_overview()
            if overview is not None:
                print(overview.render())


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="depthcrawl",
        description="Depthcrawl - headless dungeon runner",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed for a reproducible run")
    parser.add_argument("--config", type=Path, default=None, help="Path to a settings TOML file")
    parser.add_argument("--moves", default="", help="Command script, e.g. 'ddss u e0 rd m'")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)")

    args = parser.parse_args(argv)
    level = None
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    configure_logging(default_level=logging.WARNING, level=level)

    try:
        commands = parse_script(args.moves)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        settings = Settings.from_sources(file_path=args.config, seed=args.seed)
        scheduler = ManualScheduler()
        world = World(settings, scheduler=scheduler)
        run_script(world, scheduler, commands)
    except DepthcrawlError as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2

    snapshot = world.snapshot()
    payload = snapshot.to_dict()
    payload["messages"] = world.messages.lines()
    print(json.dumps(payload, indent=2))
    return 1 if world.game_over else 0


if __name__ == "__main__":
    sys.exit(main())
