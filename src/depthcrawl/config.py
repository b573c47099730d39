from __future__ import annotations

import dataclasses
import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)


def _as_optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in {"", "none", "random"}:
        return None
    return int(value)


@dataclass
class Settings:
    """Engine settings.

    Built from (lowest to highest precedence): defaults, a TOML file, environment
    variables with the ``DC_`` prefix::

        settings = Settings.from_sources()
        world = World(settings)

    The TOML file is taken from ``DC_SETTINGS_FILE`` or ``configs/settings.toml``
    when present. Keys may be top-level or grouped under ``[dungeon]``,
    ``[spawning]`` and ``[engine]`` tables.
    """

    # Floor dimensions (cells)
    level_width: int = 120
    level_height: int = 40

    # Visibility radius around the player
    fov_radius: int = 5

    # Seconds between auto-run steps
    auto_run_delay: float = 0.15

    # Per-floor seeding
    enemy_count: int = 3
    healing_item_count: int = 3
    enemy_hp_per_floor: int = 2

    # Master seed; None draws a fresh one per World
    seed: Optional[int] = None

    # Optional path to an archetype YAML replacing the embedded one
    content_path: Optional[str] = None

    message_log_capacity: int = 200

    def validate(self) -> None:
        """Reject values the engine cannot run with."""
        if self.level_width < 3 or self.level_height < 3:
            raise ConfigError(f"level must be at least 3x3, got {self.level_width}x{self.level_height}")
        if self.fov_radius < 0:
            raise ConfigError("fov_radius must be >= 0")
        if self.auto_run_delay < 0:
            raise ConfigError("auto_run_delay must be >= 0")
        if self.enemy_count < 0 or self.healing_item_count < 0:
            raise ConfigError("spawn counts must be >= 0")
        if self.enemy_hp_per_floor < 0:
            raise ConfigError("enemy_hp_per_floor must be >= 0")
        if self.message_log_capacity <= 0:
            raise ConfigError("message_log_capacity must be positive")

    def as_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    # ------------------------ Loading & Overrides ------------------------
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Settings":
        allowed = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - allowed)
        if unknown:
            logger.warning("Ignoring unknown settings keys: %s", unknown)
        filtered = {k: v for k, v in data.items() if k in allowed}
        obj = cls(**filtered)
        obj.validate()
        return obj

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        env = os.environ if env is None else env
        mapping = {
            "DC_LEVEL_WIDTH": ("level_width", int),
            "DC_LEVEL_HEIGHT": ("level_height", int),
            "DC_FOV_RADIUS": ("fov_radius", int),
            "DC_AUTO_RUN_DELAY": ("auto_run_delay", float),
            "DC_ENEMY_COUNT": ("enemy_count", int),
            "DC_HEALING_ITEM_COUNT": ("healing_item_count", int),
            "DC_ENEMY_HP_PER_FLOOR": ("enemy_hp_per_floor", int),
            "DC_SEED": ("seed", _as_optional_int),
            "DC_CONTENT_PATH": ("content_path", str),
            "DC_MESSAGE_LOG_CAPACITY": ("message_log_capacity", int),
        }
        out: Dict[str, Any] = {}
        for env_key, (field_name, caster) in mapping.items():
            if env_key in env and env[env_key] != "":
                try:
                    out[field_name] = caster(env[env_key])
                except ValueError as exc:
                    raise ConfigError(f"Invalid env for {env_key}={env[env_key]!r}: {exc}") from exc
        return out

    @classmethod
    def from_toml_file(cls, path: Path) -> Dict[str, Any]:
        if not path.exists():
            logger.debug("Settings file not found: %s", path)
            return {}
        try:
            with path.open("rb") as f:
                doc = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Failed to read settings TOML {path}: {exc}") from exc
        # Flatten either top-level or under [dungeon]/[spawning]/[engine]
        flat: Dict[str, Any] = {}
        for section in ("dungeon", "spawning", "engine"):
            if isinstance(doc.get(section), dict):
                flat.update(doc[section])
        for k, v in doc.items():
            if isinstance(v, dict):
                continue
            flat[k] = v
        return flat

    @classmethod
    def discover_config_path(cls, env: Optional[Mapping[str, str]] = None) -> Optional[Path]:
        env = os.environ if env is None else env
        env_path = env.get("DC_SETTINGS_FILE")
        if env_path:
            return Path(env_path).expanduser().resolve()
        default_path = Path.cwd() / "configs" / "settings.toml"
        if default_path.exists():
            return default_path
        return None

    @classmethod
    def from_sources(
        cls,
        *,
        env: Optional[Mapping[str, str]] = None,
        file_path: Optional[Path | str] = None,
        **overrides: Any,
    ) -> "Settings":
        # Order of precedence (lowest to highest): defaults < file < env < explicit overrides
        data: Dict[str, Any] = {}
        if file_path is not None:
            chosen_path: Optional[Path] = Path(file_path).expanduser().resolve()
        else:
            chosen_path = cls.discover_config_path(env)
        if chosen_path is not None:
            data.update(cls.from_toml_file(chosen_path))
            logger.debug("Loaded settings file %s", chosen_path)
        data.update(cls.from_env(env))
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(data)


__all__ = ["Settings"]
