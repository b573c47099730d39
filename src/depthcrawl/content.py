from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from importlib.resources import files as resource_files
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from jsonschema import Draft202012Validator

from .entities import Archetype, ArchetypeId, WeaponTemplate
from .errors import ContentError

logger = logging.getLogger(__name__)

SCHEMA_NAME = "archetypes.schema.json"


@dataclass(frozen=True)
class Content:
    """Static game content: the closed set of enemy archetypes and taunt lines."""

    archetypes: Tuple[Archetype, ...]
    taunts: Tuple[str, ...]

    def archetype(self, archetype_id: ArchetypeId) -> Archetype:
        for archetype in self.archetypes:
            if archetype.id == archetype_id:
                return archetype
        raise KeyError(f"Unknown archetype: {archetype_id}")


@lru_cache(maxsize=1)
def _content_validator() -> Draft202012Validator:
    """Build the validator for the bundled archetype schema.

    Cached since the schema ships with the package and is static.
    """
    text = resource_files("depthcrawl.data").joinpath("schemas").joinpath(SCHEMA_NAME).read_text(encoding="utf-8")
    schema = json.loads(text)
    Draft202012Validator.check_schema(schema)
    logger.debug("Loaded content schema %s", schema.get("$id", SCHEMA_NAME))
    return Draft202012Validator(schema)


def validate_content(raw: Any) -> None:
    """Validate a decoded content document against the archetype schema.

    Raises:
        ContentError listing every violation with its document path.
    """
    errors = sorted(_content_validator().iter_errors(raw), key=lambda e: [str(p) for p in e.path])
    if not errors:
        return
    lines = []
    for err in errors:
        where = "/".join(str(p) for p in err.path) or "<root>"
        logger.error("Content schema validation error at %s: %s", where, err.message)
        lines.append(f" - at {where}: {err.message}")
    raise ContentError("archetype content failed validation:\n" + "\n".join(lines))


def _drop(raw: Optional[Mapping[str, Any]]) -> Optional[WeaponTemplate]:
    if raw is None:
        return None
    return WeaponTemplate(
        name=raw["name"],
        bonus=int(raw["bonus"]),
        symbol=raw.get("symbol", ")"),
        color=raw.get("color", "white"),
    )


def parse_content(raw: Any) -> Content:
    """Validate a decoded content document and build the Content record.

    Archetypes come back in ArchetypeId order whatever the document order.
    """
    validate_content(raw)
    entries = raw["archetypes"]
    archetypes = []
    for archetype_id in ArchetypeId:
        entry = entries[archetype_id.value]
        archetypes.append(
            Archetype(
                id=archetype_id,
                name=entry.get("name", archetype_id.value.title()),
                base_hp=int(entry["base_hp"]),
                sense_radius=float(entry["sense_radius"]),
                symbol=entry.get("symbol", archetype_id.value[0]),
                color=entry.get("color", "white"),
                drop=_drop(entry.get("drop")),
            )
        )
    taunts = tuple(raw.get("taunts") or ())
    return Content(archetypes=tuple(archetypes), taunts=taunts)


def load_content(path: Optional[str] = None) -> Content:
    """Load archetype content from YAML.

    If path is None, loads the embedded default resource at
    depthcrawl/data/archetypes.yaml.
    """
    if path is None:
        data = resource_files("depthcrawl.data").joinpath("archetypes.yaml").read_text(encoding="utf-8")
        logger.debug("Loaded embedded archetype content resource")
    else:
        with open(path, "r", encoding="utf-8") as f:
            data = f.read()
        logger.debug("Loaded archetype content from path: %s", path)

    try:
        raw: Dict[str, Any] = yaml.safe_load(data) or {}
    except yaml.YAMLError as exc:
        raise ContentError(f"archetype content is not valid YAML: {exc}") from exc
    content = parse_content(raw)
    logger.info("Archetypes: %s | taunts=%d", [a.name for a in content.archetypes], len(content.taunts))
    return content
