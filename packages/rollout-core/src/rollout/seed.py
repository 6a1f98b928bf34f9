"""Seed catalog loading — YAML flags/brands validated with JSON Schema.

Timestamps (``valid_from`` / ``valid_until``) must be quoted ISO-8601
strings in the YAML source.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import jsonschema
import yaml

from rollout.control.flags import FeatureFlag
from rollout.models import BrandRecord

PACKAGE_DIR = Path(__file__).parent
SCHEMA_PATH = PACKAGE_DIR / "schemas" / "seed.schema.json"
DEFAULT_SEED_PATH = PACKAGE_DIR / "seeds" / "default.yaml"


class SeedError(Exception):
    """Raised when a seed catalog is missing or invalid."""


@dataclass
class SeedCatalog:
    flags: list[FeatureFlag] = field(default_factory=list)
    brands: list[BrandRecord] = field(default_factory=list)


def _load_schema() -> dict:
    with open(SCHEMA_PATH) as f:
        return json.load(f)


def _load_yaml(path: Path) -> dict:
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_seed(data: dict) -> SeedCatalog:
    """Validate raw catalog data and build records from it."""
    try:
        jsonschema.validate(instance=data, schema=_load_schema())
    except jsonschema.ValidationError as e:
        raise SeedError(f"{e.json_path}: {e.message}") from e

    flags = [FeatureFlag.from_dict(item) for item in data.get("flags", [])]
    brands = [BrandRecord.from_dict(item) for item in data["brands"]]

    for kind, ids in (("flag", [f.id for f in flags]), ("brand", [b.id for b in brands])):
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise SeedError(f"Duplicate {kind} ids: {', '.join(duplicates)}")

    defaults = [b.id for b in brands if b.is_default]
    if len(defaults) != 1:
        raise SeedError(f"Seed must declare exactly one default brand, found {len(defaults)}")

    return SeedCatalog(flags=flags, brands=brands)


def load_seed(path: str | Path | None = None) -> SeedCatalog:
    """Load a seed catalog from *path*, or the bundled default catalog."""
    seed_path = Path(path) if path else DEFAULT_SEED_PATH
    if not seed_path.exists():
        raise SeedError(f"Seed file {seed_path} not found")
    return parse_seed(_load_yaml(seed_path))
