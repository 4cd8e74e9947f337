from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_DUPLICATE_PHRASES,
    DEFAULT_PACE_EVERY,
    DEFAULT_PACE_SECONDS,
    DatabaseConfig,
    EngineSettings,
    ImportConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config (config/import.yml by default)
- Validate it against config_schema.json (unknown keys are rejected)
- Apply defaults (pacing, duplicate phrases, importer role)
"""

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "ConfigError",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/import.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: schema file missing or broken, or the data violates the schema
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    engine = EngineSettings(
        pace_every=data.get("pace_every", DEFAULT_PACE_EVERY),
        pace_seconds=float(data.get("pace_seconds", DEFAULT_PACE_SECONDS)),
        duplicate_phrases=tuple(data.get("duplicate_phrases") or DEFAULT_DUPLICATE_PHRASES),
    )
    return ImportConfig(
        organization_id=data["organization_id"],
        organization_name=data.get("organization_name", ""),
        invited_by=data.get("invited_by"),
        importer_role=data.get("importer_role", "admin"),
        engine=engine,
        database=db,
    )
