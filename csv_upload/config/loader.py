from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import AliasCollisionPolicy, ColumnSpec, ColumnSpecError, UploadOptions
from ..models.rules import resolve_rule

"""Config loader for the CSV upload tool.

Responsibilities:
- Load the YAML config (default config/upload.yml)
- Validate it against config_schema.json (additionalProperties: false)
- Resolve named column rules and build UploadOptions
- Apply CLI overrides (max_rows / dedupe_on)
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "build_options",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/upload.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If any of the following occurs:
            - The schema file does not exist.
            - The schema file is not valid JSON.
            - The config data fails schema validation (missing required keys,
              wrong types, unknown keys, validate+transform on one column).
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


def _build_column(raw: dict[str, Any]) -> ColumnSpec:
    rule = resolve_rule(raw.get("validate"), raw.get("transform"))
    return ColumnSpec(
        input_name=raw["input_name"],
        api_name=raw.get("api_name") or raw["input_name"],
        description=raw.get("description", ""),
        aliases=frozenset(raw.get("aliases") or ()),
        required=bool(raw.get("required", False)),
        rule=rule,
    )


def build_options(data: dict[str, Any]) -> UploadOptions:
    """Build UploadOptions from an already parsed config mapping."""
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    _validate_config_schema(data)
    try:
        columns = tuple(_build_column(c) for c in data["columns"])
        return UploadOptions(
            columns=columns,
            max_rows=data.get("max_rows"),
            dedupe_on=data.get("dedupe_on"),
            alias_collision=AliasCollisionPolicy(data.get("alias_collision", "last_wins")),
        )
    except ColumnSpecError as e:
        raise ConfigError(f"invalid column config: {e}") from e


def load_config(
    path: Path,
    *,
    max_rows: int | None = None,
    dedupe_on: str | None = None,
) -> UploadOptions:
    """Load and validate the YAML config, then apply overrides."""
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    options = build_options(data)

    overrides: dict[str, Any] = {}
    if max_rows is not None:
        overrides["max_rows"] = max_rows
    if dedupe_on is not None:
        overrides["dedupe_on"] = dedupe_on
    if overrides:
        try:
            options = replace(options, **overrides)
        except ColumnSpecError as e:
            raise ConfigError(f"invalid override: {e}") from e
    return options
