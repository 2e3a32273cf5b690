from __future__ import annotations

from pathlib import Path

import pytest

from csv_upload.config.loader import ConfigError, load_config


@pytest.mark.parametrize(
    "extra",
    [
        "extra_field: not_allowed\n",
        "max_rows: 0\n",
        "max_rows: many\n",
        "alias_collision: random\n",
    ],
)
def test_top_level_schema_violations(write_config: Path, extra: str):
    write_config.write_text(extra + write_config.read_text(encoding="utf-8"), encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_column_missing_description(write_config: Path):
    write_config.write_text("columns:\n  - input_name: email\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_column_unknown_key(write_config: Path):
    write_config.write_text(
        "columns:\n  - input_name: email\n    description: x\n    pattern: '.*'\n", encoding="utf-8"
    )
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_column_validate_and_transform_together(write_config: Path):
    write_config.write_text(
        "columns:\n  - input_name: email\n    description: x\n    validate: email\n    transform: lower\n",
        encoding="utf-8",
    )
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_empty_column_list(write_config: Path):
    write_config.write_text("columns: []\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_missing_schema_file(write_config: Path, monkeypatch, tmp_path: Path):
    monkeypatch.setattr("csv_upload.config.loader.SCHEMA_PATH", tmp_path / "missing.json")
    with pytest.raises(ConfigError, match="config schema not found"):
        load_config(write_config)


def test_invalid_schema_file(write_config: Path, monkeypatch, tmp_path: Path):
    broken = tmp_path / "schema.json"
    broken.write_text("{not json", encoding="utf-8")
    monkeypatch.setattr("csv_upload.config.loader.SCHEMA_PATH", broken)
    with pytest.raises(ConfigError, match="invalid schema file"):
        load_config(write_config)
