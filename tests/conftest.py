# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from csv_upload.logging.init import reset_logging
from csv_upload.models.config_models import ColumnSpec, UploadOptions
from csv_upload.models.rules import is_email, to_integer


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("CSV_UPLOAD_CONFIG", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """columns:
  - input_name: email
    aliases: [Email, E-mail]
    required: true
    description: Contact email
    validate: email
  - input_name: full_name
    aliases: [Full Name]
    api_name: name
    description: Display name
    transform: strip
  - input_name: age
    aliases: [Age]
    description: Age in years
    transform: integer
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "upload.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_csv(temp_workdir: Path):
    """Factory writing a CSV file under data/ and returning its path."""
    def _write(name: str, text: str) -> Path:
        path = temp_workdir / "data" / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture()
def email_column() -> ColumnSpec:
    return ColumnSpec.build("email", aliases=["Email", "E-mail"], required=True, validate=is_email)


@pytest.fixture()
def people_options(email_column: ColumnSpec) -> UploadOptions:
    return UploadOptions(
        columns=(
            email_column,
            ColumnSpec.build("full_name", "name", aliases=["Full Name"]),
            ColumnSpec.build("age", aliases=["Age"], transform_and_validate=to_integer),
        )
    )
