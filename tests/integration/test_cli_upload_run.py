from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from csv_upload.cli.__main__ import main as cli_main

"""End-to-end CLI runs with a transport loaded from module:function.

The transport module is written into the temp workdir and put on sys.path so
the run exercises the same import path a user's transport would take.
"""

REPO_CONFIG = Path(__file__).resolve().parents[2] / "config" / "upload.yml"

TRANSPORT_SOURCE = '''
import json
from pathlib import Path


def upload(request):
    for step in (0.5, 1.0):
        request.on_progress(step)
    Path("uploaded.json").write_text(
        json.dumps({"file": request.file_name, "data": request.data}), encoding="utf-8"
    )


async def upload_async(request):
    upload(request)


def failing(request):
    raise ConnectionError("upload endpoint returned 503")
'''


@pytest.fixture
def transport_module(temp_workdir: Path, monkeypatch, request) -> str:
    # Unique module name per test so importlib never serves a cached module
    name = f"fake_transport_{request.node.name.replace('[', '_').replace(']', '_').replace('-', '_')}"
    (temp_workdir / f"{name}.py").write_text(TRANSPORT_SOURCE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(temp_workdir))
    return name


@pytest.fixture
def repo_config(temp_workdir: Path) -> Path:
    target = temp_workdir / "config" / "upload.yml"
    shutil.copy(REPO_CONFIG, target)
    return target


PEOPLE_CSV = (
    "Email Address,Name,Age,Opt In,Nickname\n"
    "ada@example.com,  Ada Lovelace ,36,yes,countess\n"
    "grace@example.com,Grace Hopper,,no,amazing grace\n"
    "ada@example.com,Ada again,37,true,dup\n"
    "alan@example.com,Alan Turing,forty,y,\n"
)


@pytest.mark.parametrize("function", ["upload", "upload_async"])
def test_run_uploads_cleaned_rows(repo_config, write_csv, transport_module, temp_workdir: Path, capsys, function):
    path = write_csv("people.csv", PEOPLE_CSV)
    code = cli_main([str(path), "--transport", f"{transport_module}:{function}"])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY file=people.csv rows=4 valid=2 invalid=1 duplicates=1 errors=1 can_upload=true" in out
    assert "INFO uploaded 2 rows from people.csv" in out

    uploaded = json.loads((temp_workdir / "uploaded.json").read_text(encoding="utf-8"))
    assert uploaded["file"] == "people.csv"
    assert uploaded["data"] == [
        {"email": "ada@example.com", "name": "Ada Lovelace", "age": 36, "subscribed": True},
        {"email": "grace@example.com", "name": "Grace Hopper", "age": None, "subscribed": False},
    ]


def test_run_upload_failure(repo_config, write_csv, transport_module, capsys):
    path = write_csv("people.csv", PEOPLE_CSV)
    code = cli_main([str(path), "--transport", f"{transport_module}:failing"])
    out = capsys.readouterr().out
    assert code == 2
    assert "ERROR upload endpoint returned 503" in out
    assert "can_upload=true" in out


def test_run_blocked_never_calls_transport(repo_config, write_csv, transport_module, temp_workdir: Path, capsys):
    path = write_csv("people.csv", "Email,Name\nnot-an-email,Ada\n")
    code = cli_main([str(path), "--transport", f"{transport_module}:upload"])
    out = capsys.readouterr().out
    assert code == 2
    assert not (temp_workdir / "uploaded.json").exists()
    assert "ERROR Row 1: invalid value 'not-an-email' for column 'email'" in out


def test_run_missing_transport_module(repo_config, write_csv, capsys):
    path = write_csv("people.csv", PEOPLE_CSV)
    assert cli_main([str(path), "--transport", "no_such_module_xyz:upload"]) == 1
    assert "ERROR transport:" in capsys.readouterr().out
