from __future__ import annotations

import os
from pathlib import Path

import pytest

from csv_upload.cli.__main__ import EXIT_BLOCKED, EXIT_FATAL, EXIT_SUCCESS, _load_transport
from csv_upload.cli.__main__ import main as cli_main


def test_cli_valid_file(write_config, write_csv, capsys):
    path = write_csv("people.csv", "Email,Full Name,Age\na@example.com, Ada ,36\n")
    code = cli_main([str(path)])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS
    assert "SUMMARY file=people.csv rows=1 valid=1 invalid=0 duplicates=0 errors=0 can_upload=true" in out


def test_cli_blocked_file_writes_error_log(write_config, write_csv, temp_workdir: Path, capsys):
    path = write_csv("people.csv", "Email\nbad\n")
    code = cli_main([str(path)])
    out = capsys.readouterr().out
    assert code == EXIT_BLOCKED
    assert "ERROR Row 1: invalid value 'bad' for column 'email'" in out
    assert "can_upload=false" in out
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    assert "VALIDATION_FAILED" in logs[0].read_text(encoding="utf-8")


def test_cli_no_valid_rows(write_config, write_csv, capsys):
    path = write_csv("people.csv", "Email,Age\na@example.com,old\n")
    code = cli_main([str(path)])
    out = capsys.readouterr().out
    assert code == EXIT_BLOCKED
    assert "ERROR Please upload at least one valid row." in out


def test_cli_requires_exactly_one_csv(write_config, write_csv, temp_workdir: Path, capsys):
    assert cli_main([]) == EXIT_FATAL
    assert "ERROR Please upload a single CSV file" in capsys.readouterr().out

    a = write_csv("a.csv", "Email\na@example.com\n")
    b = write_csv("b.csv", "Email\nb@example.com\n")
    assert cli_main([str(a), str(b)]) == EXIT_FATAL

    txt = temp_workdir / "data" / "notes.txt"
    txt.write_text("Email\n", encoding="utf-8")
    assert cli_main([str(txt)]) == EXIT_FATAL


def test_cli_parse_error_is_fatal(write_config, write_csv, capsys):
    path = write_csv("broken.csv", "Email\na@example.com,extra\n")
    code = cli_main([str(path)])
    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "ERROR malformed CSV" in out
    assert "SUMMARY" not in out


def test_cli_missing_config(temp_workdir: Path, write_csv, capsys):
    path = write_csv("people.csv", "Email\na@example.com\n")
    code = cli_main([str(path)])
    assert code == EXIT_FATAL
    assert "ERROR config: config file not found" in capsys.readouterr().out


def test_cli_config_from_environment(write_config, write_csv, temp_workdir: Path, monkeypatch, capsys):
    alt = temp_workdir / "alt.yml"
    alt.write_text("columns:\n  - input_name: code\n    description: Code\n    required: true\n", encoding="utf-8")
    monkeypatch.setenv("CSV_UPLOAD_CONFIG", str(alt))
    path = write_csv("codes.csv", "code\nA1\n")
    assert cli_main([str(path)]) == EXIT_SUCCESS
    assert "can_upload=true" in capsys.readouterr().out


def test_cli_config_from_dotenv(write_config, write_csv, temp_workdir: Path, capsys):
    alt = temp_workdir / "alt.yml"
    alt.write_text("columns:\n  - input_name: code\n    description: Code\n", encoding="utf-8")
    (temp_workdir / ".env").write_text(f"CSV_UPLOAD_CONFIG={alt}\n", encoding="utf-8")
    path = write_csv("codes.csv", "code\nA1\n")
    try:
        assert cli_main([str(path)]) == EXIT_SUCCESS
    finally:
        os.environ.pop("CSV_UPLOAD_CONFIG", None)
    assert "rows=1 valid=1" in capsys.readouterr().out


def test_cli_max_rows_and_dedupe_overrides(write_config, write_csv, capsys):
    path = write_csv(
        "people.csv", "Email\na@example.com\na@example.com\nb@example.com\nc@example.com\n"
    )
    code = cli_main([str(path), "--max-rows", "3", "--dedupe-on", "email"])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS
    assert "INFO Only the first 3 rows were read" in out
    assert "rows=3 valid=2 invalid=0 duplicates=1" in out


def test_cli_rejects_non_positive_max_rows(write_config, write_csv):
    path = write_csv("people.csv", "Email\na@example.com\n")
    with pytest.raises(SystemExit):
        cli_main([str(path), "--max-rows", "0"])


def test_cli_bad_dedupe_override(write_config, write_csv, capsys):
    path = write_csv("people.csv", "Email\na@example.com\n")
    assert cli_main([str(path), "--dedupe-on", "nickname"]) == EXIT_FATAL
    assert "ERROR config: invalid override" in capsys.readouterr().out


def test_cli_error_overflow(write_config, write_csv, capsys):
    rows = "".join(f"u{i}@example.com,x{i}\n" for i in range(11))
    path = write_csv("people.csv", "Email,Age\n" + rows + "ok@example.com,20\n")
    code = cli_main([str(path)])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS
    assert out.count("is not an integer") == 9
    assert "ERROR ...and 2 more rows with errors" in out


def test_cli_debug_mode(write_config, write_csv, capsys):
    path = write_csv("people.csv", "Email\na@example.com\n")
    cli_main([str(path), "--debug"])
    assert "DEBUG debug mode enabled" in capsys.readouterr().out


def test_cli_bad_transport_target(write_config, write_csv, capsys):
    path = write_csv("people.csv", "Email\na@example.com\n")
    assert cli_main([str(path), "--transport", "no_colon_here"]) == EXIT_FATAL
    assert "ERROR transport: transport must look like module:function" in capsys.readouterr().out


def test_load_transport_resolves_callable():
    fn = _load_transport("json:dumps")
    assert fn({"a": 1}) == '{"a": 1}'


def test_load_transport_rejects_non_callable():
    with pytest.raises(ValueError, match="not callable"):
        _load_transport("json:__name__")
