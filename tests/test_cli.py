from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from statement_ingest.cli import app

from tests.helpers.db import bootstrap_sqlite_db, count_transactions

runner = CliRunner()


@pytest.fixture(autouse=True)
def _no_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # The root callback loads .env from the working directory.
    monkeypatch.chdir(tmp_path)


def test_detect_reports_bank_and_encoding(data_dir: Path):
    result = runner.invoke(app, ["detect", str(data_dir / "credit_agricole_export.csv")])
    assert result.exit_code == 0, result.output
    assert "credit_agricole" in result.stdout
    assert "iso-8859-1" in result.stdout


def test_detect_unsupported_exits_nonzero(tmp_path: Path):
    path = tmp_path / "other.csv"
    path.write_text("col_a;col_b\n1;2\n", encoding="utf-8")
    result = runner.invoke(app, ["detect", str(path)])
    assert result.exit_code == 1


def test_parse_json(data_dir: Path):
    result = runner.invoke(app, ["parse", str(data_dir / "cmb_export.csv"), "--json"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["success"] is True
    assert payload["bankId"] == "credit_mutuel_bretagne"
    assert len(payload["transactions"]) == 5
    assert payload["skippedRecords"] == 1


def test_parse_table_output(data_dir: Path):
    result = runner.invoke(app, ["parse", str(data_dir / "revolut_export.csv")])
    assert result.exit_code == 0, result.output
    assert "Revolut" in result.stdout
    assert "-12.40" in result.stdout


def test_parse_missing_file_exits_nonzero(tmp_path: Path):
    result = runner.invoke(app, ["parse", str(tmp_path / "missing.csv")])
    assert result.exit_code == 1


def test_pdf_suffix_selects_document_kind(tmp_path: Path):
    path = tmp_path / "statement.pdf"
    path.write_bytes(b"not really a pdf")
    result = runner.invoke(app, ["parse", str(path), "--json"])
    assert result.exit_code == 1
    assert '"success": false' in result.stdout


def test_import_twice(tmp_path: Path, data_dir: Path):
    url = bootstrap_sqlite_db(tmp_path / "cli.sqlite")
    args = [
        "import",
        str(data_dir / "revolut_export.csv"),
        "--owner",
        "u1",
        "--database-url",
        url,
    ]
    first = runner.invoke(app, args)
    second = runner.invoke(app, args)
    assert first.exit_code == 0, first.output
    assert "inserted=3" in first.stdout
    assert "inserted=0" in second.stdout and "duplicates=3" in second.stdout
    assert count_transactions(url) == 3


def test_import_without_database_url_fails(data_dir: Path):
    result = runner.invoke(
        app, ["import", str(data_dir / "revolut_export.csv"), "--owner", "u1"]
    )
    assert result.exit_code == 1


def test_verbose_flag_raises_package_log_level(data_dir: Path):
    result = runner.invoke(app, ["-vv", "detect", str(data_dir / "revolut_export.csv")])
    assert result.exit_code == 0, result.output
    assert logging.getLogger("statement_ingest").level == logging.DEBUG
