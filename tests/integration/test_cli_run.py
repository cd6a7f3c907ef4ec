from __future__ import annotations

import json
from pathlib import Path

import pytest

import candidate_ingest.logging.init as log_init
from candidate_ingest.cli import main


@pytest.fixture(autouse=True)
def fresh_logging(monkeypatch):
    log_init.reset_logging()
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    yield
    log_init.reset_logging()


def test_run_success(temp_workdir: Path, write_config: Path, workbook_factory, png_bytes, capsys):
    workbook_factory(
        "intake.xlsx",
        [["Intake"], ["Name", "Email", "Phone"], ["Ann", "ann@x.com", "555"], ["Bo", "bo@x.com", None]],
        images=[("D3", png_bytes())],
    )
    code = main(["input/intake.xlsx", "--created-by", "staff-1"])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY files=1 success=1 failed=0 added=2 updated=0 skipped=0" in out
    assert "mode=memory" in out
    photos = list((temp_workdir / "blobs" / "photos").iterdir())
    assert len(photos) == 1
    assert list((temp_workdir / "uploads").iterdir()) == []
    assert list((temp_workdir / "logs").iterdir()) == []


def test_run_partial_failure(temp_workdir: Path, write_config: Path, workbook_factory, capsys):
    workbook_factory("good.xlsx", [["Name", "Email"], ["Ann", "ann@x.com"], ["Cy", None]])
    workbook_factory("bad.xlsx", [["just"], ["some"], ["notes"]])
    code = main(["input/good.xlsx", "input/bad.xlsx", "--created-by", "staff-1"])
    out = capsys.readouterr().out
    assert code == 2
    assert "SUMMARY files=2 success=1 failed=1 added=1 updated=0 skipped=1" in out
    assert "WARN file=bad.xlsx status=400" in out

    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    records = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert [(r["file"], r["error_type"]) for r in records] == [
        ("good.xlsx", "MISSING_FIELDS"),
        ("bad.xlsx", "HEADER_NOT_FOUND"),
    ]


def test_missing_input_file_counts_as_failure(temp_workdir: Path, write_config: Path, capsys):
    code = main(["input/absent.xlsx", "--created-by", "staff-1"])
    out = capsys.readouterr().out
    assert code == 2
    assert "No file uploaded" in out


def test_inspect_data(temp_workdir: Path, write_config: Path, workbook_factory, capsys):
    workbook_factory("peek.xlsx", [["Title"], ["Name", "Email"], ["Ann", "ann@x.com"]])
    code = main(["input/peek.xlsx", "--inspect-data"])
    out = capsys.readouterr().out
    assert code == 0
    assert "FILE: peek.xlsx" in out
    assert "header_row=1 cols=['name', 'email']" in out
    assert "Ann" in out
