from __future__ import annotations

import json

from candidate_ingest.logging.error_log import ErrorLogBuffer
from candidate_ingest.services.orchestrator import handle_upload

"""Error log JSON Lines contract: fixed keys, row=-1 for file-level errors."""

EXPECTED_KEYS = {"timestamp", "file", "sheet", "row", "error_type", "message"}


def test_row_and_file_level_records(temp_workdir, workbook_factory, store, sink):
    log = ErrorLogBuffer()
    good = workbook_factory("rows.xlsx", [["Name", "Email"], ["Ann", None]])
    handle_upload(good, actor="u", store=store, sink=sink, error_log=log, source_name="rows.xlsx")
    bad = workbook_factory("nohdr.xlsx", [["nothing here"]])
    handle_upload(bad, actor="u", store=store, sink=sink, error_log=log, source_name="nohdr.xlsx")

    path = log.flush()
    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert all(set(r) == EXPECTED_KEYS for r in records)
    row_level, file_level = records
    assert row_level["row"] == 2
    assert row_level["error_type"] == "MISSING_FIELDS"
    assert row_level["message"].startswith("Skipped: Missing email/phone for Ann")
    assert file_level["row"] == -1
    assert file_level["error_type"] == "HEADER_NOT_FOUND"
    assert file_level["file"] == "nohdr.xlsx"
