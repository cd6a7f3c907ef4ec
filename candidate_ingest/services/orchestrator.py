from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from candidate_ingest.config.heuristics import DEFAULT_HEURISTICS, Heuristics
from candidate_ingest.config.loader import DEFAULT_IMAGE_DIRECTORY
from candidate_ingest.db.errors import NotFoundError, StoreError
from candidate_ingest.excel.header import HeaderNotFoundError, locate_header
from candidate_ingest.excel.images import extract_images, read_embedded_images
from candidate_ingest.excel.reader import WorkbookReadError, read_primary_sheet
from candidate_ingest.logging.error_log import ErrorLogBuffer, ErrorRecord
from candidate_ingest.models.ingestion import IngestionReport, IngestionRun, RowOutcomeKind
from candidate_ingest.storage.blob import remove_upload

from .fallback import apply_fallback, needs_fallback, row_text
from .field_mapper import build_draft
from .reconciler import is_blank_row, reconcile_row
from .users import PermissionDenied, UserNotFound, require_role

"""Upload orchestration.

Drives one uploaded workbook through the pipeline:

1. read the primary sheet's raw rows
2. locate the header row (failure aborts the whole upload)
3. extract embedded images into the blob sink (row -> photo path)
4. per data row: map columns, run the composite-text fallback when needed,
   reconcile against existing/staged records
5. one batch insert of all new records, then photo patches on existing ones
6. drop extracted images that ended up attached to nothing

The uploaded file is deleted on every path out of here.
"""

__all__ = [
    "UploadError",
    "UploadResponse",
    "UPLOAD_ROLES",
    "ingest_workbook",
    "handle_upload",
]

logger = logging.getLogger(__name__)

UPLOAD_ROLES = ("admin", "staff")


class UploadError(Exception):
    """No usable file was supplied."""


@dataclass(frozen=True)
class UploadResponse:
    status: int
    body: dict[str, Any]
    report: IngestionReport | None = None  # set on success


def _log_error(
    error_log: ErrorLogBuffer | None, run: IngestionRun, sheet: str, row: int, error_type: str, message: str
) -> None:
    if error_log is not None:
        error_log.append(ErrorRecord.create(file=run.source_name, sheet=sheet, row=row, error_type=error_type, message=message))


def _discard_images(sink: Any, paths: set[str]) -> None:
    for path in paths:
        try:
            sink.delete(path)
        except OSError as e:
            logger.warning("could not delete unused image %s: %s", path, e)


def _commit(run: IngestionRun, store: Any) -> None:
    if run.staged:
        store.insert_many(run.staged)
    for record_id, photo_path in run.photo_patches.items():
        try:
            store.update_fields(record_id, {"photo_path": photo_path})
        except NotFoundError as e:
            # record vanished between lookup and patch
            raise StoreError(f"photo patch failed: {e}") from e


def ingest_workbook(
    path: Path,
    *,
    created_by: str,
    store: Any,
    sink: Any,
    heuristics: Heuristics = DEFAULT_HEURISTICS,
    image_directory: str = DEFAULT_IMAGE_DIRECTORY,
    error_log: ErrorLogBuffer | None = None,
    now: datetime | None = None,
    source_name: str | None = None,
) -> IngestionReport:
    """Ingest one uploaded workbook and delete it afterwards.

    Raises:
        HeaderNotFoundError: no header row; nothing was stored
        WorkbookReadError: the file is not a readable workbook
        StoreError: the record store failed; no partial batch is reported
    """
    now = now or datetime.now(UTC)
    run = IngestionRun(source_name=source_name or path.name)
    sheet_name = "<FILE_LEVEL>"
    try:
        sheet = read_primary_sheet(path)
        sheet_name = sheet.sheet_name
        try:
            run.header = locate_header(sheet.rows, heuristics)
        except HeaderNotFoundError as e:
            _log_error(error_log, run, sheet_name, -1, "HEADER_NOT_FOUND", str(e))
            raise
        logger.debug("header row %d columns=%s", run.header.row_index, run.header.names())

        try:
            embedded = read_embedded_images(path)
        except Exception as e:
            logger.warning("could not enumerate images in %s: %s; continuing without photos", run.source_name, e)
            embedded = []
        run.images = extract_images(embedded, sink, image_directory, heuristics)

        try:
            for sheet_row in range(run.header.row_index + 1, len(sheet.rows)):
                row = sheet.rows[sheet_row]
                if is_blank_row(row):
                    continue
                draft = build_draft(row, run.header, heuristics)
                text = row_text(row)
                if needs_fallback(draft, text):
                    apply_fallback(draft, text, heuristics)
                outcome = reconcile_row(run, draft, sheet_row, store, created_by, now)
                if outcome.error:
                    _log_error(
                        error_log, run, sheet_name, sheet_row + 1, outcome.error_type or "ROW_ERROR", outcome.error
                    )
            _commit(run, store)
        except StoreError as e:
            _log_error(error_log, run, sheet_name, -1, "STORE_ERROR", str(e))
            _discard_images(sink, run.images.paths())
            raise

        _discard_images(sink, run.images.paths() - run.attached_photos())
    except WorkbookReadError as e:
        _log_error(error_log, run, sheet_name, -1, "READ_ERROR", str(e))
        raise
    finally:
        remove_upload(path)

    inserted = run.count(RowOutcomeKind.ACCEPTED)
    updated = run.count(RowOutcomeKind.UPDATED)
    report = IngestionReport(
        added=inserted + updated,
        inserted=inserted,
        updated=updated,
        skipped=run.count(RowOutcomeKind.SKIPPED),
        errors=list(run.errors),
    )
    logger.info(
        "file=%s added=%d inserted=%d updated=%d skipped=%d",
        run.source_name,
        report.added,
        report.inserted,
        report.updated,
        report.skipped,
    )
    return report


def handle_upload(
    path: Path | None,
    *,
    actor: str,
    store: Any,
    sink: Any,
    users: Any = None,
    heuristics: Heuristics = DEFAULT_HEURISTICS,
    image_directory: str = DEFAULT_IMAGE_DIRECTORY,
    error_log: ErrorLogBuffer | None = None,
    source_name: str | None = None,
) -> UploadResponse:
    """Upload entry point: ``{message, added, errors}`` with an HTTP-style status.

    400 no file / header not found, 403/404 role check, 500 read or store
    failure, 200 otherwise (even if every row was skipped).
    """
    try:
        if path is None or not path.exists():
            raise UploadError("No file uploaded")
        if users is not None:
            require_role(users, actor, UPLOAD_ROLES)
        report = ingest_workbook(
            path,
            created_by=actor,
            store=store,
            sink=sink,
            heuristics=heuristics,
            image_directory=image_directory,
            error_log=error_log,
            source_name=source_name,
        )
    except UploadError as e:
        return UploadResponse(400, {"message": str(e), "added": 0, "errors": []})
    except HeaderNotFoundError as e:
        logger.error("upload rejected: %s", e)
        return UploadResponse(400, {"message": str(e), "added": 0, "errors": [str(e)]})
    except PermissionDenied as e:
        return UploadResponse(403, {"message": f"Forbidden: {e}", "added": 0, "errors": []})
    except UserNotFound as e:
        return UploadResponse(404, {"message": str(e), "added": 0, "errors": []})
    except (WorkbookReadError, StoreError) as e:
        logger.error("upload failed: %s", e)
        return UploadResponse(500, {"message": "Error processing file", "added": 0, "errors": [str(e)]})
    finally:
        if path is not None:
            remove_upload(path)
    return UploadResponse(200, report.to_response(), report)
