from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from candidate_ingest.config.loader import DEFAULT_CONFIG_PATH, ConfigError, IngestConfig, load_config
from candidate_ingest.db.errors import StoreError
from candidate_ingest.db.memory import InMemoryCandidateStore
from candidate_ingest.db.postgres import PostgresCandidateStore, PostgresUserStore
from candidate_ingest.excel.header import HeaderNotFoundError, locate_header
from candidate_ingest.excel.reader import WorkbookReadError, read_primary_sheet
from candidate_ingest.logging.error_log import ErrorLogBuffer
from candidate_ingest.logging.init import log_summary, set_debug, setup_logging
from candidate_ingest.models.processing_result import FileStat, ProcessingResult
from candidate_ingest.services.orchestrator import UPLOAD_ROLES, handle_upload
from candidate_ingest.services.progress import ProgressTracker
from candidate_ingest.services.summary import render_summary_line
from candidate_ingest.services.users import PermissionDenied, UserNotFound, require_role
from candidate_ingest.storage.blob import LocalBlobSink, stage_upload

"""CLI entrypoint.

Flow:
- Load .env and config
- Connect to PostgreSQL (or in-memory stores with DISABLE_DB_CONNECT=1)
- Check the acting user's role (live mode)
- Stage, ingest and commit each workbook in its own transaction
- Log the SUMMARY line and flush the error log
"""

log = logging.getLogger(__name__)

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


@contextmanager
def _db_connection(cfg: IngestConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper; tested via integration)
    """Provide a psycopg2 cursor.

    Resolution order: DATABASE_URL / PGDSN, then PGHOST/PGPORT/PGUSER/
    PGPASSWORD/PGDATABASE, then the config ``database`` section.
    """
    import psycopg2

    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if not dsn:
        host = os.getenv("PGHOST", db_cfg.host or "localhost")
        port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
        user = os.getenv("PGUSER", db_cfg.user or "postgres")
        password = os.getenv("PGPASSWORD", db_cfg.password or "")
        database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
        dsn = f"host={host} port={port} user={user} dbname={database}"
        if password:
            dsn += f" password={password}"

    conn = psycopg2.connect(dsn)
    conn.autocommit = False  # one transaction per workbook
    cur = conn.cursor()
    try:
        yield cur
    finally:
        cur.close()
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Candidate workbook ingestion")
    p.add_argument("files", nargs="*", type=Path, help="Workbook(s) to ingest")
    p.add_argument("--created-by", dest="created_by", help="uid of the operator performing the upload")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to ingest.yml")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print detected header & first rows then exit")
    return p.parse_args(argv)


def _inspect_data(files: list[Path], cfg: IngestConfig) -> int:
    for f in files:
        print(f"FILE: {f.name}")
        try:
            sheet = read_primary_sheet(f)
            header = locate_header(sheet.rows, cfg.heuristics)
        except (WorkbookReadError, HeaderNotFoundError) as e:
            print(f"  error: {e}")
            continue
        print(f"  SHEET: {sheet.sheet_name} header_row={header.row_index} cols={header.names()}")
        sample = sheet.rows[header.row_index + 1 : header.row_index + 4]
        # datetime cells are not JSON friendly; isoformat them for display
        safe_rows = [[v.isoformat() if hasattr(v, "isoformat") else v for v in r] for r in sample]
        print("    sample_rows=", safe_rows)
    return EXIT_SUCCESS_ALL


def process_files(
    files: list[Path],
    cfg: IngestConfig,
    *,
    created_by: str,
    store: Any,
    sink: Any,
    error_log: ErrorLogBuffer,
    cursor: Any = None,
) -> ProcessingResult:
    """Ingest each workbook; with a cursor, commit or roll back per file."""
    start_time = datetime.now(UTC)
    stats: list[FileStat] = []
    success = failed = 0
    added = updated = skipped = 0

    with ProgressTracker(len(files)) as progress:
        for source in files:
            progress.start_file(source)
            file_start = datetime.now(UTC)
            staged = stage_upload(source, Path(cfg.upload_directory)) if source.is_file() else None
            response = handle_upload(
                staged,
                actor=created_by,
                store=store,
                sink=sink,
                heuristics=cfg.heuristics,
                image_directory=cfg.image_directory,
                error_log=error_log,
                source_name=source.name,
            )
            ok = response.status == 200
            if not ok:
                log.warning(f"file={source.name} status={response.status} {response.body.get('message')}")
            if cursor is not None:
                if ok:
                    cursor.connection.commit()
                else:
                    cursor.connection.rollback()

            report = response.report
            file_added = report.added if report else 0
            file_updated = report.updated if report else 0
            file_skipped = report.skipped if report else 0
            if ok:
                success += 1
                added += file_added
                updated += file_updated
                skipped += file_skipped
            else:
                failed += 1

            stats.append(
                FileStat(
                    file_name=source.name,
                    status="success" if ok else "failed",
                    added=file_added,
                    updated=file_updated,
                    skipped=file_skipped,
                    elapsed_seconds=(datetime.now(UTC) - file_start).total_seconds(),
                    error=None if ok else response.body.get("message"),
                )
            )
            progress.set_postfix(success=success, failed=failed, added=added)
            progress.finish_file(success=ok)

    end_time = datetime.now(UTC)
    return ProcessingResult(
        success_files=success,
        failed_files=failed,
        total_added=added,
        total_updated=updated,
        total_skipped=skipped,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_stats=stats,
    )


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when no list is given (tests call main([]))
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    if args.inspect_data:
        return _inspect_data(args.files, cfg)

    if not args.created_by:
        logger.error("--created-by is required")
        return EXIT_FATAL

    sink = LocalBlobSink(cfg.blob_root)
    error_log = ErrorLogBuffer()

    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> in-memory store")
        db_mode = "memory"
        result = process_files(
            args.files, cfg, created_by=args.created_by, store=InMemoryCandidateStore(), sink=sink, error_log=error_log
        )
    else:
        db_mode = "live"
        try:
            with _db_connection(cfg) as cur:
                try:
                    require_role(PostgresUserStore(cur), args.created_by, UPLOAD_ROLES)
                except (PermissionDenied, UserNotFound) as e:
                    logger.error(f"role check: {e}")
                    return EXIT_FATAL
                result = process_files(
                    args.files,
                    cfg,
                    created_by=args.created_by,
                    store=PostgresCandidateStore(cur),
                    sink=sink,
                    error_log=error_log,
                    cursor=cur,
                )
        except StoreError as e:
            logger.error(f"database: {e}")
            return EXIT_FATAL
        except Exception as e:
            logger.error(f"DB connection failed: {e}")
            return EXIT_FATAL

    flushed = error_log.flush()
    if flushed is not None:
        logger.info(f"row errors written to {flushed}")
    logger.info(f"mode={db_mode} added={result.total_added}")

    summary_line = render_summary_line(result)
    log_summary(summary_line[len("SUMMARY "):])

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL
