from __future__ import annotations

import logging
from typing import Any

import psycopg2

from candidate_ingest.models.candidate import CandidateRecord
from candidate_ingest.models.interview import Interview, UserAccount

from .batch_insert import BatchInsertError, batch_insert
from .errors import NotFoundError, StoreError

"""PostgreSQL-backed record stores over a psycopg2 cursor.

Transaction boundaries belong to the caller (the CLI commits after a whole
upload has been applied).
"""

__all__ = [
    "CANDIDATE_COLUMNS",
    "PostgresCandidateStore",
    "PostgresInterviewStore",
    "PostgresUserStore",
]

logger = logging.getLogger(__name__)

CANDIDATE_COLUMNS = [
    "name",
    "email",
    "phone",
    "experience_years",
    "previous_experience",
    "age",
    "photo_path",
    "status",
    "created_by",
    "created_at",
]
_SELECT_CANDIDATE = "SELECT id, " + ", ".join(CANDIDATE_COLUMNS) + " FROM candidates"
_UPDATABLE = set(CANDIDATE_COLUMNS)

INTERVIEW_COLUMNS = ["candidate_id", "date", "time", "type", "status", "scheduled_by", "created_at"]


def _number(value: Any) -> Any:
    # NUMERIC comes back as Decimal
    if value is None:
        return 0
    return int(value) if value == int(value) else float(value)


def _candidate_from_row(row: tuple[Any, ...]) -> CandidateRecord:
    data = dict(zip(["id", *CANDIDATE_COLUMNS], row, strict=True))
    data["experience_years"] = _number(data["experience_years"])
    data["age"] = _number(data["age"])
    return CandidateRecord.from_dict(data)


class PostgresCandidateStore:
    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> None:
        try:
            self.cursor.execute(sql, params)
        except psycopg2.Error as e:
            raise StoreError(str(e)) from e

    def find_by_email(self, email: str) -> CandidateRecord | None:
        self._execute(_SELECT_CANDIDATE + " WHERE email = %s ORDER BY id LIMIT 1", (email,))
        row = self.cursor.fetchone()
        return _candidate_from_row(row) if row else None

    def insert_many(self, records: list[CandidateRecord]) -> int:
        rows = [[getattr(r, c) for c in CANDIDATE_COLUMNS] for r in records]
        try:
            result = batch_insert(self.cursor, "candidates", CANDIDATE_COLUMNS, rows, returning="id")
        except BatchInsertError as e:
            raise StoreError(f"candidate batch insert failed: {e}") from e
        for record, returned in zip(records, result.returned_values or [], strict=False):
            record.id = returned[0]
        logger.debug("inserted %d candidates", result.inserted_rows)
        return result.inserted_rows

    def update_fields(self, record_id: Any, fields: dict[str, Any]) -> CandidateRecord:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise StoreError(f"unknown candidate fields: {sorted(unknown)}")
        if not fields:
            current = self.get(record_id)
            if current is None:
                raise NotFoundError(f"candidate not found: {record_id}")
            return current
        assignments = ", ".join(f'"{k}" = %s' for k in fields)
        self._execute(
            f"UPDATE candidates SET {assignments} WHERE id = %s RETURNING id, " + ", ".join(CANDIDATE_COLUMNS),
            (*fields.values(), record_id),
        )
        row = self.cursor.fetchone()
        if row is None:
            raise NotFoundError(f"candidate not found: {record_id}")
        return _candidate_from_row(row)

    def get(self, record_id: Any) -> CandidateRecord | None:
        self._execute(_SELECT_CANDIDATE + " WHERE id = %s", (record_id,))
        row = self.cursor.fetchone()
        return _candidate_from_row(row) if row else None

    def list_all(self) -> list[CandidateRecord]:
        self._execute(_SELECT_CANDIDATE + " ORDER BY created_at DESC, id DESC")
        return [_candidate_from_row(r) for r in self.cursor.fetchall()]

    def delete(self, record_id: Any) -> bool:
        self._execute("DELETE FROM candidates WHERE id = %s", (record_id,))
        return self.cursor.rowcount > 0


class PostgresInterviewStore:
    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> None:
        try:
            self.cursor.execute(sql, params)
        except psycopg2.Error as e:
            raise StoreError(str(e)) from e

    def insert(self, interview: Interview) -> int:
        cols_sql = ", ".join(f'"{c}"' for c in INTERVIEW_COLUMNS)
        placeholders = ", ".join(["%s"] * len(INTERVIEW_COLUMNS))
        self._execute(
            f"INSERT INTO interviews ({cols_sql}) VALUES ({placeholders}) RETURNING id",
            tuple(getattr(interview, c) for c in INTERVIEW_COLUMNS),
        )
        interview.id = self.cursor.fetchone()[0]
        return interview.id

    def list_with_candidates(self) -> list[dict[str, Any]]:
        interview_cols = ", ".join(f'i."{c}"' for c in ["id", *INTERVIEW_COLUMNS])
        candidate_cols = ", ".join(f'c."{c}"' for c in ["id", *CANDIDATE_COLUMNS])
        self._execute(
            f"SELECT {interview_cols}, {candidate_cols} FROM interviews i "
            "JOIN candidates c ON c.id = i.candidate_id ORDER BY i.date, i.time"
        )
        width = len(INTERVIEW_COLUMNS) + 1
        rows = []
        for raw in self.cursor.fetchall():
            row = dict(zip(["id", *INTERVIEW_COLUMNS], raw[:width], strict=True))
            row["candidate"] = _candidate_from_row(raw[width:]).to_dict()
            rows.append(row)
        return rows

    def update_status(self, interview_id: Any, status: str) -> bool:
        self._execute("UPDATE interviews SET status = %s WHERE id = %s", (status, interview_id))
        return self.cursor.rowcount > 0


class PostgresUserStore:
    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> None:
        try:
            self.cursor.execute(sql, params)
        except psycopg2.Error as e:
            raise StoreError(str(e)) from e

    def find(self, uid: str) -> UserAccount | None:
        self._execute("SELECT uid, email, role FROM users WHERE uid = %s", (uid,))
        row = self.cursor.fetchone()
        return UserAccount(uid=row[0], email=row[1], role=row[2]) if row else None

    def upsert(self, uid: str, email: str | None, role: str) -> bool:
        existed = self.find(uid) is not None
        self._execute(
            "INSERT INTO users (uid, email, role) VALUES (%s, %s, %s) "
            "ON CONFLICT (uid) DO UPDATE SET email = EXCLUDED.email, role = EXCLUDED.role",
            (uid, email, role),
        )
        return existed
