from __future__ import annotations

from dataclasses import fields as dataclass_fields, replace
from typing import Any

from candidate_ingest.models.candidate import CandidateRecord
from candidate_ingest.models.interview import Interview, UserAccount

from .errors import NotFoundError, StoreError

"""In-memory record stores.

Used when the CLI runs with DISABLE_DB_CONNECT=1 and throughout the tests.
Records are copied in and out so callers cannot mutate stored state without
going through update_fields().
"""

__all__ = [
    "InMemoryCandidateStore",
    "InMemoryInterviewStore",
    "InMemoryUserStore",
]

_UPDATABLE = {f.name for f in dataclass_fields(CandidateRecord)} - {"id"}


class InMemoryCandidateStore:
    def __init__(self) -> None:
        self._records: dict[int, CandidateRecord] = {}
        self._next_id = 1
        self.insert_calls = 0

    def find_by_email(self, email: str) -> CandidateRecord | None:
        for record in self._records.values():
            if record.email == email:
                return replace(record)
        return None

    def insert_many(self, records: list[CandidateRecord]) -> int:
        self.insert_calls += 1
        for record in records:
            record.id = self._next_id
            self._records[self._next_id] = replace(record)
            self._next_id += 1
        return len(records)

    def update_fields(self, record_id: Any, fields: dict[str, Any]) -> CandidateRecord:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise StoreError(f"unknown candidate fields: {sorted(unknown)}")
        current = self._records.get(record_id)
        if current is None:
            raise NotFoundError(f"candidate not found: {record_id}")
        updated = replace(current, **fields)
        self._records[record_id] = updated
        return replace(updated)

    def get(self, record_id: Any) -> CandidateRecord | None:
        record = self._records.get(record_id)
        return replace(record) if record else None

    def list_all(self) -> list[CandidateRecord]:
        ordered = sorted(self._records.values(), key=lambda r: (r.created_at, r.id or 0), reverse=True)
        return [replace(r) for r in ordered]

    def delete(self, record_id: Any) -> bool:
        return self._records.pop(record_id, None) is not None

    def __len__(self) -> int:
        return len(self._records)


class InMemoryInterviewStore:
    def __init__(self, candidates: InMemoryCandidateStore) -> None:
        self._candidates = candidates
        self._interviews: dict[int, Interview] = {}
        self._next_id = 1

    def insert(self, interview: Interview) -> int:
        interview.id = self._next_id
        self._interviews[self._next_id] = replace(interview)
        self._next_id += 1
        return interview.id

    def list_with_candidates(self) -> list[dict[str, Any]]:
        rows = []
        for interview in self._interviews.values():
            candidate = self._candidates.get(interview.candidate_id)
            if candidate is None:
                continue
            row = interview.to_dict()
            row["candidate"] = candidate.to_dict()
            rows.append(row)
        rows.sort(key=lambda r: (r["date"], r["time"]))
        return rows

    def update_status(self, interview_id: Any, status: str) -> bool:
        interview = self._interviews.get(interview_id)
        if interview is None:
            return False
        self._interviews[interview_id] = replace(interview, status=status)
        return True


class InMemoryUserStore:
    def __init__(self) -> None:
        self._users: dict[str, UserAccount] = {}

    def find(self, uid: str) -> UserAccount | None:
        return self._users.get(uid)

    def upsert(self, uid: str, email: str | None, role: str) -> bool:
        """Insert or update; returns True when the user already existed."""
        existed = uid in self._users
        self._users[uid] = UserAccount(uid=uid, email=email, role=role)
        return existed
