from __future__ import annotations

from typing import Any

from candidate_ingest.db.errors import NotFoundError
from candidate_ingest.models.candidate import CandidateRecord

"""Administrative candidate operations (outside the ingestion path)."""

__all__ = [
    "IMMUTABLE_FIELDS",
    "list_candidates",
    "get_profile",
    "update_candidate",
    "delete_candidate",
]

# identity fields an edit may not change
IMMUTABLE_FIELDS = {"id", "email", "created_by", "created_at"}


def list_candidates(store: Any) -> list[CandidateRecord]:
    """All candidates, newest first."""
    return store.list_all()


def get_profile(store: Any, email: str | None) -> CandidateRecord:
    """Look up the candidate whose email matches the signed-in account."""
    if not email:
        raise ValueError("user email not available")
    record = store.find_by_email(email)
    if record is None:
        raise NotFoundError(f"profile not found: {email}")
    return record


def update_candidate(store: Any, record_id: Any, updates: dict[str, Any]) -> CandidateRecord:
    fields = {k: v for k, v in updates.items() if k not in IMMUTABLE_FIELDS}
    if store.get(record_id) is None:
        raise NotFoundError(f"candidate not found: {record_id}")
    return store.update_fields(record_id, fields)


def delete_candidate(store: Any, record_id: Any) -> None:
    if not store.delete(record_id):
        raise NotFoundError(f"candidate not found: {record_id}")
