from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from candidate_ingest.db.errors import NotFoundError, StoreError
from candidate_ingest.db.memory import InMemoryCandidateStore, InMemoryInterviewStore, InMemoryUserStore
from candidate_ingest.models.candidate import CandidateRecord
from candidate_ingest.models.interview import Interview

NOW = datetime(2024, 5, 1, tzinfo=UTC)


def _record(name: str, email: str, created_at: datetime = NOW) -> CandidateRecord:
    return CandidateRecord(name, email, None, 0, None, 0, None, "pending", "u", created_at)


def test_insert_assigns_ids_and_counts_calls():
    store = InMemoryCandidateStore()
    records = [_record("Ann", "a@x.com"), _record("Bo", "b@x.com")]
    assert store.insert_many(records) == 2
    assert [r.id for r in records] == [1, 2]
    assert store.insert_calls == 1
    assert len(store) == 2


def test_find_returns_copy():
    store = InMemoryCandidateStore()
    store.insert_many([_record("Ann", "a@x.com")])
    found = store.find_by_email("a@x.com")
    found.photo_path = "photos/x.png"
    assert store.get(1).photo_path is None
    assert store.find_by_email("A@x.com") is None


def test_update_fields():
    store = InMemoryCandidateStore()
    store.insert_many([_record("Ann", "a@x.com")])
    updated = store.update_fields(1, {"photo_path": "photos/a.png"})
    assert updated.photo_path == "photos/a.png"
    with pytest.raises(NotFoundError):
        store.update_fields(99, {"photo_path": "x"})


def test_list_all_newest_first_and_delete():
    store = InMemoryCandidateStore()
    store.insert_many([_record("Old", "o@x.com", NOW - timedelta(days=1)), _record("New", "n@x.com")])
    assert [r.name for r in store.list_all()] == ["New", "Old"]
    assert store.delete(1) is True
    assert store.delete(1) is False


def test_interviews_joined_and_sorted():
    candidates = InMemoryCandidateStore()
    candidates.insert_many([_record("Ann", "a@x.com")])
    interviews = InMemoryInterviewStore(candidates)
    interviews.insert(Interview(1, "2024-06-02", "09:00", "General", "scheduled", "u", NOW))
    interviews.insert(Interview(1, "2024-06-01", "15:00", "Tech", "scheduled", "u", NOW))
    interviews.insert(Interview(1, "2024-06-01", "10:00", "HR", "scheduled", "u", NOW))
    rows = interviews.list_with_candidates()
    assert [(r["date"], r["time"]) for r in rows] == [
        ("2024-06-01", "10:00"),
        ("2024-06-01", "15:00"),
        ("2024-06-02", "09:00"),
    ]
    assert rows[0]["candidate"]["name"] == "Ann"
    assert interviews.update_status(1, "completed") is True
    assert interviews.update_status(42, "completed") is False


def test_user_upsert_reports_existing():
    users = InMemoryUserStore()
    assert users.upsert("u1", "a@x.com", "staff") is False
    assert users.upsert("u1", "a@x.com", "admin") is True
    assert users.find("u1").role == "admin"
    assert users.find("nobody") is None


def test_update_fields_rejects_unknown_columns():
    store = InMemoryCandidateStore()
    store.insert_many([_record("Ann", "a@x.com")])
    with pytest.raises(StoreError, match="unknown candidate fields"):
        store.update_fields(1, {"nickname": "Al"})
    assert store.get(1).name == "Ann"
