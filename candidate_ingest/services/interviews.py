from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from candidate_ingest.db.errors import NotFoundError
from candidate_ingest.models.candidate import CandidateStatus
from candidate_ingest.models.interview import Interview, InterviewStatus

"""Interview scheduling for reviewed candidates."""

__all__ = [
    "DEFAULT_INTERVIEW_TYPE",
    "schedule_interview",
    "list_interviews",
    "update_interview_status",
]

logger = logging.getLogger(__name__)

DEFAULT_INTERVIEW_TYPE = "General"
VALID_STATUSES = {s.value for s in InterviewStatus}


def schedule_interview(
    interviews: Any,
    candidates: Any,
    candidate_id: Any,
    date: str,
    time: str,
    scheduled_by: str,
    type: str | None = None,
    now: datetime | None = None,
) -> Interview:
    """Book an interview and move the candidate to interview-scheduled."""
    if candidate_id is None or not date or not time:
        raise ValueError("candidate_id, date and time are required")
    if candidates.get(candidate_id) is None:
        raise NotFoundError(f"candidate not found: {candidate_id}")

    interview = Interview(
        candidate_id=candidate_id,
        date=date,
        time=time,
        type=type or DEFAULT_INTERVIEW_TYPE,
        status=InterviewStatus.SCHEDULED.value,
        scheduled_by=scheduled_by,
        created_at=now or datetime.now(UTC),
    )
    interviews.insert(interview)
    candidates.update_fields(candidate_id, {"status": CandidateStatus.INTERVIEW_SCHEDULED.value})
    logger.info("interview %s scheduled for candidate %s on %s %s", interview.id, candidate_id, date, time)
    return interview


def list_interviews(interviews: Any) -> list[dict[str, Any]]:
    """Interviews joined with their candidate, upcoming first."""
    return interviews.list_with_candidates()


def update_interview_status(interviews: Any, interview_id: Any, status: str) -> None:
    if status not in VALID_STATUSES:
        raise ValueError(f"unknown interview status: {status}")
    if not interviews.update_status(interview_id, status):
        raise NotFoundError(f"interview not found: {interview_id}")
