from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any

__all__ = [
    "InterviewStatus",
    "Interview",
    "UserRole",
    "UserAccount",
]


class InterviewStatus(Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class Interview:
    """Interview booked against a candidate record.

    ``date`` and ``time`` are kept as operator-entered text (YYYY-MM-DD / HH:MM)
    so lexical ordering matches chronological ordering.
    """
    candidate_id: Any
    date: str
    time: str
    type: str
    status: str
    scheduled_by: str
    created_at: datetime
    id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class UserRole(Enum):
    ADMIN = "admin"
    STAFF = "staff"
    CANDIDATE = "candidate"


@dataclass(frozen=True)
class UserAccount:
    """Role metadata for an authenticated account (uid from the identity provider)."""
    uid: str
    email: str | None
    role: str
