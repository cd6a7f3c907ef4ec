from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any

"""Candidate domain models.

CandidateDraft is the mutable working record built from one spreadsheet row;
CandidateRecord is what the record store persists.
"""

__all__ = [
    "CandidateStatus",
    "CandidateDraft",
    "CandidateRecord",
]


class CandidateStatus(Enum):
    """Review lifecycle of a candidate.

    pending → interview-scheduled (set when an interview is booked)
    """
    PENDING = "pending"
    INTERVIEW_SCHEDULED = "interview-scheduled"


@dataclass
class CandidateDraft:
    """Fields recovered from one raw row. Any field may be None until reconciliation."""
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    experience_years: Any = None
    previous_experience: str | None = None
    age: Any = None
    photo_path: str | None = None

    def present_fields(self) -> list[str]:
        """Names of the fields holding a non-blank value, in declaration order."""
        found = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            found.append(f.name)
        return found


@dataclass
class CandidateRecord:
    """Persisted candidate. ``id`` is assigned by the store on insert."""
    name: str
    email: str | None
    phone: str | None
    experience_years: float | int
    previous_experience: str | None
    age: float | int
    photo_path: str | None
    status: str
    created_by: str
    created_at: datetime
    id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CandidateRecord:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
