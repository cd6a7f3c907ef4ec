from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .candidate import CandidateRecord

"""Ingestion pipeline models.

One IngestionRun is created per uploaded workbook and threaded through the
pipeline explicitly, so independent uploads never share mutable state.
"""

__all__ = [
    "HeaderMap",
    "StoredImage",
    "ImageRowMap",
    "RowOutcomeKind",
    "RowOutcome",
    "IngestionReport",
    "IngestionRun",
]


@dataclass(frozen=True)
class HeaderMap:
    """Detected header row: sheet row index plus column position -> normalized name."""
    row_index: int
    columns: dict[int, str]

    def names(self) -> list[str]:
        return [self.columns[pos] for pos in sorted(self.columns)]


@dataclass(frozen=True)
class StoredImage:
    path: str  # blob sink key
    size: int  # byte length of the source buffer


class ImageRowMap:
    """0-indexed sheet row -> stored image. At most one image per row."""

    def __init__(self) -> None:
        self._entries: dict[int, StoredImage] = {}

    def get(self, row: int) -> StoredImage | None:
        return self._entries.get(row)

    def set(self, row: int, image: StoredImage) -> None:
        self._entries[row] = image

    def path_for(self, row: int) -> str | None:
        entry = self._entries.get(row)
        return entry.path if entry else None

    def paths(self) -> set[str]:
        return {e.path for e in self._entries.values()}

    def rows(self) -> list[int]:
        return sorted(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, row: object) -> bool:
        return row in self._entries


class RowOutcomeKind(Enum):
    ACCEPTED = "accepted"
    UPDATED = "updated"
    MERGED = "merged"  # photo folded into a record staged earlier in the same run
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RowOutcome:
    """Terminal result for one data row.

    ``error`` is None for accepted/updated rows and for silently dropped
    noise rows; otherwise it holds the human-readable reason reported back.
    """
    kind: RowOutcomeKind
    sheet_row: int
    error: str | None = None
    error_type: str | None = None
    record: CandidateRecord | None = None


@dataclass(frozen=True)
class IngestionReport:
    """Per-upload summary. ``added`` counts new inserts plus photo merges."""
    added: int
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    def to_response(self, message: str = "File processed") -> dict[str, Any]:
        return {"message": message, "added": self.added, "errors": list(self.errors)}


@dataclass
class IngestionRun:
    """Mutable context for a single ingestion run."""
    source_name: str
    header: HeaderMap | None = None
    images: ImageRowMap = field(default_factory=ImageRowMap)
    staged: list[CandidateRecord] = field(default_factory=list)
    photo_patches: dict[Any, str] = field(default_factory=dict)  # existing id -> photo path
    patched: dict[str, CandidateRecord] = field(default_factory=dict)  # email -> stored record given a photo
    outcomes: list[RowOutcome] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    first_row_seen: bool = False

    def staged_by_email(self, email: str) -> CandidateRecord | None:
        for record in self.staged:
            if record.email == email:
                return record
        return None

    def record(self, outcome: RowOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.error:
            self.errors.append(outcome.error)

    def count(self, kind: RowOutcomeKind) -> int:
        return sum(1 for o in self.outcomes if o.kind is kind)

    def attached_photos(self) -> set[str]:
        used = {r.photo_path for r in self.staged if r.photo_path}
        used.update(self.photo_patches.values())
        return used
