from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from enum import Enum
from typing import Any

from candidate_ingest.excel.reader import is_blank
from candidate_ingest.models.candidate import CandidateDraft, CandidateRecord, CandidateStatus
from candidate_ingest.models.ingestion import IngestionRun, RowOutcome, RowOutcomeKind

"""Row reconciliation.

Per data row: blank/noise filtering, required-field validation, duplicate
resolution against existing and already-staged records, and type coercion.
Each step is a separate function so the decision rules can be tested in
isolation; ``reconcile_row`` strings them together and records the outcome
on the IngestionRun.
"""

__all__ = [
    "DuplicateDecision",
    "is_blank_row",
    "is_noise_row",
    "validate_draft",
    "decide_duplicate",
    "to_number",
    "to_text",
    "coerce_record",
    "reconcile_row",
]

ERROR_MISSING_FIELDS = "MISSING_FIELDS"
ERROR_DUPLICATE_EMAIL = "DUPLICATE_EMAIL"


class DuplicateDecision(Enum):
    NEW = "new"
    MERGE_PHOTO = "merge_photo"
    DUPLICATE_HAS_PHOTO = "duplicate_has_photo"
    DUPLICATE_NO_CONTRIBUTION = "duplicate_no_contribution"


def is_blank_row(row: Sequence[Any]) -> bool:
    return all(is_blank(v) for v in row)


def is_noise_row(draft: CandidateDraft, is_first_row: bool) -> bool:
    """Footer/branding heuristic.

    A row with neither name nor email is treated as boilerplate and dropped
    without an error, except for the first data row, which is reported so an
    operator notices a mis-detected header. This is a known weak proxy: a
    genuine row carrying only a phone number after the first row is dropped
    silently too.
    """
    return is_blank(draft.name) and is_blank(draft.email) and not is_first_row


def validate_draft(draft: CandidateDraft) -> str | None:
    """Return None when the draft is acceptable, otherwise the missing-fields reason."""
    missing = []
    if is_blank(draft.name):
        missing.append("name")
    if is_blank(draft.email) and is_blank(draft.phone):
        missing.append("email/phone")
    if not missing:
        return None
    found = ", ".join(draft.present_fields()) or "none"
    label = draft.name if not is_blank(draft.name) else "Unknown"
    return f"Skipped: Missing {' and '.join(missing)} for {label} (found: {found})"


def decide_duplicate(existing: CandidateRecord | None, photo_path: str | None) -> DuplicateDecision:
    if existing is None:
        return DuplicateDecision.NEW
    if existing.photo_path:
        return DuplicateDecision.DUPLICATE_HAS_PHOTO
    if photo_path:
        return DuplicateDecision.MERGE_PHOTO
    return DuplicateDecision.DUPLICATE_NO_CONTRIBUTION


def to_number(value: Any) -> int | float:
    """Numeric coercion with 0 as the default for blanks and junk."""
    if is_blank(value) or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return 0
    if number != number or number in (float("inf"), float("-inf")):
        return 0
    if float(number).is_integer():
        return int(number)
    return float(number)


def to_text(value: Any) -> str | None:
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        # phone numbers typed into numeric cells
        return str(int(value))
    return str(value).strip()


def coerce_record(draft: CandidateDraft, created_by: str, now: datetime) -> CandidateRecord:
    return CandidateRecord(
        name=str(draft.name).strip(),
        email=to_text(draft.email),
        phone=to_text(draft.phone),
        experience_years=to_number(draft.experience_years),
        previous_experience=to_text(draft.previous_experience),
        age=to_number(draft.age),
        photo_path=draft.photo_path,
        status=CandidateStatus.PENDING.value,
        created_by=created_by,
        created_at=now,
    )


def reconcile_row(
    run: IngestionRun,
    draft: CandidateDraft,
    sheet_row: int,
    store: Any,
    created_by: str,
    now: datetime,
) -> RowOutcome:
    """Decide the fate of one non-blank data row and record it on ``run``.

    The row's photo (if any) is looked up in ``run.images`` by native sheet
    row. Staged records from earlier rows of the same upload are checked
    before the store so one workbook cannot insert the same email twice.
    A record takes at most one photo per run: a stored record patched earlier
    in the run, or a staged record that already has a photo, makes later
    rows with the same email duplicates.
    """
    is_first = not run.first_row_seen
    run.first_row_seen = True

    if is_noise_row(draft, is_first):
        outcome = RowOutcome(RowOutcomeKind.SKIPPED, sheet_row)
        run.record(outcome)
        return outcome

    problem = validate_draft(draft)
    if problem:
        outcome = RowOutcome(RowOutcomeKind.SKIPPED, sheet_row, error=problem, error_type=ERROR_MISSING_FIELDS)
        run.record(outcome)
        return outcome

    photo_path = run.images.path_for(sheet_row)
    email = to_text(draft.email)
    staged = run.staged_by_email(email) if email else None
    existing = staged
    if email and existing is None:
        # a record patched earlier in this run already holds its photo
        existing = run.patched.get(email) or store.find_by_email(email)

    decision = decide_duplicate(existing, photo_path)
    if decision is DuplicateDecision.NEW:
        draft.photo_path = photo_path
        record = coerce_record(draft, created_by, now)
        run.staged.append(record)
        outcome = RowOutcome(RowOutcomeKind.ACCEPTED, sheet_row, record=record)
    elif decision is DuplicateDecision.MERGE_PHOTO and staged is not None:
        staged.photo_path = photo_path
        outcome = RowOutcome(RowOutcomeKind.MERGED, sheet_row, record=staged)
    elif decision is DuplicateDecision.MERGE_PHOTO:
        existing.photo_path = photo_path
        run.photo_patches[existing.id] = photo_path
        run.patched[email] = existing
        outcome = RowOutcome(RowOutcomeKind.UPDATED, sheet_row, record=existing)
    else:
        outcome = RowOutcome(
            RowOutcomeKind.SKIPPED,
            sheet_row,
            error=f"Skipped: Email {email} already exists",
            error_type=ERROR_DUPLICATE_EMAIL,
        )
    run.record(outcome)
    return outcome
