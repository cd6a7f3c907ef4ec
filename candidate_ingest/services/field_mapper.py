from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from candidate_ingest.config.heuristics import DEFAULT_HEURISTICS, Heuristics
from candidate_ingest.excel.reader import is_blank
from candidate_ingest.models.candidate import CandidateDraft
from candidate_ingest.models.ingestion import HeaderMap

"""Column synonym mapping.

Turns one raw data row into a CandidateDraft by reading cells through the
HeaderMap and resolving each canonical field via its synonym list.
"""

__all__ = [
    "row_values",
    "build_draft",
]


def row_values(row: Sequence[Any], header: HeaderMap) -> dict[str, Any]:
    """Normalized column name -> cell value for the non-blank cells of a row.

    If two columns normalize to the same name, the leftmost non-blank wins.
    """
    values: dict[str, Any] = {}
    for pos in sorted(header.columns):
        if pos >= len(row) or is_blank(row[pos]):
            continue
        values.setdefault(header.columns[pos], row[pos])
    return values


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


def build_draft(row: Sequence[Any], header: HeaderMap, heuristics: Heuristics = DEFAULT_HEURISTICS) -> CandidateDraft:
    values = row_values(row, header)
    draft = CandidateDraft()
    for field_name, synonyms in heuristics.field_synonyms.items():
        for synonym in synonyms:
            if synonym in values:
                setattr(draft, field_name, _clean(values[synonym]))
                break
    # name/email always travel as text
    if draft.name is not None:
        draft.name = str(draft.name).strip()
    if draft.email is not None:
        draft.email = str(draft.email).strip()
    return draft
