from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from candidate_ingest.config.heuristics import DEFAULT_HEURISTICS, Heuristics
from candidate_ingest.excel.reader import is_blank
from candidate_ingest.models.candidate import CandidateDraft

"""Composite-text fallback extraction.

Some sheets paste a whole profile into one cell, e.g.
"Name: Jane Doe Age: 29 Phone: 555-1234". When column mapping leaves contact
fields empty and the row looks like such a block (it contains a colon), the
concatenated row text is mined with the patterns from Heuristics.
"""

__all__ = [
    "row_text",
    "needs_fallback",
    "extract_email",
    "extract_phone",
    "extract_name",
    "extract_age",
    "apply_fallback",
]


def row_text(row: Sequence[Any]) -> str:
    return " ".join(str(v).strip() for v in row if not is_blank(v))


def needs_fallback(draft: CandidateDraft, text: str) -> bool:
    missing_contact = is_blank(draft.email) or is_blank(draft.phone)
    return missing_contact and ":" in text


def extract_email(text: str, heuristics: Heuristics = DEFAULT_HEURISTICS) -> str | None:
    m = re.search(heuristics.email_pattern, text)
    return m.group(0) if m else None


def extract_phone(text: str, heuristics: Heuristics = DEFAULT_HEURISTICS) -> str | None:
    for m in re.finditer(heuristics.phone_pattern, text):
        value = m.group(0).strip()
        if any(ch.isdigit() for ch in value):
            return value
    return None


def extract_name(text: str, heuristics: Heuristics = DEFAULT_HEURISTICS) -> str | None:
    m = re.search(heuristics.name_pattern, text)
    if not m:
        return None
    value = m.group(1).strip()
    return value or None


def extract_age(text: str, heuristics: Heuristics = DEFAULT_HEURISTICS) -> str | None:
    m = re.search(heuristics.age_pattern, text)
    return m.group(1) if m else None


def apply_fallback(draft: CandidateDraft, text: str, heuristics: Heuristics = DEFAULT_HEURISTICS) -> CandidateDraft:
    """Fill still-empty fields of ``draft`` from ``text`` (in place, also returned).

    A mapped name is only replaced when missing or longer than
    ``name_override_max_length`` (a sign the whole block was mapped as name).
    """
    if is_blank(draft.email):
        draft.email = extract_email(text, heuristics) or draft.email
    if is_blank(draft.phone):
        draft.phone = extract_phone(text, heuristics) or draft.phone
    if is_blank(draft.name) or len(str(draft.name)) > heuristics.name_override_max_length:
        name = extract_name(text, heuristics)
        if name:
            draft.name = name
    if is_blank(draft.age):
        draft.age = extract_age(text, heuristics) or draft.age
    return draft
