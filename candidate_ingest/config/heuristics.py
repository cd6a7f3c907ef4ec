from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

"""Heuristic constants for spreadsheet ingestion.

Recruiting workbooks are authored by hand, so header rows float, column names
vary and some rows are free-text blocks. Every knob the pipeline uses to cope
with that lives here as named data so it can be tuned from config/ingest.yml
and exercised directly from tests.
"""

__all__ = [
    "Heuristics",
    "DEFAULT_HEURISTICS",
    "heuristics_from_dict",
]

HEADER_SCAN_ROWS = 20
HEADER_MIN_MATCHES = 2
HEADER_KEYWORDS: tuple[str, ...] = ("name", "email", "phone", "contact", "mobile", "experience", "age")

# canonical field -> normalized column names, in priority order
FIELD_SYNONYMS: dict[str, tuple[str, ...]] = {
    "name": ("name", "candidate", "fullname", "applicantname", "candidatesname"),
    "email": ("email", "emailaddress", "eaddress"),
    "phone": ("phone", "phonenumber", "contact", "mobile", "cell"),
    "experience_years": (
        "experienceyears",
        "yearsofexperience",
        "experience",
        "totalexperience",
        "yearsexperience",
    ),
    "previous_experience": (
        "previousexperience",
        "previouscompany",
        "previousemployer",
        "workhistory",
        "employmenthistory",
    ),
    "age": ("age", "candidateage", "ageyrs"),
}

NAME_OVERRIDE_MAX_LENGTH = 50
EMAIL_PATTERN = r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"
PHONE_PATTERN = r"\+?[\d\s-]{9,16}"
NAME_PATTERN = r"Name:\s*(.+?)\s*(?=\b(?:Age|Location|University|Degree)\b|$)"
AGE_PATTERN = r"Age:\s*(\d+(?:\.\d+)?)"
UNRENDERABLE_IMAGE_FORMATS: tuple[str, ...] = ("emf", "wmf")


@dataclass(frozen=True)
class Heuristics:
    """Bundle of tunable ingestion heuristics."""
    header_scan_rows: int = HEADER_SCAN_ROWS
    header_min_matches: int = HEADER_MIN_MATCHES
    header_keywords: tuple[str, ...] = HEADER_KEYWORDS
    field_synonyms: dict[str, tuple[str, ...]] = field(default_factory=lambda: dict(FIELD_SYNONYMS))
    name_override_max_length: int = NAME_OVERRIDE_MAX_LENGTH
    email_pattern: str = EMAIL_PATTERN
    phone_pattern: str = PHONE_PATTERN
    name_pattern: str = NAME_PATTERN
    age_pattern: str = AGE_PATTERN
    unrenderable_image_formats: tuple[str, ...] = UNRENDERABLE_IMAGE_FORMATS


DEFAULT_HEURISTICS = Heuristics()


def heuristics_from_dict(data: dict[str, Any] | None) -> Heuristics:
    """Build Heuristics from the optional ``heuristics`` config section.

    Only the keys present are overridden. ``field_synonyms`` is merged per
    field so a config can retune a single field without restating the rest.
    """
    if not data:
        return DEFAULT_HEURISTICS
    overrides: dict[str, Any] = {}
    for key, value in data.items():
        if key == "field_synonyms":
            merged = dict(DEFAULT_HEURISTICS.field_synonyms)
            for field_name, names in value.items():
                merged[field_name] = tuple(names)
            overrides[key] = merged
        elif key in ("header_keywords", "unrenderable_image_formats"):
            overrides[key] = tuple(value)
        else:
            overrides[key] = value
    return replace(DEFAULT_HEURISTICS, **overrides)
