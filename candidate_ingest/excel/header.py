from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from candidate_ingest.config.heuristics import DEFAULT_HEURISTICS, Heuristics
from candidate_ingest.models.ingestion import HeaderMap

from .reader import is_blank

"""Header row locator.

Workbooks often carry a title block or branding above the real column
headers, so the header row is found by keyword matching instead of assuming
a fixed position. The first qualifying row wins, not the best-scoring one.
"""

__all__ = [
    "HeaderNotFoundError",
    "normalize_header",
    "keyword_matches",
    "locate_header",
]

_NON_ALNUM = re.compile(r"[^a-z0-9]")


class HeaderNotFoundError(Exception):
    """Raised when no row in the scan window looks like a header row."""


def normalize_header(value: Any) -> str:
    """Case-fold and strip everything that is not a-z/0-9."""
    if is_blank(value):
        return ""
    return _NON_ALNUM.sub("", str(value).lower())


def keyword_matches(normalized_cells: Sequence[str], keywords: Sequence[str]) -> int:
    """Count keywords appearing as a substring of at least one cell."""
    return sum(1 for kw in keywords if any(kw in cell for cell in normalized_cells if cell))


def locate_header(rows: Sequence[Sequence[Any]], heuristics: Heuristics = DEFAULT_HEURISTICS) -> HeaderMap:
    """Return the first row within the scan window with enough keyword hits.

    Raises:
        HeaderNotFoundError: no row within ``header_scan_rows`` qualifies
    """
    window = rows[: heuristics.header_scan_rows]
    for index, row in enumerate(window):
        normalized = [normalize_header(cell) for cell in row]
        if keyword_matches(normalized, heuristics.header_keywords) >= heuristics.header_min_matches:
            columns = {pos: name for pos, name in enumerate(normalized) if name}
            return HeaderMap(row_index=index, columns=columns)
    raise HeaderNotFoundError(
        f"headers not found in the first {len(window)} rows "
        f"(need {heuristics.header_min_matches} of: {', '.join(heuristics.header_keywords)})"
    )
