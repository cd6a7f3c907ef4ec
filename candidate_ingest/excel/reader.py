from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

"""Workbook cell-value reader.

Reads the primary (first) sheet with no header so that list index N is sheet
row N (0-indexed). Header detection happens later in excel.header; embedded
images are anchored to the same native row numbers, so rows must not be
dropped or shifted here.
"""

__all__ = [
    "WorkbookReadError",
    "SheetData",
    "read_primary_sheet",
    "is_blank",
]


class WorkbookReadError(Exception):
    """Raised when the uploaded file cannot be parsed as a workbook."""


@dataclass
class SheetData:
    sheet_name: str
    rows: list[list[Any]]  # raw cell values, blank -> None


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def read_primary_sheet(path: Path) -> SheetData:
    """Read the first sheet of a workbook as a list of raw rows.

    Blank cells come back as None. NA-like strings ("NA", "None", ...) are
    kept as text; only truly empty cells are blank.
    """
    try:
        with pd.ExcelFile(path) as xls:
            if not xls.sheet_names:
                raise WorkbookReadError(f"workbook has no sheets: {path.name}")
            sheet_name = str(xls.sheet_names[0])
            df = xls.parse(
                xls.sheet_names[0],
                header=None,
                dtype=object,
                keep_default_na=False,
                na_values=[""],
            )
    except WorkbookReadError:
        raise
    except Exception as e:
        raise WorkbookReadError(f"failed to read workbook {path.name}: {e}") from e

    rows: list[list[Any]] = []
    for raw in df.itertuples(index=False, name=None):
        rows.append([None if is_blank(v) else v for v in raw])
    return SheetData(sheet_name=sheet_name, rows=rows)
