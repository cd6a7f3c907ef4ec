from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

from candidate_ingest.config.heuristics import DEFAULT_HEURISTICS, Heuristics
from candidate_ingest.models.ingestion import ImageRowMap, StoredImage

"""Embedded image extraction.

Candidate photos are pasted into the workbook and anchored over the row they
belong to. Images are pulled from the primary worksheet with openpyxl,
re-typed from their byte signature, written to the blob sink and mapped to
their anchor row (0-indexed native sheet row, same indexing as
excel.reader.read_primary_sheet).
"""

__all__ = [
    "EmbeddedImage",
    "detect_image_format",
    "is_renderable",
    "read_embedded_images",
    "extract_images",
]

logger = logging.getLogger(__name__)

_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG", "png"),
    (b"\xff\xd8\xff", "jpg"),
    (b"GIF", "gif"),
)


@dataclass(frozen=True)
class EmbeddedImage:
    """One picture as exposed by the workbook parser."""
    data: bytes
    format_hint: str | None
    anchor_row: float  # 0-indexed, may be fractional
    anchor_col: float = 0.0


def detect_image_format(data: bytes, hint: str | None = None) -> str:
    """Determine the real format from the leading bytes, falling back to the hint."""
    for magic, fmt in _SIGNATURES:
        if data.startswith(magic):
            return fmt
    fmt = (hint or "").lower().lstrip(".")
    if fmt == "jpeg":
        return "jpg"
    return fmt or "png"


def is_renderable(fmt: str, heuristics: Heuristics = DEFAULT_HEURISTICS) -> bool:
    return fmt.lower() not in heuristics.unrenderable_image_formats


def _anchor_position(image: Any) -> tuple[float, float] | None:
    anchor = getattr(image, "anchor", None)
    marker = getattr(anchor, "_from", None)
    if marker is None:
        return None
    row = getattr(marker, "row", None)
    col = getattr(marker, "col", None)
    if not isinstance(row, int):
        return None
    return float(row), float(col or 0)


def read_embedded_images(path: Path) -> list[EmbeddedImage]:
    """Enumerate pictures on the first worksheet.

    Pictures without a cell anchor (absolute anchors) or whose data cannot be
    read are skipped with a warning.
    """
    wb = load_workbook(path)
    try:
        sheet = wb.worksheets[0]
        result: list[EmbeddedImage] = []
        for idx, image in enumerate(getattr(sheet, "_images", [])):
            position = _anchor_position(image)
            if position is None:
                logger.warning("image %d in sheet %s has no cell anchor; skipped", idx, sheet.title)
                continue
            try:
                data = image._data()
            except Exception as e:
                logger.warning("cannot read image %d in sheet %s: %s; skipped", idx, sheet.title, e)
                continue
            result.append(
                EmbeddedImage(
                    data=data,
                    format_hint=getattr(image, "format", None),
                    anchor_row=position[0],
                    anchor_col=position[1],
                )
            )
        logger.debug("found %d embedded images in sheet %s", len(result), sheet.title)
        return result
    finally:
        wb.close()


def _unique_name(fmt: str) -> str:
    return f"candidate-{uuid.uuid4().hex}.{fmt}"


def extract_images(
    images: list[EmbeddedImage],
    sink: Any,
    directory: str,
    heuristics: Heuristics = DEFAULT_HEURISTICS,
) -> ImageRowMap:
    """Store embedded images and map each to its anchor row.

    When two images anchor to the same row, the one with more bytes wins and
    the other's blob is deleted. Any failure is confined to the image at hand.
    """
    row_map = ImageRowMap()
    try:
        if not sink.exists(directory):
            sink.mkdir(directory)
    except OSError as e:
        logger.warning("could not create image directory %s: %s", directory, e)

    for idx, image in enumerate(images):
        try:
            row = math.floor(image.anchor_row)
            fmt = detect_image_format(image.data, image.format_hint)
            if not is_renderable(fmt, heuristics):
                logger.debug("image %d at row %d is %s; skipped", idx, row, fmt)
                continue
            path = f"{directory}/{_unique_name(fmt)}"
            sink.put(path, image.data)
            candidate = StoredImage(path=path, size=len(image.data))

            current = row_map.get(row)
            if current is None:
                row_map.set(row, candidate)
                continue
            if candidate.size > current.size:
                row_map.set(row, candidate)
                loser = current
            else:
                loser = candidate
            try:
                sink.delete(loser.path)
            except OSError as e:
                logger.warning("could not delete superseded image %s: %s", loser.path, e)
            logger.debug("row %d: kept %s (%d bytes)", row, row_map.path_for(row), row_map.get(row).size)
        except Exception as e:
            logger.warning("image %d could not be stored: %s", idx, e)

    logger.info("stored %d row images", len(row_map))
    return row_map
