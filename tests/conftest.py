# Shared pytest fixtures
from __future__ import annotations

import io
import tempfile
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook
from openpyxl.drawing.image import Image as XLImage
from PIL import Image as PILImage

from candidate_ingest.db.memory import InMemoryCandidateStore
from candidate_ingest.storage.blob import LocalBlobSink


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "uploads").mkdir()
        (p / "logs").mkdir()
        (p / "input").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """upload_directory: ./uploads
blob_root: ./blobs
image_directory: photos
heuristics:
  header_scan_rows: 20
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "ingest.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def make_png(size: tuple[int, int] = (4, 4), color: tuple[int, int, int] = (200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    PILImage.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def build_workbook(
    path: Path,
    rows: Sequence[Sequence[Any]],
    images: Iterable[tuple[str, bytes]] = (),
    sheet_title: str = "Candidates",
) -> Path:
    """Write rows (row 1 = index 0) and pictures anchored at the given cells."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title
    for r_idx, row in enumerate(rows, start=1):
        for c_idx, value in enumerate(row, start=1):
            if value is not None:
                ws.cell(row=r_idx, column=c_idx, value=value)
    for anchor, data in images:
        ws.add_image(XLImage(io.BytesIO(data)), anchor)
    wb.save(path)
    return path


@pytest.fixture()
def png_bytes() -> Callable[..., bytes]:
    return make_png


@pytest.fixture()
def workbook_factory(temp_workdir: Path) -> Callable[..., Path]:
    def _factory(name: str, rows: Sequence[Sequence[Any]], images: Iterable[tuple[str, bytes]] = ()) -> Path:
        return build_workbook(temp_workdir / "input" / name, rows, images)
    return _factory


@pytest.fixture()
def store() -> InMemoryCandidateStore:
    return InMemoryCandidateStore()


@pytest.fixture()
def sink(temp_workdir: Path) -> LocalBlobSink:
    return LocalBlobSink(temp_workdir / "blobs")
