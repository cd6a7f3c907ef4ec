from __future__ import annotations

import shutil
import time
from pathlib import Path

"""Local filesystem blob sink and upload staging.

Blob paths are POSIX-style keys relative to the sink root (for example
``photos/candidate-<uuid4 hex>.png``); the stored key is what ends
up in a candidate's ``photo_path``.
"""

__all__ = [
    "BlobExistsError",
    "LocalBlobSink",
    "stage_upload",
    "remove_upload",
]


class BlobExistsError(Exception):
    """Raised when put() would overwrite an existing blob."""


class LocalBlobSink:
    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        return self.root / path

    def put(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        if target.exists():
            raise BlobExistsError(f"blob already exists: {path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    def read(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def delete(self, path: str) -> None:
        self._resolve(path).unlink(missing_ok=True)

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def mkdir(self, path: str) -> None:
        # exist_ok: concurrent uploads may race on the same directory
        self._resolve(path).mkdir(parents=True, exist_ok=True)


def stage_upload(source: Path, upload_directory: Path) -> Path:
    """Copy an operator-supplied workbook into the upload staging area.

    The staged name is ``candidates-<epoch-ms>-<original name>``; ingestion
    deletes the staged copy when done, the original is never touched.
    """
    upload_directory.mkdir(parents=True, exist_ok=True)
    staged = upload_directory / f"candidates-{int(time.time() * 1000)}-{source.name}"
    shutil.copyfile(source, staged)
    return staged


def remove_upload(path: Path) -> None:
    path.unlink(missing_ok=True)
