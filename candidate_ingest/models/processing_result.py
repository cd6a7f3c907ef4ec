from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Processing result models for multi-file CLI runs.

Aggregates the per-upload IngestionReports produced by the orchestrator into
the numbers rendered on the SUMMARY line.
"""


@dataclass(frozen=True)
class FileStat:
    """Per-file processing statistics."""
    file_name: str
    status: str  # success/failed
    added: int
    updated: int
    skipped: int
    elapsed_seconds: float
    error: str | None = None


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results across all files given to one CLI invocation."""
    success_files: int
    failed_files: int
    total_added: int
    total_updated: int
    total_skipped: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] | None = None

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files
