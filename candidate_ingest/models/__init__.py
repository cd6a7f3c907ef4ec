"""Domain models for the candidate spreadsheet ingestion service."""

from .candidate import CandidateDraft, CandidateRecord, CandidateStatus
from .error_record import ErrorRecord
from .ingestion import (
    HeaderMap,
    ImageRowMap,
    IngestionReport,
    IngestionRun,
    RowOutcome,
    RowOutcomeKind,
    StoredImage,
)
from .interview import Interview, InterviewStatus, UserAccount, UserRole
from .processing_result import FileStat, ProcessingResult

__all__ = [
    # Candidate models
    "CandidateDraft",
    "CandidateRecord",
    "CandidateStatus",
    # Ingestion models
    "HeaderMap",
    "ImageRowMap",
    "IngestionReport",
    "IngestionRun",
    "RowOutcome",
    "RowOutcomeKind",
    "StoredImage",
    # Staff workflow models
    "Interview",
    "InterviewStatus",
    "UserAccount",
    "UserRole",
    # Reporting
    "ErrorRecord",
    "FileStat",
    "ProcessingResult",
]
