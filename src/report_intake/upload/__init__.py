"""File upload: attachment models, validation, API client and orchestration."""

from report_intake.upload.models import (
    AnalysisResult,
    AnalysisStatus,
    BundleSlot,
    FileAttachment,
    FileBundle,
    FileRecord,
    OutcomeStatus,
    SubmissionResult,
    UploadOutcome,
    UploadReceipt,
    UploadUnit,
    ValidationResult,
    SLOT_LABELS,
)
from report_intake.upload.validator import (
    FileValidator,
    MetadataValidator,
    FieldValidationError,
    MetadataValidationResult,
    MAX_FILE_SIZE,
)
from report_intake.upload.client import FileApiClient
from report_intake.upload.orchestrator import UploadOrchestrator, linearize

__all__ = [
    # Models
    "AnalysisResult",
    "AnalysisStatus",
    "BundleSlot",
    "FileAttachment",
    "FileBundle",
    "FileRecord",
    "OutcomeStatus",
    "SubmissionResult",
    "UploadOutcome",
    "UploadReceipt",
    "UploadUnit",
    "ValidationResult",
    "SLOT_LABELS",
    # Validation
    "FileValidator",
    "MetadataValidator",
    "FieldValidationError",
    "MetadataValidationResult",
    "MAX_FILE_SIZE",
    # API client
    "FileApiClient",
    # Orchestration
    "UploadOrchestrator",
    "linearize",
]
