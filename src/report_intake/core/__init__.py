"""Core utilities for the report intake core."""

from report_intake.core.logging import get_logger, configure_logging
from report_intake.core.errors import (
    ReportIntakeError,
    ApiError,
    ReferenceDataError,
    WizardStateError,
    ValidationError,
    ErrorCategory,
    categorize_error,
)
from report_intake.core.config import IntakeSettings

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    # Errors
    "ReportIntakeError",
    "ApiError",
    "ReferenceDataError",
    "WizardStateError",
    "ValidationError",
    "ErrorCategory",
    "categorize_error",
    # Configuration
    "IntakeSettings",
]
