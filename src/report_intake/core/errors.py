"""Custom exception classes and error categorisation for the report intake core."""

import asyncio
from enum import Enum
from typing import Optional


class ReportIntakeError(Exception):
    """Base exception for all report intake errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ApiError(ReportIntakeError):
    """Error returned by, or while talking to, the intake backend API."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, error_code="API", **kwargs)
        self.endpoint = endpoint
        self.status_code = status_code
        self.details.update({
            "endpoint": endpoint,
            "status_code": status_code,
        })

    def __str__(self) -> str:
        # Backend messages are shown to users as-is.
        return self.message


class ReferenceDataError(ReportIntakeError):
    """Company or report-type reference data is missing or unreadable."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        reference_id: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, error_code="REFERENCE_DATA", **kwargs)
        self.source = source
        self.reference_id = reference_id
        self.details.update({
            "source": source,
            "reference_id": reference_id,
        })


class WizardStateError(ReportIntakeError):
    """An operation was requested in a wizard step that does not allow it."""

    def __init__(
        self,
        message: str,
        step: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, error_code="WIZARD_STATE", **kwargs)
        self.step = step
        self.operation = operation
        self.details.update({
            "step": step,
            "operation": operation,
        })


class ValidationError(ReportIntakeError):
    """Error during attachment or metadata validation."""

    def __init__(
        self,
        message: str,
        field_id: Optional[str] = None,
        failed_checks: Optional[list] = None,
        **kwargs,
    ):
        super().__init__(message, error_code="VALIDATION", **kwargs)
        self.field_id = field_id
        self.failed_checks = failed_checks or []
        self.details.update({
            "field_id": field_id,
            "failed_checks": self.failed_checks,
        })


class ErrorCategory(str, Enum):
    """Categories for error classification."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    SERVER = "server"
    UNKNOWN = "unknown"


# Mapping of exception types to categories
EXCEPTION_CATEGORIES = {
    ConnectionError: ErrorCategory.NETWORK,
    TimeoutError: ErrorCategory.TIMEOUT,
    asyncio.TimeoutError: ErrorCategory.TIMEOUT,
    PermissionError: ErrorCategory.AUTHENTICATION,
    ValueError: ErrorCategory.VALIDATION,
}

# Keywords in error messages that indicate categories
MESSAGE_KEYWORDS = {
    ErrorCategory.NETWORK: ["connection", "network", "dns", "socket", "refused", "cannot connect"],
    ErrorCategory.TIMEOUT: ["timeout", "timed out"],
    ErrorCategory.AUTHENTICATION: ["401", "403", "forbidden", "unauthorized", "token"],
    ErrorCategory.VALIDATION: ["invalid", "required", "not allowed", "too large"],
}


def categorize_error(error: BaseException) -> ErrorCategory:
    """Categorize an exception raised while uploading a file.

    Args:
        error: The exception to categorize.

    Returns:
        ErrorCategory for the exception.
    """
    if isinstance(error, ApiError) and error.status_code is not None:
        if error.status_code in (401, 403):
            return ErrorCategory.AUTHENTICATION
        if error.status_code in (400, 413, 415, 422):
            return ErrorCategory.VALIDATION
        if error.status_code >= 500:
            return ErrorCategory.SERVER

    for exc_type, category in EXCEPTION_CATEGORIES.items():
        if isinstance(error, exc_type):
            return category

    error_msg = str(error).lower()
    for category, keywords in MESSAGE_KEYWORDS.items():
        if any(kw in error_msg for kw in keywords):
            return category

    return ErrorCategory.UNKNOWN
