"""Attachment and metadata validation for report submissions.

- Attachment validation (accepted extensions per report type, size limit)
- Metadata field validation (required values, numbers, dates, select options)
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from report_intake.models.report_type import FieldType, FormField, ReportType
from report_intake.registry.calendar import is_valid_persian_date
from report_intake.upload.models import FileAttachment, ValidationResult


@dataclass
class FieldValidationError:
    """Represents a validation error for a specific metadata field."""
    field_id: str
    error_message: str
    provided_value: Optional[str] = None
    allowed_values: Optional[list[str]] = None
    blocking: bool = False


@dataclass
class MetadataValidationResult:
    """Result of metadata validation with field-level details.

    Only missing required values block navigation; type errors are advisory.
    """
    valid: bool
    field_errors: list[FieldValidationError] = field(default_factory=list)

    @property
    def missing_required(self) -> list[str]:
        return [e.field_id for e in self.field_errors if e.blocking]

    def errors_by_field(self) -> dict[str, str]:
        return {e.field_id: e.error_message for e in self.field_errors}


# 1GB, effectively no limit
MAX_FILE_SIZE = 1024 * 1024 * 1024


def is_blank(value: Any) -> bool:
    """Whether a metadata value counts as empty for the required check."""
    if value is None:
        return True
    return str(value).strip() == ""


class FileValidator:
    """Validates attachments before they are placed in a bundle slot."""

    def __init__(self, max_file_size: int = MAX_FILE_SIZE):
        self.max_file_size = max_file_size

    def validate(
        self,
        attachment: FileAttachment,
        accepted_types: Optional[tuple[str, ...]] = None,
    ) -> ValidationResult:
        """Validate an attachment.

        Args:
            attachment: File to validate
            accepted_types: Accepted extensions (e.g., ``.pdf``); any if empty

        Returns:
            ValidationResult with validation status and details
        """
        if accepted_types and attachment.extension not in {t.lower() for t in accepted_types}:
            return ValidationResult(
                valid=False,
                error_code=415,
                error_message=f"File type must be one of: {', '.join(accepted_types)}",
                file_size=attachment.size,
                content_type=attachment.content_type,
            )

        if attachment.size > self.max_file_size:
            return ValidationResult(
                valid=False,
                error_code=413,
                error_message="Selected file is too large.",
                file_size=attachment.size,
                content_type=attachment.content_type,
            )

        return ValidationResult(
            valid=True,
            file_size=attachment.size,
            content_type=attachment.content_type,
        )


class MetadataValidator:
    """Validates Describe-step metadata against a report type's form fields."""

    def validate_field(self, form_field: FormField, value: Any) -> Optional[FieldValidationError]:
        """Validate a single field value.

        Args:
            form_field: Field descriptor
            value: Entered value (may be None)

        Returns:
            FieldValidationError if invalid, None if valid
        """
        if is_blank(value):
            if form_field.required:
                return FieldValidationError(
                    field_id=form_field.id,
                    error_message=f"{form_field.label} is required",
                    blocking=True,
                )
            return None

        text = str(value).strip()

        if form_field.type == FieldType.NUMBER and not self._is_number(text):
            return FieldValidationError(
                field_id=form_field.id,
                error_message=f"{form_field.label} must be a valid number",
                provided_value=text,
            )

        if form_field.type == FieldType.DATE and not self._is_valid_date(text):
            return FieldValidationError(
                field_id=form_field.id,
                error_message=f"{form_field.label} must be a valid date",
                provided_value=text,
            )

        if form_field.type == FieldType.SELECT and form_field.options and text not in form_field.options:
            return FieldValidationError(
                field_id=form_field.id,
                error_message=f"{form_field.label} must be one of: {', '.join(form_field.options)}",
                provided_value=text,
                allowed_values=list(form_field.options),
            )

        return None

    def validate(self, report_type: ReportType, metadata: dict[str, Any]) -> MetadataValidationResult:
        """Validate all fields of a report type.

        Args:
            report_type: Report type whose form fields apply
            metadata: Entered values keyed by field id

        Returns:
            MetadataValidationResult, valid unless a required value is missing
        """
        field_errors = []
        for form_field in report_type.form_fields:
            error = self.validate_field(form_field, metadata.get(form_field.id))
            if error is not None:
                field_errors.append(error)

        return MetadataValidationResult(
            valid=not any(e.blocking for e in field_errors),
            field_errors=field_errors,
        )

    def _is_number(self, text: str) -> bool:
        try:
            float(text)
        except ValueError:
            return False
        return True

    def _is_valid_date(self, text: str) -> bool:
        """Accept ISO ``YYYY-MM-DD`` Gregorian dates or ``YYYY/MM/DD`` Persian dates."""
        if "/" in text:
            return is_valid_persian_date(text)
        try:
            date.fromisoformat(text)
        except ValueError:
            return False
        return True
