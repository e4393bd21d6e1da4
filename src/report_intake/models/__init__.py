"""Reference data models for the report intake core."""

from report_intake.models.company import Company, COMPANIES
from report_intake.models.report_type import (
    AttachmentLayout,
    FieldType,
    FormField,
    ReportType,
    REPORT_TYPES,
)
from report_intake.models.catalog import ReferenceCatalog

__all__ = [
    "Company",
    "COMPANIES",
    "AttachmentLayout",
    "FieldType",
    "FormField",
    "ReportType",
    "REPORT_TYPES",
    "ReferenceCatalog",
]
