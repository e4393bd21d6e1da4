"""Report type descriptors and their metadata form fields."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class FieldType(str, Enum):
    """Semantic type of a metadata form field."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"
    TEXTAREA = "textarea"


class AttachmentLayout(str, Enum):
    """How files are attached for a report type.

    SINGLE_FILE: one file in the primary slot, uploaded as-is.
    MULTI_SLOT: one bundle with primary/secondary/tertiary slots.
    MULTI_YEAR: one bundle per fiscal year label.
    """

    SINGLE_FILE = "single_file"
    MULTI_SLOT = "multi_slot"
    MULTI_YEAR = "multi_year"


class FormField(BaseModel):
    """Descriptor of one metadata field collected in the Describe step."""

    model_config = {"frozen": True}

    id: str = Field(..., description="Field identifier used as the metadata key")
    label: str = Field(..., description="Human readable label")
    type: FieldType = Field(..., description="Semantic field type")
    required: bool = Field(default=False, description="Whether a value is mandatory")
    options: tuple[str, ...] = Field(default=(), description="Allowed values for select fields")
    placeholder: Optional[str] = Field(None, description="Input placeholder")


class ReportType(BaseModel):
    """Immutable descriptor of a report type."""

    model_config = {"frozen": True}

    id: str = Field(..., description="Unique identifier for the report type")
    name: str = Field(..., description="Display name")
    description: str = Field(default="", description="Short description")
    accepted_file_types: tuple[str, ...] = Field(..., description="Accepted extensions (e.g., .pdf)")
    form_fields: tuple[FormField, ...] = Field(default=(), description="Ordered metadata fields")
    layout: AttachmentLayout = Field(
        default=AttachmentLayout.MULTI_SLOT, description="Attachment layout family"
    )
    disabled: bool = Field(default=False, description="Whether new submissions are blocked")

    @property
    def required_fields(self) -> list[FormField]:
        return [f for f in self.form_fields if f.required]

    def get_field(self, field_id: str) -> Optional[FormField]:
        for form_field in self.form_fields:
            if form_field.id == field_id:
                return form_field
        return None


# Pre-defined report types
REPORT_TYPES = {
    "1": ReportType(
        id="1",
        name="صورت‌های مالی",
        description="گزارش‌های مالی سالانه یا فصلی",
        accepted_file_types=(".pdf", ".xlsx", ".xls"),
        layout=AttachmentLayout.MULTI_YEAR,
        form_fields=(
            FormField(
                id="period",
                label="دوره گزارش‌دهی",
                type=FieldType.SELECT,
                required=True,
                options=("سه‌ماهه اول", "سه‌ماهه دوم", "سه‌ماهه سوم", "سه‌ماهه چهارم", "سالانه"),
            ),
            FormField(
                id="year",
                label="سال",
                type=FieldType.NUMBER,
                required=True,
                placeholder="۱۴۰۳",
            ),
            FormField(
                id="currency",
                label="واحد پول",
                type=FieldType.SELECT,
                required=True,
                options=("ریال", "دلار", "یورو", "پوند"),
            ),
        ),
    ),
    "2": ReportType(
        id="2",
        name="گزارش حسابرسی(ارزیابی عملکرد)",
        description="گزارش حسابرسی با ارزیابی عملکرد - آپلود فایل اکسل چند برگه‌ای",
        accepted_file_types=(".xlsx", ".xls"),
        layout=AttachmentLayout.SINGLE_FILE,
        form_fields=(
            FormField(
                id="ragAlgorithm",
                label="الگوریتم RAG",
                type=FieldType.SELECT,
                required=True,
                options=("Vector Search", "BM25", "Hybrid", "Semantic Search"),
            ),
            FormField(
                id="year",
                label="سال",
                type=FieldType.NUMBER,
                required=True,
                placeholder="۱۴۰۳",
            ),
        ),
    ),
    "3": ReportType(
        id="3",
        name="گزارش انطباق",
        description="انطباق مقرراتی و ارزیابی ریسک",
        accepted_file_types=(".pdf", ".xlsx", ".xls", ".docx"),
        layout=AttachmentLayout.MULTI_SLOT,
        disabled=True,
        form_fields=(
            FormField(
                id="regulation",
                label="نوع مقررات",
                type=FieldType.TEXT,
                required=True,
                placeholder="SOX، GDPR و غیره",
            ),
            FormField(
                id="complianceDate",
                label="تاریخ انطباق",
                type=FieldType.DATE,
                required=True,
            ),
            FormField(
                id="notes",
                label="یادداشت‌های اضافی",
                type=FieldType.TEXTAREA,
                required=False,
                placeholder="هر زمینه یا یادداشت اضافی...",
            ),
        ),
    ),
}
