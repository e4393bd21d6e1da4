"""Tests for attachment and metadata validation.

- Accepted extensions per report type
- Size limit
- Required metadata values (blocking) and type checks (advisory)
"""

import pytest

from report_intake.models.report_type import FieldType, FormField, REPORT_TYPES
from report_intake.upload.models import FileAttachment
from report_intake.upload.validator import (
    FileValidator,
    MetadataValidator,
    MAX_FILE_SIZE,
    is_blank,
)


class TestFileValidator:
    """Tests for FileValidator class."""

    @pytest.fixture
    def validator(self):
        return FileValidator()

    def test_accepted_extension(self, validator):
        result = validator.validate(FileAttachment("fs-1402.PDF", b"%PDF-1.4"), (".pdf", ".xlsx"))

        assert result.valid is True
        assert result.file_size == 8
        assert result.content_type == "application/pdf"

    def test_rejected_extension(self, validator):
        result = validator.validate(FileAttachment("notes.docx", b"x"), (".pdf", ".xlsx", ".xls"))

        assert result.valid is False
        assert result.error_code == 415
        assert result.error_message == "File type must be one of: .pdf, .xlsx, .xls"

    def test_any_extension_when_unrestricted(self, validator):
        assert validator.validate(FileAttachment("data.csv", b"a,b"), ()).valid is True

    def test_size_limit(self):
        validator = FileValidator(max_file_size=3)

        assert validator.validate(FileAttachment("a.pdf", b"123"), (".pdf",)).valid is True
        result = validator.validate(FileAttachment("a.pdf", b"1234"), (".pdf",))
        assert result.valid is False
        assert result.error_code == 413

    def test_default_limit_is_one_gibibyte(self):
        assert MAX_FILE_SIZE == 1024 ** 3


class TestMetadataValidator:
    """Tests for MetadataValidator class."""

    @pytest.fixture
    def validator(self):
        return MetadataValidator()

    @pytest.mark.parametrize("value,blank", [
        (None, True), ("", True), ("   ", True), (0, False), ("0", False), ("۱۴۰۲", False),
    ])
    def test_is_blank(self, value, blank):
        assert is_blank(value) is blank

    def test_missing_required_is_blocking(self, validator):
        result = validator.validate(REPORT_TYPES["2"], {"year": "1402"})

        assert result.valid is False
        assert result.missing_required == ["ragAlgorithm"]

    def test_all_required_present(self, validator):
        result = validator.validate(REPORT_TYPES["2"], {"ragAlgorithm": "BM25", "year": "1402"})
        assert result.valid is True
        assert result.field_errors == []

    def test_number_error_is_advisory(self, validator):
        result = validator.validate(REPORT_TYPES["2"], {"ragAlgorithm": "BM25", "year": "abc"})

        assert result.valid is True
        assert result.errors_by_field() == {"year": "سال must be a valid number"}
        assert result.field_errors[0].blocking is False

    def test_select_option_membership(self, validator):
        result = validator.validate(REPORT_TYPES["1"], {
            "period": "ماهانه",
            "year": "1402",
            "currency": "ریال",
        })

        assert result.valid is True
        error = result.field_errors[0]
        assert error.field_id == "period"
        assert error.provided_value == "ماهانه"
        assert "سالانه" in error.allowed_values

    @pytest.mark.parametrize("value,valid", [
        ("2024-03-19", True),
        ("1402/12/29", True),
        ("۱۴۰۲/۰۱/۰۱", True),
        ("2024-02-30", False),
        ("1402/13/01", False),
        ("yesterday", False),
    ])
    def test_date_field(self, validator, value, valid):
        form_field = FormField(id="complianceDate", label="تاریخ انطباق", type=FieldType.DATE, required=True)
        error = validator.validate_field(form_field, value)
        assert (error is None) is valid

    def test_optional_blank_field_is_valid(self, validator):
        form_field = FormField(id="notes", label="یادداشت", type=FieldType.TEXTAREA)
        assert validator.validate_field(form_field, "") is None
