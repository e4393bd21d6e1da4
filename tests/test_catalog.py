"""Tests for reference data: companies, report types and the catalog."""

import json

import pytest

from report_intake.core import ReferenceDataError
from report_intake.models import (
    AttachmentLayout,
    COMPANIES,
    REPORT_TYPES,
    ReferenceCatalog,
)


class TestBuiltInReferenceData:
    """Tests for the built-in companies and report types."""

    def test_companies(self):
        assert len(COMPANIES) == 14
        assert COMPANIES["1"].code == "SRM"

    def test_report_type_layouts(self):
        assert REPORT_TYPES["1"].layout == AttachmentLayout.MULTI_YEAR
        assert REPORT_TYPES["2"].layout == AttachmentLayout.SINGLE_FILE
        assert REPORT_TYPES["3"].layout == AttachmentLayout.MULTI_SLOT
        assert REPORT_TYPES["3"].disabled is True

    def test_required_fields(self):
        assert [f.id for f in REPORT_TYPES["3"].required_fields] == ["regulation", "complianceDate"]
        assert REPORT_TYPES["2"].get_field("ragAlgorithm").options[0] == "Vector Search"
        assert REPORT_TYPES["2"].get_field("missing") is None


class TestReferenceCatalog:
    """Tests for ReferenceCatalog."""

    @pytest.fixture
    def catalog_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({
            "companies": [{"id": "c1", "name": "شرکت نمونه", "code": "SMP"}],
            "report_types": [{
                "id": "r1",
                "name": "گزارش نمونه",
                "accepted_file_types": [".pdf"],
                "layout": "multi_year",
                "form_fields": [
                    {"id": "year", "label": "سال", "type": "number", "required": True},
                ],
            }],
        }, ensure_ascii=False), encoding="utf-8")
        return path

    def test_defaults(self, catalog):
        assert catalog.find_company("2").name == "فاران فارمد"
        assert catalog.find_report_type("2").accepted_file_types == (".xlsx", ".xls")
        assert catalog.company_name("404") == ""

    def test_get_unknown_report_type_raises(self, catalog):
        with pytest.raises(ReferenceDataError) as exc_info:
            catalog.get_report_type("404")
        assert exc_info.value.reference_id == "404"
        assert str(exc_info.value) == "[REFERENCE_DATA] Unknown report type: 404"

    def test_from_json(self, catalog_file):
        catalog = ReferenceCatalog.from_json(catalog_file)

        assert [c.id for c in catalog.companies] == ["c1"]
        report_type = catalog.get_report_type("r1")
        assert report_type.layout == AttachmentLayout.MULTI_YEAR
        assert report_type.required_fields[0].id == "year"

    def test_from_json_missing_file(self, tmp_path):
        with pytest.raises(ReferenceDataError) as exc_info:
            ReferenceCatalog.from_json(tmp_path / "missing.json")
        assert exc_info.value.source.endswith("missing.json")

    @pytest.mark.parametrize("content", [
        "not json",
        json.dumps({"companies": []}),
        json.dumps({"companies": [{"id": "c1"}], "report_types": []}),
    ])
    def test_from_json_malformed(self, tmp_path, content):
        path = tmp_path / "catalog.json"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(ReferenceDataError):
            ReferenceCatalog.from_json(path)
