"""Tests for the in-memory file registry."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from report_intake.core import ApiError
from report_intake.registry.query import FileQuery, SortKey
from report_intake.registry.store import (
    COMPLETION_SUMMARY,
    FileRegistry,
    format_file_size,
    status_label,
)
from report_intake.upload.models import (
    AnalysisResult,
    AnalysisStatus,
    BundleSlot,
    FileRecord,
    OutcomeStatus,
    SubmissionResult,
    UploadOutcome,
)


def make_record(record_id: str, file_name: str = "report.pdf", status=AnalysisStatus.PENDING) -> FileRecord:
    return FileRecord(
        id=record_id,
        file_name=file_name,
        company_id="1",
        report_type_id="1",
        upload_date=datetime(2023, 7, 23, 8, 0, tzinfo=timezone.utc),
        analysis_status=status,
    )


def succeeded(index: int, record: FileRecord) -> UploadOutcome:
    return UploadOutcome(
        index=index,
        status=OutcomeStatus.SUCCEEDED,
        file_name=record.file_name,
        slot=BundleSlot.PRIMARY,
        file_id=record.id,
        status_synced=True,
        record=record,
    )


def failed(index: int, file_name: str) -> UploadOutcome:
    return UploadOutcome(
        index=index,
        status=OutcomeStatus.FAILED,
        file_name=file_name,
        slot=BundleSlot.SECONDARY,
        error="Network error",
    )


class TestFormatting:
    """Tests for display helpers."""

    @pytest.mark.parametrize("size,expected", [
        (0, "0 Bytes"),
        (500, "500 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (1048576, "1 MB"),
        (5 * 1024 ** 3, "5 GB"),
        (3 * 1024 ** 4, "3072 GB"),
    ])
    def test_format_file_size(self, size, expected):
        assert format_file_size(size) == expected

    def test_status_labels(self):
        assert status_label(AnalysisStatus.PENDING) == "در انتظار"
        assert status_label(AnalysisStatus.PROCESSING) == "در حال پردازش"
        assert status_label("completed") == "تکمیل شده"
        assert status_label(AnalysisStatus.FAILED) == "ناموفق"


class TestFileRegistry:
    """Tests for FileRegistry."""

    @pytest.fixture
    def registry(self):
        return FileRegistry(records=[make_record("old-1"), make_record("old-2")])

    def test_add_submission_prepends_succeeded_records(self, registry):
        result = SubmissionResult(outcomes=[
            succeeded(0, make_record("new-1", "a.pdf")),
            failed(1, "b.xlsx"),
            succeeded(2, make_record("new-2", "c.pdf")),
        ])

        added = registry.add_submission(result)

        assert [r.id for r in added] == ["new-1", "new-2"]
        assert [r.id for r in registry.records] == ["new-2", "new-1", "old-1", "old-2"]

    def test_add_submission_ignores_known_ids(self, registry):
        result = SubmissionResult(outcomes=[succeeded(0, make_record("old-1"))])
        assert registry.add_submission(result) == []
        assert len(registry) == 2

    def test_apply_status_event(self, registry):
        analysis = AnalysisResult(summary="ok", insights=["fine"], confidence=0.8)

        updated = registry.apply_status_event("old-2", AnalysisStatus.COMPLETED, analysis)

        assert updated.analysis_status == AnalysisStatus.COMPLETED
        assert registry.get("old-2").analysis_result.summary == "ok"
        assert registry.get("old-1").analysis_status == AnalysisStatus.PENDING

    def test_apply_status_event_unknown_id(self, registry):
        assert registry.apply_status_event("missing", AnalysisStatus.FAILED) is None

    def test_status_counts(self, registry):
        registry.apply_status_event("old-1", AnalysisStatus.PROCESSING)
        counts = registry.status_counts()
        assert counts == {
            AnalysisStatus.PENDING: 1,
            AnalysisStatus.PROCESSING: 1,
            AnalysisStatus.COMPLETED: 0,
            AnalysisStatus.FAILED: 0,
        }

    @pytest.mark.asyncio
    async def test_mark_completed(self, registry):
        client = MagicMock()
        client.update_file_analysis = AsyncMock(return_value={"success": True})

        updated = await registry.mark_completed(client, "old-1")

        client.update_file_analysis.assert_awaited_once()
        file_id, status, payload = client.update_file_analysis.await_args.args
        assert file_id == "old-1"
        assert status == AnalysisStatus.COMPLETED
        assert payload.summary == COMPLETION_SUMMARY
        assert payload.confidence == 0.95
        assert updated.analysis_status == AnalysisStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_mark_completed_failure_leaves_record(self, registry):
        client = MagicMock()
        client.update_file_analysis = AsyncMock(side_effect=ApiError("File not found", status_code=404))

        with pytest.raises(ApiError):
            await registry.mark_completed(client, "old-1")

        assert registry.get("old-1").analysis_status == AnalysisStatus.PENDING

    @pytest.mark.asyncio
    async def test_load_replaces_records(self, registry):
        client = MagicMock()
        client.list_files = AsyncMock(return_value=[make_record("srv-1")])

        count = await registry.load(client, company_id="1")

        assert count == 1
        assert [r.id for r in registry.records] == ["srv-1"]
        client.list_files.assert_awaited_once_with(company_id="1")

    def test_update_query_and_view(self, registry):
        registry.add_submission(SubmissionResult(outcomes=[succeeded(0, make_record("n", "Zeta.pdf"))]))

        query = registry.update_query(sort_key="fileName", sort_direction="asc")

        assert query.sort_key == SortKey.FILE_NAME
        assert registry.query is query
        assert [r.file_name for r in registry.view()] == ["report.pdf", "report.pdf", "Zeta.pdf"]

        registry.update_query(name_contains="zeta")
        assert [r.id for r in registry.view()] == ["n"]
        assert registry.query.sort_key == SortKey.FILE_NAME

    def test_view_with_explicit_query_leaves_applied_query(self, registry):
        registry.view(FileQuery(name_contains="nothing"))
        assert registry.query == FileQuery()
