"""In-memory registry of uploaded files.

- Loads the file list from the backend
- Adds records produced by a submission (most recent first)
- Applies analysis status transitions reported by the backend
- Serves the filtered and sorted view for the file list
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Any, Optional

from report_intake.core import get_logger
from report_intake.registry.query import FileQuery, FileRegistryQuery
from report_intake.upload.client import FileApiClient
from report_intake.upload.models import (
    AnalysisResult,
    AnalysisStatus,
    FileRecord,
    SubmissionResult,
)

logger = get_logger(__name__)

# Display labels for analysis statuses
STATUS_LABELS = {
    AnalysisStatus.PENDING: "در انتظار",
    AnalysisStatus.PROCESSING: "در حال پردازش",
    AnalysisStatus.COMPLETED: "تکمیل شده",
    AnalysisStatus.FAILED: "ناموفق",
}

COMPLETION_SUMMARY = "پردازش تکمیل شد"
COMPLETION_INSIGHTS = ("فایل با موفقیت پردازش شد",)
COMPLETION_CONFIDENCE = 0.95

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: int) -> str:
    """Human readable file size, e.g. ``0 Bytes``, ``1.5 KB``, ``2 MB``."""
    if size <= 0:
        return "0 Bytes"
    exponent = 0
    while size >= 1024 ** (exponent + 1) and exponent < len(_SIZE_UNITS) - 1:
        exponent += 1
    value = f"{size / 1024 ** exponent:.2f}".rstrip("0").rstrip(".")
    return f"{value} {_SIZE_UNITS[exponent]}"


def status_label(status: AnalysisStatus) -> str:
    return STATUS_LABELS.get(AnalysisStatus(status), str(status))


class FileRegistry:
    """Holds the file records shown in the file list.

    A record is created by a successful upload and afterwards changed only by
    analysis status transitions.
    """

    def __init__(
        self,
        query_engine: Optional[FileRegistryQuery] = None,
        records: Optional[list[FileRecord]] = None,
    ):
        self.query_engine = query_engine or FileRegistryQuery()
        self._records: list[FileRecord] = list(records or [])
        self._query = FileQuery()

    @property
    def records(self) -> list[FileRecord]:
        return list(self._records)

    @property
    def query(self) -> FileQuery:
        """The currently applied filter and sort criteria."""
        return self._query

    def __len__(self) -> int:
        return len(self._records)

    def get(self, file_id: str) -> Optional[FileRecord]:
        for record in self._records:
            if record.id == file_id:
                return record
        return None

    async def load(self, client: FileApiClient, **filters: Any) -> int:
        """Replace the registry contents with the backend's file list.

        Args:
            client: File API client
            **filters: Server-side filters passed to ``list_files``

        Returns:
            Number of records loaded
        """
        self._records = await client.list_files(**filters)
        logger.info("file_registry_loaded", count=len(self._records))
        return len(self._records)

    def add_submission(self, result: SubmissionResult) -> list[FileRecord]:
        """Add the records of a submission's succeeded outcomes.

        Returns:
            The records added, in upload order
        """
        added = result.records
        known = {record.id for record in self._records}
        new = [record for record in added if record.id not in known]
        # Newest uploads are listed first
        self._records = list(reversed(new)) + self._records
        logger.info("file_registry_submission_added", added=len(new), total=len(self._records))
        return new

    def apply_status_event(
        self,
        file_id: str,
        status: AnalysisStatus,
        analysis_result: Optional[AnalysisResult] = None,
    ) -> Optional[FileRecord]:
        """Apply an analysis status transition to a record.

        Returns:
            The updated record, or None if the id is unknown
        """
        for position, record in enumerate(self._records):
            if record.id != file_id:
                continue
            changes: dict[str, Any] = {"analysis_status": AnalysisStatus(status)}
            if analysis_result is not None:
                changes["analysis_result"] = analysis_result
            updated = record.model_copy(update=changes)
            self._records[position] = updated
            logger.info(
                "file_status_applied",
                file_id=file_id,
                from_status=record.analysis_status.value,
                to_status=updated.analysis_status.value,
            )
            return updated

        logger.warning("file_status_event_unknown_file", file_id=file_id, status=AnalysisStatus(status).value)
        return None

    async def mark_completed(self, client: FileApiClient, file_id: str) -> Optional[FileRecord]:
        """Mark a file as completed on the backend and locally."""
        result = AnalysisResult(
            summary=COMPLETION_SUMMARY,
            insights=list(COMPLETION_INSIGHTS),
            confidence=COMPLETION_CONFIDENCE,
            processed_at=datetime.now(timezone.utc),
        )
        await client.update_file_analysis(file_id, AnalysisStatus.COMPLETED, result)
        return self.apply_status_event(file_id, AnalysisStatus.COMPLETED, result)

    def status_counts(self) -> dict[AnalysisStatus, int]:
        counts = Counter(record.analysis_status for record in self._records)
        return {status: counts.get(status, 0) for status in AnalysisStatus}

    def update_query(self, **changes: Any) -> FileQuery:
        """Replace fields of the applied query and return the new one."""
        self._query = FileQuery.model_validate({**self._query.model_dump(), **changes})
        return self._query

    def view(self, query: Optional[FileQuery] = None) -> list[FileRecord]:
        """Filtered and sorted records, recomputed on every call."""
        return self.query_engine.apply(self._records, query or self._query)
