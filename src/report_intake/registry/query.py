"""Filtering and sorting of uploaded-file records for the file list.

Date bounds are Persian calendar ``YYYY/MM/DD`` strings; each record's upload
timestamp is converted to the same form and compared lexicographically, both
bounds inclusive.
"""

from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field

from report_intake.core.config import DEFAULT_TIMEZONE
from report_intake.models.catalog import ReferenceCatalog
from report_intake.registry.calendar import (
    is_valid_persian_date,
    normalize_persian_date,
    to_persian_date,
)
from report_intake.upload.models import AnalysisStatus, FileRecord


class SortKey(str, Enum):
    """Columns the file list can be sorted by."""
    UPLOAD_DATE = "uploadDate"
    FILE_NAME = "fileName"
    COMPANY_NAME = "companyName"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class FileQuery(BaseModel):
    """Filter and sort criteria applied to the file list."""

    model_config = {"frozen": True}

    name_contains: str = Field(default="", description="Case-insensitive substring of the file name")
    company_id: Optional[str] = Field(None, description="Exact company filter")
    report_type_id: Optional[str] = Field(None, description="Exact report type filter")
    status: Optional[AnalysisStatus] = Field(None, description="Exact analysis status filter")
    date_from: Optional[str] = Field(None, description="Inclusive lower bound, Persian YYYY/MM/DD")
    date_to: Optional[str] = Field(None, description="Inclusive upper bound, Persian YYYY/MM/DD")
    sort_key: SortKey = Field(default=SortKey.UPLOAD_DATE, description="Sort column")
    sort_direction: SortDirection = Field(default=SortDirection.DESC, description="Sort direction")


def _bound(text: Optional[str]) -> Optional[str]:
    if not text or not text.strip():
        return None
    # Zero-pad valid dates so 1402/3/1 compares like 1402/03/01
    if is_valid_persian_date(text):
        return normalize_persian_date(text)
    return text.strip()


def filter_and_sort(
    records: list[FileRecord],
    query: FileQuery,
    company_name: Optional[Callable[[str], str]] = None,
    tz: Optional[str] = DEFAULT_TIMEZONE,
) -> list[FileRecord]:
    """Apply a FileQuery to a list of records.

    Pure function: the input list is not modified and nothing is cached.

    Args:
        records: Records to filter
        query: Filter and sort criteria
        company_name: Resolves a company id to its display name
        tz: Time zone used to convert aware timestamps to Persian dates

    Returns:
        New list of matching records in the requested order
    """
    resolve_name = company_name or (lambda company_id: "")
    matches = list(records)

    # Apply filters
    if query.name_contains:
        needle = query.name_contains.lower()
        matches = [r for r in matches if needle in r.file_name.lower()]

    if query.company_id:
        matches = [r for r in matches if r.company_id == query.company_id]

    if query.report_type_id:
        matches = [r for r in matches if r.report_type_id == query.report_type_id]

    if query.status:
        matches = [r for r in matches if r.analysis_status == query.status]

    date_from = _bound(query.date_from)
    date_to = _bound(query.date_to)
    if date_from or date_to:
        dated = []
        for record in matches:
            persian = to_persian_date(record.upload_date, tz)
            if date_from and persian < date_from:
                continue
            if date_to and persian > date_to:
                continue
            dated.append(record)
        matches = dated

    # sorted() is stable, also with reverse=True
    reverse = query.sort_direction == SortDirection.DESC
    if query.sort_key == SortKey.FILE_NAME:
        return sorted(matches, key=lambda r: r.file_name.casefold(), reverse=reverse)
    if query.sort_key == SortKey.COMPANY_NAME:
        return sorted(
            matches,
            key=lambda r: (resolve_name(r.company_id) or "").casefold(),
            reverse=reverse,
        )
    return sorted(matches, key=lambda r: r.upload_date.timestamp(), reverse=reverse)


class FileRegistryQuery:
    """Query engine bound to a reference catalog and display time zone."""

    def __init__(
        self,
        catalog: Optional[ReferenceCatalog] = None,
        tz: Optional[str] = DEFAULT_TIMEZONE,
    ):
        self.catalog = catalog or ReferenceCatalog()
        self.tz = tz

    def apply(self, records: list[FileRecord], query: Optional[FileQuery] = None) -> list[FileRecord]:
        return filter_and_sort(
            records,
            query or FileQuery(),
            company_name=self.catalog.company_name,
            tz=self.tz,
        )

    def persian_date(self, record: FileRecord) -> str:
        return to_persian_date(record.upload_date, self.tz)
