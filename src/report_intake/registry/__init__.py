"""Uploaded-file registry and its Persian-calendar query engine."""

from report_intake.registry.calendar import (
    to_persian_date,
    parse_persian_date,
    normalize_persian_date,
    is_valid_persian_date,
)
from report_intake.registry.query import (
    FileQuery,
    FileRegistryQuery,
    SortDirection,
    SortKey,
    filter_and_sort,
)
from report_intake.registry.store import FileRegistry, format_file_size, status_label, STATUS_LABELS

__all__ = [
    "to_persian_date",
    "parse_persian_date",
    "normalize_persian_date",
    "is_valid_persian_date",
    "FileQuery",
    "FileRegistryQuery",
    "SortDirection",
    "SortKey",
    "filter_and_sort",
    "FileRegistry",
    "format_file_size",
    "status_label",
    "STATUS_LABELS",
]
