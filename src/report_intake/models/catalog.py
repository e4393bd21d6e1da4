"""Read-only registry of companies and report types."""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from report_intake.core import get_logger, ReferenceDataError
from report_intake.models.company import Company, COMPANIES
from report_intake.models.report_type import ReportType, REPORT_TYPES

logger = get_logger(__name__)


class ReferenceCatalog:
    """Static reference data consumed by the Select and Describe guards.

    Defaults to the built-in companies and report types. A deployment can
    supply its own catalog as JSON with ``companies`` and ``report_types``
    arrays.
    """

    def __init__(
        self,
        companies: Optional[dict[str, Company]] = None,
        report_types: Optional[dict[str, ReportType]] = None,
    ):
        self._companies = dict(COMPANIES if companies is None else companies)
        self._report_types = dict(REPORT_TYPES if report_types is None else report_types)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "ReferenceCatalog":
        """Load a catalog from a JSON file.

        Args:
            path: Path of the catalog file

        Returns:
            ReferenceCatalog with the file's companies and report types

        Raises:
            ReferenceDataError: If the file is missing, not JSON, or malformed
        """
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            companies = [Company.model_validate(item) for item in raw["companies"]]
            report_types = [ReportType.model_validate(item) for item in raw["report_types"]]
        except OSError as e:
            raise ReferenceDataError(
                f"Reference catalog unavailable: {e}", source=str(path)
            ) from e
        except (ValueError, KeyError, TypeError, PydanticValidationError) as e:
            raise ReferenceDataError(
                f"Reference catalog is malformed: {e}", source=str(path)
            ) from e

        logger.info(
            "reference_catalog_loaded",
            source=str(path),
            companies=len(companies),
            report_types=len(report_types),
        )
        return cls(
            companies={c.id: c for c in companies},
            report_types={r.id: r for r in report_types},
        )

    @property
    def companies(self) -> list[Company]:
        return list(self._companies.values())

    @property
    def report_types(self) -> list[ReportType]:
        return list(self._report_types.values())

    def find_company(self, company_id: str) -> Optional[Company]:
        return self._companies.get(company_id)

    def find_report_type(self, report_type_id: str) -> Optional[ReportType]:
        return self._report_types.get(report_type_id)

    def get_report_type(self, report_type_id: str) -> ReportType:
        """Get a report type, raising if it is not in the catalog."""
        report_type = self._report_types.get(report_type_id)
        if report_type is None:
            raise ReferenceDataError(
                f"Unknown report type: {report_type_id}",
                reference_id=report_type_id,
            )
        return report_type

    def company_name(self, company_id: str) -> str:
        """Display name of a company, or an empty string if unknown."""
        company = self._companies.get(company_id)
        return company.name if company else ""
