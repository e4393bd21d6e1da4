"""Sequential upload of a submission draft.

- Linearizes a draft into individual upload units
- Uploads units one at a time, in order
- Marks each stored file as processing before moving on
- Records per-unit failures without aborting the remaining units
"""

from collections import deque
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from report_intake.core import get_logger, categorize_error
from report_intake.models.report_type import AttachmentLayout
from report_intake.upload.client import FileApiClient
from report_intake.upload.models import (
    AnalysisStatus,
    BundleSlot,
    FileBundle,
    FileRecord,
    OutcomeStatus,
    SubmissionResult,
    UploadOutcome,
    UploadReceipt,
    UploadUnit,
)

if TYPE_CHECKING:
    from report_intake.wizard.draft import SubmissionDraft

logger = get_logger(__name__)

# Metadata keys the backend reads for per-file tags
SLOT_LABEL_KEY = "fileType"
YEAR_KEY = "year"

OutcomeCallback = Callable[[UploadOutcome], Union[None, Awaitable[None]]]


def linearize(draft: "SubmissionDraft") -> list[UploadUnit]:
    """Turn a draft into the ordered list of upload units.

    - single_file: the primary file only, metadata as-is
    - multi_slot: each filled slot (primary, secondary, tertiary), tagged with its slot label
    - multi_year: per year in list order, each filled slot, tagged with slot label and year
    """
    units: list[UploadUnit] = []

    if draft.is_multi_year:
        for year, bundle in draft.attachments.years.ordered_bundles():
            units.extend(_bundle_units(bundle, draft.metadata, len(units), year=year))
        return units

    bundle = draft.attachments.bundle
    if draft.layout == AttachmentLayout.SINGLE_FILE:
        if bundle.primary is not None:
            units.append(
                UploadUnit(
                    index=0,
                    attachment=bundle.primary,
                    slot=BundleSlot.PRIMARY,
                    metadata=dict(draft.metadata),
                )
            )
        return units

    return _bundle_units(bundle, draft.metadata, 0)


def _bundle_units(
    bundle: FileBundle,
    metadata: dict[str, Any],
    start_index: int,
    year: Optional[str] = None,
) -> list[UploadUnit]:
    units = []
    for offset, (slot, attachment) in enumerate(bundle.filled_slots()):
        unit_metadata = dict(metadata)
        if year is not None:
            unit_metadata[YEAR_KEY] = year
        unit_metadata[SLOT_LABEL_KEY] = slot.label
        units.append(
            UploadUnit(
                index=start_index + offset,
                attachment=attachment,
                slot=slot,
                metadata=unit_metadata,
                slot_label=slot.label,
                year=year,
            )
        )
    return units


class UploadOrchestrator:
    """Executes the upload units of a draft against the file API.

    Units are consumed from an ordered queue by a single loop; each upload and
    its status transition finish before the next unit starts. The result is
    returned once every unit has been attempted exactly once.
    """

    def __init__(self, client: Optional[FileApiClient] = None):
        """Initialize the orchestrator.

        Args:
            client: File API client (defaults to one configured from the environment)
        """
        self.client = client or FileApiClient()

    def plan(self, draft: "SubmissionDraft") -> list[UploadUnit]:
        return linearize(draft)

    async def run(
        self,
        draft: "SubmissionDraft",
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> SubmissionResult:
        """Upload every unit of a ready draft.

        Args:
            draft: Draft that passed the readiness check; read, never modified
            on_outcome: Optional callback invoked with each outcome as it is recorded

        Returns:
            SubmissionResult with one outcome per unit in linearization order
        """
        units = self.plan(draft)
        outcomes: list[Optional[UploadOutcome]] = [None] * len(units)
        queue = deque(units)

        logger.info(
            "submission_started",
            company_id=draft.company_id,
            report_type_id=draft.report_type_id,
            units=len(units),
        )

        while queue:
            unit = queue.popleft()
            outcome = await self._run_unit(draft, unit)
            outcomes[unit.index] = outcome
            if on_outcome is not None:
                await self._notify(on_outcome, outcome)

        result = SubmissionResult(outcomes=[o for o in outcomes if o is not None])

        logger.info(
            "submission_finished",
            company_id=draft.company_id,
            report_type_id=draft.report_type_id,
            total=result.total,
            succeeded=result.succeeded_count,
            failed=result.failed_count,
        )
        return result

    async def _notify(self, on_outcome: OutcomeCallback, outcome: UploadOutcome) -> None:
        try:
            notified = on_outcome(outcome)
            if notified is not None:
                await notified
        except Exception as e:
            # Remaining units are still uploaded
            logger.error(
                "outcome_callback_failed",
                index=outcome.index,
                file_name=outcome.file_name,
                error=str(e),
            )

    async def _run_unit(self, draft: "SubmissionDraft", unit: UploadUnit) -> UploadOutcome:
        try:
            receipt = await self.client.upload_file(
                unit.attachment,
                draft.company_id,
                draft.report_type_id,
                unit.metadata,
            )
        except Exception as e:
            category = categorize_error(e)
            logger.warning(
                "upload_unit_failed",
                index=unit.index,
                file_name=unit.attachment.name,
                slot=unit.slot.value,
                year=unit.year,
                error=str(e),
                category=category.value,
            )
            return UploadOutcome(
                index=unit.index,
                status=OutcomeStatus.FAILED,
                file_name=unit.attachment.name,
                slot=unit.slot,
                slot_label=unit.slot_label,
                year=unit.year,
                error=str(e),
                error_category=category.value,
            )

        status_synced = True
        try:
            await self.client.update_file_analysis(receipt.id, AnalysisStatus.PROCESSING)
        except Exception as e:
            # The file is stored; a missed transition leaves it pending on the backend.
            status_synced = False
            logger.warning(
                "processing_transition_failed",
                file_id=receipt.id,
                index=unit.index,
                error=str(e),
            )

        return UploadOutcome(
            index=unit.index,
            status=OutcomeStatus.SUCCEEDED,
            file_name=unit.attachment.name,
            slot=unit.slot,
            slot_label=unit.slot_label,
            year=unit.year,
            file_id=receipt.id,
            status_synced=status_synced,
            record=self._to_record(draft, unit, receipt, status_synced),
        )

    def _to_record(
        self,
        draft: "SubmissionDraft",
        unit: UploadUnit,
        receipt: UploadReceipt,
        status_synced: bool,
    ) -> FileRecord:
        form_data = dict(receipt.form_data or unit.metadata)
        if unit.year is not None:
            form_data[YEAR_KEY] = unit.year
        return FileRecord(
            id=receipt.id,
            file_name=receipt.stored_name or unit.attachment.name,
            file_type=receipt.declared_type or unit.attachment.content_type,
            file_size=receipt.byte_size or unit.attachment.size,
            company_id=draft.company_id,
            report_type_id=draft.report_type_id,
            upload_date=receipt.upload_timestamp,
            analysis_status=AnalysisStatus.PROCESSING if status_synced else AnalysisStatus.PENDING,
            form_data=form_data,
        )
