"""Multi-step submission wizard.

Steps: select -> attach -> describe -> review -> submitting.

- Forward transitions are guarded; a refused transition returns a GuardResult
  naming the unmet conditions and leaves the state untouched
- Backward navigation is allowed from any non-terminal step and discards nothing
- Entering submitting hands the draft to the UploadOrchestrator exactly once
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from report_intake.core import get_logger, WizardStateError
from report_intake.models.catalog import ReferenceCatalog
from report_intake.models.report_type import AttachmentLayout, ReportType
from report_intake.upload.models import (
    BundleSlot,
    FileAttachment,
    FileBundle,
    SubmissionResult,
    ValidationResult,
)
from report_intake.upload.orchestrator import OutcomeCallback, UploadOrchestrator
from report_intake.upload.validator import FileValidator, MetadataValidator, is_blank
from report_intake.wizard.draft import DraftSnapshot, SubmissionDraft

logger = get_logger(__name__)


class WizardStep(str, Enum):
    """Wizard steps in navigation order."""
    SELECT = "select"
    ATTACH = "attach"
    DESCRIBE = "describe"
    REVIEW = "review"
    SUBMITTING = "submitting"


STEP_ORDER = (
    WizardStep.SELECT,
    WizardStep.ATTACH,
    WizardStep.DESCRIBE,
    WizardStep.REVIEW,
    WizardStep.SUBMITTING,
)

# Unmet condition names reported by the guards
COMPANY_SELECTED = "company_selected"
COMPANY_KNOWN = "company_known"
REPORT_TYPE_SELECTED = "report_type_selected"
REPORT_TYPE_KNOWN = "report_type_known"
REPORT_TYPE_ENABLED = "report_type_enabled"
ATTACHMENTS_READY = "attachments_ready"
REQUIRED_FIELD_PREFIX = "required_field:"


@dataclass
class GuardResult:
    """Outcome of a transition guard."""
    passed: bool
    unmet: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.passed


class WizardController:
    """Owns the submission draft and drives it through the wizard steps.

    The draft is mutated only through this controller; the UI layer gets a
    read-only ``snapshot()`` and the orchestrator only reads the draft.
    """

    def __init__(
        self,
        catalog: Optional[ReferenceCatalog] = None,
        orchestrator: Optional[UploadOrchestrator] = None,
        file_validator: Optional[FileValidator] = None,
        metadata_validator: Optional[MetadataValidator] = None,
    ):
        """Initialize the controller.

        Args:
            catalog: Company and report-type reference data
            orchestrator: Upload orchestrator used on submit
            file_validator: Attachment validator used by ``attach_file``
            metadata_validator: Describe-step field validator
        """
        self.catalog = catalog or ReferenceCatalog()
        self.orchestrator = orchestrator or UploadOrchestrator()
        self.file_validator = file_validator or FileValidator()
        self.metadata_validator = metadata_validator or MetadataValidator()

        self._step = WizardStep.SELECT
        self._company_id = ""
        self._report_type_id = ""
        self._draft: Optional[SubmissionDraft] = None
        self._field_errors: dict[str, str] = {}
        self._result: Optional[SubmissionResult] = None
        self._running = False

    @property
    def step(self) -> WizardStep:
        return self._step

    @property
    def company_id(self) -> str:
        return self._company_id

    @property
    def report_type_id(self) -> str:
        return self._report_type_id

    @property
    def draft(self) -> Optional[SubmissionDraft]:
        return self._draft

    @property
    def result(self) -> Optional[SubmissionResult]:
        return self._result

    @property
    def field_errors(self) -> dict[str, str]:
        return dict(self._field_errors)

    # Select step

    def select_company(self, company_id: str) -> None:
        self._require_step(WizardStep.SELECT, "select_company")
        self._company_id = company_id or ""

    def select_report_type(self, report_type_id: str) -> None:
        self._require_step(WizardStep.SELECT, "select_report_type")
        self._report_type_id = report_type_id or ""

    # Navigation

    def can_advance(self) -> GuardResult:
        """Evaluate the guard of the transition out of the current step."""
        if self._step == WizardStep.SELECT:
            return self._select_guard()
        if self._step == WizardStep.ATTACH:
            return self._readiness_guard()
        if self._step == WizardStep.DESCRIBE:
            return self._describe_guard()
        if self._step == WizardStep.REVIEW:
            return self._readiness_guard()
        return GuardResult(passed=False)

    def advance(self) -> GuardResult:
        """Move to the next step if its guard passes.

        Submitting is entered through ``submit()``, not here.

        Raises:
            WizardStateError: If called at the review or submitting step
        """
        if self._step in (WizardStep.REVIEW, WizardStep.SUBMITTING):
            raise WizardStateError(
                "Use submit() to leave the review step",
                step=self._step.value,
                operation="advance",
            )

        if self._step == WizardStep.DESCRIBE:
            self._record_all_field_errors()

        guard = self.can_advance()
        if not guard:
            logger.info("wizard_transition_refused", step=self._step.value, unmet=guard.unmet)
            return guard

        if self._step == WizardStep.SELECT:
            self._enter_attach()
        self._move_to(STEP_ORDER[STEP_ORDER.index(self._step) + 1])
        return guard

    def back(self) -> WizardStep:
        """Go one step back. At the select step this is a no-op."""
        self._require_not_terminal("back")
        index = STEP_ORDER.index(self._step)
        if index > 0:
            self._move_to(STEP_ORDER[index - 1])
        return self._step

    def back_to(self, step: WizardStep) -> WizardStep:
        """Jump back to an earlier (or the current) step."""
        self._require_not_terminal("back_to")
        step = WizardStep(step)
        if STEP_ORDER.index(step) > STEP_ORDER.index(self._step):
            raise WizardStateError(
                f"Cannot jump forward to {step.value}",
                step=self._step.value,
                operation="back_to",
            )
        if step != self._step:
            self._move_to(step)
        return self._step

    # Attach step

    def set_year_count(self, count: int) -> int:
        draft = self._require_draft("set_year_count")
        if not draft.is_multi_year:
            raise WizardStateError(
                "Report type does not group files by year",
                step=self._step.value,
                operation="set_year_count",
            )
        return draft.attachments.years.set_year_count(count)

    def rename_year(self, index: int, label: str) -> None:
        draft = self._require_draft("rename_year")
        if not draft.is_multi_year:
            raise WizardStateError(
                "Report type does not group files by year",
                step=self._step.value,
                operation="rename_year",
            )
        years = draft.attachments.years
        if not 0 <= index < years.year_count:
            raise WizardStateError(
                f"No year at position {index}",
                step=self._step.value,
                operation="rename_year",
            )
        years.rename_year(index, label.strip())

    def attach_file(
        self,
        slot: BundleSlot,
        attachment: FileAttachment,
        year: Optional[str] = None,
    ) -> ValidationResult:
        """Validate an attachment and place it in a slot.

        Invalid attachments are refused and the slot is left unchanged.

        Args:
            slot: Target bundle slot
            attachment: File to attach
            year: Year label (multi-year report types only)

        Returns:
            ValidationResult of the attachment check
        """
        draft = self._require_draft("attach_file")
        report_type = self.catalog.get_report_type(draft.report_type_id)

        validation = self.file_validator.validate(attachment, report_type.accepted_file_types)
        if not validation.valid:
            logger.info(
                "attachment_rejected",
                file_name=attachment.name,
                slot=BundleSlot(slot).value,
                year=year,
                reason=validation.error_message,
            )
            return validation

        self._target_bundle_set(draft, slot, attachment, year, "attach_file")
        logger.debug(
            "attachment_added",
            file_name=attachment.name,
            file_size=attachment.size,
            slot=BundleSlot(slot).value,
            year=year,
        )
        return validation

    def remove_file(self, slot: BundleSlot, year: Optional[str] = None) -> None:
        draft = self._require_draft("remove_file")
        self._target_bundle_set(draft, slot, None, year, "remove_file")

    # Describe step

    def set_field(self, field_id: str, value: Any) -> None:
        """Store a metadata value and clear that field's error."""
        draft = self._require_draft("set_field")
        draft.metadata[field_id] = value
        self._field_errors.pop(field_id, None)

    def validate_field(self, field_id: str) -> Optional[str]:
        """Validate one field (on blur) and record its error, if any.

        Returns:
            The error message, or None if the value is acceptable
        """
        draft = self._require_draft("validate_field")
        form_field = self._report_type().get_field(field_id)
        if form_field is None:
            return None

        error = self.metadata_validator.validate_field(form_field, draft.metadata.get(field_id))
        if error is None:
            self._field_errors.pop(field_id, None)
            return None
        self._field_errors[field_id] = error.error_message
        return error.error_message

    # Submitting

    async def submit(self, on_outcome: Optional[OutcomeCallback] = None) -> GuardResult:
        """Enter the submitting step and upload the draft.

        The orchestrator is invoked exactly once; the aggregate result is
        available through ``result`` when this returns.

        Args:
            on_outcome: Optional callback receiving each per-unit outcome

        Returns:
            GuardResult of the readiness re-check; on refusal nothing is uploaded

        Raises:
            WizardStateError: If not at the review step
        """
        self._require_step(WizardStep.REVIEW, "submit")

        guard = self._readiness_guard()
        if not guard:
            logger.info("wizard_transition_refused", step=self._step.value, unmet=guard.unmet)
            return guard

        self._move_to(WizardStep.SUBMITTING)
        await self._run(on_outcome)
        return guard

    async def retry(self, on_outcome: Optional[OutcomeCallback] = None) -> SubmissionResult:
        """Re-run the same submission after a fully failed result.

        Raises:
            WizardStateError: If there is no fully failed result to retry
        """
        if (
            self._step != WizardStep.SUBMITTING
            or self._result is None
            or not self._result.fully_failed
        ):
            raise WizardStateError(
                "Retry is only available after a fully failed submission",
                step=self._step.value,
                operation="retry",
            )
        logger.info("submission_retry", company_id=self._company_id, report_type_id=self._report_type_id)
        return await self._run(on_outcome)

    def reset(self) -> None:
        """Clear every field, the year list and all bundles and return to select."""
        if self._running:
            raise WizardStateError(
                "Cannot reset while a submission is running",
                step=self._step.value,
                operation="reset",
            )
        self._company_id = ""
        self._report_type_id = ""
        self._draft = None
        self._field_errors = {}
        self._result = None
        self._move_to(WizardStep.SELECT)

    def snapshot(self) -> DraftSnapshot:
        """Read-only projection of the current state for the UI layer."""
        draft = self._draft
        if draft is None:
            return DraftSnapshot(
                step=self._step.value,
                company_id=self._company_id,
                report_type_id=self._report_type_id,
                field_errors=dict(self._field_errors),
            )

        if draft.is_multi_year:
            years = draft.attachments.years.years
            files = {
                label: bundle.file_names()
                for label, bundle in draft.attachments.years.ordered_bundles()
            }
        else:
            years = []
            files = {"": draft.attachments.bundle.file_names()}

        return DraftSnapshot(
            step=self._step.value,
            company_id=self._company_id,
            report_type_id=self._report_type_id,
            layout=draft.layout,
            metadata=dict(draft.metadata),
            years=years,
            files=files,
            field_errors=dict(self._field_errors),
            ready=draft.is_ready(),
        )

    # Guards

    def _select_guard(self) -> GuardResult:
        unmet = []
        if not self._company_id:
            unmet.append(COMPANY_SELECTED)
        elif self.catalog.find_company(self._company_id) is None:
            unmet.append(COMPANY_KNOWN)

        if not self._report_type_id:
            unmet.append(REPORT_TYPE_SELECTED)
        else:
            report_type = self.catalog.find_report_type(self._report_type_id)
            if report_type is None:
                unmet.append(REPORT_TYPE_KNOWN)
            elif report_type.disabled:
                unmet.append(REPORT_TYPE_ENABLED)

        return GuardResult(passed=not unmet, unmet=unmet)

    def _readiness_guard(self) -> GuardResult:
        if self._draft is None or not self._draft.is_ready():
            return GuardResult(passed=False, unmet=[ATTACHMENTS_READY])
        return GuardResult(passed=True)

    def _describe_guard(self) -> GuardResult:
        metadata = self._draft.metadata if self._draft else {}
        unmet = [
            f"{REQUIRED_FIELD_PREFIX}{form_field.id}"
            for form_field in self._report_type().required_fields
            if is_blank(metadata.get(form_field.id))
        ]
        return GuardResult(passed=not unmet, unmet=unmet)

    # Internals

    def _enter_attach(self) -> None:
        report_type = self.catalog.get_report_type(self._report_type_id)
        draft = self._draft
        if draft is not None and draft.report_type_id == report_type.id:
            draft.company_id = self._company_id
            return

        self._draft = SubmissionDraft.for_report_type(self._company_id, report_type)
        self._field_errors = {}
        logger.info(
            "draft_created",
            company_id=self._company_id,
            report_type_id=report_type.id,
            layout=report_type.layout.value,
        )

    def _target_bundle_set(
        self,
        draft: SubmissionDraft,
        slot: BundleSlot,
        attachment: Optional[FileAttachment],
        year: Optional[str],
        operation: str,
    ) -> None:
        slot = BundleSlot(slot)
        if draft.is_multi_year:
            years = draft.attachments.years
            label = (year or "").strip()
            if not label or label not in years.years:
                raise WizardStateError(
                    f"Unknown year label: {year!r}",
                    step=self._step.value,
                    operation=operation,
                )
            years.set_file(label, slot, attachment)
            return

        if draft.layout == AttachmentLayout.SINGLE_FILE and slot != BundleSlot.PRIMARY:
            raise WizardStateError(
                "This report type accepts a single file",
                step=self._step.value,
                operation=operation,
            )
        bundle: FileBundle = draft.attachments.bundle
        bundle.set(slot, attachment)

    def _record_all_field_errors(self) -> None:
        metadata = self._draft.metadata if self._draft else {}
        validation = self.metadata_validator.validate(self._report_type(), metadata)
        self._field_errors = validation.errors_by_field()

    async def _run(self, on_outcome: Optional[OutcomeCallback]) -> SubmissionResult:
        self._running = True
        try:
            self._result = await self.orchestrator.run(self._draft, on_outcome)
        finally:
            self._running = False
        return self._result

    def _report_type(self) -> ReportType:
        return self.catalog.get_report_type(self._report_type_id)

    def _move_to(self, step: WizardStep) -> None:
        previous = self._step
        self._step = step
        if previous != step:
            logger.info("wizard_step_changed", from_step=previous.value, to_step=step.value)

    def _require_step(self, step: WizardStep, operation: str) -> None:
        if self._step != step:
            raise WizardStateError(
                f"{operation} is only allowed at the {step.value} step",
                step=self._step.value,
                operation=operation,
            )

    def _require_not_terminal(self, operation: str) -> None:
        if self._step == WizardStep.SUBMITTING:
            raise WizardStateError(
                "Submission has started; only reset() leaves this step",
                step=self._step.value,
                operation=operation,
            )

    def _require_draft(self, operation: str) -> SubmissionDraft:
        if self._draft is None:
            raise WizardStateError(
                "No draft yet; select a company and report type first",
                step=self._step.value,
                operation=operation,
            )
        self._require_not_terminal(operation)
        return self._draft
