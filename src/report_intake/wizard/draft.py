"""Submission draft owned by the wizard controller."""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from report_intake.models.report_type import AttachmentLayout, ReportType
from report_intake.upload.models import FileBundle
from report_intake.wizard.years import YearGroupManager


@dataclass
class SingleAttachment:
    """All files of the submission live in one bundle."""
    bundle: FileBundle = field(default_factory=FileBundle)
    kind: str = "single"

    def is_ready(self) -> bool:
        return self.bundle.is_ready


@dataclass
class MultiYearAttachment:
    """One bundle per fiscal year label."""
    years: YearGroupManager = field(default_factory=YearGroupManager)
    kind: str = "multi_year"

    def is_ready(self) -> bool:
        return self.years.is_ready()


Attachments = Union[SingleAttachment, MultiYearAttachment]


@dataclass
class SubmissionDraft:
    """Everything the user has entered for one submission.

    The attachment shape is fixed when the draft is created, from the report
    type's layout.
    """
    company_id: str
    report_type_id: str
    layout: AttachmentLayout
    attachments: Attachments
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_report_type(cls, company_id: str, report_type: ReportType) -> "SubmissionDraft":
        if report_type.layout == AttachmentLayout.MULTI_YEAR:
            attachments: Attachments = MultiYearAttachment()
        else:
            attachments = SingleAttachment()
        return cls(
            company_id=company_id,
            report_type_id=report_type.id,
            layout=report_type.layout,
            attachments=attachments,
        )

    @property
    def is_multi_year(self) -> bool:
        return isinstance(self.attachments, MultiYearAttachment)

    def is_ready(self) -> bool:
        return self.attachments.is_ready()


class DraftSnapshot(BaseModel):
    """Read-only projection of the wizard state handed to the UI layer."""

    model_config = {"frozen": True}

    step: str = Field(..., description="Current wizard step")
    company_id: str = Field(default="", description="Selected company")
    report_type_id: str = Field(default="", description="Selected report type")
    layout: Optional[AttachmentLayout] = Field(None, description="Attachment layout of the draft")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Entered metadata")
    years: list[str] = Field(default_factory=list, description="Year labels (multi-year only)")
    files: dict[str, dict[str, Optional[str]]] = Field(
        default_factory=dict,
        description="Attached file names per bundle key ('' for single bundles) and slot",
    )
    field_errors: dict[str, str] = Field(default_factory=dict, description="Field validation errors")
    ready: bool = Field(default=False, description="Whether the attachment readiness check passes")
