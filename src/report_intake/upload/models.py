"""Data models for file attachments, uploads and file records.

Covers:
- File attachments and the three-slot bundle attached per submission unit
- Upload units produced by linearizing a draft
- Per-unit upload outcomes and the aggregate submission result
- File records as reported by the backend
"""

import mimetypes
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


class AnalysisStatus(str, Enum):
    """Analysis status of an uploaded file."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class OutcomeStatus(str, Enum):
    """Outcome of a single upload attempt."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class BundleSlot(str, Enum):
    """Named slots of a file bundle, in upload order."""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    TERTIARY = "tertiary"

    @property
    def label(self) -> str:
        """Human readable slot label sent to the backend as ``fileType``."""
        return SLOT_LABELS[self]


SLOT_LABELS = {
    BundleSlot.PRIMARY: "صورت مالی",
    BundleSlot.SECONDARY: "هزینه ها",
    BundleSlot.TERTIARY: "بودجه",
}

SLOT_ORDER = (BundleSlot.PRIMARY, BundleSlot.SECONDARY, BundleSlot.TERTIARY)

# Declared content types for the extensions the intake accepts
MIME_TYPES = {
    ".pdf": "application/pdf",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".doc": "application/msword",
}


@dataclass(frozen=True)
class FileAttachment:
    """A file picked by the user, held in memory until it is uploaded."""
    name: str
    content: bytes = field(repr=False)
    content_type: str = ""

    def __post_init__(self):
        if not self.content_type:
            object.__setattr__(self, "content_type", guess_content_type(self.name))

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower()

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "FileAttachment":
        """Read a file from disk into an attachment."""
        path = Path(path)
        return cls(name=path.name, content=path.read_bytes())


def guess_content_type(file_name: str) -> str:
    extension = Path(file_name).suffix.lower()
    if extension in MIME_TYPES:
        return MIME_TYPES[extension]
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or "application/octet-stream"


@dataclass
class FileBundle:
    """Up to three attachments for one submission unit (one year, or the whole submission).

    A bundle without a ``primary`` attachment is never ready.
    """
    primary: Optional[FileAttachment] = None
    secondary: Optional[FileAttachment] = None
    tertiary: Optional[FileAttachment] = None

    def get(self, slot: BundleSlot) -> Optional[FileAttachment]:
        return getattr(self, BundleSlot(slot).value)

    def set(self, slot: BundleSlot, attachment: Optional[FileAttachment]) -> None:
        setattr(self, BundleSlot(slot).value, attachment)

    def filled_slots(self) -> list[tuple[BundleSlot, FileAttachment]]:
        """Filled slots in upload order (primary, secondary, tertiary)."""
        filled = []
        for slot in SLOT_ORDER:
            attachment = self.get(slot)
            if attachment is not None:
                filled.append((slot, attachment))
        return filled

    @property
    def is_ready(self) -> bool:
        return self.primary is not None

    @property
    def has_any_file(self) -> bool:
        return any(self.get(slot) is not None for slot in SLOT_ORDER)

    def file_names(self) -> dict[str, Optional[str]]:
        names = {}
        for slot in SLOT_ORDER:
            attachment = self.get(slot)
            names[slot.value] = attachment.name if attachment else None
        return names


@dataclass(frozen=True)
class UploadUnit:
    """One file upload planned from a draft."""
    index: int
    attachment: FileAttachment
    slot: BundleSlot
    metadata: dict[str, Any]
    slot_label: Optional[str] = None
    year: Optional[str] = None


class AnalysisResult(BaseModel):
    """Result payload attached by the backend (or an operator) to a file."""
    summary: str = Field(default="", description="Analysis summary")
    insights: list[str] = Field(default_factory=list, description="Key insights")
    confidence: Optional[float] = Field(None, description="Confidence between 0 and 1")
    processed_at: Optional[datetime] = Field(None, description="Processing timestamp")
    data: Optional[Any] = Field(None, description="Opaque analysis data")

    def to_api(self) -> dict[str, Any]:
        """Convert to the backend's camelCase payload."""
        payload: dict[str, Any] = {
            "summary": self.summary,
            "insights": list(self.insights),
        }
        if self.confidence is not None:
            payload["confidence"] = self.confidence
        if self.processed_at is not None:
            payload["processedAt"] = self.processed_at.isoformat()
        if self.data is not None:
            payload["data"] = self.data
        return payload

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "AnalysisResult":
        return cls(
            summary=item.get("summary") or "",
            insights=item.get("insights") or [],
            confidence=item.get("confidence"),
            processed_at=item.get("processedAt"),
            data=item.get("data"),
        )


class UploadReceipt(BaseModel):
    """Backend acknowledgement of a stored file."""
    id: str = Field(..., description="Server-assigned file identifier")
    stored_name: str = Field(..., description="File name as stored by the backend")
    declared_type: str = Field(default="", description="Declared file type")
    byte_size: int = Field(default=0, description="File size in bytes")
    upload_timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Upload timestamp"
    )
    form_data: dict[str, Any] = Field(default_factory=dict, description="Metadata stored with the file")

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "UploadReceipt":
        """Create from the backend's file item."""
        data: dict[str, Any] = {
            "id": item.get("_id") or item["id"],
            "stored_name": item.get("originalFileName") or item.get("fileName") or "",
            "declared_type": item.get("fileType") or "",
            "byte_size": item.get("fileSize") or 0,
            "form_data": item.get("formData") or {},
        }
        if item.get("uploadDate"):
            data["upload_timestamp"] = item["uploadDate"]
        return cls(**data)


class FileRecord(BaseModel):
    """An uploaded file as tracked in the registry.

    Created by a successful upload and afterwards changed only by status
    transitions reported by the backend.
    """
    id: str = Field(..., description="Server-assigned file identifier")
    file_name: str = Field(..., description="Display name")
    file_type: str = Field(default="", description="Declared file type")
    file_size: int = Field(default=0, description="File size in bytes")
    company_id: str = Field(..., description="Owning company")
    report_type_id: str = Field(..., description="Report type")
    upload_date: datetime = Field(..., description="Upload timestamp")
    analysis_status: AnalysisStatus = Field(default=AnalysisStatus.PENDING, description="Analysis status")
    analysis_result: Optional[AnalysisResult] = Field(None, description="Analysis result if completed")
    form_data: dict[str, Any] = Field(default_factory=dict, description="Metadata uploaded with the file")

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "FileRecord":
        """Create from the backend's file item."""
        result = item.get("analysisResult")
        return cls(
            id=item.get("_id") or item["id"],
            file_name=item.get("originalFileName") or item.get("fileName") or "",
            file_type=item.get("fileType") or "",
            file_size=item.get("fileSize") or 0,
            company_id=str(item.get("companyId") or ""),
            report_type_id=str(item.get("reportTypeId") or ""),
            upload_date=item["uploadDate"],
            analysis_status=AnalysisStatus(item.get("analysisStatus") or AnalysisStatus.PENDING.value),
            analysis_result=AnalysisResult.from_api(result) if isinstance(result, dict) else None,
            form_data=item.get("formData") or {},
        )


class UploadOutcome(BaseModel):
    """Outcome of one attempted upload unit."""
    index: int = Field(..., description="Position in the linearization order")
    status: OutcomeStatus = Field(..., description="succeeded or failed")
    file_name: str = Field(..., description="Name of the attempted file")
    slot: BundleSlot = Field(..., description="Bundle slot the file came from")
    slot_label: Optional[str] = Field(None, description="Slot label merged into the metadata")
    year: Optional[str] = Field(None, description="Year label the file belonged to")
    file_id: Optional[str] = Field(None, description="Server-assigned identifier on success")
    error: Optional[str] = Field(None, description="Error message on failure")
    error_category: Optional[str] = Field(None, description="Error category on failure")
    status_synced: bool = Field(default=False, description="Whether the processing transition was acknowledged")
    record: Optional[FileRecord] = Field(None, description="File record on success")

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED


class SubmissionResult(BaseModel):
    """Ordered outcomes of one orchestration call."""
    outcomes: list[UploadOutcome] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded_count(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failed_count(self) -> int:
        return self.total - self.succeeded_count

    @property
    def fully_failed(self) -> bool:
        return self.succeeded_count == 0

    @property
    def partially_failed(self) -> bool:
        return self.succeeded_count > 0 and self.failed_count > 0

    @property
    def fully_succeeded(self) -> bool:
        return self.total > 0 and self.failed_count == 0

    @property
    def records(self) -> list[FileRecord]:
        return [o.record for o in self.outcomes if o.succeeded and o.record is not None]

    @property
    def failures(self) -> list[UploadOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    def summary(self) -> str:
        return f"{self.succeeded_count} of {self.total} succeeded"


class ValidationResult(BaseModel):
    """Result of validating an attachment before it is placed in a slot."""
    valid: bool = Field(..., description="Whether validation passed")
    error_code: Optional[int] = Field(None, description="HTTP-style error code if invalid")
    error_message: Optional[str] = Field(None, description="Error message if invalid")
    file_size: Optional[int] = Field(None, description="File size in bytes")
    content_type: Optional[str] = Field(None, description="Declared content type")
