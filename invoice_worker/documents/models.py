from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from invoice_worker.extraction.models import ExtractedMetadata
from invoice_worker.recognition.models import RecognitionResult


class ProcessingStatus(str, Enum):
    """Lifecycle status of a document."""

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    VALIDATED = "validated"
    FAILED = "failed"

    @property
    def description(self) -> str:
        return _STATUS_DESCRIPTIONS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStatus.VALIDATED, ProcessingStatus.FAILED)

    @property
    def is_in_progress(self) -> bool:
        return self is ProcessingStatus.PROCESSING

    @property
    def can_be_processed(self) -> bool:
        return self is ProcessingStatus.UPLOADED


_STATUS_DESCRIPTIONS = {
    ProcessingStatus.UPLOADED: "Document uploaded and waiting for processing",
    ProcessingStatus.PROCESSING: "Document is being processed",
    ProcessingStatus.VALIDATED: "Document processed and validated successfully",
    ProcessingStatus.FAILED: "Document processing failed",
}


@dataclass(frozen=True)
class Document:
    """An uploaded invoice and everything the pipeline learned about it.

    Instances are values: status changes go through DocumentStateMachine,
    which returns a new Document and leaves the original untouched.
    """

    filename: str
    content_ref: str
    status: ProcessingStatus = ProcessingStatus.UPLOADED
    id: int | None = None
    content_type: str | None = None
    uploaded_at: datetime | None = None
    processed_at: datetime | None = None
    errors: list[str] = field(default_factory=list)
    recognition_result: RecognitionResult | None = None
    metadata: ExtractedMetadata | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_processed(self) -> bool:
        return self.status is not None and self.status.is_terminal

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
