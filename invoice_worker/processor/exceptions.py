class ProcessorError(Exception):
    """Base exception for all document processing errors."""


class DocumentNotFoundError(ProcessorError):
    """Raised when a document cannot be found in the database."""


class InvalidTransitionError(ProcessorError):
    """Raised when a status change is not allowed by the transition table."""

    def __init__(self, from_status: object, to_status: object, message: str | None = None) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            message
            or f"Invalid document status transition from {_label(from_status)} "
            f"to {_label(to_status)}"
        )


class ConcurrentTransitionError(InvalidTransitionError):
    """Raised when the stored status changed between read and compare-and-swap write."""


class StorageError(ProcessorError):
    """Raised when document content cannot be read or written."""


class ContentNotFoundError(StorageError):
    """Raised when a content reference points at nothing in storage."""


class EmptyContentError(StorageError):
    """Raised when stored content is empty and cannot be recognized."""


class UploadRejectedError(ProcessorError):
    """Raised when an upload fails size, type or emptiness checks."""


class PipelineFatalError(ProcessorError):
    """Raised when a failed document could not even be recorded as failed."""


def _label(status: object) -> str:
    value = getattr(status, "value", status)
    return str(value)
