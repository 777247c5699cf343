import mimetypes
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from invoice_worker.config.settings import Settings
from invoice_worker.database.repositories.base import BaseDocumentRepository
from invoice_worker.documents.models import Document, ProcessingStatus
from invoice_worker.documents.serialization import metadata_to_dict
from invoice_worker.documents.state_machine import DocumentStateMachine, utc_now
from invoice_worker.logging.logger import Log
from invoice_worker.processor.exceptions import (
    InvalidTransitionError,
    StorageError,
    UploadRejectedError,
)
from invoice_worker.storage.base import BaseContentStorage
from invoice_worker.storage.local_storage import sanitize_filename

MANUAL_UPDATE_REASON = "Manual status update"
DEFAULT_ALLOWED_CONTENT_TYPES = ("application/pdf", "image/jpeg", "image/png")
_MEGABYTE = 1024 * 1024


class DocumentService:
    """Upload, lookup and administrative operations on documents."""

    def __init__(
        self,
        repository: BaseDocumentRepository,
        storage: BaseContentStorage,
        state_machine: DocumentStateMachine | None = None,
        *,
        max_file_size_bytes: int = 50 * _MEGABYTE,
        allowed_content_types: Iterable[str] = DEFAULT_ALLOWED_CONTENT_TYPES,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repository = repository
        self._storage = storage
        self._state_machine = state_machine or DocumentStateMachine(clock=clock)
        self._max_file_size_bytes = max_file_size_bytes
        self._allowed_content_types = frozenset(allowed_content_types)
        self._clock = clock

    @classmethod
    def create(
        cls,
        settings: Settings,
        repository: BaseDocumentRepository,
        storage: BaseContentStorage,
    ) -> "DocumentService":
        return cls(
            repository,
            storage,
            DocumentStateMachine(clear_errors_on_reset=settings.clear_errors_on_reset),
            max_file_size_bytes=settings.max_file_size_bytes,
            allowed_content_types=settings.allowed_content_type_list(),
        )

    def upload(
        self,
        content: bytes,
        filename: str | None,
        content_type: str | None = None,
    ) -> Document:
        """Store the content and create an ``uploaded`` document for it.

        Raises:
            UploadRejectedError: if the content is empty, too large or of an
                unsupported type.
            StorageError: if the content cannot be stored.
        """
        if not content:
            raise UploadRejectedError("File is empty or corrupted")
        if len(content) > self._max_file_size_bytes:
            raise UploadRejectedError(
                "File size exceeds maximum allowed size of "
                f"{self._max_file_size_bytes // _MEGABYTE} MB"
            )

        safe_name = sanitize_filename(filename)
        resolved_type = content_type or mimetypes.guess_type(safe_name)[0]
        if resolved_type not in self._allowed_content_types:
            raise UploadRejectedError(
                f"File type not supported: {resolved_type or 'unknown'}. "
                f"Allowed types: {', '.join(sorted(self._allowed_content_types))}"
            )

        content_ref = self._storage.store(content, safe_name)
        document = Document(
            filename=safe_name,
            content_ref=content_ref,
            content_type=resolved_type,
            uploaded_at=self._clock(),
        )
        try:
            created = self._repository.create(document)
        except Exception:
            self._discard_content(content_ref)
            raise
        Log.info("Document uploaded", document_id=created.id, filename=safe_name)
        return created

    def get(self, document_id: int) -> Document:
        return self._repository.find_by_id(document_id)

    def count_by_status(self) -> dict[ProcessingStatus, int]:
        return self._repository.count_by_status()

    def download(self, document_id: int) -> bytes:
        document = self._repository.find_by_id(document_id)
        return self._storage.read(document.content_ref)

    def file_size(self, document_id: int) -> int:
        document = self._repository.find_by_id(document_id)
        return self._storage.size(document.content_ref)

    def update_status(
        self,
        document_id: int,
        status: ProcessingStatus,
        reason: str | None = None,
    ) -> Document:
        """Administrative transition, persisted with compare-and-swap.

        Raises:
            DocumentNotFoundError: if the document does not exist.
            InvalidTransitionError: if the transition is not allowed or the
                status changed concurrently.
        """
        document = self._repository.find_by_id(document_id)
        if status is ProcessingStatus.FAILED and not reason:
            reason = MANUAL_UPDATE_REASON
        updated = self._state_machine.transition(document, status, reason)
        saved = self._repository.save(updated, document.status)
        Log.info(
            "Document status updated",
            document_id=document_id,
            from_status=document.status.value,
            to_status=status.value,
        )
        return saved

    def delete(self, document_id: int) -> None:
        document = self._repository.find_by_id(document_id)
        self._discard_content(document.content_ref)
        self._repository.delete(document_id)
        Log.info("Document deleted", document_id=document_id)

    def recover_stuck(self, older_than: datetime) -> list[Document]:
        """Fail documents left in ``processing`` since before ``older_than``."""
        recovered: list[Document] = []
        for document in self._repository.find_stuck(older_than):
            since = document.updated_at.isoformat() if document.updated_at else "unknown"
            failed = self._state_machine.transition(
                document,
                ProcessingStatus.FAILED,
                f"Processing interrupted: no progress since {since}",
            )
            try:
                recovered.append(self._repository.save(failed, ProcessingStatus.PROCESSING))
            except InvalidTransitionError:
                Log.info("Stuck document moved on before recovery", document_id=document.id)
                continue
            Log.warning("Recovered stuck document", document_id=document.id, since=since)
        return recovered

    def describe(self, document: Document) -> dict[str, Any]:
        """JSON-ready view of a document."""
        result = document.recognition_result
        return {
            "id": document.id,
            "filename": document.filename,
            "content_type": document.content_type,
            "status": document.status.value,
            "status_description": document.status.description,
            "uploaded_at": _iso(document.uploaded_at),
            "processed_at": _iso(document.processed_at),
            "errors": list(document.errors),
            "file_size": self._storage.size(document.content_ref),
            "download_url": f"/api/documents/{document.id}/download",
            "recognition": None
            if result is None
            else {
                "text": result.text,
                "confidence": result.confidence,
                "confidence_percentage": result.confidence_percentage,
                "confidence_level": result.confidence_level.value,
                "language": result.language,
                "processing_engine": result.processing_engine,
                "processing_time_ms": result.processing_time_ms,
            },
            "metadata": metadata_to_dict(document.metadata) if document.metadata else None,
        }

    def _discard_content(self, content_ref: str) -> None:
        try:
            self._storage.delete(content_ref)
        except StorageError as exc:
            Log.warning("Failed to delete stored content", content_ref=content_ref, error=exc)

    # Declared last: the method name shadows the builtin inside the class body.
    def list(
        self,
        status: ProcessingStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Document]:
        return self._repository.list(status=status, limit=limit, offset=offset)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
