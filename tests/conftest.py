import io
from dataclasses import replace
from datetime import UTC, datetime

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from invoice_worker.database.repositories.base import BaseDocumentRepository
from invoice_worker.documents.models import Document, ProcessingStatus
from invoice_worker.processor.exceptions import (
    ConcurrentTransitionError,
    ContentNotFoundError,
    DocumentNotFoundError,
)
from invoice_worker.storage.base import BaseContentStorage

SIMPLE_INVOICE_TEXT = "INVOICE\nInvoice #: INV-9\nDate: 2024-01-01\nTotal: $100.00"


class InMemoryDocumentRepository(BaseDocumentRepository):
    """Dict-backed repository with the same compare-and-swap rules as Postgres."""

    def __init__(self) -> None:
        self.documents: dict[int, Document] = {}
        self.status_history: dict[int, list[ProcessingStatus]] = {}
        self._next_id = 1

    def create(self, document: Document) -> Document:
        now = datetime.now(UTC)
        stored = replace(
            document,
            id=self._next_id,
            uploaded_at=document.uploaded_at or now,
            created_at=now,
            updated_at=now,
        )
        self._next_id += 1
        self.documents[stored.id] = stored
        self.status_history[stored.id] = [stored.status]
        return stored

    def find_by_id(self, document_id: int) -> Document:
        try:
            return self.documents[document_id]
        except KeyError:
            raise DocumentNotFoundError(f"Document {document_id} not found") from None

    def save(self, document: Document, expected_status: ProcessingStatus) -> Document:
        current = self.documents.get(document.id)
        if current is None:
            raise DocumentNotFoundError(f"Document {document.id} not found")
        if current.status is not expected_status:
            raise ConcurrentTransitionError(expected_status, document.status)
        self.documents[document.id] = document
        self.status_history[document.id].append(document.status)
        return document

    def delete(self, document_id: int) -> None:
        self.find_by_id(document_id)
        del self.documents[document_id]

    def count_by_status(self) -> dict[ProcessingStatus, int]:
        counts = {status: 0 for status in ProcessingStatus}
        for document in self.documents.values():
            counts[document.status] += 1
        return counts

    def find_next_uploaded(self) -> int | None:
        waiting = [d for d in self.documents.values() if d.status is ProcessingStatus.UPLOADED]
        if not waiting:
            return None
        return min(waiting, key=lambda d: (d.uploaded_at, d.id)).id

    def find_stuck(self, older_than: datetime) -> list[Document]:
        return [
            d
            for d in self.documents.values()
            if d.status is ProcessingStatus.PROCESSING
            and d.updated_at is not None
            and d.updated_at < older_than
        ]

    def list(
        self,
        status: ProcessingStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Document]:
        matching = [d for d in self.documents.values() if status is None or d.status is status]
        matching.sort(key=lambda d: (d.uploaded_at, d.id), reverse=True)
        return matching[offset : offset + limit]


class InMemoryContentStorage(BaseContentStorage):
    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}

    def store(self, content: bytes, suggested_name: str) -> str:
        content_ref = f"{len(self.blobs) + 1:04d}_{suggested_name}"
        self.blobs[content_ref] = content
        return content_ref

    def read(self, content_ref: str) -> bytes:
        try:
            return self.blobs[content_ref]
        except KeyError:
            raise ContentNotFoundError(f"File not found in storage: {content_ref}") from None

    def delete(self, content_ref: str) -> bool:
        return self.blobs.pop(content_ref, None) is not None

    def size(self, content_ref: str) -> int:
        return len(self.blobs.get(content_ref, b""))

    def exists(self, content_ref: str) -> bool:
        return content_ref in self.blobs


@pytest.fixture()
def repository() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository()


@pytest.fixture()
def storage() -> InMemoryContentStorage:
    return InMemoryContentStorage()


@pytest.fixture()
def stored_document(
    repository: InMemoryDocumentRepository,
    storage: InMemoryContentStorage,
) -> Document:
    """An ``uploaded`` document whose content is present in storage."""
    content_ref = storage.store(b"%PDF-1.4 fake invoice", "invoice.pdf")
    return repository.create(
        Document(filename="invoice.pdf", content_ref=content_ref, content_type="application/pdf")
    )


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def invoice_pdf_bytes() -> bytes:
    """Generate a single-page PDF carrying a small invoice as its text layer."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    y = 720
    for line in SIMPLE_INVOICE_TEXT.split("\n"):
        c.drawString(72, y, line)
        y -= 18
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()
