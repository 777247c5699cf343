from abc import ABC, abstractmethod
from datetime import datetime

from invoice_worker.documents.models import Document, ProcessingStatus


class BaseDocumentRepository(ABC):
    """Persistence contract for documents."""

    @abstractmethod
    def create(self, document: Document) -> Document:
        """Insert a new document and return it with id and timestamps set."""

    @abstractmethod
    def find_by_id(self, document_id: int) -> Document:
        """Raises:
        DocumentNotFoundError: if no document with this ID exists.
        """

    @abstractmethod
    def save(self, document: Document, expected_status: ProcessingStatus) -> Document:
        """Write the whole document only if the stored status still equals
        ``expected_status``.

        Raises:
            DocumentNotFoundError: if the row no longer exists.
            ConcurrentTransitionError: if the stored status has changed.
        """

    @abstractmethod
    def delete(self, document_id: int) -> None:
        """Raises:
        DocumentNotFoundError: if no document with this ID exists.
        """

    @abstractmethod
    def count_by_status(self) -> dict[ProcessingStatus, int]:
        """Counts for every status, including zeros."""

    @abstractmethod
    def find_next_uploaded(self) -> int | None:
        """Id of the oldest document still waiting in ``uploaded``."""

    @abstractmethod
    def find_stuck(self, older_than: datetime) -> list[Document]:
        """Documents in ``processing`` not updated since ``older_than``."""

    # Declared last: the method name shadows the builtin inside the class body.
    @abstractmethod
    def list(
        self,
        status: ProcessingStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Document]:
        """Documents newest first, optionally filtered by status."""
