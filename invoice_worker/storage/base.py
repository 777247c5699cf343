from abc import ABC, abstractmethod


class BaseContentStorage(ABC):
    """Contract for raw document byte storage."""

    @abstractmethod
    def store(self, content: bytes, suggested_name: str) -> str:
        """Persist bytes and return an opaque content reference.

        Raises:
            StorageError: if the content cannot be written.
        """

    @abstractmethod
    def read(self, content_ref: str) -> bytes:
        """Return the stored bytes.

        Raises:
            ContentNotFoundError: if nothing is stored under the reference.
            StorageError: if the content cannot be read.
        """

    @abstractmethod
    def delete(self, content_ref: str) -> bool:
        """Delete stored bytes. Returns False when there was nothing to delete.

        Raises:
            StorageError: if the content exists but cannot be removed.
        """

    @abstractmethod
    def size(self, content_ref: str) -> int:
        """Size in bytes, 0 when missing or unreadable."""

    @abstractmethod
    def exists(self, content_ref: str) -> bool:
        """Whether anything is stored under the reference."""
