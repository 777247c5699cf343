from abc import ABC, abstractmethod

from invoice_worker.recognition.models import RecognitionResult


class BaseRecognizer(ABC):
    """Contract for all text recognition engines."""

    @abstractmethod
    def recognize(self, content: bytes, filename: str) -> RecognitionResult:
        """Recognize the text of a scanned document.

        Args:
            content: Raw file bytes. Never empty.
            filename: Original filename, used to pick a decoding strategy.

        Returns:
            RecognitionResult with text, confidence and language.

        Raises:
            RecognitionError: if the engine fails for any reason.
        """
