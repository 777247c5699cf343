from abc import ABC, abstractmethod

from invoice_worker.extraction.models import ExtractedMetadata


class BaseFieldExtractor(ABC):
    """Contract for all invoice field extraction strategies."""

    @abstractmethod
    def extract(self, text: str) -> ExtractedMetadata:
        """Derive structured invoice fields from recognized text.

        Args:
            text: Full text produced by the recognition engine.

        Returns:
            ExtractedMetadata with every field populated, falling back to
            synthesized values where the text does not yield one.

        Implementations must not raise.
        """
