import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

_INVOICE_NUMBER_SIGNAL = re.compile(r"invoice\s*#?\s*:?\s*[A-Z0-9-]+", re.IGNORECASE)
_AMOUNT_SIGNAL = re.compile(r"(amount|total)\s*:?\s*\$[0-9,.]", re.IGNORECASE)
_DATE_SIGNAL = re.compile(r"date\s*:?\s*[0-9/-]+", re.IGNORECASE)


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RecognitionResult:
    """Output of a text recognition engine for one document."""

    text: str
    confidence: float | None
    language: str | None
    processing_engine: str = ""
    processing_time_ms: int = 0
    extracted_data: dict[str, object] = field(default_factory=dict)
    processed_at: datetime | None = None

    @property
    def confidence_level(self) -> ConfidenceLevel:
        if self.confidence is None:
            return ConfidenceLevel.UNKNOWN
        if self.confidence >= 0.8:
            return ConfidenceLevel.HIGH
        if self.confidence >= 0.6:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    @property
    def confidence_percentage(self) -> str:
        if self.confidence is None:
            return "0%"
        return f"{self.confidence * 100:.1f}%"

    @property
    def text_length(self) -> int:
        return len(self.text) if self.text else 0

    @property
    def has_extracted_data(self) -> bool:
        return bool(self.extracted_data)


def describe_signals(text: str) -> dict[str, object]:
    """Cheap structural hints about recognized text, stored with the result."""
    return {
        "has_invoice_number": bool(_INVOICE_NUMBER_SIGNAL.search(text)),
        "has_amount": bool(_AMOUNT_SIGNAL.search(text)),
        "has_date": bool(_DATE_SIGNAL.search(text)),
        "word_count": len(text.split()),
        "line_count": len(text.split("\n")) if text else 0,
        "character_count": len(text),
    }


def text_layer_result(
    text: str,
    *,
    engine: str,
    language: str | None,
    processing_time_ms: int,
) -> RecognitionResult:
    """Result for engines that read an embedded text layer.

    Embedded text is exact, so confidence is 1.0 when any text was found and
    0.0 otherwise.
    """
    return RecognitionResult(
        text=text,
        confidence=1.0 if text.strip() else 0.0,
        language=language,
        processing_engine=engine,
        processing_time_ms=processing_time_ms,
        extracted_data=describe_signals(text),
        processed_at=datetime.now(UTC),
    )
