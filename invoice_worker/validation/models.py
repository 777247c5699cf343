from dataclasses import dataclass, field
from decimal import Decimal

from invoice_worker.config.settings import Settings


@dataclass(frozen=True)
class ValidationConfig:
    """Thresholds the validator judges documents against."""

    min_ocr_confidence: float = 0.70
    ocr_confidence_floor: float = 0.50
    amount_min: Decimal = Decimal("0.01")
    amount_max: Decimal = Decimal("100000.00")
    invoice_date_range_years: int = 1
    min_text_length: int = 10
    reject_synthesized_fields: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "ValidationConfig":
        return cls(
            min_ocr_confidence=settings.validation_min_ocr_confidence,
            ocr_confidence_floor=settings.validation_ocr_confidence_floor,
            amount_min=settings.validation_amount_min,
            amount_max=settings.validation_amount_max,
            invoice_date_range_years=settings.validation_invoice_date_range_years,
            min_text_length=settings.validation_min_text_length,
            reject_synthesized_fields=settings.validation_reject_synthesized_fields,
        )


@dataclass(frozen=True)
class ValidationVerdict:
    """Blocking errors and advisory warnings, in the order they were found."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors
