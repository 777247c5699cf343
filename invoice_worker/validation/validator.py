"""Classifies extraction quality into blocking errors and advisory warnings.

Stages run in a fixed order and append to shared lists, so the order of
messages is stable: basic properties, recognition quality, metadata,
cross-checks against the recognized text.
"""

import re
from collections.abc import Callable
from datetime import date
from decimal import Decimal

from invoice_worker.documents.models import Document
from invoice_worker.extraction.models import ExtractedMetadata, LineItem
from invoice_worker.logging.logger import Log
from invoice_worker.recognition.models import RecognitionResult
from invoice_worker.validation.models import ValidationConfig, ValidationVerdict

_INVOICE_NUMBER_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class DocumentValidator:
    """Pure validator: reads a document, never modifies it."""

    def __init__(
        self,
        config: ValidationConfig | None = None,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._config = config if config is not None else ValidationConfig()
        self._today = today

    def validate(self, document: Document) -> ValidationVerdict:
        errors: list[str] = []
        warnings: list[str] = []

        self._check_basic_properties(document, errors)

        result = document.recognition_result
        if result is not None:
            self._check_recognition(result, errors, warnings)
        else:
            errors.append("OCR result is missing")

        metadata = document.metadata
        if metadata is not None:
            self._check_metadata(metadata, errors, warnings)
        else:
            errors.append("Document metadata is missing")

        if result is not None and metadata is not None:
            self._check_consistency(result, metadata, warnings)

        verdict = ValidationVerdict(errors=errors, warnings=warnings)
        Log.info(
            "Validation completed",
            document_id=document.id,
            valid=verdict.is_valid,
            errors=len(errors),
            warnings=len(warnings),
        )
        return verdict

    @staticmethod
    def _check_basic_properties(document: Document, errors: list[str]) -> None:
        if not document.filename or not document.filename.strip():
            errors.append("Filename is required")
        if not document.content_ref or not document.content_ref.strip():
            errors.append("File reference is missing")
        if document.uploaded_at is None:
            errors.append("Upload timestamp is missing")
        if document.status is None:
            errors.append("Document status is missing")

    def _check_recognition(
        self,
        result: RecognitionResult,
        errors: list[str],
        warnings: list[str],
    ) -> None:
        minimum = self._config.min_ocr_confidence
        if result.confidence is None:
            errors.append("OCR confidence is missing")
        elif result.confidence < minimum:
            if result.confidence < self._config.ocr_confidence_floor:
                errors.append(
                    f"OCR confidence too low: {result.confidence * 100:.2f}% "
                    f"(minimum: {minimum * 100:.0f}%)"
                )
            else:
                warnings.append(
                    f"OCR confidence is below recommended threshold: "
                    f"{result.confidence * 100:.2f}% (recommended: {minimum * 100:.0f}%)"
                )

        if not result.text or not result.text.strip():
            errors.append("OCR extracted text is empty")
        elif len(result.text) < self._config.min_text_length:
            warnings.append("OCR extracted text is very short, may indicate poor quality scan")

        if not result.language or not result.language.strip():
            warnings.append("OCR language detection failed")

    def _check_metadata(
        self,
        metadata: ExtractedMetadata,
        errors: list[str],
        warnings: list[str],
    ) -> None:
        synthesized = (
            set(metadata.synthesized_fields) if self._config.reject_synthesized_fields else set()
        )

        if not metadata.invoice_number or not metadata.invoice_number.strip():
            errors.append("Invoice number is required")
        elif not _INVOICE_NUMBER_RE.match(metadata.invoice_number):
            errors.append("Invoice number contains invalid characters")
        elif "invoice_number" in synthesized:
            errors.append("Invoice number could not be extracted")

        self._check_invoice_date(metadata.invoice_date, errors, warnings)

        amount = metadata.total_amount
        if amount is None:
            errors.append("Total amount is required")
        elif amount < self._config.amount_min:
            errors.append(f"Total amount must be greater than {self._config.amount_min}")
        elif amount > self._config.amount_max:
            errors.append(f"Total amount exceeds maximum allowed: {self._config.amount_max}")
        elif "total_amount" in synthesized:
            errors.append("Total amount could not be extracted")

        if not metadata.items:
            warnings.append("No line items found")
        else:
            for position, item in enumerate(metadata.items, start=1):
                self._check_line_item(item, position, errors)

    def _check_invoice_date(
        self,
        invoice_date: date | None,
        errors: list[str],
        warnings: list[str],
    ) -> None:
        if invoice_date is None:
            errors.append("Invoice date is required")
            return
        years = self._config.invoice_date_range_years
        today = self._today()
        if invoice_date < _shift_years(today, -years):
            warnings.append(f"Invoice date is more than {years} year(s) old")
        elif invoice_date > _shift_years(today, years):
            errors.append(f"Invoice date cannot be more than {years} year(s) in the future")

    @staticmethod
    def _check_line_item(item: LineItem, position: int, errors: list[str]) -> None:
        prefix = f"Item {position}: "
        if not item.description or not item.description.strip():
            errors.append(prefix + "Description is required")
        if item.quantity is None or item.quantity <= 0:
            errors.append(prefix + "Quantity must be greater than zero")
        if item.unit_price is None or item.unit_price <= 0:
            errors.append(prefix + "Unit price must be greater than zero")

    @staticmethod
    def _check_consistency(
        result: RecognitionResult,
        metadata: ExtractedMetadata,
        warnings: list[str],
    ) -> None:
        text = (result.text or "").lower()
        if metadata.invoice_number and metadata.invoice_number.lower() not in text:
            warnings.append("Invoice number not found in OCR text")
        if metadata.total_amount is not None and _plain(metadata.total_amount) not in text:
            warnings.append("Total amount not clearly visible in OCR text")


def _shift_years(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # 29 February in a non-leap target year
        return day.replace(year=day.year + years, day=28)


def _plain(amount: Decimal) -> str:
    return format(amount, "f")
