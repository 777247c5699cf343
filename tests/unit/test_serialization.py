from datetime import UTC, date, datetime
from decimal import Decimal

from invoice_worker.documents.serialization import (
    metadata_from_dict,
    metadata_to_dict,
    recognition_from_dict,
    recognition_to_dict,
)
from invoice_worker.extraction.models import ExtractedMetadata, LineItem
from invoice_worker.recognition.models import RecognitionResult


class TestMetadataSerialization:
    def test_decimals_and_dates_become_strings(self) -> None:
        metadata = ExtractedMetadata(
            invoice_number="INV-1",
            invoice_date=date(2024, 7, 10),
            total_amount=Decimal("1500.00"),
            items=[LineItem("Consulting", Decimal("2"), Decimal("750.00"))],
            additional_fields={"extraction_method": "pattern"},
        )

        data = metadata_to_dict(metadata)

        assert data["invoice_date"] == "2024-07-10"
        assert data["total_amount"] == "1500.00"
        assert data["items"][0] == {
            "description": "Consulting",
            "quantity": "2",
            "unit_price": "750.00",
            "total": "1500.00",
        }
        assert metadata_from_dict(data) == metadata

    def test_empty_payload_is_none(self) -> None:
        assert metadata_from_dict(None) is None
        assert metadata_from_dict({}) is None

    def test_keeps_stored_inconsistent_total(self) -> None:
        data = {
            "invoice_number": "INV-1",
            "items": [
                {"description": "x", "quantity": "2", "unit_price": "5.00", "total": "11.00"}
            ],
        }

        metadata = metadata_from_dict(data)

        assert metadata is not None
        assert metadata.items[0].total == Decimal("11.00")
        assert metadata.invoice_date is None


class TestRecognitionSerialization:
    def test_processed_at_is_iso_string(self) -> None:
        result = RecognitionResult(
            text="hello",
            confidence=0.9,
            language="en",
            processing_engine="sample",
            processing_time_ms=12,
            extracted_data={"word_count": 1},
            processed_at=datetime(2024, 6, 1, 12, 0, tzinfo=UTC),
        )

        data = recognition_to_dict(result)

        assert data["processed_at"] == "2024-06-01T12:00:00+00:00"
        assert recognition_from_dict(data) == result

    def test_empty_payload_is_none(self) -> None:
        assert recognition_from_dict(None) is None
