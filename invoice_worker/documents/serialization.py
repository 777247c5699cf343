"""JSON-ready conversion of recognition results and extracted metadata.

Decimals are written as strings and dates as ISO strings so the JSONB
columns round-trip without losing precision.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from invoice_worker.extraction.models import ExtractedMetadata, LineItem
from invoice_worker.recognition.models import RecognitionResult


def recognition_to_dict(result: RecognitionResult) -> dict[str, Any]:
    return {
        "text": result.text,
        "confidence": result.confidence,
        "language": result.language,
        "processing_engine": result.processing_engine,
        "processing_time_ms": result.processing_time_ms,
        "extracted_data": dict(result.extracted_data),
        "processed_at": _iso(result.processed_at),
    }


def recognition_from_dict(data: dict[str, Any] | None) -> RecognitionResult | None:
    if not data:
        return None
    confidence = data.get("confidence")
    return RecognitionResult(
        text=data.get("text") or "",
        confidence=float(confidence) if confidence is not None else None,
        language=data.get("language"),
        processing_engine=data.get("processing_engine") or "",
        processing_time_ms=int(data.get("processing_time_ms") or 0),
        extracted_data=dict(data.get("extracted_data") or {}),
        processed_at=_parse_datetime(data.get("processed_at")),
    )


def metadata_to_dict(metadata: ExtractedMetadata) -> dict[str, Any]:
    return {
        "invoice_number": metadata.invoice_number,
        "invoice_date": _iso(metadata.invoice_date),
        "total_amount": _decimal_str(metadata.total_amount),
        "items": [
            {
                "description": item.description,
                "quantity": _decimal_str(item.quantity),
                "unit_price": _decimal_str(item.unit_price),
                "total": _decimal_str(item.total),
            }
            for item in metadata.items
        ],
        "additional_fields": dict(metadata.additional_fields),
    }


def metadata_from_dict(data: dict[str, Any] | None) -> ExtractedMetadata | None:
    if not data:
        return None
    items = [
        LineItem(
            description=raw.get("description"),
            quantity=_parse_decimal(raw.get("quantity")),
            unit_price=_parse_decimal(raw.get("unit_price")),
            total=_parse_decimal(raw.get("total")),
        )
        for raw in data.get("items") or []
    ]
    invoice_date = data.get("invoice_date")
    return ExtractedMetadata(
        invoice_number=data.get("invoice_number"),
        invoice_date=date.fromisoformat(invoice_date) if invoice_date else None,
        total_amount=_parse_decimal(data.get("total_amount")),
        items=items,
        additional_fields=dict(data.get("additional_fields") or {}),
    )


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _decimal_str(value: Decimal | None) -> str | None:
    return format(value, "f") if value is not None else None


def _parse_decimal(value: object) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _parse_datetime(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None
