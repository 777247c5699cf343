"""Turns a raw AI JSON payload into ExtractedMetadata, enforcing its shape."""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from invoice_worker.extraction.exceptions import ExtractionValidationError
from invoice_worker.extraction.models import ExtractedMetadata, LineItem

_MAX_ITEMS = 200
_REQUIRED_FIELDS = ("invoice_number", "invoice_date", "total_amount", "items")


def validate_and_build(data: dict[str, Any]) -> ExtractedMetadata:
    """Validate parsed JSON and build ExtractedMetadata.

    Missing values (null) are allowed and left as None for the Validator to
    report; malformed values are not.

    Raises:
        ExtractionValidationError: on any structural violation.
    """
    for name in _REQUIRED_FIELDS:
        if name not in data:
            raise ExtractionValidationError(f"Missing required top-level field: {name}")
    return ExtractedMetadata(
        invoice_number=_build_invoice_number(data["invoice_number"]),
        invoice_date=_build_date(data["invoice_date"]),
        total_amount=_build_decimal(data["total_amount"], "total_amount"),
        items=_build_items(data["items"]),
    )


def _build_invoice_number(raw: Any) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ExtractionValidationError("'invoice_number' must be a string or null")
    return raw.strip() or None


def _build_date(raw: Any) -> date | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ExtractionValidationError("'invoice_date' must be a string or null")
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as exc:
        raise ExtractionValidationError(f"'invoice_date' is not an ISO date: {raw!r}") from exc


def _build_decimal(raw: Any, name: str) -> Decimal | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        raise ExtractionValidationError(f"'{name}' must be a decimal string or null")
    try:
        value = Decimal(str(raw).replace(",", "").replace("$", "").strip())
    except InvalidOperation as exc:
        raise ExtractionValidationError(f"'{name}' is not a decimal: {raw!r}") from exc
    if not value.is_finite():
        raise ExtractionValidationError(f"'{name}' must be finite")
    return value


def _build_items(raw: Any) -> list[LineItem]:
    if not isinstance(raw, list):
        raise ExtractionValidationError("'items' must be a list")
    if len(raw) > _MAX_ITEMS:
        raise ExtractionValidationError(f"Too many items: {len(raw)} (max {_MAX_ITEMS})")
    return [_build_item(item, index) for index, item in enumerate(raw)]


def _build_item(raw: Any, index: int) -> LineItem:
    if not isinstance(raw, dict):
        raise ExtractionValidationError(f"Item at index {index} must be an object")
    description = raw.get("description")
    if description is not None and not isinstance(description, str):
        raise ExtractionValidationError(
            f"Item at index {index}: 'description' must be a string or null"
        )
    return LineItem(
        description=description,
        quantity=_build_decimal(raw.get("quantity"), f"items[{index}].quantity"),
        unit_price=_build_decimal(raw.get("unit_price"), f"items[{index}].unit_price"),
        total=_build_decimal(raw.get("total"), f"items[{index}].total"),
    )
