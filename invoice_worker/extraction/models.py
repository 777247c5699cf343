from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

_RECALCULATING_FIELDS = frozenset({"quantity", "unit_price"})


@dataclass
class LineItem:
    """A single invoice line.

    ``total`` defaults to ``quantity * unit_price`` and is recomputed whenever
    quantity or unit price is reassigned. An explicit, inconsistent total is
    kept as given; ``is_total_consistent`` reports the mismatch.
    """

    description: str | None
    quantity: Decimal | None
    unit_price: Decimal | None
    total: Decimal | None = None

    def __post_init__(self) -> None:
        if self.total is None:
            self._recalculate_total()

    def __setattr__(self, name: str, value: object) -> None:
        super().__setattr__(name, value)
        if name in _RECALCULATING_FIELDS and "total" in self.__dict__:
            self._recalculate_total()

    def _recalculate_total(self) -> None:
        if self.quantity is not None and self.unit_price is not None:
            object.__setattr__(self, "total", self.quantity * self.unit_price)

    def is_total_consistent(self) -> bool:
        if self.quantity is None or self.unit_price is None or self.total is None:
            return False
        return self.quantity * self.unit_price == self.total


@dataclass
class ExtractedMetadata:
    """Structured invoice fields derived from recognized text."""

    invoice_number: str | None = None
    invoice_date: date | None = None
    total_amount: Decimal | None = None
    items: list[LineItem] = field(default_factory=list)
    additional_fields: dict[str, object] = field(default_factory=dict)

    @property
    def item_count(self) -> int:
        return len(self.items)

    def items_total(self) -> Decimal:
        return sum(
            (item.total for item in self.items if item.total is not None),
            Decimal("0"),
        )

    def is_total_amount_consistent(self) -> bool:
        return self.total_amount is not None and self.total_amount == self.items_total()

    @property
    def synthesized_fields(self) -> list[str]:
        raw = self.additional_fields.get("synthesized_fields", [])
        return [str(name) for name in raw] if isinstance(raw, list) else []
