"""Regex-driven invoice field extractor.

Each field is tried against an ordered pattern table; the first usable match
wins. When nothing matches, a placeholder is synthesized so that downstream
validation always has a complete record to judge. Synthesized fields are
listed under ``additional_fields["synthesized_fields"]``.

Known limit: at most one line item is extracted per document.
"""

import random
import re
from collections.abc import Callable
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import ClassVar

from invoice_worker.extraction.base import BaseFieldExtractor
from invoice_worker.extraction.models import ExtractedMetadata, LineItem
from invoice_worker.logging.logger import Log

CENTS = Decimal("0.01")


class PatternFieldExtractor(BaseFieldExtractor):
    """Extracts invoice number, date, total and one line item with regexes."""

    EXTRACTION_METHOD: ClassVar[str] = "pattern"

    _INVOICE_NUMBER_PATTERNS: ClassVar[tuple[re.Pattern[str], ...]] = (
        re.compile(r"invoice\s*#?\s*:?\s*([A-Za-z0-9-]+)", re.IGNORECASE),
        re.compile(r"number\s*:?\s*([A-Za-z0-9-]+)", re.IGNORECASE),
        re.compile(r"invoice number\s*:?\s*([A-Za-z0-9-]+)", re.IGNORECASE),
    )
    _DATE_PATTERNS: ClassVar[tuple[re.Pattern[str], ...]] = (
        re.compile(r"date\s*:?\s*(\d{4}-\d{2}-\d{2})", re.IGNORECASE),
        re.compile(r"issue date\s*:?\s*(\d{2}/\d{2}/\d{4})", re.IGNORECASE),
        re.compile(r"(\d{2}/\d{2}/\d{4})"),
        re.compile(r"(\d{4}-\d{2}-\d{2})"),
    )
    _AMOUNT_PATTERNS: ClassVar[tuple[re.Pattern[str], ...]] = (
        re.compile(r"total.*?[$R]?\s*([0-9,]+\.\d{2})", re.IGNORECASE),
        re.compile(r"amount.*?[$R]?\s*([0-9,]+\.\d{2})", re.IGNORECASE),
        re.compile(r"total due.*?\$\s*([0-9,]+\.\d{2})", re.IGNORECASE),
        re.compile(r"\$\s*([0-9,]+\.\d{2})"),
    )
    _LINE_ITEM_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r"(\d+)\s*(hours?|unit?|month)\s*[@x]?\s*\$\s*([0-9,]+\.\d{2})",
        re.IGNORECASE,
    )
    # Checked in order, case-sensitive.
    _DESCRIPTION_KEYWORDS: ClassVar[tuple[tuple[tuple[str, ...], str], ...]] = (
        (("Software", "License"), "Software License"),
        (("Consulting",), "Consulting Services"),
        (("Development",), "Software Development"),
        (("Cloud",), "Cloud Services"),
    )
    _DEFAULT_DESCRIPTION: ClassVar[str] = "Professional Services"

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._rng = rng if rng is not None else random.Random()
        self._today = today

    def extract(self, text: str) -> ExtractedMetadata:
        text = text or ""
        synthesized: list[str] = []

        invoice_number = self._extract_invoice_number(text)
        if invoice_number is None:
            invoice_number = self._placeholder_invoice_number()
            synthesized.append("invoice_number")

        invoice_date = self._extract_invoice_date(text)
        if invoice_date is None:
            invoice_date = self._today()
            synthesized.append("invoice_date")

        total_amount = self._extract_total_amount(text)
        if total_amount is None:
            total_amount = self._placeholder_amount()
            synthesized.append("total_amount")

        items = self._extract_line_items(text, total_amount, synthesized)

        metadata = ExtractedMetadata(
            invoice_number=invoice_number,
            invoice_date=invoice_date,
            total_amount=total_amount,
            items=items,
            additional_fields={
                "extraction_method": self.EXTRACTION_METHOD,
                "document_type": "invoice",
                "processing_timestamp": self._today().isoformat(),
                "synthesized_fields": synthesized,
            },
        )
        Log.debug(
            "Pattern extraction complete",
            invoice_number=invoice_number,
            synthesized=",".join(synthesized) or "-",
        )
        return metadata

    def _extract_invoice_number(self, text: str) -> str | None:
        for pattern in self._INVOICE_NUMBER_PATTERNS:
            token = self._first_token_with_digit(pattern, text)
            if token is not None:
                return token
        return None

    @staticmethod
    def _first_token_with_digit(pattern: re.Pattern[str], text: str) -> str | None:
        # Headings such as "INVOICE\nInvoice #: 42" make the label itself the
        # first capture; keep scanning from the next character until a token
        # with a digit turns up.
        pos = 0
        while True:
            match = pattern.search(text, pos)
            if match is None:
                return None
            token = match.group(1).strip()
            if any(ch.isdigit() for ch in token):
                return token
            pos = match.start() + 1

    def _extract_invoice_date(self, text: str) -> date | None:
        for pattern in self._DATE_PATTERNS:
            match = pattern.search(text)
            if match is None:
                continue
            raw = match.group(1)
            try:
                return self._parse_date(raw)
            except ValueError:
                Log.warning("Error parsing date", raw=raw)
        return None

    @staticmethod
    def _parse_date(raw: str) -> date:
        if "/" in raw:
            day, month, year = (int(part) for part in raw.split("/"))
            return date(year, month, day)
        return date.fromisoformat(raw)

    def _extract_total_amount(self, text: str) -> Decimal | None:
        for pattern in self._AMOUNT_PATTERNS:
            match = pattern.search(text)
            if match is None:
                continue
            raw = match.group(1)
            try:
                return self._parse_amount(raw)
            except InvalidOperation:
                Log.warning("Error parsing amount", raw=raw)
        return None

    @staticmethod
    def _parse_amount(raw: str) -> Decimal:
        cleaned = raw.replace(",", "").replace("R", "").replace("$", "").strip()
        return Decimal(cleaned).quantize(CENTS)

    def _extract_line_items(
        self,
        text: str,
        total_amount: Decimal,
        synthesized: list[str],
    ) -> list[LineItem]:
        description = self._infer_description(text)
        match = self._LINE_ITEM_PATTERN.search(text)
        if match is not None:
            try:
                quantity = Decimal(match.group(1))
                unit_price = self._parse_amount(match.group(3))
                return [LineItem(description, quantity, unit_price)]
            except InvalidOperation:
                Log.warning("Error parsing line item", raw=match.group(0))

        synthesized.append("items")
        return [LineItem(description, Decimal("1"), total_amount)]

    def _infer_description(self, text: str) -> str:
        for keywords, label in self._DESCRIPTION_KEYWORDS:
            if any(keyword in text for keyword in keywords):
                return label
        return self._DEFAULT_DESCRIPTION

    def _placeholder_invoice_number(self) -> str:
        return f"INV-2024-{self._rng.randint(1, 999):03d}"

    def _placeholder_amount(self) -> Decimal:
        cents = self._rng.randint(10_000, 500_000)
        return (Decimal(cents) / 100).quantize(CENTS)
