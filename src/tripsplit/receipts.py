"""Receipt text → expense form hints.

Text recognition itself is an external collaborator (:class:`TextExtractor`).
This module only reads the recognized text and proposes a total, a merchant
name and line items.  The result is a suggestion for pre-filling the
add-expense form; nothing here ever creates an expense.
"""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from tripsplit.ledger.money import Money

# Digits with optional "." or "," thousands groups and 2-digit decimals.
_NUMBER_RE = re.compile(r"\d+(?:[.,]\d{3})*(?:[.,]\d{2})?")
_YEAR_RE = re.compile(r"\b20\d{2}\b")

TOTAL_MARKERS = ("TOTAL", "JUMLAH")
HEADER_MARKERS = ("RECEIPT", "STRUK")

#: A "total" line must exceed this to be believed.
MIN_TOTAL = 1000
#: Line-item prices must fall strictly inside this range.
ITEM_PRICE_RANGE = (500, 1_000_000)


@runtime_checkable
class TextExtractor(Protocol):
    """Optical text recognition for a captured receipt image."""

    async def extract_text(self, image: bytes) -> str:
        """Return the recognized text, one receipt line per text line."""
        ...


class ReceiptItem(BaseModel):
    name: str
    price: Money


class ReceiptHints(BaseModel):
    """Untrusted candidates read off a receipt."""

    total_amount: Money | None = None
    merchant_name: str | None = None
    items: list[ReceiptItem] = Field(default_factory=list)

    def prefill(self, title: str, amount: str) -> tuple[str, str]:
        """Merge hints into the current form values.

        A recognized total replaces the amount field; the merchant name is
        used only when the title is still empty.
        """
        if self.total_amount is not None and self.total_amount > 0:
            amount = str(self.total_amount)
        if self.merchant_name and not title:
            title = self.merchant_name
        return title, amount


def extract_numbers(text: str) -> list[tuple[str, int]]:
    """Return ``(matched_text, value)`` for every amount in *text*.

    Separators are dropped, so ``"150.000"`` and ``"150,000"`` both read
    as 150000.
    """
    found: list[tuple[str, int]] = []
    for match in _NUMBER_RE.finditer(text):
        raw = match.group(0)
        found.append((raw, int(raw.replace(".", "").replace(",", ""))))
    return found


def _is_date_line(text: str) -> bool:
    return "/" in text and _YEAR_RE.search(text) is not None


def _is_only_numbers(text: str) -> bool:
    return all(ch.isdigit() or ch in "., " for ch in text)


def _extract_items(lines: list[str]) -> list[ReceiptItem]:
    items: list[ReceiptItem] = []
    low, high = ITEM_PRICE_RANGE
    for line in lines:
        clean = line.strip()
        numbers = extract_numbers(clean)
        if not numbers:
            continue
        raw, price = numbers[0]
        if not low < price < high:
            continue
        name = clean.replace(raw, "", 1).strip().strip(".,").strip()
        if len(name) > 2:
            items.append(ReceiptItem(name=name, price=Money(price)))
    return items


def parse_receipt_text(text: str) -> ReceiptHints:
    """Read a total, merchant name and line items from recognized text."""
    hints = ReceiptHints()
    lines = text.splitlines()

    for line in lines:
        clean = line.upper().strip()

        if any(marker in clean for marker in TOTAL_MARKERS):
            numbers = extract_numbers(clean)
            if numbers and numbers[0][1] > MIN_TOTAL:
                hints.total_amount = Money(numbers[0][1])

        if (
            hints.merchant_name is None
            and clean
            and not any(marker in clean for marker in HEADER_MARKERS)
            and not _is_date_line(clean)
            and not _is_only_numbers(clean)
        ):
            hints.merchant_name = line.strip()

    hints.items = _extract_items(lines)
    return hints


async def scan_receipt(image: bytes, extractor: TextExtractor) -> ReceiptHints:
    """Run text recognition on *image* and parse the result."""
    return parse_receipt_text(await extractor.extract_text(image))
