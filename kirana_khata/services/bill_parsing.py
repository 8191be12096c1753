# kirana_khata/services/bill_parsing.py
"""
Glue for the external text/image parsing service.

The service itself is a collaborator passed in as `transport`; it returns the
raw JSON text of the model response. This module:
  - normalizes tolerant payloads (quantity defaults to 1, price to 0, names
    pass through),
  - turns malformed payloads and transport errors into a ParseOutcome with a
    user-facing message, never an exception,
  - links parsed lines to stocked items so they deduct stock when billed.

Nothing here touches ledger state; parsed lines only reach the ledger when
the owner confirms a bill.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Protocol

from ..constants import DEFAULT_LANGUAGE
from ..database.models import BillItem, InventoryItem
from ..modules.inventory.ledger import PurchaseLine
from ..modules.inventory.matching import find_inventory_item
from ..utils.validators import try_parse_float

_log = logging.getLogger(__name__)

MSG_BILL_FAILED = "Failed to understand the items. Please try again."
MSG_IMAGE_FAILED = "Failed to read the bill image. Please ensure it's clear and try again."
MSG_KHATA_FAILED = "Failed to understand the transaction. Please try again."
GUEST_CUSTOMER = "Guest Customer"


class BillParsingError(Exception):
    """Collaborator answered, but not in the agreed shape."""
    pass


class ParsingTransport(Protocol):
    def parse_bill_text(self, text: str, language: str) -> str: ...
    def parse_inventory_image(self, image: bytes, language: str) -> str: ...
    def parse_khata_entry(self, text: str, language: str) -> str: ...


@dataclass
class ParsedLine:
    name: str
    quantity: float = 1.0
    unit: str = ""
    price: float = 0.0


@dataclass
class ParsedBill:
    items: List[ParsedLine] = field(default_factory=list)
    customer_name: Optional[str] = None


@dataclass
class ParsedKhataEntry:
    description: str
    amount: float


@dataclass
class ParseOutcome:
    success: bool
    value: Any = None
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.success


# ---------------------------------------------------------------------------
# Normalization (pure)
# ---------------------------------------------------------------------------

def _number(value, default: float) -> float:
    ok, v = try_parse_float(value)
    return v if ok else default  # type: ignore[return-value]


def _line(raw: Any) -> ParsedLine:
    if not isinstance(raw, dict):
        raw = {"name": raw}
    return ParsedLine(
        name=str(raw.get("name") or "").strip(),
        quantity=_number(raw.get("quantity"), 1.0),
        unit=str(raw.get("unit") or ""),
        price=_number(raw.get("price"), 0.0),
    )


def _loads(payload: Any) -> Any:
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            return json.loads(payload)
        except json.JSONDecodeError as e:
            raise BillParsingError("Response is not valid JSON.") from e
    return payload


def normalize_bill_response(payload: Any) -> ParsedBill:
    """`{items: [...], customerName?}`; a missing items array is an error."""
    data = _loads(payload)
    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        raise BillParsingError("Invalid response format: missing items array.")
    name = data.get("customerName")
    return ParsedBill(
        items=[_line(raw) for raw in data["items"]],
        customer_name=str(name).strip() if name else None,
    )


def normalize_inventory_response(payload: Any) -> List[ParsedLine]:
    data = _loads(payload)
    if not isinstance(data, list):
        raise BillParsingError("Invalid response format: expected an array.")
    return [_line(raw) for raw in data]


def normalize_khata_entry_response(payload: Any) -> ParsedKhataEntry:
    data = _loads(payload)
    if not isinstance(data, dict) or not data.get("description"):
        raise BillParsingError("Invalid response format: missing description.")
    amount = data.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise BillParsingError("Invalid response format: amount must be a number.")
    return ParsedKhataEntry(description=str(data["description"]), amount=float(amount))


# ---------------------------------------------------------------------------
# Linking parsed lines to stock
# ---------------------------------------------------------------------------

def link_parsed_items(lines: Iterable[ParsedLine], inventory: List[InventoryItem]) -> List[BillItem]:
    """
    Editable bill lines for parsed items. A line that resolves to a stocked
    item carries its inventory id (and its unit/price when the parse left
    them empty); an unresolved line stays free text with no stock effect.
    """
    out = []
    for line in lines:
        match = find_inventory_item(line.name, inventory)
        if match is None:
            out.append(BillItem(name=line.name, quantity=line.quantity, unit=line.unit, price=line.price))
            continue
        out.append(
            BillItem(
                name=match.name,
                quantity=line.quantity,
                unit=line.unit or match.unit,
                price=line.price if line.price > 0 else match.price,
                inventory_id=match.id,
            )
        )
    return out


def purchase_lines(lines: Iterable[ParsedLine], supplier: Optional[str] = None) -> List[PurchaseLine]:
    """Image-parsed purchase bill lines, ready for receive_stock()."""
    return [
        PurchaseLine(name=l.name, quantity=l.quantity, unit=l.unit, price=l.price, supplier=supplier)
        for l in lines
        if l.name
    ]


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class BillParsingService:
    """Calls the transport and converts every failure into a ParseOutcome."""

    def __init__(self, transport: ParsingTransport):
        self.transport = transport

    def parse_bill(self, text: str, language: str = DEFAULT_LANGUAGE) -> ParseOutcome:
        try:
            bill = normalize_bill_response(self.transport.parse_bill_text(text, language))
        except Exception:
            _log.exception("Error parsing billing from voice")
            return ParseOutcome(False, error=MSG_BILL_FAILED)
        if not bill.customer_name:
            bill.customer_name = GUEST_CUSTOMER
        return ParseOutcome(True, value=bill)

    def parse_inventory_image(self, image: bytes, language: str = DEFAULT_LANGUAGE) -> ParseOutcome:
        try:
            lines = normalize_inventory_response(self.transport.parse_inventory_image(image, language))
        except Exception:
            _log.exception("Error parsing inventory from image")
            return ParseOutcome(False, error=MSG_IMAGE_FAILED)
        return ParseOutcome(True, value=lines)

    def parse_khata_entry(self, text: str, language: str = DEFAULT_LANGUAGE) -> ParseOutcome:
        try:
            entry = normalize_khata_entry_response(self.transport.parse_khata_entry(text, language))
        except Exception:
            _log.exception("Error parsing khata transaction from voice")
            return ParseOutcome(False, error=MSG_KHATA_FAILED)
        return ParseOutcome(True, value=entry)
