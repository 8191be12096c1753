"""
inventory/ledger.py

Pure stock operations over an inventory snapshot. Every function takes the
current list of items and returns a NEW list; nothing is mutated in place, so
the store can re-run or discard a computed state freely.

Invariant: stock never goes negative. Deduction is validated for the whole
batch first and then committed; an insufficient line aborts everything.

Reversal: deleting a sale or khata entry calls add_stock() with that entry's
original items. There is no rollback log beyond that.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from ...constants import (
    DEFAULT_CATEGORY,
    DEFAULT_LOW_STOCK_THRESHOLD,
    SELLING_PRICE_MARKUP,
)
from ...database.models import InventoryItem, LedgerResult, PriceRecord
from ...utils.helpers import generate_id, to_iso
from ...utils.validators import (
    is_non_negative_number,
    is_strictly_positive_number,
    non_empty,
    to_number,
)

_log = logging.getLogger(__name__)

__all__ = [
    "DomainError",
    "PurchaseLine",
    "add_stock",
    "deduct_stock",
    "receive_stock",
    "update_price",
    "low_stock_items",
    "validate_manual_item",
    "default_selling_price",
]


class DomainError(Exception):
    """Domain-level error suitable for surfacing to the UI."""
    pass


@dataclass
class PurchaseLine:
    """One line of a purchase bill (manual entry or image-parsed)."""
    name: str
    quantity: float
    unit: str
    price: float  # purchase (cost) price per unit
    selling_price: Optional[float] = None
    category: Optional[str] = None
    low_stock_threshold: Optional[float] = None
    supplier: Optional[str] = None


# ----------------------------------------------------------------------
# Internals
# ----------------------------------------------------------------------

def _index(inventory: Iterable[InventoryItem]) -> Dict[str, InventoryItem]:
    return {item.id: item for item in inventory}


def _inventory_id(entry) -> Optional[str]:
    return getattr(entry, "inventory_id", None)


def default_selling_price(cost_price: float) -> float:
    """Suggested shelf price for a newly stocked item: cost + 15%, rounded up."""
    return float(math.ceil(to_number(cost_price) * SELLING_PRICE_MARKUP))


# ----------------------------------------------------------------------
# Stock add / deduct
# ----------------------------------------------------------------------

def add_stock(inventory: List[InventoryItem], entries: Iterable, *, now: datetime) -> List[InventoryItem]:
    """
    Increase stock for each entry whose `inventory_id` resolves.

    Entries are duck-typed: anything with `inventory_id` and `quantity`
    (LineItem, StockEntry, BillItem). Optional attributes:
      - cost_price    -> appended to purchasePriceHistory with the quantity
      - selling_price -> replaces the current price when > 0
      - supplier      -> recorded on the purchase-price record

    Unresolved ids are skipped without error.
    """
    stamp = to_iso(now)
    by_id = _index(inventory)

    for entry in entries:
        inv_id = _inventory_id(entry)
        if not inv_id or inv_id not in by_id:
            continue
        item = by_id[inv_id]
        qty = to_number(getattr(entry, "quantity", 0))

        purchase_history = item.purchase_price_history
        cost = getattr(entry, "cost_price", None)
        if cost is not None and is_non_negative_number(cost):
            purchase_history = purchase_history + [
                PriceRecord(price=float(cost), date=stamp, quantity=qty,
                            supplier=getattr(entry, "supplier", None))
            ]

        price, price_history = item.price, item.price_history
        new_price = getattr(entry, "selling_price", None)
        if is_strictly_positive_number(new_price) and float(new_price) != item.price:
            price_history = price_history + [PriceRecord(price=item.price, date=item.last_updated or stamp)]
            price = float(new_price)

        by_id[inv_id] = replace(
            item,
            stock=item.stock + qty,
            last_updated=stamp,
            price=price,
            price_history=price_history,
            purchase_price_history=purchase_history,
        )

    return [by_id[item.id] for item in inventory]


def deduct_stock(
    inventory: List[InventoryItem],
    sold_items: Iterable,
    *,
    now: datetime,
) -> Tuple[List[InventoryItem], LedgerResult]:
    """
    Two-phase, all-or-nothing deduction.

    1. Validation: requested quantities are summed per inventory item; if any
       total exceeds current stock the whole batch is rejected with the item
       name and available quantity, and the original list is returned.
       A negative line quantity rejects the batch as well.
    2. Commit: stock = max(0, stock - qty) per item, lastUpdated refreshed.

    Lines without a resolvable inventory id are free-text items and have no
    stock effect.
    """
    by_id = _index(inventory)
    requested: Dict[str, float] = {}
    for line in sold_items:
        qty = to_number(getattr(line, "quantity", 0))
        if qty < 0:
            name = getattr(line, "name", "") or "item"
            return inventory, LedgerResult.fail(f"Quantity for {name} cannot be negative.", item_name=name)
        inv_id = _inventory_id(line)
        if inv_id and inv_id in by_id:
            requested[inv_id] = requested.get(inv_id, 0.0) + qty

    for inv_id, qty in requested.items():
        item = by_id[inv_id]
        if qty > item.stock:
            _log.warning("Insufficient stock for %s: requested %s, available %s", item.name, qty, item.stock)
            return inventory, LedgerResult.fail(
                f"Insufficient stock for {item.name}. Only {item.stock:g} available.",
                item_name=item.name,
                available=item.stock,
            )

    if not requested:
        return inventory, LedgerResult.ok()

    stamp = to_iso(now)
    for inv_id, qty in requested.items():
        item = by_id[inv_id]
        # clamp is a guard only; validation above ran on this same snapshot
        by_id[inv_id] = replace(item, stock=max(0.0, item.stock - qty), last_updated=stamp)

    return [by_id[item.id] for item in inventory], LedgerResult.ok()


# ----------------------------------------------------------------------
# Purchases / restock
# ----------------------------------------------------------------------

def validate_manual_item(name, quantity, price) -> PurchaseLine:
    """
    Validate the manual add-item form before it reaches the ledger.
    Raises DomainError with a user-facing message.
    """
    if not non_empty(name):
        raise DomainError("Item name cannot be empty.")
    if not is_strictly_positive_number(quantity):
        raise DomainError("Quantity must be a positive number.")
    if not is_non_negative_number(price):
        raise DomainError("Purchase price must be zero or more.")
    return PurchaseLine(name=str(name).strip(), quantity=float(quantity), unit="", price=float(price))


def receive_stock(
    inventory: List[InventoryItem],
    lines: Iterable[PurchaseLine],
    *,
    now: datetime,
) -> List[InventoryItem]:
    """
    Book a purchase bill into inventory.

    Existing items are matched by case-insensitive name: stock grows, the
    selling price/category/threshold are updated and a purchase-price record
    is appended. Unknown names create a new item with a marked-up selling
    price. The result is sorted by name.
    """
    stamp = to_iso(now)
    items = list(inventory)

    for line in lines:
        qty = to_number(line.quantity)
        cost = to_number(line.price)
        selling = (
            float(line.selling_price)
            if is_strictly_positive_number(line.selling_price)
            else default_selling_price(cost)
        )
        record = PriceRecord(price=cost, date=stamp, quantity=qty, supplier=line.supplier)
        wanted = line.name.strip().lower()
        idx = next((i for i, it in enumerate(items) if it.name.strip().lower() == wanted), None)

        if idx is not None:
            existing = items[idx]
            price_history = existing.price_history
            if selling != existing.price:
                price_history = price_history + [PriceRecord(price=existing.price, date=existing.last_updated or stamp)]
            items[idx] = replace(
                existing,
                stock=existing.stock + qty,
                price=selling,
                category=line.category or existing.category,
                low_stock_threshold=(
                    line.low_stock_threshold
                    if line.low_stock_threshold is not None
                    else existing.low_stock_threshold
                ),
                last_updated=stamp,
                price_history=price_history,
                purchase_price_history=existing.purchase_price_history + [record],
            )
        else:
            items.append(
                InventoryItem(
                    id=generate_id("item"),
                    name=line.name.strip(),
                    stock=qty,
                    unit=line.unit,
                    price=selling,
                    last_updated=stamp,
                    category=line.category or DEFAULT_CATEGORY,
                    low_stock_threshold=(
                        line.low_stock_threshold
                        if line.low_stock_threshold is not None
                        else DEFAULT_LOW_STOCK_THRESHOLD
                    ),
                    purchase_price_history=[record],
                )
            )

    return sorted(items, key=lambda it: it.name.lower())


def update_price(
    inventory: List[InventoryItem],
    item_id: str,
    new_price,
    *,
    now: datetime,
) -> Tuple[List[InventoryItem], LedgerResult]:
    """Change an item's selling price, keeping the old one in priceHistory."""
    if not is_strictly_positive_number(new_price):
        return inventory, LedgerResult.fail("Selling price must be a positive number.")
    by_id = _index(inventory)
    item = by_id.get(item_id)
    if item is None:
        return inventory, LedgerResult.fail("Item not found in inventory.")
    stamp = to_iso(now)
    by_id[item_id] = replace(
        item,
        price=float(new_price),
        price_history=item.price_history + [PriceRecord(price=item.price, date=item.last_updated or stamp)],
        last_updated=stamp,
    )
    return [by_id[it.id] for it in inventory], LedgerResult.ok(by_id[item_id])


def low_stock_items(inventory: Iterable[InventoryItem]) -> List[InventoryItem]:
    """Items at or below their threshold, emptiest first."""
    return sorted(
        (it for it in inventory if it.stock <= it.low_stock_threshold),
        key=lambda it: it.stock,
    )
