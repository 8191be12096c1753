"""
sales/log.py

The sales transaction log: completed cash/QR sales plus the sales-side mirror
of every khata payment (tagged with khata_customer_id). Newest entries first.
Append and delete only; an amendment is a delete followed by a new sale.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from ...database.models import BillItem, LedgerMeta, LineItem, Transaction
from ...utils.helpers import generate_id
from ...utils.validators import to_number

__all__ = [
    "bill_total",
    "describe_bill",
    "describe_items",
    "line_items",
    "new_sale",
    "record_sale",
    "delete_sale",
    "find_sale",
]


def bill_total(bill_items: Iterable[BillItem]) -> float:
    """Σ price × quantity; non-numeric price or quantity counts as 0."""
    return sum((to_number(b.price) * to_number(b.quantity) for b in bill_items), 0.0)


def describe_bill(bill_items: Iterable[BillItem]) -> str:
    return ", ".join(f"{b.name} ({b.quantity} {b.unit})".replace(" )", ")") for b in bill_items)


def describe_items(items: Iterable[LineItem]) -> str:
    return ", ".join(f"{i.name} (Qty: {i.quantity})" for i in items)


def line_items(bill_items: Iterable[BillItem]) -> List[LineItem]:
    return [b.to_line_item() for b in bill_items]


def new_sale(
    *,
    customer_name: str,
    amount: float,
    date: str,
    items: List[LineItem],
    payment_method: str,
    khata_customer_id: Optional[str] = None,
    meta: Optional[LedgerMeta] = None,
) -> Transaction:
    return Transaction(
        id=generate_id("txn"),
        customer_name=customer_name,
        amount=float(amount),
        date=date,
        items=items,
        payment_method=payment_method.lower(),
        khata_customer_id=khata_customer_id,
        meta=meta,
    )


def record_sale(transactions: List[Transaction], sale: Transaction) -> List[Transaction]:
    return [sale] + list(transactions)


def find_sale(transactions: Iterable[Transaction], sale_id: str) -> Optional[Transaction]:
    return next((t for t in transactions if t.id == sale_id), None)


def delete_sale(
    transactions: List[Transaction], sale_id: str
) -> Tuple[List[Transaction], Optional[Transaction]]:
    """
    Remove a sale by id. Returns (new_log, removed); `removed` is None when the
    id is unknown and the log is returned unchanged. The caller reverses the
    removed sale's items into inventory.
    """
    removed = find_sale(transactions, sale_id)
    if removed is None:
        return transactions, None
    return [t for t in transactions if t.id != sale_id], removed
