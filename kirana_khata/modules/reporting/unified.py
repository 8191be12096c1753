"""
reporting/unified.py

Read-only merge of the sales log and the khata sub-ledgers into one feed of
UnifiedTransaction rows, newest first. Recomputed from the two snapshots on
every call; nothing here is cached or persisted.

Sales rows
  type         lowercase payment method
  source       'recovery' for a khata payment mirror without a new bill
  total_amount 0 for recovery, bill total for bill+payment, else amount
  paid_amount  amount

Khata rows (debit entries only; payments are already in the sales mirror)
  type         'credit'
  amount       unpaid part at issuance (amount - immediate_payment)
  rows under DUE_EPSILON are dropped (bill was fully paid on the spot)
"""
from __future__ import annotations

from typing import Iterable, List, Optional

from ...constants import ENTRY_DEBIT
from ...database.models import KhataCustomer, Transaction, UnifiedTransaction
from ...utils.helpers import parse_iso
from ..khata.ledger import balance_at, find_customer
from ..payments.calculations import is_fully_paid, remaining_due_at_issuance
from ..sales.log import describe_items

ORIGINAL_TRANSACTION = "transaction"
ORIGINAL_KHATA = "khata"
SOURCE_SALES = "sales"
SOURCE_RECOVERY = "recovery"


def _sale_row(txn: Transaction) -> UnifiedTransaction:
    meta = txn.meta
    has_new_bill = bool(meta and meta.has_new_bill)
    if txn.khata_customer_id is not None and not has_new_bill:
        source, total = SOURCE_RECOVERY, 0.0
    elif has_new_bill and meta.bill_total is not None:
        source, total = SOURCE_SALES, meta.bill_total
    else:
        source, total = SOURCE_SALES, txn.amount
    return UnifiedTransaction(
        id=txn.id,
        type=txn.payment_method.lower(),
        customer_name=txn.customer_name,
        amount=txn.amount,
        date=txn.date,
        description=describe_items(txn.items),
        items=txn.items,
        original_type=ORIGINAL_TRANSACTION,
        customer_id=txn.khata_customer_id,
        total_amount=total,
        paid_amount=txn.amount,
        source=source,
        meta=meta,
    )


def _khata_rows(customer: KhataCustomer) -> List[UnifiedTransaction]:
    rows = []
    for entry in customer.transactions:
        if entry.type != ENTRY_DEBIT:
            continue
        unpaid = remaining_due_at_issuance(entry.amount, entry.immediate_payment)
        if is_fully_paid(unpaid):
            continue
        rows.append(
            UnifiedTransaction(
                id=entry.id,
                type="credit",
                customer_name=customer.name,
                amount=unpaid,
                date=entry.date,
                description=entry.description,
                items=entry.items,
                original_type=ORIGINAL_KHATA,
                customer_id=customer.id,
                total_amount=entry.amount,
                paid_amount=float(entry.immediate_payment or 0.0),
                source=SOURCE_SALES,
                meta=entry.meta,
            )
        )
    return rows


def build_unified_view(
    transactions: Iterable[Transaction],
    khata_customers: Iterable[KhataCustomer],
    *,
    limit: Optional[int] = None,
) -> List[UnifiedTransaction]:
    rows = [_sale_row(t) for t in transactions]
    for customer in khata_customers:
        rows.extend(_khata_rows(customer))
    rows.sort(key=lambda r: parse_iso(r.date), reverse=True)
    return rows if limit is None else rows[:limit]


def balance_at_row(row: UnifiedTransaction, khata_customers: Iterable[KhataCustomer]) -> Optional[float]:
    """
    Customer balance left right after this event, or None for rows that are
    not tied to a khata. Sale rows subtract their own payment, since the
    paired credit entry is dated a moment later.
    """
    if row.customer_id is None:
        return None
    customer = find_customer(khata_customers, row.customer_id)
    if customer is None:
        return None
    balance = balance_at(customer, row.date)
    if row.original_type == ORIGINAL_TRANSACTION:
        balance -= row.paid_amount
    return balance
