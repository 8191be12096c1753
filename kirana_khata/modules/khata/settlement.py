"""
khata/settlement.py

Settlement reconciler: turns "new goods + payment" against one khata customer
into ledger entries.

    balance_after_bill = current_balance + bill_total
    remaining_due      = balance_after_bill - amount_paid   (negative = advance)

The debit (goods) is dated at `now`; the credit (payment) at
`now + PAYMENT_DATE_OFFSET_SECONDS`, so a date sort always puts the bill
before the payment that covers it. The sales-log mirror carries the payment
amount and the same provenance.

This module only plans entries from a snapshot. Stock deduction and writing
the plan into the three collections is the store's transaction script.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from ...constants import (
    DEFAULT_LANGUAGE,
    DUE_EPSILON,
    ENTRY_CREDIT,
    ENTRY_DEBIT,
    PAYMENT_DATE_OFFSET_SECONDS,
    PAYMENT_RECEIVED_DESC,
)
from ...database.models import (
    BillItem,
    KhataCustomer,
    KhataTransaction,
    LedgerMeta,
    Transaction,
)
from ...utils.helpers import generate_id, to_iso
from ..sales.log import bill_total, describe_bill, line_items, new_sale
from .ledger import current_balance

_log = logging.getLogger(__name__)

__all__ = ["SettlementPlan", "plan_settlement", "bare_debit"]


@dataclass(frozen=True)
class SettlementPlan:
    bill_total: float
    previous_due: float          # balance before this visit
    balance_after_bill: float
    remaining_due: float
    debit: Optional[KhataTransaction] = None
    credit: Optional[KhataTransaction] = None
    mirror: Optional[Transaction] = None

    @property
    def entries(self) -> List[KhataTransaction]:
        """New sub-ledger entries, newest first (ready to prepend)."""
        return [e for e in (self.credit, self.debit) if e is not None]

    @property
    def is_settled(self) -> bool:
        return abs(self.remaining_due) < DUE_EPSILON


def bare_debit(bill_items: Sequence[BillItem], amount: float, *, now: datetime) -> KhataTransaction:
    """Goods given fully on credit; no payment tracked."""
    return KhataTransaction(
        id=generate_id("k-txn"),
        date=to_iso(now),
        description=describe_bill(bill_items),
        amount=float(amount),
        type=ENTRY_DEBIT,
        items=line_items(bill_items),
    )


def plan_settlement(
    customer: KhataCustomer,
    bill_items: Sequence[BillItem],
    amount_paid: float,
    *,
    payment_method: str,
    now: datetime,
    language: str = DEFAULT_LANGUAGE,
    previous_due_override: Optional[float] = None,
) -> SettlementPlan:
    """
    Compute the debit/credit/mirror entries for one settlement.

    The balance comes from `customer` as passed in, which is the same snapshot
    the store is about to replace. `previous_due_override` is accepted for
    callers that already show a due figure; a disagreement is only logged.
    """
    computed = current_balance(customer)
    if previous_due_override is not None and abs(previous_due_override - computed) >= DUE_EPSILON:
        _log.debug(
            "previous due override %.2f differs from ledger balance %.2f for %s",
            previous_due_override, computed, customer.id,
        )
    current = computed if previous_due_override is None else float(previous_due_override)

    total = bill_total(bill_items)
    has_bill = len(bill_items) > 0
    paid = float(amount_paid)
    balance_after_bill = current + total if has_bill else current
    remaining = balance_after_bill - paid

    bill_date = to_iso(now)
    debit = None
    if has_bill:
        debit = KhataTransaction(
            id=generate_id("k-txn"),
            date=bill_date,
            description=describe_bill(bill_items),
            amount=total,
            type=ENTRY_DEBIT,
            items=line_items(bill_items),
            immediate_payment=paid,
            meta=LedgerMeta(previous_due=current, remaining_due=balance_after_bill),
        )

    credit = mirror = None
    if paid > 0:
        payment_meta = LedgerMeta(previous_due=balance_after_bill, remaining_due=remaining)
        credit = KhataTransaction(
            id=generate_id("k-txn"),
            date=to_iso(now + timedelta(seconds=PAYMENT_DATE_OFFSET_SECONDS)),
            description=PAYMENT_RECEIVED_DESC.get(language, PAYMENT_RECEIVED_DESC[DEFAULT_LANGUAGE]),
            amount=paid,
            type=ENTRY_CREDIT,
            items=[],
            is_auto_generated=has_bill,
            meta=payment_meta,
        )
        mirror = new_sale(
            customer_name=customer.name,
            amount=paid,
            date=bill_date,
            items=line_items(bill_items),
            payment_method=payment_method,
            khata_customer_id=customer.id,
            meta=LedgerMeta(
                previous_due=balance_after_bill,
                remaining_due=remaining,
                has_new_bill=has_bill,
                bill_total=total if has_bill else None,
            ),
        )

    return SettlementPlan(
        bill_total=total,
        previous_due=current,
        balance_after_bill=balance_after_bill,
        remaining_due=remaining,
        debit=debit,
        credit=credit,
        mirror=mirror,
    )
