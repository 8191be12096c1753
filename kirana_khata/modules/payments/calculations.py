"""
payments/calculations.py

Pure helpers for khata payment previews and due math. Mirrors the numbers the
settlement reconciler records as provenance, so a preview shown before
confirming always matches what gets written.

Do not import the store or open DB connections here.
Only compute numbers; formatting belongs in the UI.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ...constants import DUE_EPSILON, SETTLED_TOLERANCE

__all__ = [
    "remaining_due_at_issuance",
    "is_fully_paid",
    "balance_status",
    "status_from_paid",
    "SettlementPreview",
    "settlement_preview",
]


# -----------------------------
# Core utilities
# -----------------------------

def remaining_due_at_issuance(amount: float, immediate_payment: Optional[float]) -> float:
    """
    Unpaid part of a goods-issued entry at the moment it was written:
        amount - immediate_payment
    Not clamped: a negative value means the customer paid more than the bill
    (the excess went against older dues or became an advance).
    """
    return float(amount) - float(immediate_payment or 0.0)


def is_fully_paid(remaining: float) -> bool:
    return remaining < DUE_EPSILON


# -----------------------------
# Balance / status labels
# -----------------------------

def balance_status(balance: float) -> str:
    """
    Badge for a khata balance:
      - 'due'     customer owes the shop
      - 'advance' shop owes the customer (overpaid)
      - 'settled' zero
    """
    if abs(balance) < DUE_EPSILON:
        return "settled"
    return "due" if balance > 0 else "advance"


def status_from_paid(total: float, paid: float) -> str:
    """
    Threshold helper for bill badges:
      - 'paid'    if paid >= total
      - 'partial' if 0 < paid < total
      - 'unpaid'  if paid == 0
    """
    if paid >= total:
        return "paid"
    if paid > 0:
        return "partial"
    return "unpaid"


# -----------------------------
# Payment modal preview
# -----------------------------

@dataclass(frozen=True)
class SettlementPreview:
    previous_due: float
    bill_total: float
    grand_total: float      # previous_due + bill_total
    amount_paid: float
    new_balance: float      # grand_total - amount_paid
    bill_change: float      # bill_total - amount_paid (effect of today's visit)
    is_settled: bool        # |bill_change| under one rupee
    is_advance: bool        # paid more than today's bill


def settlement_preview(previous_due: float, bill_total: float, amount_paid: float) -> SettlementPreview:
    """
    Numbers shown before a settlement is confirmed.

    Example: previous_due=50, bill_total=200, amount_paid=150
      -> grand_total=250, new_balance=100, bill_change=50 (added to due)
    """
    grand = float(previous_due) + float(bill_total)
    change = float(bill_total) - float(amount_paid)
    return SettlementPreview(
        previous_due=float(previous_due),
        bill_total=float(bill_total),
        grand_total=grand,
        amount_paid=float(amount_paid),
        new_balance=grand - float(amount_paid),
        bill_change=change,
        is_settled=abs(change) < SETTLED_TOLERANCE,
        is_advance=change < 0 and abs(change) >= SETTLED_TOLERANCE,
    )
