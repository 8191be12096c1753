"""
Payment math shared by the settlement reconciler and the payment dialog.
"""

from .calculations import (
    SettlementPreview,
    balance_status,
    is_fully_paid,
    remaining_due_at_issuance,
    settlement_preview,
    status_from_paid,
)

__all__ = [
    "SettlementPreview",
    "balance_status",
    "is_fully_paid",
    "remaining_due_at_issuance",
    "settlement_preview",
    "status_from_paid",
]
