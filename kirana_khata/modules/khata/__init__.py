"""
Khata (customer credit) sub-ledgers and the settlement reconciler.
"""

from .ledger import (
    DomainError,
    RunningBalance,
    add_customer,
    balance_at,
    current_balance,
    delete_customers,
    delete_entry,
    find_customer,
    new_customer,
    outstanding_debt,
    prepend_entries,
    running_balances,
)
from .settlement import SettlementPlan, bare_debit, plan_settlement

__all__ = [
    "DomainError",
    "RunningBalance",
    "add_customer",
    "balance_at",
    "current_balance",
    "delete_customers",
    "delete_entry",
    "find_customer",
    "new_customer",
    "outstanding_debt",
    "prepend_entries",
    "running_balances",
    "SettlementPlan",
    "bare_debit",
    "plan_settlement",
]
