"""
khata/ledger.py

Per-customer credit sub-ledgers. Each KhataCustomer owns an ordered list of
entries (newest first by insertion). Balance math always goes by each entry's
`date`, never by list position:

    balance = Σ debit.amount - Σ credit.amount

All functions are pure over a list of customers and return new lists.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ...database.models import KhataCustomer, KhataTransaction
from ..inventory.ledger import DomainError
from ...utils.helpers import generate_id, parse_iso
from ...utils.validators import non_empty

__all__ = [
    "DomainError",
    "RunningBalance",
    "entry_time",
    "current_balance",
    "balance_at",
    "running_balances",
    "new_customer",
    "add_customer",
    "find_customer",
    "prepend_entries",
    "delete_entry",
    "delete_customers",
    "outstanding_debt",
]

DateLike = Union[str, datetime]


@dataclass(frozen=True)
class RunningBalance:
    entry: KhataTransaction
    previous: float
    new: float


def entry_time(entry: KhataTransaction) -> datetime:
    return parse_iso(entry.date)


def _as_datetime(at: DateLike) -> datetime:
    return parse_iso(at) if isinstance(at, str) else at


# ---- Balances -------------------------------------------------------------

def current_balance(customer: KhataCustomer) -> float:
    return sum((t.signed_amount for t in customer.transactions), 0.0)


def balance_at(customer: KhataCustomer, at: DateLike) -> float:
    """Historical balance: every entry dated at or before `at`."""
    cutoff = _as_datetime(at)
    return sum(
        (t.signed_amount for t in customer.transactions if entry_time(t) <= cutoff),
        0.0,
    )


def running_balances(customer: KhataCustomer) -> List[RunningBalance]:
    """
    Replay the sub-ledger oldest-first and report the balance before/after
    each entry. Returned newest-first for display; ties keep insertion order.
    """
    # list is newest-first by insertion; reverse so equal dates replay in insertion order
    chronological = sorted(reversed(customer.transactions), key=entry_time)
    running = 0.0
    rows: List[RunningBalance] = []
    for entry in chronological:
        previous = running
        running += entry.signed_amount
        rows.append(RunningBalance(entry=entry, previous=previous, new=running))
    rows.reverse()
    return rows


# ---- Customers --------------------------------------------------------------

def new_customer(
    name: str,
    phone: str,
    address: str = "",
    *,
    pan: Optional[str] = None,
    citizenship: Optional[str] = None,
) -> KhataCustomer:
    """
    Build a customer from the create-khata form. Name and phone are required;
    the form blocks submission before the ledger is touched.
    """
    if not non_empty(name):
        raise DomainError("Name cannot be empty.")
    if not non_empty(phone):
        raise DomainError("Phone cannot be empty.")
    return KhataCustomer(
        id=generate_id("khata"),
        name=name.strip(),
        phone=phone.strip(),
        address=(address or "").strip(),
        pan=(pan or "").strip() or None,
        citizenship=(citizenship or "").strip() or None,
        transactions=[],
    )


def add_customer(customers: List[KhataCustomer], customer: KhataCustomer) -> List[KhataCustomer]:
    return [customer] + list(customers)


def find_customer(customers: Iterable[KhataCustomer], customer_id: str) -> Optional[KhataCustomer]:
    return next((c for c in customers if c.id == customer_id), None)


def delete_customers(customers: List[KhataCustomer], ids: Iterable[str]) -> List[KhataCustomer]:
    drop = set(ids)
    return [c for c in customers if c.id not in drop]


def outstanding_debt(customers: Iterable[KhataCustomer], ids: Iterable[str]) -> float:
    """Σ of positive balances among `ids` (advances do not offset dues)."""
    wanted = set(ids)
    total = 0.0
    for c in customers:
        if c.id in wanted:
            bal = current_balance(c)
            if bal > 0:
                total += bal
    return total


# ---- Entries ----------------------------------------------------------------

def prepend_entries(
    customers: List[KhataCustomer],
    customer_id: str,
    entries: Sequence[KhataTransaction],
) -> List[KhataCustomer]:
    """
    Put `entries` (already in newest-first order) at the head of one
    customer's list. Other customers are returned untouched.
    """
    return [
        replace(c, transactions=list(entries) + c.transactions) if c.id == customer_id else c
        for c in customers
    ]


def delete_entry(
    customers: List[KhataCustomer],
    customer_id: str,
    entry_id: str,
) -> Tuple[List[KhataCustomer], Optional[KhataTransaction]]:
    """
    Remove one entry from one customer's sub-ledger. Returns
    (new_customers, removed); removed is None when nothing matched. The caller
    reverses the removed entry's items into inventory.
    """
    customer = find_customer(customers, customer_id)
    if customer is None:
        return customers, None
    removed = next((t for t in customer.transactions if t.id == entry_id), None)
    if removed is None:
        return customers, None
    updated = replace(customer, transactions=[t for t in customer.transactions if t.id != entry_id])
    return [updated if c.id == customer_id else c for c in customers], removed
