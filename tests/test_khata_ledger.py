# tests/test_khata_ledger.py
from datetime import timedelta

import pytest

from kirana_khata.modules.khata.ledger import (
    DomainError,
    add_customer,
    balance_at,
    current_balance,
    delete_customers,
    delete_entry,
    new_customer,
    outstanding_debt,
    prepend_entries,
    running_balances,
)
from kirana_khata.modules.payments.calculations import (
    balance_status,
    settlement_preview,
    status_from_paid,
)

from conftest import FIXED_NOW, credit, customer, debit

D = timedelta(days=1)


@pytest.fixture()
def ram():
    # list order is newest-first by insertion
    return customer(entries=[
        credit("c2", 100, FIXED_NOW),
        debit("d2", 250, FIXED_NOW - D),
        credit("c1", 300, FIXED_NOW - 2 * D),
        debit("d1", 500, FIXED_NOW - 3 * D),
    ])


def test_balance_is_debits_minus_credits(ram):
    assert current_balance(ram) == 500 - 300 + 250 - 100


def test_incremental_balance_matches_recomputed():
    c = customer()
    customers = [c]
    running = 0.0
    entries = [
        debit("a", 120, FIXED_NOW - 3 * D),
        credit("b", 20, FIXED_NOW - 2 * D),
        debit("c", 75.5, FIXED_NOW - D),
        credit("d", 200, FIXED_NOW),
    ]
    for e in entries:
        customers = prepend_entries(customers, c.id, [e])
        running += e.signed_amount
        assert current_balance(customers[0]) == pytest.approx(running)
    assert current_balance(customers[0]) == pytest.approx(-24.5)


def test_balance_at_uses_dates_not_list_order(ram):
    assert balance_at(ram, FIXED_NOW - 2 * D) == 200
    assert balance_at(ram, FIXED_NOW - 3 * D - timedelta(seconds=1)) == 0
    # accepts ISO strings, including the 'Z' form
    assert balance_at(ram, "2024-06-14T10:30:00.000Z") == 450


def test_running_balances_chronological_newest_first(ram):
    rows = running_balances(ram)
    assert [r.entry.id for r in rows] == ["c2", "d2", "c1", "d1"]
    assert [(r.previous, r.new) for r in rows] == [(450, 350), (200, 450), (500, 200), (0, 500)]


def test_running_balances_sorts_out_of_order_insertions():
    c = customer(entries=[debit("old", 100, FIXED_NOW - 5 * D), credit("new", 40, FIXED_NOW)])
    rows = running_balances(c)
    assert rows[0].entry.id == "new"
    assert rows[0].new == 60


def test_new_customer_requires_name_and_phone():
    with pytest.raises(DomainError):
        new_customer("", "98000")
    with pytest.raises(DomainError):
        new_customer("Sita", "  ")
    c = new_customer(" Sita ", "9800", "Pokhara", pan="")
    assert c.name == "Sita" and c.pan is None and c.transactions == []
    assert c.id.startswith("khata-")


def test_add_and_delete_customers(ram):
    other = customer("khata-y", "Hari")
    customers = add_customer([ram], other)
    assert [c.id for c in customers] == ["khata-y", "khata-x"]
    assert [c.id for c in delete_customers(customers, ["khata-x"])] == ["khata-y"]


def test_outstanding_debt_ignores_advances(ram):
    adv = customer("khata-adv", "Gita", entries=[credit("p", 500, FIXED_NOW)])
    assert outstanding_debt([ram, adv], ["khata-x", "khata-adv"]) == 350


def test_delete_entry_returns_removed(ram):
    customers, removed = delete_entry([ram], "khata-x", "d2")
    assert removed.id == "d2"
    assert current_balance(customers[0]) == 100
    assert len(ram.transactions) == 4


def test_delete_entry_unknown_ids(ram):
    customers, removed = delete_entry([ram], "khata-x", "zzz")
    assert removed is None and customers == [ram]
    customers, removed = delete_entry([ram], "nobody", "d2")
    assert removed is None


# ---------------- payment math ----------------

@pytest.mark.parametrize("balance, status", [(100, "due"), (-5, "advance"), (0.001, "settled")])
def test_balance_status(balance, status):
    assert balance_status(balance) == status


def test_status_from_paid():
    assert status_from_paid(100, 100) == "paid"
    assert status_from_paid(100, 40) == "partial"
    assert status_from_paid(100, 0) == "unpaid"


def test_settlement_preview_numbers():
    p = settlement_preview(previous_due=50, bill_total=200, amount_paid=150)
    assert p.grand_total == 250
    assert p.new_balance == 100
    assert p.bill_change == 50
    assert not p.is_settled and not p.is_advance


def test_settlement_preview_advance_and_settled():
    assert settlement_preview(0, 200, 300).is_advance
    assert settlement_preview(0, 200, 199.5).is_settled
