# tests/test_inventory_ledger.py
from datetime import timedelta

import pytest

from kirana_khata.database.models import LineItem, StockEntry
from kirana_khata.modules.inventory.ledger import (
    DomainError,
    PurchaseLine,
    add_stock,
    deduct_stock,
    default_selling_price,
    low_stock_items,
    receive_stock,
    update_price,
    validate_manual_item,
)
from kirana_khata.modules.inventory.matching import find_inventory_item
from kirana_khata.utils.helpers import to_iso

from conftest import FIXED_NOW, bill, make_item

LATER = FIXED_NOW + timedelta(hours=1)


@pytest.fixture()
def inventory():
    return [
        make_item("item-1", "Basmati Chamal (1 kg)", stock=25, price=180),
        make_item("item-2", "Sunko Dal (1 kg)", stock=15, price=210),
        make_item("item-3", "Nepali Chiya", stock=4, price=90, unit="packet"),
    ]


# ---------------- deduct ----------------

def test_deduct_reduces_stock_and_refreshes_timestamp(inventory):
    out, result = deduct_stock(inventory, [bill(inventory_id="item-1", quantity=5)], now=LATER)
    assert result.success
    assert out[0].stock == 20
    assert out[0].last_updated == to_iso(LATER)
    # input snapshot untouched
    assert inventory[0].stock == 25


def test_deduct_is_all_or_nothing(inventory):
    lines = [bill(inventory_id="item-1", quantity=2), bill(inventory_id="item-3", quantity=5)]
    out, result = deduct_stock(inventory, lines, now=LATER)
    assert not result
    assert result.item_name == "Nepali Chiya"
    assert result.available == 4
    assert "Only 4 available" in result.error
    assert out is inventory
    assert [i.stock for i in out] == [25, 15, 4]


def test_deduct_sums_repeated_lines_before_checking(inventory):
    lines = [bill(inventory_id="item-3", quantity=3), bill(inventory_id="item-3", quantity=2)]
    _, result = deduct_stock(inventory, lines, now=LATER)
    assert not result.success


def test_deduct_ignores_free_text_lines(inventory):
    out, result = deduct_stock(inventory, [bill(name="Biscuit", quantity=100)], now=LATER)
    assert result.success
    assert [i.stock for i in out] == [25, 15, 4]


def test_deduct_rejects_negative_quantity(inventory):
    lines = [bill(name="Basmati Chamal (1 kg)", inventory_id="item-1", quantity=2),
             bill(name="Sunko Dal (1 kg)", inventory_id="item-2", quantity=-3)]
    out, result = deduct_stock(inventory, lines, now=LATER)
    assert not result
    assert result.item_name == "Sunko Dal (1 kg)"
    assert "cannot be negative" in result.error
    assert out is inventory
    assert [i.stock for i in out] == [25, 15, 4]


def test_deduct_treats_non_numeric_quantity_as_zero(inventory):
    out, result = deduct_stock(inventory, [bill(inventory_id="item-1", quantity="abc")], now=LATER)
    assert result.success
    assert out[0].stock == 25


def test_stock_never_negative_over_sequence(inventory):
    state = inventory
    for qty in (10, 10, 10, 5, 1):
        state, _ = deduct_stock(state, [bill(inventory_id="item-1", quantity=qty)], now=LATER)
        assert all(i.stock >= 0 for i in state)
    assert state[0].stock == 0


# ---------------- add / reversal ----------------

def test_add_stock_reverses_a_deduction_exactly(inventory):
    sold = [LineItem(name="Sunko Dal (1 kg)", quantity=7, inventory_id="item-2")]
    after_sale, _ = deduct_stock(inventory, sold, now=LATER)
    restored = add_stock(after_sale, sold, now=LATER)
    assert restored[1].stock == 15


def test_add_stock_skips_unknown_ids(inventory):
    out = add_stock(inventory, [LineItem(name="x", quantity=3, inventory_id="nope")], now=LATER)
    assert [i.stock for i in out] == [25, 15, 4]


def test_add_stock_records_cost_and_selling_price(inventory):
    entry = StockEntry(quantity=10, inventory_id="item-3", cost_price=70, selling_price=95, supplier="Ilam Tea")
    out = add_stock(inventory, [entry], now=LATER)
    item = out[2]
    assert item.stock == 14
    assert item.price == 95
    assert item.price_history[-1].price == 90
    rec = item.purchase_price_history[-1]
    assert (rec.price, rec.quantity, rec.supplier) == (70, 10, "Ilam Tea")


# ---------------- purchases ----------------

def test_receive_stock_merges_by_name_case_insensitive(inventory):
    out = receive_stock(
        inventory,
        [PurchaseLine(name="nepali chiya", quantity=20, unit="packet", price=70, selling_price=100)],
        now=LATER,
    )
    chiya = next(i for i in out if i.id == "item-3")
    assert chiya.stock == 24
    assert chiya.price == 100
    assert len(chiya.purchase_price_history) == 1
    assert len(out) == 3


def test_receive_stock_creates_new_item_with_markup(inventory):
    out = receive_stock(inventory, [PurchaseLine(name="Ghee", quantity=5, unit="L", price=100)], now=LATER)
    ghee = next(i for i in out if i.name == "Ghee")
    assert ghee.price == default_selling_price(100) == 115
    assert ghee.category == "Other"
    assert ghee.low_stock_threshold == 10
    assert [i.name for i in out] == sorted((i.name for i in out), key=str.lower)


def test_validate_manual_item_rejects_bad_input():
    with pytest.raises(DomainError):
        validate_manual_item("  ", 1, 10)
    with pytest.raises(DomainError):
        validate_manual_item("Salt", 0, 10)
    line = validate_manual_item(" Salt ", "2", "25")
    assert (line.name, line.quantity, line.price) == ("Salt", 2.0, 25.0)


def test_update_price_keeps_history(inventory):
    out, result = update_price(inventory, "item-1", 190, now=LATER)
    assert result.success
    assert out[0].price == 190
    assert out[0].price_history[-1].price == 180


def test_update_price_rejects_non_positive(inventory):
    out, result = update_price(inventory, "item-1", 0, now=LATER)
    assert not result.success
    assert out is inventory


def test_low_stock_items_sorted_by_stock():
    items = [make_item("a", "A", stock=9), make_item("b", "B", stock=2), make_item("c", "C", stock=50)]
    assert [i.id for i in low_stock_items(items)] == ["b", "a"]


# ---------------- name matching ----------------

@pytest.mark.parametrize(
    "query, expected",
    [
        ("basmati chamal (1 kg)", "item-1"),   # exact, case-insensitive
        ("Sunko Dal", "item-2"),               # parenthetical ignored
        ("chiya patti", "item-3"),             # first-token substring
        ("ghee", None),
        ("", None),
    ],
)
def test_find_inventory_item(inventory, query, expected):
    match = find_inventory_item(query, inventory)
    assert (match.id if match else None) == expected
