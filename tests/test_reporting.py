# tests/test_reporting.py
from datetime import date, timedelta, timezone

import pytest

from kirana_khata.database.models import LedgerMeta, LineItem
from kirana_khata.modules.reporting.summary import (
    category_breakdown,
    daily_insight,
    filter_unified,
    financial_summary,
    sales_chart_buckets,
    totals_by_type,
)
from kirana_khata.modules.reporting.unified import balance_at_row, build_unified_view
from kirana_khata.modules.sales.log import new_sale
from kirana_khata.utils.helpers import to_iso

from conftest import FIXED_NOW, credit, customer, debit, make_item

UTC = timezone.utc
TODAY = FIXED_NOW.date()
H = timedelta(hours=1)


def sale(amount, when, method="cash", items=None, khata_id=None, meta=None, name="Walk-in"):
    return new_sale(
        customer_name=name, amount=amount, date=to_iso(when), items=items or [],
        payment_method=method, khata_customer_id=khata_id, meta=meta,
    )


# ---------------- unified view ----------------

def test_merges_sales_and_khata_debits_newest_first():
    txns = [sale(100, FIXED_NOW - 2 * H), sale(50, FIXED_NOW, method="QR")]
    c = customer(entries=[credit("p", 30, FIXED_NOW - H), debit("d", 200, FIXED_NOW - H)])
    rows = build_unified_view(txns, [c])

    assert [r.amount for r in rows] == [50, 200, 100]
    assert rows[0].type == "qr"
    khata_row = rows[1]
    assert khata_row.original_type == "khata"
    assert khata_row.type == "credit"
    assert khata_row.customer_id == "khata-x"
    # payment entries are never listed
    assert all(r.id != "p" for r in rows)


def test_khata_row_amount_is_unpaid_part_and_prepaid_bills_dropped():
    c = customer(entries=[
        debit("part", 200, FIXED_NOW, immediate=150),
        debit("full", 120, FIXED_NOW - H, immediate=120),
        debit("over", 120, FIXED_NOW - 2 * H, immediate=200),
    ])
    rows = build_unified_view([], [c])
    assert [r.id for r in rows] == ["part"]
    assert rows[0].amount == 50
    assert rows[0].total_amount == 200
    assert rows[0].paid_amount == 150


def test_recovery_and_compound_classification():
    recovery = sale(80, FIXED_NOW, khata_id="khata-x", meta=LedgerMeta(100, 20))
    compound = sale(150, FIXED_NOW - H, khata_id="khata-x",
                    meta=LedgerMeta(250, 100, has_new_bill=True, bill_total=200))
    plain = sale(40, FIXED_NOW - 2 * H)
    rows = {r.id: r for r in build_unified_view([recovery, compound, plain], [])}

    assert rows[recovery.id].source == "recovery"
    assert rows[recovery.id].total_amount == 0
    assert rows[recovery.id].paid_amount == 80
    assert rows[compound.id].source == "sales"
    assert rows[compound.id].total_amount == 200
    assert rows[plain.id].source == "sales"
    assert rows[plain.id].total_amount == 40


def test_limit_truncates_after_sorting():
    txns = [sale(i, FIXED_NOW - i * H) for i in range(1, 8)]
    rows = build_unified_view(txns, [], limit=5)
    assert [r.amount for r in rows] == [1, 2, 3, 4, 5]


def test_sales_description_lists_quantities():
    rows = build_unified_view([sale(10, FIXED_NOW, items=[LineItem("Chini", 2)])], [])
    assert rows[0].description == "Chini (Qty: 2)"


def test_balance_at_row_for_mirror_and_debit():
    c = customer(entries=[
        credit("pay", 150, FIXED_NOW + timedelta(seconds=1)),
        debit("bill", 200, FIXED_NOW, immediate=150),
        debit("old", 50, FIXED_NOW - 3 * H),
    ])
    mirror = sale(150, FIXED_NOW, khata_id="khata-x",
                  meta=LedgerMeta(250, 100, has_new_bill=True, bill_total=200))
    rows = {r.id: r for r in build_unified_view([mirror], [c])}
    assert balance_at_row(rows[mirror.id], [c]) == 100
    assert balance_at_row(rows["bill"], [c]) == 250
    assert balance_at_row(build_unified_view([sale(5, FIXED_NOW)], [])[0], [c]) is None


# ---------------- summary ----------------

def test_financial_summary_nets_per_customer():
    # Ram: 200 bill, 150 paid on the spot, after owing 50 -> +50 net credit
    ram = customer("khata-r", "Ram", entries=[debit("rb", 200, FIXED_NOW, immediate=150)])
    ram_mirror = sale(150, FIXED_NOW, khata_id="khata-r", name="Ram",
                      meta=LedgerMeta(250, 100, has_new_bill=True, bill_total=200))
    # Sita: pays 300 against old dues -> 300 recovered
    sita_pay = sale(300, FIXED_NOW - H, method="qr", khata_id="khata-s", name="Sita",
                    meta=LedgerMeta(300, 0))
    # Hari: 100 bill paid 160 -> 60 of older dues recovered, bill row dropped
    hari = customer("khata-h", "Hari", entries=[debit("hb", 100, FIXED_NOW - H, immediate=160)])
    hari_mirror = sale(160, FIXED_NOW - H, khata_id="khata-h", name="Hari",
                       meta=LedgerMeta(140, -20, has_new_bill=True, bill_total=100))
    walk_in = sale(500, FIXED_NOW - 2 * H)

    rows = build_unified_view([ram_mirror, sita_pay, hari_mirror, walk_in], [ram, hari])
    s = financial_summary(rows, TODAY, TODAY, tz=UTC)

    assert s.credit_issued == 50
    assert s.payments == 360
    assert s.net_new_credit == 50
    assert s.debt_recovered == 360
    assert s.per_customer == {"khata-r": 50, "khata-s": -300, "khata-h": -60}
    assert s.money_in == 150 + 300 + 160 + 500
    assert s.totals["credit"] == 50
    assert s.totals["qr"] == 300


def test_financial_summary_same_day_issue_and_recovery_not_double_counted():
    c = customer("khata-r", "Ram", entries=[debit("b", 300, FIXED_NOW - 2 * H)])
    pay = sale(100, FIXED_NOW, khata_id="khata-r", name="Ram", meta=LedgerMeta(300, 200))
    s = financial_summary(build_unified_view([pay], [c]), TODAY, TODAY, tz=UTC)
    assert s.net_new_credit == 200
    assert s.debt_recovered == 0


def test_financial_summary_respects_date_slice():
    rows = build_unified_view([sale(10, FIXED_NOW - timedelta(days=2))], [])
    assert financial_summary(rows, TODAY, TODAY, tz=UTC).money_in == 0


def test_filter_by_type_category_and_search():
    inv = [make_item("item-1", "Chamal", category="Grocery"), make_item("item-2", "Chiya", category="Beverages")]
    rows = build_unified_view([
        sale(100, FIXED_NOW, items=[LineItem("Chamal", 1, "item-1")], name="Ram"),
        sale(60, FIXED_NOW, method="qr", items=[LineItem("Chiya", 1, "item-2")], name="Sita"),
        sale(30, FIXED_NOW, khata_id="k", name="Hari"),
    ], [])
    assert len(filter_unified(rows, payment_type="qr")) == 1
    bev = filter_unified(rows, category="Beverages", inventory=inv)
    assert sorted(r.customer_name for r in bev) == ["Hari", "Sita"]
    assert [r.customer_name for r in filter_unified(rows, search="chamal")] == ["Ram"]
    assert filter_unified(rows, start=TODAY + timedelta(days=1), tz=UTC) == []


def test_totals_and_category_breakdown():
    inv = [make_item("item-1", "Chamal", category="Grocery"), make_item("item-2", "Chiya", category="Beverages")]
    rows = build_unified_view([
        sale(100, FIXED_NOW, items=[LineItem("Chamal", 1, "item-1"), LineItem("Chiya", 1, "item-2")]),
        sale(40, FIXED_NOW, method="qr"),
        sale(10, FIXED_NOW, items=[LineItem("Loose", 1)]),
    ], [])
    assert totals_by_type(rows) == {"cash": 110, "qr": 40, "credit": 0, "all": 150}
    assert category_breakdown(rows, inv) == [("Grocery", 50), ("Beverages", 50), ("Uncategorized", 40), ("Other", 10)]


def test_daily_insight():
    rows = build_unified_view([sale(150, FIXED_NOW), sale(100, FIXED_NOW - timedelta(days=1))], [])
    insight = daily_insight(rows, TODAY, tz=UTC)
    assert insight.percentage == 50 and insight.is_positive
    assert daily_insight(build_unified_view([sale(1, FIXED_NOW)], []), TODAY, tz=UTC) is None


def test_chart_buckets_hourly_for_single_day():
    rows = build_unified_view([
        sale(10, FIXED_NOW.replace(hour=5)),
        sale(20, FIXED_NOW.replace(hour=22), method="qr"),
        sale(99, FIXED_NOW.replace(hour=23)),
    ], [])
    buckets = sales_chart_buckets(rows, TODAY, TODAY, tz=UTC)
    assert len(buckets) == 18
    assert buckets[0].label == "05:00" and buckets[0].cash == 10
    assert buckets[-1].label == "22:00" and buckets[-1].qr == 20
    assert sum(b.cash for b in buckets) == 10


def test_chart_buckets_daily_for_longer_ranges():
    start = TODAY - timedelta(days=6)
    rows = build_unified_view([sale(10, FIXED_NOW), sale(5, FIXED_NOW - timedelta(days=6))], [])
    buckets = sales_chart_buckets(rows, start, TODAY, tz=UTC)
    assert len(buckets) == 7
    assert buckets[0].label == start.isoformat() and buckets[0].cash == 5
    assert buckets[-1].cash == 10
