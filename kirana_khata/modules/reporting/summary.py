"""
reporting/summary.py

Aggregations over a unified-view snapshot for the dashboard and analytics:
date/type/category/search filtering, totals by payment type, category
split, today-vs-yesterday insight, chart buckets and the credit summary.

Calendar math (date slices, hours) uses local time unless a `tz` is given;
stored timestamps are UTC.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import Dict, Iterable, List, Optional, Tuple

from ...constants import DEFAULT_CATEGORY
from ...database.models import InventoryItem, UnifiedTransaction
from ...utils.helpers import parse_iso
from .unified import ORIGINAL_KHATA, ORIGINAL_TRANSACTION, SOURCE_RECOVERY

PAYMENT_TYPES = ("cash", "qr", "credit")
UNCATEGORIZED = "Uncategorized"
CHART_FIRST_HOUR = 5
CHART_LAST_HOUR = 22

__all__ = [
    "FinancialSummary",
    "DailyInsight",
    "ChartBucket",
    "local_time",
    "filter_unified",
    "totals_by_type",
    "category_breakdown",
    "daily_insight",
    "sales_chart_buckets",
    "financial_summary",
]


def local_time(row: UnifiedTransaction, tz: Optional[tzinfo] = None) -> datetime:
    return parse_iso(row.date).astimezone(tz)


def _in_range(row: UnifiedTransaction, start: Optional[date], end: Optional[date], tz) -> bool:
    day = local_time(row, tz).date()
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


# ---- Filtering & totals ------------------------------------------------------

def filter_unified(
    rows: Iterable[UnifiedTransaction],
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    payment_type: str = "all",
    category: str = "all",
    search: str = "",
    inventory: Iterable[InventoryItem] = (),
    tz: Optional[tzinfo] = None,
) -> List[UnifiedTransaction]:
    """
    Slice of the feed for the analytics screen. `start`/`end` are inclusive
    calendar days. A category filter keeps rows with at least one item of that
    category, and rows without items (payments).
    """
    categories = {it.id: it.category for it in inventory}
    needle = search.strip().lower()
    out = []
    for row in rows:
        if not _in_range(row, start, end, tz):
            continue
        if payment_type != "all" and row.type != payment_type:
            continue
        if category != "all" and row.items:
            if not any(i.inventory_id and categories.get(i.inventory_id) == category for i in row.items):
                continue
        if needle and needle not in row.customer_name.lower() and needle not in row.description.lower():
            continue
        out.append(row)
    return out


def totals_by_type(rows: Iterable[UnifiedTransaction]) -> Dict[str, float]:
    totals = {t: 0.0 for t in PAYMENT_TYPES}
    totals["all"] = 0.0
    for row in rows:
        totals[row.type] = totals.get(row.type, 0.0) + row.amount
        totals["all"] += row.amount
    return totals


def category_breakdown(
    rows: Iterable[UnifiedTransaction],
    inventory: Iterable[InventoryItem],
) -> List[Tuple[str, float]]:
    """
    Amount per inventory category, largest first. Line items carry no price,
    so a row's amount is split equally across its items.
    """
    categories = {it.id: it.category for it in inventory}
    breakdown: Dict[str, float] = {}
    for row in rows:
        if not row.items:
            breakdown[UNCATEGORIZED] = breakdown.get(UNCATEGORIZED, 0.0) + row.amount
            continue
        share = row.amount / len(row.items)
        for item in row.items:
            cat = categories.get(item.inventory_id) if item.inventory_id else None
            cat = cat or DEFAULT_CATEGORY
            breakdown[cat] = breakdown.get(cat, 0.0) + share
    return sorted(breakdown.items(), key=lambda kv: kv[1], reverse=True)


# ---- Insight & chart ---------------------------------------------------------

@dataclass(frozen=True)
class DailyInsight:
    percentage: int
    is_positive: bool


def daily_insight(
    rows: Iterable[UnifiedTransaction],
    today: date,
    tz: Optional[tzinfo] = None,
) -> Optional[DailyInsight]:
    """Today's takings against yesterday's; None when yesterday had nothing."""
    yesterday = today - timedelta(days=1)
    today_total = yesterday_total = 0.0
    for row in rows:
        day = local_time(row, tz).date()
        if day == today:
            today_total += row.amount
        elif day == yesterday:
            yesterday_total += row.amount
    if yesterday_total == 0:
        return None
    change = (today_total - yesterday_total) / yesterday_total * 100
    return DailyInsight(percentage=round(change), is_positive=change >= 0)


@dataclass
class ChartBucket:
    label: str  # 'HH:00' for hourly buckets, ISO day for daily ones
    cash: float = 0.0
    qr: float = 0.0
    credit: float = 0.0


def sales_chart_buckets(
    rows: Iterable[UnifiedTransaction],
    start: date,
    end: date,
    tz: Optional[tzinfo] = None,
) -> List[ChartBucket]:
    """
    Stacked cash/qr/credit series. A single-day range gives hourly buckets
    from 05:00 to 22:00 (other hours are not charted); longer ranges give one
    bucket per calendar day.
    """
    rows = [r for r in rows if _in_range(r, start, end, tz)]
    if start >= end:
        hourly = [ChartBucket(f"{h:02d}:00") for h in range(CHART_FIRST_HOUR, CHART_LAST_HOUR + 1)]
        for row in rows:
            idx = local_time(row, tz).hour - CHART_FIRST_HOUR
            if 0 <= idx < len(hourly) and row.type in PAYMENT_TYPES:
                setattr(hourly[idx], row.type, getattr(hourly[idx], row.type) + row.amount)
        return hourly

    days = (end - start).days + 1
    daily = {start + timedelta(days=i): ChartBucket((start + timedelta(days=i)).isoformat()) for i in range(days)}
    for row in rows:
        bucket = daily.get(local_time(row, tz).date())
        if bucket is not None and row.type in PAYMENT_TYPES:
            setattr(bucket, row.type, getattr(bucket, row.type) + row.amount)
    return list(daily.values())


# ---- Credit summary ----------------------------------------------------------

@dataclass
class FinancialSummary:
    credit_issued: float = 0.0      # gross credit given in the slice
    payments: float = 0.0           # gross recovery received in the slice
    net_new_credit: float = 0.0     # Σ positive per-customer nets
    debt_recovered: float = 0.0     # Σ |negative per-customer nets|
    money_in: float = 0.0           # cash + qr actually collected
    totals: Dict[str, float] = field(default_factory=dict)
    per_customer: Dict[str, float] = field(default_factory=dict)


def financial_summary(
    rows: Iterable[UnifiedTransaction],
    start: Optional[date] = None,
    end: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> FinancialSummary:
    """
    One pass over the date slice. Per customer, credit issued (unpaid part of
    khata bills) is netted against payments (recovery rows, plus the overpaid
    part of bill+payment rows) before classifying, so issuing credit and
    partly paying it the same day is not counted as both new credit and
    recovered debt.
    """
    summary = FinancialSummary()
    sliced = [r for r in rows if _in_range(r, start, end, tz)]
    issued: Dict[str, float] = {}
    paid: Dict[str, float] = {}

    for row in sliced:
        if row.original_type == ORIGINAL_TRANSACTION:
            summary.money_in += row.paid_amount
        if row.customer_id is None and row.type != "credit":
            continue
        key = row.customer_id or row.customer_name
        if row.original_type == ORIGINAL_KHATA:
            issued[key] = issued.get(key, 0.0) + row.amount
        elif row.source == SOURCE_RECOVERY:
            paid[key] = paid.get(key, 0.0) + row.paid_amount
        else:
            # bill + payment: only money beyond the bill reduces older dues
            excess = row.paid_amount - row.total_amount
            if excess > 0:
                paid[key] = paid.get(key, 0.0) + excess

    for key in set(issued) | set(paid):
        net = issued.get(key, 0.0) - paid.get(key, 0.0)
        summary.per_customer[key] = net
        if net > 0:
            summary.net_new_credit += net
        elif net < 0:
            summary.debt_recovered += -net

    summary.credit_issued = sum(issued.values())
    summary.payments = sum(paid.values())
    summary.totals = totals_by_type(sliced)
    return summary
