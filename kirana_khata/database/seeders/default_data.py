# kirana_khata/database/seeders/default_data.py
"""
Seed collections used on first run and whenever a stored collection fails
validation. Dates are relative to `now` so a fresh install looks lived-in.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from ...constants import DEFAULT_LANGUAGE
from ...utils.helpers import to_iso, utc_now
from ..models import (
    InventoryItem,
    KhataCustomer,
    KhataTransaction,
    PriceRecord,
    Transaction,
)


def seed_language() -> str:
    return DEFAULT_LANGUAGE


def seed_inventory(now: Optional[datetime] = None) -> List[InventoryItem]:
    now = now or utc_now()
    today = to_iso(now)
    month_ago = to_iso(now - timedelta(days=30))
    two_months_ago = to_iso(now - timedelta(days=60))
    return [
        InventoryItem(
            id="item-1", name="Basmati Chamal (1 kg)", stock=25, unit="kg", price=180,
            last_updated=today, category="Grocery", low_stock_threshold=10,
            price_history=[PriceRecord(price=175, date=month_ago)],
        ),
        InventoryItem(
            id="item-2", name="Sunko Dal (1 kg)", stock=15, unit="packet", price=210,
            last_updated=today, category="Grocery", low_stock_threshold=10,
        ),
        InventoryItem(
            id="item-3", name="Nepali Chiya", stock=42, unit="packet", price=90,
            last_updated=month_ago, category="Beverages", low_stock_threshold=10,
            price_history=[PriceRecord(price=95, date=two_months_ago)],
        ),
        InventoryItem(
            id="item-4", name="Tori ko Tel (1 L)", stock=30, unit="L", price=250,
            last_updated=today, category="Grocery", low_stock_threshold=10,
        ),
        InventoryItem(
            id="item-5", name="Chini (1 kg)", stock=50, unit="kg", price=110,
            last_updated=month_ago, category="Grocery", low_stock_threshold=10,
        ),
    ]


def seed_transactions(now: Optional[datetime] = None) -> List[Transaction]:
    return []


def seed_khata_customers(now: Optional[datetime] = None) -> List[KhataCustomer]:
    now = now or utc_now()
    return [
        KhataCustomer(
            id="khata-1",
            name="Bishnu Sharma",
            phone="9841234567",
            address="Naya Baneshwor, Kathmandu",
            pan="123456789",
            transactions=[
                KhataTransaction(
                    id="txn-3", date=to_iso(now), description="Chamal (5 kg)",
                    amount=900, type="debit",
                ),
                KhataTransaction(
                    id="txn-2", date=to_iso(now - timedelta(days=1)),
                    description="Payment received", amount=300, type="credit",
                ),
                KhataTransaction(
                    id="txn-1", date=to_iso(now - timedelta(days=2)),
                    description="Chini (2 kg), Tel (1 L)", amount=360, type="debit",
                ),
            ],
        ),
        KhataCustomer(
            id="khata-2",
            name="Laxmi Thapa",
            phone="9808765432",
            address="Patan, Lalitpur",
            transactions=[
                KhataTransaction(
                    id="txn-4", date=to_iso(now - timedelta(days=5)),
                    description="Dal, Chiyapatti, Biscuit", amount=550, type="debit",
                ),
            ],
        ),
    ]
