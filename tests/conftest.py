# tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - pytest-qt owns QApplication (use qapp/qtbot fixtures)
# - Every test gets its own SQLite file under tmp_path (schema applied,
#   no stored collections, so the store starts from seed data)
# - The clock is frozen; seeded dates are relative to it
# - Silence benign Qt signal warnings
# ---------------------------------------------------------------------

from __future__ import annotations

import os
import re
from datetime import datetime, timedelta, timezone

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6 import QtCore

from kirana_khata.database import get_connection
from kirana_khata.database.models import BillItem, InventoryItem, KhataCustomer, KhataTransaction
from kirana_khata.services.ledger_store import LedgerStore
from kirana_khata.utils.helpers import to_iso

FIXED_NOW = datetime(2024, 6, 15, 10, 30, 0, tzinfo=timezone.utc)


# ---------- Qt: let pytest-qt own the app ----------
@pytest.fixture(scope="session")
def app(qapp):  # alias to match code that expects an `app` fixture
    return qapp


# ---------- Silence benign Qt warnings ----------
_BENIGN_QT_PATTERNS = [
    r"^QObject::connect: .* already connected",
    r"^QObject::disconnect: Unexpected null parameter",
    r"^QBasicTimer::stop: Failed\. Platform timer not running\.",
]

@pytest.fixture(autouse=True, scope="session")
def _silence_benign_qt():
    """Filter common harmless Qt messages during tests."""
    rx = [re.compile(p) for p in _BENIGN_QT_PATTERNS]

    def handler(msg_type, context, message):
        text = str(message)
        if any(r.search(text) for r in rx):
            return
        print(text)

    original = QtCore.qInstallMessageHandler(handler)
    try:
        yield
    finally:
        QtCore.qInstallMessageHandler(original)


# ---------- Clock ----------
class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture()
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


# ---------- DB ----------
@pytest.fixture()
def db_path(tmp_path):
    return tmp_path / "kirana_test.db"


@pytest.fixture()
def conn(db_path):
    con = get_connection(db_path)
    try:
        yield con
    finally:
        con.close()


@pytest.fixture()
def store(qapp, conn, clock):
    """LedgerStore over a fresh DB (seed inventory + two seeded khatas)."""
    return LedgerStore(conn, clock=clock)


# ---------- Builders ----------
def make_item(item_id="item-x", name="Sugar (1 kg)", stock=10, price=100, **kw) -> InventoryItem:
    return InventoryItem(
        id=item_id,
        name=name,
        stock=stock,
        unit=kw.pop("unit", "kg"),
        price=price,
        last_updated=kw.pop("last_updated", to_iso(FIXED_NOW)),
        **kw,
    )


def bill(name="Sugar (1 kg)", quantity=1, price=100, inventory_id=None, unit="kg") -> BillItem:
    return BillItem(name=name, quantity=quantity, unit=unit, price=price, inventory_id=inventory_id)


def debit(entry_id, amount, date, items=None, immediate=None) -> KhataTransaction:
    return KhataTransaction(
        id=entry_id, date=to_iso(date), description="goods", amount=amount,
        type="debit", items=items or [], immediate_payment=immediate,
    )


def credit(entry_id, amount, date) -> KhataTransaction:
    return KhataTransaction(
        id=entry_id, date=to_iso(date), description="Payment received",
        amount=amount, type="credit",
    )


def customer(cid="khata-x", name="Ram", entries=None) -> KhataCustomer:
    return KhataCustomer(id=cid, name=name, phone="9800000000", address="", transactions=entries or [])
