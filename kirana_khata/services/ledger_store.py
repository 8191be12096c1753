# kirana_khata/services/ledger_store.py
"""
LedgerStore: the one owner of shop state.

Holds an immutable snapshot of the four collections (language, inventory,
sales log, khata customers). Every user action runs as a transaction script:

  1. compute the next collections from the current snapshot with the pure
     ledger functions (nothing is written if any step fails),
  2. persist every changed collection in one sqlite transaction,
  3. swap the snapshot and emit `collection_changed(key)` per changed key,
     then `state_changed()`.

Ledger outcomes come back as LedgerResult values. Only form-level input
errors (create-khata form) raise DomainError.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, replace
from datetime import date, datetime, tzinfo
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from PySide6.QtCore import QObject, Signal

from ..constants import (
    DEFAULT_LANGUAGE,
    KEY_INVENTORY,
    KEY_KHATAS,
    KEY_LANGUAGE,
    KEY_TRANSACTIONS,
    LANGUAGES,
    PAYMENT_METHODS,
    RECENT_ACTIVITY_LIMIT,
    SALE_PAYMENT_METHODS,
)
from ..database.models import (
    BillItem,
    InventoryItem,
    KhataCustomer,
    LedgerResult,
    Transaction,
    UnifiedTransaction,
)
from ..database.repositories.state_repo import COLLECTIONS, StateRepo
from ..modules.inventory import ledger as inventory_ledger
from ..modules.inventory.ledger import PurchaseLine
from ..modules.khata import ledger as khata_ledger
from ..modules.khata.settlement import SettlementPlan, bare_debit, plan_settlement
from ..modules.reporting.summary import FinancialSummary, financial_summary
from ..modules.reporting.unified import (
    ORIGINAL_KHATA,
    ORIGINAL_TRANSACTION,
    balance_at_row,
    build_unified_view,
)
from ..modules.sales import log as sales_log
from ..utils.helpers import to_iso, utc_now
from ..utils.validators import try_parse_float

_log = logging.getLogger(__name__)

# snapshot field -> storage key
_FIELD_KEYS = {
    "language": KEY_LANGUAGE,
    "inventory": KEY_INVENTORY,
    "transactions": KEY_TRANSACTIONS,
    "khata_customers": KEY_KHATAS,
}


@dataclass(frozen=True)
class LedgerState:
    language: str
    inventory: List[InventoryItem]
    transactions: List[Transaction]
    khata_customers: List[KhataCustomer]


class LedgerStore(QObject):
    state_changed = Signal()
    collection_changed = Signal(str)   # storage key of the replaced collection

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        clock: Callable[[], datetime] = utc_now,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.repo = StateRepo(conn)
        self._clock = clock
        self._state = self._load()

    # ------------------------------------------------------------------
    # Load / commit
    # ------------------------------------------------------------------

    def _load(self) -> LedgerState:
        """
        Read every collection. Keys that were absent or replaced by seed data
        are written back immediately so seeded dates stay stable.
        """
        now = self._clock()
        missing = [key for key in COLLECTIONS if self.repo.read_raw(key) is None]
        self.repo.fallbacks.clear()
        state = LedgerState(
            language=self.repo.load_language(),
            inventory=self.repo.load_inventory(now),
            transactions=self.repo.load_transactions(now),
            khata_customers=self.repo.load_khata_customers(now),
        )
        to_write = set(missing) | set(self.repo.fallbacks)
        if to_write:
            by_key = {key: getattr(state, f) for f, key in _FIELD_KEYS.items()}
            self.repo.save_many({key: by_key[key] for key in to_write})
            _log.info("Initialised stored collections: %s", ", ".join(sorted(to_write)))
        return state

    def reload(self) -> None:
        """Re-read everything from the database (used by the error boundary)."""
        self._state = self._load()
        for key in _FIELD_KEYS.values():
            self.collection_changed.emit(key)
        self.state_changed.emit()

    def _commit(self, **changes) -> None:
        new_state = replace(self._state, **changes)
        keys = [_FIELD_KEYS[f] for f in changes]
        self.repo.save_many({_FIELD_KEYS[f]: v for f, v in changes.items()})
        self._state = new_state
        for key in keys:
            self.collection_changed.emit(key)
        self.state_changed.emit()

    def _now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Snapshot accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def language(self) -> str:
        return self._state.language

    @property
    def inventory(self) -> List[InventoryItem]:
        return self._state.inventory

    @property
    def transactions(self) -> List[Transaction]:
        return self._state.transactions

    @property
    def khata_customers(self) -> List[KhataCustomer]:
        return self._state.khata_customers

    def find_customer(self, customer_id: str) -> Optional[KhataCustomer]:
        return khata_ledger.find_customer(self._state.khata_customers, customer_id)

    # ------------------------------------------------------------------
    # Language
    # ------------------------------------------------------------------

    def set_language(self, language: str) -> LedgerResult:
        if language not in LANGUAGES:
            return LedgerResult.fail(f"Unsupported language: {language}")
        if language != self._state.language:
            self._commit(language=language)
        return LedgerResult.ok(language)

    def toggle_language(self) -> str:
        nxt = "en" if self._state.language == DEFAULT_LANGUAGE else DEFAULT_LANGUAGE
        self.set_language(nxt)
        return nxt

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def add_stock(self, entries: Iterable) -> LedgerResult:
        inventory = inventory_ledger.add_stock(self._state.inventory, entries, now=self._now())
        self._commit(inventory=inventory)
        return LedgerResult.ok()

    def receive_stock(self, lines: Sequence[PurchaseLine]) -> LedgerResult:
        if not lines:
            return LedgerResult.fail("No items to add.")
        inventory = inventory_ledger.receive_stock(self._state.inventory, lines, now=self._now())
        self._commit(inventory=inventory)
        _log.info("Received %d purchase line(s) into inventory", len(lines))
        return LedgerResult.ok()

    def update_price(self, item_id: str, new_price) -> LedgerResult:
        inventory, result = inventory_ledger.update_price(
            self._state.inventory, item_id, new_price, now=self._now()
        )
        if result:
            self._commit(inventory=inventory)
        return result

    def low_stock_items(self) -> List[InventoryItem]:
        return inventory_ledger.low_stock_items(self._state.inventory)

    # ------------------------------------------------------------------
    # Sales
    # ------------------------------------------------------------------

    def confirm_sale(
        self,
        bill_items: Sequence[BillItem],
        customer_name: str,
        total_amount: float,
        payment_method: str,
        customer_id: Optional[str] = None,
    ) -> LedgerResult:
        """
        Non-settlement sale. cash/qr go to the sales log; credit with a khata
        customer becomes a bare debit entry (goods fully on credit).
        """
        method = (payment_method or "").lower()
        if method not in SALE_PAYMENT_METHODS:
            return LedgerResult.fail(f"Unknown payment method: {payment_method}")
        if method == "credit":
            if not customer_id:
                return LedgerResult.fail("Select a khata for a credit sale.")
            if self.find_customer(customer_id) is None:
                return LedgerResult.fail("Khata customer not found.")
        ok, total = try_parse_float(total_amount)
        if not ok or total < 0:
            return LedgerResult.fail("Total amount must be zero or more.")

        now = self._now()
        inventory, result = inventory_ledger.deduct_stock(self._state.inventory, bill_items, now=now)
        if not result:
            return result

        if method == "credit":
            entry = bare_debit(bill_items, total, now=now)
            customers = khata_ledger.prepend_entries(self._state.khata_customers, customer_id, [entry])
            self._commit(inventory=inventory, khata_customers=customers)
            _log.info("Credit sale %s: %.2f to khata %s", entry.id, entry.amount, customer_id)
            return LedgerResult.ok(entry)

        sale = sales_log.new_sale(
            customer_name=customer_name,
            amount=total,
            date=to_iso(now),
            items=sales_log.line_items(bill_items),
            payment_method=method,
        )
        transactions = sales_log.record_sale(self._state.transactions, sale)
        self._commit(inventory=inventory, transactions=transactions)
        _log.info("Sale %s: %.2f via %s", sale.id, sale.amount, method)
        return LedgerResult.ok(sale)

    def delete_transaction(self, transaction_id: str) -> LedgerResult:
        """
        Remove a sales-log row and put its items back into stock. Khata payment
        mirrors are removed without reversal; their goods were deducted by the
        paired debit entry, which owns the reversal.
        """
        transactions, removed = sales_log.delete_sale(self._state.transactions, transaction_id)
        if removed is None:
            return LedgerResult.fail("Transaction not found.")
        if removed.is_khata_mirror:
            self._commit(transactions=transactions)
        else:
            inventory = inventory_ledger.add_stock(self._state.inventory, removed.items, now=self._now())
            self._commit(inventory=inventory, transactions=transactions)
        _log.info("Deleted transaction %s", transaction_id)
        return LedgerResult.ok(removed)

    # ------------------------------------------------------------------
    # Khata
    # ------------------------------------------------------------------

    def settle_khata(
        self,
        customer_id: str,
        bill_items: Sequence[BillItem],
        amount_paid,
        payment_method: str = "cash",
        previous_due_override: Optional[float] = None,
    ) -> LedgerResult:
        """
        New goods and/or a payment against one khata. On success the result
        value is the SettlementPlan that was written.
        """
        method = (payment_method or "").lower()
        if method not in PAYMENT_METHODS:
            return LedgerResult.fail(f"Unknown payment method: {payment_method}")
        ok, paid = try_parse_float(amount_paid)
        if not ok or paid < 0:
            return LedgerResult.fail("Amount paid must be zero or more.")
        if not bill_items and paid == 0:
            return LedgerResult.fail("Nothing to settle.")
        customer = self.find_customer(customer_id)
        if customer is None:
            return LedgerResult.fail("Khata customer not found.")

        now = self._now()
        inventory, result = inventory_ledger.deduct_stock(self._state.inventory, bill_items, now=now)
        if not result:
            return result

        plan: SettlementPlan = plan_settlement(
            customer,
            bill_items,
            paid,
            payment_method=method,
            now=now,
            language=self._state.language,
            previous_due_override=previous_due_override,
        )
        changes: Dict[str, object] = {
            "khata_customers": khata_ledger.prepend_entries(
                self._state.khata_customers, customer_id, plan.entries
            ),
        }
        if bill_items:
            changes["inventory"] = inventory
        if plan.mirror is not None:
            changes["transactions"] = sales_log.record_sale(self._state.transactions, plan.mirror)
        self._commit(**changes)

        _log.info(
            "Settlement for %s: bill %.2f, paid %.2f, due %.2f -> %.2f",
            customer_id, plan.bill_total, paid, plan.previous_due, plan.remaining_due,
        )
        return LedgerResult.ok(plan)

    def add_items_to_khata(self, customer_id: str, bill_items: Sequence[BillItem]) -> LedgerResult:
        """Goods issued with nothing paid: a settlement with amount 0."""
        if not bill_items:
            return LedgerResult.fail("No items to add.")
        return self.settle_khata(customer_id, bill_items, 0)

    def delete_khata_transaction(self, customer_id: str, transaction_id: str) -> LedgerResult:
        customers, removed = khata_ledger.delete_entry(
            self._state.khata_customers, customer_id, transaction_id
        )
        if removed is None:
            return LedgerResult.fail("Khata entry not found.")
        if removed.items:
            inventory = inventory_ledger.add_stock(self._state.inventory, removed.items, now=self._now())
            self._commit(inventory=inventory, khata_customers=customers)
        else:
            self._commit(khata_customers=customers)
        _log.info("Deleted khata entry %s for %s", transaction_id, customer_id)
        return LedgerResult.ok(removed)

    def delete_unified(self, row: UnifiedTransaction) -> LedgerResult:
        """Route a feed row to the store that owns it."""
        if row.original_type == ORIGINAL_KHATA:
            if not row.customer_id:
                return LedgerResult.fail("Khata entry has no customer.")
            return self.delete_khata_transaction(row.customer_id, row.id)
        if row.original_type == ORIGINAL_TRANSACTION:
            return self.delete_transaction(row.id)
        return LedgerResult.fail(f"Unknown row origin: {row.original_type}")

    def add_khata_customer(
        self,
        name: str,
        phone: str,
        address: str = "",
        *,
        pan: Optional[str] = None,
        citizenship: Optional[str] = None,
    ) -> KhataCustomer:
        """Raises DomainError for a missing name or phone."""
        customer = khata_ledger.new_customer(name, phone, address, pan=pan, citizenship=citizenship)
        self._commit(khata_customers=khata_ledger.add_customer(self._state.khata_customers, customer))
        _log.info("Created khata %s (%s)", customer.id, customer.name)
        return customer

    def delete_khata_customers(self, ids: Iterable[str]) -> int:
        ids = list(ids)
        customers = khata_ledger.delete_customers(self._state.khata_customers, ids)
        removed = len(self._state.khata_customers) - len(customers)
        if removed:
            self._commit(khata_customers=customers)
        return removed

    def outstanding_debt(self, ids: Iterable[str]) -> float:
        return khata_ledger.outstanding_debt(self._state.khata_customers, ids)

    def customer_balance(self, customer_id: str) -> float:
        customer = self.find_customer(customer_id)
        return 0.0 if customer is None else khata_ledger.current_balance(customer)

    def running_balances(self, customer_id: str) -> List[khata_ledger.RunningBalance]:
        customer = self.find_customer(customer_id)
        return [] if customer is None else khata_ledger.running_balances(customer)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def unified_transactions(self, limit: Optional[int] = None) -> List[UnifiedTransaction]:
        return build_unified_view(self._state.transactions, self._state.khata_customers, limit=limit)

    def recent_transactions(self) -> List[UnifiedTransaction]:
        return self.unified_transactions(limit=RECENT_ACTIVITY_LIMIT)

    def balance_at_row(self, row: UnifiedTransaction) -> Optional[float]:
        return balance_at_row(row, self._state.khata_customers)

    def financial_summary(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        tz: Optional[tzinfo] = None,
    ) -> FinancialSummary:
        return financial_summary(self.unified_transactions(), start, end, tz)
