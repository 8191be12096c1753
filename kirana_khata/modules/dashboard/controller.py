# kirana_khata/modules/dashboard/controller.py
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from PySide6.QtCore import Slot
from PySide6.QtWidgets import QWidget

from ...constants import RECENT_ACTIVITY_LIMIT
from ...modules.reporting.summary import daily_insight, financial_summary
from ...services.ledger_store import LedgerStore
from ...utils.helpers import fmt_money
from ...utils.ui_helpers import confirm, error
from ..base_module import BaseModule
from .model import LowStockTableModel, UnifiedTableModel
from .view import DashboardView

_log = logging.getLogger(__name__)


class DashboardController(BaseModule):
    """
    Binds the LedgerStore to the dashboard. Everything shown is recomputed
    from the store snapshot on each `state_changed`.
    """

    def __init__(self, store: LedgerStore, *, today: Optional[date] = None) -> None:
        super().__init__()
        self.store = store
        self._today = today

        self.view = DashboardView()
        self.recent_model = UnifiedTableModel(balance_of=store.balance_at_row)
        self.low_stock_model = LowStockTableModel()
        self.view.tbl_recent.setModel(self.recent_model)
        self.view.tbl_low_stock.setModel(self.low_stock_model)

        self.view.delete_requested.connect(self._on_delete_requested)
        self.view.language_toggle_requested.connect(self._on_toggle_language)
        self.store.state_changed.connect(self.refresh)

        self.refresh()

    def get_widget(self) -> QWidget:
        return self.view

    def today(self) -> date:
        return self._today or date.today()

    @Slot()
    def refresh(self) -> None:
        rows = self.store.unified_transactions()
        self.recent_model.set_rows(rows[:RECENT_ACTIVITY_LIMIT])
        self.low_stock_model.set_rows(self.store.low_stock_items())

        today = self.today()
        summary = financial_summary(rows, today, today)
        for key in ("cash", "qr", "credit"):
            self.view.set_kpi(key, fmt_money(summary.totals.get(key, 0.0)))
        self.view.set_kpi("net_new_credit", fmt_money(summary.net_new_credit))
        self.view.set_kpi("debt_recovered", fmt_money(summary.debt_recovered))

        insight = daily_insight(rows, today)
        if insight is None:
            self.view.set_insight("")
        else:
            word = "higher" if insight.is_positive else "lower"
            self.view.set_insight(f"Sales are {abs(insight.percentage)}% {word} than yesterday.")
        self.view.set_language_label(self.store.language)

    @Slot()
    def _on_toggle_language(self) -> None:
        self.store.toggle_language()

    @Slot()
    def _on_delete_requested(self) -> None:
        row = self.recent_model.row_at(self.view.tbl_recent.selected_row())
        if row is None:
            return
        if not confirm(self.view, "Delete", f"Delete this entry for {row.customer_name or 'customer'}?\n"
                                            "Its items will be returned to stock."):
            return
        self.delete_row(row)

    def delete_row(self, row) -> bool:
        result = self.store.delete_unified(row)
        if not result:
            _log.warning("Delete failed for %s: %s", row.id, result.error)
            error(self.view, "Delete failed", result.error or "Could not delete the entry.")
            return False
        return True
