from __future__ import annotations

from typing import Callable, List, Optional

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt

from ...database.models import InventoryItem, UnifiedTransaction
from ...utils.helpers import fmt_money, parse_iso


class UnifiedTableModel(QAbstractTableModel):
    """
    Recent-activity feed. Rows are UnifiedTransaction snapshots; the row object
    is exposed through ROW_ROLE so the controller can route deletion.
    """

    HEADERS = ["Date", "Customer", "Type", "Amount", "Description", "Balance"]
    ROW_ROLE = Qt.UserRole + 1

    def __init__(
        self,
        rows: Optional[List[UnifiedTransaction]] = None,
        balance_of: Optional[Callable[[UnifiedTransaction], Optional[float]]] = None,
    ):
        super().__init__()
        self._rows = list(rows or [])
        self._balance_of = balance_of

    def rowCount(self, parent=QModelIndex()):
        return len(self._rows)

    def columnCount(self, parent=QModelIndex()):
        return len(self.HEADERS)

    def _balance_text(self, r: UnifiedTransaction) -> str:
        if self._balance_of is None:
            return ""
        bal = self._balance_of(r)
        return "" if bal is None else fmt_money(bal)

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid():
            return None
        r = self._rows[index.row()]
        c = index.column()

        if role == Qt.DisplayRole:
            if c == 0:
                return parse_iso(r.date).astimezone().strftime("%Y-%m-%d %H:%M")
            if c == 1:
                return r.customer_name
            if c == 2:
                return "recovery" if r.source == "recovery" else r.type
            if c == 3:
                return fmt_money(r.amount)
            if c == 4:
                return r.description
            if c == 5:
                return self._balance_text(r)
        if role == Qt.TextAlignmentRole and c in (3, 5):
            return int(Qt.AlignRight | Qt.AlignVCenter)
        if role == self.ROW_ROLE:
            return r
        return None

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            return self.HEADERS[section]
        return super().headerData(section, orientation, role)

    def row_at(self, row: int) -> Optional[UnifiedTransaction]:
        return self._rows[row] if 0 <= row < len(self._rows) else None

    def set_rows(self, rows: List[UnifiedTransaction]) -> None:
        self.beginResetModel()
        self._rows = list(rows)
        self.endResetModel()


class LowStockTableModel(QAbstractTableModel):
    HEADERS = ["Item", "Stock", "Threshold"]

    def __init__(self, rows: Optional[List[InventoryItem]] = None):
        super().__init__()
        self._rows = list(rows or [])

    def rowCount(self, parent=QModelIndex()):
        return len(self._rows)

    def columnCount(self, parent=QModelIndex()):
        return len(self.HEADERS)

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid() or role != Qt.DisplayRole:
            return None
        it = self._rows[index.row()]
        return [it.name, f"{it.stock:g} {it.unit}".strip(), f"{it.low_stock_threshold:g}"][index.column()]

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            return self.HEADERS[section]
        return super().headerData(section, orientation, role)

    def set_rows(self, rows: List[InventoryItem]) -> None:
        self.beginResetModel()
        self._rows = list(rows)
        self.endResetModel()
