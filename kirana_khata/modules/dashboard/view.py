from __future__ import annotations

from typing import Dict

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ...widgets.table_view import TableView


class KPICard(QFrame):
    def __init__(self, title: str, parent=None):
        super().__init__(parent)
        self.setFrameShape(QFrame.StyledPanel)
        lay = QVBoxLayout(self)
        self.lbl_title = QLabel(title)
        self.lbl_value = QLabel("0.00")
        self.lbl_value.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        self.lbl_value.setStyleSheet("font-size: 16px; font-weight: 600;")
        lay.addWidget(self.lbl_title)
        lay.addWidget(self.lbl_value)

    def set_value(self, text: str) -> None:
        self.lbl_value.setText(text)


class DashboardView(QWidget):
    """
    Today's takings, credit movement, recent activity and low stock.

    Signals:
      - delete_requested(): delete the selected activity row
      - language_toggle_requested()
    """

    delete_requested = Signal()
    language_toggle_requested = Signal()

    KPIS = [
        ("cash", "Cash"),
        ("qr", "QR"),
        ("credit", "Credit"),
        ("net_new_credit", "Net New Credit"),
        ("debt_recovered", "Debt Recovered"),
    ]

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self._cards: Dict[str, KPICard] = {}
        self._build_ui()

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        root.setContentsMargins(8, 8, 8, 8)
        root.setSpacing(10)

        top = QHBoxLayout()
        title = QLabel("<h2>Today</h2>")
        title.setTextFormat(Qt.RichText)
        top.addWidget(title)
        top.addStretch(1)
        self.lbl_insight = QLabel("")
        top.addWidget(self.lbl_insight)
        self.btn_language = QPushButton("")
        self.btn_language.clicked.connect(self.language_toggle_requested)
        top.addWidget(self.btn_language)
        root.addLayout(top)

        grid = QGridLayout()
        for i, (key, label) in enumerate(self.KPIS):
            card = KPICard(label)
            self._cards[key] = card
            grid.addWidget(card, 0, i)
        root.addLayout(grid)

        root.addWidget(QLabel("<b>Recent activity</b>"))
        self.tbl_recent = TableView()
        root.addWidget(self.tbl_recent, 2)

        actions = QHBoxLayout()
        actions.addStretch(1)
        self.btn_delete = QPushButton("Delete selected")
        self.btn_delete.clicked.connect(self.delete_requested)
        actions.addWidget(self.btn_delete)
        root.addLayout(actions)

        root.addWidget(QLabel("<b>Low stock</b>"))
        self.tbl_low_stock = TableView()
        root.addWidget(self.tbl_low_stock, 1)

    # ---- setters used by the controller ----
    def set_kpi(self, key: str, text: str) -> None:
        card = self._cards.get(key)
        if card is not None:
            card.set_value(text)

    def kpi_text(self, key: str) -> str:
        return self._cards[key].lbl_value.text()

    def set_insight(self, text: str) -> None:
        self.lbl_insight.setText(text)

    def set_language_label(self, language: str) -> None:
        self.btn_language.setText("English" if language == "ne" else "नेपाली")
