from PySide6.QtWidgets import QAbstractItemView, QTableView


class TableView(QTableView):
    """Read-only, row-selecting table used for ledger feeds."""

    def __init__(self, parent=None, *, sortable: bool = False):
        super().__init__(parent)
        # feeds arrive pre-sorted (newest first); header sorting is opt-in
        self.setSortingEnabled(sortable)
        self.setAlternatingRowColors(True)
        self.setSelectionBehavior(QTableView.SelectRows)
        self.setSelectionMode(QTableView.SingleSelection)
        self.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.verticalHeader().setVisible(False)
        self.horizontalHeader().setStretchLastSection(True)

    def selected_row(self) -> int:
        """Index of the selected row, or -1."""
        rows = self.selectionModel().selectedRows() if self.selectionModel() else []
        return rows[0].row() if rows else -1
