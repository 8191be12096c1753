# tests/test_dashboard.py
from PySide6.QtCore import Qt

from kirana_khata.main import MainWindow
from kirana_khata.modules.dashboard import DashboardController
from kirana_khata.modules.dashboard.model import UnifiedTableModel
from kirana_khata.utils import ui_helpers

from conftest import bill


def chamal(qty):
    return bill(name="Basmati Chamal (1 kg)", quantity=qty, price=180, inventory_id="item-1")


def make_dashboard(qtbot, store):
    ctrl = DashboardController(store, today=store._clock().date())
    qtbot.addWidget(ctrl.get_widget())
    return ctrl


def test_recent_feed_and_kpis_follow_store(qtbot, store, clock):
    ctrl = make_dashboard(qtbot, store)
    # seeded khata debits dated today/yesterday/earlier
    assert ctrl.recent_model.rowCount() == 3

    clock.advance(minutes=5)
    store.confirm_sale([chamal(2)], "Walk-in", 360, "cash")

    assert ctrl.recent_model.rowCount() == 4
    top = ctrl.recent_model.index(0, 1)
    assert ctrl.recent_model.data(top) == "Walk-in"
    assert ctrl.view.kpi_text("cash") == "360.00"
    # seeded 900 debit for khata-1 is dated today
    assert ctrl.view.kpi_text("credit") == "900.00"


def test_row_role_exposes_unified_row(qtbot, store):
    ctrl = make_dashboard(qtbot, store)
    row = ctrl.recent_model.data(ctrl.recent_model.index(0, 0), UnifiedTableModel.ROW_ROLE)
    assert row.original_type == "khata"
    assert row.customer_id == "khata-1"
    # balance column for a khata debit is the balance right after it
    assert ctrl.recent_model.data(ctrl.recent_model.index(0, 5), Qt.DisplayRole) == "960.00"


def test_delete_selected_routes_through_store(qtbot, store, clock, monkeypatch):
    ctrl = make_dashboard(qtbot, store)
    clock.advance(minutes=5)
    store.confirm_sale([chamal(3)], "Walk-in", 540, "qr")

    monkeypatch.setattr(ui_helpers.QMessageBox, "question", lambda *a, **k: ui_helpers.QMessageBox.Yes)
    ctrl.view.tbl_recent.selectRow(0)
    ctrl.view.btn_delete.click()

    assert store.transactions == []
    assert next(i.stock for i in store.inventory if i.id == "item-1") == 25


def test_low_stock_table(qtbot, store):
    ctrl = make_dashboard(qtbot, store)
    assert ctrl.low_stock_model.rowCount() == 0
    store.confirm_sale([chamal(20)], "Walk-in", 3600, "cash")
    assert ctrl.low_stock_model.rowCount() == 1
    assert ctrl.low_stock_model.data(ctrl.low_stock_model.index(0, 0)) == "Basmati Chamal (1 kg)"


def test_language_toggle_button(qtbot, store):
    ctrl = make_dashboard(qtbot, store)
    assert ctrl.view.btn_language.text() == "English"
    ctrl.view.btn_language.click()
    assert store.language == "en"
    assert ctrl.view.btn_language.text() == "नेपाली"


def test_main_window_hosts_dashboard(qtbot, store):
    win = MainWindow(store)
    qtbot.addWidget(win)
    assert win.nav.count() == 1
    assert isinstance(win.modules[0][1], DashboardController)
