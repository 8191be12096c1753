from PySide6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QSizePolicy,
    QStackedWidget,
    QWidget,
)
from PySide6.QtCore import Qt
import logging
import sys

from .constants import APP_NAME
from .database import get_connection
from .modules.base_module import BaseModule
from .modules.dashboard import DashboardController
from .services.ledger_store import LedgerStore
from .utils.loggers import get_logger
from .utils.ui_helpers import wrap_center

_log = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, store: LedgerStore):
        super().__init__()
        self.setWindowTitle(APP_NAME)
        self.setWindowFlag(Qt.WindowMinimizeButtonHint, True)
        self.setWindowFlag(Qt.WindowMaximizeButtonHint, True)
        self.setMinimumSize(820, 520)

        self.store = store

        central = QWidget(self)
        row = QHBoxLayout(central)
        self.setCentralWidget(central)

        self.nav = QListWidget()
        self.nav.setFixedWidth(110)
        self.nav.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Expanding)
        self.stack = QStackedWidget()
        row.addWidget(self.nav)
        row.addWidget(self.stack, 1)

        self.modules: list[tuple[str, BaseModule]] = []
        self.nav.currentRowChanged.connect(self.stack.setCurrentIndex)

        self._add_module_safe("Home", DashboardController, self.store)

        if self.nav.count():
            self.nav.setCurrentRow(0)

    def _add_module_safe(self, title: str, controller_cls, *args, **kwargs) -> None:
        """Instantiate a page controller; on failure show a placeholder page."""
        try:
            controller = controller_cls(*args, **kwargs)
        except Exception:
            _log.exception("[%s] failed to load", title)
            self.add_placeholder(title)
            return
        # parented to the window so its store connections die with it
        controller.setParent(self)
        self.add_module(title, controller)

    def add_module(self, title: str, module: BaseModule) -> None:
        self.nav.addItem(QListWidgetItem(title))
        self.stack.addWidget(module.get_widget())
        self.modules.append((title, module))

    def add_placeholder(self, title: str) -> None:
        self.nav.addItem(QListWidgetItem(title))
        self.stack.addWidget(wrap_center(QLabel(f"{title}\n\nCould not be loaded.")))


class ErrorBoundary:
    """
    Last-resort handler for exceptions escaping Qt slots. Logs the traceback
    and offers a full reload (store re-read from disk, window rebuilt).
    """

    def __init__(self, app: QApplication, store: LedgerStore, make_window):
        self.app = app
        self.store = store
        self.make_window = make_window
        self.window = None
        self._previous = sys.excepthook

    def install(self) -> None:
        sys.excepthook = self.handle

    def uninstall(self) -> None:
        sys.excepthook = self._previous

    def handle(self, exc_type, exc_value, exc_tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            self._previous(exc_type, exc_value, exc_tb)
            return
        _log.critical("Unhandled error", exc_info=(exc_type, exc_value, exc_tb))
        choice = QMessageBox.critical(
            self.window,
            "Something went wrong",
            f"An unexpected error occurred ({exc_type.__name__}).\n\nReload the app?",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.Yes,
        )
        if choice == QMessageBox.Yes:
            self.reload()

    def reload(self) -> None:
        self.store.reload()
        old = self.window
        self.window = self.make_window()
        self.window.show()
        if old is not None:
            old.close()
            old.deleteLater()


def main():
    get_logger()

    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)

    conn = get_connection()
    store = LedgerStore(conn)

    def make_window():
        win = MainWindow(store)
        win.resize(900, 560)
        return win

    boundary = ErrorBoundary(app, store, make_window)
    boundary.install()
    boundary.window = make_window()
    boundary.window.show()

    code = app.exec()
    boundary.uninstall()
    conn.close()
    sys.exit(code)


if __name__ == "__main__":
    main()
