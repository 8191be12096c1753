from PySide6.QtCore import QObject
from PySide6.QtWidgets import QWidget


class BaseModule(QObject):
    """A navigable page: owns a widget and reacts to store changes."""

    def get_widget(self) -> QWidget:
        raise NotImplementedError
