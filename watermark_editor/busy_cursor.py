"""Busy cursor shown while an operation runs and the UI stays responsive."""

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QApplication


class BusyCursor:
    """Application-wide busy cursor that can be toggled from signal handlers.

    ``set_busy`` is idempotent: repeated True calls push the override once,
    and False restores it once.
    """

    def __init__(self, shape: Qt.CursorShape = Qt.CursorShape.BusyCursor):
        self._shape = shape
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def set_busy(self, busy: bool) -> None:
        if busy and not self._active:
            QApplication.setOverrideCursor(self._shape)
            self._active = True
        elif not busy and self._active:
            QApplication.restoreOverrideCursor()
            self._active = False
