"""
QTimer-backed scheduler for debounced chart updates.
"""
from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QObject, QTimer


class QtScheduler(QObject):
    """Runs callbacks on the Qt event loop after a delay."""

    def __init__(self, parent: QObject | None = None):
        super().__init__(parent)
        self._timers: set[QTimer] = set()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> QTimer:
        timer = QTimer(self)
        timer.setSingleShot(True)

        def fire():
            self._release(timer)
            callback()

        timer.timeout.connect(fire)
        self._timers.add(timer)
        timer.start(delay_ms)
        return timer

    def cancel(self, token: QTimer) -> None:
        token.stop()
        self._release(token)

    def _release(self, timer: QTimer) -> None:
        if timer in self._timers:
            self._timers.discard(timer)
            timer.deleteLater()
