# core/chrono.py
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer, Signal


class LiveTicker(QObject):
    """
    Drives periodic read-only refreshes (live stats, timer label).
    The cadence belongs to the ticker; whatever it calls must not depend on it.
    """
    ticked = Signal()
    started = Signal()
    stopped = Signal()

    def __init__(self, tick_ms: int = 100, callback: Optional[Callable[[], object]] = None, parent=None):
        super().__init__(parent)
        self._callback = callback
        self._tick = QTimer(self)
        self._tick.setInterval(max(1, int(tick_ms)))
        self._tick.timeout.connect(self._on_tick)

    @property
    def interval_ms(self) -> int:
        return self._tick.interval()

    def is_active(self) -> bool:
        return self._tick.isActive()

    def start(self):
        if self._tick.isActive():
            return
        self._tick.start()
        self.started.emit()

    def stop(self):
        if self._tick.isActive():
            self._tick.stop()
            self.stopped.emit()

    def _on_tick(self):
        if self._callback is not None:
            self._callback()
        self.ticked.emit()
