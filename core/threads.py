# core/threads.py
from typing import Any, Callable

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal


class EngineCallSignals(QObject):
    done = Signal(int, object)     # ticket, result
    failed = Signal(int, object)   # ticket, exception


class EngineCallWorker(QRunnable):
    """Runs one engine call off the GUI thread and reports back by ticket."""

    def __init__(self, ticket: int, call: Callable[[], Any]):
        super().__init__()
        self.ticket = ticket
        self.call = call
        self.signals = EngineCallSignals()

    def run(self):
        try:
            result = self.call()
        except Exception as e:
            self.signals.failed.emit(self.ticket, e)
        else:
            self.signals.done.emit(self.ticket, result)


class Workers:
    pool = QThreadPool.globalInstance()
