# core/serializer.py
from __future__ import annotations
import itertools
import logging
from collections import deque
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from PySide6.QtCore import QObject, QThreadPool, QTimer, Signal, Slot

from app.errors import EngineCallFailure
from app.state import Published, PublishSource
from core.threads import EngineCallWorker

log = logging.getLogger(__name__)


@dataclass
class _Call:
    ticket: int
    generation: int
    raw: str
    attempt: int = 0


class InputSerializer(QObject):
    """
    Single-consumer queue in front of the typing engine.

    Every full-buffer input goes through one drain loop, with at most one
    engine call in flight, in exact arrival order. With a thread pool the
    call runs on a worker and the result comes back as a queued signal;
    without one the call runs inline. Results from an older generation
    (before attach/invalidate) are dropped.
    """

    published = Signal(object)  # Published
    fault = Signal(str)
    idle = Signal()

    def __init__(
        self,
        pool: Optional[QThreadPool] = None,
        retries: int = 1,
        stall_timeout_ms: int = 3000,
        parent=None,
    ):
        super().__init__(parent)
        self._pool = pool
        self._retries = max(0, min(1, int(retries)))
        self._engine: Optional[Any] = None
        self._generation = 0
        self._queue: Deque[str] = deque()
        self._in_flight: Optional[_Call] = None
        self._pumping = False
        self._settled = True
        self._tickets = itertools.count(1)
        self._worker: Optional[EngineCallWorker] = None
        # ticket -> (engine, worker) for calls that have not reported back yet
        self._running: Dict[int, Tuple[Any, EngineCallWorker]] = {}
        self._retiring: List[Tuple[Any, Callable[[Any], None]]] = []
        self._last = Published(0, "", 100.0, 0)

        self._stall = QTimer(self)
        self._stall.setSingleShot(True)
        self._stall.setInterval(max(1, int(stall_timeout_ms)))
        self._stall.timeout.connect(self._on_stalled)

    # ---------------- session binding ----------------
    @property
    def generation(self) -> int:
        return self._generation

    @property
    def attached(self) -> bool:
        return self._engine is not None

    @property
    def busy(self) -> bool:
        return self._in_flight is not None or bool(self._queue)

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def last_published(self) -> Published:
        return self._last

    def attach(self, engine: Any) -> int:
        gen = self.invalidate()
        self._engine = engine
        self._last = Published(gen, "", 100.0, 0)
        return gen

    def retire(self, engine: Any, dispose: Callable[[Any], None]) -> bool:
        """
        Take over disposal of `engine` if a worker is still running a call on it.

        Returns False when nothing is in flight, in which case the caller
        disposes right away. Otherwise `dispose(engine)` runs once the last
        call on it reports back.
        """
        if not any(e is engine for e, _ in self._running.values()):
            return False
        self._retiring.append((engine, dispose))
        log.debug("Engine disposal deferred until its in-flight call returns")
        return True

    def _settle_worker(self, ticket: int):
        engine, _ = self._running.pop(ticket, (None, None))
        if engine is None or any(e is engine for e, _ in self._running.values()):
            return
        for i, (retired, dispose) in enumerate(self._retiring):
            if retired is engine:
                del self._retiring[i]
                dispose(engine)
                return

    def invalidate(self) -> int:
        """Detach from the engine and drop queued work; late results become stale."""
        self._generation += 1
        dropped = len(self._queue)
        self._queue.clear()
        if self._in_flight is not None or dropped:
            log.debug("Generation %d: dropped %d queued input(s)", self._generation, dropped)
        self._in_flight = None
        self._worker = None
        self._stall.stop()
        self._engine = None
        self._settled = True
        return self._generation

    # ---------------- replace path ----------------
    def enqueue(self, raw: str) -> bool:
        if self._engine is None:
            return False
        self._queue.append(raw)
        self._settled = False
        self._pump()
        return True

    def _pump(self):
        if self._pumping:
            return
        self._pumping = True
        try:
            while self._queue and self._in_flight is None and self._engine is not None:
                raw = self._queue.popleft()
                self._in_flight = _Call(next(self._tickets), self._generation, raw)
                log.debug("Dispatching input of length %d", len(raw))
                self._dispatch(self._in_flight)
        finally:
            self._pumping = False
        if not self.busy and not self._settled:
            self._settled = True
            self.idle.emit()

    def _dispatch(self, call: _Call):
        engine = self._engine
        if self._pool is None:
            try:
                result = engine.handle_input(call.raw)
            except Exception as e:
                self._on_failed(call.ticket, e)
            else:
                self._on_done(call.ticket, result)
            return

        worker = EngineCallWorker(call.ticket, partial(engine.handle_input, call.raw))
        worker.signals.done.connect(self._on_done)
        worker.signals.failed.connect(self._on_failed)
        self._worker = worker
        self._running[call.ticket] = (engine, worker)
        self._stall.start()
        self._pool.start(worker)

    def _current(self, ticket: int) -> Optional[_Call]:
        call = self._in_flight
        if call is None or call.ticket != ticket or call.generation != self._generation:
            log.debug("Discarding stale engine result (ticket %d)", ticket)
            return None
        return call

    @Slot(int, object)
    def _on_done(self, ticket: int, result: Any):
        self._settle_worker(ticket)
        call = self._current(ticket)
        if call is None:
            return
        try:
            text, accuracy, mistakes = result
            pub = Published(call.generation, str(text), float(accuracy), int(mistakes))
        except (TypeError, ValueError) as e:
            self._on_failed(ticket, e)
            return
        self._complete(pub)

    @Slot(int, object)
    def _on_failed(self, ticket: int, exc: Any):
        self._settle_worker(ticket)
        call = self._current(ticket)
        if call is None:
            return
        err = EngineCallFailure("handle_input", exc)
        if call.attempt < self._retries:
            call.attempt += 1
            log.warning("%s, retrying once", err)
            self._dispatch(call)
            return

        log.warning("%s, echoing input locally", err)
        self.fault.emit(str(err))
        last = self._last
        self._complete(Published(call.generation, call.raw, last.accuracy, last.mistakes, PublishSource.ECHO))

    def _complete(self, pub: Published):
        self._in_flight = None
        self._worker = None
        self._stall.stop()
        self._last = pub
        self.published.emit(pub)
        self._pump()

    @Slot()
    def _on_stalled(self):
        call = self._in_flight
        if call is None:
            return
        msg = f"engine call stalled for {self._stall.interval()} ms (ticket {call.ticket})"
        log.error(msg)
        self.fault.emit(msg)

    # ---------------- direct path ----------------
    def backspace(self, word_boundary: bool = False) -> bool:
        """Backspace straight against the engine; refused while a drain is active."""
        engine = self._engine
        if engine is None or self.busy:
            return False
        try:
            if not engine.handle_backspace(word_boundary):
                return False
            text, accuracy, mistakes = engine.get_stats_and_input()
        except Exception as e:
            err = EngineCallFailure("handle_backspace", e)
            log.warning("%s, keeping last input", err)
            self.fault.emit(str(err))
            return False
        pub = Published(self._generation, str(text), float(accuracy), int(mistakes), PublishSource.BACKSPACE)
        self._last = pub
        self.published.emit(pub)
        return True
