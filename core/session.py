# core/session.py
from __future__ import annotations
import logging
import time
from dataclasses import replace
from typing import Any, Callable, List, Optional

from PySide6.QtCore import QObject, Signal, Slot

from app.calculation import compute_stats
from app.errors import EngineInitFailure
from app.graph import build_graph
from app.state import (
    EngineSample,
    Published,
    PublishSource,
    Session,
    SessionResult,
    SessionState,
    Stats,
)
from app.timeline import TimelineRecorder
from core.handle import EngineHandle
from core.serializer import InputSerializer
from services.typing_engine import TypingEngine

log = logging.getLogger(__name__)

SIGNIFICANT_CHANGE = 0.1


def _significant(prev: Stats, new: Stats) -> bool:
    return (
        abs(prev.wpm - new.wpm) > SIGNIFICANT_CHANGE
        or abs(prev.raw_wpm - new.raw_wpm) > SIGNIFICANT_CHANGE
        or abs(prev.time - new.time) > SIGNIFICANT_CHANGE
    )


class SessionController(QObject):
    """
    Session state machine: idle -> running -> finished.

    Owns the engine handle, the input serializer and the timeline. Every
    input change arrives as a published engine result; the live stats are a
    pure recompute of the latest one.
    """

    stateChanged = Signal(str)
    inputChanged = Signal(str)
    statsChanged = Signal(object)   # Stats
    finished = Signal(object)       # SessionResult
    engineError = Signal(str)
    engineFault = Signal(str)

    def __init__(
        self,
        engine_factory: Optional[Callable[[], Any]] = None,
        serializer: Optional[InputSerializer] = None,
        clock: Callable[[], float] = time.monotonic,
        parent=None,
    ):
        super().__init__(parent)
        self._clock = clock
        if engine_factory is None:
            engine_factory = lambda: TypingEngine(clock=clock)  # noqa: E731
        self._serializer = serializer or InputSerializer(parent=self)
        self._handle = EngineHandle(engine_factory, retire=self._serializer.retire)
        self._serializer.published.connect(self._on_published)
        self._serializer.fault.connect(self.engineFault)

        self.session = Session()
        self._timeline = TimelineRecorder()
        self._samples: List[EngineSample] = []
        self._snapshot = Published(0, "", 100.0, 0)
        self._generation = 0
        self._buffer = ""
        self._result: Optional[SessionResult] = None

    # ---------------- read-only views ----------------
    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def stats(self) -> Stats:
        return self.session.stats

    @property
    def result(self) -> Optional[SessionResult]:
        return self._result

    @property
    def timeline(self) -> TimelineRecorder:
        return self._timeline

    @property
    def serializer(self) -> InputSerializer:
        return self._serializer

    @property
    def handle(self) -> EngineHandle:
        return self._handle

    @property
    def samples(self) -> List[EngineSample]:
        return list(self._samples)

    @property
    def buffer(self) -> str:
        return self._buffer

    # ---------------- transitions ----------------
    def _set_state(self, state: SessionState):
        if self.session.state is state:
            return
        self.session.state = state
        self.stateChanged.emit(state.value)

    def _clear(self, text: str = "", attribution: str = "", category: str = ""):
        self._timeline.reset()
        self._samples = []
        self._buffer = ""
        self._result = None
        self.session.reset(text, attribution, category)
        self._snapshot = Published(self._generation, "", 100.0, 0)

    def start(self, text: str, attribution: str = "", category: str = "") -> bool:
        """Begin a new session on `text`; any previous session is discarded."""
        self._serializer.invalidate()
        self._clear(text, attribution, category)
        try:
            engine = self._handle.replace()
            try:
                engine.set_text(text)
            except Exception as e:
                raise EngineInitFailure(f"set_text failed: {e}") from e
        except EngineInitFailure as e:
            self._handle.release()
            self._clear()
            self._set_state(SessionState.IDLE)
            log.error("Could not start session: %s", e)
            self.engineError.emit(str(e))
            return False

        self._generation = self._serializer.attach(engine)
        self._snapshot = self._serializer.last_published
        self._set_state(SessionState.RUNNING)
        self.inputChanged.emit("")
        self.statsChanged.emit(self.session.stats)
        log.info("Session started (%d chars, category %r)", len(text), category or "random")
        return True

    def return_to_idle(self):
        self._serializer.invalidate()
        self._handle.release()
        self._clear()
        self._set_state(SessionState.IDLE)
        log.info("Returned to idle")

    shutdown = return_to_idle

    # ---------------- input ----------------
    def submit(self, raw: str) -> bool:
        """Hand a full input buffer to the serializer. Over-long input is silently refused."""
        s = self.session
        if s.state is not SessionState.RUNNING or not self._serializer.attached:
            return False
        if len(raw) > len(s.target_text):
            return False
        if s.mark_started(self._clock()):
            log.debug("First keystroke, clock started")
        self._buffer = raw
        return self._serializer.enqueue(raw)

    def type_char(self, ch: str) -> bool:
        if not ch:
            return False
        return self.submit(self._buffer + ch)

    def backspace(self, word_boundary: bool = False) -> bool:
        if self.session.state is not SessionState.RUNNING:
            return False
        return self._serializer.backspace(word_boundary)

    @Slot(object)
    def _on_published(self, pub: Published):
        s = self.session
        if pub.generation != self._generation or s.state is not SessionState.RUNNING:
            return

        self._snapshot = pub
        changed = pub.input != s.current_input
        s.current_input = pub.input
        s.engine_accuracy = pub.accuracy
        s.engine_mistakes = pub.mistakes
        if not self._serializer.busy:
            self._buffer = pub.input

        if changed:
            self._timeline.observe(
                pub.input,
                s.target_text,
                s.elapsed(self._clock()),
                keystroke=pub.source is not PublishSource.BACKSPACE,
            )
            self.inputChanged.emit(pub.input)

        try:
            done = self._handle.current.is_finished()
        except Exception as e:
            log.warning("is_finished failed: %s", e)
            self.engineFault.emit(f"is_finished failed: {e}")
            return
        if done:
            self._finish()

    def _finish(self):
        s = self.session
        elapsed = s.elapsed(self._clock())
        stats = compute_stats(s.current_input, s.target_text, elapsed)

        # the engine owns accuracy and mistakes (it knows about corrected typos)
        try:
            accuracy, mistakes = self._handle.current.get_stats()
        except Exception as e:
            log.warning("get_stats failed at finish, using last published values: %s", e)
            accuracy, mistakes = s.engine_accuracy, s.engine_mistakes
        stats = replace(stats, accuracy=float(accuracy), incorrect_chars=int(mistakes))

        self._serializer.invalidate()
        timeline = self._timeline.freeze()
        if not timeline.timings:
            log.warning("Session finished with an empty timeline")
        graph = build_graph(stats, timeline)

        s.stats = stats
        s.is_running = False
        self._result = SessionResult(
            stats=stats,
            text=s.target_text,
            user_input=s.current_input,
            attribution=s.attribution,
            timeline=timeline,
            samples=tuple(self._samples),
            graph=graph,
        )
        self._set_state(SessionState.FINISHED)
        self.statsChanged.emit(stats)
        self.finished.emit(self._result)
        log.info(
            "Session finished: %.1f wpm, %.1f%% accuracy, %.2fs",
            stats.wpm, stats.accuracy, stats.time,
        )

    # ---------------- live refresh ----------------
    def refresh(self) -> Stats:
        """Recompute live stats from the latest published snapshot. Safe to call at any rate."""
        s = self.session
        if s.state is not SessionState.RUNNING or s.started_at is None:
            return s.stats

        snap = self._snapshot
        stats = compute_stats(snap.input, s.target_text, s.elapsed(self._clock()))
        # against the last emitted stats, not the previous tick
        if _significant(s.stats, stats):
            s.stats = stats
            self._sample_engine(snap)
            self.statsChanged.emit(stats)
        return stats

    def _sample_engine(self, snap: Published):
        # only while no call is in flight; the engine is not shared across threads
        if self._serializer.busy or not self._handle.attached:
            return
        engine = self._handle.current
        try:
            sample = EngineSample(
                time=float(engine.get_time_elapsed()),
                wpm=float(engine.get_wpm()),
                raw=float(engine.get_raw_wpm()),
                is_error=snap.mistakes > 0,
            )
        except Exception as e:
            log.debug("Engine sample skipped: %s", e)
            return
        self._samples.append(sample)
