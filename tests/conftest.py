"""
Shared fixtures: a controllable clock and scripted engines.
"""
import os
import threading
import time
from typing import List

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from services.typing_engine import TypingEngine  # noqa: E402


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, secs: float):
        self.now += secs


class LatencyEngine(TypingEngine):
    """Reference engine whose handle_input takes `step` seconds of fake time."""

    def __init__(self, clock: FakeClock, step: float = 0.1, text: str = ""):
        self.fake_clock = clock
        self.step = step
        self.dispose_calls = 0
        super().__init__(text, clock=clock)

    def handle_input(self, full_input):
        self.fake_clock.advance(self.step)
        return super().handle_input(full_input)

    def dispose(self):
        self.dispose_calls += 1
        super().dispose()


class SlowEngine:
    """Records every call; handle_input sleeps for real so calls overlap with enqueues."""

    def __init__(self, delay: float = 0.05):
        self.delay = delay
        self.calls: List[str] = []
        self.text = ""
        self.dispose_calls = 0
        self.disposed_during_call = False
        self._in_call = False
        self._lock = threading.Lock()
        self._input = ""

    def set_text(self, text):
        self.text = text

    def handle_input(self, full_input):
        with self._lock:
            self.calls.append(full_input)
        self._in_call = True
        try:
            time.sleep(self.delay)
        finally:
            self._in_call = False
        self._input = full_input[: len(self.text)] if self.text else full_input
        return self._input, 100.0, 0

    def handle_backspace(self, word_boundary=False):
        if not self._input:
            return False
        self._input = self._input[:-1]
        return True

    def get_stats_and_input(self):
        return self._input, 100.0, 0

    def get_stats(self):
        return 100.0, 0

    def is_finished(self):
        return bool(self.text) and self._input == self.text

    def get_time_elapsed(self):
        return 0.0

    def get_wpm(self):
        return 0.0

    def get_raw_wpm(self):
        return 0.0

    def dispose(self):
        if self._in_call:
            self.disposed_during_call = True
        self.dispose_calls += 1


class FlakyEngine(TypingEngine):
    """Fails the first `failures` handle_input calls, then behaves."""

    def __init__(self, failures: int = 1, text: str = ""):
        self.failures = failures
        self.attempts = 0
        super().__init__(text)

    def handle_input(self, full_input):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise RuntimeError("engine hiccup")
        return super().handle_input(full_input)


class EngineFactory:
    """Builds engines on demand and keeps every instance for later inspection."""

    def __init__(self, make):
        self.make = make
        self.engines: list = []

    def __call__(self):
        engine = self.make()
        self.engines.append(engine)
        return engine


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def latency_factory(clock) -> EngineFactory:
    return EngineFactory(lambda: LatencyEngine(clock))
