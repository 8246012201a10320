# services/typing_engine.py
from __future__ import annotations
import time
from typing import Callable, List, Optional, Tuple

from app.errors import InvalidState


def find_word_start(text: str, pos: int) -> int:
    i = max(0, min(pos, len(text)))
    while i > 0 and not text[i - 1].isspace():
        i -= 1
    return i


class TypingEngine:
    """
    Reference typing-correctness engine, the session of record for input,
    accuracy and mistakes.

    - input is applied as a full buffer, never a delta
    - accuracy counts each character once, when first typed at its position,
      so fixing a typo later does not win the accuracy back
    - mistakes is the total number of errors ever made
    - backspace only crosses into an earlier word when that word holds an error
    """

    def __init__(self, text: str = "", clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._disposed = False
        self.text = ""
        self.input = ""
        self.set_text(text)

    # ---------------- lifecycle ----------------
    def set_text(self, text: str):
        self._check_alive()
        if self.input:
            raise InvalidState("cannot change text after input has started")
        self.text = text or ""
        self._reset()

    def _reset(self):
        self.input = ""
        self._started_at: Optional[float] = None
        self._finished = False
        self.error_positions: List[int] = []
        self.current_streak = 0
        self.best_streak = 0
        self._last_len = 0
        self._typed_total = 0
        self._correct_total = 0
        self._errors_total = 0

    def start(self):
        self._check_alive()
        self._started_at = self._clock()

    def dispose(self):
        if self._disposed:
            raise InvalidState("engine already disposed")
        self._disposed = True

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _check_alive(self):
        if self._disposed:
            raise InvalidState("engine has been disposed")

    # ---------------- input ----------------
    def handle_input(self, full_input: str) -> Tuple[str, float, int]:
        self._check_alive()
        if self._finished:
            return self.get_stats_and_input()
        if self._started_at is None:
            self._started_at = self._clock()
        # characters beyond the target are clamped
        self.input = (full_input or "")[: len(self.text)]
        self._update()
        return self.get_stats_and_input()

    def handle_backspace(self, word_boundary: bool = False) -> bool:
        self._check_alive()
        if self._finished or not self.input:
            return False

        if word_boundary:
            new_len = self._word_backspace_target()
            if new_len is None:
                return False
        else:
            if not self._can_backspace_to(len(self.input) - 1):
                return False
            new_len = len(self.input) - 1

        self.input = self.input[:new_len]
        self._update()
        return True

    def _word_backspace_target(self) -> Optional[int]:
        word_start = find_word_start(self.input, len(self.input))
        if word_start < len(self.input):
            return word_start
        # at a word start: jump back to the word holding the latest earlier error
        earlier = [p for p in self.error_positions if p < word_start]
        if not earlier:
            return None
        return find_word_start(self.input, earlier[-1])

    def _can_backspace_to(self, pos: int) -> bool:
        if pos < 0 or pos >= len(self.input):
            return False
        if pos >= find_word_start(self.input, len(self.input)):
            return True
        return any(p <= pos for p in self.error_positions)

    def _update(self):
        typed = self.input
        new_chars = max(0, len(typed) - self._last_len)
        self._typed_total += new_chars

        self.error_positions = []
        streak = best = 0
        for i, (ch, want) in enumerate(zip(typed, self.text)):
            fresh = i >= self._last_len
            if ch == want:
                streak += 1
                best = max(best, streak)
                if fresh:
                    self._correct_total += 1
            else:
                streak = 0
                self.error_positions.append(i)
                if fresh:
                    self._errors_total += 1

        self.current_streak = streak
        self.best_streak = best
        self._last_len = len(typed)
        self._finished = (
            bool(typed)
            and len(typed) >= len(self.text)
            and typed.strip() == self.text.strip()
        )

    # ---------------- queries ----------------
    def is_finished(self) -> bool:
        self._check_alive()
        return self._finished

    def get_input(self) -> str:
        return self.input

    def accuracy(self) -> float:
        if self._typed_total == 0:
            return 100.0
        return max(0.0, min(100.0, 100.0 * self._correct_total / self._typed_total))

    def get_stats(self) -> Tuple[float, int]:
        self._check_alive()
        return self.accuracy(), self._errors_total

    def get_stats_and_input(self) -> Tuple[str, float, int]:
        self._check_alive()
        return self.input, self.accuracy(), self._errors_total

    def get_time_elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return max(0.0, self._clock() - self._started_at)

    def get_wpm(self) -> float:
        secs = self.get_time_elapsed()
        if secs <= 0:
            return 0.0
        return (len(self.input) / 5.0) / (secs / 60.0)

    def get_raw_wpm(self) -> float:
        secs = self.get_time_elapsed()
        if secs <= 0:
            return 0.0
        return (self._typed_total / 5.0) / (secs / 60.0)
