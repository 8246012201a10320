# app/timeline.py
from __future__ import annotations
import logging
from typing import List, Tuple

from app.state import CharacterTiming, FrozenTimeline, KeypressEvent

log = logging.getLogger(__name__)


class TimelineRecorder:
    """
    Two parallel logs for one session:
    - per-character timings, kept the same length as the current input
    - per-keystroke events, an audit trail that backspace never truncates
    """

    def __init__(self):
        self._timings: List[CharacterTiming] = []
        self._keypresses: List[KeypressEvent] = []
        self._frozen = False

    def reset(self):
        self._timings.clear()
        self._keypresses.clear()
        self._frozen = False

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def timings(self) -> Tuple[CharacterTiming, ...]:
        return tuple(self._timings)

    @property
    def keypresses(self) -> Tuple[KeypressEvent, ...]:
        return tuple(self._keypresses)

    def observe(self, user_input: str, target: str, elapsed: float, keystroke: bool = True):
        if self._frozen:
            log.debug("Timeline is frozen, ignoring input of length %d", len(user_input))
            return

        new_len = len(user_input)
        old_len = len(self._timings)

        if new_len < old_len:
            del self._timings[new_len:]
        elif new_len > old_len:
            self._grow(user_input, target, old_len, elapsed)
        elif new_len:
            self._timings[-1] = self._entry(user_input, target, new_len - 1, elapsed)

        if keystroke and new_len:
            idx = new_len - 1
            self._keypresses.append(
                KeypressEvent(elapsed, idx, _is_correct(user_input, target, idx))
            )

    def _grow(self, user_input: str, target: str, old_len: int, elapsed: float):
        added = len(user_input) - old_len
        if added == 1:
            self._timings.append(self._entry(user_input, target, old_len, elapsed))
            return
        # paste or burst: spread the new characters evenly up to `elapsed`
        t0 = self._timings[-1].elapsed_time if self._timings else 0.0
        t0 = min(t0, elapsed)
        for k in range(1, added + 1):
            t = t0 + (elapsed - t0) * k / added
            self._timings.append(self._entry(user_input, target, old_len + k - 1, t))

    @staticmethod
    def _entry(user_input: str, target: str, idx: int, t: float) -> CharacterTiming:
        return CharacterTiming(idx, user_input[idx], t, _is_correct(user_input, target, idx))

    def freeze(self) -> FrozenTimeline:
        self._frozen = True
        return FrozenTimeline(tuple(self._timings), tuple(self._keypresses))


def _is_correct(user_input: str, target: str, idx: int) -> bool:
    return idx < len(target) and user_input[idx] == target[idx]
