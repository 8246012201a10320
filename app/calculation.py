from __future__ import annotations
from collections import deque
from typing import Deque, List, Sequence, Tuple

from app.state import Stats

CHARS_PER_WORD = 5.0
RAW_PEAK_WINDOW = 0.5  # seconds


def wpm(chars: float, seconds: float) -> float:
    """WPM = (chars / 5) / (seconds / 60); 0 for a non-positive duration."""
    if seconds <= 0:
        return 0.0
    return (chars / CHARS_PER_WORD) / (seconds / 60.0)


def correctness_flags(user_input: str, target: str) -> List[bool]:
    n = len(target)
    return [i < n and ch == target[i] for i, ch in enumerate(user_input)]


def uniform_timings(flags: Sequence[bool], elapsed: float) -> List[Tuple[float, bool]]:
    """
    Spread characters evenly over the elapsed time: char i arrives at (i / n) * elapsed.
    This is an approximation, not measured data. The live raw-WPM peak and the
    graph's synthetic fallback both rely on it and must stay in step.
    """
    n = len(flags)
    if n == 0:
        return []
    return [((i / n) * elapsed, ok) for i, ok in enumerate(flags)]


def peak_raw_wpm(flags: Sequence[bool], elapsed: float, window_sec: float = RAW_PEAK_WINDOW) -> float:
    """
    Peak speed over a trailing window that slides one character at a time.
    The rate uses the span actually covered by the retained characters, not
    the nominal window, so sparse windows do not blow up.
    """
    window: Deque[Tuple[float, bool]] = deque()
    in_window = 0
    peak = 0.0
    for t, ok in uniform_timings(flags, elapsed):
        window.append((t, ok))
        if ok:
            in_window += 1
        while window and t - window[0][0] > window_sec:
            _, old_ok = window.popleft()
            if old_ok:
                in_window -= 1
        span = t - window[0][0]
        if span > 0:
            peak = max(peak, wpm(in_window, span))
    return peak


def compute_stats(user_input: str, target: str, elapsed: float) -> Stats:
    """Stats snapshot for the current input. Pure: same arguments, same result."""
    flags = correctness_flags(user_input, target)
    correct = 0
    streak = 0
    best = 0
    for ok in flags:
        if ok:
            correct += 1
            streak += 1
            best = max(best, streak)
        else:
            streak = 0

    typed = len(user_input)
    if typed == 0:
        accuracy = 100.0
    else:
        accuracy = max(0.0, min(100.0, 100.0 * correct / typed))

    return Stats(
        wpm=0.0 if elapsed == 0 else wpm(correct, elapsed),
        raw_wpm=peak_raw_wpm(flags, elapsed),
        accuracy=accuracy,
        time=elapsed,
        correct_chars=correct,
        incorrect_chars=typed - correct,
        total_chars=len(target),
        current_streak=streak,
        best_streak=best,
    )
