from __future__ import annotations
import logging
import math
from typing import Iterable, List, Sequence, Tuple

from app.calculation import uniform_timings, wpm
from app.state import (
    CharacterTiming,
    ErrorMarker,
    FrozenTimeline,
    GraphPoint,
    GraphResult,
    KeypressEvent,
    Stats,
)

log = logging.getLogger(__name__)

GRAPH_INTERVAL = 1      # seconds between ticks
WPM_WINDOW = 2.0        # seconds
RAW_WINDOW = 0.5        # seconds
SMOOTH_WINDOW = 10      # ticks

Sample = Tuple[float, bool]  # (elapsed seconds, correct)


def _as_samples(timings: Iterable[CharacterTiming]) -> List[Sample]:
    return [(c.elapsed_time, c.is_correct) for c in timings]


def _window_rate(samples: Sequence[Sample], t: float, width: float, correct_only: bool) -> float:
    lo = t - width
    count = sum(
        1 for time, ok in samples
        if lo < time <= t and (ok or not correct_only)
    )
    return wpm(count, width) if count else 0.0


def sample_series(samples: Sequence[Sample], total_time: float) -> List[GraphPoint]:
    """Unsmoothed WPM (2s window, correct only) and raw (0.5s window, all chars) per whole second."""
    last = max((time for time, _ in samples), default=0.0)
    span = max(total_time, last)
    # round off float noise so 10.0000000001 does not add an eleventh tick
    ticks = math.ceil(round(span, 6))
    points = []
    for t in range(GRAPH_INTERVAL, ticks + 1, GRAPH_INTERVAL):
        points.append(GraphPoint(
            time=t,
            wpm=_window_rate(samples, t, WPM_WINDOW, correct_only=True),
            raw=_window_rate(samples, t, RAW_WINDOW, correct_only=False),
        ))
    return points


def moving_average(values: Sequence[float], window: int = SMOOTH_WINDOW) -> List[float]:
    """Trailing mean over up to `window` values (current one included)."""
    out: List[float] = []
    total = 0.0
    for i, v in enumerate(values):
        total += v
        if i >= window:
            total -= values[i - window]
        out.append(total / min(i + 1, window))
    return out


def smooth_points(points: Sequence[GraphPoint], window: int = SMOOTH_WINDOW) -> List[GraphPoint]:
    wpms = moving_average([p.wpm for p in points], window)
    raws = moving_average([p.raw for p in points], window)
    return [GraphPoint(p.time, w, r) for p, w, r in zip(points, wpms, raws)]


def synthesize_timings(correct: int, incorrect: int, total_time: float) -> List[Sample]:
    """Evenly spaced timings rebuilt from aggregate counts; correct characters come first."""
    n = correct + incorrect
    return uniform_timings([i < correct for i in range(n)], total_time)


def _closest_point(points: Sequence[GraphPoint], t: float) -> GraphPoint:
    # ties go to the earlier tick
    return min(points, key=lambda p: (abs(p.time - t), p.time))


def error_markers(
    points: Sequence[GraphPoint],
    keypresses: Sequence[KeypressEvent] = (),
    timings: Sequence[CharacterTiming] = (),
) -> List[ErrorMarker]:
    """One marker per error, sitting on the smoothed WPM curve."""
    if not points:
        return []
    if keypresses:
        error_times = [k.elapsed_time for k in keypresses if not k.is_correct]
    else:
        error_times = [c.elapsed_time for c in timings if not c.is_correct]
    markers = []
    for t in error_times:
        p = _closest_point(points, t)
        markers.append(ErrorMarker(p.time, p.wpm))
    return markers


def build_graph(stats: Stats, timeline: FrozenTimeline) -> GraphResult:
    """Results graph from a frozen timeline, falling back to synthetic timings when it is empty."""
    synthetic = False
    if timeline.timings:
        samples = _as_samples(timeline.timings)
    else:
        typed = stats.correct_chars + stats.incorrect_chars
        if stats.time <= 0 or typed <= 0:
            return GraphResult()
        log.warning(
            "No character timings for a %.2fs session, synthesizing %d evenly spaced timings",
            stats.time, typed,
        )
        samples = synthesize_timings(stats.correct_chars, stats.incorrect_chars, stats.time)
        synthetic = True

    points = smooth_points(sample_series(samples, stats.time))
    timings = timeline.timings or tuple(
        CharacterTiming(i, "", t, ok) for i, (t, ok) in enumerate(samples)
    )
    markers = error_markers(points, timeline.keypresses, timings)
    return GraphResult(tuple(points), tuple(markers), synthetic)
