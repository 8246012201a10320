import math
from typing import Tuple

import pyqtgraph as pg
from PySide6.QtCore import Qt

# 600px of plot area at ~40px per label
DEFAULT_MAX_LABELS = 15

WPM_COLOR = "#eab308"
RAW_COLOR = "#9aa1a9"
ERROR_COLOR = "#ef4444"


def x_tick_step(duration: float, max_labels: int = DEFAULT_MAX_LABELS) -> int:
    x_max = math.ceil(duration) if duration > 0 else 0
    if max_labels > 0 and x_max > max_labels:
        return math.ceil(x_max / max_labels)
    if x_max > 60:
        return 10
    if x_max > 30:
        return 5
    return 1


def y_axis_scale(peak_wpm: float, duration: float) -> Tuple[int, int]:
    """Return (step, max) for the WPM axis."""
    x_max = math.ceil(duration) if duration > 0 else 0
    step = 10 if (x_max > 60 or peak_wpm > 50) else 5
    top = max(step, math.ceil(max(0.0, peak_wpm) / step) * step)
    return step, top


def setup_wpm_plot(plot_widget: pg.PlotWidget):
    plot_widget.setBackground(None)
    plot_widget.showGrid(x=False, y=True, alpha=0.15)
    plot_widget.setMenuEnabled(False)
    plot_widget.setMouseEnabled(x=False, y=False)
    plot_widget.hideButtons()
    plot_widget.setLabel("left", "WPM")
    plot_widget.setLabel("bottom", "Time (s)")
    plot_widget.getAxis("left").setStyle(tickLength=-5)
    plot_widget.addLegend(offset=(-10, 10))


def draw_graph(plot_widget: pg.PlotWidget, graph, duration: float, max_labels: int = DEFAULT_MAX_LABELS):
    """Plot smoothed WPM, raw WPM (dashed) and error markers; returns the three items."""
    plot_widget.clear()
    xs = [p.time for p in graph.points]
    wpm_curve = plot_widget.plot(
        xs, [p.wpm for p in graph.points],
        pen=pg.mkPen(WPM_COLOR, width=2.5), antialias=True, name="wpm",
    )
    raw_curve = plot_widget.plot(
        xs, [p.raw for p in graph.points],
        pen=pg.mkPen(RAW_COLOR, width=1.5, style=Qt.DashLine), antialias=True, name="raw",
    )
    errors = plot_widget.plot(
        [m.time for m in graph.markers], [m.wpm for m in graph.markers],
        pen=None, symbol="x", symbolSize=9,
        symbolPen=pg.mkPen(ERROR_COLOR, width=2), symbolBrush=None, name="errors",
    )

    x_max = max(xs) if xs else max(1, math.ceil(duration))
    step = x_tick_step(x_max, max_labels)
    ticks = [(t, str(t)) for t in range(1, int(x_max) + 1, step)]
    plot_widget.getAxis("bottom").setTicks([ticks])
    plot_widget.setXRange(1 if xs else 0, x_max, padding=0.02)

    peak = max([p.wpm for p in graph.points] + [p.raw for p in graph.points], default=0.0)
    y_step, y_top = y_axis_scale(peak, x_max)
    plot_widget.getAxis("left").setTicks([[(v, str(v)) for v in range(0, y_top + 1, y_step)]])
    plot_widget.setYRange(0, y_top, padding=0.02)
    return wpm_curve, raw_curve, errors
