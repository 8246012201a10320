import pyqtgraph as pg
import pytest

from app.graph import build_graph
from app.state import CharacterTiming, FrozenTimeline, GraphResult, KeypressEvent, Stats
from utils.graph_helper import draw_graph, setup_wpm_plot, x_tick_step, y_axis_scale


@pytest.mark.parametrize(
    "duration, max_labels, step",
    [
        (10, 15, 1),
        (40, 60, 5),
        (90, 100, 10),
        (45, 15, 3),
        (0, 15, 1),
    ],
)
def test_x_tick_step(duration, max_labels, step):
    assert x_tick_step(duration, max_labels) == step


@pytest.mark.parametrize(
    "peak, duration, expected",
    [
        (0, 10, (5, 5)),
        (42, 10, (5, 45)),
        (51, 10, (10, 60)),
        (30, 61, (10, 30)),
        (120, 5, (10, 120)),
    ],
)
def test_y_axis_scale(peak, duration, expected):
    assert y_axis_scale(peak, duration) == expected


def test_draw_graph_plots_points_and_markers(qtbot):
    timings = tuple(CharacterTiming(i, "a", float(i + 1), i != 2) for i in range(5))
    keys = tuple(KeypressEvent(t.elapsed_time, t.index, t.is_correct) for t in timings)
    graph = build_graph(Stats(time=5.0, correct_chars=4, incorrect_chars=1), FrozenTimeline(timings, keys))

    plot = pg.PlotWidget()
    qtbot.addWidget(plot)
    setup_wpm_plot(plot)
    wpm_curve, raw_curve, errors = draw_graph(plot, graph, 5.0)

    xs, ys = wpm_curve.getData()
    assert list(xs) == [1, 2, 3, 4, 5]
    assert list(ys) == pytest.approx([p.wpm for p in graph.points])
    ex, _ = errors.getData()
    assert list(ex) == [3]


def test_draw_graph_handles_empty_result(qtbot):
    plot = pg.PlotWidget()
    qtbot.addWidget(plot)
    setup_wpm_plot(plot)
    wpm_curve, _, errors = draw_graph(plot, GraphResult(), 0.0)
    xs, _ = wpm_curve.getData()
    assert xs is None or len(xs) == 0
