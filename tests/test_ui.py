import json

import pytest
from PySide6.QtCore import Qt

from app.config import Settings
from app.state import FrozenTimeline, GraphResult, SessionResult, SessionState, Stats
from core.serializer import InputSerializer
from core.session import SessionController
from ui.main_window import MainWindow
from ui.session_summary import SessionSummary

from conftest import EngineFactory, LatencyEngine


@pytest.fixture
def window(qtbot, tmp_path, clock):
    texts = tmp_path / "texts.json"
    texts.write_text(json.dumps([{"category": "general", "content": "ab cd", "attribution": "Tester"}]))
    settings = Settings(
        texts_path=str(texts),
        last_mode_path=str(tmp_path / "last_mode.json"),
        async_engine=False,
    )
    factory = EngineFactory(lambda: LatencyEngine(clock))
    ctrl = SessionController(engine_factory=factory, serializer=InputSerializer(), clock=clock)
    win = MainWindow(settings, ctrl)
    qtbot.addWidget(win)
    win.factory = factory
    return win


def test_menu_lists_categories(window):
    items = [window.cmbCategory.itemText(i) for i in range(window.cmbCategory.count())]
    assert items == ["random", "general"]


def test_category_choice_is_persisted(window, tmp_path):
    window.cmbCategory.setCurrentText("general")
    saved = json.loads((tmp_path / "last_mode.json").read_text())
    assert saved == {"category": "general"}


def test_typing_session_through_the_view(window, qtbot, monkeypatch):
    shown = []
    monkeypatch.setattr(window, "_show_summary", shown.append)

    window.start_session()
    assert window.stack.currentWidget() is window.view
    assert window.view.lblAttribution.text() == "- Tester"

    qtbot.keyClicks(window.view, "ab cx")
    assert window.controller.session.current_input == "ab cx"
    qtbot.keyClick(window.view, Qt.Key_Backspace)
    qtbot.keyClicks(window.view, "d")

    assert window.controller.state is SessionState.FINISHED
    qtbot.waitUntil(lambda: len(shown) == 1, timeout=1000)
    assert shown[0].user_input == "ab cd"
    assert not window.view.ticker.is_active()


def test_ctrl_backspace_deletes_word(window, qtbot):
    window.start_session()
    qtbot.keyClicks(window.view, "ab c")
    qtbot.keyClick(window.view, Qt.Key_Backspace, Qt.ControlModifier)
    assert window.controller.session.current_input == "ab "


def test_escape_returns_to_menu(window, qtbot):
    window.start_session()
    qtbot.keyClicks(window.view, "a")
    qtbot.keyClick(window.view, Qt.Key_Escape)
    assert window.stack.currentWidget() is window.menu
    assert window.controller.state is SessionState.IDLE
    assert window.factory.engines[0].dispose_calls == 1


def test_close_releases_engine(window):
    window.show()
    window.start_session()
    window.close()
    assert window.factory.engines[0].dispose_calls == 1


def _result():
    return SessionResult(
        stats=Stats(wpm=42.0, accuracy=97.5, time=12.0, correct_chars=40, incorrect_chars=1, total_chars=41),
        text="t",
        user_input="t",
        attribution="Someone",
        timeline=FrozenTimeline(),
        samples=(),
        graph=GraphResult(),
    )


def test_summary_shows_stats(qtbot):
    dlg = SessionSummary(_result())
    qtbot.addWidget(dlg)
    assert dlg.values["WPM"].text() == "42.0"
    assert dlg.values["Accuracy"].text() == "97.5%"


def test_summary_buttons(qtbot):
    dlg = SessionSummary(_result())
    qtbot.addWidget(dlg)
    with qtbot.waitSignals([dlg.playAgain, dlg.accepted], timeout=1000):
        dlg.btnAgain.click()
    with qtbot.waitSignals([dlg.mainMenu, dlg.rejected], timeout=1000):
        dlg.btnMenu.click()
