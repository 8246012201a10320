from app.config import Settings
from app.state import SessionState
from main import build_controller


def test_inline_controller_runs_a_session(qapp):
    ctrl = build_controller(Settings(async_engine=False))
    done = []
    ctrl.finished.connect(done.append)
    assert ctrl.start("hi")
    ctrl.type_char("h")
    ctrl.type_char("i")
    assert ctrl.state is SessionState.FINISHED
    assert done[0].stats.correct_chars == 2
    ctrl.shutdown()
    assert not ctrl.handle.attached


def test_async_controller_uses_pool(qtbot):
    ctrl = build_controller(Settings(async_engine=True))
    done = []
    ctrl.finished.connect(done.append)
    ctrl.start("ok")
    ctrl.type_char("o")
    ctrl.type_char("k")
    qtbot.waitUntil(lambda: bool(done), timeout=3000)
    assert done[0].user_input == "ok"
    ctrl.shutdown()
