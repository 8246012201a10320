import pytest

from app.errors import EngineInitFailure, HandleReleased
from core.handle import EngineHandle


class Tracked:
    def __init__(self):
        self.dispose_calls = 0

    def dispose(self):
        self.dispose_calls += 1


def test_acquire_and_current():
    h = EngineHandle(Tracked)
    e = h.acquire()
    assert h.attached
    assert h.current is e
    assert h.acquired_count == 1


def test_replace_disposes_previous_first():
    h = EngineHandle(Tracked)
    first = h.acquire()
    second = h.replace()
    assert first is not second
    assert first.dispose_calls == 1
    assert second.dispose_calls == 0
    assert h.current is second


def test_release_is_idempotent_and_disposes_once():
    h = EngineHandle(Tracked)
    e = h.acquire()
    h.release()
    h.release()
    assert e.dispose_calls == 1
    assert not h.attached


def test_current_after_release_raises():
    h = EngineHandle(Tracked)
    h.acquire()
    h.release()
    with pytest.raises(HandleReleased):
        h.current


def test_factory_failure_is_wrapped_and_leaves_handle_empty():
    def boom():
        raise RuntimeError("no wasm today")

    h = EngineHandle(boom)
    with pytest.raises(EngineInitFailure, match="no wasm today"):
        h.acquire()
    assert not h.attached
    assert h.acquired_count == 0


def test_failing_dispose_is_not_retried():
    class BadDispose(Tracked):
        def dispose(self):
            super().dispose()
            raise RuntimeError("dispose failed")

    h = EngineHandle(BadDispose)
    e = h.acquire()
    h.release()
    h.release()
    assert e.dispose_calls == 1
    assert not h.attached


def test_retire_hook_takes_over_disposal():
    deferred = []

    def retire(engine, dispose):
        deferred.append((engine, dispose))
        return True

    h = EngineHandle(Tracked, retire=retire)
    e = h.acquire()
    h.release()
    assert not h.attached
    assert e.dispose_calls == 0

    engine, dispose = deferred[0]
    dispose(engine)
    h.release()
    assert e.dispose_calls == 1


def test_declining_retire_hook_disposes_now():
    h = EngineHandle(Tracked, retire=lambda engine, dispose: False)
    e = h.acquire()
    h.release()
    assert e.dispose_calls == 1
