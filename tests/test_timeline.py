import pytest

from app.state import CharacterTiming, KeypressEvent
from app.timeline import TimelineRecorder


TARGET = "hello world"


@pytest.fixture
def rec():
    return TimelineRecorder()


def test_length_tracks_input(rec):
    for i, t in enumerate((0.1, 0.2, 0.3), start=1):
        rec.observe(TARGET[:i], TARGET, t)
        assert len(rec.timings) == i
    assert [c.elapsed_time for c in rec.timings] == [0.1, 0.2, 0.3]
    assert rec.timings[1] == CharacterTiming(1, "e", 0.2, True)


def test_backspace_truncates_timings_but_not_keypresses(rec):
    rec.observe("h", TARGET, 0.1)
    rec.observe("hx", TARGET, 0.2)
    rec.observe("h", TARGET, 0.3, keystroke=False)
    rec.observe("he", TARGET, 0.4)

    assert len(rec.timings) == 2
    assert rec.timings[1] == CharacterTiming(1, "e", 0.4, True)
    assert rec.keypresses == (
        KeypressEvent(0.1, 0, True),
        KeypressEvent(0.2, 1, False),
        KeypressEvent(0.4, 1, True),
    )


def test_multi_char_growth_is_interpolated(rec):
    rec.observe("h", TARGET, 1.0)
    rec.observe("hell", TARGET, 4.0)
    times = [c.elapsed_time for c in rec.timings]
    assert times == pytest.approx([1.0, 2.0, 3.0, 4.0])
    assert [c.index for c in rec.timings] == [0, 1, 2, 3]


def test_paste_from_empty_starts_at_zero(rec):
    rec.observe("hel", TARGET, 3.0)
    assert [c.elapsed_time for c in rec.timings] == pytest.approx([1.0, 2.0, 3.0])
    assert len(rec.keypresses) == 1


def test_same_length_overwrites_last_entry(rec):
    rec.observe("hx", TARGET, 0.2)
    rec.observe("he", TARGET, 0.5)
    assert len(rec.timings) == 2
    assert rec.timings[-1] == CharacterTiming(1, "e", 0.5, True)


def test_frozen_recorder_ignores_observations(rec):
    rec.observe("h", TARGET, 0.1)
    frozen = rec.freeze()
    rec.observe("he", TARGET, 0.2)
    assert rec.is_frozen
    assert len(rec.timings) == 1
    assert frozen.timings == rec.timings
    assert frozen.keypresses == rec.keypresses


def test_reset_clears_and_unfreezes(rec):
    rec.observe("h", TARGET, 0.1)
    rec.freeze()
    rec.reset()
    assert not rec.is_frozen
    assert rec.timings == () and rec.keypresses == ()
    rec.observe("h", TARGET, 0.1)
    assert len(rec.timings) == 1


def test_input_beyond_target_is_incorrect(rec):
    rec.observe("ab", "a", 0.5)
    assert [c.is_correct for c in rec.timings] == [True, False]


def test_clearing_input_records_no_keypress(rec):
    rec.observe("h", TARGET, 0.1)
    rec.observe("", TARGET, 0.2)
    assert rec.timings == ()
    assert len(rec.keypresses) == 1
