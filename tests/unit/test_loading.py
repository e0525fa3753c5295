import numpy as np

from starscene.core.timers import TimerService
from starscene.session.loading import LoadingScreen
from starscene.session.state import SessionState


def test_fixed_steps_finish_then_hide() -> None:
    state = SessionState()
    timers = TimerService()
    screen = LoadingScreen(state, timers, min_step=25.0, max_step=25.0)
    screen.start()
    assert state.is_loading
    timers.advance(0.45)
    assert state.loading_progress == 100.0
    assert state.is_loading
    timers.advance(0.5)
    # The interval tick at 0.5 s clamps and schedules the hide.
    assert state.is_loading
    timers.advance(0.1)
    assert not state.is_loading
    assert timers.pending == 0


def test_random_steps_stay_in_range_and_clamp() -> None:
    state = SessionState()
    timers = TimerService()
    screen = LoadingScreen(state, timers, rng=np.random.default_rng(11))
    screen.start()
    timers.advance(0.1)
    assert 5.0 <= state.loading_progress < 20.0
    previous = state.loading_progress
    for _ in range(30):
        timers.advance(0.1)
        # A step may overshoot 100 before the next tick clamps it.
        assert state.loading_progress >= min(previous, 100.0)
        previous = state.loading_progress
    assert state.loading_progress == 100.0
    timers.advance(1.0)
    assert not state.is_loading


def test_loading_progress_is_reported_as_change() -> None:
    state = SessionState()
    timers = TimerService()
    LoadingScreen(state, timers, rng=np.random.default_rng(0)).start()
    state.consume_changes()
    timers.advance(0.1)
    assert "loading_progress" in state.consume_changes()
    assert state.consume_changes() == set()
