import json

import numpy as np

from starscene.core.timers import TimerService
from starscene.persistence.gateway import MemoryStore, PersistenceGateway
from starscene.persistence.records import ClickedStar
from starscene.session.sequencer import InteractionSequencer
from starscene.session.state import AnimationPhase, SessionState


def _make(gateway=None, clock=lambda: 1_700_000_000_000, state=None):
    state = state or SessionState()
    timers = TimerService()
    gateway = gateway or PersistenceGateway(MemoryStore())
    seq = InteractionSequencer(state, timers, gateway, rng=np.random.default_rng(0), clock_ms=clock)
    return state, timers, gateway, seq


def test_full_phase_sequence() -> None:
    state, timers, gateway, seq = _make()
    assert seq.trigger()
    assert state.animation_phase is AnimationPhase.SHRINKING
    assert state.is_animating
    assert state.previous_count == 0

    timers.advance(0.5)
    assert state.animation_phase is AnimationPhase.LIGHT_STREAK
    assert state.total_clicks == 0

    timers.advance(1.0)
    assert state.animation_phase is AnimationPhase.COUNTING
    assert state.total_clicks == 1
    assert state.has_clicked
    assert len(state.stars) == 1
    star = state.stars[0]
    assert star.id == 1_700_000_000_000
    assert 0.0 <= star.x < 100.0 and 0.0 <= star.y < 100.0
    assert state.new_star_position == (star.x, star.y)

    timers.advance(0.8)
    assert state.animation_phase is AnimationPhase.STAR_GLOW
    timers.advance(1.5)
    assert state.animation_phase is AnimationPhase.COMPLETE
    assert state.new_star_position is not None
    timers.advance(0.5)
    assert state.animation_phase is AnimationPhase.IDLE
    assert state.new_star_position is None
    assert not state.is_animating
    assert timers.pending == 0


def test_counting_persists_all_three_fields() -> None:
    store = MemoryStore()
    state, timers, _, seq = _make(gateway=PersistenceGateway(store))
    seq.trigger()
    timers.advance(1.5)
    assert store.data["yoga-connection-clicked"] == "true"
    assert store.data["yoga-connection-total"] == "1"
    stars = json.loads(store.data["yoga-connection-stars"])
    assert stars == [{"id": state.stars[0].id, "x": state.stars[0].x, "y": state.stars[0].y}]
    assert seq.last_save_ok is True


def test_double_trigger_places_one_star() -> None:
    state, timers, _, seq = _make()
    assert seq.trigger()
    assert not seq.trigger()
    timers.advance(10.0)
    assert not seq.trigger()
    timers.advance(10.0)
    assert state.total_clicks == 1
    assert len(state.stars) == 1
    assert len(seq.placed) == 1


def test_trigger_ignored_once_clicked() -> None:
    state, timers, _, seq = _make()
    state.update(has_clicked=True)
    assert not seq.trigger()
    assert state.animation_phase is AnimationPhase.IDLE
    assert timers.pending == 0


def test_persist_happens_before_star_glow() -> None:
    phases: list[AnimationPhase] = []

    class RecordingGateway(PersistenceGateway):
        def save(self, persisted):
            phases.append(state.animation_phase)
            return super().save(persisted)

    state = SessionState()
    _, timers, _, seq = _make(gateway=RecordingGateway(MemoryStore()), state=state)
    seq.trigger()
    timers.advance(10.0)
    assert phases == [AnimationPhase.COUNTING]


def test_save_failure_does_not_stop_sequence() -> None:
    class FailingStore(MemoryStore):
        def set_many(self, items):
            raise OSError("disk full")

    state, timers, _, seq = _make(gateway=PersistenceGateway(FailingStore()))
    seq.trigger()
    timers.advance(10.0)
    assert seq.last_save_ok is False
    assert state.total_clicks == 1
    assert state.animation_phase is AnimationPhase.IDLE


def test_star_ids_stay_monotonic() -> None:
    state = SessionState(stars=[ClickedStar(id=2000, x=1.0, y=2.0)], total_clicks=1)
    _, timers, _, seq = _make(clock=lambda: 1000, state=state)
    seq.trigger()
    timers.advance(10.0)
    # has_clicked was False, so the sequence runs and appends after the existing star.
    assert [s.id for s in state.stars] == [2000, 2001]
    assert state.previous_count == 1
    assert state.total_clicks == 2


def test_star_placed_callback() -> None:
    placed: list[ClickedStar] = []
    state, timers, _, seq = _make()
    seq.on_star_placed = placed.append
    seq.trigger()
    timers.advance(10.0)
    assert placed == state.stars


def test_closed_timers_freeze_sequence() -> None:
    state, timers, gateway, seq = _make()
    seq.trigger()
    timers.advance(0.5)
    timers.close()
    timers.advance(10.0)
    assert state.animation_phase is AnimationPhase.LIGHT_STREAK
    assert state.total_clicks == 0
    assert gateway.load().total_clicks == 0


def test_trigger_after_teardown_is_a_no_op() -> None:
    state, timers, gateway, seq = _make()
    timers.close()
    seq.cancel()
    assert not seq.trigger()
    assert state.animation_phase is AnimationPhase.IDLE
    assert not state.is_animating
    assert state.consume_changes() == set()
    assert gateway.load().total_clicks == 0


def test_trigger_refused_once_timers_are_closed() -> None:
    state, timers, _, seq = _make()
    timers.close()
    assert not seq.trigger()
    assert state.animation_phase is AnimationPhase.IDLE
    assert not state.is_animating


def test_cancel_mid_sequence_blocks_new_triggers() -> None:
    state, timers, _, seq = _make()
    assert seq.trigger()
    timers.advance(0.5)
    seq.cancel()
    timers.advance(10.0)
    assert state.animation_phase is AnimationPhase.LIGHT_STREAK
    assert not seq.trigger()
    assert state.total_clicks == 0
