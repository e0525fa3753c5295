from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from ..core.timers import ScheduledTask, TimerService
from ..core.utils import ensure_rng, get_logger
from ..persistence.gateway import PersistenceGateway
from ..persistence.records import ClickedStar
from .state import AnimationPhase, SessionState

_log = get_logger()


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class SequenceTimings:
    shrinking_s: float = 0.5
    light_streak_s: float = 1.0
    counting_s: float = 0.8
    star_glow_s: float = 1.5
    complete_s: float = 0.5

    def total_s(self) -> float:
        return self.shrinking_s + self.light_streak_s + self.counting_s + self.star_glow_s + self.complete_s


class InteractionSequencer:
    """Timed phase sequence run by the single user action.

    ``trigger`` is a no-op unless the phase is ``idle`` and the session has
    never clicked. On entering ``counting`` the counters and star list are
    updated and persisted before the ``star-glow`` timer is scheduled.
    """

    def __init__(
        self,
        state: SessionState,
        timers: TimerService,
        gateway: Optional[PersistenceGateway] = None,
        timings: Optional[SequenceTimings] = None,
        rng: Optional[np.random.Generator] = None,
        clock_ms: Callable[[], int] = _now_ms,
        on_star_placed: Optional[Callable[[ClickedStar], None]] = None,
    ) -> None:
        self.state = state
        self._timers = timers
        self._gateway = gateway
        self.timings = timings or SequenceTimings()
        self._rng = ensure_rng(rng)
        self._clock_ms = clock_ms
        self.on_star_placed = on_star_placed
        self.placed: List[ClickedStar] = []
        self.last_save_ok: Optional[bool] = None
        self._task: Optional[ScheduledTask] = None
        self._closed = False

    @property
    def phase(self) -> AnimationPhase:
        return self.state.animation_phase

    @property
    def busy(self) -> bool:
        return self.state.animation_phase is not AnimationPhase.IDLE

    def trigger(self) -> bool:
        """Start the sequence. Returns False when the action is ignored."""
        if self._closed or self._timers.closed:
            _log.debug("Ignoring interaction after teardown")
            return False
        if self.state.has_clicked or self.busy:
            _log.debug("Ignoring interaction (phase=%s, has_clicked=%s)",
                       self.state.animation_phase.value, self.state.has_clicked)
            return False
        self.state.update(is_animating=True, previous_count=self.state.total_clicks)
        self._enter(AnimationPhase.SHRINKING)
        self._after(self.timings.shrinking_s, self._to_light_streak)
        return True

    def cancel(self) -> None:
        """Drop the pending phase timer and refuse later triggers."""
        self._closed = True
        if self._task is not None:
            self._task.cancel()
            self._task = None

    # -- phase transitions --
    def _enter(self, phase: AnimationPhase) -> None:
        _log.info("Interaction phase → %s", phase.value)
        self.state.update(animation_phase=phase)

    def _after(self, delay_s: float, callback: Callable[[], None]) -> None:
        self._task = self._timers.call_later(delay_s, callback, f"sequence:{callback.__name__}")

    def _to_light_streak(self) -> None:
        self._enter(AnimationPhase.LIGHT_STREAK)
        self._after(self.timings.light_streak_s, self._to_counting)

    def _to_counting(self) -> None:
        self._enter(AnimationPhase.COUNTING)
        star = self._commit()
        self.state.update(new_star_position=(star.x, star.y))
        self._after(self.timings.counting_s, self._to_star_glow)

    def _to_star_glow(self) -> None:
        self._enter(AnimationPhase.STAR_GLOW)
        self._after(self.timings.star_glow_s, self._to_complete)

    def _to_complete(self) -> None:
        self._enter(AnimationPhase.COMPLETE)
        self._after(self.timings.complete_s, self._to_idle)

    def _to_idle(self) -> None:
        self._task = None
        self.state.update(is_animating=False, new_star_position=None)
        self._enter(AnimationPhase.IDLE)

    # -- counting side effects --
    def _next_id(self) -> int:
        star_id = int(self._clock_ms())
        if self.state.stars and star_id <= self.state.stars[-1].id:
            star_id = self.state.stars[-1].id + 1
        return star_id

    def _commit(self) -> ClickedStar:
        star = ClickedStar(
            id=self._next_id(),
            x=float(self._rng.random() * 100.0),
            y=float(self._rng.random() * 100.0),
        )
        self.state.update(
            has_clicked=True,
            total_clicks=self.state.total_clicks + 1,
            stars=[*self.state.stars, star],
        )
        self.placed.append(star)
        if self._gateway is not None:
            self.last_save_ok = self._gateway.save(self.state.to_persisted())
        if self.on_star_placed is not None:
            self.on_star_placed(star)
        return star
