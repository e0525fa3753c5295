from __future__ import annotations

from typing import Optional

import numpy as np

from ..core.timers import ScheduledTask, TimerService
from ..core.utils import ensure_rng, get_logger
from .state import SessionState

_log = get_logger()


class LoadingScreen:
    """Simulated loading bar shown while the scene warms up.

    Every ``interval_s`` the progress grows by a uniform step; the first tick
    that finds it at 100 or more clamps it, stops the interval and hides the
    screen ``hide_delay_s`` later.
    """

    def __init__(
        self,
        state: SessionState,
        timers: TimerService,
        interval_s: float = 0.1,
        min_step: float = 5.0,
        max_step: float = 20.0,
        hide_delay_s: float = 0.5,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive.")
        self.state = state
        self._timers = timers
        self.interval_s = float(interval_s)
        self.min_step = float(min_step)
        self.max_step = float(max_step)
        self.hide_delay_s = float(hide_delay_s)
        self._rng = ensure_rng(rng)
        self._task: Optional[ScheduledTask] = None

    def start(self) -> None:
        if self._task is not None:
            return
        self.state.update(is_loading=True, loading_progress=0.0)
        self._task = self._timers.call_later(self.interval_s, self._step, "loading-step")

    def _step(self) -> None:
        progress = self.state.loading_progress
        if progress >= 100.0:
            self.state.update(loading_progress=100.0)
            self._task = self._timers.call_later(self.hide_delay_s, self._hide, "loading-hide")
            return
        step = self.min_step + self._rng.random() * (self.max_step - self.min_step)
        self.state.update(loading_progress=progress + step)
        self._task = self._timers.call_later(self.interval_s, self._step, "loading-step")

    def _hide(self) -> None:
        self._task = None
        self.state.update(is_loading=False)
        _log.info("Loading finished")
