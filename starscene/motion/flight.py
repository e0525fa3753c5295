from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Sequence

import numpy as np

from ..core.utils import ease_in_out_cubic, get_logger, lerp
from ..core.timers import ScheduledTask, TimerService
from .pose import CameraPose

_log = get_logger()


class CameraPhase(str, Enum):
    INITIAL = "initial"
    MOVING = "moving"
    COMPLETE = "complete"


class CameraFlightController:
    """Eased camera flight from a start pose to an end pose.

    ``initial`` lasts ``start_delay_s`` (a timer), ``moving`` lasts
    ``duration_s`` of accumulated frame time, and ``complete`` is terminal.
    ``on_complete`` runs once, ``completion_delay_s`` after the flight ends.
    The camera always looks at ``target``.
    """

    def __init__(
        self,
        timers: TimerService,
        start_position: Sequence[float] = (0.0, 5.0, 8.0),
        end_position: Sequence[float] = (0.0, 1.5, 2.5),
        target: Sequence[float] = (0.0, 0.0, 0.0),
        start_delay_s: float = 1.0,
        duration_s: float = 6.0,
        completion_delay_s: float = 0.1,
        on_complete: Optional[Callable[[], None]] = None,
    ) -> None:
        if duration_s <= 0.0:
            raise ValueError("duration_s must be positive.")
        self._timers = timers
        self._start = np.asarray(start_position, dtype=np.float64)
        self._end = np.asarray(end_position, dtype=np.float64)
        self._target = np.asarray(target, dtype=np.float64)
        self.start_delay_s = float(start_delay_s)
        self.duration_s = float(duration_s)
        self.completion_delay_s = float(completion_delay_s)
        self.on_complete = on_complete

        self.phase = CameraPhase.INITIAL
        self.elapsed_s = 0.0
        self.progress = 0.0
        self.pose = CameraPose(self._start.copy(), self._target.copy())
        self.view_matrix = self.pose.view_matrix()
        self.matrix_updates = 0
        self.completion_fired = False
        self._start_task: Optional[ScheduledTask] = None
        self._moving_since_s: Optional[float] = None

    def sample(self, progress: float) -> CameraPose:
        """Camera pose at linear ``progress`` in [0, 1] after easing."""
        p = min(max(float(progress), 0.0), 1.0)
        position = lerp(self._start, self._end, ease_in_out_cubic(p))
        return CameraPose(position, self._target.copy())

    def start(self) -> None:
        if self._start_task is not None or self.phase is not CameraPhase.INITIAL:
            return
        self._start_task = self._timers.call_later(self.start_delay_s, self._begin_moving, "camera-start")

    def _begin_moving(self) -> None:
        self.phase = CameraPhase.MOVING
        self.elapsed_s = 0.0
        self._moving_since_s = self._timers.now_s
        _log.info("Camera flight started")

    def tick(self, dt_s: float) -> None:
        if self.phase is not CameraPhase.MOVING:
            return
        if self._moving_since_s is not None:
            # Only the part of this frame after the start timer fired counts.
            self.elapsed_s += min(max(self._timers.now_s - self._moving_since_s, 0.0), dt_s)
            self._moving_since_s = None
        else:
            self.elapsed_s += dt_s
        progress = min(self.elapsed_s / self.duration_s, 1.0)
        if progress >= 1.0 - 1e-9:
            progress = 1.0
        self.progress = progress
        self.pose = self.sample(progress)
        self.view_matrix = self.pose.view_matrix()
        self.matrix_updates += 1
        if progress >= 1.0:
            self.phase = CameraPhase.COMPLETE
            _log.info("Camera flight complete")
            self._timers.call_later(self.completion_delay_s, self._fire_completion, "camera-complete")

    def _fire_completion(self) -> None:
        if self.completion_fired:
            return
        self.completion_fired = True
        if self.on_complete is not None:
            self.on_complete()
