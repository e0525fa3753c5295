from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, List, Optional
import heapq
import itertools

from .utils import get_logger

_log = get_logger()

# Tolerance for accumulated float frame deltas (60 x 1/60 != 1.0).
_EPS_S = 1e-9


@dataclass(order=True)
class ScheduledTask:
    """Handle for a callback queued on a :class:`TimerService`."""
    due_s: float
    seq: int
    callback: Optional[Callable[[], None]] = field(compare=False, repr=False)
    label: str = field(default="", compare=False)
    cancelled: bool = field(default=False, compare=False)
    done: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        if not self.done:
            self.cancelled = True
            self.callback = None


class TimerService:
    """Fixed-delay callbacks on a virtual clock advanced by the frame pump.

    Nothing fires outside :meth:`advance`. Once closed, every pending task is
    cancelled and new ones are refused, so no callback can reach torn-down
    session state.
    """

    def __init__(self, start_s: float = 0.0) -> None:
        self.now_s = float(start_s)
        self._queue: List[ScheduledTask] = []
        self._seq = itertools.count()
        self.closed = False

    @property
    def pending(self) -> int:
        return sum(1 for t in self._queue if not t.cancelled)

    def call_later(self, delay_s: float, callback: Callable[[], None], label: str = "") -> ScheduledTask:
        if self.closed:
            raise RuntimeError("TimerService is closed")
        if delay_s < 0:
            raise ValueError("delay_s must be non-negative.")
        task = ScheduledTask(self.now_s + float(delay_s), next(self._seq), callback, label)
        heapq.heappush(self._queue, task)
        _log.debug("Scheduled %s at t=%.3fs", label or "task", task.due_s)
        return task

    def advance(self, dt_s: float) -> int:
        """Move the clock forward, firing due tasks in order. Returns the number fired."""
        if self.closed:
            return 0
        if dt_s < 0:
            raise ValueError("dt_s must be non-negative.")
        end = self.now_s + float(dt_s)
        fired = 0
        while self._queue and self._queue[0].due_s <= end + _EPS_S and not self.closed:
            task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self.now_s = max(self.now_s, task.due_s)
            callback = task.callback
            task.done = True
            task.callback = None
            if callback is not None:
                callback()
                fired += 1
        if not self.closed:
            self.now_s = end
        return fired

    def close(self) -> None:
        for task in self._queue:
            task.cancel()
        self._queue.clear()
        self.closed = True
