import pytest

from starscene.core.timers import TimerService


def test_tasks_fire_in_due_then_insertion_order() -> None:
    timers = TimerService()
    log: list[str] = []
    timers.call_later(0.5, lambda: log.append("b"))
    timers.call_later(0.25, lambda: log.append("a"))
    timers.call_later(0.5, lambda: log.append("c"))
    assert timers.advance(0.25) == 1
    assert log == ["a"]
    assert timers.advance(1.0) == 2
    assert log == ["a", "b", "c"]
    assert timers.pending == 0


def test_clock_is_set_to_due_time_during_callback() -> None:
    timers = TimerService()
    seen: list[float] = []
    timers.call_later(0.5, lambda: seen.append(timers.now_s))
    timers.advance(2.0)
    assert seen == [0.5]
    assert timers.now_s == 2.0


def test_tasks_scheduled_by_callbacks_fire_within_window() -> None:
    timers = TimerService()
    seen: list[float] = []
    timers.call_later(0.5, lambda: timers.call_later(0.5, lambda: seen.append(timers.now_s)))
    timers.advance(1.0)
    assert seen == [1.0]


def test_cancelled_task_never_fires() -> None:
    timers = TimerService()
    fired: list[int] = []
    task = timers.call_later(0.25, lambda: fired.append(1))
    task.cancel()
    assert task.cancelled
    assert timers.pending == 0
    timers.advance(1.0)
    assert fired == []
    assert not task.done


def test_frame_deltas_reach_due_time() -> None:
    timers = TimerService()
    fired: list[int] = []
    timers.call_later(1.0, lambda: fired.append(1))
    for _ in range(59):
        timers.advance(1.0 / 60.0)
    assert fired == []
    timers.advance(1.0 / 60.0)
    assert fired == [1]


def test_close_cancels_pending_and_refuses_new_tasks() -> None:
    timers = TimerService()
    fired: list[int] = []
    task = timers.call_later(0.5, lambda: fired.append(1))
    timers.close()
    assert task.cancelled
    assert timers.advance(5.0) == 0
    assert fired == []
    with pytest.raises(RuntimeError):
        timers.call_later(0.1, lambda: None)


def test_close_from_callback_stops_remaining_tasks() -> None:
    timers = TimerService()
    fired: list[str] = []
    timers.call_later(0.25, timers.close)
    timers.call_later(0.5, lambda: fired.append("late"))
    timers.advance(1.0)
    assert fired == []


def test_rejects_negative_values() -> None:
    timers = TimerService()
    with pytest.raises(ValueError):
        timers.call_later(-1.0, lambda: None)
    with pytest.raises(ValueError):
        timers.advance(-0.1)
