import numpy as np
import pytest

from starscene.core.timers import TimerService
from starscene.core.utils import ease_in_out_cubic
from starscene.motion.flight import CameraFlightController, CameraPhase
from starscene.motion.pose import CameraPose
from starscene.motion.spin import SceneSpin

DT = 0.125


def _pump(timers: TimerService, flight: CameraFlightController, frames: int) -> None:
    for _ in range(frames):
        timers.advance(DT)
        flight.tick(DT)


@pytest.mark.parametrize(
    "progress, expected",
    [(0.0, 0.0), (0.25, 0.0625), (0.5, 0.5), (0.75, 0.9375), (1.0, 1.0)],
)
def test_ease_in_out_cubic(progress: float, expected: float) -> None:
    assert ease_in_out_cubic(progress) == pytest.approx(expected)


def test_flight_waits_in_initial_phase() -> None:
    timers = TimerService()
    flight = CameraFlightController(timers)
    flight.start()
    _pump(timers, flight, 7)
    assert flight.phase is CameraPhase.INITIAL
    np.testing.assert_allclose(flight.pose.position, [0.0, 5.0, 8.0])
    _pump(timers, flight, 1)
    assert flight.phase is CameraPhase.MOVING


def test_flight_endpoints_and_midpoint() -> None:
    flight = CameraFlightController(TimerService())
    np.testing.assert_allclose(flight.sample(0.0).position, [0.0, 5.0, 8.0])
    np.testing.assert_allclose(flight.sample(1.0).position, [0.0, 1.5, 2.5])
    np.testing.assert_allclose(flight.sample(0.5).position, [0.0, 3.25, 5.25])
    np.testing.assert_allclose(flight.sample(2.0).position, [0.0, 1.5, 2.5])
    np.testing.assert_allclose(flight.sample(0.5).target, [0.0, 0.0, 0.0])


def test_flight_completes_once_and_fires_callback_after_delay() -> None:
    timers = TimerService()
    calls: list[float] = []
    flight = CameraFlightController(timers, on_complete=lambda: calls.append(timers.now_s))
    flight.start()
    _pump(timers, flight, 200)
    assert flight.phase is CameraPhase.COMPLETE
    assert len(calls) == 1
    # Flight starts at 1.0 s and reaches progress 1 on the frame ending at 7.0 s.
    assert calls[0] == pytest.approx(7.1)
    assert flight.progress == 1.0
    assert flight.matrix_updates == 49
    np.testing.assert_allclose(flight.pose.position, [0.0, 1.5, 2.5])


def test_flight_start_is_idempotent() -> None:
    timers = TimerService()
    flight = CameraFlightController(timers)
    flight.start()
    flight.start()
    assert timers.pending == 1


def test_flight_rejects_zero_duration() -> None:
    with pytest.raises(ValueError):
        CameraFlightController(TimerService(), duration_s=0.0)


def test_view_matrix_looks_at_origin() -> None:
    pose = CameraPose.from_xyz((0.0, 5.0, 8.0))
    view = pose.view_matrix()
    origin_in_view = view @ np.array([0.0, 0.0, 0.0, 1.0])
    assert origin_in_view[0] == pytest.approx(0.0, abs=1e-9)
    assert origin_in_view[1] == pytest.approx(0.0, abs=1e-9)
    assert origin_in_view[2] == pytest.approx(-np.linalg.norm([0.0, 5.0, 8.0]))
    np.testing.assert_allclose(view[:3, :3] @ view[:3, :3].T, np.eye(3), atol=1e-9)


def test_scene_spin_uses_frame_time() -> None:
    spin = SceneSpin()
    spin.tick(2.0)
    assert spin.planet_rotation_y == pytest.approx(0.05)
    assert spin.starfield_rotation_y == pytest.approx(0.002)
    spin.tick(2.0)
    assert spin.planet_rotation_y == pytest.approx(0.1)
    assert spin.starfield_rotation_y == pytest.approx(0.004)


def test_flight_duration_counts_from_start_timer_within_frame() -> None:
    timers = TimerService()
    flight = CameraFlightController(timers)
    flight.start()
    dt = 0.3
    completed_at = None
    first_moving_elapsed = None
    for _ in range(40):
        timers.advance(dt)
        flight.tick(dt)
        if flight.phase is CameraPhase.MOVING and first_moving_elapsed is None:
            first_moving_elapsed = flight.elapsed_s
        if flight.phase is CameraPhase.COMPLETE and completed_at is None:
            completed_at = timers.now_s
    # The start timer fires at 1.0 s inside the 0.9-1.2 s frame.
    assert first_moving_elapsed == pytest.approx(0.2)
    assert completed_at is not None
    assert completed_at >= 7.0 - 1e-9
    assert completed_at == pytest.approx(7.2)
