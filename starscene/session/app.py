from __future__ import annotations

import time
from typing import Callable, Optional

import numpy as np

from ..config import SceneConfig
from ..core.pointcloud import StarBatch
from ..core.streamer import ProgressiveBufferStreamer
from ..core.timers import TimerService
from ..core.utils import ensure_rng, get_logger
from ..persistence.gateway import PersistenceGateway
from ..render.surface import FrameSnapshot, HeadlessSurface, RenderSurface
from ..runtime.builders import (
    build_flight,
    build_gateway,
    build_generator,
    build_loading,
    build_sequencer,
    build_spin,
)
from .state import SessionState

_log = get_logger()


class SceneSession:
    """One viewer session: the scene, its timers and its persisted counters.

    Driven by two pumps folded into :meth:`tick`: the frame delta and the
    timer service, which is advanced by the same delta. All mutation happens
    on the caller's thread. :meth:`close` cancels every pending timer and
    releases the surface; ticks and clicks afterwards do nothing.
    """

    def __init__(
        self,
        cfg: Optional[SceneConfig] = None,
        gateway: Optional[PersistenceGateway] = None,
        surface: Optional[RenderSurface] = None,
        generate: Optional[Callable[[int], StarBatch]] = None,
        rng: Optional[np.random.Generator] = None,
        clock_ms: Optional[Callable[[], int]] = None,
    ) -> None:
        self.cfg = cfg or SceneConfig()
        self.rng = ensure_rng(rng, self.cfg.starfield.seed)
        self.timers = TimerService()
        self.state = SessionState()
        self.gateway = gateway or build_gateway(self.cfg)
        self.surface: RenderSurface = surface if surface is not None else HeadlessSurface()
        self.streamer = ProgressiveBufferStreamer(
            batch_size=self.cfg.streamer.batch_size,
            generate=generate or build_generator(self.cfg, self.rng),
        )
        self.flight = build_flight(self.cfg, self.timers, on_complete=self._reveal_ui)
        self.spin = build_spin(self.cfg)
        self.loading = build_loading(self.cfg, self.state, self.timers, self.rng)
        self.sequencer = build_sequencer(
            self.cfg, self.state, self.timers, self.gateway, self.rng, clock_ms
        )
        self.frame_index = 0
        self.started = False
        self.closed = False

    # -- lifecycle --
    def start(self) -> None:
        if self.started or self.closed:
            return
        self.state.apply_persisted(self.gateway.load())
        self.loading.start()
        self.flight.start()
        self.streamer.set_target_count(self.state.star_count)
        self.started = True
        _log.info("Session started with %d stars (has_clicked=%s)",
                  self.state.star_count, self.state.has_clicked)

    def close(self) -> None:
        if self.closed:
            return
        self.timers.close()
        self.sequencer.cancel()
        self.surface.release()
        self.closed = True
        _log.debug("Session closed after %d frames", self.frame_index)

    def __enter__(self) -> "SceneSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- pumps --
    def tick(self, dt_s: float) -> None:
        if self.closed or not self.started:
            return
        self.timers.advance(dt_s)
        if self.closed:
            return
        self.flight.tick(dt_s)
        self.state.update(camera_phase=self.flight.phase)
        self.spin.tick(dt_s)
        self.streamer.set_target_count(self.state.star_count)
        self.streamer.tick()

        self.surface.draw(FrameSnapshot(
            index=self.frame_index,
            camera=self.flight.pose.copy(),
            view_matrix=self.flight.view_matrix.copy(),
            points=self.streamer.buffer,
            starfield_rotation_y=self.spin.starfield_rotation_y,
            planet_position=tuple(self.cfg.spin.planet_position),
            planet_rotation_y=self.spin.planet_rotation_y,
        ))
        changes = self.state.consume_changes()
        if changes:
            self.surface.state_changed(self.state, changes)
        self.frame_index += 1

    def click(self) -> bool:
        """Forward the user action once the UI has been revealed."""
        if self.closed or not self.started:
            return False
        if not self.state.show_ui:
            _log.debug("Ignoring interaction before the UI is shown")
            return False
        return self.sequencer.trigger()

    def run(self, duration_s: float, frame_rate_hz: float = 60.0, realtime: bool = False) -> int:
        """Pump fixed-step frames for ``duration_s``. Returns frames drawn."""
        if frame_rate_hz <= 0:
            raise ValueError("frame_rate_hz must be positive.")
        dt = 1.0 / frame_rate_hz
        drawn = 0
        for _ in range(int(round(duration_s * frame_rate_hz))):
            if self.closed:
                break
            self.tick(dt)
            drawn += 1
            if realtime:
                time.sleep(dt)
        return drawn

    def _reveal_ui(self) -> None:
        self.state.update(show_ui=True)
        _log.info("Interaction UI revealed")
