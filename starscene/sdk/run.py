from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from ..config import SceneConfig, load_config
from ..config.schema import JsonStorageConfig
from ..render.surface import HeadlessSurface
from ..session.app import SceneSession
from ..session.state import SessionState


@dataclass(frozen=True)
class SessionRunResult:
    """Summary of a headless session run."""

    stats: Dict[str, int]
    state: SessionState
    config: SceneConfig
    phases: List[str] = field(default_factory=list)


def simulate_session(
    config: Union[str, Path, SceneConfig, None] = None,
    *,
    state_path: Optional[Path] = None,
    click_at: Sequence[float] = (),
    duration_s: float = 12.0,
    frame_rate_hz: float = 60.0,
    seed: Optional[int] = None,
) -> SessionRunResult:
    """Run a session without a display and report what happened.

    Parameters
    ----------
    config:
        Path to a YAML file, a pre-loaded :class:`~starscene.config.schema.SceneConfig`,
        or ``None`` for the defaults.
    state_path:
        Optional JSON file used as persistent storage, overriding the
        configured storage.
    click_at:
        Session times in seconds at which the user action is attempted.
        Attempts before the UI is revealed, or after the first accepted
        one, are ignored by the session.
    duration_s, frame_rate_hz:
        Length of the run and the fixed frame rate of the pump.
    seed:
        Optional RNG seed. Falls back to the config's star-field seed, and
        to fresh entropy when neither is set.
    """

    if config is None:
        cfg = SceneConfig()
    elif isinstance(config, SceneConfig):
        cfg = config.model_copy(deep=True)
    else:
        cfg = load_config(config)

    if state_path is not None:
        cfg.storage = JsonStorageConfig(kind="json", path=Path(state_path).resolve())
    if seed is not None:
        cfg.starfield.seed = seed
    if frame_rate_hz <= 0:
        raise ValueError("frame_rate_hz must be positive.")

    rng = np.random.default_rng(cfg.starfield.seed)
    surface = HeadlessSurface()
    pending = sorted(float(t) for t in click_at)
    accepted = 0
    phases: List[str] = []
    dt = 1.0 / frame_rate_hz
    frames = int(round(duration_s * frame_rate_hz))

    with SceneSession(cfg, surface=surface, rng=rng) as session:
        for i in range(frames):
            now = i * dt
            while pending and pending[0] <= now:
                pending.pop(0)
                if session.click():
                    accepted += 1
            session.tick(dt)
            phase = session.state.animation_phase.value
            if not phases or phases[-1] != phase:
                phases.append(phase)
        state = session.state
        stats = {
            "frames": surface.frames,
            "clicks_accepted": accepted,
            "total_clicks": state.total_clicks,
            "stars": state.star_count,
            "visible_stars": session.streamer.visible_count,
            "buffer_uploads": surface.uploads,
            "ui_shown": int(state.show_ui),
        }

    return SessionRunResult(stats=stats, state=state, config=cfg, phases=phases)
