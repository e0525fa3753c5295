from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Protocol, Set, Tuple

import numpy as np

from ..core.streamer import RenderBuffer
from ..motion.pose import CameraPose

if TYPE_CHECKING:  # pragma: no cover
    from ..session.state import SessionState


@dataclass(frozen=True)
class FrameSnapshot:
    """Everything the surface needs to draw one frame."""
    index: int
    camera: CameraPose
    view_matrix: np.ndarray
    points: Optional[RenderBuffer]          # None → draw no star field
    starfield_rotation_y: float
    planet_position: Tuple[float, float, float]
    planet_rotation_y: float


class RenderSurface(Protocol):
    def draw(self, frame: FrameSnapshot) -> None:
        ...

    def state_changed(self, state: SessionState, changes: Set[str]) -> None:
        ...

    def release(self) -> None:
        ...


@dataclass
class HeadlessSurface:
    """Surface that draws nothing and records what it was given."""
    frames: int = 0
    last_frame: Optional[FrameSnapshot] = None
    uploads: int = 0
    change_log: List[Set[str]] = field(default_factory=list)
    released: bool = False
    _last_version: Optional[Tuple[int, int]] = field(default=None, repr=False)

    def draw(self, frame: FrameSnapshot) -> None:
        self.frames += 1
        self.last_frame = frame
        if frame.points is not None:
            key = (id(frame.points), frame.points.version)
            if key != self._last_version:
                self.uploads += 1
                self._last_version = key

    def state_changed(self, state: SessionState, changes: Set[str]) -> None:
        self.change_log.append(set(changes))

    def release(self) -> None:
        self.released = True
        self.last_frame = None
