from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import List, Optional, Set, Tuple

from ..motion.flight import CameraPhase
from ..persistence.records import ClickedStar, PersistedState


class AnimationPhase(str, Enum):
    IDLE = "idle"
    SHRINKING = "shrinking"
    LIGHT_STREAK = "light-streak"
    COUNTING = "counting"
    STAR_GLOW = "star-glow"
    COMPLETE = "complete"


@dataclass
class SessionState:
    """Authoritative per-session state.

    Writes go through :meth:`update`, which records the names of fields whose
    value changed; the session hands those to the render surface once per
    frame via :meth:`consume_changes`.
    """

    has_clicked: bool = False
    total_clicks: int = 0
    stars: List[ClickedStar] = field(default_factory=list)
    animation_phase: AnimationPhase = AnimationPhase.IDLE
    camera_phase: CameraPhase = CameraPhase.INITIAL
    show_ui: bool = False
    is_loading: bool = True
    loading_progress: float = 0.0
    is_animating: bool = False
    previous_count: int = 0
    new_star_position: Optional[Tuple[float, float]] = None
    _changes: Set[str] = field(default_factory=set, repr=False, compare=False)

    @property
    def star_count(self) -> int:
        return len(self.stars)

    def update(self, **values) -> None:
        known = {f.name for f in fields(self) if not f.name.startswith("_")}
        for name, value in values.items():
            if name not in known:
                raise ValueError(f"Unknown session field '{name}'")
            if getattr(self, name) != value:
                setattr(self, name, value)
                self._changes.add(name)

    def consume_changes(self) -> Set[str]:
        changes, self._changes = self._changes, set()
        return changes

    def apply_persisted(self, persisted: PersistedState) -> None:
        self.update(
            has_clicked=persisted.has_clicked,
            total_clicks=persisted.total_clicks,
            stars=list(persisted.stars),
        )

    def to_persisted(self) -> PersistedState:
        return PersistedState(
            has_clicked=self.has_clicked,
            total_clicks=self.total_clicks,
            stars=list(self.stars),
        )
