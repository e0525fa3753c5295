from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from pydantic import BaseModel, ConfigDict, TypeAdapter


class ClickedStar(BaseModel):
    """A star placed by one completed interaction.

    ``x`` and ``y`` are screen-space percentages in [0, 100); ``id`` is the
    creation timestamp in milliseconds and doubles as a unique key.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    x: float
    y: float


STAR_LIST_ADAPTER = TypeAdapter(List[ClickedStar])


@dataclass
class PersistedState:
    has_clicked: bool = False
    total_clicks: int = 0
    stars: List[ClickedStar] = field(default_factory=list)
