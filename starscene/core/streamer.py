from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional
import numpy as np

from .pointcloud import StarBatch
from .generator import generate_star_field
from .utils import get_logger

_log = get_logger()


@dataclass
class RenderBuffer:
    """Live point buffer handed to the render surface.

    ``version`` is bumped whenever the contents change so a surface can tell
    it needs to re-upload, mirroring a GPU attribute ``needsUpdate`` flag.
    """
    positions: np.ndarray
    colors: np.ndarray
    sizes: np.ndarray
    version: int = 0

    @property
    def count(self) -> int:
        return len(self.sizes)


@dataclass
class StreamerStats:
    ticks: int = 0
    reallocations: int = 0
    in_place_updates: int = 0
    regenerations: int = 0


class ProgressiveBufferStreamer:
    """Grows the visible portion of a star field by a bounded batch per tick.

    The source attribute set is regenerated whenever the target count changes;
    the visible count then restarts from zero and the old buffer contents are
    discarded rather than merged.
    """

    def __init__(
        self,
        batch_size: int = 1000,
        generate: Optional[Callable[[int], StarBatch]] = None,
        on_change: Optional[Callable[[Optional[RenderBuffer]], None]] = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive.")
        self.batch_size = int(batch_size)
        self._generate = generate or generate_star_field
        self._on_change = on_change
        self._source: StarBatch = StarBatch.empty()
        self._buffer: Optional[RenderBuffer] = None
        self.target_count = 0
        self.visible_count = 0
        self.stats = StreamerStats()

    @property
    def source(self) -> StarBatch:
        return self._source

    @property
    def buffer(self) -> Optional[RenderBuffer]:
        """The drawable buffer, or ``None`` while nothing is visible."""
        if self.visible_count == 0:
            return None
        return self._buffer

    @property
    def done(self) -> bool:
        return self.visible_count >= self.target_count

    def set_target_count(self, count: int) -> bool:
        """Regenerate the source when ``count`` differs from the current target.

        Returns True when a regeneration happened.
        """
        count = max(0, int(count))
        if count == self.target_count and len(self._source) == count:
            return False
        self.load(self._generate(count))
        return True

    def load(self, source: StarBatch) -> None:
        self._source = source
        self.target_count = len(source)
        self.visible_count = 0
        self.stats.regenerations += 1
        _log.debug("Streamer retargeted to %d stars", self.target_count)
        self._notify()

    def tick(self) -> int:
        """Reveal up to ``batch_size`` more stars. Returns the visible count."""
        self.stats.ticks += 1
        if self.visible_count < self.target_count:
            self.visible_count = min(self.visible_count + self.batch_size, self.target_count)
            self._sync()
        return self.visible_count

    def _sync(self) -> None:
        n = self.visible_count
        src = self._source
        if self._buffer is None or self._buffer.count != n:
            version = self._buffer.version + 1 if self._buffer is not None else 0
            self._buffer = RenderBuffer(
                positions=src.positions[:n].copy(),
                colors=src.colors[:n].copy(),
                sizes=src.sizes[:n].copy(),
                version=version,
            )
            self.stats.reallocations += 1
        else:
            self._buffer.positions[...] = src.positions[:n]
            self._buffer.colors[...] = src.colors[:n]
            self._buffer.sizes[...] = src.sizes[:n]
            self._buffer.version += 1
            self.stats.in_place_updates += 1
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.buffer)
