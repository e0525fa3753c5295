from __future__ import annotations
from dataclasses import dataclass
import numpy as np

@dataclass
class StarBatch:
    """Per-star attribute buffers for a generated star field."""
    positions: np.ndarray                 # (N, 3) world space
    colors: np.ndarray                    # (N, 3) linear RGB in [0, 1]
    sizes: np.ndarray                     # (N,)

    def __post_init__(self) -> None:
        self.positions = np.asarray(self.positions, dtype=np.float32).reshape(-1, 3)
        self.colors = np.asarray(self.colors, dtype=np.float32).reshape(-1, 3)
        self.sizes = np.asarray(self.sizes, dtype=np.float32).reshape(-1)
        n = len(self.positions)
        if len(self.colors) != n:
            raise ValueError(f"colors length {len(self.colors)} != {n}")
        if len(self.sizes) != n:
            raise ValueError(f"sizes length {len(self.sizes)} != {n}")

    def __len__(self) -> int:
        return len(self.positions)

    @classmethod
    def empty(cls) -> "StarBatch":
        return cls(
            positions=np.zeros((0, 3), dtype=np.float32),
            colors=np.zeros((0, 3), dtype=np.float32),
            sizes=np.zeros((0,), dtype=np.float32),
        )

    def head(self, count: int) -> "StarBatch":
        """First ``count`` stars as copies, detached from this batch."""
        count = max(0, min(int(count), len(self)))
        return StarBatch(
            positions=self.positions[:count].copy(),
            colors=self.colors[:count].copy(),
            sizes=self.sizes[:count].copy(),
        )
