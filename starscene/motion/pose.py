from __future__ import annotations
from dataclasses import dataclass, field
import numpy as np

def _normalize(v: np.ndarray) -> np.ndarray:
    n = np.linalg.norm(v)
    if n == 0:
        return v
    return v / n

def look_at_matrix(position: np.ndarray, target: np.ndarray, up: np.ndarray) -> np.ndarray:
    """World→view matrix (right-handed, camera looks down -Z)."""
    forward = _normalize(target - position)
    side = _normalize(np.cross(forward, up))
    true_up = np.cross(side, forward)

    view = np.identity(4, dtype=np.float64)
    view[0, :3] = side
    view[1, :3] = true_up
    view[2, :3] = -forward
    view[0, 3] = -np.dot(side, position)
    view[1, 3] = -np.dot(true_up, position)
    view[2, 3] = np.dot(forward, position)
    return view

@dataclass
class CameraPose:
    position: np.ndarray   # (3,)
    target: np.ndarray = field(default_factory=lambda: np.zeros(3))
    up: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.0, 0.0]))

    def __post_init__(self) -> None:
        self.position = np.asarray(self.position, dtype=float).reshape(3)
        self.target = np.asarray(self.target, dtype=float).reshape(3)
        self.up = np.asarray(self.up, dtype=float).reshape(3)

    @staticmethod
    def from_xyz(xyz: tuple[float, float, float], target: tuple[float, float, float] = (0.0, 0.0, 0.0)) -> "CameraPose":
        return CameraPose(position=np.array(xyz, dtype=float), target=np.array(target, dtype=float))

    def view_matrix(self) -> np.ndarray:
        return look_at_matrix(self.position, self.target, self.up)

    def copy(self) -> "CameraPose":
        return CameraPose(self.position.copy(), self.target.copy(), self.up.copy())
