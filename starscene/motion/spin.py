from __future__ import annotations
from dataclasses import dataclass


@dataclass
class SceneSpin:
    """Continuous scene rotation, independent of the camera flight.

    The planet turns by ``delta * planet_rate``; the star field angle is an
    absolute function of accumulated frame time.
    """
    planet_rate_rad_s: float = 0.025
    starfield_rate_rad_s: float = 0.001
    elapsed_s: float = 0.0
    planet_rotation_y: float = 0.0
    starfield_rotation_y: float = 0.0

    def tick(self, dt_s: float) -> None:
        self.elapsed_s += dt_s
        self.planet_rotation_y += dt_s * self.planet_rate_rad_s
        self.starfield_rotation_y = self.elapsed_s * self.starfield_rate_rad_s
