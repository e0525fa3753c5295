from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple
import math
import numpy as np

from .pointcloud import StarBatch
from .utils import ensure_rng, get_logger

_log = get_logger()

Range = Tuple[float, float]  # (base, span): value = base + U[0,1) * span


@dataclass(frozen=True)
class TemperatureBand:
    name: str
    above: float          # band applies when temperature > above
    red: Range
    green: Range
    blue: Range


# Ordered hottest → coolest; the first band whose threshold is exceeded wins.
TEMPERATURE_BANDS: Tuple[TemperatureBand, ...] = (
    TemperatureBand("O", 8000.0, (0.6, 0.2), (0.7, 0.2), (0.9, 0.1)),
    TemperatureBand("B", 6000.0, (0.7, 0.2), (0.8, 0.2), (0.95, 0.05)),
    TemperatureBand("A", 5000.0, (0.9, 0.1), (0.9, 0.1), (0.9, 0.1)),
    TemperatureBand("F", 4000.0, (0.95, 0.05), (0.9, 0.1), (0.7, 0.2)),
    TemperatureBand("G", 3000.0, (1.0, 0.0), (0.8, 0.2), (0.5, 0.3)),
    TemperatureBand("K", 2500.0, (1.0, 0.0), (0.6, 0.3), (0.3, 0.2)),
    TemperatureBand("M", -math.inf, (1.0, 0.0), (0.3, 0.3), (0.2, 0.2)),
)


@dataclass(frozen=True)
class SizeTier:
    name: str
    cutoff: float         # cumulative probability upper bound
    base: float
    jitter: float = 0.0   # uniform extra in [0, jitter)


SIZE_TIERS: Tuple[SizeTier, ...] = (
    SizeTier("tiny", 0.70, 0.5),
    SizeTier("small", 0.90, 1.0),
    SizeTier("medium", 0.98, 2.0),
    SizeTier("bright", 1.00, 3.0, 2.0),
)


def sample_sphere_directions(n: int, rng: np.random.Generator) -> np.ndarray:
    """Unit vectors uniform over the sphere surface.

    The polar angle is drawn through the inverse CDF ``acos(1 - 2u)`` so
    points do not bunch up at the poles.
    """
    phi = np.arccos(1.0 - 2.0 * rng.random(n))
    theta = 2.0 * np.pi * rng.random(n)
    sin_phi = np.sin(phi)
    return np.column_stack([
        sin_phi * np.cos(theta),
        sin_phi * np.sin(theta),
        np.cos(phi),
    ])


def band_index(temperatures: np.ndarray) -> np.ndarray:
    idx = np.full(temperatures.shape, len(TEMPERATURE_BANDS) - 1, dtype=np.int64)
    # Walk coolest → hottest so hotter bands overwrite.
    for i in range(len(TEMPERATURE_BANDS) - 1, -1, -1):
        idx[temperatures > TEMPERATURE_BANDS[i].above] = i
    return idx


def temperature_to_rgb(temperatures: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    temperatures = np.asarray(temperatures, dtype=np.float64).reshape(-1)
    rgb = np.empty((len(temperatures), 3), dtype=np.float64)
    idx = band_index(temperatures)
    for i, band in enumerate(TEMPERATURE_BANDS):
        mask = idx == i
        k = int(np.count_nonzero(mask))
        if k == 0:
            continue
        base = np.array([band.red[0], band.green[0], band.blue[0]])
        span = np.array([band.red[1], band.green[1], band.blue[1]])
        rgb[mask] = base + rng.random((k, 3)) * span
    return rgb


def assign_sizes(u: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    u = np.asarray(u, dtype=np.float64).reshape(-1)
    cutoffs = np.array([t.cutoff for t in SIZE_TIERS])
    idx = np.minimum(np.searchsorted(cutoffs, u, side="right"), len(SIZE_TIERS) - 1)
    base = np.array([t.base for t in SIZE_TIERS])[idx]
    jitter = np.array([t.jitter for t in SIZE_TIERS])[idx]
    return base + rng.random(len(u)) * jitter


def _validated_count(count) -> Optional[int]:
    try:
        value = float(count)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return int(value)


def generate_star_field(
    count,
    rng: Optional[np.random.Generator] = None,
    *,
    min_radius: float = 100.0,
    max_radius: float = 1600.0,
    min_temperature: float = 2000.0,
    max_temperature: float = 10000.0,
) -> StarBatch:
    """Generate ``count`` stars on a spherical shell around the origin.

    Radius and temperature are uniform over their half-open ranges, colour
    follows :data:`TEMPERATURE_BANDS` and size follows :data:`SIZE_TIERS`.
    A negative, non-finite or non-numeric ``count`` yields an empty batch.
    Without ``rng`` each call draws from fresh OS entropy.
    """
    n = _validated_count(count)
    if n is None:
        _log.warning("Rejected star-field request for count=%r; returning empty field.", count)
        return StarBatch.empty()
    if n == 0:
        return StarBatch.empty()

    rng = ensure_rng(rng)
    radius = min_radius + rng.random(n) * (max_radius - min_radius)
    positions = sample_sphere_directions(n, rng) * radius[:, None]

    temperature = min_temperature + rng.random(n) * (max_temperature - min_temperature)
    colors = temperature_to_rgb(temperature, rng)

    sizes = assign_sizes(rng.random(n), rng)
    return StarBatch(positions=positions, colors=colors, sizes=sizes)


def iter_star_batches(
    count: int,
    chunk_size: int = 100_000,
    rng: Optional[np.random.Generator] = None,
    **kwargs,
) -> Iterator[StarBatch]:
    """Yield a star field of ``count`` stars in chunks of at most ``chunk_size``."""
    n = _validated_count(count)
    if n is None:
        _log.warning("Rejected star-field request for count=%r; nothing to yield.", count)
        return
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive.")
    rng = ensure_rng(rng)
    for start in range(0, n, chunk_size):
        stop = min(start + chunk_size, n)
        yield generate_star_field(stop - start, rng, **kwargs)
