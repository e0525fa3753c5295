from __future__ import annotations
import numpy as np
import logging

def get_logger(name: str = "starscene") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter("[%(levelname)s] %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger

def ensure_rng(rng: np.random.Generator | None = None, seed: int | None = None) -> np.random.Generator:
    if rng is not None:
        return rng
    return np.random.default_rng(seed)

def ease_in_out_cubic(progress: float) -> float:
    if progress < 0.5:
        return 4.0 * progress * progress * progress
    return 1.0 - (-2.0 * progress + 2.0) ** 3 / 2.0

def lerp(a: np.ndarray, b: np.ndarray, alpha: float) -> np.ndarray:
    return (1.0 - alpha) * a + alpha * b
