"""Configuration loading utilities for starscene."""

from .schema import (
    SceneConfig,
    load_config,
)

__all__ = ["SceneConfig", "load_config"]
