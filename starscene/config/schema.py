from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, model_validator


Vec3 = tuple[float, float, float]


class StarFieldConfig(BaseModel):
    min_radius: float = 100.0
    max_radius: float = 1600.0
    min_temperature: float = 2000.0
    max_temperature: float = 10000.0
    seed: Optional[int] = None

    @model_validator(mode="after")
    def _validate_ranges(self) -> "StarFieldConfig":
        if self.min_radius < 0 or self.max_radius <= self.min_radius:
            raise ValueError("starfield radius range must satisfy 0 <= min_radius < max_radius")
        if self.max_temperature <= self.min_temperature:
            raise ValueError("starfield temperature range must satisfy min_temperature < max_temperature")
        return self


class StreamerConfig(BaseModel):
    batch_size: int = Field(1000, ge=1)


class CameraConfig(BaseModel):
    start_position: Vec3 = (0.0, 5.0, 8.0)
    end_position: Vec3 = (0.0, 1.5, 2.5)
    target: Vec3 = (0.0, 0.0, 0.0)
    start_delay_s: float = Field(1.0, ge=0.0)
    duration_s: float = Field(6.0, gt=0.0)
    completion_delay_s: float = Field(0.1, ge=0.0)


class SpinConfig(BaseModel):
    planet_rate_rad_s: float = 0.025
    starfield_rate_rad_s: float = 0.001
    planet_position: Vec3 = (0.0, -0.8, 0.0)


class SequenceConfig(BaseModel):
    shrinking_s: float = Field(0.5, ge=0.0)
    light_streak_s: float = Field(1.0, ge=0.0)
    counting_s: float = Field(0.8, ge=0.0)
    star_glow_s: float = Field(1.5, ge=0.0)
    complete_s: float = Field(0.5, ge=0.0)


class LoadingConfig(BaseModel):
    interval_s: float = Field(0.1, gt=0.0)
    min_step: float = 5.0
    max_step: float = 20.0
    hide_delay_s: float = Field(0.5, ge=0.0)

    @model_validator(mode="after")
    def _validate_steps(self) -> "LoadingConfig":
        if self.min_step <= 0 or self.max_step < self.min_step:
            raise ValueError("loading steps must satisfy 0 < min_step <= max_step")
        return self


class StorageKeysConfig(BaseModel):
    click_flag: str = "yoga-connection-clicked"
    total_count: str = "yoga-connection-total"
    star_list: str = "yoga-connection-stars"


class MemoryStorageConfig(BaseModel):
    kind: Literal["memory"] = "memory"


class JsonStorageConfig(BaseModel):
    kind: Literal["json"]
    path: Path


StorageConfig = Annotated[
    Union[MemoryStorageConfig, JsonStorageConfig],
    Field(discriminator="kind"),
]


class SceneConfig(BaseModel):
    starfield: StarFieldConfig = StarFieldConfig()
    streamer: StreamerConfig = StreamerConfig()
    camera: CameraConfig = CameraConfig()
    spin: SpinConfig = SpinConfig()
    sequence: SequenceConfig = SequenceConfig()
    loading: LoadingConfig = LoadingConfig()
    storage: StorageConfig = MemoryStorageConfig()
    keys: StorageKeysConfig = StorageKeysConfig()

    @model_validator(mode="after")
    def _distinct_keys(self) -> "SceneConfig":
        names = [self.keys.click_flag, self.keys.total_count, self.keys.star_list]
        if len(set(names)) != len(names):
            raise ValueError("storage keys must be distinct")
        return self


def load_config(path: str | Path) -> SceneConfig:
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Configuration root must be a mapping.")
    cfg = SceneConfig.model_validate(data)
    if isinstance(cfg.storage, JsonStorageConfig) and not cfg.storage.path.is_absolute():
        cfg.storage.path = (path.parent / cfg.storage.path).resolve()
    return cfg
