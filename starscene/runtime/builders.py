from __future__ import annotations

from functools import partial
from typing import Callable, Optional

import numpy as np

from ..config import SceneConfig
from ..config.schema import JsonStorageConfig, MemoryStorageConfig
from ..core.generator import generate_star_field
from ..core.pointcloud import StarBatch
from ..core.timers import TimerService
from ..motion.flight import CameraFlightController
from ..motion.spin import SceneSpin
from ..persistence.gateway import JsonFileStore, KeyValueStore, MemoryStore, PersistenceGateway, StorageKeys
from ..session.loading import LoadingScreen
from ..session.sequencer import InteractionSequencer, SequenceTimings
from ..session.state import SessionState


def build_store(cfg: SceneConfig) -> KeyValueStore:
    storage = cfg.storage
    if isinstance(storage, MemoryStorageConfig):
        return MemoryStore()
    if isinstance(storage, JsonStorageConfig):
        return JsonFileStore(storage.path)
    raise ValueError(f"Unsupported storage kind: {storage.kind}")


def build_gateway(cfg: SceneConfig, store: Optional[KeyValueStore] = None) -> PersistenceGateway:
    keys = StorageKeys(
        click_flag=cfg.keys.click_flag,
        total_count=cfg.keys.total_count,
        star_list=cfg.keys.star_list,
    )
    return PersistenceGateway(store if store is not None else build_store(cfg), keys)


def build_generator(cfg: SceneConfig, rng: Optional[np.random.Generator] = None) -> Callable[[int], StarBatch]:
    sf = cfg.starfield
    return partial(
        generate_star_field,
        rng=rng,
        min_radius=sf.min_radius,
        max_radius=sf.max_radius,
        min_temperature=sf.min_temperature,
        max_temperature=sf.max_temperature,
    )


def build_flight(
    cfg: SceneConfig,
    timers: TimerService,
    on_complete: Optional[Callable[[], None]] = None,
) -> CameraFlightController:
    cam = cfg.camera
    return CameraFlightController(
        timers,
        start_position=cam.start_position,
        end_position=cam.end_position,
        target=cam.target,
        start_delay_s=cam.start_delay_s,
        duration_s=cam.duration_s,
        completion_delay_s=cam.completion_delay_s,
        on_complete=on_complete,
    )


def build_spin(cfg: SceneConfig) -> SceneSpin:
    return SceneSpin(
        planet_rate_rad_s=cfg.spin.planet_rate_rad_s,
        starfield_rate_rad_s=cfg.spin.starfield_rate_rad_s,
    )


def build_loading(
    cfg: SceneConfig,
    state: SessionState,
    timers: TimerService,
    rng: Optional[np.random.Generator] = None,
) -> LoadingScreen:
    ld = cfg.loading
    return LoadingScreen(
        state,
        timers,
        interval_s=ld.interval_s,
        min_step=ld.min_step,
        max_step=ld.max_step,
        hide_delay_s=ld.hide_delay_s,
        rng=rng,
    )


def build_sequencer(
    cfg: SceneConfig,
    state: SessionState,
    timers: TimerService,
    gateway: Optional[PersistenceGateway] = None,
    rng: Optional[np.random.Generator] = None,
    clock_ms: Optional[Callable[[], int]] = None,
) -> InteractionSequencer:
    seq = cfg.sequence
    timings = SequenceTimings(
        shrinking_s=seq.shrinking_s,
        light_streak_s=seq.light_streak_s,
        counting_s=seq.counting_s,
        star_glow_s=seq.star_glow_s,
        complete_s=seq.complete_s,
    )
    kwargs = {} if clock_ms is None else {"clock_ms": clock_ms}
    return InteractionSequencer(state, timers, gateway, timings, rng=rng, **kwargs)
