from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import numpy as np
import typer

from ..config import SceneConfig, load_config
from ..core.exporter import writer_for_path
from ..core.generator import iter_star_batches
from ..persistence.gateway import JsonFileStore
from ..runtime.builders import build_gateway
from ..sdk import simulate_session

app = typer.Typer(help="starscene star-field and session utilities")
state_app = typer.Typer(help="Inspect persisted session state")
app.add_typer(state_app, name="state")


def _configure_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric, format="[%(levelname)s] %(message)s")
    logging.getLogger("starscene").setLevel(numeric)


def _load(config: Optional[Path]) -> SceneConfig:
    return load_config(config) if config is not None else SceneConfig()


@app.command("generate")
def generate(
    count: int = typer.Argument(..., min=0, help="Number of stars to generate."),
    output: Path = typer.Option(..., "--output", "-o", help="Output path (.las/.laz/.npz/.ply)."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, readable=True, help="YAML scene configuration."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for a reproducible field."),
    chunk_size: int = typer.Option(100_000, "--chunk-size", min=1, help="Stars generated per chunk."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (e.g. INFO, DEBUG)."),
) -> None:
    """Generate a star field and write it to a point-cloud file."""

    _configure_logging(log_level)
    cfg = _load(config)
    out = output.resolve()
    try:
        writer = writer_for_path(out)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--output")

    sf = cfg.starfield
    run_seed = seed if seed is not None else sf.seed
    rng = np.random.default_rng(run_seed)
    written = 0
    try:
        for batch in iter_star_batches(
            count,
            chunk_size,
            rng,
            min_radius=sf.min_radius,
            max_radius=sf.max_radius,
            min_temperature=sf.min_temperature,
            max_temperature=sf.max_temperature,
        ):
            writer.write_batch(batch)
            written += len(batch)
    finally:
        writer.close()
    typer.echo(f"Wrote {written} stars → {out}")


@app.command("simulate")
def simulate(
    config: Optional[Path] = typer.Argument(None, exists=True, readable=True, help="YAML scene configuration."),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help="JSON file used as persistent storage."),
    click_at: Optional[List[float]] = typer.Option(None, "--click-at", help="Session time (s) of a user action; repeatable."),
    duration_s: float = typer.Option(12.0, "--duration", min=0.0, help="Simulated session length in seconds."),
    fps: float = typer.Option(60.0, "--fps", min=1.0, help="Frame rate of the simulated render loop."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level (e.g. INFO, DEBUG)."),
) -> None:
    """Run a headless session, optionally clicking, and report the outcome."""

    _configure_logging(log_level)
    result = simulate_session(
        _load(config),
        state_path=state,
        click_at=list(click_at or []),
        duration_s=duration_s,
        frame_rate_hz=fps,
        seed=seed,
    )
    st = result.stats
    typer.echo(
        f"Simulated {st['frames']} frames: total_clicks={st['total_clicks']} "
        f"stars={st['stars']} visible={st['visible_stars']} ui_shown={bool(st['ui_shown'])}"
    )
    typer.echo("Phases: " + " → ".join(result.phases))


@state_app.command("show")
def state_show(
    state: Path = typer.Option(..., "--state", "-s", help="JSON file used as persistent storage."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, readable=True, help="YAML scene configuration (for key names)."),
) -> None:
    """Print the persisted counters and placed stars."""

    persisted = build_gateway(_load(config), JsonFileStore(state)).load()
    typer.echo(f"has_clicked={str(persisted.has_clicked).lower()} total_clicks={persisted.total_clicks}")
    for star in persisted.stars:
        typer.echo(f"  star {star.id}: x={star.x:.2f} y={star.y:.2f}")


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
