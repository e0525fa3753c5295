from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Tuple

import matplotlib
import matplotlib.pyplot as plt
import numpy as np

from starscene.config import SceneConfig, load_config
from starscene.core.exporter import read_star_file
from starscene.core.generator import generate_star_field
from starscene.core.pointcloud import StarBatch
from starscene.motion.pose import CameraPose

matplotlib.use("Agg")

IMAGE_DIR = Path("examples/images")


def project(positions: np.ndarray, pose: CameraPose, fov_deg: float = 75.0) -> Tuple[np.ndarray, np.ndarray]:
    """Project world points through ``pose``; returns NDC xy and a visibility mask."""
    view = pose.view_matrix()
    homo = np.hstack([positions.astype(np.float64), np.ones((positions.shape[0], 1))])
    cam = homo @ view.T
    depth = -cam[:, 2]
    visible = depth > 1e-6
    f = 1.0 / np.tan(np.radians(fov_deg) / 2.0)
    ndc = np.zeros((positions.shape[0], 2), dtype=np.float64)
    ndc[visible, 0] = f * cam[visible, 0] / depth[visible]
    ndc[visible, 1] = f * cam[visible, 1] / depth[visible]
    inside = visible & (np.abs(ndc[:, 0]) <= 1.0) & (np.abs(ndc[:, 1]) <= 1.0)
    return ndc, inside


def render_stars(name: str, batch: StarBatch, pose: CameraPose, max_points: int = 200_000) -> Path:
    if len(batch) == 0:
        raise ValueError(f"No stars to render for {name}")
    positions, colors, sizes = batch.positions, batch.colors, batch.sizes
    if len(batch) > max_points:
        idx = np.random.default_rng(0).choice(len(batch), size=max_points, replace=False)
        positions, colors, sizes = positions[idx], colors[idx], sizes[idx]
    colors = np.clip(colors, 0.0, 1.0)

    fig = plt.figure(figsize=(8, 10), dpi=150, facecolor="black")
    ax_view = fig.add_subplot(2, 1, 1, facecolor="black")
    ndc, inside = project(positions, pose)
    ax_view.scatter(ndc[inside, 0], ndc[inside, 1], c=colors[inside], s=sizes[inside] * 0.5, linewidths=0)
    ax_view.set_title("Camera view (end pose)", color="white")
    ax_view.set_xlim(-1.0, 1.0)
    ax_view.set_ylim(-1.0, 1.0)
    ax_view.set_aspect("equal", adjustable="box")
    ax_view.set_axis_off()

    ax_top = fig.add_subplot(2, 1, 2, facecolor="black")
    ax_top.scatter(positions[:, 0], positions[:, 2], c=colors, s=sizes * 0.2, linewidths=0)
    ax_top.set_title("XZ (top-down)", color="white")
    ax_top.set_aspect("equal", adjustable="box")
    ax_top.tick_params(colors="white")

    fig.tight_layout()
    IMAGE_DIR.mkdir(parents=True, exist_ok=True)
    out_path = IMAGE_DIR / f"{name}.png"
    fig.savefig(out_path, facecolor=fig.get_facecolor())
    plt.close(fig)
    return out_path


def generate_preview(
    name: str,
    count: int,
    config: Optional[Path],
    points: Optional[Path],
    seed: Optional[int],
) -> Path:
    cfg = load_config(config) if config is not None else SceneConfig()
    if points is not None:
        logging.info("Loading stars from %s", points)
        batch = read_star_file(points)
    else:
        sf = cfg.starfield
        rng = np.random.default_rng(seed if seed is not None else sf.seed)
        logging.info("Generating %d stars", count)
        batch = generate_star_field(
            count,
            rng,
            min_radius=sf.min_radius,
            max_radius=sf.max_radius,
            min_temperature=sf.min_temperature,
            max_temperature=sf.max_temperature,
        )
    pose = CameraPose.from_xyz(cfg.camera.end_position, cfg.camera.target)
    return render_stars(name, batch, pose)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render a preview image of a starscene star field.")
    parser.add_argument("--name", default="starfield", help="Image name (default: starfield).")
    parser.add_argument("--count", type=int, default=20_000, help="Stars to generate when no input is given.")
    parser.add_argument("--config", type=Path, help="YAML scene configuration.")
    parser.add_argument("--points", type=Path, help="Existing .npz/.las star file to render instead.")
    parser.add_argument("--seed", type=int, help="Random seed.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO).")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="[%(levelname)s] %(message)s")
    out = generate_preview(args.name, args.count, args.config, args.points, args.seed)
    logging.info("Saved %s", out)


if __name__ == "__main__":
    main()
