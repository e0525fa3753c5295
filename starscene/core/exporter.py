from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Dict, List
import numpy as np
import pathlib

import laspy  # type: ignore
from .pointcloud import StarBatch
from .utils import get_logger

_log = get_logger()

@dataclass
class LasWriter:
    """Streaming LAS/LAZ writer for star fields using laspy (v2+).

    Colours go into the standard 16-bit RGB fields, star size into a
    ``StarSize`` extra dimension. The file is opened on the first non-empty
    batch, so writing nothing leaves no file behind.
    """
    path: str
    point_format: int = 7
    compress: bool = False
    scale: tuple[float, float, float] = (1e-3, 1e-3, 1e-3)
    offset: Optional[tuple[float, float, float]] = None

    def __post_init__(self) -> None:
        self._fh: Optional[laspy.LasWriter] = None  # type: ignore
        self._header: Optional[laspy.LasHeader] = None  # type: ignore
        self.points_written = 0

    # -- public API --
    def write_batch(self, batch: StarBatch) -> None:
        if len(batch) == 0:
            return
        if self._fh is None:
            self._init_header_from_batch(batch)
        assert self._fh is not None and self._header is not None
        self._fh.write_points(self._point_record_from_batch(batch, self._header))
        self.points_written += len(batch)

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    # -- internals --
    def _init_header_from_batch(self, batch: StarBatch) -> None:
        pf = laspy.PointFormat(self.point_format)
        if not all(nm in pf.dimension_names for nm in ("red", "green", "blue")):
            raise ValueError(f"Point format {self.point_format} has no RGB fields")
        hdr = laspy.LasHeader(point_format=pf, version="1.4")
        hdr.scales = self.scale
        # Star fields are centred on the origin; a zero offset keeps coordinates symmetric.
        hdr.offsets = self.offset if self.offset is not None else (0.0, 0.0, 0.0)
        hdr.add_extra_dim(laspy.ExtraBytesParams(name="StarSize", type="float32"))

        path = pathlib.Path(self.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = laspy.open(path, mode="w", header=hdr, do_compress=self.compress)
        self._header = hdr
        _log.info("Opened %s (PF=%d, compress=%s)", path.name, self.point_format, self.compress)

    def _point_record_from_batch(
        self, batch: StarBatch, header: "laspy.LasHeader"
    ) -> "laspy.ScaleAwarePointRecord":
        pts = laspy.ScaleAwarePointRecord.zeros(len(batch), header=header)
        pts.x = batch.positions[:, 0]
        pts.y = batch.positions[:, 1]
        pts.z = batch.positions[:, 2]

        rgb = (np.clip(batch.colors.astype(np.float64), 0.0, 1.0) * 65535.0 + 0.5).astype(np.uint16)
        pts.red = rgb[:, 0]
        pts.green = rgb[:, 1]
        pts.blue = rgb[:, 2]
        pts["StarSize"] = batch.sizes.astype(np.float32, copy=False)
        return pts


# Minimal PLY and NPZ writers for previews / debugging
class PlyWriter:
    def __init__(self, path: str) -> None:
        self.path = path
        self._batches: List[StarBatch] = []

    def write_batch(self, batch: StarBatch) -> None:
        self._batches.append(batch)

    def close(self) -> None:
        if not self._batches:
            return
        # ASCII PLY, buffered and written once on close
        path = pathlib.Path(self.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        xyz = np.vstack([b.positions for b in self._batches])
        rgb = (np.clip(np.vstack([b.colors for b in self._batches]), 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
        sizes = np.concatenate([b.sizes for b in self._batches])
        with open(path, "w", encoding="utf-8") as f:
            f.write("ply\nformat ascii 1.0\n")
            f.write(f"element vertex {len(xyz)}\n")
            f.write("property float x\nproperty float y\nproperty float z\n")
            f.write("property uchar red\nproperty uchar green\nproperty uchar blue\n")
            f.write("property float size\n")
            f.write("end_header\n")
            for (x, y, z), (r, g, b), s in zip(xyz, rgb, sizes):
                f.write(f"{float(x)} {float(y)} {float(z)} {int(r)} {int(g)} {int(b)} {float(s)}\n")
        self._batches.clear()


class NpzWriter:
    def __init__(self, path: str) -> None:
        self.path = path
        self._batches: List[StarBatch] = []

    def write_batch(self, batch: StarBatch) -> None:
        self._batches.append(batch)

    def close(self) -> None:
        if not self._batches:
            return
        path = pathlib.Path(self.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        out: Dict[str, np.ndarray] = {
            "positions": np.vstack([b.positions for b in self._batches]),
            "colors": np.vstack([b.colors for b in self._batches]),
            "sizes": np.concatenate([b.sizes for b in self._batches]),
        }
        np.savez_compressed(path, **out)
        self._batches.clear()


def writer_for_path(path: str | pathlib.Path):
    """Pick a writer from the output file extension."""
    path = pathlib.Path(path)
    ext = path.suffix.lower()
    if ext == ".las":
        return LasWriter(str(path), compress=False)
    if ext == ".laz":
        return LasWriter(str(path), compress=True)
    if ext == ".npz":
        return NpzWriter(str(path))
    if ext == ".ply":
        return PlyWriter(str(path))
    raise ValueError(f"Unsupported output extension '{ext}'")


def read_star_file(path: str | pathlib.Path, default_size: float = 0.5) -> StarBatch:
    """Read a star field written by one of the writers above.

    Files from other tools may lack the colour or ``StarSize`` dimensions;
    those fall back to white stars of ``default_size`` with a warning.
    """
    path = pathlib.Path(path)
    ext = path.suffix.lower()
    if ext == ".npz":
        with np.load(path) as data:
            positions = data["positions"]
            colors = data["colors"] if "colors" in data.files else None
            sizes = data["sizes"] if "sizes" in data.files else None
    elif ext in {".las", ".laz"}:
        las = laspy.read(path)
        positions = np.column_stack([las.x, las.y, las.z])
        dims = set(las.point_format.dimension_names)
        colors = None
        if {"red", "green", "blue"} <= dims:
            colors = np.column_stack([las.red, las.green, las.blue]) / 65535.0
        sizes = np.asarray(las["StarSize"]) if "StarSize" in dims else None
    else:
        raise ValueError(f"Unsupported input extension '{ext}'")

    n = len(positions)
    if colors is None:
        _log.warning("%s has no colour dimensions; using white.", path.name)
        colors = np.ones((n, 3), dtype=np.float32)
    if sizes is None:
        _log.warning("%s has no StarSize dimension; using size %.2f.", path.name, default_size)
        sizes = np.full(n, default_size, dtype=np.float32)
    return StarBatch(positions, colors, sizes)
