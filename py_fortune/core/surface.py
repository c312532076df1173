"""
Height surface over a scattered point cloud.

Heights are interpolated by inverse distance weighting over the nearest
known points. Independent of the Voronoi sweep.
"""

from typing import NamedTuple, Sequence

import numpy as np
import structlog

logger = structlog.get_logger()


class SurfacePoint(NamedTuple):
    x: float
    y: float
    z: float


class IDWSurface:
    """
    Inverse-distance-weighted surface.

    Args:
        points: (x, y, z) triples or an (n, 3) array
        neighbors: Number of nearest points used per query
        power: Distance exponent of the weights
    """

    def __init__(self, points: Sequence[Sequence[float]], neighbors: int = 3, power: float = 2.0):
        cloud = np.asarray(points, dtype=float)
        if cloud.size == 0:
            raise ValueError("Surface needs at least one point")
        if cloud.ndim != 2 or cloud.shape[1] != 3:
            raise ValueError(f"Expected an (n, 3) array of points, got shape {cloud.shape}")
        if neighbors < 1:
            raise ValueError(f"neighbors must be >= 1, got {neighbors}")

        self.xy = cloud[:, :2]
        self.z = cloud[:, 2]
        self.neighbors = min(neighbors, len(cloud))
        self.power = power

    def __len__(self):
        return len(self.z)

    def height_at(self, x: float, y: float) -> float:
        """Interpolated height at (x, y); exact on known points."""
        distances = np.hypot(self.xy[:, 0] - x, self.xy[:, 1] - y)

        hit = np.flatnonzero(distances == 0)
        if hit.size:
            return float(self.z[hit[0]])

        if self.neighbors < len(distances):
            nearest = np.argpartition(distances, self.neighbors - 1)[:self.neighbors]
        else:
            nearest = np.arange(len(distances))

        weights = 1.0 / distances[nearest] ** self.power
        return float(np.dot(weights, self.z[nearest]) / weights.sum())

    def point_at(self, x: float, y: float) -> SurfacePoint:
        return SurfacePoint(float(x), float(y), self.height_at(x, y))

    def grid(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """Heights sampled on the grid ``ys`` x ``xs`` (rows follow ``ys``)."""
        logger.debug("Sampling surface grid", columns=len(xs), rows=len(ys))
        return np.array([[self.height_at(x, y) for x in xs] for y in ys])
