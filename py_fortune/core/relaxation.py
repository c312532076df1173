"""Lloyd's relaxation on top of the sweep."""

import numpy as np
import structlog

from .fortune import FortuneSweep
from .geometry import BoundingBox

logger = structlog.get_logger()


def compute_polygon_centroid(vertices: np.ndarray) -> np.ndarray:
    """Compute the centroid of a polygon.

    Args:
        vertices: Array of [x, y] vertex coordinates

    Returns:
        [x, y] centroid coordinates
    """
    vertices = np.asarray(vertices, dtype=float)
    if len(vertices) < 3:
        return np.mean(vertices, axis=0)

    x = vertices[:, 0]
    y = vertices[:, 1]
    x_next = np.roll(x, -1)
    y_next = np.roll(y, -1)
    cross = x * y_next - x_next * y
    area = cross.sum() * 0.5

    # Degenerate (flat) polygon
    if abs(area) < 1e-10:
        return np.mean(vertices, axis=0)

    cx = ((x + x_next) * cross).sum() / (6.0 * area)
    cy = ((y + y_next) * cross).sum() / (6.0 * area)
    return np.array([cx, cy])


def relax_points(points: np.ndarray, bbox: BoundingBox, n_iterations: int = 3) -> np.ndarray:
    """Apply Lloyd's relaxation to improve point distribution.

    Moves each point to the centroid of its Voronoi cell, clamped to the
    bounding box. Duplicate points stay where they are.

    Args:
        points: (n, 2) array of points to relax
        bbox: Bounding box the cells are clipped to
        n_iterations: Number of relaxation iterations

    Returns:
        Relaxed point coordinates
    """
    bbox = BoundingBox(*bbox).validate()
    logger.info("Starting Lloyd's relaxation", points=len(points), iterations=n_iterations)

    points = np.array(points, dtype=float)  # Don't modify original
    engine = FortuneSweep()

    for iteration in range(n_iterations):
        diagram = engine.compute(points, bbox)

        for i, site in enumerate(diagram.sites):
            if site.id is None:
                continue
            polygon = diagram.cells[site.id].polygon()
            if len(polygon) < 3:
                continue
            centroid = compute_polygon_centroid(np.asarray(polygon))
            points[i, 0] = np.clip(centroid[0], bbox.xl, bbox.xr)
            points[i, 1] = np.clip(centroid[1], bbox.yt, bbox.yb)

        logger.info(f"Relaxation iteration {iteration + 1} complete")

    return points
