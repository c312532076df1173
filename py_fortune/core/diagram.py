"""Voronoi diagram result and derived data."""

from dataclasses import dataclass
from typing import List

import numpy as np

from .geometry import Cell, Edge, Site


@dataclass
class VoronoiDiagram:
    """
    Result of one sweep.

    ``cells[i]`` is the cell of the site whose assigned id is ``i``;
    ``sites`` is the input in its original order (duplicates included,
    with ``id = None``). Every edge has both endpoints set.
    """
    sites: List[Site]
    cells: List[Cell]
    edges: List[Edge]
    exec_time: float  # seconds

    def polygons(self) -> List[np.ndarray]:
        """Cell polygons as (k, 2) arrays, in cell id order."""
        return [np.asarray(cell.polygon(), dtype=float).reshape(-1, 2) for cell in self.cells]

    def cell_areas(self) -> np.ndarray:
        return np.array([cell.area() for cell in self.cells], dtype=float)

    def cell_neighbors(self) -> List[List[int]]:
        """cell_neighbors()[i] = sorted ids of the cells sharing an edge with cell i."""
        return [cell.neighbor_ids() for cell in self.cells]

    def vertices(self) -> np.ndarray:
        """Distinct edge endpoints as an (n, 2) array."""
        points = {p for edge in self.edges for p in (edge.va, edge.vb)}
        if not points:
            return np.empty((0, 2), dtype=float)
        return np.array(sorted(points), dtype=float)
