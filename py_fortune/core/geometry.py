"""
Geometric value types for the Voronoi diagram.

Sites are the input points, edges are the shared boundaries between two
cells (or a cell and the bounding box), halfedges are the per-cell views of
an edge and cells are the closed polygons built around each site.
"""

import math
from typing import Any, List, NamedTuple, Optional

import numpy as np

EPSILON = 1e-9
INFINITY = 1e30


class VoronoiError(RuntimeError):
    """Internal invariant of the sweep or of cell closing was violated."""


def equal_with_epsilon(a: float, b: float) -> bool:
    return abs(a - b) < EPSILON


def greater_than_with_epsilon(a: float, b: float) -> bool:
    return a - b > EPSILON


def less_than_with_epsilon(a: float, b: float) -> bool:
    return b - a > EPSILON


class Vertex(NamedTuple):
    """A fixed point of the diagram (edge endpoint)."""
    x: float
    y: float


class BoundingBox(NamedTuple):
    """Clipping rectangle, with y growing downward (yt above yb)."""
    xl: float
    xr: float
    yt: float
    yb: float

    def validate(self) -> "BoundingBox":
        if not self.xl < self.xr:
            raise ValueError(f"Bounding box needs xl < xr, got xl={self.xl} xr={self.xr}")
        if not self.yt < self.yb:
            raise ValueError(f"Bounding box needs yt < yb, got yt={self.yt} yb={self.yb}")
        return self

    def contains(self, x: float, y: float) -> bool:
        return self.xl <= x <= self.xr and self.yt <= y <= self.yb

    @property
    def area(self) -> float:
        return (self.xr - self.xl) * (self.yb - self.yt)

    def corners(self) -> List[Vertex]:
        """Corners in closing order: top-left, bottom-left, bottom-right, top-right."""
        return [
            Vertex(self.xl, self.yt),
            Vertex(self.xl, self.yb),
            Vertex(self.xr, self.yb),
            Vertex(self.xr, self.yt),
        ]


class Site:
    """
    Input point around which a cell is built.

    The id is assigned by the sweep when the site is inserted into the
    beachline; any value set by the caller is overwritten. Duplicate sites
    skipped by the sweep keep ``id = None``.
    """

    def __init__(self, x: float, y: float, data: Any = None):
        self.x = float(x)
        self.y = float(y)
        self.id: Optional[int] = None
        self.data = data

    def __repr__(self):
        return f"Site(x={self.x}, y={self.y}, id={self.id})"

    def as_tuple(self):
        return (self.x, self.y)


class Edge:
    """
    Boundary segment between the cells of ``lsite`` and ``rsite``.

    Border edges, created when cells are closed along the bounding box,
    have no ``rsite``. Endpoints ``va``/``vb`` stay ``None`` until the sweep
    or the clipping pass fixes them.
    """

    def __init__(self, lsite: Optional[Site], rsite: Optional[Site]):
        self.lsite = lsite
        self.rsite = rsite
        self.va: Optional[Vertex] = None
        self.vb: Optional[Vertex] = None

    def __repr__(self):
        return f"Edge(lsite={self.lsite!r}, rsite={self.rsite!r}, va={self.va}, vb={self.vb})"

    @property
    def is_border(self) -> bool:
        return self.rsite is None

    @property
    def is_complete(self) -> bool:
        return self.va is not None and self.vb is not None

    def set_start_point(self, lsite: Site, rsite: Site, vertex: Vertex) -> None:
        # The first fixed endpoint orients the edge.
        if self.va is None and self.vb is None:
            self.va = vertex
            self.lsite = lsite
            self.rsite = rsite
        elif self.lsite is rsite:
            self.vb = vertex
        else:
            self.va = vertex

    def set_end_point(self, lsite: Site, rsite: Site, vertex: Vertex) -> None:
        self.set_start_point(rsite, lsite, vertex)


class Halfedge:
    """One cell's view of an edge, sortable by angle around the site."""

    def __init__(self, edge: Edge, lsite: Site, rsite: Optional[Site]):
        self.site = lsite
        self.edge = edge
        if rsite is not None:
            self.angle = math.atan2(rsite.y - lsite.y, rsite.x - lsite.x)
        else:
            # Border edges: use the perpendicular of the segment.
            va = edge.va
            vb = edge.vb
            if edge.lsite is lsite:
                self.angle = math.atan2(vb.x - va.x, va.y - vb.y)
            else:
                self.angle = math.atan2(va.x - vb.x, vb.y - va.y)

    def __repr__(self):
        return f"Halfedge(site={self.site.id}, angle={self.angle:.4f})"

    @property
    def start_point(self) -> Optional[Vertex]:
        return self.edge.va if self.edge.lsite is self.site else self.edge.vb

    @property
    def end_point(self) -> Optional[Vertex]:
        return self.edge.vb if self.edge.lsite is self.site else self.edge.va


class Cell:
    """Closed polygon of the bounding box nearest to ``site``."""

    def __init__(self, site: Site):
        self.site = site
        self.halfedges: List[Halfedge] = []

    def __repr__(self):
        return f"Cell(site={self.site!r}, halfedges={len(self.halfedges)})"

    def prepare(self) -> int:
        """
        Drop halfedges whose edge lacks an endpoint and sort the rest
        counterclockwise (descending angle).

        Returns:
            Number of remaining halfedges
        """
        self.halfedges = [he for he in self.halfedges if he.edge.is_complete]
        self.halfedges.sort(key=lambda he: he.angle, reverse=True)
        return len(self.halfedges)

    def polygon(self) -> List[Vertex]:
        """Ordered polygon vertices, one start point per halfedge."""
        return [he.start_point for he in self.halfedges]

    def is_closed(self) -> bool:
        n = len(self.halfedges)
        if n == 0:
            return False
        for i in range(n):
            end = self.halfedges[i].end_point
            start = self.halfedges[(i + 1) % n].start_point
            if not (equal_with_epsilon(end.x, start.x) and equal_with_epsilon(end.y, start.y)):
                return False
        return True

    def area(self) -> float:
        points = self.polygon()
        if len(points) < 3:
            return 0.0
        coords = np.asarray(points, dtype=float)
        x = coords[:, 0]
        y = coords[:, 1]
        return 0.5 * abs(float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))

    def neighbor_ids(self) -> List[int]:
        ids = set()
        for he in self.halfedges:
            edge = he.edge
            if edge.is_border:
                continue
            other = edge.rsite if edge.lsite is self.site else edge.lsite
            ids.add(other.id)
        return sorted(ids)
