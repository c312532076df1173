"""
Delaunay triangulation (Bowyer-Watson).

Points are inserted one at a time into a triangulation seeded with a
super-triangle containing them all. Triangles whose circumcircle contains
the new point are removed and the resulting cavity is re-triangulated
around the point. Triangles still touching the super-triangle are dropped
at the end.

Independent of the Voronoi sweep. Input points may be (x, y) pairs or any
object with ``x``/``y`` attributes, such as the sweep's ``Site`` and
``Vertex``; each is copied into a local ``Point`` carrying its input index.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import structlog

logger = structlog.get_logger()

COLLINEAR_EPSILON = 1e-15


@dataclass(frozen=True)
class Point:
    """Triangulation vertex; ``index`` is the position in the input list."""
    x: float
    y: float
    index: int = -1


@dataclass
class Triangle:
    """Triangle of the triangulation with circumcircle and containment tests."""
    p1: Point
    p2: Point
    p3: Point

    def __post_init__(self):
        self._circle = self._circumcircle()

    @property
    def points(self) -> Tuple[Point, Point, Point]:
        return (self.p1, self.p2, self.p3)

    def is_valid(self) -> bool:
        """False for a flat triangle lying along one horizontal line."""
        return not (abs(self.p1.y - self.p2.y) < COLLINEAR_EPSILON
                    and abs(self.p2.y - self.p3.y) < COLLINEAR_EPSILON)

    def _circumcircle(self) -> Tuple[float, float, float]:
        ax, ay = self.p1.x, self.p1.y
        bx, by = self.p2.x - ax, self.p2.y - ay
        cx, cy = self.p3.x - ax, self.p3.y - ay
        d = 2 * (bx * cy - by * cx)
        if abs(d) < COLLINEAR_EPSILON:
            return (0.0, 0.0, -1.0)
        hb = bx * bx + by * by
        hc = cx * cx + cy * cy
        ux = (cy * hb - by * hc) / d
        uy = (bx * hc - cx * hb) / d
        return (ux + ax, uy + ay, ux * ux + uy * uy)

    def circumcircle(self) -> Tuple[float, float, float]:
        """Center x, center y and radius; radius is -1 for a degenerate triangle."""
        cx, cy, r2 = self._circle
        return (cx, cy, r2 ** 0.5 if r2 >= 0 else -1.0)

    def point_in_circle(self, point: Point) -> bool:
        """Is ``point`` inside or on the circumcircle?"""
        if not self.is_valid():
            return False
        cx, cy, r2 = self._circle
        if r2 < 0:
            return False
        dx = point.x - cx
        dy = point.y - cy
        return dx * dx + dy * dy <= r2

    def point_in_triangle(self, point: Point) -> bool:
        """Strict interior test using barycentric coordinates."""
        v0x, v0y = self.p3.x - self.p1.x, self.p3.y - self.p1.y
        v1x, v1y = self.p2.x - self.p1.x, self.p2.y - self.p1.y
        v2x, v2y = point.x - self.p1.x, point.y - self.p1.y

        dot00 = v0x * v0x + v0y * v0y
        dot01 = v0x * v1x + v0y * v1y
        dot02 = v0x * v2x + v0y * v2y
        dot11 = v1x * v1x + v1y * v1y
        dot12 = v1x * v2x + v1y * v2y

        denom = dot00 * dot11 - dot01 * dot01
        if denom == 0:
            return False
        u = (dot11 * dot02 - dot01 * dot12) / denom
        v = (dot00 * dot12 - dot01 * dot02) / denom
        return u > 0 and v > 0 and u + v < 1

    def bounding_rect(self) -> Tuple[Point, Point]:
        xs = [p.x for p in self.points]
        ys = [p.y for p in self.points]
        return Point(min(xs), min(ys)), Point(max(xs), max(ys))


def _edge_key(a: Point, b: Point) -> Tuple[int, int]:
    return (a.index, b.index) if a.index < b.index else (b.index, a.index)


def triangulate(points: Sequence[Sequence[float]]) -> List[Triangle]:
    """
    Triangulate a point set.

    Args:
        points: (x, y) pairs or objects with ``x``/``y`` attributes (``Site``, ``Vertex``)

    Returns:
        Triangles whose vertices carry their input ``index``
    """
    if len(points) < 3:
        raise ValueError(f"Need at least 3 points to triangulate, got {len(points)}")

    vertices = []
    for i, p in enumerate(points):
        x, y = (p.x, p.y) if hasattr(p, "x") else (p[0], p[1])
        vertices.append(Point(float(x), float(y), i))

    n = len(vertices)
    xmin = min(v.x for v in vertices)
    xmax = max(v.x for v in vertices)
    ymin = min(v.y for v in vertices)
    ymax = max(v.y for v in vertices)
    dmax = max(xmax - xmin, ymax - ymin) or 1.0
    xmid = (xmax + xmin) / 2
    ymid = (ymax + ymin) / 2

    # Super-triangle, large enough to keep its circumcircles away from the input.
    s1 = Point(xmid - 20 * dmax, ymid - dmax, n)
    s2 = Point(xmid, ymid + 20 * dmax, n + 1)
    s3 = Point(xmid + 20 * dmax, ymid - dmax, n + 2)
    triangles = [Triangle(s1, s2, s3)]

    for vertex in vertices:
        bad = [t for t in triangles if t.point_in_circle(vertex)]
        if not bad:
            continue

        # Cavity boundary: edges belonging to exactly one removed triangle.
        edge_count = {}
        for t in bad:
            for a, b in ((t.p1, t.p2), (t.p2, t.p3), (t.p3, t.p1)):
                key = _edge_key(a, b)
                if key in edge_count:
                    edge_count[key] = None
                else:
                    edge_count[key] = (a, b)

        bad_ids = {id(t) for t in bad}
        triangles = [t for t in triangles if id(t) not in bad_ids]
        for edge in edge_count.values():
            if edge is not None:
                triangles.append(Triangle(edge[0], edge[1], vertex))

    result = [t for t in triangles if all(p.index < n for p in t.points)]
    logger.debug("Triangulation complete", points=n, triangles=len(result))
    return result
