"""
Edge finalization against the bounding box.

After the sweep, edges may still have one or both endpoints unset (their
breakpoint ran off to infinity). ``connect_edge`` closes them against the
bounding box along the perpendicular bisector of their two sites, then
``clip_edge`` cuts every segment to the box (Liang-Barsky).
"""

from typing import List, Optional

import structlog

from .geometry import EPSILON, BoundingBox, Edge, Vertex

logger = structlog.get_logger()


def connect_edge(edge: Edge, bbox: BoundingBox) -> bool:
    """
    Give a dangling edge both endpoints on the bounding box.

    Args:
        edge: Edge whose ``vb`` (and possibly ``va``) is unset
        bbox: Clipping rectangle

    Returns:
        False if the edge cannot reach the bounding box and must be discarded
    """
    vb = edge.vb
    if vb is not None:
        return True

    va = edge.va
    xl, xr, yt, yb = bbox.xl, bbox.xr, bbox.yt, bbox.yb
    lsite = edge.lsite
    rsite = edge.rsite
    lx, ly = lsite.x, lsite.y
    rx, ry = rsite.x, rsite.y
    fx = (lx + rx) / 2
    fy = (ly + ry) / 2

    # Direction of the bisector, relative to the left site:
    #   upward: lx < rx, downward: lx > rx
    #   rightward: ly < ry, leftward: ly > ry
    if ry == ly:
        # Vertical bisector.
        if fx < xl or fx >= xr:
            return False
        if lx > rx:
            if va is None:
                va = Vertex(fx, yt)
            elif va.y >= yb:
                return False
            vb = Vertex(fx, yb)
        else:
            if va is None:
                va = Vertex(fx, yb)
            elif va.y < yt:
                return False
            vb = Vertex(fx, yt)
    else:
        fm = (lx - rx) / (ry - ly)
        fb = fy - fm * fx
        if fm < -1 or fm > 1:
            # Closer to vertical: connect to the top or bottom side.
            if lx > rx:
                if va is None:
                    va = Vertex((yt - fb) / fm, yt)
                elif va.y >= yb:
                    return False
                vb = Vertex((yb - fb) / fm, yb)
            else:
                if va is None:
                    va = Vertex((yb - fb) / fm, yb)
                elif va.y < yt:
                    return False
                vb = Vertex((yt - fb) / fm, yt)
        else:
            # Closer to horizontal: connect to the left or right side.
            if ly < ry:
                if va is None:
                    va = Vertex(xl, fm * xl + fb)
                elif va.x >= xr:
                    return False
                vb = Vertex(xr, fm * xr + fb)
            else:
                if va is None:
                    va = Vertex(xr, fm * xr + fb)
                elif va.x < xl:
                    return False
                vb = Vertex(xl, fm * xl + fb)

    edge.va = va
    edge.vb = vb
    return True


def clip_edge(edge: Edge, bbox: BoundingBox) -> bool:
    """
    Cut a fully defined edge to the bounding box.

    Liang-Barsky parametric clipping. A Voronoi edge lies on the
    perpendicular bisector of its two sites, so the line is parameterized
    from the sites' midpoint rather than from its endpoints: nearly collinear
    sites put vertices so far away that interpolating between them misses
    the box by whole units. Endpoints inside the box are kept. Endpoints
    moved by the clip are new vertices placed exactly on the box side that
    cut them: the old ones may be shared with other edges.

    Returns:
        False if the segment lies wholly outside the box
    """
    va, vb = edge.va, edge.vb
    va_inside = bbox.contains(va.x, va.y)
    vb_inside = bbox.contains(vb.x, vb.y)
    if va_inside and vb_inside:
        return True

    lsite, rsite = edge.lsite, edge.rsite
    if rsite is None:
        ox, oy = va
        dx = vb.x - va.x
        dy = vb.y - va.y
    else:
        ox = (lsite.x + rsite.x) / 2
        oy = (lsite.y + rsite.y) / 2
        dx = lsite.y - rsite.y
        dy = rsite.x - lsite.x
    norm = dx * dx + dy * dy
    if not norm:
        return False

    ta = ((va.x - ox) * dx + (va.y - oy) * dy) / norm
    tb = ((vb.x - ox) * dx + (vb.y - oy) * dy) / norm
    t0, t1 = min(ta, tb), max(ta, tb)
    side0 = side1 = None

    # (p, q) per box side: the line is inside where p * t <= q.
    for p, q, side in (
        (-dx, ox - bbox.xl, "xl"),
        (dx, bbox.xr - ox, "xr"),
        (-dy, oy - bbox.yt, "yt"),
        (dy, bbox.yb - oy, "yb"),
    ):
        if p == 0:
            if q < 0:
                return False
            continue
        r = q / p
        if p < 0:
            if r > t1:
                return False
            if r > t0:
                t0 = r
                side0 = side
        else:
            if r < t0:
                return False
            if r < t1:
                t1 = r
                side1 = side

    def on_box(t: float, side: Optional[str]) -> Vertex:
        x = ox + t * dx
        y = oy + t * dy
        if side == "xl" or side == "xr":
            x = getattr(bbox, side)
        elif side == "yt" or side == "yb":
            y = getattr(bbox, side)
        return Vertex(min(max(x, bbox.xl), bbox.xr), min(max(y, bbox.yt), bbox.yb))

    if ta <= tb:
        start, end = (t0, side0), (t1, side1)
    else:
        start, end = (t1, side1), (t0, side0)
    if not va_inside:
        edge.va = on_box(*start)
    if not vb_inside:
        edge.vb = on_box(*end)
    return True


def clip_edges(edges: List[Edge], bbox: BoundingBox) -> List[Edge]:
    """
    Connect and clip every edge, discarding those outside the box.

    Edges are discarded when they cannot be connected, lie wholly outside
    the box, or collapse to a point. Discarded edges get both endpoints
    reset so the halfedges referring to them are pruned from their cells.

    Returns:
        The surviving edges, in their original order
    """
    kept = []
    discarded = 0
    for edge in edges:
        if (
            not connect_edge(edge, bbox)
            or not clip_edge(edge, bbox)
            or (abs(edge.va.x - edge.vb.x) < EPSILON and abs(edge.va.y - edge.vb.y) < EPSILON)
        ):
            edge.va = edge.vb = None
            discarded += 1
            continue
        kept.append(edge)

    logger.debug("Edges clipped", kept=len(kept), discarded=discarded)
    return kept
