"""
Cell closing.

Once edges are clipped, a cell touching the bounding box has gaps in its
boundary where the box itself is the border. Those gaps are filled with
border edges walking the box counterclockwise: down the left side, right
along the bottom, up the right side, left along the top.
"""

from typing import List, Optional

import structlog

from .geometry import (
    BoundingBox,
    Cell,
    Edge,
    Halfedge,
    Site,
    Vertex,
    equal_with_epsilon,
    greater_than_with_epsilon,
    less_than_with_epsilon,
)

logger = structlog.get_logger()

# A gap never needs more than one segment per side of the box.
MAX_BORDER_SEGMENTS = 4


def create_border_edge(edges: List[Edge], site: Site, va: Vertex, vb: Vertex) -> Edge:
    edge = Edge(site, None)
    edge.va = va
    edge.vb = vb
    edges.append(edge)
    return edge


def next_border_vertex(va: Vertex, vz: Vertex, bbox: BoundingBox) -> Optional[Vertex]:
    """
    Next vertex when walking the box counterclockwise from ``va`` toward ``vz``.

    Stops at ``vz`` when it lies on the current side, at the side's corner
    otherwise. Returns None when ``va`` is not on the box boundary.
    """
    xl, xr, yt, yb = bbox.xl, bbox.xr, bbox.yt, bbox.yb
    if equal_with_epsilon(va.x, xl) and less_than_with_epsilon(va.y, yb):
        return Vertex(xl, vz.y if equal_with_epsilon(vz.x, xl) else yb)
    if equal_with_epsilon(va.y, yb) and less_than_with_epsilon(va.x, xr):
        return Vertex(vz.x if equal_with_epsilon(vz.y, yb) else xr, yb)
    if equal_with_epsilon(va.x, xr) and greater_than_with_epsilon(va.y, yt):
        return Vertex(xr, vz.y if equal_with_epsilon(vz.x, xr) else yt)
    if equal_with_epsilon(va.y, yt) and greater_than_with_epsilon(va.x, xl):
        return Vertex(vz.x if equal_with_epsilon(vz.y, yt) else xl, yt)
    return None


def close_cell(cell: Cell, edges: List[Edge], bbox: BoundingBox) -> int:
    """
    Close one prepared cell along the bounding box.

    Returns:
        Number of border edges added
    """
    halfedges = cell.halfedges
    site = cell.site
    added = 0

    if not halfedges:
        # Lone site: the whole box is the cell.
        if not bbox.contains(site.x, site.y):
            return 0
        corners = bbox.corners()
        for i, va in enumerate(corners):
            vb = corners[(i + 1) % len(corners)]
            edge = create_border_edge(edges, site, va, vb)
            halfedges.append(Halfedge(edge, site, None))
        return len(corners)

    i_left = 0
    segments = 0
    while i_left < len(halfedges):
        va = halfedges[i_left].end_point
        vz = halfedges[(i_left + 1) % len(halfedges)].start_point
        if equal_with_epsilon(va.x, vz.x) and equal_with_epsilon(va.y, vz.y):
            i_left += 1
            segments = 0
            continue

        vb = next_border_vertex(va, vz, bbox)
        segments += 1
        if vb is None or segments > MAX_BORDER_SEGMENTS:
            # Not a box gap: leave it open rather than walk forever.
            logger.warning("Cell gap does not follow the bounding box",
                           cell=site.id, start=tuple(va), end=tuple(vz))
            i_left += 1
            segments = 0
            continue
        edge = create_border_edge(edges, site, va, vb)
        i_left += 1
        halfedges.insert(i_left, Halfedge(edge, site, None))
        added += 1

    return added


def close_cells(cells: List[Cell], edges: List[Edge], bbox: BoundingBox) -> None:
    """
    Prune, order and close every cell.

    Border edges created while closing are appended to ``edges``.
    """
    border_edges = 0
    for cell in cells:
        cell.prepare()
        border_edges += close_cell(cell, edges, bbox)

    logger.debug("Cells closed", cells=len(cells), border_edges=border_edges)
