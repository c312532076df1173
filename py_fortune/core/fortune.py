"""
Fortune's sweep-line construction of the Voronoi diagram.

The sweep line moves from the top of the plane (smallest y) to the
bottom. Two event streams drive it:

- site events, presorted once, each inserting a new arc into the
  beachline;
- circle events, created and cancelled as arc neighbourhoods change,
  each collapsing one arc into a Voronoi vertex.

Both the beachline and the pending circle events are kept in red-black
trees (see ``rbtree``). Open edges are finished against the bounding box
by ``clipping`` and cells are closed by ``cells``.

Follows Raymond Hill's Voronoi construction.
"""

import math
import time
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np
import structlog

from .beachline import BeachSection, CircleEvent
from .cells import close_cells
from .clipping import clip_edges
from .diagram import VoronoiDiagram
from .geometry import (
    EPSILON,
    INFINITY,
    BoundingBox,
    Cell,
    Edge,
    Halfedge,
    Site,
    Vertex,
    VoronoiError,
)
from .rbtree import RBTree

logger = structlog.get_logger()

# Orientation threshold below which three sites are treated as not
# converging. Tighter values yield infinite circumcircles on
# near-collinear input.
CIRCLE_EVENT_TOLERANCE = -2e-12

SiteInput = Union[Site, Sequence[float]]


def to_sites(points: Union[Iterable[SiteInput], np.ndarray]) -> List[Site]:
    """Wrap raw (x, y) pairs into Site objects, keeping existing Sites."""
    if isinstance(points, np.ndarray):
        if points.ndim != 2 or points.shape[1] < 2:
            raise ValueError(f"Expected an (n, 2) array of points, got shape {points.shape}")
        return [Site(x, y) for x, y in points[:, :2]]
    return [p if isinstance(p, Site) else Site(p[0], p[1]) for p in points]


class FortuneSweep:
    """
    Voronoi diagram engine.

    All mutable state (trees, edges, cells, recycling pools) lives on the
    instance and is reset by ``compute``. Separate instances are fully
    independent; one instance must not run two computations at once.
    """

    def __init__(self):
        self._reset()

    def _reset(self) -> None:
        self.beachline = RBTree()
        self.circle_events = RBTree()
        self.first_circle_event: Optional[CircleEvent] = None
        self.edges: List[Edge] = []
        self.cells: List[Cell] = []
        self._beachsection_junkyard: List[BeachSection] = []
        self._circle_event_junkyard: List[CircleEvent] = []

    def compute(self, sites: Union[Iterable[SiteInput], np.ndarray], bbox: BoundingBox) -> VoronoiDiagram:
        """
        Compute the Voronoi diagram of ``sites`` clipped to ``bbox``.

        Args:
            sites: Site objects, (x, y) pairs or an (n, 2) array
            bbox: Clipping rectangle

        Returns:
            VoronoiDiagram with one cell per distinct site
        """
        start_time = time.perf_counter()
        bbox = BoundingBox(*bbox).validate()
        sites = to_sites(sites)
        self._reset()

        logger.info("Computing Voronoi diagram", sites=len(sites), bbox=tuple(bbox))

        # Popped from the end: top to bottom, then left to right.
        site_events = sorted(sites, key=lambda s: (s.y, s.x), reverse=True)
        site = site_events.pop() if site_events else None
        site_id = 0
        last_site = None
        last_x = -INFINITY
        last_y = -INFINITY
        duplicates = 0

        while True:
            circle = self.first_circle_event
            if site and (not circle or site.y < circle.y or (site.y == circle.y and site.x < circle.x)):
                if site.x != last_x or site.y != last_y:
                    site.id = site_id
                    self.cells.append(Cell(site))
                    site_id += 1
                    self.add_beachsection(site)
                    last_site = site
                    last_x = site.x
                    last_y = site.y
                else:
                    if site is not last_site:
                        site.id = None
                    duplicates += 1
                site = site_events.pop() if site_events else None
            elif circle:
                self.remove_beachsection(circle.arc)
            else:
                break

        if duplicates:
            logger.debug("Skipped duplicate sites", duplicates=duplicates)

        self.edges = clip_edges(self.edges, bbox)
        close_cells(self.cells, self.edges, bbox)

        diagram = VoronoiDiagram(
            sites=sites,
            cells=self.cells,
            edges=self.edges,
            exec_time=time.perf_counter() - start_time,
        )
        logger.info("Voronoi diagram computed",
                    cells=len(diagram.cells), edges=len(diagram.edges),
                    exec_time=round(diagram.exec_time, 6))
        return diagram

    def create_edge(self, lsite: Site, rsite: Site,
                    va: Optional[Vertex] = None, vb: Optional[Vertex] = None) -> Edge:
        edge = Edge(lsite, rsite)
        self.edges.append(edge)
        if va is not None:
            edge.set_start_point(lsite, rsite, va)
        if vb is not None:
            edge.set_end_point(lsite, rsite, vb)
        self.cells[lsite.id].halfedges.append(Halfedge(edge, lsite, rsite))
        self.cells[rsite.id].halfedges.append(Halfedge(edge, rsite, lsite))
        return edge

    def create_beachsection(self, site: Site) -> BeachSection:
        if self._beachsection_junkyard:
            beachsection = self._beachsection_junkyard.pop()
            beachsection.site = site
            beachsection.edge = None
            beachsection.circle_event = None
        else:
            beachsection = BeachSection(site)
        return beachsection

    def left_break_point(self, arc: BeachSection, directrix: float) -> float:
        """
        X position of the breakpoint between ``arc`` and its left neighbour.

        With the right focus moved to the origin and both parabolas scaled
        by the product of their focus-to-directrix distances ``pr`` and
        ``pl``, the breakpoint ``u`` solves

            a * u**2 + 2 * hl * pr * u - pr * (hl**2 + a * pl) = 0

        where ``hl`` is the horizontal focus offset and ``a = pl - pr``. Its
        discriminant is ``4 * pr * pl * (hl**2 + a**2)``, so the root needs
        no subtraction of large terms. Foci lying almost on the directrix
        (nearly collinear sites) would otherwise lose every significant digit.
        """
        site = arc.site
        rfocx = site.x
        rfocy = site.y
        pr = rfocy - directrix
        # Degenerate parabola: focus on the directrix.
        if not pr:
            return rfocx

        larc = arc.previous
        if not larc:
            return -INFINITY
        site = larc.site
        lfocx = site.x
        lfocy = site.y
        pl = lfocy - directrix
        if not pl:
            return lfocx

        hl = lfocx - rfocx
        a = lfocy - rfocy
        s = math.sqrt(pr * pl) * math.hypot(hl, a)
        t = -hl * pr
        if t < 0:
            # Conjugate form of (t + s) / a, also valid when a is zero.
            return pr * (hl * hl + pl * a) / (s - t) + rfocx
        if a:
            return (t + s) / a + rfocx

        # Both foci at the same height: the breakpoint is midway.
        return (rfocx + lfocx) / 2

    def right_break_point(self, arc: BeachSection, directrix: float) -> float:
        rarc = arc.next
        if rarc:
            return self.left_break_point(rarc, directrix)
        site = arc.site
        return site.x if site.y == directrix else INFINITY

    def detach_beachsection(self, beachsection: BeachSection) -> None:
        self.detach_circle_event(beachsection)
        self.beachline.remove_node(beachsection)
        self._beachsection_junkyard.append(beachsection)

    def remove_beachsection(self, beachsection: BeachSection) -> None:
        """Collapse ``beachsection`` at its circle event's vertex."""
        circle = beachsection.circle_event
        x = circle.x
        y = circle.ycenter
        vertex = Vertex(x, y)
        previous = beachsection.previous
        next_arc = beachsection.next
        disappearing_transitions = [beachsection]

        self.detach_beachsection(beachsection)

        # More than three edges can meet at the vertex: gather every arc on
        # either side collapsing at the same point. A collapsing arc always
        # has neighbours on both sides.
        larc = previous
        while (larc.circle_event
               and abs(x - larc.circle_event.x) < EPSILON
               and abs(y - larc.circle_event.ycenter) < EPSILON):
            previous = larc.previous
            disappearing_transitions.insert(0, larc)
            self.detach_beachsection(larc)
            larc = previous

        # The surviving left neighbour closes the left-most transition.
        disappearing_transitions.insert(0, larc)
        self.detach_circle_event(larc)

        rarc = next_arc
        while (rarc.circle_event
               and abs(x - rarc.circle_event.x) < EPSILON
               and abs(y - rarc.circle_event.ycenter) < EPSILON):
            next_arc = rarc.next
            disappearing_transitions.append(rarc)
            self.detach_beachsection(rarc)
            rarc = next_arc

        disappearing_transitions.append(rarc)
        self.detach_circle_event(rarc)

        for larc, rarc in zip(disappearing_transitions, disappearing_transitions[1:]):
            rarc.edge.set_start_point(larc.site, rarc.site, vertex)

        # The two outer survivors are now adjacent: a new edge starts at the
        # vertex (it is the end point relative to the left site).
        larc = disappearing_transitions[0]
        rarc = disappearing_transitions[-1]
        rarc.edge = self.create_edge(larc.site, rarc.site, None, vertex)

        self.attach_circle_event(larc)
        self.attach_circle_event(rarc)

    def add_beachsection(self, site: Site) -> None:
        """Insert the arc of a newly swept ``site`` into the beachline."""
        x = site.x
        directrix = site.y

        # Find the arcs which will surround the new one.
        larc = None
        rarc = None
        node = self.beachline.root
        while node:
            dxl = self.left_break_point(node, directrix) - x
            if dxl > EPSILON:
                # Left of the arc's left edge.
                node = node.left
            else:
                dxr = x - self.right_break_point(node, directrix)
                if dxr > EPSILON:
                    # Right of the arc's right edge.
                    if not node.right:
                        larc = node
                        break
                    node = node.right
                else:
                    if dxl > -EPSILON:
                        # Exactly on the left edge.
                        larc = node.previous
                        rarc = node
                    elif dxr > -EPSILON:
                        # Exactly on the right edge.
                        larc = node
                        rarc = node.next
                    else:
                        # Strictly inside the arc.
                        larc = rarc = node
                    break

        new_arc = self.create_beachsection(site)
        self.beachline.insert_successor(larc, new_arc)

        # First arc on the beachline: nothing else to do.
        if not larc and not rarc:
            return

        # The new arc splits an existing one.
        if larc is rarc:
            self.detach_circle_event(larc)
            rarc = self.create_beachsection(larc.site)
            self.beachline.insert_successor(new_arc, rarc)
            new_arc.edge = rarc.edge = self.create_edge(larc.site, new_arc.site)
            self.attach_circle_event(larc)
            self.attach_circle_event(rarc)
            return

        # The new arc is the right-most one. Only happens while every arc
        # on the beachline shares the top-most y.
        if larc and not rarc:
            new_arc.edge = self.create_edge(larc.site, new_arc.site)
            return

        # Sites are swept top to bottom then left to right, so there is
        # always an arc on the left once the beachline is not empty.
        if not larc and rarc:
            raise VoronoiError(
                f"Beachline has a right arc but no left arc for site ({site.x}, {site.y})"
            )

        # The new arc falls exactly between two arcs: their transition
        # disappears at the circumcenter of the three sites and two new
        # transitions start there.
        self.detach_circle_event(larc)
        self.detach_circle_event(rarc)

        lsite = larc.site
        ax = lsite.x
        ay = lsite.y
        bx = site.x - ax
        by = site.y - ay
        rsite = rarc.site
        cx = rsite.x - ax
        cy = rsite.y - ay
        d = 2 * (bx * cy - by * cx)
        hb = bx * bx + by * by
        hc = cx * cx + cy * cy
        vertex = Vertex((cy * hb - by * hc) / d + ax, (bx * hc - cx * hb) / d + ay)

        rarc.edge.set_start_point(lsite, rsite, vertex)

        new_arc.edge = self.create_edge(lsite, site, None, vertex)
        rarc.edge = self.create_edge(site, rsite, None, vertex)

        self.attach_circle_event(larc)
        self.attach_circle_event(rarc)

    def attach_circle_event(self, arc: BeachSection) -> None:
        """Schedule the collapse of ``arc`` if its neighbours converge."""
        larc = arc.previous
        rarc = arc.next
        if not larc or not rarc:
            return

        lsite = larc.site
        csite = arc.site
        rsite = rarc.site
        # Same site on both sides: no convergence.
        if lsite is rsite:
            return

        # Circumcircle with the origin moved to the center site. The bottom
        # of the circle is the event, its center the future vertex.
        bx = csite.x
        by = csite.y
        ax = lsite.x - bx
        ay = lsite.y - by
        cx = rsite.x - bx
        cy = rsite.y - by

        # d is the reverse of the orientation: a clockwise l, c, r triple
        # does not collapse.
        d = 2 * (ax * cy - ay * cx)
        if d >= CIRCLE_EVENT_TOLERANCE:
            return

        ha = ax * ax + ay * ay
        hc = cx * cx + cy * cy
        x = (cy * ha - ay * hc) / d
        y = (ax * hc - cx * ha) / d
        ycenter = y + by
        radius = math.hypot(x, y)
        # Offset from the center site to the bottom of the circle. A center
        # far above the sites (nearly collinear triple) puts the bottom right
        # next to them: use the conjugate so it is not lost to cancellation.
        if y < 0:
            bottom = x * x / (radius - y)
        else:
            bottom = y + radius

        if self._circle_event_junkyard:
            circle_event = self._circle_event_junkyard.pop()
        else:
            circle_event = CircleEvent()
        circle_event.arc = arc
        circle_event.site = csite
        circle_event.x = x + bx
        circle_event.y = by + bottom
        circle_event.ycenter = ycenter
        arc.circle_event = circle_event

        # Events are ordered from smallest to largest (y, x).
        predecessor = None
        node = self.circle_events.root
        while node:
            if circle_event.y < node.y or (circle_event.y == node.y and circle_event.x <= node.x):
                if node.left:
                    node = node.left
                else:
                    predecessor = node.previous
                    break
            else:
                if node.right:
                    node = node.right
                else:
                    predecessor = node
                    break

        self.circle_events.insert_successor(predecessor, circle_event)
        if not predecessor:
            self.first_circle_event = circle_event

    def detach_circle_event(self, arc: BeachSection) -> None:
        circle_event = arc.circle_event
        if circle_event:
            if not circle_event.previous:
                self.first_circle_event = circle_event.next
            self.circle_events.remove_node(circle_event)
            circle_event.arc = None
            circle_event.site = None
            self._circle_event_junkyard.append(circle_event)
            arc.circle_event = None


def compute_voronoi(sites: Union[Iterable[SiteInput], np.ndarray], bbox: BoundingBox) -> VoronoiDiagram:
    """
    Compute a Voronoi diagram with a fresh engine.

    Args:
        sites: Site objects, (x, y) pairs or an (n, 2) array
        bbox: Clipping rectangle (xl, xr, yt, yb)

    Returns:
        VoronoiDiagram
    """
    return FortuneSweep().compute(sites, bbox)
