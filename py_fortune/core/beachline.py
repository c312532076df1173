"""Node types stored in the sweep's two red-black trees."""

from typing import Optional

from .geometry import Edge, Site
from .rbtree import RBNode


class BeachSection(RBNode):
    """
    One parabolic arc of the beachline.

    ``edge`` is the edge traced by the breakpoint on the arc's left side;
    ``circle_event`` is the pending collapse of this arc, if any.
    """

    def __init__(self, site: Site):
        super().__init__()
        self.site = site
        self.edge: Optional[Edge] = None
        self.circle_event: Optional["CircleEvent"] = None

    def __repr__(self):
        return f"BeachSection(site={self.site!r})"


class CircleEvent(RBNode):
    """
    Predicted collapse of ``arc``.

    ``x``/``ycenter`` is the circumcenter (the future Voronoi vertex) and
    ``y`` the bottom of the circumcircle, i.e. the sweep position at which
    the event fires. Events are ordered by (y, x) ascending.
    """

    def __init__(self):
        super().__init__()
        self.arc: Optional[BeachSection] = None
        self.site: Optional[Site] = None
        self.x = 0.0
        self.y = 0.0
        self.ycenter = 0.0

    def __repr__(self):
        return f"CircleEvent(x={self.x}, y={self.y}, ycenter={self.ycenter})"
