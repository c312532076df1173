"""
Core Voronoi computation.
"""

from .geometry import BoundingBox, Cell, Edge, Halfedge, Site, Vertex, VoronoiError
from .rbtree import RBNode, RBTree
from .fortune import FortuneSweep, compute_voronoi
from .diagram import VoronoiDiagram
from .relaxation import compute_polygon_centroid, relax_points
from .delaunay import Triangle, triangulate
from .surface import IDWSurface, SurfacePoint

__all__ = ['BoundingBox', 'Cell', 'Edge', 'Halfedge', 'Site', 'Vertex', 'VoronoiError',
           'RBNode', 'RBTree', 'FortuneSweep', 'compute_voronoi', 'VoronoiDiagram',
           'compute_polygon_centroid', 'relax_points', 'Triangle', 'triangulate',
           'IDWSurface', 'SurfacePoint']
