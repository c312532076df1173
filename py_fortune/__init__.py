"""
Voronoi diagrams with Fortune's sweep-line algorithm.
"""

from .core import (
    BoundingBox,
    Cell,
    Edge,
    FortuneSweep,
    Halfedge,
    IDWSurface,
    Site,
    Triangle,
    Vertex,
    VoronoiDiagram,
    VoronoiError,
    compute_voronoi,
    relax_points,
    triangulate,
)

__version__ = "0.1.0"

__all__ = ['BoundingBox', 'Cell', 'Edge', 'FortuneSweep', 'Halfedge', 'IDWSurface',
           'Site', 'Triangle', 'Vertex', 'VoronoiDiagram', 'VoronoiError',
           'compute_voronoi', 'relax_points', 'triangulate']
