"""
Configuration modules for the Voronoi service.
"""

from .config import Settings, settings

__all__ = ['Settings', 'settings']
