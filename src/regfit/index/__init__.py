"""Nearest-neighbor spatial indexes over target point clouds."""

from .kdtree import Open3DIndex, ScipyIndex, build_index
from .protocol import SpatialIndex

__all__ = ["SpatialIndex", "Open3DIndex", "ScipyIndex", "build_index"]
