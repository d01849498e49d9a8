"""Point cloud normalization helpers."""

from typing import Any

import numpy as np
import open3d as o3d
from numpy.typing import NDArray


def as_points(cloud: Any) -> NDArray[np.float64]:
    """Convert a point cloud to a contiguous (N, 3) float64 array.

    Args:
        cloud: Open3D point cloud, or any array-like of shape (N, 3).
            Point order is preserved.

    Returns:
        Point coordinates, shape (N, 3), float64. An empty input yields
        shape (0, 3).

    Raises:
        ValueError: If the input cannot be interpreted as (N, 3) points.
    """
    if isinstance(cloud, o3d.geometry.PointCloud):
        points = np.asarray(cloud.points, dtype=np.float64)
    else:
        points = np.asarray(cloud, dtype=np.float64)

    # [] and (0, 3) are empty clouds; other empty shapes fall through to the check
    if points.size == 0 and (
        points.ndim == 1 or (points.ndim == 2 and points.shape[1] == 3)
    ):
        return np.empty((0, 3), dtype=np.float64)

    if points.ndim != 2 or points.shape[1] != 3:
        raise ValueError(f"Expected points of shape (N, 3), got {points.shape}")

    return np.ascontiguousarray(points)
