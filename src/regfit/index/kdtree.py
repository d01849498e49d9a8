"""KD-tree adapters implementing the SpatialIndex protocol."""

import logging
from typing import Any

import numpy as np
import open3d as o3d
from numpy.typing import NDArray
from scipy.spatial import cKDTree

from regfit.cloud import as_points

logger = logging.getLogger(__name__)


def _snapshot_target(target: Any) -> NDArray[np.float64]:
    """Copy target points into a private array."""
    points = as_points(target).copy()
    if len(points) == 0:
        raise ValueError("Cannot build a spatial index over an empty target cloud")
    return points


def _empty_result() -> tuple[NDArray[np.int64], NDArray[np.float64]]:
    return np.empty(0, dtype=np.int64), np.empty(0, dtype=np.float64)


class Open3DIndex:
    """Spatial index backed by Open3D's FLANN KD-tree.

    Each query is a single ``search_knn_vector_3d(point, 1)`` call, which
    already reports squared distances.

    Args:
        target: Target cloud (Open3D point cloud or (N, 3) array-like).

    Raises:
        ValueError: If the target cloud is empty or malformed.
    """

    def __init__(self, target: Any):
        self._points = _snapshot_target(target)
        self._pcd = o3d.geometry.PointCloud()
        self._pcd.points = o3d.utility.Vector3dVector(self._points)
        self._tree = o3d.geometry.KDTreeFlann(self._pcd)
        self._points.setflags(write=False)
        logger.debug("Built Open3D KD-tree over %d points", len(self._points))

    @property
    def size(self) -> int:
        return len(self._points)

    @property
    def points(self) -> NDArray[np.float64]:
        """Read-only snapshot of the indexed target points."""
        return self._points

    def query(self, point: NDArray[np.float64]) -> tuple[int, float]:
        [_, idx, dist] = self._tree.search_knn_vector_3d(
            np.asarray(point, dtype=np.float64), 1
        )
        return int(idx[0]), float(dist[0])

    def query_batch(
        self, points: NDArray[np.float64]
    ) -> tuple[NDArray[np.int64], NDArray[np.float64]]:
        points = as_points(points)
        if len(points) == 0:
            return _empty_result()

        ids = np.empty(len(points), dtype=np.int64)
        sq_dists = np.empty(len(points), dtype=np.float64)
        for i in range(len(points)):
            ids[i], sq_dists[i] = self.query(points[i])
        return ids, sq_dists


class ScipyIndex:
    """Spatial index backed by SciPy's cKDTree.

    Batch queries are vectorized. cKDTree reports Euclidean distances, so
    they are squared before being returned.

    Args:
        target: Target cloud (Open3D point cloud or (N, 3) array-like).

    Raises:
        ValueError: If the target cloud is empty or malformed.
    """

    def __init__(self, target: Any):
        self._points = _snapshot_target(target)
        self._tree = cKDTree(self._points)
        self._points.setflags(write=False)
        logger.debug("Built SciPy cKDTree over %d points", len(self._points))

    @property
    def size(self) -> int:
        return len(self._points)

    @property
    def points(self) -> NDArray[np.float64]:
        """Read-only snapshot of the indexed target points."""
        return self._points

    def query(self, point: NDArray[np.float64]) -> tuple[int, float]:
        dist, idx = self._tree.query(np.asarray(point, dtype=np.float64), k=1)
        return int(idx), float(dist) ** 2

    def query_batch(
        self, points: NDArray[np.float64]
    ) -> tuple[NDArray[np.int64], NDArray[np.float64]]:
        points = as_points(points)
        if len(points) == 0:
            return _empty_result()

        dists, ids = self._tree.query(points, k=1)
        return np.asarray(ids, dtype=np.int64), np.square(dists, dtype=np.float64)


INDEX_BACKENDS = {
    "open3d": Open3DIndex,
    "scipy": ScipyIndex,
}


def build_index(target: Any, backend: str = "open3d") -> Open3DIndex | ScipyIndex:
    """Build a spatial index over a target cloud.

    Args:
        target: Target cloud (Open3D point cloud or (N, 3) array-like).
        backend: KD-tree library, "open3d" or "scipy".

    Returns:
        Index satisfying the SpatialIndex protocol.

    Raises:
        ValueError: If the backend is unknown or the target is empty.
    """
    if backend not in INDEX_BACKENDS:
        raise ValueError(
            f"Invalid index backend: {backend!r}. "
            f"Must be one of {list(INDEX_BACKENDS)}"
        )
    return INDEX_BACKENDS[backend](target)
