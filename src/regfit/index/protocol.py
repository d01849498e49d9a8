"""Protocol definition for nearest-neighbor spatial indexes."""

from typing import Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray


@runtime_checkable
class SpatialIndex(Protocol):
    """Protocol for single-nearest-neighbor search structures.

    An index is built once over a target point cloud and keeps its own
    snapshot of the target points, so later changes to the caller's array
    do not affect query results. Indexes are read-only after construction
    and may be queried concurrently from several threads.

    Distances are always squared Euclidean distances.
    """

    @property
    def size(self) -> int:
        """Number of points in the indexed target cloud."""
        ...

    def query(self, point: NDArray[np.float64]) -> tuple[int, float]:
        """Find the closest target point to a single query point.

        Args:
            point: Query coordinates, shape (3,), float64.

        Returns:
            neighbor_id: Index of the closest point in the target cloud.
            squared_distance: Squared Euclidean distance to that point.
        """
        ...

    def query_batch(
        self, points: NDArray[np.float64]
    ) -> tuple[NDArray[np.int64], NDArray[np.float64]]:
        """Find the closest target point for each of several query points.

        Each row is an independent query; results are in input order.

        Args:
            points: Query coordinates, shape (N, 3), float64.

        Returns:
            neighbor_ids: Target indices, shape (N,), int64.
            squared_distances: Squared Euclidean distances, shape (N,), float64.
        """
        ...
