"""Nearest-neighbor distance sampling between a source cloud and an index."""

from typing import Any

import numpy as np
from numpy.typing import NDArray

from regfit.cloud import as_points
from regfit.index.protocol import SpatialIndex


def sample_nearest_distances(
    source: Any,
    index: SpatialIndex,
) -> NDArray[np.float64]:
    """Compute the squared nearest-neighbor distance for every source point.

    Issues one nearest-neighbor query per source point against an index
    built over the target cloud. The result is the shared input for all
    distance aggregators, so a candidate alignment needs only one pass over
    the index regardless of how many statistics are computed from it.

    Args:
        source: Source cloud (Open3D point cloud or (N, 3) array-like),
            typically already transformed by a candidate alignment.
        index: Spatial index built over the target cloud.

    Returns:
        Squared Euclidean distances, shape (N,), float64, in source order.
        Empty when the source cloud is empty.
    """
    points = as_points(source)
    if len(points) == 0:
        return np.empty(0, dtype=np.float64)

    _, sq_dists = index.query_batch(points)
    return np.asarray(sq_dists, dtype=np.float64)
