"""Scalar fitness statistics over nearest-neighbor distance sequences.

Every aggregator is a pure reduction. Unless noted otherwise, inputs are the
squared Euclidean distances produced by ``sample_nearest_distances`` and the
result is in the same squared units. ``sum_of_root_distances`` and
``mean_paired_distance`` report linear (true Euclidean) distances.

Robust variants first drop outliers with a median-ratio filter: with
``m = median_distance(D)``, only entries in ``[m / factor, m * factor]``
survive. If fewer than ``min_survivors`` remain, the robust statistic
returns ``MAX_ERROR`` so an optimizer can discard the candidate without
special-casing overflow or exceptions.
"""

import logging
from typing import Any, Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

from regfit.cloud import as_points

logger = logging.getLogger(__name__)

MAX_ERROR = float(np.finfo(np.float64).max)
DEFAULT_FACTOR = 3.0
DEFAULT_MIN_SURVIVORS = 10

MedianRule = Literal["standard", "upper"]


class CardinalityMismatchError(ValueError):
    """Raised when index-aligned clouds have different numbers of points."""


def _as_distances(distances: ArrayLike) -> NDArray[np.float64]:
    return np.asarray(distances, dtype=np.float64).reshape(-1)


def mean_paired_distance(cloud_a: Any, cloud_b: Any) -> float:
    """Mean Euclidean distance between index-aligned points of two clouds.

    No nearest-neighbor search is done: point ``i`` of ``cloud_a`` is
    compared to point ``i`` of ``cloud_b``.

    Args:
        cloud_a: First cloud (Open3D point cloud or (N, 3) array-like).
        cloud_b: Second cloud, same number of points as ``cloud_a``.

    Returns:
        Mean linear distance. NaN if both clouds are empty.

    Raises:
        CardinalityMismatchError: If the clouds differ in size.
    """
    pts_a = as_points(cloud_a)
    pts_b = as_points(cloud_b)
    if len(pts_a) != len(pts_b):
        raise CardinalityMismatchError(
            f"Paired distance requires equal cloud sizes, got {len(pts_a)} and {len(pts_b)}"
        )

    if len(pts_a) == 0:
        logger.warning("No points for paired distance")
        return float("nan")

    return float(np.linalg.norm(pts_a - pts_b, axis=1).mean())


def average_nearest_neighbor_distance(distances: ArrayLike) -> float:
    """Arithmetic mean of the distances. NaN for an empty sequence."""
    d = _as_distances(distances)
    if len(d) == 0:
        logger.warning("No distances to average")
        return float("nan")
    return float(d.mean())


def sum_nearest_neighbor_distance(distances: ArrayLike) -> float:
    """Sum of the distances, in squared units. 0.0 for an empty sequence."""
    return float(_as_distances(distances).sum())


def sum_of_root_distances(distances: ArrayLike) -> float:
    """Sum of square roots of the distances (linear Euclidean sum)."""
    return float(np.sqrt(_as_distances(distances)).sum())


def median_distance(distances: ArrayLike, rule: MedianRule = "standard") -> float:
    """Median of the distances.

    Rules:
        "standard": textbook median. Odd length takes the middle element,
            even length averages the two middle elements.
        "upper": rank selection of older PSO registration runs, kept so
            scores stay comparable with them. On the ascending sort with
            0-based indices, odd length ``n`` takes index ``(n + 1) // 2``
            and even length averages indices ``n // 2`` and ``n // 2 + 1``.
            Indices past the end clamp to the last element.

    Args:
        distances: Distance sequence.
        rule: Median rule, "standard" or "upper".

    Returns:
        Median value. NaN for an empty sequence.

    Raises:
        ValueError: If the rule is unknown.
    """
    d = np.sort(_as_distances(distances))
    n = len(d)
    if n == 0:
        logger.warning("No distances for median")
        return float("nan")

    if rule == "standard":
        if n % 2 != 0:
            return float(d[n // 2])
        return float((d[n // 2 - 1] + d[n // 2]) / 2.0)

    if rule == "upper":
        last = n - 1
        if n % 2 != 0:
            return float(d[min((n + 1) // 2, last)])
        return float((d[min(n // 2, last)] + d[min(n // 2 + 1, last)]) / 2.0)

    raise ValueError(f"Invalid median rule: {rule!r}. Must be 'standard' or 'upper'")


def median_ratio_filter(
    distances: ArrayLike,
    factor: float = DEFAULT_FACTOR,
    rule: MedianRule = "standard",
) -> NDArray[np.float64]:
    """Keep distances within ``[median / factor, median * factor]``.

    Args:
        distances: Distance sequence.
        factor: Ratio bound around the median, must be positive.
        rule: Median rule used to find the center.

    Returns:
        Surviving distances in their original order.

    Raises:
        ValueError: If factor is not positive.
    """
    if factor <= 0:
        raise ValueError(f"factor must be positive, got {factor}")

    d = _as_distances(distances)
    if len(d) == 0:
        return d

    m = median_distance(d, rule=rule)
    keep = (d >= m / factor) & (d <= m * factor)
    return d[keep]


def _robust_survivors(
    distances: ArrayLike,
    factor: float,
    min_survivors: int,
    rule: MedianRule,
) -> NDArray[np.float64] | None:
    """Filtered distances, or None when too few survive."""
    survivors = median_ratio_filter(distances, factor=factor, rule=rule)
    if len(survivors) < min_survivors:
        logger.debug(
            "Only %d of %d distances survived the median-ratio filter (need %d)",
            len(survivors),
            len(_as_distances(distances)),
            min_survivors,
        )
        return None
    return survivors


def robust_sum(
    distances: ArrayLike,
    factor: float = DEFAULT_FACTOR,
    min_survivors: int = DEFAULT_MIN_SURVIVORS,
    rule: MedianRule = "standard",
) -> float:
    """Sum of distances surviving the median-ratio filter.

    Returns:
        Sum in squared units, or MAX_ERROR if fewer than ``min_survivors``
        distances survive.
    """
    survivors = _robust_survivors(distances, factor, min_survivors, rule)
    if survivors is None:
        return MAX_ERROR
    return float(survivors.sum())


def robust_average(
    distances: ArrayLike,
    factor: float = DEFAULT_FACTOR,
    min_survivors: int = DEFAULT_MIN_SURVIVORS,
    rule: MedianRule = "standard",
) -> float:
    """Mean of distances surviving the median-ratio filter.

    Returns:
        Mean in squared units, or MAX_ERROR if fewer than ``min_survivors``
        distances survive.
    """
    survivors = _robust_survivors(distances, factor, min_survivors, rule)
    if survivors is None:
        return MAX_ERROR
    return float(survivors.mean())


def robust_median(
    distances: ArrayLike,
    factor: float = DEFAULT_FACTOR,
    min_survivors: int = DEFAULT_MIN_SURVIVORS,
    rule: MedianRule = "standard",
) -> float:
    """Median of distances surviving the median-ratio filter.

    The same median rule is used for the filter center and for the final
    median.

    Returns:
        Median in squared units, or MAX_ERROR if fewer than
        ``min_survivors`` distances survive.
    """
    survivors = _robust_survivors(distances, factor, min_survivors, rule)
    if survivors is None:
        return MAX_ERROR
    return median_distance(survivors, rule=rule)
