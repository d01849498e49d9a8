"""Fitness evaluation of candidate alignments against a fixed target cloud."""

import logging
from collections.abc import Callable, Iterable
from typing import Any

import numpy as np
from numpy.typing import NDArray

from regfit.config import FitnessConfig
from regfit.index import build_index
from regfit.sampling import sample_nearest_distances
from regfit.statistics import (
    average_nearest_neighbor_distance,
    median_distance,
    robust_average,
    robust_median,
    robust_sum,
    sum_nearest_neighbor_distance,
    sum_of_root_distances,
)

logger = logging.getLogger(__name__)

MetricFn = Callable[[NDArray[np.float64], FitnessConfig], float]

METRICS: dict[str, MetricFn] = {
    "average": lambda d, cfg: average_nearest_neighbor_distance(d),
    "sum": lambda d, cfg: sum_nearest_neighbor_distance(d),
    "root_sum": lambda d, cfg: sum_of_root_distances(d),
    "median": lambda d, cfg: median_distance(d, rule=cfg.median_rule),
    "robust_sum": lambda d, cfg: robust_sum(
        d, factor=cfg.factor, min_survivors=cfg.min_survivors, rule=cfg.median_rule
    ),
    "robust_average": lambda d, cfg: robust_average(
        d, factor=cfg.factor, min_survivors=cfg.min_survivors, rule=cfg.median_rule
    ),
    "robust_median": lambda d, cfg: robust_median(
        d, factor=cfg.factor, min_survivors=cfg.min_survivors, rule=cfg.median_rule
    ),
}

# Scale of each metric's result; squared and linear scores are not comparable
METRIC_UNITS = {
    "average": "squared",
    "sum": "squared",
    "root_sum": "linear",
    "median": "squared",
    "robust_sum": "squared",
    "robust_average": "squared",
    "robust_median": "squared",
}


def _check_metrics(metrics: Iterable[str]) -> list[str]:
    names = list(metrics)
    unknown = [name for name in names if name not in METRICS]
    if unknown:
        raise ValueError(
            f"Unknown metric(s): {unknown}. Must be one of {list(METRICS)}"
        )
    return names


def compute_fitness(
    distances: NDArray[np.float64],
    metric: str,
    config: FitnessConfig | None = None,
) -> float:
    """Reduce a nearest-neighbor distance sequence to one fitness score.

    Args:
        distances: Squared nearest-neighbor distances, shape (N,).
        metric: Name of the aggregator (see METRICS).
        config: Filter settings for robust metrics. Defaults to FitnessConfig().

    Returns:
        Scalar score; lower is a better alignment.

    Raises:
        ValueError: If the metric name is unknown.
    """
    _check_metrics([metric])
    if config is None:
        config = FitnessConfig()
    return METRICS[metric](distances, config)


class FitnessEvaluator:
    """Objective function scoring source clouds against one target cloud.

    The spatial index is built once at construction. Each evaluation does a
    single nearest-neighbor pass and feeds the resulting distances to every
    requested aggregator. The evaluator holds no mutable state after
    construction, so one instance can serve concurrent evaluations of
    different candidate clouds.

    Args:
        target: Target cloud (Open3D point cloud or (N, 3) array-like).
        config: Evaluation settings. Defaults to FitnessConfig().

    Raises:
        ValueError: If the target cloud is empty.
    """

    def __init__(self, target: Any, config: FitnessConfig | None = None):
        self.config = config if config is not None else FitnessConfig()
        self.index = build_index(target, backend=self.config.index_backend)
        logger.debug(
            "Fitness evaluator ready: %d target points, backend=%s, metric=%s",
            self.index.size,
            self.config.index_backend,
            self.config.metric,
        )

    def distances(self, source: Any) -> NDArray[np.float64]:
        """Squared nearest-neighbor distances from source points to the target."""
        return sample_nearest_distances(source, self.index)

    def evaluate(
        self,
        source: Any,
        metrics: Iterable[str] | None = None,
    ) -> dict[str, float]:
        """Compute several fitness scores from one nearest-neighbor pass.

        Args:
            source: Source cloud, already transformed by the candidate.
            metrics: Metric names to compute. Defaults to all of METRICS.

        Returns:
            Dict mapping metric name to score.

        Raises:
            ValueError: If any metric name is unknown.
        """
        names = _check_metrics(METRICS if metrics is None else metrics)
        d = self.distances(source)
        return {name: METRICS[name](d, self.config) for name in names}

    def __call__(self, source: Any) -> float:
        """Score a source cloud with the configured objective metric."""
        return METRICS[self.config.metric](self.distances(source), self.config)


def evaluate_alignment(
    source: Any,
    target: Any,
    metrics: Iterable[str] | None = None,
    config: FitnessConfig | None = None,
) -> dict[str, float]:
    """Score a single source/target pair.

    Builds a throwaway index over the target. Use FitnessEvaluator when the
    same target is scored repeatedly.

    Args:
        source: Source cloud, already transformed by the candidate.
        target: Target (reference) cloud.
        metrics: Metric names to compute. Defaults to all of METRICS.
        config: Evaluation settings. Defaults to FitnessConfig().

    Returns:
        Dict mapping metric name to score.
    """
    return FitnessEvaluator(target, config).evaluate(source, metrics)
