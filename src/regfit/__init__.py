"""Fitness metrics for scoring rigid alignments of 3D point clouds."""

from .cloud import as_points
from .config import FitnessConfig
from .fitness import (
    METRIC_UNITS,
    METRICS,
    FitnessEvaluator,
    compute_fitness,
    evaluate_alignment,
)
from .index import Open3DIndex, ScipyIndex, SpatialIndex, build_index
from .rotation import candidate_transform, euler_to_quaternion, quaternion_to_matrix
from .sampling import sample_nearest_distances
from .statistics import (
    MAX_ERROR,
    CardinalityMismatchError,
    average_nearest_neighbor_distance,
    mean_paired_distance,
    median_distance,
    median_ratio_filter,
    robust_average,
    robust_median,
    robust_sum,
    sum_nearest_neighbor_distance,
    sum_of_root_distances,
)

__version__ = "0.1.0"

__all__ = [
    "FitnessConfig",
    "as_points",
    "SpatialIndex",
    "Open3DIndex",
    "ScipyIndex",
    "build_index",
    "sample_nearest_distances",
    "MAX_ERROR",
    "CardinalityMismatchError",
    "mean_paired_distance",
    "average_nearest_neighbor_distance",
    "sum_nearest_neighbor_distance",
    "sum_of_root_distances",
    "median_distance",
    "median_ratio_filter",
    "robust_sum",
    "robust_average",
    "robust_median",
    "euler_to_quaternion",
    "quaternion_to_matrix",
    "candidate_transform",
    "METRICS",
    "METRIC_UNITS",
    "compute_fitness",
    "FitnessEvaluator",
    "evaluate_alignment",
]
