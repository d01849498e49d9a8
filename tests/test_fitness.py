"""Tests for fitness evaluation."""

import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from regfit.config import FitnessConfig
from regfit.fitness import (
    METRIC_UNITS,
    METRICS,
    FitnessEvaluator,
    compute_fitness,
    evaluate_alignment,
)
from regfit.rotation import candidate_transform
from regfit.statistics import MAX_ERROR


def apply_transform(points, transform):
    """Apply a 4x4 rigid transform to (N, 3) points."""
    return points @ transform[:3, :3].T + transform[:3, 3]


def create_sphere_points(center=(0.0, 0.0, 1.5), radius=0.05, n_points=300):
    """Random points on a sphere surface."""
    rng = np.random.RandomState(42)
    theta = rng.uniform(0, 2 * np.pi, n_points)
    phi = rng.uniform(0, np.pi, n_points)
    x = radius * np.sin(phi) * np.cos(theta) + center[0]
    y = radius * np.sin(phi) * np.sin(theta) + center[1]
    z = radius * np.cos(phi) + center[2]
    return np.column_stack([x, y, z])


class TestMetricRegistry:
    """Tests for METRICS and METRIC_UNITS."""

    def test_units_cover_all_metrics(self):
        """Every metric declares its units."""
        assert set(METRIC_UNITS) == set(METRICS)
        assert set(METRIC_UNITS.values()) <= {"squared", "linear"}

    def test_only_root_sum_is_linear(self):
        """Nearest-neighbor metrics are squared except root_sum."""
        linear = [name for name, unit in METRIC_UNITS.items() if unit == "linear"]
        assert linear == ["root_sum"]

    def test_config_accepts_every_metric(self):
        """Each registered metric is a valid objective."""
        for name in METRICS:
            assert FitnessConfig(metric=name).metric == name


class TestComputeFitness:
    """Tests for compute_fitness."""

    def test_named_metrics(self):
        """Names dispatch to the matching aggregators."""
        d = np.array([1.0, 4.0, 9.0])
        assert np.isclose(compute_fitness(d, "sum"), 14.0)
        assert np.isclose(compute_fitness(d, "average"), 14.0 / 3.0)
        assert np.isclose(compute_fitness(d, "root_sum"), 6.0)
        assert np.isclose(compute_fitness(d, "median"), 4.0)

    def test_robust_uses_config(self):
        """Robust metrics honor min_survivors from the config."""
        d = np.array([1.0, 1.1, 1.2])
        assert compute_fitness(d, "robust_sum") == MAX_ERROR

        config = FitnessConfig(min_survivors=3)
        assert np.isclose(compute_fitness(d, "robust_sum", config), 3.3)

    def test_median_rule_from_config(self):
        """The configured median rule is used."""
        d = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        config = FitnessConfig(median_rule="upper")
        assert compute_fitness(d, "median", config) == 4.0

    def test_unknown_metric(self):
        """Unknown metric names are rejected."""
        with pytest.raises(ValueError, match="Unknown metric"):
            compute_fitness(np.array([1.0]), "rmse")


class TestFitnessEvaluator:
    """Tests for FitnessEvaluator."""

    def test_identical_clouds(self, line_points, backend):
        """A cloud scored against itself is zero on every metric but robust ones."""
        evaluator = FitnessEvaluator(line_points, FitnessConfig(index_backend=backend))

        scores = evaluator.evaluate(line_points)

        assert set(scores) == set(METRICS)
        assert scores["average"] == 0.0
        assert scores["sum"] == 0.0
        assert scores["root_sum"] == 0.0
        assert scores["median"] == 0.0
        # Three points can never reach ten survivors
        assert scores["robust_sum"] == MAX_ERROR

    def test_identical_sphere_robust(self, backend):
        """Robust metrics are zero for a perfectly aligned large cloud."""
        points = create_sphere_points()
        evaluator = FitnessEvaluator(points, FitnessConfig(index_backend=backend))

        scores = evaluator.evaluate(
            points, metrics=["robust_sum", "robust_average", "robust_median"]
        )

        assert scores == {"robust_sum": 0.0, "robust_average": 0.0, "robust_median": 0.0}

    def test_known_offset(self, flat_points, backend):
        """A 10mm Z offset gives squared distances of 1e-4."""
        evaluator = FitnessEvaluator(flat_points, FitnessConfig(index_backend=backend))
        source = flat_points + np.array([0.0, 0.0, 0.01])

        scores = evaluator.evaluate(source)

        assert np.isclose(scores["average"], 1e-4)
        assert np.isclose(scores["median"], 1e-4)
        assert np.isclose(scores["root_sum"], 0.01 * len(flat_points))
        assert np.isclose(scores["robust_average"], 1e-4)

    def test_call_uses_configured_metric(self, flat_points):
        """Calling the evaluator returns the objective metric only."""
        source = flat_points + np.array([0.0, 0.0, 0.01])
        evaluator = FitnessEvaluator(flat_points, FitnessConfig(metric="root_sum"))

        assert np.isclose(evaluator(source), 0.01 * len(flat_points))

    def test_distances(self, line_points):
        """distances() exposes the raw squared distance sequence."""
        evaluator = FitnessEvaluator(line_points)
        d = evaluator.distances(np.array([[0.0, 2.0, 0.0]]))
        assert np.allclose(d, [4.0])

    def test_unknown_metric(self, line_points):
        """Unknown metric names in evaluate are rejected."""
        evaluator = FitnessEvaluator(line_points)
        with pytest.raises(ValueError, match="Unknown metric"):
            evaluator.evaluate(line_points, metrics=["average", "chamfer"])

    def test_empty_target(self):
        """An empty target cannot be evaluated against."""
        with pytest.raises(ValueError, match="empty target"):
            FitnessEvaluator(np.empty((0, 3)))

    def test_better_candidate_scores_lower(self, backend):
        """The inverse of a known misalignment beats a wrong candidate."""
        target = create_sphere_points()
        misalignment = candidate_transform(0.0, 0.0, 0.3, translation=(0.01, 0.0, 0.0))
        source = apply_transform(target, misalignment)
        evaluator = FitnessEvaluator(
            target, FitnessConfig(metric="average", index_backend=backend)
        )

        correct = apply_transform(source, np.linalg.inv(misalignment))
        wrong = apply_transform(source, candidate_transform(0.0, 0.0, -0.1))

        assert evaluator(correct) < 1e-12
        assert evaluator(correct) < evaluator(wrong)

    def test_concurrent_evaluations(self, flat_points, backend):
        """Parallel evaluations on one evaluator match serial results."""
        evaluator = FitnessEvaluator(
            flat_points, FitnessConfig(metric="average", index_backend=backend)
        )
        candidates = [
            apply_transform(flat_points, candidate_transform(0.0, 0.0, yaw))
            for yaw in np.linspace(-0.5, 0.5, 16)
        ]

        serial = [evaluator(c) for c in candidates]
        with ThreadPoolExecutor(max_workers=4) as pool:
            parallel = list(pool.map(evaluator, candidates))

        assert parallel == serial


class TestEvaluateAlignment:
    """Tests for evaluate_alignment."""

    def test_selected_metrics(self, line_points):
        """Only the requested metrics are returned."""
        scores = evaluate_alignment(line_points, line_points, metrics=["sum", "median"])
        assert scores == {"sum": 0.0, "median": 0.0}

    def test_open3d_clouds(self, flat_cloud):
        """Open3D clouds work as both source and target."""
        scores = evaluate_alignment(flat_cloud, flat_cloud, metrics=["average"])
        assert scores["average"] == 0.0

    def test_index_build_logs_at_debug(self, line_points, caplog):
        """Building the evaluator logs at debug, not info."""
        with caplog.at_level(logging.DEBUG, logger="regfit"):
            evaluate_alignment(line_points, line_points, metrics=["sum"])

        records = [r for r in caplog.records if r.name == "regfit.fitness"]
        assert records
        assert all(r.levelno == logging.DEBUG for r in records)
