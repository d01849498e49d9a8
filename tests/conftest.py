"""Shared pytest fixtures for regfit tests."""

import numpy as np
import open3d as o3d
import pytest


@pytest.fixture(params=["open3d", "scipy"])
def backend(request):
    """Parametrized spatial index backend fixture.

    Args:
        request: pytest fixture request object.

    Returns:
        str: Backend name accepted by build_index.
    """
    return request.param


@pytest.fixture
def line_points():
    """Three collinear points along the X axis."""
    return np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])


@pytest.fixture
def flat_points():
    """Random points on a horizontal plane at z=1.5, shape (200, 3)."""
    xy = np.random.RandomState(42).uniform(-0.1, 0.1, size=(200, 2))
    return np.column_stack([xy, np.full(200, 1.5)])


@pytest.fixture
def flat_cloud(flat_points):
    """Open3D point cloud built from flat_points."""
    pcd = o3d.geometry.PointCloud()
    pcd.points = o3d.utility.Vector3dVector(flat_points)
    return pcd
