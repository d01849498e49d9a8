"""Rotation helpers for building candidate rigid transforms."""

import numpy as np
from numpy.typing import ArrayLike, NDArray


def euler_to_quaternion(roll: float, pitch: float, yaw: float) -> NDArray[np.float64]:
    """Build a unit quaternion from Euler angles.

    The rotation applies roll about X first, then pitch about Y, then yaw
    about Z (q = q_yaw * q_pitch * q_roll).

    Args:
        roll: Rotation about the X axis (radians).
        pitch: Rotation about the Y axis (radians).
        yaw: Rotation about the Z axis (radians).

    Returns:
        Quaternion (w, x, y, z), shape (4,), float64, unit norm.
    """
    cr, sr = np.cos(roll / 2.0), np.sin(roll / 2.0)
    cp, sp = np.cos(pitch / 2.0), np.sin(pitch / 2.0)
    cy, sy = np.cos(yaw / 2.0), np.sin(yaw / 2.0)

    q = np.array(
        [
            cr * cp * cy + sr * sp * sy,
            sr * cp * cy - cr * sp * sy,
            cr * sp * cy + sr * cp * sy,
            cr * cp * sy - sr * sp * cy,
        ],
        dtype=np.float64,
    )
    # Unit norm up to rounding
    return q / np.linalg.norm(q)


def quaternion_to_matrix(q: ArrayLike) -> NDArray[np.float64]:
    """Convert a quaternion (w, x, y, z) to a 3x3 rotation matrix.

    The quaternion is normalized first.

    Raises:
        ValueError: If q does not have 4 components or has zero norm.
    """
    q = np.asarray(q, dtype=np.float64).reshape(-1)
    if q.shape != (4,):
        raise ValueError(f"Expected quaternion of shape (4,), got {q.shape}")
    norm = np.linalg.norm(q)
    if norm == 0:
        raise ValueError("Cannot convert a zero quaternion to a rotation")

    w, x, y, z = q / norm
    return np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
            [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
            [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
        ],
        dtype=np.float64,
    )


def candidate_transform(
    roll: float,
    pitch: float,
    yaw: float,
    translation: ArrayLike = (0.0, 0.0, 0.0),
) -> NDArray[np.float64]:
    """Build a 4x4 homogeneous rigid transform from Euler angles and a translation.

    Args:
        roll: Rotation about X (radians).
        pitch: Rotation about Y (radians).
        yaw: Rotation about Z (radians).
        translation: Translation (tx, ty, tz).

    Returns:
        Transform matrix, shape (4, 4), float64.
    """
    t = np.asarray(translation, dtype=np.float64).reshape(-1)
    if t.shape != (3,):
        raise ValueError(f"Expected translation of shape (3,), got {t.shape}")

    transform = np.eye(4)
    transform[:3, :3] = quaternion_to_matrix(euler_to_quaternion(roll, pitch, yaw))
    transform[:3, 3] = t
    return transform
