"""Affine object transforms.

Objects can be placed in the scene through a 4x4 affine matrix that maps
object space to world space. Shapes are intersected in object space: the ray
is carried in through the inverse matrix, and the hit point, normal and
distance are carried back out. This turns a unit cube into any box or a
sphere into an ellipsoid.

Matrices are plain NumPy arrays and compose by matrix product; the rightmost
factor is applied first:

    >>> from lucent.core.transform import compose, rotation, scaling, translation
    >>> # Scale, then rotate about y, then move into place
    >>> m = compose(translation(0.0, 1.0, -4.0), rotation((0, 1, 0), 30.0), scaling(2, 1, 1))
"""

import math
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

# |det| of the linear part below this cannot be inverted reliably
_MIN_DETERMINANT = 1e-12

Matrix4 = npt.NDArray[np.float64]


def identity() -> Matrix4:
    return np.eye(4)


def translation(x: float, y: float, z: float) -> Matrix4:
    """Matrix moving points by (x, y, z)."""
    m = np.eye(4)
    m[:3, 3] = (x, y, z)
    return m


def scaling(x: float, y: float, z: float) -> Matrix4:
    """Matrix scaling each axis independently.

    Raises:
        ValueError: If any factor is zero.
    """
    if x == 0.0 or y == 0.0 or z == 0.0:
        raise ValueError(f"Scale factors must be non-zero, got {(x, y, z)}")
    return np.diag([float(x), float(y), float(z), 1.0])


def rotation(axis: Sequence[float], degrees: float) -> Matrix4:
    """Right-handed rotation about an axis through the origin (Rodrigues).

    Raises:
        ValueError: If axis is the zero vector.
    """
    a = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(a)
    if a.shape != (3,) or norm <= 1e-12:
        raise ValueError(f"Rotation axis must be a non-zero 3-vector, got {axis}")
    x, y, z = a / norm
    theta = math.radians(degrees)
    c, s = math.cos(theta), math.sin(theta)
    k = np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])

    m = np.eye(4)
    m[:3, :3] = np.eye(3) + s * k + (1.0 - c) * (k @ k)
    return m


def compose(*matrices: Matrix4) -> Matrix4:
    """Product of the matrices, so the last one acts first."""
    result = np.eye(4)
    for m in matrices:
        result = result @ np.asarray(m, dtype=np.float64)
    return result


def as_affine(matrix) -> tuple[Matrix4, Matrix4]:
    """Validate an object-to-world matrix and compute its inverse.

    Args:
        matrix: Anything NumPy can read as a 4x4 array (nested lists work).

    Returns:
        Tuple of (matrix, inverse) as float64 arrays.

    Raises:
        ValueError: If the matrix is not 4x4, not finite, not affine (bottom
            row other than 0, 0, 0, 1) or not invertible.
    """
    m = np.asarray(matrix, dtype=np.float64)
    if m.shape != (4, 4):
        raise ValueError(f"Transform must be a 4x4 matrix, got shape {m.shape}")
    if not np.all(np.isfinite(m)):
        raise ValueError("Transform is not finite")
    if not np.allclose(m[3], (0.0, 0.0, 0.0, 1.0)):
        raise ValueError(f"Transform must be affine, bottom row is {m[3].tolist()}")
    if abs(np.linalg.det(m[:3, :3])) <= _MIN_DETERMINANT:
        raise ValueError("Transform is singular")
    return m, np.linalg.inv(m)
