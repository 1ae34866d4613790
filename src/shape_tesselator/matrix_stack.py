"""
Affine Matrix Stack

4x4 float64 matrices composed the way a fixed-function transform stack
does: every operation post-multiplies the current top, so operations
apply to points in reverse call order.

Rotation follows the shape convention of X, then Y, then Z Euler angles
in degrees.
"""

from typing import List
import math
import numpy as np
from numba import njit

from .shape import ShapeDepthError


def rotation_x(degrees: float) -> np.ndarray:
    """4x4 rotation about the X axis."""
    r = math.radians(degrees)
    c, s = math.cos(r), math.sin(r)
    return np.array([
        [1, 0, 0, 0],
        [0, c, -s, 0],
        [0, s, c, 0],
        [0, 0, 0, 1],
    ], dtype=np.float64)


def rotation_y(degrees: float) -> np.ndarray:
    """4x4 rotation about the Y axis."""
    r = math.radians(degrees)
    c, s = math.cos(r), math.sin(r)
    return np.array([
        [c, 0, s, 0],
        [0, 1, 0, 0],
        [-s, 0, c, 0],
        [0, 0, 0, 1],
    ], dtype=np.float64)


def rotation_z(degrees: float) -> np.ndarray:
    """4x4 rotation about the Z axis."""
    r = math.radians(degrees)
    c, s = math.cos(r), math.sin(r)
    return np.array([
        [c, -s, 0, 0],
        [s, c, 0, 0],
        [0, 0, 1, 0],
        [0, 0, 0, 1],
    ], dtype=np.float64)


class MatrixStack:
    """
    Fixed-capacity stack of affine transforms.

    Pushing beyond the capacity raises ShapeDepthError instead of
    growing, which bounds the cost of walking a malformed tree.
    """

    def __init__(self, capacity: int = 65):
        """
        Initialize the stack.

        Args:
            capacity: Maximum number of matrices held at once
        """
        self.capacity = capacity
        self._stack: List[np.ndarray] = []

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def top(self) -> np.ndarray:
        """The current transform."""
        return self._stack[-1]

    def _push(self, matrix: np.ndarray):
        if len(self._stack) >= self.capacity:
            raise ShapeDepthError(
                f"Matrix stack overflow (capacity {self.capacity})"
            )
        self._stack.append(matrix)

    def push_identity(self):
        self._push(np.eye(4, dtype=np.float64))

    def push(self):
        """Push a copy of the current top."""
        self._push(self.top.copy())

    def pop(self) -> np.ndarray:
        return self._stack.pop()

    def multiply(self, matrix: np.ndarray):
        """Post-multiply the top by matrix."""
        self._stack[-1] = self._stack[-1] @ matrix

    def translate(self, x: float, y: float, z: float):
        m = np.eye(4, dtype=np.float64)
        m[:3, 3] = (x, y, z)
        self.multiply(m)

    def scale(self, x: float, y: float, z: float):
        self.multiply(np.diag([x, y, z, 1.0]).astype(np.float64))

    def rotate(self, x: float, y: float, z: float):
        """Rotate by Euler angles in degrees, X then Y then Z."""
        # Zero angles are skipped so an unrotated element keeps an exact matrix
        if x != 0:
            self.multiply(rotation_x(x))
        if y != 0:
            self.multiply(rotation_y(y))
        if z != 0:
            self.multiply(rotation_z(z))


@njit(cache=True)
def _transform_points_kernel(points: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Apply an affine 4x4 matrix to (N, 3) points."""
    n = points.shape[0]
    out = np.empty((n, 3), dtype=np.float64)
    for i in range(n):
        x = points[i, 0]
        y = points[i, 1]
        z = points[i, 2]
        for r in range(3):
            out[i, r] = (matrix[r, 0] * x + matrix[r, 1] * y +
                         matrix[r, 2] * z + matrix[r, 3])
    return out


def transform_points(points: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """
    Transform an array of points by an affine matrix.

    Args:
        points: Array of shape (N, 3)
        matrix: Affine matrix of shape (4, 4)

    Returns:
        New (N, 3) float64 array
    """
    points = np.ascontiguousarray(points, dtype=np.float64).reshape(-1, 3)
    matrix = np.ascontiguousarray(matrix, dtype=np.float64)
    return _transform_points_kernel(points, matrix)
