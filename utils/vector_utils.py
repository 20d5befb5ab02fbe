from __future__ import annotations

import numpy as np

from errors import NumericError
from utils.math_utils import precround


# Vectors are 1-D and matrices 2-D numpy arrays of float64.  Addition,
# subtraction and dot products pad the shorter operand with zeros instead of
# failing on a dimension mismatch.


def _pad_vectors(a: np.ndarray, b: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    n = max(len(a), len(b))
    return (np.pad(a, (0, n - len(a))), np.pad(b, (0, n - len(b))))


def _pad_matrices(a: np.ndarray, b: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    rows = max(a.shape[0], b.shape[0])
    cols = max(a.shape[1], b.shape[1])

    def pad(m: np.ndarray) -> np.ndarray:
        return np.pad(m, ((0, rows - m.shape[0]), (0, cols - m.shape[1])))

    return pad(a), pad(b)


# ----------------------
# Vectors
# ----------------------

def vector_add(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Add two vectors, padding the shorter with zeros.

    Examples
    --------
    >>> vector_add(np.array([1., 2.]), np.array([1., 2., 3.])).tolist()
    [2.0, 4.0, 3.0]
    """
    a, b = _pad_vectors(a, b)
    return a + b


def vector_sub(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    a, b = _pad_vectors(a, b)
    return a - b


def vector_negate(a: np.ndarray) -> np.ndarray:
    return -a


def vector_scale(k: float, a: np.ndarray) -> np.ndarray:
    return k * a


def vector_dot(a: np.ndarray, b: np.ndarray) -> float:
    a, b = _pad_vectors(a, b)
    return float(np.dot(a, b))


def as_vector(x: np.ndarray) -> np.ndarray:
    """Flatten a 1xN or Nx1 matrix to a vector; vectors pass through."""
    if x.ndim == 2 and (x.shape[0] == 1 or x.shape[1] == 1):
        return x.reshape(-1)
    return x


def vector_cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Cross product of two 3-dimensional vectors.

    Raises
    ------
    NumericError
        ``jme.vectormath.cross.not 3d`` if either operand does not have
        exactly three components.

    Examples
    --------
    >>> vector_cross(np.array([1., 0., 0.]), np.array([0., 1., 0.])).tolist()
    [0.0, 0.0, 1.0]
    """
    a, b = as_vector(a), as_vector(b)
    if a.ndim != 1 or b.ndim != 1 or len(a) != 3 or len(b) != 3:
        raise NumericError("jme.vectormath.cross.not 3d")
    return np.cross(a, b).astype(float)


def vector_abs(a: np.ndarray) -> float:
    return float(np.linalg.norm(a))


def vector_eq(a: np.ndarray, b: np.ndarray) -> bool:
    a, b = _pad_vectors(a, b)
    return bool(np.array_equal(a, b))


def vector_transpose(a: np.ndarray) -> np.ndarray:
    """A vector becomes a 1xN row matrix."""
    return a.reshape(1, -1)


def vector_precround(a: np.ndarray, dp: float) -> np.ndarray:
    return np.array([precround(float(x), dp) for x in a], dtype=float)


# ----------------------
# Matrices
# ----------------------

def matrix_add(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    a, b = _pad_matrices(a, b)
    return a + b


def matrix_sub(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    a, b = _pad_matrices(a, b)
    return a - b


def matrix_negate(a: np.ndarray) -> np.ndarray:
    return -a


def matrix_scale(k: float, a: np.ndarray) -> np.ndarray:
    return k * a


def matrix_mul(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Matrix product.

    Raises
    ------
    NumericError
        ``jme.matrixmath.mul.different sizes`` when the columns of *a* do not
        match the rows of *b*.
    """
    if a.shape[1] != b.shape[0]:
        raise NumericError("jme.matrixmath.mul.different sizes")
    return a @ b


def matrix_vector_mul(m: np.ndarray, v: np.ndarray) -> np.ndarray:
    if m.shape[1] != len(v):
        raise NumericError("jme.matrixmath.mul.different sizes")
    return m @ v


def vector_matrix_mul(v: np.ndarray, m: np.ndarray) -> np.ndarray:
    if len(v) != m.shape[0]:
        raise NumericError("jme.matrixmath.mul.different sizes")
    return v @ m


def matrix_transpose(a: np.ndarray) -> np.ndarray:
    return a.T.copy()


def identity(n: float) -> np.ndarray:
    return np.identity(int(n), dtype=float)


def matrix_eq(a: np.ndarray, b: np.ndarray) -> bool:
    return a.shape == b.shape and bool(np.array_equal(a, b))


def matrix_precround(a: np.ndarray, dp: float) -> np.ndarray:
    return np.array([[precround(float(x), dp) for x in row] for row in a], dtype=float).reshape(a.shape)


def determinant(m: np.ndarray) -> float:
    """Determinant of a square matrix of size at most 3x3.

    Computed from the explicit cofactor formulas so that integer matrices
    give exact integer results.

    Raises
    ------
    NumericError
        ``jme.matrixmath.abs.non-square`` or ``jme.matrixmath.abs.too big``.

    Examples
    --------
    >>> determinant(np.array([[1., 2.], [3., 4.]]))
    -2.0
    """
    rows, cols = m.shape
    if rows != cols:
        raise NumericError("jme.matrixmath.abs.non-square")
    if rows == 1:
        return float(m[0, 0])
    if rows == 2:
        return float(m[0, 0] * m[1, 1] - m[0, 1] * m[1, 0])
    if rows == 3:
        return float(
            m[0, 0] * (m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1])
            - m[0, 1] * (m[1, 0] * m[2, 2] - m[1, 2] * m[2, 0])
            + m[0, 2] * (m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0])
        )
    raise NumericError("jme.matrixmath.abs.too big")
