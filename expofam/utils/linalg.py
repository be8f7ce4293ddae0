"""Linear algebra utilities for expofam.

Matrix-valued natural parameters are stored with the full row-major ``vec``
convention (``A.ravel()``), so symmetric blocks carry duplicated
off-diagonal entries. The helpers below convert between that layout and
square matrices and evaluate positive-definite quantities through Cholesky
factors.
"""

import math
from typing import Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.linalg import LinAlgError, cho_solve, cholesky


def symmetrize(A: ArrayLike) -> NDArray:
    """Return the symmetric part :math:`(A + A^T) / 2`."""
    A = np.asarray(A)
    return 0.5 * (A + A.T)


def vec(A: ArrayLike) -> NDArray:
    """Flatten a matrix row by row."""
    return np.asarray(A).ravel()


def unvec(v: ArrayLike, d: Optional[int] = None) -> NDArray:
    """
    Inverse of :func:`vec`.

    Parameters
    ----------
    v : array_like, shape (d*d,)
        Flattened matrix.
    d : int, optional
        Matrix dimension. Inferred from ``len(v)`` when omitted.
    """
    v = np.asarray(v)
    if d is None:
        d = square_dimension(v.size)
        if d is None:
            raise ValueError(f"Vector of length {v.size} is not a flattened square matrix")
    return v.reshape(d, d)


def square_dimension(n: int) -> Optional[int]:
    """Return ``d`` with ``d * d == n`` or None."""
    d = math.isqrt(n)
    return d if d * d == n else None


def cholesky_lower(A: ArrayLike) -> Optional[NDArray]:
    """
    Lower Cholesky factor of a symmetric matrix, or None if it is not
    positive definite.

    Only the lower triangle of ``A`` is read by LAPACK.
    """
    A = np.asarray(A, dtype=float)
    if A.ndim != 2 or A.shape[0] != A.shape[1] or not np.all(np.isfinite(A)):
        return None
    try:
        return cholesky(A, lower=True)
    except LinAlgError:
        return None


def is_positive_definite(A: ArrayLike, *, rtol: float = 1e-8) -> bool:
    """
    Check that ``A`` is symmetric (to ``rtol``) and positive definite.
    """
    A = np.asarray(A, dtype=float)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        return False
    if not np.allclose(A, A.T, rtol=rtol, atol=rtol * np.max(np.abs(A), initial=1.0)):
        return False
    return cholesky_lower(A) is not None


def logdet_pd(A: ArrayLike) -> float:
    """
    Log-determinant of a positive definite matrix via its Cholesky factor.

    Returns NaN when ``A`` is not positive definite, which is how improper
    matrix parameters propagate through log-partitions.
    """
    L = cholesky_lower(A)
    if L is None:
        return np.nan
    return 2.0 * float(np.sum(np.log(np.diag(L))))


def inv_pd(A: ArrayLike) -> NDArray:
    """
    Inverse of a positive definite matrix.

    Raises
    ------
    LinAlgError
        If ``A`` is not positive definite.
    """
    A = np.asarray(A, dtype=float)
    L = cholesky_lower(A)
    if L is None:
        raise LinAlgError("Matrix is not positive definite")
    return symmetrize(cho_solve((L, True), np.eye(A.shape[0])))


__all__ = [
    "symmetrize",
    "vec",
    "unvec",
    "square_dimension",
    "cholesky_lower",
    "is_positive_definite",
    "logdet_pd",
    "inv_pd",
]
