"""
Numerical differentiation of log-partitions.

Thin wrappers around :func:`scipy.differentiate.jacobian` and
:func:`scipy.differentiate.hessian` that

- vectorize plain single-point functions, since ``scipy.differentiate``
  evaluates many abscissae per call (input shape ``(m, ...)``),
- use a small initial step so that the stencil stays inside the natural
  parameter domain near a boundary,
- warn with :class:`~expofam.errors.NumericalAccuracyWarning` when the
  error estimate did not reach the requested tolerance.

These derivatives are the reference against which the analytic gradients
and Fisher informations of every family are checked.
"""

import warnings
from typing import Callable, Dict, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.differentiate import hessian, jacobian

from expofam.errors import NumericalAccuracyWarning

#: Initial finite-difference step. The stencil never leaves a ball of this
#: radius around the evaluation point (two radii for the Hessian).
DEFAULT_INITIAL_STEP = 1e-2

#: Absolute and relative tolerances handed to ``scipy.differentiate``.
DEFAULT_TOLERANCES = {"atol": 1e-10, "rtol": 1e-8}


def _vectorized(func: Callable[[NDArray], ArrayLike]) -> Callable[[NDArray], NDArray]:
    """Lift a single-point function of a 1-D vector to ``(m, ...)`` inputs."""

    def wrapped(xi):
        xi = np.asarray(xi, dtype=float)
        batch = xi.shape[1:]
        if not batch:
            return np.asarray(func(xi), dtype=float)
        flat = xi.reshape(xi.shape[0], -1)
        outs = [np.asarray(func(np.ascontiguousarray(flat[:, j])), dtype=float)
                for j in range(flat.shape[1])]
        out = np.stack(outs, axis=-1)
        return out.reshape(out.shape[:-1] + batch)

    return wrapped


def _check(result, what: str) -> None:
    if not np.all(result.success):
        warnings.warn(
            f"Numerical {what} did not converge to the requested tolerance "
            f"(max error estimate: {np.nanmax(np.abs(result.error)):.2e})",
            NumericalAccuracyWarning,
            stacklevel=3,
        )


def numerical_jacobian(
    func: Callable[[NDArray], ArrayLike],
    x: ArrayLike,
    *,
    initial_step: float = DEFAULT_INITIAL_STEP,
    tolerances: Optional[Dict[str, float]] = None,
) -> NDArray:
    """
    Jacobian of a vector-valued function of a vector.

    Parameters
    ----------
    func : callable
        Maps a 1-D array of length ``m`` to a 1-D array of length ``n``.
    x : array_like, shape (m,)
        Evaluation point.

    Returns
    -------
    J : ndarray, shape (n, m)
        ``J[i, j] = d func_i / d x_j``.
    """
    x = np.asarray(x, dtype=float)
    result = jacobian(
        _vectorized(func), x,
        initial_step=initial_step,
        tolerances=tolerances or DEFAULT_TOLERANCES,
    )
    _check(result, "Jacobian")
    return np.asarray(result.df)


def numerical_gradient(
    func: Callable[[NDArray], float],
    x: ArrayLike,
    *,
    initial_step: float = DEFAULT_INITIAL_STEP,
    tolerances: Optional[Dict[str, float]] = None,
) -> NDArray:
    """
    Gradient of a scalar function of a vector.

    Returns
    -------
    grad : ndarray, shape (m,)
    """
    J = numerical_jacobian(
        lambda v: np.atleast_1d(func(v)), x,
        initial_step=initial_step, tolerances=tolerances,
    )
    return J[0]


def numerical_hessian(
    func: Callable[[NDArray], float],
    x: ArrayLike,
    *,
    initial_step: float = DEFAULT_INITIAL_STEP,
    tolerances: Optional[Dict[str, float]] = None,
) -> NDArray:
    """
    Hessian of a scalar function of a vector.

    The result is symmetrized to remove round-off asymmetry.

    Returns
    -------
    H : ndarray, shape (m, m)
    """
    x = np.asarray(x, dtype=float)
    result = hessian(
        _vectorized(func), x,
        initial_step=initial_step,
        tolerances=tolerances or DEFAULT_TOLERANCES,
    )
    _check(result, "Hessian")
    H = np.asarray(result.ddf)
    return (H + H.T) / 2


__all__ = [
    "DEFAULT_INITIAL_STEP",
    "DEFAULT_TOLERANCES",
    "numerical_jacobian",
    "numerical_gradient",
    "numerical_hessian",
]
