"""
Log-domain special functions used by the log-partitions.

All functions are thin compositions of :mod:`scipy.special` primitives and
accept array arguments.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import digamma, gammaln, polygamma


def log1pexp(x: ArrayLike) -> NDArray:
    """Stable :math:`\\log(1 + e^x)`."""
    return np.logaddexp(0.0, x)


def log_binomial(n: ArrayLike, k: ArrayLike) -> NDArray:
    """:math:`\\log \\binom{n}{k}` through log-gamma."""
    n = np.asarray(n, dtype=float)
    k = np.asarray(k, dtype=float)
    return gammaln(n + 1) - gammaln(k + 1) - gammaln(n - k + 1)


def log_multinomial(x: ArrayLike) -> float:
    """:math:`\\log (\\sum_i x_i)! / \\prod_i x_i!` for a count vector."""
    x = np.asarray(x, dtype=float)
    return float(gammaln(x.sum() + 1) - np.sum(gammaln(x + 1)))


def _half_steps(a: ArrayLike, p: int) -> NDArray:
    a = np.asarray(a, dtype=float)
    offsets = (1.0 - np.arange(1, p + 1)) / 2.0
    return a[..., np.newaxis] + offsets


def logmvgamma(a: ArrayLike, p: int) -> NDArray:
    """
    Log multivariate gamma function.

    .. math::
        \\log\\Gamma_p(a) = \\frac{p(p-1)}{4}\\log\\pi
        + \\sum_{j=1}^{p} \\log\\Gamma\\left(a + \\frac{1-j}{2}\\right)

    Unlike :func:`scipy.special.multigammaln` this does not raise for
    ``a <= (p - 1) / 2``; the result is then ``inf`` or NaN.
    """
    return p * (p - 1) / 4.0 * np.log(np.pi) + np.sum(gammaln(_half_steps(a, p)), axis=-1)


def mvdigamma(a: ArrayLike, p: int) -> NDArray:
    """Derivative of :func:`logmvgamma` with respect to ``a``."""
    return np.sum(digamma(_half_steps(a, p)), axis=-1)


def mvtrigamma(a: ArrayLike, p: int) -> NDArray:
    """Second derivative of :func:`logmvgamma` with respect to ``a``."""
    return np.sum(polygamma(1, _half_steps(a, p)), axis=-1)


__all__ = [
    "log1pexp",
    "log_binomial",
    "log_multinomial",
    "logmvgamma",
    "mvdigamma",
    "mvtrigamma",
]
