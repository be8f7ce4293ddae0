"""
Multivariate Normal distribution as an exponential family, in mean/covariance,
mean/precision and weighted-mean/precision forms.

The multivariate Normal distribution has PDF:

.. math::
    p(x|\\mu,\\Sigma) = (2\\pi)^{-d/2} |\\Sigma|^{-1/2}
    \\exp\\left(-\\frac{1}{2} (x-\\mu)^T \\Sigma^{-1} (x-\\mu)\\right)

for :math:`x \\in \\mathbb{R}^d`.

Exponential family form:

- :math:`h(x) = 1` (base measure, with :math:`(2\\pi)^{-d/2}` absorbed into :math:`A`)
- :math:`t(x) = [x, \\text{vec}(xx^T)]` (sufficient statistics)
- :math:`\\eta = [\\Lambda\\mu, -\\frac{1}{2}\\text{vec}(\\Lambda)]` where :math:`\\Lambda = \\Sigma^{-1}`
- :math:`A(\\eta) = \\frac{1}{2}\\eta_1^T\\Lambda^{-1}\\eta_1 - \\frac{1}{2}\\log|\\Lambda| + \\frac{d}{2}\\log(2\\pi)`

Parametrizations:

- Mean (conventional): :math:`\\mu` (d-vector), :math:`\\Sigma` (d×d positive definite)
- Natural: :math:`[\\eta_1, \\text{vec}(\\eta_2)]`, proper when :math:`-\\eta_2` is
  positive definite
- Expectation: :math:`[E[X], E[XX^T]] = [\\mu, \\Sigma + \\mu\\mu^T]`

The matrix block is stored with the full row-major ``vec``, so the packed
vector has length :math:`d + d^2`. The log partition reads only the
symmetric part of :math:`\\eta_2`.

The precision forms use the mean parameters :math:`(\\mu, W)` and
:math:`(\\xi, W)` with :math:`W = \\Sigma^{-1}` and :math:`\\xi = W\\mu`. All
three share the natural layout above.
"""

import math
from typing import Any, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.linalg import solve_triangular

from expofam.base.family import ExponentialFamily
from expofam.base.registry import register_family
from expofam.base.support import RealVectors, Support
from expofam.params import (
    MvNormalMeanCovariance,
    MvNormalMeanPrecision,
    MvNormalWeightedMeanPrecision,
)
from expofam.utils.linalg import cholesky_lower, inv_pd, is_positive_definite, symmetrize

_LOG_2PI = np.log(2 * np.pi)


def _dimension(n: int):
    """``d`` with ``d + d*d == n``, or None."""
    root = math.isqrt(1 + 4 * n)
    if root * root != 1 + 4 * n or (root - 1) % 2:
        return None
    d = (root - 1) // 2
    return d if d >= 1 else None


@register_family
class MvNormalMeanCovarianceFamily(ExponentialFamily):
    """
    Multivariate Normal distribution in exponential family form.

    Packed natural parameters: ``[P mu, vec(-P/2)]`` with ``P = inv(cov)``.
    Packed mean parameters: ``[mean, vec(cov)]``.

    Examples
    --------
    >>> import numpy as np
    >>> from expofam import MvNormalMeanCovariance, convert_to_entity
    >>> ef = convert_to_entity(MvNormalMeanCovariance(np.zeros(2), np.eye(2)))
    >>> ef.natural_parameters
    array([ 0. ,  0. , -0.5, -0. , -0. , -0.5])
    """

    name = "MvNormalMeanCovariance"
    distribution_type = MvNormalMeanCovariance
    layout = "MultivariateNormal"

    def has_valid_length(self, n: int, conditioner: Any = None) -> bool:
        return _dimension(n) is not None

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        d = _dimension(packed.size)
        return (packed[:d], packed[d:].reshape(d, d))

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        mean, cov = params
        precision = np.linalg.inv(cov)
        return (precision @ mean, -0.5 * precision)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        eta1, eta2 = params
        cov = inv_pd(-2.0 * symmetrize(eta2))
        return (cov @ eta1, cov)

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        """
        Log partition function through the Cholesky factor of the precision.

        .. math::
            A(\\eta) = \\frac{1}{2}\\|L^{-1}\\eta_1\\|^2 - \\sum_i \\log L_{ii}
            + \\frac{d}{2}\\log(2\\pi), \\qquad LL^T = -2\\,\\text{sym}(\\eta_2)

        Returns NaN when :math:`-\\eta_2` is not positive definite.
        """
        eta1, eta2 = eta
        d = eta1.shape[0]
        L = cholesky_lower(-2.0 * symmetrize(eta2))
        if L is None:
            return np.nan
        z = solve_triangular(L, eta1, lower=True)
        return 0.5 * z @ z - np.sum(np.log(np.diag(L))) + 0.5 * d * _LOG_2PI

    def _moments(self, eta: Tuple) -> Tuple[NDArray, NDArray]:
        eta1, eta2 = eta
        cov = inv_pd(-2.0 * symmetrize(eta2))
        return cov @ eta1, cov

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        """
        Expectation parameters :math:`[\\mu, \\text{vec}(\\Sigma + \\mu\\mu^T)]`.
        """
        mu, cov = self._moments(eta)
        return np.concatenate([mu, (cov + np.outer(mu, mu)).ravel()])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        """
        Covariance of :math:`[X, \\text{vec}(XX^T)]`.

        With Gaussian moments (Isserlis):

        .. math::
            \\text{Cov}(X_c, X_kX_l) = \\Sigma_{ck}\\mu_l + \\Sigma_{cl}\\mu_k

        .. math::
            \\text{Cov}(X_aX_b, X_kX_l) = \\Sigma_{ak}\\Sigma_{bl}
            + \\Sigma_{al}\\Sigma_{bk} + \\mu_a\\mu_k\\Sigma_{bl}
            + \\mu_a\\mu_l\\Sigma_{bk} + \\mu_b\\mu_k\\Sigma_{al}
            + \\mu_b\\mu_l\\Sigma_{ak}
        """
        mu, S = self._moments(eta)
        d = mu.shape[0]
        cross = (
            np.einsum('ck,l->ckl', S, mu) + np.einsum('cl,k->ckl', S, mu)
        ).reshape(d, d * d)
        quad = (
            np.einsum('ak,bl->abkl', S, S)
            + np.einsum('al,bk->abkl', S, S)
            + np.einsum('a,k,bl->abkl', mu, mu, S)
            + np.einsum('a,l,bk->abkl', mu, mu, S)
            + np.einsum('b,k,al->abkl', mu, mu, S)
            + np.einsum('b,l,ak->abkl', mu, mu, S)
        ).reshape(d * d, d * d)
        return np.block([[S, cross], [cross.T, quad]])

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        """
        Jacobian of :math:`(\\mu, \\Sigma) \\mapsto (P\\mu, -P/2)` over the
        full ``vec`` of :math:`\\Sigma`, with :math:`P = \\Sigma^{-1}`:

        .. math::
            \\frac{\\partial (P\\mu)_c}{\\partial \\Sigma_{kl}} = -P_{ck}(P\\mu)_l,
            \\qquad
            \\frac{\\partial (-P/2)_{ab}}{\\partial \\Sigma_{kl}} = \\frac{1}{2}P_{ak}P_{lb}
        """
        mean, cov = params
        d = mean.shape[0]
        P = np.linalg.inv(cov)
        Pm = P @ mean
        J = np.zeros((d + d * d, d + d * d))
        J[:d, :d] = P
        J[:d, d:] = -np.einsum('ck,l->ckl', P, Pm).reshape(d, d * d)
        J[d:, d:] = 0.5 * np.einsum('ak,lb->abkl', P, P).reshape(d * d, d * d)
        return J

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        x = np.asarray(x, dtype=float)
        return np.concatenate([x, np.outer(x, x).ravel()])

    def support(self, conditioner: Any = None) -> Support:
        return RealVectors()

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        return is_positive_definite(-eta[1])

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        return is_positive_definite(params[1])


@register_family
class MvNormalMeanPrecisionFamily(MvNormalMeanCovarianceFamily):
    """
    Multivariate Normal distribution with mean parameters
    ``[mean, vec(precision)]``.

    Shares the natural layout ``[W mu, vec(-W/2)]`` of
    :class:`MvNormalMeanCovarianceFamily`.
    """

    name = "MvNormalMeanPrecision"
    distribution_type = MvNormalMeanPrecision

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        mean, precision = params
        return (precision @ mean, -0.5 * precision)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        eta1, eta2 = params
        precision = -2.0 * symmetrize(eta2)
        return (np.linalg.solve(precision, eta1), precision)

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        """
        .. math::
            \\frac{\\partial (W\\mu)_c}{\\partial W_{kl}} = \\delta_{ck}\\mu_l,
            \\qquad
            \\frac{\\partial (-W/2)_{ab}}{\\partial W_{kl}} = -\\frac{1}{2}\\delta_{ak}\\delta_{bl}
        """
        mean, precision = params
        d = mean.shape[0]
        J = np.zeros((d + d * d, d + d * d))
        J[:d, :d] = precision
        J[:d, d:] = np.einsum('ck,l->ckl', np.eye(d), mean).reshape(d, d * d)
        J[d:, d:] = -0.5 * np.eye(d * d)
        return J


@register_family
class MvNormalWeightedMeanPrecisionFamily(MvNormalMeanCovarianceFamily):
    """
    Multivariate Normal distribution with mean parameters
    ``[xi, vec(precision)]``, :math:`\\xi = W\\mu`.
    """

    name = "MvNormalWeightedMeanPrecision"
    distribution_type = MvNormalWeightedMeanPrecision

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        xi, precision = params
        return (xi, -0.5 * precision)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        eta1, eta2 = params
        return (eta1, -2.0 * symmetrize(eta2))

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        d = params[0].shape[0]
        return np.diag(np.concatenate([np.ones(d), np.full(d * d, -0.5)]))


__all__ = [
    "MvNormalMeanCovarianceFamily",
    "MvNormalMeanPrecisionFamily",
    "MvNormalWeightedMeanPrecisionFamily",
]
