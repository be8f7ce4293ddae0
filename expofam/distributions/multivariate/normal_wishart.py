"""
Normal-Wishart distribution as an exponential family.

A joint density over a vector :math:`x \\in \\mathbb{R}^d` and a precision
matrix :math:`\\Lambda`:

.. math::
    p(x, \\Lambda | \\mu, \\Psi, \\kappa, \\nu) =
    \\mathcal{N}(x | \\mu, (\\kappa\\Lambda)^{-1})
    \\,\\mathcal{W}(\\Lambda | \\nu, \\Psi)

Exponential family form:

- :math:`h(x, \\Lambda) = 1`, with :math:`(2\\pi)^{-d/2}` absorbed into :math:`A`
- :math:`t(x, \\Lambda) = [\\Lambda x, \\text{vec}(\\Lambda), x^T\\Lambda x, \\log|\\Lambda|]`
- :math:`\\eta = [\\kappa\\mu, \\text{vec}(-\\frac{1}{2}(\\Psi^{-1} + \\kappa\\mu\\mu^T)),
  -\\kappa/2, (\\nu - d)/2]`

With :math:`\\kappa = -2\\eta_3`, :math:`\\nu = 2\\eta_4 + d` and
:math:`M = -2\\,\\text{sym}(\\eta_2) + \\eta_1\\eta_1^T/(2\\eta_3) = \\Psi^{-1}`:

.. math::
    A(\\eta) = -\\frac{d}{2}\\log\\kappa + \\frac{\\nu d}{2}\\log 2
    - \\frac{\\nu}{2}\\log|M| + \\log\\Gamma_d(\\nu/2) + \\frac{d}{2}\\log(2\\pi)

The packed vector has length :math:`d + d^2 + 2`, in both spaces. Mean
parameters are ``[mean, vec(scale), kappa, df]``. Observations are pairs
``(x, precision)``.
"""

from typing import Any, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from expofam.base.family import ExponentialFamily
from expofam.base.registry import register_family
from expofam.base.support import CartesianSupport, PositiveDefiniteMatrices, RealVectors, Support
from expofam.distributions.multivariate.normal import _dimension
from expofam.params import MvNormalWishart
from expofam.utils.linalg import inv_pd, is_positive_definite, logdet_pd, symmetrize
from expofam.utils.special import logmvgamma, mvdigamma, mvtrigamma

_LOG_2PI = np.log(2 * np.pi)


def _block_dimension(n: int):
    return _dimension(n - 2) if n > 2 else None


@register_family
class MvNormalWishartFamily(ExponentialFamily):
    """
    Normal-Wishart distribution in exponential family form.

    Notes
    -----
    The Fisher information is the Hessian of :math:`A`. With
    :math:`P = M^{-1}`, :math:`u = P\\eta_1`, :math:`q = \\eta_1^T u`,
    :math:`c = 1/(2\\eta_3)` and :math:`a = \\nu/2`:

    .. math::
        \\partial^2 A / \\partial\\eta_1^2 = -2ac((1 - cq)P - c\\,uu^T),
        \\qquad
        \\partial^2 A / \\partial\\eta_3^2 = 2dc^2 - 8ac^3q + 4ac^4q^2

    and the remaining blocks follow from :math:`dP = -P\\,dM\\,P`.
    """

    name = "MvNormalWishart"
    distribution_type = MvNormalWishart

    def has_valid_length(self, n: int, conditioner: Any = None) -> bool:
        return _block_dimension(n) is not None

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        d = _block_dimension(packed.size)
        end = d + d * d
        return (packed[:d], packed[d:end].reshape(d, d), packed[end], packed[end + 1])

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        mean, scale, kappa, df = params
        d = mean.shape[0]
        eta2 = -0.5 * (np.linalg.inv(scale) + kappa * np.outer(mean, mean))
        return (kappa * mean, eta2, -0.5 * kappa, 0.5 * (df - d))

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        eta1, eta2, eta3, eta4 = params
        d = eta1.shape[0]
        kappa = -2.0 * eta3
        M = -2.0 * symmetrize(eta2) + np.outer(eta1, eta1) / (2.0 * eta3)
        return (eta1 / kappa, inv_pd(M), kappa, 2.0 * eta4 + d)

    def _inverse_scale(self, eta: Tuple) -> NDArray:
        eta1, eta2, eta3, _ = eta
        return -2.0 * symmetrize(eta2) + np.outer(eta1, eta1) / (2.0 * eta3)

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        eta1, _, eta3, eta4 = eta
        if not eta3 < 0:
            return np.nan
        d = eta1.shape[0]
        a = eta4 + 0.5 * d
        return (
            -0.5 * d * np.log(-2.0 * eta3)
            + a * d * np.log(2.0)
            - a * logdet_pd(self._inverse_scale(eta))
            + logmvgamma(a, d)
            + 0.5 * d * _LOG_2PI
        )

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        """
        Expectation parameters
        :math:`[\\nu\\Psi\\mu, \\text{vec}(\\nu\\Psi), d/\\kappa + \\nu\\mu^T\\Psi\\mu,
        \\psi_d(\\nu/2) + d\\log 2 + \\log|\\Psi|]`.
        """
        eta1, _, eta3, eta4 = eta
        d = eta1.shape[0]
        a = eta4 + 0.5 * d
        M = self._inverse_scale(eta)
        P = inv_pd(M)
        kappa = -2.0 * eta3
        mean = eta1 / kappa
        return np.concatenate([
            2 * a * P @ mean,
            (2 * a * P).ravel(),
            [d / kappa + 2 * a * mean @ P @ mean],
            [mvdigamma(a, d) + d * np.log(2.0) - logdet_pd(M)],
        ])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        eta1, _, eta3, eta4 = eta
        d = eta1.shape[0]
        a = eta4 + 0.5 * d
        c = 1.0 / (2.0 * eta3)
        P = inv_pd(self._inverse_scale(eta))
        u = P @ eta1
        q = eta1 @ u

        h11 = -2 * a * c * ((1 - c * q) * P - c * np.outer(u, u))
        h12 = -2 * a * c * (
            np.einsum('ik,l->ikl', P, u) + np.einsum('il,k->ikl', P, u)
        ).reshape(d, d * d)
        h13 = 4 * a * c ** 2 * (1 - c * q) * u
        h14 = -2 * c * u
        h22 = 2 * a * (
            np.einsum('ak,bl->abkl', P, P) + np.einsum('al,bk->abkl', P, P)
        ).reshape(d * d, d * d)
        h23 = 4 * a * c ** 2 * np.outer(u, u).ravel()
        h24 = 2 * P.ravel()
        h33 = 2 * d * c ** 2 - 8 * a * c ** 3 * q + 4 * a * c ** 4 * q ** 2
        h34 = 2 * c ** 2 * q
        h44 = mvtrigamma(a, d)

        n = d + d * d
        H = np.zeros((n + 2, n + 2))
        H[:d, :d] = h11
        H[:d, d:n] = h12
        H[:d, n] = h13
        H[:d, n + 1] = h14
        H[d:n, d:n] = h22
        H[d:n, n] = h23
        H[d:n, n + 1] = h24
        H[n, n] = h33
        H[n, n + 1] = h34
        H[n + 1, n + 1] = h44
        upper = np.triu(H, 1)
        return np.triu(H) + upper.T

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        vector, precision = x
        vector = np.asarray(vector, dtype=float)
        precision = np.asarray(precision, dtype=float)
        weighted = precision @ vector
        return np.concatenate([
            weighted, precision.ravel(), [vector @ weighted], [logdet_pd(precision)],
        ])

    def support(self, conditioner: Any = None) -> Support:
        return CartesianSupport((RealVectors(), PositiveDefiniteMatrices()))

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        _, _, eta3, eta4 = eta
        if not (eta3 < 0 and eta4 > -0.5):
            return False
        return is_positive_definite(self._inverse_scale(eta))

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        mean, scale, kappa, df = params
        return kappa > 0 and df > mean.shape[0] - 1 and is_positive_definite(scale)


__all__ = ["MvNormalWishartFamily"]
