"""
Wishart and inverse Wishart distributions as exponential families.

Wishart with :math:`\\nu` degrees of freedom and scale :math:`V` (both
:math:`p \\times p`):

.. math::
    p(X|\\nu, V) = \\frac{|X|^{(\\nu-p-1)/2}
    \\exp(-\\text{tr}(V^{-1}X)/2)}{2^{\\nu p/2}|V|^{\\nu/2}\\Gamma_p(\\nu/2)}

- :math:`h(X) = 1` on positive definite matrices
- :math:`t(X) = [\\log|X|, \\text{vec}(X)]`
- :math:`\\eta = [(\\nu - p - 1)/2, \\text{vec}(-V^{-1}/2)]`
- :math:`A(\\eta) = -a\\log|-\\eta_2| + \\log\\Gamma_p(a)` with
  :math:`a = \\eta_1 + (p+1)/2 = \\nu/2`

Inverse Wishart with scale :math:`\\Psi`:

- :math:`t(X) = [\\log|X|, \\text{vec}(X^{-1})]`
- :math:`\\eta = [-(\\nu + p + 1)/2, \\text{vec}(-\\Psi/2)]`
- :math:`A(\\eta) = \\log\\Gamma_p(a) - a\\log|-\\eta_2|` with
  :math:`a = -\\eta_1 - (p+1)/2 = \\nu/2`

Both natural vectors have length :math:`1 + p^2` (full row-major ``vec``)
and their log partitions read only the symmetric part of :math:`\\eta_2`.
The Fisher blocks below use :math:`Q = (-\\text{sym}(\\eta_2))^{-1}`.
"""

from typing import Any, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from expofam.base.family import ExponentialFamily
from expofam.base.registry import register_family
from expofam.base.support import PositiveDefiniteMatrices, Support
from expofam.params import InverseWishart, Wishart
from expofam.utils.linalg import (
    inv_pd,
    is_positive_definite,
    logdet_pd,
    square_dimension,
    symmetrize,
)
from expofam.utils.special import logmvgamma, mvdigamma, mvtrigamma


def _quadratic_block(Q: NDArray, a: float) -> NDArray:
    """:math:`\\frac{a}{2}(Q_{ak}Q_{bl} + Q_{al}Q_{bk})` reshaped to ``(p^2, p^2)``."""
    p = Q.shape[0]
    block = np.einsum('ak,bl->abkl', Q, Q) + np.einsum('al,bk->abkl', Q, Q)
    return 0.5 * a * block.reshape(p * p, p * p)


class _MatrixFamily(ExponentialFamily):
    """Shared packing for ``[scalar, vec(p x p matrix)]`` layouts."""

    def has_valid_length(self, n: int, conditioner: Any = None) -> bool:
        return n >= 2 and square_dimension(n - 1) is not None

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        p = square_dimension(packed.size - 1)
        return (packed[0], packed[1:].reshape(p, p))

    def support(self, conditioner: Any = None) -> Support:
        return PositiveDefiniteMatrices()

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        df, scale = params
        p = scale.shape[0]
        return df > p - 1 and is_positive_definite(scale)


@register_family
class WishartFamily(_MatrixFamily):
    """
    Wishart distribution in exponential family form.

    Packed mean parameters: ``[df, vec(scale)]``.

    Notes
    -----
    With :math:`a = \\nu/2` and :math:`Q = 2V`:

    .. math::
        \\nabla A = [\\log|Q| + \\psi_p(a), \\; a\\,\\text{vec}(Q)]

    .. math::
        I(\\eta) = \\begin{pmatrix}
        \\psi_p'(a) & \\text{vec}(Q)^T \\\\
        \\text{vec}(Q) & \\frac{a}{2}(Q \\otimes Q + \\text{commuted})
        \\end{pmatrix}
    """

    name = "Wishart"
    distribution_type = Wishart

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        df, scale = params
        p = scale.shape[0]
        return ((df - p - 1) / 2.0, -0.5 * np.linalg.inv(scale))

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        eta1, eta2 = params
        p = eta2.shape[0]
        return (2.0 * eta1 + p + 1, inv_pd(-2.0 * symmetrize(eta2)))

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        eta1, eta2 = eta
        p = eta2.shape[0]
        a = eta1 + (p + 1) / 2.0
        return -a * logdet_pd(-symmetrize(eta2)) + logmvgamma(a, p)

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        """Expectation parameters :math:`[E\\log|X|, \\text{vec}(E[X])]`."""
        eta1, eta2 = eta
        p = eta2.shape[0]
        a = eta1 + (p + 1) / 2.0
        neg = -symmetrize(eta2)
        Q = inv_pd(neg)
        return np.concatenate([[-logdet_pd(neg) + mvdigamma(a, p)], (a * Q).ravel()])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        eta1, eta2 = eta
        p = eta2.shape[0]
        a = eta1 + (p + 1) / 2.0
        Q = inv_pd(-symmetrize(eta2))
        cross = Q.ravel()[np.newaxis, :]
        return np.block([
            [np.atleast_2d(mvtrigamma(a, p)), cross],
            [cross.T, _quadratic_block(Q, a)],
        ])

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        X = np.asarray(x, dtype=float)
        return np.concatenate([[logdet_pd(X)], X.ravel()])

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        eta1, eta2 = eta
        return eta1 > -1 and is_positive_definite(-eta2)


@register_family
class InverseWishartFamily(_MatrixFamily):
    """
    Inverse Wishart distribution in exponential family form.

    Packed mean parameters: ``[df, vec(scale)]``. Products add the scale
    matrices and combine degrees of freedom as
    :math:`\\nu = \\nu_1 + \\nu_2 + p + 1`.
    """

    name = "InverseWishart"
    distribution_type = InverseWishart

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        df, scale = params
        p = scale.shape[0]
        return (-(df + p + 1) / 2.0, -0.5 * np.asarray(scale))

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        eta1, eta2 = params
        p = eta2.shape[0]
        return (-2.0 * eta1 - p - 1, -2.0 * symmetrize(eta2))

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        eta1, eta2 = eta
        p = eta2.shape[0]
        a = -eta1 - (p + 1) / 2.0
        return logmvgamma(a, p) - a * logdet_pd(-symmetrize(eta2))

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        """Expectation parameters :math:`[E\\log|X|, \\text{vec}(E[X^{-1}])]`."""
        eta1, eta2 = eta
        p = eta2.shape[0]
        a = -eta1 - (p + 1) / 2.0
        neg = -symmetrize(eta2)
        Q = inv_pd(neg)
        return np.concatenate([[logdet_pd(neg) - mvdigamma(a, p)], (a * Q).ravel()])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        eta1, eta2 = eta
        p = eta2.shape[0]
        a = -eta1 - (p + 1) / 2.0
        Q = inv_pd(-symmetrize(eta2))
        cross = -Q.ravel()[np.newaxis, :]
        return np.block([
            [np.atleast_2d(mvtrigamma(a, p)), cross],
            [cross.T, _quadratic_block(Q, a)],
        ])

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        X = np.asarray(x, dtype=float)
        return np.concatenate([[logdet_pd(X)], inv_pd(X).ravel()])

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        eta1, eta2 = eta
        p = eta2.shape[0]
        return eta1 < -p and is_positive_definite(-eta2)


__all__ = ["WishartFamily", "InverseWishartFamily"]
