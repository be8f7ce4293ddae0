"""
Dirichlet distribution as an exponential family.

.. math::
    p(x|\\alpha) = \\frac{\\Gamma(\\alpha_0)}{\\prod_i \\Gamma(\\alpha_i)}
    \\prod_i x_i^{\\alpha_i - 1}, \\qquad \\alpha_0 = \\sum_i \\alpha_i

on the open probability simplex.

- :math:`h(x) = 1`
- :math:`t(x) = \\log x`
- :math:`\\eta = \\alpha - 1`, proper for :math:`\\eta_i > -1`
- :math:`A(\\eta) = \\sum_i \\log\\Gamma(\\eta_i + 1) - \\log\\Gamma(\\sum_i(\\eta_i + 1))`
"""

from typing import Any, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import digamma, gammaln, polygamma

from expofam.base.family import ExponentialFamily
from expofam.base.registry import register_family
from expofam.base.support import ProbabilitySimplex, Support
from expofam.params import Dirichlet


@register_family
class DirichletFamily(ExponentialFamily):
    """
    Dirichlet distribution; packed natural parameters ``alpha - 1``.

    The mean-to-natural map is a shift, so the Fisher information

    .. math::
        I = \\text{diag}(\\psi'(\\alpha)) - \\psi'(\\alpha_0) \\mathbf{1}\\mathbf{1}^T

    is the same in both parameterizations.
    """

    name = "Dirichlet"
    distribution_type = Dirichlet

    def has_valid_length(self, n: int, conditioner: Any = None) -> bool:
        return n >= 2

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        return (packed,)

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        return (np.asarray(params[0]) - 1.0,)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        return (np.asarray(params[0]) + 1.0,)

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        alpha = eta[0] + 1
        return np.sum(gammaln(alpha)) - gammaln(np.sum(alpha))

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        """:math:`E[\\log X_i] = \\psi(\\alpha_i) - \\psi(\\alpha_0)`."""
        alpha = eta[0] + 1
        return digamma(alpha) - digamma(np.sum(alpha))

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        alpha = eta[0] + 1
        return np.diag(polygamma(1, alpha)) - polygamma(1, np.sum(alpha))

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        return np.eye(np.size(params[0]))

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        return self._fisher_information(self.mean_to_natural(params), conditioner)

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        return np.log(np.asarray(x, dtype=float))

    def support(self, conditioner: Any = None) -> Support:
        return ProbabilitySimplex()

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        return bool(np.all(eta[0] > -1))

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        return bool(np.all(params[0] > 0))

    def natural_parameter_bounds(self, size, conditioner=None):
        return [(-1.0, np.inf)] * size

    def _initial_natural_params(self, eta, bounds, conditioner):
        return [np.zeros(len(bounds)), np.ones(len(bounds))]


__all__ = ["DirichletFamily"]
