"""
Beta distribution as an exponential family.

.. math::
    p(x|a, b) = \\frac{x^{a-1}(1-x)^{b-1}}{B(a, b)}, \\qquad 0 < x < 1

Exponential family form:

- :math:`h(x) = 1` on :math:`(0, 1)`
- :math:`t(x) = [\\log x, \\log(1 - x)]`
- :math:`\\eta = [a - 1, b - 1]`, proper for :math:`\\eta_i > -1`
- :math:`A(\\eta) = \\log\\Gamma(a) + \\log\\Gamma(b) - \\log\\Gamma(a + b)`

The mean-to-natural map is a shift, so the Fisher information is the same
in both parameterizations.
"""

from typing import Any, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import digamma, gammaln, polygamma

from expofam.base.family import ExponentialFamily
from expofam.base.registry import register_family
from expofam.base.support import RealInterval, Support
from expofam.params import Beta


@register_family
class BetaFamily(ExponentialFamily):
    """Beta distribution in exponential family form."""

    name = "Beta"
    distribution_type = Beta
    num_params = 2

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        return (packed[0], packed[1])

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        a, b = params
        return (a - 1.0, b - 1.0)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        eta1, eta2 = params
        return (eta1 + 1.0, eta2 + 1.0)

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        a, b = eta[0] + 1, eta[1] + 1
        return gammaln(a) + gammaln(b) - gammaln(a + b)

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        """:math:`[\\psi(a) - \\psi(a+b), \\psi(b) - \\psi(a+b)]`."""
        a, b = eta[0] + 1, eta[1] + 1
        return np.array([digamma(a) - digamma(a + b), digamma(b) - digamma(a + b)])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        a, b = eta[0] + 1, eta[1] + 1
        return np.diag(polygamma(1, [a, b])) - polygamma(1, a + b)

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        return np.eye(2)

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        return self._fisher_information(self.mean_to_natural(params), conditioner)

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        x = float(x)
        return np.array([np.log(x), np.log1p(-x)])

    def support(self, conditioner: Any = None) -> Support:
        return RealInterval(0.0, 1.0, left_closed=False, right_closed=False)

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        return eta[0] > -1 and eta[1] > -1

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        return params[0] > 0 and params[1] > 0

    def natural_parameter_bounds(self, size, conditioner=None):
        return [(-1.0, np.inf), (-1.0, np.inf)]


__all__ = ["BetaFamily"]
