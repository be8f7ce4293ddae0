"""
Gamma and Erlang distributions as exponential families.

The Gamma distribution has PDF:

.. math::
    p(x|\\alpha, \\beta) = \\frac{\\beta^\\alpha}{\\Gamma(\\alpha)} x^{\\alpha-1} e^{-\\beta x}

for :math:`x > 0`, where :math:`\\alpha > 0` is the shape parameter and
:math:`\\beta > 0` is the rate parameter.

Exponential family form:

- :math:`h(x) = 1` for :math:`x > 0` (base measure)
- :math:`t(x) = [\\log x, x]` (sufficient statistics)
- :math:`\\eta = [\\alpha - 1, -\\beta]` (natural parameters)
- :math:`A(\\eta) = \\log\\Gamma(\\eta_1 + 1) - (\\eta_1 + 1)\\log(-\\eta_2)` (log partition)

Parametrizations:

- Mean (conventional): :math:`\\alpha` (shape), :math:`\\beta` (rate)
- Natural: :math:`\\eta = [\\alpha - 1, -\\beta]`, :math:`\\eta_1 > -1, \\eta_2 < 0`
- Expectation: :math:`[\\psi(\\alpha) - \\log\\beta, \\alpha/\\beta]`, where
  :math:`\\psi` is the digamma function

The Erlang distribution is the Gamma with integer shape :math:`k`, written
with a scale :math:`s = 1/\\beta`. It shares the natural parameterization
and log partition; only the conventional parameters and the natural domain
(:math:`\\eta_1 \\in \\{0, 1, 2, \\dots\\}`) differ.
"""

from typing import Any, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import digamma, gammaln, polygamma

from expofam.base.family import ExponentialFamily
from expofam.base.registry import register_family
from expofam.base.support import RealInterval, Support
from expofam.params import Erlang, Gamma


@register_family
class GammaFamily(ExponentialFamily):
    """
    Gamma distribution in exponential family form.

    Packed natural parameters: ``[shape - 1, -rate]``. Packed mean
    parameters: ``[shape, rate]``.

    Examples
    --------
    >>> from expofam import Gamma, convert_to_entity
    >>> ef = convert_to_entity(Gamma(shape=2.0, rate=1.0))
    >>> ef.natural_parameters
    array([ 1., -1.])

    Notes
    -----
    The Fisher information in natural coordinates is

    .. math::
        I(\\eta) = \\begin{pmatrix}
        \\psi'(\\alpha) & 1/\\beta \\\\
        1/\\beta & \\alpha/\\beta^2
        \\end{pmatrix}

    and in (shape, rate) coordinates the off-diagonal terms change sign.
    """

    name = "Gamma"
    distribution_type = Gamma
    num_params = 2

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        return (packed[0], packed[1])

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        shape, rate = params
        return (shape - 1.0, -rate)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        eta1, eta2 = params
        return (eta1 + 1.0, -eta2)

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        eta1, eta2 = eta
        return gammaln(eta1 + 1) - (eta1 + 1) * np.log(-eta2)

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        """
        Expectation parameters :math:`[E[\\log X], E[X]]`.

        .. math::
            \\nabla A = [\\psi(\\eta_1 + 1) - \\log(-\\eta_2),
            -(\\eta_1 + 1)/\\eta_2]
        """
        eta1, eta2 = eta
        return np.array([
            digamma(eta1 + 1) - np.log(-eta2),
            -(eta1 + 1) / eta2,
        ])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        """
        Analytical Hessian of the log partition.

        .. math::
            I(\\eta) = \\begin{pmatrix}
            \\psi'(\\eta_1 + 1) & -1/\\eta_2 \\\\
            -1/\\eta_2 & (\\eta_1 + 1)/\\eta_2^2
            \\end{pmatrix}
        """
        eta1, eta2 = eta
        alpha = eta1 + 1
        return np.array([
            [polygamma(1, alpha), -1.0 / eta2],
            [-1.0 / eta2, alpha / eta2 ** 2],
        ])

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        return np.array([[1.0, 0.0], [0.0, -1.0]])

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        shape, rate = params
        return np.array([
            [polygamma(1, shape), -1.0 / rate],
            [-1.0 / rate, shape / rate ** 2],
        ])

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        x = float(x)
        return np.array([np.log(x), x])

    def support(self, conditioner: Any = None) -> Support:
        return RealInterval(0.0, np.inf, left_closed=False)

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        return eta[0] > -1 and eta[1] < 0

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        return params[0] > 0 and params[1] > 0

    def natural_parameter_bounds(self, size, conditioner=None):
        return [(-1.0, np.inf), (-np.inf, 0.0)]


@register_family
class ErlangFamily(GammaFamily):
    """
    Erlang distribution: a Gamma with integer shape in shape/scale form.

    Packed natural parameters: ``[k - 1, -1/scale]``. Packed mean
    parameters: ``[k, scale]``. Products of Erlang members stay Erlang
    because shapes combine as :math:`k_1 + k_2 - 1`.
    """

    name = "Erlang"
    distribution_type = Erlang

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        k, scale = params
        return (k - 1.0, -1.0 / scale)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        eta1, eta2 = params
        return (eta1 + 1.0, -1.0 / eta2)

    def build_distribution(self, params: Tuple):
        k, scale = params
        return Erlang(int(round(k)), scale)

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        _, scale = params
        return np.array([[1.0, 0.0], [0.0, 1.0 / scale ** 2]])

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        """
        .. math::
            I(k, s) = \\begin{pmatrix}
            \\psi'(k) & 1/s \\\\
            1/s & k/s^2
            \\end{pmatrix}
        """
        k, scale = params
        return np.array([
            [polygamma(1, k), 1.0 / scale],
            [1.0 / scale, k / scale ** 2],
        ])

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        eta1, eta2 = eta
        return eta1 >= 0 and float(eta1).is_integer() and eta2 < 0

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        k, scale = params
        return k >= 1 and float(k).is_integer() and scale > 0

    def natural_parameter_bounds(self, size, conditioner=None):
        return None


__all__ = ["GammaFamily", "ErlangFamily"]
