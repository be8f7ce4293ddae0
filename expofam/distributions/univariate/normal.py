"""
Univariate normal distribution in its mean/variance, mean/precision and
weighted-mean/precision forms.

.. math::
    p(x|\\mu, v) = \\frac{1}{\\sqrt{2\\pi v}} \\exp\\left(-\\frac{(x-\\mu)^2}{2v}\\right)

Exponential family form:

- :math:`h(x) = (2\\pi)^{-1/2}`
- :math:`t(x) = [x, x^2]`
- :math:`\\eta = [\\mu/v, -1/(2v)]`, proper for :math:`\\eta_2 < 0`
- :math:`A(\\eta) = -\\eta_1^2/(4\\eta_2) - \\frac{1}{2}\\log(-2\\eta_2)`

The three forms share this natural layout and differ only in their mean
parameters: :math:`(\\mu, v)`, :math:`(\\mu, w)` with :math:`w = 1/v`, and
:math:`(\\xi, w)` with :math:`\\xi = w\\mu`. Each is its own registered
family, so products across forms add natural parameters directly.
"""

from typing import Any, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from expofam.base.family import ExponentialFamily
from expofam.base.registry import register_family
from expofam.base.support import RealInterval, Support
from expofam.params import NormalMeanPrecision, NormalMeanVariance, NormalWeightedMeanPrecision

_LOG_2PI = np.log(2 * np.pi)


@register_family
class NormalMeanVarianceFamily(ExponentialFamily):
    """
    Normal distribution in exponential family form.

    Packed natural parameters: ``[mean/var, -1/(2 var)]``. Packed mean
    parameters: ``[mean, var]``.

    Notes
    -----
    In (mean, var) coordinates the Fisher information is diagonal:

    .. math::
        I(\\mu, v) = \\text{diag}(1/v, 1/(2v^2))
    """

    name = "NormalMeanVariance"
    distribution_type = NormalMeanVariance
    num_params = 2
    layout = "UnivariateNormal"

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        return (packed[0], packed[1])

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        mean, var = params
        return (mean / var, -0.5 / var)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        eta1, eta2 = params
        var = -0.5 / eta2
        return (eta1 * var, var)

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        eta1, eta2 = eta
        return -eta1 ** 2 / (4 * eta2) - 0.5 * np.log(-2 * eta2)

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        """:math:`[E[X], E[X^2]] = [\\mu, \\mu^2 + v]`."""
        eta1, eta2 = eta
        return np.array([
            -eta1 / (2 * eta2),
            eta1 ** 2 / (4 * eta2 ** 2) - 1.0 / (2 * eta2),
        ])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        """
        Covariance of :math:`[X, X^2]`:

        .. math::
            I(\\eta) = \\begin{pmatrix}
            v & 2\\mu v \\\\
            2\\mu v & 2v^2 + 4\\mu^2 v
            \\end{pmatrix}
        """
        eta1, eta2 = eta
        cross = eta1 / (2 * eta2 ** 2)
        return np.array([
            [-1.0 / (2 * eta2), cross],
            [cross, -eta1 ** 2 / (2 * eta2 ** 3) + 1.0 / (2 * eta2 ** 2)],
        ])

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        mean, var = params
        return np.array([
            [1.0 / var, -mean / var ** 2],
            [0.0, 0.5 / var ** 2],
        ])

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        _, var = params
        return np.diag([1.0 / var, 0.5 / var ** 2])

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        x = float(x)
        return np.array([x, x * x])

    def log_base_measure(self, x: ArrayLike, conditioner: Any = None) -> float:
        return -0.5 * _LOG_2PI

    def support(self, conditioner: Any = None) -> Support:
        return RealInterval()

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        return eta[1] < 0

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        return params[1] > 0

    def natural_parameter_bounds(self, size, conditioner=None):
        return [(-np.inf, np.inf), (-np.inf, 0.0)]


@register_family
class NormalMeanPrecisionFamily(NormalMeanVarianceFamily):
    """
    Normal distribution with mean parameters ``[mean, precision]``.

    Shares the natural layout of :class:`NormalMeanVarianceFamily`:
    :math:`\\eta = [w\\mu, -w/2]`.
    """

    name = "NormalMeanPrecision"
    distribution_type = NormalMeanPrecision

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        mean, precision = params
        return (precision * mean, -0.5 * precision)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        eta1, eta2 = params
        precision = -2.0 * eta2
        return (eta1 / precision, precision)

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        mean, precision = params
        return np.array([
            [precision, mean],
            [0.0, -0.5],
        ])

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        _, precision = params
        return np.diag([precision, 0.5 / precision ** 2])


@register_family
class NormalWeightedMeanPrecisionFamily(NormalMeanVarianceFamily):
    """
    Normal distribution with mean parameters ``[xi, precision]``,
    :math:`\\xi = w\\mu`. The natural vector is ``[xi, -precision/2]``.
    """

    name = "NormalWeightedMeanPrecision"
    distribution_type = NormalWeightedMeanPrecision

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        xi, precision = params
        return (xi, -0.5 * precision)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        eta1, eta2 = params
        return (eta1, -2.0 * eta2)

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        return np.diag([1.0, -0.5])

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        return ExponentialFamily._mean_fisher_information(self, params, conditioner)


__all__ = [
    "NormalMeanVarianceFamily",
    "NormalMeanPrecisionFamily",
    "NormalWeightedMeanPrecisionFamily",
]
