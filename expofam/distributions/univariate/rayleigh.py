"""
Rayleigh distribution as an exponential family.

.. math::
    p(x|\\sigma) = \\frac{x}{\\sigma^2} \\exp\\left(-\\frac{x^2}{2\\sigma^2}\\right),
    \\qquad x \\ge 0

- :math:`h(x) = x` (non-constant base measure)
- :math:`t(x) = x^2`
- :math:`\\eta = -1/(2\\sigma^2) < 0`
- :math:`A(\\eta) = -\\log(-2\\eta)`

The product of two Rayleigh densities has base measure :math:`x^2` and is
not a Rayleigh density; :class:`RayleighProductLogPartition` normalizes it.
"""

from dataclasses import dataclass
from typing import Any, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from expofam.base.family import ExponentialFamily
from expofam.base.registry import register_family
from expofam.base.support import RealInterval, Support
from expofam.params import Rayleigh


@register_family
class RayleighFamily(ExponentialFamily):
    """Rayleigh distribution; packed natural parameters ``[-1/(2 scale^2)]``."""

    name = "Rayleigh"
    distribution_type = Rayleigh
    num_params = 1
    is_base_measure_constant = False

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        return (packed[0],)

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        return (-0.5 / params[0] ** 2,)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        return (np.sqrt(-0.5 / params[0]),)

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        return -np.log(-2 * eta[0])

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        """:math:`E[X^2] = 2\\sigma^2 = -1/\\eta`."""
        return np.array([-1.0 / eta[0]])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        return np.array([[1.0 / eta[0] ** 2]])

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        return np.array([[1.0 / params[0] ** 3]])

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        """:math:`I(\\sigma) = 4/\\sigma^2`."""
        return np.array([[4.0 / params[0] ** 2]])

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        return np.array([float(x) ** 2])

    def log_base_measure(self, x: ArrayLike, conditioner: Any = None) -> float:
        x = float(x)
        return np.log(x) if x > 0 else -np.inf

    def support(self, conditioner: Any = None) -> Support:
        return RealInterval(0.0, np.inf)

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        return eta[0] < 0

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        return params[0] > 0

    def natural_parameter_bounds(self, size, conditioner=None):
        return [(-np.inf, 0.0)]

    def mismatched_product_log_partition(self, left_conditioner, right_conditioner):
        return RayleighProductLogPartition()

    def matched_product_log_partition(self, conditioner):
        return RayleighProductLogPartition()


@dataclass(frozen=True)
class RayleighProductLogPartition:
    """
    Log partition of the product of two Rayleigh densities.

    .. math::
        A(\\eta) = \\log \\int_0^\\infty x^2 e^{\\bar\\eta x^2} dx
        = \\log\\frac{\\sqrt{\\pi}}{4} - \\frac{3}{2}\\log(-\\bar\\eta)

    with :math:`\\bar\\eta` the sum of the natural vector's entries, so
    both the summed and the concatenated layouts are accepted. Infinite when
    :math:`\\bar\\eta \\ge 0`.
    """

    def __call__(self, eta: ArrayLike) -> float:
        total = float(np.sum(eta))
        if total >= 0:
            return np.inf
        return float(0.5 * np.log(np.pi) - np.log(4.0) - 1.5 * np.log(-total))


__all__ = ["RayleighFamily", "RayleighProductLogPartition"]
