"""
Exponential distribution as an exponential family.

The Exponential distribution has PDF:

.. math::
    p(x|\\lambda) = \\lambda e^{-\\lambda x}

for :math:`x \\ge 0`, where :math:`\\lambda > 0` is the rate parameter.

Exponential family form:

- :math:`h(x) = 1` for :math:`x \\ge 0` (base measure)
- :math:`t(x) = x` (sufficient statistic)
- :math:`\\eta = -\\lambda` (natural parameter)
- :math:`A(\\eta) = -\\log(-\\eta)` (log partition)

Parametrizations:

- Mean (conventional): :math:`\\lambda > 0`
- Natural: :math:`\\eta = -\\lambda < 0`
- Expectation: :math:`E[X] = 1/\\lambda = -1/\\eta`
"""

from typing import Any, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from expofam.base.family import ExponentialFamily
from expofam.base.registry import register_family
from expofam.base.support import RealInterval, Support
from expofam.params import Exponential


@register_family
class ExponentialDistributionFamily(ExponentialFamily):
    """
    Exponential distribution in exponential family form.

    Packed natural parameters: ``[-rate]``. Packed mean parameters:
    ``[rate]``.

    Examples
    --------
    >>> from expofam import Exponential, convert_to_entity
    >>> ef = convert_to_entity(Exponential(rate=2.0))
    >>> ef.natural_parameters
    array([-2.])
    >>> ef.expectation_params
    array([0.5])
    """

    name = "Exponential"
    distribution_type = Exponential
    num_params = 1

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        return (packed[0],)

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        (rate,) = params
        return (-rate,)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        (eta,) = params
        return (-eta,)

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        """
        .. math::
            A(\\eta) = -\\log(-\\eta)
        """
        return -np.log(-eta[0])

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        """:math:`E[X] = -1/\\eta`."""
        return np.array([-1.0 / eta[0]])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        """:math:`\\text{Var}[X] = 1/\\eta^2`."""
        return np.array([[1.0 / eta[0] ** 2]])

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        return np.array([[-1.0]])

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        """:math:`I(\\lambda) = 1/\\lambda^2`."""
        (rate,) = params
        return np.array([[1.0 / rate ** 2]])

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        return np.array([float(x)])

    def support(self, conditioner: Any = None) -> Support:
        return RealInterval(0.0, np.inf)

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        return eta[0] < 0

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        return params[0] > 0

    def natural_parameter_bounds(self, size, conditioner=None):
        return [(-np.inf, 0.0)]


__all__ = ["ExponentialDistributionFamily"]
