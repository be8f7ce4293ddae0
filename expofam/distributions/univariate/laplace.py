"""
Laplace distribution with known location as an exponential family.

.. math::
    p(x|\\mu, b) = \\frac{1}{2b} \\exp\\left(-\\frac{|x - \\mu|}{b}\\right)

With the location :math:`\\mu` fixed (the conditioner):

- :math:`h(x) = 1` on the real line
- :math:`t(x) = |x - \\mu|`
- :math:`\\eta = -1/b < 0`
- :math:`A(\\eta) = \\log 2 - \\log(-\\eta)`

Two members with the same location multiply into a Laplace with scale
:math:`b_1 b_2 / (b_1 + b_2)`. Members with different locations multiply
into a piecewise-exponential density whose normalizer is given in closed
form by :class:`LaplaceProductLogPartition`.
"""

from dataclasses import dataclass
from typing import Any, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import logsumexp

from expofam.base.family import ExponentialFamily
from expofam.base.registry import register_family
from expofam.base.support import RealInterval, Support
from expofam.params import Laplace


@register_family
class LaplaceFamily(ExponentialFamily):
    """
    Laplace distribution with the location as conditioner.

    Packed natural parameters: ``[-1/scale]``; conditioner: ``loc``.
    """

    name = "Laplace"
    distribution_type = Laplace
    num_params = 1
    has_conditioner = True

    def separate_conditioner(self, params: Tuple) -> Tuple[Tuple, Any]:
        loc, scale = params
        return (scale,), loc

    def join_conditioner(self, params: Tuple, conditioner: Any) -> Tuple:
        return (conditioner, params[0])

    def is_valid_conditioner(self, conditioner: Any) -> bool:
        if conditioner is None or isinstance(conditioner, (bool, np.bool_)):
            return False
        return np.ndim(conditioner) == 0 and bool(np.isfinite(conditioner))

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        return (packed[0],)

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        return (-1.0 / params[0],)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        return (-1.0 / params[0],)

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        return np.log(2.0) - np.log(-eta[0])

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        """:math:`E|X - \\mu| = b = -1/\\eta`."""
        return np.array([-1.0 / eta[0]])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        return np.array([[1.0 / eta[0] ** 2]])

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        return np.array([[1.0 / params[0] ** 2]])

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        """:math:`I(b) = 1/b^2`."""
        return np.array([[1.0 / params[0] ** 2]])

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        return np.array([abs(float(x) - conditioner)])

    def support(self, conditioner: Any = None) -> Support:
        return RealInterval()

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        return eta[0] < 0

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        return params[0] > 0

    def natural_parameter_bounds(self, size, conditioner=None):
        return [(-np.inf, 0.0)]

    def mismatched_product_log_partition(self, left_conditioner, right_conditioner):
        return LaplaceProductLogPartition(float(left_conditioner), float(right_conditioner))


@dataclass(frozen=True)
class LaplaceProductLogPartition:
    """
    Log partition of the product of two Laplace members with locations
    ``loc_left`` and ``loc_right``, as a function of the concatenated
    natural vector :math:`[\\eta_l, \\eta_r]`.

    Write :math:`a < b` for the sorted locations, :math:`\\eta_a, \\eta_b`
    for the matching natural parameters and :math:`d = b - a`. The
    unnormalized density :math:`\\exp(\\eta_a|x - a| + \\eta_b|x - b|)`
    integrates piecewise to

    .. math::
        Z = \\frac{e^{\\eta_b d} + e^{\\eta_a d}}{-(\\eta_a + \\eta_b)}
        + \\frac{e^{\\eta_a d} - e^{\\eta_b d}}{\\eta_a - \\eta_b}

    (the middle term is :math:`d e^{\\eta_a d}` when
    :math:`\\eta_a = \\eta_b`). The density is normalizable iff
    :math:`\\eta_a + \\eta_b < 0`; otherwise :math:`A = +\\infty`.
    """

    loc_left: float
    loc_right: float

    def __call__(self, eta: ArrayLike) -> float:
        eta = np.asarray(eta, dtype=float)
        if self.loc_left <= self.loc_right:
            eta_a, eta_b = eta[0], eta[1]
        else:
            eta_a, eta_b = eta[1], eta[0]
        d = abs(self.loc_right - self.loc_left)
        total = eta_a + eta_b
        if not total < 0:
            return np.inf

        log_tails = np.log(-total)
        log_left = eta_b * d - log_tails
        log_right = eta_a * d - log_tails
        with np.errstate(divide="ignore"):
            if d == 0:
                log_middle = -np.inf
            elif eta_a == eta_b:
                log_middle = np.log(d) + eta_a * d
            else:
                gap = abs(eta_a - eta_b)
                log_middle = (
                    max(eta_a * d, eta_b * d)
                    + np.log(-np.expm1(-gap * d))
                    - np.log(gap)
                )
        return float(logsumexp([log_left, log_middle, log_right]))


__all__ = ["LaplaceFamily", "LaplaceProductLogPartition"]
