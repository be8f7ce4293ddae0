"""
Bernoulli and Binomial distributions as exponential families.

Both use the log-odds :math:`\\eta = \\log(p / (1 - p))` as natural
parameter and :math:`t(x) = x`:

.. math::
    p(x|\\eta, n) = \\binom{n}{x} \\exp(\\eta x - n\\log(1 + e^\\eta)),
    \\qquad x \\in \\{0, \\dots, n\\}

The Bernoulli is the case :math:`n = 1`. For the Binomial the trial count
:math:`n` is the conditioner. The product of two Binomials is not a
Binomial: it is a density on :math:`\\{0, \\dots, \\min(n_1, n_2)\\}` with
base measure :math:`\\binom{n_1}{x}\\binom{n_2}{x}`, also when
:math:`n_1 = n_2`. Its log partition is :class:`BinomialProductLogPartition`.
"""

from dataclasses import dataclass
from typing import Any, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import expit, logit, logsumexp

from expofam.base.family import ExponentialFamily
from expofam.base.registry import register_family
from expofam.base.support import IntegerInterval, Support
from expofam.params import Bernoulli, Binomial
from expofam.utils.special import log1pexp, log_binomial


def is_trial_count(n) -> bool:
    """Whether ``n`` is a positive integer trial count (bools excluded)."""
    if isinstance(n, (bool, np.bool_)) or np.ndim(n) != 0:
        return False
    try:
        n = float(n)
    except (TypeError, ValueError):
        return False
    return np.isfinite(n) and n >= 1 and n.is_integer()


@register_family
class BernoulliFamily(ExponentialFamily):
    """
    Bernoulli distribution in exponential family form.

    Packed natural parameters: ``[logit(p)]``. The mean-space domain is the
    open interval :math:`0 < p < 1`; degenerate coins have no natural
    parameter.
    """

    name = "Bernoulli"
    distribution_type = Bernoulli
    num_params = 1

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        return (packed[0],)

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        return (logit(params[0]),)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        return (expit(params[0]),)

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        return log1pexp(eta[0])

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        return np.array([expit(eta[0])])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        p = expit(eta[0])
        return np.array([[p * (1 - p)]])

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        p = params[0]
        return np.array([[1.0 / (p * (1 - p))]])

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        p = params[0]
        return np.array([[1.0 / (p * (1 - p))]])

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        return np.array([float(x)])

    def support(self, conditioner: Any = None) -> Support:
        return IntegerInterval(0, 1)

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        return True

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        return 0 < params[0] < 1

    def natural_parameter_bounds(self, size, conditioner=None):
        return [(-np.inf, np.inf)]


@register_family
class BinomialFamily(ExponentialFamily):
    """
    Binomial distribution with the trial count as conditioner.

    Packed natural parameters: ``[logit(p)]``; conditioner: ``n``.

    .. math::
        A(\\eta; n) = n \\log(1 + e^\\eta), \\qquad
        h(x; n) = \\binom{n}{x}
    """

    name = "Binomial"
    distribution_type = Binomial
    num_params = 1
    has_conditioner = True
    is_base_measure_constant = False

    def separate_conditioner(self, params: Tuple) -> Tuple[Tuple, Any]:
        n, p = params
        return (p,), n

    def join_conditioner(self, params: Tuple, conditioner: Any) -> Tuple:
        return (conditioner, params[0])

    def is_valid_conditioner(self, conditioner: Any) -> bool:
        return is_trial_count(conditioner)

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        return (packed[0],)

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        return (logit(params[0]),)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        return (expit(params[0]),)

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        return conditioner * log1pexp(eta[0])

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        return np.array([conditioner * expit(eta[0])])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        p = expit(eta[0])
        return np.array([[conditioner * p * (1 - p)]])

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        p = params[0]
        return np.array([[1.0 / (p * (1 - p))]])

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        """:math:`I(p) = n / (p(1 - p))`."""
        p = params[0]
        return np.array([[conditioner / (p * (1 - p))]])

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        return np.array([float(x)])

    def log_base_measure(self, x: ArrayLike, conditioner: Any = None) -> float:
        return float(log_binomial(conditioner, x))

    def support(self, conditioner: Any = None) -> Support:
        return IntegerInterval(0, int(conditioner))

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        return True

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        return 0 < params[0] < 1

    def natural_parameter_bounds(self, size, conditioner=None):
        return [(-np.inf, np.inf)]

    def mismatched_product_log_partition(self, left_conditioner, right_conditioner):
        return BinomialProductLogPartition(int(left_conditioner), int(right_conditioner))

    def matched_product_log_partition(self, conditioner):
        return BinomialProductLogPartition(int(conditioner), int(conditioner))


@dataclass(frozen=True)
class BinomialProductLogPartition:
    """
    Log partition of the product of two Binomials with trial counts
    ``n_left`` and ``n_right``.

    .. math::
        A(\\eta) = \\log \\sum_{x=0}^{\\min(n_1, n_2)}
        \\binom{n_1}{x}\\binom{n_2}{x} e^{\\bar\\eta x}, \\qquad
        \\bar\\eta = \\textstyle\\sum_i \\eta_i

    The natural vector enters only through the sum of its entries, so one
    function serves the concatenated :math:`[\\eta_1, \\eta_2]` of a
    mismatched product and the summed vector of a matched one. The sum over
    :math:`x` is finite and evaluated exactly in the log domain.
    """

    n_left: int
    n_right: int

    def __call__(self, eta: ArrayLike) -> float:
        eta = np.asarray(eta, dtype=float)
        x = np.arange(min(self.n_left, self.n_right) + 1, dtype=float)
        terms = (
            log_binomial(self.n_left, x)
            + log_binomial(self.n_right, x)
            + eta.sum() * x
        )
        return float(logsumexp(terms))


__all__ = [
    "BernoulliFamily",
    "BinomialFamily",
    "BinomialProductLogPartition",
    "is_trial_count",
]
