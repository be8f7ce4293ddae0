"""
Multinomial distribution with known trial count as an exponential family.

.. math::
    p(x|n, p) = \\frac{n!}{\\prod_i x_i!} \\prod_i p_i^{x_i},
    \\qquad \\sum_i x_i = n

With the trial count :math:`n` as conditioner:

- :math:`h(x) = n! / \\prod_i x_i!` (non-constant base measure)
- :math:`t(x) = x`
- :math:`\\eta = \\log p`
- :math:`A(\\eta) = n \\log \\sum_i e^{\\eta_i}`

The natural parameterization is overcomplete: adding a constant to every
:math:`\\eta_i` leaves the distribution unchanged, and
:meth:`MultinomialFamily.natural_to_mean` normalizes with a softmax.
Products are only defined for equal trial counts; members with different
:math:`n` live on disjoint count simplices. Even for equal :math:`n` the
product is not a Multinomial: its base measure is :math:`h(x)^2`, and
:class:`MultinomialProductLogPartition` sums it exactly over the count
simplex.
"""

from dataclasses import dataclass
from typing import Any, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import gammaln, logsumexp, softmax

from expofam.base.family import ExponentialFamily
from expofam.base.registry import register_family
from expofam.base.support import CountVectors, Support
from expofam.distributions.univariate.bernoulli import is_trial_count
from expofam.params import Multinomial
from expofam.utils.special import log_multinomial


@register_family
class MultinomialFamily(ExponentialFamily):
    """
    Multinomial distribution; packed natural parameters ``log(p)``,
    conditioner ``n``.
    """

    name = "Multinomial"
    distribution_type = Multinomial
    has_conditioner = True
    is_base_measure_constant = False
    supports_mismatched_product = False

    def separate_conditioner(self, params: Tuple) -> Tuple[Tuple, Any]:
        n, p = params
        return (p,), n

    def join_conditioner(self, params: Tuple, conditioner: Any) -> Tuple:
        return (conditioner, params[0])

    def is_valid_conditioner(self, conditioner: Any) -> bool:
        return is_trial_count(conditioner)

    def has_valid_length(self, n: int, conditioner: Any = None) -> bool:
        return n >= 2

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        return (packed,)

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        return (np.log(params[0]),)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        return (softmax(params[0]),)

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        return conditioner * logsumexp(eta[0])

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        """:math:`E[X] = n\\,\\text{softmax}(\\eta)`."""
        return conditioner * softmax(eta[0])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        """:math:`n(\\text{diag}(s) - ss^T)` with :math:`s = \\text{softmax}(\\eta)`."""
        s = softmax(eta[0])
        return conditioner * (np.diag(s) - np.outer(s, s))

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        return np.diag(1.0 / params[0])

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        """:math:`n(\\text{diag}(1/p) - \\mathbf{1}\\mathbf{1}^T)` on the simplex."""
        p = params[0]
        return conditioner * (np.diag(1.0 / p) - np.ones((p.size, p.size)))

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        return np.asarray(x, dtype=float)

    def log_base_measure(self, x: ArrayLike, conditioner: Any = None) -> float:
        return log_multinomial(x)

    def support(self, conditioner: Any = None) -> Support:
        return CountVectors(int(conditioner))

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        return True

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        p = params[0]
        return bool(np.all(p > 0) and np.isclose(p.sum(), 1.0, rtol=0, atol=1e-8))

    def mismatched_product_log_partition(self, left_conditioner, right_conditioner):
        if left_conditioner != right_conditioner:
            return None
        return MultinomialProductLogPartition(int(left_conditioner), factors=2)

    def matched_product_log_partition(self, conditioner):
        return MultinomialProductLogPartition(int(conditioner))


@dataclass(frozen=True)
class MultinomialProductLogPartition:
    """
    Log partition of the product of two Multinomials with ``n`` trials.

    .. math::
        A(\\eta) = \\log \\sum_{|x| = n}
        \\left(\\frac{n!}{\\prod_i x_i!}\\right)^2 e^{\\eta^T x}

    The summand factorizes over categories, so the sum is a convolution
    evaluated category by category in the log domain, :math:`O(k n^2)`
    operations for :math:`k` categories. ``factors`` is the number of
    natural vectors concatenated in the argument; they are summed first.
    """

    n: int
    factors: int = 1

    def __call__(self, eta: ArrayLike) -> float:
        eta = np.asarray(eta, dtype=float).reshape(self.factors, -1).sum(axis=0)
        counts = np.arange(self.n + 1, dtype=float)
        log_conv = np.full(self.n + 1, -np.inf)
        log_conv[0] = 0.0
        for eta_i in eta:
            terms = eta_i * counts - 2 * gammaln(counts + 1)
            log_conv = np.array([
                logsumexp(log_conv[m::-1] + terms[:m + 1]) for m in range(self.n + 1)
            ])
        return float(2 * gammaln(self.n + 1) + log_conv[self.n])


__all__ = ["MultinomialFamily", "MultinomialProductLogPartition"]
