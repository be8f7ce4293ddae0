"""
Generic functional representation of unnormalized products.

When two members of one family with different conditioners are multiplied,
the result is generally not a member of the family. It is still an
exponential family, materialized directly:

.. math::
    p(x) \\propto h_1(x) h_2(x) \\exp(\\langle (\\eta_1, \\eta_2),
    (T_1(x), T_2(x)) \\rangle - A(\\eta_1, \\eta_2))

The natural parameters are the *concatenation* of the factors' vectors. The
base measure and sufficient statistics are explicit structs holding each
factor's family and conditioner by value (:class:`Component`), not closures.

Families whose base measure depends on :math:`x` need the same form even
when conditioners match: the statistics coincide, so the natural parameters
add, but the base measure is :math:`h(x)^2`
(:meth:`GenericExponentialFamily.from_matched_product`).

The log partition is supplied either by the family (a closed form, see
:meth:`~expofam.base.family.ExponentialFamily.mismatched_product_log_partition`
and :meth:`~expofam.base.family.ExponentialFamily.matched_product_log_partition`)
or by :class:`NumericalLogPartition`, which integrates with
``scipy.integrate.quad`` over real intervals and sums in log domain over
finite integer supports.

Every additional factor adds a component and lengthens the vectors, so
repeated mismatched products are slow; keep them out of inner loops.
"""

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Callable, Optional, Tuple
import warnings

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.integrate import quad
from scipy.special import logsumexp

from expofam.base.entity import ExponentialFamilyDistribution, Representation
from expofam.base.family import ExponentialFamily
from expofam.base.support import IntegerInterval, RealInterval, Support
from expofam.errors import NumericalAccuracyWarning, UnsupportedOperation
from expofam.utils.differentiate import numerical_gradient, numerical_hessian

#: Sub-interval limit handed to ``scipy.integrate.quad``.
DEFAULT_QUAD_LIMIT = 200

#: Relative error above which a numerical log partition triggers a warning.
DEFAULT_QUAD_RTOL = 1e-6

#: Terms summed at most over an unbounded integer support.
DEFAULT_MAX_TERMS = 100_000


@dataclass(frozen=True)
class Component:
    """One factor of a generic product: its family, conditioner and size."""

    family: ExponentialFamily
    conditioner: Any
    size: int

    def sufficient_statistics(self, x: ArrayLike) -> NDArray:
        return np.asarray(self.family.sufficient_statistics(x, self.conditioner), dtype=float)

    def log_base_measure(self, x: ArrayLike) -> float:
        return float(self.family.log_base_measure(x, self.conditioner))


@dataclass(frozen=True)
class ProductBaseMeasure:
    """:math:`h(x) = \\prod_i h_i(x)` over the components."""

    components: Tuple[Component, ...]

    def log(self, x: ArrayLike) -> float:
        return sum(c.log_base_measure(x) for c in self.components)

    def __call__(self, x: ArrayLike) -> float:
        return float(np.exp(self.log(x)))


@dataclass(frozen=True)
class ConcatenatedStatistics:
    """
    :math:`T(x) = (T_1(x), T_2(x), \\ldots)` over statistic blocks.

    The blocks are the components whose natural parameters are kept
    separate. A matched product has one block but two base-measure
    components.
    """

    components: Tuple[Component, ...]

    @property
    def size(self) -> int:
        return sum(c.size for c in self.components)

    def __call__(self, x: ArrayLike) -> NDArray:
        return np.concatenate([c.sufficient_statistics(x) for c in self.components])


def _scan_points(lower: float, upper: float) -> NDArray:
    """Points inside an interval used to locate the integrand's scale."""
    offsets = np.logspace(-3, 3, 49)
    if np.isfinite(lower) and np.isfinite(upper):
        return np.linspace(lower, upper, 67)[1:-1]
    if np.isfinite(lower):
        return lower + offsets
    if np.isfinite(upper):
        return upper - offsets
    return np.concatenate([-offsets[::-1], [0.0], offsets])


@dataclass(frozen=True)
class NumericalLogPartition:
    """
    Log partition of a generic product evaluated numerically.

    Continuous supports must be a :class:`RealInterval`; the integrand is
    shifted by its largest value on a scan grid before ``quad`` so that
    large natural parameters do not overflow. Integer supports are summed
    with ``logsumexp``. Other supports raise
    :class:`~expofam.errors.UnsupportedOperation` at construction.
    """

    support: Support
    base_measure: ProductBaseMeasure
    statistics: ConcatenatedStatistics
    quad_limit: int = DEFAULT_QUAD_LIMIT
    rtol: float = DEFAULT_QUAD_RTOL
    max_terms: int = DEFAULT_MAX_TERMS

    def __post_init__(self):
        if not isinstance(self.support, (IntegerInterval, RealInterval)):
            raise UnsupportedOperation(
                f"Numerical log partition needs an interval support, got {self.support!r}"
            )

    def log_integrand(self, eta: NDArray, x: float) -> float:
        if not self.support.contains(x):
            return -np.inf
        return self.base_measure.log(x) + float(np.dot(eta, self.statistics(x)))

    def __call__(self, eta: ArrayLike) -> float:
        eta = np.asarray(eta, dtype=float)
        if isinstance(self.support, IntegerInterval):
            return self._sum(eta)
        return self._integrate(eta)

    def _sum(self, eta: NDArray) -> float:
        lower, upper = self.support.endpoints
        if np.isfinite(upper):
            points = self.support.points()
            return float(logsumexp([self.log_integrand(eta, x) for x in points]))
        terms = []
        for k in range(self.max_terms):
            terms.append(self.log_integrand(eta, lower + k))
            if k > 10 and terms[-1] < max(terms) - 40.0 and terms[-1] < terms[-2]:
                break
        else:
            warnings.warn(
                f"Log partition summation stopped after {self.max_terms} terms",
                NumericalAccuracyWarning,
                stacklevel=3,
            )
        return float(logsumexp(terms))

    def _integrate(self, eta: NDArray) -> float:
        lower, upper = self.support.endpoints
        scanned = [self.log_integrand(eta, x) for x in _scan_points(lower, upper)]
        finite = [v for v in scanned if np.isfinite(v)]
        shift = max(finite) if finite else 0.0

        def integrand(x):
            return np.exp(self.log_integrand(eta, x) - shift)

        result = quad(integrand, lower, upper, limit=self.quad_limit, full_output=1)
        value, abserr = result[0], result[1]
        if len(result) > 3 or (value > 0 and abserr > self.rtol * value + 1e-300):
            warnings.warn(
                f"Numerical log partition may be inaccurate (integral {value:.3e}, "
                f"error estimate {abserr:.1e})",
                NumericalAccuracyWarning,
                stacklevel=3,
            )
        if not value > 0:
            return -np.inf
        return float(np.log(value) + shift)


def _components_of(obj) -> Tuple[Component, ...]:
    if isinstance(obj, GenericExponentialFamily):
        return obj.components
    return (Component(obj.family, obj.conditioner, obj.natural_parameters.size),)


def _blocks_of(obj) -> Tuple[Component, ...]:
    if isinstance(obj, GenericExponentialFamily):
        return obj.sufficient_statistics_function.components
    return _components_of(obj)


class GenericExponentialFamily:
    """
    Unnormalized product materialized in the universal exponential-family
    form.

    Parameters
    ----------
    family : ExponentialFamily
        Family shared by all factors.
    components : tuple of Component
        The factors' families and conditioners, in order. Their base
        measures multiply.
    natural_parameters : array_like
        Natural parameters, one block per statistic block of
        ``sufficient_statistics``.
    support : Support
        Intersection of the factors' supports.
    base_measure : ProductBaseMeasure
        Combined base measure.
    sufficient_statistics : ConcatenatedStatistics
        Combined sufficient statistics.
    log_partition_function : callable
        Maps a natural vector to :math:`A`.

    Notes
    -----
    Instances are terminal: no conversion back to a standard distribution
    exists. They can be multiplied again with members of the same family or
    other generic representations of it, and they are not serializable
    data.
    """

    representation = Representation.GENERIC

    _cached_attrs: Tuple[str, ...] = ('log_partition',)

    def __init__(
        self,
        family: ExponentialFamily,
        components: Tuple[Component, ...],
        natural_parameters: ArrayLike,
        support: Support,
        base_measure: ProductBaseMeasure,
        sufficient_statistics: ConcatenatedStatistics,
        log_partition_function: Callable[[NDArray], float],
    ):
        eta = np.asarray(natural_parameters, dtype=float)
        if eta.ndim != 1 or eta.size != sufficient_statistics.size:
            raise ValueError(
                f"Natural parameters of shape {eta.shape} do not match the "
                f"statistics' total size {sufficient_statistics.size}"
            )
        self._family = family
        self._components = tuple(components)
        self._eta = eta
        self._support = support
        self._base_measure = base_measure
        self._statistics = sufficient_statistics
        self._log_partition_function = log_partition_function

    @classmethod
    def from_product(
        cls,
        left,
        right,
        log_partition_function: Optional[Callable[[NDArray], float]] = None,
    ) -> 'GenericExponentialFamily':
        """
        Build the unnormalized product of two factors of one family.

        Each factor is an :class:`ExponentialFamilyDistribution` or a
        :class:`GenericExponentialFamily`. For two entities the family's
        closed-form mismatched log partition is used when it provides one.

        Raises
        ------
        UnsupportedOperation
            If no closed form applies and the support is not an interval.
        """
        components = _components_of(left) + _components_of(right)
        blocks = _blocks_of(left) + _blocks_of(right)
        family = left.family
        support = left.support.intersect(right.support)
        base_measure = ProductBaseMeasure(components)
        statistics = ConcatenatedStatistics(blocks)
        if log_partition_function is None and len(components) == 2 and len(blocks) == 2:
            log_partition_function = family.mismatched_product_log_partition(
                components[0].conditioner, components[1].conditioner
            )
        if log_partition_function is None:
            log_partition_function = NumericalLogPartition(support, base_measure, statistics)
        eta = np.concatenate([
            np.asarray(left.natural_parameters, dtype=float),
            np.asarray(right.natural_parameters, dtype=float),
        ])
        return cls(family, components, eta, support, base_measure, statistics,
                   log_partition_function)

    @classmethod
    def from_matched_product(
        cls,
        left: ExponentialFamilyDistribution,
        right: ExponentialFamilyDistribution,
    ) -> 'GenericExponentialFamily':
        """
        Product of two entities with equal conditioners in a family whose
        base measure depends on :math:`x`.

        .. math::
            p(x) \\propto h(x)^2 \\exp((\\eta_1 + \\eta_2)^T T(x))

        The statistics are shared, so the natural parameters add. The log
        partition is the family's
        :meth:`~expofam.base.family.ExponentialFamily.matched_product_log_partition`
        or, without one, a :class:`NumericalLogPartition`.
        """
        factor = _components_of(left)
        components = factor + _components_of(right)
        family = left.family
        support = left.support
        base_measure = ProductBaseMeasure(components)
        statistics = ConcatenatedStatistics(factor)
        log_partition_function = family.matched_product_log_partition(left.conditioner)
        if log_partition_function is None:
            log_partition_function = NumericalLogPartition(support, base_measure, statistics)
        eta = (np.asarray(left.natural_parameters, dtype=float)
               + np.asarray(right.natural_parameters, dtype=float))
        return cls(family, components, eta, support, base_measure, statistics,
                   log_partition_function)

    # ============================================================
    # Accessors
    # ============================================================

    @property
    def family(self) -> ExponentialFamily:
        return self._family

    @property
    def components(self) -> Tuple[Component, ...]:
        return self._components

    @property
    def conditioners(self) -> Tuple[Any, ...]:
        return tuple(c.conditioner for c in self._components)

    @property
    def natural_parameters(self) -> NDArray:
        return self._eta

    @property
    def support(self) -> Support:
        return self._support

    @property
    def base_measure_function(self) -> ProductBaseMeasure:
        return self._base_measure

    @property
    def sufficient_statistics_function(self) -> ConcatenatedStatistics:
        return self._statistics

    @property
    def log_partition_function(self) -> Callable[[NDArray], float]:
        return self._log_partition_function

    # ============================================================
    # Density
    # ============================================================

    @cached_property
    def log_partition(self) -> float:
        """:math:`A(\\eta)` of the combined form (cached)."""
        return float(self._log_partition_function(self._eta))

    def sufficient_statistics(self, x: ArrayLike) -> NDArray:
        return self._statistics(x)

    def log_base_measure(self, x: ArrayLike) -> float:
        return self._base_measure.log(x)

    def base_measure(self, x: ArrayLike) -> float:
        return self._base_measure(x)

    def insupport(self, x: ArrayLike) -> bool:
        return self._support.contains(x)

    def unnormalized_logpdf(self, x: ArrayLike) -> float:
        """:math:`\\log h(x) + \\eta^T T(x)`, without the log partition."""
        if not self.insupport(x):
            return -np.inf
        return self.log_base_measure(x) + float(np.dot(self._eta, self.sufficient_statistics(x)))

    def logpdf(self, x: ArrayLike) -> float:
        """Normalized log density; ``-inf`` outside the support."""
        value = self.unnormalized_logpdf(x)
        if value == -np.inf:
            return value
        return value - self.log_partition

    def pdf(self, x: ArrayLike) -> float:
        return float(np.exp(self.logpdf(x)))

    def is_proper(self) -> bool:
        """Finite natural parameters and a finite log partition."""
        return bool(np.all(np.isfinite(self._eta)) and np.isfinite(self.log_partition))

    # ============================================================
    # Information geometry
    # ============================================================

    def grad_log_partition(self) -> NDArray:
        """Numerical gradient of the log partition (expectation parameters)."""
        return numerical_gradient(self._log_partition_function, self._eta)

    def fisher_information(self) -> NDArray:
        """Numerical Hessian of the log partition."""
        return numerical_hessian(self._log_partition_function, self._eta)

    def __mul__(self, other):
        from expofam.product import prod
        return prod(self, other)

    def __rmul__(self, other):
        from expofam.product import prod
        return prod(other, self)

    def __repr__(self) -> str:
        return (
            f"GenericExponentialFamily({self._family.name}, "
            f"conditioners={self.conditioners!r}, support={self._support})"
        )


def is_generic(obj) -> bool:
    """Whether ``obj`` is a generic functional representation."""
    return getattr(obj, "representation", None) is Representation.GENERIC


def is_named(obj) -> bool:
    """Whether ``obj`` is a named-family entity."""
    return isinstance(obj, ExponentialFamilyDistribution)


__all__ = [
    "Component",
    "ProductBaseMeasure",
    "ConcatenatedStatistics",
    "NumericalLogPartition",
    "GenericExponentialFamily",
    "is_generic",
    "is_named",
    "DEFAULT_QUAD_LIMIT",
    "DEFAULT_QUAD_RTOL",
    "DEFAULT_MAX_TERMS",
]
