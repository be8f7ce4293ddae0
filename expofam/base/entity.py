"""
Exponential-family entity.

An :class:`ExponentialFamilyDistribution` binds a registered family, a packed
natural parameter vector and an optional conditioner:

.. math::
    p(x|\\eta) = h(x) \\exp(\\eta^T T(x) - A(\\eta))

Entities are created by :func:`convert_to_entity` or by the product
operator. They may be improper: intermediate messages of iterative
inference are allowed to leave the natural domain temporarily, so
construction only checks the structure of the vector and callers check
:meth:`ExponentialFamilyDistribution.is_proper` when it matters.

Derived quantities (log partition, expectation parameters) are cached with
``functools.cached_property``; the in-place product clears them with
``_invalidate_cache()``.
"""

import enum
from functools import cached_property
from typing import Any, Optional, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, DTypeLike, NDArray

from expofam.base.family import ExponentialFamily
from expofam.base.registry import family_of, get_family
from expofam.base.spaces import MEAN, NATURAL, ParametersSpace, as_space
from expofam.base.support import Support
from expofam.errors import DomainError, PropernessViolation, UnsupportedOperation


class Representation(enum.Enum):
    """Distinguishes named-family entities from generic product results."""

    NAMED = "named"
    GENERIC = "generic"


def promote_dtype(dtype: DTypeLike) -> np.dtype:
    """
    Floating dtype used for natural parameters given an input dtype.

    Integers and booleans become ``float64``; floating types of at least
    single precision are kept.

    Raises
    ------
    ValueError
        For complex or non-numeric input.
    """
    dtype = np.dtype(dtype)
    if dtype.kind not in "biuf":
        raise ValueError(f"Natural parameters must be real numbers, got dtype {dtype}")
    return np.result_type(dtype, np.float32)


def conditioners_equal(left: Any, right: Any) -> bool:
    """
    Exact conditioner equality.

    Conditioners are counts, shapes or fixed data, so no tolerance is
    applied: ``1.0`` and ``1.0 + 1e-16`` are different conditioners.
    """
    if left is None or right is None:
        return left is None and right is None
    return bool(np.array_equal(left, right))


class ExponentialFamilyDistribution:
    """
    A member of a registered exponential family in natural parameters.

    Parameters
    ----------
    family : str, type or ExponentialFamily
        Family tag, standard distribution class, or family object.
    natural_parameters : array_like
        Packed natural parameter vector.
    conditioner : optional
        Family conditioner (trial count, location, shape, ...).
    dtype : dtype, optional
        Floating dtype of the stored vector. Defaults to
        :func:`promote_dtype` of the input.

    Raises
    ------
    UnknownFamily
        If ``family`` is not registered.
    ValueError
        If the vector is not 1-D or has a length the family does not
        accept.

    Examples
    --------
    >>> from expofam import Gamma, convert_to_entity
    >>> ef = convert_to_entity(Gamma(shape=1.0, rate=1.0))
    >>> ef.natural_parameters
    array([ 0., -1.])
    >>> ef.log_partition
    0.0
    """

    representation = Representation.NAMED

    _cached_attrs: Tuple[str, ...] = (
        'natural_tuple', 'log_partition', 'expectation_params'
    )

    def __init__(
        self,
        family: Union[str, type, ExponentialFamily],
        natural_parameters: ArrayLike,
        conditioner: Any = None,
        *,
        dtype: Optional[DTypeLike] = None,
    ):
        self._family = get_family(family)
        eta = np.asarray(natural_parameters)
        dtype = promote_dtype(eta.dtype if dtype is None else dtype)
        eta = np.array(eta, dtype=dtype)
        if eta.ndim != 1 or not self._family.has_valid_length(eta.size, conditioner):
            raise ValueError(
                f"{self._family.name}: natural parameters of shape {eta.shape} do "
                f"not match the family layout (conditioner={conditioner!r})"
            )
        self._eta = eta
        self._conditioner = conditioner

    # ============================================================
    # Accessors
    # ============================================================

    @property
    def family(self) -> ExponentialFamily:
        return self._family

    @property
    def natural_parameters(self) -> NDArray:
        """
        Packed natural parameter vector.

        This is the entity's own buffer; mutate it only through
        :func:`~expofam.product.prod_inplace`.
        """
        return self._eta

    @property
    def conditioner(self) -> Any:
        return self._conditioner

    @property
    def dtype(self) -> np.dtype:
        return self._eta.dtype

    def _invalidate_cache(self) -> None:
        for attr in self._cached_attrs:
            self.__dict__.pop(attr, None)

    # ============================================================
    # Derived quantities
    # ============================================================

    @cached_property
    def natural_tuple(self) -> Tuple:
        """Natural parameters unpacked into the family's tuple (cached)."""
        return self._family.unpack_parameters(self._eta, self._conditioner)

    @cached_property
    def log_partition(self) -> float:
        """:math:`A(\\eta)` (cached)."""
        return float(self._family._log_partition(self.natural_tuple, self._conditioner))

    @cached_property
    def expectation_params(self) -> NDArray:
        """:math:`\\nabla A(\\eta) = E[T(X)]` (cached)."""
        return np.asarray(
            self._family._grad_log_partition(self.natural_tuple, self._conditioner),
            dtype=float,
        )

    def grad_log_partition(self, space: Union[ParametersSpace, str] = NATURAL) -> NDArray:
        """Gradient of the log partition in ``space``."""
        if as_space(space) is NATURAL:
            return self.expectation_params.copy()
        packed = self._family.convert(self._eta, self._conditioner, NATURAL, space)
        return self._family.grad_log_partition(packed, self._conditioner, space)

    def fisher_information(self, space: Union[ParametersSpace, str] = NATURAL) -> NDArray:
        """
        Fisher information matrix in ``space``.

        In mean space this is :math:`J^T I(\\eta) J` with :math:`J` the
        Jacobian of the mean-to-natural map.
        """
        packed = self._family.convert(self._eta, self._conditioner, NATURAL, space)
        return self._family.fisher_information(packed, self._conditioner, space)

    def mean_parameters(self) -> Tuple:
        """Conventional parameters without the conditioner."""
        return self._family.natural_to_mean(self.natural_tuple, self._conditioner)

    # ============================================================
    # Density
    # ============================================================

    def sufficient_statistics(self, x: ArrayLike) -> NDArray:
        return self._family.sufficient_statistics(x, self._conditioner)

    def log_base_measure(self, x: ArrayLike) -> float:
        return self._family.log_base_measure(x, self._conditioner)

    def base_measure(self, x: ArrayLike) -> float:
        return self._family.base_measure(x, self._conditioner)

    @property
    def support(self) -> Support:
        return self._family.support(self._conditioner)

    def insupport(self, x: ArrayLike) -> bool:
        return self._family.insupport(x, self._conditioner)

    def logpdf(self, x: ArrayLike) -> float:
        """
        Log density of a single observation.

        Returns ``-inf`` outside the support. For improper entities the
        value is computed but has no probabilistic meaning.
        """
        return self._family.logpdf(
            self._eta, x, self._conditioner, log_partition=self.log_partition
        )

    def pdf(self, x: ArrayLike) -> float:
        """Density: ``exp(logpdf(x))``."""
        return float(np.exp(self.logpdf(x)))

    def is_proper(self) -> bool:
        """Delegates to the family's natural-space properness predicate."""
        return self._family.is_proper(self._eta, self._conditioner, NATURAL)

    # ============================================================
    # Conversions and copies
    # ============================================================

    @classmethod
    def from_distribution(cls, distribution) -> 'ExponentialFamilyDistribution':
        """Same as :func:`convert_to_entity`."""
        return convert_to_entity(distribution)

    def to_distribution(self):
        """Same as :func:`convert_to_distribution`."""
        return convert_to_distribution(self)

    def similar(self) -> 'ExponentialFamilyDistribution':
        """
        Entity of the same family, conditioner and dtype with an
        uninitialized parameter buffer, for use with ``prod_inplace``.
        """
        out = object.__new__(type(self))
        out._family = self._family
        out._eta = np.empty_like(self._eta)
        out._conditioner = self._conditioner
        return out

    def copy(self) -> 'ExponentialFamilyDistribution':
        return type(self)(self._family, self._eta, self._conditioner, dtype=self.dtype)

    def astype(self, dtype: DTypeLike) -> 'ExponentialFamilyDistribution':
        """Copy with natural parameters converted to ``dtype``."""
        return type(self)(self._family, self._eta, self._conditioner, dtype=dtype)

    # ============================================================
    # Comparison and algebra
    # ============================================================

    def __eq__(self, other) -> bool:
        if not isinstance(other, ExponentialFamilyDistribution):
            return NotImplemented
        return (
            self._family is other._family
            and conditioners_equal(self._conditioner, other._conditioner)
            and np.array_equal(self._eta, other._eta)
        )

    __hash__ = None

    def isclose(self, other: 'ExponentialFamilyDistribution',
                rtol: float = 1e-8, atol: float = 1e-10) -> bool:
        """Same family and conditioner, natural parameters within tolerance."""
        return (
            isinstance(other, ExponentialFamilyDistribution)
            and self._family is other._family
            and conditioners_equal(self._conditioner, other._conditioner)
            and self._eta.shape == other._eta.shape
            and np.allclose(self._eta, other._eta, rtol=rtol, atol=atol)
        )

    def __mul__(self, other):
        from expofam.product import prod
        return prod(self, other)

    def __repr__(self) -> str:
        eta = ", ".join(f"{v:.4f}" for v in self._eta[:6])
        if self._eta.size > 6:
            eta += ", ..."
        cond = "" if self._conditioner is None else f", conditioner={self._conditioner!r}"
        return f"ExponentialFamilyDistribution({self._family.name}, η=[{eta}]{cond})"


# ============================================================
# Conversion entry points
# ============================================================

def convert_to_entity(distribution) -> ExponentialFamilyDistribution:
    """
    Convert a standard distribution to its natural-parameter entity.

    Separates the conditioner, maps the conventional parameters to natural
    ones and packs them.

    Raises
    ------
    UnknownFamily
        If the distribution's type has no registered family.
    DomainError
        If the parameters lie outside the family's mean-space domain
        (e.g. a Bernoulli with ``p = 0``).
    """
    family = family_of(distribution)
    params = family.distribution_params(distribution)
    core, conditioner = family.separate_conditioner(params)
    packed_mean = family.pack_parameters(core)
    if not family.is_proper(packed_mean, conditioner, MEAN):
        raise DomainError(
            f"{distribution!r} lies outside the natural domain of {family.name}"
        )
    eta = family.mean_to_natural(core, conditioner)
    return ExponentialFamilyDistribution(family, family.pack_parameters(eta), conditioner)


def convert_to_distribution(entity: ExponentialFamilyDistribution):
    """
    Convert an entity back to its standard distribution.

    Raises
    ------
    PropernessViolation
        If the entity is improper, so that no standard distribution exists.
    DomainError
        If the standard distribution rejects the recovered parameters.
    """
    if not entity.is_proper():
        raise PropernessViolation(f"{entity!r} is improper")
    family = entity.family
    core = family.natural_to_mean(entity.natural_tuple, entity.conditioner)
    return family.build_distribution(family.join_conditioner(core, entity.conditioner))


def convert_distribution(distribution, target):
    """
    Re-express a distribution in another family sharing its natural layout.

    The natural vector and conditioner are kept and read through the
    ``target`` family, e.g. ``NormalMeanVariance`` to
    ``NormalWeightedMeanPrecision``.

    Parameters
    ----------
    distribution : standard distribution or ExponentialFamilyDistribution
        Source. Entities give an entity back.
    target : str, type or ExponentialFamily
        Target family tag, standard distribution class or family.

    Raises
    ------
    UnsupportedOperation
        If the two families do not share a natural layout.

    Examples
    --------
    >>> from expofam import NormalMeanVariance, convert_distribution
    >>> convert_distribution(NormalMeanVariance(mean=1.0, var=0.5), "NormalMeanPrecision")
    NormalMeanPrecision(mean=1.0, precision=2.0)
    """
    target = get_family(target)
    as_entity = isinstance(distribution, ExponentialFamilyDistribution)
    entity = distribution if as_entity else convert_to_entity(distribution)
    if entity.family.natural_layout != target.natural_layout:
        raise UnsupportedOperation(
            f"Cannot convert {entity.family.name} to {target.name}: natural "
            f"layouts {entity.family.natural_layout!r} and {target.natural_layout!r} differ"
        )
    converted = ExponentialFamilyDistribution(
        target, entity.natural_parameters, entity.conditioner, dtype=entity.dtype
    )
    if as_entity:
        return converted
    return convert_to_distribution(converted)


def ensure_proper(entity):
    """Return ``entity`` or raise :class:`PropernessViolation`."""
    if not entity.is_proper():
        raise PropernessViolation(f"{entity!r} is improper")
    return entity


def is_proper(entity) -> bool:
    """Properness predicate of an entity or generic representation."""
    return entity.is_proper()


def logdensity(entity, x: ArrayLike) -> float:
    """Log density of a single observation; ``-inf`` outside the support."""
    return entity.logpdf(x)


def density(entity, x: ArrayLike) -> float:
    """Density of a single observation; zero outside the support."""
    return entity.pdf(x)


__all__ = [
    "Representation",
    "ExponentialFamilyDistribution",
    "promote_dtype",
    "conditioners_equal",
    "convert_to_entity",
    "convert_to_distribution",
    "convert_distribution",
    "ensure_proper",
    "is_proper",
    "logdensity",
    "density",
]
