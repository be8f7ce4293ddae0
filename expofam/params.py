"""
Standard distributions as frozen dataclass value objects.

Each distribution's conventional parameters are held in a frozen dataclass
with ``slots=True``. Family invariants (positivity of shapes and rates,
positive definiteness of scale matrices, probability vectors summing to one)
are checked at construction and reported with
:class:`~expofam.errors.DomainError`. This provides:

- **Attribute and dict access**: ``d.shape`` or ``d['shape']``
- **Immutability**: fields cannot be reassigned and array fields are
  read-only
- **Parameter tuples**: ``d.params()`` returns the fields in order, which
  is what families consume

Examples
--------
>>> from expofam.params import Gamma
>>> d = Gamma(shape=2.0, rate=1.5)
>>> d.params()
(2.0, 1.5)
>>> Gamma(shape=-1.0, rate=1.0)  # Raises DomainError

Notes
-----
Values are promoted at construction: scalars become Python ``float`` (or
``int`` for trial counts and Erlang shapes), arrays become read-only
``float64`` arrays. Equality is exact and field-by-field; use
:meth:`isclose` for tolerance-based comparison.
"""

from dataclasses import dataclass, fields
from typing import Tuple

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from expofam.errors import DomainError
from expofam.utils.linalg import is_positive_definite


class _ParamsBase:
    """Mixin providing dict-style access and array-aware comparison.

    Allows both ``d.shape`` and ``d['shape']`` access styles,
    plus ``items()``, ``keys()``, ``values()`` for iteration.
    """

    __slots__ = ()

    def __getitem__(self, key: str):
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key)

    def __contains__(self, key: str) -> bool:
        return hasattr(self, key)

    def keys(self):
        """Yield field names."""
        return (f.name for f in fields(self))

    def values(self):
        """Yield field values."""
        return (getattr(self, f.name) for f in fields(self))

    def items(self):
        """Yield ``(name, value)`` pairs."""
        return ((f.name, getattr(self, f.name)) for f in fields(self))

    def params(self) -> tuple:
        """Conventional parameters as a tuple, in field order."""
        return tuple(self.values())

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return all(np.array_equal(a, b) for a, b in zip(self.values(), other.values()))

    __hash__ = None

    def isclose(self, other, rtol: float = 1e-8, atol: float = 1e-10) -> bool:
        """Field-by-field ``np.allclose`` against a distribution of the same type."""
        if type(other) is not type(self):
            return False
        return all(
            np.shape(a) == np.shape(b) and np.allclose(a, b, rtol=rtol, atol=atol)
            for a, b in zip(self.values(), other.values())
        )


# ============================================================================
# Validation helpers
# ============================================================================

def _set(obj, name, value):
    object.__setattr__(obj, name, value)


def _positive_scalar(obj, name: str) -> None:
    value = float(getattr(obj, name))
    if not (np.isfinite(value) and value > 0):
        raise DomainError(
            f"{type(obj).__name__}: {name} must be positive and finite, got {value}"
        )
    _set(obj, name, value)


def _finite_scalar(obj, name: str) -> None:
    value = float(getattr(obj, name))
    if not np.isfinite(value):
        raise DomainError(f"{type(obj).__name__}: {name} must be finite, got {value}")
    _set(obj, name, value)


def _positive_integer(obj, name: str) -> None:
    value = getattr(obj, name)
    as_float = float(value)
    if isinstance(value, (bool, np.bool_)) or not np.isfinite(as_float) \
            or as_float != round(as_float) or as_float < 1:
        raise DomainError(
            f"{type(obj).__name__}: {name} must be a positive integer, got {value}"
        )
    _set(obj, name, int(value))


def _probability(obj, name: str) -> None:
    value = float(getattr(obj, name))
    if not 0.0 <= value <= 1.0:
        raise DomainError(f"{type(obj).__name__}: {name} must lie in [0, 1], got {value}")
    _set(obj, name, value)


def _readonly(arr) -> NDArray:
    arr = np.array(arr, dtype=float)
    arr.setflags(write=False)
    return arr


def _positive_array(obj, name: str, ndim_min: int = 1) -> NDArray:
    arr = _readonly(getattr(obj, name))
    if arr.ndim < ndim_min or arr.shape[0] < 2:
        raise DomainError(
            f"{type(obj).__name__}: {name} needs at least two categories along "
            f"the first axis, got shape {arr.shape}"
        )
    if not np.all(np.isfinite(arr) & (arr > 0)):
        raise DomainError(f"{type(obj).__name__}: all entries of {name} must be positive")
    _set(obj, name, arr)
    return arr


def _pd_matrix(obj, name: str) -> NDArray:
    arr = _readonly(getattr(obj, name))
    if not is_positive_definite(arr):
        raise DomainError(
            f"{type(obj).__name__}: {name} must be a symmetric positive definite matrix"
        )
    _set(obj, name, arr)
    return arr


def _finite_vector(obj, name: str) -> NDArray:
    arr = _readonly(np.atleast_1d(getattr(obj, name)))
    if arr.ndim != 1 or not np.all(np.isfinite(arr)):
        raise DomainError(f"{type(obj).__name__}: {name} must be a finite vector")
    _set(obj, name, arr)
    return arr


def _square_of_size(obj, matrix: NDArray, size: int) -> None:
    if matrix.shape != (size, size):
        raise DomainError(
            f"{type(obj).__name__}: matrix shape {matrix.shape} does not "
            f"match vector length {size}"
        )


# ============================================================================
# Univariate distributions
# ============================================================================

@dataclass(frozen=True, slots=True, eq=False)
class Exponential(_ParamsBase):
    """
    Exponential distribution.

    Attributes
    ----------
    rate : float
        Rate parameter :math:`\\lambda > 0`.
    """
    rate: float

    def __post_init__(self):
        _positive_scalar(self, "rate")

    def to_scipy(self):
        return stats.expon(scale=1.0 / self.rate)


@dataclass(frozen=True, slots=True, eq=False)
class Gamma(_ParamsBase):
    """
    Gamma distribution in the shape/rate parameterization.

    Attributes
    ----------
    shape : float
        Shape parameter :math:`\\alpha > 0`.
    rate : float
        Rate parameter :math:`\\beta > 0`.
    """
    shape: float
    rate: float

    def __post_init__(self):
        _positive_scalar(self, "shape")
        _positive_scalar(self, "rate")

    def to_scipy(self):
        return stats.gamma(a=self.shape, scale=1.0 / self.rate)


@dataclass(frozen=True, slots=True, eq=False)
class Erlang(_ParamsBase):
    """
    Erlang distribution: a Gamma with integer shape, in shape/scale form.

    Attributes
    ----------
    shape : int
        Number of exponential stages :math:`k \\ge 1`.
    scale : float
        Scale parameter :math:`\\theta > 0`.
    """
    shape: int
    scale: float

    def __post_init__(self):
        _positive_integer(self, "shape")
        _positive_scalar(self, "scale")

    def to_scipy(self):
        return stats.erlang(a=self.shape, scale=self.scale)


@dataclass(frozen=True, slots=True, eq=False)
class Beta(_ParamsBase):
    """
    Beta distribution.

    Attributes
    ----------
    a, b : float
        Positive shape parameters.
    """
    a: float
    b: float

    def __post_init__(self):
        _positive_scalar(self, "a")
        _positive_scalar(self, "b")

    def to_scipy(self):
        return stats.beta(self.a, self.b)


@dataclass(frozen=True, slots=True, eq=False)
class Bernoulli(_ParamsBase):
    """
    Bernoulli distribution.

    Attributes
    ----------
    p : float
        Success probability in :math:`[0, 1]`.
    """
    p: float

    def __post_init__(self):
        _probability(self, "p")

    def to_scipy(self):
        return stats.bernoulli(self.p)


@dataclass(frozen=True, slots=True, eq=False)
class Binomial(_ParamsBase):
    """
    Binomial distribution.

    Attributes
    ----------
    n : int
        Number of trials (the conditioner of the family).
    p : float
        Success probability in :math:`[0, 1]`.
    """
    n: int
    p: float

    def __post_init__(self):
        _positive_integer(self, "n")
        _probability(self, "p")

    def to_scipy(self):
        return stats.binom(self.n, self.p)


@dataclass(frozen=True, slots=True, eq=False)
class Laplace(_ParamsBase):
    """
    Laplace distribution.

    Attributes
    ----------
    loc : float
        Location (the conditioner of the family).
    scale : float
        Scale :math:`b > 0`.
    """
    loc: float
    scale: float

    def __post_init__(self):
        _finite_scalar(self, "loc")
        _positive_scalar(self, "scale")

    def to_scipy(self):
        return stats.laplace(loc=self.loc, scale=self.scale)


@dataclass(frozen=True, slots=True, eq=False)
class NormalMeanVariance(_ParamsBase):
    """
    Univariate normal distribution in the mean/variance parameterization.

    Attributes
    ----------
    mean : float
        Mean :math:`\\mu`.
    var : float
        Variance :math:`v > 0`.
    """
    mean: float
    var: float

    def __post_init__(self):
        _finite_scalar(self, "mean")
        _positive_scalar(self, "var")

    def to_scipy(self):
        return stats.norm(loc=self.mean, scale=np.sqrt(self.var))


@dataclass(frozen=True, slots=True, eq=False)
class NormalMeanPrecision(_ParamsBase):
    """
    Univariate normal distribution in the mean/precision parameterization.

    Attributes
    ----------
    mean : float
        Mean :math:`\\mu`.
    precision : float
        Precision :math:`w = 1/v > 0`.
    """
    mean: float
    precision: float

    def __post_init__(self):
        _finite_scalar(self, "mean")
        _positive_scalar(self, "precision")

    def to_scipy(self):
        return stats.norm(loc=self.mean, scale=1.0 / np.sqrt(self.precision))


@dataclass(frozen=True, slots=True, eq=False)
class NormalWeightedMeanPrecision(_ParamsBase):
    """
    Univariate normal distribution in the weighted-mean/precision
    parameterization, :math:`\\xi = w\\mu`.
    """
    xi: float
    precision: float

    def __post_init__(self):
        _finite_scalar(self, "xi")
        _positive_scalar(self, "precision")

    def to_scipy(self):
        return stats.norm(loc=self.xi / self.precision,
                          scale=1.0 / np.sqrt(self.precision))


@dataclass(frozen=True, slots=True, eq=False)
class Rayleigh(_ParamsBase):
    """
    Rayleigh distribution.

    Attributes
    ----------
    scale : float
        Scale :math:`\\sigma > 0`.
    """
    scale: float

    def __post_init__(self):
        _positive_scalar(self, "scale")

    def to_scipy(self):
        return stats.rayleigh(scale=self.scale)


# ============================================================================
# Multivariate distributions
# ============================================================================

@dataclass(frozen=True, slots=True, eq=False)
class MvNormalMeanCovariance(_ParamsBase):
    """
    Multivariate normal distribution in the mean/covariance parameterization.

    Attributes
    ----------
    mean : ndarray, shape (d,)
        Mean vector :math:`\\mu`.
    cov : ndarray, shape (d, d)
        Covariance matrix :math:`\\Sigma` (symmetric positive definite).
    """
    mean: NDArray
    cov: NDArray

    def __post_init__(self):
        mean = _finite_vector(self, "mean")
        _square_of_size(self, _pd_matrix(self, "cov"), mean.size)

    @property
    def dim(self) -> int:
        return self.mean.size

    def to_scipy(self):
        return stats.multivariate_normal(mean=self.mean, cov=self.cov)


@dataclass(frozen=True, slots=True, eq=False)
class MvNormalMeanPrecision(_ParamsBase):
    """
    Multivariate normal distribution in the mean/precision parameterization.

    Attributes
    ----------
    mean : ndarray, shape (d,)
        Mean vector :math:`\\mu`.
    precision : ndarray, shape (d, d)
        Precision matrix :math:`W = \\Sigma^{-1}` (symmetric positive definite).
    """
    mean: NDArray
    precision: NDArray

    def __post_init__(self):
        mean = _finite_vector(self, "mean")
        _square_of_size(self, _pd_matrix(self, "precision"), mean.size)

    @property
    def dim(self) -> int:
        return self.mean.size

    def to_scipy(self):
        return stats.multivariate_normal(mean=self.mean, cov=np.linalg.inv(self.precision))


@dataclass(frozen=True, slots=True, eq=False)
class MvNormalWeightedMeanPrecision(_ParamsBase):
    """
    Multivariate normal distribution in the weighted-mean/precision
    parameterization.

    Attributes
    ----------
    xi : ndarray, shape (d,)
        Weighted mean :math:`\\xi = W\\mu`.
    precision : ndarray, shape (d, d)
        Precision matrix :math:`W` (symmetric positive definite).
    """
    xi: NDArray
    precision: NDArray

    def __post_init__(self):
        xi = _finite_vector(self, "xi")
        _square_of_size(self, _pd_matrix(self, "precision"), xi.size)

    @property
    def dim(self) -> int:
        return self.xi.size

    def to_scipy(self):
        cov = np.linalg.inv(self.precision)
        return stats.multivariate_normal(mean=cov @ self.xi, cov=cov)


@dataclass(frozen=True, slots=True, eq=False)
class MvNormalWishart(_ParamsBase):
    """
    Normal-Wishart distribution over a mean vector and a precision matrix.

    .. math::
        p(x, \\Lambda) = \\mathcal{N}(x | \\mu, (\\kappa\\Lambda)^{-1})
        \\,\\mathcal{W}(\\Lambda | \\nu, \\Psi)

    Attributes
    ----------
    mean : ndarray, shape (d,)
        Location :math:`\\mu`.
    scale : ndarray, shape (d, d)
        Wishart scale matrix :math:`\\Psi` (symmetric positive definite).
    kappa : float
        Precision scaling :math:`\\kappa > 0`.
    df : float
        Degrees of freedom :math:`\\nu > d - 1`.
    """
    mean: NDArray
    scale: NDArray
    kappa: float
    df: float

    def __post_init__(self):
        mean = _finite_vector(self, "mean")
        _square_of_size(self, _pd_matrix(self, "scale"), mean.size)
        _positive_scalar(self, "kappa")
        _finite_scalar(self, "df")
        if not self.df > mean.size - 1:
            raise DomainError(
                f"MvNormalWishart: df must exceed {mean.size - 1}, got {self.df}"
            )

    @property
    def dim(self) -> int:
        return self.mean.size

    def precision_marginal(self) -> "Wishart":
        """Marginal distribution of the precision matrix."""
        return Wishart(df=self.df, scale=self.scale)

    def conditional(self, precision) -> MvNormalMeanPrecision:
        """Distribution of the vector given the precision matrix."""
        return MvNormalMeanPrecision(mean=self.mean,
                                     precision=self.kappa * np.asarray(precision, dtype=float))


@dataclass(frozen=True, slots=True, eq=False)
class Dirichlet(_ParamsBase):
    """
    Dirichlet distribution.

    Attributes
    ----------
    alpha : ndarray, shape (k,)
        Positive concentration parameters, :math:`k \\ge 2`.
    """
    alpha: NDArray

    def __post_init__(self):
        alpha = _positive_array(self, "alpha")
        if alpha.ndim != 1:
            raise DomainError("Dirichlet: alpha must be a vector")

    def to_scipy(self):
        return stats.dirichlet(self.alpha)


@dataclass(frozen=True, slots=True, eq=False)
class Multinomial(_ParamsBase):
    """
    Multinomial distribution.

    Attributes
    ----------
    n : int
        Number of trials (the conditioner of the family).
    p : ndarray, shape (k,)
        Category probabilities summing to one.
    """
    n: int
    p: NDArray

    def __post_init__(self):
        _positive_integer(self, "n")
        p = _readonly(self.p)
        if p.ndim != 1 or p.size < 2:
            raise DomainError("Multinomial: p must be a vector of at least two probabilities")
        if not (np.all(p >= 0) and np.isclose(p.sum(), 1.0, rtol=0, atol=1e-8)):
            raise DomainError("Multinomial: p must be non-negative and sum to one")
        _set(self, "p", p)

    def to_scipy(self):
        return stats.multinomial(self.n, self.p)


# ============================================================================
# Matrix distributions
# ============================================================================

@dataclass(frozen=True, slots=True, eq=False)
class Wishart(_ParamsBase):
    """
    Wishart distribution.

    Attributes
    ----------
    df : float
        Degrees of freedom :math:`\\nu > p - 1`.
    scale : ndarray, shape (p, p)
        Scale matrix :math:`V` (symmetric positive definite).
    """
    df: float
    scale: NDArray

    def __post_init__(self):
        scale = _pd_matrix(self, "scale")
        _finite_scalar(self, "df")
        if not self.df > scale.shape[0] - 1:
            raise DomainError(
                f"Wishart: df must exceed {scale.shape[0] - 1}, got {self.df}"
            )

    @property
    def dim(self) -> int:
        return self.scale.shape[0]

    def to_scipy(self):
        return stats.wishart(df=self.df, scale=self.scale)


@dataclass(frozen=True, slots=True, eq=False)
class InverseWishart(_ParamsBase):
    """
    Inverse Wishart distribution.

    Attributes
    ----------
    df : float
        Degrees of freedom :math:`\\nu > p - 1`.
    scale : ndarray, shape (p, p)
        Scale matrix :math:`\\Psi` (symmetric positive definite).
    """
    df: float
    scale: NDArray

    def __post_init__(self):
        scale = _pd_matrix(self, "scale")
        _finite_scalar(self, "df")
        if not self.df > scale.shape[0] - 1:
            raise DomainError(
                f"InverseWishart: df must exceed {scale.shape[0] - 1}, got {self.df}"
            )

    @property
    def dim(self) -> int:
        return self.scale.shape[0]

    def to_scipy(self):
        return stats.invwishart(df=self.df, scale=self.scale)


# ============================================================================
# Tensor distributions
# ============================================================================

@dataclass(frozen=True, slots=True, eq=False)
class TensorDirichlet(_ParamsBase):
    """
    Independent Dirichlet distributions stacked in an array.

    The categories run along the first axis: every slice
    ``alpha[:, i, j, ...]`` parameterizes one Dirichlet.

    Attributes
    ----------
    alpha : ndarray, shape (k, ...)
        Positive concentration parameters.
    """
    alpha: NDArray

    def __post_init__(self):
        _positive_array(self, "alpha")

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.alpha.shape

    def slices(self):
        """Yield the per-slice Dirichlet distributions in C order."""
        flat = np.moveaxis(self.alpha, 0, -1).reshape(-1, self.alpha.shape[0])
        return (Dirichlet(row) for row in flat)


__all__ = [
    "Exponential",
    "Gamma",
    "Erlang",
    "Beta",
    "Bernoulli",
    "Binomial",
    "Laplace",
    "NormalMeanVariance",
    "NormalMeanPrecision",
    "NormalWeightedMeanPrecision",
    "Rayleigh",
    "MvNormalMeanCovariance",
    "MvNormalMeanPrecision",
    "MvNormalWeightedMeanPrecision",
    "MvNormalWishart",
    "Dirichlet",
    "Multinomial",
    "Wishart",
    "InverseWishart",
    "TensorDirichlet",
]
