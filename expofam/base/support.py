"""
Support domains of exponential-family members.

A support is a predicate over single observations ``x`` together with an
intersection rule, which the generic product uses to build the support of a
combined density. Intervals on the real line and on the integers also expose
their endpoints so that log-partitions can be computed numerically over them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from expofam.utils.linalg import is_positive_definite


def _is_scalar_number(x) -> bool:
    return np.ndim(x) == 0 and np.isreal(x) and not np.isnan(x)


class Support(ABC):
    """
    Abstract support domain.

    Subclasses implement :meth:`contains`. ``x in support`` is equivalent.
    """

    is_discrete = False

    @abstractmethod
    def contains(self, x) -> bool:
        """Return True if the single observation ``x`` lies in the domain."""
        raise NotImplementedError()

    def __contains__(self, x) -> bool:
        return bool(self.contains(x))

    def intersect(self, other: "Support") -> "Support":
        """Domain of points contained in both ``self`` and ``other``."""
        if self == other:
            return self
        return IntersectionSupport((self, other))


@dataclass(frozen=True)
class RealInterval(Support):
    """
    Interval of the real line, e.g. ``[0, inf)``.

    Attributes
    ----------
    lower, upper : float
        Endpoints, possibly infinite.
    left_closed, right_closed : bool
        Whether each endpoint belongs to the interval.
    """

    lower: float = -np.inf
    upper: float = np.inf
    left_closed: bool = True
    right_closed: bool = True

    def contains(self, x) -> bool:
        if not _is_scalar_number(x):
            return False
        x = float(np.real(x))
        above = x >= self.lower if self.left_closed else x > self.lower
        below = x <= self.upper if self.right_closed else x < self.upper
        return above and below

    def intersect(self, other: Support) -> Support:
        if not isinstance(other, RealInterval):
            return super().intersect(other)
        if self.lower > other.lower:
            lower, left_closed = self.lower, self.left_closed
        elif self.lower < other.lower:
            lower, left_closed = other.lower, other.left_closed
        else:
            lower, left_closed = self.lower, self.left_closed and other.left_closed
        if self.upper < other.upper:
            upper, right_closed = self.upper, self.right_closed
        elif self.upper > other.upper:
            upper, right_closed = other.upper, other.right_closed
        else:
            upper, right_closed = self.upper, self.right_closed and other.right_closed
        return RealInterval(lower, upper, left_closed, right_closed)

    @property
    def endpoints(self) -> Tuple[float, float]:
        return self.lower, self.upper

    def __str__(self) -> str:
        left = "[" if self.left_closed else "("
        right = "]" if self.right_closed else ")"
        return f"{left}{self.lower}, {self.upper}{right}"


@dataclass(frozen=True)
class IntegerInterval(Support):
    """Integers ``lower, lower + 1, ..., upper`` (bounds may be infinite)."""

    lower: float = 0
    upper: float = np.inf

    is_discrete = True

    def contains(self, x) -> bool:
        if not _is_scalar_number(x):
            return False
        x = float(np.real(x))
        return x.is_integer() and self.lower <= x <= self.upper

    def intersect(self, other: Support) -> Support:
        if not isinstance(other, IntegerInterval):
            return super().intersect(other)
        return IntegerInterval(max(self.lower, other.lower), min(self.upper, other.upper))

    @property
    def endpoints(self) -> Tuple[float, float]:
        return self.lower, self.upper

    def points(self) -> np.ndarray:
        """All integers of a finite interval, as floats."""
        if not (np.isfinite(self.lower) and np.isfinite(self.upper)):
            raise ValueError(f"Cannot enumerate unbounded integer interval {self}")
        return np.arange(self.lower, self.upper + 1, dtype=float)

    def __str__(self) -> str:
        return f"{{{self.lower}, ..., {self.upper}}}"


@dataclass(frozen=True)
class RealVectors(Support):
    """Finite real vectors of length ``dim`` (any length when None)."""

    dim: Optional[int] = None

    def contains(self, x) -> bool:
        x = np.asarray(x)
        if x.ndim != 1 or (self.dim is not None and x.shape != (self.dim,)):
            return False
        return bool(np.all(np.isfinite(x)))


@dataclass(frozen=True)
class ProbabilitySimplex(Support):
    """Strictly positive vectors of length ``dim`` summing to one."""

    dim: Optional[int] = None
    atol: float = 1e-8

    def contains(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        if x.ndim != 1 or x.size < 2 or (self.dim is not None and x.shape != (self.dim,)):
            return False
        return bool(np.all(x > 0) and abs(x.sum() - 1.0) <= self.atol)


@dataclass(frozen=True)
class CountVectors(Support):
    """Non-negative integer vectors of length ``dim`` summing to ``total``."""

    total: int
    dim: Optional[int] = None

    is_discrete = True

    def contains(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        if x.ndim != 1 or (self.dim is not None and x.shape != (self.dim,)):
            return False
        if not np.all(np.isfinite(x)):
            return False
        return bool(
            np.all(x >= 0) and np.all(x == np.round(x)) and x.sum() == self.total
        )


@dataclass(frozen=True)
class PositiveDefiniteMatrices(Support):
    """Symmetric positive definite ``dim x dim`` matrices (any size when None)."""

    dim: Optional[int] = None

    def contains(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        if x.ndim != 2 or x.shape[0] != x.shape[1]:
            return False
        if self.dim is not None and x.shape[0] != self.dim:
            return False
        return is_positive_definite(x)


@dataclass(frozen=True)
class TensorSimplex(Support):
    """
    Arrays of a fixed shape whose every slice ``x[:, i, j, ...]`` lies in the
    probability simplex.
    """

    shape: Tuple[int, ...]
    atol: float = 1e-8

    def contains(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        if x.shape != tuple(self.shape):
            return False
        return bool(np.all(x > 0) and np.all(np.abs(x.sum(axis=0) - 1.0) <= self.atol))


@dataclass(frozen=True)
class CartesianSupport(Support):
    """
    Tuples ``(x_1, ..., x_k)`` whose ``i``-th entry lies in ``parts[i]``,
    e.g. a mean vector paired with a precision matrix.
    """

    parts: Tuple[Support, ...]

    def contains(self, x) -> bool:
        if not isinstance(x, (tuple, list)) or len(x) != len(self.parts):
            return False
        return all(part.contains(item) for part, item in zip(self.parts, x))

    @property
    def is_discrete(self) -> bool:
        return all(part.is_discrete for part in self.parts)


@dataclass(frozen=True)
class IntersectionSupport(Support):
    """Points contained in every member of ``parts``."""

    parts: Tuple[Support, ...]

    def contains(self, x) -> bool:
        return all(part.contains(x) for part in self.parts)

    def intersect(self, other: Support) -> Support:
        if other in self.parts:
            return self
        return IntersectionSupport(self.parts + (other,))

    @property
    def is_discrete(self) -> bool:
        return any(part.is_discrete for part in self.parts)


__all__ = [
    "Support",
    "RealInterval",
    "IntegerInterval",
    "RealVectors",
    "ProbabilitySimplex",
    "CountVectors",
    "PositiveDefiniteMatrices",
    "TensorSimplex",
    "CartesianSupport",
    "IntersectionSupport",
]
