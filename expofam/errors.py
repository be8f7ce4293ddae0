"""
Exceptions and warning categories raised by expofam.

All exceptions derive from :class:`ExponentialFamilyError` and also from the
closest builtin, so ``except ValueError`` keeps working for callers that do
not know about this package.

Structural problems (wrong vector length, mismatched shapes) are reported
with plain ``ValueError``.
"""


class ExponentialFamilyError(Exception):
    """Base class for all expofam errors."""


class DomainError(ExponentialFamilyError, ValueError):
    """Parameters lie outside the valid region of a conversion."""


class PropernessViolation(DomainError):
    """
    Natural parameters fail the family's properness predicate.

    Improper entities are retained by the core; this error is only raised
    by operations that need a normalizable density, such as conversion back
    to a standard distribution.
    """


class UnsupportedOperation(ExponentialFamilyError, TypeError):
    """Operation requested between incompatible families or representations."""


class UnknownFamily(ExponentialFamilyError, LookupError):
    """Operation dispatched on a family tag that is not registered."""


class NumericalAccuracyWarning(UserWarning):
    """A numerical derivative or integral did not reach the requested accuracy."""


class ConvergenceWarning(UserWarning):
    """An iterative solver stopped before converging."""


__all__ = [
    "ExponentialFamilyError",
    "DomainError",
    "PropernessViolation",
    "UnsupportedOperation",
    "UnknownFamily",
    "NumericalAccuracyWarning",
    "ConvergenceWarning",
]
