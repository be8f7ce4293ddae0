"""
Parameter-space tags.

Two singleton markers select which conversion and derivative routines of a
family apply:

- :data:`NATURAL` -- the packed natural parameter vector :math:`\\eta`.
- :data:`MEAN` -- the family's conventional (standard) parameters packed into
  a flat vector, e.g. ``(shape, rate)`` for Gamma.

The gradient of the log partition, :math:`\\nabla A(\\eta) = E[T(x)]`, is
called the expectation parameters and is not a separate tag.
"""

from typing import Union


class ParametersSpace:
    """Base class of the parameter-space singletons."""

    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def __reduce__(self):
        return (type(self), ())


class NaturalParametersSpace(ParametersSpace):
    """Tag for the natural (canonical) parameterization."""

    __slots__ = ()
    _instance = None


class MeanParametersSpace(ParametersSpace):
    """Tag for the conventional parameterization of the standard distribution."""

    __slots__ = ()
    _instance = None


NATURAL = NaturalParametersSpace()
MEAN = MeanParametersSpace()

_ALIASES = {"natural": NATURAL, "mean": MEAN}


def as_space(space: Union[ParametersSpace, str]) -> ParametersSpace:
    """
    Normalize a space argument.

    Accepts the singletons themselves or the strings ``"natural"`` and
    ``"mean"``.
    """
    if isinstance(space, ParametersSpace):
        return space
    try:
        return _ALIASES[str(space).lower()]
    except KeyError:
        raise ValueError(
            f"Unknown parameter space {space!r}; expected 'natural' or 'mean'"
        ) from None


__all__ = [
    "ParametersSpace",
    "NaturalParametersSpace",
    "MeanParametersSpace",
    "NATURAL",
    "MEAN",
    "as_space",
]
