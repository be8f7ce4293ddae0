"""Core abstractions: parameter spaces, supports, families and entities."""

from .spaces import MEAN, NATURAL, MeanParametersSpace, NaturalParametersSpace, ParametersSpace
from .support import (
    CartesianSupport,
    CountVectors,
    IntegerInterval,
    IntersectionSupport,
    PositiveDefiniteMatrices,
    ProbabilitySimplex,
    RealInterval,
    RealVectors,
    Support,
    TensorSimplex,
)
from .family import ExponentialFamily
from .registry import family_of, get_family, is_registered, register_family, registered_families
from .entity import (
    ExponentialFamilyDistribution,
    Representation,
    convert_distribution,
    convert_to_distribution,
    convert_to_entity,
    density,
    ensure_proper,
    is_proper,
    logdensity,
)
from .generic import GenericExponentialFamily, is_generic, is_named

__all__ = [
    "MEAN",
    "NATURAL",
    "ParametersSpace",
    "NaturalParametersSpace",
    "MeanParametersSpace",
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
    "ExponentialFamily",
    "register_family",
    "get_family",
    "family_of",
    "is_registered",
    "registered_families",
    "ExponentialFamilyDistribution",
    "Representation",
    "convert_to_entity",
    "convert_to_distribution",
    "convert_distribution",
    "ensure_proper",
    "is_proper",
    "logdensity",
    "density",
    "GenericExponentialFamily",
    "is_generic",
    "is_named",
]
