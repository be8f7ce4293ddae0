"""
expofam: a uniform algebra for exponential-family distributions.

Standard distributions (:mod:`expofam.params`) convert losslessly to
natural-parameter entities, which multiply in closed form by adding natural
parameters or fall back to a generic functional representation when their
conditioners differ.

Key features:
- Family capability contract with analytic log partition, gradient and
  Fisher information, checked against numerical differentiation
- Natural and mean parameter spaces with Fisher transport :math:`J^T I J`
- Closed-form, generic and in-place products, and their log-scales
- Gaussian parameterizations sharing one natural layout, with conversions
  between them, and the Normal-Wishart joint family
- Tensor composition of independent members (TensorDirichlet)
"""

from expofam.params import (
    Bernoulli,
    Beta,
    Binomial,
    Dirichlet,
    Erlang,
    Exponential,
    Gamma,
    InverseWishart,
    Laplace,
    Multinomial,
    MvNormalMeanCovariance,
    MvNormalMeanPrecision,
    MvNormalWeightedMeanPrecision,
    MvNormalWishart,
    NormalMeanPrecision,
    NormalMeanVariance,
    NormalWeightedMeanPrecision,
    Rayleigh,
    TensorDirichlet,
    Wishart,
)
from expofam.errors import (
    ConvergenceWarning,
    DomainError,
    ExponentialFamilyError,
    NumericalAccuracyWarning,
    PropernessViolation,
    UnknownFamily,
    UnsupportedOperation,
)
from expofam.base import (
    MEAN,
    NATURAL,
    ExponentialFamily,
    ExponentialFamilyDistribution,
    GenericExponentialFamily,
    Representation,
    convert_distribution,
    convert_to_distribution,
    convert_to_entity,
    density,
    ensure_proper,
    family_of,
    get_family,
    is_generic,
    is_named,
    is_proper,
    is_registered,
    logdensity,
    register_family,
    registered_families,
)
from expofam import distributions  # noqa: F401  registers the families
from expofam.product import (
    ProductRegime,
    ProductStrategy,
    log_scale,
    prod,
    prod_inplace,
    product_regime,
)
from expofam.geometry import (
    bregman_divergence,
    check_fisher_information,
    check_grad_log_partition,
    entropy,
    expectation_parameters,
    expectation_to_natural,
    fisher_information,
    kl_divergence,
    numerical_fisher_information,
    numerical_grad_log_partition,
    transport_fisher_information,
)
from expofam.tensor import TensorFamily, block_entities

__version__ = "0.1.0"

__all__ = [
    # Standard distributions
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
    # Errors and warnings
    "ExponentialFamilyError",
    "DomainError",
    "PropernessViolation",
    "UnsupportedOperation",
    "UnknownFamily",
    "NumericalAccuracyWarning",
    "ConvergenceWarning",
    # Core
    "MEAN",
    "NATURAL",
    "ExponentialFamily",
    "ExponentialFamilyDistribution",
    "GenericExponentialFamily",
    "Representation",
    "register_family",
    "get_family",
    "family_of",
    "is_registered",
    "registered_families",
    "convert_to_entity",
    "convert_to_distribution",
    "convert_distribution",
    "ensure_proper",
    "is_proper",
    "is_generic",
    "is_named",
    "logdensity",
    "density",
    # Products
    "ProductRegime",
    "ProductStrategy",
    "product_regime",
    "prod",
    "prod_inplace",
    "log_scale",
    # Information geometry
    "fisher_information",
    "expectation_parameters",
    "numerical_fisher_information",
    "numerical_grad_log_partition",
    "check_fisher_information",
    "check_grad_log_partition",
    "transport_fisher_information",
    "expectation_to_natural",
    "bregman_divergence",
    "kl_divergence",
    "entropy",
    # Tensor composition
    "TensorFamily",
    "block_entities",
]
