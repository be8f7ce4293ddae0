"""Exponential-family implementations, registered on import."""

from .univariate import (
    BernoulliFamily,
    BetaFamily,
    BinomialFamily,
    ErlangFamily,
    ExponentialDistributionFamily,
    GammaFamily,
    LaplaceFamily,
    NormalMeanPrecisionFamily,
    NormalMeanVarianceFamily,
    NormalWeightedMeanPrecisionFamily,
    RayleighFamily,
)
from .multivariate import (
    DirichletFamily,
    MultinomialFamily,
    MvNormalMeanCovarianceFamily,
    MvNormalMeanPrecisionFamily,
    MvNormalWeightedMeanPrecisionFamily,
    MvNormalWishartFamily,
    TensorDirichletFamily,
)
from .matrix import InverseWishartFamily, WishartFamily

__all__ = [
    'BernoulliFamily', 'BetaFamily', 'BinomialFamily', 'ErlangFamily',
    'ExponentialDistributionFamily', 'GammaFamily', 'LaplaceFamily',
    'NormalMeanVarianceFamily', 'NormalMeanPrecisionFamily',
    'NormalWeightedMeanPrecisionFamily', 'RayleighFamily',
    'DirichletFamily', 'MultinomialFamily', 'MvNormalMeanCovarianceFamily',
    'MvNormalMeanPrecisionFamily', 'MvNormalWeightedMeanPrecisionFamily',
    'MvNormalWishartFamily', 'TensorDirichletFamily',
    'InverseWishartFamily', 'WishartFamily',
]
