"""Vector- and tensor-valued distributions (exponential family)."""

from .normal import (
    MvNormalMeanCovarianceFamily,
    MvNormalMeanPrecisionFamily,
    MvNormalWeightedMeanPrecisionFamily,
)
from .normal_wishart import MvNormalWishartFamily
from .dirichlet import DirichletFamily
from .multinomial import MultinomialFamily, MultinomialProductLogPartition
from .tensor_dirichlet import TensorDirichletFamily

__all__ = ['MvNormalMeanCovarianceFamily', 'MvNormalMeanPrecisionFamily',
           'MvNormalWeightedMeanPrecisionFamily', 'MvNormalWishartFamily',
           'DirichletFamily', 'MultinomialFamily', 'MultinomialProductLogPartition',
           'TensorDirichletFamily']
