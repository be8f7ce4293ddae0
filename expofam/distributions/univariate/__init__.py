"""Univariate distributions (exponential family)."""

from .exponential import ExponentialDistributionFamily
from .gamma import ErlangFamily, GammaFamily
from .beta import BetaFamily
from .bernoulli import BernoulliFamily, BinomialFamily, BinomialProductLogPartition
from .laplace import LaplaceFamily, LaplaceProductLogPartition
from .normal import (
    NormalMeanPrecisionFamily,
    NormalMeanVarianceFamily,
    NormalWeightedMeanPrecisionFamily,
)
from .rayleigh import RayleighFamily, RayleighProductLogPartition

__all__ = ['ExponentialDistributionFamily', 'GammaFamily', 'ErlangFamily',
           'BetaFamily', 'BernoulliFamily', 'BinomialFamily',
           'BinomialProductLogPartition', 'LaplaceFamily',
           'LaplaceProductLogPartition', 'NormalMeanVarianceFamily',
           'NormalMeanPrecisionFamily', 'NormalWeightedMeanPrecisionFamily',
           'RayleighFamily', 'RayleighProductLogPartition']
