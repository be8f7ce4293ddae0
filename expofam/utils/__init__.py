"""Numerical helpers for expofam."""

from .differentiate import numerical_gradient, numerical_hessian, numerical_jacobian
from .linalg import inv_pd, is_positive_definite, logdet_pd, symmetrize, unvec, vec
from .special import log1pexp, log_binomial, log_multinomial, logmvgamma, mvdigamma, mvtrigamma

__all__ = [
    'numerical_gradient', 'numerical_hessian', 'numerical_jacobian',
    'inv_pd', 'is_positive_definite', 'logdet_pd', 'symmetrize', 'unvec', 'vec',
    'log1pexp', 'log_binomial', 'log_multinomial',
    'logmvgamma', 'mvdigamma', 'mvtrigamma',
]
