"""
Information-geometry utilities.

The log partition :math:`A` of an exponential family is convex and its
derivatives carry the family's geometry:

.. math::
    \\nabla A(\\eta) = E[T(X)], \\qquad \\nabla^2 A(\\eta) = I(\\eta)

The analytic formulas of each family are checked against
``scipy.differentiate`` applied to :math:`A` (:func:`check_fisher_information`,
:func:`check_grad_log_partition`). Fisher information moves between
parameterizations as :math:`I(\\theta) = J^T I(\\eta) J`.

KL divergence between members of one family is the Bregman divergence of
:math:`A`:

.. math::
    KL(p_1 \\| p_2) = A(\\eta_2) - A(\\eta_1) - (\\eta_2 - \\eta_1)^T \\nabla A(\\eta_1)
"""

from typing import Any, List, Optional, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from expofam.base.entity import (
    ExponentialFamilyDistribution,
    conditioners_equal,
    ensure_proper,
)
from expofam.base.family import ExponentialFamily
from expofam.base.generic import is_generic
from expofam.base.registry import get_family
from expofam.base.spaces import MEAN, NATURAL, ParametersSpace, as_space
from expofam.errors import UnsupportedOperation
from expofam.utils.differentiate import (
    numerical_gradient,
    numerical_hessian,
    numerical_jacobian,
)

Space = Union[ParametersSpace, str]


def _log_partition_function(entity):
    if is_generic(entity):
        return entity.log_partition_function
    return entity.family._packed_log_partition(entity.conditioner)


# ============================================================
# Fisher information and expectation parameters
# ============================================================

def fisher_information(entity, space: Space = NATURAL) -> NDArray:
    """
    Fisher information of an entity, analytic where the family provides it.

    Generic representations only have a (numerical) natural-space Fisher
    information.
    """
    if is_generic(entity):
        if as_space(space) is not NATURAL:
            raise UnsupportedOperation(
                "Generic representations have no mean-space parameterization"
            )
        return entity.fisher_information()
    return entity.fisher_information(space)


def expectation_parameters(entity) -> NDArray:
    """:math:`\\nabla A(\\eta) = E[T(X)]`."""
    return entity.grad_log_partition()


def numerical_fisher_information(entity, **kwargs) -> NDArray:
    """
    Hessian of the log partition over the packed natural vector, by
    numerical differentiation. ``kwargs`` go to
    :func:`~expofam.utils.differentiate.numerical_hessian`.
    """
    eta = np.asarray(entity.natural_parameters, dtype=float)
    return numerical_hessian(_log_partition_function(entity), eta, **kwargs)


def numerical_grad_log_partition(entity, **kwargs) -> NDArray:
    """Gradient of the log partition by numerical differentiation."""
    eta = np.asarray(entity.natural_parameters, dtype=float)
    return numerical_gradient(_log_partition_function(entity), eta, **kwargs)


def check_fisher_information(entity, rtol: float = 1e-5, atol: float = 1e-6) -> bool:
    """Whether the analytic Fisher information matches the numerical Hessian."""
    analytic = fisher_information(entity)
    numeric = numerical_fisher_information(entity)
    return analytic.shape == numeric.shape and bool(
        np.allclose(analytic, numeric, rtol=rtol, atol=atol)
    )


def check_grad_log_partition(entity, rtol: float = 1e-6, atol: float = 1e-8) -> bool:
    """Whether the analytic expectation parameters match the numerical gradient."""
    analytic = expectation_parameters(entity)
    numeric = numerical_grad_log_partition(entity)
    return analytic.shape == numeric.shape and bool(
        np.allclose(analytic, numeric, rtol=rtol, atol=atol)
    )


def transport_fisher_information(
    family: Union[str, type, ExponentialFamily],
    packed_mean: ArrayLike,
    conditioner: Any = None,
) -> NDArray:
    """
    Mean-space Fisher information :math:`J^T I(\\eta) J` with :math:`J` the
    numerical Jacobian of the packed mean-to-natural map.

    This is the reference the analytic mean-space formulas are tested
    against.
    """
    family = get_family(family)
    theta = np.asarray(packed_mean, dtype=float)

    def to_natural(v):
        params = family.unpack_parameters(v, conditioner)
        return family.pack_parameters(family.mean_to_natural(params, conditioner))

    J = numerical_jacobian(to_natural, theta)
    eta = to_natural(theta)
    F = family.fisher_information(eta, conditioner, NATURAL)
    fisher = J.T @ F @ J
    return (fisher + fisher.T) / 2


def mean_fisher_information(entity) -> NDArray:
    """Shortcut for ``fisher_information(entity, MEAN)``."""
    return fisher_information(entity, MEAN)


def expectation_to_natural(
    family: Union[str, type, ExponentialFamily],
    eta: ArrayLike,
    conditioner: Any = None,
    theta0: Optional[Union[NDArray, List[NDArray]]] = None,
) -> ExponentialFamilyDistribution:
    """
    Entity whose expectation parameters are ``eta``.

    Solves the convex dual problem with
    :meth:`~expofam.base.family.ExponentialFamily.expectation_to_natural`.

    Raises
    ------
    UnsupportedOperation
        If the family's natural domain is not a box.
    """
    family = get_family(family)
    theta = family.expectation_to_natural(eta, conditioner, theta0=theta0)
    return ExponentialFamilyDistribution(family, theta, conditioner)


# ============================================================
# Divergences and entropy
# ============================================================

def bregman_divergence(p: ExponentialFamilyDistribution,
                       q: ExponentialFamilyDistribution) -> float:
    """
    Bregman divergence of the log partition,
    :math:`A(\\eta_q) - A(\\eta_p) - (\\eta_q - \\eta_p)^T \\nabla A(\\eta_p)`,
    which equals :math:`KL(p \\| q)`.

    Raises
    ------
    UnsupportedOperation
        If ``p`` and ``q`` differ in natural layout or conditioner.
    PropernessViolation
        If either is improper.
    """
    if is_generic(p) or is_generic(q):
        raise UnsupportedOperation("KL divergence needs two named-family entities")
    if p.family.natural_layout != q.family.natural_layout \
            or not conditioners_equal(p.conditioner, q.conditioner):
        raise UnsupportedOperation(
            f"KL divergence between {p.family.name} and {q.family.name} members "
            f"with different conditioners is not an exponential-family quantity"
        )
    ensure_proper(p)
    ensure_proper(q)
    eta_p = np.asarray(p.natural_parameters, dtype=float)
    eta_q = np.asarray(q.natural_parameters, dtype=float)
    value = q.log_partition - p.log_partition - np.dot(eta_q - eta_p, p.expectation_params)
    return float(max(value, 0.0))


kl_divergence = bregman_divergence


def entropy(entity: ExponentialFamilyDistribution) -> float:
    """
    Differential (or Shannon) entropy of a member with constant base
    measure:

    .. math::
        H = A(\\eta) - \\eta^T \\nabla A(\\eta) - \\log h

    Raises
    ------
    UnsupportedOperation
        For families whose base measure depends on ``x``.
    PropernessViolation
        If the entity is improper.
    """
    if is_generic(entity) or not entity.family.is_base_measure_constant:
        raise UnsupportedOperation(
            f"Entropy needs a constant base measure; {entity.family.name} has none"
        )
    ensure_proper(entity)
    eta = np.asarray(entity.natural_parameters, dtype=float)
    log_h = entity.family.log_base_measure(None, entity.conditioner)
    return float(entity.log_partition - np.dot(eta, entity.expectation_params) - log_h)


__all__ = [
    "fisher_information",
    "mean_fisher_information",
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
]
