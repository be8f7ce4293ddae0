"""
Product algebra of exponential-family members.

Multiplying two densities of one family multiplies their exponential
terms, so natural parameters add:

.. math::
    h(x)e^{\\eta_1^T T(x) - A(\\eta_1)} \\cdot h(x)e^{\\eta_2^T T(x) - A(\\eta_2)}
    \\propto h(x)e^{(\\eta_1 + \\eta_2)^T T(x)}

This is a member of the family when both factors share the conditioner
and :math:`h` is constant. A base measure that depends on :math:`x`
(Binomial, Multinomial, Rayleigh) appears squared instead, so that product
is kept in the generic form with summed natural parameters and base
measure :math:`h^2`. When conditioners differ the product is still an
exponential family, but over the concatenated statistics
:math:`(T_1, T_2)` with base measure :math:`h_1 h_2`; it is returned as a
:class:`~expofam.base.generic.GenericExponentialFamily`.

The three regimes are enumerated by :class:`ProductRegime`;
:class:`ProductStrategy` lets callers demand or forbid the closed form.
Families that share a natural layout, such as the Gaussian
parameterizations, count as one family here; the result takes the left
operand's family. :func:`log_scale` gives the normalizing constant of the
product of two normalized densities.
"""

import enum
from typing import Union

import numpy as np

from expofam.base.entity import (
    ExponentialFamilyDistribution,
    conditioners_equal,
    convert_to_distribution,
    convert_to_entity,
)
from expofam.base.generic import GenericExponentialFamily, is_generic
from expofam.errors import PropernessViolation, UnsupportedOperation


class ProductRegime(enum.Enum):
    """How two operands of :func:`prod` relate."""

    SAME_FAMILY_SAME_CONDITIONER = "same_family_same_conditioner"
    SAME_FAMILY_DIFFERENT_CONDITIONER = "same_family_different_conditioner"
    INCOMPATIBLE_FAMILY = "incompatible_family"


class ProductStrategy(enum.Enum):
    """
    Product strategy.

    - ``AUTO``: closed form when conditioners match, generic otherwise.
    - ``CLOSED``: closed form only; a conditioner mismatch raises. For a
      non-constant base measure the closed form is the summed natural
      vector over :math:`h^2`, in the generic form.
    - ``GENERIC``: always build the generic representation.
    """

    AUTO = "auto"
    CLOSED = "closed"
    GENERIC = "generic"


def _as_operand(obj):
    """Return ``(operand, was_standard_distribution)``."""
    if isinstance(obj, (ExponentialFamilyDistribution, GenericExponentialFamily)):
        return obj, False
    return convert_to_entity(obj), True


def product_regime(left, right) -> ProductRegime:
    """
    Classify a pair of entities or generic representations.

    Families sharing a natural layout are compatible. Generic
    representations always count as mismatched: their conditioners are the
    accumulated tuple of their factors'.
    """
    if left.family.natural_layout != right.family.natural_layout:
        return ProductRegime.INCOMPATIBLE_FAMILY
    if is_generic(left) or is_generic(right):
        return ProductRegime.SAME_FAMILY_DIFFERENT_CONDITIONER
    if conditioners_equal(left.conditioner, right.conditioner):
        return ProductRegime.SAME_FAMILY_SAME_CONDITIONER
    return ProductRegime.SAME_FAMILY_DIFFERENT_CONDITIONER


def _check_shapes(left, right):
    if left.natural_parameters.shape != right.natural_parameters.shape:
        raise ValueError(
            f"{left.family.name}: cannot add natural parameters of shapes "
            f"{left.natural_parameters.shape} and {right.natural_parameters.shape}"
        )


def _closed_form(left: ExponentialFamilyDistribution,
                 right: ExponentialFamilyDistribution) -> ExponentialFamilyDistribution:
    _check_shapes(left, right)
    dtype = np.result_type(left.dtype, right.dtype)
    return ExponentialFamilyDistribution(
        left.family,
        left.natural_parameters + right.natural_parameters,
        left.conditioner,
        dtype=dtype,
    )


def prod(left, right, strategy: Union[ProductStrategy, str] = ProductStrategy.AUTO):
    """
    Product of two members of one exponential family.

    Parameters
    ----------
    left, right : ExponentialFamilyDistribution, GenericExponentialFamily or standard distribution
        Operands. Standard distributions are converted with
        :func:`~expofam.base.entity.convert_to_entity` first.
    strategy : ProductStrategy or str, default ``AUTO``
        See :class:`ProductStrategy`.

    Returns
    -------
    result
        - In the closed-form regime, an
          :class:`~expofam.base.entity.ExponentialFamilyDistribution` with
          summed natural parameters. When both operands were standard
          distributions and the result is proper, the standard
          distribution instead.
        - In the closed-form regime of a family with a non-constant base
          measure, a :class:`~expofam.base.generic.GenericExponentialFamily`
          with summed natural parameters and base measure :math:`h^2`.
        - Otherwise a :class:`~expofam.base.generic.GenericExponentialFamily`
          with concatenated natural parameters.

    Raises
    ------
    UnsupportedOperation
        For different families, for ``CLOSED`` with mismatched
        conditioners, or for mismatched conditioners of a family whose
        members then have disjoint supports (Multinomial, TensorDirichlet).
    ValueError
        If closed-form operands have vectors of different shapes.

    Examples
    --------
    >>> from expofam import Gamma, prod
    >>> prod(Gamma(shape=1.0, rate=1.0), Gamma(shape=1.0, rate=1.0))
    Gamma(shape=1.0, rate=2.0)
    """
    strategy = ProductStrategy(strategy)
    left, left_standard = _as_operand(left)
    right, right_standard = _as_operand(right)
    regime = product_regime(left, right)

    if regime is ProductRegime.INCOMPATIBLE_FAMILY:
        raise UnsupportedOperation(
            f"Cannot multiply {left.family.name} by {right.family.name}"
        )

    if regime is ProductRegime.SAME_FAMILY_SAME_CONDITIONER \
            and strategy is not ProductStrategy.GENERIC:
        if not left.family.is_base_measure_constant:
            _check_shapes(left, right)
            return GenericExponentialFamily.from_matched_product(left, right)
        result = _closed_form(left, right)
        if left_standard and right_standard and result.is_proper():
            return convert_to_distribution(result)
        return result

    if strategy is ProductStrategy.CLOSED:
        raise UnsupportedOperation(
            f"{left.family.name}: no closed-form product for conditioners "
            f"{left.conditioner!r} and {right.conditioner!r}"
        )
    if regime is ProductRegime.SAME_FAMILY_DIFFERENT_CONDITIONER \
            and not left.family.supports_mismatched_product:
        raise UnsupportedOperation(
            f"{left.family.name}: members with conditioners {left.conditioner!r} "
            f"and {right.conditioner!r} have disjoint supports"
        )
    return GenericExponentialFamily.from_product(left, right)


def log_scale(left, right) -> float:
    """
    Log normalizing constant of the product of two normalized densities.

    .. math::
        \\log \\int p_1(x) p_2(x)\\,dx
        = A(\\eta_{12}) - A(\\eta_1) - A(\\eta_2) + \\log h

    where :math:`A(\\eta_{12})` is the log partition of :func:`prod` and
    :math:`\\log h` enters only when the product keeps the constant base
    measure once. For two Normals this is
    :math:`\\log\\mathcal{N}(\\mu_1 | \\mu_2, v_1 + v_2)`.

    Returns ``inf`` when the product is not integrable.

    Raises
    ------
    PropernessViolation
        If either operand is improper.
    UnsupportedOperation
        If :func:`prod` rejects the pair.

    Examples
    --------
    >>> from expofam import NormalMeanVariance, log_scale
    >>> round(log_scale(NormalMeanVariance(0.0, 1.0), NormalMeanVariance(0.0, 1.0)), 6)
    -1.265512
    """
    left, _ = _as_operand(left)
    right, _ = _as_operand(right)
    for operand in (left, right):
        if not operand.is_proper():
            raise PropernessViolation(f"{operand!r} is improper")
    result = prod(left, right)
    if not result.is_proper():
        return np.inf
    scale = result.log_partition - left.log_partition - right.log_partition
    if isinstance(result, ExponentialFamilyDistribution):
        scale += result.family.log_base_measure(None, result.conditioner)
    return float(scale)


def prod_inplace(out: ExponentialFamilyDistribution,
                 left: ExponentialFamilyDistribution,
                 right: ExponentialFamilyDistribution) -> ExponentialFamilyDistribution:
    """
    Closed-form product written into the buffer of ``out``.

    ``out`` may be one of the operands. Its cached derived quantities are
    cleared. Use :meth:`ExponentialFamilyDistribution.similar` to allocate
    a buffer once outside a loop.

    Raises
    ------
    UnsupportedOperation
        If the operands are not same-family, same-conditioner entities, or
        their family's base measure is not constant.
    ValueError
        If ``out`` is of another family or its buffer has another shape.
    """
    regime = product_regime(left, right)
    if regime is not ProductRegime.SAME_FAMILY_SAME_CONDITIONER or is_generic(left):
        raise UnsupportedOperation(
            "In-place products need two entities of one family with equal conditioners"
        )
    if not left.family.is_base_measure_constant:
        raise UnsupportedOperation(
            f"{left.family.name}: the product has base measure h(x)^2 and is not "
            f"a {left.family.name}; use prod"
        )
    if out.family.natural_layout != left.family.natural_layout:
        raise ValueError(f"Output buffer is a {out.family.name}, not a {left.family.name}")
    shape = left.natural_parameters.shape
    if right.natural_parameters.shape != shape or out.natural_parameters.shape != shape:
        raise ValueError(
            f"{left.family.name}: natural parameter shapes {shape}, "
            f"{right.natural_parameters.shape} and {out.natural_parameters.shape} differ"
        )
    np.add(left.natural_parameters, right.natural_parameters, out=out._eta)
    out._conditioner = left.conditioner
    out._invalidate_cache()
    return out


__all__ = [
    "ProductRegime",
    "ProductStrategy",
    "product_regime",
    "prod",
    "prod_inplace",
    "log_scale",
]
