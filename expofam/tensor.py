"""
Tensor composition of exponential families.

A tensor family stacks independent members of a base family in an array
whose *first* axis holds each member's parameter vector. For an array of
shape ``(k, n_1, ..., n_m)`` there are :math:`n_1 \\cdots n_m` blocks of size
``k`` and

.. math::
    A(\\eta) = \\sum_b A_{\\text{base}}(\\eta_b), \\qquad
    I(\\eta) = \\text{blockdiag}(I_{\\text{base}}(\\eta_b))

The conditioner is the array shape. The packed layout keeps every block
contiguous: ``np.moveaxis(arr, 0, -1).ravel()``, blocks in C order over the
trailing axes.
"""

from typing import Any, ClassVar, List, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.linalg import block_diag

from expofam.base.entity import ExponentialFamilyDistribution
from expofam.base.family import ExponentialFamily
from expofam.base.registry import get_family


def to_blocks(arr: ArrayLike) -> NDArray:
    """Array of shape ``(k, ...)`` to a ``(num_blocks, k)`` matrix."""
    arr = np.asarray(arr)
    return np.moveaxis(arr, 0, -1).reshape(-1, arr.shape[0])


def from_blocks(blocks: ArrayLike, shape: Tuple[int, ...]) -> NDArray:
    """Inverse of :func:`to_blocks` for an array of ``shape``."""
    blocks = np.asarray(blocks)
    return np.moveaxis(blocks.reshape(tuple(shape[1:]) + (shape[0],)), -1, 0)


class TensorFamily(ExponentialFamily):
    """
    Exponential family of independent base-family members stacked in an
    array.

    Subclasses set ``base_tag`` to the registry tag of a base family with
    vector parameters and no conditioner, and implement
    :meth:`support`. Everything else is assembled block by block from the
    base family.

    The standard distribution holds a single array parameter; the
    conditioner is its shape.
    """

    base_tag: ClassVar[str]
    has_conditioner = True
    supports_mismatched_product = False

    @property
    def base(self) -> ExponentialFamily:
        return get_family(self.base_tag)

    # ============================================================
    # Conditioner and layout
    # ============================================================

    def separate_conditioner(self, params: Tuple) -> Tuple[Tuple, Any]:
        (arr,) = params
        arr = np.asarray(arr)
        return (arr,), arr.shape

    def join_conditioner(self, params: Tuple, conditioner: Any) -> Tuple:
        return (np.reshape(params[0], conditioner),)

    def is_valid_conditioner(self, conditioner: Any) -> bool:
        if not isinstance(conditioner, tuple) or len(conditioner) == 0:
            return False
        if not all(isinstance(n, (int, np.integer)) and n >= 1 for n in conditioner):
            return False
        return self.base.has_valid_length(conditioner[0])

    def has_valid_length(self, n: int, conditioner: Any = None) -> bool:
        return self.is_valid_conditioner(conditioner) and n == int(np.prod(conditioner))

    def num_blocks(self, conditioner: Tuple[int, ...]) -> int:
        return int(np.prod(conditioner[1:], dtype=int))

    def pack_parameters(self, params: Tuple) -> NDArray:
        return to_blocks(params[0]).ravel()

    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        return (from_blocks(packed, conditioner),)

    def blocks(self, packed: ArrayLike, conditioner: Tuple[int, ...]) -> NDArray:
        """Packed vector to a ``(num_blocks, k)`` matrix of base vectors."""
        return np.asarray(packed).reshape(-1, conditioner[0])

    def _each(self, params: Tuple) -> List[Tuple]:
        return [self.base.unpack_parameters(b) for b in to_blocks(params[0])]

    # ============================================================
    # Parameter maps
    # ============================================================

    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        shape = np.shape(params[0])
        blocks = [self.base.pack_parameters(self.base.mean_to_natural(p))
                  for p in self._each(params)]
        return (from_blocks(np.concatenate(blocks), shape),)

    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        shape = np.shape(params[0])
        blocks = [self.base.pack_parameters(self.base.natural_to_mean(p))
                  for p in self._each(params)]
        return (from_blocks(np.concatenate(blocks), shape),)

    # ============================================================
    # Log partition and derivatives
    # ============================================================

    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        return float(sum(self.base._log_partition(p, None) for p in self._each(eta)))

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        return np.concatenate([
            np.asarray(self.base._grad_log_partition(p, None), dtype=float)
            for p in self._each(eta)
        ])

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        return block_diag(*[self.base._fisher_information(p, None) for p in self._each(eta)])

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        return block_diag(*[
            self.base._mean_to_natural_jacobian(p, None) for p in self._each(params)
        ])

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        return block_diag(*[
            self.base._mean_fisher_information(p, None) for p in self._each(params)
        ])

    # ============================================================
    # Density
    # ============================================================

    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        return np.concatenate([
            self.base.sufficient_statistics(block) for block in to_blocks(x)
        ])

    def log_base_measure(self, x: ArrayLike, conditioner: Any = None) -> float:
        if self.base.is_base_measure_constant:
            return self.num_blocks(conditioner) * float(self.base.log_base_measure(None))
        return float(sum(self.base.log_base_measure(block) for block in to_blocks(x)))

    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        return all(self.base._is_proper_natural(p, None) for p in self._each(eta))

    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        return all(self.base._is_proper_mean(p, None) for p in self._each(params))

    def natural_parameter_bounds(self, size, conditioner=None):
        per_block = self.base.natural_parameter_bounds(conditioner[0])
        if per_block is None:
            return None
        return per_block * self.num_blocks(conditioner)


def block_entities(entity: ExponentialFamilyDistribution) -> List[ExponentialFamilyDistribution]:
    """
    Split a tensor-family entity into base-family entities, one per block,
    in packed order.

    Raises
    ------
    TypeError
        If ``entity`` is not a member of a tensor family.
    """
    family = entity.family
    if not isinstance(family, TensorFamily):
        raise TypeError(f"{family.name} is not a tensor family")
    return [
        ExponentialFamilyDistribution(family.base, block, dtype=entity.dtype)
        for block in family.blocks(entity.natural_parameters, entity.conditioner)
    ]


__all__ = ["TensorFamily", "to_blocks", "from_blocks", "block_entities"]
