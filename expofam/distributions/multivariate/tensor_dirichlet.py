"""
Tensor of independent Dirichlet distributions.

A concentration array :math:`\\alpha` of shape ``(k, n_1, ..., n_m)`` holds
one Dirichlet per slice ``alpha[:, i_1, ..., i_m]``. The natural parameters
are :math:`\\alpha - 1`, packed slice by slice, and

.. math::
    A(\\eta) = \\sum_{\\text{slices}} \\left[\\sum_i \\log\\Gamma(\\alpha_i)
    - \\log\\Gamma(\\textstyle\\sum_i \\alpha_i)\\right]

The conditioner is the array shape; members of different shapes cannot be
multiplied.
"""

from typing import Any

from expofam.base.registry import register_family
from expofam.base.support import Support, TensorSimplex
from expofam.params import TensorDirichlet
from expofam.tensor import TensorFamily


@register_family
class TensorDirichletFamily(TensorFamily):
    """
    Independent Dirichlet slices along the first axis.

    Examples
    --------
    >>> import numpy as np
    >>> from expofam import TensorDirichlet, convert_to_entity
    >>> alpha = np.array([[1.0, 2.0], [3.0, 4.0]])
    >>> ef = convert_to_entity(TensorDirichlet(alpha))
    >>> ef.conditioner
    (2, 2)
    >>> ef.natural_parameters
    array([0., 2., 1., 3.])
    """

    name = "TensorDirichlet"
    distribution_type = TensorDirichlet
    base_tag = "Dirichlet"

    def support(self, conditioner: Any = None) -> Support:
        return TensorSimplex(tuple(conditioner))


__all__ = ["TensorDirichletFamily"]
