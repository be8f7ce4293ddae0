"""
Family capability contract.

Every distribution family is described by a stateless singleton subclass of
:class:`ExponentialFamily`. Members of the family have the canonical form

.. math::
    p(x|\\eta) = h(x) \\exp(\\eta^T T(x) - A(\\eta))

where:

- :math:`\\eta`: natural parameters, packed into a flat vector
- :math:`T(x)`: sufficient statistics (same length as :math:`\\eta`)
- :math:`A(\\eta)`: log partition function
- :math:`h(x)`: base measure

Some families need a *conditioner*: a fixed auxiliary parameter that is not
part of :math:`\\eta` (the trial count of a Binomial, the location of a
Laplace, the array shape of a TensorDirichlet). Conditioners travel next to
the packed vector and are passed to every method.

Two parameterizations are addressed with space tags:

- **Natural** (:data:`~expofam.base.spaces.NATURAL`): :math:`\\eta`
- **Mean** (:data:`~expofam.base.spaces.MEAN`): the conventional parameters
  of the standard distribution, packed the same way

The log partition satisfies

.. math::
    \\nabla A(\\eta) = E[T(X)], \\qquad
    \\nabla^2 A(\\eta) = \\text{Cov}[T(X)] = I(\\eta)

and in mean coordinates :math:`\\theta` with :math:`\\eta = h(\\theta)`

.. math::
    I(\\theta) = J^T I(\\eta) J, \\qquad J = \\partial h / \\partial \\theta
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, List, Optional, Tuple, Union
import warnings

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.optimize import Bounds, minimize

from expofam.base.spaces import MEAN, NATURAL, ParametersSpace, as_space
from expofam.base.support import Support
from expofam.errors import ConvergenceWarning, UnsupportedOperation
from expofam.utils.differentiate import (
    numerical_gradient,
    numerical_hessian,
    numerical_jacobian,
)

Space = Union[ParametersSpace, str]


class ExponentialFamily(ABC):
    """
    Abstract base class of the family capability contract.

    Subclasses are registered with
    :func:`~expofam.base.registry.register_family` and instantiated once.
    They hold no per-distribution state: parameters and conditioners are
    always passed in.

    Subclasses must implement:

    - ``_unpack(packed, conditioner)``: split a validated flat vector into the
      parameter tuple (scalars, vectors, matrices).
    - ``mean_to_natural(params, conditioner)`` and
      ``natural_to_mean(params, conditioner)``: exact inverses on tuples.
    - ``_log_partition(eta, conditioner)``: :math:`A(\\eta)` on the natural
      tuple.
    - ``sufficient_statistics(x, conditioner)`` and ``support(conditioner)``.
    - ``_is_proper_natural`` and ``_is_proper_mean``.

    Override ``_grad_log_partition`` and ``_fisher_information`` with
    analytic formulas; the defaults differentiate ``_log_partition``
    numerically with ``scipy.differentiate``.

    Attributes
    ----------
    name : str
        Registry tag.
    distribution_type : type
        Standard distribution class from :mod:`expofam.params`.
    num_params : int or None
        Fixed length of the packed vector, or None when it depends on the
        dimension (override :meth:`has_valid_length`).
    has_conditioner : bool
        Whether standard parameters carry a conditioner.
    is_base_measure_constant : bool
        Whether :math:`h(x)` is constant on the support.
    supports_mismatched_product : bool
        Whether two members with different conditioners can be multiplied
        into a generic representation.
    layout : str or None
        Tag of the natural parameterization shared with other families.
        Families with the same layout read one natural vector the same
        way and differ only in their mean space; None means the family
        stands alone.
    """

    name: ClassVar[str]
    distribution_type: ClassVar[type]
    num_params: ClassVar[Optional[int]] = None
    has_conditioner: ClassVar[bool] = False
    is_base_measure_constant: ClassVar[bool] = True
    supports_mismatched_product: ClassVar[bool] = True
    layout: ClassVar[Optional[str]] = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"

    @property
    def natural_layout(self) -> str:
        """Layout tag; two families with equal tags share natural vectors."""
        return self.layout or self.name

    # ============================================================
    # Conditioner handling
    # ============================================================

    def separate_conditioner(self, params: Tuple) -> Tuple[Tuple, Any]:
        """
        Split standard parameters into core parameters and the conditioner.

        Families without a conditioner return ``(params, None)``.
        """
        return tuple(params), None

    def join_conditioner(self, params: Tuple, conditioner: Any) -> Tuple:
        """Inverse of :meth:`separate_conditioner`."""
        return tuple(params)

    def is_valid_conditioner(self, conditioner: Any) -> bool:
        """Check the conditioner independently of the parameters."""
        return conditioner is None

    # ============================================================
    # Packing
    # ============================================================

    def pack_parameters(self, params: Tuple) -> NDArray:
        """
        Flatten a parameter tuple into one vector.

        Matrices are flattened row by row. The layout is the same in both
        spaces, so this also packs mean-space tuples.
        """
        return np.concatenate([np.ravel(np.asarray(p)) for p in params])

    def unpack_parameters(self, packed: ArrayLike, conditioner: Any = None) -> Tuple:
        """
        Split a packed vector back into its parameter tuple.

        Raises
        ------
        ValueError
            If ``packed`` is not a vector of a length this family accepts.
        """
        packed = np.asarray(packed)
        if packed.ndim != 1 or not self.has_valid_length(packed.size, conditioner):
            raise ValueError(
                f"{self.name}: packed parameters of shape {packed.shape} do not "
                f"match the family layout (conditioner={conditioner!r})"
            )
        return self._unpack(packed, conditioner)

    @abstractmethod
    def _unpack(self, packed: NDArray, conditioner: Any) -> Tuple:
        pass

    def has_valid_length(self, n: int, conditioner: Any = None) -> bool:
        """Whether a packed vector of length ``n`` fits this family."""
        return self.num_params is None or n == self.num_params

    # ============================================================
    # Standard distribution bridge
    # ============================================================

    def distribution_params(self, distribution) -> Tuple:
        """Conventional parameters of a standard distribution, as a tuple."""
        return distribution.params()

    def build_distribution(self, params: Tuple):
        """Construct the standard distribution from a parameter tuple."""
        return self.distribution_type(*params)

    # ============================================================
    # Parameter maps
    # ============================================================

    @abstractmethod
    def mean_to_natural(self, params: Tuple, conditioner: Any = None) -> Tuple:
        """Map conventional parameters to the natural parameter tuple."""
        pass

    @abstractmethod
    def natural_to_mean(self, params: Tuple, conditioner: Any = None) -> Tuple:
        """Map the natural parameter tuple to conventional parameters."""
        pass

    def convert(
        self,
        packed: ArrayLike,
        conditioner: Any = None,
        source: Space = MEAN,
        target: Space = NATURAL,
    ) -> NDArray:
        """
        Convert a packed vector between parameter spaces.

        Parameters
        ----------
        packed : array_like
            Packed parameters in ``source`` space.
        conditioner : optional
            Family conditioner.
        source, target : ParametersSpace or str
            Space tags.

        Returns
        -------
        converted : ndarray
            Packed parameters in ``target`` space.
        """
        source, target = as_space(source), as_space(target)
        params = self.unpack_parameters(packed, conditioner)
        if source is target:
            return self.pack_parameters(params)
        if source is MEAN:
            return self.pack_parameters(self.mean_to_natural(params, conditioner))
        return self.pack_parameters(self.natural_to_mean(params, conditioner))

    # ============================================================
    # Log partition and its derivatives
    # ============================================================

    @abstractmethod
    def _log_partition(self, eta: Tuple, conditioner: Any) -> float:
        """
        Log partition :math:`A(\\eta)` on the natural tuple.

        Must be computed with log-domain primitives. Matrix blocks must be
        symmetrized before use so that derivatives over the full ``vec``
        layout are the covariance of the sufficient statistics.
        """
        pass

    def _packed_log_partition(self, conditioner: Any) -> Callable[[NDArray], float]:
        def log_partition(v):
            return self._log_partition(self.unpack_parameters(v, conditioner), conditioner)
        return log_partition

    def _grad_log_partition(self, eta: Tuple, conditioner: Any) -> NDArray:
        """
        Gradient :math:`\\nabla A(\\eta)`, the expectation parameters.

        Default implementation uses ``scipy.differentiate.jacobian``.
        Override for analytical gradient when available.
        """
        return numerical_gradient(
            self._packed_log_partition(conditioner), self.pack_parameters(eta)
        )

    def _fisher_information(self, eta: Tuple, conditioner: Any) -> NDArray:
        """
        Fisher information :math:`\\nabla^2 A(\\eta)`.

        Default implementation uses ``scipy.differentiate.hessian``.
        Override for analytical Hessian when available.
        """
        return numerical_hessian(
            self._packed_log_partition(conditioner), self.pack_parameters(eta)
        )

    def _mean_to_natural_jacobian(self, params: Tuple, conditioner: Any) -> NDArray:
        """
        Jacobian :math:`J = \\partial \\eta / \\partial \\theta` of the packed
        mean-to-natural map, shape ``(len(eta), len(theta))``.

        Default implementation differentiates numerically.
        """
        def to_natural(v):
            theta = self.unpack_parameters(v, conditioner)
            return self.pack_parameters(self.mean_to_natural(theta, conditioner))

        return numerical_jacobian(to_natural, self.pack_parameters(params))

    def _mean_fisher_information(self, params: Tuple, conditioner: Any) -> NDArray:
        """Fisher information in mean coordinates, :math:`J^T I(\\eta) J`."""
        eta = self.mean_to_natural(params, conditioner)
        J = self._mean_to_natural_jacobian(params, conditioner)
        return J.T @ self._fisher_information(eta, conditioner) @ J

    def _natural_tuple(self, packed: ArrayLike, conditioner: Any, space: Space) -> Tuple:
        params = self.unpack_parameters(packed, conditioner)
        if as_space(space) is MEAN:
            return self.mean_to_natural(params, conditioner)
        return params

    def log_partition(
        self, packed: ArrayLike, conditioner: Any = None, space: Space = NATURAL
    ) -> float:
        """
        Log partition at packed parameters given in ``space``.

        In mean space this is :math:`A(h(\\theta))`.
        """
        eta = self._natural_tuple(packed, conditioner, space)
        return float(self._log_partition(eta, conditioner))

    def grad_log_partition(
        self, packed: ArrayLike, conditioner: Any = None, space: Space = NATURAL
    ) -> NDArray:
        """
        Gradient of the log partition with respect to the parameters of
        ``space``.

        In natural space this is the expectation parameter map
        :math:`E[T(X)]`; in mean space it is :math:`J^T \\nabla A(h(\\theta))`.
        """
        params = self.unpack_parameters(packed, conditioner)
        if as_space(space) is NATURAL:
            return np.asarray(self._grad_log_partition(params, conditioner), dtype=float)
        eta = self.mean_to_natural(params, conditioner)
        J = self._mean_to_natural_jacobian(params, conditioner)
        return J.T @ np.asarray(self._grad_log_partition(eta, conditioner), dtype=float)

    def fisher_information(
        self, packed: ArrayLike, conditioner: Any = None, space: Space = NATURAL
    ) -> NDArray:
        """
        Fisher information matrix in ``space``.

        Returns
        -------
        fisher : ndarray, shape ``(d, d)``
            Symmetric positive semi-definite wherever the parameters are
            proper.
        """
        params = self.unpack_parameters(packed, conditioner)
        if as_space(space) is NATURAL:
            fisher = self._fisher_information(params, conditioner)
        else:
            fisher = self._mean_fisher_information(params, conditioner)
        fisher = np.atleast_2d(np.asarray(fisher, dtype=float))
        return (fisher + fisher.T) / 2

    # ============================================================
    # Sufficient statistics, base measure, support
    # ============================================================

    @abstractmethod
    def sufficient_statistics(self, x: ArrayLike, conditioner: Any = None) -> NDArray:
        """
        Sufficient statistics :math:`T(x)` of a single observation, packed
        like the natural parameters.
        """
        pass

    def log_base_measure(self, x: ArrayLike, conditioner: Any = None) -> float:
        """:math:`\\log h(x)` of a single observation in the support."""
        return 0.0

    def base_measure(self, x: ArrayLike, conditioner: Any = None) -> float:
        """:math:`h(x)`."""
        return float(np.exp(self.log_base_measure(x, conditioner)))

    @abstractmethod
    def support(self, conditioner: Any = None) -> Support:
        """Support of every member with this conditioner."""
        pass

    def insupport(self, x: ArrayLike, conditioner: Any = None) -> bool:
        return self.support(conditioner).contains(x)

    def logpdf(
        self,
        packed: ArrayLike,
        x: ArrayLike,
        conditioner: Any = None,
        log_partition: Optional[float] = None,
    ) -> float:
        """
        Log density :math:`\\log h(x) + \\eta^T T(x) - A(\\eta)`.

        Points outside the support give ``-inf``. A precomputed
        ``log_partition`` may be supplied.
        """
        if not self.insupport(x, conditioner):
            return -np.inf
        packed = np.asarray(packed)
        if log_partition is None:
            log_partition = self.log_partition(packed, conditioner)
        t_x = self.sufficient_statistics(x, conditioner)
        return float(self.log_base_measure(x, conditioner) + np.dot(packed, t_x) - log_partition)

    # ============================================================
    # Properness
    # ============================================================

    def is_proper(
        self, packed: ArrayLike, conditioner: Any = None, space: Space = NATURAL
    ) -> bool:
        """
        Whether packed parameters define a normalizable member.

        Vectors of the wrong length, non-finite entries and invalid
        conditioners are never proper. Boundary points are rejected.
        """
        packed = np.asarray(packed)
        if packed.ndim != 1 or not self.has_valid_length(packed.size, conditioner):
            return False
        if not np.all(np.isfinite(packed)):
            return False
        if not self.is_valid_conditioner(conditioner):
            return False
        params = self._unpack(packed, conditioner)
        if as_space(space) is NATURAL:
            return bool(self._is_proper_natural(params, conditioner))
        return bool(self._is_proper_mean(params, conditioner))

    @abstractmethod
    def _is_proper_natural(self, eta: Tuple, conditioner: Any) -> bool:
        pass

    @abstractmethod
    def _is_proper_mean(self, params: Tuple, conditioner: Any) -> bool:
        pass

    # ============================================================
    # Products with mismatched conditioners
    # ============================================================

    def mismatched_product_log_partition(
        self, left_conditioner: Any, right_conditioner: Any
    ) -> Optional[Callable[[NDArray], float]]:
        """
        Closed-form log partition of the product of two members with
        different conditioners, as a function of the concatenated natural
        vector.

        Returns None when no closed form is known; the generic
        representation then integrates or sums numerically.
        """
        return None

    def matched_product_log_partition(
        self, conditioner: Any
    ) -> Optional[Callable[[NDArray], float]]:
        """
        Closed-form log partition of the product of two members with equal
        conditioners, for families with a non-constant base measure.

        The argument is the summed natural vector; the base measure is
        :math:`h(x)^2`. Returns None when no closed form is known.
        """
        return None

    # ============================================================
    # Expectation to natural (convex dual)
    # ============================================================

    def natural_parameter_bounds(
        self, size: int, conditioner: Any = None
    ) -> Optional[List[Tuple[float, float]]]:
        """
        Open box bounds ``(lower, upper)`` for each of the ``size`` packed
        natural parameters.

        Families whose natural domain is not a box return None.
        """
        return None

    def _project_to_support(
        self, theta: NDArray, bounds: List[Tuple[float, float]], margin: float = 1e-10
    ) -> NDArray:
        """
        Project parameters into the open box with a margin from its
        boundaries.
        """
        bounds = np.array(bounds, dtype=float)
        lower, upper = bounds[:, 0], bounds[:, 1]
        theta = np.where(np.isfinite(lower) & (theta < lower + margin), lower + margin, theta)
        theta = np.where(np.isfinite(upper) & (theta > upper - margin), upper - margin, theta)
        return theta

    def _initial_natural_params(
        self, eta: NDArray, bounds: List[Tuple[float, float]], conditioner: Any
    ) -> List[NDArray]:
        """
        Starting points for :meth:`expectation_to_natural`.

        Default: one interior point per bound, one unit inside a finite
        endpoint (or the midpoint of a finite interval, or zero).
        """
        start = []
        for lo, hi in bounds:
            if np.isfinite(lo) and np.isfinite(hi):
                start.append(0.5 * (lo + hi))
            elif np.isfinite(lo):
                start.append(lo + 1.0)
            elif np.isfinite(hi):
                start.append(hi - 1.0)
            else:
                start.append(0.0)
        return [np.array(start)]

    def _has_analytical_gradient(self) -> bool:
        """Check if _grad_log_partition is overridden."""
        for cls in type(self).__mro__:
            if '_grad_log_partition' in cls.__dict__:
                return cls is not ExponentialFamily
        return False

    def _has_analytical_hessian(self) -> bool:
        """Check if _fisher_information is overridden."""
        for cls in type(self).__mro__:
            if '_fisher_information' in cls.__dict__:
                return cls is not ExponentialFamily
        return False

    def expectation_to_natural(
        self,
        eta: ArrayLike,
        conditioner: Any = None,
        theta0: Optional[Union[NDArray, List[NDArray]]] = None,
    ) -> NDArray:
        """
        Invert the expectation parameter map: find :math:`\\theta` with
        :math:`\\nabla A(\\theta) = \\eta`.

        Solves the convex problem

        .. math::
            \\theta^* = \\arg\\min_\\theta [A(\\theta) - \\theta \\cdot \\eta]

        with multi-start L-BFGS-B inside the box returned by
        :meth:`natural_parameter_bounds`.

        Parameters
        ----------
        eta : array_like
            Expectation parameters :math:`E[T(X)]`.
        conditioner : optional
            Family conditioner.
        theta0 : ndarray or list of ndarray, optional
            Initial guess(es) replacing the default starting points.

        Returns
        -------
        theta : ndarray
            Packed natural parameters.

        Raises
        ------
        UnsupportedOperation
            If the family does not declare box bounds.
        """
        eta = np.asarray(eta, dtype=float)
        bounds_list = self.natural_parameter_bounds(eta.size, conditioner)
        if bounds_list is None:
            raise UnsupportedOperation(
                f"{self.name}: natural domain is not a box; expectation to natural "
                f"conversion is not available"
            )
        lb = np.array([b[0] if not np.isinf(b[0]) else -1e10 for b in bounds_list])
        ub = np.array([b[1] if not np.isinf(b[1]) else 1e10 for b in bounds_list])
        bounds = Bounds(lb=lb, ub=ub)

        def objective(theta):
            theta = self._project_to_support(theta, bounds_list)
            return self.log_partition(theta, conditioner) - np.dot(theta, eta)

        grad_func = None
        if self._has_analytical_gradient():
            def grad_func(theta):
                theta = self._project_to_support(theta, bounds_list)
                return self.grad_log_partition(theta, conditioner) - eta

        if theta0 is None:
            starting_points = self._initial_natural_params(eta, bounds_list, conditioner)
        elif isinstance(theta0, list):
            starting_points = theta0
        else:
            starting_points = [np.asarray(theta0)]

        best_theta = None
        best_obj = np.inf
        best_grad_norm = np.inf

        for x0 in starting_points:
            x0 = self._project_to_support(np.asarray(x0, dtype=float), bounds_list)
            result = minimize(
                objective, x0,
                method='L-BFGS-B',
                jac=grad_func,
                bounds=bounds,
                options={'maxiter': 1000, 'ftol': 1e-12, 'gtol': 1e-10}
            )
            if grad_func is not None:
                grad_norm = np.max(np.abs(grad_func(result.x)))
            else:
                grad_norm = np.inf

            if result.fun < best_obj or grad_norm < best_grad_norm * 0.1:
                best_theta = result.x
                best_obj = result.fun
                best_grad_norm = grad_norm

            if grad_norm < 1e-8:
                return self._project_to_support(result.x, bounds_list)

        if best_grad_norm > 1e-4:
            warnings.warn(
                f"{self.name}: expectation to natural conversion may not have "
                f"converged well (max gradient norm: {best_grad_norm:.2e})",
                ConvergenceWarning,
                stacklevel=2,
            )
        return self._project_to_support(best_theta, bounds_list)


__all__ = ["ExponentialFamily"]
