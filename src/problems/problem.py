"""Constrained optimization problem representation.

This module provides:
- OptimizationProblem: immutable bundle of objective, gradient, inequality
  constraints g_i(x) <= 0 and their gradients
- OptimizationProblemBuilder: assembles a problem and fills in missing
  gradients (analytic when available, finite differences otherwise)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np

from core.errors import InvalidProblem
from core.protocols import NumericBackend
from core.types import Matrix
from problems.functions import (
    ScalarFunction,
    VectorFunction,
    as_scalar_function,
    as_vector_function,
)
from problems.numeric_gradient import NumericGradient

__all__ = ["OptimizationProblem", "OptimizationProblemBuilder"]


@dataclass(frozen=True)
class OptimizationProblem:
    """Minimize f(x) subject to g_i(x) <= 0 for all i.

    Attributes:
        dimensionality: Size n of every vector the functions accept.
        f: Objective function.
        df: Gradient of the objective.
        g: Inequality constraints.
        dg: Gradients of the constraints, ``dg[i]`` belongs to ``g[i]``.
    """

    dimensionality: int
    f: ScalarFunction
    df: VectorFunction
    g: tuple[ScalarFunction, ...] = field(default_factory=tuple)
    dg: tuple[VectorFunction, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.dimensionality < 1:
            raise InvalidProblem(f"dimensionality must be >= 1, got {self.dimensionality}")
        if len(self.g) != len(self.dg):
            raise InvalidProblem(
                f"Got {len(self.g)} constraints but {len(self.dg)} constraint gradients"
            )

    @property
    def num_constraints(self) -> int:
        return len(self.g)

    def evaluate_constraints(self, x: Matrix) -> np.ndarray:
        """Return the constraint values g_i(x) as a flat array."""
        return np.array([g(x) for g in self.g], dtype=np.float64)

    def max_violation(self, x: Matrix) -> float:
        """Return max(0, max_i g_i(x)), 0.0 for unconstrained problems."""
        if not self.g:
            return 0.0
        return float(max(0.0, float(self.evaluate_constraints(x).max())))


class OptimizationProblemBuilder:
    """Builder for OptimizationProblem.

    Gradients that are not passed explicitly are taken from the function's
    ``gradient()`` when it provides one, and estimated with forward finite
    differences otherwise. A builder is meant to produce a single problem.

    Example:
        >>> mc = NumpyBackend()
        >>> problem = (
        ...     OptimizationProblemBuilder(2, mc)
        ...     .set_objective(lambda x: float(x @ x))
        ...     .add_inequality_constraint(linear(mc.vec_of(1.0, 0.0), -2.0, mc))
        ...     .build()
        ... )
        >>> problem.num_constraints
        1
    """

    def __init__(self, dimensionality: int, backend: NumericBackend) -> None:
        self.dimensionality = dimensionality
        self.backend = backend
        self._objective: ScalarFunction | None = None
        self._objective_deriv: VectorFunction | None = None
        self._constraints: list[ScalarFunction] = []
        self._constraint_derivs: list[VectorFunction] = []

    def _resolve_gradient(
        self,
        fn: ScalarFunction,
        dfn: VectorFunction | Callable[[Matrix], Matrix] | None,
    ) -> VectorFunction:
        if dfn is not None:
            return as_vector_function(dfn)
        analytic = fn.gradient()
        if analytic is not None:
            return analytic
        return NumericGradient(fn, self.backend)

    def set_objective(
        self,
        f: ScalarFunction | Callable[[Matrix], float],
        df: VectorFunction | Callable[[Matrix], Matrix] | None = None,
    ) -> OptimizationProblemBuilder:
        """Set the objective to minimize.

        Args:
            f: Objective function.
            df: Optional gradient of ``f``.

        Returns:
            The builder, for chaining.
        """
        if f is None:
            raise InvalidProblem("objective must not be None")
        objective = as_scalar_function(f)
        self._objective = objective
        self._objective_deriv = self._resolve_gradient(objective, df)
        return self

    def add_inequality_constraint(
        self,
        g: ScalarFunction | Callable[[Matrix], float],
        dg: VectorFunction | Callable[[Matrix], Matrix] | None = None,
    ) -> OptimizationProblemBuilder:
        """Add the constraint g(x) <= 0.

        Args:
            g: Constraint function.
            dg: Optional gradient of ``g``.

        Returns:
            The builder, for chaining.
        """
        if g is None:
            raise InvalidProblem("constraint must not be None")
        constraint = as_scalar_function(g)
        self._constraints.append(constraint)
        self._constraint_derivs.append(self._resolve_gradient(constraint, dg))
        return self

    def build(self) -> OptimizationProblem:
        """Create the problem.

        Raises:
            InvalidProblem: If no objective was set or the dimensionality is
                not positive.
        """
        if self._objective is None or self._objective_deriv is None:
            raise InvalidProblem("Cannot build a problem without an objective; call set_objective() first")
        return OptimizationProblem(
            dimensionality=self.dimensionality,
            f=self._objective,
            df=self._objective_deriv,
            g=tuple(self._constraints),
            dg=tuple(self._constraint_derivs),
        )
