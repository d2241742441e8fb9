"""Augmented Lagrangian solver for inequality-constrained problems.

Each outer iteration minimizes

    L(x) = f(x) + sum_i [lambda_i * g_i(x) + mu * max(0, g_i(x)) * g_i(x)]

with GradientDescent, then raises the multipliers by projected ascent
``lambda_i <- max(0, lambda_i + 2 mu g_i(x))`` and grows the penalty weight
``mu <- mu * mu_incr``.
"""

from __future__ import annotations

import numpy as np

from core.errors import DimensionMismatch
from core.logging import get_logger
from core.protocols import NumericBackend
from core.types import DescentHistory, Matrix, TrajectoryInfo
from optim.gradient_descent import GradientDescent
from optim.hyperparams import (
    AUGMENTED_LAGRANGIAN_DEFAULTS,
    GD_DEFAULTS,
    INIT_STEPSIZE,
    MAX_ITERATIONS,
    MU_INCR,
    MU_INIT,
    OUTER_TOLERANCE,
    Hyperparams,
)
from problems.functions import ScalarFunctionWithGradient
from problems.problem import OptimizationProblem

__all__ = ["AugmentedLagrangian", "augmented_lagrangian"]

logger = get_logger(__name__)


def augmented_lagrangian(
    problem: OptimizationProblem,
    multipliers: np.ndarray,
    mu: float,
    backend: NumericBackend,
) -> ScalarFunctionWithGradient:
    """Build the augmented Lagrangian of ``problem`` for fixed multipliers and mu.

    The quadratic penalty only acts where a constraint is violated, so the
    gradient is

        grad L(x) = grad f(x) + sum_i [lambda_i + 2 mu max(0, g_i(x))] * grad g_i(x)

    Args:
        problem: The constrained problem.
        multipliers: One non-negative multiplier per constraint. Copied.
        mu: Penalty weight.
        backend: Numeric backend for the matrix type.
    """
    lam = np.array(multipliers, dtype=np.float64, copy=True)
    if lam.shape != (problem.num_constraints,):
        raise DimensionMismatch(
            f"Expected {problem.num_constraints} multipliers, got shape {lam.shape}"
        )

    def value(x: Matrix) -> float:
        result = problem.f(x)
        for lam_i, g in zip(lam, problem.g):
            gx = g(x)
            result += lam_i * gx + mu * max(0.0, gx) * gx
        return float(result)

    def gradient(x: Matrix) -> Matrix:
        result = backend.copy(problem.df(x))
        for lam_i, g, dg in zip(lam, problem.g, problem.dg):
            weight = lam_i + 2.0 * mu * max(0.0, g(x))
            if weight != 0.0:
                result = backend.add_inp(result, backend.scale(dg(x), weight))
        return result

    return ScalarFunctionWithGradient(value, gradient)


class AugmentedLagrangian:
    """Method of multipliers on top of GradientDescent.

    Attributes:
        backend: Numeric backend for the matrix type.
        hyperparams: See ``optim.hyperparams.AUGMENTED_LAGRANGIAN_DEFAULTS``.
        inner_hyperparams: Hyperparameters of the inner GradientDescent; its
            initial step size is taken from ``hyperparams``.
        multipliers: Multipliers after the last run.
        mu: Penalty weight after the last run.
        num_iterations: Outer iterations performed by the last run.
    """

    def __init__(
        self,
        backend: NumericBackend,
        hyperparams: Hyperparams | None = None,
        inner_hyperparams: Hyperparams | None = None,
    ) -> None:
        self.backend = backend
        self.hyperparams = (
            hyperparams if hyperparams is not None else Hyperparams(AUGMENTED_LAGRANGIAN_DEFAULTS)
        )
        self.inner_hyperparams = (
            inner_hyperparams if inner_hyperparams is not None else Hyperparams(GD_DEFAULTS)
        )
        self.multipliers = np.zeros(0)
        self.mu = float("nan")
        self.num_iterations = 0

    def _snapshot(
        self,
        problem: OptimizationProblem,
        x: Matrix,
        multipliers: np.ndarray,
        mu: float,
        objective: ScalarFunctionWithGradient,
    ) -> TrajectoryInfo:
        return TrajectoryInfo(
            x=self.backend.to_array(x),
            fx=float(problem.f(x)),
            gx=problem.evaluate_constraints(x),
            multipliers=multipliers.copy(),
            loss=float(objective(x)),
            mu=mu,
        )

    def arg_min(
        self,
        problem: OptimizationProblem,
        initial_guess: Matrix,
        trace: list[TrajectoryInfo] | None = None,
        descent_logs: list[DescentHistory] | None = None,
    ) -> Matrix:
        """Minimize ``problem`` starting from ``initial_guess``.

        Args:
            problem: Problem with inequality constraints g_i(x) <= 0.
            initial_guess: Starting point; need not be feasible. Copied.
            trace: If given, receives a snapshot before and after every
                inner minimization.
            descent_logs: If given, receives the trajectory of every inner
                GradientDescent run.

        Returns:
            The final iterate.

        Raises:
            DimensionMismatch: If the initial guess does not have
                ``problem.dimensionality`` elements.
        """
        mc = self.backend
        if mc.num_elem(initial_guess) != problem.dimensionality:
            raise DimensionMismatch(
                f"Initial guess has {mc.num_elem(initial_guess)} elements, "
                f"problem dimensionality is {problem.dimensionality}"
            )

        hp = self.hyperparams
        max_iterations = int(hp.get_or_default(MAX_ITERATIONS, 80))
        mu = float(hp.get_or_default(MU_INIT, 1.0))
        mu_incr = float(hp.get_or_default(MU_INCR, 1.01))
        tolerance = hp.get_or_default(OUTER_TOLERANCE, None)

        inner_hp = self.inner_hyperparams.copy()
        inner_hp.set(INIT_STEPSIZE, float(hp.get_or_default(INIT_STEPSIZE, 1.0)))

        multipliers = np.zeros(problem.num_constraints)
        x = mc.copy(initial_guess)
        num_iterations = 0
        while num_iterations < max_iterations:
            objective = augmented_lagrangian(problem, multipliers, mu, mc)
            if trace is not None:
                trace.append(self._snapshot(problem, x, multipliers, mu, objective))

            gd = GradientDescent(mc, inner_hp.copy())
            descent_log = DescentHistory() if descent_logs is not None else None
            x_prev = x
            x = gd.arg_min(objective, objective.gradient(), x, descent_log)
            if descent_logs is not None:
                descent_logs.append(descent_log)

            if trace is not None:
                trace.append(self._snapshot(problem, x, multipliers, mu, objective))

            gx = problem.evaluate_constraints(x)
            multipliers = np.maximum(0.0, multipliers + 2.0 * mu * gx)
            num_iterations += 1
            logger.debug(
                "outer iteration %d: f=%.6g, max violation=%.3g, mu=%.4g",
                num_iterations,
                problem.f(x),
                float(max(0.0, gx.max())) if gx.size else 0.0,
                mu,
            )
            mu *= mu_incr

            if tolerance is not None:
                moved = mc.dist(x, x_prev)
                violation = float(max(0.0, gx.max())) if gx.size else 0.0
                if moved <= tolerance and violation <= tolerance:
                    logger.info(
                        "Stopping after %d outer iterations: step %.3g and violation %.3g within %.3g",
                        num_iterations,
                        moved,
                        violation,
                        tolerance,
                    )
                    break

        self.multipliers = multipliers
        self.mu = mu
        self.num_iterations = num_iterations
        return x
