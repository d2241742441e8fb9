"""Log-barrier (interior point) solver for inequality-constrained problems.

Each outer iteration minimizes the barrier objective

    B(x) = f(x) - mu * sum_i log(-g_i(x))

with GradientDescent and then shrinks the barrier weight ``mu <- mu * mu_decr``.
The initial guess must be strictly feasible. Iterates that leave the
feasible set are pushed back by a heuristic gradient term, which is not
guaranteed to recover feasibility.
"""

from __future__ import annotations

import math

import numpy as np

from core.errors import DimensionMismatch
from core.logging import get_logger
from core.protocols import NumericBackend
from core.types import DescentHistory, Matrix, TrajectoryInfo
from optim.gradient_descent import GradientDescent
from optim.hyperparams import (
    GD_DEFAULTS,
    LOG_BARRIER_DEFAULTS,
    MAX_ITERATIONS,
    MU_DECR,
    MU_INIT,
    OUTER_TOLERANCE,
    Hyperparams,
)
from problems.functions import ScalarFunctionWithGradient
from problems.problem import OptimizationProblem

__all__ = ["LogBarrier", "log_barrier_function"]

logger = get_logger(__name__)


def log_barrier_function(
    problem: OptimizationProblem,
    mu: float,
    backend: NumericBackend,
) -> ScalarFunctionWithGradient:
    """Build the log-barrier objective of ``problem`` for barrier weight ``mu``.

    The value is ``math.inf`` wherever some g_i(x) >= 0.

    The gradient combines unit-length directions rather than raw gradients:

        normalize(grad f) + sum_i -(mu / g_i) * normalize(grad g_i)   if g_i < 0
                          + sum_i (1 + g_i) * normalize(grad g_i)     otherwise

    The second branch pushes an infeasible iterate back along the constraint
    gradient. It is a heuristic without a descent guarantee.

    Args:
        problem: The constrained problem.
        mu: Barrier weight.
        backend: Numeric backend for the matrix type.
    """

    def value(x: Matrix) -> float:
        result = float(problem.f(x))
        for g in problem.g:
            slack = -g(x)
            if slack <= 0.0:
                return math.inf
            result -= mu * math.log(slack)
        return result

    def gradient(x: Matrix) -> Matrix:
        result = backend.normalize(problem.df(x))
        for g, dg in zip(problem.g, problem.dg):
            gx = g(x)
            dgx = backend.normalize(dg(x))
            if gx < 0.0:
                result = backend.sub_inp(result, backend.scale(dgx, mu / gx))
            else:
                result = backend.add_inp(result, backend.scale(dgx, 1.0 + gx))
        return result

    return ScalarFunctionWithGradient(value, gradient)


class LogBarrier:
    """Interior point method on top of GradientDescent.

    Attributes:
        backend: Numeric backend for the matrix type.
        hyperparams: See ``optim.hyperparams.LOG_BARRIER_DEFAULTS``.
        inner_hyperparams: Hyperparameters of the inner GradientDescent.
        mu: Barrier weight after the last run.
        num_iterations: Outer iterations performed by the last run.
    """

    def __init__(
        self,
        backend: NumericBackend,
        hyperparams: Hyperparams | None = None,
        inner_hyperparams: Hyperparams | None = None,
    ) -> None:
        self.backend = backend
        self.hyperparams = hyperparams if hyperparams is not None else Hyperparams(LOG_BARRIER_DEFAULTS)
        self.inner_hyperparams = (
            inner_hyperparams if inner_hyperparams is not None else Hyperparams(GD_DEFAULTS)
        )
        self.mu = float("nan")
        self.num_iterations = 0

    def _snapshot(
        self,
        problem: OptimizationProblem,
        x: Matrix,
        mu: float,
        objective: ScalarFunctionWithGradient,
    ) -> TrajectoryInfo:
        gx = problem.evaluate_constraints(x)
        # lambda_i = -mu / g_i(x); inf on the boundary
        with np.errstate(divide="ignore", invalid="ignore"):
            multipliers = -mu / gx
        return TrajectoryInfo(
            x=self.backend.to_array(x),
            fx=float(problem.f(x)),
            gx=gx,
            multipliers=multipliers,
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
            initial_guess: Strictly feasible starting point. Copied.
            trace: If given, receives a snapshot before the first and after
                every outer iteration.
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
        max_iterations = int(hp.get_or_default(MAX_ITERATIONS, 300))
        mu = float(hp.get_or_default(MU_INIT, 8.0))
        mu_decr = float(hp.get_or_default(MU_DECR, 0.95))
        tolerance = hp.get_or_default(OUTER_TOLERANCE, None)

        x = mc.copy(initial_guess)
        warned = self._warn_if_infeasible(problem, x, "initial guess", False)
        if trace is not None:
            trace.append(self._snapshot(problem, x, mu, log_barrier_function(problem, mu, mc)))

        num_iterations = 0
        while num_iterations < max_iterations:
            objective = log_barrier_function(problem, mu, mc)
            gd = GradientDescent(mc, self.inner_hyperparams.copy())
            descent_log = DescentHistory() if descent_logs is not None else None
            x_prev = x
            x = gd.arg_min(objective, objective.gradient(), x, descent_log)
            if descent_logs is not None:
                descent_logs.append(descent_log)

            if trace is not None:
                trace.append(self._snapshot(problem, x, mu, objective))

            num_iterations += 1
            warned = self._warn_if_infeasible(problem, x, f"iterate {num_iterations}", warned)
            logger.debug(
                "outer iteration %d: f=%.6g, mu=%.4g", num_iterations, problem.f(x), mu
            )
            mu *= mu_decr

            if tolerance is not None:
                moved = mc.dist(x, x_prev)
                if moved <= tolerance:
                    logger.info(
                        "Stopping after %d outer iterations: step %.3g within %.3g",
                        num_iterations,
                        moved,
                        tolerance,
                    )
                    break

        self.mu = mu
        self.num_iterations = num_iterations
        return x

    @staticmethod
    def _warn_if_infeasible(
        problem: OptimizationProblem, x: Matrix, what: str, warned: bool
    ) -> bool:
        if warned or not problem.num_constraints:
            return warned
        gx = problem.evaluate_constraints(x)
        if gx.max() >= 0.0:
            logger.warning(
                "Log barrier %s is not strictly feasible (max g=%.3g); "
                "continuing with the push-back heuristic",
                what,
                float(gx.max()),
            )
            return True
        return False
