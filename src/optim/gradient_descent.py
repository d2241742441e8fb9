"""Gradient descent with backtracking line search.

This module provides:
- GradientDescent: steepest descent along the normalized negative gradient,
  with an Armijo (first Wolfe) line search and a self-tuning step size
- StochasticGradientDescent: the same loop, publishing a fresh random
  integer before every iteration so objectives can sub-sample their data

GradientDescent is also the inner solver of the constrained solvers.
"""

from __future__ import annotations

import numpy as np

from core.errors import DimensionMismatch
from core.logging import get_logger
from core.protocols import DescentLog, NumericBackend, ScalarFn, VectorFn
from core.rng import Ref, make_rng, publish_random_int
from core.types import Matrix
from optim.hyperparams import (
    GD_DEFAULTS,
    INIT_STEPSIZE,
    LINESEARCH_FACTOR,
    MAX_ITERATIONS,
    MAX_LINESEARCH_ITER,
    STEP_DECR,
    STEP_INCR,
    TERMINATION_STEPSIZE,
    Hyperparams,
)

__all__ = [
    "GradientDescent",
    "StochasticGradientDescent",
]

logger = get_logger(__name__)


class GradientDescent:
    """Steepest descent with adaptive step size.

    Each iteration:
        d = normalize(-grad f(x))
        shrink a <- a * step_decr while f(x + a*d) > f(x) + c * a * <grad f(x), d>
            (at most max_linesearch_iter times, then the last step is taken anyway)
        x <- x + a*d
        a <- a * step_incr

    The loop stops after ``max_iterations`` steps or once a step is no longer
    than ``termination_stepsize``. Both are ordinary terminations.

    Attributes:
        backend: Numeric backend for the matrix type.
        hyperparams: See ``optim.hyperparams.GD_DEFAULTS``.
        loss_on_termination: f at the returned point.
        step_size_on_termination: Step size a of the last accepted step.
        num_iterations: Number of descent steps taken by the last run.
    """

    def __init__(self, backend: NumericBackend, hyperparams: Hyperparams | None = None) -> None:
        """Initialize the solver.

        Args:
            backend: Numeric backend for the matrix type.
            hyperparams: Overrides; a copy of ``GD_DEFAULTS`` is used if None.
        """
        self.backend = backend
        self.hyperparams = hyperparams if hyperparams is not None else Hyperparams(GD_DEFAULTS)
        self.loss_on_termination = float("nan")
        self.step_size_on_termination = float("nan")
        self.num_iterations = 0

    @property
    def loss(self) -> float:
        """Loss when the last ``arg_min`` terminated."""
        return self.loss_on_termination

    def _before_evaluation(self) -> None:
        """Hook run at the start of every iteration, before f and df are evaluated."""

    def arg_min(
        self,
        f: ScalarFn,
        df: VectorFn,
        initial_guess: Matrix,
        log: DescentLog | None = None,
    ) -> Matrix:
        """Find a minimizer of ``f`` by gradient descent.

        Args:
            f: Function to be minimized.
            df: Gradient of the function.
            initial_guess: Starting point. It is copied, never modified.
            log: Optional recorder for the optimization trajectory.

        Returns:
            Location of the minimum (best effort).

        Raises:
            DimensionMismatch: If ``df`` returns a vector of a different size
                than the iterate.
        """
        mc = self.backend
        hp = self.hyperparams
        a = float(hp.get_or_default(INIT_STEPSIZE, 1.0))
        step_decr = float(hp.get_or_default(STEP_DECR, 0.5))
        step_incr = float(hp.get_or_default(STEP_INCR, 1.2))
        termination_step_size = float(hp.get_or_default(TERMINATION_STEPSIZE, 1e-8))
        line_search_factor = float(hp.get_or_default(LINESEARCH_FACTOR, 0.01))
        max_descent_steps = int(hp.get_or_default(MAX_ITERATIONS, 100))
        max_line_search_iter = int(hp.get_or_default(MAX_LINESEARCH_ITER, 20))

        x = mc.copy(initial_guess)
        num_steps = 0
        exhausted_line_searches = 0
        while True:
            self._before_evaluation()
            fx = float(f(x))
            dfx = df(x)
            if mc.num_elem(dfx) != mc.num_elem(x):
                raise DimensionMismatch(
                    f"Gradient has {mc.num_elem(dfx)} elements, iterate has {mc.num_elem(x)}"
                )
            d = mc.normalize_inp(mc.scale(dfx, -1.0))
            if log is not None:
                log.position(mc.to_array(x))
                log.loss(fx)
                log.direction(mc.to_array(d))
                log.step_size(a)

            # Armijo: f(x + a*d) <= f(x) + c * <df(x), a*d>
            slope = mc.inner(dfx, d)
            step = mc.scale(d, a)
            num_shrinks = 0
            while f(mc.add(x, step)) > fx + line_search_factor * a * slope:
                if num_shrinks >= max_line_search_iter:
                    exhausted_line_searches += 1
                    break
                num_shrinks += 1
                a *= step_decr
                step = mc.scale(d, a)
                if log is not None:
                    log.step_size(a)

            x = mc.add(x, step)
            self.step_size_on_termination = a
            a *= step_incr
            num_steps += 1
            if num_steps >= max_descent_steps:
                reason = "max iterations"
                break
            if mc.norm(step) <= termination_step_size:
                reason = "step size below threshold"
                break

        self.num_iterations = num_steps
        self.loss_on_termination = float(f(x))
        if log is not None:
            log.position(mc.to_array(x))
            log.loss(self.loss_on_termination)

        if exhausted_line_searches:
            logger.debug(
                "Line search hit the cap of %d shrinks in %d of %d iterations",
                max_line_search_iter,
                exhausted_line_searches,
                num_steps,
            )
        logger.debug(
            "%s terminated (%s) after %d iterations, loss=%.6g",
            type(self).__name__,
            reason,
            num_steps,
            self.loss_on_termination,
        )
        return x


class StochasticGradientDescent(GradientDescent):
    """Gradient descent with a per-iteration random number.

    Before f and df are evaluated in an iteration, a fresh random integer is
    published through ``rand_ref``. Objectives that hold the same Ref read
    it to select the subset of data they evaluate on, which turns the
    deterministic loop into stochastic gradient descent.

    Attributes:
        rand: Generator producing the published numbers.
        rand_ref: Cell holding the number of the current iteration.
    """

    def __init__(
        self,
        backend: NumericBackend,
        hyperparams: Hyperparams | None = None,
        *,
        seed: int | None = None,
        rand_ref: Ref[int] | None = None,
    ) -> None:
        super().__init__(backend, hyperparams)
        self.rand: np.random.Generator = make_rng(seed)
        self.rand_ref: Ref[int] = rand_ref if rand_ref is not None else Ref()

    def _before_evaluation(self) -> None:
        publish_random_int(self.rand, self.rand_ref)
