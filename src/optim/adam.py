"""Adam gradient descent with a stochasticity hook.

This module provides:
- AdamGradientDescent: moment-based descent without line search

Stochasticity is realized through ``rand_ref``: a new random integer is
published before every iteration, and objectives reading the same Ref can
restrict their loss and gradient to the corresponding subset of data.
"""

from __future__ import annotations

import math

import numpy as np

from core.errors import DimensionMismatch
from core.logging import get_logger
from core.protocols import DescentLog, NumericBackend, ScalarFn, VectorFn
from core.rng import Ref, make_rng, publish_random_int
from core.types import Matrix
from optim.hyperparams import (
    ADAM_DEFAULTS,
    BETA1,
    BETA2,
    EPSILON,
    INIT_STEPSIZE,
    MAX_ITERATIONS,
    TERMINATION_STEPSIZE,
    Hyperparams,
)

__all__ = ["AdamGradientDescent"]

logger = get_logger(__name__)


class AdamGradientDescent:
    """Adam optimizer over an arbitrary numeric backend.

    Implements:
        m_t = beta1 * m_{t-1} + (1 - beta1) * g_t
        v_t = beta2 * v_{t-1} + (1 - beta2) * g_t^2
        alpha_t = alpha * sqrt(1 - beta2^t) / (1 - beta1^t)
        x_{t+1} = x_t - alpha_t * m_t / (sqrt(v_t) + eps)

    Terminates after ``max_iterations`` steps or once the Euclidean norm of
    the applied step is no larger than ``termination_stepsize``.

    Attributes:
        backend: Numeric backend for the matrix type.
        hyperparams: See ``optim.hyperparams.ADAM_DEFAULTS``.
        rand: Generator producing the per-iteration random numbers.
        rand_ref: Cell publishing the random number of the current iteration.
        loss_on_termination: f at the returned point.
        step_size_on_termination: Norm of the last applied step.
        num_iterations: Number of steps taken by the last run.
    """

    def __init__(
        self,
        backend: NumericBackend,
        hyperparams: Hyperparams | None = None,
        *,
        seed: int | None = None,
        rand_ref: Ref[int] | None = None,
    ) -> None:
        """Initialize the optimizer.

        Args:
            backend: Numeric backend for the matrix type.
            hyperparams: Overrides; a copy of ``ADAM_DEFAULTS`` is used if None.
            seed: Seed of ``rand``; None draws OS entropy.
            rand_ref: Cell to publish into; a new one is created if None.
        """
        self.backend = backend
        self.hyperparams = hyperparams if hyperparams is not None else Hyperparams(ADAM_DEFAULTS)
        self.rand: np.random.Generator = make_rng(seed)
        self.rand_ref: Ref[int] = rand_ref if rand_ref is not None else Ref()
        self.loss_on_termination = float("nan")
        self.step_size_on_termination = float("nan")
        self.num_iterations = 0

    @property
    def loss(self) -> float:
        """Loss when the last ``arg_min`` terminated."""
        return self.loss_on_termination

    def arg_min(
        self,
        f: ScalarFn,
        df: VectorFn,
        initial_guess: Matrix,
        log: DescentLog | None = None,
    ) -> Matrix:
        """Find a minimizer of ``f`` with Adam.

        Args:
            f: Function to be minimized; may read ``rand_ref``.
            df: Gradient of the function; may read ``rand_ref``.
            initial_guess: Starting point. It is copied, never modified.
            log: Optional recorder. The recorded direction is the raw
                gradient and the recorded step size is alpha_t.

        Returns:
            Location of the minimum (best effort).
        """
        mc = self.backend
        hp = self.hyperparams
        alpha = float(hp.get_or_default(INIT_STEPSIZE, 1.0))
        beta1 = float(hp.get_or_default(BETA1, 0.9))
        beta2 = float(hp.get_or_default(BETA2, 0.999))
        eps = float(hp.get_or_default(EPSILON, 1e-9))
        termination_step_size = float(hp.get_or_default(TERMINATION_STEPSIZE, 1e-8))
        max_descent_steps = int(hp.get_or_default(MAX_ITERATIONS, 100))

        def div_by_sqrt(value: float) -> float:
            return 1.0 / (math.sqrt(value) + eps)

        x = mc.copy(initial_guess)
        m = mc.scale(x, 0.0)
        v = mc.scale(x, 0.0)
        t = 0
        while True:
            publish_random_int(self.rand, self.rand_ref)
            fx = float(f(x))
            dfx = df(x)
            if mc.num_elem(dfx) != mc.num_elem(x):
                raise DimensionMismatch(
                    f"Gradient has {mc.num_elem(dfx)} elements, iterate has {mc.num_elem(x)}"
                )

            m = mc.add(mc.scale(m, beta1), mc.scale(dfx, 1.0 - beta1))
            v = mc.add(mc.scale(v, beta2), mc.scale(mc.elmmul(dfx, dfx), 1.0 - beta2))

            t += 1
            alpha_t = alpha * math.sqrt(1.0 - beta2**t) / (1.0 - beta1**t)
            step = mc.elemwise_inp(mc.copy(v), div_by_sqrt)
            step = mc.scale(mc.elmmul(m, step), -alpha_t)

            if log is not None:
                log.position(mc.to_array(x))
                log.loss(fx)
                log.direction(mc.to_array(dfx))
                log.step_size(alpha_t)

            x = mc.add(x, step)
            self.step_size_on_termination = mc.norm(step)
            if t >= max_descent_steps or self.step_size_on_termination <= termination_step_size:
                break

        self.num_iterations = t
        self.loss_on_termination = float(f(x))
        if log is not None:
            log.position(mc.to_array(x))
            log.loss(self.loss_on_termination)

        logger.debug(
            "Adam terminated after %d iterations, last step=%.3g, loss=%.6g",
            t,
            self.step_size_on_termination,
            self.loss_on_termination,
        )
        return x
