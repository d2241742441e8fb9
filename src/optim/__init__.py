"""Optimization algorithms module.

This package contains solver implementations including:
- Gradient descent with Armijo line search (deterministic and stochastic)
- Adam gradient descent with a stochasticity hook
- Augmented Lagrangian and log-barrier solvers for inequality constraints
- The hyperparameter store and per-solver default tables
"""

from __future__ import annotations

from optim.adam import AdamGradientDescent
from optim.augmented_lagrangian import AugmentedLagrangian, augmented_lagrangian
from optim.gradient_descent import GradientDescent, StochasticGradientDescent
from optim.hyperparams import (
    ADAM_DEFAULTS,
    AUGMENTED_LAGRANGIAN_DEFAULTS,
    GD_DEFAULTS,
    LOG_BARRIER_DEFAULTS,
    Hyperparams,
)
from optim.log_barrier import LogBarrier, log_barrier_function

__all__ = [
    # Unconstrained
    "GradientDescent",
    "StochasticGradientDescent",
    "AdamGradientDescent",
    # Constrained
    "AugmentedLagrangian",
    "augmented_lagrangian",
    "LogBarrier",
    "log_barrier_function",
    # Hyperparameters
    "Hyperparams",
    "GD_DEFAULTS",
    "ADAM_DEFAULTS",
    "AUGMENTED_LAGRANGIAN_DEFAULTS",
    "LOG_BARRIER_DEFAULTS",
]
