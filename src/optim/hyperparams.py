"""Hyperparameter store shared by all solvers.

Hyperparams is a string-keyed mapping with default fallback. Each solver
ships a read-only default table and copies it into a fresh store on
construction; callers override entries before a run. Values are not
range-checked here: a negative step size is accepted and simply makes the
solver misbehave.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any, TypeVar

__all__ = [
    "Hyperparams",
    # Keys
    "INIT_STEPSIZE",
    "STEP_DECR",
    "STEP_INCR",
    "TERMINATION_STEPSIZE",
    "LINESEARCH_FACTOR",
    "MAX_ITERATIONS",
    "MAX_LINESEARCH_ITER",
    "BETA1",
    "BETA2",
    "EPSILON",
    "MU_INIT",
    "MU_INCR",
    "MU_DECR",
    "OUTER_TOLERANCE",
    # Default tables
    "GD_DEFAULTS",
    "ADAM_DEFAULTS",
    "AUGMENTED_LAGRANGIAN_DEFAULTS",
    "LOG_BARRIER_DEFAULTS",
]

T = TypeVar("T")

# Initial step size (alpha)
INIT_STEPSIZE = "init_stepsize"
# Terminate once a step is no longer than this
TERMINATION_STEPSIZE = "termination_stepsize"
# Maximum number of descent steps (outer iterations for constrained solvers)
MAX_ITERATIONS = "max_iterations"
# Maximum number of step shrinks per line search
MAX_LINESEARCH_ITER = "max_linesearch_iter"
# Step size factor on line search rejection, in (0, 1)
STEP_DECR = "step_decr"
# Step size factor after an accepted step, >= 1
STEP_INCR = "step_incr"
# Sufficient decrease factor c of the Armijo condition, typically in [0.01, 0.1]
LINESEARCH_FACTOR = "linesearch_factor"
# Adam moment decay rates and divide-by-zero guard
BETA1 = "beta1"
BETA2 = "beta2"
EPSILON = "epsilon"
# Penalty / barrier weight schedule
MU_INIT = "mu_init"
MU_INCR = "mu_incr"
MU_DECR = "mu_decr"
# Optional early stop of constrained outer loops; None disables it
OUTER_TOLERANCE = "outer_tolerance"

GD_DEFAULTS: Mapping[str, Any] = MappingProxyType(
    {
        STEP_DECR: 0.5,
        STEP_INCR: 1.2,
        INIT_STEPSIZE: 1.0,
        TERMINATION_STEPSIZE: 1e-8,
        LINESEARCH_FACTOR: 0.01,
        MAX_ITERATIONS: 100,
        MAX_LINESEARCH_ITER: 20,
    }
)

ADAM_DEFAULTS: Mapping[str, Any] = MappingProxyType(
    {
        BETA1: 0.9,
        BETA2: 0.999,
        INIT_STEPSIZE: 1.0,
        EPSILON: 1e-9,
        TERMINATION_STEPSIZE: 1e-8,
        MAX_ITERATIONS: 100,
    }
)

AUGMENTED_LAGRANGIAN_DEFAULTS: Mapping[str, Any] = MappingProxyType(
    {
        MAX_ITERATIONS: 80,
        MU_INIT: 1.0,
        MU_INCR: 1.01,
        INIT_STEPSIZE: 1.0,
        OUTER_TOLERANCE: None,
    }
)

LOG_BARRIER_DEFAULTS: Mapping[str, Any] = MappingProxyType(
    {
        MAX_ITERATIONS: 300,
        MU_INIT: 8.0,
        MU_DECR: 0.95,
        OUTER_TOLERANCE: None,
    }
)


class Hyperparams:
    """Typed key/value configuration with default fallback.

    Args:
        defaults: Initial entries, typically one of the ``*_DEFAULTS`` tables.
            The mapping is copied.
        **overrides: Entries that replace defaults.

    Example:
        >>> hp = Hyperparams(GD_DEFAULTS, max_iterations=500)
        >>> hp.get(MAX_ITERATIONS)
        500
        >>> hp.get_or_default("missing", 3)
        3
    """

    def __init__(self, defaults: Mapping[str, Any] | None = None, **overrides: Any) -> None:
        self._params: dict[str, Any] = dict(defaults or {})
        self._params.update(overrides)

    def get(self, name: str) -> Any:
        """Return the value stored under ``name``.

        Raises:
            KeyError: If ``name`` is not set.
        """
        try:
            return self._params[name]
        except KeyError:
            raise KeyError(f"Hyperparameter {name!r} is not set") from None

    def get_or_default(self, name: str, default: T) -> T:
        """Return the value stored under ``name``, or ``default`` if unset."""
        return self._params[name] if name in self._params else default

    def set(self, name: str, value: Any) -> None:
        self._params[name] = value

    def has(self, name: str) -> bool:
        return name in self._params

    def update(self, values: Mapping[str, Any]) -> None:
        self._params.update(values)

    def copy(self) -> Hyperparams:
        return Hyperparams(self._params)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._params)

    def __contains__(self, name: object) -> bool:
        return name in self._params

    def __iter__(self) -> Iterator[str]:
        return iter(self._params)

    def __len__(self) -> int:
        return len(self._params)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Hyperparams):
            return NotImplemented
        return self._params == other._params

    def __repr__(self) -> str:
        return f"Hyperparams({self._params!r})"
