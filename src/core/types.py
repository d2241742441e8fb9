"""Core type definitions for the solver toolkit.

This module contains:
- Type aliases for backend matrices and exported flat arrays
- ``DescentHistory``, the default trajectory recorder for descent runs
- ``TrajectoryInfo``, the per-outer-iteration snapshot of constrained solvers
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np

__all__ = [
    "Matrix",
    "FlatArray",
    "DescentHistory",
    "TrajectoryInfo",
]

# Opaque backend value (vector or matrix); numpy arrays for NumpyBackend
Matrix = Any

# Flat float64 export of a backend value (see NumericBackend.to_array)
FlatArray = np.ndarray


@dataclass
class DescentHistory:
    """Recorder for the trajectory of a single descent run.

    Implements the ``DescentLog`` protocol. Solvers call ``position``,
    ``loss``, ``direction`` and ``step_size`` once per iteration before the
    step is applied; line searches add one ``step_size`` entry per shrink,
    and gradient descent appends a final position/loss pair on termination.
    The recorder is never read by the solver.

    Example:
        >>> history = DescentHistory()
        >>> history.position(np.array([0.0, 1.0]))
        >>> history.loss(2.5)
        >>> len(history), history.final_loss()
        (1, 2.5)
    """

    positions: list[FlatArray] = field(default_factory=list)
    losses: list[float] = field(default_factory=list)
    directions: list[FlatArray] = field(default_factory=list)
    step_sizes: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        """Return the number of recorded positions."""
        return len(self.positions)

    def position(self, x: FlatArray) -> None:
        self.positions.append(np.array(x, dtype=np.float64, copy=True))

    def loss(self, value: float) -> None:
        self.losses.append(float(value))

    def direction(self, d: FlatArray) -> None:
        self.directions.append(np.array(d, dtype=np.float64, copy=True))

    def step_size(self, value: float) -> None:
        self.step_sizes.append(float(value))

    def last_position(self) -> FlatArray:
        """Return the most recent position.

        Raises:
            IndexError: If nothing has been recorded.
        """
        return self.positions[-1]

    def final_loss(self) -> float:
        """Return the most recent loss.

        Raises:
            IndexError: If nothing has been recorded.
        """
        return self.losses[-1]

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable view of the recorded trajectory."""
        return {
            "positions": [p.tolist() for p in self.positions],
            "losses": list(self.losses),
            "directions": [d.tolist() for d in self.directions],
            "step_sizes": list(self.step_sizes),
        }


@dataclass(frozen=True, slots=True)
class TrajectoryInfo:
    """Snapshot of a constrained solver between inner minimizations.

    Attributes:
        x: Current point as a flat array.
        fx: Objective value f(x).
        gx: Constraint values g_i(x).
        multipliers: Lagrange multipliers (augmented Lagrangian) or the
            implied estimates -mu/g_i(x) (log barrier).
        loss: Value of the transformed objective at x.
        mu: Penalty (augmented Lagrangian) or barrier (log barrier) weight.
    """

    x: FlatArray
    fx: float
    gx: FlatArray
    multipliers: FlatArray
    loss: float
    mu: float

    def copy(self) -> TrajectoryInfo:
        """Return a structural copy that shares no arrays with this one."""
        return replace(
            self,
            x=self.x.copy(),
            gx=self.gx.copy(),
            multipliers=self.multipliers.copy(),
        )

    @property
    def max_violation(self) -> float:
        """Largest positive constraint value, 0.0 when feasible or unconstrained."""
        if self.gx.size == 0:
            return 0.0
        return float(max(0.0, float(np.max(self.gx))))
