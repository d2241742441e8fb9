"""Protocol definitions for the solver toolkit.

This module contains Protocol classes defining interfaces for:
- NumericBackend: vector/matrix arithmetic the solvers are written against
- DescentLog: sinks receiving per-iteration trajectory data
- DescentAlgorithm: unconstrained minimizers (gradient descent, Adam)
- ConstrainedSolver: drivers that minimize an OptimizationProblem
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import numpy as np

from core.types import FlatArray, Matrix, TrajectoryInfo

if TYPE_CHECKING:
    from optim.hyperparams import Hyperparams
    from problems.problem import OptimizationProblem

__all__ = [
    "NumericBackend",
    "DescentLog",
    "DescentAlgorithm",
    "ConstrainedSolver",
    "ScalarFn",
    "VectorFn",
]

# Anything callable on a backend vector; ScalarFunction/VectorFunction qualify
ScalarFn = Callable[[Matrix], float]
VectorFn = Callable[[Matrix], Matrix]


@runtime_checkable
class NumericBackend(Protocol):
    """Protocol for vector/matrix arithmetic on an opaque matrix type.

    Solvers only touch matrices through this interface, so any backend
    (dense, sparse, a foreign array library) can be swapped in.

    Conventions:
    - Vectors are column vectors: ``num_cols(v) == 1``.
    - Flat indices address elements in row-major order.
    - Methods ending in ``_inp`` modify their first argument in place and
      return it; every other method returns a new value and never aliases
      its inputs.
    - Element-wise operations on values of different shapes raise
      ``core.errors.DimensionMismatch``.
    """

    # Construction

    def vec_of(self, *values: float) -> Matrix:
        """Return a column vector holding ``values``."""
        ...

    def mat_of(self, n_rows: int, *values: float) -> Matrix:
        """Return an ``n_rows x len(values)/n_rows`` matrix filled row-major."""
        ...

    def mat_of_rows(self, rows: Sequence[Sequence[float]]) -> Matrix:
        """Return a matrix whose i-th row is ``rows[i]``."""
        ...

    def zeros(self, rows: int, cols: int | None = None) -> Matrix:
        """Return a zero vector of size ``rows``, or a zero matrix if ``cols`` is given."""
        ...

    def eye(self, n: int, s: float = 1.0) -> Matrix:
        """Return ``s`` times the ``n x n`` identity."""
        ...

    def rand(
        self, rows: int, cols: int | None = None, rng: np.random.Generator | None = None
    ) -> Matrix:
        """Return values drawn uniformly from [0, 1)."""
        ...

    def randn(
        self, rows: int, cols: int | None = None, rng: np.random.Generator | None = None
    ) -> Matrix:
        """Return standard normal values."""
        ...

    # Shape queries

    def num_rows(self, m: Matrix) -> int: ...

    def num_cols(self, m: Matrix) -> int: ...

    def num_elem(self, m: Matrix) -> int: ...

    # Arithmetic

    def add(self, a: Matrix, b: Matrix | float) -> Matrix: ...

    def sub(self, a: Matrix, b: Matrix | float) -> Matrix: ...

    def add_inp(self, a: Matrix, b: Matrix) -> Matrix: ...

    def sub_inp(self, a: Matrix, b: Matrix) -> Matrix: ...

    def scale(self, m: Matrix, s: float) -> Matrix: ...

    def scale_inp(self, m: Matrix, s: float) -> Matrix: ...

    def elmmul(self, a: Matrix, b: Matrix) -> Matrix:
        """Element-wise (Hadamard) product."""
        ...

    def matmul(self, a: Matrix, b: Matrix) -> Matrix: ...

    def trp(self, m: Matrix) -> Matrix:
        """Transpose."""
        ...

    def elemwise_inp(self, m: Matrix, fn: Callable[[float], float]) -> Matrix:
        """Apply ``fn`` to every element in place."""
        ...

    # Reductions

    def inner(self, a: Matrix, b: Matrix) -> float:
        """Inner (dot) product of two vectors."""
        ...

    def dot(self, a: Matrix, b: Matrix) -> float: ...

    def sum(self, m: Matrix) -> float: ...

    def norm2(self, v: Matrix) -> float:
        """Squared Euclidean norm."""
        ...

    def norm(self, v: Matrix) -> float: ...

    def dist(self, a: Matrix, b: Matrix) -> float: ...

    def normalize(self, m: Matrix, thresh: float = 1e-7) -> Matrix:
        """Return ``m`` scaled to unit norm, or a copy of ``m`` if its norm is below ``thresh``."""
        ...

    def normalize_inp(self, m: Matrix, thresh: float = 1e-7) -> Matrix: ...

    # Element access and export

    def get(self, m: Matrix, idx: int) -> float: ...

    def set_inp(self, m: Matrix, idx: int, value: float) -> Matrix: ...

    def copy(self, m: Matrix) -> Matrix: ...

    def to_array(self, m: Matrix) -> FlatArray:
        """Return all elements as a new flat float64 array (row-major)."""
        ...

    def to_array_2d(self, m: Matrix) -> np.ndarray:
        """Return the elements as a new row-major 2-D float64 array."""
        ...


@runtime_checkable
class DescentLog(Protocol):
    """Protocol for trajectory sinks.

    Solvers push data into the log and never read it back.
    """

    def position(self, x: FlatArray) -> None: ...

    def loss(self, value: float) -> None: ...

    def direction(self, d: FlatArray) -> None: ...

    def step_size(self, value: float) -> None: ...


@runtime_checkable
class DescentAlgorithm(Protocol):
    """Protocol for unconstrained minimizers.

    Attributes:
        hyperparams: Configuration read once at the start of each run.
    """

    hyperparams: Hyperparams

    def arg_min(
        self,
        f: ScalarFn,
        df: VectorFn,
        initial_guess: Matrix,
        log: DescentLog | None = None,
    ) -> Matrix:
        """Find a minimizer of ``f`` starting from ``initial_guess``.

        Args:
            f: Function to be minimized.
            df: Gradient of ``f``.
            initial_guess: Starting point; never modified.
            log: Optional trajectory recorder.

        Returns:
            The final iterate (best effort, not a certified optimum).
        """
        ...

    @property
    def loss(self) -> float:
        """Value of ``f`` at the point returned by the last ``arg_min``."""
        ...


@runtime_checkable
class ConstrainedSolver(Protocol):
    """Protocol for solvers of inequality-constrained problems."""

    hyperparams: Hyperparams

    def arg_min(
        self,
        problem: OptimizationProblem,
        initial_guess: Matrix,
        trace: list[TrajectoryInfo] | None = None,
        descent_logs: list[Any] | None = None,
    ) -> Matrix: ...
