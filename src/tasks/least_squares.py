"""Mini-batch least squares objective.

This module provides:
- Synthetic regression data generation
- MiniBatchLeastSquares, an objective whose loss and gradient are restricted
  to a row subset chosen by the random number a stochastic solver publishes

The objective is
    f_S(x) = 1 / (2 |S|) * ||A_S x - b_S||^2

where S is the current mini-batch. Loss and gradient evaluated after the
same published number see the same batch.
"""

from __future__ import annotations

import numpy as np

from core.rng import Ref
from core.types import FlatArray
from problems.functions import ScalarFunctionWithGradient

__all__ = [
    "make_least_squares_data",
    "MiniBatchLeastSquares",
]


def make_least_squares_data(
    *,
    n: int,
    dim: int,
    rng: np.random.Generator,
    noise: float = 0.1,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Generate a noisy linear regression dataset.

    Args:
        n: Number of samples.
        dim: Feature dimensionality.
        rng: Random number generator.
        noise: Standard deviation of the additive label noise.

    Returns:
        Tuple of (A, b, x_true) where A has shape (n, dim), b has shape (n,)
        and b = A @ x_true + noise.

    Raises:
        ValueError: If n or dim is smaller than 1, or noise is negative.
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    if dim < 1:
        raise ValueError(f"dim must be >= 1, got {dim}")
    if noise < 0:
        raise ValueError(f"noise must be non-negative, got {noise}")

    A = rng.standard_normal((n, dim))
    x_true = rng.standard_normal(dim)
    b = A @ x_true + noise * rng.standard_normal(n)
    return A, b, x_true


class MiniBatchLeastSquares:
    """Least squares loss over a mini-batch selected through a Ref.

    When ``rand_ref`` holds a number, the batch is ``batch_size`` distinct
    rows drawn by a generator seeded with that number. When the cell is
    empty, or ``batch_size`` covers all rows, the full dataset is used.

    Attributes:
        A: Design matrix of shape (n, dim).
        b: Targets of shape (n,).
        rand_ref: Cell the solver publishes into.
        batch_size: Rows per batch.

    Example:
        >>> ref: Ref[int] = Ref()
        >>> A, b, _ = make_least_squares_data(n=100, dim=3, rng=np.random.default_rng(0))
        >>> objective = MiniBatchLeastSquares(A, b, ref, batch_size=10)
        >>> solver = AdamGradientDescent(NumpyBackend(), rand_ref=ref)  # doctest: +SKIP
    """

    def __init__(
        self,
        A: np.ndarray,
        b: np.ndarray,
        rand_ref: Ref[int],
        batch_size: int = 32,
    ) -> None:
        if A.ndim != 2:
            raise ValueError(f"A must be 2D, got ndim={A.ndim}")
        if b.shape != (A.shape[0],):
            raise ValueError(f"b must have shape ({A.shape[0]},), got {b.shape}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.A = np.asarray(A, dtype=np.float64)
        self.b = np.asarray(b, dtype=np.float64)
        self.rand_ref = rand_ref
        self.batch_size = batch_size
        self._cached_seed: int | None = None
        self._cached_rows: np.ndarray | None = None

    @property
    def dim(self) -> int:
        return int(self.A.shape[1])

    @property
    def num_samples(self) -> int:
        return int(self.A.shape[0])

    def batch_indices(self) -> np.ndarray:
        """Row indices of the current batch."""
        seed = self.rand_ref.get()
        if seed is None or self.batch_size >= self.num_samples:
            return np.arange(self.num_samples)
        if seed != self._cached_seed:
            rng = np.random.default_rng(seed)
            self._cached_rows = np.sort(
                rng.choice(self.num_samples, size=self.batch_size, replace=False)
            )
            self._cached_seed = seed
        return self._cached_rows

    def loss(self, x: FlatArray) -> float:
        rows = self.batch_indices()
        r = self.A[rows] @ x - self.b[rows]
        return float(0.5 * (r @ r) / rows.size)

    def grad(self, x: FlatArray) -> FlatArray:
        rows = self.batch_indices()
        A_s = self.A[rows]
        return A_s.T @ (A_s @ x - self.b[rows]) / rows.size

    def full_loss(self, x: FlatArray) -> float:
        """Loss over all rows, independent of the current batch."""
        r = self.A @ x - self.b
        return float(0.5 * (r @ r) / self.num_samples)

    def x_star(self) -> FlatArray:
        """Least squares solution over the full dataset."""
        solution, *_ = np.linalg.lstsq(self.A, self.b, rcond=None)
        return solution

    def as_function(self) -> ScalarFunctionWithGradient:
        """Wrap as a function object carrying its analytic gradient."""
        return ScalarFunctionWithGradient(self.loss, self.grad)
