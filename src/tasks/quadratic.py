"""Shifted quadratic benchmark objective.

This module provides a quadratic bowl centered at a target point:
    f(x) = (x - t)^T B (x - t)

B need not be symmetric; only its symmetric part matters for f, and the
gradient is (B + B^T)(x - t). For positive definite B the unique minimum
is x* = t with f(x*) = 0, which makes the objective a convenient sanity
check for every solver.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from core.types import FlatArray
from problems.functions import ScalarFunctionWithGradient

__all__ = [
    "ShiftedQuadratic",
    "make_spd_quadratic",
]


@dataclass(frozen=True)
class ShiftedQuadratic:
    """Quadratic f(x) = (x - t)^T B (x - t).

    Attributes:
        B: Square matrix of shape (d, d).
        t: Target (minimizer for positive definite B) of shape (d,).

    Example:
        >>> q = ShiftedQuadratic(np.eye(2), np.array([1.0, -1.0]))
        >>> q.loss(np.zeros(2))
        2.0
        >>> q.grad(np.zeros(2))
        array([-2.,  2.])
    """

    B: np.ndarray
    t: np.ndarray

    def __post_init__(self) -> None:
        if self.B.ndim != 2 or self.B.shape[0] != self.B.shape[1]:
            raise ValueError(f"B must be square, got shape {self.B.shape}")
        if self.t.ndim != 1:
            raise ValueError(f"t must be 1D, got ndim={self.t.ndim}")
        if self.t.shape[0] != self.B.shape[0]:
            raise ValueError(
                f"Dimension mismatch: B is {self.B.shape[0]}x{self.B.shape[0]}, "
                f"t has length {self.t.shape[0]}"
            )

    @property
    def dim(self) -> int:
        """Dimensionality of the problem."""
        return int(self.B.shape[0])

    def loss(self, x: FlatArray) -> float:
        r = np.asarray(x, dtype=np.float64) - self.t
        return float(r @ self.B @ r)

    def grad(self, x: FlatArray) -> FlatArray:
        r = np.asarray(x, dtype=np.float64) - self.t
        return np.asarray((self.B + self.B.T) @ r, dtype=np.float64)

    def x_star(self) -> FlatArray:
        """Unconstrained minimizer (valid for positive definite B)."""
        return self.t.copy()

    def as_function(self) -> ScalarFunctionWithGradient:
        """Wrap as a function object carrying its analytic gradient."""
        return ScalarFunctionWithGradient(self.loss, self.grad)


def make_spd_quadratic(
    *,
    dim: int,
    rng: np.random.Generator,
    cond: float = 10.0,
) -> ShiftedQuadratic:
    """Generate a random SPD shifted quadratic with controlled condition number.

    B has eigenvalues uniformly spaced between 1 and ``cond`` in a random
    orthonormal basis. The target is standard normal.

    Args:
        dim: Dimensionality of the problem.
        rng: Random number generator for reproducibility.
        cond: Condition number of B. Must be >= 1.

    Raises:
        ValueError: If dim < 1 or cond < 1.

    Example:
        >>> q = make_spd_quadratic(dim=5, rng=np.random.default_rng(42))
        >>> q.dim
        5
    """
    if dim < 1:
        raise ValueError(f"dim must be >= 1, got {dim}")
    if cond < 1.0:
        raise ValueError(f"cond must be >= 1, got {cond}")

    Q, _ = np.linalg.qr(rng.standard_normal((dim, dim)))
    eigenvalues = np.array([1.0]) if dim == 1 else np.linspace(1.0, cond, dim)
    B = Q @ np.diag(eigenvalues) @ Q.T
    # QR round-off breaks exact symmetry
    B = (B + B.T) / 2.0

    t = rng.standard_normal(dim).astype(np.float64)
    return ShiftedQuadratic(B=B, t=t)
