"""Finite-difference gradient estimators.

Used when an objective or constraint comes without an analytic gradient.

- NumericGradient: forward differences, n+1 evaluations, O(h) error
- NumericCentralGradient: central differences, 2n evaluations, O(h^2) error

The step ``h`` is fixed (default 1e-4). Larger values bias the estimate,
smaller ones amplify floating point cancellation; no step selection is done.
"""

from __future__ import annotations

from collections.abc import Callable

from core.protocols import NumericBackend
from core.types import Matrix
from problems.functions import VectorFunction

__all__ = ["NumericGradient", "NumericCentralGradient", "DEFAULT_H"]

DEFAULT_H = 1e-4


class _FiniteDifference(VectorFunction):
    def __init__(
        self,
        f: Callable[[Matrix], float],
        backend: NumericBackend,
        h: float = DEFAULT_H,
    ) -> None:
        super().__init__()
        if h <= 0:
            raise ValueError(f"h must be positive, got {h}")
        self.f = f
        self.backend = backend
        self.h = h


class NumericGradient(_FiniteDifference):
    """Forward-difference gradient of a scalar function.

    Component i is ``(f(x + h*e_i) - f(x)) / h``. The input vector is
    perturbed in place one coordinate at a time and restored afterwards,
    also when ``f`` raises.

    Example:
        >>> mc = NumpyBackend()
        >>> df = NumericGradient(lambda x: float(x @ x), mc)
        >>> g = df(mc.vec_of(1.0, 2.0))  # [2 + h, 4 + h]
    """

    def evaluate(self, x: Matrix) -> Matrix:
        mc = self.backend
        dim = mc.num_elem(x)
        fx = self.f(x)
        d = mc.zeros(dim)
        for i in range(dim):
            x_i = mc.get(x, i)
            mc.set_inp(x, i, x_i + self.h)
            try:
                f_plus = self.f(x)
            finally:
                mc.set_inp(x, i, x_i)
            mc.set_inp(d, i, (f_plus - fx) / self.h)
        return d

    def central(self) -> NumericCentralGradient:
        """Return the central-difference estimator for the same function and step."""
        return NumericCentralGradient(self.f, self.backend, self.h)


class NumericCentralGradient(_FiniteDifference):
    """Central-difference gradient of a scalar function.

    Component i is ``(f(x + h*e_i) - f(x - h*e_i)) / (2h)``.
    """

    def evaluate(self, x: Matrix) -> Matrix:
        mc = self.backend
        dim = mc.num_elem(x)
        half_inv_h = 0.5 / self.h
        d = mc.zeros(dim)
        for i in range(dim):
            x_i = mc.get(x, i)
            try:
                mc.set_inp(x, i, x_i + self.h)
                f_plus = self.f(x)
                mc.set_inp(x, i, x_i - self.h)
                f_minus = self.f(x)
            finally:
                mc.set_inp(x, i, x_i)
            mc.set_inp(d, i, (f_plus - f_minus) * half_inv_h)
        return d
