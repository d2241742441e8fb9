"""Function abstractions for objectives, constraints and their gradients.

This module provides:
- ScalarFunction: maps a vector to a real number (plain variant)
- ScalarFunctionWithGradient: a ScalarFunction that also carries its gradient
- VectorFunction: maps a vector to a vector (a gradient field)
- constant/linear helpers for common closed-form functions

The two scalar variants differ only in what ``gradient()`` returns: ``None``
for the plain variant, a VectorFunction for the other one. Code that needs
a gradient asks for it instead of inspecting types.
"""

from __future__ import annotations

from collections.abc import Callable

from core.protocols import NumericBackend
from core.types import Matrix

__all__ = [
    "ScalarFunction",
    "ScalarFunctionWithGradient",
    "VectorFunction",
    "as_scalar_function",
    "as_vector_function",
    "constant",
    "linear",
    "vector_constant",
    "vector_linear",
]


class VectorFunction:
    """Function taking a vector and returning a vector.

    Either wrap a callable or subclass and override ``evaluate``.
    """

    def __init__(self, fn: Callable[[Matrix], Matrix] | None = None) -> None:
        self._fn = fn

    def evaluate(self, x: Matrix) -> Matrix:
        if self._fn is None:
            raise NotImplementedError(
                f"{type(self).__name__} must override evaluate() or wrap a callable"
            )
        return self._fn(x)

    def __call__(self, x: Matrix) -> Matrix:
        return self.evaluate(x)


class ScalarFunction:
    """Function taking a vector and returning a scalar.

    Either wrap a callable or subclass and override ``evaluate``.

    Example:
        >>> f = ScalarFunction(lambda x: float(x @ x))
        >>> f(np.array([1.0, 2.0]))
        5.0
        >>> f.gradient() is None
        True
    """

    def __init__(self, fn: Callable[[Matrix], float] | None = None) -> None:
        self._fn = fn

    def evaluate(self, x: Matrix) -> float:
        if self._fn is None:
            raise NotImplementedError(
                f"{type(self).__name__} must override evaluate() or wrap a callable"
            )
        return float(self._fn(x))

    def __call__(self, x: Matrix) -> float:
        return self.evaluate(x)

    def gradient(self) -> VectorFunction | None:
        """Return the analytic gradient, or None if the function has none."""
        return None


class ScalarFunctionWithGradient(ScalarFunction):
    """ScalarFunction that exposes its analytic gradient.

    Args:
        fn: The scalar function (optional when subclassing).
        gradient: The gradient, as a VectorFunction or plain callable.
            Subclasses may instead override ``gradient()``.
    """

    def __init__(
        self,
        fn: Callable[[Matrix], float] | None = None,
        gradient: Callable[[Matrix], Matrix] | None = None,
    ) -> None:
        super().__init__(fn)
        self._gradient = as_vector_function(gradient) if gradient is not None else None

    def gradient(self) -> VectorFunction:
        if self._gradient is None:
            raise NotImplementedError(
                f"{type(self).__name__} must override gradient() or be given one"
            )
        return self._gradient


def as_scalar_function(f: ScalarFunction | Callable[[Matrix], float]) -> ScalarFunction:
    """Wrap a plain callable as a ScalarFunction; pass ScalarFunctions through."""
    if isinstance(f, ScalarFunction):
        return f
    if not callable(f):
        raise TypeError(f"Expected a callable scalar function, got {type(f).__name__}")
    return ScalarFunction(f)


def as_vector_function(df: VectorFunction | Callable[[Matrix], Matrix]) -> VectorFunction:
    """Wrap a plain callable as a VectorFunction; pass VectorFunctions through."""
    if isinstance(df, VectorFunction):
        return df
    if not callable(df):
        raise TypeError(f"Expected a callable vector function, got {type(df).__name__}")
    return VectorFunction(df)


def constant(c: float, backend: NumericBackend) -> ScalarFunctionWithGradient:
    """f(x) = c, with gradient 0."""
    return ScalarFunctionWithGradient(
        lambda x: c,
        lambda x: backend.scale(x, 0.0),
    )


def linear(coefficients: Matrix, c: float, backend: NumericBackend) -> ScalarFunctionWithGradient:
    """f(x) = <coefficients, x> + c, with gradient ``coefficients``.

    Example:
        >>> mc = NumpyBackend()
        >>> boundary = linear(mc.vec_of(1.0, 0.0), -2.0, mc)  # x_0 - 2
        >>> boundary(mc.vec_of(3.0, 7.0))
        1.0
    """
    return ScalarFunctionWithGradient(
        lambda x: backend.inner(coefficients, x) + c,
        lambda x: backend.copy(coefficients),
    )


def vector_constant(c: Matrix) -> VectorFunction:
    """df(x) = c."""
    return VectorFunction(lambda x: c)


def vector_linear(transform: Matrix, c: Matrix, backend: NumericBackend) -> VectorFunction:
    """df(x) = transform @ x + c."""
    return VectorFunction(lambda x: backend.add(backend.matmul(transform, x), c))
