from __future__ import annotations

import numpy as np
import pytest

from backends.numpy_backend import NumpyBackend
from problems.functions import (
    ScalarFunction,
    ScalarFunctionWithGradient,
    VectorFunction,
    as_scalar_function,
    as_vector_function,
    constant,
    linear,
    vector_constant,
    vector_linear,
)


def test_scalar_function_wraps_callable() -> None:
    f = ScalarFunction(lambda x: x @ x)
    assert f(np.array([1.0, 2.0])) == 5.0
    assert isinstance(f.evaluate(np.array([1.0])), float)
    assert f.gradient() is None


def test_scalar_function_with_gradient_exposes_gradient() -> None:
    f = ScalarFunctionWithGradient(lambda x: float(x @ x), lambda x: 2 * x)
    df = f.gradient()
    assert isinstance(df, VectorFunction)
    np.testing.assert_array_equal(df(np.array([1.0, -1.0])), [2.0, -2.0])


def test_subclass_overrides_evaluate() -> None:
    class Norm(ScalarFunction):
        def evaluate(self, x: np.ndarray) -> float:
            return float(np.linalg.norm(x))

    assert Norm()(np.array([3.0, 4.0])) == 5.0


def test_unconfigured_functions_raise() -> None:
    with pytest.raises(NotImplementedError):
        ScalarFunction()(np.zeros(1))
    with pytest.raises(NotImplementedError):
        VectorFunction()(np.zeros(1))
    with pytest.raises(NotImplementedError):
        ScalarFunctionWithGradient(lambda x: 0.0).gradient()


def test_as_function_passthrough_and_wrapping() -> None:
    f = ScalarFunction(lambda x: 1.0)
    assert as_scalar_function(f) is f
    assert as_scalar_function(lambda x: 2.0)(np.zeros(1)) == 2.0
    df = VectorFunction(lambda x: x)
    assert as_vector_function(df) is df
    with pytest.raises(TypeError):
        as_scalar_function(3.0)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        as_vector_function("x")  # type: ignore[arg-type]


def test_constant_and_linear_helpers() -> None:
    mc = NumpyBackend()
    x = mc.vec_of(3.0, 7.0)

    c = constant(4.0, mc)
    assert c(x) == 4.0
    np.testing.assert_array_equal(c.gradient()(x), [0.0, 0.0])

    coefficients = mc.vec_of(1.0, 0.0)
    g = linear(coefficients, -2.0, mc)
    assert g(x) == 1.0
    grad = g.gradient()(x)
    np.testing.assert_array_equal(grad, [1.0, 0.0])
    grad[0] = 9.0
    assert coefficients[0] == 1.0


def test_vector_helpers() -> None:
    mc = NumpyBackend()
    c = mc.vec_of(1.0, 2.0)
    assert vector_constant(c)(mc.zeros(2)) is c
    T = mc.mat_of(2, 2.0, 0.0, 0.0, 3.0)
    np.testing.assert_array_equal(vector_linear(T, c, mc)(mc.vec_of(1.0, 1.0)), [3.0, 5.0])
