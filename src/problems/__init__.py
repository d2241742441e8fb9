"""Problem definitions for the solver toolkit.

This package contains:
- Function abstractions (ScalarFunction, ScalarFunctionWithGradient, VectorFunction)
- Finite-difference gradients (NumericGradient, NumericCentralGradient)
- OptimizationProblem and its builder
"""

from __future__ import annotations

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
from problems.numeric_gradient import NumericCentralGradient, NumericGradient
from problems.problem import OptimizationProblem, OptimizationProblemBuilder

__all__ = [
    # Functions
    "ScalarFunction",
    "ScalarFunctionWithGradient",
    "VectorFunction",
    "as_scalar_function",
    "as_vector_function",
    "constant",
    "linear",
    "vector_constant",
    "vector_linear",
    # Finite differences
    "NumericGradient",
    "NumericCentralGradient",
    # Problems
    "OptimizationProblem",
    "OptimizationProblemBuilder",
]
