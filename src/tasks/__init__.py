"""Benchmark objectives for the solver toolkit.

Available tasks:
- ShiftedQuadratic: f(x) = (x - t)^T B (x - t), minimum at t
- MiniBatchLeastSquares: least squares over a mini-batch picked by a
  stochastic solver's published random number
"""

from __future__ import annotations

from tasks.least_squares import MiniBatchLeastSquares, make_least_squares_data
from tasks.quadratic import ShiftedQuadratic, make_spd_quadratic

__all__ = [
    # Quadratic
    "ShiftedQuadratic",
    "make_spd_quadratic",
    # Least squares
    "MiniBatchLeastSquares",
    "make_least_squares_data",
]
