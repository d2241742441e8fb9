"""Exceptions raised by problem construction and solver entry points."""

from __future__ import annotations

__all__ = ["InvalidProblem", "DimensionMismatch"]


class InvalidProblem(ValueError):
    """An optimization problem is missing required parts or is inconsistent."""


class DimensionMismatch(ValueError):
    """Vectors or matrices disagree in size.

    Raised by backends on element-wise operations and by solvers when an
    initial guess does not match the problem's declared dimensionality.
    """
