"""Numeric backends for the solver toolkit.

This package contains implementations of the NumericBackend protocol.

Available backends:
- NumpyBackend: dense float64 arrays (vectors are 1-D)
"""

from __future__ import annotations

from backends.numpy_backend import NumpyBackend

__all__ = ["NumpyBackend"]
