"""Random number generation utilities.

This module contains:
- Seeded generator construction for reproducible runs
- ``Ref``, the shared cell through which stochastic solvers publish the
  per-iteration random number that objectives read to pick a data subset
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

import numpy as np

__all__ = ["Ref", "make_rng", "publish_random_int", "MAX_RANDOM_INT"]

T = TypeVar("T")

# Exclusive upper bound of the published integers (java.lang.Integer.MAX_VALUE).
MAX_RANDOM_INT = 2**31 - 1

Listener = Callable[[T | None, T | None], None]


class Ref(Generic[T]):
    """Mutable reference cell with optional change listeners.

    Writers call ``set``; readers either poll ``get`` or register a listener
    that receives ``(previous, current)`` on every write.

    Example:
        >>> ref: Ref[int] = Ref()
        >>> ref.is_none()
        True
        >>> ref.set(7)
        >>> ref.get()
        7
    """

    def __init__(self, value: T | None = None) -> None:
        self._value = value
        self._listeners: list[Listener[T]] = []

    def get(self) -> T | None:
        return self._value

    def set(self, value: T | None) -> None:
        previous = self._value
        self._value = value
        for listener in list(self._listeners):
            listener(previous, value)

    def is_none(self) -> bool:
        return self._value is None

    def add_listener(self, listener: Listener[T]) -> Listener[T]:
        self._listeners.append(listener)
        return listener

    def remove_listener(self, listener: Listener[T]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def __repr__(self) -> str:
        return f"Ref({self._value!r})"


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Create a numpy generator; ``None`` draws fresh OS entropy."""
    return np.random.default_rng(seed)


def publish_random_int(rng: np.random.Generator, ref: Ref[int] | None) -> int:
    """Draw a non-negative integer and publish it through ``ref``.

    Args:
        rng: Generator owned by the solver.
        ref: Cell read by stochastic objectives. May be None, in which case
            the number is drawn but not published.

    Returns:
        The drawn integer in ``[0, MAX_RANDOM_INT)``.
    """
    r = int(rng.integers(0, MAX_RANDOM_INT))
    if ref is not None:
        ref.set(r)
    return r
