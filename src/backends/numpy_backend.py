"""Dense numpy implementation of the NumericBackend protocol.

Vectors are 1-D float64 arrays and report a single column, matrices are
2-D float64 arrays. Functions handed to the solvers therefore receive plain
1-D arrays and can use ``@`` and ``np.dot`` directly.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import numpy as np

from core.errors import DimensionMismatch
from core.types import FlatArray

__all__ = ["NumpyBackend"]


class NumpyBackend:
    """Numeric backend over numpy arrays.

    Satisfies the ``NumericBackend`` protocol. Non-``_inp`` operations
    return fresh arrays, ``_inp`` operations write into their first argument
    and return it.

    Example:
        >>> mc = NumpyBackend()
        >>> v = mc.vec_of(3.0, 4.0)
        >>> mc.norm(v)
        5.0
        >>> mc.num_rows(v), mc.num_cols(v)
        (2, 1)
    """

    def __init__(self, dtype: type = np.float64) -> None:
        self.dtype = dtype

    def _as_array(self, values: object) -> np.ndarray:
        return np.array(values, dtype=self.dtype, copy=True)

    @staticmethod
    def _check_same_shape(a: np.ndarray, b: np.ndarray, op: str) -> None:
        if a.shape != b.shape:
            raise DimensionMismatch(f"{op}: shape mismatch {a.shape} vs {b.shape}")

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def vec_of(self, *values: float) -> np.ndarray:
        return self._as_array(values)

    def mat_of(self, n_rows: int, *values: float) -> np.ndarray:
        if n_rows < 1 or len(values) % n_rows != 0:
            raise DimensionMismatch(
                f"Cannot shape {len(values)} values into {n_rows} rows"
            )
        return self._as_array(values).reshape(n_rows, len(values) // n_rows)

    def mat_of_rows(self, rows: Sequence[Sequence[float]]) -> np.ndarray:
        m = self._as_array(rows)
        if m.ndim != 2:
            raise DimensionMismatch(f"Rows must form a 2-D array, got ndim={m.ndim}")
        return m

    def zeros(self, rows: int, cols: int | None = None) -> np.ndarray:
        shape = (rows,) if cols is None else (rows, cols)
        return np.zeros(shape, dtype=self.dtype)

    def eye(self, n: int, s: float = 1.0) -> np.ndarray:
        return np.eye(n, dtype=self.dtype) * s

    def rand(
        self, rows: int, cols: int | None = None, rng: np.random.Generator | None = None
    ) -> np.ndarray:
        rng = rng if rng is not None else np.random.default_rng()
        shape = (rows,) if cols is None else (rows, cols)
        return rng.random(shape).astype(self.dtype)

    def randn(
        self, rows: int, cols: int | None = None, rng: np.random.Generator | None = None
    ) -> np.ndarray:
        rng = rng if rng is not None else np.random.default_rng()
        shape = (rows,) if cols is None else (rows, cols)
        return rng.standard_normal(shape).astype(self.dtype)

    # ------------------------------------------------------------------
    # Shape queries
    # ------------------------------------------------------------------

    def num_rows(self, m: np.ndarray) -> int:
        return int(m.shape[0])

    def num_cols(self, m: np.ndarray) -> int:
        return 1 if m.ndim == 1 else int(m.shape[1])

    def num_elem(self, m: np.ndarray) -> int:
        return int(m.size)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def add(self, a: np.ndarray, b: np.ndarray | float) -> np.ndarray:
        if np.isscalar(b):
            return a + float(b)
        self._check_same_shape(a, b, "add")
        return a + b

    def sub(self, a: np.ndarray, b: np.ndarray | float) -> np.ndarray:
        if np.isscalar(b):
            return a - float(b)
        self._check_same_shape(a, b, "sub")
        return a - b

    def add_inp(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        self._check_same_shape(a, b, "add_inp")
        a += b
        return a

    def sub_inp(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        self._check_same_shape(a, b, "sub_inp")
        a -= b
        return a

    def scale(self, m: np.ndarray, s: float) -> np.ndarray:
        return m * s

    def scale_inp(self, m: np.ndarray, s: float) -> np.ndarray:
        m *= s
        return m

    def elmmul(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        self._check_same_shape(a, b, "elmmul")
        return a * b

    def matmul(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        inner_a = a.shape[-1]
        inner_b = b.shape[0]
        if inner_a != inner_b:
            raise DimensionMismatch(f"matmul: shape mismatch {a.shape} @ {b.shape}")
        return np.asarray(a @ b, dtype=self.dtype)

    def trp(self, m: np.ndarray) -> np.ndarray:
        # A column vector transposes to a 1 x n row matrix.
        if m.ndim == 1:
            return m.reshape(1, -1).copy()
        if m.shape[0] == 1:
            return m.reshape(-1).copy()
        return m.T.copy()

    def elemwise_inp(self, m: np.ndarray, fn: Callable[[float], float]) -> np.ndarray:
        if m.size:
            m[...] = np.vectorize(fn, otypes=[m.dtype])(m)
        return m

    # ------------------------------------------------------------------
    # Reductions
    # ------------------------------------------------------------------

    def inner(self, a: np.ndarray, b: np.ndarray) -> float:
        if a.size != b.size:
            raise DimensionMismatch(f"inner: size mismatch {a.size} vs {b.size}")
        return float(np.dot(a.reshape(-1), b.reshape(-1)))

    def dot(self, a: np.ndarray, b: np.ndarray) -> float:
        return self.inner(a, b)

    def sum(self, m: np.ndarray) -> float:
        return float(np.sum(m))

    def norm2(self, v: np.ndarray) -> float:
        return self.inner(v, v)

    def norm(self, v: np.ndarray) -> float:
        return float(np.linalg.norm(v.reshape(-1)))

    def dist(self, a: np.ndarray, b: np.ndarray) -> float:
        return self.norm(self.sub(a, b))

    def normalize(self, m: np.ndarray, thresh: float = 1e-7) -> np.ndarray:
        return self.normalize_inp(self.copy(m), thresh)

    def normalize_inp(self, m: np.ndarray, thresh: float = 1e-7) -> np.ndarray:
        norm = self.norm(m)
        if norm < thresh:
            return m
        return self.scale_inp(m, 1.0 / norm)

    # ------------------------------------------------------------------
    # Element access and export
    # ------------------------------------------------------------------

    def get(self, m: np.ndarray, idx: int) -> float:
        return float(m.flat[idx])

    def set_inp(self, m: np.ndarray, idx: int, value: float) -> np.ndarray:
        m.flat[idx] = value
        return m

    def copy(self, m: np.ndarray) -> np.ndarray:
        return self._as_array(m)

    def to_array(self, m: np.ndarray) -> FlatArray:
        return np.array(m, dtype=np.float64, copy=True).reshape(-1)

    def to_array_2d(self, m: np.ndarray) -> np.ndarray:
        if m.ndim == 1:
            return np.array(m, dtype=np.float64, copy=True).reshape(-1, 1)
        return np.array(m, dtype=np.float64, copy=True)
