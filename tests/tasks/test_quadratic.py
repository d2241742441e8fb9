from __future__ import annotations

import numpy as np
import pytest

from backends.numpy_backend import NumpyBackend
from problems.numeric_gradient import NumericCentralGradient
from tasks.quadratic import ShiftedQuadratic, make_spd_quadratic


def test_loss_and_grad_of_non_symmetric_matrix() -> None:
    q = ShiftedQuadratic(B=np.array([[2.0, 0.2], [0.4, 1.0]]), t=np.array([3.2, -5.0]))
    x = np.array([1.0, 1.0])
    r = x - q.t
    assert q.loss(x) == pytest.approx(float(r @ q.B @ r))
    np.testing.assert_allclose(q.grad(x), (q.B + q.B.T) @ r)
    np.testing.assert_allclose(q.grad(x), NumericCentralGradient(q.loss, NumpyBackend())(x), atol=1e-6)
    assert q.loss(q.x_star()) == 0.0
    assert q.dim == 2


def test_as_function_carries_gradient() -> None:
    q = ShiftedQuadratic(B=np.eye(2), t=np.array([1.0, -1.0]))
    fn = q.as_function()
    assert fn(np.zeros(2)) == 2.0
    np.testing.assert_array_equal(fn.gradient()(np.zeros(2)), [-2.0, 2.0])


def test_x_star_is_a_copy() -> None:
    q = ShiftedQuadratic(B=np.eye(1), t=np.array([1.0]))
    q.x_star()[0] = 5.0
    assert q.t[0] == 1.0


def test_invalid_shapes_rejected() -> None:
    with pytest.raises(ValueError, match="square"):
        ShiftedQuadratic(B=np.zeros((2, 3)), t=np.zeros(2))
    with pytest.raises(ValueError, match="1D"):
        ShiftedQuadratic(B=np.eye(2), t=np.zeros((2, 1)))
    with pytest.raises(ValueError, match="mismatch"):
        ShiftedQuadratic(B=np.eye(2), t=np.zeros(3))


def test_make_spd_quadratic_condition_number() -> None:
    q = make_spd_quadratic(dim=4, rng=np.random.default_rng(0), cond=8.0)
    eigenvalues = np.linalg.eigvalsh(q.B)
    np.testing.assert_allclose(q.B, q.B.T)
    assert eigenvalues.min() == pytest.approx(1.0)
    assert eigenvalues.max() == pytest.approx(8.0)
    assert make_spd_quadratic(dim=1, rng=np.random.default_rng(0)).dim == 1


def test_make_spd_quadratic_validates_arguments() -> None:
    with pytest.raises(ValueError, match="dim"):
        make_spd_quadratic(dim=0, rng=np.random.default_rng(0))
    with pytest.raises(ValueError, match="cond"):
        make_spd_quadratic(dim=2, rng=np.random.default_rng(0), cond=0.5)
