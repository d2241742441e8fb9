"""Tests for the log-barrier solver."""

from __future__ import annotations

import io
import logging
import math

import numpy as np
import pytest

from backends.numpy_backend import NumpyBackend
from core.errors import DimensionMismatch
from core.logging import configure_logging
from core.protocols import ConstrainedSolver
from core.types import DescentHistory, TrajectoryInfo
from optim.hyperparams import LOG_BARRIER_DEFAULTS, Hyperparams
from optim.log_barrier import LogBarrier, log_barrier_function
from problems.functions import ScalarFunction, linear
from problems.problem import OptimizationProblemBuilder
from tasks.quadratic import ShiftedQuadratic

TARGET = np.array([3.2, -5.0])


@pytest.fixture
def mc() -> NumpyBackend:
    return NumpyBackend()


def boundary_problem(mc: NumpyBackend):
    """min 0.2 * ||x - (3.2, -5)||^2 subject to x_0 - 2 <= 0, numeric objective gradient."""
    quadratic = ShiftedQuadratic(B=mc.eye(2, 0.2), t=TARGET.copy())
    boundary = linear(mc.vec_of(1.0, 0.0), -2.0, mc)
    problem = (
        OptimizationProblemBuilder(2, mc)
        .set_objective(ScalarFunction(quadratic.loss))
        .add_inequality_constraint(boundary)
        .build()
    )
    return problem, boundary


# =============================================================================
# Barrier objective
# =============================================================================


class TestLogBarrierFunction:
    """Value and heuristic gradient of the barrier objective."""

    @pytest.fixture
    def problem(self, mc):
        return (
            OptimizationProblemBuilder(2, mc)
            .set_objective(lambda x: float(x @ x), lambda x: 2 * x)
            .add_inequality_constraint(linear(mc.vec_of(1.0, 0.0), -2.0, mc))
            .build()
        )

    def test_feasible_point(self, mc, problem) -> None:
        B = log_barrier_function(problem, 1.0, mc)
        x = mc.vec_of(1.0, 0.0)
        # f = 1, g = -1, log(1) = 0
        assert B(x) == pytest.approx(1.0)
        # normalize(2, 0) - (1 / -1) * (1, 0)
        np.testing.assert_allclose(B.gradient()(x), [2.0, 0.0])

    def test_value_matches_formula(self, mc, problem) -> None:
        B = log_barrier_function(problem, 0.5, mc)
        x = mc.vec_of(0.0, 3.0)
        assert B(x) == pytest.approx(9.0 - 0.5 * math.log(2.0))

    def test_infeasible_point_is_infinite(self, mc, problem) -> None:
        B = log_barrier_function(problem, 1.0, mc)
        assert B(mc.vec_of(3.0, 0.0)) == math.inf
        assert B(mc.vec_of(2.0, 0.0)) == math.inf

    def test_infeasible_gradient_pushes_back(self, mc, problem) -> None:
        B = log_barrier_function(problem, 1.0, mc)
        # normalize(6, 0) + (1 + 1) * (1, 0)
        np.testing.assert_allclose(B.gradient()(mc.vec_of(3.0, 0.0)), [3.0, 0.0])
        # boundary counts as infeasible: (1, 0) + (1 + 0) * (1, 0)
        np.testing.assert_allclose(B.gradient()(mc.vec_of(2.0, 0.0)), [2.0, 0.0])

    def test_gradient_does_not_modify_problem_outputs(self, mc) -> None:
        df_value = mc.vec_of(3.0, 4.0)
        problem = (
            OptimizationProblemBuilder(2, mc)
            .set_objective(lambda x: 0.0, lambda x: df_value)
            .add_inequality_constraint(linear(mc.vec_of(1.0, 0.0), -2.0, mc))
            .build()
        )
        log_barrier_function(problem, 1.0, mc).gradient()(mc.vec_of(0.0, 0.0))
        np.testing.assert_array_equal(df_value, [3.0, 4.0])


# =============================================================================
# Solver
# =============================================================================


class TestLogBarrier:
    """Outer loop behaviour on the boundary-constrained quadratic."""

    def test_converges_to_boundary_and_stays_feasible(self, mc) -> None:
        """The constraint value reaches zero within 1e-5.

        The free coordinate drifts slightly along the boundary because the
        barrier gradient mixes normalized objective and constraint
        gradients, so it is checked against a looser tolerance.
        """
        problem, boundary = boundary_problem(mc)
        trace: list[TrajectoryInfo] = []
        solver = LogBarrier(mc)
        argmin = solver.arg_min(problem, mc.vec_of(0.0, 0.0), trace)

        assert boundary(argmin) == pytest.approx(0.0, abs=1e-5)
        assert argmin[0] == pytest.approx(2.0, abs=1e-5)
        assert argmin[1] == pytest.approx(TARGET[1], abs=1e-3)
        assert all(info.gx[0] < 0.0 for info in trace)
        assert solver.num_iterations == 300

    def test_trace_layout(self, mc) -> None:
        problem, _ = boundary_problem(mc)
        hp = Hyperparams(LOG_BARRIER_DEFAULTS, max_iterations=4)
        trace: list[TrajectoryInfo] = []
        logs: list[DescentHistory] = []
        solver = LogBarrier(mc, hp)
        argmin = solver.arg_min(problem, mc.vec_of(0.0, 0.0), trace, logs)

        assert len(trace) == 5
        assert len(logs) == 4
        first = trace[0]
        np.testing.assert_array_equal(first.x, [0.0, 0.0])
        assert first.mu == 8.0
        # lambda = -mu / g = -8 / -2
        np.testing.assert_allclose(first.multipliers, [4.0])
        assert first.loss == pytest.approx(first.fx - 8.0 * math.log(2.0))
        # entries after an outer iteration carry the mu it was solved with
        assert [info.mu for info in trace[1:]] == pytest.approx([8.0 * 0.95**k for k in range(4)])
        np.testing.assert_array_equal(trace[-1].x, argmin)
        assert solver.mu == pytest.approx(8.0 * 0.95**4)

    def test_multiplier_estimate_infinite_on_boundary(self, mc) -> None:
        problem = (
            OptimizationProblemBuilder(1, mc)
            .set_objective(lambda x: float(x @ x), lambda x: 2 * x)
            .add_inequality_constraint(lambda x: float(x[0]), lambda x: mc.vec_of(1.0))
            .build()
        )
        trace: list[TrajectoryInfo] = []
        hp = Hyperparams(LOG_BARRIER_DEFAULTS, max_iterations=1)
        LogBarrier(mc, hp).arg_min(problem, mc.vec_of(0.0), trace)
        assert trace[0].multipliers[0] == -math.inf
        assert trace[0].loss == math.inf

    def test_infeasible_start_warns_once(self, mc) -> None:
        problem, _ = boundary_problem(mc)
        stream = io.StringIO()
        configure_logging(logging.WARNING, stream=stream)
        try:
            hp = Hyperparams(LOG_BARRIER_DEFAULTS, max_iterations=3)
            argmin = LogBarrier(mc, hp).arg_min(problem, mc.vec_of(5.0, 0.0))
        finally:
            configure_logging(logging.WARNING)

        assert stream.getvalue().count("not strictly feasible") == 1
        assert np.all(np.isfinite(argmin))

    def test_outer_tolerance_stops_early(self, mc) -> None:
        problem, _ = boundary_problem(mc)
        hp = Hyperparams(LOG_BARRIER_DEFAULTS, outer_tolerance=100.0)
        solver = LogBarrier(mc, hp)
        solver.arg_min(problem, mc.vec_of(0.0, 0.0))
        assert solver.num_iterations == 1

    def test_initial_guess_dimension_checked(self, mc) -> None:
        problem, _ = boundary_problem(mc)
        with pytest.raises(DimensionMismatch):
            LogBarrier(mc).arg_min(problem, mc.vec_of(0.0))

    def test_conforms_to_protocol(self, mc) -> None:
        assert isinstance(LogBarrier(mc), ConstrainedSolver)
