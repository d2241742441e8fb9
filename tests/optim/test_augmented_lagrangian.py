"""Tests for the augmented Lagrangian solver."""

from __future__ import annotations

import numpy as np
import pytest

from backends.numpy_backend import NumpyBackend
from core.errors import DimensionMismatch
from core.protocols import ConstrainedSolver
from core.types import DescentHistory, TrajectoryInfo
from optim.augmented_lagrangian import AugmentedLagrangian, augmented_lagrangian
from optim.hyperparams import AUGMENTED_LAGRANGIAN_DEFAULTS, Hyperparams
from problems.functions import ScalarFunction, linear
from problems.problem import OptimizationProblemBuilder
from tasks.quadratic import ShiftedQuadratic

TARGET = np.array([3.2, -5.0])


@pytest.fixture
def mc() -> NumpyBackend:
    return NumpyBackend()


def boundary_problem(mc: NumpyBackend, *, analytic: bool):
    """min 0.2 * ||x - (3.2, -5)||^2 subject to x_0 - 2 <= 0."""
    quadratic = ShiftedQuadratic(B=mc.eye(2, 0.2), t=TARGET.copy())
    objective = quadratic.as_function() if analytic else ScalarFunction(quadratic.loss)
    boundary = linear(mc.vec_of(1.0, 0.0), -2.0, mc)
    problem = (
        OptimizationProblemBuilder(2, mc)
        .set_objective(objective)
        .add_inequality_constraint(boundary)
        .build()
    )
    return problem, boundary


# =============================================================================
# Transformed objective
# =============================================================================


class TestAugmentedLagrangianFunction:
    """Value and gradient of L for fixed multipliers and mu."""

    @pytest.fixture
    def problem(self, mc):
        return (
            OptimizationProblemBuilder(2, mc)
            .set_objective(lambda x: float(x @ x), lambda x: 2 * x)
            .add_inequality_constraint(linear(mc.vec_of(1.0, 0.0), -2.0, mc))
            .build()
        )

    def test_violated_constraint_adds_penalty(self, mc, problem) -> None:
        L = augmented_lagrangian(problem, np.array([0.5]), 2.0, mc)
        x = mc.vec_of(3.0, 1.0)
        # 10 + 0.5 * 1 + 2 * 1 * 1
        assert L(x) == pytest.approx(12.5)
        np.testing.assert_allclose(L.gradient()(x), [6.0 + 0.5 + 4.0, 2.0])

    def test_satisfied_constraint_has_no_penalty(self, mc, problem) -> None:
        L = augmented_lagrangian(problem, np.array([0.5]), 2.0, mc)
        x = mc.vec_of(1.0, 1.0)
        assert L(x) == pytest.approx(2.0 - 0.5)
        np.testing.assert_allclose(L.gradient()(x), [2.5, 2.0])

    def test_multipliers_are_copied(self, mc, problem) -> None:
        lam = np.array([1.0])
        L = augmented_lagrangian(problem, lam, 1.0, mc)
        lam[0] = 100.0
        assert L(mc.vec_of(1.0, 0.0)) == pytest.approx(1.0 - 1.0)

    def test_wrong_multiplier_count(self, mc, problem) -> None:
        with pytest.raises(DimensionMismatch):
            augmented_lagrangian(problem, np.zeros(2), 1.0, mc)


# =============================================================================
# Solver
# =============================================================================


class TestAugmentedLagrangian:
    """Outer loop behaviour on the boundary-constrained quadratic."""

    def test_finds_boundary_point_with_numeric_gradients(self, mc) -> None:
        """The unconstrained optimum is infeasible; the solution lies on x_0 = 2."""
        problem, boundary = boundary_problem(mc, analytic=False)
        solver = AugmentedLagrangian(mc)
        argmin = solver.arg_min(problem, mc.vec_of(0.0, 0.0))

        assert boundary(argmin) == pytest.approx(0.0, abs=1e-4)
        assert mc.dist(argmin, TARGET) == pytest.approx(boundary(TARGET), abs=1e-4)
        assert solver.num_iterations == 80

    def test_multiplier_matches_kkt(self, mc) -> None:
        """At x* = (2, -5) stationarity gives lambda = -df/dx_0 = 0.48."""
        problem, _ = boundary_problem(mc, analytic=True)
        solver = AugmentedLagrangian(mc)
        solver.arg_min(problem, mc.vec_of(0.0, 0.0))

        assert solver.multipliers == pytest.approx([0.48], abs=1e-3)
        assert solver.mu == pytest.approx(1.01**80)

    def test_trace_before_and_after_each_inner_run(self, mc) -> None:
        problem, _ = boundary_problem(mc, analytic=True)
        hp = Hyperparams(AUGMENTED_LAGRANGIAN_DEFAULTS, max_iterations=5)
        trace: list[TrajectoryInfo] = []
        logs: list[DescentHistory] = []
        solver = AugmentedLagrangian(mc, hp)
        argmin = solver.arg_min(problem, mc.vec_of(0.0, 0.0), trace, logs)

        assert len(trace) == 10
        assert len(logs) == 5
        first = trace[0]
        np.testing.assert_array_equal(first.x, [0.0, 0.0])
        np.testing.assert_array_equal(first.multipliers, [0.0])
        assert first.mu == 1.0
        assert first.fx == pytest.approx(0.2 * (3.2**2 + 5.0**2))
        np.testing.assert_allclose(first.gx, [-2.0])
        # a before/after pair shares multipliers and mu
        assert trace[2].mu == trace[3].mu == pytest.approx(1.01)
        np.testing.assert_array_equal(trace[2].multipliers, trace[3].multipliers)
        assert trace[3].loss <= trace[2].loss + 1e-9
        np.testing.assert_array_equal(trace[-1].x, argmin)
        np.testing.assert_array_equal(logs[-1].last_position(), argmin)

    def test_multipliers_stay_non_negative(self, mc) -> None:
        """An inactive constraint keeps a zero multiplier."""
        problem = (
            OptimizationProblemBuilder(2, mc)
            .set_objective(lambda x: float(x @ x), lambda x: 2 * x)
            .add_inequality_constraint(linear(mc.vec_of(1.0, 0.0), -2.0, mc))
            .build()
        )
        trace: list[TrajectoryInfo] = []
        hp = Hyperparams(AUGMENTED_LAGRANGIAN_DEFAULTS, max_iterations=4)
        solver = AugmentedLagrangian(mc, hp)
        argmin = solver.arg_min(problem, mc.vec_of(1.0, 1.0), trace)

        np.testing.assert_array_equal(solver.multipliers, [0.0])
        assert all(np.all(info.multipliers >= 0.0) for info in trace)
        np.testing.assert_allclose(argmin, [0.0, 0.0], atol=1e-4)

    def test_outer_tolerance_stops_early(self, mc) -> None:
        problem, _ = boundary_problem(mc, analytic=True)
        hp = Hyperparams(AUGMENTED_LAGRANGIAN_DEFAULTS, outer_tolerance=10.0)
        solver = AugmentedLagrangian(mc, hp)
        solver.arg_min(problem, mc.vec_of(0.0, 0.0))
        assert solver.num_iterations == 1

    def test_inner_hyperparams_are_applied(self, mc) -> None:
        problem, _ = boundary_problem(mc, analytic=True)
        hp = Hyperparams(AUGMENTED_LAGRANGIAN_DEFAULTS, max_iterations=2)
        inner = Hyperparams(max_iterations=3)
        logs: list[DescentHistory] = []
        AugmentedLagrangian(mc, hp, inner).arg_min(problem, mc.vec_of(0.0, 0.0), descent_logs=logs)
        # 3 iterations plus the final position
        assert [len(log) for log in logs] == [4, 4]

    def test_initial_guess_dimension_checked(self, mc) -> None:
        problem, _ = boundary_problem(mc, analytic=True)
        with pytest.raises(DimensionMismatch):
            AugmentedLagrangian(mc).arg_min(problem, mc.vec_of(0.0, 0.0, 0.0))

    def test_initial_guess_not_modified(self, mc) -> None:
        problem, _ = boundary_problem(mc, analytic=True)
        x0 = mc.vec_of(0.0, 0.0)
        hp = Hyperparams(AUGMENTED_LAGRANGIAN_DEFAULTS, max_iterations=2)
        AugmentedLagrangian(mc, hp).arg_min(problem, x0)
        np.testing.assert_array_equal(x0, [0.0, 0.0])

    def test_conforms_to_protocol(self, mc) -> None:
        assert isinstance(AugmentedLagrangian(mc), ConstrainedSolver)
