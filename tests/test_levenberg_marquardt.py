"""Tests for the Levenberg-Marquardt solver and its terminal states."""

import numpy as np
import pytest

from orbitfit.core.config import SolverConfig
from orbitfit.optimization.levenberg_marquardt import (
    LevenbergMarquardt,
    MinimizationReport,
    TerminationReason,
)


class LinearProblem:
    """r(x) = A x - b"""

    def __init__(self, A, b, x0):
        self.A = np.asarray(A, dtype=float)
        self.b = np.asarray(b, dtype=float)
        self.x = np.asarray(x0, dtype=float)

    def params(self):
        return self.x.copy()

    def set_params(self, x):
        self.x = np.asarray(x, dtype=float).copy()

    def residuals(self):
        return self.A @ self.x - self.b

    def jacobian(self):
        return self.A


class Rosenbrock:
    """r(x) = [10 (x1 - x0^2), 1 - x0], minimum at (1, 1)."""

    def __init__(self, x0=(-1.2, 1.0)):
        self.x = np.array(x0, dtype=float)

    def params(self):
        return self.x.copy()

    def set_params(self, x):
        self.x = np.asarray(x, dtype=float).copy()

    def residuals(self):
        return np.array([10.0 * (self.x[1] - self.x[0] ** 2), 1.0 - self.x[0]])

    def jacobian(self):
        return np.array([[-20.0 * self.x[0], 10.0], [-1.0, 0.0]])


class UphillProblem(LinearProblem):
    """Jacobian with the wrong sign: every step increases the cost."""

    def jacobian(self):
        return -self.A


class NonFiniteJacobian(LinearProblem):
    def jacobian(self):
        return np.full_like(self.A, np.nan)


class RankDropProblem(LinearProblem):
    """Second Jacobian evaluation loses its last column."""

    def __init__(self, A, b, x0):
        super().__init__(A, b, x0)
        self.jacobian_calls = 0

    def jacobian(self):
        self.jacobian_calls += 1
        if self.jacobian_calls == 2:
            J = self.A.copy()
            J[:, -1] = 0.0
            return J
        return self.A


def test_linear_least_squares_solution():
    """Overdetermined linear problem converges to the lstsq solution."""
    rng = np.random.default_rng(0)
    A = rng.normal(size=(10, 3))
    b = rng.normal(size=10)
    problem = LinearProblem(A, b, np.zeros(3))

    problem, report = LevenbergMarquardt().minimize(problem)

    expected = np.linalg.lstsq(A, b, rcond=None)[0]
    assert report.converged
    assert np.allclose(problem.x, expected, atol=1e-10)
    assert report.residual_norm == pytest.approx(np.linalg.norm(A @ expected - b))


def test_rosenbrock_converges():
    """Classic curved valley from (-1.2, 1)."""
    problem, report = LevenbergMarquardt().minimize(Rosenbrock())

    assert report.converged
    assert np.allclose(problem.x, [1.0, 1.0], atol=1e-8)
    assert report.residual_norm < 1e-8
    assert report.iterations > 1


def test_residual_norm_history_non_increasing():
    """Accepted steps never increase the residual norm."""
    problem, report = LevenbergMarquardt().minimize(Rosenbrock())

    history = np.array(report.residual_norm_history)
    assert len(history) >= 2
    assert np.all(np.diff(history) <= 0.0)
    assert history[-1] == pytest.approx(report.residual_norm)


def test_zero_residual_at_start():
    """Exact solution as initial guess stops without iterating."""
    problem = LinearProblem(np.eye(2), [1.0, 2.0], [1.0, 2.0])

    problem, report = LevenbergMarquardt().minimize(problem)

    assert report.termination == TerminationReason.RESIDUALS_ZERO
    assert report.iterations == 0
    assert report.residual_norm == 0.0


def test_max_iterations_exhausted():
    """Iteration cap is reported separately from failure."""
    config = SolverConfig(max_iterations=1)
    problem, report = LevenbergMarquardt(config).minimize(Rosenbrock())

    assert report.termination == TerminationReason.MAX_ITERATIONS
    assert report.iterations == 1
    assert not report.converged
    assert report.usable
    # Best iterate is kept even when exhausted
    assert report.residual_norm < np.linalg.norm(Rosenbrock().residuals())


def test_rank_deficient_jacobian_fails():
    """Collinear Jacobian columns are reported as degenerate."""
    A = np.array([[1.0, 1.0], [2.0, 2.0], [1.0, 1.0]])
    problem = LinearProblem(A, [1.0, 0.0, 2.0], [0.0, 0.0])

    problem, report = LevenbergMarquardt().minimize(problem)

    assert report.termination == TerminationReason.NUMERICALLY_DEGENERATE
    assert not report.usable
    assert "rank deficient" in report.message


def test_rank_loss_after_first_iteration_is_damped():
    """A singular Jacobian mid-run is stepped through, not reported."""
    rng = np.random.default_rng(3)
    A = rng.normal(size=(6, 2))
    b = rng.normal(size=6)
    problem = RankDropProblem(A, b, np.zeros(2))

    problem, report = LevenbergMarquardt().minimize(problem)

    expected = np.linalg.lstsq(A, b, rcond=None)[0]
    assert problem.jacobian_calls > 2
    assert report.termination != TerminationReason.NUMERICALLY_DEGENERATE
    assert report.converged, report
    assert np.allclose(problem.x, expected, atol=1e-10)


def test_underdetermined_problem_fails():
    """Fewer residuals than parameters cannot be solved uniquely."""
    problem = LinearProblem([[1.0, 2.0]], [1.0], [0.0, 0.0])

    problem, report = LevenbergMarquardt().minimize(problem)

    assert report.termination == TerminationReason.NUMERICALLY_DEGENERATE


def test_non_finite_initial_residuals_fail():
    """NaN residuals at the seed are reported, not iterated on."""
    problem = LinearProblem(np.eye(2), [np.nan, 0.0], [0.0, 0.0])

    problem, report = LevenbergMarquardt().minimize(problem)

    assert report.termination == TerminationReason.NUMERICALLY_DEGENERATE
    assert report.iterations == 0


def test_non_finite_jacobian_fails():
    """NaN Jacobian entries stop the solve."""
    problem = NonFiniteJacobian(np.eye(2), [1.0, 1.0], [0.0, 0.0])

    problem, report = LevenbergMarquardt().minimize(problem)

    assert report.termination == TerminationReason.NUMERICALLY_DEGENERATE
    assert report.iterations == 1


def test_damping_exhaustion_fails_and_keeps_best():
    """Repeated rejections past max damping end in failure at the seed."""
    config = SolverConfig(xtol=0.0, max_damping=1e6)
    problem = UphillProblem(np.eye(2), [0.0, 0.0], [1.0, 1.0])

    problem, report = LevenbergMarquardt(config).minimize(problem)

    assert report.termination == TerminationReason.NUMERICALLY_DEGENERATE
    assert report.damping > 1e6
    assert np.array_equal(problem.x, [1.0, 1.0])
    assert report.residual_norm_history == (pytest.approx(np.sqrt(2.0)),)


def test_step_tolerance_on_uphill_problem():
    """With the default xtol, shrinking steps end in step convergence."""
    problem = UphillProblem(np.eye(2), [0.0, 0.0], [1.0, 1.0])

    problem, report = LevenbergMarquardt().minimize(problem)

    assert report.termination == TerminationReason.STEP_TOLERANCE
    assert np.array_equal(problem.x, [1.0, 1.0])


def test_gradient_tolerance():
    """Loose gtol stops once J^T r is small enough."""
    config = SolverConfig(gtol=1e-3)
    problem = LinearProblem(np.eye(2), [1.0, 1.0], [1.0 + 1e-4, 1.0])

    problem, report = LevenbergMarquardt(config).minimize(problem)

    assert report.termination == TerminationReason.GRADIENT_TOLERANCE
    assert report.iterations == 1


def test_report_properties():
    """Objective function is half the squared residual norm."""
    report = MinimizationReport(
        termination=TerminationReason.REDUCTION_TOLERANCE,
        iterations=3,
        residual_evaluations=5,
        residual_norm=2.0,
    )
    assert report.objective_function == 2.0
    assert report.converged
    assert report.usable
    assert not TerminationReason.DEGENERATE_INPUT.converged


def test_solver_config_validation():
    """Invalid solver settings are rejected."""
    with pytest.raises(ValueError):
        SolverConfig(max_iterations=0)
    with pytest.raises(ValueError):
        SolverConfig(ftol=-1.0)
    with pytest.raises(ValueError):
        SolverConfig(damping_increase=1.0)
    with pytest.raises(ValueError):
        SolverConfig(initial_damping=0.0)
