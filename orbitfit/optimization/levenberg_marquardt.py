"""Levenberg-Marquardt nonlinear least squares."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional
import logging
import numpy as np
import scipy.linalg
from numpy.typing import NDArray

from orbitfit.core.config import SolverConfig, DEFAULT_SOLVER
from orbitfit.core.problem import LeastSquaresProblem


logger = logging.getLogger(__name__)


class Phase(Enum):
    """States of the solver loop."""
    EVALUATING = auto()        # solve damped system, try the step
    DAMPING_INCREASE = auto()  # step rejected
    DAMPING_DECREASE = auto()  # step accepted, relinearize
    CONVERGED = auto()
    FAILED = auto()
    EXHAUSTED = auto()


_TERMINAL = frozenset({Phase.CONVERGED, Phase.FAILED, Phase.EXHAUSTED})


class TerminationReason(Enum):
    """Why the solver stopped."""
    RESIDUALS_ZERO = auto()
    REDUCTION_TOLERANCE = auto()
    GRADIENT_TOLERANCE = auto()
    STEP_TOLERANCE = auto()
    MAX_ITERATIONS = auto()
    NUMERICALLY_DEGENERATE = auto()
    DEGENERATE_INPUT = auto()

    @property
    def converged(self) -> bool:
        return self in (
            TerminationReason.RESIDUALS_ZERO,
            TerminationReason.REDUCTION_TOLERANCE,
            TerminationReason.GRADIENT_TOLERANCE,
            TerminationReason.STEP_TOLERANCE,
        )


@dataclass(frozen=True)
class MinimizationReport:
    """Convergence diagnostics of one solve."""

    termination: TerminationReason
    iterations: int             # Jacobian evaluations
    residual_evaluations: int
    residual_norm: float        # ||r|| at the returned parameters
    residual_norm_history: tuple[float, ...] = ()  # initial + every accepted step
    damping: float = 0.0
    message: str = ""

    @property
    def objective_function(self) -> float:
        """0.5 * ||r||^2 at the returned parameters."""
        return 0.5 * self.residual_norm ** 2

    @property
    def converged(self) -> bool:
        return self.termination.converged

    @property
    def usable(self) -> bool:
        """Converged, or stopped at the iteration cap with a valid iterate."""
        return self.converged or self.termination == TerminationReason.MAX_ITERATIONS


class LevenbergMarquardt:
    """
    Damped Gauss-Newton refinement.

    Each iteration solves (J^T J + λ D) dx = -J^T r, where D holds the largest
    diagonal of J^T J seen so far in the run.
    A step that lowers the cost is accepted and λ shrinks; otherwise λ grows
    and the step is retried from the same linearization. The Jacobian must have
    full column rank at the starting point only.
    """

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or DEFAULT_SOLVER

    def minimize(
        self, problem: LeastSquaresProblem
    ) -> tuple[LeastSquaresProblem, MinimizationReport]:
        """
        Run the solver to a terminal state.

        Args:
            problem: Least-squares problem, modified in place

        Returns:
            problem: Holding the lowest-cost parameters found
            report: Termination diagnostics
        """
        run = _Run(problem, self.config)
        return problem, run.execute()


class _Run:
    """Mutable state of one ``minimize`` call."""

    def __init__(self, problem: LeastSquaresProblem, config: SolverConfig):
        self.problem = problem
        self.config = config
        self.damping = config.initial_damping
        self.iterations = 0
        self.nfev = 0
        self.history: list[float] = []
        self.reason: Optional[TerminationReason] = None
        self.message = ""

        self.x: NDArray = np.asarray(problem.params(), dtype=float)
        self.r: NDArray = np.empty(0)
        self.cost = np.inf
        self.JtJ: NDArray = np.empty((0, 0))
        self.g: NDArray = np.empty(0)
        self.scale: NDArray = np.empty(0)

    def execute(self) -> MinimizationReport:
        handlers = {
            Phase.EVALUATING: self._evaluate,
            Phase.DAMPING_INCREASE: self._increase_damping,
            Phase.DAMPING_DECREASE: self._decrease_damping,
        }
        phase = self._start()
        while phase not in _TERMINAL:
            phase = handlers[phase]()

        self.problem.set_params(self.x)
        report = MinimizationReport(
            termination=self.reason,
            iterations=self.iterations,
            residual_evaluations=self.nfev,
            residual_norm=float(np.sqrt(2.0 * self.cost)),
            residual_norm_history=tuple(self.history),
            damping=self.damping,
            message=self.message,
        )
        log = logger.info if phase != Phase.FAILED else logger.warning
        log(
            "Levenberg-Marquardt stopped: %s after %d iterations (|r| = %.6e). %s",
            report.termination.name,
            report.iterations,
            report.residual_norm,
            report.message,
        )
        return report

    # Transitions

    def _start(self) -> Phase:
        self.r = self._residuals_at(self.x)
        self.cost = 0.5 * float(self.r @ self.r)
        if not np.isfinite(self.cost):
            return self._fail("Residuals are not finite at the initial guess")
        self.history.append(float(np.sqrt(2.0 * self.cost)))
        if self.cost == 0.0:
            return self._converge(
                TerminationReason.RESIDUALS_ZERO, "Residuals are zero"
            )
        return self._linearize()

    def _linearize(self) -> Phase:
        if self.iterations >= self.config.max_iterations:
            self.reason = TerminationReason.MAX_ITERATIONS
            self.message = f"Reached {self.config.max_iterations} iterations"
            return Phase.EXHAUSTED

        self.iterations += 1
        self.problem.set_params(self.x)
        J = np.asarray(self.problem.jacobian(), dtype=float)

        if not np.all(np.isfinite(J)):
            return self._fail("Jacobian is not finite")
        if self.iterations == 1:
            m, n = J.shape
            if m < n or np.linalg.matrix_rank(J) < n:
                return self._fail(f"Jacobian of shape {J.shape} is rank deficient")

        self.JtJ = J.T @ J
        self.g = J.T @ self.r
        d = np.diag(self.JtJ)
        if self.iterations == 1:
            self.scale = np.where(d > 0, d, 1.0)
        else:
            # Keeps λ D positive definite if the rank drops mid-run
            self.scale = np.maximum(self.scale, d)

        if np.linalg.norm(self.g, np.inf) <= self.config.gtol:
            return self._converge(
                TerminationReason.GRADIENT_TOLERANCE, "Gradient below tolerance"
            )
        return Phase.EVALUATING

    def _evaluate(self) -> Phase:
        system = self.JtJ + self.damping * np.diag(self.scale)
        try:
            dx = scipy.linalg.solve(system, -self.g, assume_a="pos")
        except np.linalg.LinAlgError:
            logger.debug("Damped system not positive definite at λ=%.3e", self.damping)
            return Phase.DAMPING_INCREASE
        if not np.all(np.isfinite(dx)):
            return Phase.DAMPING_INCREASE

        xtol = self.config.xtol
        if np.linalg.norm(dx) <= xtol * (np.linalg.norm(self.x) + xtol):
            return self._converge(
                TerminationReason.STEP_TOLERANCE, "Step length below tolerance"
            )

        x_new = self.x + dx
        r_new = self._residuals_at(x_new)
        cost_new = 0.5 * float(r_new @ r_new)

        if not np.isfinite(cost_new) or cost_new >= self.cost:
            logger.debug(
                "iter %d: rejected step, cost %.6e -> %.6e, λ=%.3e",
                self.iterations, self.cost, cost_new, self.damping,
            )
            return Phase.DAMPING_INCREASE

        previous = self.cost
        self.x, self.r, self.cost = x_new, r_new, cost_new
        self.history.append(float(np.sqrt(2.0 * cost_new)))
        logger.debug(
            "iter %d: accepted step, cost %.6e -> %.6e, λ=%.3e",
            self.iterations, previous, cost_new, self.damping,
        )

        if cost_new == 0.0:
            return self._converge(
                TerminationReason.RESIDUALS_ZERO, "Residuals are zero"
            )
        if previous - cost_new <= self.config.ftol * previous:
            return self._converge(
                TerminationReason.REDUCTION_TOLERANCE,
                "Relative cost reduction below tolerance",
            )
        return Phase.DAMPING_DECREASE

    def _increase_damping(self) -> Phase:
        self.damping *= self.config.damping_increase
        if self.damping > self.config.max_damping:
            return self._fail(
                f"Damping exceeded {self.config.max_damping:.1e} without progress"
            )
        return Phase.EVALUATING

    def _decrease_damping(self) -> Phase:
        self.damping = max(
            self.damping / self.config.damping_decrease, self.config.min_damping
        )
        return self._linearize()

    # Helpers

    def _residuals_at(self, x: NDArray) -> NDArray:
        self.problem.set_params(x)
        self.nfev += 1
        # Trial orbits may pass close to the origin
        with np.errstate(all="ignore"):
            return np.asarray(self.problem.residuals(), dtype=float)

    def _converge(self, reason: TerminationReason, message: str) -> Phase:
        self.reason = reason
        self.message = message
        return Phase.CONVERGED

    def _fail(self, message: str) -> Phase:
        self.reason = TerminationReason.NUMERICALLY_DEGENERATE
        self.message = message
        return Phase.FAILED
