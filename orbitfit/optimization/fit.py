"""Trajectory fitting entry points."""

from concurrent.futures import Executor
from functools import partial
from typing import Iterable, Optional, Sequence
import logging
import numpy as np

from orbitfit.core.config import (
    IntegrationConfig,
    SolverConfig,
    DEFAULT_INTEGRATION,
)
from orbitfit.core.state import State
from orbitfit.optimization.initial_guess import initial_guess, DegenerateInputError
from orbitfit.optimization.levenberg_marquardt import (
    LevenbergMarquardt,
    MinimizationReport,
    TerminationReason,
)
from orbitfit.optimization.residuals import OrbitFitProblem


logger = logging.getLogger(__name__)


def fit_trajectory(
    observed_angles: Sequence[float],
    config: Optional[IntegrationConfig] = None,
    solver_config: Optional[SolverConfig] = None,
    initial_state: Optional[State] = None,
) -> tuple[Optional[State], MinimizationReport]:
    """
    Estimate the initial state that reproduces a sequence of bearings.

    Args:
        observed_angles: Bearings (radians) at the observation instants, in order
        config: Integration and sampling constants
        solver_config: Levenberg-Marquardt tolerances
        initial_state: Solver seed; derived from the first two bearings if omitted

    Returns:
        state: Fitted initial state, or None for fewer than two observations
        report: How the state was obtained
    """
    config = config or DEFAULT_INTEGRATION
    observed = np.asarray(observed_angles, dtype=float)

    try:
        seed = initial_guess(observed, config)
    except DegenerateInputError as exc:
        logger.warning("Cannot fit trajectory: %s", exc)
        return None, MinimizationReport(
            termination=TerminationReason.DEGENERATE_INPUT,
            iterations=0,
            residual_evaluations=0,
            residual_norm=float("nan"),
            message=str(exc),
        )
    if initial_state is not None:
        seed = initial_state

    problem = OrbitFitProblem(seed, observed, config)
    if len(observed) > problem.n_residuals:
        logger.warning(
            "Ignoring %d observations beyond the %d observation instants",
            len(observed) - problem.n_residuals,
            problem.n_residuals,
        )

    problem, report = LevenbergMarquardt(solver_config).minimize(problem)
    return problem.state, report


def fit_batch(
    observation_sets: Iterable[Sequence[float]],
    config: Optional[IntegrationConfig] = None,
    solver_config: Optional[SolverConfig] = None,
    executor: Optional[Executor] = None,
) -> list[tuple[Optional[State], MinimizationReport]]:
    """
    Fit independent observation sets.

    Fits share no state, so an executor may run them concurrently. Results
    keep the order of ``observation_sets``.
    """
    fit = partial(fit_trajectory, config=config, solver_config=solver_config)
    mapper = executor.map if executor is not None else map
    return list(mapper(fit, observation_sets))
