"""Least-squares fitting of the initial state."""

from orbitfit.optimization.residuals import (
    residuals,
    residual_vector,
    jacobian,
    OrbitFitProblem,
)
from orbitfit.optimization.levenberg_marquardt import (
    LevenbergMarquardt,
    MinimizationReport,
    TerminationReason,
    Phase,
)
from orbitfit.optimization.initial_guess import initial_guess, DegenerateInputError
from orbitfit.optimization.fit import fit_trajectory, fit_batch

__all__ = [
    "residuals",
    "residual_vector",
    "jacobian",
    "OrbitFitProblem",
    "LevenbergMarquardt",
    "MinimizationReport",
    "TerminationReason",
    "Phase",
    "initial_guess",
    "DegenerateInputError",
    "fit_trajectory",
    "fit_batch",
]
