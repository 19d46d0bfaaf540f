"""Core data types and configuration."""

from orbitfit.core.config import (
    IntegrationConfig,
    SolverConfig,
    DEFAULT_INTEGRATION,
    DEFAULT_SOLVER,
)
from orbitfit.core.state import State, N_PARAMS
from orbitfit.core.problem import LeastSquaresProblem

__all__ = [
    "IntegrationConfig",
    "SolverConfig",
    "DEFAULT_INTEGRATION",
    "DEFAULT_SOLVER",
    "State",
    "N_PARAMS",
    "LeastSquaresProblem",
]
