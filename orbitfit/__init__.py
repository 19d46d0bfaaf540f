"""
Orbitfit: bearing-only initial state estimation under inverse-square gravity.

This library provides:
- Forward Euler propagation generic over plain and differential numbers
- A bearing-angle observation model with fixed-cadence sampling
- Forward-mode automatic differentiation for exact Jacobians
- Levenberg-Marquardt refinement of the initial position and velocity
"""

import logging

__version__ = "0.1.0"

from orbitfit.core.config import IntegrationConfig, SolverConfig
from orbitfit.core.state import State
from orbitfit.stepping.integrator import integrate
from orbitfit.stepping.observation import sample_and_observe
from orbitfit.optimization.fit import fit_trajectory, fit_batch
from orbitfit.optimization.levenberg_marquardt import (
    MinimizationReport,
    TerminationReason,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "IntegrationConfig",
    "SolverConfig",
    "State",
    "integrate",
    "sample_and_observe",
    "fit_trajectory",
    "fit_batch",
    "MinimizationReport",
    "TerminationReason",
]
