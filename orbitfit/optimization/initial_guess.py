"""Starting state for the solver derived from the first two bearings."""

from typing import Optional, Sequence
import numpy as np

from orbitfit.core.config import IntegrationConfig, DEFAULT_INTEGRATION
from orbitfit.core.state import State


class DegenerateInputError(ValueError):
    """Too few observations to seed a fit."""


def unit_bearing(angle: float) -> np.ndarray:
    """Point on the unit circle at the given bearing."""
    return np.array([np.cos(angle), np.sin(angle)])


def initial_guess(
    observed: Sequence[float],
    config: Optional[IntegrationConfig] = None,
) -> State:
    """
    Place the body on the unit circle at the first observed bearing.

    The velocity is the chord between the unit-circle points of the first two
    bearings divided by the integrator time step.

    Raises:
        DegenerateInputError: fewer than two observations
    """
    config = config or DEFAULT_INTEGRATION
    if len(observed) < 2:
        raise DegenerateInputError(
            f"At least 2 observations are required, got {len(observed)}"
        )
    p0 = unit_bearing(float(observed[0]))
    p1 = unit_bearing(float(observed[1]))
    return State(pos=p0, vel=(p1 - p0) / config.dt)
