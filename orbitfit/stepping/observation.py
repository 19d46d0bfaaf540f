"""Bearing-angle observation model and observation sub-sampling."""

from itertools import islice
from typing import Iterable, Iterator, Optional
import numpy as np
from numpy.typing import NDArray

from orbitfit.core.config import IntegrationConfig, DEFAULT_INTEGRATION
from orbitfit.core.state import State
from orbitfit.stepping.integrator import integrate


def bearing(pos: NDArray):
    """Four-quadrant bearing of a position: atan2(y, x)."""
    return np.arctan2(pos[1], pos[0])


def sample(
    trajectory: Iterable[State],
    config: Optional[IntegrationConfig] = None,
) -> Iterator[NDArray]:
    """Positions at the observation instants (indices stride-1, 2*stride-1, ...)."""
    config = config or DEFAULT_INTEGRATION
    for state in islice(trajectory, config.first_sample_index, None, config.stride):
        yield state.pos


def observe(positions: Iterable[NDArray]) -> list:
    """Bearing angle of each position."""
    return [bearing(p) for p in positions]


def sample_and_observe(
    trajectory: Iterable[State],
    config: Optional[IntegrationConfig] = None,
) -> list:
    """Predicted bearing angles at the observation instants of a trajectory."""
    return observe(sample(trajectory, config))


def sampled_trajectory(
    initial_state: State,
    config: Optional[IntegrationConfig] = None,
) -> list[NDArray]:
    """Integrate ``initial_state`` and keep the positions at observation instants."""
    return list(sample(integrate(initial_state, config), config))
