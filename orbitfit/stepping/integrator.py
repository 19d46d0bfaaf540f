"""Forward Euler propagation under inverse-square gravity."""

from typing import Iterator, Optional
import numpy as np

from orbitfit.core.config import IntegrationConfig, DEFAULT_INTEGRATION
from orbitfit.core.state import State


def acceleration(pos):
    """Inverse-square attraction toward the origin: a = -pos / |pos|^3."""
    dist = np.sqrt(pos[0] ** 2 + pos[1] ** 2)
    return -pos / dist ** 3


def step(state: State, dt: float) -> State:
    """
    One explicit Euler step of pos' = vel, vel' = -pos / |pos|^3.

    Works for float and ``Differential`` components alike. The input
    snapshot is left untouched.

    Args:
        state: State at time t
        dt: Step size

    Returns:
        State at time t + dt
    """
    acc = acceleration(state.pos)
    return State(pos=state.pos + state.vel * dt, vel=state.vel + acc * dt)


def integrate(
    initial_state: State,
    config: Optional[IntegrationConfig] = None,
) -> Iterator[State]:
    """
    Lazily yield ``config.n_steps`` successive states.

    The first item is the state one step after ``initial_state``; the
    initial state itself is not yielded. Each call starts over from
    ``initial_state``.
    """
    config = config or DEFAULT_INTEGRATION
    state = initial_state
    for _ in range(config.n_steps):
        state = step(state, config.dt)
        yield state
