"""Residuals and exact Jacobians of the bearing-fit problem."""

from typing import Optional, Sequence
import numpy as np
from numpy.typing import NDArray

from orbitfit.autodiff.differential import seed_state, derivatives_of
from orbitfit.core.config import IntegrationConfig, DEFAULT_INTEGRATION
from orbitfit.core.state import State
from orbitfit.stepping.integrator import integrate
from orbitfit.stepping.observation import sample_and_observe


def residuals(
    initial_state: State,
    observed: Sequence[float],
    config: Optional[IntegrationConfig] = None,
) -> list:
    """
    observed[i] - predicted[i] for every observation instant.

    Observed and predicted angles are paired index by index; whichever
    sequence is longer is truncated. The element type of the result follows
    ``initial_state``: floats for a plain state, differentials for a seeded
    one.
    """
    predicted = sample_and_observe(integrate(initial_state, config), config)
    return [float(o) - p for o, p in zip(observed, predicted)]


def residual_vector(
    state: State,
    observed: Sequence[float],
    config: Optional[IntegrationConfig] = None,
) -> NDArray:
    """Residuals of a plain state as an array, shape (m,)."""
    return np.array(residuals(state, observed, config), dtype=float)


def jacobian(
    state: State,
    observed: Sequence[float],
    config: Optional[IntegrationConfig] = None,
) -> NDArray:
    """
    Jacobian of the residuals w.r.t. the initial state, shape (m, 4).

    Runs the same simulation as ``residuals`` on differentials seeded at the
    identity; the gradient carried by residual i is row i.
    """
    return derivatives_of(residuals(seed_state(state), observed, config))


class OrbitFitProblem:
    """
    Candidate initial state bound to a fixed sequence of observed bearings.

    Implements the ``LeastSquaresProblem`` protocol over the parameter
    vector (pos.x, pos.y, vel.x, vel.y).
    """

    def __init__(
        self,
        state: State,
        observed: Sequence[float],
        config: Optional[IntegrationConfig] = None,
    ):
        self._state = state
        self.observed = np.asarray(observed, dtype=float)
        self.config = config or DEFAULT_INTEGRATION

    @property
    def state(self) -> State:
        """Current candidate initial state."""
        return self._state

    @property
    def n_residuals(self) -> int:
        """Observations paired with an observation instant."""
        return min(len(self.observed), self.config.n_samples)

    def params(self) -> NDArray:
        return self._state.params()

    def set_params(self, x: NDArray) -> None:
        self._state = State.from_params(x)

    def residuals(self) -> NDArray:
        return residual_vector(self._state, self.observed, self.config)

    def jacobian(self) -> NDArray:
        return jacobian(self._state, self.observed, self.config)
