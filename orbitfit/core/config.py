"""Named configuration values for integration, sampling and the solver."""

from dataclasses import dataclass
import numpy as np


_EPS = float(np.finfo(np.float64).eps)


@dataclass(frozen=True)
class IntegrationConfig:
    """Time step, trajectory length and observation cadence."""

    dt: float = 0.25      # integrator time step
    n_steps: int = 120    # states produced per trajectory
    stride: int = 5       # integration steps between observations

    def __post_init__(self) -> None:
        if not self.dt > 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.n_steps < 1:
            raise ValueError(f"n_steps must be >= 1, got {self.n_steps}")
        if self.stride < 1:
            raise ValueError(f"stride must be >= 1, got {self.stride}")

    @property
    def first_sample_index(self) -> int:
        """Trajectory index of the first observation instant."""
        return self.stride - 1

    @property
    def n_samples(self) -> int:
        """Number of observation instants within one trajectory."""
        return self.n_steps // self.stride


@dataclass(frozen=True)
class SolverConfig:
    """Levenberg-Marquardt tolerances and damping schedule."""

    ftol: float = 30.0 * _EPS   # relative cost reduction of an accepted step
    xtol: float = 30.0 * _EPS   # relative step length
    gtol: float = 0.0           # infinity norm of J^T r
    max_iterations: int = 100   # Jacobian evaluations
    initial_damping: float = 1e-3
    damping_increase: float = 10.0
    damping_decrease: float = 10.0
    min_damping: float = 1e-15
    max_damping: float = 1e16

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError(
                f"max_iterations must be >= 1, got {self.max_iterations}"
            )
        if min(self.ftol, self.xtol, self.gtol) < 0:
            raise ValueError("Tolerances must be non-negative")
        if self.damping_increase <= 1 or self.damping_decrease <= 1:
            raise ValueError("Damping factors must be greater than 1")
        if not 0 < self.initial_damping <= self.max_damping:
            raise ValueError(
                "initial_damping must lie in (0, max_damping], "
                f"got {self.initial_damping}"
            )


DEFAULT_INTEGRATION = IntegrationConfig()
DEFAULT_SOLVER = SolverConfig()
