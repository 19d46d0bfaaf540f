"""Position/velocity state of the orbiting body."""

from dataclasses import dataclass
import numpy as np
from numpy.typing import NDArray


N_PARAMS = 4  # (pos.x, pos.y, vel.x, vel.y)


@dataclass(frozen=True)
class State:
    """
    Snapshot of a body in the plane.

    ``pos`` and ``vel`` are arrays of shape (2,). Their dtype is float64 for
    plain evaluation or object when they hold ``Differential`` values, in
    which case every arithmetic step also carries derivatives.
    """

    pos: NDArray  # (2,)
    vel: NDArray  # (2,)

    @classmethod
    def from_params(cls, x: NDArray) -> "State":
        """Build a plain state from the parameter vector (pos.x, pos.y, vel.x, vel.y)."""
        x = np.asarray(x, dtype=float)
        if x.shape != (N_PARAMS,):
            raise ValueError(
                f"Expected parameter vector of shape ({N_PARAMS},), got {x.shape}"
            )
        return cls(pos=x[:2].copy(), vel=x[2:].copy())

    def params(self) -> NDArray:
        """Parameter vector of the plain values, shape (4,)."""
        components = [*self.pos, *self.vel]
        return np.array(
            [float(getattr(c, "value", c)) for c in components], dtype=float
        )

    @property
    def is_differential(self) -> bool:
        """True if the components carry derivatives."""
        return self.pos.dtype == object

    def __repr__(self) -> str:
        x = self.params()
        return (
            f"State(pos=({x[0]:.6g}, {x[1]:.6g}), vel=({x[2]:.6g}, {x[3]:.6g}))"
        )
