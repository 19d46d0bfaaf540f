"""Least-squares problem protocol."""

from typing import Protocol
from numpy.typing import NDArray


class LeastSquaresProblem(Protocol):
    """Callbacks consumed by the Levenberg-Marquardt solver."""

    def params(self) -> NDArray:
        """Current parameter vector, shape (n,)."""
        ...

    def set_params(self, x: NDArray) -> None:
        """Replace the current parameter vector."""
        ...

    def residuals(self) -> NDArray:
        """Residual vector at the current parameters, shape (m,)."""
        ...

    def jacobian(self) -> NDArray:
        """Jacobian of the residuals w.r.t. the parameters, shape (m, n)."""
        ...
