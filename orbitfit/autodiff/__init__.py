"""Forward-mode automatic differentiation."""

from orbitfit.autodiff.differential import (
    Differential,
    seed_state,
    values_of,
    derivatives_of,
)

__all__ = [
    "Differential",
    "seed_state",
    "values_of",
    "derivatives_of",
]
