"""Trajectory propagation and observation model."""

from orbitfit.stepping.integrator import acceleration, step, integrate
from orbitfit.stepping.observation import (
    bearing,
    sample,
    observe,
    sample_and_observe,
    sampled_trajectory,
)

__all__ = [
    "acceleration",
    "step",
    "integrate",
    "bearing",
    "sample",
    "observe",
    "sample_and_observe",
    "sampled_trajectory",
]
