"""Forward-mode automatic differentiation number."""

from numbers import Real
from typing import Sequence, Union
import numpy as np
from numpy.typing import NDArray

from orbitfit.core.state import State, N_PARAMS


Scalar = Union["Differential", float]


class Differential:
    """
    A value paired with its gradient w.r.t. a fixed set of parameters.

    Arithmetic follows the chain rule, so any code written against
    ``+ - * / **`` and the NumPy functions ``sqrt``, ``arctan2``, ``sin``,
    ``cos``, ``exp``, ``log`` yields exact first derivatives when fed
    differentials instead of floats. NumPy dispatches those functions on
    object operands to the same-named method, which is what lets
    ``np.sqrt(d)`` and object arrays of differentials work unchanged.
    """

    __slots__ = ("value", "derivative")

    def __init__(self, value: float, derivative: NDArray):
        self.value = np.float64(value)
        self.derivative = np.asarray(derivative, dtype=float)

    @classmethod
    def constant(cls, value: float, n: int = N_PARAMS) -> "Differential":
        """Value with a zero gradient."""
        return cls(value, np.zeros(n))

    @classmethod
    def variable(cls, value: float, index: int, n: int = N_PARAMS) -> "Differential":
        """Free parameter: one-hot gradient in slot ``index``."""
        derivative = np.zeros(n)
        derivative[index] = 1.0
        return cls(value, derivative)

    def _lift(self, other: Scalar) -> "Differential":
        if isinstance(other, Differential):
            return other
        if isinstance(other, Real):
            return Differential(other, np.zeros_like(self.derivative))
        return NotImplemented

    # Arithmetic

    def __add__(self, other):
        other = self._lift(other)
        if other is NotImplemented:
            return other
        return Differential(self.value + other.value, self.derivative + other.derivative)

    __radd__ = __add__

    def __sub__(self, other):
        other = self._lift(other)
        if other is NotImplemented:
            return other
        return Differential(self.value - other.value, self.derivative - other.derivative)

    def __rsub__(self, other):
        other = self._lift(other)
        if other is NotImplemented:
            return other
        return other - self

    def __mul__(self, other):
        other = self._lift(other)
        if other is NotImplemented:
            return other
        return Differential(
            self.value * other.value,
            self.derivative * other.value + self.value * other.derivative,
        )

    __rmul__ = __mul__

    def __truediv__(self, other):
        other = self._lift(other)
        if other is NotImplemented:
            return other
        quotient = self.value / other.value
        return Differential(
            quotient, (self.derivative - quotient * other.derivative) / other.value
        )

    def __rtruediv__(self, other):
        other = self._lift(other)
        if other is NotImplemented:
            return other
        return other / self

    def __pow__(self, exponent):
        if isinstance(exponent, Differential) or not isinstance(exponent, Real):
            return NotImplemented
        if exponent == 0:
            return Differential(1.0, np.zeros_like(self.derivative))
        scale = exponent * self.value ** (exponent - 1)
        return Differential(self.value ** exponent, scale * self.derivative)

    def __neg__(self) -> "Differential":
        return Differential(-self.value, -self.derivative)

    def __pos__(self) -> "Differential":
        return self

    def __abs__(self) -> "Differential":
        return -self if self.value < 0 else self

    # Comparisons use the value only

    def __eq__(self, other) -> bool:
        if isinstance(other, Differential):
            return bool(self.value == other.value)
        if isinstance(other, Real):
            return bool(self.value == other)
        return NotImplemented

    __hash__ = None

    def __lt__(self, other) -> bool:
        return self.value < getattr(other, "value", other)

    def __le__(self, other) -> bool:
        return self.value <= getattr(other, "value", other)

    def __gt__(self, other) -> bool:
        return self.value > getattr(other, "value", other)

    def __ge__(self, other) -> bool:
        return self.value >= getattr(other, "value", other)

    # Elementary functions (called by NumPy ufuncs on object operands)

    def sqrt(self) -> "Differential":
        root = np.sqrt(self.value)
        return Differential(root, self.derivative / (2.0 * root))

    def arctan2(self, x: Scalar) -> "Differential":
        """atan2(self, x): d = (x dy - y dx) / (x^2 + y^2)."""
        x = self._lift(x)
        r2 = x.value ** 2 + self.value ** 2
        return Differential(
            np.arctan2(self.value, x.value),
            (x.value * self.derivative - self.value * x.derivative) / r2,
        )

    def sin(self) -> "Differential":
        return Differential(np.sin(self.value), np.cos(self.value) * self.derivative)

    def cos(self) -> "Differential":
        return Differential(np.cos(self.value), -np.sin(self.value) * self.derivative)

    def exp(self) -> "Differential":
        e = np.exp(self.value)
        return Differential(e, e * self.derivative)

    def log(self) -> "Differential":
        return Differential(np.log(self.value), self.derivative / self.value)

    def __repr__(self) -> str:
        return f"Differential({self.value!r}, {self.derivative!r})"


def seed_state(state: State) -> State:
    """
    Lift a plain state to differentials seeded at the identity.

    Slot 0 tracks pos.x, slot 1 pos.y, slot 2 vel.x and slot 3 vel.y, so the
    gradient of anything computed from the returned state is its row of the
    Jacobian w.r.t. the initial state.
    """
    x = state.params()
    components = [Differential.variable(x[i], i) for i in range(N_PARAMS)]
    pos = np.empty(2, dtype=object)
    vel = np.empty(2, dtype=object)
    pos[:] = components[:2]
    vel[:] = components[2:]
    return State(pos=pos, vel=vel)


def values_of(items: Sequence[Differential]) -> NDArray:
    """Plain values of a sequence of differentials, shape (m,)."""
    return np.array([d.value for d in items], dtype=float)


def derivatives_of(items: Sequence[Differential]) -> NDArray:
    """Stack the gradients of a sequence of differentials, shape (m, n)."""
    if len(items) == 0:
        return np.zeros((0, N_PARAMS))
    return np.vstack([d.derivative for d in items])
