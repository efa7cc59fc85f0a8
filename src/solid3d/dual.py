"""First order forward-mode derivative numbers.

A :class:`Dual` carries a value and its partial derivatives with respect to
a fixed number of free parameters.  Arithmetic propagates the derivatives
with the chain rule, so any computation written for floats also yields its
gradient when fed duals.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

from solid3d.errors import IllegalArgumentError


class Dual:
    """Value with first order partial derivatives."""

    __slots__ = ('_value', '_derivatives')

    def __init__(self, value: float, derivatives: Sequence[float] = ()):
        self._value = float(value)
        self._derivatives = tuple(float(d) for d in derivatives)

    @classmethod
    def variable(cls, value: float, index: int, count: int) -> "Dual":
        """Free parameter number ``index`` out of ``count``."""
        if not 0 <= index < count:
            raise IllegalArgumentError(f"parameter index {index} out of range [0, {count})",
                                       {'index': index, 'count': count})
        derivatives = [0.0] * count
        derivatives[index] = 1.0
        return cls(value, derivatives)

    @classmethod
    def constant(cls, value: float, count: int) -> "Dual":
        return cls(value, [0.0] * count)

    @property
    def value(self) -> float:
        return self._value

    @property
    def derivatives(self) -> Tuple[float, ...]:
        return self._derivatives

    @property
    def count(self) -> int:
        return len(self._derivatives)

    def partial(self, index: int) -> float:
        return self._derivatives[index]

    # ------------------------------------------------------------------
    # chain rule helpers
    # ------------------------------------------------------------------
    def _lift(self, other) -> "Dual":
        if isinstance(other, Dual):
            if other.count != self.count:
                raise IllegalArgumentError(
                    f"derivative dimension mismatch: {self.count} != {other.count}",
                    {'left': self.count, 'right': other.count})
            return other
        return Dual.constant(other, self.count)

    def _compose(self, value: float, slope: float) -> "Dual":
        return Dual(value, [slope * d for d in self._derivatives])

    # ------------------------------------------------------------------
    # arithmetic
    # ------------------------------------------------------------------
    def __add__(self, other) -> "Dual":
        o = self._lift(other)
        return Dual(self._value + o._value,
                    [a + b for a, b in zip(self._derivatives, o._derivatives)])

    __radd__ = __add__

    def __sub__(self, other) -> "Dual":
        o = self._lift(other)
        return Dual(self._value - o._value,
                    [a - b for a, b in zip(self._derivatives, o._derivatives)])

    def __rsub__(self, other) -> "Dual":
        return self._lift(other) - self

    def __neg__(self) -> "Dual":
        return Dual(-self._value, [-d for d in self._derivatives])

    def __mul__(self, other) -> "Dual":
        o = self._lift(other)
        return Dual(self._value * o._value,
                    [a * o._value + self._value * b
                     for a, b in zip(self._derivatives, o._derivatives)])

    __rmul__ = __mul__

    def __truediv__(self, other) -> "Dual":
        o = self._lift(other)
        inv = 1.0 / o._value
        value = self._value * inv
        return Dual(value, [(a - value * b) * inv
                            for a, b in zip(self._derivatives, o._derivatives)])

    def __rtruediv__(self, other) -> "Dual":
        return self._lift(other) / self

    def __pow__(self, exponent: float) -> "Dual":
        if isinstance(exponent, Dual):
            return (self.log() * exponent).exp()
        value = self._value ** exponent
        return self._compose(value, exponent * self._value ** (exponent - 1))

    def __abs__(self) -> "Dual":
        return -self if self._value < 0.0 else self

    # ------------------------------------------------------------------
    # elementary functions
    # ------------------------------------------------------------------
    def sqrt(self) -> "Dual":
        root = math.sqrt(self._value)
        return self._compose(root, 0.5 / root if root != 0.0 else math.inf)

    def exp(self) -> "Dual":
        e = math.exp(self._value)
        return self._compose(e, e)

    def log(self) -> "Dual":
        return self._compose(math.log(self._value), 1.0 / self._value)

    def sin(self) -> "Dual":
        return self._compose(math.sin(self._value), math.cos(self._value))

    def cos(self) -> "Dual":
        return self._compose(math.cos(self._value), -math.sin(self._value))

    def tan(self) -> "Dual":
        t = math.tan(self._value)
        return self._compose(t, 1.0 + t * t)

    def asin(self) -> "Dual":
        return self._compose(math.asin(self._value),
                             1.0 / math.sqrt(1.0 - self._value * self._value))

    def acos(self) -> "Dual":
        return self._compose(math.acos(self._value),
                             -1.0 / math.sqrt(1.0 - self._value * self._value))

    def atan(self) -> "Dual":
        return self._compose(math.atan(self._value), 1.0 / (1.0 + self._value * self._value))

    @staticmethod
    def atan2(y: "Dual", x: "Dual") -> "Dual":
        """Two argument arc tangent propagating derivatives of both inputs."""
        if not isinstance(y, Dual):
            y = Dual.constant(y, x.count)
        x = y._lift(x)
        r2 = x._value * x._value + y._value * y._value
        value = math.atan2(y._value, x._value)
        return Dual(value, [(x._value * dy - y._value * dx) / r2
                            for dx, dy in zip(x._derivatives, y._derivatives)])

    # ------------------------------------------------------------------
    # comparisons act on the value only
    # ------------------------------------------------------------------
    def _v(self, other) -> float:
        return other._value if isinstance(other, Dual) else float(other)

    def __lt__(self, other) -> bool:
        return self._value < self._v(other)

    def __le__(self, other) -> bool:
        return self._value <= self._v(other)

    def __gt__(self, other) -> bool:
        return self._value > self._v(other)

    def __ge__(self, other) -> bool:
        return self._value >= self._v(other)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Dual):
            return NotImplemented
        return self._value == other._value and self._derivatives == other._derivatives

    def __hash__(self) -> int:
        return hash((self._value, self._derivatives))

    def __float__(self) -> float:
        return self._value

    def __repr__(self) -> str:
        return f"Dual({self._value!r}, {list(self._derivatives)!r})"
