"""Immutable 3D vectors with accurate dot and cross products.

Dot and cross products are computed with :func:`linear_combination`, which
evaluates the sum of products in extended precision with mpmath and rounds
once.  This keeps nearly orthogonal (or nearly parallel) vectors from losing
all their significant digits to cancellation.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import math
from typing import Iterator, Sequence

import mpmath as mpm

from solid3d.errors import zero_norm

# enough bits to hold the exact products of doubles and their sum
_ACCURATE_PRECISION = 160


def linear_combination(*values: float) -> float:
    """Return ``a1*b1 + a2*b2 + ...`` for ``values = (a1, b1, a2, b2, ...)``.

    The products and their sum are evaluated at extended precision and the
    result is rounded to the nearest double only once.
    """

    if len(values) % 2:
        raise ValueError('linear_combination expects an even number of values')
    pairs = [(values[i], values[i + 1]) for i in range(0, len(values), 2)]
    with mpm.workprec(_ACCURATE_PRECISION):
        return float(mpm.fdot(pairs))


def format_number(value: float) -> str:
    """Format a coordinate with at most ten fraction digits."""

    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'
    text = f"{value:.10f}".rstrip('0').rstrip('.')
    if text in ('', '-'):
        text = '0'
    return text


class Vector3D:
    """A point or displacement in 3D Euclidean space.

    Instances are immutable: every operation returns a new vector.
    """

    __slots__ = ('_x', '_y', '_z')

    def __init__(self, x: float, y: float, z: float) -> None:
        self._x = float(x)
        self._y = float(y)
        self._z = float(z)

    # ------------------------------------------------------------------
    # alternate constructors
    # ------------------------------------------------------------------
    @classmethod
    def from_angles(cls, alpha: float, delta: float) -> "Vector3D":
        """Unit vector with azimuth ``alpha`` and elevation ``delta``."""
        cos_delta = math.cos(delta)
        return cls(math.cos(alpha) * cos_delta, math.sin(alpha) * cos_delta, math.sin(delta))

    @classmethod
    def from_array(cls, values: Sequence[float]) -> "Vector3D":
        if len(values) != 3:
            raise ValueError(f"expected 3 coordinates, got {len(values)}")
        return cls(values[0], values[1], values[2])

    @classmethod
    def linear(cls, *terms) -> "Vector3D":
        """Accurate linear combination ``a1*u1 + a2*u2 + ...``.

        ``terms`` alternates scale factors and vectors.
        """
        if len(terms) % 2 or not terms:
            raise ValueError('Vector3D.linear expects (factor, vector) pairs')
        factors = terms[0::2]
        vectors = terms[1::2]
        coords = []
        for axis in range(3):
            values = []
            for a, u in zip(factors, vectors):
                values.extend((a, u[axis]))
            coords.append(linear_combination(*values))
        return cls(*coords)

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------
    @property
    def x(self) -> float:
        return self._x

    @property
    def y(self) -> float:
        return self._y

    @property
    def z(self) -> float:
        return self._z

    def to_array(self) -> list:
        return [self._x, self._y, self._z]

    def __iter__(self) -> Iterator[float]:
        yield self._x
        yield self._y
        yield self._z

    def __getitem__(self, index: int) -> float:
        return (self._x, self._y, self._z)[index]

    def __len__(self) -> int:
        return 3

    # ------------------------------------------------------------------
    # arithmetic
    # ------------------------------------------------------------------
    def __add__(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(self._x + other.x, self._y + other.y, self._z + other.z)

    def __sub__(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(self._x - other.x, self._y - other.y, self._z - other.z)

    def __neg__(self) -> "Vector3D":
        return Vector3D(-self._x, -self._y, -self._z)

    def __mul__(self, scalar: float) -> "Vector3D":
        return Vector3D(self._x * scalar, self._y * scalar, self._z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Vector3D":
        return Vector3D(self._x / scalar, self._y / scalar, self._z / scalar)

    def add(self, factor: float, other: "Vector3D") -> "Vector3D":
        """Return ``self + factor * other``."""
        return Vector3D(self._x + factor * other.x,
                        self._y + factor * other.y,
                        self._z + factor * other.z)

    def subtract(self, factor: float, other: "Vector3D") -> "Vector3D":
        """Return ``self - factor * other``."""
        return Vector3D(self._x - factor * other.x,
                        self._y - factor * other.y,
                        self._z - factor * other.z)

    def dot(self, other: "Vector3D") -> float:
        return linear_combination(self._x, other.x, self._y, other.y, self._z, other.z)

    def cross(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(linear_combination(self._y, other.z, -self._z, other.y),
                        linear_combination(self._z, other.x, -self._x, other.z),
                        linear_combination(self._x, other.y, -self._y, other.x))

    # ------------------------------------------------------------------
    # norms and distances
    # ------------------------------------------------------------------
    def norm(self) -> float:
        return math.sqrt(self.norm_sq())

    def norm_sq(self) -> float:
        return self._x * self._x + self._y * self._y + self._z * self._z

    def norm1(self) -> float:
        return abs(self._x) + abs(self._y) + abs(self._z)

    def norm_inf(self) -> float:
        return max(abs(self._x), abs(self._y), abs(self._z))

    def distance(self, other: "Vector3D") -> float:
        return math.sqrt(self.distance_sq(other))

    def distance_sq(self, other: "Vector3D") -> float:
        dx = other.x - self._x
        dy = other.y - self._y
        dz = other.z - self._z
        return dx * dx + dy * dy + dz * dz

    def distance1(self, other: "Vector3D") -> float:
        return abs(other.x - self._x) + abs(other.y - self._y) + abs(other.z - self._z)

    def distance_inf(self, other: "Vector3D") -> float:
        return max(abs(other.x - self._x), abs(other.y - self._y), abs(other.z - self._z))

    def normalize(self) -> "Vector3D":
        n = self.norm()
        if n == 0.0:
            raise zero_norm()
        return self / n

    def orthogonal(self) -> "Vector3D":
        """Return a unit vector orthogonal to this one.

        The component with the smallest magnitude is dropped so the result
        stays well conditioned.
        """
        threshold = 0.6 * self.norm()
        if threshold == 0.0:
            raise zero_norm()
        x, y, z = self._x, self._y, self._z
        if -threshold <= x <= threshold:
            inverse = 1.0 / math.sqrt(y * y + z * z)
            return Vector3D(0.0, inverse * z, -inverse * y)
        if -threshold <= y <= threshold:
            inverse = 1.0 / math.sqrt(x * x + z * z)
            return Vector3D(-inverse * z, 0.0, inverse * x)
        inverse = 1.0 / math.sqrt(x * x + y * y)
        return Vector3D(inverse * y, -inverse * x, 0.0)

    @staticmethod
    def angle(u: "Vector3D", v: "Vector3D") -> float:
        """Angular separation of ``u`` and ``v`` in [0, pi]."""
        norm_product = u.norm() * v.norm()
        if norm_product == 0.0:
            raise zero_norm()
        dot = u.dot(v)
        threshold = norm_product * 0.9999
        if dot < -threshold or dot > threshold:
            # nearly aligned, the sine is better conditioned
            sine = u.cross(v).norm() / norm_product
            if dot >= 0.0:
                return math.asin(sine)
            return math.pi - math.asin(sine)
        return math.acos(dot / norm_product)

    def alpha(self) -> float:
        """Azimuth of the projection in the XY plane, in (-pi, pi]."""
        return math.atan2(self._y, self._x)

    def delta(self) -> float:
        """Elevation above the XY plane, in [-pi/2, pi/2]."""
        return math.asin(self._z / self.norm())

    # ------------------------------------------------------------------
    # predicates
    # ------------------------------------------------------------------
    def is_nan(self) -> bool:
        return math.isnan(self._x) or math.isnan(self._y) or math.isnan(self._z)

    def is_infinite(self) -> bool:
        return not self.is_nan() and (math.isinf(self._x) or math.isinf(self._y)
                                      or math.isinf(self._z))

    def is_zero(self) -> bool:
        return self._x == 0.0 and self._y == 0.0 and self._z == 0.0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector3D):
            return NotImplemented
        if self.is_nan():
            return other.is_nan()
        return self._x == other.x and self._y == other.y and self._z == other.z

    def __hash__(self) -> int:
        if self.is_nan():
            return 7785
        return hash((self._x, self._y, self._z))

    def __repr__(self) -> str:
        return f"Vector3D({self._x!r}, {self._y!r}, {self._z!r})"

    def __str__(self) -> str:
        return '{' + '; '.join(format_number(c) for c in (self._x, self._y, self._z)) + '}'


Vector3D.ZERO = Vector3D(0.0, 0.0, 0.0)
Vector3D.PLUS_I = Vector3D(1.0, 0.0, 0.0)
Vector3D.MINUS_I = Vector3D(-1.0, 0.0, 0.0)
Vector3D.PLUS_J = Vector3D(0.0, 1.0, 0.0)
Vector3D.MINUS_J = Vector3D(0.0, -1.0, 0.0)
Vector3D.PLUS_K = Vector3D(0.0, 0.0, 1.0)
Vector3D.MINUS_K = Vector3D(0.0, 0.0, -1.0)
Vector3D.NAN = Vector3D(math.nan, math.nan, math.nan)
