import math

import pytest

from solid3d.dual import Dual
from solid3d.errors import GeometryArithmeticError, IllegalArgumentError
from solid3d.field_vector import FieldVector3D
from solid3d.vector import Vector3D


def _close(a, b, tol=1e-12):
    return abs(a - b) < tol


class TestDual:
    """derivative propagation through Dual arithmetic"""

    def test_product_rule(self):
        x = Dual.variable(2.0, 0, 2)
        y = Dual.variable(3.0, 1, 2)
        p = x * y
        assert p.value == 6.0
        assert p.derivatives == (3.0, 2.0)
        q = x / y
        assert _close(q.value, 2.0 / 3.0)
        assert _close(q.partial(0), 1.0 / 3.0)
        assert _close(q.partial(1), -2.0 / 9.0)

    def test_constants_mix_with_floats(self):
        x = Dual.variable(1.5, 0, 1)
        f = 3.0 * x + 1.0 - x / 2.0
        assert _close(f.value, 4.75)
        assert _close(f.partial(0), 2.5)
        g = 1.0 - x
        assert _close(g.partial(0), -1.0)
        h = 2.0 / x
        assert _close(h.partial(0), -2.0 / (1.5 * 1.5))

    def test_elementary_functions(self):
        x = Dual.variable(0.3, 0, 1)
        assert _close(x.sin().partial(0), math.cos(0.3))
        assert _close(x.cos().partial(0), -math.sin(0.3))
        assert _close(x.tan().partial(0), 1.0 / math.cos(0.3) ** 2)
        assert _close(x.exp().partial(0), math.exp(0.3))
        assert _close(x.log().partial(0), 1.0 / 0.3)
        assert _close(x.sqrt().partial(0), 0.5 / math.sqrt(0.3))
        assert _close(x.asin().partial(0), 1.0 / math.sqrt(1.0 - 0.09))
        assert _close(x.acos().partial(0), -1.0 / math.sqrt(1.0 - 0.09))
        assert _close(x.atan().partial(0), 1.0 / 1.09)
        assert _close((x ** 3).partial(0), 3.0 * 0.09)

    def test_atan2(self):
        y = Dual.variable(1.0, 0, 2)
        x = Dual.variable(1.0, 1, 2)
        a = Dual.atan2(y, x)
        assert _close(a.value, math.pi / 4)
        assert _close(a.partial(0), 0.5)
        assert _close(a.partial(1), -0.5)

    def test_dimension_checks(self):
        with pytest.raises(IllegalArgumentError):
            Dual.variable(1.0, 2, 2)
        with pytest.raises(IllegalArgumentError):
            Dual.variable(1.0, 0, 1) + Dual.variable(1.0, 0, 2)

    def test_comparisons_use_values(self):
        x = Dual.variable(1.0, 0, 1)
        assert x < 2.0
        assert x >= Dual.constant(1.0, 1)
        assert float(x) == 1.0
        assert abs(-x).value == 1.0


class TestFieldVector3D:
    """geometric quantities with derivatives"""

    def test_norm_derivative(self):
        t = Dual.variable(3.0, 0, 1)
        v = FieldVector3D(t, 4.0, 0.0)
        n = v.norm()
        assert _close(n.value, 5.0)
        assert _close(n.partial(0), 3.0 / 5.0)

    def test_dot_and_cross_with_plain_vectors(self):
        t = Dual.variable(2.0, 0, 1)
        v = FieldVector3D(t, t * t, 1.0)
        d = v.dot(Vector3D(1, 1, 1))
        assert _close(d.value, 7.0)
        assert _close(d.partial(0), 1.0 + 2.0 * 2.0)
        c = v.cross(Vector3D.PLUS_K)
        assert c.to_vector3d() == Vector3D(4.0, -2.0, 0.0)
        assert _close(c.x.partial(0), 4.0)
        assert _close(c.y.partial(0), -1.0)

    def test_angle(self):
        theta = Dual.variable(0.4, 0, 1)
        v = FieldVector3D(theta.cos(), theta.sin(), 0.0)
        a = FieldVector3D.angle(Vector3D.PLUS_I, v)
        assert _close(a.value, 0.4)
        assert _close(a.partial(0), 1.0)

    def test_normalize(self):
        t = Dual.variable(2.0, 0, 1)
        u = FieldVector3D(t, 0.0, 0.0).normalize()
        assert _close(u.x.value, 1.0)
        assert _close(u.x.partial(0), 0.0)
        with pytest.raises(GeometryArithmeticError):
            FieldVector3D(Dual.constant(0.0, 1), 0.0, 0.0).normalize()

    def test_construction_checks(self):
        with pytest.raises(IllegalArgumentError):
            FieldVector3D(1.0, 2.0, 3.0)
        with pytest.raises(IllegalArgumentError):
            FieldVector3D(Dual.variable(1.0, 0, 1), Dual.variable(1.0, 0, 2), 0.0)

    def test_conversions(self):
        v = FieldVector3D.from_vector3d(Vector3D(1, 2, 3), 2)
        assert v.count == 2
        assert v.to_vector3d() == Vector3D(1, 2, 3)
        assert str(v) == '{1; 2; 3}'
        w = v - Vector3D(1, 1, 1)
        assert w.to_vector3d() == Vector3D(0, 1, 2)
        assert _close(v.distance(Vector3D(1, 2, 4)).value, 1.0)
