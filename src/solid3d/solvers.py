"""Numerical kernels shared by the shapes.

* :func:`solve_quadratic` gives the parameters where a line crosses a
  quadric surface.
* :func:`newton_stationary` finds the parameters of the surface point
  closest to a given point.
* :func:`minimize_along_line` finds the line point closest to a convex
  solid, given the projection onto that solid.
* :func:`bisect_increasing` brackets the sign change of a monotonic
  function, for the one dimensional searches above and in the cones.

The iterative solvers take their threshold and iteration budget from a
:class:`~solid3d.settings.SolverSettings` value and raise
:class:`~solid3d.errors.ConvergenceError` when the budget runs out.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional, Sequence, Tuple

import mpmath as mpm
import numpy as np

from solid3d.errors import ConvergenceError
from solid3d.line import Line
from solid3d.settings import DEFAULT_SETTINGS, DOUBLE_COMPARISON_EPSILON, SolverSettings
from solid3d.vector import Vector3D

logger = logging.getLogger(__name__)

# relative size under which a polynomial coefficient is treated as zero
_COEFFICIENT_EPSILON = 1.0e-14


def _discriminant(a: float, b: float, c: float) -> float:
    with mpm.workprec(160):
        return float(mpm.mpf(b) * b - 4 * mpm.mpf(a) * c)


def solve_quadratic(a: float, b: float, c: float, tolerance: float = 0.0) -> Tuple[float, ...]:
    """Real roots of ``a t^2 + b t + c``.

    Two roots come as ``((-b + sqrt(d)) / 2a, (-b - sqrt(d)) / 2a)``; a
    discriminant that vanishes within rounding gives a single root.  When
    ``a`` vanishes the linear root is returned, and an empty tuple when
    ``b`` vanishes too.

    ``tolerance`` bounds the extremum ``c - b^2 / 4a`` of the polynomial.
    For a normalized implicit surface function that extremum is the
    function value where the line comes closest to the surface, and a line
    within ``tolerance`` of it is tangent: the single root ``-b / 2a`` is
    returned whatever the sign of the discriminant.
    """
    scale = max(abs(a), abs(b), abs(c))
    if scale == 0.0:
        return ()
    if abs(a) <= _COEFFICIENT_EPSILON * scale:
        if abs(b) <= _COEFFICIENT_EPSILON * scale:
            return ()
        return (-c / b,)
    d = _discriminant(a, b, c)
    if abs(d) <= 4.0 * abs(a) * tolerance \
            or abs(d) <= DOUBLE_COMPARISON_EPSILON * max(b * b, abs(4.0 * a * c)):
        return (-b / (2.0 * a),)
    if d < 0.0:
        return ()
    root = math.sqrt(d)
    return ((-b + root) / (2.0 * a), (-b - root) / (2.0 * a))


SurfaceFunction = Callable[[Sequence[float]],
                           Tuple[Vector3D, Sequence[Vector3D], Sequence[Sequence[Vector3D]]]]


def newton_stationary(surface: SurfaceFunction, start: Sequence[float], point: Vector3D,
                      settings: SolverSettings = DEFAULT_SETTINGS,
                      step_limits: Optional[Sequence[float]] = None) -> Tuple[float, ...]:
    """Parameters of a stationary point of the squared distance ``|S(params) - point|^2``.

    ``surface(params)`` returns the surface point, its first derivatives
    (one vector per parameter) and its second derivatives (a symmetric
    table of vectors).  The Newton step is solved with numpy and each of its
    components is clamped to ``step_limits`` when given.  Iteration stops
    when every step component is below the Newton threshold, relative to
    the parameter magnitude when that exceeds one.
    """
    params = np.array(start, dtype=float)
    n = len(params)
    last_step = math.inf
    for iteration in range(1, settings.max_iterations + 1):
        s, ds, d2s = surface(params)
        r = s - point
        gradient = np.array([r.dot(ds[i]) for i in range(n)])
        hessian = np.empty((n, n))
        for i in range(n):
            for j in range(i, n):
                hessian[i, j] = ds[i].dot(ds[j]) + r.dot(d2s[i][j])
                hessian[j, i] = hessian[i, j]
        try:
            step = -np.linalg.solve(hessian, gradient)
        except np.linalg.LinAlgError:
            step = -np.linalg.lstsq(hessian, gradient, rcond=None)[0]
        if step_limits is not None:
            limits = np.asarray(step_limits, dtype=float)
            step = np.clip(step, -limits, limits)
        params = params + step
        tolerance = settings.newton_threshold * np.maximum(1.0, np.abs(params))
        last_step = float(np.max(np.abs(step)))
        if np.all(np.abs(step) <= tolerance):
            logger.debug('newton iteration converged in %d iterations', iteration)
            return tuple(float(p) for p in params)

    logger.debug('newton iteration stopped after %d iterations, last step %g',
                 settings.max_iterations, last_step)
    raise ConvergenceError(
        f"closest point search did not converge in {settings.max_iterations} iterations",
        settings.max_iterations, settings.newton_threshold, {'last_step': last_step})


def minimize_along_line(line: Line, closest: Callable[[Vector3D], Vector3D],
                        settings: SolverSettings = DEFAULT_SETTINGS,
                        start: Optional[float] = None,
                        scale: float = 1.0) -> Tuple[Vector3D, Vector3D]:
    """Point of ``line`` closest to a convex solid, and its projection.

    ``closest(p)`` must return the point of the solid closest to ``p``.  The
    squared distance along a line to a convex solid is convex, so its
    derivative ``d . (P(t) - closest(P(t)))`` is nondecreasing and its zero
    is bracketed then bisected.  ``start`` is the abscissa where the bracket
    search begins and ``scale`` its first half width.

    Returns ``(point_on_line, point_on_solid)``.
    """
    direction = line.direction

    def slope(t):
        p = line.point_at(t)
        return direction.dot(p - closest(p))

    lower_bound = line.min_abscissa
    if start is None:
        start = 0.0
    start = max(start, lower_bound)
    width = max(scale, 1.0)
    iterations = 0

    if math.isinf(lower_bound):
        lo = start - width
        while slope(lo) > 0.0:
            iterations += 1
            if iterations > settings.max_iterations:
                raise _unbounded(settings)
            width *= 2.0
            lo = start - width
    else:
        lo = lower_bound
        if slope(lo) >= 0.0:
            p = line.point_at(lo)
            return p, closest(p)

    width = max(scale, 1.0)
    hi = start + width
    while slope(hi) < 0.0:
        iterations += 1
        if iterations > settings.max_iterations:
            raise _unbounded(settings)
        width *= 2.0
        hi = start + width

    p = line.point_at(bisect_increasing(slope, lo, hi, settings))
    return p, closest(p)


def bisect_increasing(fn: Callable[[float], float], lo: float, hi: float,
                      settings: SolverSettings = DEFAULT_SETTINGS) -> float:
    """Abscissa in ``[lo, hi]`` where ``fn`` goes from negative to nonnegative.

    Bisection stops when the bracket is narrower than the Newton threshold,
    relative to the bracket bounds when they exceed one.  When ``fn`` keeps
    one sign over the interval the matching bound is returned.
    """
    for iteration in range(1, settings.max_iterations + 1):
        mid = 0.5 * (lo + hi)
        if fn(mid) < 0.0:
            lo = mid
        else:
            hi = mid
        if hi - lo <= settings.newton_threshold * max(1.0, abs(lo), abs(hi)):
            logger.debug('bisection converged in %d iterations', iteration)
            return 0.5 * (lo + hi)

    logger.debug('bisection stopped after %d iterations, bracket width %g',
                 settings.max_iterations, hi - lo)
    raise ConvergenceError(
        f"bisection did not converge in {settings.max_iterations} iterations",
        settings.max_iterations, settings.newton_threshold, {'bracket': (lo, hi)})


def _unbounded(settings):
    return ConvergenceError('no minimum found along the line, the distance keeps decreasing',
                            settings.max_iterations, settings.newton_threshold)
