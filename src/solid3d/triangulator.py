"""Triangulation of planar facets.

We delegate to ``mapbox-earcut`` (the ear clipping implementation used by
Mapbox GL).  Facets of a boundary representation may be non convex; they
are cut into triangles before their planes are inserted in a BSP tree.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

try:
    import mapbox_earcut as _earcut
except ImportError as exc:  # pragma: no cover - import guard
    raise ImportError(
        "mapbox-earcut must be installed to triangulate non convex facets"
    ) from exc

from solid3d.settings import GEOMETRY_EPSILON

Point2D = Tuple[float, float]


def triangulate_loop(loop: Sequence[Sequence[float]]) -> List[Tuple[int, int, int]]:
    """Return index triples of triangles covering the 2D polygon ``loop``.

    Indices refer to positions in ``loop``.  Each triangle keeps the winding
    of the loop, so that triangles of a counterclockwise loop are
    counterclockwise too.  A loop with fewer than three points gives no
    triangle.
    """
    points = [(float(p[0]), float(p[1])) for p in loop]
    if len(points) < 3:
        return []
    reverse = _signed_area(points) < 0.0
    order = list(range(len(points)))
    if reverse:
        order.reverse()
    vertices = np.asarray([points[i] for i in order], dtype=np.float64)
    rings = np.asarray([len(order)], dtype=np.uint32)
    indices = _earcut.triangulate_float64(vertices, rings)
    triangles: List[Tuple[int, int, int]] = []
    for i in range(0, len(indices), 3):
        a, b, c = (order[int(k)] for k in indices[i:i + 3])
        tri = (a, b, c)
        if _signed_area([points[k] for k in tri]) * (-1.0 if reverse else 1.0) < 0.0:
            tri = (a, c, b)
        if abs(_signed_area([points[k] for k in tri])) <= GEOMETRY_EPSILON * GEOMETRY_EPSILON:
            continue
        triangles.append(tri)
    return triangles


def _signed_area(loop: Sequence[Point2D]) -> float:
    total = 0.0
    for i, (x0, y0) in enumerate(loop):
        x1, y1 = loop[(i + 1) % len(loop)]
        total += x0 * y1 - x1 * y0
    return total / 2.0
