# -*- coding: utf-8 -*-
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("solid3d")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

from solid3d.bsp import BSPTree, Location
from solid3d.cones import (EllipticCone, InfiniteEllipticCone, InfiniteRectangleCone,
                           InfiniteRightCircularCone, RightCircularCone)
from solid3d.cylinders import (EllipticCylinder, InfiniteEllipticCylinder,
                               InfiniteRightCircularCylinder, RightCircularCylinder)
from solid3d.dual import Dual
from solid3d.ellipse import Circle, Ellipse
from solid3d.ellipsoid import Ellipsoid, Sphere, Spheroid
from solid3d.errors import (BRepError, BRepErrorKind, ConvergenceError, GeometryArithmeticError,
                            GeometryError, IllegalArgumentError, NotARotationMatrixError,
                            PlyFormatError)
from solid3d.field_rotation import FieldRotation
from solid3d.field_vector import FieldVector3D
from solid3d.frame import LocalFrame
from solid3d.line import Line
from solid3d.plane import Plane
from solid3d.polyhedrons import BRep, BoundaryFacet, PolyhedronsSet
from solid3d.rotation import Rotation, RotationOrder
from solid3d.settings import DEFAULT_SETTINGS, SolverSettings, load_settings
from solid3d.shape import SolidShape
from solid3d.vector import Vector3D
from solid3d.xform import Matrix3D

__all__ = [
    'BRep', 'BRepError', 'BRepErrorKind', 'BSPTree', 'BoundaryFacet', 'Circle',
    'ConvergenceError', 'DEFAULT_SETTINGS', 'Dual', 'Ellipse', 'Ellipsoid', 'EllipticCone',
    'EllipticCylinder', 'FieldRotation', 'FieldVector3D', 'GeometryArithmeticError',
    'GeometryError', 'IllegalArgumentError', 'InfiniteEllipticCone', 'InfiniteEllipticCylinder', 'InfiniteRectangleCone',
    'InfiniteRightCircularCone', 'InfiniteRightCircularCylinder', 'Line', 'LocalFrame',
    'Location', 'Matrix3D', 'NotARotationMatrixError', 'Plane', 'PlyFormatError',
    'PolyhedronsSet', 'RightCircularCone', 'RightCircularCylinder', 'Rotation',
    'RotationOrder', 'SolidShape', 'SolverSettings', 'Sphere', 'Spheroid', 'Vector3D',
    'load_settings',
]
