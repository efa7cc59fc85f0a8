"""Exception types raised by solid3d.

Every failure is raised where it is detected.  The exceptions derive from
the matching builtin (``ValueError``, ``ArithmeticError``, ``RuntimeError``)
so callers that only know the builtin still catch them, and each carries a
``details`` dict describing the offending values.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from enum import Enum


class GeometryError(Exception):
    """Base class for all solid3d failures."""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.details = details or {}


class IllegalArgumentError(GeometryError, ValueError):
    """Raised when a constructor or operation receives degenerate input."""


class NotARotationMatrixError(IllegalArgumentError):
    """Raised when a matrix cannot be turned into a rotation."""


class GeometryArithmeticError(GeometryError, ArithmeticError):
    """Raised for operations undefined at the given values (zero norms...)."""


class ConvergenceError(GeometryError, RuntimeError):
    """Raised when an iterative solver exhausts its iteration budget."""

    def __init__(self, message, iterations, threshold, details=None):
        super().__init__(message, details)
        self.iterations = iterations
        self.threshold = threshold


class BRepErrorKind(Enum):
    """Structural defects detected in a boundary representation."""

    CLOSE_VERTICES = "close vertices"
    WRONG_NUMBER_OF_POINTS = "wrong number of points"
    FACET_ORIENTATION_MISMATCH = "facet orientation mismatch"
    EDGE_CONNECTED_TO_ONE_FACET = "edge connected to one facet"
    OUT_OF_PLANE = "point out of plane"
    OPEN_LOOP = "open boundary loop"
    SEVERAL_LOOPS = "facet with several boundary loops"


class BRepError(GeometryError, ValueError):
    """Raised when a boundary representation is malformed."""

    def __init__(self, kind, message=None, details=None):
        super().__init__(message or kind.value, details)
        self.kind = kind


class PlyFormatError(GeometryError, ValueError):
    """Raised when a PLY stream cannot be parsed."""

    def __init__(self, message, line_number=None, details=None):
        if line_number is not None:
            message = f"{message} (line {line_number})"
        super().__init__(message, details)
        self.line_number = line_number


def zero_norm(what='vector'):
    """Build the arithmetic error raised for zero-norm input."""
    return GeometryArithmeticError(f"zero norm {what}", {'what': what})


def not_strictly_positive(name, value):
    """Build the argument error raised for a non-positive scalar."""
    return IllegalArgumentError(f"{name} must be strictly positive, got {value}",
                                {'name': name, 'value': value})
