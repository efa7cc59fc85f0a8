"""Tolerances and iterative solver settings for solid3d.

Numerical thresholds are module level constants.  The parameters of the
iterative closest point solvers live in an immutable :class:`SolverSettings`
value which is handed to shape constructors (or to an individual solver call)
instead of being mutated on the shapes themselves.

Settings can be kept in a YAML file::

    newton_threshold: 1.0e-11
    max_iterations: 100

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping

import yaml

from solid3d.errors import IllegalArgumentError

GEOMETRY_EPSILON = 1.0e-10
"""Threshold for degenerate vectors, containment and parallelism tests."""

DOUBLE_COMPARISON_EPSILON = 1.0e-14
"""Threshold for comparisons of values that should be exactly equal."""

NEWTON_THRESHOLD = 1.0e-11
"""Default convergence threshold on Newton steps."""

MAX_ITERATIONS = 100
"""Default iteration budget of the iterative solvers."""


@dataclass(frozen=True)
class SolverSettings:
    """Parameters of the iterative solvers.

    Parameters
    ----------
    newton_threshold : float
        Iteration stops once every parameter step is below this value.
    max_iterations : int
        Number of iterations after which a
        :class:`~solid3d.errors.ConvergenceError` is raised.
    """

    newton_threshold: float = NEWTON_THRESHOLD
    max_iterations: int = MAX_ITERATIONS

    def __post_init__(self):
        if not self.newton_threshold > 0.0:
            raise IllegalArgumentError(
                f"newton_threshold must be strictly positive, got {self.newton_threshold}",
                {'newton_threshold': self.newton_threshold})
        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, int) \
                or self.max_iterations < 1:
            raise IllegalArgumentError(
                f"max_iterations must be a positive integer, got {self.max_iterations}",
                {'max_iterations': self.max_iterations})

    def with_threshold(self, threshold: float) -> "SolverSettings":
        """Return a copy using ``threshold`` as Newton threshold."""
        return replace(self, newton_threshold=float(threshold))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SolverSettings":
        """Build settings from a mapping, rejecting unknown keys."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise IllegalArgumentError('solver settings must be a mapping',
                                       {'type': type(data).__name__})
        known = {'newton_threshold', 'max_iterations'}
        unknown = sorted(set(data) - known)
        if unknown:
            raise IllegalArgumentError(f"unknown solver settings: {', '.join(unknown)}",
                                       {'unknown': unknown})
        kwargs = {}
        if 'newton_threshold' in data:
            kwargs['newton_threshold'] = float(data['newton_threshold'])
        if 'max_iterations' in data:
            kwargs['max_iterations'] = data['max_iterations']
        return cls(**kwargs)


DEFAULT_SETTINGS = SolverSettings()


def load_settings(path_or_file) -> SolverSettings:
    """Read :class:`SolverSettings` from a YAML file path or open stream."""

    if hasattr(path_or_file, 'read'):
        data = yaml.safe_load(path_or_file)
    else:
        with open(path_or_file, 'r', encoding='utf-8') as stream:
            data = yaml.safe_load(stream)
    return SolverSettings.from_mapping(data)
