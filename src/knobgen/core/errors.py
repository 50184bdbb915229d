"""
Exceptions raised by the knob geometry engine.

Bad input is a ``ValueError`` (as everywhere else in the package), so callers
that only care about "invalid parameters" can keep catching ``ValueError``.
"""

from typing import List, Optional


class KnobGeometryError(Exception):
    """Base class for all knob geometry failures."""


class InvalidGeometryParameter(KnobGeometryError, ValueError):
    """A builder received a dimension or segment count that cannot form a solid.

    Attributes:
        messages: Validation messages that triggered the error (may be empty
                  when raised directly by a primitive builder)
    """

    def __init__(self, message: str, messages: Optional[List] = None):
        super().__init__(message)
        self.messages = list(messages) if messages else []


class UnsupportedShaftType(KnobGeometryError, ValueError):
    """A shaft type with no registered cutter reached the shaft factory."""

    def __init__(self, shaft_type):
        super().__init__(f"Unsupported shaft type: {shaft_type!r}")
        self.shaft_type = shaft_type


class DegenerateResult(KnobGeometryError):
    """A boolean operation left an empty or non-watertight mesh.

    Attributes:
        stage: Pipeline step that produced the result (e.g. "shaft")
        open_edges: Number of edges with a single adjacent triangle
        non_manifold_edges: Number of edges shared by more than two triangles
                            or by two triangles with the same winding
    """

    def __init__(
        self,
        message: str,
        stage: str = "",
        open_edges: int = 0,
        non_manifold_edges: int = 0,
    ):
        super().__init__(message)
        self.stage = stage
        self.open_edges = open_edges
        self.non_manifold_edges = non_manifold_edges
