"""Error kinds raised by the triangulation engine.

Every error is recoverable: an operation that raises leaves the
triangulation exactly as it was before the call.
"""
from __future__ import annotations


class TriangulationError(Exception):
    """Base class for all ddelaunay errors."""


class DuplicatePoint(TriangulationError, ValueError):
    """Inserted point has exactly the coordinates of an existing vertex."""

    def __init__(self, coords, vertex_id=None):
        self.coords = tuple(coords)
        self.vertex_id = vertex_id
        super().__init__(f"point {self.coords} duplicates vertex {vertex_id}")


class DegenerateConfiguration(TriangulationError):
    """Affinely dependent or cospherical input without a well-defined local retriangulation."""


class DimensionMismatch(TriangulationError, ValueError):
    """Coordinate count does not match the triangulation dimension."""

    def __init__(self, expected, got):
        self.expected = expected
        self.got = got
        super().__init__(f"expected {expected} coordinates, got {got}")


class UnsupportedRemoval(TriangulationError):
    """Vertex removal would leave a cavity that cannot be refilled consistently."""


class EmptyTriangulation(TriangulationError):
    """Query on a triangulation with fewer than d+1 vertices."""


class UnknownVertex(TriangulationError, KeyError):
    """Vertex identifier is not (or no longer) part of the triangulation."""


__all__ = [
    'TriangulationError', 'DuplicatePoint', 'DegenerateConfiguration',
    'DimensionMismatch', 'UnsupportedRemoval', 'EmptyTriangulation', 'UnknownVertex',
]
