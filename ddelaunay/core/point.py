"""Immutable d-dimensional points and triangulation vertices."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Tuple

import numpy as np

from .errors import DimensionMismatch

__all__ = ['Point', 'Vertex', 'as_point']


class Point:
    """Ordered tuple of d float coordinates.

    Equality and hashing are exact (coordinate-wise, no tolerance), so a
    Point can key the duplicate index of a triangulation.
    """
    __slots__ = ('_coords',)

    def __init__(self, coords: Iterable[float]):
        values = tuple(float(c) for c in coords)
        if not values:
            raise ValueError("a point needs at least one coordinate")
        if not all(math.isfinite(c) for c in values):
            raise ValueError(f"non-finite coordinate in {values}")
        object.__setattr__(self, '_coords', values)

    def __setattr__(self, name, value):
        raise AttributeError("Point is immutable")

    @property
    def coords(self) -> Tuple[float, ...]:
        return self._coords

    @property
    def dim(self) -> int:
        return len(self._coords)

    def __len__(self) -> int:
        return len(self._coords)

    def __iter__(self) -> Iterator[float]:
        return iter(self._coords)

    def __getitem__(self, i):
        return self._coords[i]

    def __eq__(self, other) -> bool:
        if isinstance(other, Point):
            return self._coords == other._coords
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._coords)

    def __repr__(self) -> str:
        return f"Point({list(self._coords)})"

    def _check(self, other: 'Point') -> None:
        if len(other) != len(self):
            raise DimensionMismatch(len(self), len(other))

    def __sub__(self, other: 'Point') -> 'Point':
        self._check(other)
        return Point(a - b for a, b in zip(self._coords, other._coords))

    def __add__(self, other: 'Point') -> 'Point':
        self._check(other)
        return Point(a + b for a, b in zip(self._coords, other._coords))

    def dot(self, other: 'Point') -> float:
        self._check(other)
        return math.fsum(a * b for a, b in zip(self._coords, other._coords))

    def norm2(self) -> float:
        return self.dot(self)

    def as_array(self) -> np.ndarray:
        return np.array(self._coords, dtype=np.float64)


def as_point(value) -> Point:
    """Coerce a Point, a Vertex, or any coordinate sequence to a Point."""
    if isinstance(value, Point):
        return value
    if isinstance(value, Vertex):
        return value.point
    return Point(np.asarray(value, dtype=np.float64).ravel().tolist())


@dataclass(frozen=True)
class Vertex:
    """A point owned by a triangulation under a stable identifier.

    ``data`` is an opaque payload slot; the engine never inspects it.
    """
    id: int
    point: Point
    data: Any = field(default=None, compare=False)

    @property
    def coords(self) -> Tuple[float, ...]:
        return self.point.coords

    @property
    def dim(self) -> int:
        return self.point.dim
