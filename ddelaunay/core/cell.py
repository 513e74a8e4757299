"""Simplicial cells with per-facet neighbor slots.

A cell of a d-dimensional triangulation holds d+1 vertex identifiers. Facet
``i`` is the cell with ``vertices[i]`` omitted and ``neighbors[i]`` is the
identifier of the cell across that facet, or ``None`` on the convex hull.
Neighbors are identifiers resolved through the owning Triangulation, never
object references.
"""
from __future__ import annotations

from typing import Any, FrozenSet, Iterator, List, Optional, Sequence, Tuple

from .predicates import Orientation, orientation, permutation_parity
from .constants import EPS_ORIENT

__all__ = ['Cell', 'FacetKey', 'permutation_parity']

FacetKey = FrozenSet[int]


class Cell:
    __slots__ = ('id', 'vertices', 'neighbors', 'data')

    def __init__(self, id: int, vertices: Sequence[int],
                 neighbors: Optional[Sequence[Optional[int]]] = None, data: Any = None):
        verts = tuple(int(v) for v in vertices)
        if len(verts) < 2:
            raise ValueError(f"a cell needs at least 2 vertices, got {len(verts)}")
        if len(set(verts)) != len(verts):
            raise ValueError(f"duplicate vertex ids in cell {verts}")
        if neighbors is None:
            nbrs: List[Optional[int]] = [None] * len(verts)
        else:
            nbrs = list(neighbors)
            if len(nbrs) != len(verts):
                raise ValueError(f"cell with {len(verts)} vertices needs {len(verts)} neighbor slots")
        self.id = int(id)
        self.vertices: Tuple[int, ...] = verts
        self.neighbors: List[Optional[int]] = nbrs
        self.data = data

    @staticmethod
    def canonical_order(vertex_ids: Sequence[int], sign: int) -> Tuple[int, ...]:
        """Stored ordering of ``vertex_ids`` given the orientation sign of that ordering.

        Ids are sorted ascending; when the sorted tuple would be negatively
        oriented its last two entries are swapped. Parity of the sorting
        permutation is used instead of re-evaluating the predicate.
        """
        if sign == 0:
            raise ValueError("degenerate simplex has no canonical orientation")
        ordered = sorted(vertex_ids)
        if sign * permutation_parity(vertex_ids) < 0:
            ordered[-1], ordered[-2] = ordered[-2], ordered[-1]
        return tuple(ordered)

    @property
    def dim(self) -> int:
        return len(self.vertices) - 1

    def __len__(self) -> int:
        return len(self.vertices)

    def __iter__(self) -> Iterator[int]:
        return iter(self.vertices)

    def __repr__(self) -> str:
        return f"Cell(id={self.id}, vertices={self.vertices}, neighbors={self.neighbors})"

    def contains(self, vertex_id: int) -> bool:
        return vertex_id in self.vertices

    def index_of(self, vertex_id: int) -> int:
        try:
            return self.vertices.index(vertex_id)
        except ValueError:
            raise KeyError(f"vertex {vertex_id} not in cell {self.id}") from None

    def facet(self, i: int) -> Tuple[int, ...]:
        return self.vertices[:i] + self.vertices[i + 1:]

    def facets(self) -> Iterator[Tuple[int, ...]]:
        for i in range(len(self.vertices)):
            yield self.facet(i)

    def facet_key(self, i: int) -> FacetKey:
        return frozenset(self.facet(i))

    def facet_keys(self) -> List[FacetKey]:
        return [self.facet_key(i) for i in range(len(self.vertices))]

    def neighbor(self, i: int) -> Optional[int]:
        return self.neighbors[i]

    def set_neighbor(self, i: int, cell_id: Optional[int]) -> None:
        """Update the local slot only; symmetry is the owner's responsibility."""
        self.neighbors[i] = cell_id

    def hull_facets(self) -> List[int]:
        return [i for i, n in enumerate(self.neighbors) if n is None]

    def shares_facet_with(self, other: 'Cell') -> bool:
        return len(set(self.vertices) & set(other.vertices)) == len(self.vertices) - 1

    def mirror_index(self, other: 'Cell') -> int:
        """Index in ``other`` of the facet shared with this cell."""
        mine = set(self.vertices)
        missing = [i for i, v in enumerate(other.vertices) if v not in mine]
        if len(missing) != 1:
            raise ValueError(f"cells {self.id} and {other.id} do not share a facet")
        return missing[0]

    def replaced(self, i: int, vertex_id: int) -> Tuple[int, ...]:
        """Vertex tuple with ``vertices[i]`` replaced, orientation kept."""
        return self.vertices[:i] + (vertex_id,) + self.vertices[i + 1:]

    def is_valid(self, points, eps: float = EPS_ORIENT) -> bool:
        """True if the cell spans a non-degenerate simplex.

        ``points`` maps vertex ids to coordinates (dict or sequence).
        """
        return orientation([points[v] for v in self.vertices], eps) is not Orientation.DEGENERATE
