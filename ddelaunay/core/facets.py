"""Facet -> cell index kept in step with the triangulation.

Every committed plan removes the cells of its cavity from the index and adds
the new ones, so the two cells on either side of a facet are found by a
dict lookup. The commit path uses it to link neighbors; diagnostics use it to
count the cells on each facet and to list facets shared by three or more.
``validate`` compares the live index with one rebuilt from scratch.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Set

from .cell import Cell, FacetKey

__all__ = ['FacetMap']


class FacetMap:
    """Map ``frozenset(facet vertex ids) -> {cell ids}``.

    In a conforming triangulation each facet has one cell (hull) or two
    cells (interior).

    Example:
        >>> fmap = FacetMap(tri.cells())
        >>> fmap.remove_cells(bad_cells)
        >>> fmap.add_cells(new_cells)
        >>> fmap.cells_for_facet(frozenset((0, 3)))
    """

    def __init__(self, cells: Iterable[Cell] = ()):
        self.facet_to_cells: Dict[FacetKey, Set[int]] = {}
        self.add_cells(cells)

    def add_cells(self, cells: Iterable[Cell]) -> None:
        for cell in cells:
            for key in cell.facet_keys():
                self.facet_to_cells.setdefault(key, set()).add(cell.id)

    def remove_cells(self, cells: Iterable[Cell]) -> None:
        for cell in cells:
            for key in cell.facet_keys():
                owners = self.facet_to_cells.get(key)
                if owners is None:
                    continue
                owners.discard(cell.id)
                # Clean up empty facet entries
                if not owners:
                    del self.facet_to_cells[key]

    def cells_for_facet(self, facet: Iterable[int]) -> Set[int]:
        return set(self.facet_to_cells.get(frozenset(facet), ()))

    def count(self, facet: Iterable[int]) -> int:
        return len(self.facet_to_cells.get(frozenset(facet), ()))

    def hull_facets(self) -> List[FacetKey]:
        """Facets with exactly one incident cell."""
        return [key for key, owners in self.facet_to_cells.items() if len(owners) == 1]

    def non_manifold_facets(self) -> List[FacetKey]:
        """Facets with more than two incident cells."""
        return [key for key, owners in self.facet_to_cells.items() if len(owners) > 2]

    def is_conforming(self) -> bool:
        return all(len(owners) <= 2 for owners in self.facet_to_cells.values())

    def facet_count(self) -> int:
        return len(self.facet_to_cells)

    def clear(self) -> None:
        self.facet_to_cells.clear()

    def validate(self, cells: Iterable[Cell]) -> List[str]:
        """Compare the incremental map with a full rebuild from ``cells``.

        Returns a list of mismatch descriptions (empty when consistent).
        """
        fresh = FacetMap(cells)
        problems: List[str] = []
        missing = set(fresh.facet_to_cells) - set(self.facet_to_cells)
        extra = set(self.facet_to_cells) - set(fresh.facet_to_cells)
        for key in sorted(missing, key=sorted):
            problems.append(f"facet {sorted(key)} missing from facet map")
        for key in sorted(extra, key=sorted):
            problems.append(f"facet {sorted(key)} in facet map but not in any cell")
        for key, owners in fresh.facet_to_cells.items():
            if key in self.facet_to_cells and self.facet_to_cells[key] != owners:
                problems.append(
                    f"facet {sorted(key)} owners mismatch: map={sorted(self.facet_to_cells[key])} cells={sorted(owners)}")
        return problems
