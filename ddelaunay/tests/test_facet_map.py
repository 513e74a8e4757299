"""Tests for the incrementally maintained FacetMap."""
from ddelaunay.core.cell import Cell
from ddelaunay.core.facets import FacetMap
from ddelaunay.core.triangulation import Triangulation


def _two_triangles():
    return [Cell(0, (0, 1, 2)), Cell(1, (1, 3, 2))]


def test_facet_map_initial_build():
    """Two triangles sharing one edge."""
    fmap = FacetMap(_two_triangles())
    assert fmap.facet_count() == 5
    assert fmap.cells_for_facet((1, 2)) == {0, 1}
    assert fmap.count((2, 1)) == 2
    assert len(fmap.hull_facets()) == 4
    assert fmap.is_conforming()
    assert fmap.validate(_two_triangles()) == []


def test_facet_map_remove_and_add():
    cells = _two_triangles()
    fmap = FacetMap(cells)
    fmap.remove_cells([cells[1]])
    assert fmap.cells_for_facet((1, 2)) == {0}
    assert fmap.count((1, 3)) == 0
    assert fmap.facet_count() == 3
    assert fmap.validate([cells[0]]) == []

    fmap.add_cells([cells[1]])
    assert fmap.validate(cells) == []


def test_facet_map_detects_non_manifold_and_drift():
    cells = _two_triangles() + [Cell(2, (1, 2, 4))]
    fmap = FacetMap(cells)
    assert fmap.non_manifold_facets() == [frozenset({1, 2})]
    assert not fmap.is_conforming()
    # map no longer matches the cells it claims to index
    problems = fmap.validate(cells[:2])
    assert problems
    fmap.clear()
    assert fmap.facet_count() == 0


def test_facet_map_tracks_triangulation():
    """The map maintained by insertions equals a full rebuild."""
    tri = Triangulation(2, [(0, 0), (4, 0), (0, 4), (1, 1), (3, 2), (2, 3), (0.5, 2)])
    fmap = tri._facets
    assert fmap.validate(tri.cells()) == []
    assert fmap.is_conforming()
    assert len(fmap.hull_facets()) == len(tri.hull_facets())
