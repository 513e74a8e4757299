import numpy as np
import pytest

from ddelaunay.core.cell import Cell, permutation_parity
from ddelaunay.core.errors import DimensionMismatch
from ddelaunay.core.point import Point, Vertex, as_point


def test_point_is_immutable_and_exact():
    p = Point([1, 2.5])
    assert p.coords == (1.0, 2.5)
    assert p.dim == 2 and len(p) == 2
    assert p == Point((1.0, 2.5))
    assert hash(p) == hash(Point(np.array([1.0, 2.5])))
    assert p != Point((1.0, 2.5 + 1e-15))
    with pytest.raises(AttributeError):
        p.x = 3


def test_point_rejects_bad_coordinates():
    with pytest.raises(ValueError):
        Point([])
    with pytest.raises(ValueError):
        Point([0.0, float('nan')])
    with pytest.raises(ValueError):
        Point([float('inf')])


def test_point_arithmetic():
    a, b = Point((1, 2, 3)), Point((0, 1, 1))
    assert (a - b).coords == (1.0, 1.0, 2.0)
    assert (a + b).coords == (1.0, 3.0, 4.0)
    assert a.dot(b) == 5.0
    assert b.norm2() == 2.0
    assert np.array_equal(a.as_array(), [1.0, 2.0, 3.0])
    with pytest.raises(DimensionMismatch):
        a - Point((0, 0))


def test_as_point_and_vertex():
    p = Point((0, 1))
    v = Vertex(4, p, data={'tag': 'x'})
    assert as_point(p) is p
    assert as_point(v) is p
    assert as_point([0, 1]) == p
    assert v.coords == (0.0, 1.0) and v.dim == 2
    # payload does not take part in equality
    assert v == Vertex(4, p, data=None)


def test_permutation_parity():
    assert permutation_parity((0, 1, 2)) == 1
    assert permutation_parity((1, 0, 2)) == -1
    assert permutation_parity((2, 0, 1)) == 1
    assert permutation_parity((3, 2, 1, 0)) == 1


def test_canonical_order():
    assert Cell.canonical_order((2, 0, 1), 1) == (0, 1, 2)
    assert Cell.canonical_order((1, 0, 2), 1) == (0, 2, 1)
    assert Cell.canonical_order((1, 0, 2), -1) == (0, 1, 2)
    assert Cell.canonical_order((5, 3), -1) == (3, 5)
    with pytest.raises(ValueError):
        Cell.canonical_order((0, 1, 2), 0)


def test_cell_facets_and_neighbors():
    c = Cell(7, (0, 1, 2))
    assert c.dim == 2
    assert list(c.facets()) == [(1, 2), (0, 2), (0, 1)]
    assert c.facet_key(1) == frozenset({0, 2})
    assert c.hull_facets() == [0, 1, 2]
    c.set_neighbor(0, 9)
    assert c.neighbor(0) == 9
    assert c.hull_facets() == [1, 2]
    assert c.index_of(2) == 2
    assert c.contains(1) and not c.contains(5)
    with pytest.raises(KeyError):
        c.index_of(5)
    assert c.replaced(1, 8) == (0, 8, 2)


def test_cell_rejects_malformed_input():
    with pytest.raises(ValueError):
        Cell(0, (1,))
    with pytest.raises(ValueError):
        Cell(0, (1, 1, 2))
    with pytest.raises(ValueError):
        Cell(0, (0, 1, 2), neighbors=[None, None])


def test_mirror_index_and_shared_facet():
    a = Cell(0, (0, 1, 2))
    b = Cell(1, (1, 3, 2))
    far = Cell(2, (4, 5, 0))
    assert a.shares_facet_with(b)
    assert not a.shares_facet_with(far)
    # facet {1, 2} is opposite vertex 3 in b and vertex 0 in a
    assert a.mirror_index(b) == 1
    assert b.mirror_index(a) == 0
    with pytest.raises(ValueError):
        a.mirror_index(far)


def test_cell_is_valid():
    points = {0: (0, 0), 1: (1, 0), 2: (0, 1), 3: (2, 0)}
    assert Cell(0, (0, 1, 2)).is_valid(points)
    assert not Cell(1, (0, 1, 3)).is_valid(points)
