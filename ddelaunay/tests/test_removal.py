import numpy as np
import pytest
from scipy.spatial import Delaunay

from ddelaunay import Triangulation, UnknownVertex, UnsupportedRemoval
from ddelaunay.core.diagnostics import convex_hull_volume
from ddelaunay.core.removal import independent_first_order


def _cell_coords(tri):
    return {frozenset(tri.point_of(v).coords for v in c.vertices) for c in tri.cells()}


def _scipy_cells(points):
    dt = Delaunay(points)
    return {frozenset(tuple(float(x) for x in points[i]) for i in simplex) for simplex in dt.simplices}


def test_remove_center_of_square():
    tri = Triangulation(2, [(0, 0), (1, 0), (0, 1), (1, 1), (0.5, 0.5)])
    assert tri.number_of_cells() == 4
    tri.remove(4)
    assert tri.number_of_vertices() == 4
    assert tri.number_of_cells() == 2
    assert tri.validate() == []
    assert tri.volume() == pytest.approx(1.0)
    assert tri.find_vertex((0.5, 0.5)) is None


def test_remove_hull_vertex_shrinks_hull():
    tri = Triangulation(2, [(0, 0), (2, 0), (0, 2), (2, 2), (1, 0.9)])
    tri.remove(3)
    assert tri.validate() == []
    assert tri.number_of_cells() == 3
    assert tri.volume() == pytest.approx(2.0)


@pytest.mark.parametrize('dim, n, n_remove', [(1, 20, 8), (2, 50, 20), (3, 30, 10), (4, 18, 4)])
def test_random_removals_keep_delaunay(dim, n, n_remove):
    rng = np.random.default_rng(dim)
    pts = rng.random((n, dim))
    tri = Triangulation(dim, pts)
    alive = list(range(n))
    for vid in rng.choice(n, size=n_remove, replace=False):
        tri.remove(int(vid))
        alive.remove(int(vid))
        assert tri.validate() == []
        remaining = pts[alive]
        assert tri.volume() == pytest.approx(convex_hull_volume(remaining), rel=1e-9)
    if dim >= 2:
        assert _cell_coords(tri) == _scipy_cells(pts[alive])


def test_remove_then_insert_again():
    rng = np.random.default_rng(9)
    pts = rng.random((25, 3))
    tri = Triangulation(3, pts)
    reference = _cell_coords(tri)
    tri.remove(10)
    new_id = tri.insert(pts[10])
    # ids are never reused
    assert new_id == 25
    assert tri.validate() == []
    assert _cell_coords(tri) == reference


def test_remove_down_to_fewer_than_d_plus_one_vertices():
    tri = Triangulation(2, [(0, 0), (1, 0), (0, 1)])
    tri.remove(1)
    assert tri.number_of_vertices() == 2
    assert tri.number_of_cells() == 0
    assert tri.validate() == []
    tri.insert((1, 1))
    assert tri.number_of_cells() == 1
    assert tri.validate() == []
    tri.remove(0)
    tri.remove(2)
    tri.remove(3)
    assert len(tri) == 0
    assert tri.dim_current() == -1


def test_remove_unknown_vertex():
    tri = Triangulation(2, [(0, 0), (1, 0), (0, 1)])
    with pytest.raises(UnknownVertex):
        tri.remove(7)
    tri.remove(0)
    with pytest.raises(KeyError):
        tri.remove(0)
    assert tri.stats['remove'].fail == 2


def test_removal_that_would_flatten_is_refused():
    tri = Triangulation(2, [(0, 0), (2, 0), (1, 1), (1, 0)])
    assert tri.number_of_cells() == 2
    before = tri.snapshot()
    with pytest.raises(UnsupportedRemoval):
        tri.remove(2)
    assert tri.snapshot() == before
    assert tri.validate() == []


def test_independent_first_order():
    pts = [(0, 0), (1, 1), (2, 2), (3, 3), (0, 1), (5, 5)]
    order = independent_first_order(pts, 2, 1e-12)
    assert order[:3] == [0, 1, 4]
    assert sorted(order) == list(range(len(pts)))
    # no independent triple: original order
    line = [(0, 0), (1, 1), (2, 2)]
    assert independent_first_order(line, 2, 1e-12) == [0, 1, 2]
