"""Invariant checks for a Triangulation.

Functions take a Triangulation-like object and return lists of human
readable violation messages; an empty list means the invariant holds. They
scan the whole mesh and are meant for tests and debugging, not for the
insertion hot path.
"""
from __future__ import annotations

from typing import List

import numpy as np

from .logging_utils import get_logger
from .predicates import Orientation, Sphere, in_circumsphere_many, simplex_volume

logger = get_logger('ddelaunay.diagnostics')

__all__ = [
    'check_orientation', 'check_adjacency', 'check_facet_map', 'check_incidence',
    'check_delaunay', 'validate_triangulation', 'triangulation_volume', 'convex_hull_volume',
]


def check_orientation(tri) -> List[str]:
    problems = []
    for cell in tri.cells():
        o = tri._orient(tri.cell_points(cell.id))
        if o is not Orientation.POSITIVE:
            problems.append(f"cell {cell.id} {cell.vertices} has orientation {o.name}")
    return problems


def check_adjacency(tri) -> List[str]:
    """Neighbor slots are symmetric and agree with shared facets."""
    problems = []
    for cell in tri.cells():
        if len(cell.vertices) != tri.dim + 1:
            problems.append(f"cell {cell.id} has {len(cell.vertices)} vertices in dimension {tri.dim}")
            continue
        for i, nb in enumerate(cell.neighbors):
            key = cell.facet_key(i)
            if nb is None:
                n = tri._facets.count(key)
                if n != 1:
                    problems.append(f"cell {cell.id} facet {sorted(key)} marked hull but shared by {n} cells")
                continue
            if nb not in tri._cells:
                problems.append(f"cell {cell.id} facet {i} points to dead cell {nb}")
                continue
            other = tri._cells[nb]
            if not key <= set(other.vertices) or other.id == cell.id:
                problems.append(f"cell {cell.id} facet {sorted(key)} not shared with neighbor {nb}")
                continue
            j = cell.mirror_index(other)
            if other.neighbors[j] != cell.id:
                problems.append(f"cell {nb} facet {j} does not point back to cell {cell.id}")
    return problems


def check_facet_map(tri) -> List[str]:
    problems = tri._facets.validate(tri.cells())
    for key in tri._facets.non_manifold_facets():
        problems.append(f"facet {sorted(key)} shared by more than two cells")
    return problems


def check_incidence(tri) -> List[str]:
    problems = []
    has_cells = bool(tri._cells)
    for v in tri._vertices:
        cid = tri._incident.get(v)
        if cid is None:
            if has_cells:
                problems.append(f"vertex {v} has no incident cell")
            continue
        if cid not in tri._cells:
            problems.append(f"vertex {v} incident cell {cid} is dead")
        elif v not in tri._cells[cid].vertices:
            problems.append(f"vertex {v} incident cell {cid} does not contain it")
    for v in tri._incident:
        if v not in tri._vertices:
            problems.append(f"incidence entry for removed vertex {v}")
    if not has_cells and len(tri._vertices) > tri.dim:
        problems.append(f"{len(tri._vertices)} vertices but no cells")
    return problems


def check_delaunay(tri) -> List[str]:
    """No vertex lies strictly inside the circumsphere of a cell it does not belong to."""
    problems = []
    ids = list(tri._vertices)
    if not ids or not tri._cells:
        return problems
    coords = np.array([tri._vertices[v].coords for v in ids], dtype=np.float64)
    for cell in tri.cells():
        own = set(cell.vertices)
        mask = np.array([v not in own for v in ids], dtype=bool)
        if not mask.any():
            continue
        others = [v for v, m in zip(ids, mask) if m]
        results = in_circumsphere_many(tri.cell_points(cell.id), coords[mask],
                                       tri.config.insphere_eps, tri.config.orientation_eps)
        for v, res in zip(others, results):
            if res is Sphere.INSIDE:
                problems.append(f"vertex {v} lies inside the circumsphere of cell {cell.id} {cell.vertices}")
    return problems


def validate_triangulation(tri) -> List[str]:
    problems = (check_orientation(tri) + check_adjacency(tri) + check_facet_map(tri)
                + check_incidence(tri))
    # circumsphere tests need non-degenerate cells
    if not problems:
        problems += check_delaunay(tri)
    if problems:
        logger.debug("validation found %d problems", len(problems))
    return problems


def triangulation_volume(tri) -> float:
    return float(sum(simplex_volume(tri.cell_points(c.id)) for c in tri.cells()))


def convex_hull_volume(points) -> float:
    """Volume of the convex hull of ``points`` (scipy Qhull for d >= 2)."""
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[0] == 0:
        return 0.0
    if pts.shape[1] == 1:
        return float(pts.max() - pts.min())
    from scipy.spatial import ConvexHull
    return float(ConvexHull(pts).volume)
