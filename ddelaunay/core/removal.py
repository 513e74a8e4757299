"""Vertex removal as the structural inverse of insertion.

The star of the vertex (all incident cells) is the cavity. Its link vertices
are triangulated by a local Delaunay Triangulation, and the local cells whose
centroid lies in the star fill the cavity. For points in general position the
cells of the new Delaunay triangulation that differ from the old one are
exactly these cells, both for interior and for hull vertices.

When the local triangulation does not fit the cavity (cospherical links whose
local Delaunay choice disagrees with the surrounding facets, flat links,
orphaned vertices) the removal raises UnsupportedRemoval and nothing changes.
"""
from __future__ import annotations

from typing import Dict, List, Sequence, Set, Tuple

import numpy as np

from .bowyer_watson import MutationPlan, check_facet_counts
from .cell import Cell
from .errors import DegenerateConfiguration, UnsupportedRemoval
from .logging_utils import get_logger
from .predicates import Orientation, is_affinely_independent, simplex_volume

logger = get_logger('ddelaunay.removal')

__all__ = ['plan_removal', 'independent_first_order']


def independent_first_order(points: Sequence, dim: int, eps: float) -> List[int]:
    """Indices of ``points`` reordered so the first dim+1 are affinely independent.

    Returns the original order when no such subset exists.
    """
    chosen: List[int] = []
    for k in range(len(points)):
        trial = [points[i] for i in chosen] + [points[k]]
        if is_affinely_independent(trial, eps):
            chosen.append(k)
            if len(chosen) == dim + 1:
                break
    if len(chosen) < dim + 1:
        return list(range(len(points)))
    picked = set(chosen)
    return chosen + [k for k in range(len(points)) if k not in picked]


def _local_cells(tri, link: List[int]) -> List[Tuple[int, ...]]:
    """Delaunay cells (global vertex ids, positively oriented) of the link vertices."""
    from .triangulation import Triangulation

    pts = [tri.point_of(v) for v in link]
    order = independent_first_order(pts, tri.dim, tri.config.orientation_eps)
    if not is_affinely_independent([pts[k] for k in order[:tri.dim + 1]], tri.config.orientation_eps):
        return []
    local = Triangulation(tri.dim, config=tri.config.copy(validate_after_mutation=False))
    to_global: Dict[int, int] = {}
    try:
        for k in order:
            to_global[local.insert(pts[k])] = link[k]
    except DegenerateConfiguration as exc:
        raise UnsupportedRemoval(f"link of the removed vertex cannot be triangulated: {exc}") from exc
    return [tuple(to_global[v] for v in cell.vertices) for cell in local.cells()]


def _in_closed_cell(tri, cell: Cell, q) -> bool:
    pts = tri.cell_points(cell.id)
    return all(tri._orient(pts[:i] + [q] + pts[i + 1:]) is not Orientation.NEGATIVE
               for i in range(len(pts)))


def plan_removal(tri, vertex_id: int) -> MutationPlan:
    d = tri.dim
    if not tri._cells:
        return MutationPlan(dropped_vertex=vertex_id)
    if len(tri._vertices) - 1 < d + 1:
        # not enough vertices left to span a cell
        return MutationPlan(removed=sorted(tri._cells), dropped_vertex=vertex_id)

    star_ids = tri.incident_cells(vertex_id)
    star: Set[int] = set(star_ids)
    star_cells = [tri._cells[c] for c in star_ids]
    link_facets: Dict[frozenset, Tuple[Cell, int]] = {}
    on_hull = False
    outer: Set[int] = set()
    for cell in star_cells:
        k = cell.index_of(vertex_id)
        link_facets[cell.facet_key(k)] = (cell, k)
        if cell.neighbors[k] is not None:
            outer.add(cell.neighbors[k])
        if any(nb is None for i, nb in enumerate(cell.neighbors) if i != k):
            on_hull = True
    link = sorted({v for cell in star_cells for v in cell.vertices if v != vertex_id})

    kept: List[Tuple[int, ...]] = []
    for verts in _local_cells(tri, link):
        centroid = np.mean([tri.point_of(v).as_array() for v in verts], axis=0)
        if any(_in_closed_cell(tri, cell, centroid) for cell in star_cells):
            kept.append(Cell.canonical_order(verts, 1))

    if not kept and len(star) == len(tri._cells):
        raise UnsupportedRemoval(
            f"remaining {len(tri._vertices) - 1} vertices do not span a {d}-simplex")
    try:
        totals = check_facet_counts(tri, star, kept)
    except DegenerateConfiguration as exc:
        raise UnsupportedRemoval(str(exc)) from exc

    star_volume = sum(simplex_volume(tri.cell_points(c)) for c in star_ids)
    kept_volume = sum(simplex_volume([tri.point_of(v) for v in verts]) for verts in kept)
    rtol = tri.config.volume_rtol
    if not on_hull:
        for key, (cell, k) in link_facets.items():
            want = 1 if cell.neighbors[k] is None else 2
            if totals.get(key, 0) != want:
                raise UnsupportedRemoval(f"link facet {sorted(key)} is not refilled exactly once")
        if abs(kept_volume - star_volume) > rtol * star_volume:
            raise UnsupportedRemoval(
                f"refilled volume {kept_volume:.6g} differs from star volume {star_volume:.6g}")
    elif kept_volume > star_volume * (1.0 + rtol):
        raise UnsupportedRemoval("refilled cells overflow the star of the removed vertex")

    # every facet left with a single cell must be a true hull facet
    witnesses = set(link)
    for cid in outer:
        witnesses.update(tri._cells[cid].vertices)
    witnesses.discard(vertex_id)
    for verts in kept:
        for i in range(len(verts)):
            key = frozenset(verts[:i] + verts[i + 1:])
            if totals[key] == 1:
                _require_hull_facet(tri, verts, i, witnesses)
    for key, (cell, k) in link_facets.items():
        if cell.neighbors[k] is not None and key not in totals:
            # becomes a hull facet of the outer cell; seen from the outer side it is cell.replaced
            other = tri._cells[cell.neighbors[k]]
            _require_hull_facet(tri, other.vertices, cell.mirror_index(other), witnesses)

    used = {v for verts in kept for v in verts}
    incident: Dict[int, int] = {}
    for v in link:
        if v in used:
            continue
        if tri._incident.get(v) not in star:
            continue
        survivors = [c for c in tri.incident_cells(v) if c not in star]
        if not survivors:
            raise UnsupportedRemoval(f"removal would orphan vertex {v}")
        incident[v] = survivors[0]

    logger.debug("remove vertex %s: star %d cells (%s) -> %d new cells",
                 vertex_id, len(star), 'hull' if on_hull else 'interior', len(kept))
    return MutationPlan(removed=star_ids, created=kept, dropped_vertex=vertex_id, incident=incident)


def _require_hull_facet(tri, verts: Sequence[int], i: int, witnesses: Set[int]) -> None:
    """Raise unless no witness vertex lies strictly beyond facet ``i`` of the positive cell ``verts``."""
    base = [tri.point_of(v) for v in verts]
    facet = set(verts) - {verts[i]}
    for w in witnesses:
        if w in facet or w == verts[i]:
            continue
        pts = base[:i] + [tri.point_of(w)] + base[i + 1:]
        if tri._orient(pts) is Orientation.NEGATIVE:
            raise UnsupportedRemoval(
                f"facet {sorted(facet)} would become a hull facet with vertex {w} beyond it")
