"""Bowyer-Watson incremental insertion, staged as plan + commit.

The planner never mutates the triangulation. It computes the cavity of a new
point, the cells that replace it, and checks that the replacement closes up
combinatorially; only then does ``Triangulation._commit`` apply the plan.
A failed insertion therefore leaves the triangulation untouched.

Hull facets take part in the cavity as virtual cells (one per facet with a
``None`` neighbor, keyed ``(cell_id, facet_index)``):

- a finite cell is *bad* when the new point is strictly INSIDE its circumsphere;
- a hull facet is *bad* when the point lies strictly beyond its hyperplane, or
  on the hyperplane and INSIDE the circumsphere of the cell behind it (the
  point then falls inside the facet's own (d-1)-circumsphere).

Tie-break: ON_BOUNDARY never makes a cell bad. A cell on whose circumsphere
the point lies is only pulled into the cavity when a boundary facet it shares
with the cavity would otherwise produce a flat or inverted cell. The result
stays Delaunay because the point is not strictly inside any surviving cell.
"""
from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from .cell import Cell
from .errors import DegenerateConfiguration
from .logging_utils import get_logger
from .predicates import Orientation, Sphere

logger = get_logger('ddelaunay.bowyer_watson')

__all__ = ['MutationPlan', 'BowyerWatson', 'HullFacet']

HullFacet = Tuple[int, int]  # (cell id, facet index) with a None neighbor


@dataclass
class MutationPlan:
    """Staged change to a triangulation.

    removed : ids of cells to delete
    created : canonical vertex tuples of the cells to create
    new_vertex : (id, point, data) of the vertex to add, if any
    dropped_vertex : id of the vertex to delete, if any
    incident : replacement incident cell (by id, surviving) for vertices
        that keep no new cell
    """
    removed: List[int] = field(default_factory=list)
    created: List[Tuple[int, ...]] = field(default_factory=list)
    new_vertex: Optional[tuple] = None
    dropped_vertex: Optional[int] = None
    incident: Dict[int, int] = field(default_factory=dict)
    promotions: int = 0


def check_facet_counts(tri, removed: Set[int], created: List[Tuple[int, ...]]) -> Counter:
    """Raise DegenerateConfiguration if a facet would end up in more than two cells.

    Returns the per-facet multiplicity of the planned state for the facets of
    ``created``.
    """
    fresh: Counter = Counter()
    for verts in created:
        for i in range(len(verts)):
            fresh[frozenset(verts[:i] + verts[i + 1:])] += 1
    totals: Counter = Counter()
    for key, n_new in fresh.items():
        survivors = tri._facets.cells_for_facet(key) - removed
        total = len(survivors) + n_new
        if total > 2:
            raise DegenerateConfiguration(f"facet {sorted(key)} would be shared by {total} cells")
        totals[key] = total
    return totals


class BowyerWatson:
    """Insertion planner bound to one triangulation."""

    def __init__(self, tri):
        self.tri = tri

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _points(self, verts, vid, point):
        tri = self.tri
        return [point if v == vid else tri.point_of(v) for v in verts]

    def adjacent_hull_facet(self, cid: int, i: int, j: int) -> HullFacet:
        """Hull facet sharing the ridge ``facet(i) - {vertices[j]}`` with hull facet (cid, i).

        Rotates around the ridge through the cells incident to it until the
        next facet without a neighbor is reached.
        """
        cells = self.tri._cells
        cell = cells[cid]
        ridge = set(cell.vertices) - {cell.vertices[i], cell.vertices[j]}
        cur = cell
        w = cell.vertices[j]
        for _ in range(len(cells) + 1):
            k = cur.index_of(w)
            nb = cur.neighbors[k]
            if nb is None:
                return (cur.id, k)
            nxt = cells[nb]
            cur_set = set(cur.vertices)
            w = next(v for v in nxt.vertices if v not in ridge and v in cur_set)
            cur = nxt
        raise DegenerateConfiguration(f"hull ridge {sorted(ridge)} is not closed")

    # ------------------------------------------------------------------
    # planning
    # ------------------------------------------------------------------
    def initial_simplex(self, vid: int, point, data=None) -> MutationPlan:
        """Plan the first cell once d+1 vertices are known."""
        tri = self.tri
        ids = list(tri._vertices.keys()) + [vid]
        pts = self._points(ids, vid, point)
        sign = tri._orient(pts)
        if sign is Orientation.DEGENERATE:
            raise DegenerateConfiguration(
                f"first {len(ids)} points are affinely dependent; no initial simplex")
        return MutationPlan(
            created=[Cell.canonical_order(ids, int(sign))],
            new_vertex=(vid, point, data),
        )

    def plan(self, vid: int, point, data=None, hint: Optional[int] = None) -> MutationPlan:
        tri = self.tri
        cells = tri._cells
        cfg = tri.config

        start, exit_facet = tri._locate_internal(point, hint)
        sphere: Dict[int, Sphere] = {}
        hull_side: Dict[HullFacet, Orientation] = {}
        hull_adj: Dict[Tuple[int, int, int], HullFacet] = {}
        bad: Set[int] = set()
        bad_hull: Set[HullFacet] = set()

        def sphere_of(cid: int) -> Sphere:
            s = sphere.get(cid)
            if s is None:
                pts = [tri.point_of(v) for v in cells[cid].vertices]
                s = tri._insphere(pts, point)
                sphere[cid] = s
            return s

        def side_of(hf: HullFacet) -> Orientation:
            o = hull_side.get(hf)
            if o is None:
                cid, i = hf
                o = tri._orient(self._points(cells[cid].replaced(i, vid), vid, point))
                hull_side[hf] = o
            return o

        def is_bad(item) -> bool:
            if isinstance(item, tuple):
                o = side_of(item)
                if o is Orientation.NEGATIVE:
                    return True
                return o is Orientation.DEGENERATE and sphere_of(item[0]) is Sphere.INSIDE
            return sphere_of(item) is Sphere.INSIDE

        def ridge_neighbors(hf: HullFacet) -> List[HullFacet]:
            cid, i = hf
            out = []
            for j in range(len(cells[cid].vertices)):
                if j == i:
                    continue
                key = (cid, i, j)
                if key not in hull_adj:
                    hull_adj[key] = self.adjacent_hull_facet(cid, i, j)
                out.append(hull_adj[key])
            return out

        def candidates(item) -> List:
            if isinstance(item, tuple):
                return [item[0]] + ridge_neighbors(item)
            cell = cells[item]
            return [(item, i) if nb is None else nb for i, nb in enumerate(cell.neighbors)]

        visited: Set = set()
        queue: deque = deque()

        def mark_bad(item) -> None:
            visited.add(item)
            if isinstance(item, tuple):
                bad_hull.add(item)
            else:
                bad.add(item)
            queue.append(item)

        if exit_facet is None:
            # the cell containing the point is always part of the cavity
            mark_bad(start)
        else:
            mark_bad((start, exit_facet))

        promotions = 0
        while True:
            while queue:
                item = queue.popleft()
                for cand in candidates(item):
                    if cand in visited:
                        continue
                    visited.add(cand)
                    if is_bad(cand):
                        mark_bad(cand)
            created, expected_hull, promote = self._boundary(
                vid, point, bad, bad_hull, sphere, side_of, ridge_neighbors)
            if not promote:
                break
            promotions += len(promote)
            if promotions > cfg.max_cavity_promotions:
                raise DegenerateConfiguration(
                    f"cavity did not close after {promotions} cospherical promotions")
            logger.debug("promoting %d boundary cells into cavity of vertex %s", len(promote), vid)
            for item in promote:
                mark_bad(item)

        self._check(vid, point, bad, created, expected_hull)
        logger.debug("insert vertex %s: cavity %d cells (+%d hull facets) -> %d new cells",
                     vid, len(bad), len(bad_hull), len(created))
        return MutationPlan(
            removed=sorted(bad),
            created=created,
            new_vertex=(vid, point, data),
            promotions=promotions,
        )

    def _boundary(self, vid, point, bad, bad_hull, sphere, side_of, ridge_neighbors):
        """New cells for the current cavity, plus cells that must join it."""
        tri = self.tri
        cells = tri._cells
        created: List[Tuple[int, ...]] = []
        expected_hull: Set[frozenset] = set()
        promote: List = []

        for cid in bad:
            cell = cells[cid]
            for i, nb in enumerate(cell.neighbors):
                if nb is None:
                    if (cid, i) in bad_hull:
                        continue
                    verts = cell.replaced(i, vid)
                    o = side_of((cid, i))
                    if o is Orientation.POSITIVE:
                        created.append(Cell.canonical_order(verts, 1))
                    elif o is Orientation.DEGENERATE:
                        promote.append((cid, i))
                    else:
                        raise DegenerateConfiguration(
                            f"hull facet {cell.facet(i)} seen from both sides by vertex {vid}")
                    continue
                if nb in bad:
                    continue
                verts = cell.replaced(i, vid)
                o = tri._orient(self._points(verts, vid, point))
                if o is Orientation.POSITIVE:
                    created.append(Cell.canonical_order(verts, 1))
                elif sphere.get(nb) is Sphere.ON_BOUNDARY:
                    promote.append(nb)
                else:
                    raise DegenerateConfiguration(
                        f"cavity of vertex {vid} is not star-shaped at facet {cell.facet(i)}")

        for hf in bad_hull:
            cid, i = hf
            cell = cells[cid]
            if cid not in bad:
                if side_of(hf) is not Orientation.NEGATIVE:
                    raise DegenerateConfiguration(
                        f"coplanar hull facet {cell.facet(i)} cannot be extended to vertex {vid}")
                created.append(Cell.canonical_order(cell.replaced(i, vid), -1))
            for j, adj in zip((j for j in range(len(cell.vertices)) if j != i), ridge_neighbors(hf)):
                if adj not in bad_hull:
                    ridge = frozenset(cell.vertices) - {cell.vertices[i], cell.vertices[j]}
                    expected_hull.add(ridge | {vid})
        # dedupe promotions, keeping order
        seen = set()
        promote = [p for p in promote if not (p in seen or seen.add(p))]
        return created, expected_hull, promote

    def _check(self, vid, point, bad, created, expected_hull) -> None:
        """Combinatorial closure of the planned cavity fill."""
        tri = self.tri
        if not created:
            raise DegenerateConfiguration(f"empty retriangulation for vertex {vid}")
        totals = check_facet_counts(tri, bad, created)
        for key, total in totals.items():
            if vid not in key:
                continue
            want = 1 if key in expected_hull else 2
            if total != want:
                raise DegenerateConfiguration(
                    f"facet {sorted(key)} through new vertex has {total} cells, expected {want}")
        missing = expected_hull - set(totals)
        if missing:
            raise DegenerateConfiguration(f"{len(missing)} new hull facets were not produced")
        used = {v for verts in created for v in verts}
        lost = {v for cid in bad for v in tri._cells[cid].vertices} - used
        if lost:
            raise DegenerateConfiguration(f"cavity would orphan vertices {sorted(lost)}")
        # new cells sharing a facet must not hold each other's apex strictly inside
        through: Dict[frozenset, List[Tuple[Tuple[int, ...], int]]] = {}
        for verts in created:
            for i, v in enumerate(verts):
                key = frozenset(verts[:i] + verts[i + 1:])
                if vid in key:
                    through.setdefault(key, []).append((verts, v))
        for key, pair in through.items():
            if len(pair) != 2:
                continue
            (verts, _), (_, apex) = pair
            if tri._insphere(self._points(verts, vid, point), tri.point_of(apex)) is Sphere.INSIDE:
                raise DegenerateConfiguration(
                    f"new cells across facet {sorted(key)} are not locally Delaunay")
