"""d-dimensional Delaunay triangulation data structure.

Vertices and cells live in flat identifier-indexed containers; neighbor and
incidence relations are stored as identifiers. The Triangulation owns:

- ``_vertices``: vertex id -> Vertex (insertion ordered)
- ``_cells``: cell id -> Cell
- ``_incident``: vertex id -> one incident cell id
- ``_facets``: FacetMap, facet -> incident cell ids
- ``_by_point``: Point -> vertex id (exact duplicate detection)

Mutations (insert/remove) are planned by ``BowyerWatson`` / ``plan_removal``
without touching these containers and applied by ``_commit`` only after the
plan has been validated.
"""
from __future__ import annotations

import random
import time
from collections import deque
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

from .bowyer_watson import BowyerWatson, MutationPlan
from .cell import Cell
from .config import TriangulationConfig
from .errors import (
    DegenerateConfiguration, DimensionMismatch, DuplicatePoint, EmptyTriangulation,
    TriangulationError, UnknownVertex, UnsupportedRemoval,
)
from .facets import FacetMap
from .logging_utils import get_logger
from .point import Point, Vertex, as_point
from .predicates import Orientation, Sphere, in_circumsphere, orientation
from .stats import OpStats

logger = get_logger('ddelaunay.triangulation')

__all__ = ['Triangulation']


class Triangulation:
    """Delaunay triangulation of points in a fixed dimension ``dim``.

    Example
    -------
        >>> tri = Triangulation(2, [(0, 0), (1, 0), (0, 1), (1, 1)])
        >>> tri.number_of_cells()
        2
        >>> tri.validate()
        []
    """

    def __init__(self, dim: int, points: Optional[Iterable] = None,
                 config: Optional[TriangulationConfig] = None):
        if int(dim) < 1:
            raise ValueError(f"dimension must be >= 1, got {dim}")
        self.dim = int(dim)
        self.config = config if config is not None else TriangulationConfig()
        self._vertices: Dict[int, Vertex] = {}
        self._cells: Dict[int, Cell] = {}
        self._incident: Dict[int, int] = {}
        self._facets = FacetMap()
        self._by_point: Dict[Point, int] = {}
        self._next_vertex_id = 0
        self._next_cell_id = 0
        self._last_cell: Optional[int] = None
        self._rng = random.Random(self.config.walk_seed)
        self._builder = BowyerWatson(self)
        self.stats: Dict[str, OpStats] = {
            'insert': OpStats(), 'remove': OpStats(), 'locate': OpStats(),
        }
        if points is not None:
            self.extend(points)

    # ------------------------------------------------------------------
    # read-only views
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._vertices)

    def __repr__(self) -> str:
        return (f"Triangulation(dim={self.dim}, vertices={len(self._vertices)}, "
                f"cells={len(self._cells)})")

    def number_of_vertices(self) -> int:
        return len(self._vertices)

    def number_of_cells(self) -> int:
        return len(self._cells)

    def dim_current(self) -> int:
        """Dimension spanned so far: ``min(n_vertices - 1, dim)``."""
        return min(len(self._vertices) - 1, self.dim)

    def vertices(self) -> List[Vertex]:
        """Vertices in insertion order."""
        return list(self._vertices.values())

    def cells(self) -> List[Cell]:
        """Live cells; the order is not part of the contract."""
        return list(self._cells.values())

    def vertex(self, vertex_id: int) -> Vertex:
        try:
            return self._vertices[vertex_id]
        except KeyError:
            raise UnknownVertex(vertex_id) from None

    def cell(self, cell_id: int) -> Cell:
        return self._cells[cell_id]

    def point_of(self, vertex_id: int) -> Point:
        return self._vertices[vertex_id].point

    def cell_points(self, cell_id: int) -> List[Point]:
        return [self._vertices[v].point for v in self._cells[cell_id].vertices]

    def neighbors_of(self, cell_id: int) -> List[Optional[int]]:
        return list(self._cells[cell_id].neighbors)

    def hull_facets(self) -> List[Tuple[int, ...]]:
        """Vertex tuples of all convex hull facets."""
        return [cell.facet(i) for cell in self._cells.values() for i in cell.hull_facets()]

    def find_vertex(self, point) -> Optional[int]:
        """Id of the vertex with exactly these coordinates, or None."""
        return self._by_point.get(as_point(point))

    def incident_cells(self, vertex_id: int) -> List[int]:
        """Ids of all cells containing ``vertex_id`` (its star)."""
        if vertex_id not in self._vertices:
            raise UnknownVertex(vertex_id)
        start = self._incident.get(vertex_id)
        if start is None:
            return []
        seen = {start}
        queue = deque([start])
        while queue:
            cell = self._cells[queue.popleft()]
            for i, nb in enumerate(cell.neighbors):
                # only facets containing the vertex stay inside its star
                if nb is None or nb in seen or cell.vertices[i] == vertex_id:
                    continue
                seen.add(nb)
                queue.append(nb)
        return sorted(seen)

    def volume(self) -> float:
        """Total d-volume of all cells (the hull volume once d+1 vertices span it)."""
        from .diagnostics import triangulation_volume
        return triangulation_volume(self)

    # ------------------------------------------------------------------
    # predicates bound to this triangulation's tolerances
    # ------------------------------------------------------------------
    def _orient(self, pts) -> Orientation:
        return orientation(pts, self.config.orientation_eps)

    def _insphere(self, pts, query) -> Sphere:
        return in_circumsphere(pts, query, self.config.insphere_eps, self.config.orientation_eps)

    def _coerce(self, point) -> Point:
        p = as_point(point)
        if p.dim != self.dim:
            raise DimensionMismatch(self.dim, p.dim)
        return p

    # ------------------------------------------------------------------
    # point location
    # ------------------------------------------------------------------
    def _walk(self, q: Point, start: int, rng: random.Random, stats: Optional[OpStats] = None):
        """Remembering stochastic visibility walk.

        Returns ``(cell_id, None)`` when ``q`` lies in the closed cell,
        ``(cell_id, i)`` when ``q`` is strictly beyond hull facet ``i``, or
        None when the step budget is exhausted.
        """
        budget = self.config.walk_limit(len(self._cells))
        order = list(range(self.dim + 1))
        cur, prev = start, None
        for _ in range(budget):
            if stats is not None:
                stats.walk_steps += 1
            cell = self._cells[cur]
            pts = [self._vertices[v].point for v in cell.vertices]
            rng.shuffle(order)
            step = None
            for i in order:
                nb = cell.neighbors[i]
                if nb is not None and nb == prev:
                    continue
                if self._orient(pts[:i] + [q] + pts[i + 1:]) is Orientation.NEGATIVE:
                    step = i
                    break
            if step is None:
                return cur, None
            nb = cell.neighbors[step]
            if nb is None:
                return cur, step
            prev, cur = cur, nb
        return None

    def _scan(self, q: Point):
        """Linear scan fallback for point location."""
        visible = None
        for cell in self._cells.values():
            pts = [self._vertices[v].point for v in cell.vertices]
            sides = [self._orient(pts[:i] + [q] + pts[i + 1:]) for i in range(len(pts))]
            if all(s is not Orientation.NEGATIVE for s in sides):
                return cell.id, None
            if visible is None:
                for i in cell.hull_facets():
                    if sides[i] is Orientation.NEGATIVE:
                        visible = (cell.id, i)
                        break
        if visible is None:
            raise DegenerateConfiguration(f"point {q.coords} is neither inside nor visibly outside the hull")
        return visible

    def _locate_internal(self, point, hint: Optional[int] = None, record: bool = True):
        """Walk to ``point``; with ``record`` False nothing on ``self`` changes."""
        if not self._cells:
            raise EmptyTriangulation(
                f"need {self.dim + 1} vertices before locating, have {len(self._vertices)}")
        q = self._coerce(point)
        start = hint if hint in self._cells else self._last_cell
        if start not in self._cells:
            start = next(iter(self._cells))
        if record:
            stats, rng = self.stats['locate'], self._rng
            stats.attempts += 1
        else:
            stats, rng = None, random.Random(self.config.walk_seed)
        found = self._walk(q, start, rng, stats)
        if found is None:
            if stats is not None:
                stats.walk_fallbacks += 1
            logger.debug("walk budget exhausted for %s, falling back to linear scan", q.coords)
            try:
                found = self._scan(q)
            except DegenerateConfiguration:
                if stats is not None:
                    stats.fail += 1
                raise
        if stats is not None:
            stats.success += 1
        return found

    def locate(self, point, hint: Optional[int] = None) -> Optional[int]:
        """Id of a cell whose closed simplex contains ``point``, or None if outside the hull.

        A pure query: it walks with its own generator seeded from
        ``config.walk_seed`` and leaves the shared walk generator and the
        ``locate`` counters (which track insertions) untouched, so repeated
        calls on an unchanged triangulation return the same cell.
        """
        cid, exit_facet = self._locate_internal(point, hint, record=False)
        return cid if exit_facet is None else None

    # ------------------------------------------------------------------
    # mutation
    # ------------------------------------------------------------------
    def insert(self, point, data: Any = None) -> int:
        """Insert a point and return its new vertex id."""
        stats = self.stats['insert']
        stats.attempts += 1
        t0 = time.perf_counter()
        try:
            p = self._coerce(point)
            dup = self._by_point.get(p)
            if dup is not None:
                stats.duplicate_rejects += 1
                raise DuplicatePoint(p.coords, dup)
            vid = self._next_vertex_id
            n = len(self._vertices)
            if n < self.dim:
                plan = MutationPlan(new_vertex=(vid, p, data))
            elif n == self.dim:
                plan = self._builder.initial_simplex(vid, p, data)
            else:
                plan = self._builder.plan(vid, p, data)
        except DegenerateConfiguration as exc:
            stats.fail += 1
            stats.degenerate_rejects += 1
            stats.record_time(time.perf_counter() - t0)
            logger.warning("rejected point %s: %s", p.coords, exc)
            raise
        except Exception:
            # bad input (NaN, ragged, wrong dimension) counts as a failed attempt too
            stats.fail += 1
            stats.record_time(time.perf_counter() - t0)
            raise
        self._commit(plan)
        stats.success += 1
        stats.promotions += plan.promotions
        stats.cells_removed += len(plan.removed)
        stats.cells_created += len(plan.created)
        stats.record_time(time.perf_counter() - t0)
        self._post_mutation_check()
        return vid

    def extend(self, points: Iterable) -> List[int]:
        """Insert each point in order; returns the new vertex ids."""
        return [self.insert(p) for p in points]

    def remove(self, vertex_id: int) -> None:
        """Delete a vertex and retriangulate its star."""
        from .removal import plan_removal

        stats = self.stats['remove']
        stats.attempts += 1
        t0 = time.perf_counter()
        if vertex_id not in self._vertices:
            stats.fail += 1
            raise UnknownVertex(vertex_id)
        try:
            plan = plan_removal(self, vertex_id)
        except UnsupportedRemoval as exc:
            stats.fail += 1
            stats.record_time(time.perf_counter() - t0)
            logger.debug("removal of vertex %s refused: %s", vertex_id, exc)
            raise
        except Exception:
            stats.fail += 1
            stats.record_time(time.perf_counter() - t0)
            raise
        self._commit(plan)
        stats.success += 1
        stats.cells_removed += len(plan.removed)
        stats.cells_created += len(plan.created)
        stats.record_time(time.perf_counter() - t0)
        self._post_mutation_check()

    def _commit(self, plan: MutationPlan) -> None:
        """Apply a validated plan. Must not fail."""
        if plan.new_vertex is not None:
            vid, p, data = plan.new_vertex
            self._vertices[vid] = Vertex(vid, p, data)
            self._by_point[p] = vid
            self._next_vertex_id = max(self._next_vertex_id, vid + 1)

        removed_ids = set(plan.removed)
        removed = [self._cells.pop(cid) for cid in plan.removed]
        self._facets.remove_cells(removed)
        # surviving cells across the cavity boundary lose their link for now
        for old in removed:
            for nb in old.neighbors:
                if nb is None or nb in removed_ids:
                    continue
                other = self._cells[nb]
                for i, x in enumerate(other.neighbors):
                    if x in removed_ids:
                        other.neighbors[i] = None

        created = []
        for verts in plan.created:
            cell = Cell(self._next_cell_id, verts)
            self._next_cell_id += 1
            self._cells[cell.id] = cell
            created.append(cell)
        self._facets.add_cells(created)
        for cell in created:
            for i, key in enumerate(cell.facet_keys()):
                others = self._facets.facet_to_cells[key] - {cell.id}
                if not others:
                    cell.neighbors[i] = None
                    continue
                other = self._cells[next(iter(others))]
                cell.neighbors[i] = other.id
                other.neighbors[cell.mirror_index(other)] = cell.id
            for v in cell.vertices:
                self._incident[v] = cell.id

        if plan.dropped_vertex is not None:
            gone = self._vertices.pop(plan.dropped_vertex)
            del self._by_point[gone.point]
            self._incident.pop(plan.dropped_vertex, None)
        for v, cid in plan.incident.items():
            if self._incident.get(v) in removed_ids or v not in self._incident:
                self._incident[v] = cid
        for old in removed:
            for v in old.vertices:
                if self._incident.get(v) in removed_ids:
                    del self._incident[v]

        if created:
            self._last_cell = created[-1].id
        elif self._last_cell not in self._cells:
            self._last_cell = next(iter(self._cells), None)

    def _post_mutation_check(self) -> None:
        if not self.config.validate_after_mutation:
            return
        problems = self.validate()
        if problems:
            raise TriangulationError("invariants violated after mutation:\n" + "\n".join(problems))

    # ------------------------------------------------------------------
    # diagnostics and export
    # ------------------------------------------------------------------
    def stats_summary(self) -> Dict[str, Dict[str, Any]]:
        return {op: s.to_dict() for op, s in self.stats.items()}

    def reset_stats(self) -> None:
        for op in self.stats:
            self.stats[op] = OpStats()

    def validate(self) -> List[str]:
        """All violated invariants as messages; an empty list means valid."""
        from .diagnostics import validate_triangulation
        return validate_triangulation(self)

    def is_valid(self) -> bool:
        return not self.validate()

    def snapshot(self) -> Dict[str, Any]:
        """Order-independent view sufficient to rebuild the mesh exactly."""
        return {
            'dim': self.dim,
            'vertices': {
                v.id: {'coords': v.coords, 'data': v.data} for v in self._vertices.values()
            },
            'cells': {
                c.id: {'vertices': c.vertices, 'neighbors': tuple(c.neighbors), 'data': c.data}
                for c in self._cells.values()
            },
        }

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Dense ``(points, simplices, neighbors)`` arrays.

        Vertex ids are compacted to row indices of ``points`` in insertion
        order; ``neighbors[k, i]`` is the row of the cell across facet i of
        cell k, or -1 on the hull (the layout of ``scipy.spatial.Delaunay``).
        """
        vid_row = {vid: row for row, vid in enumerate(self._vertices)}
        cid_row = {cid: row for row, cid in enumerate(self._cells)}
        points = np.array([v.coords for v in self._vertices.values()], dtype=np.float64).reshape(-1, self.dim)
        simplices = np.array(
            [[vid_row[v] for v in c.vertices] for c in self._cells.values()], dtype=np.int64
        ).reshape(-1, self.dim + 1)
        neighbors = np.array(
            [[-1 if n is None else cid_row[n] for n in c.neighbors] for c in self._cells.values()],
            dtype=np.int64,
        ).reshape(-1, self.dim + 1)
        return points, simplices, neighbors
