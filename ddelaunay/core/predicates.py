"""Geometric predicates in arbitrary dimension.

All sign-sensitive arithmetic of the package lives here. Both predicates are
determinant signs evaluated with numpy and a relative tolerance band: a
determinant whose magnitude is below ``eps`` times a Hadamard-type bound is
reported as DEGENERATE / ON_BOUNDARY instead of a hard sign.

Every determinant is evaluated on the points sorted lexicographically, with
the sign corrected by the parity of that sort. The computed value and its
bound are therefore functions of the point set alone: permuting the input
only flips the sign, and a set is flagged degenerate or cospherical in every
order or in none.

Sign conventions
----------------
``orientation_det(p_0..p_d)`` is the determinant of the homogeneous matrix
with rows ``(p_i, 1)``; it equals ``(-1)^d * det(p_i - p_0)``.

``in_circumsphere`` uses the (d+2)-row lifted matrix with rows
``(x, |x|^2, 1)`` for ``x = p_0..p_d, q``. Translating by ``q`` and expanding
along its row gives ``det = (r^2 - |c - q|^2) * orientation_det``, so ``q`` is
strictly inside iff both determinants share their sign, independent of vertex
ordering and of the parity of d.
"""
from __future__ import annotations

import math
from enum import IntEnum
from typing import List, Sequence, Tuple

import numpy as np

from .constants import EPS_ORIENT, EPS_INSPHERE
from .errors import DegenerateConfiguration, DimensionMismatch

__all__ = [
    'Orientation', 'Sphere',
    'orientation_det', 'orientation', 'in_circumsphere', 'in_circumsphere_many',
    'circumsphere', 'simplex_volume', 'is_affinely_independent', 'permutation_parity',
]


class Orientation(IntEnum):
    NEGATIVE = -1
    DEGENERATE = 0
    POSITIVE = 1


class Sphere(IntEnum):
    OUTSIDE = -1
    ON_BOUNDARY = 0
    INSIDE = 1


def _simplex_array(points) -> np.ndarray:
    """Return points as a (d+1, d) float array or raise DimensionMismatch."""
    rows = [tuple(p) for p in points]
    if len({len(r) for r in rows}) > 1:
        raise DimensionMismatch(len(rows[0]), min(len(r) for r in rows))
    pts = np.asarray(rows, dtype=np.float64)
    if pts.ndim != 2:
        raise DimensionMismatch(None, pts.shape)
    n, d = pts.shape
    if n != d + 1:
        raise DimensionMismatch(d + 1, n)
    return pts


def _sign(value: float, bound: float, eps: float) -> int:
    if abs(value) <= eps * bound:
        return 0
    return 1 if value > 0.0 else -1


def permutation_parity(seq: Sequence[int]) -> int:
    """+1 if sorting ``seq`` takes an even number of transpositions, else -1."""
    parity = 1
    items = list(seq)
    for i in range(len(items)):
        for j in range(i + 1, len(items)):
            if items[i] > items[j]:
                parity = -parity
    return parity


def _canonical(pts: np.ndarray) -> Tuple[np.ndarray, int]:
    """Rows sorted lexicographically and the parity of that reordering."""
    order = np.lexsort(pts.T[::-1])
    return pts[order], permutation_parity(order.tolist())


def _orientation_value(pts: np.ndarray) -> Tuple[float, float]:
    """``orientation_det`` of ``pts`` and the product of its edge lengths."""
    d = pts.shape[1]
    srt, parity = _canonical(pts)
    diff = srt[1:] - srt[0]
    bound = float(np.prod(np.linalg.norm(diff, axis=1)))
    det = parity * float(np.linalg.det(diff))
    return (-det if d % 2 else det), bound


def orientation_det(points) -> float:
    """Signed volume determinant of d+1 points (times d!)."""
    return _orientation_value(_simplex_array(points))[0]


def _orientation_sign(pts: np.ndarray, eps: float) -> int:
    det, bound = _orientation_value(pts)
    if bound == 0.0:
        return 0
    return _sign(det, bound, eps)


def orientation(points, eps: float = EPS_ORIENT) -> Orientation:
    """Orientation of the simplex ``points`` (d+1 points in d dimensions).

    DEGENERATE means the points are affinely dependent within tolerance; the
    caller must not accept such a simplex as a cell.
    """
    return Orientation(_orientation_sign(_simplex_array(points), eps))


def _lifted_values(pts: np.ndarray, qs: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Lifted determinants of ``pts`` + each query, with their bounds.

    For every query the d+2 points are sorted and translated to the first
    one; its row of the lifted matrix is then ``(0, .., 0, 1)`` and the
    determinant reduces to the (d+1)-square matrix ``R`` with rows
    ``(x - x_0, |x - x_0|^2)``. Expanding ``R`` along its last column bounds
    ``|det R|`` by ``prod |x - x_0| * sum |x - x_0|``.
    """
    d = pts.shape[1]
    mats = np.empty((len(qs), d + 1, d + 1))
    signs = np.empty(len(qs))
    for k, q in enumerate(qs):
        srt, parity = _canonical(np.vstack((pts, q)))
        rel = srt[1:] - srt[0]
        mats[k, :, :d] = rel
        mats[k, :, d] = np.einsum('ij,ij->i', rel, rel)
        signs[k] = parity
    if (d + 1) % 2:
        signs = -signs
    norms = np.linalg.norm(mats[:, :, :d], axis=2)
    bounds = np.prod(norms, axis=1) * np.sum(norms, axis=1)
    return signs * np.linalg.det(mats), bounds


def in_circumsphere(cell_points, query, eps: float = EPS_INSPHERE,
                    orient_eps: float = EPS_ORIENT) -> Sphere:
    """Locate ``query`` relative to the circumsphere of ``cell_points``.

    Raises DegenerateConfiguration when the cell itself is flat (no
    circumsphere exists).
    """
    pts = _simplex_array(cell_points)
    q = np.asarray(tuple(query), dtype=np.float64)
    if q.shape != (pts.shape[1],):
        raise DimensionMismatch(pts.shape[1], q.size)
    return in_circumsphere_many(pts, q[None, :], eps, orient_eps)[0]


def in_circumsphere_many(cell_points, queries, eps: float = EPS_INSPHERE,
                         orient_eps: float = EPS_ORIENT) -> List[Sphere]:
    """in_circumsphere of many query points against one cell."""
    pts = _simplex_array(cell_points)
    qs = np.asarray(queries, dtype=np.float64)
    if qs.size == 0:
        return []
    qs = qs.reshape(-1, pts.shape[1])
    ori = _orientation_sign(pts, orient_eps)
    if ori == 0:
        raise DegenerateConfiguration("circumsphere of a degenerate simplex is undefined")
    dets, bounds = _lifted_values(pts, qs)
    signs = np.where(np.abs(dets) <= eps * bounds, 0, np.sign(dets)).astype(int)
    return [Sphere.ON_BOUNDARY if s == 0 else (Sphere.INSIDE if s == ori else Sphere.OUTSIDE)
            for s in signs]


def circumsphere(points) -> Tuple[np.ndarray, float]:
    """Center and radius of the circumsphere of a non-degenerate simplex."""
    pts = _simplex_array(points)
    if _orientation_sign(pts, EPS_ORIENT) == 0:
        raise DegenerateConfiguration("circumsphere of a degenerate simplex is undefined")
    diff = pts[1:] - pts[0]
    rhs = 0.5 * np.einsum('ij,ij->i', diff, diff)
    offset = np.linalg.solve(diff, rhs)
    center = pts[0] + offset
    return center, float(np.linalg.norm(offset))


def simplex_volume(points) -> float:
    """Unsigned d-dimensional volume of a simplex."""
    pts = _simplex_array(points)
    d = pts.shape[1]
    return abs(float(np.linalg.det(pts[1:] - pts[0]))) / math.factorial(d)


def is_affinely_independent(points: Sequence, eps: float = EPS_ORIENT) -> bool:
    """True when the k <= d+1 points span a (k-1)-dimensional affine subspace.

    Uses the singular values of the edge matrix so that for k = d+1 the test
    agrees with ``orientation(points) != DEGENERATE``.
    """
    pts = np.asarray([tuple(p) for p in points], dtype=np.float64)
    if pts.ndim != 2 or pts.shape[0] == 0:
        return False
    k, d = pts.shape
    if k > d + 1:
        return False
    if k == 1:
        return True
    srt = _canonical(pts)[0]
    diff = srt[1:] - srt[0]
    norms = np.linalg.norm(diff, axis=1)
    if np.any(norms == 0.0):
        return False
    sv = np.linalg.svd(diff, compute_uv=False)
    return float(np.prod(sv)) > eps * float(np.prod(norms))
