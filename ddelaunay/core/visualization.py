"""Visualization helpers for 2D and 3D triangulations."""
from __future__ import annotations

import os as _os
from itertools import combinations

import matplotlib as _mpl
# Ensure a non-interactive backend in headless environments before importing pyplot
if not _os.environ.get('MPLBACKEND'):
    _mpl.use('Agg')
import numpy as np
import matplotlib.pyplot as plt

from .logging_utils import get_logger

logger = get_logger('ddelaunay.viz')

__all__ = ['plot_triangulation']


def plot_triangulation(tri, outname=None, ax=None, show_vertex_ids: bool = False,
                       highlight_hull: bool = True):
    """Draw a 2D or 3D triangulation and optionally save it.

    Args:
        tri: Triangulation with dim 2 or 3
        outname: output image path (None: do not save)
        ax: existing matplotlib axes (3D axes for dim 3); created when None
        show_vertex_ids: label vertices with their ids
        highlight_hull: draw hull facets in red

    Returns the axes used.
    """
    if tri.dim not in (2, 3):
        raise ValueError(f"can only plot 2D or 3D triangulations, got dim={tri.dim}")
    points, simplices, neighbors = tri.as_arrays()
    ids = [v.id for v in tri.vertices()]
    own_fig = ax is None
    if own_fig:
        fig = plt.figure(figsize=(6, 6))
        ax = fig.add_subplot(111, projection='3d' if tri.dim == 3 else None)

    if tri.dim == 2:
        if simplices.size:
            ax.triplot(points[:, 0], points[:, 1], simplices, color='0.3', linewidth=0.8)
        if points.size:
            ax.scatter(points[:, 0], points[:, 1], s=8, color='black', zorder=3)
        ax.set_aspect('equal')
    else:
        edges = set()
        for simplex in simplices:
            for a, b in combinations(sorted(int(v) for v in simplex), 2):
                edges.add((a, b))
        for a, b in edges:
            seg = points[[a, b]]
            ax.plot(seg[:, 0], seg[:, 1], seg[:, 2], color='0.3', linewidth=0.6)
        if points.size:
            ax.scatter(points[:, 0], points[:, 1], points[:, 2], s=8, color='black')

    if highlight_hull:
        for k, simplex in enumerate(simplices):
            for i in np.nonzero(neighbors[k] < 0)[0]:
                facet = points[np.delete(simplex, i)]
                if tri.dim == 2:
                    ax.plot(facet[:, 0], facet[:, 1], color=(0.85, 0.2, 0.2), linewidth=1.6)
                else:
                    loop = np.vstack((facet, facet[:1]))
                    ax.plot(loop[:, 0], loop[:, 1], loop[:, 2], color=(0.85, 0.2, 0.2), linewidth=1.0)

    if show_vertex_ids:
        for row, vid in enumerate(ids):
            ax.text(*points[row], str(vid), fontsize=7)
    ax.set_title(f"{len(ids)} vertices, {len(simplices)} cells")

    if outname:
        ax.figure.savefig(outname, dpi=150)
        logger.debug("wrote %s", outname)
        if own_fig:
            plt.close(ax.figure)
    return ax
