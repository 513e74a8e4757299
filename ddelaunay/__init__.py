"""Public package API for ddelaunay, d-dimensional Delaunay triangulations.

This facade provides a stable, flatter import surface on top of the
implementation package ``ddelaunay.core``. Plotting helpers (matplotlib) are
loaded lazily on first use so ``import ddelaunay`` stays light.

Example
-------
    from ddelaunay import Triangulation

    tri = Triangulation(3)
    tri.extend([(0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1), (1, 1, 1)])
    assert tri.validate() == []

The deeper modules (``ddelaunay.core.*``) are considered internal and may
change; rely on this layer for public symbols.
"""
from importlib import import_module as _imp
import logging as _logging

try:
    from importlib.metadata import version as _pkg_version, PackageNotFoundError as _NotFound
    __version__ = _pkg_version("ddelaunay")
except _NotFound:  # pragma: no cover - running from a source tree
    __version__ = "0.0.0+dev"

_logging.getLogger(__name__).addHandler(_logging.NullHandler())

# Eager light-weight submodules
_const = _imp('ddelaunay.core.constants')
_errors = _imp('ddelaunay.core.errors')
_config = _imp('ddelaunay.core.config')
_point = _imp('ddelaunay.core.point')
_pred = _imp('ddelaunay.core.predicates')
_cell = _imp('ddelaunay.core.cell')
_tri = _imp('ddelaunay.core.triangulation')
_diag = _imp('ddelaunay.core.diagnostics')
_stats = _imp('ddelaunay.core.stats')
_log = _imp('ddelaunay.core.logging_utils')


def plot_triangulation(*args, **kwargs):
    """Lazy proxy for ``ddelaunay.core.visualization.plot_triangulation``."""
    return _imp('ddelaunay.core.visualization').plot_triangulation(*args, **kwargs)


# Core types
Triangulation = _tri.Triangulation
TriangulationConfig = _config.TriangulationConfig
Point = _point.Point
Vertex = _point.Vertex
Cell = _cell.Cell

# Predicates
Orientation = _pred.Orientation
Sphere = _pred.Sphere
orientation = _pred.orientation
in_circumsphere = _pred.in_circumsphere
circumsphere = _pred.circumsphere
simplex_volume = _pred.simplex_volume

# Errors
TriangulationError = _errors.TriangulationError
DuplicatePoint = _errors.DuplicatePoint
DegenerateConfiguration = _errors.DegenerateConfiguration
DimensionMismatch = _errors.DimensionMismatch
UnsupportedRemoval = _errors.UnsupportedRemoval
EmptyTriangulation = _errors.EmptyTriangulation
UnknownVertex = _errors.UnknownVertex

# Tolerances
EPS_ORIENT = _const.EPS_ORIENT
EPS_INSPHERE = _const.EPS_INSPHERE

# Logging / stats
get_logger = _log.get_logger
configure_logging = _log.configure_logging
format_stats_table = _stats.format_stats_table

# Namespace submodules for exploratory users
constants = _const
predicates = _pred
triangulation = _tri
diagnostics = _diag

__all__ = [
    '__version__',
    'Triangulation', 'TriangulationConfig', 'Point', 'Vertex', 'Cell',
    'Orientation', 'Sphere', 'orientation', 'in_circumsphere', 'circumsphere', 'simplex_volume',
    'TriangulationError', 'DuplicatePoint', 'DegenerateConfiguration', 'DimensionMismatch',
    'UnsupportedRemoval', 'EmptyTriangulation', 'UnknownVertex',
    'EPS_ORIENT', 'EPS_INSPHERE',
    'get_logger', 'configure_logging', 'format_stats_table', 'plot_triangulation',
    'constants', 'predicates', 'triangulation', 'diagnostics',
]
