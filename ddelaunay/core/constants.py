"""Central numerical tolerances and walk limits.

This module centralizes tiny numeric thresholds used across the codebase so
they can be tuned consistently and referenced without scattering literals.
"""
from __future__ import annotations

# Predicate tolerances (relative to the Hadamard bound of the matrix rows)
EPS_ORIENT: float = 1e-12         # orientation determinant band -> DEGENERATE
EPS_INSPHERE: float = 1e-12       # lifted determinant band -> ON_BOUNDARY

# Removal checks
EPS_VOLUME_REL: float = 1e-9      # relative volume mismatch tolerated when refilling a star

# Point location
WALK_BUDGET_FACTOR: int = 4       # walk steps allowed per live cell before linear scan
WALK_BUDGET_MIN: int = 64

# Cavity growth under cospherical ties
MAX_CAVITY_PROMOTIONS: int = 64

__all__ = [
    'EPS_ORIENT',
    'EPS_INSPHERE',
    'EPS_VOLUME_REL',
    'WALK_BUDGET_FACTOR',
    'WALK_BUDGET_MIN',
    'MAX_CAVITY_PROMOTIONS',
]
