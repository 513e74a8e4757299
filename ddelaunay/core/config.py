"""Configuration objects for triangulation construction and maintenance."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .constants import (
    EPS_ORIENT, EPS_INSPHERE, EPS_VOLUME_REL,
    WALK_BUDGET_FACTOR, WALK_BUDGET_MIN, MAX_CAVITY_PROMOTIONS,
)


@dataclass
class TriangulationConfig:
    """Tunables of a Triangulation.

    Attributes
    ----------
    orientation_eps : float
        Relative tolerance band of the orientation predicate.
    insphere_eps : float
        Relative tolerance band of the in-circumsphere predicate.
    volume_rtol : float
        Relative volume mismatch accepted when a removal refills a star.
    walk_seed : int or None
        Seed of the stochastic visibility walk (None = nondeterministic).
    walk_budget : int or None
        Maximum walk steps before falling back to a linear scan. None means
        ``max(WALK_BUDGET_MIN, WALK_BUDGET_FACTOR * number_of_cells)``.
    max_cavity_promotions : int
        Upper bound on ON_BOUNDARY cells admitted into a single cavity.
    validate_after_mutation : bool
        Debug mode: run the full validation after every insert/remove.
    """
    orientation_eps: float = EPS_ORIENT
    insphere_eps: float = EPS_INSPHERE
    volume_rtol: float = EPS_VOLUME_REL
    walk_seed: Optional[int] = 0
    walk_budget: Optional[int] = None
    max_cavity_promotions: int = MAX_CAVITY_PROMOTIONS
    validate_after_mutation: bool = False

    def walk_limit(self, n_cells: int) -> int:
        if self.walk_budget is not None:
            return int(self.walk_budget)
        return max(WALK_BUDGET_MIN, WALK_BUDGET_FACTOR * int(n_cells))

    def copy(self, **overrides) -> 'TriangulationConfig':
        return replace(self, **overrides)


__all__ = ['TriangulationConfig']
