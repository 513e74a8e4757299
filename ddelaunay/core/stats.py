"""Operation statistics data structures and presentation utilities.

Each Triangulation keeps one OpStats per operation name ('insert',
'remove', 'locate') so callers can inspect rejection rates and timings.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Any


@dataclass
class OpStats:
    attempts: int = 0
    success: int = 0
    fail: int = 0
    duplicate_rejects: int = 0
    degenerate_rejects: int = 0
    # Cavity bookkeeping (insert/remove)
    cells_removed: int = 0
    cells_created: int = 0
    promotions: int = 0
    # Point location
    walk_steps: int = 0
    walk_fallbacks: int = 0
    # Timing (seconds)
    time_total: float = 0.0
    time_max: float = 0.0
    time_min: float = 0.0  # 0 means uninitialized

    def record_time(self, dt: float) -> None:
        self.time_total += dt
        if dt > self.time_max:
            self.time_max = dt
        if self.time_min == 0.0 or dt < self.time_min:
            self.time_min = dt

    def to_dict(self) -> Dict[str, Any]:
        return {
            'attempts': self.attempts,
            'success': self.success,
            'fail': self.fail,
            'duplicate_rejects': self.duplicate_rejects,
            'degenerate_rejects': self.degenerate_rejects,
            'cells_removed': self.cells_removed,
            'cells_created': self.cells_created,
            'promotions': self.promotions,
            'walk_steps': self.walk_steps,
            'walk_fallbacks': self.walk_fallbacks,
            'success_rate': (self.success / self.attempts) if self.attempts else 0.0,
            'avg_cavity': (self.cells_removed / self.success) if self.success else 0.0,
            'time_total': self.time_total,
            'time_max': self.time_max,
            'time_min': self.time_min,
            'time_avg': (self.time_total / self.attempts) if self.attempts else 0.0,
        }


def format_stats_table(stats_dict) -> str:
    """Return a human readable multi-line table summarizing op stats."""
    if not stats_dict:
        return "<no stats>"
    header = ["op", "attempts", "succ", "fail", "dup", "degen", "succ%", "avg_ms", "max_ms"]
    rows = []
    for op in sorted(stats_dict.keys()):
        s = stats_dict[op]
        attempts = s['attempts']
        succ_pct = (s['success'] / attempts * 100.0) if attempts else 0.0
        rows.append([
            op, str(attempts), str(s['success']), str(s['fail']),
            str(s['duplicate_rejects']), str(s['degenerate_rejects']),
            f"{succ_pct:6.2f}", f"{s['time_avg'] * 1000.0:8.3f}", f"{s['time_max'] * 1000.0:8.3f}",
        ])
    col_w = [len(h) for h in header]
    for r in rows:
        for i, v in enumerate(r):
            if len(v) > col_w[i]: col_w[i] = len(v)
    def fmt(r):
        return " ".join(r[i].rjust(col_w[i]) for i in range(len(r)))
    lines = [fmt(header), "-" * (sum(col_w) + len(col_w) - 1)] + [fmt(r) for r in rows]
    return "\n".join(lines)


__all__ = ["OpStats", "format_stats_table"]
