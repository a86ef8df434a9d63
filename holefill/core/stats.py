"""Hole filling statistics and presentation utilities."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Any


@dataclass
class FillStats:
    holes_found: int = 0
    holes_filled: int = 0
    holes_failed: int = 0
    # Patch size accounting
    triangles_added: int = 0
    vertices_added: int = 0
    # Refinement work
    splits: int = 0
    flips: int = 0
    refine_iterations: int = 0
    refine_unconverged: int = 0
    # Timing (seconds)
    time_total: float = 0.0
    time_max: float = 0.0
    time_min: float = 0.0  # 0 means uninitialized

    def record_time(self, elapsed: float) -> None:
        self.time_total += elapsed
        self.time_max = max(self.time_max, elapsed)
        if self.time_min == 0.0 or elapsed < self.time_min:
            self.time_min = elapsed

    def to_dict(self) -> Dict[str, Any]:
        attempts = self.holes_filled + self.holes_failed
        return {
            'holes_found': self.holes_found,
            'holes_filled': self.holes_filled,
            'holes_failed': self.holes_failed,
            'triangles_added': self.triangles_added,
            'vertices_added': self.vertices_added,
            'splits': self.splits,
            'flips': self.flips,
            'refine_iterations': self.refine_iterations,
            'refine_unconverged': self.refine_unconverged,
            'success_rate': (self.holes_filled / attempts) if attempts else 0.0,
            'time_total': self.time_total,
            'time_max': self.time_max,
            'time_min': self.time_min,
            'time_avg': (self.time_total / attempts) if attempts else 0.0,
        }


def format_stats_table(stats_dict) -> str:
    """Return a human readable two-column table summarizing fill stats."""
    if not stats_dict:
        return "<no stats>"
    rows = []
    for key, value in stats_dict.items():
        if key.startswith('time_'):
            rows.append((key.replace('time_', '') + '_ms', f"{value * 1000.0:.3f}"))
        elif isinstance(value, float):
            rows.append((key, f"{value:.4f}"))
        else:
            rows.append((key, str(value)))
    kw = max(len(k) for k, _ in rows)
    vw = max(len(v) for _, v in rows)
    lines = [f"{'stat'.ljust(kw)} {'value'.rjust(vw)}", "-" * (kw + vw + 1)]
    lines += [f"{k.ljust(kw)} {v.rjust(vw)}" for k, v in rows]
    return "\n".join(lines)


__all__ = ["FillStats", "format_stats_table"]
