"""Hole filling driver: boundary extraction, minimal patch, refinement.

Holes are processed one at a time and independently; the source mesh is only
read. Each filled hole yields a standalone patch whose first ``n`` vertices
are the hole's boundary vertices in loop order.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .boundary import HoleBoundary, extract_hole_boundaries
from .config import FillConfig
from .corner_table import CornerTable
from .errors import HoleFillError
from .logging_utils import get_logger
from .refinement import RefinedPatch, refine_patch
from .stats import FillStats
from .triangulation import DihedralAngleWeight, minimum_patch

log = get_logger('holefill.pipeline')

__all__ = ['HoleFill', 'FillReport', 'fill_hole', 'fill_holes', 'merge_patches']

_ON_ERROR = ('raise', 'skip')


@dataclass
class HoleFill:
    boundary: HoleBoundary
    minimal_triangles: np.ndarray
    weight: DihedralAngleWeight
    patch: CornerTable
    scales: np.ndarray
    converged: bool = True

    @property
    def inserted_vertices(self) -> int:
        return self.patch.num_vertices - len(self.boundary)


@dataclass
class FillReport:
    fills: List[HoleFill] = field(default_factory=list)
    failures: List[Tuple[HoleBoundary, HoleFillError]] = field(default_factory=list)
    stats: FillStats = field(default_factory=FillStats)


def fill_hole(table: CornerTable, boundary: Sequence[int], config: Optional[FillConfig] = None,
              stats: Optional[FillStats] = None) -> HoleFill:
    """Cap one hole of ``table`` and refine the cap.

    Raises the ``HoleFillError`` subclass of the first failing stage; the
    source table is never modified. With ``stats``, successful and failed
    attempts are both counted and timed.
    """
    cfg = config or FillConfig()
    start = time.perf_counter()
    loop = [int(v) for v in boundary]
    try:
        patch, tri = minimum_patch(table, loop)
        scales = [table.vertex_average_edge_length(v) for v in loop]
        if cfg.refine_enabled:
            refined = refine_patch(patch, scales, cfg.refine)
        else:
            refined = RefinedPatch(table=patch, scales=np.asarray(scales, dtype=np.float64))
    except HoleFillError:
        # failed attempts count towards the timing averages as well
        if stats is not None:
            stats.holes_failed += 1
            stats.record_time(time.perf_counter() - start)
        raise
    fill = HoleFill(boundary=loop, minimal_triangles=tri.triangles, weight=tri.weight,
                    patch=refined.table, scales=refined.scales, converged=refined.converged)
    elapsed = time.perf_counter() - start
    if stats is not None:
        stats.holes_filled += 1
        stats.triangles_added += refined.table.num_triangles
        stats.vertices_added += fill.inserted_vertices
        stats.splits += refined.splits
        stats.flips += refined.flips
        stats.refine_iterations += refined.iterations
        if not refined.converged:
            stats.refine_unconverged += 1
        stats.record_time(elapsed)
    log.info("filled hole of %d vertices: %d triangles (%d inserted vertices, %d flips) in %.3f ms",
             len(loop), refined.table.num_triangles, fill.inserted_vertices, refined.flips, elapsed * 1000.0)
    return fill


def fill_holes(table: CornerTable, config: Optional[FillConfig] = None) -> FillReport:
    """Find and fill every hole of ``table``.

    With ``config.on_error == 'raise'`` the first failing hole aborts the run;
    with ``'skip'`` the failure is logged, recorded in the report and the
    remaining holes are still filled. Connectivity errors raised while
    extracting boundaries always propagate.
    """
    cfg = config or FillConfig()
    if cfg.on_error not in _ON_ERROR:
        raise ValueError(f"on_error must be one of {_ON_ERROR}, got {cfg.on_error!r}")
    report = FillReport()
    loops = extract_hole_boundaries(table)
    report.stats.holes_found = len(loops)
    for idx, loop in enumerate(loops):
        try:
            report.fills.append(fill_hole(table, loop, cfg, report.stats))
        except HoleFillError as exc:
            if cfg.on_error == 'raise':
                raise
            report.failures.append((loop, exc))
            log.error("skipping hole %d (%d vertices): %s: %s", idx, len(loop), type(exc).__name__, exc)
    return report


def merge_patches(table: CornerTable, fills: Sequence[HoleFill]) -> Tuple[np.ndarray, np.ndarray]:
    """Combine the source mesh and its patches into one vertex/triangle list.

    Patch boundary vertices are mapped back onto their source indices and the
    inserted vertices are appended after the source vertices, so every filled
    hole is closed in the result.
    """
    vertices = [table.vertices]
    triangles = [table.triangles]
    offset = table.num_vertices
    for fill in fills:
        n = len(fill.boundary)
        extra = fill.patch.num_vertices - n
        mapping = np.empty(fill.patch.num_vertices, dtype=np.int64)
        mapping[:n] = fill.boundary
        mapping[n:] = offset + np.arange(extra, dtype=np.int64)
        vertices.append(fill.patch.vertices[n:])
        triangles.append(mapping[fill.patch.triangles])
        offset += extra
    return np.vstack(vertices), np.vstack(triangles)
