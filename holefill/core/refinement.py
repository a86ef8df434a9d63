"""Density-driven refinement of hole patches.

Starting from the minimal patch, triangles that are still coarse compared to
the edge lengths of the surrounding mesh are split at their centroid; each
split pass is followed by edge-flip relaxation, first around the inserted
vertices and then over the whole patch. The loop stops at the first pass
that splits nothing.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import RefineConfig, FlipPredicate
from .constants import BORDER, DENSITY_FACTOR, EPS_ANGLE
from .corner_table import CornerTable
from .geometry import edge_length, opposite_angles_exceed_pi, triangle_centroid
from .logging_utils import get_logger

log = get_logger('holefill.refinement')

__all__ = [
    'RefinedPatch',
    'refine_patch',
    'should_split',
    'count_splittable',
    'delaunay_flip_predicate',
    'always_flip_predicate',
    'resolve_flip_predicate',
    'relax_vertex',
    'relax_all',
]


@dataclass
class RefinedPatch:
    table: CornerTable
    scales: np.ndarray
    iterations: int = 0
    splits: int = 0
    flips: int = 0
    converged: bool = True


def should_split(table: CornerTable, scales: Sequence[float], t: int,
                 density_factor: float = DENSITY_FACTOR) -> bool:
    """True when triangle ``t`` is too coarse for the local target scale.

    With centroid c, every vertex v must satisfy
    ``density_factor * |c - v| > mean scale`` and ``> scale(v)``.
    """
    verts = table.triangle(t)
    pts = [table.vertex(v) for v in verts]
    centroid = triangle_centroid(*pts)
    tri_scale = (scales[verts[0]] + scales[verts[1]] + scales[verts[2]]) / 3.0
    for v, p in zip(verts, pts):
        d = density_factor * edge_length(centroid, p)
        if not (d > tri_scale and d > scales[v]):
            return False
    return True


def count_splittable(table: CornerTable, scales: Sequence[float],
                     density_factor: float = DENSITY_FACTOR) -> int:
    return sum(1 for t in range(table.num_triangles) if should_split(table, scales, t, density_factor))


def delaunay_flip_predicate(table: CornerTable, corner: int) -> bool:
    """Flip when the angles opposite the shared edge sum to more than pi."""
    o = table.corner_opposite(corner)
    if o == BORDER:
        return False
    a = table.vertex(table.corner_to_vertex(corner))
    b = table.vertex(table.corner_to_vertex(table.corner_next(corner)))
    c = table.vertex(table.corner_to_vertex(table.corner_previous(corner)))
    d = table.vertex(table.corner_to_vertex(o))
    return opposite_angles_exceed_pi(a, b, c, d, EPS_ANGLE)


def always_flip_predicate(table: CornerTable, corner: int) -> bool:
    return True


FLIP_PREDICATES: Dict[str, Callable[[CornerTable, int], bool]] = {
    'delaunay': delaunay_flip_predicate,
    'always': always_flip_predicate,
}


def resolve_flip_predicate(predicate: FlipPredicate) -> Callable[[CornerTable, int], bool]:
    if callable(predicate):
        return predicate
    try:
        return FLIP_PREDICATES[str(predicate)]
    except KeyError:
        raise ValueError(f"unknown flip predicate {predicate!r}; expected one of {sorted(FLIP_PREDICATES)}") from None


def _try_flip(table: CornerTable, corner: int, predicate) -> bool:
    if table.corner_opposite(corner) == BORDER:
        return False
    if not predicate(table, corner):
        return False
    if not table.is_flippable(corner):
        return False
    table.edge_flip(corner)
    return True


def relax_vertex(table: CornerTable, v: int, predicate) -> int:
    """Try to flip the link edge facing each corner of ``v``'s fan."""
    flips = 0
    for corner in table.vertex_corners(v):
        if _try_flip(table, corner, predicate):
            flips += 1
    return flips


def relax_all(table: CornerTable, predicate, max_sweeps: int) -> Tuple[int, bool]:
    """Sweep every corner until a sweep flips nothing or ``max_sweeps`` is hit.

    Returns (total flips, converged).
    """
    total = 0
    for sweep in range(max_sweeps):
        flips = 0
        for corner in range(table.num_corners):
            if _try_flip(table, corner, predicate):
                flips += 1
        total += flips
        log.debug("relax sweep %d: %d flips", sweep, flips)
        if flips == 0:
            return total, True
    return total, False


def refine_patch(patch: CornerTable, scales: Sequence[float],
                 config: Optional[RefineConfig] = None) -> RefinedPatch:
    """Densify ``patch`` until no triangle passes the split test.

    Parameters
    ----------
    patch : CornerTable
        Minimal patch; it is copied, the argument is left untouched.
    scales : sequence of float
        Target edge length per patch vertex (for boundary vertices, the
        average incident edge length in the source mesh).
    config : RefineConfig, optional

    Returns
    -------
    RefinedPatch
        The refined table, per-vertex scales including inserted vertices,
        and work counters. ``converged`` is False when a cap was hit.
    """
    cfg = config or RefineConfig()
    predicate = resolve_flip_predicate(cfg.flip_predicate)
    table = patch.copy()
    scale_list: List[float] = [float(s) for s in scales]
    if len(scale_list) != table.num_vertices:
        raise ValueError(f"expected {table.num_vertices} scales, got {len(scale_list)}")
    result = RefinedPatch(table=table, scales=np.asarray(scale_list))

    for iteration in range(cfg.max_iterations):
        inserted: List[int] = []
        for t in range(table.num_triangles):
            if not should_split(table, scale_list, t, cfg.density_factor):
                continue
            a, b, c = table.triangle(t)
            parent_scale = (scale_list[a] + scale_list[b] + scale_list[c]) / 3.0
            inserted.append(table.split_triangle(t))
            scale_list.append(parent_scale)
        if not inserted:
            break
        result.iterations += 1
        result.splits += len(inserted)
        local = sum(relax_vertex(table, v, predicate) for v in inserted)
        swept, settled = relax_all(table, predicate, cfg.max_relax_sweeps)
        result.flips += local + swept
        if not settled:
            result.converged = False
            log.warning("relaxation did not settle after %d sweeps (iteration %d)", cfg.max_relax_sweeps, iteration)
        log.debug("refine iteration %d: %d splits, %d local flips, %d sweep flips, %d triangles",
                  iteration, len(inserted), local, swept, table.num_triangles)
    else:
        result.converged = False
        log.warning("refinement stopped after %d iterations without reaching a fixed point", cfg.max_iterations)

    result.scales = np.asarray(scale_list)
    return result
