"""Hole boundary extraction.

A single breadth-first sweep over the triangles collects every directed
boundary edge; the edges are then chained into closed loops, one per hole.
"""
from __future__ import annotations

from collections import deque
from typing import Dict, List, Sequence

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components

from .constants import BORDER
from .corner_table import CornerTable
from .errors import ConnectivityError
from .logging_utils import get_logger

logger = get_logger('holefill.boundary')

HoleBoundary = List[int]

__all__ = ['HoleBoundary', 'extract_hole_boundaries', 'count_hole_boundaries',
           'count_components', 'is_boundary_loop']


def count_components(table: CornerTable) -> int:
    """Number of edge-connected triangle components of ``table``."""
    m = table.num_triangles
    if m == 0:
        return 0
    rows, cols = [], []
    for corner in range(table.num_corners):
        opp = table.corner_opposite(corner)
        if opp != BORDER:
            rows.append(table.corner_triangle(corner))
            cols.append(table.corner_triangle(opp))
    adj = coo_matrix((np.ones(len(rows), dtype=np.int8), (rows, cols)), shape=(m, m))
    n_comp, _ = connected_components(adj, directed=False)
    return int(n_comp)


def _collect_boundary_edges(table: CornerTable) -> Dict[int, int]:
    visited = np.zeros(table.num_triangles, dtype=bool)
    edges: Dict[int, int] = {}
    queue = deque([0])
    while queue:
        t = queue.popleft()
        if visited[t]:
            continue
        visited[t] = True
        for corner in (3 * t, 3 * t + 1, 3 * t + 2):
            opp = table.corner_opposite(corner)
            if opp != BORDER:
                queue.append(table.corner_triangle(opp))
                continue
            origin = table.corner_to_vertex(table.corner_next(corner))
            dest = table.corner_to_vertex(table.corner_previous(corner))
            if origin in edges:
                raise ConnectivityError(
                    f"vertex {origin} starts two boundary edges ({origin}->{edges[origin]}, {origin}->{dest}); "
                    "boundary is not a disjoint union of simple cycles")
            edges[origin] = dest
    if not visited.all():
        missed = int((~visited).sum())
        raise ConnectivityError(
            f"mesh is not a single connected component: traversal missed {missed} of "
            f"{table.num_triangles} triangles ({count_components(table)} components)")
    return edges


def extract_hole_boundaries(table: CornerTable) -> List[HoleBoundary]:
    """Return one ordered vertex loop per hole of ``table``.

    Each loop lists the vertices so that the loop runs against the winding of
    the triangles along it, which is the winding a cap needs to agree with
    the surrounding surface. Loops are emitted in order of their smallest
    starting origin vertex.

    Raises
    ------
    ConnectivityError
        If the mesh is not one connected component or a vertex starts more
        than one boundary edge.
    """
    if table.num_triangles == 0:
        return []
    edges = _collect_boundary_edges(table)
    loops: List[HoleBoundary] = []
    while edges:
        start = min(edges)
        chain = [start]
        current = edges.pop(start)
        while current in edges:
            chain.append(current)
            current = edges.pop(current)
        if current != start:
            raise ConnectivityError(f"boundary chain starting at vertex {start} ends at {current} without closing")
        chain.reverse()
        loops.append(chain)
        logger.debug("hole boundary %d: %d vertices", len(loops) - 1, len(chain))
    logger.info("found %d hole boundar%s", len(loops), 'y' if len(loops) == 1 else 'ies')
    return loops


def count_hole_boundaries(table: CornerTable) -> int:
    return len(extract_hole_boundaries(table))


def is_boundary_loop(table: CornerTable, loop: Sequence[int]) -> bool:
    """True if every consecutive pair of ``loop`` (wrapping) is a boundary edge
    of ``table`` traversed against triangle winding, without repeated vertices."""
    n = len(loop)
    if n < 3 or len(set(loop)) != n:
        return False
    directed = set(table.boundary_edges())
    return all((int(loop[(i + 1) % n]), int(loop[i])) in directed for i in range(n))
