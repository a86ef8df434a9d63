"""Minimum-weight triangulation of hole boundaries.

Each candidate triangle (i, j, k) over loop positions i < j < k is scored by
the worst dihedral angle it forms with the triangles already known to border
it (source triangles across original boundary edges, or the triangles chosen
for the adjacent sub-spans), with its area as a tie-breaker. A classic
O(n^3) polygon dynamic program accumulates the scores over sub-spans.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .constants import EPS_AREA
from .corner_table import CornerTable
from .errors import TopologyError
from .geometry import triangle_normal, normal_angle
from .logging_utils import get_logger

logger = get_logger('holefill.triangulation')

__all__ = [
    'DihedralAngleWeight',
    'TriangulationResult',
    'min_weight_triangulation',
    'minimum_patch',
    'triangulation_weight',
    'enumerate_triangulations',
]

Triangle = Tuple[int, int, int]


@dataclass(frozen=True, order=True)
class DihedralAngleWeight:
    """Lexicographically ordered (angle, area) cost of a sub-triangulation."""
    max_angle: float = 0.0
    area: float = 0.0

    def __add__(self, other: 'DihedralAngleWeight') -> 'DihedralAngleWeight':
        return DihedralAngleWeight(self.max_angle + other.max_angle, self.area + other.area)


ZERO_WEIGHT = DihedralAngleWeight(0.0, 0.0)
INFINITE_WEIGHT = DihedralAngleWeight(math.inf, math.inf)


@dataclass
class TriangulationResult:
    triangles: np.ndarray          # (n-2, 3) local loop indices
    weight: DihedralAngleWeight
    # apex chosen for every span (i, k), k - i >= 2
    apex: Dict[Tuple[int, int], int] = field(default_factory=dict)


class _LoopCost:
    """Cost f(i, j, k) of a candidate triangle over one boundary loop."""

    def __init__(self, table: CornerTable, boundary: Sequence[int]):
        self.table = table
        self.boundary = [int(v) for v in boundary]
        self.n = len(self.boundary)
        self.points = [table.vertex(v) for v in self.boundary]
        self._source_normals: Dict[Tuple[int, int], np.ndarray] = {}
        self._normals: Dict[Triangle, np.ndarray] = {}

    def normal(self, i: int, j: int, k: int) -> np.ndarray:
        key = (i, j, k)
        n = self._normals.get(key)
        if n is None:
            P = self.points
            n = triangle_normal(P[i], P[j], P[k])
            self._normals[key] = n
        return n

    def source_normal(self, a: int, b: int) -> np.ndarray:
        """Normal of the source triangle across the loop edge between positions a and b."""
        key = (a, b)
        n = self._source_normals.get(key)
        if n is None:
            u, v = self.boundary[a], self.boundary[b]
            t = self.table.common_triangle(u, v)
            if t is None:
                raise TopologyError(f"no source triangle shares boundary edge {u}-{v}")
            n = triangle_normal(*self.table.triangle_points(t))
            self._source_normals[key] = n
        return n

    def __call__(self, i: int, j: int, k: int, apex: Dict[Tuple[int, int], int]) -> DihedralAngleWeight:
        cand = self.normal(i, j, k)
        area = 0.5 * float(np.linalg.norm(cand))
        if area <= EPS_AREA:
            return DihedralAngleWeight(math.pi, area)
        worst = 0.0
        for a, b in ((i, j), (j, k)):
            if b == a + 1:
                other = self.source_normal(a, b)
            else:
                o = apex[(a, b)]
                other = self.normal(a, o, b)
            worst = max(worst, normal_angle(cand, other))
        if i == 0 and k == self.n - 1:
            worst = max(worst, normal_angle(cand, self.source_normal(0, self.n - 1)))
        return DihedralAngleWeight(worst, area)


def _check_loop(boundary: Sequence[int]) -> None:
    if len(boundary) < 3:
        raise TopologyError(f"a hole boundary needs at least 3 vertices, got {len(boundary)}")
    if len(set(int(v) for v in boundary)) != len(boundary):
        raise TopologyError("hole boundary repeats a vertex")


def _backtrace(apex: Dict[Tuple[int, int], int], n: int) -> List[Triangle]:
    tris: List[Triangle] = []
    stack: List[Tuple[bool, int, int, int]] = [(False, 0, n - 1, -1)]
    while stack:
        emit, i, k, o = stack.pop()
        if emit:
            tris.append((i, o, k))
            continue
        if k - i == 2:
            tris.append((i, i + 1, k))
            continue
        o = apex[(i, k)]
        # popped in reverse: left span, (i, o, k), right span
        if o != k - 1:
            stack.append((False, o, k, -1))
        stack.append((True, i, k, o))
        if o != i + 1:
            stack.append((False, i, o, -1))
    return tris


def min_weight_triangulation(table: CornerTable, boundary: Sequence[int]) -> TriangulationResult:
    """Triangulate the polygon formed by ``boundary`` with minimum weight.

    Parameters
    ----------
    table : CornerTable
        Source mesh; read only.
    boundary : sequence of int
        Hole loop as returned by ``extract_hole_boundaries``.

    Returns
    -------
    TriangulationResult
        ``n-2`` triangles in local loop indices (0..n-1) and the total weight.
        Ties are resolved towards the smallest apex index, so identical input
        always yields identical output.

    Raises
    ------
    TopologyError
        If the loop is too short, repeats a vertex, or one of its edges has
        no incident source triangle.
    """
    _check_loop(boundary)
    cost = _LoopCost(table, boundary)
    n = cost.n
    W: Dict[Tuple[int, int], DihedralAngleWeight] = {}
    apex: Dict[Tuple[int, int], int] = {}
    for i in range(n - 1):
        W[(i, i + 1)] = ZERO_WEIGHT
    for i in range(n - 2):
        W[(i, i + 2)] = cost(i, i + 1, i + 2, apex)
        apex[(i, i + 2)] = i + 1
    for width in range(3, n):
        for i in range(n - width):
            k = i + width
            best = INFINITE_WEIGHT
            best_m = -1
            for m in range(i + 1, k):
                total = W[(i, m)] + W[(m, k)] + cost(i, m, k, apex)
                if total < best:
                    best = total
                    best_m = m
            W[(i, k)] = best
            apex[(i, k)] = best_m
    tris = _backtrace(apex, n)
    weight = W[(0, n - 1)]
    logger.debug("triangulated loop of %d vertices: %d triangles, weight=(%.6g, %.6g)",
                 n, len(tris), weight.max_angle, weight.area)
    return TriangulationResult(np.asarray(tris, dtype=np.int64).reshape(-1, 3), weight, apex)


def minimum_patch(table: CornerTable, boundary: Sequence[int]) -> Tuple[CornerTable, TriangulationResult]:
    """Build the minimal patch for one hole as a standalone corner table.

    The patch's vertex ``i`` is ``boundary[i]`` of the source mesh.
    """
    result = min_weight_triangulation(table, boundary)
    verts = table.vertices[np.asarray(boundary, dtype=np.int64)]
    return CornerTable(result.triangles, verts), result


def triangulation_weight(table: CornerTable, boundary: Sequence[int], triangles,
                         apex: Optional[Dict[Tuple[int, int], int]] = None) -> DihedralAngleWeight:
    """Weight of an arbitrary triangulation of the loop under the DP cost.

    ``triangles`` holds local loop indices. Without ``apex`` each triangle is
    scored against the triangles of the same triangulation that close its
    inner sub-spans. With ``apex`` (e.g. ``TriangulationResult.apex``) the
    neighbour across an inner span is looked up in that table instead, which
    is the cost the dynamic program minimizes exactly.
    """
    _check_loop(boundary)
    cost = _LoopCost(table, boundary)
    n = cost.n
    tris = [tuple(sorted(int(x) for x in t)) for t in np.asarray(triangles).reshape(-1, 3)]
    if len(tris) != n - 2:
        raise ValueError(f"expected {n - 2} triangles for a loop of {n} vertices, got {len(tris)}")
    own: Dict[Tuple[int, int], int] = {}
    for i, j, k in tris:
        if (i, k) in own:
            raise ValueError(f"span ({i}, {k}) is closed by two triangles")
        own[(i, k)] = j
    lookup = own if apex is None else apex
    total = ZERO_WEIGHT
    for i, j, k in tris:
        for a, b in ((i, j), (j, k)):
            if b != a + 1 and (a, b) not in own:
                raise ValueError(f"triangles do not triangulate the loop: span ({a}, {b}) is open")
        total = total + cost(i, j, k, lookup)
    return total


def enumerate_triangulations(n: int) -> Iterator[List[Triangle]]:
    """Yield every triangulation of a convex n-gon (Catalan(n-2) many).

    Triangles are emitted in the same left / apex / right order as the
    dynamic-programming backtrace.
    """
    memo: Dict[Tuple[int, int], List[List[Triangle]]] = {}

    def spans(i: int, k: int) -> List[List[Triangle]]:
        if k - i < 2:
            return [[]]
        if (i, k) in memo:
            return memo[(i, k)]
        out: List[List[Triangle]] = []
        for m in range(i + 1, k):
            for left in spans(i, m):
                for right in spans(m, k):
                    out.append(left + [(i, m, k)] + right)
        memo[(i, k)] = out
        return out

    if n < 3:
        return
    yield from spans(0, n - 1)
