"""Corner table: indexed adjacency structure for triangle meshes.

Corner ``c`` belongs to triangle ``c // 3`` and sits in slot ``c % 3``. The
opposite corner of ``c`` is the corner of the neighbouring triangle facing the
edge between ``next(c)`` and ``previous(c)``; boundary edges have ``BORDER``.

The table is an index-stable arena: ``edge_flip`` rewrites two triangles in
place and ``split_triangle`` reuses the parent slot and appends two children,
so corner and triangle indices handed out before a local update keep pointing
at the same slot afterwards.
"""
from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from .constants import BORDER, EPS_AREA
from .errors import ConnectivityError, DegenerateGeometryError, TopologyError
from .geometry import edge_length, triangle_area, triangle_centroid, triangle_normal

__all__ = ['CornerTable']


class CornerTable:
    """Mutable corner table over 3D vertex positions.

    Parameters
    ----------
    triangles : (M, 3) array-like of int
        Vertex indices per triangle with consistent winding.
    vertices : (N, 3) array-like of float
        Vertex positions.
    """

    def __init__(self, triangles, vertices):
        tris = np.asarray(triangles, dtype=np.int64)
        if tris.size == 0:
            tris = tris.reshape(0, 3)
        if tris.ndim != 2 or tris.shape[1] != 3:
            raise ValueError(f"triangles must have shape (M, 3), got {tris.shape}")
        pts = np.asarray(vertices, dtype=np.float64)
        if pts.size == 0:
            pts = pts.reshape(0, 3)
        if pts.ndim != 2 or pts.shape[1] != 3:
            raise ValueError(f"vertices must have shape (N, 3), got {pts.shape}")
        if tris.size and (tris.min() < 0 or tris.max() >= pts.shape[0]):
            raise ValueError("triangle references a vertex index out of range")

        self._points: List[np.ndarray] = [np.array(p, dtype=np.float64) for p in pts]
        self._corner_vertex: List[int] = [int(v) for v in tris.reshape(-1)]
        self._opposite: List[int] = [BORDER] * len(self._corner_vertex)
        self._vertex_corner: List[int] = [BORDER] * len(self._points)
        self._build_adjacency()

    def _build_adjacency(self) -> None:
        edge_corner: Dict[Tuple[int, int], int] = {}
        for t in range(self.num_triangles):
            a, b, c = self.triangle(t)
            if a == b or b == c or a == c:
                raise ConnectivityError(f"triangle {t} repeats a vertex: {(a, b, c)}")
        for corner in range(self.num_corners):
            key = (self.corner_to_vertex(self.corner_next(corner)),
                   self.corner_to_vertex(self.corner_previous(corner)))
            if key in edge_corner:
                raise ConnectivityError(
                    f"directed edge {key[0]}->{key[1]} is used by triangles "
                    f"{self.corner_triangle(edge_corner[key])} and {self.corner_triangle(corner)} "
                    "(non-manifold edge or inconsistent winding)")
            edge_corner[key] = corner
        for (a, b), corner in edge_corner.items():
            self._opposite[corner] = edge_corner.get((b, a), BORDER)
        for corner, v in enumerate(self._corner_vertex):
            # Prefer a corner whose fan starts at the border so boundary fans
            # are listed from one end to the other.
            if self._vertex_corner[v] == BORDER or self._opposite[self.corner_next(corner)] == BORDER:
                self._vertex_corner[v] = corner

    # ------------------------------------------------------------------
    # Sizes and raw buffers
    # ------------------------------------------------------------------
    @property
    def num_vertices(self) -> int:
        return len(self._points)

    @property
    def num_triangles(self) -> int:
        return len(self._corner_vertex) // 3

    @property
    def num_corners(self) -> int:
        return len(self._corner_vertex)

    @property
    def vertices(self) -> np.ndarray:
        """(N, 3) float64 copy of the vertex positions."""
        if not self._points:
            return np.empty((0, 3), dtype=np.float64)
        return np.vstack(self._points)

    @property
    def triangles(self) -> np.ndarray:
        """(M, 3) int64 copy of the triangle list."""
        return np.asarray(self._corner_vertex, dtype=np.int64).reshape(-1, 3)

    def vertex(self, v: int) -> np.ndarray:
        return self._points[v]

    def triangle(self, t: int) -> Tuple[int, int, int]:
        cv = self._corner_vertex
        return cv[3 * t], cv[3 * t + 1], cv[3 * t + 2]

    def triangle_points(self, t: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        a, b, c = self.triangle(t)
        return self._points[a], self._points[b], self._points[c]

    def copy(self) -> 'CornerTable':
        return CornerTable(self.triangles, self.vertices)

    # ------------------------------------------------------------------
    # Corner navigation
    # ------------------------------------------------------------------
    @staticmethod
    def corner_triangle(corner: int) -> int:
        return corner // 3

    @staticmethod
    def corner_next(corner: int) -> int:
        return 3 * (corner // 3) + (corner + 1) % 3

    @staticmethod
    def corner_previous(corner: int) -> int:
        return 3 * (corner // 3) + (corner + 2) % 3

    def corner_opposite(self, corner: int) -> int:
        return self._opposite[corner]

    def corner_to_vertex(self, corner: int) -> int:
        return self._corner_vertex[corner]

    def vertex_to_corner(self, v: int) -> int:
        return self._vertex_corner[v]

    def corner_neighbours(self, corner: int) -> List[int]:
        """Corners sharing the vertex of ``corner``, in fan order.

        For an interior vertex the fan starts at ``corner`` and closes on
        itself. For a boundary vertex the fan runs from one border edge to
        the other and ``corner`` may sit anywhere inside it.
        """
        fan = [corner]
        limit = self.num_corners
        current = corner
        while len(fan) <= limit:
            opp = self._opposite[self.corner_next(current)]
            if opp == BORDER:
                break
            current = self.corner_next(opp)
            if current == corner:
                return fan
            fan.append(current)
        else:
            raise ConnectivityError(f"corner fan around vertex {self.corner_to_vertex(corner)} does not terminate")
        # Hit the border: walk the other way from the start
        current = corner
        head: List[int] = []
        while len(fan) + len(head) <= limit:
            opp = self._opposite[self.corner_previous(current)]
            if opp == BORDER:
                break
            current = self.corner_previous(opp)
            head.append(current)
        head.reverse()
        return head + fan

    def vertex_corners(self, v: int) -> List[int]:
        c = self._vertex_corner[v]
        if c == BORDER:
            return []
        return self.corner_neighbours(c)

    def vertex_triangles(self, v: int) -> List[int]:
        return [self.corner_triangle(c) for c in self.vertex_corners(v)]

    def one_ring(self, v: int) -> List[int]:
        """Neighbouring vertices of ``v`` in fan order, without repeats."""
        ring: List[int] = []
        seen = set()
        for c in self.vertex_corners(v):
            for u in (self.corner_to_vertex(self.corner_next(c)), self.corner_to_vertex(self.corner_previous(c))):
                if u not in seen:
                    seen.add(u)
                    ring.append(u)
        return ring

    def is_boundary_vertex(self, v: int) -> bool:
        return any(self._opposite[self.corner_next(c)] == BORDER or self._opposite[self.corner_previous(c)] == BORDER
                   for c in self.vertex_corners(v))

    def common_triangle(self, u: int, v: int) -> Optional[int]:
        """First triangle (in ``u``'s fan order) incident to both ``u`` and ``v``."""
        v_tris = set(self.vertex_triangles(v))
        for t in self.vertex_triangles(u):
            if t in v_tris:
                return t
        return None

    def boundary_edges(self) -> Iterator[Tuple[int, int]]:
        """Directed boundary edges ``(origin, destination)`` following triangle winding."""
        for corner in range(self.num_corners):
            if self._opposite[corner] == BORDER:
                yield (self.corner_to_vertex(self.corner_next(corner)),
                       self.corner_to_vertex(self.corner_previous(corner)))

    def vertex_average_edge_length(self, v: int) -> float:
        ring = self.one_ring(v)
        if not ring:
            return 0.0
        p = self._points[v]
        return float(np.mean([edge_length(p, self._points[u]) for u in ring]))

    # ------------------------------------------------------------------
    # Local updates
    # ------------------------------------------------------------------
    def _flip_defect(self, corner: int):
        """Return ``(error_class, message)`` when the edge opposite ``corner``
        cannot be flipped, else None."""
        o = self._opposite[corner]
        if o == BORDER:
            return TopologyError, f"edge opposite corner {corner} is a boundary edge"
        n = self.corner_next(corner)
        p = self.corner_previous(corner)
        v0, v1, v2 = self._corner_vertex[corner], self._corner_vertex[n], self._corner_vertex[p]
        v3 = self._corner_vertex[o]
        if v0 == v3:
            return TopologyError, f"flip across corner {corner} would connect vertex {v0} to itself"
        if v3 in self.one_ring(v0):
            return TopologyError, f"edge {v0}-{v3} already exists"
        P = self._points
        old_normal = triangle_normal(P[v0], P[v1], P[v2]) + triangle_normal(P[v3], P[v2], P[v1])
        na = triangle_normal(P[v0], P[v1], P[v3])
        nb = triangle_normal(P[v0], P[v3], P[v2])
        if 0.5 * np.linalg.norm(na) <= EPS_AREA or 0.5 * np.linalg.norm(nb) <= EPS_AREA:
            return DegenerateGeometryError, f"flip across corner {corner} creates a zero-area triangle"
        if float(np.dot(na, old_normal)) <= 0.0 or float(np.dot(nb, old_normal)) <= 0.0:
            return DegenerateGeometryError, f"flip across corner {corner} creates an inverted triangle"
        return None

    def is_flippable(self, corner: int) -> bool:
        return self._flip_defect(corner) is None

    def edge_flip(self, corner: int) -> None:
        """Flip the edge opposite ``corner``.

        The quad (v0, v1, v3, v2) formed by the triangle of ``corner`` (v0 at
        ``corner``) and its neighbour (v3 at the opposite corner) is
        re-triangulated along v0-v3. ``corner`` stays on v0 and the new
        diagonal is faced by ``corner_next(corner)``.
        """
        defect = self._flip_defect(corner)
        if defect is not None:
            err_cls, msg = defect
            raise err_cls(msg)
        cv = self._corner_vertex
        opp = self._opposite
        c = corner
        n = self.corner_next(c)
        p = self.corner_previous(c)
        o = opp[c]
        on = self.corner_next(o)
        op = self.corner_previous(o)
        v0, v1, v2, v3 = cv[c], cv[n], cv[p], cv[o]
        ext_a = opp[p]   # across v0-v1
        ext_b = opp[n]   # across v2-v0
        ext_c = opp[on]  # across v1-v3
        ext_d = opp[op]  # across v3-v2

        # (v0, v1, v3) and (v3, v2, v0)
        cv[p] = v3
        cv[op] = v0
        opp[c] = ext_c
        opp[p] = ext_a
        opp[n] = on
        opp[on] = n
        opp[o] = ext_b
        opp[op] = ext_d
        for ext, mine in ((ext_a, p), (ext_b, o), (ext_c, c), (ext_d, op)):
            if ext != BORDER:
                opp[ext] = mine
        self._vertex_corner[v0] = c
        self._vertex_corner[v1] = n
        self._vertex_corner[v2] = on
        self._vertex_corner[v3] = o

    def add_vertex(self, point) -> int:
        self._points.append(np.array(point, dtype=np.float64).reshape(3))
        self._vertex_corner.append(BORDER)
        return len(self._points) - 1

    def split_triangle(self, t: int, point=None) -> int:
        """Insert a vertex inside triangle ``t`` and replace it by three children.

        Children are (x, v1, v2) in slot ``t``, then (v0, x, v2) and
        (v0, v1, x) appended at the end. ``point`` defaults to the centroid.
        Returns the index of the new vertex.
        """
        v0, v1, v2 = self.triangle(t)
        P = self._points
        if point is None:
            point = triangle_centroid(P[v0], P[v1], P[v2])
        point = np.asarray(point, dtype=np.float64).reshape(3)
        if triangle_area(P[v0], P[v1], P[v2]) <= EPS_AREA:
            raise DegenerateGeometryError(f"cannot split zero-area triangle {t} {(v0, v1, v2)}")
        parent = triangle_normal(P[v0], P[v1], P[v2])
        for child in ((point, P[v1], P[v2]), (P[v0], point, P[v2]), (P[v0], P[v1], point)):
            nc = triangle_normal(*child)
            if 0.5 * np.linalg.norm(nc) <= EPS_AREA or float(np.dot(nc, parent)) <= 0.0:
                raise DegenerateGeometryError(f"split point {point.tolist()} is not strictly inside triangle {t}")

        x = self.add_vertex(point)
        cv = self._corner_vertex
        opp = self._opposite
        base = 3 * t
        o1 = opp[base + 1]  # across v2-v0
        o2 = opp[base + 2]  # across v0-v1
        a0 = len(cv)
        b0 = a0 + 3
        cv[base] = x
        cv.extend((v0, x, v2, v0, v1, x))
        opp.extend([BORDER] * 6)
        # slot t keeps its opposite across v1-v2
        opp[base + 1] = a0
        opp[a0] = base + 1
        opp[base + 2] = b0
        opp[b0] = base + 2
        opp[a0 + 2] = b0 + 1
        opp[b0 + 1] = a0 + 2
        opp[a0 + 1] = o1
        opp[b0 + 2] = o2
        if o1 != BORDER:
            opp[o1] = a0 + 1
        if o2 != BORDER:
            opp[o2] = b0 + 2
        self._vertex_corner[x] = base
        self._vertex_corner[v0] = a0
        self._vertex_corner[v1] = base + 1
        self._vertex_corner[v2] = base + 2
        return x

    def __repr__(self) -> str:
        return f"CornerTable(vertices={self.num_vertices}, triangles={self.num_triangles})"
