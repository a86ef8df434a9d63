import math

import numpy as np
import pytest

from holefill.core.corner_table import CornerTable


OCTAHEDRON_VERTICES = np.array([
    [1, 0, 0], [-1, 0, 0], [0, 1, 0], [0, -1, 0], [0, 0, 1], [0, 0, -1]
], dtype=float)
OCTAHEDRON_FACES = [
    (0, 2, 4), (2, 1, 4), (1, 3, 4), (3, 0, 4),
    (2, 0, 5), (1, 2, 5), (3, 1, 5), (0, 3, 5),
]


def _cup(n, inner_radius=1.0, outer_radius=2.0, depth=1.0, noise=0.0, seed=0):
    """Closed cup whose only hole is the inner n-gon (vertices 0..n-1).

    Layout: inner ring 0..n-1 and outer ring n..2n-1 at z=0, bottom ring
    2n..3n-1 at z=-depth, bottom centre 3n. The top annulus faces +z.
    """
    rng = np.random.RandomState(seed)
    verts = []
    for i in range(n):
        a = 2.0 * math.pi * i / n
        z = noise * rng.uniform(-1.0, 1.0)
        verts.append([inner_radius * math.cos(a), inner_radius * math.sin(a), z])
    for i in range(n):
        a = 2.0 * math.pi * i / n
        verts.append([outer_radius * math.cos(a), outer_radius * math.sin(a), 0.0])
    for i in range(n):
        a = 2.0 * math.pi * i / n
        verts.append([outer_radius * math.cos(a), outer_radius * math.sin(a), -depth])
    verts.append([0.0, 0.0, -depth])
    tris = []
    c = 3 * n
    for i in range(n):
        j = (i + 1) % n
        I_i, I_j = i, j
        O_i, O_j = n + i, n + j
        B_i, B_j = 2 * n + i, 2 * n + j
        tris += [(I_i, O_i, O_j), (I_i, O_j, I_j),
                 (O_j, O_i, B_i), (O_j, B_i, B_j),
                 (c, B_j, B_i)]
    return np.asarray(verts, dtype=float), np.asarray(tris, dtype=int), list(range(n))


def _grid(nx, ny, remove_stars=(), remove_triangles=()):
    """Planar nx-by-ny vertex grid at z=0 (faces +z), optionally with holes.

    ``remove_stars`` lists (i, j) grid vertices whose incident triangles are
    dropped; ``remove_triangles`` lists ((i, j), k) with k in {0, 1} picking a
    triangle of the quad at (i, j).
    """
    def vid(i, j):
        return j * nx + i
    verts = [[i, j, 0.0] for j in range(ny) for i in range(nx)]
    drop_v = {vid(i, j) for i, j in remove_stars}
    drop_t = {(vid(i, j), k) for (i, j), k in remove_triangles}
    tris = []
    for j in range(ny - 1):
        for i in range(nx - 1):
            a, b, c, d = vid(i, j), vid(i + 1, j), vid(i + 1, j + 1), vid(i, j + 1)
            for k, tri in enumerate(((a, b, c), (a, c, d))):
                if drop_v.intersection(tri) or (a, k) in drop_t:
                    continue
                tris.append(tri)
    return np.asarray(verts, dtype=float), np.asarray(tris, dtype=int)


@pytest.fixture
def octahedron():
    def build(drop_faces=()):
        faces = [f for i, f in enumerate(OCTAHEDRON_FACES) if i not in set(drop_faces)]
        return CornerTable(np.asarray(faces, dtype=int).reshape(-1, 3), OCTAHEDRON_VERTICES)
    return build


@pytest.fixture
def tetrahedron():
    pts = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]], dtype=float)
    tris = np.array([[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]], dtype=int)
    return CornerTable(tris, pts)


@pytest.fixture
def cup():
    def build(n, **kwargs):
        verts, tris, hole = _cup(n, **kwargs)
        return CornerTable(tris, verts), hole
    return build


@pytest.fixture
def grid():
    def build(nx, ny, **kwargs):
        verts, tris = _grid(nx, ny, **kwargs)
        return CornerTable(tris, verts)
    return build


@pytest.fixture
def check_table():
    """Assert that in-place updates left the same adjacency a full rebuild gives."""
    def check(table):
        rebuilt = CornerTable(table.triangles, table.vertices)
        for c in range(table.num_corners):
            assert table.corner_opposite(c) == rebuilt.corner_opposite(c), f"corner {c}"
        for v in range(table.num_vertices):
            corner = table.vertex_to_corner(v)
            if rebuilt.vertex_to_corner(v) == -1:
                assert corner == -1
            else:
                assert table.corner_to_vertex(corner) == v
    return check


def is_rotation(seq, target):
    seq = list(seq); target = list(target)
    if len(seq) != len(target):
        return False
    doubled = target + target
    return any(doubled[i:i + len(seq)] == seq for i in range(len(target)))


@pytest.fixture
def rotation():
    return is_rotation
