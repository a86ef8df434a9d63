"""Lightweight mesh file I/O for holefill.

Provides readers/writers for common mesh formats without heavy dependencies:
- read_off / write_off: Object File Format (ASCII)
- write_vtk: Export legacy VTK format for ParaView/VisIt visualization

Canonical in-memory format:
    vertices: (N, 3) float64 array
    triangles: (M, 3) int64 array
"""
from __future__ import annotations
import numpy as np
from typing import Tuple, Optional, Dict
import warnings

from .corner_table import CornerTable
from .logging_utils import get_logger

log = get_logger('holefill.io')

__all__ = ['read_off', 'read_off_arrays', 'write_off', 'write_vtk']

_OFF_VARIANTS = ('OFF', 'COFF', 'NOFF', 'CNOFF')


def _off_tokens(lines):
    for line in lines:
        line = line.split('#', 1)[0].strip()
        if line:
            yield line


def read_off_arrays(filepath: str) -> Tuple[np.ndarray, np.ndarray]:
    """Read an ASCII OFF file into (vertices, triangles) arrays.

    Polygonal faces with more than three vertices are fan-triangulated from
    their first vertex. Per-face colour values after the indices are ignored.

    Raises
    ------
    ValueError
        If the header or counts are missing, or the file is truncated.
    FileNotFoundError
        If file doesn't exist
    """
    with open(filepath, 'r') as f:
        lines = list(_off_tokens(f))
    if not lines:
        raise ValueError(f"Empty file: {filepath}")

    header = lines[0].split()
    if not header[0].endswith('OFF'):
        raise ValueError(f"Missing OFF header in {filepath}")
    # colour and normal variants carry extra values after x y z
    if header[0] not in _OFF_VARIANTS:
        raise ValueError(f"Unsupported OFF variant: {header[0]}")
    rest = header[1:]
    pos = 1
    if not rest:
        if len(lines) < 2:
            raise ValueError("Missing OFF counts line")
        rest = lines[1].split()
        pos = 2
    try:
        n_verts, n_faces = int(rest[0]), int(rest[1])
    except (IndexError, ValueError):
        raise ValueError(f"Invalid OFF counts line: {' '.join(rest)!r}") from None

    if len(lines) < pos + n_verts + n_faces:
        raise ValueError(f"OFF file truncated: expected {n_verts} vertices and {n_faces} faces")

    vertices = np.empty((n_verts, 3), dtype=np.float64)
    for i in range(n_verts):
        parts = lines[pos + i].split()
        if len(parts) < 3:
            raise ValueError(f"Vertex line {i} has fewer than 3 coordinates")
        vertices[i] = [float(parts[0]), float(parts[1]), float(parts[2])]
    pos += n_verts

    triangles = []
    for i in range(n_faces):
        parts = lines[pos + i].split()
        k = int(parts[0])
        idx = [int(x) for x in parts[1:1 + k]]
        if k < 3 or len(idx) != k:
            raise ValueError(f"Face line {i} is malformed: {lines[pos + i]!r}")
        for j in range(1, k - 1):
            triangles.append((idx[0], idx[j], idx[j + 1]))
    tris = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    log.debug("read %s: %d vertices, %d triangles", filepath, n_verts, len(tris))
    return vertices, tris


def read_off(filepath: str) -> CornerTable:
    """Read an ASCII OFF file into a ``CornerTable``.

    Examples
    --------
    >>> table = read_off('bunny_holes.off')
    >>> from holefill import fill_holes
    >>> report = fill_holes(table)
    """
    vertices, triangles = read_off_arrays(filepath)
    return CornerTable(triangles, vertices)


def _as_mesh_arrays(vertices, triangles):
    vertices = np.asarray(vertices, dtype=np.float64)
    triangles = np.asarray(triangles)
    if vertices.ndim != 2 or vertices.shape[1] not in (2, 3):
        raise ValueError(f"vertices must be (N, 2) or (N, 3), got shape {vertices.shape}")
    if triangles.ndim != 2 or triangles.shape[1] != 3:
        raise ValueError(f"triangles must be (M, 3), got shape {triangles.shape}")
    # Ensure 3D coordinates (add z=0 if 2D)
    if vertices.shape[1] == 2:
        vertices = np.column_stack([vertices, np.zeros(len(vertices))])
    return vertices, triangles


def write_off(filepath: str, vertices: np.ndarray, triangles: np.ndarray) -> None:
    """Write vertices and triangles as an ASCII OFF file."""
    vertices, triangles = _as_mesh_arrays(vertices, triangles)
    with open(filepath, 'w') as f:
        f.write("OFF\n")
        f.write(f"{len(vertices)} {len(triangles)} 0\n")
        for pt in vertices:
            f.write(f"{pt[0]:.16e} {pt[1]:.16e} {pt[2]:.16e}\n")
        for tri in triangles:
            f.write(f"3 {tri[0]} {tri[1]} {tri[2]}\n")


def _write_vtk_fields(f, data_dict, kind):
    for name, data in data_dict.items():
        data = np.asarray(data)
        if data.ndim == 1:
            f.write(f"SCALARS {name} double 1\n")
            f.write("LOOKUP_TABLE default\n")
            for val in data:
                f.write(f"{val:.16e}\n")
        elif data.ndim == 2 and data.shape[1] in (2, 3):
            if data.shape[1] == 2:
                data = np.column_stack([data, np.zeros(len(data))])
            f.write(f"VECTORS {name} double\n")
            for vec in data:
                f.write(f"{vec[0]:.16e} {vec[1]:.16e} {vec[2]:.16e}\n")
        else:
            warnings.warn(f"Skipping {kind}['{name}'] with unsupported shape {data.shape}")


def write_vtk(filepath: str,
              vertices: np.ndarray,
              triangles: np.ndarray,
              point_data: Optional[Dict[str, np.ndarray]] = None,
              cell_data: Optional[Dict[str, np.ndarray]] = None,
              title: str = "holefill mesh") -> None:
    """Write a triangle mesh to legacy VTK format (ASCII).

    Parameters
    ----------
    filepath : str
        Output path (.vtk extension recommended)
    vertices : (N, 2) or (N, 3) array
        Vertex coordinates; 2D input gets z=0.
    triangles : (M, 3) array
        Triangle connectivity (0-indexed)
    point_data : dict, optional
        Scalar (N,) or vector (N, 2|3) fields at vertices.
    cell_data : dict, optional
        Scalar (M,) or vector (M, 2|3) fields at triangles.
    title : str
        Dataset title/description

    Examples
    --------
    >>> vertices, triangles = merge_patches(table, report.fills)
    >>> write_vtk('filled.vtk', vertices, triangles)
    """
    vertices, triangles = _as_mesh_arrays(vertices, triangles)
    num_points = len(vertices)
    num_triangles = len(triangles)

    with open(filepath, 'w') as f:
        f.write("# vtk DataFile Version 2.0\n")
        f.write(f"{title}\n")
        f.write("ASCII\n")
        f.write("DATASET UNSTRUCTURED_GRID\n")

        f.write(f"POINTS {num_points} double\n")
        for pt in vertices:
            f.write(f"{pt[0]:.16e} {pt[1]:.16e} {pt[2]:.16e}\n")

        # Format: numIndices v0 v1 v2
        f.write(f"\nCELLS {num_triangles} {num_triangles * 4}\n")
        for tri in triangles:
            f.write(f"3 {tri[0]} {tri[1]} {tri[2]}\n")

        # Cell types (5 = triangle in VTK)
        f.write(f"\nCELL_TYPES {num_triangles}\n")
        for _ in range(num_triangles):
            f.write("5\n")

        if point_data:
            f.write(f"\nPOINT_DATA {num_points}\n")
            _write_vtk_fields(f, point_data, 'point_data')
        if cell_data:
            f.write(f"\nCELL_DATA {num_triangles}\n")
            _write_vtk_fields(f, cell_data, 'cell_data')
