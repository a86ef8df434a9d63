"""3D triangle primitives used by the triangulation cost and the refiner.

All functions accept array-like points of shape (3,) and return Python floats
or numpy arrays. Normals follow the winding of the given vertices.
"""
from __future__ import annotations
import math
import numpy as np
from .constants import EPS_AREA

__all__ = [
	'triangle_normal','triangle_area','triangle_centroid',
	'normal_angle','corner_angle','opposite_angles_exceed_pi',
	'triangles_areas','edge_length'
]


def triangle_normal(p0, p1, p2):
	"""Unnormalized normal (p1-p0) x (p2-p0); its length is twice the area."""
	p0 = np.asarray(p0, dtype=np.float64); p1 = np.asarray(p1, dtype=np.float64); p2 = np.asarray(p2, dtype=np.float64)
	return np.cross(p1 - p0, p2 - p0)


def triangle_area(p0, p1, p2):
	return 0.5 * float(np.linalg.norm(triangle_normal(p0, p1, p2)))


def triangle_centroid(p0, p1, p2):
	return (np.asarray(p0, dtype=np.float64) + np.asarray(p1, dtype=np.float64) + np.asarray(p2, dtype=np.float64)) / 3.0


def edge_length(p0, p1):
	return float(np.linalg.norm(np.asarray(p1, dtype=np.float64) - np.asarray(p0, dtype=np.float64)))


def normal_angle(n1, n2):
	"""Angle in radians between two (not necessarily unit) triangle normals.

	Uses atan2(|n1 x n2|, n1 . n2), which is exact for parallel normals and
	stays accurate near 0 and pi. A normal of a zero-area triangle yields pi
	(worst possible).
	"""
	if 0.5 * np.linalg.norm(n1) <= EPS_AREA or 0.5 * np.linalg.norm(n2) <= EPS_AREA:
		return math.pi
	sin_part = float(np.linalg.norm(np.cross(n1, n2)))
	cos_part = float(np.dot(n1, n2))
	return math.atan2(sin_part, cos_part)


def corner_angle(apex, p1, p2):
	"""Interior angle at ``apex`` of the triangle (apex, p1, p2), radians."""
	apex = np.asarray(apex, dtype=np.float64)
	u = np.asarray(p1, dtype=np.float64) - apex
	v = np.asarray(p2, dtype=np.float64) - apex
	return math.atan2(float(np.linalg.norm(np.cross(u, v))), float(np.dot(u, v)))


def opposite_angles_exceed_pi(a, b, c, d, tol=0.0):
	"""Delaunay violation test for the edge (b, c) shared by triangles (a, b, c)
	and (d, c, b).

	Returns True when the angles at ``a`` and ``d`` sum to more than pi + tol,
	i.e. ``d`` lies inside the circumcircle of (a, b, c) once the pair is
	unfolded into a plane.
	"""
	return corner_angle(a, b, c) + corner_angle(d, b, c) > math.pi + tol


def triangles_areas(points, tris):
	"""Vectorized unsigned area for a batch of 3D triangles.

	points: (N,3) float array
	tris:   (M,3) int array
	Returns: (M,) float64 array.
	"""
	pts = np.asarray(points, dtype=np.float64)
	T = np.asarray(tris, dtype=np.int64)
	if T.size == 0:
		return np.empty((0,), dtype=float)
	p0 = pts[T[:, 0]]; p1 = pts[T[:, 1]]; p2 = pts[T[:, 2]]
	return 0.5 * np.linalg.norm(np.cross(p1 - p0, p2 - p0), axis=1)
