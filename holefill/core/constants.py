"""Central numerical tolerances and small geometry constants.

This module centralizes tiny numeric thresholds used across the codebase so
they can be tuned consistently and referenced without scattering literals.
"""
from __future__ import annotations

import math

# Connectivity sentinel: a corner with no opposite corner (boundary edge)
BORDER: int = -1

# Geometry tolerances
EPS_AREA: float = 1e-12           # minimum positive (absolute) triangle area
EPS_ANGLE: float = 1e-9           # tolerance for angle comparisons (radians)

# Refinement
DENSITY_FACTOR: float = math.sqrt(2.0)   # centroid-distance multiplier in the split test

__all__ = [
    'BORDER',
    'EPS_AREA',
    'EPS_ANGLE',
    'DENSITY_FACTOR',
]
