"""Error taxonomy for hole filling.

All errors derive from ``ValueError`` since they describe malformed input
meshes rather than transient faults; callers may catch ``HoleFillError`` to
handle any of them.
"""
from __future__ import annotations


class HoleFillError(ValueError):
    """Base class for all hole filling failures."""


class ConnectivityError(HoleFillError):
    """Mesh is not a single connected manifold component, or its boundary
    edges do not form a disjoint union of simple cycles."""


class TopologyError(HoleFillError):
    """A boundary loop does not match the connectivity around it (no shared
    incident triangle across an expected boundary edge, repeated vertices)."""


class DegenerateGeometryError(HoleFillError):
    """A flip or split would produce a zero-area or inverted triangle."""


__all__ = ['HoleFillError', 'ConnectivityError', 'TopologyError', 'DegenerateGeometryError']
