"""Public package API for the holefill toolkit.

Fills holes of triangle meshes in three stages: boundary loops are extracted
from a corner table, each loop is capped with a minimum-weight triangulation
and the cap is refined until its density matches the surrounding surface.

Example
-------
    from holefill import read_off, fill_holes, merge_patches, write_off

    table = read_off('mesh_with_holes.off')
    report = fill_holes(table)
    write_off('filled.off', *merge_patches(table, report.fills))

The deeper modules (``holefill.core.*``) are considered internal and may
change; rely on this layer for public symbols.
"""
from importlib import import_module as _imp
import logging as _logging

try:
    from importlib.metadata import version as _pkg_version, PackageNotFoundError as _NotFound
    __version__ = _pkg_version("holefill")  # populated when installed
except _NotFound:  # pragma: no cover - editable / unknown state
    __version__ = "0.0.0+dev"

_logging.getLogger(__name__).addHandler(_logging.NullHandler())

_const = _imp('holefill.core.constants')
_errors = _imp('holefill.core.errors')
_config = _imp('holefill.core.config')
_geom = _imp('holefill.core.geometry')
_ct = _imp('holefill.core.corner_table')
_boundary = _imp('holefill.core.boundary')
_tri = _imp('holefill.core.triangulation')
_refine = _imp('holefill.core.refinement')
_pipeline = _imp('holefill.core.pipeline')
_stats = _imp('holefill.core.stats')
_io = _imp('holefill.core.io')
_log = _imp('holefill.core.logging_utils')

# Connectivity
CornerTable = _ct.CornerTable
BORDER = _const.BORDER

# Pipeline stages
extract_hole_boundaries = _boundary.extract_hole_boundaries
min_weight_triangulation = _tri.min_weight_triangulation
minimum_patch = _tri.minimum_patch
DihedralAngleWeight = _tri.DihedralAngleWeight
refine_patch = _refine.refine_patch
fill_hole = _pipeline.fill_hole
fill_holes = _pipeline.fill_holes
merge_patches = _pipeline.merge_patches

# Configuration and errors
FillConfig = _config.FillConfig
RefineConfig = _config.RefineConfig
HoleFillError = _errors.HoleFillError
ConnectivityError = _errors.ConnectivityError
TopologyError = _errors.TopologyError
DegenerateGeometryError = _errors.DegenerateGeometryError

# I/O and logging
read_off = _io.read_off
write_off = _io.write_off
write_vtk = _io.write_vtk
configure_logging = _log.configure_logging

# Namespace submodules for exploratory users
geometry = _geom
triangulation = _tri
refinement = _refine
stats = _stats
constants = _const
io = _io

__all__ = [
    '__version__',
    'CornerTable', 'BORDER',
    'extract_hole_boundaries', 'min_weight_triangulation', 'minimum_patch', 'DihedralAngleWeight',
    'refine_patch', 'fill_hole', 'fill_holes', 'merge_patches',
    'FillConfig', 'RefineConfig',
    'HoleFillError', 'ConnectivityError', 'TopologyError', 'DegenerateGeometryError',
    'read_off', 'write_off', 'write_vtk', 'configure_logging',
    'geometry', 'triangulation', 'refinement', 'stats', 'constants', 'io',
]
