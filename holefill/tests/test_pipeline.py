import numpy as np
import pytest

from holefill.core import pipeline
from holefill.core.boundary import extract_hole_boundaries
from holefill.core.config import FillConfig, RefineConfig
from holefill.core.corner_table import CornerTable
from holefill.core.errors import DegenerateGeometryError, ConnectivityError
from holefill.core.pipeline import fill_hole, fill_holes, merge_patches
from holefill.core.stats import FillStats


def assert_closed(vertices, triangles):
    merged = CornerTable(triangles, vertices)
    assert list(merged.boundary_edges()) == []
    assert extract_hole_boundaries(merged) == []
    return merged


def test_closed_mesh_is_a_no_op(octahedron):
    table = octahedron()
    report = fill_holes(table)
    assert report.fills == [] and report.failures == []
    assert report.stats.holes_found == 0
    vertices, triangles = merge_patches(table, report.fills)
    assert np.array_equal(triangles, table.triangles)
    assert np.allclose(vertices, table.vertices)


def test_two_triangle_holes_closed(octahedron):
    # faces (0,2,4) and (3,1,5) share no vertex
    table = octahedron(drop_faces=[0, 6])
    report = fill_holes(table)
    assert report.stats.holes_found == 2
    assert [len(f.boundary) for f in report.fills] == [3, 3]
    assert all(f.patch.num_triangles == 1 and f.inserted_vertices == 0 for f in report.fills)
    vertices, triangles = merge_patches(table, report.fills)
    assert len(triangles) == 8 and len(vertices) == 6
    assert_closed(vertices, triangles)


def test_cup_fill_is_closed_and_refined(cup):
    table, _ = cup(12, outer_radius=1.05)
    report = fill_holes(table)
    assert report.stats.holes_filled == 1
    fill = report.fills[0]
    assert fill.converged
    assert fill.inserted_vertices > 0
    assert len(fill.minimal_triangles) == 10
    vertices, triangles = merge_patches(table, report.fills)
    assert len(vertices) == table.num_vertices + fill.inserted_vertices
    merged = assert_closed(vertices, triangles)
    assert merged.num_triangles == table.num_triangles + fill.patch.num_triangles
    stats = report.stats.to_dict()
    assert stats['vertices_added'] == fill.inserted_vertices
    assert stats['success_rate'] == 1.0


def test_refinement_can_be_disabled(cup):
    table, _ = cup(9)
    report = fill_holes(table, FillConfig(refine_enabled=False))
    fill = report.fills[0]
    assert fill.patch.num_triangles == 7
    assert np.array_equal(fill.patch.triangles, fill.minimal_triangles)
    assert report.stats.splits == 0


def test_fill_hole_does_not_modify_source(cup):
    table, _ = cup(8, noise=0.1)
    before = (table.vertices.copy(), table.triangles.copy())
    loop = extract_hole_boundaries(table)[0]
    stats = FillStats()
    fill = fill_hole(table, loop, FillConfig(refine=RefineConfig(max_iterations=2)), stats)
    assert np.array_equal(table.vertices, before[0])
    assert np.array_equal(table.triangles, before[1])
    assert fill.boundary == loop
    assert stats.holes_filled == 1 and stats.time_total > 0.0


def _failing_refine(monkeypatch, fail_sizes):
    real = pipeline.refine_patch

    def refine(patch, scales, config=None):
        if patch.num_vertices in fail_sizes:
            raise DegenerateGeometryError("forced failure")
        return real(patch, scales, config)

    monkeypatch.setattr(pipeline, 'refine_patch', refine)


def test_skip_mode_records_failures(octahedron, monkeypatch):
    table = octahedron(drop_faces=[0, 6])
    calls = {'n': 0}
    real = pipeline.refine_patch

    def refine(patch, scales, config=None):
        calls['n'] += 1
        if calls['n'] == 1:
            raise DegenerateGeometryError("forced failure")
        return real(patch, scales, config)

    monkeypatch.setattr(pipeline, 'refine_patch', refine)
    report = fill_holes(table, FillConfig(on_error='skip'))
    assert len(report.fills) == 1 and len(report.failures) == 1
    loop, exc = report.failures[0]
    assert isinstance(exc, DegenerateGeometryError)
    assert len(loop) == 3
    assert report.stats.holes_failed == 1 and report.stats.holes_filled == 1
    vertices, triangles = merge_patches(table, report.fills)
    merged = CornerTable(triangles, vertices)
    assert len(extract_hole_boundaries(merged)) == 1


def test_raise_mode_propagates(octahedron, monkeypatch):
    _failing_refine(monkeypatch, {3})
    with pytest.raises(DegenerateGeometryError):
        fill_holes(octahedron(drop_faces=[0]))


def test_connectivity_errors_always_propagate(grid):
    table = grid(8, 8, remove_stars=[(2, 2), (4, 4)])
    with pytest.raises(ConnectivityError):
        fill_holes(table, FillConfig(on_error='skip'))


def test_invalid_on_error_rejected(octahedron):
    with pytest.raises(ValueError, match="on_error"):
        fill_holes(octahedron(), FillConfig(on_error='ignore'))


def test_planar_pentagon_fill_is_reproducible(cup):
    table, _ = cup(5)
    first = fill_holes(table).fills[0]
    second = fill_holes(table).fills[0]
    assert len(first.minimal_triangles) == 3
    assert np.array_equal(first.minimal_triangles, second.minimal_triangles)
    assert np.array_equal(first.patch.triangles, second.patch.triangles)
    assert np.allclose(first.patch.vertices, second.patch.vertices)


def test_failed_attempts_are_timed(octahedron, monkeypatch):
    _failing_refine(monkeypatch, {3})
    stats = FillStats()
    table = octahedron(drop_faces=[0, 6])
    for loop in extract_hole_boundaries(table):
        with pytest.raises(DegenerateGeometryError):
            fill_hole(table, loop, stats=stats)
    assert stats.holes_failed == 2 and stats.holes_filled == 0
    assert stats.time_min > 0.0
    assert stats.time_total == pytest.approx(stats.time_max + stats.time_min)
    assert stats.to_dict()['time_avg'] == pytest.approx(stats.time_total / 2)


def test_skip_mode_times_every_attempt(octahedron, monkeypatch):
    calls = {'n': 0}
    real = pipeline.refine_patch

    def refine(patch, scales, config=None):
        calls['n'] += 1
        if calls['n'] == 1:
            raise DegenerateGeometryError("forced failure")
        return real(patch, scales, config)

    monkeypatch.setattr(pipeline, 'refine_patch', refine)
    stats = fill_holes(octahedron(drop_faces=[0, 6]), FillConfig(on_error='skip')).stats
    assert stats.holes_failed == 1 and stats.holes_filled == 1
    assert stats.time_total == pytest.approx(stats.time_max + stats.time_min)
