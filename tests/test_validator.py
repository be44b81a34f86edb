"""
Tests for mesh validation and inspection.
"""

import numpy as np
import pytest

from uv_rebuild.core.validator import UVValidator
from uv_rebuild.core.subdivider import UVSubdivider
from uv_rebuild.mesh.mesh_data import MeshData
from uv_rebuild.utils.error_handler import MeshError

from conftest import make_mesh


@pytest.fixture
def validator():
    return UVValidator()


class TestValidateMesh:
    """Structural and range checks."""

    def test_valid_mesh(self, validator, unit_quad):
        result = validator.validate_mesh(unit_quad)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []
        assert result.uv_count == 4
        assert result.out_of_range_count == 0

    def test_out_of_range_is_a_warning(self, validator, overhang_triangle):
        result = validator.validate_mesh(overhang_triangle)
        assert result.is_valid
        assert result.out_of_range_count == 2
        assert any("outside [0,1]" in w for w in result.warnings)

    def test_structural_error(self, validator):
        mesh = MeshData(
            name="Bad",
            vertices=[[0, 0, 0], [1, 0, 0], [0, 1, 0]],
            triangles=[0, 1, 2],
            uvs=[[0, 0], [1, 0]],
        )
        result = validator.validate_mesh(mesh)
        assert not result.is_valid
        assert any("UV count" in e for e in result.errors)

    def test_nan_uvs(self, validator):
        mesh = make_mesh([[0, 0], [1, 0], [0, 1]], [0, 1, 2])
        mesh.uvs[1, 0] = np.nan
        result = validator.validate_mesh(mesh)
        assert not result.is_valid
        assert any("NaN" in e for e in result.errors)


class TestQueries:
    """Per-vertex and per-triangle queries."""

    def test_find_out_of_range_uvs(self, validator, overhang_triangle):
        assert validator.find_out_of_range_uvs(overhang_triangle).tolist() == [1, 2]
        assert UVValidator(threshold=2.0).find_out_of_range_uvs(overhang_triangle).tolist() == []
        assert validator.find_out_of_range_uvs(overhang_triangle, threshold=1.5).tolist() == []
        assert UVValidator(threshold=2.0).find_out_of_range_uvs(overhang_triangle, 1.2).tolist() == [1, 2]

    def test_find_unbounded_triangles(self, validator, overhang_triangle, unit_quad):
        assert validator.find_unbounded_triangles(overhang_triangle) == [0]
        assert validator.find_unbounded_triangles(unit_quad) == []

    def test_find_related_triangles(self, validator, unit_quad):
        assert validator.find_related_triangles(unit_quad, 0) == [0, 1]
        assert validator.find_related_triangles(unit_quad, 1) == [0]
        assert validator.find_related_triangles(unit_quad, 3) == [1]

    def test_find_related_triangles_bad_index(self, validator, unit_quad):
        with pytest.raises(MeshError) as exc_info:
            validator.find_related_triangles(unit_quad, 4)
        assert exc_info.value.error_code == 1006

    def test_coincident_vertices_after_split(self, validator, tiled_quad):
        assert validator.count_coincident_vertices(tiled_quad) == 0
        result = UVSubdivider().subdivide(tiled_quad)
        assert validator.count_coincident_vertices(result) > 0

    def test_count_triangles_needing_subdivision(self, validator, tiled_quad, unit_quad):
        assert validator.count_triangles_needing_subdivision(tiled_quad) == 2
        assert validator.count_triangles_needing_subdivision(unit_quad) == 0


class TestInspection:
    """Statistics and reports."""

    def test_inspect_mesh(self, validator, tiled_quad):
        info = validator.inspect_mesh(tiled_quad)

        assert info['name'] == "TiledQuad"
        assert info['vertex_count'] == 4
        assert info['triangle_count'] == 2
        assert info['has_uvs']
        assert not info['has_normals']
        assert info['bounds']['center'] == [1.0, 1.0, 0.0]
        assert info['bounds']['size'] == [2.0, 2.0, 0.0]
        assert info['bounds_volume'] == 0.0
        assert info['bounds_surface_area'] == pytest.approx(8.0)
        assert info['uv_min'] == [0.0, 0.0]
        assert info['uv_max'] == [2.0, 2.0]
        assert info['uv_area'] == pytest.approx(4.0)
        assert info['out_of_range_uvs'] == 3
        assert info['triangles_needing_subdivision'] == 2
        assert info['unbounded_triangles'] == 2

    def test_inspect_empty_mesh(self, validator):
        info = validator.inspect_mesh(MeshData(name="Empty", vertices=[], triangles=[], uvs=[]))
        assert info['bounds'] is None
        assert info['uv_min'] is None
        assert info['uv_area'] == 0.0

    def test_generate_report(self, validator, overhang_triangle):
        report = validator.generate_report(overhang_triangle)
        assert report.startswith("Mesh Report for Overhang")
        assert "Status: VALID" in report
        assert "Triangles needing subdivision: 1" in report

    def test_generate_report_invalid(self, validator):
        mesh = MeshData(
            name="Bad",
            vertices=[[0, 0, 0], [1, 0, 0], [0, 1, 0]],
            triangles=[0, 1],
            uvs=[[0, 0], [1, 0], [0, 1]],
        )
        report = validator.generate_report(mesh)
        assert "Status: INVALID" in report
        assert "Errors:" in report
