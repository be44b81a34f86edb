"""
Tests for mesh containers and mesh file I/O.
"""

import json

import numpy as np
import pytest

from uv_rebuild.mesh import MeshData, MeshBuilder, load_mesh, save_mesh
from uv_rebuild.utils.error_handler import MeshError

from conftest import make_mesh


class TestMeshData:
    """MeshData construction and validation."""

    def test_shapes_are_normalized(self, unit_quad):
        assert unit_quad.vertices.shape == (4, 3)
        assert unit_quad.triangles.dtype == np.int32
        assert unit_quad.faces.shape == (2, 3)
        assert unit_quad.vertex_count == 4
        assert unit_quad.triangle_count == 2

    def test_empty_attributes_are_absent(self):
        mesh = make_mesh([[0, 0], [1, 0], [0, 1]], [0, 1, 2], normals=[], colors=None)
        assert not mesh.has_normals
        assert not mesh.has_colors
        assert not mesh.has_tangents

    def test_empty_mesh_is_valid(self):
        mesh = MeshData(name="Empty", vertices=[], triangles=[], uvs=[])
        mesh.validate()
        assert mesh.vertex_count == 0
        assert mesh.faces.shape == (0, 3)

    def test_copy_is_deep(self, attributed_triangle):
        clone = attributed_triangle.copy(name="Clone")
        clone.uvs[0] = [9, 9]
        clone.normals[0] = [9, 9, 9]
        assert clone.name == "Clone"
        assert attributed_triangle.uvs[0].tolist() == [0, 0]
        assert attributed_triangle.normals[0].tolist() == [0, 0, 1]

    @pytest.mark.parametrize("kwargs, code", [
        ({'triangles': [0, 1]}, 1005),
        ({'triangles': [0, 1, 3]}, 1006),
        ({'triangles': [0, 1, -1]}, 1006),
        ({'uvs': [[0, 0], [1, 0]]}, 1008),
        ({'normals': [[0, 0, 1]]}, 1007),
    ])
    def test_validate_rejects(self, kwargs, code):
        data = {
            'name': "Bad",
            'vertices': [[0, 0, 0], [1, 0, 0], [0, 1, 0]],
            'triangles': [0, 1, 2],
            'uvs': [[0, 0], [1, 0], [0, 1]],
        }
        data.update(kwargs)
        mesh = MeshData(**data)
        with pytest.raises(MeshError) as exc_info:
            mesh.validate()
        assert exc_info.value.error_code == code


class TestMeshBuilder:
    """Append-only vertex arena."""

    def test_from_mesh_copies_vertices_only(self, attributed_triangle):
        builder = MeshBuilder.from_mesh(attributed_triangle)
        assert builder.vertex_count == 3
        assert builder.triangle_count == 0
        builder.set_uv(0, [5, 5])
        assert attributed_triangle.uvs[0].tolist() == [0, 0]

    def test_interpolate_vertex(self, attributed_triangle):
        builder = MeshBuilder.from_mesh(attributed_triangle)
        index = builder.interpolate_vertex(0, 1, 0.4, [1.0, 0.0])

        assert index == 3
        np.testing.assert_allclose(builder.positions[index], [1.0, 0.0, 0.0])
        np.testing.assert_array_equal(builder.uv(index), [1.0, 0.0])
        np.testing.assert_allclose(np.linalg.norm(builder.normals[index]), 1.0)
        np.testing.assert_allclose(builder.tangents[index], [0.6, 0.4, 0, 1])
        np.testing.assert_allclose(builder.colors[index], [0.6, 0.4, 0, 1])

    def test_absent_attributes_are_not_interpolated(self, overhang_triangle):
        builder = MeshBuilder.from_mesh(overhang_triangle)
        builder.interpolate_vertex(0, 1, 0.5, [0.75, 0.0])
        assert builder.normals == []
        mesh = builder.build("Out")
        assert mesh.normals is None
        assert mesh.tangents is None
        assert mesh.colors is None

    def test_clone_vertex(self, attributed_triangle):
        builder = MeshBuilder.from_mesh(attributed_triangle)
        clone = builder.clone_vertex(2)
        builder.set_uv(clone, [0, 0])
        np.testing.assert_array_equal(builder.positions[clone], builder.positions[2])
        np.testing.assert_array_equal(builder.colors[clone], builder.colors[2])
        assert builder.uv(2).tolist() == [0, 2.5]

    def test_build(self, unit_quad):
        builder = MeshBuilder.from_mesh(unit_quad)
        builder.add_triangle(0, 1, 2)
        mesh = builder.build("Half")
        assert mesh.name == "Half"
        assert mesh.triangles.tolist() == [0, 1, 2]
        assert mesh.vertex_count == 4

    def test_build_with_normals_override(self, unit_quad):
        builder = MeshBuilder.from_mesh(unit_quad)
        mesh = builder.build("WithNormals", normals_override=np.tile([0, 0, 1.0], (4, 1)))
        assert mesh.has_normals


class TestMeshIO:
    """npz and json mesh files."""

    @pytest.mark.parametrize("suffix", [".npz", ".json"])
    def test_save_and_load(self, tmp_path, attributed_triangle, suffix):
        path = save_mesh(attributed_triangle, tmp_path / f"mesh{suffix}")
        loaded = load_mesh(path)

        assert loaded.name == "Attributed"
        np.testing.assert_allclose(loaded.vertices, attributed_triangle.vertices)
        np.testing.assert_array_equal(loaded.triangles, attributed_triangle.triangles)
        np.testing.assert_allclose(loaded.uvs, attributed_triangle.uvs)
        np.testing.assert_allclose(loaded.tangents, attributed_triangle.tangents)
        np.testing.assert_allclose(loaded.colors, attributed_triangle.colors)

    def test_absent_attributes_stay_absent(self, tmp_path, overhang_triangle):
        loaded = load_mesh(save_mesh(overhang_triangle, tmp_path / "mesh.npz"))
        assert not loaded.has_normals

    def test_missing_file(self, tmp_path):
        with pytest.raises(MeshError) as exc_info:
            load_mesh(tmp_path / "missing.npz")
        assert exc_info.value.error_code == 1001

    def test_unsupported_extension(self, tmp_path, unit_quad):
        with pytest.raises(MeshError) as exc_info:
            save_mesh(unit_quad, tmp_path / "mesh.fbx")
        assert exc_info.value.error_code == 1004

    def test_json_missing_key(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({'vertices': [[0, 0, 0]], 'uvs': [[0, 0]]}), encoding='utf-8')
        with pytest.raises(MeshError) as exc_info:
            load_mesh(path)
        assert exc_info.value.error_code == 1002

    def test_name_defaults_to_file_stem(self, tmp_path):
        path = tmp_path / "crate.json"
        path.write_text(json.dumps({
            'vertices': [[0, 0, 0], [1, 0, 0], [0, 1, 0]],
            'triangles': [0, 1, 2],
            'uvs': [[0, 0], [1, 0], [0, 1]],
        }), encoding='utf-8')
        assert load_mesh(path).name == "crate"

    @pytest.mark.parametrize("document", [
        {'vertices': [0, 0, 0, 1], 'triangles': [0, 1, 2], 'uvs': [[0, 0], [1, 0], [0, 1]]},
        {'vertices': [[0, 0, 0]] * 3, 'triangles': [0, 1, 2], 'uvs': [0, 0, 1]},
        {'vertices': [[0, 0, 0]] * 3, 'triangles': ["a", "b", "c"], 'uvs': [[0, 0], [1, 0], [0, 1]]},
    ])
    def test_malformed_arrays(self, tmp_path, document):
        path = tmp_path / "malformed.json"
        path.write_text(json.dumps(document), encoding='utf-8')
        with pytest.raises(MeshError) as exc_info:
            load_mesh(path)
        assert exc_info.value.error_code == 1002
