"""
Shared fixtures for the UV rebuild tests.
"""

import numpy as np
import pytest

from uv_rebuild.mesh.mesh_data import MeshData


def make_mesh(uvs, triangles, name="Test", **attributes):
    """Build a mesh whose positions equal its UVs lifted to z=0."""
    uvs = np.asarray(uvs, dtype=np.float64).reshape(-1, 2)
    vertices = np.column_stack([uvs, np.zeros(len(uvs))])
    return MeshData(name=name, vertices=vertices, triangles=triangles, uvs=uvs, **attributes)


def triangle_areas(points: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Areas of triangles given 2D or 3D corner points."""
    corners = points[faces]
    if corners.shape[2] == 2:
        corners = np.concatenate([corners, np.zeros(corners.shape[:2] + (1,))], axis=2)
    cross = np.cross(corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0])
    return np.linalg.norm(cross, axis=1) / 2.0


@pytest.fixture
def unit_quad():
    """Two triangles covering the [0, 1] tile."""
    return make_mesh(
        [[0, 0], [1, 0], [1, 1], [0, 1]],
        [0, 1, 2, 0, 2, 3],
        name="UnitQuad"
    )


@pytest.fixture
def overhang_triangle():
    """Single triangle reaching 1.5 on both axes."""
    return make_mesh(
        [[0, 0], [1.5, 0], [0, 1.5]],
        [0, 1, 2],
        name="Overhang"
    )


@pytest.fixture
def tiled_quad():
    """Quad spanning a 2x2 block of tiles."""
    return make_mesh(
        [[0, 0], [2, 0], [2, 2], [0, 2]],
        [0, 1, 2, 0, 2, 3],
        name="TiledQuad"
    )


@pytest.fixture
def attributed_triangle():
    """Overhanging triangle carrying normals, tangents and colors."""
    return make_mesh(
        [[0, 0], [2.5, 0], [0, 2.5]],
        [0, 1, 2],
        name="Attributed",
        normals=[[0, 0, 1], [0, 1, 0], [1, 0, 0]],
        tangents=[[1, 0, 0, 1], [0, 1, 0, 1], [0, 0, 1, -1]],
        colors=[[1, 0, 0, 1], [0, 1, 0, 1], [0, 0, 1, 1]],
    )
