"""
Mathematical utilities for UV operations.
Provides integer-boundary tests, attribute interpolation and triangle helpers.
"""

import math
from typing import Optional, Sequence

import numpy as np


def find_integer_between(a: float, b: float) -> Optional[int]:
    """
    Find the smallest integer lying strictly between two values.

    Args:
        a: First value
        b: Second value

    Returns:
        The integer, or None when no integer lies strictly inside (min, max)
    """
    low = min(a, b)
    high = max(a, b)

    start = math.floor(low) + 1
    end = math.ceil(high) - 1

    if start <= end:
        return int(start)
    return None


def are_values_close(a: float, b: float, c: float) -> bool:
    """Check that no integer lies strictly between the min and max of three values."""
    return find_integer_between(min(a, b, c), max(a, b, c)) is None


def is_uv_close(uv_a: Sequence[float], uv_b: Sequence[float], uv_c: Sequence[float]) -> bool:
    """Check that a UV triangle crosses no integer grid line on either axis."""
    return (
        are_values_close(uv_a[0], uv_b[0], uv_c[0]) and
        are_values_close(uv_a[1], uv_b[1], uv_c[1])
    )


def needs_subdivision(uvs: np.ndarray, threshold: float = 1.0) -> bool:
    """
    Check whether any UV coordinate lies outside [0, threshold].

    Args:
        uvs: UV coordinates (N, 2)
        threshold: Upper UV bound

    Returns:
        True if any U or V is below 0 or above the threshold
    """
    uvs = np.asarray(uvs, dtype=np.float64)
    return bool(np.any(uvs < 0.0) or np.any(uvs > threshold))


def lerp(a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
    """Linear interpolation ``a + (b - a) * t``."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    return a + (b - a) * t


def normalize_vector(vector: np.ndarray, epsilon: float = 1e-5) -> np.ndarray:
    """
    Normalize a vector, returning the zero vector when it is too short.

    Args:
        vector: Input vector
        epsilon: Length below which the vector is treated as zero

    Returns:
        Unit vector or zeros
    """
    vector = np.asarray(vector, dtype=np.float64)
    length = np.linalg.norm(vector)
    if length > epsilon:
        return vector / length
    return np.zeros_like(vector)


def calculate_uv_area(uv_coords: np.ndarray) -> float:
    """
    Calculate the area of a UV triangle or polygon.

    Args:
        uv_coords: UV coordinates of vertices (N, 2) where N >= 3

    Returns:
        Area of the polygon
    """
    uv_coords = np.asarray(uv_coords, dtype=np.float64)

    if len(uv_coords) < 3:
        return 0.0

    if len(uv_coords) == 3:
        v0, v1, v2 = uv_coords
        return abs((v1[0] - v0[0]) * (v2[1] - v0[1]) -
                   (v2[0] - v0[0]) * (v1[1] - v0[1])) / 2.0

    n = len(uv_coords)
    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += uv_coords[i][0] * uv_coords[j][1]
        area -= uv_coords[j][0] * uv_coords[i][1]

    return abs(area) / 2.0


def barycentric_coordinates(
    point: Sequence[float],
    triangle: np.ndarray
) -> Optional[np.ndarray]:
    """
    Compute barycentric coordinates of a 2D point in a triangle.

    Args:
        point: Point coordinates (2,)
        triangle: Triangle corner coordinates (3, 2)

    Returns:
        Weights (3,), or None for a degenerate triangle
    """
    point = np.asarray(point, dtype=np.float64)
    triangle = np.asarray(triangle, dtype=np.float64)

    v0 = triangle[1] - triangle[0]
    v1 = triangle[2] - triangle[0]
    v2 = point - triangle[0]

    d00 = np.dot(v0, v0)
    d01 = np.dot(v0, v1)
    d11 = np.dot(v1, v1)
    d20 = np.dot(v2, v0)
    d21 = np.dot(v2, v1)

    denom = d00 * d11 - d01 * d01
    if abs(denom) < 1e-12:
        return None

    v = (d11 * d20 - d01 * d21) / denom
    w = (d00 * d21 - d01 * d20) / denom
    u = 1.0 - v - w

    return np.array([u, v, w])


def compute_vertex_normals(
    vertices: np.ndarray,
    faces: np.ndarray
) -> np.ndarray:
    """
    Compute vertex normals from mesh geometry.

    Args:
        vertices: Vertex positions (N, 3)
        faces: Face indices (F, 3)

    Returns:
        Vertex normals (N, 3)
    """
    vertices = np.asarray(vertices, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)

    normals = np.zeros_like(vertices)
    if len(faces) == 0:
        return normals

    v0 = vertices[faces[:, 0]]
    v1 = vertices[faces[:, 1]]
    v2 = vertices[faces[:, 2]]

    face_normals = np.cross(v1 - v0, v2 - v0)
    face_areas = np.linalg.norm(face_normals, axis=1, keepdims=True)
    face_areas = np.where(face_areas > 1e-10, face_areas, 1.0)
    face_normals = face_normals / face_areas

    for corner in range(3):
        np.add.at(normals, faces[:, corner], face_normals)

    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    lengths = np.where(lengths > 1e-10, lengths, 1.0)
    normals = normals / lengths

    return normals


def compute_vertex_tangents(
    vertices: np.ndarray,
    faces: np.ndarray,
    uvs: np.ndarray,
    normals: np.ndarray
) -> np.ndarray:
    """
    Compute per-vertex tangents from positions and UVs.

    Face tangents and bitangents follow the UV gradient and are accumulated
    per vertex, then Gram-Schmidt orthogonalized against the normal. The w
    component is the bitangent handedness (+1 or -1).

    Args:
        vertices: Vertex positions (N, 3)
        faces: Face indices (F, 3)
        uvs: Vertex UVs (N, 2)
        normals: Unit vertex normals (N, 3)

    Returns:
        Vertex tangents (N, 4)
    """
    vertices = np.asarray(vertices, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    uvs = np.asarray(uvs, dtype=np.float64)
    normals = np.asarray(normals, dtype=np.float64)

    tangents = np.zeros((len(vertices), 4))
    tangents[:, 0] = 1.0
    tangents[:, 3] = 1.0
    if len(faces) == 0:
        return tangents

    edge1 = vertices[faces[:, 1]] - vertices[faces[:, 0]]
    edge2 = vertices[faces[:, 2]] - vertices[faces[:, 0]]
    duv1 = uvs[faces[:, 1]] - uvs[faces[:, 0]]
    duv2 = uvs[faces[:, 2]] - uvs[faces[:, 0]]

    det = duv1[:, 0] * duv2[:, 1] - duv2[:, 0] * duv1[:, 1]
    usable = np.abs(det) > 1e-12
    scale = np.where(usable, 1.0 / np.where(usable, det, 1.0), 0.0)[:, None]

    face_tangents = (edge1 * duv2[:, 1:2] - edge2 * duv1[:, 1:2]) * scale
    face_bitangents = (edge2 * duv1[:, 0:1] - edge1 * duv2[:, 0:1]) * scale

    sdir = np.zeros_like(vertices)
    tdir = np.zeros_like(vertices)
    for corner in range(3):
        np.add.at(sdir, faces[:, corner], face_tangents)
        np.add.at(tdir, faces[:, corner], face_bitangents)

    # Gram-Schmidt against the normal
    ortho = sdir - normals * np.sum(normals * sdir, axis=1, keepdims=True)
    lengths = np.linalg.norm(ortho, axis=1)
    valid = lengths > 1e-10
    tangents[valid, :3] = ortho[valid] / lengths[valid, None]

    handedness = np.sum(np.cross(normals, tangents[:, :3]) * tdir, axis=1)
    tangents[:, 3] = np.where(handedness < 0.0, -1.0, 1.0)

    return tangents
