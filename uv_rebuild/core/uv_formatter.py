"""
UV Formatter - Shifts each out-of-range triangle's UVs into a single unit tile.
"""

import math
from collections import Counter
from dataclasses import dataclass

import numpy as np

from ..mesh.mesh_data import MeshBuilder
from ..utils.logger import get_logger
from ..utils.math_utils import needs_subdivision


logger = get_logger("uv_rebuild.formatter")


@dataclass
class FormatStats:
    """Counters from one formatting pass."""
    formatted_triangles: int = 0
    cloned_vertices: int = 0


def shift_to_unit_tile(values: np.ndarray) -> np.ndarray:
    """
    Shift one UV axis of a triangle by a whole number of tiles.

    Negative values are pushed up by ``ceil(|min|)``; otherwise the values are
    pulled down by ``floor(min)``.

    Args:
        values: The three U (or V) values of a triangle

    Returns:
        Shifted values
    """
    values = np.asarray(values, dtype=np.float64)

    if np.any(values < 0.0):
        return values + math.ceil(abs(values.min()))
    if np.any(values > 0.0):
        return values - math.floor(values.min())
    return values.copy()


def format_uvs(builder: MeshBuilder, threshold: float = 1.0) -> FormatStats:
    """
    Move every triangle that still exceeds the threshold into one UV tile.

    Vertices referenced by more than one triangle are cloned before their
    UVs are shifted, so the shift never leaks into a neighbouring triangle.

    Args:
        builder: Mesh arena to modify in place
        threshold: Upper UV bound

    Returns:
        FormatStats
    """
    stats = FormatStats()
    triangles = builder.triangles
    usage = Counter(triangles)

    for base in range(0, len(triangles) - len(triangles) % 3, 3):
        corners = triangles[base:base + 3]
        uvs = np.array([builder.uv(index) for index in corners])

        if not needs_subdivision(uvs, threshold):
            continue

        stats.formatted_triangles += 1

        for offset, index in enumerate(corners):
            if usage[index] > 1:
                clone = builder.clone_vertex(index)
                usage[index] -= 1
                usage[clone] = 1
                triangles[base + offset] = clone
                stats.cloned_vertices += 1

        corners = triangles[base:base + 3]
        uvs = np.array([builder.uv(index) for index in corners])
        uvs[:, 0] = shift_to_unit_tile(uvs[:, 0])
        uvs[:, 1] = shift_to_unit_tile(uvs[:, 1])

        for index, uv in zip(corners, uvs):
            builder.set_uv(index, uv)

    logger.debug(
        f"Formatted {stats.formatted_triangles} triangles, "
        f"cloned {stats.cloned_vertices} shared vertices"
    )
    return stats
