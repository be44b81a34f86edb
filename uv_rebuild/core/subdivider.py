"""
UV Subdivider - Splits triangles whose UVs span more than one texture tile.

Every edge that crosses an integer U (or, failing that, V) line gets a new
boundary vertex; the triangle is cut into 2, 3 or 4 pieces and each piece
that still crosses a grid line is split again. A final formatting pass
shifts every piece into a single [0, 1] tile.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Tuple, Sequence

import numpy as np

from ..mesh.mesh_data import MeshData, MeshBuilder
from ..utils.logger import get_logger, OperationContext
from ..utils.error_handler import SubdivisionError
from ..utils.math_utils import (
    find_integer_between,
    is_uv_close,
    needs_subdivision,
    compute_vertex_normals,
    compute_vertex_tangents,
)
from .uv_formatter import format_uvs


Triangle = Tuple[int, int, int]

# Split-pattern bits, one per edge.
EDGE_12 = 1
EDGE_23 = 2
EDGE_31 = 4

# Layout slots: original corners, then the boundary vertex on each edge.
V1, V2, V3, M12, M23, M31 = range(6)

SPLIT_LAYOUTS = {
    EDGE_12 | EDGE_23 | EDGE_31: (
        (V1, M12, M31),
        (V2, M23, M12),
        (V3, M31, M23),
        (M12, M23, M31),
    ),
    EDGE_12 | EDGE_23: (
        (V1, M12, M23),
        (V2, M23, M12),
        (V3, V1, M23),
    ),
    EDGE_12 | EDGE_31: (
        (V1, M12, M31),
        (V2, V3, M12),
        (V3, M31, M12),
    ),
    EDGE_23 | EDGE_31: (
        (V1, V2, M31),
        (V2, M23, M31),
        (V3, M31, M23),
    ),
    EDGE_12: (
        (V1, M12, V3),
        (V2, V3, M12),
    ),
    EDGE_23: (
        (V1, V2, M23),
        (V1, M23, V3),
    ),
    EDGE_31: (
        (V1, V2, M31),
        (V2, V3, M31),
    ),
    0: (
        (V1, V2, V3),
    ),
}

_EDGES = (
    (EDGE_12, M12, 0, 1),
    (EDGE_23, M23, 1, 2),
    (EDGE_31, M31, 2, 0),
)


@dataclass
class SubdivisionConfig:
    """Configuration for UV subdivision."""
    threshold: float = 1.0
    max_depth: int = 512
    format_uvs: bool = True
    recalculate_normals: bool = False
    recalculate_tangents: bool = False
    validate_input: bool = True


@dataclass
class SubdivisionStats:
    """Counters collected while subdividing one mesh."""
    input_vertices: int = 0
    input_triangles: int = 0
    output_vertices: int = 0
    output_triangles: int = 0
    split_triangles: int = 0
    max_depth_reached: int = 0
    formatted_triangles: int = 0
    cloned_vertices: int = 0


@dataclass
class SplitOutcome:
    """Sub-triangles produced by one split, in emission order."""
    pattern: int
    triangles: List[Tuple[Triangle, bool]] = field(default_factory=list)

    @property
    def emit(self) -> List[Triangle]:
        """Sub-triangles that already fit in one tile."""
        return [tri for tri, close in self.triangles if close]

    @property
    def recurse(self) -> List[Triangle]:
        """Sub-triangles that still cross a grid line."""
        return [tri for tri, close in self.triangles if not close]


def find_edge_split(
    uv_a: Sequence[float],
    uv_b: Sequence[float]
) -> Optional[Tuple[float, np.ndarray]]:
    """
    Find where an edge crosses an integer grid line.

    U is tested first; V only when U has no crossing.

    Args:
        uv_a: UV at the edge start
        uv_b: UV at the edge end

    Returns:
        ``(t, uv)`` with ``t`` the edge parameter of the crossing and ``uv`` the
        boundary UV, or None when the edge crosses no grid line
    """
    for axis in (0, 1):
        crossing = find_integer_between(uv_a[axis], uv_b[axis])
        if crossing is None:
            continue

        t = (crossing - uv_a[axis]) / (uv_b[axis] - uv_a[axis])
        other = 1 - axis
        uv = np.empty(2, dtype=np.float64)
        uv[axis] = crossing
        uv[other] = uv_a[other] + (uv_b[other] - uv_a[other]) * t
        return t, uv

    return None


def split_triangle(builder: MeshBuilder, a: int, b: int, c: int) -> SplitOutcome:
    """
    Split one triangle along the grid lines its edges cross.

    New boundary vertices are appended to ``builder``; each sub-triangle gets
    its own copy of every boundary vertex it uses.

    Args:
        builder: Mesh arena
        a, b, c: Corner vertex indices

    Returns:
        SplitOutcome listing the sub-triangles and whether each is UV close
    """
    corners = (a, b, c)
    slot_uvs = {V1: builder.uv(a), V2: builder.uv(b), V3: builder.uv(c)}
    crossings = {}
    pattern = 0

    for bit, slot, start, end in _EDGES:
        split = find_edge_split(slot_uvs[start], slot_uvs[end])
        if split is not None:
            pattern |= bit
            crossings[slot] = (corners[start], corners[end], split[0])
            slot_uvs[slot] = split[1]

    layout = SPLIT_LAYOUTS[pattern]
    outcome = SplitOutcome(pattern=pattern)

    if pattern == 0:
        outcome.triangles.append((corners, True))
        return outcome

    copies = {}
    for slot in (M12, M23, M31):
        if slot not in crossings:
            continue
        start, end, t = crossings[slot]
        uses = sum(tri.count(slot) for tri in layout)
        copies[slot] = [
            builder.interpolate_vertex(start, end, t, slot_uvs[slot])
            for _ in range(uses)
        ]

    for tri in layout:
        indices = tuple(
            corners[slot] if slot <= V3 else copies[slot].pop(0)
            for slot in tri
        )
        close = is_uv_close(*(slot_uvs[slot] for slot in tri))
        outcome.triangles.append((indices, close))

    return outcome


class UVSubdivider:
    """
    Rebuilds a mesh so that every triangle's UVs fit in one texture tile.

    Triangles inside [0, threshold] are copied through untouched. The rest
    are split depth-first through an explicit work stack, bounded by
    ``config.max_depth``.
    """

    def __init__(self, config: Optional[SubdivisionConfig] = None):
        self.logger = get_logger("uv_rebuild.subdivider")
        self.config = config or SubdivisionConfig()
        self.last_stats: Optional[SubdivisionStats] = None

    def subdivide(self, mesh: MeshData, name: Optional[str] = None) -> MeshData:
        """
        Subdivide a mesh.

        Args:
            mesh: Source mesh, left unmodified
            name: Name of the new mesh (default ``<name>_Subdivided``)

        Returns:
            New MeshData
        """
        config = self.config
        if config.threshold <= 0:
            raise SubdivisionError(
                f"UV threshold must be positive, got {config.threshold}",
                error_code=2001
            )

        if config.validate_input:
            mesh.validate()

        stats = SubdivisionStats(
            input_vertices=mesh.vertex_count,
            input_triangles=mesh.triangle_count
        )

        with OperationContext(self.logger, "subdivide", f"Subdividing {mesh.name}"):
            builder = MeshBuilder.from_mesh(mesh)

            for tri_index, (a, b, c) in enumerate(mesh.faces):
                a, b, c = int(a), int(b), int(c)
                if needs_subdivision(mesh.uvs[[a, b, c]], config.threshold):
                    stats.split_triangles += 1
                    self._subdivide_triangle(builder, (a, b, c), tri_index, stats)
                else:
                    builder.add_triangle(a, b, c)

            if config.format_uvs:
                format_stats = format_uvs(builder, config.threshold)
                stats.formatted_triangles = format_stats.formatted_triangles
                stats.cloned_vertices = format_stats.cloned_vertices

            positions = np.vstack(builder.positions) if builder.positions else np.zeros((0, 3))
            faces = np.asarray(builder.triangles, dtype=np.int64).reshape(-1, 3)

            normals_override = None
            if config.recalculate_normals and not mesh.has_normals:
                normals_override = compute_vertex_normals(positions, faces)

            tangents_override = None
            if config.recalculate_tangents and not mesh.has_tangents:
                if mesh.has_normals:
                    normals = np.vstack(builder.normals) if builder.normals else np.zeros((0, 3))
                elif normals_override is not None:
                    normals = normals_override
                else:
                    normals = compute_vertex_normals(positions, faces)
                uvs = np.vstack(builder.uvs) if builder.uvs else np.zeros((0, 2))
                tangents_override = compute_vertex_tangents(positions, faces, uvs, normals)

            result = builder.build(
                name or f"{mesh.name}_Subdivided",
                normals_override,
                tangents_override
            )

        stats.output_vertices = result.vertex_count
        stats.output_triangles = result.triangle_count
        self.last_stats = stats

        self.logger.info(
            f"{mesh.name}: {stats.input_triangles} -> {stats.output_triangles} triangles, "
            f"{stats.input_vertices} -> {stats.output_vertices} vertices "
            f"({stats.split_triangles} split, depth {stats.max_depth_reached})"
        )

        return result

    def _subdivide_triangle(
        self,
        builder: MeshBuilder,
        corners: Triangle,
        tri_index: int,
        stats: SubdivisionStats
    ):
        """Split one source triangle until every piece is UV close."""
        max_depth = self.config.max_depth
        stack: List[Tuple[Triangle, int, bool]] = [(corners, 0, True)]

        while stack:
            triangle, depth, pending = stack.pop()

            if not pending:
                builder.add_triangle(*triangle)
                continue

            if depth >= max_depth:
                raise SubdivisionError(
                    f"Subdivision limit exceeded for triangle {tri_index} "
                    f"(max depth {max_depth})",
                    error_code=2002,
                    triangle_index=tri_index,
                    depth=depth
                )

            outcome = split_triangle(builder, *triangle)
            stats.max_depth_reached = max(stats.max_depth_reached, depth + 1)

            for sub_triangle, close in reversed(outcome.triangles):
                stack.append((sub_triangle, depth + 1, not close))


def subdivide_mesh_uv(
    mesh: MeshData,
    threshold: float = 1.0,
    **options
) -> MeshData:
    """
    Subdivide ``mesh`` so every triangle's UVs fit in one unit tile.

    Args:
        mesh: Source mesh
        threshold: UV bound above which a triangle is processed
        **options: Other SubdivisionConfig fields

    Returns:
        New MeshData
    """
    config = SubdivisionConfig(threshold=threshold, **options)
    return UVSubdivider(config).subdivide(mesh)
