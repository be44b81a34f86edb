"""
Mesh data containers.

``MeshData`` is the flat, read-only mesh the tools consume and emit.
``MeshBuilder`` is the append-only arena the subdivider grows: every
operation returns plain vertex indices, never references into the arrays.
"""

from dataclasses import dataclass
from typing import Optional, List, Sequence

import numpy as np

from ..utils.error_handler import MeshError
from ..utils.math_utils import lerp, normalize_vector


def _optional_array(values, width: int) -> Optional[np.ndarray]:
    if values is None:
        return None
    array = np.asarray(values, dtype=np.float64)
    if array.size == 0:
        return None
    return array.reshape(-1, width)


@dataclass
class MeshData:
    """Flat triangle mesh with parallel per-vertex attributes."""
    name: str
    vertices: np.ndarray
    triangles: np.ndarray
    uvs: np.ndarray
    normals: Optional[np.ndarray] = None
    tangents: Optional[np.ndarray] = None
    colors: Optional[np.ndarray] = None

    def __post_init__(self):
        self.vertices = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3)
        self.triangles = np.asarray(self.triangles, dtype=np.int32).reshape(-1)
        self.uvs = np.asarray(self.uvs, dtype=np.float64).reshape(-1, 2)
        self.normals = _optional_array(self.normals, 3)
        self.tangents = _optional_array(self.tangents, 4)
        self.colors = _optional_array(self.colors, 4)

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles) // 3

    @property
    def faces(self) -> np.ndarray:
        """Triangles as an (F, 3) array."""
        usable = self.triangle_count * 3
        return self.triangles[:usable].reshape(-1, 3)

    @property
    def has_normals(self) -> bool:
        return self.normals is not None

    @property
    def has_tangents(self) -> bool:
        return self.tangents is not None

    @property
    def has_colors(self) -> bool:
        return self.colors is not None

    def copy(self, name: Optional[str] = None) -> 'MeshData':
        """Deep copy of the mesh."""
        return MeshData(
            name=name or self.name,
            vertices=self.vertices.copy(),
            triangles=self.triangles.copy(),
            uvs=self.uvs.copy(),
            normals=None if self.normals is None else self.normals.copy(),
            tangents=None if self.tangents is None else self.tangents.copy(),
            colors=None if self.colors is None else self.colors.copy(),
        )

    def validate(self):
        """
        Check structural invariants.

        Raises:
            MeshError: If the index buffer or attribute arrays are inconsistent
        """
        if len(self.triangles) % 3 != 0:
            raise MeshError(
                f"Triangle buffer length {len(self.triangles)} is not divisible by 3",
                error_code=1005,
                mesh_name=self.name
            )

        if len(self.triangles) > 0:
            if self.triangles.min() < 0 or self.triangles.max() >= self.vertex_count:
                raise MeshError(
                    f"Triangle index out of range for {self.vertex_count} vertices",
                    error_code=1006,
                    mesh_name=self.name
                )

        if len(self.uvs) != self.vertex_count:
            raise MeshError(
                f"UV count ({len(self.uvs)}) does not match vertex count ({self.vertex_count})",
                error_code=1008,
                mesh_name=self.name
            )

        for attribute in ('normals', 'tangents', 'colors'):
            values = getattr(self, attribute)
            if values is not None and len(values) != self.vertex_count:
                raise MeshError(
                    f"{attribute} count ({len(values)}) does not match "
                    f"vertex count ({self.vertex_count})",
                    error_code=1007,
                    mesh_name=self.name,
                    attribute=attribute
                )


class MeshBuilder:
    """
    Append-only vertex/triangle arena.

    Seeded with a copy of a source mesh's vertices; new vertices are appended
    at the end so existing indices stay valid.
    """

    def __init__(
        self,
        has_normals: bool = False,
        has_tangents: bool = False,
        has_colors: bool = False
    ):
        self.has_normals = has_normals
        self.has_tangents = has_tangents
        self.has_colors = has_colors

        self.positions: List[np.ndarray] = []
        self.normals: List[np.ndarray] = []
        self.tangents: List[np.ndarray] = []
        self.colors: List[np.ndarray] = []
        self.uvs: List[np.ndarray] = []
        self.triangles: List[int] = []

    @classmethod
    def from_mesh(cls, mesh: MeshData) -> 'MeshBuilder':
        """Create a builder holding a copy of every vertex of ``mesh`` and no triangles."""
        builder = cls(
            has_normals=mesh.has_normals,
            has_tangents=mesh.has_tangents,
            has_colors=mesh.has_colors
        )
        builder.positions = [row.copy() for row in mesh.vertices]
        builder.uvs = [row.copy() for row in mesh.uvs]
        if mesh.has_normals:
            builder.normals = [row.copy() for row in mesh.normals]
        if mesh.has_tangents:
            builder.tangents = [row.copy() for row in mesh.tangents]
        if mesh.has_colors:
            builder.colors = [row.copy() for row in mesh.colors]
        return builder

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles) // 3

    def add_vertex(
        self,
        position: Sequence[float],
        uv: Sequence[float],
        normal: Optional[Sequence[float]] = None,
        tangent: Optional[Sequence[float]] = None,
        color: Optional[Sequence[float]] = None
    ) -> int:
        """Append a vertex and return its index."""
        index = len(self.positions)
        self.positions.append(np.asarray(position, dtype=np.float64))
        self.uvs.append(np.asarray(uv, dtype=np.float64))
        if self.has_normals:
            self.normals.append(np.asarray(normal, dtype=np.float64))
        if self.has_tangents:
            self.tangents.append(np.asarray(tangent, dtype=np.float64))
        if self.has_colors:
            self.colors.append(np.asarray(color, dtype=np.float64))
        return index

    def clone_vertex(self, index: int) -> int:
        """Append a copy of vertex ``index`` with all its attributes."""
        return self.add_vertex(
            self.positions[index].copy(),
            self.uvs[index].copy(),
            normal=self.normals[index].copy() if self.has_normals else None,
            tangent=self.tangents[index].copy() if self.has_tangents else None,
            color=self.colors[index].copy() if self.has_colors else None,
        )

    def interpolate_vertex(self, a: int, b: int, t: float, uv: Sequence[float]) -> int:
        """
        Append the vertex at parameter ``t`` along edge a->b.

        The UV is passed in rather than interpolated so that the coordinate
        sitting on an integer boundary stays exact.
        """
        normal = None
        tangent = None
        color = None
        if self.has_normals:
            normal = normalize_vector(lerp(self.normals[a], self.normals[b], t))
        if self.has_tangents:
            tangent = lerp(self.tangents[a], self.tangents[b], t)
        if self.has_colors:
            color = lerp(self.colors[a], self.colors[b], t)

        return self.add_vertex(
            lerp(self.positions[a], self.positions[b], t),
            uv,
            normal=normal,
            tangent=tangent,
            color=color,
        )

    def uv(self, index: int) -> np.ndarray:
        return self.uvs[index]

    def set_uv(self, index: int, uv: Sequence[float]):
        self.uvs[index] = np.asarray(uv, dtype=np.float64)

    def add_triangle(self, a: int, b: int, c: int):
        self.triangles.extend((a, b, c))

    def build(
        self,
        name: str,
        normals_override: Optional[np.ndarray] = None,
        tangents_override: Optional[np.ndarray] = None
    ) -> MeshData:
        """Freeze the arena into a ``MeshData``."""
        def stack(rows: List[np.ndarray], width: int) -> np.ndarray:
            if not rows:
                return np.zeros((0, width), dtype=np.float64)
            return np.vstack(rows)

        normals = stack(self.normals, 3) if self.has_normals else normals_override

        return MeshData(
            name=name,
            vertices=stack(self.positions, 3),
            triangles=np.asarray(self.triangles, dtype=np.int32),
            uvs=stack(self.uvs, 2),
            normals=normals,
            tangents=stack(self.tangents, 4) if self.has_tangents else tangents_override,
            colors=stack(self.colors, 4) if self.has_colors else None,
        )
