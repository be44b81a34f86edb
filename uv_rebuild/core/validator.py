"""
UV Validator - Validates mesh structure and UV ranges, and inspects meshes.
"""

from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field
import numpy as np
from scipy.spatial import cKDTree

from ..mesh.mesh_data import MeshData
from ..utils.logger import get_logger
from ..utils.error_handler import MeshError
from ..utils.math_utils import calculate_uv_area, needs_subdivision


@dataclass
class ValidationResult:
    """Result of mesh validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def uv_count(self) -> int:
        return self.details.get('uv_count', 0)

    @property
    def out_of_range_count(self) -> int:
        return self.details.get('out_of_range', 0)


class UVValidator:
    """
    Validates meshes before and after UV subdivision.

    Checks performed:
    - Index buffer and attribute array consistency
    - NaN/Inf values
    - UVs outside [0, threshold]
    - Triangles spanning more than one UV tile
    """

    def __init__(self, threshold: float = 1.0):
        self.logger = get_logger("uv_rebuild.validator")
        self.threshold = threshold

    def validate_mesh(self, mesh: MeshData) -> ValidationResult:
        """
        Validate a mesh for structural integrity and UV range.

        Args:
            mesh: MeshData to validate

        Returns:
            ValidationResult with validation details
        """
        result = ValidationResult(is_valid=True)
        result.details['uv_count'] = len(mesh.uvs)
        result.details['vertex_count'] = mesh.vertex_count
        result.details['triangle_count'] = mesh.triangle_count

        try:
            mesh.validate()
        except MeshError as e:
            result.errors.append(e.message)
            result.is_valid = False

        uv_coords = mesh.uvs
        nan_count = int(np.sum(np.isnan(uv_coords)))
        inf_count = int(np.sum(np.isinf(uv_coords)))

        if nan_count > 0:
            result.errors.append(f"Found {nan_count} NaN values in UV coordinates")
            result.is_valid = False

        if inf_count > 0:
            result.errors.append(f"Found {inf_count} Inf values in UV coordinates")
            result.is_valid = False

        if result.is_valid:
            out_of_range = self.find_out_of_range_uvs(mesh)
            result.details['out_of_range'] = len(out_of_range)

            if len(out_of_range) > 0:
                result.warnings.append(
                    f"Found {len(out_of_range)} UV coordinates outside [0,{self.threshold:g}] range"
                )

            if len(uv_coords) > 0:
                unique_uvs = len(np.unique(uv_coords, axis=0))
                duplicate_count = len(uv_coords) - unique_uvs

                if duplicate_count > len(uv_coords) * 0.5:
                    result.warnings.append(
                        f"High number of duplicate UVs: {duplicate_count}"
                    )

        self.logger.debug(
            f"Mesh validation: valid={result.is_valid}, "
            f"errors={len(result.errors)}, warnings={len(result.warnings)}"
        )

        return result

    def find_out_of_range_uvs(
        self,
        mesh: MeshData,
        threshold: Optional[float] = None
    ) -> np.ndarray:
        """
        Return indices of vertices whose UV lies outside [0, threshold].

        Args:
            mesh: MeshData to check
            threshold: Upper bound (defaults to the validator threshold)
        """
        if threshold is None:
            threshold = self.threshold
        uvs = mesh.uvs
        if len(uvs) == 0:
            return np.zeros(0, dtype=np.int64)
        mask = np.any((uvs < 0.0) | (uvs > threshold), axis=1)
        return np.nonzero(mask)[0]

    def find_unbounded_triangles(
        self,
        mesh: MeshData,
        tolerance: float = 1e-9
    ) -> List[int]:
        """
        Find triangles whose UV corners span more than one tile on either axis.

        Args:
            mesh: MeshData to check
            tolerance: Allowed excess over a span of exactly 1

        Returns:
            Triangle indices
        """
        faces = mesh.faces
        if len(faces) == 0:
            return []

        corner_uvs = mesh.uvs[faces]
        spans = corner_uvs.max(axis=1) - corner_uvs.min(axis=1)
        mask = np.any(spans > 1.0 + tolerance, axis=1)
        return [int(i) for i in np.nonzero(mask)[0]]

    def find_related_triangles(self, mesh: MeshData, vertex_index: int) -> List[int]:
        """Return indices of triangles that reference ``vertex_index``."""
        if vertex_index < 0 or vertex_index >= mesh.vertex_count:
            raise MeshError(
                f"Vertex index {vertex_index} out of range 0..{mesh.vertex_count - 1}",
                error_code=1006,
                mesh_name=mesh.name
            )
        faces = mesh.faces
        mask = np.any(faces == vertex_index, axis=1)
        return [int(i) for i in np.nonzero(mask)[0]]

    def count_coincident_vertices(self, mesh: MeshData, tolerance: float = 1e-6) -> int:
        """
        Count vertex pairs sharing (nearly) the same position.

        Split seams duplicate positions, so this measures how many seam
        vertices a mesh carries.
        """
        if mesh.vertex_count < 2:
            return 0
        tree = cKDTree(mesh.vertices)
        return len(tree.query_pairs(r=tolerance))

    def count_triangles_needing_subdivision(self, mesh: MeshData) -> int:
        """Count triangles with any UV outside [0, threshold]."""
        return sum(
            1 for face in mesh.faces
            if needs_subdivision(mesh.uvs[face], self.threshold)
        )

    def inspect_mesh(self, mesh: MeshData) -> Dict[str, Any]:
        """
        Collect statistics about a mesh.

        Args:
            mesh: MeshData to inspect

        Returns:
            Dictionary of counts, attribute flags, bounds and UV ranges
        """
        info: Dict[str, Any] = {
            'name': mesh.name,
            'vertex_count': mesh.vertex_count,
            'triangle_count': mesh.triangle_count,
            'has_uvs': len(mesh.uvs) > 0,
            'has_normals': mesh.has_normals,
            'has_tangents': mesh.has_tangents,
            'has_colors': mesh.has_colors,
        }

        if mesh.vertex_count > 0:
            bounds_min = mesh.vertices.min(axis=0)
            bounds_max = mesh.vertices.max(axis=0)
            size = bounds_max - bounds_min
            info['bounds'] = {
                'center': ((bounds_min + bounds_max) / 2.0).tolist(),
                'size': size.tolist(),
                'min': bounds_min.tolist(),
                'max': bounds_max.tolist(),
            }
            info['bounds_volume'] = float(size[0] * size[1] * size[2])
            info['bounds_surface_area'] = float(
                2 * (size[0] * size[1] + size[0] * size[2] + size[1] * size[2])
            )
        else:
            info['bounds'] = None

        if len(mesh.uvs) > 0:
            info['uv_min'] = mesh.uvs.min(axis=0).tolist()
            info['uv_max'] = mesh.uvs.max(axis=0).tolist()
        else:
            info['uv_min'] = info['uv_max'] = None

        faces = mesh.faces
        info['uv_area'] = float(sum(calculate_uv_area(mesh.uvs[face]) for face in faces))
        info['out_of_range_uvs'] = len(self.find_out_of_range_uvs(mesh))
        info['triangles_needing_subdivision'] = self.count_triangles_needing_subdivision(mesh)
        info['unbounded_triangles'] = len(self.find_unbounded_triangles(mesh))
        info['coincident_vertex_pairs'] = self.count_coincident_vertices(mesh)

        return info

    def generate_report(self, mesh: MeshData) -> str:
        """
        Generate a readable inspection and validation report.

        Args:
            mesh: MeshData to report on

        Returns:
            Formatted report string
        """
        result = self.validate_mesh(mesh)
        info = self.inspect_mesh(mesh) if result.is_valid else None

        report_lines = [
            f"Mesh Report for {mesh.name}",
            "=" * 50,
            f"Vertex Count: {mesh.vertex_count}",
            f"Triangle Count: {mesh.triangle_count}",
            f"Normals: {mesh.has_normals}  Tangents: {mesh.has_tangents}  Colors: {mesh.has_colors}",
        ]

        if info is not None:
            if info['bounds'] is not None:
                bounds = info['bounds']
                report_lines.extend([
                    "",
                    "Bounds:",
                    "  Center: ({:.4f}, {:.4f}, {:.4f})".format(*bounds['center']),
                    "  Size: ({:.4f}, {:.4f}, {:.4f})".format(*bounds['size']),
                    f"  Volume: {info['bounds_volume']:.4f}",
                    f"  Surface area: {info['bounds_surface_area']:.4f}",
                ])
            if info['uv_min'] is not None:
                report_lines.extend([
                    "",
                    "UV:",
                    "  Min: ({:.4f}, {:.4f})".format(*info['uv_min']),
                    "  Max: ({:.4f}, {:.4f})".format(*info['uv_max']),
                    f"  Out of range: {info['out_of_range_uvs']}",
                    f"  Triangles needing subdivision: {info['triangles_needing_subdivision']}",
                    f"  Triangles spanning several tiles: {info['unbounded_triangles']}",
                    f"  Coincident vertex pairs: {info['coincident_vertex_pairs']}",
                ])

        report_lines.extend([
            "",
            f"Status: {'VALID' if result.is_valid else 'INVALID'}",
        ])

        if result.errors:
            report_lines.append("")
            report_lines.append("Errors:")
            for error in result.errors:
                report_lines.append(f"  - {error}")

        if result.warnings:
            report_lines.append("")
            report_lines.append("Warnings:")
            for warning in result.warnings:
                report_lines.append(f"  - {warning}")

        return "\n".join(report_lines)
