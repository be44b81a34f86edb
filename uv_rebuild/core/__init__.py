"""
Core module for UV subdivision and validation.
"""

from .subdivider import (
    UVSubdivider,
    SubdivisionConfig,
    SubdivisionStats,
    SplitOutcome,
    find_edge_split,
    split_triangle,
    subdivide_mesh_uv,
)
from .uv_formatter import format_uvs, shift_to_unit_tile, FormatStats
from .validator import UVValidator, ValidationResult

__all__ = [
    "UVSubdivider",
    "SubdivisionConfig",
    "SubdivisionStats",
    "SplitOutcome",
    "find_edge_split",
    "split_triangle",
    "subdivide_mesh_uv",
    "format_uvs",
    "shift_to_unit_tile",
    "FormatStats",
    "UVValidator",
    "ValidationResult",
]
