"""
Utility modules for logging, error handling and math operations.
"""

from .logger import setup_logger, get_logger, OperationContext
from .error_handler import (
    UVRebuildError,
    MeshError,
    SubdivisionError,
    AtlasPackError,
    ConfigError,
    ValidationError,
    ErrorHandler,
)
from .math_utils import (
    find_integer_between,
    are_values_close,
    is_uv_close,
    needs_subdivision,
    lerp,
    normalize_vector,
    calculate_uv_area,
    barycentric_coordinates,
    compute_vertex_normals,
    compute_vertex_tangents,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "OperationContext",
    "UVRebuildError",
    "MeshError",
    "SubdivisionError",
    "AtlasPackError",
    "ConfigError",
    "ValidationError",
    "ErrorHandler",
    "find_integer_between",
    "are_values_close",
    "is_uv_close",
    "needs_subdivision",
    "lerp",
    "normalize_vector",
    "calculate_uv_area",
    "barycentric_coordinates",
    "compute_vertex_normals",
    "compute_vertex_tangents",
]
