"""
Atlas module for packing, composing and UV remapping.
"""

from .padding import (
    mip_level_count,
    calculate_edge_padding,
    calculate_mipmap_safe_padding,
    effective_padding,
    assess_quality,
    QualityAssessment,
)
from .packer import (
    AtlasConfig,
    AtlasRect,
    PackNode,
    PackResult,
    PackFailure,
    AtlasPacker,
    pack_images,
)
from .compositor import (
    ImageBufferProvider,
    ArrayImageProvider,
    PILImageProvider,
    compose_atlas,
    atlas_to_image,
    save_atlas,
)
from .uv_remap import (
    compute_uv_transform,
    remap_uvs,
    remap_mesh_uvs,
    remap_mesh_parts,
    compute_vertex_ranges,
)

__all__ = [
    "mip_level_count",
    "calculate_edge_padding",
    "calculate_mipmap_safe_padding",
    "effective_padding",
    "assess_quality",
    "QualityAssessment",
    "AtlasConfig",
    "AtlasRect",
    "PackNode",
    "PackResult",
    "PackFailure",
    "AtlasPacker",
    "pack_images",
    "ImageBufferProvider",
    "ArrayImageProvider",
    "PILImageProvider",
    "compose_atlas",
    "atlas_to_image",
    "save_atlas",
    "compute_uv_transform",
    "remap_uvs",
    "remap_mesh_uvs",
    "remap_mesh_parts",
    "compute_vertex_ranges",
]
