"""
UV Rebuild - Mesh UV tile subdivision and texture atlas packing.
Splits triangles whose UVs cross texture tile boundaries and packs
textures into mipmap-safe atlases.
"""

__version__ = "1.0.0"
__author__ = "UV Rebuild Team"

from .mesh.mesh_data import MeshData, MeshBuilder
from .core.subdivider import UVSubdivider, SubdivisionConfig, subdivide_mesh_uv
from .core.validator import UVValidator
from .atlas.packer import AtlasPacker, AtlasConfig, pack_images

__all__ = [
    "MeshData",
    "MeshBuilder",
    "UVSubdivider",
    "SubdivisionConfig",
    "subdivide_mesh_uv",
    "UVValidator",
    "AtlasPacker",
    "AtlasConfig",
    "pack_images",
]
