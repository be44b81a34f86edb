"""
UV Remap - Moves mesh UVs into the atlas cell of their packed image.
"""

from typing import List, Sequence, Tuple

import numpy as np

from ..mesh.mesh_data import MeshData
from ..utils.logger import get_logger
from ..utils.error_handler import ValidationError
from .packer import PackResult
from .padding import calculate_mipmap_safe_padding


logger = get_logger("uv_rebuild.uv_remap")

# Fraction of the cell kept when the mipmap shrink would invert it.
FALLBACK_SCALE = 0.9


def compute_uv_transform(
    offset: Sequence[float],
    scale: Sequence[float],
    atlas_size: int,
    shrink: bool = True
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Adjust an atlas cell's UV offset and scale for mipmap sampling.

    Args:
        offset: Cell origin in atlas UV space
        scale: Cell size in atlas UV space
        atlas_size: Atlas side in pixels
        shrink: Pull the cell inward by the mipmap-safe padding

    Returns:
        ``(offset, scale)`` to apply to unit-tile UVs
    """
    offset = np.asarray(offset, dtype=np.float64)
    scale = np.asarray(scale, dtype=np.float64)

    if not shrink:
        return offset.copy(), scale.copy()

    inset = calculate_mipmap_safe_padding(atlas_size)
    new_scale = scale - inset * 2.0
    new_offset = offset + inset

    if np.any(new_scale <= 0):
        logger.warning(
            f"Cell {scale[0]:.4f}x{scale[1]:.4f} is too small for a {inset:.4f} UV shrink, "
            f"using {FALLBACK_SCALE:.0%} of the cell"
        )
        new_scale = scale * FALLBACK_SCALE
        new_offset = offset + (scale - new_scale) * 0.5

    return new_offset, new_scale


def remap_uvs(
    uvs: np.ndarray,
    offset: Sequence[float],
    scale: Sequence[float],
    atlas_size: int,
    shrink: bool = True
) -> np.ndarray:
    """
    Map unit-tile UVs into an atlas cell.

    Source UVs are clamped to [0, 1] first; results are clamped to the cell.

    Args:
        uvs: (N, 2) source UVs
        offset: Cell origin
        scale: Cell size
        atlas_size: Atlas side in pixels
        shrink: Apply the mipmap-safe inset

    Returns:
        (N, 2) atlas UVs
    """
    uvs = np.asarray(uvs, dtype=np.float64).reshape(-1, 2)
    cell_offset = np.asarray(offset, dtype=np.float64)
    cell_scale = np.asarray(scale, dtype=np.float64)

    new_offset, new_scale = compute_uv_transform(cell_offset, cell_scale, atlas_size, shrink)

    remapped = new_offset + np.clip(uvs, 0.0, 1.0) * new_scale
    return np.clip(remapped, cell_offset, cell_offset + cell_scale)


def remap_mesh_uvs(
    mesh: MeshData,
    result: PackResult,
    image_index: int,
    shrink: bool = True
) -> MeshData:
    """
    Return a copy of ``mesh`` with UVs moved into image ``image_index``'s cell.
    """
    if image_index < 0 or image_index >= len(result.uv_offsets):
        raise ValidationError(
            f"Image index {image_index} out of range for {len(result.uv_offsets)} packed images",
            error_code=5002
        )

    remapped = mesh.copy()
    remapped.uvs = remap_uvs(
        mesh.uvs,
        result.uv_offsets[image_index],
        result.uv_scales[image_index],
        result.atlas_size,
        shrink
    )
    logger.debug(f"Remapped {mesh.vertex_count} UVs of {mesh.name} to image {image_index}")
    return remapped


def compute_vertex_ranges(vertex_counts: Sequence[int]) -> List[Tuple[int, int]]:
    """Consecutive ``(start, count)`` ranges of meshes combined in order."""
    ranges = []
    start = 0
    for count in vertex_counts:
        ranges.append((start, int(count)))
        start += int(count)
    return ranges


def remap_mesh_parts(
    mesh: MeshData,
    vertex_ranges: Sequence[Tuple[int, int]],
    image_indices: Sequence[int],
    result: PackResult,
    shrink: bool = True
) -> MeshData:
    """
    Remap a combined mesh whose vertex ranges each use a different image.

    Args:
        mesh: Combined mesh
        vertex_ranges: ``(start, count)`` per part
        image_indices: Packed image index per part
        result: Packing of the images
        shrink: Apply the mipmap-safe inset

    Returns:
        Copy of ``mesh`` with remapped UVs. Parts with an unknown image
        index keep their UVs.
    """
    if len(vertex_ranges) != len(image_indices):
        raise ValidationError(
            f"{len(vertex_ranges)} vertex ranges but {len(image_indices)} image indices",
            error_code=5001
        )

    remapped = mesh.copy()
    image_count = len(result.uv_offsets)

    for part, ((start, count), image_index) in enumerate(zip(vertex_ranges, image_indices)):
        if image_index < 0 or image_index >= image_count:
            logger.warning(f"Part {part}: invalid image index {image_index}, UVs left unchanged")
            continue

        end = min(start + count, mesh.vertex_count)
        if start < 0 or start >= end:
            logger.warning(f"Part {part}: empty vertex range ({start}, {count})")
            continue

        remapped.uvs[start:end] = remap_uvs(
            mesh.uvs[start:end],
            result.uv_offsets[image_index],
            result.uv_scales[image_index],
            result.atlas_size,
            shrink
        )

    logger.info(f"Remapped {len(vertex_ranges)} parts of {mesh.name}")
    return remapped
