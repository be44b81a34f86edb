"""
Padding calculations for mipmap-safe atlases.

Lower mip levels average neighbouring atlas pixels, so each packed image is
surrounded by extruded edge pixels and its UVs are pulled inward. Both
amounts grow with the number of mip levels of the atlas.
"""

import math
from dataclasses import dataclass

from ..utils.logger import get_logger
from ..utils.error_handler import ValidationError


logger = get_logger("uv_rebuild.padding")


def _check_atlas_size(atlas_size: int):
    if atlas_size <= 0:
        raise ValidationError(f"Atlas size must be positive, got {atlas_size}", error_code=5002)


def mip_level_count(atlas_size: int) -> int:
    """Number of mip levels of a square texture of side ``atlas_size``."""
    _check_atlas_size(atlas_size)
    return int(math.floor(math.log2(atlas_size))) + 1


def calculate_edge_padding(atlas_size: int) -> int:
    """
    Number of edge pixels to extrude around each packed image.

    Args:
        atlas_size: Atlas side in pixels

    Returns:
        ``max(2, mip level count)``
    """
    levels = mip_level_count(atlas_size)
    padding = max(2, levels)
    logger.debug(f"Atlas size {atlas_size}: {levels} mip levels, edge padding {padding}px")
    return padding


def calculate_mipmap_safe_padding(atlas_size: int) -> float:
    """
    UV inset that keeps samples half a pixel inside the extruded border.

    Args:
        atlas_size: Atlas side in pixels

    Returns:
        ``(edge_padding + 0.5) / atlas_size``
    """
    edge_padding = calculate_edge_padding(atlas_size)
    padding = (edge_padding + 0.5) / atlas_size
    logger.debug(f"Atlas size {atlas_size}: UV shrink {padding:.4f}")
    return padding


def effective_padding(base_padding: int, atlas_size: int) -> int:
    """Placement padding that leaves room for edge extrusion on both neighbours."""
    return max(base_padding, 2 * calculate_edge_padding(atlas_size))


@dataclass
class QualityAssessment:
    """Rough estimate of how likely an atlas layout is to show mip seams."""
    rating: str
    texture_ratio: float
    padding_ratio: float
    recommended_min_size: int

    def describe(self) -> str:
        return (
            f"{self.rating}\n"
            f"Texture ratio: {self.texture_ratio * 100:.1f}%\n"
            f"Padding ratio: {self.padding_ratio * 100:.1f}%\n"
            f"Recommended minimum texture size: "
            f"{self.recommended_min_size}x{self.recommended_min_size}"
        )


def assess_quality(atlas_size: int, smallest_texture_size: int, padding: int) -> QualityAssessment:
    """
    Rate the mip seam risk of an atlas.

    Args:
        atlas_size: Atlas side in pixels
        smallest_texture_size: Side of the smallest packed image
        padding: Edge padding in pixels

    Returns:
        QualityAssessment
    """
    _check_atlas_size(atlas_size)
    if smallest_texture_size <= 0:
        raise ValidationError(
            f"Texture size must be positive, got {smallest_texture_size}",
            error_code=5002
        )

    texture_ratio = smallest_texture_size / atlas_size
    padding_ratio = padding / smallest_texture_size

    if padding_ratio >= 0.2 and texture_ratio >= 0.1:
        rating = "excellent - very low mipmap seam risk"
    elif padding_ratio >= 0.1 and texture_ratio >= 0.05:
        rating = "good - low mipmap seam risk"
    elif padding_ratio >= 0.05:
        rating = "fair - slight mipmap seams possible"
    else:
        rating = "poor - mipmap seams likely"

    return QualityAssessment(
        rating=rating,
        texture_ratio=texture_ratio,
        padding_ratio=padding_ratio,
        recommended_min_size=padding * 10,
    )
