"""
Atlas Compositor - Copies source images into a packed atlas buffer.

Pixel buffers are ``(height, width, 4)`` uint8 arrays with row 0 at the
bottom, matching UV space where v grows upward. Images are flipped only
when crossing the Pillow boundary.
"""

import os
from typing import Optional, List, Sequence, Tuple, Union, Protocol

import numpy as np
from PIL import Image

from ..utils.logger import get_logger
from ..utils.error_handler import AtlasPackError, ValidationError
from .packer import PackResult, PackFailure


logger = get_logger("uv_rebuild.compositor")

WHITE = (255, 255, 255, 255)


class ImageBufferProvider(Protocol):
    """Source of RGBA pixels for each packed image."""

    def get_pixels(self, index: int) -> np.ndarray:
        ...


def to_rgba(pixels: np.ndarray) -> np.ndarray:
    """
    Convert a grey, RGB or RGBA array to ``(h, w, 4)`` uint8.

    Float arrays are taken to be in [0, 1].
    """
    array = np.asarray(pixels)
    if np.issubdtype(array.dtype, np.floating):
        array = np.clip(np.rint(array * 255.0), 0, 255)
    array = array.astype(np.uint8, copy=False)

    if array.ndim == 2:
        array = array[:, :, np.newaxis]
    if array.ndim != 3:
        raise ValidationError(f"Expected an image array, got shape {array.shape}", error_code=5001)

    channels = array.shape[2]
    if channels == 4:
        return array
    if channels == 1:
        array = np.repeat(array, 3, axis=2)
    elif channels == 2:
        grey, alpha = array[:, :, :1], array[:, :, 1:]
        return np.concatenate([grey, grey, grey, alpha], axis=2)
    elif channels != 3:
        raise ValidationError(f"Unsupported channel count {channels}", error_code=5001)

    alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
    return np.concatenate([array, alpha], axis=2)


class ArrayImageProvider:
    """Provider over in-memory arrays already stored bottom-up."""

    def __init__(self, arrays: Sequence[np.ndarray]):
        self.arrays = [to_rgba(array) for array in arrays]

    def __len__(self):
        return len(self.arrays)

    def get_pixels(self, index: int) -> np.ndarray:
        return self.arrays[index]

    def image_sizes(self) -> List[Tuple[int, int]]:
        return [(array.shape[1], array.shape[0]) for array in self.arrays]


class PILImageProvider:
    """Provider over Pillow images, flipped to bottom-up rows on access."""

    def __init__(self, images: Sequence[Image.Image]):
        self.images = list(images)

    @classmethod
    def from_files(cls, paths: Sequence[str]) -> 'PILImageProvider':
        """
        Decode image files.

        Raises:
            AtlasPackError: If a file is missing or cannot be decoded
        """
        images = []
        for index, path in enumerate(paths):
            if not os.path.exists(path):
                raise AtlasPackError(
                    f"Image not found: {path}",
                    error_code=3004,
                    image_index=index,
                    path=str(path)
                )
            try:
                with Image.open(path) as image:
                    images.append(image.convert('RGBA'))
            except OSError as e:
                raise AtlasPackError(
                    f"Failed to read image {path}: {e}",
                    error_code=3004,
                    image_index=index,
                    path=str(path)
                ) from e
        logger.debug(f"Loaded {len(images)} images")
        return cls(images)

    def __len__(self):
        return len(self.images)

    def get_pixels(self, index: int) -> np.ndarray:
        pixels = np.asarray(self.images[index].convert('RGBA'), dtype=np.uint8)
        return np.flipud(pixels)

    def image_sizes(self) -> List[Tuple[int, int]]:
        return [image.size for image in self.images]


def resize_pixels(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """Bilinear resample of an RGBA buffer to ``width`` x ``height``."""
    image = Image.fromarray(pixels).resize((width, height), Image.BILINEAR)
    return np.asarray(image, dtype=np.uint8)


def compose_atlas(
    result: Union[PackResult, PackFailure],
    provider: ImageBufferProvider,
    atlas_size: Optional[int] = None,
    fill: Tuple[int, int, int, int] = WHITE,
    extrude: bool = True
) -> np.ndarray:
    """
    Build the atlas pixel buffer for a packing.

    Extrusion repeats each border ``min(edge_padding, padding)`` times, so it
    stops at the placement gap and never bleeds into a neighbouring image.
    Packings made with ``mipmap_safe`` get the full ``edge_padding`` layers.

    Args:
        result: Successful packing
        provider: Source pixels, indexed like the packed images
        atlas_size: Buffer side (defaults to the packed atlas size)
        fill: RGBA value of uncovered pixels
        extrude: Repeat each image's border pixels into its padding

    Returns:
        ``(S, S, 4)`` uint8 buffer, rows bottom-up
    """
    if not result.success:
        result.raise_error()

    size = atlas_size or result.atlas_size
    if size < result.atlas_size:
        raise AtlasPackError(
            f"Atlas buffer {size} is smaller than the packed atlas {result.atlas_size}",
            error_code=3003,
            atlas_size=size
        )

    atlas = np.empty((size, size, 4), dtype=np.uint8)
    atlas[:, :] = np.asarray(fill, dtype=np.uint8)

    layers = min(result.edge_padding, result.padding) if extrude else 0

    for rect in result.rects:
        try:
            pixels = provider.get_pixels(rect.source_index)
        except (IndexError, KeyError) as e:
            raise AtlasPackError(
                f"No pixels for image {rect.source_index}",
                error_code=3004,
                image_index=rect.source_index
            ) from e

        pixels = to_rgba(pixels)
        if pixels.shape[0] != rect.height or pixels.shape[1] != rect.width:
            logger.debug(
                f"Resizing image {rect.source_index} from "
                f"{pixels.shape[1]}x{pixels.shape[0]} to {rect.width}x{rect.height}"
            )
            pixels = resize_pixels(pixels, rect.width, rect.height)

        if layers > 0:
            block = np.pad(pixels, ((layers, layers), (layers, layers), (0, 0)), mode='edge')
            x0, y0 = rect.x - layers, rect.y - layers
        else:
            block = pixels
            x0, y0 = rect.x, rect.y

        _blit(atlas, block, x0, y0)

    logger.info(
        f"Composed {len(result.rects)} images into {size}x{size} atlas "
        f"(extrusion {layers}px)"
    )
    return atlas


def _blit(atlas: np.ndarray, block: np.ndarray, x: int, y: int):
    """Copy ``block`` to ``atlas`` at (x, y), clipped to the atlas bounds."""
    size_y, size_x = atlas.shape[:2]
    height, width = block.shape[:2]

    left = max(0, -x)
    bottom = max(0, -y)
    right = min(width, size_x - x)
    top = min(height, size_y - y)
    if right <= left or top <= bottom:
        return

    atlas[y + bottom:y + top, x + left:x + right] = block[bottom:top, left:right]


def atlas_to_image(buffer: np.ndarray) -> Image.Image:
    """Convert a bottom-up RGBA buffer to a Pillow image (top row first)."""
    return Image.fromarray(np.ascontiguousarray(np.flipud(to_rgba(buffer))))


def save_atlas(buffer: np.ndarray, path: str):
    """
    Write an atlas buffer to an image file.

    Raises:
        AtlasPackError: If the file cannot be written
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    try:
        atlas_to_image(buffer).save(path)
    except (OSError, ValueError) as e:
        raise AtlasPackError(
            f"Failed to write atlas {path}: {e}",
            error_code=3005,
            path=str(path)
        ) from e
    logger.info(f"Saved atlas to {path}")
