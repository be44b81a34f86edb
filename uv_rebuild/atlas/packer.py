"""
Atlas Packer - Places rectangular images into a square atlas.

Uses a binary tree of free regions: each placement occupies the top-left
corner of a free node and splits the leftover into a ``right`` and a
``down`` child. Nodes live in a flat list and refer to their children by
index.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Sequence, Tuple, Union

import numpy as np

from ..utils.logger import get_logger
from ..utils.error_handler import AtlasPackError, ValidationError
from .padding import calculate_edge_padding, effective_padding


@dataclass
class AtlasConfig:
    """Configuration for atlas packing, composition and UV remapping."""
    atlas_size: int = 2048
    base_padding: int = 2
    mipmap_safe: bool = True
    shrink_uvs: bool = True
    extrude_edges: bool = True


@dataclass
class AtlasRect:
    """Placement of one image's content inside the atlas (padding excluded)."""
    x: int
    y: int
    width: int
    height: int
    source_index: int

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass
class PackNode:
    """Free or occupied region of the packing tree."""
    x: int
    y: int
    width: int
    height: int
    used: bool = False
    right: Optional[int] = None
    down: Optional[int] = None


@dataclass
class PackResult:
    """Successful packing: one rect plus UV offset/scale per source image."""
    atlas_size: int
    padding: int
    edge_padding: int
    rects: List[AtlasRect] = field(default_factory=list)
    uv_offsets: np.ndarray = field(default_factory=lambda: np.zeros((0, 2)))
    uv_scales: np.ndarray = field(default_factory=lambda: np.zeros((0, 2)))

    success = True

    @property
    def image_count(self) -> int:
        return len(self.rects)

    @property
    def placed_area(self) -> int:
        return sum(rect.area for rect in self.rects)

    def rect_for(self, image_index: int) -> AtlasRect:
        """Return the rect of source image ``image_index``."""
        for rect in self.rects:
            if rect.source_index == image_index:
                return rect
        raise KeyError(image_index)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'atlas_size': self.atlas_size,
            'padding': self.padding,
            'edge_padding': self.edge_padding,
            'rects': [
                {
                    'x': rect.x,
                    'y': rect.y,
                    'width': rect.width,
                    'height': rect.height,
                    'source_index': rect.source_index,
                }
                for rect in self.rects
            ],
            'uv_offsets': self.uv_offsets.tolist(),
            'uv_scales': self.uv_scales.tolist(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PackResult':
        return cls(
            atlas_size=int(data['atlas_size']),
            padding=int(data['padding']),
            edge_padding=int(data['edge_padding']),
            rects=[AtlasRect(**rect) for rect in data.get('rects', [])],
            uv_offsets=np.asarray(data.get('uv_offsets', []), dtype=np.float64).reshape(-1, 2),
            uv_scales=np.asarray(data.get('uv_scales', []), dtype=np.float64).reshape(-1, 2),
        )


@dataclass
class PackFailure:
    """Packing failed because one image found no free region."""
    image_index: int
    width: int
    height: int
    atlas_size: int
    padding: int
    message: str = ""

    success = False

    def raise_error(self):
        raise AtlasPackError(
            self.message or f"Image {self.image_index} does not fit in the atlas",
            error_code=3001,
            image_index=self.image_index,
            atlas_size=self.atlas_size,
            width=self.width,
            height=self.height,
        )


class AtlasPacker:
    """
    Binary-tree rectangle packer for a fixed square atlas.

    Images are placed largest-area first. Each image is inflated by the
    placement padding on all four sides before insertion.
    """

    def __init__(
        self,
        atlas_size: int,
        base_padding: int = 2,
        mipmap_safe: bool = False
    ):
        if atlas_size <= 0:
            raise ValidationError(f"Atlas size must be positive, got {atlas_size}", error_code=5002)
        if base_padding < 0:
            raise ValidationError(f"Padding cannot be negative, got {base_padding}", error_code=5002)

        self.logger = get_logger("uv_rebuild.packer")
        self.atlas_size = atlas_size
        self.base_padding = base_padding
        self.mipmap_safe = mipmap_safe
        self.edge_padding = calculate_edge_padding(atlas_size)
        self.padding = effective_padding(base_padding, atlas_size) if mipmap_safe else base_padding

        self.nodes: List[PackNode] = []

    def pack(self, sizes: Sequence[Tuple[int, int]]) -> Union[PackResult, PackFailure]:
        """
        Pack images given as ``(width, height)`` pairs.

        Args:
            sizes: Image sizes, indexed by source image index

        Returns:
            PackResult, or PackFailure naming the first image that did not fit
        """
        sizes = [(int(w), int(h)) for w, h in sizes]
        for index, (width, height) in enumerate(sizes):
            if width <= 0 or height <= 0:
                raise ValidationError(
                    f"Image {index} has invalid size {width}x{height}",
                    error_code=5002,
                    details={'image_index': index}
                )

        self.nodes = [PackNode(0, 0, self.atlas_size, self.atlas_size)]
        result = PackResult(
            atlas_size=self.atlas_size,
            padding=self.padding,
            edge_padding=self.edge_padding,
            uv_offsets=np.zeros((len(sizes), 2), dtype=np.float64),
            uv_scales=np.zeros((len(sizes), 2), dtype=np.float64),
        )

        if not sizes:
            self.logger.info("No images to pack")
            return result

        order = sorted(range(len(sizes)), key=lambda i: sizes[i][0] * sizes[i][1], reverse=True)
        pad = self.padding

        for index in order:
            width, height = sizes[index]
            node_index = self.insert(width + pad * 2, height + pad * 2)

            if node_index is None:
                message = (
                    f"No space for image {index} ({width}x{height}, padding {pad}) "
                    f"in {self.atlas_size}x{self.atlas_size} atlas"
                )
                self.logger.error(message)
                return PackFailure(
                    image_index=index,
                    width=width,
                    height=height,
                    atlas_size=self.atlas_size,
                    padding=pad,
                    message=message,
                )

            node = self.nodes[node_index]
            result.rects.append(AtlasRect(node.x + pad, node.y + pad, width, height, index))

        for rect in result.rects:
            result.uv_offsets[rect.source_index] = (
                rect.x / self.atlas_size,
                rect.y / self.atlas_size,
            )
            result.uv_scales[rect.source_index] = (
                rect.width / self.atlas_size,
                rect.height / self.atlas_size,
            )

        self.logger.info(
            f"Packed {len(result.rects)} images into {self.atlas_size}x{self.atlas_size} "
            f"(padding {pad}px, fill {result.placed_area / self.atlas_size ** 2:.1%})"
        )
        return result

    def insert(self, width: int, height: int) -> Optional[int]:
        """
        Reserve a ``width`` x ``height`` region.

        Occupied nodes are searched right child first, then down child.

        Returns:
            Index of the node now holding the region, or None if nothing fits
        """
        stack = [0]

        while stack:
            node_index = stack.pop()
            node = self.nodes[node_index]

            if node.used:
                if node.down is not None:
                    stack.append(node.down)
                if node.right is not None:
                    stack.append(node.right)
                continue

            if width > node.width or height > node.height:
                continue

            if width == node.width and height == node.height:
                node.used = True
                return node_index

            self._split(node, width, height)
            node.used = True
            return node_index

        return None

    def _split(self, node: PackNode, width: int, height: int):
        """Divide the space left over after placing a region in ``node``."""
        dw = node.width - width
        dh = node.height - height

        if dw > dh:
            right = PackNode(node.x + width, node.y, dw, height)
            down = PackNode(node.x, node.y + height, node.width, dh)
        else:
            right = PackNode(node.x + width, node.y, dw, node.height)
            down = PackNode(node.x, node.y + height, width, dh)

        node.right = len(self.nodes)
        self.nodes.append(right)
        node.down = len(self.nodes)
        self.nodes.append(down)


def pack_images(
    images: Sequence[Tuple[int, int]],
    atlas_size: int,
    base_padding: int = 2,
    mipmap_safe: bool = False
) -> Union[PackResult, PackFailure]:
    """
    Pack ``(width, height)`` images into a square atlas.

    Placement padding is ``base_padding`` as given. Pass ``mipmap_safe=True``
    to use ``max(base_padding, 2 * edge_padding)`` instead; that wider gap
    often leaves no room for tightly sized atlases, so it is opt-in here and
    on by default in ``AtlasConfig``.

    Args:
        images: Image sizes
        atlas_size: Atlas side in pixels
        base_padding: Padding in pixels around each image
        mipmap_safe: Widen the padding to fit edge extrusion for every mip level

    Returns:
        PackResult or PackFailure
    """
    if images is None:
        images = []
    return AtlasPacker(atlas_size, base_padding, mipmap_safe).pack(images)
