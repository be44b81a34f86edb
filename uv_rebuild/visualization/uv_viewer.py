"""
UV Viewer - Visualization tool for UV layouts and packed atlases.
"""

import math
from typing import Optional, Any, Tuple

import numpy as np

from ..utils.logger import get_logger
from ..mesh.mesh_data import MeshData
from ..atlas.packer import PackResult


class UVViewer:
    """
    Visualization tool for UV coordinates.

    Provides:
    - UV layout with the integer tile grid
    - Texture overlay
    - Packed atlas layout
    """

    def __init__(self):
        self.logger = get_logger("uv_rebuild.viewer")
        self._matplotlib_available = self._check_matplotlib()

    def _check_matplotlib(self) -> bool:
        """Check if matplotlib is available."""
        try:
            import matplotlib
            matplotlib.use('Agg')
            import matplotlib.pyplot as plt
            return True
        except ImportError:
            self.logger.warning("matplotlib not available, visualization disabled")
            return False

    @property
    def available(self) -> bool:
        return self._matplotlib_available

    def visualize_uv(
        self,
        mesh: MeshData,
        output_path: Optional[str] = None,
        title: Optional[str] = None,
        show_tile_grid: bool = True,
        figsize: Tuple[int, int] = (10, 10)
    ) -> Optional[Any]:
        """
        Visualize a mesh's UV layout.

        Triangles are drawn in UV space; with ``show_tile_grid`` every
        integer U and V line covered by the layout is drawn too, so
        triangles crossing tiles stand out.

        Args:
            mesh: Mesh to draw
            output_path: Path to save image (None to only return the figure)
            title: Plot title
            show_tile_grid: Whether to draw integer tile lines
            figsize: Figure size

        Returns:
            matplotlib figure or None
        """
        if not self._matplotlib_available:
            self.logger.warning("Cannot visualize: matplotlib not available")
            return None

        import matplotlib.pyplot as plt
        from matplotlib.collections import PolyCollection

        uv_coords = mesh.uvs
        fig, ax = plt.subplots(figsize=figsize)

        faces = mesh.faces
        if len(faces) > 0:
            collection = PolyCollection(
                uv_coords[faces],
                facecolors='lightblue',
                edgecolors='blue',
                linewidths=0.5,
                alpha=0.7
            )
            ax.add_collection(collection)

        if len(uv_coords) > 0:
            ax.scatter(uv_coords[:, 0], uv_coords[:, 1], s=1, c='red', alpha=0.5)
            lower = np.minimum(uv_coords.min(axis=0), 0.0)
            upper = np.maximum(uv_coords.max(axis=0), 1.0)
        else:
            lower = np.zeros(2)
            upper = np.ones(2)

        margin = 0.1
        ax.set_xlim(lower[0] - margin, upper[0] + margin)
        ax.set_ylim(lower[1] - margin, upper[1] + margin)
        ax.set_aspect('equal')

        if show_tile_grid:
            for u in range(math.floor(lower[0]), math.ceil(upper[0]) + 1):
                style = '-' if u in (0, 1) else '--'
                ax.axvline(x=u, color='k', linewidth=0.5, linestyle=style)
            for v in range(math.floor(lower[1]), math.ceil(upper[1]) + 1):
                style = '-' if v in (0, 1) else '--'
                ax.axhline(y=v, color='k', linewidth=0.5, linestyle=style)

        ax.set_xlabel('U')
        ax.set_ylabel('V')
        ax.set_title(title or f"{mesh.name} - UV Layout")

        if output_path:
            fig.savefig(output_path, dpi=150, bbox_inches='tight')
            self.logger.info(f"Saved UV visualization to {output_path}")

        return fig

    def visualize_uv_with_texture(
        self,
        mesh: MeshData,
        texture_path: str,
        output_path: Optional[str] = None,
        figsize: Tuple[int, int] = (10, 10)
    ) -> Optional[Any]:
        """
        Visualize a UV layout over its texture.

        Args:
            mesh: Mesh to draw
            texture_path: Path to texture image
            output_path: Path to save image
            figsize: Figure size

        Returns:
            matplotlib figure or None
        """
        if not self._matplotlib_available:
            return None

        import matplotlib.pyplot as plt
        from PIL import Image

        try:
            with Image.open(texture_path) as image:
                texture = image.convert('RGBA')
        except OSError as e:
            self.logger.warning(f"Could not load texture: {e}")
            return self.visualize_uv(mesh, output_path)

        uv_coords = mesh.uvs

        fig, ax = plt.subplots(figsize=figsize)
        ax.imshow(texture, extent=[0, 1, 0, 1])

        for face in mesh.faces:
            poly = uv_coords[face]
            closed_poly = np.vstack([poly, poly[0]])
            ax.plot(closed_poly[:, 0], closed_poly[:, 1], 'r-', linewidth=0.5)

        ax.set_xlim(-0.1, 1.1)
        ax.set_ylim(-0.1, 1.1)
        ax.set_aspect('equal')
        ax.set_title("UV Layout with Texture")

        if output_path:
            fig.savefig(output_path, dpi=150, bbox_inches='tight')
            self.logger.info(f"Saved UV+texture visualization to {output_path}")

        return fig

    def visualize_atlas(
        self,
        result: PackResult,
        output_path: Optional[str] = None,
        atlas: Optional[np.ndarray] = None,
        figsize: Tuple[int, int] = (10, 10)
    ) -> Optional[Any]:
        """
        Draw the packed rects of an atlas, optionally over its pixels.

        Args:
            result: Packing to draw
            output_path: Path to save image
            atlas: Composed (S, S, 4) buffer, rows bottom-up
            figsize: Figure size

        Returns:
            matplotlib figure or None
        """
        if not self._matplotlib_available:
            return None

        import matplotlib.pyplot as plt
        from matplotlib.patches import Rectangle

        size = result.atlas_size
        fig, ax = plt.subplots(figsize=figsize)

        if atlas is not None:
            ax.imshow(atlas, origin='lower', extent=[0, size, 0, size])

        colors = plt.cm.tab20(np.linspace(0, 1, max(len(result.rects), 1)))
        for i, rect in enumerate(result.rects):
            ax.add_patch(Rectangle(
                (rect.x - result.padding, rect.y - result.padding),
                rect.width + result.padding * 2,
                rect.height + result.padding * 2,
                fill=False,
                edgecolor='gray',
                linestyle=':',
                linewidth=0.5
            ))
            ax.add_patch(Rectangle(
                (rect.x, rect.y),
                rect.width,
                rect.height,
                facecolor=colors[i] if atlas is None else 'none',
                edgecolor=colors[i],
                alpha=0.6 if atlas is None else 1.0,
                linewidth=1.0
            ))
            ax.text(
                rect.x + rect.width / 2,
                rect.y + rect.height / 2,
                str(rect.source_index),
                ha='center',
                va='center',
                fontsize=8
            )

        ax.set_xlim(0, size)
        ax.set_ylim(0, size)
        ax.set_aspect('equal')
        fill = result.placed_area / (size * size)
        ax.set_title(
            f"Atlas {size}x{size} - {len(result.rects)} images, "
            f"padding {result.padding}px, fill {fill:.1%}"
        )

        if output_path:
            fig.savefig(output_path, dpi=150, bbox_inches='tight')
            self.logger.info(f"Saved atlas visualization to {output_path}")

        return fig
