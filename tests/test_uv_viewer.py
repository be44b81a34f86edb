"""
Tests for UV and atlas plots.
"""

import numpy as np
import pytest
from PIL import Image

from uv_rebuild.visualization import UVViewer
from uv_rebuild.atlas.packer import pack_images
from uv_rebuild.atlas.compositor import ArrayImageProvider, compose_atlas

plt = pytest.importorskip("matplotlib.pyplot")


@pytest.fixture
def viewer():
    viewer = UVViewer()
    yield viewer
    plt.close('all')


class TestUVViewer:
    """Saved figures."""

    def test_available(self, viewer):
        assert viewer.available

    def test_visualize_uv(self, viewer, overhang_triangle, tmp_path):
        output = tmp_path / "uv.png"
        fig = viewer.visualize_uv(overhang_triangle, str(output))
        assert fig is not None
        assert output.exists()

        ax = fig.axes[0]
        assert ax.get_xlim()[1] == pytest.approx(1.6)
        assert ax.get_title() == "overhang - UV Layout"

    def test_visualize_uv_without_grid(self, viewer, unit_quad):
        fig = viewer.visualize_uv(unit_quad, show_tile_grid=False, title="quad")
        assert fig.axes[0].get_title() == "quad"
        assert len(fig.axes[0].lines) == 0

    def test_visualize_uv_with_texture(self, viewer, unit_quad, tmp_path):
        texture = tmp_path / "texture.png"
        Image.new('RGB', (8, 8), (0, 128, 0)).save(texture)
        output = tmp_path / "uv_texture.png"

        assert viewer.visualize_uv_with_texture(unit_quad, str(texture), str(output)) is not None
        assert output.exists()

    def test_missing_texture_falls_back_to_plain_layout(self, viewer, unit_quad, tmp_path):
        fig = viewer.visualize_uv_with_texture(unit_quad, str(tmp_path / "missing.png"))
        assert fig.axes[0].get_title().endswith("UV Layout")

    def test_visualize_atlas(self, viewer, tmp_path):
        sizes = [(4, 4), (2, 2)]
        result = pack_images(sizes, 16)
        provider = ArrayImageProvider([
            np.full((h, w, 4), 200, dtype=np.uint8) for w, h in sizes
        ])
        output = tmp_path / "atlas.png"

        fig = viewer.visualize_atlas(result, str(output), atlas=compose_atlas(result, provider))
        assert output.exists()
        # Padding outline and cell for each image.
        assert len(fig.axes[0].patches) == 4
