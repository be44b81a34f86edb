"""
Tests for the command line interface.
"""

import json

import numpy as np
import pytest
from PIL import Image

from uv_rebuild.cli import main, create_parser
from uv_rebuild.mesh.mesh_io import save_mesh, load_mesh


@pytest.fixture
def mesh_file(tmp_path, overhang_triangle):
    return str(save_mesh(overhang_triangle, tmp_path / "overhang.npz"))


@pytest.fixture
def image_files(tmp_path):
    paths = []
    for i, (width, height) in enumerate([(64, 64), (128, 64), (64, 128)]):
        path = tmp_path / f"texture_{i}.png"
        Image.new('RGB', (width, height), (i * 80, 0, 0)).save(path)
        paths.append(str(path))
    return paths


@pytest.fixture(autouse=True)
def home(tmp_path, monkeypatch):
    """Keep user presets out of the real home directory."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


class TestParser:
    """Argument parsing."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "uv-rebuild" in capsys.readouterr().out

    def test_subcommands(self):
        parser = create_parser()
        for command in ("subdivide", "inspect", "pack", "remap", "view", "batch", "presets"):
            with pytest.raises(SystemExit) as exc_info:
                parser.parse_args([command, "--help"])
            assert exc_info.value.code == 0

    def test_subdivide_requires_output(self):
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["subdivide", "mesh.npz"])
        assert exc_info.value.code != 0


class TestCommands:
    """End-to-end command runs."""

    def test_subdivide(self, mesh_file, tmp_path, capsys):
        output = tmp_path / "out.npz"
        assert main(["subdivide", mesh_file, "-o", str(output)]) == 0

        result = load_mesh(output)
        assert result.triangle_count == 5
        assert np.all(result.uvs <= 1.0)
        assert "Triangles: 1 -> 5" in capsys.readouterr().out

    def test_subdivide_with_options(self, mesh_file, tmp_path):
        output = tmp_path / "out.json"
        assert main([
            "subdivide", mesh_file, "-o", str(output),
            "--no-format", "--recalculate-normals", "--recalculate-tangents",
        ]) == 0
        result = load_mesh(output)
        assert result.uvs.max() == pytest.approx(1.5)
        assert result.has_normals
        assert result.has_tangents

    def test_subdivide_missing_input(self, tmp_path):
        assert main(["subdivide", str(tmp_path / "nope.npz"), "-o", str(tmp_path / "o.npz")]) == 1

    def test_subdivide_malformed_input(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({
            'vertices': [0, 0, 0, 1],
            'triangles': [0, 1, 2],
            'uvs': [[0, 0], [1, 0], [0, 1]],
        }), encoding='utf-8')
        assert main(["subdivide", str(path), "-o", str(tmp_path / "out.json")]) == 1
        assert main(["inspect", str(path)]) == 1

    def test_subdivide_depth_limit(self, mesh_file, tmp_path):
        assert main(["subdivide", mesh_file, "-o", str(tmp_path / "o.npz"), "--max-depth", "1"]) == 1

    def test_inspect(self, mesh_file, tmp_path, capsys):
        report_path = tmp_path / "report.txt"
        assert main(["inspect", mesh_file, "--output", str(report_path)]) == 0
        out = capsys.readouterr().out
        assert "Status: VALID" in out
        assert "Status: VALID" in report_path.read_text(encoding='utf-8')

    def test_pack_and_remap(self, image_files, mesh_file, tmp_path, capsys):
        atlas_path = tmp_path / "atlas.png"
        layout_path = tmp_path / "atlas.json"
        assert main([
            "pack", *image_files,
            "-o", str(atlas_path),
            "--atlas-size", "256",
            "--no-mipmap-safe",
            "--layout", str(layout_path),
        ]) == 0

        with Image.open(atlas_path) as atlas:
            assert atlas.size == (256, 256)
        layout = json.loads(layout_path.read_text(encoding='utf-8'))
        assert layout['atlas_size'] == 256
        assert layout['images'] == image_files
        assert "Images: 3" in capsys.readouterr().out

        output = tmp_path / "remapped.npz"
        assert main([
            "remap", mesh_file,
            "--layout", str(layout_path),
            "--image-index", "1",
            "-o", str(output),
        ]) == 0
        remapped = load_mesh(output)
        offset = np.array(layout['uv_offsets'][1])
        scale = np.array(layout['uv_scales'][1])
        assert np.all(remapped.uvs >= offset - 1e-12)
        assert np.all(remapped.uvs <= offset + scale + 1e-12)

    def test_pack_failure(self, image_files, tmp_path, capsys):
        assert main(["pack", *image_files, "-o", str(tmp_path / "a.png"), "--atlas-size", "64"]) == 1
        assert "Packing failed" in capsys.readouterr().out

    def test_pack_with_growth(self, image_files, tmp_path, capsys):
        assert main([
            "pack", *image_files,
            "-o", str(tmp_path / "a.png"),
            "--atlas-size", "64",
            "--no-mipmap-safe",
            "--grow",
        ]) == 0
        assert "Size: 256x256" in capsys.readouterr().out

    def test_view(self, mesh_file, tmp_path):
        import matplotlib.pyplot as plt

        output = tmp_path / "uv.png"
        assert main(["view", mesh_file, "-o", str(output)]) == 0
        assert output.exists()
        plt.close('all')

    def test_batch(self, mesh_file, tmp_path, capsys):
        output_dir = tmp_path / "batch_out"
        assert main([
            "batch",
            "--input-dir", str(tmp_path),
            "--output-dir", str(output_dir),
        ]) == 0
        assert (output_dir / "overhang_subdivided.npz").exists()
        assert "Successful: 1" in capsys.readouterr().out

    def test_batch_without_input(self):
        assert main(["batch"]) == 1

    def test_presets(self, capsys):
        assert main(["presets"]) == 0
        out = capsys.readouterr().out
        assert "mobile_atlas" in out
        assert main(["presets", "--show", "strict"]) == 0
        assert '"max_depth": 64' in capsys.readouterr().out
        assert main(["presets", "--show", "nope"]) == 1
