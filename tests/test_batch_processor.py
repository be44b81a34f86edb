"""
Tests for batch subdivision and atlas growth.
"""

import pytest

from uv_rebuild.batch.batch_processor import BatchProcessor, BatchItem, pack_with_growth
from uv_rebuild.batch.config_manager import ConfigManager, ProcessingConfig
from uv_rebuild.atlas.packer import AtlasConfig
from uv_rebuild.mesh.mesh_io import save_mesh, load_mesh
from uv_rebuild.utils.error_handler import ConfigError


@pytest.fixture
def processor(tmp_path):
    manager = ConfigManager(config_dir=str(tmp_path / "config"))
    return BatchProcessor(config_manager=manager, show_progress=False)


@pytest.fixture
def input_dir(tmp_path, overhang_triangle, tiled_quad):
    directory = tmp_path / "input"
    save_mesh(overhang_triangle, directory / "overhang.npz")
    save_mesh(tiled_quad, directory / "quad.npz")
    save_mesh(tiled_quad, directory / "quad.json")
    return directory


class TestBatchProcessor:
    """Directory batches."""

    def test_create_batch_from_directory(self, processor, input_dir, tmp_path):
        items = processor.create_batch_from_directory(str(input_dir), str(tmp_path / "out"))
        assert [item.input_file.split("/")[-1] for item in items] == ["overhang.npz", "quad.npz"]
        assert items[0].output_file.endswith("overhang_subdivided.npz")

    def test_process_batch(self, processor, input_dir, tmp_path):
        items = processor.create_batch_from_directory(str(input_dir), str(tmp_path / "out"))
        result = processor.process_batch(items)

        assert result.total_items == 2
        assert result.successful == 2
        assert result.failed == 0
        assert result.success_rate == 1.0

        output = load_mesh(tmp_path / "out" / "overhang_subdivided.npz")
        assert output.triangle_count == 5
        assert result.results[0]['details']['output_triangles'] == 5

    def test_failed_item_does_not_stop_batch(self, processor, input_dir, tmp_path):
        items = [
            BatchItem(str(tmp_path / "missing.npz"), str(tmp_path / "out" / "missing.npz")),
            BatchItem(str(input_dir / "quad.npz"), str(tmp_path / "out" / "quad.npz")),
        ]
        result = processor.process_batch(items)

        assert result.successful == 1
        assert result.failed == 1
        assert not result.results[0]['success']
        assert "1001" in result.results[0]['error']
        assert processor.error_handler.get_last_error()['error_code'] == 1001

    def test_stop_on_error(self, processor, input_dir, tmp_path):
        items = [
            BatchItem(str(tmp_path / "missing.npz"), str(tmp_path / "out" / "missing.npz")),
            BatchItem(str(input_dir / "quad.npz"), str(tmp_path / "out" / "quad.npz")),
        ]
        result = processor.process_batch(items, stop_on_error=True)
        assert result.failed == 1
        assert len(result.results) == 1

    def test_item_threshold_override(self, processor, input_dir, tmp_path):
        items = [BatchItem(
            str(input_dir / "overhang.npz"),
            str(tmp_path / "out" / "overhang.npz"),
            threshold=2.0
        )]
        processor.process_batch(items)
        assert load_mesh(tmp_path / "out" / "overhang.npz").triangle_count == 1

    def test_batch_config_file(self, processor, input_dir, tmp_path):
        items = processor.create_batch_from_directory(str(input_dir), str(tmp_path / "out"))
        path = tmp_path / "batch.json"
        config = processor.config_manager.create_config("strict")
        processor.save_batch_config(items, str(path), config)

        loaded_items, loaded_config = processor.load_batch_config(str(path))
        assert loaded_items == items
        assert loaded_config.subdivision.max_depth == 64

    def test_missing_batch_config(self, processor, tmp_path):
        with pytest.raises(ConfigError):
            processor.load_batch_config(str(tmp_path / "missing.json"))

    def test_generate_report(self, processor, input_dir, tmp_path):
        items = processor.create_batch_from_directory(str(input_dir), str(tmp_path / "out"))
        items.append(BatchItem(str(tmp_path / "missing.npz"), str(tmp_path / "out" / "x.npz")))
        result = processor.process_batch(items)

        report_path = tmp_path / "report.txt"
        report = processor.generate_report(result, str(report_path))

        assert report.startswith("Batch Processing Report")
        assert "Successful: 2" in report
        assert "Failed: 1" in report
        assert "Triangles: 1 -> 5" in report
        assert report_path.read_text(encoding='utf-8') == report


class TestPackWithGrowth:
    """Atlas size retries."""

    def test_grows_until_fit(self):
        config = ProcessingConfig(atlas=AtlasConfig(atlas_size=256, base_padding=2, mipmap_safe=False))
        result = pack_with_growth([(300, 300)], config)
        assert result.success
        assert result.atlas_size == 512

    def test_fits_first_time(self):
        config = ProcessingConfig(atlas=AtlasConfig(atlas_size=256, mipmap_safe=False))
        assert pack_with_growth([(64, 64)], config).atlas_size == 256

    def test_gives_up_at_max_size(self):
        config = ProcessingConfig(atlas=AtlasConfig(atlas_size=256, mipmap_safe=False))
        result = pack_with_growth([(600, 600)], config, max_size=512)
        assert not result.success
        assert result.atlas_size == 512
