"""
Batch Processor - Handles batch UV subdivision and atlas packing retries.
"""

import os
import json
import glob
from typing import Optional, List, Dict, Any, Sequence, Tuple, Union
from dataclasses import dataclass, field, asdict, replace

from tqdm import tqdm

from ..utils.logger import get_logger
from ..utils.error_handler import ErrorHandler, ConfigError, UVRebuildError
from ..mesh.mesh_io import load_mesh, save_mesh
from ..core.subdivider import UVSubdivider, SubdivisionStats
from ..core.validator import UVValidator
from ..atlas.packer import AtlasPacker, PackResult, PackFailure
from .config_manager import ConfigManager, ProcessingConfig


@dataclass
class BatchItem:
    """Single batch subdivision item."""
    input_file: str
    output_file: str
    threshold: Optional[float] = None


@dataclass
class BatchResult:
    """Result of a batch operation."""
    total_items: int
    successful: int
    failed: int
    results: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        if self.total_items == 0:
            return 0.0
        return self.successful / self.total_items


class BatchProcessor:
    """
    Subdivides many mesh files with one configuration.

    A failing item is recorded and skipped unless ``stop_on_error`` is set.
    """

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        show_progress: bool = True
    ):
        self.logger = get_logger("uv_rebuild.batch")
        self.config_manager = config_manager or ConfigManager()
        self.error_handler = ErrorHandler(self.logger)
        self.validator = UVValidator()
        self.show_progress = show_progress

    def process_batch(
        self,
        items: List[BatchItem],
        config: Optional[ProcessingConfig] = None,
        stop_on_error: bool = False
    ) -> BatchResult:
        """
        Process a batch of subdivision items.

        Args:
            items: List of BatchItem objects
            config: Configuration for all items
            stop_on_error: Whether to stop on first error

        Returns:
            BatchResult with all results
        """
        config = config or ProcessingConfig()
        result = BatchResult(
            total_items=len(items),
            successful=0,
            failed=0
        )

        self.logger.info(f"Starting batch processing: {len(items)} items")

        progress = tqdm(items, desc="Subdividing", unit="mesh", disable=not self.show_progress)
        for i, item in enumerate(progress):
            self.logger.debug(f"Processing item {i+1}/{len(items)}: {item.input_file}")

            try:
                stats = self._process_item(item, config)
            except (UVRebuildError, OSError, ValueError) as e:
                self.error_handler.handle(e, operation=f"batch item {i+1}", reraise=False)
                result.failed += 1
                result.results.append({
                    'item': asdict(item),
                    'success': False,
                    'error': str(e)
                })

                if stop_on_error:
                    break
                continue

            result.successful += 1
            result.results.append({
                'item': asdict(item),
                'success': True,
                'details': asdict(stats)
            })

        self.logger.info(
            f"Batch complete: {result.successful} successful, "
            f"{result.failed} failed"
        )

        return result

    def _process_item(self, item: BatchItem, config: ProcessingConfig) -> SubdivisionStats:
        """Subdivide a single mesh file."""
        subdivision = config.subdivision
        if item.threshold is not None:
            subdivision = replace(subdivision, threshold=item.threshold)

        mesh = load_mesh(item.input_file)
        subdivider = UVSubdivider(subdivision)
        result = subdivider.subdivide(mesh)

        unbounded = self.validator.find_unbounded_triangles(result)
        if unbounded and subdivision.format_uvs:
            self.logger.warning(
                f"{item.input_file}: {len(unbounded)} triangles still span several tiles"
            )

        output_dir = os.path.dirname(os.path.abspath(item.output_file))
        os.makedirs(output_dir, exist_ok=True)
        save_mesh(result, item.output_file)

        return subdivider.last_stats

    def create_batch_from_directory(
        self,
        input_dir: str,
        output_dir: str,
        pattern: str = "*.npz",
        suffix: str = "_subdivided",
        threshold: Optional[float] = None
    ) -> List[BatchItem]:
        """
        Create batch items for every matching file of a directory.

        Args:
            input_dir: Input files directory
            output_dir: Output directory
            pattern: File pattern to match
            suffix: Appended to each output file stem
            threshold: Per-item threshold override

        Returns:
            List of BatchItem objects
        """
        input_files = sorted(glob.glob(os.path.join(input_dir, pattern)))

        items = []
        for path in input_files:
            stem, ext = os.path.splitext(os.path.basename(path))
            items.append(BatchItem(
                input_file=path,
                output_file=os.path.join(output_dir, f"{stem}{suffix}{ext}"),
                threshold=threshold
            ))

        self.logger.info(f"Found {len(items)} files matching {pattern} in {input_dir}")
        return items

    def save_batch_config(
        self,
        items: List[BatchItem],
        filepath: str,
        config: Optional[ProcessingConfig] = None
    ):
        """Save batch configuration to file."""
        data = {
            'version': '1.0',
            'items': [asdict(item) for item in items]
        }
        if config is not None:
            data['config'] = config.to_dict()

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)

        self.logger.info(f"Saved batch config to {filepath}")

    def load_batch_config(
        self,
        filepath: str
    ) -> Tuple[List[BatchItem], Optional[ProcessingConfig]]:
        """Load batch items and the optional shared configuration from file."""
        if not os.path.exists(filepath):
            raise ConfigError(f"Batch config not found: {filepath}", error_code=4001)

        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
            items = [BatchItem(**item_data) for item_data in data.get('items', [])]
        except (ValueError, TypeError, AttributeError) as e:
            raise ConfigError(f"Failed to parse {filepath}: {e}", error_code=4002) from e

        config = None
        if 'config' in data:
            config = ProcessingConfig.from_dict(data['config'])

        self.logger.info(f"Loaded {len(items)} items from {filepath}")
        return items, config

    def generate_report(
        self,
        result: BatchResult,
        output_path: Optional[str] = None
    ) -> str:
        """
        Generate a batch processing report.

        Args:
            result: BatchResult to report
            output_path: Optional path to save report

        Returns:
            Report string
        """
        lines = [
            "Batch Processing Report",
            "=" * 50,
            f"Total Items: {result.total_items}",
            f"Successful: {result.successful}",
            f"Failed: {result.failed}",
            f"Success Rate: {result.success_rate:.1%}",
            "",
            "Item Details:",
            "-" * 50,
        ]

        for i, item_result in enumerate(result.results, 1):
            item = item_result.get('item', {})
            success = item_result.get('success', False)

            status = "OK" if success else "FAILED"
            lines.append(f"\n[{i}] {status}")
            lines.append(f"    Input: {item.get('input_file', 'N/A')}")
            lines.append(f"    Output: {item.get('output_file', 'N/A')}")

            if success and 'details' in item_result:
                details = item_result['details']
                lines.append(
                    f"    Triangles: {details.get('input_triangles', 0)} -> "
                    f"{details.get('output_triangles', 0)}"
                )
                lines.append(
                    f"    Vertices: {details.get('input_vertices', 0)} -> "
                    f"{details.get('output_vertices', 0)}"
                )
                lines.append(f"    Split: {details.get('split_triangles', 0)}")

            if not success and 'error' in item_result:
                lines.append(f"    Error: {item_result['error']}")

        report = "\n".join(lines)

        if output_path:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(report)
            self.logger.info(f"Report saved to {output_path}")

        return report


def pack_with_growth(
    sizes: Sequence[Tuple[int, int]],
    config: Optional[ProcessingConfig] = None,
    max_size: int = 8192
) -> Union[PackResult, PackFailure]:
    """
    Pack images, doubling the atlas size after each failure.

    Args:
        sizes: ``(width, height)`` per image
        config: Atlas settings; ``atlas.atlas_size`` is the first size tried
        max_size: Largest atlas size to try

    Returns:
        First successful PackResult, or the PackFailure of the largest size
    """
    logger = get_logger("uv_rebuild.batch")
    atlas = (config or ProcessingConfig()).atlas
    atlas_size = atlas.atlas_size

    while True:
        packer = AtlasPacker(atlas_size, atlas.base_padding, atlas.mipmap_safe)
        result = packer.pack(sizes)
        if result.success:
            return result

        if atlas_size * 2 > max_size:
            logger.error(f"Images do not fit in atlas sizes up to {atlas_size}")
            return result

        logger.info(f"Atlas {atlas_size} too small, retrying with {atlas_size * 2}")
        atlas_size *= 2
