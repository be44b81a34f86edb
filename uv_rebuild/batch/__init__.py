"""
Batch processing module.
"""

from .batch_processor import BatchProcessor, BatchItem, BatchResult, pack_with_growth
from .config_manager import ConfigManager, ProcessingConfig, PresetConfig

__all__ = [
    "BatchProcessor",
    "BatchItem",
    "BatchResult",
    "pack_with_growth",
    "ConfigManager",
    "ProcessingConfig",
    "PresetConfig",
]
