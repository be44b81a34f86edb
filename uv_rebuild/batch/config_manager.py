"""
Configuration Manager - Manages subdivision and atlas configurations.
"""

import json
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, asdict, field
from pathlib import Path

from ..utils.logger import get_logger
from ..utils.error_handler import ConfigError
from ..core.subdivider import SubdivisionConfig
from ..atlas.packer import AtlasConfig
from ..atlas.padding import calculate_edge_padding


@dataclass
class ProcessingConfig:
    """Subdivision and atlas settings used together by the pipeline."""
    subdivision: SubdivisionConfig = field(default_factory=SubdivisionConfig)
    atlas: AtlasConfig = field(default_factory=AtlasConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subdivision': asdict(self.subdivision),
            'atlas': asdict(self.atlas),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProcessingConfig':
        try:
            return cls(
                subdivision=SubdivisionConfig(**data.get('subdivision', {})),
                atlas=AtlasConfig(**data.get('atlas', {})),
            )
        except (TypeError, AttributeError) as e:
            raise ConfigError(f"Unknown configuration field: {e}", error_code=4002) from e


@dataclass
class PresetConfig:
    """A named configuration preset."""
    name: str
    description: str
    config: ProcessingConfig


class ConfigManager:
    """
    Manages processing configurations and presets.

    Features:
    - Built-in and user presets
    - Save/load configurations
    - Configuration validation
    """

    DEFAULT_PRESETS = [
        PresetConfig(
            name="default",
            description="Unit-tile subdivision and a 2048 mipmap-safe atlas",
            config=ProcessingConfig()
        ),
        PresetConfig(
            name="strict",
            description="Low recursion limit, normals and tangents rebuilt when missing",
            config=ProcessingConfig(
                subdivision=SubdivisionConfig(
                    max_depth=64,
                    recalculate_normals=True,
                    recalculate_tangents=True,
                    validate_input=True
                )
            )
        ),
        PresetConfig(
            name="mobile_atlas",
            description="1024 atlas with wider padding for low-end devices",
            config=ProcessingConfig(
                atlas=AtlasConfig(atlas_size=1024, base_padding=4)
            )
        ),
        PresetConfig(
            name="high_res_atlas",
            description="4096 atlas for large texture sets",
            config=ProcessingConfig(
                atlas=AtlasConfig(atlas_size=4096, base_padding=2)
            )
        ),
    ]

    def __init__(self, config_dir: Optional[str] = None):
        self.logger = get_logger("uv_rebuild.config")
        self.config_dir = Path(config_dir) if config_dir else Path.home() / ".uv_rebuild"
        self.presets: Dict[str, PresetConfig] = {}

        self._load_default_presets()
        self._load_user_presets()

    def _load_default_presets(self):
        """Load default presets."""
        for preset in self.DEFAULT_PRESETS:
            self.presets[preset.name] = preset

    def _load_user_presets(self):
        """Load user-defined presets from config directory."""
        preset_file = self.config_dir / "presets.json"
        if not preset_file.exists():
            return

        try:
            with open(preset_file, 'r', encoding='utf-8') as f:
                data = json.load(f)

            for preset_data in data.get('presets', []):
                preset = PresetConfig(
                    name=preset_data['name'],
                    description=preset_data.get('description', ''),
                    config=ProcessingConfig.from_dict(preset_data.get('config', {}))
                )
                self.presets[preset.name] = preset

            self.logger.info(f"Loaded {len(data.get('presets', []))} user presets")
        except (OSError, ValueError, KeyError, ConfigError) as e:
            self.logger.warning(f"Failed to load user presets: {e}")

    def get_preset(self, name: str) -> Optional[ProcessingConfig]:
        """Get configuration by preset name."""
        preset = self.presets.get(name)
        return preset.config if preset else None

    def get_preset_names(self) -> List[str]:
        """Get list of available preset names."""
        return list(self.presets.keys())

    def get_preset_info(self, name: str) -> Optional[Dict[str, Any]]:
        """Get preset information."""
        preset = self.presets.get(name)
        if preset:
            return {
                'name': preset.name,
                'description': preset.description,
                'config': preset.config.to_dict()
            }
        return None

    def is_default_preset(self, name: str) -> bool:
        return name in [p.name for p in self.DEFAULT_PRESETS]

    def save_preset(
        self,
        name: str,
        config: ProcessingConfig,
        description: str = ""
    ):
        """Save a configuration as a preset."""
        if self.is_default_preset(name):
            raise ConfigError(f"Cannot overwrite default preset: {name}", error_code=4003)

        issues = self.validate_config(config)
        if issues:
            raise ConfigError(
                f"Invalid configuration: {', '.join(issues)}",
                error_code=4003
            )

        self.presets[name] = PresetConfig(
            name=name,
            description=description,
            config=config
        )
        self._save_user_presets()

        self.logger.info(f"Saved preset: {name}")

    def _save_user_presets(self):
        """Save user presets to file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

        preset_file = self.config_dir / "presets.json"

        user_presets = []
        for name, preset in self.presets.items():
            if not self.is_default_preset(name):
                user_presets.append({
                    'name': preset.name,
                    'description': preset.description,
                    'config': preset.config.to_dict()
                })

        with open(preset_file, 'w', encoding='utf-8') as f:
            json.dump({'presets': user_presets}, f, indent=2)

    def delete_preset(self, name: str) -> bool:
        """Delete a user preset."""
        if self.is_default_preset(name):
            self.logger.warning(f"Cannot delete default preset: {name}")
            return False

        if name in self.presets:
            del self.presets[name]
            self._save_user_presets()
            self.logger.info(f"Deleted preset: {name}")
            return True

        return False

    def validate_subdivision_config(self, config: SubdivisionConfig) -> List[str]:
        """Validate subdivision settings and return any issues."""
        issues = []

        if config.threshold <= 0:
            issues.append("threshold must be positive")

        if config.max_depth <= 0:
            issues.append("max_depth must be positive")

        return issues

    def validate_atlas_config(self, config: AtlasConfig) -> List[str]:
        """Validate atlas settings and return any issues."""
        issues = []

        if config.atlas_size <= 0:
            issues.append("atlas_size must be positive")
        elif config.atlas_size & (config.atlas_size - 1):
            self.logger.warning(f"Atlas size {config.atlas_size} is not a power of two")

        if config.base_padding < 0:
            issues.append("base_padding cannot be negative")

        if config.atlas_size > 0 and config.mipmap_safe:
            edge = calculate_edge_padding(config.atlas_size)
            if 2 * edge >= config.atlas_size:
                issues.append(f"atlas_size {config.atlas_size} leaves no room for edge padding")

        return issues

    def validate_config(self, config: ProcessingConfig) -> List[str]:
        """Validate a configuration and return any issues."""
        return (
            self.validate_subdivision_config(config.subdivision)
            + self.validate_atlas_config(config.atlas)
        )

    def create_config(
        self,
        preset: str = "default",
        **overrides
    ) -> ProcessingConfig:
        """
        Create a configuration from a preset with field overrides.

        Override keys name fields of SubdivisionConfig or AtlasConfig.
        """
        base = self.get_preset(preset)
        if base is None:
            raise ConfigError(f"Unknown preset: {preset}", error_code=4004)

        data = base.to_dict()
        for key, value in overrides.items():
            if value is None:
                continue
            if key in data['subdivision']:
                data['subdivision'][key] = value
            elif key in data['atlas']:
                data['atlas'][key] = value
            else:
                raise ConfigError(f"Unknown configuration field: {key}", error_code=4003)

        return ProcessingConfig.from_dict(data)

    def export_config(self, config: ProcessingConfig, filepath: str):
        """Export configuration to file."""
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2)

        self.logger.info(f"Exported config to {filepath}")

    def import_config(self, filepath: str) -> ProcessingConfig:
        """Import configuration from file."""
        if not Path(filepath).exists():
            raise ConfigError(f"Config file not found: {filepath}", error_code=4001)

        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except ValueError as e:
            raise ConfigError(f"Failed to parse {filepath}: {e}", error_code=4002) from e

        config = ProcessingConfig.from_dict(data)

        issues = self.validate_config(config)
        if issues:
            raise ConfigError(
                f"Invalid configuration: {', '.join(issues)}",
                error_code=4003
            )

        self.logger.info(f"Imported config from {filepath}")
        return config
