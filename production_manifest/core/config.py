"""
Production Manifest Configuration

Dataclass configuration with JSON loading. Values not present in the file
keep their defaults.
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .constants import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_DURATION_SECONDS,
    DEFAULT_INTENT,
    DEFAULT_LANGUAGE,
    DEFAULT_PLATFORM,
    DEFAULT_PROFILE,
    DEFAULT_TONE,
    DURATION_TOLERANCE,
    MIN_SCENE_DURATION,
)
from .env_loader import get_render_callback_url
from .exceptions import ConfigurationError, InvalidConfigError


@dataclass
class LLMConfig:
    """Configuration for the LLM provider behind the completion function."""
    provider: str = "anthropic"
    model: str = "claude-sonnet-4-5-20250929"
    api_key_env: str = "ANTHROPIC_API_KEY"
    temperature: float = 0.7
    max_tokens: int = 4096
    timeout: int = 60

    @classmethod
    def from_dict(cls, data: dict) -> 'LLMConfig':
        """Create LLMConfig from dictionary."""
        return cls(
            provider=data.get('provider', 'anthropic'),
            model=data.get('model', 'claude-sonnet-4-5-20250929'),
            api_key_env=data.get('api_key_env', 'ANTHROPIC_API_KEY'),
            temperature=data.get('temperature', 0.7),
            max_tokens=data.get('max_tokens', 4096),
            timeout=data.get('timeout', 60)
        )


@dataclass
class RepairConfig:
    """Settings for the repair tiers."""
    duration_tolerance: float = DURATION_TOLERANCE
    min_scene_duration: float = MIN_SCENE_DURATION
    default_duration_seconds: float = DEFAULT_DURATION_SECONDS
    llm_repair_enabled: bool = True
    llm_temperature: float = 0.1
    llm_max_tokens: int = 2000
    llm_timeout_ms: int = 10000

    @classmethod
    def from_dict(cls, data: dict) -> 'RepairConfig':
        defaults = cls()
        return cls(**{k: data.get(k, v) for k, v in asdict(defaults).items()})


@dataclass
class ExtractionConfig:
    """Settings for the optional LLM treatment extractor."""
    llm_extraction_enabled: bool = False
    temperature: float = 0.2
    max_tokens: int = 2000
    timeout_ms: int = 8000

    @classmethod
    def from_dict(cls, data: dict) -> 'ExtractionConfig':
        defaults = cls()
        return cls(**{k: data.get(k, v) for k, v in asdict(defaults).items()})


@dataclass
class RenderConfig:
    """Settings for the render job payload."""
    callback_url: Optional[str] = None

    def resolved_callback_url(self) -> Optional[str]:
        """Environment wins over the configured value."""
        return get_render_callback_url() or self.callback_url


@dataclass
class MetadataDefaults:
    """Values used when neither hints nor the treatment supply metadata."""
    intent: str = DEFAULT_INTENT
    language: str = DEFAULT_LANGUAGE
    platform: str = DEFAULT_PLATFORM
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    profile: str = DEFAULT_PROFILE
    tone: str = DEFAULT_TONE

    @classmethod
    def from_dict(cls, data: dict) -> 'MetadataDefaults':
        defaults = cls()
        return cls(**{k: data.get(k, v) for k, v in asdict(defaults).items()})


@dataclass
class ManifestConfig:
    """Main configuration container."""
    llm: LLMConfig = field(default_factory=LLMConfig)
    repair: RepairConfig = field(default_factory=RepairConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    metadata_defaults: MetadataDefaults = field(default_factory=MetadataDefaults)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'ManifestConfig':
        """Create ManifestConfig from dictionary."""
        config = cls()

        if 'llm' in data:
            config.llm = LLMConfig.from_dict(data['llm'])
        if 'repair' in data:
            config.repair = RepairConfig.from_dict(data['repair'])
        if 'extraction' in data:
            config.extraction = ExtractionConfig.from_dict(data['extraction'])
        if 'render' in data:
            config.render = RenderConfig(callback_url=data['render'].get('callback_url'))
        if 'metadata_defaults' in data:
            config.metadata_defaults = MetadataDefaults.from_dict(data['metadata_defaults'])

        return config


def load_config(config_path: Path = None) -> ManifestConfig:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to configuration file. If None, uses default.

    Returns:
        Loaded ManifestConfig instance
    """
    if config_path is None:
        config_path = Path("config/manifest_config.json")
    config_path = Path(config_path)

    if not config_path.exists():
        return ManifestConfig()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid JSON in config file: {e}", {"path": str(config_path)})
    except OSError as e:
        raise ConfigurationError(f"Failed to load config: {e}", {"path": str(config_path)})

    if not isinstance(data, dict):
        raise InvalidConfigError("Config file must contain a JSON object", {"path": str(config_path)})
    return ManifestConfig.from_dict(data)


def save_config(config: ManifestConfig, config_path: Path) -> None:
    """Write configuration to a JSON file."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config.to_dict(), f, indent=2)


# Global config instance
_config: Optional[ManifestConfig] = None


def get_config() -> ManifestConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: ManifestConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
