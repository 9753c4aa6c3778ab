"""
Tests for Configuration Module

Tests for production_manifest/core/config.py
"""

import pytest
import json
from pathlib import Path

from production_manifest.core.config import (
    ManifestConfig,
    LLMConfig,
    RepairConfig,
    load_config,
    save_config,
)
from production_manifest.core.exceptions import InvalidConfigError


class TestManifestConfig:
    """Tests for ManifestConfig class."""

    def test_default_config(self):
        """Test default configuration creation."""
        config = ManifestConfig()

        assert config.llm.provider == "anthropic"
        assert config.repair.duration_tolerance == 0.1
        assert config.repair.min_scene_duration == 0.05
        assert config.repair.default_duration_seconds == 60.0
        assert config.extraction.llm_extraction_enabled is False
        assert config.metadata_defaults.language == "en"

    def test_repair_llm_defaults(self):
        """Test LLM repair sampling defaults."""
        repair = RepairConfig()

        assert repair.llm_temperature == 0.1
        assert repair.llm_max_tokens == 2000
        assert repair.llm_timeout_ms == 10000

    def test_config_from_dict(self, sample_config):
        """Test creating config from dictionary."""
        config = ManifestConfig.from_dict(sample_config)

        assert config.llm.provider == "openai"
        assert config.llm.model == "gpt-4o"
        assert config.llm.temperature == 0.3
        assert config.repair.duration_tolerance == 0.2
        assert config.repair.llm_timeout_ms == 5000
        assert config.repair.min_scene_duration == 0.05
        assert config.extraction.llm_extraction_enabled is True
        assert config.metadata_defaults.language == "fr"
        assert config.metadata_defaults.platform == "social"

    def test_config_to_dict(self):
        """Test converting config to dictionary."""
        config_dict = ManifestConfig().to_dict()

        assert isinstance(config_dict, dict)
        assert "llm" in config_dict
        assert "repair" in config_dict
        assert config_dict["metadata_defaults"]["profile"] == "educational_explainer"

    def test_llm_config_from_partial_dict(self):
        """Test LLMConfig keeps defaults for missing keys."""
        llm = LLMConfig.from_dict({"model": "claude-haiku"})

        assert llm.model == "claude-haiku"
        assert llm.provider == "anthropic"
        assert llm.max_tokens == 4096


class TestRenderConfig:
    """Tests for render callback resolution."""

    def test_configured_callback(self, manifest_config):
        """Test the configured URL is used without an environment override."""
        assert manifest_config.render.resolved_callback_url() == "https://render.test/callback"

    def test_environment_wins(self, manifest_config, monkeypatch):
        """Test RENDER_CALLBACK_URL overrides the configured URL."""
        monkeypatch.setenv("RENDER_CALLBACK_URL", "https://env.test/cb")

        assert manifest_config.render.resolved_callback_url() == "https://env.test/cb"


class TestLoadSaveConfig:
    """Tests for config loading and saving."""

    def test_load_config_from_file(self, temp_dir, sample_config):
        """Test loading config from JSON file."""
        config_path = temp_dir / "manifest_config.json"

        with open(config_path, 'w') as f:
            json.dump(sample_config, f)

        config = load_config(config_path)

        assert config.llm.provider == "openai"
        assert config.render.callback_url == "https://render.test/callback"

    def test_load_missing_file_returns_defaults(self, temp_dir):
        """Test a missing file yields the default config."""
        config = load_config(temp_dir / "missing.json")

        assert config == ManifestConfig()

    def test_load_invalid_json(self, temp_dir):
        """Test invalid JSON raises InvalidConfigError."""
        config_path = temp_dir / "broken.json"
        config_path.write_text("{not json", encoding="utf-8")

        with pytest.raises(InvalidConfigError):
            load_config(config_path)

    def test_load_non_object(self, temp_dir):
        """Test a JSON array is rejected."""
        config_path = temp_dir / "list.json"
        config_path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(InvalidConfigError):
            load_config(config_path)

    def test_save_and_reload(self, temp_dir, sample_config):
        """Test saving then loading preserves values."""
        config = ManifestConfig.from_dict(sample_config)
        config_path = temp_dir / "nested" / "saved.json"

        save_config(config, config_path)
        reloaded = load_config(config_path)

        assert Path(config_path).exists()
        assert reloaded == config
