"""
Tests for LLM JSON Utilities

Tests for production_manifest/llm/json_utils.py and providers.py
"""

import pytest

from production_manifest.core.config import LLMConfig
from production_manifest.core.exceptions import InvalidConfigError, LLMResponseError
from production_manifest.llm.json_utils import parse_json_object
from production_manifest.llm.providers import (
    AnthropicProvider,
    CompletionOptions,
    OpenAIProvider,
    create_provider,
)


class TestParseJsonObject:
    """Tests for strict JSON object parsing."""

    def test_parses_object(self):
        """Test a plain object with surrounding whitespace."""
        assert parse_json_object('  {"a": 1}\n') == {"a": 1}

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        "not json",
        '{"a": 1} trailing',
        "```json\n{}\n```",
        "[1, 2]",
        '"string"',
        None,
        42,
    ])
    def test_rejects(self, text):
        """Test everything but a single JSON object is rejected."""
        with pytest.raises(LLMResponseError):
            parse_json_object(text)


class TestProviders:
    """Tests for provider construction."""

    def test_completion_options_timeout(self):
        """Test millisecond conversion."""
        assert CompletionOptions(timeout_ms=2500).timeout_seconds == 2.5

    def test_create_known_providers(self, monkeypatch):
        """Test the factory picks the provider class."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        monkeypatch.setenv("OPENAI_API_KEY", "test-key")

        anthropic = create_provider(LLMConfig())
        openai = create_provider(LLMConfig(provider="openai", api_key_env="OPENAI_API_KEY"))

        assert isinstance(anthropic, AnthropicProvider)
        assert isinstance(openai, OpenAIProvider)
        assert anthropic.is_available

    def test_missing_key_not_available(self, monkeypatch):
        """Test a provider without a key reports unavailable."""
        monkeypatch.delenv("MISSING_TEST_KEY", raising=False)
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        provider = create_provider(LLMConfig(api_key_env="MISSING_TEST_KEY"))

        assert not provider.is_available

    def test_standard_key_fallback(self, monkeypatch):
        """Test the SDK's own variable is used when the configured one is unset."""
        monkeypatch.delenv("MISSING_TEST_KEY", raising=False)
        monkeypatch.setenv("OPENAI_API_KEY", "sk-standard")

        provider = create_provider(LLMConfig(provider="openai", api_key_env="MISSING_TEST_KEY"))

        assert provider.is_available

    def test_unknown_provider(self):
        """Test an unknown provider name is a config error."""
        with pytest.raises(InvalidConfigError):
            create_provider(LLMConfig(provider="nope"))

    @pytest.mark.asyncio
    async def test_complete_delegates_to_generate(self, monkeypatch):
        """Test complete() forwards the sampling options."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        provider = AnthropicProvider(LLMConfig())
        calls = []

        async def fake_generate(prompt, system_prompt="", temperature=None, max_tokens=None):
            calls.append((prompt, temperature, max_tokens))
            return "{}"

        monkeypatch.setattr(provider, "generate", fake_generate)
        result = await provider.complete("hi", CompletionOptions(temperature=0.1, max_tokens=99))

        assert result == "{}"
        assert calls == [("hi", 0.1, 99)]
