"""
LLM completion providers.

The manifest pipeline only ever sees a completion function:
``async complete(prompt, options) -> str``. The providers here adapt the
Anthropic and OpenAI SDKs to that shape. Whatever they return is untrusted
text and must go through ``parse_json_object`` before use.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Tuple, Type

from production_manifest.core.config import LLMConfig
from production_manifest.core.env_loader import get_api_key
from production_manifest.core.exceptions import InvalidConfigError, LLMProviderError
from production_manifest.core.logging_config import get_logger

logger = get_logger("llm.providers")


@dataclass(frozen=True)
class CompletionOptions:
    """Per-call sampling limits for a completion."""
    temperature: float = 0.1
    max_tokens: int = 2000
    timeout_ms: int = 10000

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


CompletionFn = Callable[[str, CompletionOptions], Awaitable[str]]


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers."""

    name = "base"
    # Standard SDK variables tried when config.api_key_env is unset
    key_fallbacks: Tuple[str, ...] = ()

    def __init__(self, config: LLMConfig):
        self.config = config
        self._api_key = get_api_key(config.api_key_env, self.key_fallbacks)
        if not self._api_key:
            logger.warning(f"API key not found: {config.api_key_env}")

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        temperature: float = None,
        max_tokens: int = None
    ) -> str:
        """Generate a response from the LLM."""
        pass

    async def complete(self, prompt: str, options: CompletionOptions) -> str:
        """Completion-function entry point used by the extractor and repair tiers."""
        return await self.generate(
            prompt,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
        )

    @property
    def is_available(self) -> bool:
        """Check if the provider is available."""
        return self._api_key is not None


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude provider."""

    name = "anthropic"
    key_fallbacks = ("ANTHROPIC_API_KEY",)

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        temperature: float = None,
        max_tokens: int = None
    ) -> str:
        try:
            import anthropic

            client = anthropic.AsyncAnthropic(api_key=self._api_key)

            kwargs = {}
            if system_prompt:
                kwargs["system"] = system_prompt
            message = await client.messages.create(
                model=self.config.model,
                max_tokens=max_tokens or self.config.max_tokens,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature if temperature is not None else self.config.temperature,
                **kwargs
            )

            return message.content[0].text

        except Exception as e:
            raise LLMProviderError("anthropic", str(e))


class OpenAIProvider(BaseLLMProvider):
    """OpenAI GPT provider."""

    name = "openai"
    key_fallbacks = ("OPENAI_API_KEY",)

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        temperature: float = None,
        max_tokens: int = None
    ) -> str:
        try:
            import openai

            client = openai.AsyncOpenAI(api_key=self._api_key)

            messages = []
            if system_prompt:
                messages.append({"role": "system", "content": system_prompt})
            messages.append({"role": "user", "content": prompt})

            response = await client.chat.completions.create(
                model=self.config.model,
                messages=messages,
                max_tokens=max_tokens or self.config.max_tokens,
                temperature=temperature if temperature is not None else self.config.temperature
            )

            return response.choices[0].message.content or ""

        except Exception as e:
            raise LLMProviderError("openai", str(e))


PROVIDERS: Dict[str, Type[BaseLLMProvider]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
}


def create_provider(config: LLMConfig) -> BaseLLMProvider:
    """Instantiate the provider named in ``config.provider``."""
    provider_cls = PROVIDERS.get(config.provider)
    if provider_cls is None:
        raise InvalidConfigError(
            f"Unknown LLM provider: {config.provider}",
            {"known": sorted(PROVIDERS)}
        )
    return provider_cls(config)
