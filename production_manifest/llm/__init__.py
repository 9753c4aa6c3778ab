"""
LLM completion adapters and strict response parsing.
"""

from .json_utils import parse_json_object
from .providers import (
    AnthropicProvider,
    BaseLLMProvider,
    CompletionFn,
    CompletionOptions,
    OpenAIProvider,
    create_provider,
)

__all__ = [
    'AnthropicProvider',
    'BaseLLMProvider',
    'CompletionFn',
    'CompletionOptions',
    'OpenAIProvider',
    'create_provider',
    'parse_json_object',
]
