"""Model backend implementations."""

from ellift.services.llm.providers.base import LLMBackend
from ellift.services.llm.providers.anthropic import AnthropicBackend
from ellift.services.llm.providers.openai import OpenAIBackend

__all__ = ["LLMBackend", "AnthropicBackend", "OpenAIBackend"]
