"""LLM Service Package

This package provides:
- DispatchController: backend selection and the adaptation lifecycle
- Backend implementations (Anthropic primary, OpenAI secondary)
- PromptBuilder: WIDA-aligned prompt construction

Usage:
    from ellift.services.llm import DispatchController
"""

from ellift.services.llm.service import DispatchController
from ellift.services.llm.prompt_builder import PromptBuilder
from ellift.services.llm.providers import AnthropicBackend, LLMBackend, OpenAIBackend

__all__ = [
    "DispatchController",
    "PromptBuilder",
    "LLMBackend",
    "AnthropicBackend",
    "OpenAIBackend",
]
