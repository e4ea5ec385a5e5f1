"""OpenAI Backend Implementation

Secondary, high-capacity backend used for long outputs. Responses are
normalized to the same AdaptationResult shape as the primary backend.
"""

from typing import Any, Dict, Optional, Sequence, Tuple

from ellift.models.adaptation import AdaptationResult, BackendKind, ChatMessage
from ellift.models.config import SecondaryBackendConfig
from ellift.services.llm.providers.base import LLMBackend


class OpenAIBackend(LLMBackend):
    """OpenAI Chat Completions backend (gpt-4o, up to 16384 output tokens)."""

    def __init__(self, config: Optional[SecondaryBackendConfig] = None):
        self.config = config or SecondaryBackendConfig()

    @property
    def kind(self) -> BackendKind:
        return BackendKind.SECONDARY

    @property
    def label(self) -> str:
        return "OpenAI"

    @property
    def model(self) -> str:
        return self.config.model

    @property
    def max_output_tokens(self) -> int:
        return self.config.max_output_tokens

    @property
    def endpoint(self) -> str:
        return self.config.base_url

    @property
    def timeout_seconds(self) -> float:
        return self.config.timeout_seconds

    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def build_request(
        self, messages: Sequence[ChatMessage], max_tokens: int
    ) -> Tuple[Dict[str, str], Dict[str, Any]]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key or ''}",
        }
        body = {
            "model": self.config.model,
            "max_tokens": max_tokens,
            # Anything that is not a user turn is sent as an assistant turn
            "messages": [
                {
                    "role": "user" if m.role == "user" else "assistant",
                    "content": m.content,
                }
                for m in messages
            ],
            "temperature": self.config.temperature,
        }
        return headers, body

    def normalize(self, payload: Dict[str, Any]) -> AdaptationResult:
        text = payload["choices"][0]["message"]["content"]
        if not isinstance(text, str):
            raise TypeError("message content is not text")

        usage = payload.get("usage") or {}
        return AdaptationResult(
            text=text,
            input_tokens=int(usage.get("prompt_tokens", 0)),
            output_tokens=int(usage.get("completion_tokens", 0)),
        )
