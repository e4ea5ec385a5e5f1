"""Anthropic (Claude) Backend Implementation

Primary backend. Talks to the Messages API directly over aiohttp so that
upstream status codes and bodies can be passed through unchanged.
"""

from typing import Any, Dict, Optional, Sequence, Tuple

from ellift.models.adaptation import AdaptationResult, BackendKind, ChatMessage
from ellift.models.config import PrimaryBackendConfig
from ellift.services.llm.providers.base import LLMBackend, serialize_messages


class AnthropicBackend(LLMBackend):
    """Anthropic Claude backend.

    Budgets above ``standard_output_tokens`` (4096) are sent with the
    extended-output beta header rather than being truncated; every budget is
    clamped to ``max_output_tokens`` (8192).
    """

    def __init__(self, config: Optional[PrimaryBackendConfig] = None):
        self.config = config or PrimaryBackendConfig()

    @property
    def kind(self) -> BackendKind:
        return BackendKind.PRIMARY

    @property
    def label(self) -> str:
        return "Claude"

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
            "x-api-key": self.config.api_key or "",
            "anthropic-version": self.config.anthropic_version,
        }
        if max_tokens > self.config.standard_output_tokens:
            headers["anthropic-beta"] = self.config.extended_output_beta

        body = {
            "model": self.config.model,
            "max_tokens": max_tokens,
            "messages": serialize_messages(messages),
        }
        return headers, body

    def normalize(self, payload: Dict[str, Any]) -> AdaptationResult:
        blocks = payload["content"]
        if not isinstance(blocks, list):
            raise TypeError("content is not a list of blocks")

        text = "".join(
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type", "text") == "text"
        )
        usage = payload.get("usage") or {}
        return AdaptationResult(
            text=text,
            input_tokens=int(usage.get("input_tokens", 0)),
            output_tokens=int(usage.get("output_tokens", 0)),
        )
