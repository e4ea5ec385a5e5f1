"""Abstract LLM Backend Interface

This module defines LLMBackend, the base class for the model backends the
dispatch controller routes to. A backend knows how to:
- build the provider-specific request for a list of role-tagged messages
- normalize the provider's response into an AdaptationResult

The shared generate() flow (credential check, budget clamping, HTTP call,
error translation and metrics) lives here so every backend behaves the same.
"""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence, Tuple

import aiohttp
import structlog

from ellift.models.adaptation import AdaptationResult, BackendKind, ChatMessage
from ellift.observability.metrics import (
    LLM_REQUEST_DURATION,
    LLM_REQUESTS_TOTAL,
    LLM_TOKENS_TOTAL,
)
from ellift.utils.exceptions import ConfigurationError, UpstreamBackendError

logger = structlog.get_logger()


class LLMBackend(ABC):
    """Abstract base class for model backends.

    Implementations:
        - AnthropicBackend: primary, Messages API
        - OpenAIBackend: secondary (high-capacity), Chat Completions API
    """

    @property
    @abstractmethod
    def kind(self) -> BackendKind:
        """Routing role of this backend."""
        pass  # pragma: no cover - abstract method, always overridden

    @property
    @abstractmethod
    def label(self) -> str:
        """Human-readable provider name used in error messages."""
        pass  # pragma: no cover - abstract method, always overridden

    @property
    @abstractmethod
    def model(self) -> str:
        """Current model identifier."""
        pass  # pragma: no cover - abstract method, always overridden

    @property
    @abstractmethod
    def max_output_tokens(self) -> int:
        """Largest output budget the backend accepts."""
        pass  # pragma: no cover - abstract method, always overridden

    @property
    @abstractmethod
    def endpoint(self) -> str:
        pass  # pragma: no cover - abstract method, always overridden

    @property
    @abstractmethod
    def timeout_seconds(self) -> float:
        pass  # pragma: no cover - abstract method, always overridden

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether a credential is available."""
        pass  # pragma: no cover - abstract method, always overridden

    @abstractmethod
    def build_request(
        self, messages: Sequence[ChatMessage], max_tokens: int
    ) -> Tuple[Dict[str, str], Dict[str, Any]]:
        """Build (headers, JSON body) for an already-clamped budget."""
        pass  # pragma: no cover - abstract method, always overridden

    @abstractmethod
    def normalize(self, payload: Dict[str, Any]) -> AdaptationResult:
        """Convert a successful provider payload into an AdaptationResult.

        Raises:
            KeyError, IndexError, TypeError, ValueError: payload has an
                unexpected shape
        """
        pass  # pragma: no cover - abstract method, always overridden

    def clamp(self, max_tokens: int) -> int:
        return min(max_tokens, self.max_output_tokens)

    async def generate(
        self, messages: Sequence[ChatMessage], max_tokens: int
    ) -> AdaptationResult:
        """Send messages to the provider and return the normalized result.

        Args:
            messages: Role-tagged conversation
            max_tokens: Requested output budget (clamped to the backend max)

        Raises:
            ConfigurationError: No credential is configured
            UpstreamBackendError: Non-2xx status, transport failure, or a
                payload that cannot be normalized
        """
        if not self.is_configured():
            raise ConfigurationError(
                f"{self.label} API key not configured", backend=self.kind.value
            )

        budget = self.clamp(max_tokens)
        headers, body = self.build_request(messages, budget)
        backend = self.kind.value

        start_time = time.time()
        status = "failed"
        try:
            payload = await self._post_json(headers, body)
            try:
                result = self.normalize(payload)
            except (KeyError, IndexError, TypeError, ValueError) as e:
                logger.error(
                    "llm_response_unreadable", backend=backend, error=str(e)
                )
                raise UpstreamBackendError(
                    f"{self.label} API returned an unexpected response",
                    body=json.dumps(payload)[:2000],
                    backend=backend,
                ) from e
            status = "success"
        finally:
            duration = time.time() - start_time
            LLM_REQUESTS_TOTAL.labels(backend=backend, status=status).inc()
            LLM_REQUEST_DURATION.labels(backend=backend).observe(duration)

        LLM_TOKENS_TOTAL.labels(backend=backend, type="input").inc(result.input_tokens)
        LLM_TOKENS_TOTAL.labels(backend=backend, type="output").inc(
            result.output_tokens
        )
        logger.info(
            "llm_generate_success",
            backend=backend,
            model=self.model,
            max_tokens=budget,
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            latency_ms=round(duration * 1000),
        )
        return result

    async def _post_json(
        self, headers: Dict[str, str], body: Dict[str, Any]
    ) -> Dict[str, Any]:
        backend = self.kind.value
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    self.endpoint, json=body, headers=headers
                ) as response:
                    status = response.status
                    text = await response.text()
        except asyncio.TimeoutError as e:
            logger.error("llm_api_timeout", backend=backend)
            raise UpstreamBackendError(
                f"{self.label} API request timed out", backend=backend
            ) from e
        except aiohttp.ClientError as e:
            logger.error("llm_api_transport_error", backend=backend, error=str(e))
            raise UpstreamBackendError(
                f"{self.label} API request failed: {e}", backend=backend
            ) from e

        if not 200 <= status < 300:
            logger.error("llm_api_error", backend=backend, status=status, body=text[:500])
            raise UpstreamBackendError(
                f"{self.label} API error: {status}",
                status_code=status,
                body=text,
                backend=backend,
            )

        try:
            payload = json.loads(text)
        except ValueError as e:
            raise UpstreamBackendError(
                f"{self.label} API returned invalid JSON",
                body=text[:2000],
                backend=backend,
            ) from e

        if not isinstance(payload, dict):
            raise UpstreamBackendError(
                f"{self.label} API returned an unexpected response",
                body=text[:2000],
                backend=backend,
            )
        return payload


def serialize_messages(messages: Sequence[ChatMessage]) -> List[Dict[str, Any]]:
    return [{"role": m.role, "content": m.content} for m in messages]
