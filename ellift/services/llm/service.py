"""Dispatch Controller - Main Orchestrator

Routes generation requests to a model backend and runs the full adaptation
lifecycle for educator requests. Work is delegated to:
- FingerprintCache for result reuse
- SlidingWindowRateLimiter for per-client admission
- PromptBuilder for prompt construction
- LLMBackend implementations (Anthropic primary, OpenAI secondary)
- PerformanceRecorder for operation timing

The lifecycle order is fixed: cache lookup, rate limit, dispatch, cache
write. A cache hit never consumes rate-limit budget and a rejected request
never reaches a backend. There is no implicit retry and no silent fallback:
a failing backend's error is returned to the caller as is.
"""

from typing import Dict, Optional, Sequence

import structlog

from ellift.models.adaptation import (
    AdaptationRequest,
    BackendKind,
    BackendPolicy,
    ChatMessage,
    DispatchOutcome,
)
from ellift.observability.performance import PerformanceRecorder
from ellift.services.cache_service import FingerprintCache
from ellift.services.llm.prompt_builder import PromptBuilder
from ellift.services.llm.providers.anthropic import AnthropicBackend
from ellift.services.llm.providers.base import LLMBackend
from ellift.services.llm.providers.openai import OpenAIBackend
from ellift.utils.exceptions import ConfigurationError, RateLimitedError
from ellift.utils.rate_limiter import UNKNOWN_CLIENT, SlidingWindowRateLimiter

logger = structlog.get_logger()


class DispatchController:
    """Selects a backend per policy and orchestrates adaptation requests."""

    def __init__(
        self,
        primary: Optional[LLMBackend] = None,
        secondary: Optional[LLMBackend] = None,
        cache: Optional[FingerprintCache] = None,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        recorder: Optional[PerformanceRecorder] = None,
        prompt_builder: Optional[PromptBuilder] = None,
    ):
        """Initialize the controller.

        Args:
            primary: Default backend (Anthropic)
            secondary: High-capacity backend (OpenAI)
            cache: Fingerprint cache; a private in-memory cache when omitted
            rate_limiter: Admission control; a default limiter when omitted
            recorder: Performance recorder; a private recorder when omitted
            prompt_builder: Prompt construction
        """
        self.primary = primary or AnthropicBackend()
        self.secondary = secondary or OpenAIBackend()
        self.cache = cache or FingerprintCache()
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter()
        self.recorder = recorder or PerformanceRecorder()
        self.prompt_builder = prompt_builder or PromptBuilder()

        logger.info(
            "dispatch_controller_initialized",
            primary_model=self.primary.model,
            secondary_model=self.secondary.model,
            primary_configured=self.primary.is_configured(),
            secondary_configured=self.secondary.is_configured(),
        )

    def select_backend(self, policy: BackendPolicy) -> LLMBackend:
        """Pick the backend for a policy.

        Secondary when explicitly requested, or when auto-routing is enabled
        and the budget exceeds what the primary backend can produce.
        """
        if policy.backend == BackendKind.SECONDARY:
            return self.secondary
        if policy.auto_route and policy.max_tokens > self.primary.max_output_tokens:
            return self.secondary
        return self.primary

    async def dispatch(
        self, messages: Sequence[ChatMessage], policy: BackendPolicy
    ) -> DispatchOutcome:
        """Send messages to the backend chosen by ``policy``.

        Raises:
            ConfigurationError: Selected backend has no credential
            UpstreamBackendError: Backend call failed
        """
        backend = self.select_backend(policy)
        if not backend.is_configured():
            logger.error("backend_not_configured", backend=backend.kind.value)
            raise ConfigurationError(
                f"{backend.label} API key not configured", backend=backend.kind.value
            )

        logger.info(
            "backend_selected",
            backend=backend.kind.value,
            model=backend.model,
            requested_tokens=policy.max_tokens,
            max_tokens=backend.clamp(policy.max_tokens),
        )
        result = await backend.generate(messages, policy.max_tokens)
        return DispatchOutcome(result=result, backend=backend.kind, model=backend.model)

    async def adapt(
        self,
        request: AdaptationRequest,
        policy: Optional[BackendPolicy] = None,
        identity: str = UNKNOWN_CLIENT,
    ) -> DispatchOutcome:
        """Adapt material for one educator request.

        Args:
            request: Adaptation request
            policy: Routing policy; defaults to the request's output budget
                with auto-routing enabled
            identity: Rate-limit identity of the caller

        Returns:
            DispatchOutcome, with ``cached=True`` when served from the cache

        Raises:
            RateLimitedError: Caller exceeded its request window
            ConfigurationError: Selected backend has no credential
            UpstreamBackendError: Backend call failed
        """
        if policy is None:
            policy = BackendPolicy(max_tokens=request.max_output_tokens, auto_route=True)

        # 1. Cache lookup
        key = self.cache.compute_key(request)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("adaptation_served_from_cache", cache_key=key)
            return DispatchOutcome(
                result=cached,
                backend=self.select_backend(policy).kind,
                cached=True,
            )

        # 2. Rate limit
        decision = self.rate_limiter.check(identity)
        if not decision.allowed:
            now = self.rate_limiter.now()
            raise RateLimitedError(
                "Rate limit exceeded. Please try again later.",
                reset_time=decision.reset_time,
                now=now,
            )

        # 3. Dispatch, 4. cache write, then timing on exit
        async with self.recorder.track(
            "adapt_material",
            material_type=request.material_type.value,
            proficiency_level=request.proficiency_level.value,
        ) as tags:
            messages = self.prompt_builder.build(request)
            outcome = await self.dispatch(messages, policy)
            self.cache.put(key, outcome.result)
            tags["backend"] = outcome.backend.value
            tags["output_tokens"] = outcome.result.output_tokens

        return outcome

    def backend_status(self) -> Dict[str, Dict[str, object]]:
        """Configuration status of each backend for health reporting."""
        return {
            backend.kind.value: {
                "model": backend.model,
                "configured": backend.is_configured(),
                "max_output_tokens": backend.max_output_tokens,
            }
            for backend in (self.primary, self.secondary)
        }
