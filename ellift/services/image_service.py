"""Educational image generation via the OpenAI Images API."""

import asyncio
import json
from typing import Any, Dict, Optional

import aiohttp
import structlog

from ellift.models.config import ImageBackendConfig
from ellift.observability.metrics import LLM_REQUESTS_TOTAL
from ellift.utils.exceptions import (
    ConfigurationError,
    InputValidationError,
    UpstreamBackendError,
)

logger = structlog.get_logger()

_BACKEND = "image"


class ImageService:
    """Generates a single image for a text prompt."""

    def __init__(self, config: Optional[ImageBackendConfig] = None):
        self.config = config or ImageBackendConfig()

    def validate_prompt(self, prompt: Any) -> str:
        if not isinstance(prompt, str) or not prompt.strip():
            raise InputValidationError("Prompt is required and must be a string")
        if len(prompt) > self.config.max_prompt_chars:
            raise InputValidationError(
                f"Prompt too long. Maximum {self.config.max_prompt_chars} characters."
            )
        return prompt

    def _require_key(self) -> str:
        key = self.config.api_key
        if not key:
            raise ConfigurationError("OpenAI API key not configured", backend=_BACKEND)
        if not key.startswith("sk-"):
            raise ConfigurationError("Invalid OpenAI API key format", backend=_BACKEND)
        return key

    async def generate(self, prompt: Any) -> Dict[str, str]:
        """
        Generate an image.

        Args:
            prompt: Image description (at most ``max_prompt_chars`` characters)

        Returns:
            ``{"url": ..., "prompt": ...}``

        Raises:
            InputValidationError: Prompt is missing, not a string, or too long
            ConfigurationError: API key missing or malformed
            UpstreamBackendError: Provider returned a non-2xx or unusable response
        """
        prompt = self.validate_prompt(prompt)
        api_key = self._require_key()

        body = {
            "model": self.config.model,
            "prompt": prompt,
            "size": self.config.size,
            "quality": self.config.quality,
            "n": 1,
        }
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        logger.info("image_generation_started", prompt_length=len(prompt))
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    self.config.base_url, json=body, headers=headers
                ) as response:
                    status = response.status
                    text = await response.text()
        except asyncio.TimeoutError as e:
            LLM_REQUESTS_TOTAL.labels(backend=_BACKEND, status="failed").inc()
            logger.error("image_api_timeout")
            raise UpstreamBackendError(
                "OpenAI API request timed out", backend=_BACKEND
            ) from e
        except aiohttp.ClientError as e:
            LLM_REQUESTS_TOTAL.labels(backend=_BACKEND, status="failed").inc()
            logger.error("image_api_transport_error", error=str(e))
            raise UpstreamBackendError(
                f"OpenAI API request failed: {e}", backend=_BACKEND
            ) from e

        if not 200 <= status < 300:
            LLM_REQUESTS_TOTAL.labels(backend=_BACKEND, status="failed").inc()
            logger.error("image_api_error", status=status, body=text[:500])
            raise UpstreamBackendError(
                self._error_message(status, text),
                status_code=status,
                body=text,
                backend=_BACKEND,
            )

        try:
            url = json.loads(text)["data"][0]["url"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            LLM_REQUESTS_TOTAL.labels(backend=_BACKEND, status="failed").inc()
            raise UpstreamBackendError(
                "Invalid response from OpenAI API", body=text[:2000], backend=_BACKEND
            ) from e

        LLM_REQUESTS_TOTAL.labels(backend=_BACKEND, status="success").inc()
        logger.info("image_generation_completed")
        return {"url": url, "prompt": prompt}

    @staticmethod
    def _error_message(status: int, text: str) -> str:
        """Provider's ``error.message`` when the body is JSON, raw text otherwise."""
        fallback = f"OpenAI API error: {status}"
        try:
            data = json.loads(text)
        except ValueError:
            return text or fallback

        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return fallback
