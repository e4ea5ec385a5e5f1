"""Tests for the image generation service."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from ellift.models.config import ImageBackendConfig
from ellift.services.image_service import ImageService
from ellift.utils.exceptions import (
    ConfigurationError,
    InputValidationError,
    UpstreamBackendError,
)


def mock_response(status: int, text: str) -> AsyncMock:
    response = AsyncMock()
    response.status = status
    response.text.return_value = text
    return response


@pytest.fixture
def service():
    return ImageService(ImageBackendConfig(api_key="sk-test"))


class TestValidation:
    @pytest.mark.parametrize("prompt", [None, "", "   ", 42, ["a cat"]])
    @pytest.mark.asyncio
    async def test_rejects_missing_or_non_string(self, service, prompt):
        with pytest.raises(InputValidationError, match="must be a string"):
            await service.generate(prompt)

    @pytest.mark.asyncio
    async def test_rejects_long_prompt(self, service):
        with pytest.raises(InputValidationError, match="Maximum 1000 characters"):
            await service.generate("x" * 1001)

    def test_accepts_limit(self, service):
        assert service.validate_prompt("x" * 1000) == "x" * 1000

    @pytest.mark.asyncio
    async def test_missing_key(self):
        with pytest.raises(ConfigurationError, match="not configured"):
            await ImageService(ImageBackendConfig()).generate("a volcano diagram")

    @pytest.mark.asyncio
    async def test_malformed_key(self):
        service = ImageService(ImageBackendConfig(api_key="pk-wrong"))
        with pytest.raises(ConfigurationError, match="Invalid OpenAI API key format"):
            await service.generate("a volcano diagram")


class TestGenerate:
    @pytest.mark.asyncio
    async def test_success(self, service):
        body = json.dumps({"data": [{"url": "https://images.example/1.png"}]})
        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = mock_response(200, body)

            result = await service.generate("a labeled plant cell")

        assert result == {"url": "https://images.example/1.png", "prompt": "a labeled plant cell"}
        _, kwargs = mock_post.call_args
        assert kwargs["json"] == {
            "model": "dall-e-3",
            "prompt": "a labeled plant cell",
            "size": "1024x1024",
            "quality": "standard",
            "n": 1,
        }
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"

    @pytest.mark.asyncio
    async def test_provider_error_message_and_status(self, service):
        body = json.dumps({"error": {"message": "Your request was rejected by the safety system."}})
        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = mock_response(400, body)

            with pytest.raises(UpstreamBackendError) as exc_info:
                await service.generate("something")

        assert exc_info.value.status_code == 400
        assert str(exc_info.value) == "Your request was rejected by the safety system."
        assert exc_info.value.body == body

    @pytest.mark.asyncio
    async def test_non_json_error_uses_raw_text(self, service):
        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = mock_response(502, "Bad gateway")

            with pytest.raises(UpstreamBackendError) as exc_info:
                await service.generate("something")

        assert exc_info.value.status_code == 502
        assert str(exc_info.value) == "Bad gateway"

    @pytest.mark.asyncio
    async def test_json_error_without_message(self, service):
        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = mock_response(500, "{}")

            with pytest.raises(UpstreamBackendError, match="OpenAI API error: 500"):
                await service.generate("something")

    @pytest.mark.asyncio
    async def test_unexpected_success_payload(self, service):
        with patch("aiohttp.ClientSession.post") as mock_post:
            mock_post.return_value.__aenter__.return_value = mock_response(200, '{"data": []}')

            with pytest.raises(UpstreamBackendError) as exc_info:
                await service.generate("something")

        assert exc_info.value.status_code == 502
