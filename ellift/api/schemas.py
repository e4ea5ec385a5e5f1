"""Request bodies accepted by the HTTP API."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ellift.models.adaptation import AdaptationRequest, BackendKind, ChatMessage


class ProxyRequest(BaseModel):
    """Body of /api/claude."""

    messages: List[ChatMessage] = Field(..., min_length=1)
    max_tokens: int = Field(default=4096, ge=1)


class FallbackProxyRequest(ProxyRequest):
    """Body of /api/openai-claude-fallback."""

    max_tokens: int = Field(default=8000, ge=1)
    use_openai: bool = False

    @property
    def backend(self) -> BackendKind:
        return BackendKind.SECONDARY if self.use_openai else BackendKind.PRIMARY


class AdaptRequestBody(AdaptationRequest):
    """Body of /api/adapt: an adaptation request plus a routing override."""

    use_openai: bool = False

    @property
    def backend(self) -> BackendKind:
        return BackendKind.SECONDARY if self.use_openai else BackendKind.PRIMARY


class ExtractTextRequest(BaseModel):
    """Body of /api/extract-text. Validated by the extraction service."""

    model_config = ConfigDict(populate_by_name=True)

    base64_data: Optional[str] = Field(default=None, alias="base64Data")


class ImageRequest(BaseModel):
    """Body of /api/image. The prompt is validated by the image service."""

    prompt: Any = None
