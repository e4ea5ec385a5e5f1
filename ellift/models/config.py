from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from ellift.models.cache import CacheConfig
from ellift.models.rate_limit import RateLimitConfig


class PrimaryBackendConfig(BaseModel):
    """Anthropic Messages API settings"""

    model_config = ConfigDict(protected_namespaces=())

    api_key: Optional[str] = Field(default=None, repr=False)
    model: str = "claude-sonnet-4-20250514"
    base_url: str = "https://api.anthropic.com/v1/messages"
    anthropic_version: str = "2023-06-01"
    # Budgets above this get the extended-output beta header
    standard_output_tokens: int = Field(default=4096, ge=1)
    max_output_tokens: int = Field(default=8192, ge=1)
    extended_output_beta: str = "max-tokens-3-5-sonnet-2024-07-15"
    timeout_seconds: int = Field(default=120, ge=1)


class SecondaryBackendConfig(BaseModel):
    """OpenAI Chat Completions settings (high-capacity backend)"""

    model_config = ConfigDict(protected_namespaces=())

    api_key: Optional[str] = Field(default=None, repr=False)
    model: str = "gpt-4o"
    base_url: str = "https://api.openai.com/v1/chat/completions"
    max_output_tokens: int = Field(default=16384, ge=1)
    # Low temperature for consistent educational content
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    timeout_seconds: int = Field(default=180, ge=1)


class ImageBackendConfig(BaseModel):
    """OpenAI Images API settings"""

    model_config = ConfigDict(protected_namespaces=())

    api_key: Optional[str] = Field(default=None, repr=False)
    model: str = "dall-e-3"
    base_url: str = "https://api.openai.com/v1/images/generations"
    size: str = "1024x1024"
    quality: str = "standard"
    max_prompt_chars: int = Field(default=1000, ge=1)
    timeout_seconds: int = Field(default=120, ge=1)


class PerformanceConfig(BaseModel):
    """Operation timing settings"""

    log_size: int = Field(default=50, ge=1)
    slow_operation_ms: int = Field(default=30_000, ge=1)
    storage_key: str = "ellift_performance"


class AppConfig(BaseModel):
    """Top-level service configuration"""

    host: str = "0.0.0.0"
    port: int = Field(default=3001, ge=1, le=65535)
    log_level: str = "INFO"
    log_json: bool = True
    # Persist cache and metrics log with diskcache when set
    cache_dir: Optional[str] = None
    # Include exception messages in 500 responses (development only)
    expose_error_details: bool = False

    primary: PrimaryBackendConfig = Field(default_factory=PrimaryBackendConfig)
    secondary: SecondaryBackendConfig = Field(default_factory=SecondaryBackendConfig)
    image: ImageBackendConfig = Field(default_factory=ImageBackendConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level
