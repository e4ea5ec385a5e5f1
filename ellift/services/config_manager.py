import os
from typing import Mapping, Optional

from dotenv import load_dotenv
import structlog
from pydantic import ValidationError

from ellift.models.config import AppConfig

logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Configuration validation failed"""

    pass


_TRUE_VALUES = {"1", "true", "yes", "on"}


def _as_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _none_if_blank(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


class ConfigManager:
    """Builds AppConfig from environment variables.

    Recognized variables:
        CLAUDE_API_KEY, OPENAI_API_KEY, PORT, HOST, LOG_LEVEL, LOG_JSON,
        ELLIFT_CACHE_DIR, ELLIFT_RATE_LIMIT_MAX_REQUESTS,
        ELLIFT_RATE_LIMIT_WINDOW_MS, ELLIFT_UNIDENTIFIED_CLIENT_POLICY,
        ELLIFT_EXPOSE_ERROR_DETAILS
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ
        self.env_loaded = False
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """Load and validate configuration"""
        if self._config:
            return self._config

        # 1. Load .env only when reading the real process environment
        if self._environ is None and not self.env_loaded:  # pragma: no cover
            load_dotenv()
            self.env_loaded = True

        env = self._environ if self._environ is not None else os.environ

        # 2. Map flat variables onto the nested config structure
        openai_key = _none_if_blank(env.get("OPENAI_API_KEY"))
        data: dict = {
            "primary": {"api_key": _none_if_blank(env.get("CLAUDE_API_KEY"))},
            "secondary": {"api_key": openai_key},
            "image": {"api_key": openai_key},
            "cache": {},
            "rate_limit": {},
        }
        if env.get("PORT"):
            data["port"] = env["PORT"]
        if env.get("HOST"):
            data["host"] = env["HOST"]
        if env.get("LOG_LEVEL"):
            data["log_level"] = env["LOG_LEVEL"]
        if env.get("LOG_JSON"):
            data["log_json"] = _as_bool(env["LOG_JSON"])
        if env.get("ELLIFT_CACHE_DIR"):
            data["cache_dir"] = env["ELLIFT_CACHE_DIR"]
        if env.get("ELLIFT_EXPOSE_ERROR_DETAILS"):
            data["expose_error_details"] = _as_bool(env["ELLIFT_EXPOSE_ERROR_DETAILS"])
        if env.get("ELLIFT_RATE_LIMIT_MAX_REQUESTS"):
            data["rate_limit"]["max_requests"] = env["ELLIFT_RATE_LIMIT_MAX_REQUESTS"]
        if env.get("ELLIFT_RATE_LIMIT_WINDOW_MS"):
            data["rate_limit"]["window_ms"] = env["ELLIFT_RATE_LIMIT_WINDOW_MS"]
        if env.get("ELLIFT_UNIDENTIFIED_CLIENT_POLICY"):
            data["rate_limit"]["unidentified_client_policy"] = env[
                "ELLIFT_UNIDENTIFIED_CLIENT_POLICY"
            ].lower()

        # 3. Validate with Pydantic
        try:
            self._config = AppConfig(**data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid configuration: {e}")

        logger.info(
            "config_loaded",
            port=self._config.port,
            primary_configured=self._config.primary.api_key is not None,
            secondary_configured=self._config.secondary.api_key is not None,
            persistent_cache=self._config.cache_dir is not None,
        )
        return self._config


def load_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Convenience wrapper around ConfigManager.load_config()."""
    return ConfigManager(environ=environ).load_config()
