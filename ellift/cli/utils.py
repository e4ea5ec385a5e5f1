"""Helpers shared by the ellift commands."""

import asyncio
import functools
from typing import Awaitable, Callable, TypeVar

import structlog
import typer

from ellift.models.config import AppConfig
from ellift.observability.context import request_id_context
from ellift.observability.logging import configure_logging
from ellift.services.config_manager import ConfigManager, ConfigValidationError
from ellift.utils.exceptions import AdapterError, ExtractionError

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable)
T = TypeVar("T")

_STYLES = {
    "success": (typer.colors.GREEN, False),
    "warning": (typer.colors.YELLOW, False),
    "error": (typer.colors.RED, True),
    "info": (typer.colors.CYAN, False),
}


def load_config() -> AppConfig:
    """Read configuration from the environment and set up logging.

    Raises:
        typer.Exit: Configuration is invalid.
    """
    try:
        config = ConfigManager().load_config()
    except ConfigValidationError as e:
        typer.secho(f"Configuration Error: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    configure_logging(level=config.log_level, json_output=config.log_json)
    return config


def run_async(coro: Awaitable[T]) -> T:
    """Run a coroutine to completion under a fresh request ID."""

    async def _run() -> T:
        with request_id_context(None):
            return await coro

    return asyncio.run(_run())


def handle_errors(func: F) -> F:
    """Turn exceptions raised by a command into a message and exit code 1.

    Extraction failures also print their remedy. Unexpected exceptions are
    logged with a traceback.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except AdapterError as e:
            logger.error("command_failed", error_type=type(e).__name__, error=str(e))
            display_error(f"Error: {e}")
            if isinstance(e, ExtractionError):
                display_warning(e.remedy)
        except Exception as e:
            logger.exception("command_failed")
            display_error(f"Error: {e}")
        raise typer.Exit(code=1)

    return wrapper  # type: ignore[return-value]


def _display(style: str, message: str) -> None:
    color, to_stderr = _STYLES[style]
    typer.secho(message, fg=color, err=to_stderr)


def display_success(message: str) -> None:
    _display("success", message)


def display_warning(message: str) -> None:
    _display("warning", message)


def display_error(message: str) -> None:
    _display("error", message)


def display_info(message: str) -> None:
    _display("info", message)
