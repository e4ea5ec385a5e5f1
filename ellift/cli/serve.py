"""Serve command: run the HTTP API."""

from typing import Optional

import typer

from ellift.cli.utils import display_info, handle_errors, load_config


@handle_errors
def serve_command(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Bind address (default: HOST or 0.0.0.0)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default: PORT or 3001)"),
):
    """Start the adaptation API server."""
    from ellift.api.server import run_server

    config = load_config()
    updates = {}
    if host:
        updates["host"] = host
    if port:
        updates["port"] = port
    if updates:
        config = config.model_copy(update=updates)

    display_info(f"Starting API server at http://{config.host}:{config.port}")
    run_server(config)
