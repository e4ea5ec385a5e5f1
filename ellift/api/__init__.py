"""HTTP API for the adaptation service."""

from ellift.api.server import create_app, run_server

__all__ = ["create_app", "run_server"]
