"""CLI entry point.

Allows running the CLI as a module: python -m ellift.cli
"""

from ellift.cli import app

if __name__ == "__main__":
    app()
