"""ELLIFT CLI Package.

Usage:
    ellift serve --port 3001
    ellift extract worksheet.pdf -o worksheet.txt
    ellift adapt worksheet.pdf --subject Science --level emerging
"""

import typer

from ellift.cli.serve import serve_command
from ellift.cli.extract import extract_command
from ellift.cli.adapt import adapt_command

app = typer.Typer(help="ELLIFT: adapt classroom materials for English Language Learners")

app.command(name="serve")(serve_command)
app.command(name="extract")(extract_command)
app.command(name="adapt")(adapt_command)

__all__ = ["app", "serve_command", "extract_command", "adapt_command"]
