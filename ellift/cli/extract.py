"""Extract command: pull plain text out of a PDF."""

from pathlib import Path
from typing import Optional

import typer

from ellift.cli.utils import display_success, handle_errors, load_config, run_async
from ellift.services.extraction_service import ExtractionPipeline


@handle_errors
def extract_command(
    pdf_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="PDF file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write text to this file"),
):
    """Extract text from a PDF, page by page."""
    load_config()
    text = run_async(ExtractionPipeline().extract(pdf_path.read_bytes()))

    if output:
        output.write_text(text, encoding="utf-8")
        display_success(f"Extracted {len(text)} characters to {output}")
    else:
        typer.echo(text)
