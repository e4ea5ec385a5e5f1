"""Adapt command: adapt a text or PDF file from the command line."""

from pathlib import Path
from typing import Optional

import typer

from ellift.cli.utils import (
    display_info,
    display_success,
    handle_errors,
    load_config,
    run_async,
)
from ellift.models.adaptation import (
    AdaptationRequest,
    BackendKind,
    BackendPolicy,
    MaterialType,
    ProficiencyLevel,
)
from ellift.services.extraction_service import ExtractionPipeline

CLI_IDENTITY = "cli"


def _read_content(source: Path) -> str:
    if source.suffix.lower() == ".pdf":
        return run_async(ExtractionPipeline().extract(source.read_bytes()))
    return source.read_text(encoding="utf-8")


@handle_errors
def adapt_command(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Text or PDF file to adapt"),
    subject: str = typer.Option(..., "--subject", "-s", help="Subject, e.g. Science"),
    level: ProficiencyLevel = typer.Option(ProficiencyLevel.DEVELOPING, "--level", "-l", help="WIDA proficiency level"),
    material_type: MaterialType = typer.Option(MaterialType.CLASSWORK, "--material-type", "-m", help="Kind of material"),
    grade_level: Optional[str] = typer.Option(None, "--grade", "-g", help="Grade level"),
    objectives: str = typer.Option("", "--objectives", help="Content learning objectives"),
    native_language: Optional[str] = typer.Option(None, "--native-language", help="Students' native language"),
    bilingual: bool = typer.Option(False, "--bilingual", help="Include bilingual vocabulary support"),
    use_openai: bool = typer.Option(False, "--use-openai", help="Route to the high-capacity backend"),
    max_tokens: int = typer.Option(3000, "--max-tokens", help="Output token budget"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the adapted material to this file"),
):
    """Adapt classroom material for an ELL proficiency level."""
    from ellift.api.server import build_controller, open_store

    config = load_config()
    request = AdaptationRequest(
        content=_read_content(source),
        material_type=material_type,
        subject=subject,
        grade_level=grade_level,
        proficiency_level=level,
        learning_objectives=objectives,
        bilingual_support=bilingual,
        native_language=native_language,
        max_output_tokens=max_tokens,
    )
    policy = BackendPolicy(
        backend=BackendKind.SECONDARY if use_openai else BackendKind.PRIMARY,
        max_tokens=max_tokens,
        auto_route=True,
    )

    controller = build_controller(config, store=open_store(config))
    display_info(f"Adapting {source.name} for {level.value} level...")
    outcome = run_async(controller.adapt(request, policy, identity=CLI_IDENTITY))

    if output:
        output.write_text(outcome.result.text, encoding="utf-8")
        display_success(f"Adapted material written to {output}")
    else:
        typer.echo(outcome.result.text)

    source_label = "cache" if outcome.cached else f"{outcome.backend.value} ({outcome.model})"
    display_info(
        f"Served from {source_label}: "
        f"{outcome.result.input_tokens} input / {outcome.result.output_tokens} output tokens"
    )
