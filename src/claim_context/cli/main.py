"""CLI for claim-context: run a single stage or the whole pipeline on a ClaimContext JSON file."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from claim_context.api.operations import error_response
from claim_context.core.config import AppSettings, LLMConfig
from claim_context.exceptions import ClaimContextError
from claim_context.formatters import get_formatter
from claim_context.hooks import setup_logging
from claim_context.models import ClaimContext, EstimateResult, PipelineStage, ScopeClassification
from claim_context.persistence import create_backend
from claim_context.providers.llm.client import LLMClient
from claim_context.providers.llm.protocols import IGenerator
from claim_context.services.pipeline_service import ClaimContextPipeline
from claim_context.services.pipeline_store import PipelineStore

app = typer.Typer(name="claim-context", help="Staged claim estimate generation with scope guardrails")
console = Console(stderr=True)


def _build_settings(
    base_url: Optional[str],
    api_key: Optional[str],
    model: Optional[str],
    verbose: bool,
) -> AppSettings:
    """Build settings, overriding env defaults with CLI flags."""
    overrides: dict[str, Any] = {}
    if base_url:
        overrides["base_url"] = base_url
    if api_key:
        overrides["api_key"] = api_key
    if model:
        overrides["model"] = model
    settings = AppSettings(llm=LLMConfig(**overrides))
    if verbose:
        settings.observability.log_level = "DEBUG"
    setup_logging(settings.observability)
    return settings


def _build_generator(settings: AppSettings) -> IGenerator:
    return LLMClient(settings.llm)


def _build_pipeline(settings: AppSettings, *, persist: bool = False) -> ClaimContextPipeline:
    store = PipelineStore(create_backend(settings.persistence)) if persist else None
    return ClaimContextPipeline(_build_generator(settings), settings, store=store)


def _load_context(path: Path) -> ClaimContext:
    try:
        return ClaimContext.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise typer.BadParameter(f"{path} is not a valid claim context: {exc}") from exc


def _run(coro: Any) -> Any:
    """Run *coro*, turning pipeline failures into a printed error and exit code 1."""
    try:
        return asyncio.run(coro)
    except ClaimContextError as exc:
        result = error_response(exc)
        console.print(f"[red]Error ({result.body['error_type']}):[/red] {result.body['error']}")
        raise typer.Exit(code=1) from exc


def _emit(data: str, output: Optional[Path]) -> None:
    if output:
        output.write_text(data, encoding="utf-8")
        console.print(f"[green]Written to {output}[/green]")
    else:
        typer.echo(data)


def _print_classification(classification: ScopeClassification) -> None:
    table = Table(title="Scope Confidence")
    table.add_column("Scope", style="cyan")
    table.add_column("Confidence", justify="right")
    table.add_column("Primary")
    for scope, value in classification.confidence.items():
        table.add_row(scope, f"{value:.2f}", "yes" if scope in classification.primary_scopes else "")
    console.print(table)


def _print_estimate(result: EstimateResult) -> None:
    table = Table(title="Estimate")
    for column in ("Scope", "Code", "Description", "Qty", "Unit", "Basis"):
        table.add_column(column)
    for group in result.estimate:
        for item in group.items:
            table.add_row(group.scope, item.line_code or "", item.description, f"{item.qty:g}", item.unit, item.qty_basis)
    console.print(table)
    for note in result.missing_info_to_finalize:
        console.print(f"[yellow]Missing:[/yellow] {note}")
    for question in result.questions_for_user:
        console.print(f"[cyan]Question:[/cyan] {question}")


# Shared flag definitions
_BASE_URL = typer.Option(None, "--base-url", help="LLM base URL")
_API_KEY = typer.Option(None, "--api-key", help="LLM API key")
_MODEL = typer.Option(None, "--model", help="LLM model name (LiteLLM prefix, e.g. gemini/...)")
_VERBOSE = typer.Option(False, "--verbose", "-v")
_OUTPUT = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout")


@app.command("parse-measurement")
def parse_measurement(
    document: Path = typer.Argument(..., exists=True, dir_okay=False, help="Measurement report (PDF)"),
    context_file: Optional[Path] = typer.Option(None, "--context", help="Merge the report into this claim context"),
    output: Optional[Path] = _OUTPUT,
    base_url: Optional[str] = _BASE_URL,
    api_key: Optional[str] = _API_KEY,
    model: Optional[str] = _MODEL,
    verbose: bool = _VERBOSE,
) -> None:
    """Stage 1: normalize a measurement report."""
    settings = _build_settings(base_url, api_key, model, verbose)
    pipeline = _build_pipeline(settings)
    report = _run(pipeline.parse_measurement(document.read_bytes(), document.name))

    console.print(f"Source: [bold]{report.source}[/bold]  Sections with data: {report.sections_with_data()}")
    if context_file:
        context = _load_context(context_file).merge(measurement_report=report)
        _emit(context.model_dump_json(indent=2), output)
    else:
        _emit(report.model_dump_json(indent=2), output)


@app.command("extract-findings")
def extract_findings(
    context_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Claim context JSON"),
    output: Optional[Path] = _OUTPUT,
    base_url: Optional[str] = _BASE_URL,
    api_key: Optional[str] = _API_KEY,
    model: Optional[str] = _MODEL,
    verbose: bool = _VERBOSE,
) -> None:
    """Stage 2: extract damage findings from the claim's photos."""
    settings = _build_settings(base_url, api_key, model, verbose)
    context = _load_context(context_file)
    findings = _run(_build_pipeline(settings).extract_photo_findings(context))

    console.print(f"Extracted [bold]{len(findings)}[/bold] finding(s)")
    _emit(context.merge(photo_findings=findings).model_dump_json(indent=2), output)


@app.command()
def classify(
    context_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Claim context JSON"),
    output: Optional[Path] = _OUTPUT,
    base_url: Optional[str] = _BASE_URL,
    api_key: Optional[str] = _API_KEY,
    model: Optional[str] = _MODEL,
    verbose: bool = _VERBOSE,
) -> None:
    """Stage 3: classify repair scopes."""
    settings = _build_settings(base_url, api_key, model, verbose)
    context = _load_context(context_file)
    classification = _run(_build_pipeline(settings).classify_scope(context))

    _print_classification(classification)
    _emit(context.merge(scope_classification=classification).model_dump_json(indent=2), output)


@app.command()
def estimate(
    context_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Claim context JSON"),
    output: Optional[Path] = _OUTPUT,
    fmt: str = typer.Option("json", "--format", "-f", help="Export format: json or tsv"),
    pipeline_id: Optional[str] = typer.Option(None, "--pipeline-id", help="Persist the result to this pipeline record"),
    base_url: Optional[str] = _BASE_URL,
    api_key: Optional[str] = _API_KEY,
    model: Optional[str] = _MODEL,
    verbose: bool = _VERBOSE,
) -> None:
    """Stage 4: generate the line-item estimate."""
    try:
        formatter = get_formatter(fmt)
    except KeyError as exc:
        raise typer.BadParameter(str(exc.args[0])) from exc

    settings = _build_settings(base_url, api_key, model, verbose)
    context = _load_context(context_file)
    pipeline = _build_pipeline(settings, persist=pipeline_id is not None)
    result = _run(pipeline.generate_estimate(context, pipeline_id=pipeline_id))

    _print_estimate(result)
    _emit(formatter.format(result).decode(), output)


@app.command()
def run(
    context_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Claim context JSON"),
    document: Optional[Path] = typer.Option(None, "--document", "-d", exists=True, dir_okay=False, help="Measurement report (PDF)"),
    start_at: PipelineStage = typer.Option(PipelineStage.INGEST, "--start-at", help="First stage to run"),
    output: Optional[Path] = _OUTPUT,
    pipeline_id: Optional[str] = typer.Option(None, "--pipeline-id", help="Record progress under this pipeline id"),
    base_url: Optional[str] = _BASE_URL,
    api_key: Optional[str] = _API_KEY,
    model: Optional[str] = _MODEL,
    verbose: bool = _VERBOSE,
) -> None:
    """Run every stage from --start-at through the estimate."""
    settings = _build_settings(base_url, api_key, model, verbose)
    context = _load_context(context_file)
    pipeline = _build_pipeline(settings, persist=pipeline_id is not None)

    context = _run(
        pipeline.run_all(
            context,
            document_bytes=document.read_bytes() if document else None,
            document_name=document.name if document else None,
            pipeline_id=pipeline_id,
            start_at=start_at,
        )
    )

    if context.scope_classification is not None:
        _print_classification(context.scope_classification)
    if context.estimate_result is not None:
        _print_estimate(context.estimate_result)
    _emit(context.model_dump_json(indent=2), output)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default CLAIMCTX_API_HOST)"),
    port: Optional[int] = typer.Option(None, help="Port (default CLAIMCTX_API_PORT)"),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    settings = AppSettings()
    uvicorn.run(
        "claim_context.api.app:app",
        host=host or settings.api.host,
        port=port or settings.api.port,
    )


def main() -> None:
    logging.captureWarnings(True)
    app()


if __name__ == "__main__":
    main()
