"""Typer CLI entrypoint for socialshot."""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError

from socialshot.config import DEFAULT_OUTPUT_DIR, CaptureSettings, Variant
from socialshot.errors import BrowserLaunchError
from socialshot.input import load_url_file
from socialshot.logging_config import setup_logging
from socialshot.pipeline import run_capture_sync

app = typer.Typer(help="Generate clean screenshot cards from social media post URLs.", no_args_is_help=True)


@app.callback()
def main() -> None:
    """socialshot command group."""


@app.command()
def capture(
    urls: list[str] = typer.Argument(None, help="Post or article URLs to capture."),
    file: Path | None = typer.Option(None, "--file", exists=True, readable=True, dir_okay=False),
    output: Path = typer.Option(DEFAULT_OUTPUT_DIR, "--output", file_okay=False),
    parallel: int = typer.Option(3, "--parallel", min=1, max=16),
    thread: bool = typer.Option(False, "--thread", help="Capture a conversation as one combined card."),
    bento: bool = typer.Option(False, "--bento", help="Bento-style cards for presentation slides."),
    headless: bool = typer.Option(True, "--headless/--no-headless"),
    as_json: bool = typer.Option(False, "--json", help="Print the batch report as JSON."),
    debug: bool = typer.Option(False, "--debug"),
) -> None:
    """Capture cards, original media and metadata for every URL."""

    setup_logging(debug)

    targets = list(urls or [])
    if file is not None:
        try:
            targets.extend(load_url_file(file))
        except ValueError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1) from exc

    if not targets:
        typer.echo("No URLs given. Pass URLs as arguments or use --file.", err=True)
        raise typer.Exit(code=1)

    try:
        settings = CaptureSettings(
            output_dir=output,
            concurrency=parallel,
            thread=thread,
            variant=Variant.BENTO if bento else Variant.STANDARD,
            headless=headless,
        )
    except ValidationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc

    try:
        report = run_capture_sync(targets, settings)
    except (BrowserLaunchError, OSError) as exc:
        typer.echo(f"Capture failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if as_json:
        typer.echo(report.model_dump_json(by_alias=True, indent=2))
        return

    images = sum(len(result.media_file_names) for result in report.results)
    typer.echo(f"Processed {report.totals.urls} URL(s) in {report.elapsed_seconds}s.")
    typer.echo(f"Cards saved: {report.totals.successful}")
    typer.echo(f"Images saved: {images}")
    typer.echo(f"Output: {report.output_directory}")

    if report.failures:
        typer.echo(f"Failed: {report.totals.failed}", err=True)
        for result in report.failures:
            typer.echo(f"- {result.source_url}: {result.error_message}", err=True)
