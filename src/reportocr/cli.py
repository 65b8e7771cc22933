# src/reportocr/cli.py
"""
reportocr Command Line Interface (CLI).

This module implements the terminal interface using `typer` and `rich`.

Commands
--------
- **extract**: run the live pipeline (rate limit, validation, Textract,
  assembly) on a local file.
- **assemble**: assemble a saved AnalyzeDocument JSON response offline, with
  no AWS call. Handy for debugging table or form reconstruction.

Usage
-----
    $ reportocr extract samples/cbc.png
    $ reportocr assemble artifacts/responses/cbc.json --json
"""

from __future__ import annotations

import json
import mimetypes
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from reportocr.assemblers import assemble
from reportocr.core.contracts.block import BlockGraph
from reportocr.core.contracts.extraction import ExtractionResult
from reportocr.core.errors import ReportOcrError
from reportocr.pipelines import DocumentProcessor

load_dotenv()

app = typer.Typer(
    help="reportocr: turn scanned lab reports into text, tables and form fields.",
    rich_markup_mode="markdown",
)
console = Console()


# --------------------------------------------------------------------------- #
# Helpers: Rendering
# --------------------------------------------------------------------------- #


def _render_result(result: ExtractionResult) -> None:
    """Render lines, tables and key-value pairs with Rich."""
    console.rule(f"[bold]Lines ({len(result.lines)})[/bold]")
    for line in result.lines:
        console.print(f"[dim]{line.confidence:5.1f}[/dim]  {line.text}")

    for i, table in enumerate(result.tables, start=1):
        n_rows, n_cols = table.shape
        grid = Table(title=f"Table {i} ({n_rows}x{n_cols})", show_header=False)
        for _ in range(n_cols):
            grid.add_column()
        for row in table.rows:
            grid.add_row(*row)
        console.print(grid)

    if result.key_value_pairs:
        pairs = Table(title="Form fields")
        pairs.add_column("Key", style="bold yellow")
        pairs.add_column("Value")
        pairs.add_column("Conf.", justify="right", style="dim")
        for kv in result.key_value_pairs:
            pairs.add_row(kv.key, kv.value, f"{kv.confidence:.1f}")
        console.print(pairs)


def _emit(result: ExtractionResult, as_json: bool) -> None:
    if as_json:
        typer.echo(result.model_dump_json(by_alias=True, indent=2))
    else:
        _render_result(result)


def _guess_mime_type(path: Path) -> str:
    guessed, _ = mimetypes.guess_type(path.name)
    if path.suffix.lower() in (".heic", ".heif"):
        return f"image/{path.suffix.lower().lstrip('.')}"
    return guessed or "application/octet-stream"


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def extract(
    file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Image (JPEG, PNG, HEIC/HEIF) or single-page PDF.",
        ),
    ],
    mime_type: Annotated[
        str | None,
        typer.Option("--mime-type", "-t", help="Override the MIME type guessed from the suffix."),
    ] = None,
    caller_id: Annotated[
        str,
        typer.Option("--caller-id", "-c", help="Caller id used for rate limiting."),
    ] = "cli",
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the ExtractionResult as JSON.")
    ] = False,
) -> None:
    """
    Run the live extraction pipeline on a local document.
    """
    mime = mime_type or _guess_mime_type(file)
    if not as_json:
        console.print(
            Panel.fit(
                f"[bold cyan]reportocr[/bold cyan]\nProcessing: [u]{file.name}[/u] ({mime})",
                border_style="cyan",
            )
        )

    try:
        with DocumentProcessor.from_settings() as processor:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
                transient=True,
                disable=as_json,
            ) as progress:
                progress.add_task("[yellow]Waiting for Textract...", total=None)
                result = processor.extract(file.read_bytes(), mime, caller_id)
    except ReportOcrError as e:
        console.print(f"[bold red]Extraction failed ({e.kind}):[/bold red] {e.message}")
        raise typer.Exit(code=1) from e

    _emit(result, as_json)


@app.command(name="assemble")  # type: ignore[misc]
def assemble_response(
    response_file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="JSON body returned by AnalyzeDocument.",
        ),
    ],
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the ExtractionResult as JSON.")
    ] = False,
) -> None:
    """
    Assemble a saved AnalyzeDocument JSON response without calling AWS.
    """
    try:
        payload = json.loads(response_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[bold red]Not a JSON file:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    if not isinstance(payload, dict):
        console.print(
            "[bold red]Not an AnalyzeDocument response:[/bold red] expected a JSON object"
        )
        raise typer.Exit(code=1)

    try:
        graph = BlockGraph.from_textract(payload)
    except PydanticValidationError as e:
        console.print(
            f"[bold red]Malformed blocks:[/bold red] {e.error_count()} invalid field(s)"
        )
        raise typer.Exit(code=1) from e

    _emit(assemble(graph), as_json)


if __name__ == "__main__":
    app()
