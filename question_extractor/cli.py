"""
CLI Interface
=============
Command-line interface for the question extractor.

Usage:
    python -m question_extractor.cli parse <pdf_path> [options]
    python -m question_extractor.cli text <txt_path> [options]
    python -m question_extractor.cli info <pdf_path>
    python -m question_extractor.cli serve [options]
"""

from __future__ import annotations

import json
import os
import sys
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .engine import ParserConfig, ParserEngine
from .filters import MIN_CONTENT_LENGTH
from .pipeline import PipelineConfig, join_full_text
from .snippet import SNIPPET_LENGTH

console = Console()

NO_QUESTIONS_MESSAGE = "No valid questions found in this PDF."


def _source_name(stream_name: Optional[str]) -> str:
    """Display name for a click.File; "-" opens as "<stdin>"."""
    if not stream_name or stream_name == "<stdin>":
        return "stdin"
    return os.path.basename(stream_name)


def _split_ids(value: Optional[str]) -> Optional[list[str]]:
    if not value:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


@click.group()
@click.version_option(version=__version__, prog_name="question-extractor")
def cli():
    """PDF Question Extractor: numbered exam questions from PDFs."""
    pass


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True))
@click.option(
    "--output", "-o",
    default="output",
    help="Output directory for the parsed JSON",
)
@click.option(
    "--name", "-n",
    default="",
    help="Document name (defaults to filename)",
)
@click.option(
    "--page-start",
    default=None,
    type=int,
    help="Start page (1-indexed)",
)
@click.option(
    "--page-end",
    default=None,
    type=int,
    help="End page (1-indexed, inclusive)",
)
@click.option(
    "--min-length",
    default=MIN_CONTENT_LENGTH,
    type=int,
    help="Minimum characters for a block to count as a question",
)
@click.option(
    "--snippet-length",
    default=SNIPPET_LENGTH,
    type=int,
    help="Maximum snippet length before truncation",
)
@click.option(
    "--select", "-s",
    default=None,
    help="Comma-separated question ids to print as plain text (e.g. q-1,q-3)",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--log-file",
    default=None,
    help="Path to log file",
)
@click.option(
    "--no-save",
    is_flag=True,
    default=False,
    help="Do not write the JSON result to the output directory",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def parse(
    pdf_path: str,
    output: str,
    name: str,
    page_start: int,
    page_end: int,
    min_length: int,
    snippet_length: int,
    select: str,
    log_level: str,
    log_file: str,
    no_save: bool,
    json_output: bool,
):
    """Extract the numbered questions of a single PDF file."""

    if json_output or select:
        # Keep stdout clean for piping
        log_level = "ERROR"

    page_range = None
    if page_start is not None or page_end is not None:
        page_range = (page_start or 1, page_end or 99999)

    config = ParserConfig(
        pipeline=PipelineConfig(
            min_content_length=min_length,
            snippet_length=snippet_length,
        ),
        output_dir=output,
        save_output=not no_save,
        document_name=name,
        page_range=page_range,
        log_level=log_level,
        log_file=log_file,
    )

    if not (json_output or select):
        console.print()
        console.print(
            Panel.fit(
                f"[bold cyan]PDF Question Extractor v{__version__}[/]\n"
                f"[dim]Parsing: {os.path.basename(pdf_path)}[/]",
                border_style="cyan",
            )
        )
        console.print()

    try:
        engine = ParserEngine(config)

        if json_output or select:
            result = engine.parse(pdf_path)
        else:
            with console.status("Extracting text..."):
                result = engine.parse(pdf_path)

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    except RuntimeError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(
            f"[red]An error occurred while extracting text from the PDF:[/] {e}"
        )
        if log_level == "DEBUG":
            console.print_exception()
        sys.exit(1)

    _emit(result, json_output=json_output, select=select)


@cli.command()
@click.argument("text_path", type=click.File("r", encoding="utf-8"))
@click.option("--output", "-o", default="output", help="Output directory")
@click.option("--select", "-s", default=None, help="Comma-separated ids")
@click.option("--log-level", default="WARNING", help="Logging level")
@click.option("--no-save", is_flag=True, default=False, help="Skip JSON file")
@click.option("--json-output", is_flag=True, default=False, help="JSON to stdout")
def text(
    text_path,
    output: str,
    select: str,
    log_level: str,
    no_save: bool,
    json_output: bool,
):
    """Extract questions from already-extracted text ("-" reads stdin)."""

    config = ParserConfig(
        output_dir=output,
        save_output=not no_save,
        log_level="ERROR" if (json_output or select) else log_level,
    )
    engine = ParserEngine(config)
    source_name = _source_name(text_path.name)
    result = engine.parse_text(text_path.read(), source_name=source_name)

    _emit(result, json_output=json_output, select=select)


@cli.command()
@click.option("--host", default="0.0.0.0", help="Server host")
@click.option("--port", default=5000, type=int, help="Server port")
@click.option("--debug", is_flag=True, default=False, help="Debug mode")
def serve(host: str, port: int, debug: bool):
    """Start the HTTP extraction API."""
    from .server import run_server

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Question Extractor API[/]\n"
            f"[dim]Starting on {host}:{port}[/]",
            border_style="cyan",
        )
    )
    console.print()

    run_server(host=host, port=port, debug=debug)


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True))
def info(pdf_path: str):
    """Display PDF file information."""

    import fitz

    with fitz.open(pdf_path) as doc:
        console.print()
        table = Table(title="PDF Information", border_style="cyan")
        table.add_column("Property", style="bold")
        table.add_column("Value")

        table.add_row("File", os.path.basename(pdf_path))
        table.add_row("Pages", str(doc.page_count))
        table.add_row(
            "File Size",
            f"{os.path.getsize(pdf_path) / 1024 / 1024:.2f} MB",
        )

        metadata = doc.metadata or {}
        for key in ["title", "author", "subject", "creator", "producer"]:
            val = metadata.get(key, "")
            if val:
                table.add_row(key.title(), val)

    console.print(table)
    console.print()


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _emit(result, json_output: bool, select: Optional[str]):
    """Write a ParseResult in the requested form; exit 1 when empty."""
    if json_output:
        click.echo(json.dumps(
            result.model_dump(by_alias=True),
            indent=2,
            ensure_ascii=False,
            default=str,
        ))
    elif select:
        click.echo(join_full_text(result.questions, _split_ids(select)))
    else:
        _display_results(result)

    if not result.questions:
        if not json_output:
            console.print(f"[yellow]{NO_QUESTIONS_MESSAGE}[/]")
        sys.exit(1)


def _display_results(result):
    """Display extracted questions in a formatted table."""
    console.print()

    if result.questions:
        table = Table(
            title=f"Questions: {result.document.source_file}",
            border_style="cyan",
        )
        table.add_column("ID", style="bold")
        table.add_column("Marker", justify="right")
        table.add_column("Snippet")

        for q in result.questions:
            table.add_row(q.id, q.raw_number, q.snippet)

        console.print(table)
        console.print()

    _display_validation_table(result.validation.model_dump())

    pv = result.parse_version
    console.print(
        f"[dim]Extractor v{pv.parser_version} | "
        f"Markers: {pv.markers_found} | "
        f"Questions: {pv.question_count} | "
        f"Timestamp: {pv.parse_timestamp}[/]"
    )
    console.print()


def _display_validation_table(validation: dict):
    """Display validation report as a rich table."""
    table = Table(title="Validation Report", border_style="green")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Status", justify="center")

    markers = validation.get("markers_found", 0)
    emitted = validation.get("questions_emitted", 0)
    rate = validation.get("yield_rate", 0)

    table.add_row(
        "Markers Found",
        str(markers),
        "[green]✓[/]" if markers > 0 else "[red]✗[/]",
    )
    table.add_row(
        "Questions Emitted",
        f"{emitted} ({rate}%)",
        "[green]✓[/]" if emitted > 0 else "[red]✗[/]",
    )
    table.add_row(
        "Blocks Discarded",
        str(validation.get("blocks_discarded", 0)),
        "[dim]-[/]",
    )

    dupes = validation.get("duplicate_question_numbers", [])
    table.add_row(
        "Duplicate Question Numbers",
        str(len(dupes)),
        "[green]✓[/]" if not dupes else "[yellow]⚠[/]",
    )

    missing = validation.get("missing_question_numbers", [])
    table.add_row(
        "Missing Question Numbers",
        str(len(missing)),
        "[green]✓[/]" if not missing else "[yellow]⚠[/]",
    )

    console.print(table)
    console.print()

    breakdown = validation.get("discard_breakdown", {})
    if breakdown:
        discard_table = Table(
            title="Discard Breakdown",
            border_style="yellow",
        )
        discard_table.add_column("Rule", style="bold")
        discard_table.add_column("Count", justify="right")

        for rule_name, count in sorted(breakdown.items()):
            discard_table.add_row(rule_name, str(count))

        console.print(discard_table)
        console.print()


# ─── Entry point (for python -m question_extractor.cli) ───────────────────────


if __name__ == "__main__":
    cli()
