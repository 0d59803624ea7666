# src/scrollystory/cli.py
"""
scrollystory Command Line Interface (CLI).

This module implements the terminal interface using `typer` and `rich`. It
runs the ingestion pipeline and shows what a renderer would receive.

Commands
--------
- **show**  : Print the story header and the block tree (text sections,
  scrolly sections with their steps and sticky ids).
- **export**: Write the pipeline result as JSON for a renderer or for review.
- **template**: Write a starter workbook with example sheets.

`show` and `export` read the workbook first and fall back to the Google Sheet, as
configured by settings; `--workbook` / `--sheet-url` override them.

Usage
-----
    $ scrollystory show
    $ scrollystory show --workbook data/StoryData.xlsx
    $ scrollystory export -o story.json --sheet-url https://docs.google.com/spreadsheets/d/<id>
"""

from __future__ import annotations

import traceback
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.tree import Tree

from scrollystory.core.contracts.block import ScrollyBlock
from scrollystory.core.errors import ScrollyError, ValidationError
from scrollystory.core.settings import Settings, load_settings
from scrollystory.ingest.template import write_workbook
from scrollystory.pipelines.scrolly_story import PipelineResult, run_pipeline

# Ensure env vars (like SCROLLY_SHEET_URL) are loaded before any logic runs
load_dotenv()

app = typer.Typer(
    help="scrollystory: build a scrolly page block tree from Story/Steps sheets.",
    rich_markup_mode="markdown",
)
console = Console()

WorkbookOption = Annotated[
    Path | None,
    typer.Option("--workbook", "-w", help="Local .xlsx workbook to read first."),
]
SheetUrlOption = Annotated[
    str | None,
    typer.Option("--sheet-url", "-s", help="Google Sheet URL used when the workbook is missing."),
]
ApiKeyOption = Annotated[
    str | None,
    typer.Option("--api-key", help="Sheets API key (defaults to SCROLLY_SHEETS_API_KEY)."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show full error tracebacks for debugging."),
]


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _settings(workbook: Path | None, sheet_url: str | None, api_key: str | None) -> Settings:
    """Apply command-line overrides on top of the loaded settings."""
    overrides: dict[str, Any] = {}
    if workbook is not None:
        overrides["workbook_path"] = workbook
    if sheet_url is not None:
        overrides["sheet_url"] = sheet_url
    if api_key is not None:
        overrides["sheets_api_key"] = api_key
    return load_settings().model_copy(update=overrides)


def _report_error(exc: ScrollyError, verbose: bool) -> None:
    """Print a pipeline error the way a sheet author can act on it."""
    console.print(f"\n[bold red]❌ {type(exc).__name__}[/bold red] while: {exc.context}")
    if isinstance(exc, ValidationError) and exc.violations:
        for violation in exc.violations:
            console.print(f"  • {violation.message}")
    else:
        console.print(f"  {exc.detail}")
    if verbose:
        traceback.print_exception(exc)


def _run(settings: Settings, verbose: bool) -> PipelineResult:
    """Single top-level handler: present the error, then exit non-zero."""
    try:
        return run_pipeline(settings=settings)
    except ScrollyError as e:
        _report_error(e, verbose)
        raise typer.Exit(code=1) from e


def _render_tree(result: PipelineResult) -> Tree:
    """Build a Rich tree mirroring the page structure."""
    story = result.story
    root = Tree(f"[bold]{story.title}[/bold] [dim]({story.scroll_type})[/dim]")
    for block in result.blocks:
        if isinstance(block, ScrollyBlock):
            label = f"[cyan]scrolly[/cyan] sticky #{block.sticky_id}"
            if block.text_width_percent is not None:
                label += (
                    f" [dim]text {block.text_width_percent:g}% / "
                    f"media {block.media_width_percent:g}%[/dim]"
                )
            branch = root.add(label)
            for step in block.steps:
                attrs = step.record.data_attributes()
                extra = ", ".join(f"{k}={v}" for k, v in attrs.items() if k != "contentType")
                branch.add(f"{step.step_number}. {attrs['contentType']} [dim]{extra}[/dim]")
        else:
            snippet = str(block.text or "")[:60]
            root.add(f"[yellow]text[/yellow] {block.step_number}. {snippet}")
    return root


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def show(
    workbook: WorkbookOption = None,
    sheet_url: SheetUrlOption = None,
    api_key: ApiKeyOption = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Run the pipeline and print the resulting page structure.
    """
    result = _run(_settings(workbook, sheet_url, api_key), verbose)

    story = result.story
    header = f"[bold cyan]{story.title}[/bold cyan]"
    if story.subtitle:
        header += f"\n{story.subtitle}"
    if story.authors:
        header += f"\n[dim]{story.authors}[/dim]"
    console.print(Panel.fit(header, title=f"source: {result.origin}", border_style="cyan"))
    console.print(_render_tree(result))
    console.print(
        f"\n[bold green]✅ {result.step_count} steps[/bold green] in {len(result.blocks)} blocks"
    )


@app.command()  # type: ignore[misc]
def export(
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Where to write the JSON result."),
    ] = Path("story.json"),
    workbook: WorkbookOption = None,
    sheet_url: SheetUrlOption = None,
    api_key: ApiKeyOption = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Run the pipeline and write the result (story + blocks) as JSON.
    """
    result = _run(_settings(workbook, sheet_url, api_key), verbose)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(result.model_dump_json(indent=2), encoding="utf-8")
    console.print(
        Panel(
            f"Saved to: [link=file://{output.resolve()}]{output}[/link]",
            title="Export",
            border_style="green",
        )
    )


@app.command()  # type: ignore[misc]
def template(
    output: Annotated[
        Path,
        typer.Argument(help="Where to write the starter workbook."),
    ] = Path("data/StoryData.xlsx"),
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing workbook."),
    ] = False,
) -> None:
    """
    Write a starter workbook with example Story and Steps sheets.
    """
    if output.exists() and not force:
        console.print(f"[bold red]❌ {output} already exists[/bold red]")
        console.print("Use --force to overwrite it.")
        raise typer.Exit(code=1)
    write_workbook(output)
    console.print(f"[bold green]✅ Wrote template workbook[/bold green] {output}")


if __name__ == "__main__":
    app()
