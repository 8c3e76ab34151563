"""
Token commands for Facet CLI.

- tokens list: Show published revisions
- tokens export: Write a revision as CSS, SCSS, a native module or DTCG JSON
"""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from facet.core.dtcg_export import generate_dtcg_tokens
from facet.core.token_transformer import TokenStyle, transform

from .utils import console, handle_errors, load_project, load_sources

tokens_app = typer.Typer(
    help="Inspect and export design token revisions",
    no_args_is_help=True,
)


class ExportFormat(StrEnum):
    CSS = "css"
    SCSS = "scss"
    NATIVE = "native"
    DTCG = "dtcg"


_STYLES = {
    ExportFormat.CSS: TokenStyle.CSS_VARIABLES,
    ExportFormat.SCSS: TokenStyle.SCSS,
    ExportFormat.NATIVE: TokenStyle.NATIVE,
}


@tokens_app.command(name="list")
def list_command(
    project_dir: Annotated[Path, typer.Option("--project", "-C", help="Project directory")] = Path("."),
) -> None:
    """List published token revisions."""
    with handle_errors():
        source = load_sources(load_project(project_dir))

    revisions = source.tokens.revisions()
    if not revisions:
        console.print("[dim]No token revisions found.[/dim]")
        return

    table = Table(title="Token revisions")
    table.add_column("Revision")
    table.add_column("Themes")
    table.add_column("Tokens", justify="right")
    for revision in revisions:
        token_set = source.tokens.get(revision)
        table.add_row(revision, ", ".join(token_set.themes), str(len(token_set.tokens)))
    console.print(table)


@tokens_app.command(name="export")
def export_command(
    output_format: Annotated[ExportFormat, typer.Option("--format", "-f", help="Output format")] = ExportFormat.CSS,
    revision: Annotated[str | None, typer.Option("--revision", "-r", help="Token revision (default: latest)")] = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Output directory (default: print to stdout)")
    ] = None,
    project_dir: Annotated[Path, typer.Option("--project", "-C", help="Project directory")] = Path("."),
) -> None:
    """Export a token revision."""
    with handle_errors():
        source = load_sources(load_project(project_dir))
        token_set = source.tokens.get(revision) if revision else source.tokens.latest()

    if output_format == ExportFormat.DTCG:
        files = {"tokens.json": json.dumps(generate_dtcg_tokens(token_set), indent=2) + "\n"}
    else:
        binding = transform(token_set, "export", _STYLES[output_format])
        wanted = binding.files if output_format != ExportFormat.SCSS else binding.files[1:]
        files = {f.path: f.content for f in wanted}

    if output is None:
        for content in files.values():
            typer.echo(content, nl=not content.endswith("\n"))
        return

    output.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        (output / name).write_text(content, encoding="utf-8")
        console.print(f"[green]Wrote[/green] {output / name}")
