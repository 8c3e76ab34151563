"""
Facet command line.

Commands operate on the project in the current directory (or --project),
configured by facet.toml.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from facet._version import get_version
from facet.core.pipeline import GenerationPipeline
from facet.core.registry import ArtifactRegistry
from facet.core.variant_compiler import compile_variants
from facet.platforms import get_registry

from .tokens import tokens_app
from .utils import console, handle_errors, load_project, load_sources, version_callback

# =============================================================================
# Main Application
# =============================================================================

app = typer.Typer(
    help="""Facet - universal component generation engine

Generates framework-native components from component specifications and
design tokens, validates each against its accessibility contract and
publishes it to the artifact registry.
""",
    no_args_is_help=True,
)

app.add_typer(tokens_app, name="tokens")

ProjectOption = Annotated[Path, typer.Option("--project", "-C", help="Project directory (contains facet.toml)")]


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
) -> None:
    """Facet CLI main callback for global options."""


# =============================================================================
# Generation
# =============================================================================


@app.command(name="generate")
def generate_command(
    components: Annotated[list[str] | None, typer.Argument(help="Component ids (default: all)")] = None,
    platforms: Annotated[
        list[str] | None, typer.Option("--platform", "-p", help="Target platform (repeatable)")
    ] = None,
    revision: Annotated[str | None, typer.Option("--revision", "-r", help="Token revision")] = None,
    docs: Annotated[bool, typer.Option("--docs", help="Also emit README.md per artifact")] = False,
    workers: Annotated[int | None, typer.Option("--workers", "-w", help="Worker threads")] = None,
    output_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    project_dir: ProjectOption = Path("."),
) -> None:
    """Generate, validate and publish components."""
    with handle_errors():
        config = load_project(project_dir)
        source = load_sources(config)
        registry = ArtifactRegistry(config.output_dir)
        with GenerationPipeline(
            source,
            registry,
            workers=workers or config.generation.workers,
            timeout=config.generation.timeout_seconds,
            include_docs=docs or config.output.include_docs,
            default_revision=config.generation.default_revision,
        ) as pipeline:
            report = pipeline.generate_batch(
                components or None,
                platforms or config.generation.platforms or None,
                revision,
            )

    if output_json:
        console.print_json(
            json.dumps(
                {
                    "summary": report.summary(),
                    "results": [
                        {
                            "component": r.component_id,
                            "platform": r.platform,
                            "ok": r.ok,
                            "location": r.ref.location if r.ref else None,
                            "error": r.reason or None,
                        }
                        for r in report.results
                    ],
                }
            )
        )
    else:
        table = Table(title="Generation")
        table.add_column("Component")
        table.add_column("Platform")
        table.add_column("Status")
        table.add_column("Detail")
        for r in report.results:
            if r.ok and r.ref is not None:
                table.add_row(r.component_id, r.platform, "[green]published[/green]", escape(r.ref.location))
            else:
                table.add_row(r.component_id, r.platform, "[red]failed[/red]", escape(r.reason))
        console.print(table)
        console.print(report.summary(), style="green" if report.ok else "red", markup=False)

    if not report.ok:
        raise typer.Exit(code=1)


@app.command(name="lookup")
def lookup_command(
    component: Annotated[str, typer.Argument(help="Component id")],
    platform: Annotated[str, typer.Argument(help="Platform id")],
    version: Annotated[str | None, typer.Option("--version", help="Pin a CSM version")] = None,
    revision: Annotated[str | None, typer.Option("--revision", "-r", help="Pin a token revision")] = None,
    output_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    project_dir: ProjectOption = Path("."),
) -> None:
    """Show the latest validated artifact for a component and platform."""
    with handle_errors():
        config = load_project(project_dir)
        ref = ArtifactRegistry(config.output_dir).lookup(component, platform, version, revision)

    if output_json:
        console.print_json(ref.model_dump_json())
        return
    console.print(f"[bold]{escape(str(ref.key))}[/bold]")
    console.print(f"  location: {escape(ref.location)}")
    console.print(f"  digest:   {ref.digest}")
    if ref.deprecated:
        console.print("  [yellow]deprecated[/yellow]")


# =============================================================================
# Introspection
# =============================================================================


@app.command(name="platforms")
def platforms_command() -> None:
    """List registered platform generators."""
    capabilities = get_registry().capabilities()
    table = Table(title="Platforms")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Tokens")
    table.add_column("Units")
    table.add_column("Features")
    for platform_id, caps in capabilities.items():
        table.add_row(
            platform_id,
            caps.name,
            str(caps.token_style),
            caps.units,
            ", ".join(sorted(str(f) for f in caps.features)),
        )
    console.print(table)


@app.command(name="check")
def check_command(project_dir: ProjectOption = Path(".")) -> None:
    """Load and compile every component and token document without generating."""
    with handle_errors():
        config = load_project(project_dir)
        source = load_sources(config)
        for csm in source.components():
            compile_variants(csm)

    console.print(
        f"[green]OK[/green] {len(source)} component spec(s), "
        f"{len(source.tokens.revisions())} token revision(s)"
    )


@app.command(name="version")
def version_command() -> None:
    """Print the Facet version."""
    console.print(get_version())


# =============================================================================
# Main Entry Point
# =============================================================================


def main() -> None:
    app(standalone_mode=True)
