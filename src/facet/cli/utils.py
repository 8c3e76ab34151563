"""
Facet CLI utilities.

Shared helpers used across CLI modules.
"""

from __future__ import annotations

import platform
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from facet._version import get_version
from facet.core.config import FacetConfig, load_config
from facet.core.errors import FacetError
from facet.core.logging import setup_logging
from facet.core.spec_loader import SpecSource

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        console.print(f"Facet {get_version()}")
        console.print(f"Python {platform.python_version()} ({platform.python_implementation()})")
        raise typer.Exit()


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn FacetError into a red message and exit code 1."""
    try:
        yield
    except FacetError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e


def load_project(project_dir: Path, log_level: str | None = None) -> FacetConfig:
    """Load facet.toml from a project directory and configure logging."""
    config = load_config(project_dir)
    setup_logging(log_level or config.logging.level, config.log_dir)
    return config


def load_sources(config: FacetConfig) -> SpecSource:
    """Load every CSM and token revision the project declares."""
    return SpecSource(config.components_dir, config.tokens_dir, retry=config.retry).load()
