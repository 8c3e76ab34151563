"""
Project configuration (facet.toml).

    [project]
    name = "acme-ui"

    [sources]
    components = "components"
    tokens = "tokens"

    [output]
    directory = ".facet/artifacts"
    include_docs = false

    [generation]
    platforms = ["react", "vue", "svelte"]
    workers = 4
    timeout_seconds = 10.0
    default_revision = "2024.2"

    [retry]
    max_attempts = 3
    initial_delay_seconds = 0.05

    [logging]
    level = "INFO"
    directory = ".facet/logs"

A missing file means defaults. FACET_LOG_LEVEL and FACET_WORKERS override the
file.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ErrorContext, FacetError
from .spec_loader import RetryPolicy

CONFIG_FILE = "facet.toml"


@dataclass
class SourcesConfig:
    """Where CSM documents and token revisions live."""

    components: Path = Path("components")
    tokens: Path = Path("tokens")


@dataclass
class OutputConfig:
    directory: Path = Path(".facet/artifacts")
    include_docs: bool = False


@dataclass
class GenerationConfig:
    """Batch defaults."""

    platforms: list[str] = field(default_factory=list)  # empty = every registered platform
    workers: int = 4
    timeout_seconds: float = 10.0
    default_revision: str | None = None


@dataclass
class LoggingConfig:
    level: str = "INFO"
    directory: Path | None = None  # None = console only


@dataclass
class FacetConfig:
    """Resolved project configuration. Relative paths are resolved against root."""

    root: Path = field(default_factory=Path.cwd)
    name: str = "facet-project"
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def components_dir(self) -> Path:
        return self.root / self.sources.components

    @property
    def tokens_dir(self) -> Path:
        return self.root / self.sources.tokens

    @property
    def output_dir(self) -> Path:
        return self.root / self.output.directory

    @property
    def log_dir(self) -> Path | None:
        if self.logging.directory is None:
            return None
        return self.root / self.logging.directory


def load_config(path: Path | None = None, env: dict[str, str] | None = None) -> FacetConfig:
    """
    Load facet.toml.

    Args:
        path: Config file or project directory (default: current directory)
        env: Environment for overrides (default: os.environ)

    Raises:
        FacetError: If the file is not valid TOML or a value has the wrong type
    """
    path = path or Path.cwd()
    if path.is_dir():
        path = path / CONFIG_FILE
    env = dict(os.environ) if env is None else env

    data: dict = {}
    if path.exists():
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise FacetError(f"invalid TOML: {e}", ErrorContext(file=path)) from e

    project = data.get("project", {})
    sources = data.get("sources", {})
    output = data.get("output", {})
    generation = data.get("generation", {})
    retry = data.get("retry", {})
    logging_data = data.get("logging", {})

    try:
        config = FacetConfig(
            root=path.parent.resolve(),
            name=project.get("name", "facet-project"),
            sources=SourcesConfig(
                components=Path(sources.get("components", "components")),
                tokens=Path(sources.get("tokens", "tokens")),
            ),
            output=OutputConfig(
                directory=Path(output.get("directory", ".facet/artifacts")),
                include_docs=bool(output.get("include_docs", False)),
            ),
            generation=GenerationConfig(
                platforms=list(generation.get("platforms", [])),
                workers=int(generation.get("workers", 4)),
                timeout_seconds=float(generation.get("timeout_seconds", 10.0)),
                default_revision=generation.get("default_revision"),
            ),
            retry=RetryPolicy(
                max_attempts=int(retry.get("max_attempts", 3)),
                initial_delay_seconds=float(retry.get("initial_delay_seconds", 0.05)),
                backoff_coefficient=float(retry.get("backoff_coefficient", 2.0)),
                max_delay_seconds=float(retry.get("max_delay_seconds", 1.0)),
            ),
            logging=LoggingConfig(
                level=str(logging_data.get("level", "INFO")).upper(),
                directory=Path(logging_data["directory"]) if "directory" in logging_data else None,
            ),
        )
    except (TypeError, ValueError) as e:
        raise FacetError(f"invalid configuration value: {e}", ErrorContext(file=path)) from e

    if "FACET_LOG_LEVEL" in env:
        config.logging.level = env["FACET_LOG_LEVEL"].upper()
    if "FACET_WORKERS" in env:
        try:
            config.generation.workers = int(env["FACET_WORKERS"])
        except ValueError as e:
            raise FacetError(f"FACET_WORKERS must be an integer, got {env['FACET_WORKERS']!r}") from e
    if config.generation.workers < 1:
        raise FacetError(f"workers must be at least 1, got {config.generation.workers}", ErrorContext(file=path))
    return config
