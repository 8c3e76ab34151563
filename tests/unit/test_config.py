"""Tests for facet.toml loading."""

from pathlib import Path

import pytest

from facet.core.config import CONFIG_FILE, load_config
from facet.core.errors import FacetError


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / CONFIG_FILE
    path.write_text(text)
    return path


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path):
        config = load_config(tmp_path, env={})
        assert config.root == tmp_path.resolve()
        assert config.generation.platforms == []
        assert config.generation.workers == 4
        assert config.retry.max_attempts == 3
        assert config.logging.level == "INFO"
        assert config.log_dir is None
        assert config.components_dir == tmp_path.resolve() / "components"

    def test_file_values(self, tmp_path):
        _write(
            tmp_path,
            """
[project]
name = "acme-ui"

[sources]
components = "specs"

[output]
directory = "build"
include_docs = true

[generation]
platforms = ["react", "vue"]
workers = 2
timeout_seconds = 1.5
default_revision = "2024.1"

[retry]
max_attempts = 5

[logging]
level = "debug"
directory = "logs"
""",
        )
        config = load_config(tmp_path, env={})

        assert config.name == "acme-ui"
        assert config.components_dir == tmp_path.resolve() / "specs"
        assert config.tokens_dir == tmp_path.resolve() / "tokens"
        assert config.output_dir == tmp_path.resolve() / "build"
        assert config.output.include_docs
        assert config.generation.platforms == ["react", "vue"]
        assert config.generation.workers == 2
        assert config.generation.timeout_seconds == 1.5
        assert config.generation.default_revision == "2024.1"
        assert config.retry.max_attempts == 5
        assert config.retry.initial_delay_seconds == 0.05
        assert config.logging.level == "DEBUG"
        assert config.log_dir == tmp_path.resolve() / "logs"

    def test_explicit_file_path(self, tmp_path):
        path = _write(tmp_path, '[project]\nname = "direct"\n')
        assert load_config(path, env={}).name == "direct"

    def test_env_overrides(self, tmp_path):
        _write(tmp_path, "[generation]\nworkers = 2\n")
        config = load_config(tmp_path, env={"FACET_WORKERS": "8", "FACET_LOG_LEVEL": "warning"})
        assert config.generation.workers == 8
        assert config.logging.level == "WARNING"


class TestInvalidConfig:
    def test_invalid_toml(self, tmp_path):
        _write(tmp_path, "[generation\n")
        with pytest.raises(FacetError, match="invalid TOML"):
            load_config(tmp_path, env={})

    def test_wrong_type(self, tmp_path):
        _write(tmp_path, '[generation]\nworkers = "many"\n')
        with pytest.raises(FacetError, match="invalid configuration value"):
            load_config(tmp_path, env={})

    def test_zero_workers(self, tmp_path):
        _write(tmp_path, "[generation]\nworkers = 0\n")
        with pytest.raises(FacetError, match="workers must be at least 1"):
            load_config(tmp_path, env={})

    def test_bad_worker_override(self, tmp_path):
        with pytest.raises(FacetError, match="FACET_WORKERS must be an integer"):
            load_config(tmp_path, env={"FACET_WORKERS": "x"})
