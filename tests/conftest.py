"""Shared pytest fixtures for Facet tests."""

import logging
from pathlib import Path

import pytest

from facet.core import ir
from facet.core.logging import LOGGER_NAME
from facet.core.spec_loader import SpecSource, load_component, load_token_set
from facet.core.token_transformer import PlatformTokenBinding, TokenStyle, transform
from facet.core.variant_compiler import VariantResolver, compile_variants


@pytest.fixture(autouse=True)
def reset_facet_logger():
    """Drop handlers installed by setup_logging so streams don't leak between tests."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def button_spec(fixtures_dir: Path) -> ir.ComponentSpec:
    return load_component(fixtures_dir / "components" / "button.yaml")


@pytest.fixture
def link_spec(fixtures_dir: Path) -> ir.ComponentSpec:
    return load_component(fixtures_dir / "components" / "link.yaml")


@pytest.fixture
def chip_spec(fixtures_dir: Path) -> ir.ComponentSpec:
    return load_component(fixtures_dir / "components" / "chip.yaml")


@pytest.fixture
def token_set(fixtures_dir: Path) -> ir.TokenSet:
    """The 2024.1 revision: light and dark themes."""
    return load_token_set(fixtures_dir / "tokens" / "2024.1.yaml")


@pytest.fixture
def resolver(button_spec: ir.ComponentSpec) -> VariantResolver:
    return compile_variants(button_spec)


@pytest.fixture
def source(fixtures_dir: Path) -> SpecSource:
    """Every fixture component and token revision."""
    return SpecSource(fixtures_dir / "components", fixtures_dir / "tokens").load()


@pytest.fixture
def binding(token_set: ir.TokenSet):
    """Factory: token binding for a platform in a given token style."""

    def _binding(platform: str = "react", style: TokenStyle = TokenStyle.CSS_VARIABLES) -> PlatformTokenBinding:
        return transform(token_set, platform, style)

    return _binding
