"""Core Facet functionality: IR, token store, variant compiler, validator, registry, pipeline."""

from . import ir
from .errors import ErrorContext, FacetError
from .registry import ArtifactRegistry
from .spec_loader import SpecSource
from .token_store import TokenStore
from .validator import AccessibilityValidator
from .variant_compiler import VariantResolver, compile_variants

__all__ = [
    "ir",
    "FacetError",
    "ErrorContext",
    "SpecSource",
    "TokenStore",
    "VariantResolver",
    "compile_variants",
    "AccessibilityValidator",
    "ArtifactRegistry",
]
