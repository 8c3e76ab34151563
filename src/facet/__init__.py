"""
Facet - universal component generation engine.

Turns target-neutral component specifications and versioned design tokens
into validated, framework-native components.
"""

from __future__ import annotations

from ._version import __version__
from .core import ir
from .core.errors import (
    AccessibilityValidationFailure,
    ArtifactNotFoundError,
    CapabilityGapError,
    FacetError,
    GeneratorTimeoutError,
    MissingDefaultVariantError,
    MissingTokenError,
    RegistryConflictError,
    SpecLoadError,
)

__all__ = [
    "__version__",
    "ir",
    "FacetError",
    "SpecLoadError",
    "MissingTokenError",
    "MissingDefaultVariantError",
    "CapabilityGapError",
    "GeneratorTimeoutError",
    "AccessibilityValidationFailure",
    "RegistryConflictError",
    "ArtifactNotFoundError",
]
