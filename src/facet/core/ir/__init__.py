"""
Facet intermediate representation.

Pure data: tokens, component specifications and generated artifacts.
"""

from .artifact import (
    Artifact,
    ArtifactKey,
    ArtifactManifest,
    ArtifactRef,
    ArtifactSemantics,
    ColorPair,
    FileKind,
    GeneratedFile,
    ValidationRecord,
    ValidationStatus,
    compute_digest,
)
from .component import (
    AccessibilityContract,
    AriaAttribute,
    ComponentSpec,
    CompoundVariantRule,
    KeyboardInteraction,
    PropSpec,
    PropType,
    SlotSpec,
    StateKind,
    StateSpec,
    StyleBlock,
    TargetSize,
    VariantAxis,
    WcagLevel,
)
from .tokens import DesignToken, TokenKind, TokenRole, TokenSet, TokenValue

__all__ = [
    # Tokens
    "DesignToken",
    "TokenKind",
    "TokenRole",
    "TokenSet",
    "TokenValue",
    # Components
    "AccessibilityContract",
    "AriaAttribute",
    "ComponentSpec",
    "CompoundVariantRule",
    "KeyboardInteraction",
    "PropSpec",
    "PropType",
    "SlotSpec",
    "StateKind",
    "StateSpec",
    "StyleBlock",
    "TargetSize",
    "VariantAxis",
    "WcagLevel",
    # Artifacts
    "Artifact",
    "ArtifactKey",
    "ArtifactManifest",
    "ArtifactRef",
    "ArtifactSemantics",
    "ColorPair",
    "FileKind",
    "GeneratedFile",
    "ValidationRecord",
    "ValidationStatus",
    "compute_digest",
]
