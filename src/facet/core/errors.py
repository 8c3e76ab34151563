"""
Error types for Facet component generation.

Every failure raised while loading sources, compiling variants, generating,
validating or publishing derives from FacetError. Errors carry enough
structured detail (component, platform, token, contract rule) to be
actionable on their own.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path


class FacetError(Exception):
    """Base exception for all Facet errors."""

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message


@dataclass(frozen=True)
class ErrorContext:
    """
    Where an error happened.

    Attributes:
        component: CSM id being processed
        platform: Target platform id
        file: Source document, when the error came from loading one
    """

    component: str | None = None
    platform: str | None = None
    file: Path | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "button@react (components/button.yaml)"
        """
        location = self.component or "<unknown>"
        if self.platform:
            location += f"@{self.platform}"
        if self.file:
            location += f" ({self.file})"
        return location


# =============================================================================
# Source loading
# =============================================================================


class SpecLoadError(FacetError):
    """
    Raised when a CSM or token document cannot be accepted.

    Examples:
    - Unknown fields (rejected to prevent silent spec drift)
    - Framework API names inside a CSM
    - Two different documents claiming the same id and version
    """

    pass


class SourceIOError(FacetError):
    """
    Raised when reading a source document fails at the I/O level.

    This is the only error class eligible for transient retry.
    """

    pass


# =============================================================================
# Generation
# =============================================================================


class MissingTokenError(FacetError):
    """Raised when a CSM style block references a token absent from the token set."""

    def __init__(self, token: str, component: str, revision: str | None = None):
        self.token = token
        self.component = component
        self.revision = revision
        where = f" in revision {revision}" if revision else ""
        super().__init__(
            f"token '{token}' not found{where}",
            ErrorContext(component=component),
        )


class MissingDefaultVariantError(FacetError):
    """Raised when a variant axis declares no default value."""

    def __init__(self, axis: str, component: str):
        self.axis = axis
        self.component = component
        super().__init__(
            f"variant axis '{axis}' has no default value",
            ErrorContext(component=component),
        )


class InvalidSelectionError(FacetError):
    """Raised when a resolver is asked about an unknown axis, value or state."""

    pass


class CapabilityGapError(FacetError):
    """
    Raised when a target cannot natively express a contract element.

    Never downgraded to a warning: dropping an accessibility guarantee is a
    correctness bug.
    """

    def __init__(self, platform: str, component: str, requirement: str):
        self.platform = platform
        self.component = component
        self.requirement = requirement
        super().__init__(
            f"platform cannot express required '{requirement}'",
            ErrorContext(component=component, platform=platform),
        )


class GeneratorTimeoutError(FacetError):
    """Raised when a generator exceeds its time budget."""

    def __init__(self, platform: str, component: str, timeout: float):
        self.platform = platform
        self.component = component
        self.timeout = timeout
        super().__init__(
            f"generator exceeded {timeout:g}s budget",
            ErrorContext(component=component, platform=platform),
        )


class AccessibilityValidationFailure(FacetError):
    """Raised when a generated artifact fails its accessibility contract."""

    def __init__(self, reasons: Sequence[str], component: str, platform: str):
        self.reasons = list(reasons)
        self.component = component
        self.platform = platform
        super().__init__(
            "accessibility " + "; ".join(self.reasons),
            ErrorContext(component=component, platform=platform),
        )


class GenerationCancelledError(FacetError):
    """Raised when a task is cancelled before its registry append."""

    pass


class UnknownPlatformError(FacetError):
    """Raised when no generator is registered for a platform id."""

    pass


# =============================================================================
# Registry
# =============================================================================


class RegistryConflictError(FacetError):
    """Raised on an attempt to publish under an already-used artifact key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"artifact {key} is already published and immutable")


class ArtifactNotFoundError(FacetError):
    """Raised when a registry lookup has no matching entry."""

    pass
