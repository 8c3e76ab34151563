"""
Generated artifact IR types.

An Artifact is the platform-specific output for one (CSM, platform, token
revision) triple. It is addressable by ArtifactKey and carries a manifest,
the emitted files, a semantic summary written by the generator and an
accessibility validation record.
"""

from __future__ import annotations

import hashlib
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from .component import TargetSize


class ArtifactKey(BaseModel):
    """Unique address of an artifact."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    component_id: str
    platform: str
    version: str
    revision: str

    def __str__(self) -> str:
        return f"{self.component_id}@{self.platform}:{self.version}+{self.revision}"

    def as_tuple(self) -> tuple[str, str, str, str]:
        return (self.component_id, self.platform, self.version, self.revision)


class FileKind(StrEnum):
    """Kinds of generated files."""

    COMPONENT = "component"
    STYLES = "styles"
    TOKENS = "tokens"
    TYPES = "types"
    DOCS = "docs"


class GeneratedFile(BaseModel):
    """One emitted file, path relative to the artifact root."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    content: str
    kind: FileKind = FileKind.COMPONENT


class ColorPair(BaseModel):
    """Foreground/background token pair used by one variant combination."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    foreground: str
    background: str
    combination: str = Field(description="Human-readable selection, e.g. 'intent=primary'")


class ArtifactSemantics(BaseModel):
    """
    What a generator actually emitted, recorded while emitting.

    The accessibility validator checks these facts (and the source text)
    instead of parsing every framework's syntax.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    root_element: str = Field(description="Root element or native view")
    attributes: dict[str, str] = Field(
        default_factory=dict, description="Unconditional attribute -> emitted expression"
    )
    state_attributes: dict[str, dict[str, str]] = Field(
        default_factory=dict, description="State -> attributes emitted only in that state"
    )
    attribute_names: dict[str, str] = Field(
        default_factory=dict,
        description="Contract attribute -> name written in the source, where the platform renames it",
    )
    native_focusable: bool = Field(default=False, description="Root is natively focusable")
    focusable_states: list[str] = Field(
        default_factory=list,
        description="States (plus 'default') in which the root keeps keyboard focus",
    )
    key_handlers: list[str] = Field(default_factory=list, description="Keys handled")
    focus_ring: bool = Field(default=False, description="Visible focus indicator emitted")
    color_pairs: list[ColorPair] = Field(default_factory=list)
    min_size: TargetSize | None = Field(
        default=None, description="Effective minimum interactive size (dp)"
    )


class ValidationStatus(StrEnum):
    """Accessibility validation states."""

    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"


class ValidationRecord(BaseModel):
    """Outcome of validating one artifact."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: ValidationStatus = ValidationStatus.PENDING
    reasons: list[str] = Field(default_factory=list)
    checks: list[str] = Field(default_factory=list, description="Checks that were run")

    @property
    def passed(self) -> bool:
        return self.status == ValidationStatus.PASSED


class ArtifactManifest(BaseModel):
    """Provenance of an artifact."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    component_id: str
    component_version: str
    token_revision: str
    platform: str
    generator: str
    generator_version: str
    digest: str = Field(description="SHA-256 over file paths and contents")


class Artifact(BaseModel):
    """Generated output for one (CSM, platform, token revision)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: ArtifactKey
    manifest: ArtifactManifest
    files: list[GeneratedFile]
    semantics: ArtifactSemantics
    validation: ValidationRecord = Field(default_factory=ValidationRecord)

    def source(self) -> str:
        """All file contents joined, for static text checks."""
        return "\n".join(f.content for f in self.files)

    def get_file(self, path: str) -> GeneratedFile | None:
        for f in self.files:
            if f.path == path:
                return f
        return None

    def with_validation(self, record: ValidationRecord) -> Artifact:
        """Return a copy carrying a validation record."""
        return self.model_copy(update={"validation": record})


class ArtifactRef(BaseModel):
    """What consumers get back from generate() and lookup()."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: ArtifactKey
    location: str = Field(description="Storage location (directory path or memory:// URI)")
    digest: str
    sequence: int = Field(description="Publication order within the registry")
    deprecated: bool = False


def compute_digest(files: list[GeneratedFile]) -> str:
    """SHA-256 over sorted file paths and contents."""
    h = hashlib.sha256()
    for f in sorted(files, key=lambda f: f.path):
        h.update(f.path.encode("utf-8"))
        h.update(b"\0")
        h.update(f.content.encode("utf-8"))
        h.update(b"\0")
    return h.hexdigest()
