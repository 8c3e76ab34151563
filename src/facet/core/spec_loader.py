"""
Source document loading.

Reads CSM documents and token revisions from YAML or JSON files and turns
them into validated IR. Unknown fields are rejected, documents that fail
schema validation raise SpecLoadError with the file path attached, and I/O
failures are retried with exponential backoff before surfacing as
SourceIOError.

Token documents may nest groups or use flat dotted keys; a mapping is a token
when it declares ``kind`` (or the DTCG ``$type``):

    revision: "2024.1"
    themes: [light, dark]
    tokens:
      color:
        surface: {kind: color, role: background, values: {light: "#fff", dark: "#111"}}
      spacing.14: {kind: dimension, value: 56px}
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .dtcg_export import EXTENSION_KEY
from .errors import ErrorContext, SourceIOError, SpecLoadError
from .ir import ComponentSpec, TokenSet
from .token_store import TokenStore, derive_contrast, version_key

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = (".yaml", ".yml", ".json")

# Keys accepted on a token node besides its values
_TOKEN_KEYS = frozenset(
    {
        "kind",
        "$type",
        "value",
        "$value",
        "values",
        "role",
        "contrast",
        "description",
        "$description",
        "$extensions",
    }
)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry for transient read failures."""

    max_attempts: int = 3
    initial_delay_seconds: float = 0.05
    backoff_coefficient: float = 2.0
    max_delay_seconds: float = 1.0

    def delay(self, attempt: int) -> float:
        """Backoff before the next attempt (attempt is 0-based)."""
        delay = self.initial_delay_seconds * (self.backoff_coefficient**attempt)
        return min(delay, self.max_delay_seconds)


# =============================================================================
# Reading
# =============================================================================


def read_text(
    path: Path,
    retry: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """
    Read a source file, retrying transient OS errors.

    A missing file is not transient and fails immediately.

    Raises:
        SpecLoadError: If the file does not exist
        SourceIOError: If every attempt failed
    """
    retry = retry or RetryPolicy()
    last_error: OSError | None = None
    for attempt in range(retry.max_attempts):
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise SpecLoadError("file not found", ErrorContext(file=path)) from e
        except OSError as e:
            last_error = e
            logger.warning("Transient error reading %s (attempt %d): %s", path, attempt + 1, e)
            if attempt < retry.max_attempts - 1:
                sleep(retry.delay(attempt))
    raise SourceIOError(
        f"could not read after {retry.max_attempts} attempts: {last_error}",
        ErrorContext(file=path),
    ) from last_error


def parse_document(text: str, path: Path) -> Any:
    """Parse YAML, or JSON for ``.json`` files."""
    try:
        if path.suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise SpecLoadError(f"invalid document syntax: {e}", ErrorContext(file=path)) from e


def load_document(path: Path, retry: RetryPolicy | None = None) -> dict[str, Any]:
    data = parse_document(read_text(path, retry), path)
    if not isinstance(data, dict):
        raise SpecLoadError("document must be a mapping", ErrorContext(file=path))
    return data


def _schema_error(kind: str, e: ValidationError, path: Path | None, component: str | None = None) -> SpecLoadError:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()
    )
    return SpecLoadError(f"invalid {kind}: {problems}", ErrorContext(component=component, file=path))


# =============================================================================
# Components
# =============================================================================


def parse_component(data: dict[str, Any], path: Path | None = None) -> ComponentSpec:
    """
    Validate a CSM document.

    Raises:
        SpecLoadError: On unknown fields, framework names or broken references
    """
    try:
        return ComponentSpec.model_validate(data)
    except ValidationError as e:
        raise _schema_error("component spec", e, path, data.get("id")) from e


def load_component(path: Path, retry: RetryPolicy | None = None) -> ComponentSpec:
    return parse_component(load_document(path, retry), path)


# =============================================================================
# Tokens
# =============================================================================


def _is_token(node: Any) -> bool:
    return isinstance(node, dict) and ("kind" in node or "$type" in node)


def _flatten(node: dict[str, Any], prefix: str = "") -> Iterator[tuple[str, dict[str, Any]]]:
    for key, value in node.items():
        if str(key).startswith("$"):
            continue  # group metadata
        name = f"{prefix}.{key}" if prefix else str(key)
        if _is_token(value):
            yield name, value
        elif isinstance(value, dict):
            yield from _flatten(value, name)
        else:
            raise SpecLoadError(f"token '{name}' must declare a kind")


def _token_fields(name: str, node: dict[str, Any], themes: list[str]) -> dict[str, Any]:
    unknown = sorted(set(node) - _TOKEN_KEYS)
    if unknown:
        raise SpecLoadError(f"token '{name}' has unknown fields: {unknown}")
    extension = dict((node.get("$extensions") or {}).get(EXTENSION_KEY) or {})
    has_single = "value" in node or "$value" in node
    if has_single and "values" in node:
        raise SpecLoadError(f"token '{name}' declares both value and values")
    if "values" in extension:
        values = extension.pop("values")
    elif has_single:
        single = node.get("value", node.get("$value"))
        values = {theme: single for theme in themes}
    else:
        values = node.get("values") or {}
    fields: dict[str, Any] = {
        "name": name,
        "kind": node.get("kind", node.get("$type")),
        "values": values,
    }
    for key in ("role", "contrast"):
        if key in node:
            fields[key] = node[key]
        elif key in extension:
            fields[key] = extension[key]
    description = node.get("description", node.get("$description"))
    if description is not None:
        fields["description"] = description
    return fields


def _from_dtcg(data: dict[str, Any]) -> dict[str, Any]:
    """Rewrite a DTCG tokens.json document into the native layout."""
    extension = (data.get("$extensions") or {}).get(EXTENSION_KEY) or {}
    document: dict[str, Any] = {"tokens": {k: v for k, v in data.items() if not k.startswith("$")}}
    if "revision" in extension:
        document["revision"] = extension["revision"]
    if "themes" in extension:
        document["themes"] = extension["themes"]
    if "$description" in data:
        document["description"] = data["$description"]
    return document


def parse_token_set(data: dict[str, Any], path: Path | None = None, revision: str | None = None) -> TokenSet:
    """
    Build a TokenSet from a token document and derive missing contrast ratios.

    Accepts the native layout (``revision``/``themes``/``tokens``) or a DTCG
    tokens.json document.

    Args:
        data: Parsed document
        path: Source file, for error context
        revision: Revision id when the document omits one (e.g. from the file name)
    """
    if "tokens" not in data and "revision" not in data:
        data = _from_dtcg(data)
    unknown = sorted(set(data) - {"revision", "themes", "tokens", "description"})
    if unknown:
        raise SpecLoadError(f"token document has unknown fields: {unknown}", ErrorContext(file=path))
    themes = data.get("themes") or ["light"]
    revision = str(data.get("revision") or revision or "")
    if not revision:
        raise SpecLoadError("token document needs a revision", ErrorContext(file=path))

    try:
        flat = dict(_flatten(data.get("tokens") or {}))
        tokens = {name: _token_fields(name, node, themes) for name, node in flat.items()}
    except SpecLoadError as e:
        raise SpecLoadError(e.message, ErrorContext(file=path)) from e

    try:
        token_set = TokenSet.model_validate(
            {
                "revision": revision,
                "themes": themes,
                "tokens": tokens,
                "description": data.get("description"),
            }
        )
    except ValidationError as e:
        raise _schema_error("token set", e, path) from e
    return derive_contrast(token_set)


def load_token_set(path: Path, retry: RetryPolicy | None = None) -> TokenSet:
    return parse_token_set(load_document(path, retry), path, revision=path.stem)


# =============================================================================
# Source directory
# =============================================================================


def _documents(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.rglob("*") if p.suffix in DOCUMENT_SUFFIXES and p.is_file())


class SpecSource:
    """
    Component specifications and token revisions loaded from disk.

    CSMs are indexed by ``(id, version)``; a second, different document under
    the same key is refused. Token revisions are published into a TokenStore.
    """

    def __init__(
        self,
        components_dir: Path | None = None,
        tokens_dir: Path | None = None,
        *,
        retry: RetryPolicy | None = None,
        token_store: TokenStore | None = None,
    ) -> None:
        self.components_dir = components_dir
        self.tokens_dir = tokens_dir
        self.retry = retry or RetryPolicy()
        self.tokens = token_store or TokenStore()
        self._components: dict[tuple[str, str], ComponentSpec] = {}
        self._paths: dict[tuple[str, str], Path | None] = {}

    def load(self) -> SpecSource:
        """Load every document under the configured directories."""
        if self.tokens_dir is not None:
            for path in _documents(self.tokens_dir):
                token_set = load_token_set(path, self.retry)
                self.tokens.publish(token_set)
        if self.components_dir is not None:
            for path in _documents(self.components_dir):
                self.add(load_component(path, self.retry), path)
        logger.info(
            "Loaded %d component specs and %d token revisions",
            len(self._components),
            len(self.tokens.revisions()),
        )
        return self

    def add(self, csm: ComponentSpec, path: Path | None = None) -> ComponentSpec:
        """
        Index a CSM.

        Raises:
            SpecLoadError: If a different document already holds (id, version)
        """
        key = (csm.id, csm.version)
        existing = self._components.get(key)
        if existing is not None:
            if existing == csm:
                return existing
            first = self._paths.get(key)
            raise SpecLoadError(
                f"version {csm.version} is already defined"
                + (f" by {first}" if first else "")
                + "; publish changes under a new version",
                ErrorContext(component=csm.id, file=path),
            )
        self._components[key] = csm
        self._paths[key] = path
        return csm

    def get(self, component_id: str, version: str | None = None) -> ComponentSpec:
        """
        Get a CSM, the latest version unless one is pinned.

        Raises:
            SpecLoadError: If no such component (or version) is loaded
        """
        versions = self.versions(component_id)
        if not versions:
            raise SpecLoadError(
                f"Component '{component_id}' not found. Available: {self.component_ids()}"
            )
        if version is None:
            version = versions[-1]
        csm = self._components.get((component_id, version))
        if csm is None:
            raise SpecLoadError(
                f"version {version} not found. Available: {versions}",
                ErrorContext(component=component_id),
            )
        return csm

    def versions(self, component_id: str) -> list[str]:
        return sorted((v for cid, v in self._components if cid == component_id), key=version_key)

    def component_ids(self) -> list[str]:
        return sorted({cid for cid, _ in self._components})

    def components(self) -> list[ComponentSpec]:
        """Latest version of every component, by id."""
        return [self.get(cid) for cid in self.component_ids()]

    def __contains__(self, component_id: object) -> bool:
        return any(cid == component_id for cid, _ in self._components)

    def __len__(self) -> int:
        return len(self._components)
