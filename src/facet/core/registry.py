"""
Artifact registry.

Append-only store of validated artifacts, keyed by
``(component id, platform, CSM version, token revision)``. Entries are never
overwritten; regenerating means publishing under a new key. Deprecation is a
flag recorded next to an entry, not an edit of it.

Writes are serialised by one lock. Readers take the current snapshot (an
immutable tuple) without locking, so a lookup never sees a half-written
entry.

With a root directory the registry persists: each artifact's files land in
``<root>/<component>/<platform>/<version>/<revision>/`` and every publish or
deprecate appends one line to ``<root>/index.jsonl``, which is replayed on
start-up.
"""

from __future__ import annotations

import json
import logging
import shutil
import threading
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .errors import ArtifactNotFoundError, ErrorContext, FacetError, RegistryConflictError
from .ir import Artifact, ArtifactKey, ArtifactRef, GeneratedFile
from .token_store import version_key

logger = logging.getLogger(__name__)

INDEX_FILE = "index.jsonl"
RECORD_FILE = "artifact.json"

EVENT_PUBLISH = "publish"
EVENT_DEPRECATE = "deprecate"


@dataclass(frozen=True)
class RegistryEntry:
    """One published artifact. ``artifact`` is None until loaded from disk."""

    ref: ArtifactRef
    artifact: Artifact | None = None


class ArtifactRegistry:
    """
    Append-only artifact registry.

    Example:
        registry = ArtifactRegistry(Path(".facet/artifacts"))
        ref = registry.publish(validated_artifact)
        registry.lookup("button", "react")
    """

    def __init__(self, root: Path | None = None) -> None:
        self.root = root
        self._lock = threading.Lock()
        self._entries: tuple[RegistryEntry, ...] = ()
        self._index: dict[tuple[str, str, str, str], int] = {}
        if root is not None:
            root.mkdir(parents=True, exist_ok=True)
            self._replay()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def publish(self, artifact: Artifact) -> ArtifactRef:
        """
        Append a validated artifact.

        Raises:
            FacetError: If the artifact has not passed validation
            RegistryConflictError: If the key is already published
        """
        key = artifact.key
        if not artifact.validation.passed:
            raise FacetError(
                f"artifact {key} has not passed validation ({artifact.validation.status})",
                ErrorContext(component=key.component_id, platform=key.platform),
            )
        with self._lock:
            if key.as_tuple() in self._index:
                raise RegistryConflictError(str(key))
            location = self._store(artifact) if self.root is not None else f"memory://{key}"
            ref = ArtifactRef(
                key=key,
                location=location,
                digest=artifact.manifest.digest,
                sequence=len(self._entries) + 1,
            )
            self._append_event(EVENT_PUBLISH, ref)
            self._index[key.as_tuple()] = len(self._entries)
            self._entries = self._entries + (RegistryEntry(ref=ref, artifact=artifact),)
        logger.info("Published %s", key, extra={"component": key.component_id, "context": {"location": location}})
        return ref

    def deprecate(self, key: ArtifactKey) -> ArtifactRef:
        """
        Flag an entry as deprecated. Lookups without a full pin skip it.

        Raises:
            ArtifactNotFoundError: If the key was never published
        """
        with self._lock:
            position = self._index.get(key.as_tuple())
            if position is None:
                raise ArtifactNotFoundError(f"artifact {key} is not published")
            entry = self._entries[position]
            if entry.ref.deprecated:
                return entry.ref
            updated = replace(entry, ref=entry.ref.model_copy(update={"deprecated": True}))
            self._append_event(EVENT_DEPRECATE, updated.ref)
            entries = list(self._entries)
            entries[position] = updated
            self._entries = tuple(entries)
        logger.info("Deprecated %s", key)
        return updated.ref

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def snapshot(self) -> tuple[RegistryEntry, ...]:
        """Current entries in publication order."""
        return self._entries

    def lookup(
        self,
        component_id: str,
        platform: str,
        version: str | None = None,
        revision: str | None = None,
    ) -> ArtifactRef:
        """
        Find an artifact.

        Without pins this is the latest non-deprecated entry (highest CSM
        version, then most recently published). Pinning a version narrows to
        that version; pinning version and revision addresses one entry
        exactly, deprecated or not.

        Raises:
            ArtifactNotFoundError: If nothing matches
        """
        entries = self._entries
        if version is not None and revision is not None:
            key = (component_id, platform, version, revision)
            position = self._index.get(key)
            if position is not None and position < len(entries):
                return entries[position].ref
            raise ArtifactNotFoundError(
                f"no artifact for {component_id}@{platform}:{version}+{revision}",
                ErrorContext(component=component_id, platform=platform),
            )

        candidates = [
            e.ref
            for e in entries
            if e.ref.key.component_id == component_id
            and e.ref.key.platform == platform
            and not e.ref.deprecated
            and (version is None or e.ref.key.version == version)
            and (revision is None or e.ref.key.revision == revision)
        ]
        if not candidates:
            pinned = f" version {version}" if version else ""
            pinned += f" revision {revision}" if revision else ""
            raise ArtifactNotFoundError(
                f"no validated artifact{pinned}",
                ErrorContext(component=component_id, platform=platform),
            )
        return max(candidates, key=lambda ref: (version_key(ref.key.version), ref.sequence))

    def get(self, key: ArtifactKey) -> Artifact:
        """
        Load the artifact stored under a key.

        Raises:
            ArtifactNotFoundError: If the key was never published
        """
        position = self._index.get(key.as_tuple())
        if position is None:
            raise ArtifactNotFoundError(f"artifact {key} is not published")
        entry = self._entries[position]
        if entry.artifact is not None:
            return entry.artifact
        return self._load(entry.ref)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, ArtifactKey) and key.as_tuple() in self._index

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _location(self, key: ArtifactKey) -> Path:
        assert self.root is not None
        return self.root / key.component_id / key.platform / key.version / key.revision

    def _store(self, artifact: Artifact) -> str:
        directory = self._location(artifact.key)
        if directory.exists():
            # Left behind by a publish that never reached the index
            shutil.rmtree(directory)
        for f in artifact.files:
            path = directory / f.path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f.content, encoding="utf-8")
        record = artifact.model_dump(mode="json", exclude={"files"})
        record["files"] = [{"path": f.path, "kind": f.kind} for f in artifact.files]
        (directory / RECORD_FILE).write_text(json.dumps(record, indent=2, sort_keys=True), encoding="utf-8")
        return str(directory)

    def _load(self, ref: ArtifactRef) -> Artifact:
        directory = Path(ref.location)
        record: dict[str, Any] = json.loads((directory / RECORD_FILE).read_text(encoding="utf-8"))
        record["files"] = [
            GeneratedFile(
                path=f["path"],
                kind=f["kind"],
                content=(directory / f["path"]).read_text(encoding="utf-8"),
            )
            for f in record["files"]
        ]
        return Artifact.model_validate(record)

    def _append_event(self, event: str, ref: ArtifactRef) -> None:
        if self.root is None:
            return
        entry = {
            "event": event,
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "ref": ref.model_dump(mode="json"),
        }
        with open(self.root / INDEX_FILE, "a", encoding="utf-8") as fh:
            fh.write(json.dumps(entry, separators=(",", ":")) + "\n")
            fh.flush()

    def _replay(self) -> None:
        assert self.root is not None
        index_path = self.root / INDEX_FILE
        if not index_path.exists():
            return
        entries: list[RegistryEntry] = []
        with open(index_path, encoding="utf-8") as fh:
            for number, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                    ref = ArtifactRef.model_validate(data["ref"])
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    raise FacetError(f"corrupt registry index line {number}: {e}", ErrorContext(file=index_path)) from e
                position = self._index.get(ref.key.as_tuple())
                if data["event"] == EVENT_PUBLISH and position is None:
                    self._index[ref.key.as_tuple()] = len(entries)
                    entries.append(RegistryEntry(ref=ref))
                elif data["event"] == EVENT_DEPRECATE and position is not None:
                    entries[position] = RegistryEntry(ref=ref)
        self._entries = tuple(entries)
        logger.debug("Replayed %d registry entries from %s", len(entries), index_path)
