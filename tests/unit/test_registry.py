"""Tests for the append-only artifact registry."""

import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from facet.core.errors import ArtifactNotFoundError, FacetError, RegistryConflictError
from facet.core.ir import (
    Artifact,
    ArtifactKey,
    ArtifactManifest,
    ArtifactSemantics,
    GeneratedFile,
    ValidationRecord,
    ValidationStatus,
    compute_digest,
)
from facet.core.registry import INDEX_FILE, RECORD_FILE, ArtifactRegistry


def make_artifact(
    version: str = "1.0.0",
    revision: str = "r1",
    platform: str = "react",
    status: ValidationStatus = ValidationStatus.PASSED,
) -> Artifact:
    files = [
        GeneratedFile(path="Button.tsx", content=f"// button {version} {revision}\n"),
        GeneratedFile(path="styles/Button.css", content=".facet-button {}\n"),
    ]
    return Artifact(
        key=ArtifactKey(component_id="button", platform=platform, version=version, revision=revision),
        manifest=ArtifactManifest(
            component_id="button",
            component_version=version,
            token_revision=revision,
            platform=platform,
            generator="ReactGenerator",
            generator_version="1.0.0",
            digest=compute_digest(files),
        ),
        files=files,
        semantics=ArtifactSemantics(root_element="button", native_focusable=True),
        validation=ValidationRecord(status=status),
    )


class TestPublish:
    def test_memory_location(self):
        registry = ArtifactRegistry()
        ref = registry.publish(make_artifact())
        assert ref.location == "memory://button@react:1.0.0+r1"
        assert ref.sequence == 1
        assert ref.digest == make_artifact().manifest.digest
        assert len(registry) == 1

    def test_conflict(self):
        registry = ArtifactRegistry()
        registry.publish(make_artifact())
        with pytest.raises(RegistryConflictError, match="already published and immutable"):
            registry.publish(make_artifact())
        assert len(registry) == 1

    @pytest.mark.parametrize("status", [ValidationStatus.PENDING, ValidationStatus.FAILED])
    def test_only_passed_artifacts(self, status):
        registry = ArtifactRegistry()
        with pytest.raises(FacetError, match="has not passed validation"):
            registry.publish(make_artifact(status=status))
        assert len(registry) == 0

    def test_concurrent_publish_of_one_key(self):
        registry = ArtifactRegistry()

        def attempt(_):
            try:
                registry.publish(make_artifact())
            except RegistryConflictError:
                return False
            return True

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(attempt, range(16)))
        assert outcomes.count(True) == 1
        assert len(registry) == 1

    def test_snapshot_is_stable(self):
        registry = ArtifactRegistry()
        registry.publish(make_artifact())
        snapshot = registry.snapshot()
        registry.publish(make_artifact(revision="r2"))
        assert len(snapshot) == 1
        assert len(registry.snapshot()) == 2


class TestLookup:
    """Latest wins unless pinned; deprecation hides an entry from unpinned lookups."""

    @pytest.fixture
    def registry(self) -> ArtifactRegistry:
        registry = ArtifactRegistry()
        registry.publish(make_artifact("1.0.0", "r1"))
        registry.publish(make_artifact("1.10.0", "r1"))
        registry.publish(make_artifact("1.0.0", "r2"))
        registry.publish(make_artifact("1.2.0", "r1"))
        return registry

    def test_highest_version(self, registry):
        assert str(registry.lookup("button", "react").key) == "button@react:1.10.0+r1"

    def test_version_pin_takes_latest_revision(self, registry):
        assert registry.lookup("button", "react", version="1.0.0").key.revision == "r2"

    def test_full_pin(self, registry):
        ref = registry.lookup("button", "react", "1.0.0", "r1")
        assert ref.sequence == 1

    def test_other_platform(self, registry):
        with pytest.raises(ArtifactNotFoundError, match="no validated artifact"):
            registry.lookup("button", "vue")

    def test_deprecated_skipped(self, registry):
        key = registry.lookup("button", "react").key
        deprecated = registry.deprecate(key)

        assert deprecated.deprecated
        assert registry.lookup("button", "react").key.version == "1.2.0"
        # A full pin still addresses the entry
        assert registry.lookup("button", "react", "1.10.0", "r1").deprecated

    def test_deprecate_is_idempotent(self, registry):
        key = registry.lookup("button", "react").key
        first = registry.deprecate(key)
        assert registry.deprecate(key) == first

    def test_deprecate_unknown(self, registry):
        with pytest.raises(ArtifactNotFoundError):
            registry.deprecate(ArtifactKey(component_id="card", platform="react", version="1.0.0", revision="r1"))

    def test_get(self, registry):
        key = ArtifactKey(component_id="button", platform="react", version="1.2.0", revision="r1")
        assert key in registry
        assert registry.get(key).files[0].content == "// button 1.2.0 r1\n"


class TestPersistence:
    def test_files_written(self, tmp_path):
        registry = ArtifactRegistry(tmp_path)
        ref = registry.publish(make_artifact())

        directory = tmp_path / "button" / "react" / "1.0.0" / "r1"
        assert ref.location == str(directory)
        assert (directory / "Button.tsx").read_text() == "// button 1.0.0 r1\n"
        assert (directory / "styles" / "Button.css").exists()
        record = json.loads((directory / RECORD_FILE).read_text())
        assert record["files"] == [
            {"path": "Button.tsx", "kind": "component"},
            {"path": "styles/Button.css", "kind": "component"},
        ]

    def test_index_is_jsonl(self, tmp_path):
        registry = ArtifactRegistry(tmp_path)
        registry.publish(make_artifact())
        registry.deprecate(make_artifact().key)

        lines = (tmp_path / INDEX_FILE).read_text().splitlines()
        events = [json.loads(line)["event"] for line in lines]
        assert events == ["publish", "deprecate"]

    def test_replay(self, tmp_path):
        first = ArtifactRegistry(tmp_path)
        first.publish(make_artifact("1.0.0"))
        first.publish(make_artifact("1.1.0"))
        first.deprecate(make_artifact("1.1.0").key)

        reopened = ArtifactRegistry(tmp_path)
        assert len(reopened) == 2
        assert reopened.lookup("button", "react").key.version == "1.0.0"
        loaded = reopened.get(make_artifact("1.0.0").key)
        assert loaded == make_artifact("1.0.0")

        with pytest.raises(RegistryConflictError):
            reopened.publish(make_artifact("1.0.0"))

    def test_stale_directory_replaced(self, tmp_path):
        stale = tmp_path / "button" / "react" / "1.0.0" / "r1"
        stale.mkdir(parents=True)
        (stale / "leftover.txt").write_text("partial")

        ArtifactRegistry(tmp_path).publish(make_artifact())
        assert not (stale / "leftover.txt").exists()

    def test_corrupt_index(self, tmp_path):
        (tmp_path / INDEX_FILE).write_text("{not json\n")
        with pytest.raises(FacetError, match="corrupt registry index line 1"):
            ArtifactRegistry(tmp_path)
