"""
Tests for the generation pipeline.

Covers batch isolation, the generator time budget, cancellation and the
rule that only validated artifacts reach the registry.
"""

import threading

import pytest

from facet.core.errors import (
    AccessibilityValidationFailure,
    ArtifactNotFoundError,
    CapabilityGapError,
    GenerationCancelledError,
    GeneratorTimeoutError,
    MissingTokenError,
    RegistryConflictError,
    SpecLoadError,
    UnknownPlatformError,
)
from facet.core.ir import ComponentSpec
from facet.core.pipeline import BatchReport, GenerationPipeline, TaskResult
from facet.core.registry import ArtifactRegistry
from facet.core.spec_loader import SpecSource
from facet.platforms import GeneratorRegistry
from facet.platforms.react import ReactGenerator
from facet.platforms.react_native import ReactNativeGenerator
from facet.platforms.vue import VueGenerator


class LooseReact(ReactGenerator):
    """Emits a 40dp floor regardless of the contract."""

    platform = "loose"

    def target_floor(self, csm):
        return {"min-height": 40}


class GatedReact(ReactGenerator):
    """Blocks in generate() until the class-level gate opens."""

    platform = "gated"
    gate = threading.Event()
    started = threading.Event()

    def generate(self, csm, resolver, tokens):
        type(self).started.set()
        type(self).gate.wait(timeout=5)
        return super().generate(csm, resolver, tokens)


@pytest.fixture
def generators() -> GeneratorRegistry:
    registry = GeneratorRegistry()
    registry.register("react", ReactGenerator)
    registry.register("vue", VueGenerator)
    registry.register("react-native", ReactNativeGenerator)
    registry.register("loose", LooseReact)
    return registry


@pytest.fixture
def pipeline(source, generators):
    with GenerationPipeline(source, ArtifactRegistry(), generators, workers=4, timeout=5.0) as pipeline:
        yield pipeline


@pytest.fixture
def gated():
    GatedReact.gate = threading.Event()
    GatedReact.started = threading.Event()
    yield GatedReact
    GatedReact.gate.set()


class TestGenerate:
    def test_generate_and_lookup(self, pipeline):
        ref = pipeline.generate("button", "react")
        assert str(ref.key) == "button@react:1.0.0+2024.1"
        assert pipeline.lookup("button", "react") == ref

    def test_regenerating_same_key_is_refused(self, pipeline):
        pipeline.generate("link", "vue")
        with pytest.raises(RegistryConflictError):
            pipeline.generate("link", "vue")

    def test_capability_gap(self, pipeline):
        with pytest.raises(CapabilityGapError):
            pipeline.generate("button", "react-native")
        with pytest.raises(ArtifactNotFoundError):
            pipeline.lookup("button", "react-native")

    def test_validation_failure_not_published(self, pipeline):
        with pytest.raises(AccessibilityValidationFailure) as exc_info:
            pipeline.generate("chip", "loose")
        assert exc_info.value.reasons == ["min-height 40<44"]
        assert len(pipeline.registry) == 0

    def test_unknown_platform(self, pipeline):
        with pytest.raises(UnknownPlatformError):
            pipeline.generate("button", "qt")

    def test_unknown_revision(self, pipeline):
        with pytest.raises(SpecLoadError, match="Token revision '1999.1' not found"):
            pipeline.generate("button", "react", "1999.1")

    def test_unknown_component(self, pipeline):
        with pytest.raises(SpecLoadError, match="Component 'card' not found"):
            pipeline.generate("card", "react")

    def test_default_revision(self, source, generators, token_set):
        source.tokens.publish(token_set.model_copy(update={"revision": "2023.4"}))
        with GenerationPipeline(source, generators=generators, default_revision="2023.4") as pipeline:
            assert pipeline.generate("link", "react").key.revision == "2023.4"
            assert pipeline.generate("link", "react", "2024.1").key.revision == "2024.1"


class TestBatch:
    """Tasks fail independently; the report names each failure."""

    def test_summary_single_component(self, pipeline):
        report = pipeline.generate_batch(["button"], ["react", "vue", "react-native"])

        assert len(report.succeeded) == 2
        assert report.summary() == (
            "generated 2 of 3 targets; platform react-native failed: platform cannot express required 'focus-visible'"
        )
        assert not report.ok

    def test_summary_names_component_when_several(self, pipeline):
        report = pipeline.generate_batch(["chip", "link"], ["react", "loose"])
        assert report.summary() == (
            "generated 3 of 4 targets; platform loose failed for chip: accessibility min-height 40<44"
        )

    def test_failed_task_isolated(self, pipeline):
        report = pipeline.generate_batch(["chip"], ["react", "loose", "vue"])

        assert [r.ok for r in report.results] == [True, False, True]
        assert isinstance(report.failed[0].error, AccessibilityValidationFailure)
        assert pipeline.lookup("chip", "vue")
        with pytest.raises(ArtifactNotFoundError):
            pipeline.lookup("chip", "loose")

    def test_missing_token_fails_only_its_component(self, token_set, generators):
        source = SpecSource()
        source.tokens.publish(token_set)
        source.add(
            ComponentSpec.model_validate(
                {"id": "badge", "version": "1.0.0", "base": {"tokens": {"color": "color.brand"}}}
            )
        )
        source.add(ComponentSpec(id="divider", version="1.0.0"))

        with GenerationPipeline(source, generators=generators) as pipeline:
            report = pipeline.generate_batch(["badge", "divider"], ["react"])

        assert isinstance(report.results[0].error, MissingTokenError)
        assert report.results[1].ok
        assert "platform react failed for badge: token 'color.brand' not found in revision 2024.1" in report.summary()

    def test_all_components_all_platforms(self, pipeline):
        report = pipeline.generate_batch(platforms=["react", "vue"])
        assert report.ok
        assert len(report.results) == 6
        assert len(pipeline.registry) == 6

    def test_failure_logged(self, pipeline, caplog):
        with caplog.at_level("WARNING", logger="facet"):
            pipeline.generate_batch(["chip"], ["loose"])
        record = next(r for r in caplog.records if r.levelname == "WARNING")
        assert record.component == "chip"
        assert record.context["error"] == "AccessibilityValidationFailure"


class TestTimeout:
    def test_generator_over_budget(self, source, generators, gated):
        generators.register("gated", gated)
        with GenerationPipeline(source, generators=generators, timeout=0.05) as pipeline:
            report = pipeline.generate_batch(["link"], ["gated", "react"])
            gated.gate.set()

        gated_result, react_result = report.results
        assert isinstance(gated_result.error, GeneratorTimeoutError)
        assert gated_result.reason == "generator exceeded 0.05s budget"
        assert react_result.ok
        assert len(pipeline.registry) == 1

    def test_hung_generator_does_not_starve_siblings(self, source, generators, gated):
        generators.register("gated", gated)
        with GenerationPipeline(source, generators=generators, workers=1, timeout=0.5) as pipeline:
            report = pipeline.generate_batch(["link"], ["gated", "react"])
            gated.gate.set()

        gated_result, react_result = report.results
        assert isinstance(gated_result.error, GeneratorTimeoutError)
        assert react_result.ok, react_result.reason
        assert report.summary() == "generated 1 of 2 targets; platform gated failed: generator exceeded 0.5s budget"


class TestCancel:
    def test_cancel_publishes_nothing(self, source, generators, gated):
        generators.register("gated", gated)
        with GenerationPipeline(source, generators=generators, workers=1, timeout=5.0) as pipeline:
            run = pipeline.submit(["link"], ["gated", "react", "vue"])
            assert gated.started.wait(timeout=5)
            run.cancel()
            gated.gate.set()
            report = run.result(timeout=5)

        assert run.cancelled
        assert all(isinstance(r.error, GenerationCancelledError) for r in report.results)
        assert report.results[0].reason == "cancelled before validate"
        assert report.results[1].reason == "cancelled before start"
        assert len(pipeline.registry) == 0


class TestReport:
    def test_reason_for_foreign_errors(self):
        result = TaskResult(component_id="button", platform="react", error=RuntimeError("boom"))
        assert result.reason == "RuntimeError: boom"
        assert not result.ok

    def test_empty_report(self):
        report = BatchReport()
        assert report.ok
        assert report.summary() == "generated 0 of 0 targets"
