"""
Generation pipeline.

Runs one task per (component, platform) on a worker pool:

    prepare (compile variants, transform tokens)   once per component
        -> generate   (own thread per call, bounded by a timeout)
        -> validate   (accessibility contract)
        -> publish    (registry append)

Every task of a component waits for that component's preparation, so the
compiled resolver and token bindings exist before any generator starts.
Tasks fail independently: one platform failing never stops the others.
Cancellation is honoured up to the registry append; a cancelled or failed
task publishes nothing. Failures are terminal and never retried.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from dataclasses import dataclass, field

from ..platforms import GeneratorRegistry, get_registry
from .errors import (
    AccessibilityValidationFailure,
    ErrorContext,
    FacetError,
    GenerationCancelledError,
    GeneratorTimeoutError,
)
from .ir import Artifact, ArtifactRef, ComponentSpec, TokenSet
from .registry import ArtifactRegistry
from .spec_loader import SpecSource
from .token_transformer import PlatformTokenBinding, TokenTransformer
from .validator import AccessibilityValidator
from .variant_compiler import VariantResolver, compile_variants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedComponent:
    """Per-component inputs shared by every platform task."""

    csm: ComponentSpec
    resolver: VariantResolver
    tokens: TokenSet
    bindings: dict[str, PlatformTokenBinding]


@dataclass
class TaskResult:
    """Outcome of one (component, platform) task."""

    component_id: str
    platform: str
    ref: ArtifactRef | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.ref is not None

    @property
    def reason(self) -> str:
        if self.error is None:
            return ""
        if isinstance(self.error, FacetError):
            return self.error.message
        return f"{type(self.error).__name__}: {self.error}"


@dataclass
class BatchReport:
    """Per-task outcomes of a batch."""

    results: list[TaskResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[TaskResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[TaskResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        """
        One-line summary, e.g.
        ``generated 8 of 9 targets; platform vue failed: accessibility min-height 40<44``.
        """
        text = f"generated {len(self.succeeded)} of {len(self.results)} targets"
        several = len({r.component_id for r in self.results}) > 1
        for result in self.failed:
            where = f"platform {result.platform} failed"
            if several:
                where += f" for {result.component_id}"
            text += f"; {where}: {result.reason}"
        return text


class GenerationRun:
    """Handle for a submitted batch."""

    def __init__(self, tasks: list[tuple[str, str, Future[ArtifactRef]]], cancel_event: threading.Event) -> None:
        self._tasks = tasks
        self._cancel_event = cancel_event

    def cancel(self) -> None:
        """
        Cancel every task that has not begun its registry append.

        Queued tasks never start; running tasks stop at their next checkpoint.
        """
        self._cancel_event.set()
        for _component, _platform, future in self._tasks:
            future.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def done(self) -> bool:
        return all(future.done() for _c, _p, future in self._tasks)

    def result(self, timeout: float | None = None) -> BatchReport:
        """Wait for every task and collect outcomes in submission order."""
        report = BatchReport()
        for component_id, platform, future in self._tasks:
            result = TaskResult(component_id=component_id, platform=platform)
            try:
                result.ref = future.result(timeout=timeout)
            except CancelledError:
                result.error = GenerationCancelledError(
                    "cancelled before start", ErrorContext(component=component_id, platform=platform)
                )
            except Exception as e:  # isolated per task
                result.error = e
            report.results.append(result)
        return report


class GenerationPipeline:
    """
    Generates, validates and publishes artifacts.

    Example:
        source = SpecSource(Path("components"), Path("tokens")).load()
        with GenerationPipeline(source, ArtifactRegistry()) as pipeline:
            ref = pipeline.generate("button", "react")
            report = pipeline.generate_batch(["button"], ["react", "vue"])
    """

    def __init__(
        self,
        source: SpecSource,
        registry: ArtifactRegistry | None = None,
        generators: GeneratorRegistry | None = None,
        *,
        workers: int = 4,
        timeout: float = 10.0,
        include_docs: bool = False,
        default_revision: str | None = None,
        validator: AccessibilityValidator | None = None,
        transformer: TokenTransformer | None = None,
    ) -> None:
        self.source = source
        self.registry = registry if registry is not None else ArtifactRegistry()
        self.generators = generators if generators is not None else get_registry()
        self.timeout = timeout
        self.include_docs = include_docs
        self.default_revision = default_revision
        self.validator = validator or AccessibilityValidator()
        self.transformer = transformer or TokenTransformer()
        self._task_pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="facet-task")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def generate(self, component_id: str, platform: str, token_revision: str | None = None) -> ArtifactRef:
        """
        Generate, validate and publish one artifact.

        Raises:
            FacetError: The task's failure (missing token, capability gap,
                validation failure, timeout, registry conflict, ...)
        """
        report = self.submit([component_id], [platform], token_revision).result()
        result = report.results[0]
        if result.error is not None:
            raise result.error
        assert result.ref is not None
        return result.ref

    def lookup(
        self,
        component_id: str,
        platform: str,
        version: str | None = None,
        revision: str | None = None,
    ) -> ArtifactRef:
        """Latest validated artifact; see ArtifactRegistry.lookup()."""
        return self.registry.lookup(component_id, platform, version, revision)

    def generate_batch(
        self,
        component_ids: Sequence[str] | None = None,
        platforms: Sequence[str] | None = None,
        token_revision: str | None = None,
    ) -> BatchReport:
        """Run every (component, platform) pair and wait for all of them."""
        report = self.submit(component_ids, platforms, token_revision).result()
        logger.info(report.summary(), extra={"context": {"failed": len(report.failed)}})
        return report

    def submit(
        self,
        component_ids: Sequence[str] | None = None,
        platforms: Sequence[str] | None = None,
        token_revision: str | None = None,
    ) -> GenerationRun:
        """
        Schedule a batch without waiting.

        Args:
            component_ids: Components to generate (all loaded components if None)
            platforms: Platform ids (every registered platform if None)
            token_revision: Token revision (configured default, else latest)
        """
        component_ids = list(component_ids) if component_ids is not None else self.source.component_ids()
        platforms = list(platforms) if platforms is not None else self.generators.list_platforms()
        cancel_event = threading.Event()

        # Preparations go first so no task can block a worker waiting on a
        # preparation that is still queued behind it.
        preparations = {
            component_id: self._task_pool.submit(self._prepare, component_id, platforms, token_revision)
            for component_id in dict.fromkeys(component_ids)
        }
        tasks: list[tuple[str, str, Future[ArtifactRef]]] = []
        for component_id in component_ids:
            for platform in platforms:
                future = self._task_pool.submit(
                    self._run_task, component_id, platform, preparations[component_id], cancel_event
                )
                tasks.append((component_id, platform, future))
        return GenerationRun(tasks, cancel_event)

    def close(self) -> None:
        self._task_pool.shutdown(wait=True, cancel_futures=True)

    def __enter__(self) -> GenerationPipeline:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _token_set(self, token_revision: str | None) -> TokenSet:
        revision = token_revision or self.default_revision
        if revision is None:
            return self.source.tokens.latest()
        return self.source.tokens.get(revision)

    def _prepare(
        self, component_id: str, platforms: Iterable[str], token_revision: str | None
    ) -> PreparedComponent:
        csm = self.source.get(component_id)
        tokens = self._token_set(token_revision)
        resolver = compile_variants(csm)
        bindings: dict[str, PlatformTokenBinding] = {}
        for platform in platforms:
            if platform not in self.generators:
                continue
            style = self.generators.get(platform).token_style
            bindings[platform] = self.transformer.transform(tokens, platform, style)
        logger.debug(
            "Prepared %s@%s with tokens %s",
            csm.id,
            csm.version,
            tokens.revision,
            extra={"component": csm.id, "context": {"platforms": sorted(bindings)}},
        )
        return PreparedComponent(csm=csm, resolver=resolver, tokens=tokens, bindings=bindings)

    def _checkpoint(self, cancel_event: threading.Event, component_id: str, platform: str, stage: str) -> None:
        if cancel_event.is_set():
            raise GenerationCancelledError(
                f"cancelled before {stage}", ErrorContext(component=component_id, platform=platform)
            )

    def _run_task(
        self,
        component_id: str,
        platform: str,
        preparation: Future[PreparedComponent],
        cancel_event: threading.Event,
    ) -> ArtifactRef:
        context = {"platform": platform}
        try:
            self._checkpoint(cancel_event, component_id, platform, "start")
            generator = self.generators.get(platform, include_docs=self.include_docs)
            prepared = preparation.result()
            binding = prepared.bindings[platform]
            context["revision"] = prepared.tokens.revision

            self._checkpoint(cancel_event, component_id, platform, "generate")
            artifact = self._call_generator(generator.generate, prepared, binding, platform)

            self._checkpoint(cancel_event, component_id, platform, "validate")
            validated = self.validator.validate(artifact, prepared.csm, binding)
            if not validated.validation.passed:
                raise AccessibilityValidationFailure(validated.validation.reasons, component_id, platform)

            self._checkpoint(cancel_event, component_id, platform, "publish")
            return self.registry.publish(validated)
        except FacetError as e:
            logger.warning(
                "Task %s@%s failed: %s",
                component_id,
                platform,
                e.message,
                extra={"component": component_id, "context": {**context, "error": type(e).__name__}},
            )
            raise

    def _call_generator(
        self,
        generate: Callable[[ComponentSpec, VariantResolver, PlatformTokenBinding], Artifact],
        prepared: PreparedComponent,
        binding: PlatformTokenBinding,
        platform: str,
    ) -> Artifact:
        future: Future[Artifact] = Future()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(generate(prepared.csm, prepared.resolver, binding))
            except Exception as e:
                future.set_exception(e)

        # One thread per call: the budget starts when the generator does
        threading.Thread(target=run, name=f"facet-generator-{platform}", daemon=True).start()
        try:
            return future.result(timeout=self.timeout)
        except TimeoutError:
            # A running thread cannot be stopped; its result is discarded
            raise GeneratorTimeoutError(platform, prepared.csm.id, self.timeout) from None
