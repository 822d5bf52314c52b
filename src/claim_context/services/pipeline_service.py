"""Pipeline orchestrator: runs stages, enforces timeouts, and records progress."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from claim_context.core.config import AppSettings
from claim_context.exceptions import PersistenceError, RetryableError, StageOrderError
from claim_context.hooks.run_tracker import end_run, start_run, track_stage
from claim_context.models import (
    ClaimContext,
    DamageFinding,
    EstimateResult,
    MeasurementReport,
    PipelineRecord,
    PipelineStage,
    PipelineStatus,
    ScopeClassification,
)
from claim_context.providers.llm.protocols import IGenerator
from claim_context.services.pipeline_store import PipelineStore
from claim_context.stages import (
    EstimateGenerator,
    MeasurementParser,
    PhotoFindingExtractor,
    ScopeClassifier,
)

log = logging.getLogger(__name__)

T = TypeVar("T")

_STAGE_ORDER = [PipelineStage.INGEST, PipelineStage.EXTRACT, PipelineStage.CLASSIFY, PipelineStage.ESTIMATE]


class ClaimContextPipeline:
    """Entry point for running one stage or the whole ingest -> estimate flow.

    Stages never retry on their own.  A stage that exceeds
    ``pipeline.stage_timeout`` surfaces as a ``RetryableError`` so the caller
    can decide whether to run it again.  When a ``pipeline_id`` is given,
    progress and failures are written to the ``PipelineStore``.
    """

    def __init__(
        self,
        generator: IGenerator,
        settings: AppSettings,
        store: PipelineStore | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self.measurement_parser = MeasurementParser(generator, settings)
        self.finding_extractor = PhotoFindingExtractor(generator, settings)
        self.scope_classifier = ScopeClassifier(generator, settings)
        self.estimate_generator = EstimateGenerator(generator, settings)

    @property
    def store(self) -> PipelineStore | None:
        return self._store

    def _record(self, pipeline_id: str | None, **fields) -> None:
        if pipeline_id and self._store is not None:
            self._store.update(pipeline_id, **fields)

    def _save_output(
        self,
        pipeline_id: str | None,
        stage: PipelineStage,
        context: ClaimContext | None,
        **outputs: Any,
    ) -> None:
        """Merge a finished stage's output into the stored context and point the record at the next stage."""
        if not pipeline_id or self._store is None:
            return
        if self._store.exists(pipeline_id):
            base = self._store.load(pipeline_id).claim_context
        else:
            base = context or ClaimContext()
        self._store.update(
            pipeline_id,
            claim_context=base.merge(**outputs),
            stage=_STAGE_ORDER[_STAGE_ORDER.index(stage) + 1],
            status=PipelineStatus.DRAFT,
            error=None,
        )

    async def _run_stage(
        self,
        stage: PipelineStage,
        work: Callable[[], Awaitable[T]],
        pipeline_id: str | None,
    ) -> T:
        timeout = self._settings.pipeline.stage_timeout
        with track_stage(stage.value):
            try:
                self._record(pipeline_id, stage=stage, status=PipelineStatus.PROCESSING, error=None)
                return await asyncio.wait_for(work(), timeout=timeout)
            except PersistenceError:
                log.error("Stage %s could not be recorded for pipeline %s", stage.value, pipeline_id)
                raise
            except asyncio.TimeoutError as exc:
                error: Exception = RetryableError(f"Stage '{stage.value}' timed out after {timeout:.0f}s", status_code=504)
                self._record(pipeline_id, status=PipelineStatus.FAILED, error=str(error))
                raise error from exc
            except Exception as exc:
                log.error("Stage %s failed: %s", stage.value, exc)
                self._record(pipeline_id, status=PipelineStatus.FAILED, error=f"{type(exc).__name__}: {exc}")
                raise

    # ── Single stages ────────────────────────────────────────────────

    async def parse_measurement(
        self,
        document_bytes: bytes | None,
        document_name: str | None = None,
        *,
        pipeline_id: str | None = None,
    ) -> MeasurementReport:
        report = await self._run_stage(
            PipelineStage.INGEST,
            lambda: self.measurement_parser.parse(document_bytes, document_name),
            pipeline_id,
        )
        self._save_output(pipeline_id, PipelineStage.INGEST, None, measurement_report=report)
        return report

    async def extract_photo_findings(
        self,
        context: ClaimContext,
        *,
        pipeline_id: str | None = None,
    ) -> list[DamageFinding]:
        findings = await self._run_stage(
            PipelineStage.EXTRACT,
            lambda: self.finding_extractor.extract(context.description, context.loss_cause, context.photos),
            pipeline_id,
        )
        self._save_output(pipeline_id, PipelineStage.EXTRACT, context, photo_findings=findings)
        return findings

    async def classify_scope(
        self,
        context: ClaimContext,
        *,
        pipeline_id: str | None = None,
    ) -> ScopeClassification:
        classification = await self._run_stage(
            PipelineStage.CLASSIFY,
            lambda: self.scope_classifier.classify(
                context.description,
                context.loss_cause,
                context.photo_findings,
                context.measurement_report,
            ),
            pipeline_id,
        )
        self._save_output(pipeline_id, PipelineStage.CLASSIFY, context, scope_classification=classification)
        return classification

    async def generate_estimate(
        self,
        context: ClaimContext,
        *,
        pipeline_id: str | None = None,
    ) -> EstimateResult:
        """Generate the estimate; with *pipeline_id*, persist it and mark the record complete."""
        result = await self._run_stage(
            PipelineStage.ESTIMATE,
            lambda: self.estimate_generator.generate(context),
            pipeline_id,
        )
        self._record(
            pipeline_id,
            claim_context=context.merge(estimate_result=result),
            estimate_result=result,
            status=PipelineStatus.COMPLETE,
            stage=PipelineStage.ESTIMATE,
        )
        return result

    # ── Full run ─────────────────────────────────────────────────────

    async def run_all(
        self,
        context: ClaimContext,
        *,
        document_bytes: bytes | None = None,
        document_name: str | None = None,
        pipeline_id: str | None = None,
        start_at: PipelineStage = PipelineStage.INGEST,
    ) -> ClaimContext:
        """Thread *context* through the stages from *start_at* to the estimate.

        The measurement stage is skipped when no document is supplied and the
        context already carries a report.
        """
        _check_resumable(context, start_at)
        stages = _STAGE_ORDER[_STAGE_ORDER.index(start_at):]

        start_run(claim_id=context.claim_id)
        try:
            for stage in stages:
                if stage is PipelineStage.INGEST:
                    if document_bytes or context.measurement_report is None:
                        report = await self.parse_measurement(document_bytes, document_name, pipeline_id=pipeline_id)
                        context = context.merge(measurement_report=report)
                elif stage is PipelineStage.EXTRACT:
                    findings = await self.extract_photo_findings(context, pipeline_id=pipeline_id)
                    context = context.merge(photo_findings=findings)
                elif stage is PipelineStage.CLASSIFY:
                    classification = await self.classify_scope(context, pipeline_id=pipeline_id)
                    context = context.merge(scope_classification=classification)
                else:
                    result = await self.generate_estimate(context, pipeline_id=pipeline_id)
                    context = context.merge(estimate_result=result)
                    continue
                self._record(pipeline_id, claim_context=context)
        finally:
            analytics = end_run()
            if analytics is not None:
                log.info(
                    "Pipeline run %s %s in %.0fms",
                    analytics.run_id, analytics.status, analytics.total_duration_ms,
                )
        return context

    async def resume(self, pipeline_id: str) -> PipelineRecord:
        """Re-run a stored pipeline from the stage it last reached."""
        if self._store is None:
            raise StageOrderError("Resuming a pipeline requires a configured store")
        record = self._store.load(pipeline_id)
        if record.status is PipelineStatus.COMPLETE:
            raise StageOrderError(f"Pipeline {pipeline_id} is already complete")
        await self.run_all(record.claim_context, pipeline_id=pipeline_id, start_at=record.stage)
        return self._store.load(pipeline_id)


def _check_resumable(context: ClaimContext, start_at: PipelineStage) -> None:
    """Stages after ingest need the outputs of the stages before them."""
    if start_at in (PipelineStage.CLASSIFY, PipelineStage.ESTIMATE) and context.photo_findings is None:
        raise StageOrderError(f"Cannot start at '{start_at.value}': photo findings have not been extracted")
    if start_at is PipelineStage.ESTIMATE and context.scope_classification is None:
        raise StageOrderError("Cannot start at 'estimate': scope has not been classified")
