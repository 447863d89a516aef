"""Run candidates through extract → validate → diff → route → publish."""

from __future__ import annotations

from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from passagr.domain.errors import PassagrError
from passagr.domain.pipeline.differ import diff_candidate
from passagr.domain.pipeline.validator import validate_candidate

if TYPE_CHECKING:
    from collections.abc import Iterable

    from passagr.domain.model import (
        CandidateEntity,
        DiffOutput,
        ExtractionTask,
        RoutingDecision,
        ValidationResult,
    )
    from passagr.domain.pipeline.context import PipelineContext
    from passagr.domain.pipeline.publisher import PublishResult

log = getLogger(__name__)

DEFAULT_BATCH_WORKERS = 4


class OutcomeStatus(StrEnum):
    NO_CHANGE = "no_change"
    PENDING_REVIEW = "pending_review"
    PUBLISHED = "published"
    FAILED = "failed"


@dataclass(frozen=True, slots=True, kw_only=True)
class PipelineOutcome:
    status: OutcomeStatus
    candidate: CandidateEntity | None = None
    validation: ValidationResult | None = None
    diff: DiffOutput | None = None
    decision: RoutingDecision | None = None
    publish_result: PublishResult | None = None
    error: PassagrError | None = None


@dataclass(slots=True)
class BatchReport:
    """Per-item outcomes of a batch run, with counts per status."""

    outcomes: list[PipelineOutcome] = field(default_factory=list[PipelineOutcome])

    @property
    def counts(self) -> Counter[OutcomeStatus]:
        return Counter(outcome.status for outcome in self.outcomes)

    @property
    def failed(self) -> int:
        return self.counts[OutcomeStatus.FAILED]


class EditorialPipeline:
    def __init__(self, context: PipelineContext) -> None:
        self.context = context

    def run(self, task: ExtractionTask) -> PipelineOutcome:
        """Extract a candidate for ``task`` and carry it through the pipeline."""

        with self.context.unit_of_work_factory() as uow:
            candidate = self.context.extractor.extract(task, sources=uow.repositories.sources)
        return self.run_candidate(candidate)

    def run_candidate(self, candidate: CandidateEntity) -> PipelineOutcome:
        """Validate, diff and route an already extracted candidate."""

        validation = validate_candidate(candidate)

        with self.context.unit_of_work_factory() as uow:
            diff = diff_candidate(candidate, entities=uow.repositories.entities)
            if diff is None:
                return PipelineOutcome(
                    status=OutcomeStatus.NO_CHANGE,
                    candidate=candidate,
                    validation=validation,
                )
            decision = self.context.router.route(
                candidate, diff, validation, reviews=uow.repositories.reviews
            )
            if decision.requires_review:
                uow.commit()
                return PipelineOutcome(
                    status=OutcomeStatus.PENDING_REVIEW,
                    candidate=candidate,
                    validation=validation,
                    diff=diff,
                    decision=decision,
                )

        publish_result = self.context.publisher.publish(
            candidate, diff, uow=self.context.unit_of_work_factory()
        )
        if decision.notify:
            self.context.alert_writer.write(candidate, diff, decision.impact)
        return PipelineOutcome(
            status=OutcomeStatus.PUBLISHED,
            candidate=candidate,
            validation=validation,
            diff=diff,
            decision=decision,
            publish_result=publish_result,
        )

    def run_batch(
        self,
        tasks: Iterable[ExtractionTask],
        *,
        max_workers: int = DEFAULT_BATCH_WORKERS,
    ) -> BatchReport:
        """Run independent tasks in parallel; one failing task never stops the rest."""

        task_list = list(tasks)
        report = BatchReport()
        if not task_list:
            return report

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            report.outcomes.extend(executor.map(self._run_guarded, task_list))

        counts = report.counts
        log.info(
            "Batch finished: %s tasks, published=%s, pending_review=%s, no_change=%s, failed=%s",
            len(task_list),
            counts[OutcomeStatus.PUBLISHED],
            counts[OutcomeStatus.PENDING_REVIEW],
            counts[OutcomeStatus.NO_CHANGE],
            counts[OutcomeStatus.FAILED],
        )
        return report

    def _run_guarded(self, task: ExtractionTask) -> PipelineOutcome:
        try:
            return self.run(task)
        except PassagrError as exc:
            log.exception(
                "Pipeline run failed for %s from source %s", task.entity_type.value, task.source_id
            )
            return PipelineOutcome(status=OutcomeStatus.FAILED, error=exc)
