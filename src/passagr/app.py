"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from passagr.adapters.cache import HttpCacheInvalidator, NullCacheInvalidator
from passagr.adapters.extraction import ChatCompletionExtractionModel
from passagr.adapters.links import HttpLinkProbe
from passagr.adapters.notifications import LoggingAlertSink
from passagr.adapters.search import HttpSearchIndexer
from passagr.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyEditorialUnitOfWork,
    is_started,
    startup,
)
from passagr.config import get_editorial_config, optional_env_var
from passagr.domain.freshness import FreshnessReport, plan_reextraction
from passagr.domain.link_check import DEFAULT_LINK_CHECK_LIMIT, LinkCheckReport, check_links
from passagr.domain.model import SourceDocument, new_entity_id, utcnow
from passagr.domain.pipeline import (
    AlertWriter,
    BatchReport,
    CriticalFieldSet,
    EditorialPipeline,
    EditorialRouter,
    Extractor,
    PipelineContext,
    Publisher,
)
from passagr.domain.pipeline.orchestrator import DEFAULT_BATCH_WORKERS
from passagr.domain.review import (
    ReviewDetails,
    approve_review,
    list_pending_reviews,
    reject_review,
    review_details,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from passagr.config import EditorialConfig
    from passagr.domain.model import EditorialReview, ExtractionTask
    from passagr.domain.pipeline import PublishResult, UnitOfWorkFactory
    from passagr.domain.ports import (
        AlertSink,
        CacheInvalidator,
        ExtractionModel,
        LinkProbe,
        SearchIndexer,
    )

log = getLogger(__name__)


def _default_unit_of_work_factory() -> UnitOfWorkFactory:
    if not is_started():
        startup()
    return SqlAlchemyEditorialUnitOfWork


def _default_cache_invalidator() -> CacheInvalidator:
    if optional_env_var("PASSAGR_CACHE_PURGE_URL") is None:
        log.warning("PASSAGR_CACHE_PURGE_URL not set; cache invalidation is disabled")
        return NullCacheInvalidator()
    return HttpCacheInvalidator()


def build_publisher(
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    editorial: EditorialConfig,
    search: SearchIndexer | None = None,
    cache: CacheInvalidator | None = None,
) -> Publisher:
    return Publisher(
        search=search or HttpSearchIndexer(unit_of_work_factory=unit_of_work_factory),
        cache=cache or _default_cache_invalidator(),
        attribution=editorial.publisher_attribution,
    )


def build_pipeline_context(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    extraction_model: ExtractionModel | None = None,
    search: SearchIndexer | None = None,
    cache: CacheInvalidator | None = None,
    alert_sink: AlertSink | None = None,
    editorial: EditorialConfig | None = None,
) -> PipelineContext:
    """Wire the pipeline stages to the configured adapters."""

    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    effective_editorial = editorial or get_editorial_config()
    log.info("Loaded critical fields from %s", effective_editorial.source)
    return PipelineContext(
        unit_of_work_factory=effective_uow,
        extractor=Extractor(extraction_model or ChatCompletionExtractionModel()),
        router=EditorialRouter(CriticalFieldSet.from_mapping(effective_editorial.critical_fields)),
        publisher=build_publisher(
            unit_of_work_factory=effective_uow,
            editorial=effective_editorial,
            search=search,
            cache=cache,
        ),
        alert_writer=AlertWriter(alert_sink or LoggingAlertSink()),
    )


def run_extraction(
    tasks: Iterable[ExtractionTask],
    *,
    context: PipelineContext | None = None,
    max_workers: int = DEFAULT_BATCH_WORKERS,
) -> BatchReport:
    """Run extraction tasks through the full pipeline."""

    pipeline = EditorialPipeline(context or build_pipeline_context())
    return pipeline.run_batch(tasks, max_workers=max_workers)


def register_source(
    *,
    url: str,
    excerpt: str,
    title: str | None = None,
    publisher: str | None = None,
    content_type: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SourceDocument:
    """Store fetched source text so it can be extracted from."""

    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    source = SourceDocument(
        id=new_entity_id(),
        url=url,
        title=title,
        publisher=publisher,
        content_type=content_type,
        excerpt=excerpt,
        fetched_at=utcnow(),
    )
    with effective_uow() as uow:
        uow.repositories.sources.add(source)
        uow.commit()
    log.info("Registered source %s for %s", source.id, url)
    return source


def pending_reviews(
    *, unit_of_work_factory: UnitOfWorkFactory | None = None
) -> list[EditorialReview]:
    return list_pending_reviews(
        unit_of_work_factory=unit_of_work_factory or _default_unit_of_work_factory()
    )


def show_review(
    review_id: UUID, *, unit_of_work_factory: UnitOfWorkFactory | None = None
) -> ReviewDetails:
    return review_details(
        review_id, unit_of_work_factory=unit_of_work_factory or _default_unit_of_work_factory()
    )


def approve(
    review_id: UUID,
    *,
    reviewer_uid: str,
    notes: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    search: SearchIndexer | None = None,
    cache: CacheInvalidator | None = None,
    editorial: EditorialConfig | None = None,
) -> PublishResult:
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    effective_editorial = editorial or get_editorial_config()
    publisher = build_publisher(
        unit_of_work_factory=effective_uow,
        editorial=effective_editorial,
        search=search,
        cache=cache,
    )
    return approve_review(
        review_id,
        reviewer_uid=reviewer_uid,
        notes=notes,
        unit_of_work_factory=effective_uow,
        publisher=publisher,
        reviewers=effective_editorial.reviewers,
    )


def reject(
    review_id: UUID,
    *,
    reviewer_uid: str,
    notes: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    editorial: EditorialConfig | None = None,
) -> EditorialReview:
    effective_editorial = editorial or get_editorial_config()
    return reject_review(
        review_id,
        reviewer_uid=reviewer_uid,
        notes=notes,
        unit_of_work_factory=unit_of_work_factory or _default_unit_of_work_factory(),
        reviewers=effective_editorial.reviewers,
    )


def scan_freshness(
    *,
    enqueue: bool = False,
    context: PipelineContext | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> tuple[FreshnessReport, BatchReport | None]:
    """Report stale entities and, with ``enqueue``, re-run the pipeline for them."""

    effective_uow = (
        context.unit_of_work_factory
        if context is not None
        else unit_of_work_factory or _default_unit_of_work_factory()
    )
    report = plan_reextraction(unit_of_work_factory=effective_uow)
    if not enqueue or not report.tasks:
        return report, None
    batch = run_extraction(
        report.tasks,
        context=context or build_pipeline_context(unit_of_work_factory=effective_uow),
    )
    return report, batch


def run_link_check(
    *,
    limit: int = DEFAULT_LINK_CHECK_LIMIT,
    probe: LinkProbe | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> LinkCheckReport:
    return check_links(
        unit_of_work_factory=unit_of_work_factory or _default_unit_of_work_factory(),
        probe=probe or HttpLinkProbe(),
        limit=limit,
    )
