from __future__ import annotations

from typing import TYPE_CHECKING

from passagr.app import (
    approve,
    build_pipeline_context,
    pending_reviews,
    register_source,
    run_extraction,
    run_link_check,
    scan_freshness,
    show_review,
)
from passagr.domain.changelog import replay_changelog
from passagr.domain.model import ChangeType, EntityType, ExtractionTask, LinkStatus
from passagr.domain.pipeline import OutcomeStatus
from passagr.domain.ports import LinkProbeResult
from tests.helpers.editorial import (
    FakeExtractionModel,
    FakeLinkProbe,
    RecordingAlertSink,
    RecordingCacheInvalidator,
    RecordingSearchIndexer,
)
from tests.helpers.entities import country_fields

if TYPE_CHECKING:
    from collections.abc import Callable

    from passagr.adapters.sqlalchemy.unit_of_work import SqlAlchemyEditorialUnitOfWork
    from passagr.config import EditorialConfig


def test_new_entity_is_reviewed_then_updated_automatically(
    sqlite_unit_of_work: Callable[[], SqlAlchemyEditorialUnitOfWork],
    search: RecordingSearchIndexer,
    cache: RecordingCacheInvalidator,
    alert_sink: RecordingAlertSink,
    editorial_config: EditorialConfig,
) -> None:
    model = FakeExtractionModel({EntityType.COUNTRY: country_fields()})
    context = build_pipeline_context(
        unit_of_work_factory=sqlite_unit_of_work,
        extraction_model=model,
        search=search,
        cache=cache,
        alert_sink=alert_sink,
        editorial=editorial_config,
    )
    source = register_source(
        url="https://example.gov/pt",
        excerpt="Portugal guarantees universal healthcare.",
        unit_of_work_factory=sqlite_unit_of_work,
    )

    first = run_extraction(
        [ExtractionTask(source_id=source.id, entity_type=EntityType.COUNTRY)],
        context=context,
        max_workers=1,
    )

    assert [outcome.status for outcome in first.outcomes] == [OutcomeStatus.PENDING_REVIEW]
    [review] = pending_reviews(unit_of_work_factory=sqlite_unit_of_work)
    assert review.reason == "New entity."
    assert show_review(review.id, unit_of_work_factory=sqlite_unit_of_work).current is None

    published = approve(
        review.id,
        reviewer_uid="editor-1",
        unit_of_work_factory=sqlite_unit_of_work,
        search=search,
        cache=cache,
        editorial=editorial_config,
    )

    entity_id = published.entity.id
    assert published.changelog_entry.change_type is ChangeType.ADD
    assert published.changelog_entry.created_by == "editor-1"
    assert pending_reviews(unit_of_work_factory=sqlite_unit_of_work) == []

    model.responses[EntityType.COUNTRY] = country_fields(tax_snapshot="Flat tax for newcomers.")
    second = run_extraction(
        [ExtractionTask(source_id=source.id, entity_type=EntityType.COUNTRY, entity_id=entity_id)],
        context=context,
        max_workers=1,
    )

    assert [outcome.status for outcome in second.outcomes] == [OutcomeStatus.PUBLISHED]
    with sqlite_unit_of_work() as uow:
        entity = uow.repositories.entities.get(EntityType.COUNTRY, entity_id)
        history = uow.repositories.changelog.list_for_entity(EntityType.COUNTRY, entity_id)
    assert entity is not None
    assert entity.version == 2
    assert entity.fields["tax_snapshot"] == "Flat tax for newcomers."
    assert [entry.created_by for entry in history] == ["editor-1", "automated-publisher"]
    assert replay_changelog(history) == entity.fields
    assert search.synced == [
        (EntityType.COUNTRY, entity_id),
        (EntityType.COUNTRY, entity_id),
    ]
    assert cache.paths == [f"/public/countries/{entity_id}"] * 2


def test_fresh_entities_are_not_reextracted(
    sqlite_unit_of_work: Callable[[], SqlAlchemyEditorialUnitOfWork],
) -> None:
    report, batch = scan_freshness(enqueue=True, unit_of_work_factory=sqlite_unit_of_work)

    assert report.stale == []
    assert batch is None


def test_link_check_updates_registered_sources(
    sqlite_unit_of_work: Callable[[], SqlAlchemyEditorialUnitOfWork],
) -> None:
    source = register_source(
        url="https://example.gov/gone",
        excerpt="Archived guidance.",
        unit_of_work_factory=sqlite_unit_of_work,
    )

    report = run_link_check(
        probe=FakeLinkProbe({"https://example.gov/gone": LinkProbeResult(http_status=404)}),
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert report.counts == {LinkStatus.NOT_FOUND: 1}
    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.sources.get(source.id)
    assert stored is not None
    assert stored.reliability_score == 3
    assert stored.last_checked_at is not None
