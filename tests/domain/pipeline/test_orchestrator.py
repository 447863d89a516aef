from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from passagr.domain.errors import ExtractionFailure, PublishFailure
from passagr.domain.model import ChangeType, EntityType, ExtractionTask, Impact, ReviewStatus
from passagr.domain.pipeline import (
    AlertWriter,
    CriticalFieldSet,
    EditorialPipeline,
    EditorialRouter,
    Extractor,
    OutcomeStatus,
    PipelineContext,
    Publisher,
)
from tests.helpers.editorial import (
    FakeExtractionModel,
    InMemoryStore,
    RecordingAlertSink,
    RecordingCacheInvalidator,
    RecordingSearchIndexer,
)
from tests.helpers.entities import VERIFIED_AT, country_fields, make_candidate, make_source

if TYPE_CHECKING:
    from passagr.config import EditorialConfig


@pytest.fixture
def model() -> FakeExtractionModel:
    return FakeExtractionModel({EntityType.COUNTRY: country_fields()})


@pytest.fixture
def pipeline(
    store: InMemoryStore,
    model: FakeExtractionModel,
    search: RecordingSearchIndexer,
    cache: RecordingCacheInvalidator,
    alert_sink: RecordingAlertSink,
    editorial_config: EditorialConfig,
) -> EditorialPipeline:
    store.add_source(make_source("source-1"))
    context = PipelineContext(
        unit_of_work_factory=store.unit_of_work,
        extractor=Extractor(model, clock=lambda: VERIFIED_AT),
        router=EditorialRouter(CriticalFieldSet.from_mapping(editorial_config.critical_fields)),
        publisher=Publisher(
            search=search,
            cache=cache,
            attribution=editorial_config.publisher_attribution,
            clock=lambda: VERIFIED_AT,
        ),
        alert_writer=AlertWriter(alert_sink),
    )
    return EditorialPipeline(context)


def test_new_entity_is_held_for_review(
    pipeline: EditorialPipeline,
    store: InMemoryStore,
    search: RecordingSearchIndexer,
) -> None:
    outcome = pipeline.run(ExtractionTask(source_id="source-1", entity_type=EntityType.COUNTRY))

    assert outcome.status is OutcomeStatus.PENDING_REVIEW
    assert outcome.decision is not None
    assert outcome.decision.review_id is not None
    [review] = store.reviews
    assert review.status is ReviewStatus.PENDING
    assert review.change_type is ChangeType.ADD
    assert review.source_ids == ["source-1"]
    assert store.state.entities == {}
    assert store.changelog == []
    assert search.synced == []


def test_low_impact_update_is_published_without_alert(
    pipeline: EditorialPipeline,
    store: InMemoryStore,
    model: FakeExtractionModel,
    alert_sink: RecordingAlertSink,
    cache: RecordingCacheInvalidator,
) -> None:
    store.add_entity(EntityType.COUNTRY, "123", country_fields(healthcare_overview="Old text"))
    model.responses[EntityType.COUNTRY] = country_fields(healthcare_overview="Updated text")

    outcome = pipeline.run(
        ExtractionTask(source_id="source-1", entity_type=EntityType.COUNTRY, entity_id="123")
    )

    assert outcome.status is OutcomeStatus.PUBLISHED
    assert outcome.publish_result is not None
    entity = store.entity(EntityType.COUNTRY, "123")
    assert entity is not None
    assert entity.version == 2
    assert entity.fields["healthcare_overview"] == "Updated text"
    assert [entry.change_type for entry in store.changelog] == [ChangeType.UPDATE]
    assert cache.paths == ["/public/countries/123"]
    assert alert_sink.alerts == []
    assert store.reviews == []


def test_medium_impact_update_publishes_and_alerts(
    pipeline: EditorialPipeline,
    store: InMemoryStore,
    model: FakeExtractionModel,
    alert_sink: RecordingAlertSink,
) -> None:
    store.add_entity(EntityType.COUNTRY, "123", country_fields())
    model.responses[EntityType.COUNTRY] = country_fields(notes=[])

    outcome = pipeline.run(
        ExtractionTask(source_id="source-1", entity_type=EntityType.COUNTRY, entity_id="123")
    )

    assert outcome.status is OutcomeStatus.PUBLISHED
    assert outcome.validation is not None
    assert outcome.validation.impact is Impact.MEDIUM
    [alert] = alert_sink.alerts
    assert alert.fields == ("notes",)


def test_critical_field_update_is_held_for_review(
    pipeline: EditorialPipeline,
    store: InMemoryStore,
    model: FakeExtractionModel,
) -> None:
    store.add_entity(EntityType.COUNTRY, "123", country_fields(lgbtq_rights_index=5))
    model.responses[EntityType.COUNTRY] = country_fields(lgbtq_rights_index=4)

    outcome = pipeline.run(
        ExtractionTask(source_id="source-1", entity_type=EntityType.COUNTRY, entity_id="123")
    )

    assert outcome.status is OutcomeStatus.PENDING_REVIEW
    entity = store.entity(EntityType.COUNTRY, "123")
    assert entity is not None
    assert entity.fields["lgbtq_rights_index"] == 5
    [review] = store.reviews
    assert review.base_version == 1


def test_unchanged_candidate_stops_after_diff(
    pipeline: EditorialPipeline,
    store: InMemoryStore,
    search: RecordingSearchIndexer,
) -> None:
    store.add_entity(EntityType.COUNTRY, "123", country_fields())

    outcome = pipeline.run(
        ExtractionTask(source_id="source-1", entity_type=EntityType.COUNTRY, entity_id="123")
    )

    assert outcome.status is OutcomeStatus.NO_CHANGE
    assert outcome.diff is None
    assert store.commits == 0
    assert search.synced == []


def test_missing_source_fails_extraction(pipeline: EditorialPipeline) -> None:
    with pytest.raises(ExtractionFailure) as exc:
        pipeline.run(ExtractionTask(source_id="missing", entity_type=EntityType.COUNTRY))

    assert exc.value.source_id == "missing"


def test_publish_failure_propagates_from_run_candidate(
    pipeline: EditorialPipeline,
    store: InMemoryStore,
) -> None:
    store.add_entity(EntityType.COUNTRY, "123", country_fields(healthcare_overview="Old text"))
    store.fail_commits = True
    candidate = make_candidate(
        EntityType.COUNTRY, country_fields(healthcare_overview="New text"), entity_id="123"
    )

    with pytest.raises(PublishFailure):
        pipeline.run_candidate(candidate)


def test_batch_isolates_failures(
    pipeline: EditorialPipeline,
    store: InMemoryStore,
    model: FakeExtractionModel,
) -> None:
    store.add_entity(EntityType.COUNTRY, "123", country_fields(healthcare_overview="Old text"))
    store.add_entity(EntityType.COUNTRY, "456", country_fields())
    model.responses[EntityType.COUNTRY] = country_fields(healthcare_overview="Old text")
    tasks = [
        ExtractionTask(source_id="missing", entity_type=EntityType.COUNTRY),
        ExtractionTask(source_id="source-1", entity_type=EntityType.COUNTRY),
        ExtractionTask(source_id="source-1", entity_type=EntityType.COUNTRY, entity_id="123"),
        ExtractionTask(source_id="source-1", entity_type=EntityType.COUNTRY, entity_id="456"),
    ]

    report = pipeline.run_batch(tasks, max_workers=2)

    assert [outcome.status for outcome in report.outcomes] == [
        OutcomeStatus.FAILED,
        OutcomeStatus.PENDING_REVIEW,
        OutcomeStatus.NO_CHANGE,
        OutcomeStatus.PUBLISHED,
    ]
    assert isinstance(report.outcomes[0].error, ExtractionFailure)
    assert report.failed == 1
    assert report.counts[OutcomeStatus.PUBLISHED] == 1


def test_empty_batch_reports_nothing(pipeline: EditorialPipeline) -> None:
    report = pipeline.run_batch([])

    assert report.outcomes == []
    assert report.failed == 0
