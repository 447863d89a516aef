from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import uuid4

import pytest

from passagr.config import load_critical_fields
from passagr.domain.errors import (
    ReviewAlreadyResolved,
    ReviewNotFound,
    UnauthorizedReviewer,
    VersionConflict,
)
from passagr.domain.model import (
    ChangeType,
    DiffField,
    DiffOutput,
    EditorialReview,
    EntityType,
    Impact,
    ReviewStatus,
    ValidationResult,
)
from passagr.domain.pipeline import CriticalFieldSet, EditorialRouter, Publisher
from passagr.domain.review import (
    approve_review,
    list_pending_reviews,
    reject_review,
    review_details,
)
from tests.helpers.editorial import (
    InMemoryStore,
    RecordingCacheInvalidator,
    RecordingSearchIndexer,
)
from tests.helpers.entities import VERIFIED_AT, country_fields, make_candidate

if TYPE_CHECKING:
    from collections.abc import Callable

    from passagr.domain.pipeline import PublishResult

REVIEWERS = frozenset({"editor-1"})


class InterleavingPublisher(Publisher):
    """Runs ``interleave`` once, after the review was loaded but before the first publish."""

    def __init__(self, *, interleave: Callable[[], object] | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.interleave = interleave

    def publish(self, *args: Any, **kwargs: Any) -> PublishResult:
        interleave, self.interleave = self.interleave, None
        if interleave is not None:
            interleave()
        return super().publish(*args, **kwargs)


@pytest.fixture
def publisher(search: RecordingSearchIndexer, cache: RecordingCacheInvalidator) -> Publisher:
    return Publisher(
        search=search,
        cache=cache,
        attribution="automated-publisher",
        clock=lambda: VERIFIED_AT,
    )


def _queue_review(store: InMemoryStore, *, base_version: int = 1) -> EditorialReview:
    store.add_entity(
        EntityType.COUNTRY, "123", country_fields(lgbtq_rights_index=5), version=base_version
    )
    candidate = make_candidate(
        EntityType.COUNTRY, country_fields(lgbtq_rights_index=4), entity_id="123"
    )
    diff = DiffOutput(
        change_type=ChangeType.UPDATE,
        diff_summary="Changes detected for country: 1 fields modified.",
        diff_fields=(DiffField("lgbtq_rights_index", 5, 4),),
        source_ids=("source-1",),
        base_version=base_version,
    )
    router = EditorialRouter(CriticalFieldSet.from_mapping(load_critical_fields()))
    review = router.build_review(
        candidate,
        diff,
        ValidationResult(valid=True, impact=Impact.LOW),
        reason="Critical safety field change.",
    )
    store.state.reviews[review.id] = review
    return review


def test_list_pending_reviews_skips_resolved(store: InMemoryStore) -> None:
    pending = _queue_review(store)
    resolved = _queue_review(store)
    store.state.reviews[resolved.id].reject(reviewer_uid="editor-1")

    reviews = list_pending_reviews(unit_of_work_factory=store.unit_of_work)

    assert [review.id for review in reviews] == [pending.id]


def test_review_details_show_current_and_proposed(store: InMemoryStore) -> None:
    review = _queue_review(store)

    details = review_details(review.id, unit_of_work_factory=store.unit_of_work)

    assert details.current_fields["lgbtq_rights_index"] == 5
    assert details.proposed["lgbtq_rights_index"] == 4
    assert "entity_type" not in details.proposed


def test_review_details_for_unknown_review(store: InMemoryStore) -> None:
    with pytest.raises(ReviewNotFound):
        review_details(uuid4(), unit_of_work_factory=store.unit_of_work)


def test_approve_publishes_and_resolves_atomically(
    store: InMemoryStore,
    publisher: Publisher,
    search: RecordingSearchIndexer,
) -> None:
    review = _queue_review(store)

    result = approve_review(
        review.id,
        reviewer_uid="editor-1",
        notes="Checked against the ministry site.",
        unit_of_work_factory=store.unit_of_work,
        publisher=publisher,
        reviewers=REVIEWERS,
    )

    entity = store.entity(EntityType.COUNTRY, "123")
    assert entity is not None
    assert entity.fields["lgbtq_rights_index"] == 4
    assert entity.version == 2
    stored = store.state.reviews[review.id]
    assert stored.status is ReviewStatus.APPROVED
    assert stored.reviewer_uid == "editor-1"
    assert stored.notes == "Checked against the ministry site."
    assert stored.resolved_at is not None
    assert result.changelog_entry.created_by == "editor-1"
    assert store.commits == 1
    assert search.synced == [(EntityType.COUNTRY, "123")]


def test_approve_new_entity_review(store: InMemoryStore, publisher: Publisher) -> None:
    candidate = make_candidate(EntityType.COUNTRY, country_fields())
    router = EditorialRouter(CriticalFieldSet.from_mapping(load_critical_fields()))
    review = router.build_review(
        candidate,
        DiffOutput(change_type=ChangeType.ADD, diff_summary="New country added."),
        ValidationResult(valid=True, impact=Impact.LOW),
        reason="New entity.",
    )
    store.state.reviews[review.id] = review

    result = approve_review(
        review.id,
        reviewer_uid="editor-1",
        unit_of_work_factory=store.unit_of_work,
        publisher=publisher,
    )

    assert store.entity(EntityType.COUNTRY, result.entity.id) is not None
    assert result.changelog_entry.change_type is ChangeType.ADD
    assert result.changelog_entry.source_ids == ["source-1"]


def test_overlapping_approvals_publish_a_new_entity_once(
    store: InMemoryStore,
    search: RecordingSearchIndexer,
    cache: RecordingCacheInvalidator,
) -> None:
    candidate = make_candidate(EntityType.COUNTRY, country_fields())
    router = EditorialRouter(CriticalFieldSet.from_mapping(load_critical_fields()))
    review = router.build_review(
        candidate,
        DiffOutput(change_type=ChangeType.ADD, diff_summary="New country added."),
        ValidationResult(valid=True, impact=Impact.LOW),
        reason="New entity.",
    )
    store.state.reviews[review.id] = review
    publisher = InterleavingPublisher(
        search=search, cache=cache, attribution="automated-publisher", clock=lambda: VERIFIED_AT
    )
    publisher.interleave = lambda: approve_review(
        review.id,
        reviewer_uid="editor-2",
        unit_of_work_factory=store.unit_of_work,
        publisher=publisher,
    )

    with pytest.raises(ReviewAlreadyResolved):
        approve_review(
            review.id,
            reviewer_uid="editor-1",
            unit_of_work_factory=store.unit_of_work,
            publisher=publisher,
        )

    countries = [key for key in store.state.entities if key[0] is EntityType.COUNTRY]
    assert len(countries) == 1
    assert len(store.changelog) == 1
    assert store.changelog[0].created_by == "editor-2"
    assert store.state.reviews[review.id].reviewer_uid == "editor-2"
    assert store.commits == 1


def test_rejection_during_approval_rolls_the_publish_back(
    store: InMemoryStore,
    search: RecordingSearchIndexer,
    cache: RecordingCacheInvalidator,
) -> None:
    review = _queue_review(store)
    publisher = InterleavingPublisher(
        search=search,
        cache=cache,
        attribution="automated-publisher",
        clock=lambda: VERIFIED_AT,
        interleave=lambda: reject_review(
            review.id, reviewer_uid="editor-2", unit_of_work_factory=store.unit_of_work
        ),
    )

    with pytest.raises(ReviewAlreadyResolved):
        approve_review(
            review.id,
            reviewer_uid="editor-1",
            unit_of_work_factory=store.unit_of_work,
            publisher=publisher,
        )

    stored = store.state.reviews[review.id]
    assert stored.status is ReviewStatus.REJECTED
    assert stored.reviewer_uid == "editor-2"
    entity = store.entity(EntityType.COUNTRY, "123")
    assert entity is not None
    assert entity.version == 1
    assert store.changelog == []
    assert search.synced == []


def test_review_resolved_after_loading_fails_on_commit(store: InMemoryStore) -> None:
    review = _queue_review(store)

    with store.unit_of_work() as uow:
        loaded = uow.repositories.reviews.get(review.id)
        assert loaded is not None
        loaded.reject(reviewer_uid="editor-1")
        uow.repositories.reviews.resolve(loaded)
        reject_review(review.id, reviewer_uid="editor-2", unit_of_work_factory=store.unit_of_work)

        with pytest.raises(ReviewAlreadyResolved):
            uow.commit()

    assert store.state.reviews[review.id].reviewer_uid == "editor-2"


def test_stale_review_conflicts_and_stays_pending(
    store: InMemoryStore, publisher: Publisher
) -> None:
    review = _queue_review(store)
    store.state.entities[(EntityType.COUNTRY, "123")].version = 2

    with pytest.raises(VersionConflict):
        approve_review(
            review.id,
            reviewer_uid="editor-1",
            unit_of_work_factory=store.unit_of_work,
            publisher=publisher,
        )

    assert store.state.reviews[review.id].status is ReviewStatus.PENDING
    assert store.changelog == []


def test_reject_leaves_entity_untouched(store: InMemoryStore) -> None:
    review = _queue_review(store)

    rejected = reject_review(
        review.id,
        reviewer_uid="editor-1",
        notes="Source is outdated.",
        unit_of_work_factory=store.unit_of_work,
        reviewers=REVIEWERS,
    )

    assert rejected.status is ReviewStatus.REJECTED
    assert store.state.reviews[review.id].status is ReviewStatus.REJECTED
    entity = store.entity(EntityType.COUNTRY, "123")
    assert entity is not None
    assert entity.fields["lgbtq_rights_index"] == 5
    assert store.changelog == []


def test_review_resolves_only_once(store: InMemoryStore, publisher: Publisher) -> None:
    review = _queue_review(store)
    reject_review(review.id, reviewer_uid="editor-1", unit_of_work_factory=store.unit_of_work)

    with pytest.raises(ReviewAlreadyResolved):
        approve_review(
            review.id,
            reviewer_uid="editor-1",
            unit_of_work_factory=store.unit_of_work,
            publisher=publisher,
        )


@pytest.mark.parametrize("reviewer_uid", ["", "   ", "intruder"])
def test_unauthorized_reviewers_are_refused(store: InMemoryStore, reviewer_uid: str) -> None:
    review = _queue_review(store)

    with pytest.raises(UnauthorizedReviewer):
        reject_review(
            review.id,
            reviewer_uid=reviewer_uid,
            unit_of_work_factory=store.unit_of_work,
            reviewers=REVIEWERS,
        )

    assert store.state.reviews[review.id].is_pending


def test_missing_review_cannot_be_approved(store: InMemoryStore, publisher: Publisher) -> None:
    with pytest.raises(ReviewNotFound):
        approve_review(
            uuid4(),
            reviewer_uid="editor-1",
            unit_of_work_factory=store.unit_of_work,
            publisher=publisher,
        )
