"""Callbacks for the human review surface: list, inspect, approve, reject."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from passagr.domain.errors import (
    ReviewAlreadyResolved,
    ReviewNotFound,
    UnauthorizedReviewer,
)
from passagr.domain.model import (
    CandidateEntity,
    DiffOutput,
    ReviewStateError,
    ReviewStatus,
)

if TYPE_CHECKING:
    from collections.abc import Collection
    from uuid import UUID

    from passagr.domain.model import EditorialReview, FieldMap, PublishedEntity
    from passagr.domain.pipeline.context import UnitOfWorkFactory
    from passagr.domain.pipeline.publisher import Publisher, PublishResult
    from passagr.domain.ports import EditorialUnitOfWork

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReviewDetails:
    """Side-by-side view of the published state and the proposal under review."""

    review: EditorialReview
    current: PublishedEntity | None
    proposed: FieldMap

    @property
    def current_fields(self) -> FieldMap:
        return dict(self.current.fields) if self.current is not None else {}


def list_pending_reviews(
    *, unit_of_work_factory: UnitOfWorkFactory
) -> list[EditorialReview]:
    with unit_of_work_factory() as uow:
        return list(uow.repositories.reviews.list_by_status(ReviewStatus.PENDING))


def review_details(
    review_id: UUID, *, unit_of_work_factory: UnitOfWorkFactory
) -> ReviewDetails:
    with unit_of_work_factory() as uow:
        review = _load(uow, review_id)
        current = None
        if review.entity_id is not None:
            current = uow.repositories.entities.get(review.entity_type, review.entity_id)
    proposed = CandidateEntity.from_snapshot(review.proposed_data).field_values()
    return ReviewDetails(review=review, current=current, proposed=proposed)


def approve_review(
    review_id: UUID,
    *,
    reviewer_uid: str,
    notes: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory,
    publisher: Publisher,
    reviewers: Collection[str] | None = None,
) -> PublishResult:
    """Publish the stored proposal and mark the review approved, atomically.

    A stale ``base_version`` makes the publish fail with
    :class:`~passagr.domain.errors.VersionConflict`; the review then stays
    pending so it can be re-extracted or rejected. If another reviewer resolves
    the review while this one publishes, the publish rolls back and
    :class:`~passagr.domain.errors.ReviewAlreadyResolved` is raised.
    """

    uid = _authorize(reviewer_uid, reviewers)
    with unit_of_work_factory() as uow:
        review = _load_pending(uow, review_id)

    candidate = CandidateEntity.from_snapshot(review.proposed_data)
    diff = DiffOutput(
        change_type=review.change_type,
        diff_summary=review.diff_summary,
        diff_fields=tuple(review.diff_fields),
        source_ids=tuple(review.source_ids),
        base_version=review.base_version,
    )

    def resolve(publish_uow: EditorialUnitOfWork) -> None:
        _resolve(review, ReviewStatus.APPROVED, reviewer_uid=uid, notes=notes)
        publish_uow.repositories.reviews.resolve(review)

    result = publisher.publish(
        candidate,
        diff,
        uow=unit_of_work_factory(),
        created_by=uid,
        before_commit=resolve,
    )
    log.info("Review %s approved by %s", review.id, uid)
    return result


def reject_review(
    review_id: UUID,
    *,
    reviewer_uid: str,
    notes: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory,
    reviewers: Collection[str] | None = None,
) -> EditorialReview:
    uid = _authorize(reviewer_uid, reviewers)
    with unit_of_work_factory() as uow:
        review = _load_pending(uow, review_id)

    _resolve(review, ReviewStatus.REJECTED, reviewer_uid=uid, notes=notes)
    with unit_of_work_factory() as uow:
        uow.repositories.reviews.resolve(review)
        uow.commit()
    log.info("Review %s rejected by %s", review.id, uid)
    return review


def _authorize(reviewer_uid: str, reviewers: Collection[str] | None) -> str:
    uid = reviewer_uid.strip()
    if not uid:
        raise UnauthorizedReviewer("A reviewer uid is required to resolve a review")
    if reviewers is not None and uid not in reviewers:
        raise UnauthorizedReviewer(f"Reviewer {uid!r} may not resolve reviews")
    return uid


def _load(uow: EditorialUnitOfWork, review_id: UUID) -> EditorialReview:
    review = uow.repositories.reviews.get(review_id)
    if review is None:
        raise ReviewNotFound(review_id)
    return review


def _load_pending(uow: EditorialUnitOfWork, review_id: UUID) -> EditorialReview:
    review = _load(uow, review_id)
    if not review.is_pending:
        raise ReviewAlreadyResolved(f"Review {review_id} is already {review.status.value}")
    return review


def _resolve(
    review: EditorialReview,
    status: ReviewStatus,
    *,
    reviewer_uid: str,
    notes: str | None,
) -> None:
    try:
        if status is ReviewStatus.APPROVED:
            review.approve(reviewer_uid=reviewer_uid, notes=notes)
        else:
            review.reject(reviewer_uid=reviewer_uid, notes=notes)
    except ReviewStateError as exc:
        raise ReviewAlreadyResolved(str(exc)) from exc
