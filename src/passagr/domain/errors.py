"""Error taxonomy for the editorial pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from passagr.domain.model import EntityType


class PassagrError(Exception):
    """Base class for all pipeline errors."""

    retryable: bool = False


class ExtractionFailure(PassagrError):
    """Source document missing, model call failed, or output not parseable."""

    def __init__(self, message: str, *, source_id: str | None = None) -> None:
        super().__init__(message)
        self.source_id = source_id


class LookupFailure(PassagrError):
    """Reading the current state of an entity failed (not the same as absence)."""

    retryable = True


class StorageFailure(PassagrError):
    """A write to the backing store failed and must be surfaced to the caller."""

    retryable = True


class VersionConflict(StorageFailure):
    """The entity changed since the diff was computed; re-run the pipeline."""

    def __init__(
        self,
        entity_type: EntityType,
        entity_id: str,
        *,
        expected_version: int | None,
        actual_version: int | None,
    ) -> None:
        super().__init__(
            f"Version conflict for {entity_type.value} {entity_id}: "
            f"expected {expected_version}, found {actual_version}"
        )
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class PublishFailure(StorageFailure):
    """The entity write and its changelog entry could not be committed together."""


class ReviewError(PassagrError):
    """Base class for errors raised by the review surface callbacks."""


class ReviewNotFound(ReviewError):
    def __init__(self, review_id: UUID) -> None:
        super().__init__(f"Review not found: {review_id}")
        self.review_id = review_id


class ReviewAlreadyResolved(ReviewError):
    pass


class UnauthorizedReviewer(ReviewError):
    pass
