"""Ports for persisting editorial aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from passagr.domain.model import (
        ChangelogEntry,
        EditorialReview,
        EntityType,
        FieldMap,
        FreshnessPolicy,
        PublishedEntity,
        ReviewStatus,
        SourceDocument,
    )


@runtime_checkable
class EntityRepository(Protocol):
    """Published entity rows, one table per entity type, guarded by a version column.

    ``get`` raises :class:`~passagr.domain.errors.LookupFailure` when the store
    cannot be read, and returns ``None`` only when the entity does not exist.
    """

    def get(self, entity_type: EntityType, entity_id: str) -> PublishedEntity | None: ...

    def list_by_type(self, entity_type: EntityType) -> Sequence[PublishedEntity]: ...

    def insert(
        self,
        entity_type: EntityType,
        entity_id: str,
        fields: FieldMap,
        *,
        verified_at: datetime,
    ) -> PublishedEntity: ...

    def update(
        self,
        entity_type: EntityType,
        entity_id: str,
        fields: FieldMap,
        *,
        expected_version: int,
        verified_at: datetime,
    ) -> PublishedEntity: ...


@runtime_checkable
class ChangelogRepository(Protocol):
    """Append-only changelog; entries are never updated or deleted."""

    def append(self, entry: ChangelogEntry) -> None: ...

    def list_for_entity(
        self, entity_type: EntityType, entity_id: str
    ) -> Sequence[ChangelogEntry]: ...


@runtime_checkable
class ReviewRepository(Protocol):
    def add(self, review: EditorialReview) -> None: ...

    def get(self, review_id: UUID) -> EditorialReview | None: ...

    def list_by_status(self, status: ReviewStatus) -> Sequence[EditorialReview]: ...

    def resolve(self, review: EditorialReview) -> None:
        """Persist the resolution carried by ``review`` if the stored row is still pending.

        Raises :class:`~passagr.domain.errors.ReviewAlreadyResolved` when another
        reviewer resolved it first; the caller's unit of work must then roll back.
        """
        ...


@runtime_checkable
class SourceRepository(Protocol):
    def add(self, source: SourceDocument) -> None: ...

    def get(self, source_id: str) -> SourceDocument | None: ...

    def list_for_link_check(self, *, limit: int) -> Sequence[SourceDocument]: ...

    def record_check(
        self, source_id: str, *, reliability_score: int, checked_at: datetime
    ) -> None: ...


@runtime_checkable
class FreshnessPolicyRepository(Protocol):
    def list_all(self) -> Sequence[FreshnessPolicy]: ...
