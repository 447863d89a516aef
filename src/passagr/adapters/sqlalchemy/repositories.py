"""Repository implementations backed by SQLAlchemy sessions.

Read errors surface as :class:`LookupFailure`, write errors as
:class:`StorageFailure`; raw ``SQLAlchemyError`` never leaves this module.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from passagr.adapters.sqlalchemy.mappings import (
    ENTITY_TABLES,
    changelog_table,
    editorial_review_table,
    freshness_policy_table,
    source_table,
)
from passagr.domain.errors import (
    LookupFailure,
    ReviewAlreadyResolved,
    StorageFailure,
    VersionConflict,
)
from passagr.domain.model import (
    ChangelogEntry,
    EditorialReview,
    EntityStatus,
    EntityType,
    FreshnessPolicy,
    PublishedEntity,
    ReviewStatus,
    SourceDocument,
    utcnow,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy import Row, Select
    from sqlalchemy.orm import Session

    from passagr.domain.model import FieldMap

_NAME_KEYS = ("name", "label", "title")


def _display_name(fields: FieldMap) -> str | None:
    for key in _NAME_KEYS:
        value = fields.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class SqlAlchemyEntityRepository:
    """Published entities, one Core table per entity type."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, entity_type: EntityType, entity_id: str) -> PublishedEntity | None:
        table = ENTITY_TABLES[entity_type]
        stmt = select(table).where(table.c.id == entity_id)
        try:
            row = self.session.execute(stmt).one_or_none()
        except SQLAlchemyError as exc:
            raise LookupFailure(
                f"Failed to read {entity_type.value} {entity_id}: {exc}"
            ) from exc
        return None if row is None else _to_entity(entity_type, row)

    def list_by_type(self, entity_type: EntityType) -> Sequence[PublishedEntity]:
        table = ENTITY_TABLES[entity_type]
        stmt = (
            select(table)
            .where(table.c.status == EntityStatus.PUBLISHED)
            .order_by(table.c.created_at, table.c.id)
        )
        try:
            rows = self.session.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise LookupFailure(f"Failed to list {entity_type.plural}: {exc}") from exc
        return [_to_entity(entity_type, row) for row in rows]

    def insert(
        self,
        entity_type: EntityType,
        entity_id: str,
        fields: FieldMap,
        *,
        verified_at: datetime,
    ) -> PublishedEntity:
        existing = self._current_version(entity_type, entity_id)
        if existing is not None:
            raise VersionConflict(
                entity_type, entity_id, expected_version=None, actual_version=existing
            )

        table = ENTITY_TABLES[entity_type]
        now = utcnow()
        values: dict[str, Any] = {
            "id": entity_id,
            "version": 1,
            "status": EntityStatus.PUBLISHED,
            "name": _display_name(fields),
            "data": copy.deepcopy(fields),
            "last_verified_at": verified_at,
            "created_at": now,
            "updated_at": now,
        }
        try:
            self.session.execute(insert(table).values(**values))
        except IntegrityError as exc:
            raise VersionConflict(
                entity_type, entity_id, expected_version=None, actual_version=None
            ) from exc
        except SQLAlchemyError as exc:
            raise StorageFailure(
                f"Failed to insert {entity_type.value} {entity_id}: {exc}"
            ) from exc
        return PublishedEntity(
            id=entity_id,
            entity_type=entity_type,
            fields=copy.deepcopy(fields),
            version=1,
            last_verified_at=verified_at,
            created_at=now,
            updated_at=now,
        )

    def update(
        self,
        entity_type: EntityType,
        entity_id: str,
        fields: FieldMap,
        *,
        expected_version: int,
        verified_at: datetime,
    ) -> PublishedEntity:
        table = ENTITY_TABLES[entity_type]
        stmt = (
            update(table)
            .where(table.c.id == entity_id)
            .where(table.c.version == expected_version)
            .values(
                version=expected_version + 1,
                status=EntityStatus.PUBLISHED,
                name=_display_name(fields),
                data=copy.deepcopy(fields),
                last_verified_at=verified_at,
                updated_at=utcnow(),
            )
        )
        try:
            result = self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageFailure(
                f"Failed to update {entity_type.value} {entity_id}: {exc}"
            ) from exc
        if result.rowcount != 1:  # pyright: ignore[reportAttributeAccessIssue]
            raise VersionConflict(
                entity_type,
                entity_id,
                expected_version=expected_version,
                actual_version=self._current_version(entity_type, entity_id),
            )
        updated = self.get(entity_type, entity_id)
        if updated is None:
            raise StorageFailure(f"{entity_type.value} {entity_id} vanished during update")
        return updated

    def _current_version(self, entity_type: EntityType, entity_id: str) -> int | None:
        table = ENTITY_TABLES[entity_type]
        stmt = select(table.c.version).where(table.c.id == entity_id)
        try:
            return self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageFailure(
                f"Failed to read version of {entity_type.value} {entity_id}: {exc}"
            ) from exc


def _to_entity(entity_type: EntityType, row: Row[Any]) -> PublishedEntity:
    return PublishedEntity(
        id=row.id,
        entity_type=entity_type,
        fields=copy.deepcopy(row.data),
        version=row.version,
        status=row.status,
        last_verified_at=row.last_verified_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlAlchemyChangelogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def append(self, entry: ChangelogEntry) -> None:
        self.session.add(entry)

    def list_for_entity(self, entity_type: EntityType, entity_id: str) -> Sequence[ChangelogEntry]:
        stmt = (
            select(ChangelogEntry)
            .where(changelog_table.c.entity_type == entity_type)
            .where(changelog_table.c.entity_id == entity_id)
            .order_by(changelog_table.c.version, changelog_table.c.created_at)
        )
        return _read(self.session, stmt, f"changelog of {entity_type.value} {entity_id}")


class SqlAlchemyReviewRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, review: EditorialReview) -> None:
        try:
            self.session.add(review)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Failed to create editorial review: {exc}") from exc

    def get(self, review_id: UUID) -> EditorialReview | None:
        try:
            return self.session.get(EditorialReview, review_id)
        except SQLAlchemyError as exc:
            raise LookupFailure(f"Failed to read review {review_id}: {exc}") from exc

    def list_by_status(self, status: ReviewStatus) -> Sequence[EditorialReview]:
        stmt = (
            select(EditorialReview)
            .where(editorial_review_table.c.status == status)
            .order_by(editorial_review_table.c.created_at)
        )
        return _read(self.session, stmt, f"{status.value} reviews")

    def resolve(self, review: EditorialReview) -> None:
        # The guarded UPDATE is the only write for this review.
        if review in self.session:
            self.session.expunge(review)
        stmt = (
            update(editorial_review_table)
            .where(
                editorial_review_table.c.id == review.id,
                editorial_review_table.c.status == ReviewStatus.PENDING,
            )
            .values(
                status=review.status,
                reviewer_uid=review.reviewer_uid,
                notes=review.notes,
                resolved_at=review.resolved_at,
            )
        )
        try:
            result = self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Failed to update review {review.id}: {exc}") from exc
        if result.rowcount != 1:  # pyright: ignore[reportAttributeAccessIssue]
            raise ReviewAlreadyResolved(f"Review {review.id} is no longer pending")


class SqlAlchemySourceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, source: SourceDocument) -> None:
        self.session.add(source)

    def get(self, source_id: str) -> SourceDocument | None:
        try:
            return self.session.get(SourceDocument, source_id)
        except SQLAlchemyError as exc:
            raise LookupFailure(f"Failed to read source {source_id}: {exc}") from exc

    def list_for_link_check(self, *, limit: int) -> Sequence[SourceDocument]:
        stmt = (
            select(SourceDocument)
            .order_by(source_table.c.last_checked_at.asc().nulls_first(), source_table.c.id)
            .limit(limit)
        )
        return _read(self.session, stmt, "sources due for a link check")

    def record_check(
        self, source_id: str, *, reliability_score: int, checked_at: datetime
    ) -> None:
        stmt = (
            update(SourceDocument)
            .where(source_table.c.id == source_id)
            .values(reliability_score=reliability_score, last_checked_at=checked_at)
        )
        try:
            self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Failed to record link check for {source_id}: {exc}") from exc


class SqlAlchemyFreshnessPolicyRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self) -> Sequence[FreshnessPolicy]:
        stmt = select(FreshnessPolicy).order_by(freshness_policy_table.c.key)
        return _read(self.session, stmt, "freshness policies")


def _read(session: Session, stmt: Select[Any], what: str) -> list[Any]:
    try:
        return list(session.execute(stmt).scalars().all())
    except SQLAlchemyError as exc:
        raise LookupFailure(f"Failed to read {what}: {exc}") from exc
