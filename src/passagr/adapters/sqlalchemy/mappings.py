"""SQLAlchemy mapping metadata for the editorial domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from functools import cache
from typing import Any, Final, cast

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from passagr.domain.model import (
    ChangelogEntry,
    ChangeType,
    Criticality,
    DiffField,
    EditorialReview,
    EntityStatus,
    EntityType,
    FreshnessPolicy,
    Impact,
    ReviewStatus,
    SourceDocument,
)
from passagr.domain.model.entities import DEFAULT_RELIABILITY_SCORE

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]
ENUM_LENGTH: Final[int] = 32


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class DiffFieldListType(TypeDecorator[list[DiffField]]):
    """Stores diff fields as a JSON array of ``{field, from, to, kind}`` objects."""

    impl = JSON
    cache_ok = True

    def process_bind_param(
        self, value: list[DiffField] | None, dialect: Dialect
    ) -> list[dict[str, Any]] | None:
        _ = dialect
        if value is None:
            return None
        return [item.to_dict() for item in value]

    def process_result_value(self, value: object, dialect: Dialect) -> list[DiffField]:
        _ = dialect
        if not isinstance(value, list):
            return []
        items = cast(list[Any], value)
        return [DiffField.from_dict(item) for item in items if isinstance(item, dict)]


def _enum_values(enum_cls: type[StrEnum]) -> list[str]:
    return [member.value for member in enum_cls]


def _enum_column_type(enum_cls: type[StrEnum]) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        values_callable=_enum_values,
        length=ENUM_LENGTH,
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Core tables -----------------------------------------------------------------


def _entity_table(name: str) -> Table:
    return Table(
        name,
        mapper_registry.metadata,
        Column("id", String(36), primary_key=True),
        Column("version", Integer, nullable=False, default=1),
        Column(
            "status",
            _enum_column_type(EntityStatus),
            nullable=False,
            default=EntityStatus.PUBLISHED,
        ),
        Column("name", String, nullable=True),
        Column("data", JSON, nullable=False),
        Column("last_verified_at", UTCDateTime(), nullable=True),
        Column("created_at", UTCDateTime(), nullable=False),
        Column("updated_at", UTCDateTime(), nullable=False),
    )


country_table = _entity_table(EntityType.COUNTRY.plural)
visa_path_table = _entity_table(EntityType.VISA_PATH.plural)
requirement_table = _entity_table(EntityType.REQUIREMENT.plural)
step_table = _entity_table(EntityType.STEP.plural)

ENTITY_TABLES: Final[dict[EntityType, Table]] = {
    EntityType.COUNTRY: country_table,
    EntityType.VISA_PATH: visa_path_table,
    EntityType.REQUIREMENT: requirement_table,
    EntityType.STEP: step_table,
}

source_table = Table(
    "sources",
    mapper_registry.metadata,
    Column("id", String(64), primary_key=True),
    Column("url", String, nullable=False),
    Column("title", String, nullable=True),
    Column("publisher", String, nullable=True),
    Column("content_type", String(128), nullable=True),
    Column("excerpt", Text, nullable=True),
    Column("fetched_at", UTCDateTime(), nullable=True),
    Column("last_checked_at", UTCDateTime(), nullable=True),
    Column(
        "reliability_score",
        Integer,
        nullable=False,
        default=DEFAULT_RELIABILITY_SCORE,
    ),
)

editorial_review_table = Table(
    "editorial_reviews",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("entity_type", _enum_column_type(EntityType), nullable=False),
    Column("entity_id", String(36), nullable=True),
    Column("status", _enum_column_type(ReviewStatus), nullable=False),
    Column("reason", String, nullable=False),
    Column("notes", Text, nullable=True),
    Column("proposed_data", JSON, nullable=False),
    Column("change_type", _enum_column_type(ChangeType), nullable=False),
    Column("diff_summary", Text, nullable=False),
    Column("diff_fields", DiffFieldListType(), nullable=False),
    Column("source_ids", JSON, nullable=False),
    Column("base_version", Integer, nullable=True),
    Column("impact", _enum_column_type(Impact), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("reviewer_uid", String, nullable=True),
    Column("resolved_at", UTCDateTime(), nullable=True),
    Index("ix_editorial_reviews_status", "status"),
)

changelog_table = Table(
    "changelogs",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("entity_type", _enum_column_type(EntityType), nullable=False),
    Column("entity_id", String(36), nullable=False),
    Column("change_type", _enum_column_type(ChangeType), nullable=False),
    Column("diff_summary", Text, nullable=False),
    Column("diff_fields", DiffFieldListType(), nullable=False),
    Column("created_by", String, nullable=False),
    Column("source_ids", JSON, nullable=False),
    Column("snapshot", JSON, nullable=False),
    Column("version", Integer, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_changelogs_entity", "entity_type", "entity_id"),
)

freshness_policy_table = Table(
    "freshness_policies",
    mapper_registry.metadata,
    Column("key", String(128), primary_key=True),
    Column("ttl_days", Integer, nullable=False),
    Column("criticality", _enum_column_type(Criticality), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(SourceDocument, source_table)
    mapper_registry.map_imperatively(EditorialReview, editorial_review_table)
    mapper_registry.map_imperatively(ChangelogEntry, changelog_table)
    mapper_registry.map_imperatively(FreshnessPolicy, freshness_policy_table)

    configure_mappers()
    return mapper_registry

