"""Source documents, candidate entities and their published counterparts."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from .enums import Criticality, EntityStatus, EntityType

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_RELIABILITY_SCORE = 5
MAX_RELIABILITY_SCORE = 10

type FieldMap = dict[str, Any]


def new_entity_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class SourceDocument:
    """Raw fetched content that candidate entities are extracted from.

    The pipeline only reads sources; the link checker is the sole writer of
    ``reliability_score`` and ``last_checked_at``.
    """

    id: str
    url: str
    title: str | None = None
    publisher: str | None = None
    content_type: str | None = None
    excerpt: str | None = None
    fetched_at: datetime | None = None
    last_checked_at: datetime | None = None
    reliability_score: int = DEFAULT_RELIABILITY_SCORE


@dataclass(frozen=True, kw_only=True)
class CandidateEntity:
    """Proposed, not yet published, state of a country, visa path, requirement or step."""

    entity_type: EntityType
    fields: Mapping[str, Any]
    entity_id: str | None = None
    source_id: str | None = None
    last_verified_at: datetime = field(default_factory=utcnow)

    @property
    def is_new(self) -> bool:
        return self.entity_id is None

    @property
    def display_name(self) -> str:
        for key in ("name", "label", "title", "iso2"):
            value = self.fields.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return self.entity_id or "unnamed"

    def field_values(self) -> FieldMap:
        """Return a deep copy of the field values; callers may mutate it freely."""
        return copy.deepcopy(dict(self.fields))

    def to_snapshot(self) -> FieldMap:
        """Serialise the full candidate, metadata included, for review storage."""
        snapshot = self.field_values()
        snapshot["entity_type"] = self.entity_type.value
        snapshot["entity_id"] = self.entity_id
        snapshot["source_id"] = self.source_id
        snapshot["last_verified_at"] = self.last_verified_at.isoformat()
        return snapshot

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Any]) -> CandidateEntity:
        data = copy.deepcopy(dict(snapshot))
        entity_type = EntityType(data.pop("entity_type"))
        entity_id = data.pop("entity_id", None)
        source_id = data.pop("source_id", None)
        raw_verified = data.pop("last_verified_at", None)
        verified = (
            datetime.fromisoformat(raw_verified) if isinstance(raw_verified, str) else utcnow()
        )
        return cls(
            entity_type=entity_type,
            fields=data,
            entity_id=entity_id,
            source_id=source_id,
            last_verified_at=verified,
        )


@dataclass(eq=False, kw_only=True)
class PublishedEntity:
    """Current published state of an entity as held by the storage collaborator."""

    id: str
    entity_type: EntityType
    fields: FieldMap
    version: int = 1
    status: EntityStatus = EntityStatus.PUBLISHED
    last_verified_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def name(self) -> str | None:
        value = self.fields.get("name")
        return value if isinstance(value, str) else None


@dataclass(eq=False, kw_only=True)
class FreshnessPolicy:
    """TTL for a field key; drives re-extraction of stale published entities."""

    key: str
    ttl_days: int
    criticality: Criticality


@dataclass(frozen=True, kw_only=True)
class ExtractionTask:
    """Request to (re-)extract an entity from a source document."""

    source_id: str
    entity_type: EntityType
    entity_id: str | None = None
