"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    COUNTRY = "country"
    VISA_PATH = "visa_path"
    REQUIREMENT = "requirement"
    STEP = "step"

    @property
    def plural(self) -> str:
        """Collection name used for tables, search collections and public paths."""
        if self is EntityType.COUNTRY:
            return "countries"
        return f"{self.value}s"


class Impact(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _IMPACT_RANK[self]

    def raised_to(self, other: Impact) -> Impact:
        """Return the higher of ``self`` and ``other``; impact never downgrades."""
        return other if other.rank > self.rank else self


_IMPACT_RANK = {Impact.LOW: 0, Impact.MEDIUM: 1, Impact.HIGH: 2}


class ChangeType(StrEnum):
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


class DiffKind(StrEnum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"
    ARRAY = "array"


class ReviewStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ReviewStatus.PENDING


class RoutingAction(StrEnum):
    PENDING_REVIEW = "pending_review"
    AUTO_PUBLISH = "auto_publish"


class EntityStatus(StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class VisaPathType(StrEnum):
    WORK = "work"
    STUDY = "study"
    FAMILY = "family"
    RETIREMENT = "retirement"
    ENTREPRENEUR = "entrepreneur"
    INVESTOR = "investor"
    DIGITAL_NOMAD = "digital_nomad"
    SPECIAL = "special"


class PrepMode(StrEnum):
    REMOTE_ONLY = "remote_only"
    IN_PERSON = "in_person"
    HYBRID = "hybrid"


class Criticality(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort order: most critical first."""
        return _CRITICALITY_RANK[self]


_CRITICALITY_RANK = {
    Criticality.CRITICAL: 0,
    Criticality.HIGH: 1,
    Criticality.MEDIUM: 2,
    Criticality.LOW: 3,
}


class LinkStatus(StrEnum):
    OK = "ok"
    ERROR = "error"
    NOT_FOUND = "not_found"
