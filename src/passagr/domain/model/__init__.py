"""Domain model for the editorial pipeline."""

from __future__ import annotations

from .editorial import ChangelogEntry, EditorialReview, ReviewStateError
from .entities import (
    CandidateEntity,
    ExtractionTask,
    FieldMap,
    FreshnessPolicy,
    PublishedEntity,
    SourceDocument,
    new_entity_id,
    utcnow,
)
from .enums import (
    ChangeType,
    Criticality,
    DiffKind,
    EntityStatus,
    EntityType,
    Impact,
    LinkStatus,
    PrepMode,
    ReviewStatus,
    RoutingAction,
    VisaPathType,
)
from .results import Alert, DiffField, DiffOutput, RoutingDecision, ValidationResult
from .schemas import skeleton_for

__all__ = [
    "Alert",
    "CandidateEntity",
    "ChangeType",
    "ChangelogEntry",
    "Criticality",
    "DiffField",
    "DiffKind",
    "DiffOutput",
    "EditorialReview",
    "EntityStatus",
    "EntityType",
    "ExtractionTask",
    "FieldMap",
    "FreshnessPolicy",
    "Impact",
    "LinkStatus",
    "PrepMode",
    "PublishedEntity",
    "ReviewStateError",
    "ReviewStatus",
    "RoutingAction",
    "RoutingDecision",
    "SourceDocument",
    "ValidationResult",
    "VisaPathType",
    "new_entity_id",
    "skeleton_for",
    "utcnow",
]
