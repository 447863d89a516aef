"""Editorial review queue entries and the append-only changelog."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from .entities import utcnow
from .enums import ChangeType, EntityType, Impact, ReviewStatus
from .results import DiffField

if TYPE_CHECKING:
    from datetime import datetime


class ReviewStateError(ValueError):
    """Raised when a review is resolved more than once."""


@dataclass(eq=False, kw_only=True)
class EditorialReview:
    """Durable record of a change awaiting (or past) human review.

    A review leaves ``pending`` exactly once, through :meth:`approve` or
    :meth:`reject`. Reviews are never deleted; they are the audit trail for
    every change that needed a human decision.
    """

    id: UUID = field(default_factory=uuid4)
    entity_type: EntityType
    entity_id: str | None = None
    status: ReviewStatus = ReviewStatus.PENDING
    reason: str
    notes: str | None = None
    proposed_data: dict[str, Any] = field(default_factory=dict[str, Any])
    change_type: ChangeType
    diff_summary: str
    diff_fields: list[DiffField] = field(default_factory=list["DiffField"])
    source_ids: list[str] = field(default_factory=list[str])
    base_version: int | None = None
    impact: Impact = Impact.LOW
    created_at: datetime = field(default_factory=utcnow)
    reviewer_uid: str | None = None
    resolved_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return not self.status.is_terminal

    def approve(self, *, reviewer_uid: str, notes: str | None = None) -> None:
        self._resolve(ReviewStatus.APPROVED, reviewer_uid=reviewer_uid, notes=notes)

    def reject(self, *, reviewer_uid: str, notes: str | None = None) -> None:
        self._resolve(ReviewStatus.REJECTED, reviewer_uid=reviewer_uid, notes=notes)

    def _resolve(self, status: ReviewStatus, *, reviewer_uid: str, notes: str | None) -> None:
        if not self.is_pending:
            raise ReviewStateError(f"Review {self.id} is already {self.status.value}")
        self.status = status
        self.reviewer_uid = reviewer_uid
        if notes is not None:
            self.notes = notes
        self.resolved_at = utcnow()


@dataclass(eq=False, kw_only=True)
class ChangelogEntry:
    """Immutable record of one published change."""

    id: UUID = field(default_factory=uuid4)
    entity_type: EntityType
    entity_id: str
    change_type: ChangeType
    diff_summary: str
    diff_fields: list[DiffField] = field(default_factory=list["DiffField"])
    created_by: str
    source_ids: list[str] = field(default_factory=list[str])
    snapshot: dict[str, Any] = field(default_factory=dict[str, Any])
    version: int = 1
    created_at: datetime = field(default_factory=utcnow)
