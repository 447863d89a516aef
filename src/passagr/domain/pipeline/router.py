"""Editorial routing: auto-publish or hold a change for human review."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from passagr.domain.errors import StorageFailure
from passagr.domain.model import (
    ChangeType,
    EditorialReview,
    Impact,
    RoutingAction,
    RoutingDecision,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from passagr.domain.model import CandidateEntity, DiffOutput, ValidationResult
    from passagr.domain.ports import ReviewRepository

log = getLogger(__name__)

REASON_NEW_ENTITY: Final[str] = "New entity."
REASON_HIGH_IMPACT: Final[str] = "High impact validation error."
REASON_CRITICAL_FIELD: Final[str] = "Critical safety field change."
LOOKUP_FAILED_NOTE: Final[str] = (
    "Current state could not be read; verify this is not an existing entity."
)


@dataclass(frozen=True, slots=True)
class CriticalFieldSet:
    """Dotted field paths whose change always needs a human decision.

    A diff path matches a critical path when it equals it or continues it
    at a segment boundary: ``fees.0.amount`` matches ``fees`` while
    ``fees_note`` does not.
    """

    paths: frozenset[str]

    @classmethod
    def from_mapping(cls, config: Mapping[str, Iterable[str]]) -> CriticalFieldSet:
        """Build the union of every entity type's critical paths."""
        return cls(frozenset(path for paths in config.values() for path in paths))

    def matches(self, field_path: str) -> bool:
        return any(
            field_path == critical or field_path.startswith(f"{critical}.")
            for critical in self.paths
        )

    def matching(self, field_paths: Iterable[str]) -> tuple[str, ...]:
        return tuple(path for path in field_paths if self.matches(path))


class EditorialRouter:
    """Decides whether a diff needs review and records the pending review if so."""

    def __init__(self, critical_fields: CriticalFieldSet) -> None:
        self._critical_fields = critical_fields

    def decide(self, diff: DiffOutput, validation: ValidationResult) -> RoutingDecision:
        reason = self._review_reason(diff, validation)
        if reason is not None:
            return RoutingDecision(
                requires_review=True,
                action=RoutingAction.PENDING_REVIEW,
                impact=validation.impact,
                reason=reason,
            )
        return RoutingDecision(
            requires_review=False,
            action=RoutingAction.AUTO_PUBLISH,
            impact=validation.impact,
            notify=validation.impact is Impact.MEDIUM,
        )

    def route(
        self,
        candidate: CandidateEntity,
        diff: DiffOutput,
        validation: ValidationResult,
        *,
        reviews: ReviewRepository,
    ) -> RoutingDecision:
        """Decide, and persist a pending review when one is required.

        Raises :class:`StorageFailure` when the review cannot be stored; the
        change is then neither routed nor published.
        """

        decision = self.decide(diff, validation)
        if not decision.requires_review:
            log.info(
                "Auto-publishing %s %s (impact=%s)",
                candidate.entity_type.value,
                candidate.entity_id or "<new>",
                decision.impact.value,
            )
            return decision

        review = self.build_review(candidate, diff, validation, reason=decision.reason or "")
        try:
            reviews.add(review)
        except StorageFailure:
            log.exception("Failed to create editorial review for %s", candidate.display_name)
            raise
        log.info(
            "Routed %s %s to editorial review %s: %s",
            candidate.entity_type.value,
            candidate.entity_id or "<new>",
            review.id,
            decision.reason,
        )
        return RoutingDecision(
            requires_review=True,
            action=decision.action,
            impact=decision.impact,
            reason=decision.reason,
            review_id=review.id,
        )

    def build_review(
        self,
        candidate: CandidateEntity,
        diff: DiffOutput,
        validation: ValidationResult,
        *,
        reason: str,
    ) -> EditorialReview:
        notes = f"Requires review. Reason: {reason}"
        if diff.lookup_failed:
            notes = f"{notes} {LOOKUP_FAILED_NOTE}"
        if validation.errors:
            notes = f"{notes} Errors: {'; '.join(validation.errors)}"
        return EditorialReview(
            entity_type=candidate.entity_type,
            entity_id=candidate.entity_id,
            reason=reason,
            notes=notes,
            proposed_data=candidate.to_snapshot(),
            change_type=diff.change_type,
            diff_summary=diff.diff_summary,
            diff_fields=list(diff.diff_fields),
            source_ids=list(diff.source_ids),
            base_version=diff.base_version,
            impact=validation.impact,
        )

    def _review_reason(self, diff: DiffOutput, validation: ValidationResult) -> str | None:
        if diff.change_type is ChangeType.ADD:
            return REASON_NEW_ENTITY
        if validation.impact is Impact.HIGH:
            return REASON_HIGH_IMPACT
        if self._critical_fields.matching(diff.field_names):
            return REASON_CRITICAL_FIELD
        return None
