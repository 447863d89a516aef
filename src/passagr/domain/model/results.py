"""Value objects exchanged between pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .enums import ChangeType, DiffKind, Impact, RoutingAction

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationResult:
    valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    impact: Impact = Impact.LOW


@dataclass(frozen=True, slots=True)
class DiffField:
    """One structural difference between the published and the candidate entity."""

    field: str
    from_value: Any = None
    to_value: Any = None
    kind: DiffKind = DiffKind.CHANGED

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "from": self.from_value,
            "to": self.to_value,
            "kind": self.kind.value,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> DiffField:
        return cls(
            field=str(payload["field"]),
            from_value=payload.get("from"),
            to_value=payload.get("to"),
            kind=DiffKind(payload.get("kind", DiffKind.CHANGED.value)),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class DiffOutput:
    change_type: ChangeType
    diff_summary: str
    diff_fields: tuple[DiffField, ...] = ()
    source_ids: tuple[str, ...] = ()
    base_version: int | None = None
    lookup_failed: bool = False

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(diff.field for diff in self.diff_fields)


@dataclass(frozen=True, slots=True, kw_only=True)
class RoutingDecision:
    requires_review: bool
    action: RoutingAction
    impact: Impact
    reason: str | None = None
    notify: bool = False
    review_id: UUID | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Alert:
    notification: str
    email_summary: str
    entity_label: str
    fields: tuple[str, ...] = ()
