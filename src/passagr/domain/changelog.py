"""Rebuild published field values from the append-only changelog."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from passagr.domain.model import ChangeType, DiffKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from passagr.domain.model import ChangelogEntry, DiffField, FieldMap


class ChangelogReplayError(ValueError):
    """Raised when a changelog cannot be replayed into a consistent state."""


def apply_diff_fields(values: FieldMap, diff_fields: Iterable[DiffField]) -> FieldMap:
    """Return a copy of ``values`` with ``diff_fields`` applied along their dotted paths."""

    result = copy.deepcopy(values)
    for diff in diff_fields:
        *parents, leaf = diff.field.split(".")
        target: dict[str, Any] = result
        for segment in parents:
            child = target.get(segment)
            if not isinstance(child, dict):
                child = {}
                target[segment] = child
            target = child
        if diff.kind is DiffKind.REMOVED:
            target.pop(leaf, None)
        else:
            target[leaf] = copy.deepcopy(diff.to_value)
    return result


def replay_changelog(entries: Iterable[ChangelogEntry]) -> FieldMap:
    """Fold changelog entries, oldest first, into the entity's field values.

    Add entries contribute their snapshot; update entries apply their diff
    to the state accumulated so far.
    """

    ordered = sorted(entries, key=lambda entry: (entry.version, entry.created_at))
    state: FieldMap | None = None
    for entry in ordered:
        if entry.change_type is ChangeType.ADD:
            state = copy.deepcopy(entry.snapshot)
        elif entry.change_type is ChangeType.UPDATE:
            if state is None:
                raise ChangelogReplayError(
                    f"Update entry {entry.id} for {entry.entity_id} precedes any add entry"
                )
            state = apply_diff_fields(state, entry.diff_fields)
        else:
            state = {}
    return state if state is not None else {}
