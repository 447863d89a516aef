"""Field-level diff between the published entity and a candidate."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from passagr.domain.errors import LookupFailure
from passagr.domain.model import ChangeType, DiffField, DiffKind, DiffOutput

if TYPE_CHECKING:
    from passagr.domain.model import CandidateEntity, PublishedEntity
    from passagr.domain.ports import EntityRepository

log = getLogger(__name__)

# Metadata carried next to the field values; never part of a content diff.
BOOKKEEPING_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "id",
        "entity_id",
        "entity_type",
        "source_id",
        "last_verified_at",
        "version",
        "status",
        "created_at",
        "updated_at",
    }
)


def diff_candidate(candidate: CandidateEntity, *, entities: EntityRepository) -> DiffOutput | None:
    """Diff ``candidate`` against its published counterpart.

    Returns ``None`` when the candidate updates an existing entity without
    changing any field; the pipeline stops there.
    """

    source_ids = (candidate.source_id,) if candidate.source_id else ()
    entity_label = candidate.entity_type.value

    if candidate.is_new:
        return _addition(candidate, source_ids)

    try:
        current = entities.get(candidate.entity_type, candidate.entity_id)
    except LookupFailure:
        log.exception(
            "Failed to fetch current %s %s; treating candidate as a new entity",
            entity_label,
            candidate.entity_id,
        )
        return _addition(candidate, source_ids, lookup_failed=True)

    if current is None:
        log.warning(
            "Candidate references unknown %s %s; treating it as a new entity",
            entity_label,
            candidate.entity_id,
        )
        return _addition(candidate, source_ids)

    return diff_against(current, candidate, source_ids=source_ids)


def diff_against(
    current: PublishedEntity,
    candidate: CandidateEntity,
    *,
    source_ids: tuple[str, ...] = (),
) -> DiffOutput | None:
    diff_fields = compute_diff_fields(current.fields, candidate.fields)
    if not diff_fields:
        log.info(
            "No changes detected for %s %s; stopping workflow",
            candidate.entity_type.value,
            current.id,
        )
        return None
    return DiffOutput(
        change_type=ChangeType.UPDATE,
        diff_summary=(
            f"Changes detected for {candidate.entity_type.value}: "
            f"{len(diff_fields)} fields modified."
        ),
        diff_fields=diff_fields,
        source_ids=source_ids,
        base_version=current.version,
    )


def compute_diff_fields(
    current: Mapping[str, Any],
    proposed: Mapping[str, Any],
) -> tuple[DiffField, ...]:
    """Structural diff of two field maps with dotted paths, in sorted key order."""

    collected: list[DiffField] = []
    _diff_mappings(
        _strip_bookkeeping(current),
        _strip_bookkeeping(proposed),
        prefix="",
        collected=collected,
    )
    return tuple(collected)


def _addition(
    candidate: CandidateEntity,
    source_ids: tuple[str, ...],
    *,
    lookup_failed: bool = False,
) -> DiffOutput:
    summary = f"New {candidate.entity_type.value} added."
    if lookup_failed:
        summary = f"{summary} Current state could not be read."
    return DiffOutput(
        change_type=ChangeType.ADD,
        diff_summary=summary,
        source_ids=source_ids,
        lookup_failed=lookup_failed,
    )


def _strip_bookkeeping(values: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if key not in BOOKKEEPING_FIELDS}


def _diff_mappings(
    current: Mapping[str, Any],
    proposed: Mapping[str, Any],
    *,
    prefix: str,
    collected: list[DiffField],
) -> None:
    for key in sorted(set(current) | set(proposed), key=str):
        path = f"{prefix}{key}"
        if key not in proposed:
            collected.append(DiffField(path, _copy(current[key]), None, DiffKind.REMOVED))
        elif key not in current:
            collected.append(DiffField(path, None, _copy(proposed[key]), DiffKind.ADDED))
        else:
            _diff_values(current[key], proposed[key], path=path, collected=collected)


def _diff_values(before: Any, after: Any, *, path: str, collected: list[DiffField]) -> None:
    if isinstance(before, Mapping) and isinstance(after, Mapping):
        _diff_mappings(before, after, prefix=f"{path}.", collected=collected)
        return
    if isinstance(before, list | tuple) or isinstance(after, list | tuple):
        if not _same(before, after):
            collected.append(DiffField(path, _copy(before), _copy(after), DiffKind.ARRAY))
        return
    if not _same(before, after):
        collected.append(DiffField(path, _copy(before), _copy(after), DiffKind.CHANGED))


def _same(before: Any, after: Any) -> bool:
    if isinstance(before, bool) != isinstance(after, bool):
        return False
    if isinstance(before, list | tuple) and isinstance(after, list | tuple):
        return len(before) == len(after) and all(map(_same, before, after))
    if isinstance(before, Mapping) and isinstance(after, Mapping):
        return before.keys() == after.keys() and all(
            _same(before[key], after[key]) for key in before
        )
    return bool(before == after)


def _copy(value: Any) -> Any:
    if isinstance(value, tuple):
        return copy.deepcopy(list(value))
    return copy.deepcopy(value)
