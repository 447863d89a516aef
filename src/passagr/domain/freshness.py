"""Find published entities whose data has outlived its freshness policy."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from passagr.domain.model import EntityType, ExtractionTask, skeleton_for, utcnow

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from passagr.domain.model import (
        ChangelogEntry,
        Criticality,
        FreshnessPolicy,
        PublishedEntity,
    )
    from passagr.domain.pipeline.context import UnitOfWorkFactory

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class StaleEntity:
    entity_type: EntityType
    entity_id: str
    name: str | None
    last_verified_at: datetime
    policy_key: str
    ttl_days: int
    criticality: Criticality
    days_stale: int


@dataclass(slots=True)
class FreshnessReport:
    stale: list[StaleEntity] = field(default_factory=list[StaleEntity])
    tasks: list[ExtractionTask] = field(default_factory=list[ExtractionTask])
    without_source: int = 0


def scan_stale_entities(
    policies: Iterable[FreshnessPolicy],
    entities: Iterable[PublishedEntity],
    *,
    now: datetime,
) -> list[StaleEntity]:
    """Return stale entities, most critical first, then most overdue first.

    A policy applies to an entity when its key names one of the entity
    type's fields. An entity governed by several overdue policies is
    reported once, under the most critical of them.
    """

    policy_list = list(policies)
    stale: list[StaleEntity] = []
    for entity in entities:
        if entity.last_verified_at is None:
            continue
        days_old = (now - entity.last_verified_at).days
        overdue = [
            policy
            for policy in _policies_for(entity.entity_type, policy_list)
            if days_old > policy.ttl_days
        ]
        if not overdue:
            continue
        policy = min(overdue, key=lambda item: (item.criticality.rank, item.ttl_days))
        stale.append(
            StaleEntity(
                entity_type=entity.entity_type,
                entity_id=entity.id,
                name=entity.name,
                last_verified_at=entity.last_verified_at,
                policy_key=policy.key,
                ttl_days=policy.ttl_days,
                criticality=policy.criticality,
                days_stale=days_old - policy.ttl_days,
            )
        )
    stale.sort(key=lambda item: (item.criticality.rank, -item.days_stale))
    return stale


def plan_reextraction(
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    now: datetime | None = None,
) -> FreshnessReport:
    """Scan every published entity and build re-extraction tasks for the stale ones.

    The source of a task is the most recent source recorded in the entity's
    changelog; entities without one are counted but get no task.
    """

    effective_now = now or utcnow()
    report = FreshnessReport()
    with unit_of_work_factory() as uow:
        policies = uow.repositories.freshness_policies.list_all()
        log.info("Found %s freshness policies", len(policies))
        entities = [
            entity
            for entity_type in EntityType
            for entity in uow.repositories.entities.list_by_type(entity_type)
        ]
        report.stale = scan_stale_entities(policies, entities, now=effective_now)

        for item in report.stale:
            source_id = _latest_source(
                uow.repositories.changelog.list_for_entity(item.entity_type, item.entity_id)
            )
            if source_id is None:
                log.warning(
                    "No source recorded for stale %s %s; skipping re-extraction",
                    item.entity_type.value,
                    item.entity_id,
                )
                report.without_source += 1
                continue
            report.tasks.append(
                ExtractionTask(
                    source_id=source_id,
                    entity_type=item.entity_type,
                    entity_id=item.entity_id,
                )
            )

    for index, item in enumerate(report.stale, start=1):
        log.info(
            "%s. [%s] %s: %s (%s days overdue)",
            index,
            item.criticality.value,
            item.entity_type.value,
            item.name or item.entity_id,
            item.days_stale,
        )
    log.info(
        "Found %s stale entities; %s re-extraction tasks planned",
        len(report.stale),
        len(report.tasks),
    )
    return report


def _policies_for(
    entity_type: EntityType, policies: Sequence[FreshnessPolicy]
) -> list[FreshnessPolicy]:
    fields = skeleton_for(entity_type)
    return [policy for policy in policies if policy.key.split(".", 1)[0] in fields]


def _latest_source(entries: Iterable[ChangelogEntry]) -> str | None:
    with_sources = [entry for entry in entries if entry.source_ids]
    if not with_sources:
        return None
    latest = max(with_sources, key=lambda entry: (entry.created_at, entry.version))
    return latest.source_ids[-1]
