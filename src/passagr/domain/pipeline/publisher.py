"""Commit an approved change and signal the downstream collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from passagr.domain.errors import PublishFailure, StorageFailure, VersionConflict
from passagr.domain.model import ChangeType, ChangelogEntry, new_entity_id, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from passagr.domain.model import CandidateEntity, DiffOutput, EntityType, PublishedEntity
    from passagr.domain.ports import CacheInvalidator, EditorialUnitOfWork, SearchIndexer

log = getLogger(__name__)


def public_path(entity_type: EntityType, entity_id: str) -> str:
    """Cache path under which the public API serves an entity."""

    return f"/public/{entity_type.plural}/{entity_id}"


@dataclass(frozen=True, slots=True)
class PublishResult:
    entity: PublishedEntity
    changelog_entry: ChangelogEntry
    failed_signals: tuple[str, ...] = ()

    @property
    def fully_signalled(self) -> bool:
        return not self.failed_signals


class Publisher:
    """Upserts the entity and its changelog entry in one unit of work.

    The search and cache signals run after the commit. Their failures are
    logged and reported on the :class:`PublishResult`; the commit stands.
    """

    def __init__(
        self,
        *,
        search: SearchIndexer,
        cache: CacheInvalidator,
        attribution: str,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._search = search
        self._cache = cache
        self._attribution = attribution
        self._clock = clock

    def publish(
        self,
        candidate: CandidateEntity,
        diff: DiffOutput,
        *,
        uow: EditorialUnitOfWork,
        created_by: str | None = None,
        before_commit: Callable[[EditorialUnitOfWork], None] | None = None,
    ) -> PublishResult:
        """Write the entity and its changelog entry, then signal search and cache.

        ``before_commit`` runs inside the same unit of work, so any extra write
        it makes (for instance resolving a review) commits or rolls back with
        the publish.
        """

        with uow:
            try:
                entity, entry = self._write(candidate, diff, uow=uow, created_by=created_by)
                if before_commit is not None:
                    before_commit(uow)
                uow.commit()
            except VersionConflict:
                log.warning(
                    "Version conflict publishing %s %s; re-run the pipeline",
                    candidate.entity_type.value,
                    candidate.entity_id,
                )
                raise
            except StorageFailure as exc:
                log.exception(
                    "Failed to publish %s %s", candidate.entity_type.value, candidate.entity_id
                )
                raise PublishFailure(
                    f"Failed to publish {candidate.entity_type.value} "
                    f"{candidate.entity_id or '<new>'}: {exc}"
                ) from exc

        log.info(
            "Published %s %s at version %s (%s)",
            entity.entity_type.value,
            entity.id,
            entity.version,
            diff.change_type.value,
        )
        failed_signals = self._signal(entity)
        return PublishResult(entity=entity, changelog_entry=entry, failed_signals=failed_signals)

    def _write(
        self,
        candidate: CandidateEntity,
        diff: DiffOutput,
        *,
        uow: EditorialUnitOfWork,
        created_by: str | None,
    ) -> tuple[PublishedEntity, ChangelogEntry]:
        entities = uow.repositories.entities
        fields = candidate.field_values()
        verified_at = self._clock()

        if diff.change_type is ChangeType.ADD:
            entity = entities.insert(
                candidate.entity_type,
                candidate.entity_id or new_entity_id(),
                fields,
                verified_at=verified_at,
            )
        elif diff.change_type is ChangeType.UPDATE:
            if candidate.entity_id is None or diff.base_version is None:
                raise StorageFailure("Update diff is missing its entity id or base version")
            entity = entities.update(
                candidate.entity_type,
                candidate.entity_id,
                fields,
                expected_version=diff.base_version,
                verified_at=verified_at,
            )
        else:
            raise StorageFailure(f"Unsupported change type: {diff.change_type.value}")

        entry = ChangelogEntry(
            entity_type=entity.entity_type,
            entity_id=entity.id,
            change_type=diff.change_type,
            diff_summary=diff.diff_summary,
            diff_fields=list(diff.diff_fields),
            created_by=created_by or self._attribution,
            source_ids=list(diff.source_ids),
            snapshot=dict(entity.fields),
            version=entity.version,
            created_at=verified_at,
        )
        uow.repositories.changelog.append(entry)
        return entity, entry

    def _signal(self, entity: PublishedEntity) -> tuple[str, ...]:
        failed: list[str] = []
        try:
            self._search.sync(entity.entity_type, entity.id)
        except Exception:
            log.exception("Search resync failed for %s %s", entity.entity_type.value, entity.id)
            failed.append("search")

        path = public_path(entity.entity_type, entity.id)
        try:
            self._cache.invalidate(path)
        except Exception:
            log.exception("Cache invalidation failed for %s", path)
            failed.append("cache")
        return tuple(failed)
