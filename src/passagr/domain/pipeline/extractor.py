"""Turn a source document into a candidate entity via the extraction model."""

from __future__ import annotations

from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, Any

from passagr.domain.errors import ExtractionFailure, LookupFailure
from passagr.domain.model import CandidateEntity, skeleton_for, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from passagr.domain.model import ExtractionTask, SourceDocument
    from passagr.domain.ports import ExtractionModel, SourceRepository

log = getLogger(__name__)


class Extractor:
    """Loads the source and asks the model to fill the per-type skeleton.

    Only keys present in the skeleton survive; values the model could not
    resolve keep the skeleton default. Nothing is written.
    """

    def __init__(
        self,
        model: ExtractionModel,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._model = model
        self._clock = clock

    def extract(self, task: ExtractionTask, *, sources: SourceRepository) -> CandidateEntity:
        source = self._load_source(task.source_id, sources)
        text = source.excerpt or ""
        if not text.strip():
            raise ExtractionFailure(
                f"Source {task.source_id} has no text to extract from",
                source_id=task.source_id,
            )

        skeleton = skeleton_for(task.entity_type)
        try:
            raw = self._model(
                entity_type=task.entity_type,
                skeleton=skeleton,
                text=text,
                source_url=source.url,
            )
        except ExtractionFailure:
            raise
        except Exception as exc:
            raise ExtractionFailure(
                f"Extraction model failed for source {task.source_id}: {exc}",
                source_id=task.source_id,
            ) from exc

        if not isinstance(raw, Mapping):
            raise ExtractionFailure(
                f"Extraction model returned {type(raw).__name__}, expected a JSON object",
                source_id=task.source_id,
            )

        fields = conform_to_skeleton(skeleton, raw)
        candidate = CandidateEntity(
            entity_type=task.entity_type,
            fields=fields,
            entity_id=task.entity_id,
            source_id=task.source_id,
            last_verified_at=self._clock(),
        )
        log.info(
            "Extracted %s candidate %r from source %s",
            task.entity_type.value,
            candidate.display_name,
            task.source_id,
        )
        return candidate

    def _load_source(self, source_id: str, sources: SourceRepository) -> SourceDocument:
        try:
            source = sources.get(source_id)
        except LookupFailure as exc:
            raise ExtractionFailure(
                f"Could not load source {source_id}: {exc}", source_id=source_id
            ) from exc
        if source is None:
            raise ExtractionFailure(f"Source not found: {source_id}", source_id=source_id)
        return source


def conform_to_skeleton(skeleton: Mapping[str, Any], raw: Mapping[str, Any]) -> dict[str, Any]:
    """Project ``raw`` onto ``skeleton``.

    Nested objects in the skeleton are projected recursively; a ``None``
    from the model keeps the unresolved default instead.
    """

    result: dict[str, Any] = {}
    for key, default in skeleton.items():
        value = raw.get(key)
        if value is None:
            result[key] = default
        elif isinstance(default, Mapping) and isinstance(value, Mapping):
            result[key] = conform_to_skeleton(default, value)
        else:
            result[key] = value
    return result
