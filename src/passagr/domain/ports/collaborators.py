"""Ports for the model, search, cache and notification collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any

    from passagr.domain.model import Alert, EntityType


@runtime_checkable
class ExtractionModel(Protocol):
    """Turns source text into a JSON object following ``skeleton``.

    Implementations return the parsed JSON object and raise on transport or
    decoding failures; the extractor converts those into extraction failures.
    """

    def __call__(
        self,
        *,
        entity_type: EntityType,
        skeleton: Mapping[str, Any],
        text: str,
        source_url: str,
    ) -> object: ...


@runtime_checkable
class SearchIndexer(Protocol):
    """Keeps the search index in step with published entities; both calls are idempotent."""

    def sync(self, entity_type: EntityType, entity_id: str) -> None: ...

    def delete(self, entity_type: EntityType, entity_id: str) -> None: ...


@runtime_checkable
class CacheInvalidator(Protocol):
    def invalidate(self, path: str) -> None: ...


@runtime_checkable
class AlertSink(Protocol):
    def send(self, alert: Alert) -> None: ...


@dataclass(slots=True, frozen=True)
class LinkProbeResult:
    http_status: int | None = None
    error_message: str | None = None


@runtime_checkable
class LinkProbe(Protocol):
    """Checks whether a source URL still resolves."""

    def __call__(self, url: str) -> LinkProbeResult: ...
