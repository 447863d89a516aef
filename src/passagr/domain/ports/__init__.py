"""Domain port definitions for adapters."""

from __future__ import annotations

from .collaborators import (
    AlertSink,
    CacheInvalidator,
    ExtractionModel,
    LinkProbe,
    LinkProbeResult,
    SearchIndexer,
)
from .persistence import (
    ChangelogRepository,
    EntityRepository,
    FreshnessPolicyRepository,
    ReviewRepository,
    SourceRepository,
)
from .unit_of_work import (
    EditorialRepositories,
    EditorialUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AlertSink",
    "CacheInvalidator",
    "ChangelogRepository",
    "EditorialRepositories",
    "EditorialUnitOfWork",
    "EntityRepository",
    "ExtractionModel",
    "FreshnessPolicyRepository",
    "LinkProbe",
    "LinkProbeResult",
    "RepositoryCollection",
    "ReviewRepository",
    "SearchIndexer",
    "SourceRepository",
    "UnitOfWork",
]
