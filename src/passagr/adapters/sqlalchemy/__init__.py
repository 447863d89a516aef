"""SQLAlchemy adapter package for passagr."""

from __future__ import annotations

from .mappings import ENTITY_TABLES, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyChangelogRepository,
    SqlAlchemyEntityRepository,
    SqlAlchemyFreshnessPolicyRepository,
    SqlAlchemyReviewRepository,
    SqlAlchemySourceRepository,
)
from .unit_of_work import SqlAlchemyEditorialUnitOfWork, shutdown, startup

__all__ = [
    "ENTITY_TABLES",
    "SqlAlchemyChangelogRepository",
    "SqlAlchemyEditorialUnitOfWork",
    "SqlAlchemyEntityRepository",
    "SqlAlchemyFreshnessPolicyRepository",
    "SqlAlchemyReviewRepository",
    "SqlAlchemySourceRepository",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
