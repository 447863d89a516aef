from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from passagr.adapters.sqlalchemy import start_mappers
from passagr.adapters.sqlalchemy.migrations import upgrade_head
from passagr.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyEditorialUnitOfWork,
    shutdown,
    startup,
)
from passagr.config import EditorialConfig, load_critical_fields
from tests.helpers.editorial import (
    InMemoryStore,
    RecordingAlertSink,
    RecordingCacheInvalidator,
    RecordingSearchIndexer,
)

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    # One shared connection so worker threads see the same in-memory database.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyEditorialUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyEditorialUnitOfWork:
        return SqlAlchemyEditorialUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def search() -> RecordingSearchIndexer:
    return RecordingSearchIndexer()


@pytest.fixture
def cache() -> RecordingCacheInvalidator:
    return RecordingCacheInvalidator()


@pytest.fixture
def alert_sink() -> RecordingAlertSink:
    return RecordingAlertSink()


@pytest.fixture(scope="session")
def editorial_config() -> EditorialConfig:
    return EditorialConfig(
        critical_fields=load_critical_fields(),
        reviewers=frozenset({"editor-1", "editor-2"}),
        publisher_attribution="automated-publisher",
    )
