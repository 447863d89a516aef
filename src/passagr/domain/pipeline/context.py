"""Collaborators shared by every run of the editorial pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from passagr.domain.pipeline.alerts import AlertWriter
    from passagr.domain.pipeline.extractor import Extractor
    from passagr.domain.pipeline.publisher import Publisher
    from passagr.domain.pipeline.router import EditorialRouter
    from passagr.domain.ports import EditorialUnitOfWork

type UnitOfWorkFactory = Callable[[], EditorialUnitOfWork]


@dataclass(frozen=True, slots=True)
class PipelineContext:
    """Explicitly injected services; each run opens its own units of work."""

    unit_of_work_factory: UnitOfWorkFactory
    extractor: Extractor
    router: EditorialRouter
    publisher: Publisher
    alert_writer: AlertWriter
