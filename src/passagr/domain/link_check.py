"""Probe source URLs and adjust source reliability scores."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from http import HTTPStatus
from logging import getLogger
from typing import TYPE_CHECKING, Final

from passagr.domain.errors import StorageFailure
from passagr.domain.model import LinkStatus, utcnow
from passagr.domain.model.entities import MAX_RELIABILITY_SCORE
from passagr.domain.ports import LinkProbeResult

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from passagr.domain.model import SourceDocument
    from passagr.domain.pipeline.context import UnitOfWorkFactory
    from passagr.domain.ports import LinkProbe

log = getLogger(__name__)

DEFAULT_LINK_CHECK_LIMIT: Final[int] = 100
MIN_RELIABILITY_SCORE: Final[int] = 0


@dataclass(frozen=True, slots=True, kw_only=True)
class LinkCheckResult:
    source_id: str
    url: str
    status: LinkStatus
    old_reliability_score: int
    new_reliability_score: int
    http_status: int | None = None
    error_message: str | None = None
    storage_error: str | None = None

    @property
    def recorded(self) -> bool:
        return self.storage_error is None


@dataclass(slots=True)
class LinkCheckReport:
    results: list[LinkCheckResult] = field(default_factory=list[LinkCheckResult])

    @property
    def counts(self) -> Counter[LinkStatus]:
        return Counter(result.status for result in self.results)

    @property
    def unrecorded(self) -> list[LinkCheckResult]:
        """Results whose new score could not be written; their sources keep the old one."""
        return [result for result in self.results if not result.recorded]


def classify_probe(probe: LinkProbeResult, score: int) -> tuple[LinkStatus, int]:
    """Map a probe outcome onto a link status and the adjusted reliability score."""

    status_code = probe.http_status
    if status_code is None:
        return LinkStatus.ERROR, max(MIN_RELIABILITY_SCORE, score - 1)
    if status_code == HTTPStatus.NOT_FOUND:
        return LinkStatus.NOT_FOUND, max(MIN_RELIABILITY_SCORE, score - 2)
    if status_code >= HTTPStatus.BAD_REQUEST:
        return LinkStatus.ERROR, max(MIN_RELIABILITY_SCORE, score - 1)
    return LinkStatus.OK, min(MAX_RELIABILITY_SCORE, score + 1)


def check_links(
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    probe: LinkProbe,
    limit: int = DEFAULT_LINK_CHECK_LIMIT,
    clock: Callable[[], datetime] = utcnow,
) -> LinkCheckReport:
    """Check the least recently checked sources and record their new scores.

    Each score is committed on its own; a source whose write fails keeps its
    old score and is reported in :attr:`LinkCheckReport.unrecorded`.
    """

    report = LinkCheckReport()
    with unit_of_work_factory() as uow:
        sources = uow.repositories.sources.list_for_link_check(limit=limit)
    log.info("Checking %s source URLs...", len(sources))

    for source in sources:
        result = _check_source(source, probe)
        try:
            with unit_of_work_factory() as uow:
                uow.repositories.sources.record_check(
                    source.id,
                    reliability_score=result.new_reliability_score,
                    checked_at=clock(),
                )
                uow.commit()
        except StorageFailure as exc:
            log.exception("Failed to record link check for source %s", source.id)
            result = replace(result, storage_error=str(exc))
        report.results.append(result)

    counts = report.counts
    log.info(
        "Link check complete: %s OK, %s errors, %s not found, %s not recorded",
        counts[LinkStatus.OK],
        counts[LinkStatus.ERROR],
        counts[LinkStatus.NOT_FOUND],
        len(report.unrecorded),
    )
    return report


def _check_source(source: SourceDocument, probe: LinkProbe) -> LinkCheckResult:
    try:
        outcome = probe(source.url)
    except Exception as exc:
        log.exception("Link probe crashed for %s", source.url)
        outcome = LinkProbeResult(error_message=str(exc))

    status, new_score = classify_probe(outcome, source.reliability_score)
    if status is not LinkStatus.OK:
        log.warning(
            "Source %s (%s) failed its link check: %s",
            source.id,
            source.url,
            outcome.error_message or outcome.http_status,
        )
    return LinkCheckResult(
        source_id=source.id,
        url=source.url,
        status=status,
        old_reliability_score=source.reliability_score,
        new_reliability_score=new_score,
        http_status=outcome.http_status,
        error_message=outcome.error_message,
    )
