"""Editor notifications for auto-published changes with medium or high impact."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from passagr.domain.model import Alert, Impact

if TYPE_CHECKING:
    from passagr.domain.model import CandidateEntity, DiffOutput
    from passagr.domain.ports import AlertSink

log = getLogger(__name__)

MAX_ALERT_LENGTH: Final[int] = 200
MAX_NAMED_FIELDS: Final[int] = 3
ELLIPSIS: Final[str] = "…"

_ALERTING_IMPACTS: Final[frozenset[Impact]] = frozenset({Impact.MEDIUM, Impact.HIGH})


def truncate_words(text: str, limit: int = MAX_ALERT_LENGTH) -> str:
    """Shorten ``text`` to at most ``limit`` characters, cutting between words."""

    if len(text) <= limit:
        return text
    cut = text[: limit - len(ELLIPSIS)]
    boundary = cut.rfind(" ")
    if boundary > 0:
        cut = cut[:boundary]
    return cut.rstrip(" ,;:.") + ELLIPSIS


def compose_alert(candidate: CandidateEntity, diff: DiffOutput) -> Alert:
    label = f"{candidate.display_name} {candidate.entity_type.value}"
    fields = diff.field_names[:MAX_NAMED_FIELDS]
    notification = f"A change has been published for {label}: {diff.diff_summary}"
    if fields:
        email_summary = (
            f"A new update for the {label} has been published. The changes affect key "
            f"fields like {', '.join(fields)} and have been automatically approved."
        )
    else:
        email_summary = (
            f"A new update for the {label} has been published and has been "
            "automatically approved."
        )
    return Alert(
        notification=truncate_words(notification),
        email_summary=truncate_words(email_summary),
        entity_label=label,
        fields=fields,
    )


class AlertWriter:
    """Builds alerts and hands them to the sink; never raises into the pipeline."""

    def __init__(self, sink: AlertSink) -> None:
        self._sink = sink

    def write(self, candidate: CandidateEntity, diff: DiffOutput, impact: Impact) -> Alert | None:
        if impact not in _ALERTING_IMPACTS:
            log.debug("No alert for %s impact change", impact.value)
            return None

        alert = compose_alert(candidate, diff)
        try:
            self._sink.send(alert)
        except Exception:
            log.exception("Failed to deliver alert for %s", alert.entity_label)
            return None
        log.info("Alert sent for %s", alert.entity_label)
        return alert
