"""Alert sinks for editor notifications."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from passagr.domain.model import Alert


class LoggingAlertSink:
    """Writes alerts to the ``passagr.alerts`` log channel for downstream delivery."""

    def __init__(self, channel: str = "passagr.alerts") -> None:
        self._log = getLogger(channel)

    def send(self, alert: Alert) -> None:
        self._log.warning("%s | %s", alert.notification, alert.email_summary)
