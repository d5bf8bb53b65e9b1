"""Delivery of lineup summaries to roster owners."""

from __future__ import annotations

import logging
from typing import Protocol

from lineuplab.models import UserRoster


logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, roster: UserRoster, summary: str) -> None:
        ...


class LoggingNotifier:
    """Writes the summary to the log instead of sending it anywhere."""

    def notify(self, roster: UserRoster, summary: str) -> None:
        logger.info("Lineup notification for roster %s (%s):\n%s", roster.id, roster.email or "no email", summary)
