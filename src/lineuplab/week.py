"""NFL regular-season week derived from a kickoff anchor."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional


logger = logging.getLogger(__name__)

_KICKOFF_ENV = "LINEUPLAB_SEASON_KICKOFF"
DEFAULT_KICKOFF = "2025-09-04T00:00:00Z"
FIRST_WEEK = 1
LAST_WEEK = 18


def season_kickoff() -> Optional[datetime]:
    raw = os.getenv(_KICKOFF_ENV, DEFAULT_KICKOFF)
    try:
        kickoff = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Invalid %s value %s; defaulting to week %s", _KICKOFF_ENV, raw, FIRST_WEEK)
        return None
    if kickoff.tzinfo is None:
        kickoff = kickoff.replace(tzinfo=timezone.utc)
    return kickoff


def current_nfl_week(today: Optional[datetime] = None) -> int:
    """Week number 1..18; anything before kickoff is week 1."""

    kickoff = season_kickoff()
    now = today or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if kickoff is None or now < kickoff:
        return FIRST_WEEK
    elapsed = (now - kickoff) // timedelta(weeks=1)
    return min(LAST_WEEK, max(FIRST_WEEK, elapsed + 1))


def season_for(today: Optional[datetime] = None) -> int:
    """Season year; January and February belong to the previous season."""

    now = today or datetime.now(timezone.utc)
    return now.year if now.month >= 3 else now.year - 1
