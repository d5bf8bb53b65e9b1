"""Content hashing of slot assignments to suppress redundant notifications."""

from __future__ import annotations

import hashlib
import json
from typing import Mapping, Optional, Sequence

from lineuplab.models import WeeklyLineup


def lineup_hash(slots: Mapping[str, Sequence[str]]) -> str:
    """Stable fingerprint of the starters; bench and details never affect it."""

    canonical = {slot: sorted(ids) for slot, ids in slots.items() if ids}
    payload = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def stored_hash(lineup: WeeklyLineup) -> str:
    return lineup.content_hash or lineup_hash(lineup.slots)


def should_notify(new_lineup: WeeklyLineup, previous_lineup: Optional[WeeklyLineup]) -> bool:
    """True only when the starting assignment differs from the last persisted one."""

    if previous_lineup is None:
        return True
    return stored_hash(new_lineup) != stored_hash(previous_lineup)
