from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from lineuplab.models import WeeklyLineup


class RecomputeRequest(BaseModel):
    week: Optional[int] = Field(default=None, ge=1, le=18)
    season: Optional[int] = None
    notify: bool = True
    dry_run: bool = False


class RecomputeResponse(BaseModel):
    roster_id: str
    week: int
    changed: bool
    notified: bool
    saved: bool
    previous_hash: Optional[str] = None
    lineup: WeeklyLineup


class WeekResponse(BaseModel):
    week: int
    season: int
