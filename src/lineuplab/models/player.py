"""Canonical projection rows shared across ingestion and the ensemble."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


Position = Literal["QB", "RB", "WR", "TE", "K", "DST"]
ScoringProfile = Literal["PPR", "HALF_PPR", "STD"]
InjuryStatus = Literal["OUT", "DOUBTFUL", "QUESTIONABLE"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectionRow(BaseModel):
    """One source's projected points for a player in a given week."""

    player_id: str = Field(..., min_length=1)
    position: Position
    week: int = Field(..., ge=0)
    season: int
    points: float
    source_id: str = Field(..., min_length=1)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)


class ActualRow(BaseModel):
    """Realized fantasy points for a player in a past week."""

    player_id: str = Field(..., min_length=1)
    position: Position
    week: int = Field(..., ge=0)
    season: int
    points: float
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)


class PlayerMeta(BaseModel):
    player_id: str
    name: str = ""
    position: Optional[Position] = None
    team: Optional[str] = None
    injury_status: Optional[InjuryStatus] = None

    model_config = ConfigDict(frozen=True)
