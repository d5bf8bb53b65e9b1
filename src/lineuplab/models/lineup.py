"""Weekly lineup recommendation, the terminal artifact of a recompute."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


Tier = Literal["A", "B", "C", "D"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScoreBreakdown(BaseModel):
    """How a player's adjusted points were reached."""

    scoring: str = "PPR"
    base: float = 0.0
    delta: float = 0.0
    injury: Optional[str] = None
    injury_delta: float = 0.0
    forced_start: bool = False
    forced_sit: bool = False

    model_config = ConfigDict(frozen=True)


class PlayerDetail(BaseModel):
    player_id: str
    position: Optional[str] = None
    slot: Optional[str] = None
    points: float = 0.0
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    tier: Tier = "D"
    note: Optional[str] = None
    breakdown: Optional[ScoreBreakdown] = None


class WeeklyLineup(BaseModel):
    week: int
    slots: Dict[str, List[str]]
    bench: List[str] = Field(default_factory=list)
    details: Dict[str, PlayerDetail] = Field(default_factory=dict)
    total_score: float = 0.0
    content_hash: str = ""
    computed_at: datetime = Field(default_factory=_utcnow)

    def starters(self) -> List[str]:
        return [player_id for ids in self.slots.values() for player_id in ids]

    def slot_of(self, player_id: str) -> Optional[str]:
        for slot, ids in self.slots.items():
            if player_id in ids:
                return slot
        return None
