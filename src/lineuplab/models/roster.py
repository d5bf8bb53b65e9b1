"""User rosters and week-scoped administrator overrides."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from lineuplab.config.roster import DEFAULT_RULES, RosterRules
from lineuplab.models.player import ScoringProfile


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRoster(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    email: Optional[str] = None
    players: List[str] = Field(default_factory=list)
    rules: RosterRules = DEFAULT_RULES
    scoring_profile: ScoringProfile = "PPR"
    pins: List[str] = Field(default_factory=list, description="Players preferred for FLEX, in priority order.")
    notify_opt_in: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class AdminOverrides(BaseModel):
    """Global adjustments applied to every roster computed for a week."""

    week: int = Field(..., ge=0)
    point_delta: Dict[str, float] = Field(default_factory=dict)
    force_start: Dict[str, bool] = Field(default_factory=dict)
    force_sit: Dict[str, bool] = Field(default_factory=dict)
    note: str = ""

    @classmethod
    def empty(cls, week: int) -> "AdminOverrides":
        return cls(week=week)

    def delta_for(self, player_id: str) -> float:
        return float(self.point_delta.get(player_id, 0.0))

    def is_forced_start(self, player_id: str) -> bool:
        return bool(self.force_start.get(player_id, False))

    def is_forced_sit(self, player_id: str) -> bool:
        return bool(self.force_sit.get(player_id, False))

    def merged(
        self,
        *,
        point_delta: Optional[Mapping[str, float]] = None,
        force_start: Optional[Mapping[str, bool]] = None,
        force_sit: Optional[Mapping[str, bool]] = None,
        note: Optional[str] = None,
    ) -> "AdminOverrides":
        """Return a copy with the given entries layered over the existing ones."""

        return AdminOverrides(
            week=self.week,
            point_delta={**self.point_delta, **dict(point_delta or {})},
            force_start={**self.force_start, **dict(force_start or {})},
            force_sit={**self.force_sit, **dict(force_sit or {})},
            note=self.note if note is None else note,
        )
