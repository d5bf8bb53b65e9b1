"""Shared pydantic models."""

from .lineup import PlayerDetail, ScoreBreakdown, Tier, WeeklyLineup
from .player import ActualRow, InjuryStatus, PlayerMeta, Position, ProjectionRow, ScoringProfile
from .roster import AdminOverrides, UserRoster

__all__ = [
    "ActualRow",
    "AdminOverrides",
    "InjuryStatus",
    "PlayerDetail",
    "PlayerMeta",
    "Position",
    "ProjectionRow",
    "ScoreBreakdown",
    "ScoringProfile",
    "Tier",
    "UserRoster",
    "WeeklyLineup",
]
