from __future__ import annotations

from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, Field

from lineuplab.models import ScoringProfile


SlotCount = Annotated[int, Field(ge=0)]


class RosterCreateRequest(BaseModel):
    name: str = ""
    email: Optional[str] = None
    players: List[str] = Field(default_factory=list)
    rules: Optional[Dict[str, SlotCount]] = None
    scoring_profile: ScoringProfile = "PPR"
    pins: List[str] = Field(default_factory=list)
    notify_opt_in: bool = True


class RosterPatchRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    players: Optional[List[str]] = None
    rules: Optional[Dict[str, SlotCount]] = None
    scoring_profile: Optional[ScoringProfile] = None
    pins: Optional[List[str]] = None
    notify_opt_in: Optional[bool] = None


class OverridesPayload(BaseModel):
    point_delta: Optional[Dict[str, float]] = None
    force_start: Optional[Dict[str, bool]] = None
    force_sit: Optional[Dict[str, bool]] = None
    note: Optional[str] = None
