"""Pydantic models for API I/O."""

from .recompute import RecomputeRequest, RecomputeResponse, WeekResponse
from .roster import OverridesPayload, RosterCreateRequest, RosterPatchRequest

__all__ = [
    "OverridesPayload",
    "RecomputeRequest",
    "RecomputeResponse",
    "RosterCreateRequest",
    "RosterPatchRequest",
    "WeekResponse",
]
