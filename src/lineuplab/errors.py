"""Exceptions surfaced to callers of the recompute cycle."""

from __future__ import annotations


class LineupLabError(Exception):
    """Base class for errors that abort a recompute."""


class NoProjectionDataError(LineupLabError):
    def __init__(self, week: int, message: str | None = None):
        self.week = week
        super().__init__(message or f"No projection data available for week {week}")


class RosterNotFoundError(LineupLabError, KeyError):
    def __init__(self, roster_id: str):
        self.roster_id = roster_id
        super().__init__(f"Roster not found: {roster_id}")

    def __str__(self) -> str:
        return self.args[0]


class StoreUnavailableError(LineupLabError):
    """The roster store could not be read or written."""
