"""Roster slot rules and slot eligibility for weekly lineups."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Set, Tuple

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


POSITIONS: Tuple[str, ...] = ("QB", "RB", "WR", "TE", "K", "DST")

# Assignment and display order; FLEX is filled after the dedicated slots.
SLOT_ORDER: Tuple[str, ...] = ("QB", "RB", "WR", "TE", "FLEX", "DST", "K")
DEDICATED_SLOTS: Tuple[str, ...] = ("QB", "RB", "WR", "TE", "DST", "K")

FLEX_POSITIONS: Set[str] = {"RB", "WR", "TE"}

SLOT_POSITIONS: Mapping[str, Set[str]] = {
    "QB": {"QB"},
    "RB": {"RB"},
    "WR": {"WR"},
    "TE": {"TE"},
    "FLEX": FLEX_POSITIONS,
    "DST": {"DST"},
    "K": {"K"},
}

POSITION_ALIASES: Dict[str, str] = {
    "DEF": "DST",
    "D/ST": "DST",
    "DST/DEF": "DST",
    "D": "DST",
    "DEFENSE": "DST",
    "PK": "K",
}


class RosterRules(BaseModel):
    """Required starter counts per slot."""

    QB: int = Field(default=1, ge=0)
    RB: int = Field(default=2, ge=0)
    WR: int = Field(default=2, ge=0)
    TE: int = Field(default=1, ge=0)
    FLEX: int = Field(default=1, ge=0)
    DST: int = Field(default=1, ge=0)
    K: int = Field(default=1, ge=0)

    model_config = ConfigDict(frozen=True)

    def count(self, slot: str) -> int:
        return int(getattr(self, slot))

    def as_dict(self) -> Dict[str, int]:
        return {slot: self.count(slot) for slot in SLOT_ORDER}

    @property
    def total_slots(self) -> int:
        return sum(self.as_dict().values())


DEFAULT_RULES = RosterRules()


def merge_rules(partial: Optional[Mapping[str, int] | RosterRules] = None) -> RosterRules:
    """Overlay a partial slot mapping onto the default rules."""

    if partial is None:
        return DEFAULT_RULES
    if isinstance(partial, RosterRules):
        return partial
    merged = DEFAULT_RULES.as_dict()
    for slot, value in partial.items():
        key = slot.upper()
        if key not in merged:
            raise KeyError(f"Unknown roster slot {slot!r}")
        if value is not None:
            merged[key] = int(value)
    return RosterRules(**merged)


def canonical_position(raw: Optional[str]) -> Optional[str]:
    """Map a feed's position string onto a supported position, or None."""

    if not raw or not isinstance(raw, str):
        return None
    token = "".join(raw.upper().split())
    token = POSITION_ALIASES.get(token, token)
    return token if token in POSITIONS else None


def eligible_slots(position: Optional[str]) -> Tuple[str, ...]:
    """Slots a player may fill, own slot first and FLEX last."""

    if position is None:
        return ()
    slots = [slot for slot in DEDICATED_SLOTS if position in SLOT_POSITIONS[slot]]
    if position in FLEX_POSITIONS:
        slots.append("FLEX")
    return tuple(slots)


def iter_slots(rules: RosterRules) -> Iterable[Tuple[str, int]]:
    """Yield (slot, count) pairs in display order."""

    for slot in SLOT_ORDER:
        yield slot, rules.count(slot)
