"""Configuration helpers for roster rules and engine tuning."""

from .roster import (
    DEFAULT_RULES,
    POSITIONS,
    SLOT_ORDER,
    RosterRules,
    canonical_position,
    eligible_slots,
    merge_rules,
)
from .settings import DEFAULT_SOURCES, EnsembleConfig, InjuryPenalties, Settings, SourceFeed, load_settings

__all__ = [
    "DEFAULT_RULES",
    "DEFAULT_SOURCES",
    "POSITIONS",
    "SLOT_ORDER",
    "EnsembleConfig",
    "InjuryPenalties",
    "RosterRules",
    "Settings",
    "SourceFeed",
    "canonical_position",
    "eligible_slots",
    "load_settings",
    "merge_rules",
]
