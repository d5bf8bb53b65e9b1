"""Tunable constants for weighting, injuries and source feeds."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional, Tuple


logger = logging.getLogger(__name__)

_ENV_PREFIX = "LINEUPLAB_"

DEFAULT_SOURCES: Tuple[str, ...] = ("BLITZ", "FTN", "BAKER", "ROTO", "ML", "CONSENSUS", "SLEEPER")

SLEEPER_PROJECTIONS_URL = "https://api.sleeper.app/projections/nfl/{season}/{week}?season_type=regular"
SLEEPER_STATS_URL = "https://api.sleeper.app/stats/nfl/regular/{season}/{week}"
SLEEPER_PLAYERS_URL = "https://api.sleeper.app/v1/players/nfl"

_FETCH_TIMEOUT_DEFAULT = 10.0


def _env_float(name: str, default: float, *, clamp_min: float | None = None, clamp_max: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    if clamp_max is not None:
        value = min(clamp_max, value)
    return value


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


@dataclass(frozen=True)
class EnsembleConfig:
    """Parameters for inverse-error weighting of projection sources."""

    alpha: float = 1.0
    epsilon: float = 1e-6
    shrink_k: float = 50.0
    corr_penalty: float = 0.5
    history_weeks: int = 8

    @classmethod
    def from_env(cls) -> "EnsembleConfig":
        base = cls()
        return cls(
            alpha=_env_float(f"{_ENV_PREFIX}ALPHA", base.alpha, clamp_min=0.0),
            epsilon=_env_float(f"{_ENV_PREFIX}EPSILON", base.epsilon, clamp_min=1e-12),
            shrink_k=_env_float(f"{_ENV_PREFIX}SHRINK_K", base.shrink_k, clamp_min=0.0),
            corr_penalty=_env_float(f"{_ENV_PREFIX}CORR_PENALTY", base.corr_penalty, clamp_min=0.0),
            history_weeks=_env_int(f"{_ENV_PREFIX}HISTORY_WEEKS", base.history_weeks, min_value=0),
        )


@dataclass(frozen=True)
class InjuryPenalties:
    """Point adjustments per injury designation."""

    doubtful: float = -5.0
    questionable: float = -2.0
    out_unplaceable: bool = True

    @classmethod
    def from_env(cls) -> "InjuryPenalties":
        base = cls()
        return cls(
            doubtful=_env_float(f"{_ENV_PREFIX}INJURY_DOUBTFUL", base.doubtful),
            questionable=_env_float(f"{_ENV_PREFIX}INJURY_QUESTIONABLE", base.questionable),
        )

    def delta_for(self, status: Optional[str]) -> float:
        if status == "DOUBTFUL":
            return self.doubtful
        if status == "QUESTIONABLE":
            return self.questionable
        return 0.0

    def is_unplaceable(self, status: Optional[str]) -> bool:
        return self.out_unplaceable and status == "OUT"


@dataclass(frozen=True)
class SourceFeed:
    """Where to fetch one source's raw weekly projections."""

    source_id: str
    url: Optional[str]
    token: Optional[str] = None


@dataclass(frozen=True)
class Settings:
    ensemble: EnsembleConfig = field(default_factory=EnsembleConfig)
    injuries: InjuryPenalties = field(default_factory=InjuryPenalties)
    feeds: Mapping[str, SourceFeed] = field(default_factory=dict)
    actuals_url: Optional[str] = None
    fetch_timeout: float = _FETCH_TIMEOUT_DEFAULT

    @property
    def sources(self) -> Tuple[str, ...]:
        return tuple(self.feeds.keys()) or DEFAULT_SOURCES

    def with_ensemble(self, **changes: float) -> "Settings":
        return replace(self, ensemble=replace(self.ensemble, **changes))


def _feeds_from_env(sources: Tuple[str, ...]) -> Dict[str, SourceFeed]:
    feeds: Dict[str, SourceFeed] = {}
    for source_id in sources:
        url = os.getenv(f"{_ENV_PREFIX}{source_id}_URL")
        if url is None and source_id == "SLEEPER":
            url = SLEEPER_PROJECTIONS_URL
        feeds[source_id] = SourceFeed(
            source_id=source_id,
            url=url or None,
            token=os.getenv(f"{_ENV_PREFIX}{source_id}_TOKEN") or None,
        )
    return feeds


def load_settings(sources: Tuple[str, ...] = DEFAULT_SOURCES) -> Settings:
    """Build settings from ``LINEUPLAB_*`` environment variables."""

    return Settings(
        ensemble=EnsembleConfig.from_env(),
        injuries=InjuryPenalties.from_env(),
        feeds=_feeds_from_env(sources),
        actuals_url=os.getenv(f"{_ENV_PREFIX}ACTUALS_URL") or None,
        fetch_timeout=_env_float(f"{_ENV_PREFIX}FETCH_TIMEOUT", _FETCH_TIMEOUT_DEFAULT, clamp_min=0.1),
    )
