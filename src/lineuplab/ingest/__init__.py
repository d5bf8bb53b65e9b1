"""Input adapters that fetch and normalize raw projection data."""

from .fetch import HttpProjectionFeed, ProjectionFeed, collect_history, collect_projections, flatten
from .players import PlayerDirectory, normalize_injury
from .sources import (
    GenericFeedAdapter,
    SleeperAdapter,
    SourceAdapter,
    build_registry,
    normalize,
    normalize_actuals,
    normalize_sources,
    select_points,
)

__all__ = [
    "GenericFeedAdapter",
    "HttpProjectionFeed",
    "PlayerDirectory",
    "ProjectionFeed",
    "SleeperAdapter",
    "SourceAdapter",
    "build_registry",
    "collect_history",
    "collect_projections",
    "flatten",
    "normalize",
    "normalize_actuals",
    "normalize_injury",
    "normalize_sources",
    "select_points",
]
