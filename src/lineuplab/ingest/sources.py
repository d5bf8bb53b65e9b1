"""Source adapters that normalize raw projection feeds into canonical rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from pydantic import ValidationError

from lineuplab.config.roster import canonical_position
from lineuplab.config.settings import DEFAULT_SOURCES
from lineuplab.models import ActualRow, ProjectionRow, ScoringProfile


logger = logging.getLogger(__name__)

HALF_PPR_FALLBACK_RATIO = 0.85
STD_FALLBACK_RATIO = 0.7

_ID_KEYS = ("playerId", "player_id", "id")
_PPR_KEYS = ("pts_ppr", "ppr", "points", "proj")
_HALF_KEYS = ("pts_half_ppr", "pts_half", "half")
_STD_KEYS = ("pts_std", "std")
_ACTUAL_PPR_KEYS = ("pts_ppr", "ppr", "points", "actual")
_ROW_CONTAINER_KEYS = ("projections", "data", "rows", "players")


class SourceAdapter(Protocol):
    """Adapter that knows one upstream feed's payload shape."""

    source_id: str

    def normalize(
        self,
        raw: Any,
        *,
        week: int,
        season: int,
        scoring: ScoringProfile = "PPR",
        fetched_at: Optional[datetime] = None,
    ) -> List[ProjectionRow]:
        ...


def _num(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def _first(item: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def _player_id(item: Mapping[str, Any]) -> Optional[str]:
    value = _first(item, _ID_KEYS)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_timestamp(value: Any, default: datetime) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return default
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return default


def select_points(
    scoring: ScoringProfile,
    ppr: Optional[float],
    half: Optional[float] = None,
    std: Optional[float] = None,
) -> Optional[float]:
    """Pick the points for a scoring profile, deriving missing ones from PPR."""

    if scoring == "PPR":
        return ppr
    if scoring == "HALF_PPR":
        if half is not None:
            return half
        return ppr * HALF_PPR_FALLBACK_RATIO if ppr is not None else None
    if std is not None:
        return std
    return ppr * STD_FALLBACK_RATIO if ppr is not None else None


def _as_rows(raw: Any) -> List[Any]:
    if raw is None:
        return []
    if isinstance(raw, list):
        return raw
    if isinstance(raw, Mapping):
        for key in _ROW_CONTAINER_KEYS:
            value = raw.get(key)
            if isinstance(value, list):
                return value
    raise ValueError(f"unexpected payload type {type(raw).__name__}")


def _build_row(
    *,
    source_id: str,
    player_id: Optional[str],
    raw_position: Any,
    points: Optional[float],
    week: int,
    season: int,
    updated_at: datetime,
) -> Optional[ProjectionRow]:
    if player_id is None:
        logger.debug("Dropping %s row without a player id", source_id)
        return None
    position = canonical_position(raw_position if isinstance(raw_position, str) else None)
    if position is None:
        logger.debug("Dropping %s row for %s: unknown position %r", source_id, player_id, raw_position)
        return None
    if points is None:
        logger.debug("Dropping %s row for %s: points missing or not numeric", source_id, player_id)
        return None
    try:
        return ProjectionRow(
            player_id=player_id,
            position=position,
            week=week,
            season=season,
            points=points,
            source_id=source_id,
            updated_at=updated_at,
        )
    except ValidationError as exc:
        logger.debug("Dropping invalid %s row for %s: %s", source_id, player_id, exc)
        return None


@dataclass(frozen=True)
class GenericFeedAdapter:
    """Flat JSON rows with a player id, position and PPR/half/std points."""

    source_id: str

    def normalize(
        self,
        raw: Any,
        *,
        week: int,
        season: int,
        scoring: ScoringProfile = "PPR",
        fetched_at: Optional[datetime] = None,
    ) -> List[ProjectionRow]:
        fetched_at = fetched_at or datetime.now(timezone.utc)
        rows: List[ProjectionRow] = []
        for item in _as_rows(raw):
            if not isinstance(item, Mapping):
                continue
            points = select_points(
                scoring,
                _num(_first(item, _PPR_KEYS)),
                _num(_first(item, _HALF_KEYS)),
                _num(_first(item, _STD_KEYS)),
            )
            row = _build_row(
                source_id=self.source_id,
                player_id=_player_id(item),
                raw_position=item.get("position") or item.get("pos"),
                points=points,
                week=week,
                season=season,
                updated_at=_parse_timestamp(_first(item, ("updatedAt", "updated_at")), fetched_at),
            )
            if row is not None:
                rows.append(row)
        return rows


@dataclass(frozen=True)
class SleeperAdapter:
    """Sleeper's public projections: points nested under ``stats``."""

    source_id: str = "SLEEPER"

    def normalize(
        self,
        raw: Any,
        *,
        week: int,
        season: int,
        scoring: ScoringProfile = "PPR",
        fetched_at: Optional[datetime] = None,
    ) -> List[ProjectionRow]:
        fetched_at = fetched_at or datetime.now(timezone.utc)
        rows: List[ProjectionRow] = []
        for item in _as_rows(raw):
            if not isinstance(item, Mapping):
                continue
            stats = item.get("stats") if isinstance(item.get("stats"), Mapping) else {}
            player = item.get("player") if isinstance(item.get("player"), Mapping) else {}
            points = select_points(
                scoring,
                _num(stats.get("pts_ppr", item.get("pts_ppr"))),
                _num(stats.get("pts_half_ppr", item.get("pts_half_ppr"))),
                _num(stats.get("pts_std", item.get("pts_std"))),
            )
            row = _build_row(
                source_id=self.source_id,
                player_id=_player_id(item),
                raw_position=item.get("position") or player.get("position"),
                points=points,
                week=week,
                season=season,
                updated_at=fetched_at,
            )
            if row is not None:
                rows.append(row)
        return rows


def build_registry(sources: Iterable[str] = DEFAULT_SOURCES) -> Dict[str, SourceAdapter]:
    """Map each configured source id to its adapter."""

    registry: Dict[str, SourceAdapter] = {}
    for source_id in sources:
        key = source_id.upper()
        registry[key] = SleeperAdapter() if key == "SLEEPER" else GenericFeedAdapter(key)
    return registry


def normalize(
    raw: Any,
    source_id: str,
    week: int,
    season: int,
    *,
    registry: Mapping[str, SourceAdapter],
    scoring: ScoringProfile = "PPR",
    fetched_at: Optional[datetime] = None,
) -> List[ProjectionRow]:
    adapter = registry.get(source_id.upper())
    if adapter is None:
        raise KeyError(f"No adapter registered for source {source_id!r}")
    return adapter.normalize(raw, week=week, season=season, scoring=scoring, fetched_at=fetched_at)


def normalize_sources(
    raw_by_source: Mapping[str, Any],
    *,
    week: int,
    season: int,
    registry: Mapping[str, SourceAdapter],
    scoring: ScoringProfile = "PPR",
) -> Dict[str, List[ProjectionRow]]:
    """Normalize every source independently; a failing source yields no rows."""

    results: Dict[str, List[ProjectionRow]] = {}
    for source_id, raw in raw_by_source.items():
        try:
            rows = normalize(raw, source_id, week, season, registry=registry, scoring=scoring)
        except Exception as exc:
            logger.warning("Normalization failed for source %s (week %s): %s", source_id, week, exc)
            rows = []
        results[source_id] = rows
    return results


def normalize_actuals(
    raw: Any,
    *,
    season: int,
    scoring: ScoringProfile = "PPR",
    week: Optional[int] = None,
    positions: Optional[Mapping[str, str]] = None,
) -> List[ActualRow]:
    """Adapt historical stats rows (or a ``{player_id: stats}`` map) into actuals."""

    positions = positions or {}
    if isinstance(raw, Mapping) and not any(isinstance(raw.get(key), list) for key in _ROW_CONTAINER_KEYS):
        items: List[Any] = [{"player_id": pid, "week": week, **dict(stats)} for pid, stats in raw.items() if isinstance(stats, Mapping)]
    else:
        items = _as_rows(raw)

    actuals: List[ActualRow] = []
    now = datetime.now(timezone.utc)
    for item in items:
        if not isinstance(item, Mapping):
            continue
        stats = item.get("stats") if isinstance(item.get("stats"), Mapping) else item
        player_id = _player_id(item)
        if player_id is None:
            continue
        position = canonical_position(item.get("position")) or canonical_position(positions.get(player_id))
        row_week = _num(item.get("week"))
        if row_week is None:
            row_week = week
        points = select_points(
            scoring,
            _num(_first(stats, _ACTUAL_PPR_KEYS)),
            _num(_first(stats, _HALF_KEYS)),
            _num(_first(stats, _STD_KEYS)),
        )
        if position is None or row_week is None or points is None:
            logger.debug("Dropping actual for %s: position=%r week=%r points=%r", player_id, position, row_week, points)
            continue
        row_season = _num(item.get("season"))
        try:
            actual = ActualRow(
                player_id=player_id,
                position=position,
                week=int(row_week),
                season=int(row_season) if row_season else season,
                points=points,
                updated_at=_parse_timestamp(_first(item, ("updatedAt", "updated_at")), now),
            )
        except ValidationError as exc:
            logger.debug("Dropping invalid actual for %s: %s", player_id, exc)
            continue
        actuals.append(actual)
    return actuals
