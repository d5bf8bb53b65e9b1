"""Concurrent, fail-open retrieval of raw projection and actuals feeds."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

import httpx

from lineuplab.config.settings import SLEEPER_STATS_URL, Settings
from lineuplab.ingest.sources import SourceAdapter, normalize_actuals, normalize_sources
from lineuplab.models import ActualRow, ProjectionRow, ScoringProfile


logger = logging.getLogger(__name__)


class ProjectionFeed(Protocol):
    """Upstream provider of raw projections and historical actuals."""

    def fetch_projections(self, source_id: str, season: int, week: int) -> Any:
        ...

    def fetch_actuals(self, season: int, weeks: Sequence[int]) -> Any:
        ...


def _render_url(template: str, **params: Any) -> str:
    if "{" in template:
        return template.format(**params)
    return str(httpx.URL(template).copy_merge_params({key: str(value) for key, value in params.items()}))


class HttpProjectionFeed:
    """Fetch feeds over HTTP; sources without a configured URL return nothing."""

    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None):
        self._settings = settings
        self._client = client or httpx.Client(timeout=settings.fetch_timeout, follow_redirects=True)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpProjectionFeed":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get_json(self, url: str, token: Optional[str] = None) -> Any:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        response = self._client.get(url, headers=headers, timeout=self._settings.fetch_timeout)
        response.raise_for_status()
        return response.json()

    def fetch_projections(self, source_id: str, season: int, week: int) -> Any:
        feed = self._settings.feeds.get(source_id)
        if feed is None or not feed.url:
            return []
        return self._get_json(_render_url(feed.url, season=season, week=week), feed.token)

    def fetch_actuals(self, season: int, weeks: Sequence[int]) -> Any:
        weeks = sorted(set(weeks))
        if not weeks:
            return []
        if self._settings.actuals_url:
            url = _render_url(
                self._settings.actuals_url,
                season=season,
                startWeek=weeks[0],
                endWeek=weeks[-1],
            )
            return self._get_json(url)

        rows: List[Dict[str, Any]] = []
        for week in weeks:
            body = self._get_json(SLEEPER_STATS_URL.format(season=season, week=week))
            if not isinstance(body, Mapping):
                continue
            for player_id, stats in body.items():
                if isinstance(stats, Mapping):
                    rows.append({"player_id": player_id, "week": week, "season": season, **dict(stats)})
        return rows


def _safe_fetch(label: str, fn: Any, *args: Any) -> Any:
    start = time.perf_counter()
    try:
        raw = fn(*args)
    except Exception as exc:
        logger.warning("Fetch failed for %s after %.2fs: %s", label, time.perf_counter() - start, exc)
        return []
    logger.debug("Fetched %s in %.2fs", label, time.perf_counter() - start)
    return raw


def collect_projections(
    feed: ProjectionFeed,
    registry: Mapping[str, SourceAdapter],
    season: int,
    week: int,
    *,
    scoring: ScoringProfile = "PPR",
) -> Dict[str, List[ProjectionRow]]:
    """Fetch and normalize one week from every source in parallel."""

    source_ids = list(registry.keys())
    if not source_ids:
        return {}
    with ThreadPoolExecutor(max_workers=len(source_ids)) as pool:
        futures = {
            source_id: pool.submit(_safe_fetch, f"{source_id} week {week}", feed.fetch_projections, source_id, season, week)
            for source_id in source_ids
        }
        raw_by_source = {source_id: futures[source_id].result() for source_id in source_ids}

    by_source = normalize_sources(raw_by_source, week=week, season=season, registry=registry, scoring=scoring)
    logger.info(
        "Collected week %s projections: %s",
        week,
        ", ".join(f"{source_id}={len(rows)}" for source_id, rows in by_source.items()),
    )
    return by_source


def flatten(by_source: Mapping[str, Sequence[ProjectionRow]]) -> List[ProjectionRow]:
    return [row for rows in by_source.values() for row in rows]


def collect_history(
    feed: ProjectionFeed,
    registry: Mapping[str, SourceAdapter],
    season: int,
    weeks: Sequence[int],
    *,
    scoring: ScoringProfile = "PPR",
) -> Tuple[List[ProjectionRow], List[ActualRow]]:
    """Fetch past projections for every (source, week) plus realized actuals."""

    weeks = sorted(set(weeks))
    source_ids = list(registry.keys())
    if not weeks or not source_ids:
        return [], []

    jobs = [(source_id, week) for week in weeks for source_id in source_ids]
    with ThreadPoolExecutor(max_workers=len(source_ids)) as pool:
        actuals_future = pool.submit(_safe_fetch, f"actuals weeks {weeks[0]}-{weeks[-1]}", feed.fetch_actuals, season, weeks)
        futures = [
            (source_id, week, pool.submit(_safe_fetch, f"{source_id} week {week}", feed.fetch_projections, source_id, season, week))
            for source_id, week in jobs
        ]
        raw_actuals = actuals_future.result()
        raw_projections = [(source_id, week, future.result()) for source_id, week, future in futures]

    historical: List[ProjectionRow] = []
    for week in weeks:
        raw_by_source = {source_id: raw for source_id, raw_week, raw in raw_projections if raw_week == week}
        by_source = normalize_sources(raw_by_source, week=week, season=season, registry=registry, scoring=scoring)
        historical.extend(flatten(by_source))

    positions = {row.player_id: row.position for row in historical}
    try:
        actuals = normalize_actuals(raw_actuals, season=season, scoring=scoring, positions=positions)
    except ValueError as exc:
        logger.warning("Could not normalize actuals for season %s: %s", season, exc)
        actuals = []
    logger.info(
        "Collected history for weeks %s-%s: %s projections, %s actuals",
        weeks[0],
        weeks[-1],
        len(historical),
        len(actuals),
    )
    return historical, actuals
