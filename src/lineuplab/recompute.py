"""One recompute cycle: fetch, blend, assign, compare, persist, notify."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from lineuplab.config.settings import Settings, load_settings
from lineuplab.ensemble import blend_for_players
from lineuplab.ingest import PlayerDirectory, ProjectionFeed, SourceAdapter, build_registry, collect_history, collect_projections, flatten
from lineuplab.models import PlayerMeta, UserRoster, WeeklyLineup
from lineuplab.notify import LoggingNotifier, Notifier, render_lineup_text, should_notify, stored_hash
from lineuplab.optimizer import assign_lineup
from lineuplab.persistence import RosterStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecomputeResult:
    lineup: WeeklyLineup
    previous_hash: Optional[str]
    changed: bool
    notified: bool
    saved: bool
    names: Dict[str, PlayerMeta] = field(default_factory=dict)


def history_window(week: int, history_weeks: int) -> List[int]:
    """The ``history_weeks`` weeks immediately before ``week`` (never below 1)."""

    return list(range(max(1, week - history_weeks), week))


class LineupService:
    """Orchestrates recomputes against a store, a projection feed and a notifier."""

    def __init__(
        self,
        store: RosterStore,
        feed: ProjectionFeed,
        *,
        settings: Optional[Settings] = None,
        registry: Optional[Mapping[str, SourceAdapter]] = None,
        directory: Optional[PlayerDirectory] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.store = store
        self.feed = feed
        self.settings = settings or load_settings()
        self.registry = dict(registry) if registry is not None else build_registry(self.settings.sources)
        self.directory = directory
        self.notifier = notifier or LoggingNotifier()

    def _player_meta(self, roster: UserRoster) -> Dict[str, PlayerMeta]:
        if self.directory is None:
            return {}
        return self.directory.lookup(roster.players)

    def _compute(
        self, roster: UserRoster, week: int, *, season: int
    ) -> Tuple[WeeklyLineup, Dict[str, PlayerMeta]]:
        overrides = self.store.get_overrides(week)
        window = history_window(week, self.settings.ensemble.history_weeks)
        scoring = roster.scoring_profile

        with ThreadPoolExecutor(max_workers=3) as pool:
            current_future = pool.submit(collect_projections, self.feed, self.registry, season, week, scoring=scoring)
            history_future = pool.submit(collect_history, self.feed, self.registry, season, window, scoring=scoring)
            meta_future = pool.submit(self._player_meta, roster)
            current = flatten(current_future.result())
            historical, actuals = history_future.result()
            player_meta = meta_future.result()

        blended = blend_for_players(
            current,
            historical,
            actuals,
            week=week,
            player_ids=roster.players,
            config=self.settings.ensemble,
            sources=tuple(self.registry.keys()),
        )
        lineup = assign_lineup(
            roster,
            roster.rules,
            blended,
            overrides,
            player_meta=player_meta,
            injury_penalties=self.settings.injuries,
            week=week,
        )
        return lineup, player_meta

    def build_lineup(self, roster: UserRoster, week: int, *, season: int) -> WeeklyLineup:
        """Compute a lineup without touching stored lineups or notifying."""

        return self._compute(roster, week, season=season)[0]

    def _send(self, roster: UserRoster, lineup: WeeklyLineup, names: Mapping[str, PlayerMeta]) -> bool:
        summary = render_lineup_text(roster.name or roster.id, lineup, names)
        try:
            self.notifier.notify(roster, summary)
        except Exception as exc:
            logger.warning("Notification for roster %s week %s failed: %s", roster.id, lineup.week, exc)
            return False
        return True

    def recompute(
        self,
        roster_id: str,
        week: int,
        *,
        season: int,
        notify: bool = True,
        dry_run: bool = False,
    ) -> RecomputeResult:
        """Recompute and, when the starters changed, notify and persist.

        Raises RosterNotFoundError, StoreUnavailableError or
        NoProjectionDataError; nothing is persisted when any of them is raised.
        A changed lineup whose notification fails is not persisted, so the
        next recompute still sees the change and notifies again.
        """

        roster = self.store.require_roster(roster_id)
        previous = self.store.get_lineup(roster_id, week)
        lineup, names = self._compute(roster, week, season=season)

        changed = should_notify(lineup, previous)
        notified = False
        delivery_failed = False
        if changed and notify and roster.notify_opt_in and not dry_run:
            notified = self._send(roster, lineup, names)
            delivery_failed = not notified

        saved = False
        if not dry_run and not delivery_failed:
            self.store.save_lineup(roster_id, lineup)
            if names:
                self.store.save_lineup_names(roster_id, week, names)
            saved = True

        logger.info(
            "Recomputed roster %s week %s: total %.2f, changed=%s, notified=%s",
            roster_id,
            week,
            lineup.total_score,
            changed,
            notified,
        )
        return RecomputeResult(
            lineup=lineup,
            previous_hash=stored_hash(previous) if previous is not None else None,
            changed=changed,
            notified=notified,
            saved=saved,
            names=names,
        )
