"""Command-line interface for recomputing and inspecting weekly lineups."""

from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from lineuplab.config.settings import Settings, load_settings
from lineuplab.config_loader import EngineProfile
from lineuplab.ensemble import blend_for_players
from lineuplab.errors import LineupLabError
from lineuplab.ingest import (
    HttpProjectionFeed,
    PlayerDirectory,
    build_registry,
    flatten,
    normalize_actuals,
    normalize_sources,
)
from lineuplab.models import AdminOverrides, ActualRow, ProjectionRow, UserRoster, WeeklyLineup
from lineuplab.notify import render_lineup_text
from lineuplab.optimizer import assign_lineup, optimality_gap, score_candidates
from lineuplab.persistence import RosterStore
from lineuplab.recompute import LineupService
from lineuplab.week import current_nfl_week, season_for


logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Weekly fantasy lineup recommendations")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING)")
    parser.add_argument("--db", type=Path, default=None, help="SQLite store path (overrides LINEUPLAB_DB_PATH)")
    parser.add_argument("--load-profile", type=Path, default=None, help="Load engine tuning JSON")
    parser.add_argument("--save-profile", type=Path, default=None, help="Save the effective engine tuning JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    recompute = sub.add_parser("recompute", help="Recompute a stored roster's lineup")
    recompute.add_argument("roster_id")
    recompute.add_argument("--week", type=int, default=None, help="NFL week (default: current week)")
    recompute.add_argument("--season", type=int, default=None, help="Season year (default: current season)")
    recompute.add_argument("--no-notify", action="store_true", help="Never send a notification")
    recompute.add_argument("--dry-run", action="store_true", help="Compute without persisting or notifying")
    recompute.add_argument("--json", action="store_true", help="Print the lineup as JSON")

    blend = sub.add_parser("blend", help="Blend and assign offline from JSON files")
    blend.add_argument("current", type=Path, help="JSON object of source id -> raw weekly projections")
    blend.add_argument("--roster", type=Path, required=True, help="Roster JSON (players, rules, pins)")
    blend.add_argument("--history", type=Path, default=None, help="JSON object of week -> {source id -> raw}")
    blend.add_argument("--actuals", type=Path, default=None, help="Raw actuals JSON for the history weeks")
    blend.add_argument("--overrides", type=Path, default=None, help="Admin overrides JSON")
    blend.add_argument("--week", type=int, default=None, help="NFL week (default: current week)")
    blend.add_argument("--season", type=int, default=None, help="Season year (default: current season)")
    blend.add_argument("--output", type=Path, default=None, help="Optional CSV of per-player details")
    blend.add_argument("--audit", action="store_true", help="Compare the greedy total with the exact optimum")

    sub.add_parser("week", help="Print the current NFL week and season")

    show = sub.add_parser("show", help="Print a stored lineup")
    show.add_argument("roster_id")
    show.add_argument("--week", type=int, default=None, help="NFL week (default: current week)")
    return parser.parse_args(argv)


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _effective_settings(args: argparse.Namespace) -> Settings:
    settings = load_settings()
    if args.load_profile:
        profile = EngineProfile.load(args.load_profile)
        settings = load_settings(tuple(profile.sources))
        settings = Settings(
            ensemble=profile.ensemble,
            injuries=profile.injuries,
            feeds=settings.feeds,
            actuals_url=settings.actuals_url,
            fetch_timeout=settings.fetch_timeout,
        )
    if args.save_profile:
        EngineProfile(
            ensemble=settings.ensemble,
            injuries=settings.injuries,
            sources=list(settings.sources),
        ).save(args.save_profile)
        print(f"Saved engine profile to {args.save_profile}")
    return settings


def _write_details_csv(path: Path, lineup: WeeklyLineup) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["player_id", "position", "slot", "points", "confidence", "tier", "note"])
        for player_id in lineup.starters() + lineup.bench:
            detail = lineup.details[player_id]
            writer.writerow(
                [
                    detail.player_id,
                    detail.position or "",
                    detail.slot or "BENCH",
                    f"{detail.points:.2f}",
                    f"{detail.confidence:.2f}",
                    detail.tier,
                    detail.note or "",
                ]
            )


def _load_history(path: Path, season: int, registry: Dict[str, Any], scoring: str) -> List[ProjectionRow]:
    historical: List[ProjectionRow] = []
    for week_key, raw_by_source in _read_json(path).items():
        by_source = normalize_sources(
            raw_by_source,
            week=int(week_key),
            season=season,
            registry=registry,
            scoring=scoring,
        )
        historical.extend(flatten(by_source))
    return historical


def _run_blend(args: argparse.Namespace, settings: Settings) -> int:
    week = args.week or current_nfl_week()
    season = args.season or season_for()
    roster_payload = _read_json(args.roster)
    roster = UserRoster.model_validate({"id": roster_payload.get("id", args.roster.stem), **roster_payload})
    registry = build_registry(settings.sources)
    scoring = roster.scoring_profile

    current = flatten(
        normalize_sources(_read_json(args.current), week=week, season=season, registry=registry, scoring=scoring)
    )
    historical: List[ProjectionRow] = []
    actuals: List[ActualRow] = []
    if args.history:
        historical = _load_history(args.history, season, registry, scoring)
    if args.actuals:
        positions = {row.player_id: row.position for row in historical}
        actuals = normalize_actuals(_read_json(args.actuals), season=season, scoring=scoring, positions=positions)
    overrides = (
        AdminOverrides.model_validate({"week": week, **_read_json(args.overrides)})
        if args.overrides
        else AdminOverrides.empty(week)
    )

    blended = blend_for_players(
        current,
        historical,
        actuals,
        week=week,
        player_ids=roster.players,
        config=settings.ensemble,
        sources=tuple(registry.keys()),
    )
    lineup = assign_lineup(
        roster,
        roster.rules,
        blended,
        overrides,
        injury_penalties=settings.injuries,
        week=week,
    )
    print(render_lineup_text(roster.name or roster.id, lineup))

    if args.output:
        _write_details_csv(args.output, lineup)
        print(f"Wrote {len(lineup.details)} player details to {args.output}")
    if args.audit:
        candidates = score_candidates(roster, blended, overrides, injury_penalties=settings.injuries)
        audit = optimality_gap(lineup, candidates, roster.rules, overrides)
        print(
            f"Audit ({audit.status}): greedy {audit.greedy_total:.2f}, "
            f"optimal {audit.optimal_total:.2f}, gap {audit.gap:.2f}"
        )
    return 0


def _run_recompute(args: argparse.Namespace, settings: Settings) -> int:
    store = RosterStore(args.db)
    week = args.week or current_nfl_week()
    season = args.season or season_for()
    with HttpProjectionFeed(settings) as feed:
        service = LineupService(
            store,
            feed,
            settings=settings,
            directory=PlayerDirectory(timeout=settings.fetch_timeout),
        )
        result = service.recompute(
            args.roster_id,
            week,
            season=season,
            notify=not args.no_notify,
            dry_run=args.dry_run,
        )
    if args.json:
        print(result.lineup.model_dump_json(indent=2))
    else:
        roster = store.require_roster(args.roster_id)
        print(render_lineup_text(roster.name or roster.id, result.lineup, result.names))
        print(f"changed={result.changed} notified={result.notified} saved={result.saved}")
    return 0


def _run_show(args: argparse.Namespace) -> int:
    store = RosterStore(args.db)
    week = args.week or current_nfl_week()
    roster = store.require_roster(args.roster_id)
    lineup = store.get_lineup(args.roster_id, week)
    if lineup is None:
        print(f"No stored lineup for roster {args.roster_id} week {week}")
        return 1
    names = store.get_lineup_names(args.roster_id, week)
    print(render_lineup_text(roster.name or roster.id, lineup, names))
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "week":
        print(f"Week {current_nfl_week()} of the {season_for()} season")
        return

    try:
        if args.command == "show":
            code = _run_show(args)
        else:
            settings = _effective_settings(args)
            code = _run_blend(args, settings) if args.command == "blend" else _run_recompute(args, settings)
    except LineupLabError as exc:
        logger.error("%s", exc)
        sys.exit(2)
    if code:
        sys.exit(code)


if __name__ == "__main__":  # pragma: no cover
    main()
