"""SQLite-backed storage for rosters, weekly overrides and lineups."""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional
from uuid import uuid4

from lineuplab.config.roster import merge_rules
from lineuplab.errors import RosterNotFoundError, StoreUnavailableError
from lineuplab.models import AdminOverrides, PlayerMeta, UserRoster, WeeklyLineup


logger = logging.getLogger(__name__)

_DB_ENV = "LINEUPLAB_DB_PATH"
DEFAULT_DB_PATH = Path("data") / "lineuplab.sqlite"

_READ_ONLY_FIELDS = {"id", "created_at", "updated_at"}


class RosterStore:
    """Rosters keyed by id, overrides keyed by week, lineups keyed by (roster, week)."""

    def __init__(self, db_path: Path | str | None = None):
        self._use_uri = False
        env_db = os.getenv(_DB_ENV)
        if db_path is not None:
            target: Path | str = db_path
        elif env_db:
            target = env_db
        else:
            target = DEFAULT_DB_PATH
        if isinstance(target, str) and target.startswith("file:"):
            self.db_path: Path | str = target
            self._use_uri = True
        else:
            self.db_path = Path(target)
        self._ensure_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, uri=self._use_uri)
        except (sqlite3.Error, OSError) as exc:
            raise StoreUnavailableError(f"Cannot open roster store at {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Roster store operation failed: {exc}") from exc
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS rosters (
                    id TEXT PRIMARY KEY,
                    roster_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS overrides (
                    week INTEGER PRIMARY KEY,
                    overrides_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS lineups (
                    roster_id TEXT NOT NULL,
                    week INTEGER NOT NULL,
                    lineup_json TEXT NOT NULL,
                    content_hash TEXT NOT NULL,
                    computed_at TEXT NOT NULL,
                    PRIMARY KEY (roster_id, week)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS lineup_names (
                    roster_id TEXT NOT NULL,
                    week INTEGER NOT NULL,
                    names_json TEXT NOT NULL,
                    PRIMARY KEY (roster_id, week)
                )
                """
            )

    # Rosters

    def create_roster(
        self,
        *,
        players: List[str],
        name: str = "",
        email: Optional[str] = None,
        rules: Optional[Mapping[str, int]] = None,
        scoring_profile: str = "PPR",
        pins: Optional[List[str]] = None,
        notify_opt_in: bool = True,
        roster_id: Optional[str] = None,
    ) -> UserRoster:
        roster = UserRoster(
            id=roster_id or uuid4().hex,
            name=name,
            email=email,
            players=list(players),
            rules=merge_rules(rules),
            scoring_profile=scoring_profile,
            pins=list(pins or []),
            notify_opt_in=notify_opt_in,
        )
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO rosters (id, roster_json, created_at, updated_at) VALUES (?, ?, ?, ?)",
                (
                    roster.id,
                    roster.model_dump_json(),
                    roster.created_at.isoformat(),
                    roster.updated_at.isoformat(),
                ),
            )
        logger.info("Created roster %s with %s players", roster.id, len(roster.players))
        return roster

    def get_roster(self, roster_id: str) -> Optional[UserRoster]:
        with self._connect() as conn:
            row = conn.execute("SELECT roster_json FROM rosters WHERE id = ?", (roster_id,)).fetchone()
        if row is None:
            return None
        return UserRoster.model_validate_json(row["roster_json"])

    def require_roster(self, roster_id: str) -> UserRoster:
        roster = self.get_roster(roster_id)
        if roster is None:
            raise RosterNotFoundError(roster_id)
        return roster

    def save_roster(self, roster_id: str, patch: Mapping[str, Any]) -> UserRoster:
        """Apply a partial update; ``rules`` entries overlay the existing counts."""

        current = self.require_roster(roster_id)
        data = current.model_dump()
        for key, value in patch.items():
            if key in _READ_ONLY_FIELDS or key not in data:
                continue
            if key == "rules":
                if value is None:
                    continue
                data["rules"] = merge_rules({**current.rules.as_dict(), **dict(value)})
            else:
                data[key] = value
        data["updated_at"] = datetime.now(timezone.utc)
        updated = UserRoster.model_validate(data)
        with self._connect() as conn:
            conn.execute(
                "UPDATE rosters SET roster_json = ?, updated_at = ? WHERE id = ?",
                (updated.model_dump_json(), updated.updated_at.isoformat(), roster_id),
            )
        return updated

    def list_roster_ids(self) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT id FROM rosters ORDER BY datetime(created_at), id").fetchall()
        return [row["id"] for row in rows]

    # Lineups

    def get_lineup(self, roster_id: str, week: int) -> Optional[WeeklyLineup]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT lineup_json FROM lineups WHERE roster_id = ? AND week = ?",
                (roster_id, week),
            ).fetchone()
        if row is None:
            return None
        return WeeklyLineup.model_validate_json(row["lineup_json"])

    def save_lineup(self, roster_id: str, lineup: WeeklyLineup) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO lineups (roster_id, week, lineup_json, content_hash, computed_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(roster_id, week) DO UPDATE SET
                    lineup_json = excluded.lineup_json,
                    content_hash = excluded.content_hash,
                    computed_at = excluded.computed_at
                """,
                (
                    roster_id,
                    lineup.week,
                    lineup.model_dump_json(),
                    lineup.content_hash,
                    lineup.computed_at.isoformat(),
                ),
            )

    def get_lineup_names(self, roster_id: str, week: int) -> Dict[str, PlayerMeta]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT names_json FROM lineup_names WHERE roster_id = ? AND week = ?",
                (roster_id, week),
            ).fetchone()
        if row is None:
            return {}
        return {pid: PlayerMeta.model_validate(meta) for pid, meta in json.loads(row["names_json"]).items()}

    def save_lineup_names(self, roster_id: str, week: int, names: Mapping[str, PlayerMeta]) -> None:
        """Keep the player metadata a lineup was rendered with, for later display."""

        payload = json.dumps({pid: meta.model_dump(mode="json") for pid, meta in names.items()})
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO lineup_names (roster_id, week, names_json) VALUES (?, ?, ?)
                ON CONFLICT(roster_id, week) DO UPDATE SET names_json = excluded.names_json
                """,
                (roster_id, week, payload),
            )

    # Overrides

    def get_overrides(self, week: int) -> AdminOverrides:
        with self._connect() as conn:
            row = conn.execute("SELECT overrides_json FROM overrides WHERE week = ?", (week,)).fetchone()
        if row is None:
            return AdminOverrides.empty(week)
        return AdminOverrides.model_validate(json.loads(row["overrides_json"]))

    def set_overrides(
        self,
        week: int,
        *,
        point_delta: Optional[Mapping[str, float]] = None,
        force_start: Optional[Mapping[str, bool]] = None,
        force_sit: Optional[Mapping[str, bool]] = None,
        note: Optional[str] = None,
    ) -> AdminOverrides:
        """Merge entries into the week's overrides; existing keys not named are kept."""

        merged = self.get_overrides(week).merged(
            point_delta=point_delta,
            force_start=force_start,
            force_sit=force_sit,
            note=note,
        )
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO overrides (week, overrides_json, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(week) DO UPDATE SET
                    overrides_json = excluded.overrides_json,
                    updated_at = excluded.updated_at
                """,
                (week, merged.model_dump_json(), datetime.now(timezone.utc).isoformat()),
            )
        logger.info("Updated overrides for week %s", week)
        return merged


__all__ = ["DEFAULT_DB_PATH", "RosterStore"]
