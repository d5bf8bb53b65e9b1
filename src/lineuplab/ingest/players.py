"""Player metadata lookups: position, team and injury designation."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, Iterable, Mapping, Optional

import httpx

from lineuplab.config.roster import canonical_position
from lineuplab.config.settings import SLEEPER_PLAYERS_URL
from lineuplab.models import PlayerMeta


logger = logging.getLogger(__name__)

_CACHE_SECONDS = 60 * 60

_INJURY_ALIASES = {
    "OUT": "OUT",
    "O": "OUT",
    "IR": "OUT",
    "PUP": "OUT",
    "SUS": "OUT",
    "NA": "OUT",
    "DOUBTFUL": "DOUBTFUL",
    "D": "DOUBTFUL",
    "QUESTIONABLE": "QUESTIONABLE",
    "Q": "QUESTIONABLE",
}


def normalize_injury(raw: Any) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    return _INJURY_ALIASES.get(raw.strip().upper())


def meta_from_payload(player_id: str, payload: Mapping[str, Any]) -> PlayerMeta:
    name = payload.get("full_name") or " ".join(
        part for part in (payload.get("first_name"), payload.get("last_name")) if part
    )
    return PlayerMeta(
        player_id=player_id,
        name=str(name or player_id),
        position=canonical_position(payload.get("position")),
        team=payload.get("team") or None,
        injury_status=normalize_injury(payload.get("injury_status")),
    )


class PlayerDirectory:
    """Sleeper-backed player lookup cached in-process."""

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        *,
        url: str = SLEEPER_PLAYERS_URL,
        cache_seconds: float = _CACHE_SECONDS,
        timeout: float = 10.0,
    ):
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)
        self._url = url
        self._cache_seconds = cache_seconds
        self._timeout = timeout
        self._lock = threading.Lock()
        self._loaded_at: float | None = None
        self._players: Dict[str, Mapping[str, Any]] = {}

    def _load(self) -> Dict[str, Mapping[str, Any]]:
        with self._lock:
            fresh = self._loaded_at is not None and time.monotonic() - self._loaded_at < self._cache_seconds
            if fresh:
                return self._players
            response = self._client.get(self._url, timeout=self._timeout)
            response.raise_for_status()
            body = response.json()
            if not isinstance(body, Mapping):
                raise ValueError("player directory payload is not an object")
            self._players = {str(pid): data for pid, data in body.items() if isinstance(data, Mapping)}
            self._loaded_at = time.monotonic()
            logger.info("Loaded %s players into the directory cache", len(self._players))
            return self._players

    def lookup(self, player_ids: Iterable[str]) -> Dict[str, PlayerMeta]:
        """Return metadata for known ids; an unavailable directory yields nothing."""

        try:
            players = self._load()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Player directory unavailable: %s", exc)
            return {}
        return {pid: meta_from_payload(pid, players[pid]) for pid in player_ids if pid in players}
