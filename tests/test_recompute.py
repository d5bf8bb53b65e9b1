from pathlib import Path

import httpx
import pytest

from lineuplab.config import EnsembleConfig, Settings
from lineuplab.errors import NoProjectionDataError, RosterNotFoundError
from lineuplab.ingest import build_registry
from lineuplab.models import PlayerMeta
from lineuplab.persistence import RosterStore
from lineuplab.recompute import LineupService, history_window


ROSTER = [
    ("P1", "QB", 20.0),
    ("P2", "RB", 18.0),
    ("P3", "RB", 15.0),
    ("P4", "RB", 12.0),
    ("P5", "WR", 14.0),
    ("P6", "WR", 10.0),
    ("P7", "TE", 8.0),
    ("P8", "DST", 7.0),
    ("P9", "K", 6.0),
]


class FakeFeed:
    def __init__(self, rows_by_source, failing=()):
        self.rows_by_source = rows_by_source
        self.failing = set(failing)

    def fetch_projections(self, source_id, season, week):
        if source_id in self.failing:
            raise httpx.ReadTimeout("timed out")
        return self.rows_by_source.get(source_id, [])

    def fetch_actuals(self, season, weeks):
        return []


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, roster, summary):
        self.sent.append((roster.id, summary))


class BrokenNotifier:
    def notify(self, roster, summary):
        raise ConnectionError("smtp down")


class StaticDirectory:
    def __init__(self, players):
        self.players = players

    def lookup(self, player_ids):
        return {pid: self.players[pid] for pid in player_ids if pid in self.players}


def _feed_rows(shift=0.0):
    return [{"playerId": pid, "position": pos, "pts_ppr": pts + shift} for pid, pos, pts in ROSTER]


@pytest.fixture()
def store(tmp_path: Path) -> RosterStore:
    store = RosterStore(tmp_path / "lineuplab.sqlite")
    store.create_roster(players=[pid for pid, _, _ in ROSTER], name="Tacos", roster_id="r1")
    return store


def _service(store, feed, notifier, directory=None):
    return LineupService(
        store,
        feed,
        settings=Settings(ensemble=EnsembleConfig(history_weeks=2)),
        registry=build_registry(("FTN", "ML")),
        directory=directory,
        notifier=notifier,
    )


def test_history_window_stops_at_week_one():
    assert history_window(5, 2) == [3, 4]
    assert history_window(2, 8) == [1]
    assert history_window(1, 8) == []


def test_recompute_persists_and_notifies_once(store):
    notifier = RecordingNotifier()
    service = _service(store, FakeFeed({"FTN": _feed_rows(), "ML": _feed_rows()}), notifier)

    first = service.recompute("r1", 3, season=2025)
    assert first.changed and first.notified and first.saved
    assert first.previous_hash is None
    assert first.lineup.slots["FLEX"] == ["P4"]
    assert store.get_lineup("r1", 3) == first.lineup

    second = service.recompute("r1", 3, season=2025)
    assert not second.changed
    assert not second.notified
    assert second.previous_hash == first.lineup.content_hash
    assert len(notifier.sent) == 1
    assert "Hi Tacos" in notifier.sent[0][1]


def test_override_change_triggers_new_notification(store):
    notifier = RecordingNotifier()
    service = _service(store, FakeFeed({"FTN": _feed_rows()}), notifier)
    service.recompute("r1", 3, season=2025)
    store.set_overrides(3, force_sit={"P2": True})
    result = service.recompute("r1", 3, season=2025)
    assert result.changed
    assert "P2" in result.lineup.bench
    assert len(notifier.sent) == 2


def test_dry_run_and_opt_out_skip_side_effects(store):
    notifier = RecordingNotifier()
    service = _service(store, FakeFeed({"FTN": _feed_rows()}), notifier)
    dry = service.recompute("r1", 3, season=2025, dry_run=True)
    assert dry.changed and not dry.saved and not dry.notified
    assert store.get_lineup("r1", 3) is None

    store.save_roster("r1", {"notify_opt_in": False})
    quiet = service.recompute("r1", 3, season=2025)
    assert quiet.saved and not quiet.notified
    assert notifier.sent == []


def test_one_failing_source_is_tolerated(store):
    notifier = RecordingNotifier()
    service = _service(store, FakeFeed({"FTN": _feed_rows()}, failing={"ML"}), notifier)
    result = service.recompute("r1", 3, season=2025)
    assert result.lineup.total_score == pytest.approx(110.0)


def test_no_data_raises_and_persists_nothing(store):
    service = _service(store, FakeFeed({}, failing={"FTN"}), RecordingNotifier())
    with pytest.raises(NoProjectionDataError):
        service.recompute("r1", 3, season=2025)
    assert store.get_lineup("r1", 3) is None


def test_missing_roster_raises(store):
    service = _service(store, FakeFeed({"FTN": _feed_rows()}), RecordingNotifier())
    with pytest.raises(RosterNotFoundError):
        service.recompute("ghost", 3, season=2025)


def test_summary_uses_player_names_and_keeps_them(store):
    notifier = RecordingNotifier()
    directory = StaticDirectory({"P1": PlayerMeta(player_id="P1", name="Joe Burrow", position="QB", team="CIN")})
    service = _service(store, FakeFeed({"FTN": _feed_rows()}), notifier, directory=directory)

    result = service.recompute("r1", 3, season=2025)
    assert result.names["P1"].name == "Joe Burrow"
    assert "Joe Burrow QB (CIN) - 20.0 pts" in notifier.sent[0][1]
    assert store.get_lineup_names("r1", 3)["P1"].team == "CIN"


def test_failed_notification_is_retried_on_next_recompute(store):
    feed = FakeFeed({"FTN": _feed_rows()})
    failed = _service(store, feed, BrokenNotifier()).recompute("r1", 3, season=2025)
    assert failed.changed and not failed.notified and not failed.saved
    assert store.get_lineup("r1", 3) is None

    notifier = RecordingNotifier()
    retried = _service(store, feed, notifier).recompute("r1", 3, season=2025)
    assert retried.changed and retried.notified and retried.saved
    assert len(notifier.sent) == 1
