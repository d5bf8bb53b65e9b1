import httpx

from lineuplab.config import Settings, SourceFeed
from lineuplab.ingest import (
    HttpProjectionFeed,
    PlayerDirectory,
    build_registry,
    collect_history,
    collect_projections,
    flatten,
)


class FakeFeed:
    def __init__(self, payloads, failing=(), actuals=None):
        self.payloads = payloads
        self.failing = set(failing)
        self.actuals = actuals or []
        self.calls = []

    def fetch_projections(self, source_id, season, week):
        self.calls.append((source_id, week))
        if source_id in self.failing:
            raise httpx.ConnectError("connection refused")
        return self.payloads.get(source_id, [])

    def fetch_actuals(self, season, weeks):
        return self.actuals


def _rows(*entries):
    return [{"playerId": pid, "position": pos, "pts_ppr": pts} for pid, pos, pts in entries]


def test_collect_projections_fails_open_per_source():
    feed = FakeFeed(
        {"FTN": _rows(("p1", "RB", 12.0)), "ML": _rows(("p1", "RB", 14.0), ("p2", "WR", 9.0))},
        failing={"BAKER"},
    )
    registry = build_registry(("FTN", "ML", "BAKER"))
    by_source = collect_projections(feed, registry, 2025, 4)
    assert by_source["BAKER"] == []
    assert len(by_source["ML"]) == 2
    assert len(flatten(by_source)) == 3


def test_collect_history_joins_positions_for_actuals():
    feed = FakeFeed(
        {"FTN": _rows(("p1", "WR", 10.0))},
        actuals=[{"player_id": "p1", "week": 1, "pts_ppr": 12.0}, {"player_id": "p1", "week": 2, "pts_ppr": 8.0}],
    )
    historical, actuals = collect_history(feed, build_registry(("FTN",)), 2025, [2, 1, 2])
    assert sorted(row.week for row in historical) == [1, 2]
    assert [(a.week, a.position) for a in actuals] == [(1, "WR"), (2, "WR")]
    assert sorted(week for _, week in feed.calls) == [1, 2]


def test_collect_history_keeps_valid_actuals_beside_a_bad_row():
    feed = FakeFeed(
        {"FTN": _rows(("p1", "WR", 10.0))},
        actuals=[
            {"player_id": "p1", "week": 1, "pts_ppr": 12.0},
            {"player_id": "p1", "week": -1, "pts_ppr": 3.0},
            {"player_id": "p1", "week": 2, "pts_ppr": 8.0},
        ],
    )
    historical, actuals = collect_history(feed, build_registry(("FTN",)), 2025, [1, 2])
    assert len(historical) == 2
    assert [a.week for a in actuals] == [1, 2]


def test_collect_history_with_no_weeks_is_empty():
    assert collect_history(FakeFeed({}), build_registry(("FTN",)), 2025, []) == ([], [])


def test_http_feed_renders_url_and_sends_token():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"playerId": "p1", "position": "QB", "pts_ppr": 20}])

    settings = Settings(
        feeds={
            "FTN": SourceFeed("FTN", "https://feeds.test/ftn/{season}/{week}", token="secret"),
            "ML": SourceFeed("ML", None),
        }
    )
    client = httpx.Client(transport=httpx.MockTransport(handler))
    with HttpProjectionFeed(settings, client=client) as feed:
        assert feed.fetch_projections("FTN", 2025, 5)[0]["playerId"] == "p1"
        assert feed.fetch_projections("ML", 2025, 5) == []
    assert str(seen[0].url) == "https://feeds.test/ftn/2025/5"
    assert seen[0].headers["Authorization"] == "Bearer secret"


def test_http_feed_appends_query_params_for_actuals():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    settings = Settings(actuals_url="https://feeds.test/actuals")
    client = httpx.Client(transport=httpx.MockTransport(handler))
    feed = HttpProjectionFeed(settings, client=client)
    assert feed.fetch_actuals(2025, [3, 1, 2]) == []
    params = seen[0].url.params
    assert params["season"] == "2025"
    assert params["startWeek"] == "1"
    assert params["endWeek"] == "3"


def test_player_directory_caches_and_normalizes():
    hits = []

    def handler(request: httpx.Request) -> httpx.Response:
        hits.append(request)
        return httpx.Response(
            200,
            json={
                "p1": {"full_name": "Wide Out", "position": "WR", "team": "KC", "injury_status": "Questionable"},
                "p2": {"first_name": "Def", "last_name": "Unit", "position": "DEF", "injury_status": "IR"},
            },
        )

    directory = PlayerDirectory(client=httpx.Client(transport=httpx.MockTransport(handler)))
    meta = directory.lookup(["p1", "p2", "p9"])
    assert meta["p1"].injury_status == "QUESTIONABLE"
    assert meta["p2"].position == "DST"
    assert meta["p2"].injury_status == "OUT"
    assert "p9" not in meta
    directory.lookup(["p1"])
    assert len(hits) == 1


def test_player_directory_unavailable_returns_nothing():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    directory = PlayerDirectory(client=httpx.Client(transport=httpx.MockTransport(handler)))
    assert directory.lookup(["p1"]) == {}
