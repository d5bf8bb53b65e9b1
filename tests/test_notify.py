from lineuplab.models import PlayerDetail, PlayerMeta, WeeklyLineup
from lineuplab.notify import lineup_hash, render_lineup_text, should_notify


def _lineup(slots, bench=(), content_hash=None):
    lineup = WeeklyLineup(week=4, slots=slots, bench=list(bench))
    return lineup.model_copy(update={"content_hash": content_hash if content_hash is not None else lineup_hash(slots)})


def test_hash_ignores_order_within_slot_and_empty_slots():
    a = lineup_hash({"RB": ["p2", "p1"], "QB": ["q"], "FLEX": []})
    b = lineup_hash({"QB": ["q"], "RB": ["p1", "p2"]})
    assert a == b
    assert len(a) == 64


def test_hash_changes_when_a_starter_changes():
    assert lineup_hash({"QB": ["q1"]}) != lineup_hash({"QB": ["q2"]})
    assert lineup_hash({"RB": ["p1"]}) != lineup_hash({"FLEX": ["p1"]})


def test_should_notify_first_time_and_on_change_only():
    first = _lineup({"QB": ["q1"], "RB": ["r1"]}, bench=["b1"])
    assert should_notify(first, None)
    same_starters = _lineup({"RB": ["r1"], "QB": ["q1"]}, bench=["b2"])
    assert not should_notify(same_starters, first)
    changed = _lineup({"QB": ["q2"], "RB": ["r1"]})
    assert should_notify(changed, first)


def test_should_notify_recomputes_missing_stored_hash():
    previous = _lineup({"QB": ["q1"]}, content_hash="")
    assert not should_notify(_lineup({"QB": ["q1"]}), previous)


def test_render_lists_slots_in_order_then_bench():
    lineup = WeeklyLineup(
        week=4,
        slots={"QB": ["q1"], "RB": ["r1"], "WR": [], "TE": [], "FLEX": [], "DST": [], "K": ["k1"]},
        bench=["b1"],
        details={
            "q1": PlayerDetail(player_id="q1", slot="QB", points=21.04, confidence=0.72, tier="A"),
            "b1": PlayerDetail(player_id="b1", note="forced sit"),
        },
        total_score=21.04,
    )
    names = {"q1": PlayerMeta(player_id="q1", name="Joe Burrow", position="QB", team="CIN")}
    text = render_lineup_text("Team Taco", lineup, names)
    lines = text.splitlines()
    assert lines[0] == "Lineup Lab: Week 4"
    assert "Hi Team Taco" in lines[1]
    assert "  - Joe Burrow QB (CIN) - 21.0 pts, 72%, tier A" in lines
    headers = [line for line in lines if line in {"QB", "RB", "WR", "TE", "FLEX", "DST", "K", "Bench"}]
    assert headers == ["QB", "RB", "WR", "TE", "FLEX", "DST", "K", "Bench"]
    assert "  - b1 [forced sit]" in lines
    assert lines[-1] == "Projected total: 21.04"
