import random

import pytest

from lineuplab.config import DEFAULT_RULES, InjuryPenalties, merge_rules
from lineuplab.ensemble import BlendedEstimate
from lineuplab.models import AdminOverrides, PlayerMeta, UserRoster
from lineuplab.notify import lineup_hash
from lineuplab.optimizer import assign_lineup, confidence_for


BASE = [
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


def _estimates(entries, std=1.0):
    return {
        pid: BlendedEstimate(
            player_id=pid,
            position=pos,
            mean=mean,
            std=std,
            ci_low=mean - 1.96 * std,
            ci_high=mean + 1.96 * std,
            tier="B",
        )
        for pid, pos, mean in entries
    }


def _roster(entries=BASE, **kwargs):
    return UserRoster(id="r1", players=[pid for pid, _, _ in entries], **kwargs)


def _assert_slot_invariant(lineup, roster, rules):
    placed = lineup.starters() + lineup.bench
    assert sorted(placed) == sorted(set(roster.players))
    assert len(placed) == len(set(placed))
    for slot, ids in lineup.slots.items():
        assert len(ids) <= rules.count(slot)


def test_base_example_fills_every_slot():
    roster = _roster()
    lineup = assign_lineup(roster, DEFAULT_RULES, _estimates(BASE), AdminOverrides.empty(1))
    assert lineup.slots == {
        "QB": ["P1"],
        "RB": ["P2", "P3"],
        "WR": ["P5", "P6"],
        "TE": ["P7"],
        "FLEX": ["P4"],
        "DST": ["P8"],
        "K": ["P9"],
    }
    assert lineup.bench == []
    assert lineup.total_score == pytest.approx(110.0)
    assert lineup.content_hash == lineup_hash(lineup.slots)
    assert lineup.details["P4"].slot == "FLEX"


def test_force_sit_benches_player_with_note():
    roster = _roster()
    overrides = AdminOverrides(week=1, force_sit={"P2": True})
    lineup = assign_lineup(roster, DEFAULT_RULES, _estimates(BASE), overrides)
    assert lineup.slots["RB"] == ["P3", "P4"]
    assert "P6" in lineup.starters()
    # only RB/WR/TE candidates left after dedicated slots would fill FLEX
    assert lineup.slots["FLEX"] == []
    assert lineup.bench == ["P2"]
    assert "forced sit" in lineup.details["P2"].note
    _assert_slot_invariant(lineup, roster, DEFAULT_RULES)


def test_force_sit_beats_force_start():
    overrides = AdminOverrides(week=1, force_sit={"P1": True}, force_start={"P1": True})
    lineup = assign_lineup(_roster(), DEFAULT_RULES, _estimates(BASE), overrides)
    assert "P1" not in lineup.starters()
    assert "forced sit overrides forced start" in lineup.details["P1"].note


def test_force_start_is_placed_before_better_players():
    entries = BASE + [("P10", "WR", 3.0)]
    overrides = AdminOverrides(week=1, force_start={"P10": True})
    lineup = assign_lineup(_roster(entries), DEFAULT_RULES, _estimates(entries), overrides)
    assert lineup.slots["WR"][0] == "P10"
    assert lineup.slots["WR"] == ["P10", "P5"]
    assert lineup.slots["FLEX"] == ["P4"]
    assert lineup.bench == ["P6"]
    assert "forced start" in lineup.details["P10"].note


def test_forced_start_without_open_slot_is_noted_not_raised():
    entries = [("Q1", "QB", 20.0), ("Q2", "QB", 10.0)]
    overrides = AdminOverrides(week=1, force_start={"Q1": True, "Q2": True})
    lineup = assign_lineup(_roster(entries), DEFAULT_RULES, _estimates(entries), overrides)
    assert lineup.slots["QB"] == ["Q1"]
    assert lineup.bench == ["Q2"]
    assert "no eligible open slot" in lineup.details["Q2"].note


def test_point_delta_changes_order():
    overrides = AdminOverrides(week=1, point_delta={"P4": 5.0})
    lineup = assign_lineup(_roster(), DEFAULT_RULES, _estimates(BASE), overrides)
    assert lineup.slots["RB"] == ["P2", "P4"]
    assert lineup.slots["FLEX"] == ["P3"]
    assert lineup.details["P4"].points == pytest.approx(17.0)


def test_pins_take_flex_ahead_of_score():
    entries = BASE + [("P10", "TE", 4.0)]
    roster = _roster(entries, pins=["P10"])
    lineup = assign_lineup(roster, DEFAULT_RULES, _estimates(entries), AdminOverrides.empty(1))
    assert lineup.slots["FLEX"] == ["P10"]
    assert lineup.bench == ["P4"]
    assert "pinned to FLEX" in lineup.details["P10"].note


def test_pins_never_override_force_sit_or_eligibility():
    entries = BASE + [("P10", "TE", 4.0), ("Q2", "QB", 30.0)]
    roster = _roster(entries, pins=["P10", "Q2"])
    overrides = AdminOverrides(week=1, force_sit={"P10": True})
    lineup = assign_lineup(roster, DEFAULT_RULES, _estimates(entries), overrides)
    assert lineup.slots["FLEX"] == ["P4"]
    assert lineup.slots["QB"] == ["Q2"]


def test_injuries_adjust_score_and_out_is_unplaceable():
    meta = {
        "P2": PlayerMeta(player_id="P2", position="RB", injury_status="OUT"),
        "P5": PlayerMeta(player_id="P5", position="WR", injury_status="DOUBTFUL"),
        "P3": PlayerMeta(player_id="P3", position="RB", injury_status="QUESTIONABLE"),
    }
    lineup = assign_lineup(_roster(), DEFAULT_RULES, _estimates(BASE), AdminOverrides.empty(1), player_meta=meta)
    assert "P2" in lineup.bench
    assert lineup.details["P5"].points == pytest.approx(9.0)
    assert lineup.details["P3"].points == pytest.approx(13.0)
    assert lineup.slots["WR"] == ["P6", "P5"]
    assert lineup.details["P2"].confidence < 0.1


def test_breakdown_explains_adjusted_points():
    meta = {"P5": PlayerMeta(player_id="P5", position="WR", injury_status="DOUBTFUL")}
    overrides = AdminOverrides(week=1, point_delta={"P5": 2.0}, force_start={"P6": True}, force_sit={"P2": True})
    roster = _roster(scoring_profile="HALF_PPR")
    lineup = assign_lineup(roster, DEFAULT_RULES, _estimates(BASE), overrides, player_meta=meta)

    p5 = lineup.details["P5"].breakdown
    assert p5.scoring == "HALF_PPR"
    assert (p5.base, p5.delta, p5.injury, p5.injury_delta) == (14.0, 2.0, "DOUBTFUL", -5.0)
    assert lineup.details["P5"].points == pytest.approx(p5.base + p5.delta + p5.injury_delta)
    assert lineup.details["P6"].breakdown.forced_start
    assert lineup.details["P2"].breakdown.forced_sit
    assert not lineup.details["P1"].breakdown.forced_sit


def test_configured_penalties_are_used():
    meta = {"P5": PlayerMeta(player_id="P5", position="WR", injury_status="DOUBTFUL")}
    penalties = InjuryPenalties(doubtful=-1.0)
    lineup = assign_lineup(
        _roster(), DEFAULT_RULES, _estimates(BASE), AdminOverrides.empty(1), player_meta=meta, injury_penalties=penalties
    )
    assert lineup.details["P5"].points == pytest.approx(13.0)


def test_missing_projection_and_unknown_position():
    entries = BASE[:3]
    roster = UserRoster(id="r1", players=["P1", "P2", "P3", "ghost"])
    lineup = assign_lineup(roster, DEFAULT_RULES, _estimates(entries), AdminOverrides.empty(1))
    assert lineup.bench == ["ghost"]
    assert "no projection" in lineup.details["ghost"].note
    assert "unknown position" in lineup.details["ghost"].note
    assert lineup.details["ghost"].points == 0.0


def test_ties_keep_roster_order():
    entries = [("W1", "WR", 10.0), ("W2", "WR", 10.0), ("W3", "WR", 10.0)]
    rules = merge_rules({"WR": 1, "FLEX": 1})
    lineup = assign_lineup(_roster(entries), rules, _estimates(entries), AdminOverrides.empty(1))
    assert lineup.slots["WR"] == ["W1"]
    assert lineup.slots["FLEX"] == ["W2"]
    assert lineup.bench == ["W3"]


def test_slot_invariant_on_random_rosters():
    rng = random.Random(7)
    positions = ["QB", "RB", "WR", "TE", "K", "DST"]
    for trial in range(25):
        entries = [(f"x{trial}_{i}", rng.choice(positions), round(rng.uniform(0, 30), 1)) for i in range(rng.randint(0, 16))]
        rules = merge_rules({"RB": rng.randint(0, 3), "WR": rng.randint(0, 3), "FLEX": rng.randint(0, 2)})
        sits = {pid: True for pid, _, _ in entries if rng.random() < 0.2}
        roster = _roster(entries)
        lineup = assign_lineup(roster, rules, _estimates(entries), AdminOverrides(week=1, force_sit=sits))
        _assert_slot_invariant(lineup, roster, rules)
        assert not set(sits) & set(lineup.starters())


def test_confidence_scaling():
    estimate = _estimates([("P1", "QB", 19.6)], std=5.0)["P1"]
    assert confidence_for(estimate) == pytest.approx(0.67, abs=0.01)
    assert confidence_for(estimate, "QUESTIONABLE") == pytest.approx(0.53, abs=0.01)
    assert confidence_for(estimate, "OUT") == pytest.approx(0.07, abs=0.01)
    assert confidence_for(None) == 0.0
