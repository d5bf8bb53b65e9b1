from datetime import datetime, timezone
from pathlib import Path

from lineuplab.config_loader import EngineProfile
from lineuplab.config import EnsembleConfig, InjuryPenalties
from lineuplab.week import current_nfl_week, season_for


def test_week_before_kickoff_is_one():
    assert current_nfl_week(datetime(2025, 8, 1, tzinfo=timezone.utc)) == 1


def test_week_counts_from_kickoff():
    assert current_nfl_week(datetime(2025, 9, 4, 12, tzinfo=timezone.utc)) == 1
    assert current_nfl_week(datetime(2025, 9, 11, 1, tzinfo=timezone.utc)) == 2
    assert current_nfl_week(datetime(2025, 10, 19)) == 7


def test_week_is_clamped_to_regular_season():
    assert current_nfl_week(datetime(2026, 2, 1, tzinfo=timezone.utc)) == 18


def test_kickoff_override_and_invalid_value(monkeypatch):
    monkeypatch.setenv("LINEUPLAB_SEASON_KICKOFF", "2026-09-10T00:00:00Z")
    assert current_nfl_week(datetime(2026, 9, 18, tzinfo=timezone.utc)) == 2
    monkeypatch.setenv("LINEUPLAB_SEASON_KICKOFF", "soon")
    assert current_nfl_week(datetime(2026, 12, 1, tzinfo=timezone.utc)) == 1


def test_season_rolls_over_in_march():
    assert season_for(datetime(2026, 1, 15)) == 2025
    assert season_for(datetime(2026, 9, 15)) == 2026


def test_engine_profile_round_trip(tmp_path: Path):
    path = tmp_path / "profile.json"
    profile = EngineProfile(
        ensemble=EnsembleConfig(shrink_k=20.0, history_weeks=4),
        injuries=InjuryPenalties(questionable=-1.0),
        sources=["FTN", "SLEEPER"],
    )
    profile.save(path)
    loaded = EngineProfile.load(path)
    assert loaded == profile


def test_engine_profile_fills_missing_keys(tmp_path: Path):
    path = tmp_path / "partial.json"
    path.write_text('{"ensemble": {"alpha": 2.0}, "sources": ["ftn"]}', encoding="utf-8")
    loaded = EngineProfile.load(path)
    assert loaded.ensemble.alpha == 2.0
    assert loaded.ensemble.shrink_k == 50.0
    assert loaded.injuries == InjuryPenalties()
    assert loaded.sources == ["FTN"]
