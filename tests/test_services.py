from __future__ import annotations

import json
import random
from datetime import date, timedelta

import pandas as pd
import pytest

from fit_roadmap import services
from fit_roadmap.catalog import PRIMARY_LIFT_ALTERNATIVES
from fit_roadmap.models import DailyLog, GeneratedPlanItem, ValidationError
from fit_roadmap.scheduler import ScheduledExercise

MONDAY = date(2024, 5, 6)


def _use_store(monkeypatch, tmp_path):
    monkeypatch.setenv("FIT_ROADMAP_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("FIT_ROADMAP_CONFIG", raising=False)
    monkeypatch.delenv("FIT_CONFIG", raising=False)
    services.get_config.cache_clear()


def _log_payload(day: date, *, success: bool = True) -> DailyLog:
    return services.build_daily_log(
        day,
        body_weight_kg=60.0,
        lifts={
            "bench": {"weight": 40, "reps": 5, "success": success},
            "squat": {"weight": "60", "reps": 5, "success": success},
            "dead": {"weight": 80, "reps": 5, "success": success},
            "curl": {"weight": 10},
        },
    )


def test_load_profile_rewrites_legacy_record(monkeypatch, tmp_path):
    _use_store(monkeypatch, tmp_path)
    legacy = {"goal": "muscle", "bodyWeightKg": 58, "duration": "45+"}
    (tmp_path / "profile.json").write_text(json.dumps(legacy), encoding="utf-8")

    profile = services.load_profile()
    assert profile.goal_areas == {"arms": 3}
    assert profile.session_duration == "long"

    stored = json.loads((tmp_path / "profile.json").read_text(encoding="utf-8"))
    assert stored == profile.to_dict()


def test_complete_session_drives_progression(monkeypatch, tmp_path):
    _use_store(monkeypatch, tmp_path)
    services.save_profile_input({"goals": ["arms"], "body_weight_kg": 60})
    before = services.current_menu()
    for _ in range(4):
        services.complete_session()
    after = services.current_menu()

    assert services.load_profile().sessions_completed == 4
    assert after[0].target_reps == before[0].target_reps + 2


def test_week_plan_copies_previous_week(monkeypatch, tmp_path):
    _use_store(monkeypatch, tmp_path)
    services.save_profile_input({"sessions_per_week": 2})

    first = services.week_plan_for(MONDAY)
    assert first.sessions_per_week == 2
    services.toggle_week_day(MONDAY, 1)

    following = services.week_plan_for(MONDAY + timedelta(days=8))
    assert following.week_start == MONDAY + timedelta(days=7)
    assert following.days[:3] == (True, True, True)

    far = services.week_plan_for(MONDAY + timedelta(days=28))
    assert far.days == (True, False, True, False, True, False, False)


def test_set_sessions_per_week_validates(monkeypatch, tmp_path):
    _use_store(monkeypatch, tmp_path)
    assert services.set_sessions_per_week(MONDAY, 4).sessions_per_week == 4
    with pytest.raises(ValidationError):
        services.set_sessions_per_week(MONDAY, 5)


def test_today_plan_uses_logged_targets(monkeypatch, tmp_path):
    _use_store(monkeypatch, tmp_path)
    services.record_daily_log(_log_payload(MONDAY - timedelta(days=3)))

    session = services.today_plan(MONDAY)
    assert session.key == "PUSH"
    assert session.targets["bench"].source == "logged"
    assert session.exercises[0].suggested_weight_kg == pytest.approx(35.0)


def test_record_daily_log_grants_xp_streak_and_bonus(monkeypatch, tmp_path):
    _use_store(monkeypatch, tmp_path)
    outcome = services.record_daily_log(_log_payload(MONDAY), rng=random.Random(0))
    assert outcome.xp_gained == 10
    assert outcome.bonus_xp == 5
    assert outcome.state.xp == 15
    assert outcome.streak == 1
    assert "curl" not in outcome.log.lifts
    assert outcome.confirmation.startswith("Logged 2024-05-06 (+10 XP, +5 all-lifts bonus)")

    again = services.record_daily_log(_log_payload(MONDAY, success=False))
    assert again.state.xp == 25
    assert again.streak == 1

    nxt = services.record_daily_log(_log_payload(MONDAY + timedelta(days=1), success=False))
    assert nxt.streak == 2

    summary = services.rewards_summary(MONDAY + timedelta(days=1))
    assert summary["xp"] == 35
    assert summary["training_streak"] == 2
    assert "first-log" in services.achievements()


def test_build_daily_log_rejects_non_positive_weight():
    with pytest.raises(ValidationError):
        services.build_daily_log(MONDAY, body_weight_kg=0)


def test_swap_area_exercise(monkeypatch, tmp_path):
    _use_store(monkeypatch, tmp_path)
    services.save_profile_input({"body_weight_kg": 60})

    result = services.swap_exercise("squat", rng=random.Random(1))
    assert isinstance(result, GeneratedPlanItem)
    assert result.exercise_key in {"legpress", "lunge", "hipbridge"}


def test_swap_primary_lift(monkeypatch, tmp_path):
    _use_store(monkeypatch, tmp_path)
    services.save_profile_input({"body_weight_kg": 60, "barriers": ["no-heavy"]})

    result = services.swap_exercise("dead", scope="session", day=MONDAY + timedelta(days=4), rng=random.Random(2))
    assert isinstance(result, ScheduledExercise)
    assert result.name == "Back Extension (Plate)"
    # dead estimate 72.5 * 0.3
    assert result.suggested_weight_kg == pytest.approx(22.5)

    names = {candidate.name for candidate in PRIMARY_LIFT_ALTERNATIVES["row"]}
    assert services.swap_exercise("row", scope="session", day=MONDAY).name in names

    with pytest.raises(ValidationError):
        services.swap_exercise("juggling", scope="session")


def test_swap_scope_separates_shared_keys(monkeypatch, tmp_path):
    _use_store(monkeypatch, tmp_path)
    services.save_profile_input({"body_weight_kg": 60})

    squat = services.swap_session_exercise("squat", day=MONDAY, rng=random.Random(4))
    assert isinstance(squat, ScheduledExercise)
    assert squat.name in {candidate.name for candidate in PRIMARY_LIFT_ALTERNATIVES["squat"]}
    assert squat.kind == "accessory"

    # the default menu already holds the whole "whole" pool
    assert [item.exercise_key for item in services.current_menu()] == ["row", "ohp", "mountain"]
    assert services.swap_menu_exercise("row", rng=random.Random(4)) is None

    with pytest.raises(ValidationError):
        services.swap_exercise("dead", scope="menu")
    with pytest.raises(ValidationError):
        services.swap_exercise("squat", scope="week")


def test_roadmap_frame_merges_actuals(monkeypatch, tmp_path):
    _use_store(monkeypatch, tmp_path)
    services.save_profile_input(
        {"body_weight_kg": 60, "goal_weight_kg": 56, "started_at": "2024-01-01", "weeks_to_goal": 4}
    )
    logs = [
        DailyLog(date=date(2024, 1, 8), body_weight_kg=59.0),
        DailyLog(date=date(2024, 1, 10), body_weight_kg=58.9),
    ]

    frame = services.roadmap_frame(logs=logs)
    assert len(frame) == 6
    assert list(frame.columns[:5]) == ["date", "weight_kg", "bench", "squat", "dead"]
    week_one = frame[frame["date"] == pd.Timestamp("2024-01-08")].iloc[0]
    assert week_one["actual_weight_kg"] == pytest.approx(59.0)
    assert week_one["weight_kg"] == pytest.approx(59.0)
    extra = frame[frame["date"] == pd.Timestamp("2024-01-10")].iloc[0]
    assert pd.isna(extra["weight_kg"])

    empty = services.roadmap_frame(logs=[])
    assert len(empty) == 5
    assert "actual_bench" in empty.columns


def test_progress_frame_weekly_summary(monkeypatch, tmp_path):
    _use_store(monkeypatch, tmp_path)
    logs = [
        _log_payload(MONDAY),
        _log_payload(MONDAY + timedelta(days=2), success=False),
        DailyLog(date=MONDAY + timedelta(days=8), body_weight_kg=59.0),
    ]
    frame = services.progress_frame(logs)
    assert list(frame["days_logged"]) == [2, 1]
    assert list(frame["all_success_days"]) == [1, 0]
    assert frame.iloc[0]["best_dead"] == pytest.approx(80.0)
    assert frame.iloc[1]["avg_weight_kg"] == pytest.approx(59.0)

    table = services.render_table(frame)
    assert table.splitlines()[0].split()[0] == "WEEK_START"
    assert "2024-05-06" in table
    assert "n/a" in table

    assert services.progress_frame([]).empty
