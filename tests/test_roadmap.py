from __future__ import annotations

from datetime import date, timedelta

import pytest

from fit_roadmap.config import WeeklyGainLimits
from fit_roadmap.models import LiftGoal, LiftValue, Profile
from fit_roadmap.roadmap import (
    clamp_weekly_gains,
    estimate_big3_targets,
    estimate_goal_weight,
    lerp_series,
    project,
)

START = date(2024, 1, 1)


def _profile(**overrides) -> Profile:
    values = {
        "body_weight_kg": 60.0,
        "goal_weight_kg": 55.0,
        "started_at": START,
        "weeks_to_goal": 4,
        "lifts": {
            "bench": LiftGoal(current=LiftValue(40.0), goal=LiftValue(120.0)),
            "squat": LiftGoal(current=LiftValue(50.0), goal=LiftValue(56.0)),
            "dead": LiftGoal(),
        },
    }
    values.update(overrides)
    return Profile(**values)


def test_lerp_series_is_inclusive():
    assert lerp_series(40, 120, 4) == [40.0, 60.0, 80.0, 100.0, 120.0]
    assert lerp_series(40, 120, 0) == [120.0]


def test_clamp_limits_weekly_gain():
    assert clamp_weekly_gains([40, 60, 80, 100, 120], 2.0) == [40.0, 42.0, 44.0, 46.0, 48.0]
    assert clamp_weekly_gains([100, 90, 80], 3.0) == [100.0, 97.0, 94.0]
    assert clamp_weekly_gains([40, 41.2, 42.6], 3.0) == [40.0, 40.0, 42.5]
    assert clamp_weekly_gains([], 2.0) == []


def test_goal_weight_estimates():
    assert estimate_goal_weight(60.0, "fit", body_fat_pct=20.0) == pytest.approx(54.5)
    assert estimate_goal_weight(60.0, "fit", height_cm=170.0) == pytest.approx(66.5)
    assert estimate_goal_weight(61.24, "unknown") == pytest.approx(61.2)


def test_big3_targets_follow_ratios():
    assert estimate_big3_targets("fit", 60.0) == {"bench": 60.0, "squat": 90.0, "dead": 120.0}
    assert estimate_big3_targets("slim", 50.0) == {"bench": 40.0, "squat": 60.0, "dead": 75.0}


def test_project_weekly_points():
    points = project(_profile())
    assert len(points) == 5
    assert [point.day for point in points] == [START + timedelta(weeks=index) for index in range(5)]
    assert points[0].weight_kg == pytest.approx(60.0)
    assert points[-1].weight_kg == pytest.approx(55.0)
    assert [point.bench for point in points] == [40.0, 42.0, 44.0, 46.0, 48.0]
    assert points[-1].squat == pytest.approx(55.0)
    # dead has no current weight: starts from zero toward the estimate (55 * 2.0 = 110).
    assert points[0].dead == 0.0
    assert points[1].dead == pytest.approx(3.0)


def test_project_respects_custom_limits_and_horizon():
    limits = WeeklyGainLimits(bench=5.0, squat=3.0, dead=3.0)
    points = project(_profile(), max_gain=limits, weeks=2)
    assert len(points) == 3
    assert [point.bench for point in points] == [40.0, 45.0, 50.0]


def test_project_falls_back_to_today_without_start():
    today = date(2024, 6, 3)
    points = project(_profile(started_at=None), today=today)
    assert points[0].day == today
    assert points[0].to_dict()["date"] == "2024-06-03"
