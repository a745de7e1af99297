from __future__ import annotations

import random
from datetime import date, timedelta

from fit_roadmap.models import DailyLift, DailyLog, GamificationState, LiftGoal, LiftValue, Profile
from fit_roadmap.rewards import (
    ALL_LIFTS_BONUS_XP,
    apply_log_bonus,
    compute_streak,
    evaluate_achievements,
    grant_daily,
    new_badges,
    next_streak,
    praise_message,
)

DAY = date(2024, 5, 1)


def _all_success_log(day: date, bench: float = 40.0) -> DailyLog:
    return DailyLog(
        date=day,
        body_weight_kg=60.0,
        lifts={
            "bench": DailyLift(weight=bench, reps=5, success=True),
            "squat": DailyLift(weight=60.0, reps=5, success=True),
            "dead": DailyLift(weight=80.0, reps=5, success=True),
        },
    )


def test_streak_same_day_next_day_and_gap():
    state = GamificationState(xp=40, streak=4, last_date=DAY)
    assert next_streak(state, DAY) == 4
    assert next_streak(state, DAY + timedelta(days=1)) == 5
    assert next_streak(state, DAY + timedelta(days=3)) == 1
    assert next_streak(GamificationState(), DAY) == 1


def test_grant_daily_adds_xp_and_badges_once():
    state = GamificationState(xp=95, streak=2, last_date=DAY - timedelta(days=1), badges=("XP100",))
    updated = grant_daily(state, DAY, 10)
    assert updated.xp == 105
    assert updated.streak == 3
    assert updated.last_date == DAY
    assert updated.badges == ("XP100", "Streak3")
    assert new_badges(state, updated) == ["Streak3"]


def test_same_day_save_keeps_streak_but_adds_xp():
    state = grant_daily(GamificationState(), DAY, 10)
    again = grant_daily(state, DAY, 10)
    assert again.xp == 20
    assert again.streak == 1


def test_all_lifts_bonus_only_when_every_lift_succeeded():
    state = GamificationState(xp=10)
    bonus_state, bonus = apply_log_bonus(state, _all_success_log(DAY))
    assert bonus == ALL_LIFTS_BONUS_XP
    assert bonus_state.xp == 10 + ALL_LIFTS_BONUS_XP

    partial = DailyLog(date=DAY, lifts={"bench": DailyLift(weight=40.0, success=True)})
    assert apply_log_bonus(state, partial) == (state, 0)


def test_training_streak_skips_unlogged_today():
    logs = [_all_success_log(DAY - timedelta(days=offset)) for offset in range(3)]
    logs.append(DailyLog(date=DAY - timedelta(days=5), body_weight_kg=60.0))
    assert compute_streak(logs, DAY + timedelta(days=1)) == 3
    assert compute_streak(logs, DAY) == 3
    assert compute_streak(logs, DAY + timedelta(days=2)) == 0
    assert compute_streak([DailyLog(date=DAY)], DAY) == 0


def test_achievements():
    profile = Profile()
    logs = [_all_success_log(DAY + timedelta(days=offset)) for offset in range(3)]
    unlocked = evaluate_achievements(profile, logs)
    assert unlocked == ["first-log", "triple-clear", "streak-3"]

    strong = Profile(
        lifts={
            "bench": LiftGoal(goal=LiftValue(100.0)),
            "squat": LiftGoal(goal=LiftValue(100.0)),
            "dead": LiftGoal(goal=LiftValue(100.0)),
        }
    )
    unlocked = evaluate_achievements(strong, [_all_success_log(DAY, bench=100.0)])
    assert "bench-100" in unlocked
    assert "big3-300" in unlocked
    assert evaluate_achievements(Profile(), []) == []


def test_praise_mentions_streak():
    rng = random.Random(1)
    assert praise_message(7, rng).startswith("7 days in a row")
    assert praise_message(1, rng).startswith("Day 1")
    assert praise_message(0, rng)
