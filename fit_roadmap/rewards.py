from __future__ import annotations

import random
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence

from .constants import LIFTS
from .models import DailyLog, GamificationState, Profile

ALL_LIFTS_BONUS_XP = 5
STREAK_LOOKBACK_DAYS = 365


@dataclass(frozen=True)
class BadgeRule:
    badge: str
    xp: Optional[int] = None
    streak: Optional[int] = None

    def satisfied_by(self, state: GamificationState) -> bool:
        if self.xp is not None:
            return state.xp >= self.xp
        if self.streak is not None:
            return state.streak >= self.streak
        return False


BADGE_RULES: tuple[BadgeRule, ...] = (
    BadgeRule("XP100", xp=100),
    BadgeRule("XP300", xp=300),
    BadgeRule("XP500", xp=500),
    BadgeRule("Streak3", streak=3),
    BadgeRule("Streak7", streak=7),
    BadgeRule("Streak14", streak=14),
    BadgeRule("Streak30", streak=30),
)


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str


ACHIEVEMENTS: tuple[Achievement, ...] = (
    Achievement("first-log", "First step", "Logged a training day for the first time"),
    Achievement("triple-clear", "Full complete", "Succeeded at all three lifts in one day"),
    Achievement("streak-3", "Three in a row", "All three lifts succeeded three days running"),
    Achievement("bench-100", "Bench 100", "Benched 100 kg"),
    Achievement("big3-300", "300 club", "Big3 total reached 300 kg"),
)

_PRAISE = (
    "Well done!",
    "Brilliant work!",
    "Steady progress, great job!",
    "Nice work!",
    "Future you is applauding!",
)


def next_streak(state: GamificationState, day: date) -> int:
    if state.last_date is None:
        return 1
    if state.last_date == day:
        return state.streak
    if day - state.last_date == timedelta(days=1):
        return state.streak + 1
    return 1


def evaluate_badges(state: GamificationState) -> GamificationState:
    """Add every newly satisfied badge once; existing badges are kept."""
    badges = list(state.badges)
    for rule in BADGE_RULES:
        if rule.badge not in badges and rule.satisfied_by(state):
            badges.append(rule.badge)
    return replace(state, badges=tuple(badges))


def grant_daily(state: GamificationState, day: date, xp_gain: int) -> GamificationState:
    updated = replace(
        state,
        xp=max(0, state.xp + int(xp_gain or 0)),
        streak=next_streak(state, day),
        last_date=day,
    )
    return evaluate_badges(updated)


def apply_log_bonus(state: GamificationState, log: DailyLog) -> tuple[GamificationState, int]:
    """Award the all-lifts bonus; returns the new state and the XP added."""
    if not log.all_lifts_succeeded:
        return state, 0
    updated = replace(state, xp=state.xp + ALL_LIFTS_BONUS_XP)
    return evaluate_badges(updated), ALL_LIFTS_BONUS_XP


def new_badges(before: GamificationState, after: GamificationState) -> List[str]:
    return [badge for badge in after.badges if badge not in before.badges]


def did_train(log: DailyLog) -> bool:
    if log.body_weight_kg:
        return True
    return any((log.lifts[lift].weight or 0) > 0 for lift in LIFTS if lift in log.lifts)


def compute_streak(logs: Iterable[DailyLog], today: date) -> int:
    """
    Count consecutive trained days back from `today`.

    An empty `today` does not break the streak since the day may not be logged yet.
    """
    by_date = {log.date: log for log in logs}
    streak = 0
    for offset in range(STREAK_LOOKBACK_DAYS):
        day = today - timedelta(days=offset)
        log = by_date.get(day)
        if log is None:
            if offset == 0:
                continue
            break
        if not did_train(log):
            break
        streak += 1
    return streak


def _max_logged(logs: Sequence[DailyLog], lift: str) -> float:
    weights = [log.lifts[lift].weight or 0.0 for log in logs if lift in log.lifts]
    return max(weights, default=0.0)


def evaluate_achievements(profile: Profile, logs: Sequence[DailyLog]) -> List[str]:
    unlocked: List[str] = []
    ordered = sorted(logs, key=lambda log: log.date)

    if any(did_train(log) for log in ordered):
        unlocked.append("first-log")

    if any(log.all_lifts_succeeded for log in ordered):
        unlocked.append("triple-clear")

    run = 0
    previous: Optional[date] = None
    for log in ordered:
        if not log.all_lifts_succeeded:
            run, previous = 0, None
            continue
        run = run + 1 if previous and log.date - previous == timedelta(days=1) else 1
        previous = log.date
        if run >= 3:
            unlocked.append("streak-3")
            break

    if max(_max_logged(ordered, "bench"), profile.lift("bench").current.weight or 0.0) >= 100:
        unlocked.append("bench-100")

    current_total = sum(profile.lift(lift).current.weight or 0.0 for lift in LIFTS)
    goal_total = sum(profile.lift(lift).goal.weight or 0.0 for lift in LIFTS)
    logged_total = sum(_max_logged(ordered, lift) for lift in LIFTS)
    if max(current_total, goal_total, logged_total) >= 300:
        unlocked.append("big3-300")

    return unlocked


def praise_message(streak: int, rng: random.Random | None = None) -> str:
    pick = (rng or random.Random()).choice(_PRAISE)
    if streak >= 7:
        return f"{streak} days in a row, unstoppable! {pick}"
    if streak >= 3:
        return f"{streak} days in a row, you're on a roll! {pick}"
    if streak >= 1:
        return f"Day {streak} of your streak, good flow! {pick}"
    return pick
