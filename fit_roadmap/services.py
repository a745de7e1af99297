from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Any, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from . import storage
from .catalog import (
    PRIMARY_LIFT_ALTERNATIVES,
    area_for_exercise,
    substitute_area_exercise,
    substitute_primary_lift,
)
from .config import get_config
from .constants import LIFTS, SESSIONS_PER_WEEK_CHOICES
from .models import (
    DailyLift,
    DailyLog,
    GamificationState,
    GeneratedPlanItem,
    Profile,
    ValidationError,
    WeekPlan,
)
from .normalizer import LegacyProfileInput, normalize
from .planner import generate, suggested_weight
from .rewards import (
    apply_log_bonus,
    compute_streak,
    evaluate_achievements,
    grant_daily,
    new_badges,
    praise_message,
)
from .roadmap import project
from .scheduler import (
    ScheduledExercise,
    ScheduledSession,
    copy_week_plan,
    default_week_plan,
    infer_targets,
    plan_for_date,
    toggle_day,
    week_start_monday,
)

LOGGER = logging.getLogger(__name__)

# Lift whose target a substitute's ratio is applied to.
_ALTERNATIVE_BASE = {
    "bench": "bench",
    "squat": "squat",
    "dead": "dead",
    "ohp": "bench",
    "row": "dead",
    "pulldown": "dead",
    "accessory": "bench",
}

SwapResult = Union[GeneratedPlanItem, ScheduledExercise]


@dataclass(frozen=True)
class RewardOutcome:
    """Result of saving a daily log."""

    log: DailyLog
    state: GamificationState
    xp_gained: int
    bonus_xp: int
    new_badges: list[str]
    streak: int
    praise: str

    @property
    def confirmation(self) -> str:
        message = f"Logged {self.log.date.isoformat()} (+{self.xp_gained} XP"
        if self.bonus_xp:
            message += f", +{self.bonus_xp} all-lifts bonus"
        message += f"). Total {self.state.xp} XP, streak {self.state.streak}."
        if self.new_badges:
            message += " New badges: " + ", ".join(self.new_badges) + "."
        return message


def load_profile() -> Profile:
    """Read and normalise the stored profile, rewriting legacy records in canonical form."""
    record = storage.load_profile_record()
    profile = normalize(LegacyProfileInput(record or {}), default_weeks=get_config().weeks_to_goal)
    if record is not None and record != profile.to_dict():
        LOGGER.warning("Migrated stored profile to the canonical schema")
        storage.save_profile_record(profile.to_dict())
    return profile


def save_profile_input(raw: Mapping[str, Any]) -> Profile:
    """Normalise any accepted profile shape and replace the stored profile."""
    profile = normalize(LegacyProfileInput(raw), default_weeks=get_config().weeks_to_goal)
    storage.save_profile_record(profile.to_dict())
    return profile


def complete_session(profile: Profile | None = None) -> Profile:
    current = profile or load_profile()
    updated = replace(current, sessions_completed=current.sessions_completed + 1)
    storage.save_profile_record(updated.to_dict())
    return updated


def current_menu(profile: Profile | None = None) -> list[GeneratedPlanItem]:
    return generate(profile or load_profile())


def week_plan_for(day: date, profile: Profile | None = None) -> WeekPlan:
    """
    Return the week plan containing `day`, creating it on first access.

    A new week copies the previous week when one exists, otherwise it starts
    from Mon/Wed/Fri with the profile's sessions per week.
    """
    start = week_start_monday(day)
    plan = storage.load_week_plan(start)
    if plan is not None:
        return plan
    previous = storage.load_week_plan(start - timedelta(days=7))
    if previous is not None:
        plan = copy_week_plan(previous, start)
    else:
        plan = default_week_plan(start, (profile or load_profile()).sessions_per_week)
    storage.save_week_plan(plan)
    return plan


def toggle_week_day(day: date, index: int) -> WeekPlan:
    plan = toggle_day(week_plan_for(day), index)
    storage.save_week_plan(plan)
    return plan


def set_sessions_per_week(day: date, sessions: int) -> WeekPlan:
    if sessions not in SESSIONS_PER_WEEK_CHOICES:
        raise ValidationError(f"sessions per week must be one of {SESSIONS_PER_WEEK_CHOICES}; received {sessions}.")
    plan = replace(week_plan_for(day), sessions_per_week=sessions)
    storage.save_week_plan(plan)
    return plan


def today_plan(day: date) -> ScheduledSession:
    profile = load_profile()
    return plan_for_date(profile, week_plan_for(day, profile), day, storage.load_daily_logs())


def build_daily_log(
    day: date,
    *,
    body_weight_kg: float | None = None,
    lifts: Mapping[str, Mapping[str, Any]] | None = None,
) -> DailyLog:
    """Assemble a `DailyLog` from loosely typed per-lift inputs."""
    entries = {
        name: DailyLift.from_dict(values)
        for name, values in (lifts or {}).items()
        if name in LIFTS
    }
    if body_weight_kg is not None and body_weight_kg <= 0:
        raise ValidationError(f"body weight must be positive; received {body_weight_kg}.")
    return DailyLog(date=day, body_weight_kg=body_weight_kg, lifts=entries)


def record_daily_log(log: DailyLog, *, xp_gain: int | None = None, rng: random.Random | None = None) -> RewardOutcome:
    """Upsert the log, grant the daily XP and the all-lifts bonus, and persist rewards."""
    storage.upsert_daily_log(log)
    gain = get_config().daily_xp if xp_gain is None else xp_gain

    before = storage.load_gamification()
    granted = grant_daily(before, log.date, gain)
    after, bonus = apply_log_bonus(granted, log)
    storage.save_gamification(after)

    earned = new_badges(before, after)
    if earned:
        LOGGER.info("Unlocked badges %s", ", ".join(earned))
    return RewardOutcome(
        log=log,
        state=after,
        xp_gained=max(0, after.xp - before.xp - bonus),
        bonus_xp=bonus,
        new_badges=earned,
        streak=after.streak,
        praise=praise_message(after.streak, rng),
    )


def rewards_summary(today: date) -> dict[str, Any]:
    state = storage.load_gamification()
    logs = storage.load_daily_logs()
    return {
        **state.to_dict(),
        "training_streak": compute_streak(logs, today),
    }


def achievements(profile: Profile | None = None) -> list[str]:
    return evaluate_achievements(profile or load_profile(), storage.load_daily_logs())


SWAP_SCOPES = ("menu", "session")


def swap_menu_exercise(target: str, *, rng: random.Random | None = None) -> Optional[GeneratedPlanItem]:
    """Replace a menu exercise with another eligible one from its body area."""
    area = area_for_exercise(target)
    if area is None:
        raise ValidationError(f"Unknown menu exercise {target!r}.")
    profile = load_profile()
    menu = current_menu(profile)
    replaced = next((item for item in menu if item.exercise_key == target), None)
    taken = {item.exercise_key for item in menu}
    candidate = substitute_area_exercise(area, profile.barriers, taken | {target}, rng)
    if candidate is None:
        return None
    template = replaced or (menu[0] if menu else None)
    return GeneratedPlanItem(
        exercise_key=candidate.key,
        name=candidate.name,
        target_sets=template.target_sets if template else 1,
        target_reps=template.target_reps if template else 10,
        suggested_weight_kg=suggested_weight(candidate.key, profile.body_weight_kg, profile.sessions_completed),
        rest_seconds=template.rest_seconds if template else 45,
        notes=template.notes if template else None,
    )


def swap_session_exercise(
    target: str,
    *,
    day: date | None = None,
    rng: random.Random | None = None,
) -> Optional[ScheduledExercise]:
    """Replace a split-session exercise kind with a primary-lift alternative."""
    if target not in PRIMARY_LIFT_ALTERNATIVES:
        raise ValidationError(f"Unknown session exercise {target!r}.")
    profile = load_profile()
    session = today_plan(day or date.today())
    taken = {exercise.name for exercise in session.exercises}
    candidate = substitute_primary_lift(target, profile.barriers, taken, rng)
    if candidate is None:
        return None
    targets = session.targets or infer_targets(profile, storage.load_daily_logs())
    base_lift = _ALTERNATIVE_BASE.get(target)
    base = targets[base_lift].value if base_lift else None
    return ScheduledExercise(
        kind=candidate.kind or target,
        name=candidate.name,
        sets=candidate.sets or 3,
        reps=candidate.reps or 10,
        suggested_weight_kg=candidate.suggest(base),
        notes=candidate.notes,
    )


def swap_exercise(
    target: str,
    *,
    scope: str = "menu",
    day: date | None = None,
    rng: random.Random | None = None,
) -> Optional[SwapResult]:
    """
    Replace one exercise with a random eligible alternative.

    Keys such as ``squat``, ``row`` and ``ohp`` exist both in the area pool and
    as session kinds, so `scope` picks the list: ``"menu"`` swaps within the
    target's body area, ``"session"`` swaps a split-session kind. Returns None
    when nothing is left.
    """
    if scope == "menu":
        return swap_menu_exercise(target, rng=rng)
    if scope == "session":
        return swap_session_exercise(target, day=day, rng=rng)
    raise ValidationError(f"Unknown swap scope {scope!r}; expected one of {', '.join(SWAP_SCOPES)}.")


def roadmap_frame(today: date | None = None, logs: Sequence[DailyLog] | None = None) -> pd.DataFrame:
    """Projected weekly targets merged with logged actuals on one date axis."""
    config = get_config()
    profile = load_profile()
    points = project(profile, today=today, max_gain=config.weekly_max_gain_kg)
    projected = pd.DataFrame([point.to_dict() for point in points])
    projected["date"] = pd.to_datetime(projected["date"])

    actual_rows = [
        {
            "date": log.date.isoformat(),
            "actual_weight_kg": log.body_weight_kg,
            **{f"actual_{lift}": log.lifts[lift].weight if lift in log.lifts else None for lift in LIFTS},
        }
        for log in (storage.load_daily_logs() if logs is None else logs)
    ]
    actual_columns = ["date", "actual_weight_kg"] + [f"actual_{lift}" for lift in LIFTS]
    actuals = pd.DataFrame(actual_rows, columns=actual_columns)
    if actuals.empty:
        for column in actual_columns[1:]:
            projected[column] = np.nan
        return projected

    actuals["date"] = pd.to_datetime(actuals["date"])
    merged = projected.merge(actuals, on="date", how="outer")
    merged.sort_values("date", inplace=True)
    merged.reset_index(drop=True, inplace=True)
    return merged


def progress_frame(logs: Sequence[DailyLog] | None = None) -> pd.DataFrame:
    """Weekly summary of logged days, best lifts and average body weight."""
    columns = ["week_start", "days_logged", "avg_weight_kg", "best_bench", "best_squat", "best_dead", "all_success_days"]
    entries = storage.load_daily_logs() if logs is None else list(logs)
    if not entries:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(
        [
            {
                "week_start": pd.Timestamp(week_start_monday(log.date)),
                "weight_kg": log.body_weight_kg,
                "bench": log.lifts["bench"].weight if "bench" in log.lifts else None,
                "squat": log.lifts["squat"].weight if "squat" in log.lifts else None,
                "dead": log.lifts["dead"].weight if "dead" in log.lifts else None,
                "all_success": log.all_lifts_succeeded,
            }
            for log in entries
        ]
    )
    for column in ("weight_kg", "bench", "squat", "dead"):
        df[column] = pd.to_numeric(df[column], errors="coerce")

    weekly = (
        df.groupby("week_start")
        .agg(
            days_logged=("all_success", "size"),
            avg_weight_kg=("weight_kg", "mean"),
            best_bench=("bench", "max"),
            best_squat=("squat", "max"),
            best_dead=("dead", "max"),
            all_success_days=("all_success", "sum"),
        )
        .reset_index()
    )
    weekly["avg_weight_kg"] = weekly["avg_weight_kg"].round(1)
    weekly["all_success_days"] = weekly["all_success_days"].astype(int)
    return weekly[columns]


def _format_cell(value: Any) -> str:
    if value is None:
        return "n/a"
    if isinstance(value, pd.Timestamp):
        return value.date().isoformat()
    if isinstance(value, (float, np.floating)):
        return "n/a" if np.isnan(value) else f"{value:.1f}"
    return str(value)


def render_table(frame: pd.DataFrame) -> str:
    """Render a fixed-width table for a summary frame."""
    headers = [str(column) for column in frame.columns]
    rows = [
        {header: _format_cell(value) for header, value in zip(headers, record)}
        for record in frame.itertuples(index=False, name=None)
    ]
    widths = {key: len(key) for key in headers}
    for row in rows:
        for key in headers:
            widths[key] = max(widths[key], len(row[key]))

    def _format_line(values: Mapping[str, str]) -> str:
        return "  ".join(values[key].rjust(widths[key]) for key in headers)

    header_line = "  ".join(key.upper().rjust(widths[key]) for key in headers)
    body = "\n".join(_format_line(row) for row in rows)
    return "\n".join(filter(None, [header_line, body]))
