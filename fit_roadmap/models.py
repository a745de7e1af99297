from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from .constants import (
    BARRIERS,
    DEFAULT_BODY_WEIGHT_KG,
    DEFAULT_GOAL_AREAS,
    DEFAULT_LIFT_REPS,
    DEFAULT_SESSIONS_PER_WEEK,
    DEFAULT_WEEKS_TO_GOAL,
    LIFTS,
)

CURRENT_SCHEMA_VERSION = 2

__all__ = [
    "parse_iso_date",
    "coerce_number",
    "optional_positive",
    "coerce_count",
    "ValidationError",
    "LiftValue",
    "LiftGoal",
    "Profile",
    "DailyLift",
    "DailyLog",
    "WeekPlan",
    "GeneratedPlanItem",
    "GamificationState",
]


class ValidationError(ValueError):
    """Raised when user-supplied data cannot be normalised safely."""


def parse_iso_date(value: Any, *, field: str = "date") -> date:
    """
    Parse user-supplied ISO-8601 dates.

    Accepts `datetime.date`, `datetime.datetime`, or strings. Raises `ValidationError`
    with a friendlier message if the payload cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if not isinstance(value, str):
        raise ValidationError(
            f"{field} must be provided as YYYY-MM-DD text; received {value!r}."
        )

    candidate = value.strip()
    if not candidate:
        raise ValidationError(f"{field} cannot be empty.")

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValidationError(
            f"{field} must be a valid ISO date (YYYY-MM-DD); received {candidate!r}."
        ) from exc

    return parsed.date()


def coerce_number(
    value: Any,
    *,
    field: str = "value",
    minimum: float | None = None,
    allow_float: bool = True,
) -> float:
    """
    Convert arbitrary input into a float with guardrails.

    Booleans, blanks and non-finite numbers are rejected. When `allow_float` is
    False the coerced number must be whole.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number; received {value!r}.")

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} is required.")
        try:
            number = float(stripped)
        except ValueError as exc:
            raise ValidationError(f"{field} must be a number; received {value!r}.") from exc
    else:
        raise ValidationError(f"{field} must be a number; received {value!r}.")

    if not math.isfinite(number):
        raise ValidationError(f"{field} must be finite; received {value!r}.")

    if not allow_float and number != round(number):
        raise ValidationError(f"{field} must be an integer; received {value!r}.")

    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be >= {minimum}; received {number}.")

    return number


def optional_positive(value: Any) -> Optional[float]:
    """Return a positive finite float, or None when the value is unusable."""
    try:
        number = coerce_number(value)
    except ValidationError:
        return None
    return number if number > 0 else None


def coerce_count(value: Any, default: int = 0) -> int:
    """Non-negative integer coercion that never raises."""
    try:
        number = coerce_number(value, minimum=0.0)
    except ValidationError:
        return default
    return int(number)


@dataclass(frozen=True)
class LiftValue:
    weight: Optional[float] = None
    reps: int = DEFAULT_LIFT_REPS

    def to_dict(self) -> Dict[str, Any]:
        return {"weight": self.weight, "reps": self.reps}


@dataclass(frozen=True)
class LiftGoal:
    current: LiftValue = field(default_factory=LiftValue)
    goal: LiftValue = field(default_factory=LiftValue)

    def to_dict(self) -> Dict[str, Any]:
        return {"current": self.current.to_dict(), "goal": self.goal.to_dict()}


def _empty_lifts() -> Dict[str, LiftGoal]:
    return {lift: LiftGoal() for lift in LIFTS}


@dataclass(frozen=True)
class Profile:
    """
    Canonical user profile consumed by the planner, scheduler and roadmap.

    Instances are only ever produced by `normalizer.normalize`; every field is
    already in its canonical shape.
    """

    experience: str = "beginner"
    goals: tuple[str, ...] = ()
    goal_areas: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_GOAL_AREAS))
    barriers: frozenset[str] = frozenset()
    session_duration: str = "medium"
    body_weight_kg: float = DEFAULT_BODY_WEIGHT_KG
    weekly_schedule: tuple[str, ...] = ()
    sessions_completed: int = 0
    sessions_per_week: int = DEFAULT_SESSIONS_PER_WEEK
    lifts: Dict[str, LiftGoal] = field(default_factory=_empty_lifts)
    goal_type: str = "fit"
    started_at: Optional[date] = None
    height_cm: Optional[float] = None
    body_fat_pct: Optional[float] = None
    goal_weight_kg: Optional[float] = None
    weeks_to_goal: int = DEFAULT_WEEKS_TO_GOAL

    def lift(self, name: str) -> LiftGoal:
        return self.lifts.get(name, LiftGoal())

    def to_dict(self) -> Dict[str, Any]:
        """Make the profile JSON serialisable."""
        return {
            "experience": self.experience,
            "goals": list(self.goals),
            "goal_areas": dict(self.goal_areas),
            "barriers": [barrier for barrier in BARRIERS if barrier in self.barriers],
            "session_duration": self.session_duration,
            "body_weight_kg": self.body_weight_kg,
            "weekly_schedule": list(self.weekly_schedule),
            "sessions_completed": self.sessions_completed,
            "sessions_per_week": self.sessions_per_week,
            "lifts": {name: goal.to_dict() for name, goal in self.lifts.items()},
            "goal_type": self.goal_type,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "height_cm": self.height_cm,
            "body_fat_pct": self.body_fat_pct,
            "goal_weight_kg": self.goal_weight_kg,
            "weeks_to_goal": self.weeks_to_goal,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Profile":
        from .normalizer import normalize

        return normalize(payload)


@dataclass(frozen=True)
class DailyLift:
    weight: Optional[float] = None
    reps: Optional[int] = None
    success: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"weight": self.weight, "reps": self.reps, "success": self.success}

    @classmethod
    def from_dict(cls, payload: Any) -> "DailyLift":
        if not isinstance(payload, Mapping):
            return cls()
        reps = payload.get("reps")
        return cls(
            weight=optional_positive(payload.get("weight")),
            reps=coerce_count(reps) if reps not in (None, "") else None,
            success=bool(payload.get("success", False)),
        )


@dataclass
class DailyLog:
    """One calendar day of training outcomes; unique per date."""

    date: date
    body_weight_kg: Optional[float] = None
    lifts: Dict[str, DailyLift] = field(default_factory=dict)
    schema_version: int = CURRENT_SCHEMA_VERSION

    @property
    def all_lifts_succeeded(self) -> bool:
        return all(self.lifts.get(lift, DailyLift()).success for lift in LIFTS)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "date": self.date.isoformat(),
            "lifts": {name: entry.to_dict() for name, entry in self.lifts.items()},
            "schema_version": self.schema_version,
        }
        if self.body_weight_kg is not None:
            payload["body_weight_kg"] = self.body_weight_kg
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DailyLog":
        raw_lifts = payload.get("lifts")
        lifts: Dict[str, DailyLift] = {}
        if isinstance(raw_lifts, Mapping):
            for name in LIFTS:
                if name in raw_lifts:
                    lifts[name] = DailyLift.from_dict(raw_lifts[name])
        return cls(
            date=parse_iso_date(payload.get("date")),
            body_weight_kg=optional_positive(payload.get("body_weight_kg")),
            lifts=lifts,
        )


@dataclass(frozen=True)
class WeekPlan:
    """Training days for the calendar week starting on `week_start` (a Monday)."""

    week_start: date
    sessions_per_week: int = DEFAULT_SESSIONS_PER_WEEK
    days: tuple[bool, ...] = (True, False, True, False, True, False, False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week_start": self.week_start.isoformat(),
            "sessions_per_week": self.sessions_per_week,
            "days": list(self.days),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "WeekPlan":
        start = payload.get("week_start", payload.get("weekStartISO"))
        sessions = payload.get("sessions_per_week", payload.get("sessionsPerWeek"))
        raw_days = payload.get("days")
        days = tuple(bool(flag) for flag in raw_days[:7]) if isinstance(raw_days, list) else ()
        days = days + (False,) * (7 - len(days))
        count = coerce_count(sessions, DEFAULT_SESSIONS_PER_WEEK)
        if count not in (2, 3, 4):
            count = DEFAULT_SESSIONS_PER_WEEK
        return cls(week_start=parse_iso_date(start, field="week_start"), sessions_per_week=count, days=days)


@dataclass(frozen=True)
class GeneratedPlanItem:
    exercise_key: str
    name: str
    target_sets: int
    target_reps: int
    suggested_weight_kg: Optional[float] = None
    rest_seconds: int = 45
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "exercise_key": self.exercise_key,
            "name": self.name,
            "target_sets": self.target_sets,
            "target_reps": self.target_reps,
            "suggested_weight_kg": self.suggested_weight_kg,
            "rest_seconds": self.rest_seconds,
        }
        if self.notes:
            payload["notes"] = self.notes
        return payload


@dataclass(frozen=True)
class GamificationState:
    xp: int = 0
    streak: int = 0
    last_date: Optional[date] = None
    badges: tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "xp": self.xp,
            "streak": self.streak,
            "last_date": self.last_date.isoformat() if self.last_date else None,
            "badges": list(self.badges),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "GamificationState":
        last = payload.get("last_date", payload.get("lastDateISO"))
        badges: list[str] = []
        for badge in payload.get("badges") or []:
            if isinstance(badge, str) and badge not in badges:
                badges.append(badge)
        return cls(
            xp=coerce_count(payload.get("xp")),
            streak=coerce_count(payload.get("streak")),
            last_date=parse_iso_date(last, field="last_date") if last else None,
            badges=tuple(badges),
        )
