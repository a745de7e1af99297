"""Weekly split scheduling: which session template applies to a given date."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from .constants import DEFAULT_SESSIONS_PER_WEEK, LIFTS, SESSIONS_PER_WEEK_CHOICES
from .models import DailyLog, Profile, ValidationError, WeekPlan
from .units import round_to_plate

DEFAULT_DAYS = (True, False, True, False, True, False, False)

ROTATIONS: Dict[int, tuple[str, ...]] = {
    2: ("A", "B"),
    3: ("PUSH", "PULL", "LEGS"),
    4: ("UP1", "LOW1", "UP2", "LOW2"),
}

MINIMUM_LOAD_KG: Dict[str, float] = {
    "bench": 20.0,
    "squat": 20.0,
    "dead": 20.0,
    "ohp": 10.0,
    "row": 20.0,
    "pulldown": 15.0,
    "accessory": 5.0,
    "stretch": 0.0,
}

BODY_WEIGHT_RATIOS: Dict[str, float] = {"bench": 0.7, "squat": 1.0, "dead": 1.2}

# Secondary kinds borrow a primary lift's target when no base lift is named.
_DERIVED_BASE: Dict[str, tuple[str, float]] = {
    "bench": ("bench", 1.0),
    "squat": ("squat", 1.0),
    "dead": ("dead", 1.0),
    "ohp": ("bench", 0.65),
    "row": ("dead", 0.55),
    "pulldown": ("dead", 1.0),
    "accessory": ("bench", 1.0),
}


@dataclass(frozen=True)
class TemplateExercise:
    kind: str
    name: str
    sets: int
    reps: int
    percent: Optional[float] = None
    base_lift: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class SessionTemplate:
    key: str
    label: str
    exercises: tuple[TemplateExercise, ...]


def _t(key: str, label: str, *exercises: TemplateExercise) -> SessionTemplate:
    return SessionTemplate(key=key, label=label, exercises=exercises)


TEMPLATES: Dict[str, SessionTemplate] = {
    template.key: template
    for template in (
        _t(
            "A",
            "Full A",
            TemplateExercise("squat", "Back Squat", 5, 5, 0.85),
            TemplateExercise("bench", "Bench Press", 5, 5, 0.85),
            TemplateExercise("row", "1-Arm DB Row", 3, 10, 0.55, "dead", "RPE 8, one arm at a time"),
        ),
        _t(
            "B",
            "Full B",
            TemplateExercise("dead", "Deadlift", 3, 5, 0.85),
            TemplateExercise("ohp", "Overhead Press", 5, 5, 0.8),
            TemplateExercise("pulldown", "Lat Pulldown", 3, 10, 0.45, "dead", "Focus on the lats"),
        ),
        _t(
            "PUSH",
            "Push",
            TemplateExercise("bench", "Bench Press", 5, 5, 0.85),
            TemplateExercise("ohp", "Overhead Press", 3, 8, 0.75),
            TemplateExercise("accessory", "Triceps Pushdown", 3, 12, 0.30, "bench"),
        ),
        _t(
            "PULL",
            "Pull",
            TemplateExercise("row", "Barbell Row", 4, 8, 0.75, "dead", "Form first"),
            TemplateExercise("pulldown", "Lat Pulldown", 3, 10, 0.45, "dead"),
            TemplateExercise("accessory", "Face Pull", 3, 15, 0.20, "bench"),
        ),
        _t(
            "LEGS",
            "Legs",
            TemplateExercise("squat", "Back Squat", 5, 5, 0.85),
            TemplateExercise("dead", "Romanian DL", 3, 8, 0.7),
            TemplateExercise("accessory", "Leg Extension", 3, 12, 0.30, "squat"),
        ),
        _t(
            "UP1",
            "Upper 1",
            TemplateExercise("bench", "Bench Press", 5, 5, 0.85),
            TemplateExercise("row", "Barbell Row", 4, 8, 0.75, "dead"),
            TemplateExercise("ohp", "Overhead Press", 3, 8, 0.75),
        ),
        _t(
            "LOW1",
            "Lower 1",
            TemplateExercise("squat", "Back Squat", 5, 5, 0.85),
            TemplateExercise("dead", "Deadlift", 3, 5, 0.85),
            TemplateExercise("accessory", "Calf Raise", 3, 15, 0.30, "squat"),
        ),
        _t(
            "UP2",
            "Upper 2",
            TemplateExercise("ohp", "Overhead Press", 5, 5, 0.8),
            TemplateExercise("bench", "Incline Bench", 3, 8, 0.75),
            TemplateExercise("pulldown", "Lat Pulldown", 3, 10, 0.45, "dead"),
        ),
        _t(
            "LOW2",
            "Lower 2",
            TemplateExercise("squat", "Front Squat (Light)", 3, 5, 0.7),
            TemplateExercise("dead", "Romanian DL", 3, 8, 0.7),
            TemplateExercise("accessory", "Leg Curl", 3, 12, 0.35, "dead"),
        ),
    )
}

RECOVERY_TEMPLATE = _t(
    "REC",
    "Recovery / Stretch",
    TemplateExercise("stretch", "Cat & Cow", 2, 10, notes="Move the spine smoothly"),
    TemplateExercise("stretch", "Seated Hamstring", 2, 30, notes="30 seconds each side"),
    TemplateExercise("stretch", "Hip Flexor", 2, 30, notes="30 seconds each side"),
)


@dataclass(frozen=True)
class TargetLoad:
    value: float
    source: str  # "logged", "profile" or "estimate"


@dataclass(frozen=True)
class ScheduledExercise:
    kind: str
    name: str
    sets: int
    reps: int
    suggested_weight_kg: Optional[float] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        payload = {
            "kind": self.kind,
            "name": self.name,
            "sets": self.sets,
            "reps": self.reps,
            "suggested_weight_kg": self.suggested_weight_kg,
        }
        if self.notes:
            payload["notes"] = self.notes
        return payload


@dataclass(frozen=True)
class ScheduledSession:
    day: date
    rest: bool
    key: str
    label: str
    exercises: tuple[ScheduledExercise, ...] = ()
    targets: Dict[str, TargetLoad] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "rest": self.rest,
            "key": self.key,
            "label": self.label,
            "exercises": [exercise.to_dict() for exercise in self.exercises],
            "targets": {
                lift: {"value": target.value, "source": target.source}
                for lift, target in self.targets.items()
            },
        }


def week_start_monday(day: date) -> date:
    return day - timedelta(days=day.weekday())


def default_week_plan(week_start: date, sessions_per_week: int = DEFAULT_SESSIONS_PER_WEEK) -> WeekPlan:
    """Mon/Wed/Fri pattern for a week with no history."""
    if sessions_per_week not in SESSIONS_PER_WEEK_CHOICES:
        sessions_per_week = DEFAULT_SESSIONS_PER_WEEK
    return WeekPlan(week_start=week_start_monday(week_start), sessions_per_week=sessions_per_week, days=DEFAULT_DAYS)


def copy_week_plan(plan: WeekPlan, week_start: date) -> WeekPlan:
    return replace(plan, week_start=week_start_monday(week_start))


def toggle_day(plan: WeekPlan, index: int) -> WeekPlan:
    if not 0 <= index < 7:
        raise ValidationError(f"day index must be between 0 (Mon) and 6 (Sun); received {index}.")
    days = list(plan.days)
    days[index] = not days[index]
    return replace(plan, days=tuple(days))


def planned_dates(plan: WeekPlan) -> List[date]:
    return [plan.week_start + timedelta(days=offset) for offset, on in enumerate(plan.days) if on]


def is_planned_day(day: date, plan: Optional[WeekPlan]) -> bool:
    if plan is None or plan.week_start != week_start_monday(day):
        return False
    return plan.days[day.weekday()]


def session_key_for_date(week_plan: Optional[WeekPlan], day: date) -> Optional[str]:
    """
    Rotation slot for `day`, or None when it is a rest day.

    The slot is picked by the position of `day` among the week's ON dates, so
    moving a training day shifts the later sessions rather than skipping one.
    """
    if not is_planned_day(day, week_plan):
        return None
    rotation = ROTATIONS.get(week_plan.sessions_per_week, ROTATIONS[DEFAULT_SESSIONS_PER_WEEK])
    nth = planned_dates(week_plan).index(day)
    return rotation[nth % len(rotation)]


def _latest_logged(lift: str, logs: Iterable[DailyLog]) -> Optional[float]:
    for log in sorted(logs, key=lambda entry: entry.date, reverse=True):
        entry = log.lifts.get(lift)
        if entry is not None and entry.weight:
            return entry.weight
    return None


def infer_targets(profile: Profile, logs: Sequence[DailyLog] = ()) -> Dict[str, TargetLoad]:
    """
    Working target per primary lift.

    Priority is the most recent positive logged weight, then the profile's goal
    (or current) weight, then a body-weight estimate.
    """
    targets: Dict[str, TargetLoad] = {}
    for lift in LIFTS:
        logged = _latest_logged(lift, logs)
        if logged is not None:
            targets[lift] = TargetLoad(logged, "logged")
            continue
        goal = profile.lift(lift)
        from_profile = goal.goal.weight or goal.current.weight
        if from_profile:
            targets[lift] = TargetLoad(from_profile, "profile")
            continue
        estimate = round_to_plate(profile.body_weight_kg * BODY_WEIGHT_RATIOS[lift])
        targets[lift] = TargetLoad(estimate, "estimate")
    return targets


def base_load(exercise: TemplateExercise, targets: Dict[str, TargetLoad]) -> Optional[float]:
    if exercise.base_lift:
        return targets[exercise.base_lift].value
    derived = _DERIVED_BASE.get(exercise.kind)
    if derived is None:
        return None
    lift, share = derived
    return targets[lift].value * share


def resolve_exercise(exercise: TemplateExercise, targets: Dict[str, TargetLoad]) -> ScheduledExercise:
    weight = None
    base = base_load(exercise, targets)
    if exercise.percent is not None and base is not None:
        weight = round_to_plate(max(MINIMUM_LOAD_KG[exercise.kind], base * exercise.percent))
    return ScheduledExercise(
        kind=exercise.kind,
        name=exercise.name,
        sets=exercise.sets,
        reps=exercise.reps,
        suggested_weight_kg=weight,
        notes=exercise.notes,
    )


def plan_for_date(
    profile: Profile,
    week_plan: Optional[WeekPlan],
    day: date,
    logs: Sequence[DailyLog] = (),
) -> ScheduledSession:
    key = session_key_for_date(week_plan, day)
    if key is None:
        return ScheduledSession(
            day=day,
            rest=True,
            key=RECOVERY_TEMPLATE.key,
            label=RECOVERY_TEMPLATE.label,
            exercises=tuple(resolve_exercise(item, {}) for item in RECOVERY_TEMPLATE.exercises),
        )
    template = TEMPLATES[key]
    targets = infer_targets(profile, logs)
    return ScheduledSession(
        day=day,
        rest=False,
        key=template.key,
        label=template.label,
        exercises=tuple(resolve_exercise(item, targets) for item in template.exercises),
        targets=targets,
    )
