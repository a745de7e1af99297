"""Single adapter from every historical profile shape to the canonical `Profile`.

Nothing outside this module inspects legacy keys or labels; the planner,
scheduler and roadmap only ever see `Profile` instances.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from .constants import (
    AREAS,
    BARRIER_NO_GYM,
    BARRIER_NO_HEAVY,
    BARRIER_NO_RUNNING,
    BARRIER_SHORT_ONLY,
    DEFAULT_BODY_WEIGHT_KG,
    DEFAULT_GOAL_AREAS,
    DEFAULT_LIFT_REPS,
    DEFAULT_SESSIONS_PER_WEEK,
    DEFAULT_WEEKS_TO_GOAL,
    GOAL_IDS,
    GOAL_TYPES,
    LIFTS,
    SESSIONS_PER_WEEK_CHOICES,
    WEEKDAYS,
)
from .models import (
    LiftGoal,
    LiftValue,
    Profile,
    ValidationError,
    coerce_count,
    optional_positive,
    parse_iso_date,
)

LOGGER = logging.getLogger(__name__)

__all__ = ["LegacyProfileInput", "normalize", "GOAL_TO_AREA_WEIGHT"]


@dataclass(frozen=True)
class LegacyProfileInput:
    """Untrusted profile payload from any onboarding/profile UI generation."""

    payload: Mapping[str, Any]


RawProfile = Union[Profile, LegacyProfileInput, Mapping[str, Any]]

GOAL_TO_AREA_WEIGHT: Dict[str, Dict[str, int]] = {
    "waist": {"abs": 2, "back": 1},
    "abs_tone": {"abs": 3, "whole": 1},
    "hip_up": {"hips": 3, "legs": 1},
    "arms": {"arms": 3},
    "posture": {"back": 3, "abs": 1},
    "whole_tone": {"whole": 3, "legs": 1, "abs": 1},
}

_EXPERIENCE_SYNONYMS = {
    "beginner": "beginner",
    "初心者": "beginner",
    "ほとんど運動していない": "beginner",
    "intermediate": "intermediate",
    "ときどき": "intermediate",
    "週1〜2回くらい": "intermediate",
    "advanced": "advanced",
    "経験者": "advanced",
    "週3回以上している": "advanced",
}

_GOAL_LABELS = {
    "くびれを作りたい": "waist",
    "お腹を引き締めたい": "abs_tone",
    "ヒップアップしたい": "hip_up",
    "二の腕をすっきりさせたい": "arms",
    "姿勢を良くしたい": "posture",
    "全体的に引き締めたい": "whole_tone",
}

_LEGACY_SINGLE_GOAL = {
    "slim": "whole_tone",
    "tone": "abs_tone",
    "muscle": "arms",
    "healthy": "posture",
}

_TARGET_AREA_GOAL = {
    "abs": "abs_tone",
    "hips": "hip_up",
    "arms": "arms",
    "back": "posture",
    "whole": "whole_tone",
}

_BARRIER_SYNONYMS = {
    "gym": BARRIER_NO_GYM,
    "no_gym": BARRIER_NO_GYM,
    "no-gym": BARRIER_NO_GYM,
    "nogym": BARRIER_NO_GYM,
    "ジムには通っていない": BARRIER_NO_GYM,
    "heavy": BARRIER_NO_HEAVY,
    "no_heavy": BARRIER_NO_HEAVY,
    "no-heavy": BARRIER_NO_HEAVY,
    "重いバーベルは使いたくない": BARRIER_NO_HEAVY,
    "running": BARRIER_NO_RUNNING,
    "no_running": BARRIER_NO_RUNNING,
    "no-running": BARRIER_NO_RUNNING,
    "走りたくない": BARRIER_NO_RUNNING,
    "long": BARRIER_SHORT_ONLY,
    "short-duration-only": BARRIER_SHORT_ONLY,
    "short_duration_only": BARRIER_SHORT_ONLY,
    "長時間は続かない": BARRIER_SHORT_ONLY,
}

_DURATION_SYNONYMS = {
    "10": "short",
    "short": "short",
    "20-30": "medium",
    "20": "medium",
    "30": "medium",
    "medium": "medium",
    "45+": "long",
    "45": "long",
    "long": "long",
}

_JAPANESE_WEEKDAYS = ("月", "火", "水", "木", "金", "土", "日")
_FULL_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_BODY_WEIGHT_KEYS = ("body_weight_kg", "bodyWeightKg", "bodyWeight", "currentWeightKg", "weightKg")


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    if isinstance(value, str) and value.strip():
        return [value]
    return []


def _dedupe(items: Iterable[str]) -> tuple[str, ...]:
    seen: list[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return tuple(seen)


def _experience(payload: Mapping[str, Any]) -> str:
    raw = payload.get("experience")
    if raw is None and isinstance(payload.get("training"), Mapping):
        raw = payload["training"].get("level")
    if isinstance(raw, str):
        return _EXPERIENCE_SYNONYMS.get(raw.strip().lower(), "beginner")
    return "beginner"


def _goal_token(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    token = value.strip()
    if token in GOAL_IDS:
        return token
    return _GOAL_LABELS.get(token)


def _goals(payload: Mapping[str, Any]) -> tuple[str, ...]:
    collected: list[str] = []
    for item in _as_list(payload.get("goals")):
        token = _goal_token(item)
        if token:
            collected.append(token)

    legacy = payload.get("goal")
    if isinstance(legacy, str) and legacy in _LEGACY_SINGLE_GOAL:
        collected.append(_LEGACY_SINGLE_GOAL[legacy])

    areas = _as_list(_first(payload, "targetAreas", "target_areas"))
    for area, goal in _TARGET_AREA_GOAL.items():
        if area in areas:
            collected.append(goal)

    return _dedupe(collected)


def _goal_areas(payload: Mapping[str, Any], goals: tuple[str, ...]) -> Dict[str, int]:
    explicit = _first(payload, "goal_areas", "goalAreas")
    weights: Dict[str, int] = {}
    if isinstance(explicit, Mapping):
        for area in AREAS:
            value = coerce_count(explicit.get(area))
            if value > 0:
                weights[area] = value
    else:
        for goal in goals:
            for area, value in GOAL_TO_AREA_WEIGHT[goal].items():
                weights[area] = weights.get(area, 0) + value
    if not weights:
        return dict(DEFAULT_GOAL_AREAS)
    return {area: weights[area] for area in AREAS if area in weights}


def _barriers(payload: Mapping[str, Any]) -> frozenset[str]:
    flags = set()
    for item in _as_list(payload.get("barriers")):
        if isinstance(item, str) and item.strip() in _BARRIER_SYNONYMS:
            flags.add(_BARRIER_SYNONYMS[item.strip()])
    return frozenset(flags)


def _duration(payload: Mapping[str, Any]) -> str:
    raw = _first(payload, "session_duration", "sessionDuration", "duration")
    if isinstance(raw, bool) or raw is None:
        return "medium"
    token = str(raw).strip().lower()
    if token in _DURATION_SYNONYMS:
        return _DURATION_SYNONYMS[token]
    minutes = optional_positive(raw)
    if minutes is None:
        return "medium"
    if minutes < 15:
        return "short"
    return "medium" if minutes < 45 else "long"


def _body_weight(payload: Mapping[str, Any]) -> float:
    for key in _BODY_WEIGHT_KEYS:
        value = optional_positive(payload.get(key))
        if value is not None:
            return value
    return DEFAULT_BODY_WEIGHT_KG


def _weekday_token(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    token = value.strip()
    if token in _JAPANESE_WEEKDAYS:
        return WEEKDAYS[_JAPANESE_WEEKDAYS.index(token)]
    lowered = token.lower()
    if lowered in _FULL_WEEKDAYS:
        return WEEKDAYS[_FULL_WEEKDAYS.index(lowered)]
    return lowered if lowered in WEEKDAYS else None


def _schedule(payload: Mapping[str, Any]) -> tuple[str, ...]:
    raw = _first(payload, "weekly_schedule", "weeklySchedule", "schedule", "schedule_map")
    tokens: set[str] = set()
    if isinstance(raw, Mapping):
        for key, enabled in raw.items():
            token = _weekday_token(key)
            if token and enabled:
                tokens.add(token)
    else:
        for item in _as_list(raw):
            token = _weekday_token(item)
            if token:
                tokens.add(token)
    return tuple(day for day in WEEKDAYS if day in tokens)


def _sessions_per_week(payload: Mapping[str, Any]) -> int:
    raw = _first(payload, "sessions_per_week", "sessionsPerWeek")
    if raw is None and isinstance(payload.get("training"), Mapping):
        raw = payload["training"].get("sessionsPerWeek")
    count = coerce_count(raw, DEFAULT_SESSIONS_PER_WEEK)
    return count if count in SESSIONS_PER_WEEK_CHOICES else DEFAULT_SESSIONS_PER_WEEK


def _lift_value(raw: Any) -> LiftValue:
    if not isinstance(raw, Mapping):
        return LiftValue()
    reps = coerce_count(raw.get("reps"), DEFAULT_LIFT_REPS)
    return LiftValue(weight=optional_positive(raw.get("weight")), reps=reps or DEFAULT_LIFT_REPS)


def _lifts(payload: Mapping[str, Any]) -> Dict[str, LiftGoal]:
    raw = payload.get("lifts")
    raw = raw if isinstance(raw, Mapping) else {}
    lifts: Dict[str, LiftGoal] = {}
    for name in LIFTS:
        entry = raw.get(name)
        if entry is None and name == "dead":
            entry = raw.get("deadlift")
        if isinstance(entry, Mapping):
            lifts[name] = LiftGoal(current=_lift_value(entry.get("current")), goal=_lift_value(entry.get("goal")))
        else:
            lifts[name] = LiftGoal()
    return lifts


def _goal_type(payload: Mapping[str, Any]) -> str:
    raw = _first(payload, "goal_type", "goalType")
    if not isinstance(raw, str):
        return "fit"
    token = raw.strip().lower()
    return token if token in GOAL_TYPES else "fit"


def _started_at(payload: Mapping[str, Any]) -> Optional[date]:
    raw = _first(payload, "started_at", "startedAt")
    if raw is None:
        return None
    try:
        return parse_iso_date(raw, field="started_at")
    except ValidationError:
        LOGGER.debug("Dropping unparseable started_at %r", raw)
        return None


def _weeks_to_goal(payload: Mapping[str, Any], default: int) -> int:
    raw = optional_positive(_first(payload, "weeks_to_goal", "weeksToGoal"))
    if raw is None:
        return max(1, int(default))
    return max(1, int(math.floor(raw)))


def normalize(raw: RawProfile, *, default_weeks: int = DEFAULT_WEEKS_TO_GOAL) -> Profile:
    """
    Convert any accepted profile shape into a canonical `Profile`.

    Unknown tokens are dropped and missing numbers replaced with defaults;
    this never raises for shape problems. A canonical `Profile` is returned
    unchanged.
    """
    if isinstance(raw, Profile):
        return raw
    payload = raw.payload if isinstance(raw, LegacyProfileInput) else raw
    if not isinstance(payload, Mapping):
        LOGGER.debug("Profile payload of type %s replaced with defaults", type(payload).__name__)
        payload = {}

    goals = _goals(payload)
    return Profile(
        experience=_experience(payload),
        goals=goals,
        goal_areas=_goal_areas(payload, goals),
        barriers=_barriers(payload),
        session_duration=_duration(payload),
        body_weight_kg=_body_weight(payload),
        weekly_schedule=_schedule(payload),
        sessions_completed=coerce_count(_first(payload, "sessions_completed", "sessionsCompleted", "sessionsDone")),
        sessions_per_week=_sessions_per_week(payload),
        lifts=_lifts(payload),
        goal_type=_goal_type(payload),
        started_at=_started_at(payload),
        height_cm=optional_positive(_first(payload, "height_cm", "heightCm")),
        body_fat_pct=optional_positive(_first(payload, "body_fat_pct", "bodyFatPct")),
        goal_weight_kg=optional_positive(_first(payload, "goal_weight_kg", "goalWeightKg")),
        weeks_to_goal=_weeks_to_goal(payload, default_weeks),
    )
