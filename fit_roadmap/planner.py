"""Deterministic daily menu generation with progressive overload."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .catalog import (
    EXERCISE_COEFFICIENTS,
    HIPBRIDGE,
    Candidate,
    candidates_for_area,
    eligible_candidates,
)
from .constants import AREAS, BARRIER_SHORT_ONLY, DEFAULT_BODY_WEIGHT_KG
from .models import GeneratedPlanItem, Profile
from .units import round_to_plate

LOGGER = logging.getLogger(__name__)

BEGINNER_NOTE = "Form first; stop if anything hurts"


@dataclass(frozen=True)
class Scheme:
    sets: Tuple[int, int]
    reps: Tuple[int, int]
    rest_seconds: int


SCHEMES: Dict[str, Scheme] = {
    "slim": Scheme(sets=(1, 2), reps=(12, 20), rest_seconds=30),
    "tone": Scheme(sets=(2, 3), reps=(10, 15), rest_seconds=45),
    "muscle": Scheme(sets=(3, 4), reps=(8, 12), rest_seconds=60),
    "healthy": Scheme(sets=(1, 2), reps=(8, 15), rest_seconds=45),
}

_AREA_PROFILE = {
    "abs": "slim",
    "legs": "tone",
    "hips": "tone",
    "whole": "tone",
    "arms": "muscle",
    "back": "healthy",
}

_EXERCISE_COUNT = {"short": 2, "medium": 3, "long": 4}
_REST_ADJUSTMENT = {"beginner": 15, "intermediate": 0, "advanced": -10}
MIN_REST_SECONDS = 20


def ranked_areas(goal_areas: Dict[str, int]) -> List[str]:
    """Areas by descending weight; ties and zero weights fall back to area order."""
    return sorted(AREAS, key=lambda area: (-goal_areas.get(area, 0), AREAS.index(area)))


def goal_profile(goal_areas: Dict[str, int]) -> str:
    return _AREA_PROFILE[ranked_areas(goal_areas)[0]]


def set_cap(scheme: Scheme, duration: str) -> int:
    low, high = scheme.sets
    if duration == "short":
        return low
    if duration == "long":
        return high
    return min(high, 3)


def rest_seconds(scheme: Scheme, experience: str) -> int:
    return max(MIN_REST_SECONDS, scheme.rest_seconds + _REST_ADJUSTMENT.get(experience, 0))


def progressive_reps(rep_range: Tuple[int, int], sessions_completed: int) -> int:
    """+1 rep every two completed sessions, capped at the top of the range."""
    low, high = rep_range
    return min(high, low + max(0, sessions_completed) // 2)


def suggested_weight(exercise_key: str, body_weight_kg: float, sessions_completed: int) -> Optional[float]:
    """
    Body-weight based starting load plus 0.5 kg every two sessions.

    Returns None for bodyweight exercises and for keys without a coefficient.
    """
    coefficient = EXERCISE_COEFFICIENTS.get(exercise_key)
    if not coefficient:
        return None
    bumps = max(0, sessions_completed) // 2
    return round_to_plate(_safe_body_weight(body_weight_kg) * coefficient + bumps * 0.5)


def _safe_body_weight(value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_BODY_WEIGHT_KG
    if not math.isfinite(number) or number <= 0:
        return DEFAULT_BODY_WEIGHT_KG
    return number


def choose_exercises(profile: Profile, count: int) -> List[Candidate]:
    chosen: List[Candidate] = []
    for area in ranked_areas(profile.goal_areas):
        for candidate in eligible_candidates(candidates_for_area(area), profile.barriers):
            if len(chosen) >= count:
                return chosen
            if all(existing.key != candidate.key for existing in chosen):
                chosen.append(candidate)
    if not chosen:
        LOGGER.debug("All candidates excluded by %s; using %s", sorted(profile.barriers), HIPBRIDGE.key)
        chosen.append(HIPBRIDGE)
    return chosen


def build_item(
    candidate: Candidate,
    profile: Profile,
    sessions: int,
    scheme: Scheme,
) -> GeneratedPlanItem:
    sets = set_cap(scheme, profile.session_duration)
    if BARRIER_SHORT_ONLY in profile.barriers:
        sets = max(1, sets - 1)
    return GeneratedPlanItem(
        exercise_key=candidate.key,
        name=candidate.name,
        target_sets=sets,
        target_reps=progressive_reps(scheme.reps, sessions),
        suggested_weight_kg=suggested_weight(candidate.key, profile.body_weight_kg, sessions),
        rest_seconds=rest_seconds(scheme, profile.experience),
        notes=BEGINNER_NOTE if profile.experience == "beginner" else None,
    )


def generate(profile: Profile, sessions_completed: int | None = None) -> List[GeneratedPlanItem]:
    """
    Produce today's menu for a canonical profile.

    Parameters
    ----------
    profile:
        Normalised profile; its goal areas, barriers, duration and body weight
        drive the selection.
    sessions_completed:
        Overrides `profile.sessions_completed` for progression.
    """
    sessions = profile.sessions_completed if sessions_completed is None else max(0, int(sessions_completed))
    scheme = SCHEMES[goal_profile(profile.goal_areas)]
    count = _EXERCISE_COUNT.get(profile.session_duration, _EXERCISE_COUNT["medium"])
    return [build_item(candidate, profile, sessions, scheme) for candidate in choose_exercises(profile, count)]
