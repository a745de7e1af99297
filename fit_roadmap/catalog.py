"""Static exercise catalog with barrier filtering and random substitution."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Collection, Dict, Iterable, List, Optional

from .constants import (
    AREAS,
    BARRIER_NO_GYM,
    BARRIER_NO_HEAVY,
    BARRIER_NO_RUNNING,
)
from .units import round_to_plate

LOGGER = logging.getLogger(__name__)

TAG_GYM = "gym"
TAG_HEAVY = "heavy"
TAG_RUNNING = "running-like"
TAG_NO_WEIGHT = "no-weight"

EXERCISE_KINDS = ("bench", "squat", "dead", "ohp", "row", "pulldown", "accessory", "stretch")

_BARRIER_TAGS = {
    BARRIER_NO_GYM: TAG_GYM,
    BARRIER_NO_HEAVY: TAG_HEAVY,
    BARRIER_NO_RUNNING: TAG_RUNNING,
}

# Body-weight multipliers for the menu planner; 0 or missing means bodyweight only.
EXERCISE_COEFFICIENTS: Dict[str, float] = {
    "squat": 0.35,
    "legpress": 0.45,
    "lunge": 0.0,
    "hipbridge": 0.10,
    "hipthrust": 0.35,
    "abduction": 0.15,
    "bench": 0.22,
    "chestpress": 0.25,
    "kneepushup": 0.0,
    "pushdown": 0.12,
    "deadlift": 0.30,
    "row": 0.25,
    "seatedrow": 0.22,
    "latpulldown": 0.20,
    "ohp": 0.12,
    "dbcurl": 0.08,
    "plank": 0.0,
    "deadbug": 0.0,
    "mountain": 0.0,
}


@dataclass(frozen=True)
class Candidate:
    """A selectable exercise with applicability tags and a load rule."""

    key: str
    name: str
    tags: frozenset[str] = frozenset()
    ratio: Optional[float] = None
    sets: Optional[int] = None
    reps: Optional[int] = None
    notes: Optional[str] = None
    kind: Optional[str] = None

    @property
    def bodyweight(self) -> bool:
        return TAG_NO_WEIGHT in self.tags

    def suggest(self, base_load: Optional[float]) -> Optional[float]:
        """Suggested load as a plate-rounded share of `base_load`."""
        if self.bodyweight or self.ratio is None or base_load is None:
            return None
        try:
            base = float(base_load)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(base):
            return None
        return round_to_plate(base * self.ratio)


def _c(key: str, name: str, *tags: str, **extra) -> Candidate:
    return Candidate(key=key, name=name, tags=frozenset(tags), **extra)


HIPBRIDGE = _c("hipbridge", "Hip Bridge", TAG_NO_WEIGHT)

AREA_POOL: Dict[str, List[Candidate]] = {
    "abs": [
        _c("cablecrunch", "Cable Crunch", TAG_GYM),
        _c("plank", "Plank", TAG_NO_WEIGHT),
        _c("deadbug", "Dead Bug", TAG_NO_WEIGHT),
    ],
    "legs": [
        _c("squat", "Squat (Smith OK)", TAG_GYM, TAG_HEAVY),
        _c("legpress", "Leg Press", TAG_GYM),
        _c("lunge", "Lunge", TAG_NO_WEIGHT, TAG_RUNNING),
        HIPBRIDGE,
    ],
    "hips": [
        _c("hipthrust", "Hip Thrust (Barbell/Smith)", TAG_GYM, TAG_HEAVY),
        _c("abduction", "Hip Abduction", TAG_GYM),
        HIPBRIDGE,
    ],
    "arms": [
        _c("dbcurl", "Dumbbell Curl", TAG_GYM),
        _c("pushdown", "Triceps Pushdown", TAG_GYM),
        _c("kneepushup", "Knee Push-up", TAG_NO_WEIGHT),
    ],
    "back": [
        _c("deadlift", "Deadlift (Light)", TAG_GYM, TAG_HEAVY),
        _c("latpulldown", "Lat Pulldown", TAG_GYM),
        _c("seatedrow", "Seated Row", TAG_GYM),
    ],
    "whole": [
        _c("row", "Dumbbell Row", TAG_GYM),
        _c("ohp", "Shoulder Press (Dumbbell)", TAG_GYM),
        _c("mountain", "Mountain Climber", TAG_NO_WEIGHT, TAG_RUNNING),
    ],
}


def _alt(kind: str, key: str, name: str, sets: int, reps: int, ratio: Optional[float], *tags: str, notes=None):
    return Candidate(
        key=key,
        name=name,
        tags=frozenset(tags),
        ratio=ratio,
        sets=sets,
        reps=reps,
        notes=notes,
        kind=kind,
    )


PRIMARY_LIFT_ALTERNATIVES: Dict[str, List[Candidate]] = {
    "bench": [
        _alt("bench", "db_bench", "Dumbbell Bench Press", 4, 8, 0.6, TAG_GYM, notes="About 60% of bench"),
        _alt("accessory", "machine_chest_press", "Machine Chest Press", 4, 10, 0.55, TAG_GYM, notes="About 55% of bench"),
        _alt("accessory", "incline_db_press", "Incline DB Press", 3, 10, 0.5, TAG_GYM),
        _alt("accessory", "cable_fly", "Cable Fly", 3, 12, 0.25, TAG_GYM),
    ],
    "squat": [
        _alt("accessory", "leg_press", "Leg Press", 4, 10, 1.6, TAG_GYM, notes="Total plate load"),
        _alt("accessory", "goblet_squat", "Goblet Squat", 4, 10, 0.5, TAG_GYM),
        _alt("accessory", "hack_squat", "Hack Squat", 4, 8, 1.1, TAG_GYM),
        _alt("accessory", "front_squat", "Front Squat", 3, 5, 0.7, TAG_GYM, TAG_HEAVY),
    ],
    "dead": [
        _alt("dead", "trap_bar_deadlift", "Trap Bar Deadlift", 3, 5, 1.05, TAG_GYM, TAG_HEAVY),
        _alt("dead", "romanian_deadlift", "Romanian Deadlift", 3, 8, 0.7, TAG_GYM, TAG_HEAVY),
        _alt("accessory", "back_extension", "Back Extension (Plate)", 3, 12, 0.3, TAG_GYM),
        _alt("row", "barbell_row", "Barbell Row", 4, 8, 0.55, TAG_GYM, TAG_HEAVY, notes="About 55% of deadlift"),
    ],
    "ohp": [
        _alt("ohp", "db_shoulder_press", "Dumbbell Shoulder Press", 3, 10, 0.6, TAG_GYM),
        _alt("accessory", "machine_shoulder_press", "Machine Shoulder Press", 4, 10, 0.55, TAG_GYM),
        _alt("accessory", "lateral_raise", "Lateral Raise (Pair Total)", 3, 15, 0.25, TAG_GYM),
    ],
    "row": [
        _alt("row", "seated_cable_row", "Seated Cable Row", 4, 10, 0.5, TAG_GYM),
        _alt("row", "chest_supported_row", "Chest-supported Row", 4, 10, 0.45, TAG_GYM),
        _alt("pulldown", "lat_pulldown", "Lat Pulldown", 3, 10, 0.45, TAG_GYM),
    ],
    "pulldown": [
        _alt("pulldown", "assisted_pullup", "Assisted Pull-up", 4, 6, 0.45, TAG_GYM, notes="Adjust assistance as needed"),
        _alt("row", "seated_row", "Seated Row", 4, 10, 0.5, TAG_GYM),
        _alt("accessory", "straight_arm_pulldown", "Straight-Arm Pulldown", 3, 12, 0.25, TAG_GYM),
    ],
    "accessory": [
        _alt("accessory", "face_pull", "Face Pull", 3, 15, 0.2, TAG_GYM),
        _alt("accessory", "leg_extension", "Leg Extension", 3, 12, 0.3, TAG_GYM),
        _alt("accessory", "leg_curl", "Leg Curl", 3, 12, 0.35, TAG_GYM),
        _alt("accessory", "calf_raise", "Calf Raise", 3, 15, 0.3, TAG_GYM),
    ],
    "stretch": [
        _alt("stretch", "childs_pose", "Child's Pose", 2, 45, None, TAG_NO_WEIGHT, notes="Breathe deeply"),
        _alt("stretch", "doorway_chest_stretch", "Doorway Chest Stretch", 2, 30, None, TAG_NO_WEIGHT),
        _alt("stretch", "cat_cow", "Cat & Cow", 2, 10, None, TAG_NO_WEIGHT),
    ],
}


def candidates_for_area(area: str) -> List[Candidate]:
    return list(AREA_POOL.get(area, ()))


def candidates_for_primary_lift(kind: str) -> List[Candidate]:
    return list(PRIMARY_LIFT_ALTERNATIVES.get(kind, ()))


def area_for_exercise(key: str) -> Optional[str]:
    """First area whose pool lists `key`."""
    for area in AREAS:
        if any(candidate.key == key for candidate in AREA_POOL[area]):
            return area
    return None


def excluded_tags(barriers: Iterable[str]) -> frozenset[str]:
    return frozenset(_BARRIER_TAGS[barrier] for barrier in barriers if barrier in _BARRIER_TAGS)


def is_eligible(candidate: Candidate, barriers: Iterable[str]) -> bool:
    return not (candidate.tags & excluded_tags(barriers))


def eligible_candidates(candidates: Iterable[Candidate], barriers: Iterable[str]) -> List[Candidate]:
    blocked = excluded_tags(barriers)
    return [candidate for candidate in candidates if not (candidate.tags & blocked)]


def pick_substitute(
    candidates: Iterable[Candidate],
    barriers: Iterable[str],
    exclude: Collection[str] = (),
    rng: random.Random | None = None,
) -> Optional[Candidate]:
    """
    Pick a random eligible candidate whose key and name are not in `exclude`.

    This is the only non-deterministic selection in the package; pass a seeded
    `random.Random` for reproducible picks.
    """
    pool = [
        candidate
        for candidate in eligible_candidates(candidates, barriers)
        if candidate.key not in exclude and candidate.name not in exclude
    ]
    if not pool:
        LOGGER.debug("No substitute left after excluding %s", sorted(exclude))
        return None
    chooser = rng or random.Random()
    return chooser.choice(pool)


def substitute_primary_lift(
    kind: str,
    barriers: Iterable[str] = (),
    exclude: Collection[str] = (),
    rng: random.Random | None = None,
) -> Optional[Candidate]:
    return pick_substitute(candidates_for_primary_lift(kind), barriers, exclude, rng)


def substitute_area_exercise(
    area: str,
    barriers: Iterable[str] = (),
    exclude: Collection[str] = (),
    rng: random.Random | None = None,
) -> Optional[Candidate]:
    return pick_substitute(candidates_for_area(area), barriers, exclude, rng)
