from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from .config import WeeklyGainLimits
from .constants import LIFTS
from .models import Profile
from .units import round_to_plate

# Big3 targets as multiples of goal body weight.
RATIOS: Dict[str, Dict[str, float]] = {
    "slim": {"bench": 0.8, "squat": 1.2, "dead": 1.5},
    "fit": {"bench": 1.0, "squat": 1.5, "dead": 2.0},
    "bulk": {"bench": 1.2, "squat": 1.8, "dead": 2.3},
}

GOAL_BODY_FAT_PCT = {"slim": 15.0, "fit": 12.0, "bulk": 18.0}
TARGET_BMI = {"slim": 21.0, "fit": 23.0, "bulk": 25.0}


@dataclass(frozen=True)
class RoadmapPoint:
    day: date
    weight_kg: float
    bench: float
    squat: float
    dead: float

    def lift(self, name: str) -> float:
        return getattr(self, name)

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "weight_kg": self.weight_kg,
            "bench": self.bench,
            "squat": self.squat,
            "dead": self.dead,
        }


def estimate_goal_weight(
    current_kg: float,
    goal_type: str,
    body_fat_pct: Optional[float] = None,
    height_cm: Optional[float] = None,
) -> float:
    """
    Estimate a goal body weight when none was entered.

    Lean mass is kept and re-spread over the goal body-fat percentage when the
    current body fat is known; otherwise the goal BMI for the height is used.
    Without either, the current weight is the goal.
    """
    goal_type = goal_type if goal_type in RATIOS else "fit"
    if body_fat_pct is not None:
        lean_mass = current_kg * (1 - body_fat_pct / 100)
        return round(lean_mass / (1 - GOAL_BODY_FAT_PCT[goal_type] / 100), 1)
    if height_cm is not None:
        metres = height_cm / 100
        return round(TARGET_BMI[goal_type] * metres * metres, 1)
    return round(current_kg, 1)


def estimate_big3_targets(goal_type: str, goal_weight_kg: float) -> Dict[str, float]:
    ratios = RATIOS.get(goal_type, RATIOS["fit"])
    return {lift: round_to_plate(goal_weight_kg * ratios[lift]) for lift in LIFTS}


def lerp_series(start: float, goal: float, weeks: int) -> List[float]:
    """`weeks + 1` evenly spaced values from start to goal inclusive."""
    if weeks <= 0:
        return [float(goal)]
    return [float(value) for value in np.linspace(start, goal, weeks + 1)]


def clamp_weekly_gains(series: Sequence[float], max_gain: float) -> List[float]:
    """
    Plate-round a series so adjacent points never move more than `max_gain`.

    A rounded value that would overshoot the limit is replaced by exactly
    `previous +/- max_gain`.
    """
    if not series:
        return []
    out = [round_to_plate(series[0])]
    for raw in series[1:]:
        previous = out[-1]
        candidate = round_to_plate(raw)
        if candidate - previous > max_gain:
            candidate = previous + max_gain
        elif previous - candidate > max_gain:
            candidate = previous - max_gain
        out.append(candidate)
    return out


def _lift_goal(profile: Profile, lift: str, estimates: Mapping[str, float]) -> float:
    explicit = profile.lift(lift).goal.weight
    return explicit if explicit else estimates[lift]


def project(
    profile: Profile,
    *,
    today: Optional[date] = None,
    max_gain: WeeklyGainLimits | None = None,
    weeks: Optional[int] = None,
) -> List[RoadmapPoint]:
    """
    Weekly body-weight and Big3 targets from the start date to the goal.

    Parameters
    ----------
    profile:
        Canonical profile; `started_at` anchors the first point, falling back
        to `today` (or the current date).
    max_gain:
        Per-lift weekly limits; defaults to bench 2, squat 3, dead 3 kg.
    weeks:
        Overrides `profile.weeks_to_goal`.
    """
    limits = max_gain or WeeklyGainLimits()
    horizon = max(1, int(weeks if weeks is not None else profile.weeks_to_goal))
    start = profile.started_at or today or date.today()

    current = profile.body_weight_kg
    goal_weight = profile.goal_weight_kg or estimate_goal_weight(
        current,
        profile.goal_type,
        body_fat_pct=profile.body_fat_pct,
        height_cm=profile.height_cm,
    )
    weights = [round(value, 1) for value in lerp_series(current, goal_weight, horizon)]

    estimates = estimate_big3_targets(profile.goal_type, goal_weight)
    lifts: Dict[str, List[float]] = {}
    for lift in LIFTS:
        begin = profile.lift(lift).current.weight or 0.0
        series = lerp_series(begin, _lift_goal(profile, lift, estimates), horizon)
        lifts[lift] = clamp_weekly_gains(series, limits.for_lift(lift))

    return [
        RoadmapPoint(
            day=start + timedelta(weeks=index),
            weight_kg=weights[index],
            bench=lifts["bench"][index],
            squat=lifts["squat"][index],
            dead=lifts["dead"][index],
        )
        for index in range(horizon + 1)
    ]
