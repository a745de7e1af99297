from __future__ import annotations

PLATE_INCREMENT_KG = 2.5
DEFAULT_BODY_WEIGHT_KG = 50.0
DEFAULT_WEEKS_TO_GOAL = 12
DEFAULT_SESSIONS_PER_WEEK = 3
DEFAULT_LIFT_REPS = 5

LIFTS: tuple[str, ...] = ("bench", "squat", "dead")

EXPERIENCE_TIERS: tuple[str, ...] = ("beginner", "intermediate", "advanced")
GOAL_TYPES: tuple[str, ...] = ("slim", "fit", "bulk")
DURATION_BANDS: tuple[str, ...] = ("short", "medium", "long")

# Order matters: ties in goal weight are broken by this sequence.
AREAS: tuple[str, ...] = ("abs", "legs", "hips", "arms", "back", "whole")

GOAL_IDS: tuple[str, ...] = ("waist", "abs_tone", "hip_up", "arms", "posture", "whole_tone")

BARRIER_NO_GYM = "no-gym"
BARRIER_NO_HEAVY = "no-heavy"
BARRIER_NO_RUNNING = "no-running"
BARRIER_SHORT_ONLY = "short-duration-only"
BARRIERS: tuple[str, ...] = (
    BARRIER_NO_GYM,
    BARRIER_NO_HEAVY,
    BARRIER_NO_RUNNING,
    BARRIER_SHORT_ONLY,
)

WEEKDAYS: tuple[str, ...] = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

SESSIONS_PER_WEEK_CHOICES: tuple[int, ...] = (2, 3, 4)

DEFAULT_GOAL_AREAS: dict[str, int] = {"whole": 2, "abs": 1}
