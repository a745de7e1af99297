from __future__ import annotations

import pytest

from fit_roadmap import catalog
from fit_roadmap.catalog import HIPBRIDGE, TAG_GYM, Candidate
from fit_roadmap.constants import AREAS, BARRIERS
from fit_roadmap.models import Profile
from fit_roadmap.planner import (
    BEGINNER_NOTE,
    SCHEMES,
    generate,
    progressive_reps,
    ranked_areas,
    suggested_weight,
)


def _arms_profile(**overrides) -> Profile:
    values = {"goal_areas": {"arms": 3}, "body_weight_kg": 60.0}
    values.update(overrides)
    return Profile(**values)


def test_ranked_areas_orders_by_weight_then_area_order():
    assert ranked_areas({"whole": 2, "abs": 1})[:3] == ["whole", "abs", "legs"]
    assert ranked_areas({"legs": 1, "abs": 1})[:2] == ["abs", "legs"]


def test_rep_progression_caps_at_range_top():
    reps = SCHEMES["muscle"].reps
    assert reps == (8, 12)
    assert progressive_reps(reps, 10) == 12
    assert progressive_reps(reps, 2) == 9
    assert progressive_reps(reps, 0) == 8


def test_suggested_weight_from_body_weight():
    assert suggested_weight("squat", 60.0, 0) == pytest.approx(20.0)
    assert suggested_weight("squat", 60.0, 4) == pytest.approx(22.5)
    assert suggested_weight("plank", 60.0, 0) is None
    assert suggested_weight("unknown", 60.0, 0) is None
    assert suggested_weight("squat", float("nan"), 0) == pytest.approx(17.5)


def test_generate_arms_menu():
    menu = generate(_arms_profile())
    assert [item.exercise_key for item in menu] == ["dbcurl", "pushdown", "kneepushup"]
    curl = menu[0]
    assert curl.target_sets == 3
    assert curl.target_reps == 8
    assert curl.rest_seconds == 75
    assert curl.suggested_weight_kg == pytest.approx(5.0)
    assert curl.notes == BEGINNER_NOTE
    assert menu[2].suggested_weight_kg is None


def test_generate_progression_override():
    menu = generate(_arms_profile(experience="advanced"), sessions_completed=10)
    assert all(item.target_reps == 12 for item in menu)
    assert all(item.rest_seconds == 50 for item in menu)
    assert all(item.notes is None for item in menu)


def test_duration_changes_count_and_sets():
    short = generate(_arms_profile(session_duration="short"))
    long = generate(_arms_profile(session_duration="long"))
    assert len(short) == 2
    assert short[0].target_sets == 3
    assert len(long) == 4
    assert long[0].target_sets == 4


def test_every_barrier_still_yields_a_menu():
    profile = Profile(barriers=frozenset(BARRIERS))
    menu = generate(profile)
    assert menu
    assert [item.exercise_key for item in menu] == ["plank", "deadbug", "hipbridge"]
    assert [item.suggested_weight_kg for item in menu] == [None, None, pytest.approx(5.0)]
    # short-duration-only drops a set from the tone scheme's three.
    assert all(item.target_sets == 2 for item in menu)


def test_each_single_barrier_yields_a_menu():
    for barrier in BARRIERS:
        assert generate(Profile(barriers=frozenset({barrier})))


def test_hip_bridge_load_comes_from_coefficient():
    profile = Profile(
        goal_areas={"hips": 3},
        barriers=frozenset({"no-gym", "short-duration-only"}),
        session_duration="short",
        body_weight_kg=60.0,
    )
    menu = generate(profile)
    assert [(item.exercise_key, item.suggested_weight_kg) for item in menu] == [
        ("hipbridge", pytest.approx(5.0)),
        ("plank", None),
    ]


def test_hip_bridge_fallback_when_everything_is_excluded(monkeypatch):
    gym_only = {area: [Candidate(key=f"{area}_machine", name=area, tags=frozenset({TAG_GYM}))] for area in AREAS}
    monkeypatch.setattr(catalog, "AREA_POOL", gym_only)

    menu = generate(_arms_profile(barriers=frozenset({"no-gym"})))
    assert [item.exercise_key for item in menu] == [HIPBRIDGE.key]
    assert menu[0].name == "Hip Bridge"
    assert menu[0].suggested_weight_kg == pytest.approx(5.0)
