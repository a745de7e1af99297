from __future__ import annotations

import json

from typer.testing import CliRunner

from fit_roadmap.catalog import PRIMARY_LIFT_ALTERNATIVES
from fit_roadmap.cli import app
from fit_roadmap.config import get_config


def _isolate(monkeypatch, tmp_path):
    monkeypatch.setenv("FIT_ROADMAP_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("FIT_ROADMAP_CONFIG", raising=False)
    monkeypatch.delenv("FIT_CONFIG", raising=False)
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    get_config.cache_clear()


def test_cli_smoke(tmp_path, monkeypatch):
    runner = CliRunner()
    _isolate(monkeypatch, tmp_path)

    onboard_result = runner.invoke(
        app,
        [
            "onboard",
            "--goal",
            "waist",
            "--goal",
            "ヒップアップしたい",
            "--barrier",
            "no-gym",
            "--duration",
            "20",
            "--body-weight",
            "55",
            "--day",
            "mon",
            "--day",
            "thu",
            "--squat",
            "40",
        ],
    )
    assert onboard_result.exit_code == 0, onboard_result.stdout
    assert "areas abs=2, legs=1, hips=3, back=1" in onboard_result.stdout

    profile_result = runner.invoke(app, ["profile", "--json"])
    assert profile_result.exit_code == 0, profile_result.stdout
    payload = json.loads(profile_result.stdout)
    assert payload["barriers"] == ["no-gym"]
    assert payload["weekly_schedule"] == ["mon", "thu"]
    assert payload["lifts"]["squat"]["current"]["weight"] == 40.0

    menu_result = runner.invoke(app, ["menu", "--lb"])
    assert menu_result.exit_code == 0, menu_result.stdout
    assert "Plank" in menu_result.stdout

    today_result = runner.invoke(app, ["today", "--date", "2024-05-06"])
    assert today_result.exit_code == 0, today_result.stdout
    assert "2024-05-06: Session PUSH (Push)" in today_result.stdout
    assert "Bench Press: 5x5 @" in today_result.stdout

    rest_result = runner.invoke(app, ["today", "--date", "2024-05-07"])
    assert "Rest day (Recovery / Stretch)" in rest_result.stdout

    schedule_result = runner.invoke(app, ["schedule", "--date", "2024-05-08", "--toggle", "1", "--sessions", "4"])
    assert schedule_result.exit_code == 0, schedule_result.stdout
    assert "Week of 2024-05-06 (4 sessions/week): mon* tue* wed* thu- fri* sat- sun-" in schedule_result.stdout

    log_result = runner.invoke(
        app,
        [
            "log",
            "--date",
            "2024-05-06",
            "--weight",
            "55",
            "--bench",
            "30",
            "--squat",
            "40",
            "--dead",
            "50",
            "-s",
            "bench",
            "-s",
            "squat",
            "-s",
            "dead",
            "--seed",
            "1",
        ],
    )
    assert log_result.exit_code == 0, log_result.stdout
    assert "Logged 2024-05-06 (+10 XP, +5 all-lifts bonus)" in log_result.stdout

    complete_result = runner.invoke(app, ["complete"])
    assert complete_result.exit_code == 0, complete_result.stdout
    assert "Sessions completed: 1" in complete_result.stdout

    roadmap_result = runner.invoke(app, ["roadmap"])
    assert roadmap_result.exit_code == 0, roadmap_result.stdout
    assert "WEIGHT_KG" in roadmap_result.stdout

    progress_result = runner.invoke(app, ["progress"])
    assert progress_result.exit_code == 0, progress_result.stdout
    assert "2024-05-06" in progress_result.stdout

    rewards_result = runner.invoke(app, ["rewards", "--date", "2024-05-06"])
    assert rewards_result.exit_code == 0, rewards_result.stdout
    assert "XP: 15" in rewards_result.stdout

    achievements_result = runner.invoke(app, ["achievements"])
    assert "[x] First step" in achievements_result.stdout
    assert "[ ] Bench 100" in achievements_result.stdout

    swap_result = runner.invoke(app, ["swap", "squat", "--seed", "3"])
    assert swap_result.exit_code == 0, swap_result.stdout
    assert "Swap squat -> Lunge @ bodyweight" in swap_result.stdout

    # every squat alternative needs a gym
    session_swap = runner.invoke(app, ["swap", "squat", "--session", "--date", "2024-05-06"])
    assert session_swap.exit_code == 1

    plan_result = runner.invoke(app, ["plan", "I want a six pack"])
    assert plan_result.exit_code == 0, plan_result.stdout
    assert "Core & Upper (Fallback) [fallback]" in plan_result.stdout


def test_cli_rejects_bad_input(tmp_path, monkeypatch):
    runner = CliRunner()
    _isolate(monkeypatch, tmp_path)

    bad_date = runner.invoke(app, ["log", "--date", "05/06/2024"])
    assert bad_date.exit_code == 2
    assert "--date" in bad_date.output

    bad_lift = runner.invoke(app, ["log", "--success", "curl"])
    assert bad_lift.exit_code == 2

    bad_swap = runner.invoke(app, ["swap", "juggling"])
    assert bad_swap.exit_code == 2

    bad_session_swap = runner.invoke(app, ["swap", "lunge", "--session"])
    assert bad_session_swap.exit_code == 2

    bad_toggle = runner.invoke(app, ["schedule", "--toggle", "9"])
    assert bad_toggle.exit_code == 2


def test_cli_reports_corrupt_store(tmp_path, monkeypatch):
    runner = CliRunner()
    _isolate(monkeypatch, tmp_path)
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "profile.json").write_text("{not json", encoding="utf-8")

    result = runner.invoke(app, ["profile"])
    assert result.exit_code == 1


def test_config_command(tmp_path, monkeypatch):
    runner = CliRunner()
    _isolate(monkeypatch, tmp_path)
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["--log-level", "DEBUG", "config"])
    assert result.exit_code == 0, result.stdout
    assert "Config source: defaults" in result.stdout
    assert "Weekly max gain (kg): bench=2.0 squat=3.0 dead=3.0" in result.stdout


def test_cli_swap_session_kind(tmp_path, monkeypatch):
    runner = CliRunner()
    _isolate(monkeypatch, tmp_path)
    onboard_result = runner.invoke(app, ["onboard", "--body-weight", "60"])
    assert onboard_result.exit_code == 0, onboard_result.stdout

    result = runner.invoke(app, ["swap", "squat", "--session", "--date", "2024-05-06", "--seed", "1"])
    assert result.exit_code == 0, result.stdout
    names = {candidate.name for candidate in PRIMARY_LIFT_ALTERNATIVES["squat"]}
    swapped = result.stdout.split("Swap squat -> ", 1)[1].split(" @ ", 1)[0]
    assert swapped in names
